"""Call sync or async callbacks uniformly.

Close callbacks registered by users can be ``def`` or ``async def``.
The sync/async check lives here so callers don't repeat it::

    from sseline._internal.invoke import invoke

    await invoke(callback)
"""

import inspect
from typing import Any


async def invoke(callback: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *callback* and await the result if it is awaitable."""
    result = callback(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
