"""Host connection protocol.

An event stream needs a small surface from whatever serves the HTTP
request. ``Connection`` implements it over ASGI; anything with the
same shape works. No base class required.
"""

from collections.abc import Callable, Mapping
from typing import Any, Protocol, TypeAlias

from anyio.streams.memory import MemoryObjectReceiveStream

# Callback fired when a connection or stream closes (sync or async)
CloseCallback: TypeAlias = Callable[[], Any]


class EventStreamHost(Protocol):
    """What ``EventStream`` borrows from the host request/response."""

    status: int
    handled: bool
    # ASGI style protocol version: "1.0", "1.1", "2" or "3"
    http_version: str

    @property
    def closed(self) -> bool: ...

    def get_header(self, name: str) -> str | None: ...

    def set_headers(self, headers: Mapping[str, str]) -> None: ...

    def on_close(self, callback: CloseCallback) -> None: ...

    async def end(self) -> None: ...

    async def send_stream(
        self,
        chunks: MemoryObjectReceiveStream[bytes],
        *,
        heartbeat_interval: float | None = None,
    ) -> None: ...
