"""ASGI endpoint that serves one event stream per request.

Wraps an async producer into an ASGI application::

    async def clock(stream: EventStream) -> None:
        while True:
            await stream.push(EventStreamMessage(data=now_iso(), event="tick"))
            await anyio.sleep(1)

    app = event_stream_endpoint(clock)

The producer runs next to delivery. When it returns (or fails) the
stream is closed; when the client disconnects the producer is cancelled.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeAlias

import anyio

from sseline._internal.asgi import ASGIApp, Receive, Scope, Send
from sseline.config import StreamConfig
from sseline.errors import ConfigurationError
from sseline.http.connection import Connection
from sseline.realtime.stream import EventStream, create_event_stream

logger = logging.getLogger("sseline.server")

Producer: TypeAlias = Callable[[EventStream], Awaitable[None]]


def event_stream_endpoint(producer: Producer, *, config: StreamConfig | None = None) -> ASGIApp:
    """Build an ASGI app that streams whatever *producer* pushes."""

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            msg = f"Event stream endpoints only serve HTTP, got scope type {scope['type']!r}"
            raise ConfigurationError(msg)

        connection = Connection(scope, receive, send)
        stream = create_event_stream(connection, config=config)

        async def produce() -> None:
            try:
                await producer(stream)
            except Exception:
                logger.exception("Event stream producer failed")
            finally:
                # Shielded so a cancelled producer still releases the stream
                with anyio.CancelScope(shield=True):
                    await stream.close()

        async with anyio.create_task_group() as tg:
            tg.start_soon(produce)
            await stream.send()
            tg.cancel_scope.cancel()

    return app
