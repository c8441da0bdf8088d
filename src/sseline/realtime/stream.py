"""EventStream: the push side of one Server-Sent Events connection.

Owns an in-memory byte channel (an anyio memory object stream pair).
Application code pushes messages into the writer end; the host
transport drains the reader end to the client.

Lifecycle::

    OPEN, unpaused <-> OPEN, paused -> CLOSED (disposed)

``CLOSED`` is terminal. Pushes and flushes after close are silently
dropped. Write and close failures are logged, never raised: a broken
client connection is discovered through the close notification, not
through exceptions in the producing code.

Usage::

    stream = create_event_stream(connection)

    async with anyio.create_task_group() as tg:
        tg.start_soon(stream.send)
        await stream.push(EventStreamMessage(data="hello", event="greeting"))
        await stream.push(["one", "two"])
        await stream.close()
"""

from __future__ import annotations

import inspect
import logging
import math
from collections.abc import Sequence
from dataclasses import replace
from typing import TypeAlias

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream

from sseline._internal.invoke import invoke
from sseline.config import StreamConfig
from sseline.http.protocol import CloseCallback, EventStreamHost
from sseline.realtime.events import EventStreamMessage, format_event_stream_messages

# Anything push() accepts
PushInput: TypeAlias = str | EventStreamMessage | Sequence[str | EventStreamMessage]


def create_event_stream(
    connection: EventStreamHost,
    *,
    autoclose: bool | None = None,
    config: StreamConfig | None = None,
    logger: logging.Logger | None = None,
) -> EventStream:
    """Create an ``EventStream`` bound to *connection*.

    Args:
        connection: The host request/response handle.
        autoclose: Close the stream when the connection closes. Overrides
            ``config.autoclose``; defaults to True.
        config: Stream configuration.
        logger: Where write and close failures are reported.
    """
    config = config or StreamConfig()
    if autoclose is not None:
        config = replace(config, autoclose=autoclose)
    return EventStream(connection, config=config, logger=logger)


def is_event_stream(value: object) -> bool:
    """True if *value* is an ``EventStream``."""
    return isinstance(value, EventStream)


def _as_message(item: object) -> EventStreamMessage:
    if isinstance(item, EventStreamMessage):
        return item
    if isinstance(item, str):
        return EventStreamMessage(data=item)
    msg = f"Cannot push {type(item).__name__!r}; expected str or EventStreamMessage"
    raise TypeError(msg)


def normalize_messages(message: PushInput) -> list[EventStreamMessage]:
    """Turn any accepted push input into a list of messages.

    A bare string is ``EventStreamMessage(data=string)``; sequences are
    mapped item by item and may mix strings and messages.
    """
    if isinstance(message, (str, EventStreamMessage)):
        return [_as_message(message)]
    if isinstance(message, Sequence):
        return [_as_message(item) for item in message]
    msg = f"Cannot push {type(message).__name__!r}; expected str, EventStreamMessage, or a sequence"
    raise TypeError(msg)


class EventStream:
    """A single-producer SSE stream with pause buffering.

    Writes go through one lock, so payloads from concurrent ``push()``
    calls are written whole and in the order the calls reached the lock.
    """

    __slots__ = (
        "_close_callbacks",
        "_config",
        "_connection",
        "_disposed",
        "_last_event_id",
        "_logger",
        "_paused",
        "_reader",
        "_unsent",
        "_write_lock",
        "_write_scope",
        "_writer",
        "_writer_closed",
        "handled",
    )

    def __init__(
        self,
        connection: EventStreamHost,
        *,
        config: StreamConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config or StreamConfig()
        self._connection = connection
        self._logger = logger or logging.getLogger(self._config.logger_name)
        self._last_event_id = connection.get_header("Last-Event-ID")

        buffer_size = self._config.max_buffer_size
        if not math.isinf(buffer_size):
            buffer_size = int(buffer_size)
        self._writer, self._reader = anyio.create_memory_object_stream[bytes](buffer_size)
        self._write_lock = anyio.Lock()
        # Cancel scope of the write in flight, if any
        self._write_scope: anyio.CancelScope | None = None

        self._writer_closed = False
        self._paused = False
        self._unsent: str | None = None
        self._disposed = False
        self._close_callbacks: list[CloseCallback] = []
        # Set once the reader end has been given to the transport
        self.handled = False

        if self._config.autoclose:
            connection.on_close(self.close)

    # -- Properties --

    @property
    def last_event_id(self) -> str | None:
        """The ``Last-Event-ID`` the client reconnected with, if any."""
        return self._last_event_id

    @property
    def config(self) -> StreamConfig:
        return self._config

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def closed(self) -> bool:
        """True once the writer end has been closed."""
        return self._writer_closed

    @property
    def stream(self) -> MemoryObjectReceiveStream[bytes]:
        """The reader end, consumed by the transport."""
        return self._reader

    # -- Publishing --

    async def push(self, message: PushInput) -> None:
        """Publish new event(s) for the client.

        Accepts a string, an ``EventStreamMessage``, or a sequence of
        either. An empty sequence is a no-op.

        Raises:
            TypeError: If *message* is none of the accepted shapes.
        """
        messages = normalize_messages(message)
        if not messages:
            return
        await self._send_payload(format_event_stream_messages(messages))

    async def _send_payload(self, payload: str) -> None:
        if self._writer_closed:
            return
        if self._paused:
            self._unsent = (self._unsent or "") + payload
            return
        await self._write(payload)

    async def _write(self, payload: str = "") -> None:
        """Write buffered data plus *payload* as one chunk."""
        async with self._write_lock:
            if self._writer_closed:
                return
            pending = self._unsent or ""
            data = pending + payload
            if not data:
                return
            self._unsent = ""
            chunk = data.encode("utf-8")
            try:
                try:
                    self._writer.send_nowait(chunk)
                except anyio.WouldBlock:
                    await self._send_blocking(chunk)
            except Exception as exc:
                # Keep buffered events for the next flush; the stream stays usable
                self._unsent = pending + (self._unsent or "")
                self._logger.error("Error writing to event stream: %r", exc)

    async def _send_blocking(self, chunk: bytes) -> None:
        # Channel full: close() cancels this wait instead of queueing behind it
        try:
            with anyio.CancelScope() as self._write_scope:
                await self._writer.send(chunk)
        finally:
            self._write_scope = None

    def pause(self) -> None:
        """Buffer pushes instead of writing them until ``resume()``."""
        self._paused = True

    async def resume(self) -> None:
        """Stop buffering and write everything buffered so far."""
        self._paused = False
        await self.flush()

    async def flush(self) -> None:
        """Write buffered events now, even while paused."""
        if self._writer_closed:
            return
        if self._unsent:
            await self._write()

    # -- Shutdown --

    def on_close(self, callback: CloseCallback) -> None:
        """Run *callback* once when the writer end closes.

        Sync and async callbacks are both accepted. Registering after the
        stream closed runs a sync callback immediately; async callbacks
        registered that late are skipped with a warning.
        """
        if not self._writer_closed:
            self._close_callbacks.append(callback)
            return
        if inspect.iscoroutinefunction(callback):
            self._logger.warning("Event stream already closed; async close callback %r skipped", callback)
            return
        try:
            callback()
        except Exception:
            self._logger.exception("Event stream close callback failed")

    async def close(self) -> None:
        """Close the stream, and the connection if it is being sent to the client."""
        if self._disposed:
            return
        try:
            if not self._writer_closed:
                await self._close_writer()
            # Only end connections this stream was actually handed to
            if self.handled and self._connection.handled and not self._connection.closed:
                try:
                    await self._connection.end()
                except Exception:
                    self._logger.exception("Error ending event stream connection")
        finally:
            self._disposed = True

    async def _close_writer(self) -> None:
        self._writer_closed = True
        if self._write_scope is not None:
            self._write_scope.cancel()
        async with self._write_lock:
            try:
                await self._writer.aclose()
            except Exception:
                self._logger.exception("Error closing event stream")
        await self._notify_closed()

    async def _notify_closed(self) -> None:
        callbacks, self._close_callbacks = self._close_callbacks, []
        for callback in callbacks:
            try:
                await invoke(callback)
            except Exception:
                self._logger.exception("Event stream close callback failed")

    # -- Delivery --

    async def send(self) -> None:
        """Send the event stream to the client.

        Resolves only when delivery is over (stream closed or client gone).
        Start it in a task rather than awaiting it before pushing.
        """
        from sseline.server.sender import send_event_stream

        await send_event_stream(self._connection, self)

    def __repr__(self) -> str:
        state = "closed" if self._writer_closed else ("paused" if self._paused else "open")
        return f"<EventStream {state} last_event_id={self._last_event_id!r}>"
