"""ASGI connection handle for event streams.

Wraps one ASGI ``scope``/``receive``/``send`` triple and exposes what an
event stream needs from its host: request header access, response
status and headers, a handed-off flag, close notification, and a
transport call that relays a byte channel to the client.

The connection is borrowed by ``EventStream``, never owned. The stream
may end it, but only after it was handed off for delivery.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream

from sseline._internal.asgi import Receive, Scope, Send
from sseline._internal.invoke import invoke
from sseline.http.headers import Headers, ResponseHeaders

logger = logging.getLogger("sseline.server")

HEARTBEAT = b": heartbeat\n\n"


class Connection:
    """One HTTP request/response pair served over ASGI.

    Usage::

        async def app(scope, receive, send):
            connection = Connection(scope, receive, send)
            stream = create_event_stream(connection)
            ...
    """

    __slots__ = (
        "_close_callbacks",
        "_closed",
        "_disconnected",
        "_ending",
        "_last_send",
        "_notified",
        "_receive",
        "_relay_done",
        "_relay_scope",
        "_send",
        "_send_lock",
        "_started",
        "handled",
        "headers",
        "http_version",
        "response_headers",
        "scope",
        "status",
    )

    def __init__(self, scope: Scope, receive: Receive, send: Send) -> None:
        self.scope = scope
        self.headers = Headers(tuple(scope.get("headers", ())))
        self.http_version: str = scope.get("http_version", "1.1")
        self.status = 200
        self.response_headers = ResponseHeaders()
        # Set once the response has been given to the transport
        self.handled = False
        self._receive = receive
        self._send = send
        self._send_lock = anyio.Lock()
        self._started = False
        self._closed = False
        self._disconnected = False
        self._notified = False
        self._last_send = 0.0
        self._relay_done: anyio.Event | None = None
        self._relay_scope: anyio.CancelScope | None = None
        self._ending = False
        self._close_callbacks: list[Callable[[], Any]] = []

    # -- Request side --

    def get_header(self, name: str) -> str | None:
        """Return the first value of request header *name*, or None."""
        return self.headers.get(name)

    # -- Response side --

    def set_headers(self, headers: Mapping[str, str]) -> None:
        """Set response headers, replacing earlier values of the same name."""
        self.response_headers.update(headers)

    @property
    def closed(self) -> bool:
        """True once the response has ended or the client disconnected."""
        return self._closed

    @property
    def disconnected(self) -> bool:
        """True if the client went away before the response ended."""
        return self._disconnected

    def on_close(self, callback: Callable[[], Any]) -> None:
        """Run *callback* (sync or async) once when the connection closes."""
        self._close_callbacks.append(callback)

    async def end(self) -> None:
        """Finish the response. Safe to call more than once.

        While ``send_stream()`` is relaying, this stops the relay even if
        the channel is still open. Chunks already queued in the channel
        are sent before the final empty body.
        """
        if self._relay_done is not None:
            self._ending = True
            if self._relay_scope is not None:
                self._relay_scope.cancel()
            await self._relay_done.wait()
            return
        await self._finish()

    async def _finish(self) -> None:
        async with self._send_lock:
            if self._closed:
                return
            try:
                if not self._started:
                    await self._start()
                await self._send({"type": "http.response.body", "body": b"", "more_body": False})
            except (OSError, RuntimeError) as exc:
                logger.debug("Event stream end failed: %s", exc)
                self._disconnected = True
            finally:
                self._closed = True
        await self._notify_closed()

    # -- Transport --

    async def send_stream(
        self,
        chunks: MemoryObjectReceiveStream[bytes],
        *,
        heartbeat_interval: float | None = None,
    ) -> None:
        """Relay *chunks* to the client until the channel or connection closes.

        1. Sends ``http.response.start`` with the current status and headers.
        2. Runs concurrently:
           - **Relay**: each chunk becomes an ``http.response.body`` message
             with ``more_body=True``.
           - **Disconnect monitor**: awaits ``http.disconnect`` and cancels
             the relay.
           - **Heartbeat** (optional): writes a ``: heartbeat`` comment after
             *heartbeat_interval* idle seconds.
        3. Ends the response, or just marks it closed after a disconnect.

        Calling ``end()`` meanwhile cancels step 2. Chunks still queued in
        the channel are sent before the response ends.

        Returns only when delivery is over.
        """
        if self._relay_done is not None:
            raise RuntimeError("A connection can relay only one stream")
        relay_done = self._relay_done = anyio.Event()
        try:
            async with chunks:
                async with self._send_lock:
                    if self._closed:
                        return
                    await self._start()
                async with anyio.create_task_group() as tg:
                    self._relay_scope = tg.cancel_scope
                    if self._ending:
                        tg.cancel_scope.cancel()
                    tg.start_soon(self._watch_disconnect, tg.cancel_scope)
                    if heartbeat_interval is not None:
                        tg.start_soon(self._heartbeat, heartbeat_interval)
                    await self._relay(chunks)
                    tg.cancel_scope.cancel()
                self._relay_scope = None

                if self._ending and not self._disconnected:
                    await self._send_queued(chunks)

            if self._disconnected:
                self._closed = True
                await self._notify_closed()
            else:
                await self._finish()
        finally:
            relay_done.set()

    async def _start(self) -> None:
        await self._send(
            {
                "type": "http.response.start",
                "status": self.status,
                "headers": self.response_headers.to_raw(),
            }
        )
        self._started = True
        self._last_send = anyio.current_time()

    async def _relay(self, chunks: MemoryObjectReceiveStream[bytes]) -> None:
        async for chunk in chunks:
            if not chunk:
                continue
            # A chunk taken off the channel is always sent, even when end() cancels
            with anyio.CancelScope(shield=True):
                sent = await self._send_body(chunk)
            if not sent:
                return

    async def _send_queued(self, chunks: MemoryObjectReceiveStream[bytes]) -> None:
        while True:
            try:
                chunk = chunks.receive_nowait()
            except (anyio.WouldBlock, anyio.EndOfStream):
                return
            if chunk and not await self._send_body(chunk):
                return

    async def _send_body(self, body: bytes) -> bool:
        """Send one body chunk. Returns False once the response is unusable."""
        async with self._send_lock:
            if self._closed or self._disconnected:
                return False
            try:
                await self._send({"type": "http.response.body", "body": body, "more_body": True})
            except (OSError, RuntimeError) as exc:
                # Response already closed by the server (client went away)
                logger.debug("Event stream send failed: %s", exc)
                self._disconnected = True
                return False
            self._last_send = anyio.current_time()
            return True

    async def _watch_disconnect(self, scope: anyio.CancelScope) -> None:
        while True:
            message = await self._receive()
            if message.get("type") == "http.disconnect":
                self._disconnected = True
                scope.cancel()
                return

    async def _heartbeat(self, interval: float) -> None:
        while True:
            idle = anyio.current_time() - self._last_send
            if idle < interval:
                await anyio.sleep(interval - idle)
                continue
            if not await self._send_body(HEARTBEAT):
                return

    async def _notify_closed(self) -> None:
        if self._notified:
            return
        self._notified = True
        callbacks, self._close_callbacks = self._close_callbacks, []
        for callback in callbacks:
            try:
                await invoke(callback)
            except Exception:
                logger.exception("Connection close callback failed")
