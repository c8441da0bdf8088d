"""Hand an event stream to the host transport.

Sets the SSE response headers and status, marks the connection and the
stream as handed off, then relays the stream until delivery ends.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sseline.http.protocol import EventStreamHost

if TYPE_CHECKING:
    from sseline.realtime.stream import EventStream

logger = logging.getLogger("sseline.server")

CACHE_CONTROL = "private, no-cache, no-store, no-transform, must-revalidate, max-age=0"


def is_http2_request(connection: EventStreamHost) -> bool:
    """Whether the request arrived over a multiplexed protocol (HTTP/2+).

    ``Connection: keep-alive`` is a connection-specific header that
    HTTP/2 forbids, so it must not be sent there.
    """
    if connection.get_header(":path") is not None and connection.get_header(":method") is not None:
        return True
    return connection.http_version.split(".", 1)[0] in {"2", "3"}


def set_event_stream_headers(connection: EventStreamHost) -> None:
    headers = {
        "Content-Type": "text/event-stream",
        "Cache-Control": CACHE_CONTROL,
        "X-Accel-Buffering": "no",  # prevent nginx from buffering the response
    }
    if not is_http2_request(connection):
        headers["Connection"] = "keep-alive"
    connection.set_headers(headers)


async def send_event_stream(connection: EventStreamHost, stream: EventStream) -> None:
    """Send *stream* to the client over *connection*.

    Returns when the transport finishes delivering: the stream was
    closed or the client disconnected.
    """
    set_event_stream_headers(connection)
    connection.status = 200
    connection.handled = True
    stream.handled = True
    logger.debug("Sending event stream (last_event_id=%r)", stream.last_event_id)
    await connection.send_stream(stream.stream, heartbeat_interval=stream.config.heartbeat_interval)
