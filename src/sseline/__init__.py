"""sseline: Server-Sent Events streams over ASGI.

Formats events to the SSE wire grammar and manages one stream per
client connection: push, pause/resume buffering, flush, and a close
that is coordinated with the HTTP connection.

Basic usage::

    from sseline import EventStreamMessage, event_stream_endpoint

    async def updates(stream):
        if stream.last_event_id:
            ...  # resume after the client's last seen event
        await stream.push(EventStreamMessage(id="1", event="update", data="ok"))

    app = event_stream_endpoint(updates)

Lower level, inside any ASGI app::

    connection = Connection(scope, receive, send)
    stream = create_event_stream(connection)
    async with anyio.create_task_group() as tg:
        tg.start_soon(stream.send)
        await stream.push("hello")
        await stream.close()
"""

__version__ = "0.1.0"
__all__ = [
    "ConfigurationError",
    "Connection",
    "EventStream",
    "EventStreamMessage",
    "SSELineError",
    "StreamConfig",
    "create_event_stream",
    "event_stream_endpoint",
    "format_event_stream_message",
    "format_event_stream_messages",
    "is_event_stream",
    "send_event_stream",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import sseline`` fast while providing a clean top-level API.
    """
    if name == "StreamConfig":
        from sseline.config import StreamConfig

        return StreamConfig

    if name == "Connection":
        from sseline.http.connection import Connection

        return Connection

    if name in ("EventStreamMessage", "format_event_stream_message", "format_event_stream_messages"):
        from sseline.realtime import events as _events

        return getattr(_events, name)

    if name in ("EventStream", "create_event_stream", "is_event_stream"):
        from sseline.realtime import stream as _stream

        return getattr(_stream, name)

    if name == "event_stream_endpoint":
        from sseline.realtime.endpoint import event_stream_endpoint

        return event_stream_endpoint

    if name == "send_event_stream":
        from sseline.server.sender import send_event_stream

        return send_event_stream

    if name in ("ConfigurationError", "SSELineError"):
        from sseline import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
