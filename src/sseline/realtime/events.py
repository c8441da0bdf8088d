"""EventStreamMessage and the SSE wire formatter.

Pure functions, no I/O. The stream controller formats every payload
through here before it touches the channel.
"""

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class EventStreamMessage:
    """A single Server-Sent Event.

    ``data`` must already be serialized (e.g. ``json.dumps``) and must not
    contain newlines: it is written as exactly one ``data:`` line.
    """

    data: str
    id: str | None = None
    event: str | None = None
    retry: int | None = None

    def encode(self) -> str:
        """Serialize to SSE wire format."""
        return format_event_stream_message(self)


def _integral_retry(retry: object) -> int | None:
    """Return *retry* as an int if it is an integral number, else None."""
    if isinstance(retry, bool):
        return None
    if isinstance(retry, int):
        return retry
    if isinstance(retry, float) and retry.is_integer():
        return int(retry)
    return None


def format_event_stream_message(message: EventStreamMessage) -> str:
    """Format one message as an SSE event record.

    Fields appear in a fixed order (``id``, ``event``, ``retry``, ``data``)
    and the record ends with a blank line. Empty or missing optional
    fields are left out, as is a non-integral ``retry``.
    """
    result = ""
    if message.id:
        result += f"id: {message.id}\n"
    if message.event:
        result += f"event: {message.event}\n"
    retry = _integral_retry(message.retry)
    if retry is not None:
        result += f"retry: {retry}\n"
    result += f"data: {message.data}\n\n"
    return result


def format_event_stream_messages(messages: Iterable[EventStreamMessage]) -> str:
    """Format several messages back to back, in order."""
    return "".join(format_event_stream_message(message) for message in messages)
