"""Shared pytest configuration for sseline tests.

Provides an in-memory host connection that satisfies the
``EventStreamHost`` protocol without any ASGI server, plus helpers to
read what an ``EventStream`` wrote to its channel.
"""

from collections.abc import Callable, Mapping
from typing import Any

import anyio
import pytest
from anyio.streams.memory import MemoryObjectReceiveStream

from sseline._internal.invoke import invoke
from sseline.realtime.stream import EventStream


class FakeConnection:
    """Records everything an event stream does to its host."""

    def __init__(self, headers: Mapping[str, str] | None = None, http_version: str = "1.1") -> None:
        self.request_headers = {k.lower(): v for k, v in (headers or {}).items()}
        self.response_headers: dict[str, str] = {}
        self.http_version = http_version
        self.status = 0
        self.handled = False
        self.closed = False
        self.end_calls = 0
        self.close_callbacks: list[Callable[[], Any]] = []
        self.delivered: list[bytes] = []

    def get_header(self, name: str) -> str | None:
        return self.request_headers.get(name.lower())

    def set_headers(self, headers: Mapping[str, str]) -> None:
        self.response_headers.update(headers)

    def on_close(self, callback: Callable[[], Any]) -> None:
        self.close_callbacks.append(callback)

    async def end(self) -> None:
        self.end_calls += 1
        self.closed = True

    async def send_stream(
        self,
        chunks: MemoryObjectReceiveStream[bytes],
        *,
        heartbeat_interval: float | None = None,
    ) -> None:
        async for chunk in chunks:
            self.delivered.append(chunk)

    async def fire_close(self) -> None:
        """Simulate the client connection closing."""
        self.closed = True
        for callback in self.close_callbacks:
            await invoke(callback)


def drain(stream: EventStream) -> list[bytes]:
    """Return every chunk currently buffered in the stream's channel."""
    chunks: list[bytes] = []
    while True:
        try:
            chunks.append(stream.stream.receive_nowait())
        except (anyio.WouldBlock, anyio.EndOfStream):
            return chunks


async def settle() -> None:
    """Let freshly started tasks run up to their first real wait."""
    for _ in range(10):
        await anyio.sleep(0)


@pytest.fixture
def connection() -> FakeConnection:
    return FakeConnection()
