"""Test utilities for event stream endpoints.

Provides an ASGI test client, an SSE frame parser, and header
assertions::

    from sseline.testing import TestClient, assert_event_stream_headers
"""

from sseline.testing.assertions import assert_event_data, assert_event_stream_headers
from sseline.testing.client import TestClient
from sseline.testing.sse import SSETestResult, parse_sse_frames

__all__ = [
    "SSETestResult",
    "TestClient",
    "assert_event_data",
    "assert_event_stream_headers",
    "parse_sse_frames",
]
