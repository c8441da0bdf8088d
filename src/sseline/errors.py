"""sseline exception hierarchy.

Stream failures (broken writes, failed closes) are logged, never raised.
These types cover misuse that should fail loudly at setup time.
"""


class SSELineError(Exception):
    """Base for all sseline-specific errors."""


class ConfigurationError(SSELineError):
    """Raised when stream configuration or endpoint wiring is invalid.

    Typically raised from ``StreamConfig.__post_init__`` or when an
    event stream endpoint receives a non-HTTP ASGI scope.
    """
