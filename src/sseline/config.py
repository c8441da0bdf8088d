"""Stream configuration.

StreamConfig is a frozen dataclass: immutable after creation,
IDE-autocompletable, no string-key dict lookups.
"""

import math
from dataclasses import dataclass

from sseline.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class StreamConfig:
    """Event stream configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = StreamConfig(autoclose=False, heartbeat_interval=15.0)
    """

    # Close the stream when the client connection closes
    autoclose: bool = True

    # Channel capacity in chunks; inf never blocks a writer
    max_buffer_size: float = math.inf

    # Seconds of idleness before a ": heartbeat" comment (None disables)
    heartbeat_interval: float | None = None

    # Logger used when none is passed to the stream explicitly
    logger_name: str = "sseline.stream"

    def __post_init__(self) -> None:
        if self.max_buffer_size < 0:
            msg = f"max_buffer_size must be >= 0, got {self.max_buffer_size!r}"
            raise ConfigurationError(msg)
        if not math.isinf(self.max_buffer_size) and self.max_buffer_size != int(self.max_buffer_size):
            msg = f"max_buffer_size must be a whole number or inf, got {self.max_buffer_size!r}"
            raise ConfigurationError(msg)
        if self.heartbeat_interval is not None and self.heartbeat_interval <= 0:
            msg = f"heartbeat_interval must be positive, got {self.heartbeat_interval!r}"
            raise ConfigurationError(msg)
        if not self.logger_name:
            raise ConfigurationError("logger_name must not be empty")
