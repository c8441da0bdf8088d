"""Tests for sseline.config: StreamConfig frozen dataclass."""

import math

import pytest

from sseline.config import StreamConfig
from sseline.errors import ConfigurationError, SSELineError


class TestStreamConfig:
    def test_defaults(self) -> None:
        cfg = StreamConfig()

        assert cfg.autoclose is True
        assert cfg.max_buffer_size == math.inf
        assert cfg.heartbeat_interval is None
        assert cfg.logger_name == "sseline.stream"

    def test_override(self) -> None:
        cfg = StreamConfig(autoclose=False, max_buffer_size=16, heartbeat_interval=15.0)

        assert cfg.autoclose is False
        assert cfg.max_buffer_size == 16
        assert cfg.heartbeat_interval == 15.0

    def test_frozen(self) -> None:
        cfg = StreamConfig()

        with pytest.raises(AttributeError):
            cfg.autoclose = False  # type: ignore[misc]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_buffer_size": -1},
            {"max_buffer_size": 2.5},
            {"heartbeat_interval": 0},
            {"heartbeat_interval": -3.0},
            {"logger_name": ""},
        ],
    )
    def test_invalid_values(self, kwargs: dict[str, object]) -> None:
        with pytest.raises(ConfigurationError):
            StreamConfig(**kwargs)  # type: ignore[arg-type]

    def test_configuration_error_is_sseline_error(self) -> None:
        assert issubclass(ConfigurationError, SSELineError)

    def test_zero_buffer_allowed(self) -> None:
        assert StreamConfig(max_buffer_size=0).max_buffer_size == 0
