"""Tests for build_logging_config."""

from pathlib import Path

import pytest

from amdconv.config.logging_factory import build_logging_config
from amdconv.config.models import LoggingConfig


class TestBuildLoggingConfig:
    """Tests for build_logging_config function."""

    def test_no_overrides_copies_base(self) -> None:
        base = LoggingConfig(
            level="warning", directory=Path("/logs"), keep=3, color=False
        )
        result = build_logging_config(base)
        assert result == base
        assert result is not base

    def test_overrides_apply(self) -> None:
        base = LoggingConfig()
        result = build_logging_config(base, level="debug", format="json", keep=0)
        assert result.level == "debug"
        assert result.format == "json"
        assert result.keep == 0
        assert result.directory is None

    def test_invalid_override_raises(self) -> None:
        with pytest.raises(ValueError, match="format must be one of"):
            build_logging_config(LoggingConfig(), format="xml")
