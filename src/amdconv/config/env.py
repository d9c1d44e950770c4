"""Typed reads of ``AMDCONV_*`` environment variables.

Empty or whitespace-only values count as unset. Tests pass their own
mapping instead of patching os.environ.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})


class EnvReader:
    """Read configuration overrides from the environment.

    Every getter returns ``default`` when the variable is unset.
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = os.environ if env is None else env

    def _raw(self, var: str) -> str | None:
        value = self._env.get(var, "").strip()
        return value or None

    def get_str(self, var: str, default: str | None = None) -> str | None:
        return self._raw(var) or default

    def get_int(self, var: str, default: int | None = None) -> int | None:
        """Integer value; a malformed one is logged and ignored."""
        value = self._raw(var)
        if value is None:
            return default
        if value.lstrip("+-").isdigit():
            return int(value)
        logger.warning("Invalid integer value for %s: %s", var, value)
        return default

    def get_bool(self, var: str, default: bool | None = None) -> bool | None:
        """Any value outside true/1/yes/on reads as False."""
        value = self._raw(var)
        if value is None:
            return default
        return value.lower() in _TRUE_VALUES

    def get_path(
        self, var: str, must_exist: bool = True, default: Path | None = None
    ) -> Path | None:
        """Path value with ``~`` expanded.

        Tool paths must exist; directories amdconv creates itself are read
        with ``must_exist=False``.
        """
        value = self._raw(var)
        if value is None:
            return default
        path = Path(value).expanduser()
        if must_exist and not path.exists():
            logger.warning("%s points to non-existent path: %s", var, value)
            return default
        return path
