"""Typed access to FFHARNESS_* environment variables."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRUTHY = frozenset({"true", "1", "yes", "on"})


class EnvReader:
    """Read and convert environment variables.

    An unset variable yields the caller's default. A value that does not
    convert is logged and also yields the default, so a typo in the shell
    never stops the harness from starting.

    Tests pass ``env`` instead of patching ``os.environ``::

        reader = EnvReader(env={"FFHARNESS_JOB_TIMEOUT": "5"})
        reader.get_float("FFHARNESS_JOB_TIMEOUT", 60.0)  # 5.0
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = os.environ if env is None else env

    def _convert(
        self,
        var: str,
        convert: Callable[[str], T],
        kind: str,
        default: T | None,
    ) -> T | None:
        raw = self._env.get(var)
        if raw is None:
            return default
        try:
            return convert(raw)
        except ValueError:
            logger.warning("Invalid %s value for %s: %s", kind, var, raw)
            return default

    def get_str(self, var: str, default: str | None = None) -> str | None:
        return self._env.get(var, default)

    def get_int(self, var: str, default: int | None = None) -> int | None:
        return self._convert(var, int, "integer", default)

    def get_float(self, var: str, default: float | None = None) -> float | None:
        return self._convert(var, float, "float", default)

    def get_bool(self, var: str, default: bool | None = None) -> bool | None:
        """Any of true/1/yes/on (any case) is True, every other value False."""
        return self._convert(var, lambda raw: raw.lower() in _TRUTHY, "bool", default)

    def get_path(
        self, var: str, must_exist: bool = True, default: Path | None = None
    ) -> Path | None:
        """Return the tilde-expanded path in ``var``.

        With ``must_exist`` a path that is not on disk is logged and
        ``default`` returned instead.
        """
        path = self._convert(var, lambda raw: Path(raw).expanduser(), "path", None)
        if path is None:
            return default
        if must_exist and not path.exists():
            logger.warning("%s points to a missing path: %s", var, path)
            return default
        return path
