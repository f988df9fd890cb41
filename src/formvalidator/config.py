"""Engine configuration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean (1/0, true/false, yes/no, on/off), got '{raw}'")


@dataclass
class EngineConfig:
    """Validation engine options.

    Attributes:
        first_fields: Stop at the first failing rule of each field
        guard_stale_results: Drop a field result when a newer validation of the
            same field started after it (per-field sequence guard)
        log_level: Level name used when the CLI configures logging
    """

    first_fields: bool = True
    guard_stale_results: bool = True
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Create config from environment variables.

        Variables:
        1. FORMVALIDATOR_FIRST_FIELDS (default: true)
        2. FORMVALIDATOR_GUARD_STALE (default: true)
        3. FORMVALIDATOR_LOG_LEVEL (default: WARNING)
        """
        return cls(
            first_fields=_env_flag("FORMVALIDATOR_FIRST_FIELDS", True),
            guard_stale_results=_env_flag("FORMVALIDATOR_GUARD_STALE", True),
            log_level=os.environ.get("FORMVALIDATOR_LOG_LEVEL", "WARNING").upper(),
        )

    @property
    def log_level_number(self) -> int:
        level = logging.getLevelName(self.log_level)
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {self.log_level}")
        return level
