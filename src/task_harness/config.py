"""Runtime configuration for recovery policies and CLI logging."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
_INFINITE_TOKENS = {"inf", "infinite", "infinity", "forever"}


@dataclass(slots=True)
class PolicySettings:
    """Default budgets for the ready-made recovery policy."""

    max_retries: float = 3
    max_restarts: int = 0
    recover_on_exhaustion: bool = False


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    log_level: str = "WARNING"
    policy: PolicySettings = field(default_factory=PolicySettings)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment with defaults suitable for local runs."""

        return cls(
            log_level=os.getenv("TASK_HARNESS_LOG_LEVEL", "WARNING").strip().upper(),
            policy=PolicySettings(
                max_retries=_env_budget("TASK_HARNESS_MAX_RETRIES", default=3),
                max_restarts=_env_int("TASK_HARNESS_MAX_RESTARTS", default=0),
                recover_on_exhaustion=_env_bool(
                    "TASK_HARNESS_RECOVER_ON_EXHAUSTION",
                    default=False,
                ),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error if budgets or log level are invalid."""

        if self.log_level not in _LOG_LEVELS:
            raise ValueError(
                f"TASK_HARNESS_LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}: "
                f"{self.log_level!r}",
            )
        if math.isnan(self.policy.max_retries) or self.policy.max_retries < 0:
            raise ValueError("TASK_HARNESS_MAX_RETRIES must be >= 0.")
        if self.policy.max_restarts < 0:
            raise ValueError("TASK_HARNESS_MAX_RESTARTS must be >= 0.")


def _env_budget(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in _INFINITE_TOKENS:
        return math.inf
    try:
        return int(normalized)
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {value!r}") from error


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {value!r}") from error


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
