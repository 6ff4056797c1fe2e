"""Runtime configuration for the driver layer."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

from razerctl.core.errors import ValidationError

DEFAULT_SETTLE_DELAY_S = 0.06
DEFAULT_TRANSFER_TIMEOUT_MS = 1000
DEFAULT_INTERFACE_NUMBER = 0

SETTLE_DELAY_ENV = "RAZERCTL_SETTLE_DELAY_MS"
TIMEOUT_ENV = "RAZERCTL_TIMEOUT_MS"


@dataclass(frozen=True)
class DriverConfig:
    # Firmware answers with stale or zeroed reports when queried faster than this.
    settle_delay_s: float = DEFAULT_SETTLE_DELAY_S
    transfer_timeout_ms: int = DEFAULT_TRANSFER_TIMEOUT_MS
    interface_number: int = DEFAULT_INTERFACE_NUMBER

    def with_settle_delay_ms(self, delay_ms: int | None) -> DriverConfig:
        if delay_ms is None:
            return self
        if delay_ms < 0:
            raise ValidationError("Settle delay must not be negative")
        return replace(self, settle_delay_s=delay_ms / 1000)


def _read_int_env(name: str) -> int | None:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ValidationError(f"{name} must be an integer, got '{raw}'") from exc
    if value < 0:
        raise ValidationError(f"{name} must not be negative, got {value}")
    return value


def load_config() -> DriverConfig:
    config = DriverConfig()
    delay_ms = _read_int_env(SETTLE_DELAY_ENV)
    if delay_ms is not None:
        config = replace(config, settle_delay_s=delay_ms / 1000)
    timeout_ms = _read_int_env(TIMEOUT_ENV)
    if timeout_ms is not None:
        config = replace(config, transfer_timeout_ms=timeout_ms)
    return config
