"""Core data models used across registry, facade, service, and CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum

from razerctl.core.chroma import LedId
from razerctl.core.errors import ValidationError

DPI_MIN = 100
DPI_MAX = 35000
MAX_DPI_STAGES = 5


def clamp(value: int, low: int, high: int) -> int:
    return min(max(low, value), high)


class VarStore(IntEnum):
    NO_STORE = 0x00
    VAR_STORE = 0x01


@dataclass(frozen=True)
class Dpi:
    x: int
    y: int

    @classmethod
    def uniform(cls, value: int) -> Dpi:
        return cls(x=value, y=value)

    def clamped(self) -> Dpi:
        return Dpi(x=clamp(self.x, DPI_MIN, DPI_MAX), y=clamp(self.y, DPI_MIN, DPI_MAX))

    def __str__(self) -> str:
        return f"{self.x}x{self.y}"


@dataclass(frozen=True)
class DpiStages:
    active: int
    stages: tuple[Dpi, ...]

    def __post_init__(self) -> None:
        if not 1 <= len(self.stages) <= MAX_DPI_STAGES:
            raise ValidationError(
                f"Need 1 <= number of DPI stages <= {MAX_DPI_STAGES}, got {len(self.stages)}"
            )
        if not 1 <= self.active <= len(self.stages):
            raise ValidationError(
                f"Need 1 <= active stage <= {len(self.stages)}, got {self.active}"
            )

    @classmethod
    def from_pairs(cls, active: int, stages: list[tuple[int, int]]) -> DpiStages:
        return cls(active=active, stages=tuple(Dpi(x=x, y=y) for x, y in stages))

    @property
    def active_dpi(self) -> Dpi:
        return self.stages[self.active - 1]


class PollingRateKind(str, Enum):
    NORMAL = "normal"
    EXTENDED = "extended"


NORMAL_POLLING_RATES: tuple[int, ...] = (125, 500, 1000)
EXTENDED_POLLING_RATES: tuple[int, ...] = (125, 250, 500, 1000, 2000, 4000, 8000)

_RATES_BY_KIND = {
    PollingRateKind.NORMAL: NORMAL_POLLING_RATES,
    PollingRateKind.EXTENDED: EXTENDED_POLLING_RATES,
}


@dataclass(frozen=True)
class PollingRate:
    kind: PollingRateKind
    hz: int

    def __post_init__(self) -> None:
        allowed = _RATES_BY_KIND[self.kind]
        if self.hz not in allowed:
            values = ", ".join(str(v) for v in allowed)
            raise ValidationError(
                f"Invalid {self.kind.value} polling rate {self.hz}. Must be one of: {values}"
            )

    @classmethod
    def normal(cls, hz: int) -> PollingRate:
        return cls(kind=PollingRateKind.NORMAL, hz=hz)

    @classmethod
    def extended(cls, hz: int) -> PollingRate:
        return cls(kind=PollingRateKind.EXTENDED, hz=hz)

    def __str__(self) -> str:
        return str(self.hz)


@dataclass(frozen=True)
class OperationSpec:
    name: str
    var_store: VarStore


@dataclass(frozen=True)
class DeviceProfile:
    id: str
    name: str
    product_id: int
    transaction_id: int
    var_store: VarStore
    dpi_range: tuple[int, int]
    polling_rate_kinds: tuple[PollingRateKind, ...]
    led: LedId
    operations: dict[str, OperationSpec] = field(default_factory=dict)

    def supports(self, operation: str) -> bool:
        return operation in self.operations

    def polling_rate_for(self, hz: int) -> PollingRate:
        """Pick the polling-rate kind this device accepts for ``hz``."""
        for kind in self.polling_rate_kinds:
            if hz in _RATES_BY_KIND[kind]:
                return PollingRate(kind=kind, hz=hz)
        accepted = sorted({v for kind in self.polling_rate_kinds for v in _RATES_BY_KIND[kind]})
        values = ", ".join(str(v) for v in accepted)
        raise ValidationError(f"Invalid polling rate {hz}. Must be one of: {values}")


@dataclass(frozen=True)
class DeviceSnapshot:
    dpi: Dpi | None = None
    dpi_range: tuple[int, int] | None = None
    dpi_stages: DpiStages | None = None
    polling_rate: PollingRate | None = None
    battery_level: float | None = None
    charging_status: bool | None = None


@dataclass(frozen=True)
class DeviceSettings:
    dpi: Dpi | None = None
    dpi_stages: DpiStages | None = None
    polling_rate: PollingRate | None = None


@dataclass(frozen=True)
class DetectedDevice:
    product_id: int
    bus: int
    address: int
    name: str

    @property
    def location(self) -> str:
        return f"{self.bus:03d}:{self.address:03d}"


@dataclass(frozen=True)
class ResolvedTarget:
    device: DetectedDevice
    profile: DeviceProfile
