"""Stable public API for building tooling on top of razerctl.

This module is the supported integration surface for third-party callers
(GUI front ends, tray indicators, scripts). Avoid importing from
private/internal modules unless intentionally depending on non-stable
internals.
"""

from __future__ import annotations

from razerctl.core.batched import apply_changes, get_snapshot
from razerctl.core.chroma import (
    BreathingDual,
    BreathingRandom,
    BreathingSingle,
    Color,
    EffectOff,
    LedId,
    LightingEffect,
    ReactiveEffect,
    SpectrumEffect,
    StaticEffect,
)
from razerctl.core.config import DriverConfig, load_config
from razerctl.core.device import RazerDevice
from razerctl.core.errors import (
    DeviceDiscoveryError,
    DeviceSelectionError,
    ProfileLoadError,
    ProfileValidationError,
    ProtocolDecodeError,
    RazerctlError,
    TransportConnectError,
    TransportError,
    TransportSendError,
    TransportTimeoutError,
    UnsupportedDeviceError,
    UnsupportedOperationError,
    ValidationError,
)
from razerctl.core.model import (
    DetectedDevice,
    DeviceProfile,
    DeviceSettings,
    DeviceSnapshot,
    Dpi,
    DpiStages,
    PollingRate,
    PollingRateKind,
    ResolvedTarget,
)
from razerctl.core.service import RazerService, TransportFactory

__all__ = [
    "RazerctlError",
    "ValidationError",
    "UnsupportedDeviceError",
    "UnsupportedOperationError",
    "ProtocolDecodeError",
    "DeviceDiscoveryError",
    "DeviceSelectionError",
    "ProfileLoadError",
    "ProfileValidationError",
    "TransportError",
    "TransportConnectError",
    "TransportSendError",
    "TransportTimeoutError",
    "Color",
    "LedId",
    "LightingEffect",
    "EffectOff",
    "StaticEffect",
    "BreathingRandom",
    "BreathingSingle",
    "BreathingDual",
    "SpectrumEffect",
    "ReactiveEffect",
    "DetectedDevice",
    "DeviceProfile",
    "DeviceSettings",
    "DeviceSnapshot",
    "Dpi",
    "DpiStages",
    "PollingRate",
    "PollingRateKind",
    "ResolvedTarget",
    "DriverConfig",
    "RazerDevice",
    "Client",
]


class Client:
    """Public client for interacting with razerctl core capabilities.

    A `Client` instance wraps profile loading, USB discovery/claiming, and
    the batched snapshot/apply helpers behind a stable API.
    """

    def __init__(
        self,
        *,
        config: DriverConfig | None = None,
        transport_factory: TransportFactory | None = None,
    ) -> None:
        self._service = RazerService(
            config=config or load_config(),
            transport_factory=transport_factory,
        )

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._service.load_warnings

    def list_profiles(self) -> list[DeviceProfile]:
        return self._service.list_profiles()

    def list_devices(self) -> list[DetectedDevice]:
        return self._service.list_devices()

    def resolve_target(self, *, device_hint: str | None = None) -> ResolvedTarget:
        return self._service.resolve_target(device_hint)

    def open_device(self, *, device_hint: str | None = None) -> RazerDevice:
        """Claim the matching device. Call ``close()`` on the result when done."""
        return self._service.open_device(device_hint)

    async def get_snapshot(self, device: RazerDevice) -> DeviceSnapshot:
        return await get_snapshot(device)

    async def apply_changes(self, device: RazerDevice, settings: DeviceSettings) -> None:
        await apply_changes(device, settings)
