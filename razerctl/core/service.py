"""Service layer used by CLI and future UI frontends."""

from __future__ import annotations

import logging
from collections.abc import Callable

import usb.core
import usb.util

from razerctl.core.config import DriverConfig, load_config
from razerctl.core.device import RazerDevice
from razerctl.core.device_match import matches_hint, profile_for_device, resolve_profile
from razerctl.core.errors import DeviceDiscoveryError, DeviceSelectionError, UnsupportedDeviceError
from razerctl.core.model import DetectedDevice, DeviceProfile, ResolvedTarget
from razerctl.core.profile_loader import load_profiles
from razerctl.transports.base import Transport
from razerctl.transports.usb_hid import USBHIDTransport

RAZER_USB_VENDOR_ID = 0x1532
LOGGER = logging.getLogger(__name__)

TransportFactory = Callable[[DetectedDevice, DriverConfig], Transport]


class RazerService:
    def __init__(
        self,
        *,
        config: DriverConfig | None = None,
        transport_factory: TransportFactory | None = None,
    ) -> None:
        loaded = load_profiles()
        self.profiles = loaded.profiles
        self.load_warnings = loaded.warnings
        self.config = config or load_config()
        self._transport_factory = transport_factory or _open_usb_transport

    def list_profiles(self) -> list[DeviceProfile]:
        return sorted(self.profiles.values(), key=lambda p: p.id)

    def list_devices(self) -> list[DetectedDevice]:
        return _discover_devices()

    def resolve_target(self, device_hint: str | None = None) -> ResolvedTarget:
        devices = self.list_devices()

        if not devices:
            raise DeviceSelectionError(
                f"No USB devices with vendor id 0x{RAZER_USB_VENDOR_ID:04x} found. Ensure your mouse is connected."
            )

        if device_hint:
            devices = [
                d for d in devices if matches_hint(d, profile_for_device(d, self.profiles), device_hint)
            ]
            if not devices:
                raise DeviceSelectionError(f"No device found matching '{device_hint}'")

        candidates: list[ResolvedTarget] = []
        for device in devices:
            profile = profile_for_device(device, self.profiles)
            if profile is None:
                LOGGER.debug("Skipping %s (0x%04x): no profile", device.name, device.product_id)
                continue
            candidates.append(ResolvedTarget(device=device, profile=profile))

        if not candidates:
            ids = ", ".join(f"0x{d.product_id:04x} ({d.name})" for d in devices)
            raise UnsupportedDeviceError(f"Unsupported device(s): {ids}. Add a profile to support them.")

        if len(candidates) > 1:
            candidate_desc = ", ".join(
                f"{c.device.location} ({c.profile.name})" for c in candidates
            )
            raise DeviceSelectionError(
                f"Multiple candidate devices found: {candidate_desc}. Use --device to choose one."
            )

        return candidates[0]

    def claim(self, device: DetectedDevice) -> RazerDevice:
        """Resolve the profile, then claim the interface. Unknown ids never reach USB."""
        profile = resolve_profile(device.product_id, self.profiles)
        transport = self._transport_factory(device, self.config)
        LOGGER.debug("Claimed %s at %s via %s", profile.name, device.location, profile.id)
        return RazerDevice(profile, transport, config=self.config)

    def open_device(self, device_hint: str | None = None) -> RazerDevice:
        target = self.resolve_target(device_hint)
        return self.claim(target.device)


def _device_name(dev: usb.core.Device) -> str:
    try:
        name = usb.util.get_string(dev, dev.iProduct) if dev.iProduct else None
    except (usb.core.USBError, ValueError, NotImplementedError):
        name = None
    return name or "<unknown-device>"


def _discover_devices() -> list[DetectedDevice]:
    try:
        found = usb.core.find(find_all=True, idVendor=RAZER_USB_VENDOR_ID)
        raw_devices = list(found) if found is not None else []
    except usb.core.NoBackendError as exc:
        raise DeviceDiscoveryError(
            "USB discovery failed: no libusb backend available. Install libusb-1.0 and retry."
        ) from exc
    except usb.core.USBError as exc:
        raise DeviceDiscoveryError(f"USB discovery failed: {exc}") from exc

    return [
        DetectedDevice(
            product_id=dev.idProduct,
            bus=dev.bus,
            address=dev.address,
            name=_device_name(dev),
        )
        for dev in raw_devices
    ]


def _open_usb_transport(device: DetectedDevice, config: DriverConfig) -> USBHIDTransport:
    usb_device = usb.core.find(
        idVendor=RAZER_USB_VENDOR_ID,
        idProduct=device.product_id,
        custom_match=lambda d: d.bus == device.bus and d.address == device.address,
    )
    if usb_device is None:
        raise DeviceSelectionError(f"Device at {device.location} disappeared before it could be claimed")
    transport = USBHIDTransport(
        usb_device,
        interface_number=config.interface_number,
        timeout_ms=config.transfer_timeout_ms,
    )
    transport.open()
    return transport
