"""Device-to-profile resolution logic."""

from __future__ import annotations

from razerctl.core.errors import UnsupportedDeviceError
from razerctl.core.model import DetectedDevice, DeviceProfile


def resolve_profile(product_id: int, profiles: dict[int, DeviceProfile]) -> DeviceProfile:
    profile = profiles.get(product_id)
    if profile is None:
        raise UnsupportedDeviceError(f"Unsupported device: no profile for product id 0x{product_id:04x}")
    return profile


def profile_for_device(device: DetectedDevice, profiles: dict[int, DeviceProfile]) -> DeviceProfile | None:
    return profiles.get(device.product_id)


def _parse_product_id(hint: str) -> int | None:
    try:
        return int(hint, 16)
    except ValueError:
        return None


def matches_hint(device: DetectedDevice, profile: DeviceProfile | None, hint: str) -> bool:
    """Match a user hint against product id, bus:address, device name or profile."""
    lowered = hint.strip().lower()
    if not lowered:
        return True
    if lowered == device.location or lowered == f"{device.bus}:{device.address}":
        return True
    product_id = _parse_product_id(lowered)
    if product_id is not None and product_id == device.product_id:
        return True
    if lowered in device.name.lower():
        return True
    if profile is not None and (lowered in profile.id.lower() or lowered in profile.name.lower()):
        return True
    return False
