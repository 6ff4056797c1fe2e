import pytest

from razerctl.core.device_match import matches_hint, profile_for_device, resolve_profile
from razerctl.core.errors import UnsupportedDeviceError
from razerctl.core.model import DetectedDevice


def test_resolve_profile_by_product_id(profiles) -> None:
    assert resolve_profile(0x007D, profiles).id == "deathadder_v2_pro_wireless"
    assert resolve_profile(0x0091, profiles).transaction_id == 0x1F


def test_unknown_product_id_is_unsupported(profiles) -> None:
    with pytest.raises(UnsupportedDeviceError) as exc:
        resolve_profile(0x1234, profiles)
    assert "0x1234" in str(exc.value)


def test_profile_for_device_returns_none_when_unknown(profiles) -> None:
    device = DetectedDevice(product_id=0x1234, bus=1, address=2, name="Razer Keyboard")
    assert profile_for_device(device, profiles) is None


@pytest.mark.parametrize("hint", ["003:012", "3:12", "0x0091", "91", "viper", "Viper 8KHz", "  VIPER_8KHZ "])
def test_matches_hint(profiles, hint: str) -> None:
    device = DetectedDevice(product_id=0x0091, bus=3, address=12, name="Razer Viper 8KHz")
    assert matches_hint(device, profiles[0x0091], hint)


@pytest.mark.parametrize("hint", ["001:012", "0x007d", "deathadder"])
def test_hint_mismatch(profiles, hint: str) -> None:
    device = DetectedDevice(product_id=0x0091, bus=3, address=12, name="Razer Viper 8KHz")
    assert not matches_hint(device, profiles[0x0091], hint)


def test_profile_name_matches_when_device_name_unknown(profiles) -> None:
    device = DetectedDevice(product_id=0x007D, bus=1, address=2, name="<unknown-device>")
    assert matches_hint(device, profiles[0x007D], "pro_wireless")
    assert not matches_hint(device, None, "pro_wireless")
