from __future__ import annotations

from collections.abc import Callable

import pytest

from razerctl.core.config import DriverConfig
from razerctl.core.device import RazerDevice
from razerctl.core.device_match import resolve_profile
from razerctl.core.message import Message, build_message, decode_message, decode_u16, encode_u16
from razerctl.core.model import DeviceProfile
from razerctl.core.profile_loader import load_profiles

FAST_CONFIG = DriverConfig(settle_delay_s=0)

_RATE_BYTES = {0x01, 0x02, 0x08}


class FakeMouse:
    """In-memory device that answers the feature-report protocol."""

    def __init__(
        self,
        *,
        dpi: tuple[int, int] = (1600, 1600),
        battery_raw: int = 0xFF,
        charging: bool = False,
        polling_byte: int = 0x01,
    ) -> None:
        self.dpi = dpi
        self.stages_active = 1
        self.stages: list[tuple[int, int]] = [(800, 800)]
        self.battery_raw = battery_raw
        self.charging = charging
        self.polling_byte = polling_byte
        self.sent: list[bytes] = []
        self.reads = 0
        self.drained = 0
        self.closed = False
        self._pending: bytes | None = None

    @property
    def messages(self) -> list[Message]:
        return [decode_message(p) for p in self.sent]

    async def send(self, payload: bytes) -> None:
        self.sent.append(payload)
        self._pending = self._handle(decode_message(payload)).encode()

    async def receive(self, length: int) -> bytes:
        self.reads += 1
        assert self._pending is not None, "receive without a request"
        data, self._pending = self._pending, None
        return data[:length]

    async def drain(self, length: int) -> None:
        self.drained += 1
        self._pending = None

    def close(self) -> None:
        self.closed = True

    def _handle(self, request: Message) -> Message:
        args = bytearray(request.arguments)
        key = (request.command_class, request.command_id)
        if key == (0x04, 0x05):
            self.dpi = (decode_u16(args[1:3]), decode_u16(args[3:5]))
        elif key == (0x04, 0x85):
            args[1:3] = encode_u16(self.dpi[0])
            args[3:5] = encode_u16(self.dpi[1])
        elif key == (0x04, 0x06):
            self.stages_active = args[1]
            self.stages = [
                (decode_u16(args[3 + i * 7 + 1 : 3 + i * 7 + 3]), decode_u16(args[3 + i * 7 + 3 : 3 + i * 7 + 5]))
                for i in range(args[2])
            ]
        elif key == (0x04, 0x86):
            args[1] = self.stages_active
            args[2] = len(self.stages)
            for i, (x, y) in enumerate(self.stages):
                offset = 3 + i * 7
                args[offset] = i + 1
                args[offset + 1 : offset + 3] = encode_u16(x)
                args[offset + 3 : offset + 5] = encode_u16(y)
        elif key == (0x00, 0x05):
            assert args[0] in _RATE_BYTES
            self.polling_byte = args[0]
        elif key == (0x00, 0x85):
            args[0] = self.polling_byte
        elif key == (0x07, 0x80):
            args[1] = self.battery_raw
        elif key == (0x07, 0x84):
            args[1] = 0x01 if self.charging else 0x00

        return build_message(
            transaction_id=request.transaction_id,
            data_size=request.data_size,
            command_class=request.command_class,
            command_id=request.command_id,
            arguments=bytes(args),
        )


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("RAZERCTL_SETTLE_DELAY_MS", raising=False)
    monkeypatch.delenv("RAZERCTL_TIMEOUT_MS", raising=False)


@pytest.fixture
def profiles() -> dict[int, DeviceProfile]:
    return load_profiles().profiles


@pytest.fixture
def fast_config() -> DriverConfig:
    return FAST_CONFIG


@pytest.fixture
def make_mouse() -> Callable[..., FakeMouse]:
    """Build a ``FakeMouse`` with non-default state."""
    return FakeMouse


@pytest.fixture
def fake_mouse() -> FakeMouse:
    return FakeMouse()


@pytest.fixture
def make_device(profiles: dict[int, DeviceProfile]) -> Callable[..., RazerDevice]:
    """Wrap a transport in the facade for the profile of ``product_id``."""

    def _make(product_id: int, transport: FakeMouse, config: DriverConfig = FAST_CONFIG) -> RazerDevice:
        return RazerDevice(resolve_profile(product_id, profiles), transport, config=config)

    return _make
