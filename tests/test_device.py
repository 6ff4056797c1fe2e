from __future__ import annotations

import asyncio

import pytest

from razerctl.core.chroma import Color, LedId, ReactiveEffect, StaticEffect
from razerctl.core.device import OPERATIONS
from razerctl.core.errors import (
    ProtocolDecodeError,
    TransportSendError,
    UnsupportedOperationError,
    ValidationError,
)
from razerctl.core.model import Dpi, DpiStages, PollingRate


def test_set_then_get_dpi(make_device, fake_mouse) -> None:
    device = make_device(0x007D, fake_mouse)

    async def _run() -> Dpi:
        await device.set_dpi(Dpi(800, 800))
        await asyncio.sleep(device.config.settle_delay_s)
        return await device.get_dpi()

    assert asyncio.run(_run()) == Dpi(800, 800)
    set_msg, get_msg = fake_mouse.messages
    assert set_msg.transaction_id == get_msg.transaction_id == 0x3F
    # Live DPI goes to the volatile store on this profile.
    assert set_msg.arguments[0] == 0x00
    assert get_msg.arguments[0] == 0x00


def test_dpi_stages_roundtrip_through_device(make_device, fake_mouse) -> None:
    device = make_device(0x007D, fake_mouse)
    stages = DpiStages.from_pairs(2, [(800, 800), (1800, 1800)])

    async def _run() -> DpiStages:
        await device.set_dpi_stages(stages)
        return await device.get_dpi_stages()

    assert asyncio.run(_run()) == stages
    assert fake_mouse.messages[0].arguments[0] == 0x01


def test_battery_and_charging(make_device, make_mouse) -> None:
    device = make_device(0x007D, make_mouse(battery_raw=0xFF, charging=True))

    async def _run():
        return await device.get_battery_level(), await device.get_charging_status()

    level, charging = asyncio.run(_run())
    assert level == 100.0
    assert charging is True


def test_unsupported_operation_issues_no_io(make_device, fake_mouse) -> None:
    device = make_device(0x0084, fake_mouse)

    with pytest.raises(UnsupportedOperationError):
        asyncio.run(device.get_charging_status())
    with pytest.raises(UnsupportedOperationError):
        asyncio.run(device.get_battery_level())

    assert fake_mouse.sent == []
    assert fake_mouse.reads == 0


def test_extended_rate_on_normal_profile_is_validation_error(make_device, fake_mouse) -> None:
    device = make_device(0x007D, fake_mouse)

    with pytest.raises(ValidationError):
        asyncio.run(device.set_polling_rate(PollingRate.extended(8000)))
    # Same numeric rate but the wrong kind is still rejected.
    with pytest.raises(ValidationError):
        asyncio.run(device.set_polling_rate(PollingRate.extended(1000)))
    assert fake_mouse.sent == []


def test_normal_rate_on_extended_profile_is_validation_error(make_device, fake_mouse) -> None:
    device = make_device(0x0091, fake_mouse)

    with pytest.raises(ValidationError):
        asyncio.run(device.set_polling_rate(PollingRate.normal(1000)))
    asyncio.run(device.set_polling_rate(PollingRate.extended(8000)))

    (message,) = fake_mouse.messages
    assert message.transaction_id == 0x1F
    assert (message.command_class, message.command_id) == (0x00, 0x40)
    assert message.arguments[1] == 0x01


def test_polling_rate_roundtrip(make_device, fake_mouse) -> None:
    device = make_device(0x007D, fake_mouse)

    async def _run() -> PollingRate:
        await device.set_polling_rate(PollingRate.normal(500))
        return await device.get_polling_rate()

    assert asyncio.run(_run()) == PollingRate.normal(500)


def test_garbage_polling_rate_propagates_decode_error(make_device, make_mouse) -> None:
    device = make_device(0x007D, make_mouse(polling_byte=0x00))
    with pytest.raises(ProtocolDecodeError):
        asyncio.run(device.get_polling_rate())


def test_lighting_uses_profile_led_unless_overridden(make_device, fake_mouse) -> None:
    device = make_device(0x007D, fake_mouse)
    red = Color.parse("#ff0000")

    asyncio.run(device.set_lighting_effect(StaticEffect(red)))
    asyncio.run(device.set_lighting_effect(ReactiveEffect(red, 9), led=LedId.SCROLL_WHEEL))

    first, second = fake_mouse.messages
    assert first.arguments[:3] == bytes([0x01, 0x04, 0x01])
    assert second.arguments[:5] == bytes([0x01, 0x01, 0x05, 0x00, 0x04])


def test_supported_operations_follow_profile(make_device, fake_mouse) -> None:
    full = make_device(0x007D, fake_mouse)
    wired = make_device(0x0084, fake_mouse)
    assert full.supported_operations() == OPERATIONS
    assert "get_charging_status" not in wired.supported_operations()
    assert wired.get_dpi_range() == (100, 20000)


def _stall_receive(monkeypatch: pytest.MonkeyPatch, mouse) -> None:
    async def slow_receive(length: int) -> bytes:
        await asyncio.sleep(10)
        return bytes(length)

    monkeypatch.setattr(mouse, "receive", slow_receive)


def _cancel_get_dpi(device) -> None:
    async def _run() -> None:
        task = asyncio.create_task(device.get_dpi())
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(_run())


def test_cancelled_request_drains_transport(make_device, fake_mouse, monkeypatch: pytest.MonkeyPatch) -> None:
    _stall_receive(monkeypatch, fake_mouse)
    device = make_device(0x007D, fake_mouse)

    _cancel_get_dpi(device)

    assert fake_mouse.drained == 1
    assert len(fake_mouse.sent) == 1


def test_failed_drain_keeps_request_cancelled(make_device, fake_mouse, monkeypatch: pytest.MonkeyPatch) -> None:
    _stall_receive(monkeypatch, fake_mouse)
    drains: list[int] = []

    async def broken_drain(length: int) -> None:
        drains.append(length)
        raise TransportSendError("GET_REPORT failed: no device")

    monkeypatch.setattr(fake_mouse, "drain", broken_drain)
    device = make_device(0x007D, fake_mouse)

    _cancel_get_dpi(device)

    assert drains == [90]
