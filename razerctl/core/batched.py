"""Snapshot reads and bulk writes composed from single operations."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

from razerctl.core.device import RazerDevice
from razerctl.core.errors import RazerctlError
from razerctl.core.model import DeviceSettings, DeviceSnapshot

LOGGER = logging.getLogger(__name__)
T = TypeVar("T")


async def _field(label: str, coro: Awaitable[T]) -> T | None:
    try:
        return await coro
    except RazerctlError as exc:
        LOGGER.debug("Snapshot field '%s' unavailable: %s", label, exc)
        return None


async def get_snapshot(device: RazerDevice, settle_delay_s: float | None = None) -> DeviceSnapshot:
    """Read every field the device offers; failed or unsupported fields stay ``None``."""
    delay = device.config.settle_delay_s if settle_delay_s is None else settle_delay_s
    # Back-to-back batches otherwise read garbage (e.g. a DPI of 0).
    await asyncio.sleep(delay)

    dpi = await _field("dpi", device.get_dpi())
    dpi_range = device.get_dpi_range()
    dpi_stages = await _field("dpi_stages", device.get_dpi_stages())
    polling_rate = await _field("polling_rate", device.get_polling_rate())
    battery_level = await _field("battery_level", device.get_battery_level())
    charging_status = await _field("charging_status", device.get_charging_status())

    return DeviceSnapshot(
        dpi=dpi,
        dpi_range=dpi_range,
        dpi_stages=dpi_stages,
        polling_rate=polling_rate,
        battery_level=battery_level,
        charging_status=charging_status,
    )


async def apply_changes(
    device: RazerDevice,
    settings: DeviceSettings,
    settle_delay_s: float | None = None,
) -> None:
    """Write the set fields in order: dpi, dpi stages, polling rate.

    The first failure propagates. Writes that already went out are not
    rolled back.
    """
    delay = device.config.settle_delay_s if settle_delay_s is None else settle_delay_s
    await asyncio.sleep(delay)

    if settings.dpi is not None:
        await device.set_dpi(settings.dpi)
    if settings.dpi_stages is not None:
        await device.set_dpi_stages(settings.dpi_stages)
    if settings.polling_rate is not None:
        await device.set_polling_rate(settings.polling_rate)
