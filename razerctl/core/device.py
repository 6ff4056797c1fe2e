"""Capability-checked feature surface for one claimed device."""

from __future__ import annotations

import asyncio
import logging

from razerctl.core import commands
from razerctl.core.chroma import LedId, LightingEffect
from razerctl.core.config import DriverConfig
from razerctl.core.errors import RazerctlError, UnsupportedOperationError, ValidationError
from razerctl.core.message import REPORT_SIZE, Message, decode_message
from razerctl.core.model import DeviceProfile, Dpi, DpiStages, OperationSpec, PollingRate
from razerctl.transports.base import Transport

OPERATIONS: tuple[str, ...] = (
    "get_dpi",
    "set_dpi",
    "get_dpi_stages",
    "set_dpi_stages",
    "get_polling_rate",
    "set_polling_rate",
    "get_battery_level",
    "get_charging_status",
    "set_lighting_effect",
)

LOGGER = logging.getLogger(__name__)


class RazerDevice:
    """Uniform get/set surface over a resolved ``DeviceProfile``.

    Every I/O operation is looked up in the profile first; operations the
    profile does not declare raise ``UnsupportedOperationError`` without
    touching the transport. Requests on one device never overlap.
    """

    def __init__(
        self,
        profile: DeviceProfile,
        transport: Transport,
        *,
        config: DriverConfig | None = None,
    ) -> None:
        self.profile = profile
        self.config = config or DriverConfig()
        self._transport = transport
        self._lock = asyncio.Lock()

    def supported_operations(self) -> tuple[str, ...]:
        return tuple(op for op in OPERATIONS if self.profile.supports(op))

    def close(self) -> None:
        self._transport.close()

    def _operation(self, name: str) -> OperationSpec:
        spec = self.profile.operations.get(name)
        if spec is None:
            raise UnsupportedOperationError(
                f"'{self.profile.name}' does not support {name.replace('_', ' ')}"
            )
        return spec

    async def _send(self, request: Message) -> None:
        async with self._lock:
            await self._transport.send(request.encode())

    async def _request(self, request: Message) -> Message:
        async with self._lock:
            await self._transport.send(request.encode())
            try:
                await asyncio.sleep(self.config.settle_delay_s)
                data = await self._transport.receive(REPORT_SIZE)
            except asyncio.CancelledError:
                LOGGER.debug("Request 0x%02x/0x%02x abandoned; draining", request.command_class, request.command_id)
                try:
                    await asyncio.shield(self._transport.drain(REPORT_SIZE))
                except RazerctlError as exc:
                    LOGGER.debug("Drain after abandoned request failed: %s", exc)
                raise
        return decode_message(data)

    async def get_dpi(self) -> Dpi:
        spec = self._operation("get_dpi")
        response = await self._request(commands.get_dpi(self.profile.transaction_id, spec.var_store))
        return commands.decode_dpi(response)

    async def set_dpi(self, dpi: Dpi) -> None:
        spec = self._operation("set_dpi")
        await self._send(commands.set_dpi(self.profile.transaction_id, spec.var_store, dpi))

    def get_dpi_range(self) -> tuple[int, int]:
        return self.profile.dpi_range

    async def get_dpi_stages(self) -> DpiStages:
        spec = self._operation("get_dpi_stages")
        response = await self._request(
            commands.get_dpi_stages(self.profile.transaction_id, spec.var_store)
        )
        return commands.decode_dpi_stages(response)

    async def set_dpi_stages(self, dpi_stages: DpiStages) -> None:
        spec = self._operation("set_dpi_stages")
        await self._send(
            commands.set_dpi_stages(self.profile.transaction_id, spec.var_store, dpi_stages)
        )

    async def get_polling_rate(self) -> PollingRate:
        self._operation("get_polling_rate")
        response = await self._request(commands.get_polling_rate(self.profile.transaction_id))
        return commands.decode_polling_rate(response)

    async def set_polling_rate(self, polling_rate: PollingRate) -> None:
        self._operation("set_polling_rate")
        if polling_rate.kind not in self.profile.polling_rate_kinds:
            accepted = ", ".join(kind.value for kind in self.profile.polling_rate_kinds)
            raise ValidationError(
                f"'{self.profile.name}' accepts {accepted} polling rates, "
                f"not {polling_rate.kind.value}"
            )
        await self._send(commands.set_polling_rate(self.profile.transaction_id, polling_rate))

    async def get_battery_level(self) -> float:
        self._operation("get_battery_level")
        response = await self._request(commands.get_battery_level(self.profile.transaction_id))
        return commands.decode_battery_level(response)

    async def get_charging_status(self) -> bool:
        self._operation("get_charging_status")
        response = await self._request(commands.get_charging_status(self.profile.transaction_id))
        return commands.decode_charging_status(response)

    async def set_lighting_effect(self, effect: LightingEffect, *, led: LedId | None = None) -> None:
        spec = self._operation("set_lighting_effect")
        await self._send(
            commands.set_lighting_effect(
                self.profile.transaction_id,
                spec.var_store,
                self.profile.led if led is None else led,
                effect,
            )
        )
