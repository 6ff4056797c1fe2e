"""Per-operation argument layouts and response decoders.

Every builder returns a checksummed ``Message`` for the given transaction
id. Argument offsets are relative to the 80-byte argument buffer.
"""

from __future__ import annotations

from razerctl.core.chroma import (
    REACTIVE_SPEED_MAX,
    REACTIVE_SPEED_MIN,
    BreathingDual,
    BreathingRandom,
    BreathingSingle,
    EffectOff,
    LedId,
    LightingEffect,
    ReactiveEffect,
    SpectrumEffect,
    StaticEffect,
)
from razerctl.core.errors import ProtocolDecodeError, ValidationError
from razerctl.core.message import ARGUMENT_SIZE, Message, build_message, decode_u16, encode_u16
from razerctl.core.model import Dpi, DpiStages, PollingRate, PollingRateKind, VarStore, clamp

STAGE_CHUNK_SIZE = 0x07
STAGE_TABLE_OFFSET = 3

_NORMAL_RATE_TO_BYTE = {1000: 0x01, 500: 0x02, 125: 0x08}
_BYTE_TO_NORMAL_RATE = {code: hz for hz, code in _NORMAL_RATE_TO_BYTE.items()}
_EXTENDED_RATE_TO_FLAG = {
    8000: 0x01,
    4000: 0x02,
    2000: 0x04,
    1000: 0x08,
    500: 0x10,
    250: 0x20,
    125: 0x40,
}


def _arguments() -> bytearray:
    return bytearray(ARGUMENT_SIZE)


def get_battery_level(transaction_id: int) -> Message:
    return build_message(
        transaction_id=transaction_id,
        data_size=0x02,
        command_class=0x07,
        command_id=0x80,
    )


def get_charging_status(transaction_id: int) -> Message:
    return build_message(
        transaction_id=transaction_id,
        data_size=0x02,
        command_class=0x07,
        command_id=0x84,
    )


def get_dpi(transaction_id: int, var_store: VarStore) -> Message:
    args = _arguments()
    args[0] = var_store
    return build_message(
        transaction_id=transaction_id,
        data_size=0x07,
        command_class=0x04,
        command_id=0x85,
        arguments=args,
    )


def set_dpi(transaction_id: int, var_store: VarStore, dpi: Dpi) -> Message:
    dpi = dpi.clamped()
    args = _arguments()
    args[0] = var_store
    args[1:3] = encode_u16(dpi.x)
    args[3:5] = encode_u16(dpi.y)
    # args[5:7] stay zero
    return build_message(
        transaction_id=transaction_id,
        data_size=0x07,
        command_class=0x04,
        command_id=0x05,
        arguments=args,
    )


def get_dpi_stages(transaction_id: int, var_store: VarStore) -> Message:
    args = _arguments()
    args[0] = var_store
    return build_message(
        transaction_id=transaction_id,
        data_size=0x26,
        command_class=0x04,
        command_id=0x86,
        arguments=args,
    )


def set_dpi_stages(transaction_id: int, var_store: VarStore, dpi_stages: DpiStages) -> Message:
    args = _arguments()
    args[0] = var_store
    args[1] = dpi_stages.active
    args[2] = len(dpi_stages.stages)

    # Each stage: index, DPI X (u16), DPI Y (u16), two reserved bytes.
    for index, stage in enumerate(dpi_stages.stages):
        stage = stage.clamped()
        offset = STAGE_TABLE_OFFSET + index * STAGE_CHUNK_SIZE
        args[offset] = index
        args[offset + 1 : offset + 3] = encode_u16(stage.x)
        args[offset + 3 : offset + 5] = encode_u16(stage.y)

    return build_message(
        transaction_id=transaction_id,
        data_size=0x26,
        command_class=0x04,
        command_id=0x06,
        arguments=args,
    )


def get_polling_rate(transaction_id: int) -> Message:
    return build_message(
        transaction_id=transaction_id,
        data_size=0x01,
        command_class=0x00,
        command_id=0x85,
    )


def set_polling_rate(transaction_id: int, polling_rate: PollingRate) -> Message:
    args = _arguments()
    if polling_rate.kind is PollingRateKind.NORMAL:
        args[0] = _NORMAL_RATE_TO_BYTE[polling_rate.hz]
        return build_message(
            transaction_id=transaction_id,
            data_size=0x01,
            command_class=0x00,
            command_id=0x05,
            arguments=args,
        )

    args[0] = 0x00
    args[1] = _EXTENDED_RATE_TO_FLAG[polling_rate.hz]
    return build_message(
        transaction_id=transaction_id,
        data_size=0x02,
        command_class=0x00,
        command_id=0x40,
        arguments=args,
    )


def set_lighting_effect(
    transaction_id: int,
    var_store: VarStore,
    led: LedId,
    effect: LightingEffect,
) -> Message:
    args = _arguments()
    args[0] = var_store
    args[1] = led
    args[2] = effect.code

    if isinstance(effect, (EffectOff, SpectrumEffect, BreathingRandom)):
        data_size = 0x06
    elif isinstance(effect, StaticEffect):
        args[5:9] = bytes((0x01,)) + effect.color.to_bytes()
        data_size = 0x09
    elif isinstance(effect, BreathingSingle):
        args[3:9] = bytes((0x01, 0x00, 0x01)) + effect.color.to_bytes()
        data_size = 0x09
    elif isinstance(effect, BreathingDual):
        args[3:12] = bytes((0x02, 0x00, 0x02)) + effect.first.to_bytes() + effect.second.to_bytes()
        data_size = 0x0C
    elif isinstance(effect, ReactiveEffect):
        speed = clamp(effect.speed, REACTIVE_SPEED_MIN, REACTIVE_SPEED_MAX)
        args[4:9] = bytes((speed, 0x01)) + effect.color.to_bytes()
        data_size = 0x09
    else:
        raise ValidationError(f"Unsupported lighting effect {effect!r}")

    return build_message(
        transaction_id=transaction_id,
        data_size=data_size,
        command_class=0x0F,
        command_id=0x02,
        arguments=args,
    )


def decode_dpi(response: Message) -> Dpi:
    args = response.arguments
    return Dpi(x=decode_u16(args[1:3]), y=decode_u16(args[3:5]))


def decode_dpi_stages(response: Message) -> DpiStages:
    # Response: varstore, active stage (1 indexed), stage count, then per stage
    # index, DPI X, DPI Y, two reserved bytes.
    args = response.arguments
    active = args[1]
    count = args[2]
    stages: list[tuple[int, int]] = []
    for index in range(count):
        offset = STAGE_TABLE_OFFSET + index * STAGE_CHUNK_SIZE
        chunk = args[offset : offset + STAGE_CHUNK_SIZE]
        if len(chunk) < STAGE_CHUNK_SIZE:
            raise ProtocolDecodeError(f"DPI stage count {count} overflows the response")
        stages.append((decode_u16(chunk[1:3]), decode_u16(chunk[3:5])))
    try:
        return DpiStages.from_pairs(active, stages)
    except ValidationError as exc:
        raise ProtocolDecodeError(f"Invalid DPI stage table in response: {exc}") from exc


def decode_polling_rate(response: Message) -> PollingRate:
    code = response.arguments[0]
    hz = _BYTE_TO_NORMAL_RATE.get(code)
    if hz is None:
        raise ProtocolDecodeError(f"Invalid polling rate response 0x{code:02x}")
    return PollingRate.normal(hz)


def decode_battery_level(response: Message) -> float:
    return response.arguments[1] / 255 * 100


def decode_charging_status(response: Message) -> bool:
    return response.arguments[1] > 0
