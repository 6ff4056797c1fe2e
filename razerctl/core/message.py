"""Fixed-size feature report used by every command.

Layout (offsets in bytes)::

    0      status
    1      transaction id
    2..3   remaining packets (big endian)
    4      protocol type
    5      data size
    6      command class
    7      command id
    8..87  arguments (80 bytes, zero padded)
    88     crc
    89     reserved
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, replace

from razerctl.core.errors import ProtocolDecodeError

REPORT_SIZE = 90
ARGUMENT_SIZE = 80
CRC_OFFSET = 88
# The checksum skips status/transaction id at the front and crc/reserved at the end.
CRC_RANGE = (2, REPORT_SIZE - 2)

_LAYOUT = struct.Struct(">BBHBBBB80sBB")
LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Message:
    status: int
    transaction_id: int
    remaining_packets: int
    protocol_type: int
    data_size: int
    command_class: int
    command_id: int
    arguments: bytes
    crc: int
    reserved: int

    def encode(self) -> bytes:
        return _LAYOUT.pack(
            self.status,
            self.transaction_id,
            self.remaining_packets,
            self.protocol_type,
            self.data_size,
            self.command_class,
            self.command_id,
            self.arguments,
            self.crc,
            self.reserved,
        )

    def checksum_ok(self) -> bool:
        return calculate_crc(self.encode()) == self.crc


def calculate_crc(report: bytes) -> int:
    crc = 0
    start, end = CRC_RANGE
    for byte in report[start:end]:
        crc ^= byte
    return crc


def build_message(
    *,
    transaction_id: int,
    data_size: int,
    command_class: int,
    command_id: int,
    arguments: bytes | bytearray = b"",
) -> Message:
    if len(arguments) > ARGUMENT_SIZE:
        raise ValueError(f"Arguments exceed {ARGUMENT_SIZE} bytes ({len(arguments)})")
    padded = bytes(arguments).ljust(ARGUMENT_SIZE, b"\x00")
    unsigned = Message(
        status=0x00,
        transaction_id=transaction_id,
        remaining_packets=0x0000,
        protocol_type=0x00,
        data_size=data_size,
        command_class=command_class,
        command_id=command_id,
        arguments=padded,
        crc=0x00,
        reserved=0x00,
    )
    return replace(unsigned, crc=calculate_crc(unsigned.encode()))


def decode_message(data: bytes | bytearray) -> Message:
    if len(data) != REPORT_SIZE:
        raise ProtocolDecodeError(
            f"Invalid size of byte response: expected {REPORT_SIZE}, got {len(data)}"
        )
    fields = _LAYOUT.unpack(bytes(data))
    message = Message(*fields)
    if not message.checksum_ok():
        LOGGER.debug(
            "Response checksum mismatch (got 0x%02x, computed 0x%02x); not enforced",
            message.crc,
            calculate_crc(bytes(data)),
        )
    return message


def encode_u16(value: int) -> bytes:
    """Big endian."""
    return bytes(((value >> 8) & 0xFF, value & 0xFF))


def decode_u16(data: bytes | bytearray) -> int:
    """Big endian."""
    return (data[0] << 8) | (data[1] & 0xFF)
