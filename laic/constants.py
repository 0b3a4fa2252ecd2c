"""Protocol constants, type codes and header flag definitions."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import ClassVar

from laic.errors import InvalidPayloadFormatError, InvalidQosError

MAGIC = 0x4C41_4943
"""Header magic number, "LAIC" in ASCII."""

VERSION = 0x0001
"""Protocol version, encoded as ``major << 8 | minor``."""

HEADER_SIZE = 40
"""Fixed header size in bytes."""


class PayloadFormat(enum.IntEnum):
    """Payload serialisation format."""

    ARROW = 0
    PROTOBUF = 1
    RAW = 2

    @classmethod
    def parse(cls, value: int) -> PayloadFormat:
        """Return the format for a raw byte, or raise for unknown values."""
        try:
            return cls(value)
        except ValueError:
            raise InvalidPayloadFormatError(int(value)) from None


class Qos(enum.IntEnum):
    """Quality-of-service priority level."""

    NORMAL = 0
    HIGH = 1
    EMERGENCY = 2

    @classmethod
    def parse(cls, value: int) -> Qos:
        """Return the level for a raw byte, or raise for unknown values."""
        try:
            return cls(value)
        except ValueError:
            raise InvalidQosError(int(value)) from None


@dataclass(frozen=True)
class MsgType:
    """Message type code: an open set of 16-bit values."""

    value: int

    DATA: ClassVar[MsgType]
    CONTROL: ClassVar[MsgType]
    ACK: ClassVar[MsgType]
    HEARTBEAT: ClassVar[MsgType]

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 0xFFFF:
            raise ValueError(f"message type {self.value} does not fit in 16 bits")

    def __int__(self) -> int:
        return self.value

    def __index__(self) -> int:
        return self.value


MsgType.DATA = MsgType(0x0001)
MsgType.CONTROL = MsgType(0x0002)
MsgType.ACK = MsgType(0x0003)
MsgType.HEARTBEAT = MsgType(0x0004)


class HeaderFlag(enum.IntFlag):
    """Bit flags carried in the header's ``flags`` field."""

    COMPRESSED = 1 << 0
    FRAGMENTED = 1 << 1
    ACK_REQUESTED = 1 << 2
    END_OF_STREAM = 1 << 3
    HAS_CREDIT_GRANT = 1 << 4