"""Fixed 40-byte message header and its little-endian wire encoding."""

from __future__ import annotations

import struct
from dataclasses import dataclass

from laic.constants import HEADER_SIZE, MAGIC, VERSION, PayloadFormat, Qos
from laic.errors import BufferTooShortError, InvalidMagicError, UnsupportedVersionError

_LAYOUT = struct.Struct("<IHHQQIBBHI4s")
assert _LAYOUT.size == HEADER_SIZE


@dataclass
class MessageHeader:
    """LAIC message header.

    Wire layout (little-endian): magic u32, version u16, msg_type u16,
    msg_id u64, correlation_id u64, payload_len u32, payload_format u8,
    qos u8, credit_grant u16, flags u32, reserved 4 bytes.
    """

    magic: int
    version: int
    msg_type: int
    msg_id: int
    correlation_id: int
    payload_len: int
    payload_format: int
    qos: int
    credit_grant: int
    flags: int
    reserved: bytes = b"\x00\x00\x00\x00"

    def validate(self) -> None:
        """Check the protocol-invariant fields, raising on the first violation."""
        if self.magic != MAGIC:
            raise InvalidMagicError(self.magic)
        if self.version != VERSION:
            raise UnsupportedVersionError(self.version)
        PayloadFormat.parse(self.payload_format)
        Qos.parse(self.qos)
        if len(self.reserved) != 4:
            raise ValueError(f"reserved field must be 4 bytes, got {len(self.reserved)}")

    def _pack_args(self) -> tuple:
        return (
            self.magic,
            self.version,
            int(self.msg_type),
            self.msg_id,
            self.correlation_id,
            self.payload_len,
            int(self.payload_format),
            int(self.qos),
            self.credit_grant,
            int(self.flags),
            bytes(self.reserved),
        )

    def encode(self) -> bytes:
        """Return the 40-byte wire encoding after validating the header."""
        self.validate()
        return _LAYOUT.pack(*self._pack_args())

    def encode_into(self, buffer: bytearray | memoryview) -> None:
        """Write the encoding into the first 40 bytes of a writable buffer."""
        if len(buffer) < HEADER_SIZE:
            raise BufferTooShortError(len(buffer), HEADER_SIZE)
        self.validate()
        _LAYOUT.pack_into(buffer, 0, *self._pack_args())

    @classmethod
    def decode(cls, data: bytes | bytearray | memoryview) -> MessageHeader:
        """Decode and validate a header from the start of ``data``."""
        if len(data) < HEADER_SIZE:
            raise BufferTooShortError(len(data), HEADER_SIZE)
        (
            magic,
            version,
            msg_type,
            msg_id,
            correlation_id,
            payload_len,
            payload_format,
            qos,
            credit_grant,
            flags,
            reserved,
        ) = _LAYOUT.unpack_from(data, 0)
        if magic != MAGIC:
            raise InvalidMagicError(magic)
        if version != VERSION:
            raise UnsupportedVersionError(version)
        return cls(
            magic=magic,
            version=version,
            msg_type=msg_type,
            msg_id=msg_id,
            correlation_id=correlation_id,
            payload_len=payload_len,
            payload_format=PayloadFormat.parse(payload_format),
            qos=Qos.parse(qos),
            credit_grant=credit_grant,
            flags=flags,
            reserved=reserved,
        )