"""A complete LAIC message: fixed header plus variable-length payload."""

from __future__ import annotations

import dataclasses

from laic.constants import (
    HEADER_SIZE,
    MAGIC,
    VERSION,
    HeaderFlag,
    MsgType,
    PayloadFormat,
    Qos,
)
from laic.errors import PayloadLengthMismatchError
from laic.header import MessageHeader

_MAX_U32 = 0xFFFF_FFFF
_MAX_U16 = 0xFFFF
_MAX_U64 = 0xFFFF_FFFF_FFFF_FFFF


class Message:
    """Header and payload whose lengths always agree.

    The header is only exposed as a copy, so ``header.payload_len`` can
    never drift away from ``len(payload)``.
    """

    __slots__ = ("_header", "_payload")

    def __init__(
        self,
        msg_type: MsgType | int,
        msg_id: int,
        payload_format: PayloadFormat | int,
        qos: Qos | int,
        payload: bytes | bytearray | memoryview,
    ) -> None:
        payload = bytes(payload)
        if len(payload) > _MAX_U32:
            raise ValueError(f"payload length {len(payload)} exceeds u32::MAX")
        self._header = MessageHeader(
            magic=MAGIC,
            version=VERSION,
            msg_type=int(msg_type),
            msg_id=msg_id,
            correlation_id=0,
            payload_len=len(payload),
            payload_format=PayloadFormat.parse(int(payload_format)),
            qos=Qos.parse(int(qos)),
            credit_grant=0,
            flags=0,
            reserved=b"\x00\x00\x00\x00",
        )
        self._payload = payload

    @classmethod
    def from_parts(
        cls, header: MessageHeader, payload: bytes | bytearray | memoryview
    ) -> Message:
        """Rebuild a message from a header and payload, validating both."""
        header.validate()
        payload = bytes(payload)
        if header.payload_len != len(payload):
            raise PayloadLengthMismatchError(header.payload_len, len(payload))
        message = cls.__new__(cls)
        message._header = dataclasses.replace(header)
        message._payload = payload
        return message

    def into_parts(self) -> tuple[MessageHeader, bytes]:
        """Return a copy of the header together with the payload."""
        return dataclasses.replace(self._header), self._payload

    @property
    def header(self) -> MessageHeader:
        """A copy of the message header."""
        return dataclasses.replace(self._header)

    @property
    def payload(self) -> bytes:
        """The payload bytes."""
        return self._payload

    @property
    def msg_type(self) -> MsgType:
        """The message type code."""
        return MsgType(self._header.msg_type)

    @property
    def credit_grant(self) -> int:
        """Credits granted to the peer; setting it manages the credit flag."""
        return self._header.credit_grant

    @credit_grant.setter
    def credit_grant(self, credits: int) -> None:
        if not 0 <= credits <= _MAX_U16:
            raise ValueError(f"credit grant {credits} does not fit in 16 bits")
        self._header.credit_grant = credits
        if credits > 0:
            self._header.flags = int(self._header.flags) | HeaderFlag.HAS_CREDIT_GRANT
        else:
            self._header.flags = int(self._header.flags) & ~HeaderFlag.HAS_CREDIT_GRANT

    @property
    def correlation_id(self) -> int:
        """Identifier linking a response to its request."""
        return self._header.correlation_id

    @correlation_id.setter
    def correlation_id(self, value: int) -> None:
        if not 0 <= value <= _MAX_U64:
            raise ValueError(f"correlation id {value} does not fit in 64 bits")
        self._header.correlation_id = value

    @property
    def end_of_stream(self) -> bool:
        """Whether this message is the last chunk of a stream."""
        return bool(int(self._header.flags) & HeaderFlag.END_OF_STREAM)

    @end_of_stream.setter
    def end_of_stream(self, value: bool) -> None:
        if value:
            self._header.flags = int(self._header.flags) | HeaderFlag.END_OF_STREAM
        else:
            self._header.flags = int(self._header.flags) & ~HeaderFlag.END_OF_STREAM

    @property
    def wire_size(self) -> int:
        """Total size on the wire: header plus payload."""
        return HEADER_SIZE + len(self._payload)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Message):
            return NotImplemented
        return self._header == other._header and self._payload == other._payload

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Message(header={self._header!r}, payload_len={len(self._payload)})"