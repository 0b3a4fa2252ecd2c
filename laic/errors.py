"""Error hierarchy shared by the protocol and transport layers."""

from __future__ import annotations


class LaicError(Exception):
    """Base class for every error raised by this package."""

    code: int = 0x0000


# ---------------------------------------------------------------------------
# Protocol errors
# ---------------------------------------------------------------------------


class ProtocolError(LaicError):
    """A message or header violates the wire protocol."""

    code = 0x0300


class InvalidMagicError(ProtocolError):
    """The header's magic number is not the protocol magic."""

    code = 0x0301

    def __init__(self, actual: int) -> None:
        self.actual = actual
        super().__init__(f"invalid magic number 0x{actual:08X}")


class BufferTooShortError(ProtocolError):
    """A buffer is too small to hold or contain a header."""

    code = 0x0302

    def __init__(self, actual: int, expected: int) -> None:
        self.actual = actual
        self.expected = expected
        super().__init__(f"buffer too short: {actual} bytes, expected at least {expected}")


class UnsupportedVersionError(ProtocolError):
    """The header carries a protocol version this package does not speak."""

    code = 0x0303

    def __init__(self, version: int) -> None:
        self.version = version
        super().__init__(f"unsupported protocol version 0x{version:04X}")


class InvalidPayloadFormatError(ProtocolError):
    """The payload format byte is not a known format."""

    code = 0x0304

    def __init__(self, value: int) -> None:
        self.value = value
        super().__init__(f"invalid payload format {value}")


class InvalidQosError(ProtocolError):
    """The QoS byte is not a known priority level."""

    code = 0x0305

    def __init__(self, value: int) -> None:
        self.value = value
        super().__init__(f"invalid QoS level {value}")


class PayloadLengthMismatchError(ProtocolError):
    """The header's payload length disagrees with the actual payload."""

    code = 0x0306

    def __init__(self, header_len: int, actual_len: int) -> None:
        self.header_len = header_len
        self.actual_len = actual_len
        super().__init__(
            f"payload length mismatch: header says {header_len}, payload has {actual_len}"
        )


# ---------------------------------------------------------------------------
# Transport errors
# ---------------------------------------------------------------------------


class TransportError(LaicError):
    """A transport backend failed to deliver or receive a message."""

    code = 0x0100


class _DetailedTransportError(TransportError):
    _label = "transport error"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"{self._label}: {detail}")


class ConnectionFailedError(_DetailedTransportError):
    """A connection could not be established or configured."""

    code = 0x0101
    _label = "connection failed"


class SendFailedError(_DetailedTransportError):
    """Writing a message to the transport failed."""

    code = 0x0104
    _label = "send failed"


class ReceiveFailedError(_DetailedTransportError):
    """Reading a message from the transport failed."""

    code = 0x0105
    _label = "receive failed"


class FramingError(_DetailedTransportError):
    """A frame on the wire is malformed or exceeds a size limit."""

    code = 0x0109
    _label = "framing error"


class BackpressureFullError(TransportError):
    """The transport cannot accept more messages right now."""

    code = 0x0106

    def __init__(self) -> None:
        super().__init__("backpressure: send buffer full")


class ShuttingDownError(TransportError):
    """The connection has been closed."""

    code = 0x0108

    def __init__(self) -> None:
        super().__init__("transport is shutting down")