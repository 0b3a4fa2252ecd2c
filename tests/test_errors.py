import pytest

from laic.errors import (
    BackpressureFullError,
    BufferTooShortError,
    ConnectionFailedError,
    FramingError,
    InvalidMagicError,
    InvalidPayloadFormatError,
    InvalidQosError,
    LaicError,
    PayloadLengthMismatchError,
    ProtocolError,
    ReceiveFailedError,
    SendFailedError,
    ShuttingDownError,
    TransportError,
    UnsupportedVersionError,
)

PROTOCOL_CATEGORY = 0x03
TRANSPORT_CATEGORY = 0x01


def _all_errors():
    return [
        InvalidMagicError(0xDEADBEEF),
        BufferTooShortError(10, 40),
        UnsupportedVersionError(0x9999),
        InvalidPayloadFormatError(99),
        InvalidQosError(7),
        PayloadLengthMismatchError(10, 5),
        ConnectionFailedError("refused"),
        SendFailedError("broken pipe"),
        ReceiveFailedError("eof"),
        FramingError("too big"),
        BackpressureFullError(),
        ShuttingDownError(),
    ]


def test_protocol_error_codes_match_source():
    assert InvalidMagicError(0).code == 0x0301
    assert BufferTooShortError(0, 40).code == 0x0302
    assert UnsupportedVersionError(2).code == 0x0303
    assert InvalidPayloadFormatError(3).code == 0x0304
    assert InvalidQosError(3).code == 0x0305
    assert PayloadLengthMismatchError(1, 2).code == 0x0306


def test_transport_error_codes_match_source():
    assert ReceiveFailedError("x").code == 0x0105
    assert FramingError("x").code == 0x0109


def test_codes_are_distinct():
    codes = [err.code for err in _all_errors()]
    assert len(set(codes)) == len(codes)


@pytest.mark.parametrize(
    "err, base, category",
    [
        (InvalidMagicError(1), ProtocolError, PROTOCOL_CATEGORY),
        (BufferTooShortError(1, 40), ProtocolError, PROTOCOL_CATEGORY),
        (UnsupportedVersionError(2), ProtocolError, PROTOCOL_CATEGORY),
        (InvalidPayloadFormatError(3), ProtocolError, PROTOCOL_CATEGORY),
        (InvalidQosError(3), ProtocolError, PROTOCOL_CATEGORY),
        (PayloadLengthMismatchError(1, 2), ProtocolError, PROTOCOL_CATEGORY),
        (ConnectionFailedError("x"), TransportError, TRANSPORT_CATEGORY),
        (SendFailedError("x"), TransportError, TRANSPORT_CATEGORY),
        (ReceiveFailedError("x"), TransportError, TRANSPORT_CATEGORY),
        (FramingError("x"), TransportError, TRANSPORT_CATEGORY),
        (BackpressureFullError(), TransportError, TRANSPORT_CATEGORY),
        (ShuttingDownError(), TransportError, TRANSPORT_CATEGORY),
    ],
)
def test_hierarchy(err, base, category):
    assert err.code >> 8 == category
    assert str(err)
    with pytest.raises(base) as info:
        raise err
    assert info.value.code == err.code
    assert isinstance(info.value, LaicError)


def test_fields_are_kept():
    err = BufferTooShortError(10, 40)
    assert (err.actual, err.expected) == (10, 40)
    mismatch = PayloadLengthMismatchError(10, 5)
    assert (mismatch.header_len, mismatch.actual_len) == (10, 5)
    assert InvalidQosError(7).value == 7
    assert UnsupportedVersionError(0x9999).version == 0x9999


def test_messages_mention_values():
    assert "DEADBEEF" in str(InvalidMagicError(0xDEADBEEF))
    assert "99" in str(InvalidPayloadFormatError(99))
    assert "refused" in str(ConnectionFailedError("refused"))
    assert FramingError("too big").detail == "too big"


def test_can_be_caught_as_base():
    err = SendFailedError("broken pipe")
    assert err.detail == "broken pipe"
    assert err.code == 0x0104
    assert "broken pipe" in str(err)
    with pytest.raises(LaicError) as info:
        raise err
    assert info.value.detail == "broken pipe"