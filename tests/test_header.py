import pytest

from laic.constants import HEADER_SIZE, MAGIC, VERSION, MsgType, PayloadFormat, Qos
from laic.errors import (
    BufferTooShortError,
    InvalidMagicError,
    InvalidPayloadFormatError,
    InvalidQosError,
    UnsupportedVersionError,
)
from laic.header import MessageHeader


def sample_header() -> MessageHeader:
    return MessageHeader(
        magic=MAGIC,
        version=VERSION,
        msg_type=MsgType.DATA.value,
        msg_id=0x0102_0304_0506_0708,
        correlation_id=0x1112_1314_1516_1718,
        payload_len=1024,
        payload_format=PayloadFormat.ARROW,
        qos=Qos.NORMAL,
        credit_grant=10,
        flags=0,
        reserved=bytes(4),
    )


def test_encode_decode_roundtrip():
    original = sample_header()
    data = original.encode()
    assert len(data) == HEADER_SIZE
    assert MessageHeader.decode(data) == original


def test_encode_into_roundtrip():
    original = sample_header()
    buf = bytearray(HEADER_SIZE)
    original.encode_into(buf)
    assert MessageHeader.decode(buf) == original


def test_encode_buffer_too_short():
    buf = bytearray(39)
    with pytest.raises(BufferTooShortError) as info:
        sample_header().encode_into(buf)
    assert info.value.code == 0x0302


def test_decode_buffer_too_short():
    with pytest.raises(BufferTooShortError) as info:
        MessageHeader.decode(bytes(10))
    assert info.value.code == 0x0302
    assert info.value.actual == 10


def test_decode_invalid_magic():
    buf = bytearray(sample_header().encode())
    buf[0] = 0xFF
    with pytest.raises(InvalidMagicError) as info:
        MessageHeader.decode(buf)
    assert info.value.code == 0x0301


def test_decode_invalid_payload_format():
    buf = bytearray(sample_header().encode())
    buf[28] = 99
    with pytest.raises(InvalidPayloadFormatError) as info:
        MessageHeader.decode(buf)
    assert info.value.code == 0x0304


def test_decode_invalid_qos():
    buf = bytearray(sample_header().encode())
    buf[29] = 5
    with pytest.raises(InvalidQosError) as info:
        MessageHeader.decode(buf)
    assert info.value.code == 0x0305


def test_little_endian_byte_order():
    buf = sample_header().encode()
    assert buf[0:4] == bytes([0x43, 0x49, 0x41, 0x4C])
    assert buf[8] == 0x08
    assert buf[9] == 0x07


def test_encode_into_larger_buffer():
    buf = bytearray(128)
    sample_header().encode_into(buf)
    assert all(b == 0 for b in buf[40:])
    assert MessageHeader.decode(buf) == sample_header()


def test_decode_unsupported_version():
    buf = bytearray(sample_header().encode())
    buf[4] = 0x02
    buf[5] = 0x00
    with pytest.raises(UnsupportedVersionError) as info:
        MessageHeader.decode(buf)
    assert info.value.code == 0x0303


def test_encode_invalid_payload_format():
    hdr = sample_header()
    hdr.payload_format = 99
    with pytest.raises(InvalidPayloadFormatError) as info:
        hdr.encode()
    assert info.value.code == 0x0304


def test_encode_invalid_qos():
    hdr = sample_header()
    hdr.qos = 7
    with pytest.raises(InvalidQosError) as info:
        hdr.encode()
    assert info.value.code == 0x0305


def test_encode_invalid_magic():
    hdr = sample_header()
    hdr.magic = 0xDEAD_BEEF
    with pytest.raises(InvalidMagicError) as info:
        hdr.encode()
    assert info.value.code == 0x0301


def test_encode_invalid_version():
    hdr = sample_header()
    hdr.version = 0x9999
    with pytest.raises(UnsupportedVersionError) as info:
        hdr.encode()
    assert info.value.code == 0x0303


def test_encode_into_validates_before_writing():
    hdr = sample_header()
    hdr.qos = 7
    buf = bytearray(HEADER_SIZE)
    with pytest.raises(InvalidQosError):
        hdr.encode_into(buf)
    assert buf == bytearray(HEADER_SIZE)


def test_decode_gives_enum_fields():
    decoded = MessageHeader.decode(sample_header().encode())
    assert decoded.payload_format is PayloadFormat.ARROW
    assert decoded.qos is Qos.NORMAL
    assert decoded.credit_grant == 10


def test_validate_rejects_bad_reserved_length():
    hdr = sample_header()
    hdr.reserved = b"\x00\x00"
    with pytest.raises(ValueError):
        hdr.validate()