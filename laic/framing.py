"""Stream framing: LAIC messages written and read as header-plus-payload frames.

A frame on the wire is the 40-byte header followed by exactly
``payload_len`` payload bytes. There is no extra length prefix; the
header's ``payload_len`` is the single source of truth.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

from laic.constants import HEADER_SIZE
from laic.errors import FramingError, ReceiveFailedError, SendFailedError
from laic.header import MessageHeader
from laic.message import Message

MAX_PAYLOAD_LEN = 64 * 1024 * 1024
"""Largest payload the framing layer accepts, guarding against huge allocations."""


class FrameWriter(Protocol):
    """The part of :class:`asyncio.StreamWriter` that framing needs."""

    def write(self, data: bytes) -> object: ...

    async def drain(self) -> None: ...


class FrameReader(Protocol):
    """The part of :class:`asyncio.StreamReader` that framing needs."""

    async def readexactly(self, n: int) -> bytes: ...


def _check_payload_len(payload_len: int) -> None:
    if payload_len > MAX_PAYLOAD_LEN:
        raise FramingError(
            f"payload length {payload_len} exceeds maximum {MAX_PAYLOAD_LEN}"
        )


async def write_frame(writer: FrameWriter, msg: Message) -> None:
    """Write ``msg`` as one frame and wait until the writer has drained.

    Raises :class:`FramingError` for oversized payloads, a protocol error
    for an invalid header, and :class:`SendFailedError` on I/O failure.
    """
    header = msg.header
    _check_payload_len(header.payload_len)
    encoded = header.encode()
    try:
        writer.write(encoded)
        writer.write(msg.payload)
        await writer.drain()
    except (OSError, RuntimeError) as exc:
        raise SendFailedError(str(exc) or type(exc).__name__) from exc


async def _read_exactly(reader: FrameReader, size: int) -> bytes:
    try:
        return await reader.readexactly(size)
    except (EOFError, OSError) as exc:
        if isinstance(exc, asyncio.IncompleteReadError):
            detail = f"unexpected end of stream: got {len(exc.partial)} of {size} bytes"
        else:
            detail = str(exc) or type(exc).__name__
        raise ReceiveFailedError(detail) from exc


async def read_frame(reader: FrameReader) -> Message:
    """Read one frame and return the message it carries.

    Raises :class:`ReceiveFailedError` on I/O failure or a stream that ends
    mid-frame, :class:`FramingError` for oversized payloads, and a protocol
    error for an invalid header.
    """
    header = MessageHeader.decode(await _read_exactly(reader, HEADER_SIZE))
    _check_payload_len(header.payload_len)
    payload = await _read_exactly(reader, header.payload_len) if header.payload_len else b""
    return Message.from_parts(header, payload)