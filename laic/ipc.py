"""Shared-memory transport: message delivery between local processes.

Each connection joins two publish/subscribe services that together form a
bidirectional channel:

* server side: subscriber on ``laic/ipc/{name}/c2s``, publisher on
  ``laic/ipc/{name}/s2c``;
* client side: publisher on ``laic/ipc/{name}/c2s``, subscriber on
  ``laic/ipc/{name}/s2c``.

A service is a memory-mapped file holding a ring of 16 fixed-size frame
slots. Every ``name`` identifies a 1:1 channel between exactly one server
and one client. Delivery is best effort: when a subscriber falls more than
16 frames behind, the oldest unread frames are silently replaced.
Subscribers only see frames published after they were created.
"""

from __future__ import annotations

import asyncio
import functools
import mmap
import os
import struct
import sys
import tempfile
import time
from urllib.parse import quote

from laic.constants import HEADER_SIZE
from laic.errors import (
    ConnectionFailedError,
    FramingError,
    ReceiveFailedError,
    SendFailedError,
    ShuttingDownError,
)
from laic.header import MessageHeader
from laic.message import Message

MAX_IPC_PAYLOAD_LEN = 65_536
"""Largest payload a shared-memory frame can carry."""

POLL_INTERVAL = 100e-6
"""Seconds to sleep between empty polls of the subscriber."""

SUBSCRIBER_BUFFER_SIZE = 16
"""Number of frames a service can hold before the oldest are replaced."""

IPC_DIR_ENV = "LAIC_IPC_DIR"
"""Environment variable naming the directory that holds the service files."""

ACTIVE_POLL_BUDGET_MS_ENV = "LAIC_IPC_ACTIVE_POLL_BUDGET_MS"
"""Opt-in window, in milliseconds, of busy polling before falling back to sleeps."""

RECEIVE_TIMING_ENV = "LAIC_WINDOWS_LOCAL_IPC_RECEIVE_TIMING"
"""When set, every receive reports its polling statistics on stderr."""

_U64 = struct.Struct("<Q")
_U32 = struct.Struct("<I")
_CONTROL_SIZE = 64
_SEQ_SIZE = _U64.size
_SLOT_SIZE = _SEQ_SIZE + HEADER_SIZE + MAX_IPC_PAYLOAD_LEN
_SEGMENT_SIZE = _CONTROL_SIZE + SUBSCRIBER_BUFFER_SIZE * _SLOT_SIZE
_PAYLOAD_LEN_OFFSET = 24
_MAX_FILENAME = 255


def _ipc_directory() -> str:
    return os.environ.get(IPC_DIR_ENV) or os.path.join(tempfile.gettempdir(), "laic-ipc")


def _segment_path(directory: str, service: str) -> str:
    """Return the file that backs ``service`` inside ``directory``."""
    return os.path.join(directory, "laic_" + quote(service, safe=""))


def _parse_active_poll_budget(raw: str | None) -> float | None:
    """Turn the budget setting into seconds; None when unset, invalid or zero."""
    if raw is None:
        return None
    try:
        millis = int(raw.strip())
    except ValueError:
        return None
    return millis / 1000.0 if millis > 0 else None


@functools.lru_cache(maxsize=None)
def _active_poll_budget() -> float | None:
    return _parse_active_poll_budget(os.environ.get(ACTIVE_POLL_BUDGET_MS_ENV))


class _Segment:
    """A memory-mapped ring of frame slots shared between processes."""

    def __init__(self, path: str) -> None:
        fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o600)
        try:
            size = os.fstat(fd).st_size
            if size == 0:
                os.ftruncate(fd, _SEGMENT_SIZE)
            elif size != _SEGMENT_SIZE:
                raise ValueError(
                    f"segment has size {size}, expected {_SEGMENT_SIZE}"
                )
            self._map = mmap.mmap(fd, _SEGMENT_SIZE)
        finally:
            os.close(fd)

    def read_u64(self, offset: int) -> int:
        return _U64.unpack_from(self._map, offset)[0]

    def write_u64(self, offset: int, value: int) -> None:
        _U64.pack_into(self._map, offset, value)

    def read(self, start: int, length: int) -> bytes:
        return self._map[start : start + length]

    def write(self, start: int, data: bytes) -> None:
        self._map[start : start + len(data)] = data

    @property
    def latest(self) -> int:
        return self.read_u64(0)

    @latest.setter
    def latest(self, seq: int) -> None:
        self.write_u64(0, seq)

    @staticmethod
    def slot_offset(seq: int) -> int:
        return _CONTROL_SIZE + ((seq - 1) % SUBSCRIBER_BUFFER_SIZE) * _SLOT_SIZE

    def close(self) -> None:
        if not self._map.closed:
            self._map.close()


class _Publisher:
    """Writes frames into the next slot of a segment."""

    def __init__(self, segment: _Segment) -> None:
        self._segment = segment

    def publish(self, header: bytes, payload: bytes) -> None:
        """Store one encoded header and its payload as the newest frame."""
        if len(header) != HEADER_SIZE:
            raise ValueError(f"frame header must be {HEADER_SIZE} bytes")
        if len(payload) > MAX_IPC_PAYLOAD_LEN:
            raise ValueError("payload exceeds frame capacity")
        segment = self._segment
        seq = segment.latest + 1
        base = segment.slot_offset(seq)
        # A zero sequence marks the slot as being rewritten.
        segment.write_u64(base, 0)
        segment.write(base + _SEQ_SIZE, header)
        segment.write(base + _SEQ_SIZE + HEADER_SIZE, payload)
        segment.write_u64(base, seq)
        segment.latest = seq


class _Subscriber:
    """Reads frames from a segment in publication order."""

    def __init__(self, segment: _Segment) -> None:
        self._segment = segment
        self._next = segment.latest + 1

    def poll(self) -> tuple[bytes, bytes] | None:
        """Return the next unread frame as ``(header, payload)``, or None."""
        segment = self._segment
        while True:
            latest = segment.latest
            if latest < self._next - 1:
                self._next = latest + 1
            if latest < self._next:
                return None
            oldest = latest - SUBSCRIBER_BUFFER_SIZE + 1
            if self._next < oldest:
                self._next = oldest
            expected = self._next
            base = segment.slot_offset(expected)
            seq = segment.read_u64(base)
            if seq != expected:
                if seq > expected:
                    self._next += 1
                    continue
                return None
            header = segment.read(base + _SEQ_SIZE, HEADER_SIZE)
            raw_len = _U32.unpack_from(header, _PAYLOAD_LEN_OFFSET)[0]
            payload = segment.read(
                base + _SEQ_SIZE + HEADER_SIZE, min(raw_len, MAX_IPC_PAYLOAD_LEN)
            )
            self._next += 1
            if segment.read_u64(base) != expected:
                continue
            return header, payload


class IpcConnection:
    """A bidirectional 1:1 shared-memory connection exchanging messages.

    Create one with :meth:`open_server` or :meth:`open_client`; each ``name``
    must be unique per logical connection.
    """

    def __init__(self, publisher_segment: _Segment, subscriber_segment: _Segment) -> None:
        self._segments = (publisher_segment, subscriber_segment)
        self._publisher = _Publisher(publisher_segment)
        self._subscriber = _Subscriber(subscriber_segment)
        self._closed = False

    @classmethod
    def open_server(cls, name: str) -> IpcConnection:
        """Open the server side: subscribe to ``c2s``, publish on ``s2c``."""
        return cls._open(name, sub_dir="c2s", pub_dir="s2c")

    @classmethod
    def open_client(cls, name: str) -> IpcConnection:
        """Open the client side: subscribe to ``s2c``, publish on ``c2s``."""
        return cls._open(name, sub_dir="s2c", pub_dir="c2s")

    @classmethod
    def _open(cls, name: str, sub_dir: str, pub_dir: str) -> IpcConnection:
        if not name:
            raise ConnectionFailedError("invalid service name: name is empty")
        directory = _ipc_directory()
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as exc:
            raise ConnectionFailedError(
                f"failed to create IPC directory '{directory}': {exc}"
            ) from exc

        sub_name = f"laic/ipc/{name}/{sub_dir}"
        pub_name = f"laic/ipc/{name}/{pub_dir}"
        paths = {}
        for service in (sub_name, pub_name):
            path = _segment_path(directory, service)
            if len(os.path.basename(path)) > _MAX_FILENAME:
                raise ConnectionFailedError(f"invalid service name '{service}': too long")
            paths[service] = path

        opened: list[_Segment] = []
        try:
            for service, role in ((sub_name, "sub"), (pub_name, "pub")):
                try:
                    opened.append(_Segment(paths[service]))
                except (OSError, ValueError) as exc:
                    raise ConnectionFailedError(
                        f"failed to open/create {role} service '{service}': {exc}"
                    ) from exc
        except ConnectionFailedError:
            for segment in opened:
                segment.close()
            raise
        sub_segment, pub_segment = opened
        return cls(pub_segment, sub_segment)

    @property
    def closed(self) -> bool:
        """Whether :meth:`close` has been called."""
        return self._closed

    async def send(self, msg: Message) -> None:
        """Publish ``msg``; success does not mean the peer has read it."""
        if self._closed:
            raise ShuttingDownError()
        payload = msg.payload
        if len(payload) > MAX_IPC_PAYLOAD_LEN:
            raise FramingError(
                f"payload length {len(payload)} exceeds IPC maximum {MAX_IPC_PAYLOAD_LEN}"
            )
        header = msg.header.encode()
        try:
            self._publisher.publish(header, payload)
        except (OSError, ValueError) as exc:
            raise SendFailedError(f"send failed: {exc}") from exc

    async def receive(self) -> Message:
        """Wait for and return the next message from the peer."""
        if self._closed:
            raise ShuttingDownError()

        budget = _active_poll_budget()
        timing = os.environ.get(RECEIVE_TIMING_ENV) is not None
        start = time.perf_counter()
        active_until = start + budget if budget is not None else None
        empty_polls = 0
        active_yields = 0
        requested_sleep = 0.0
        actual_sleep = 0.0

        while True:
            if self._closed:
                raise ShuttingDownError()
            try:
                frame = self._subscriber.poll()
            except (OSError, ValueError) as exc:
                raise ReceiveFailedError(f"receive failed: {exc}") from exc

            if frame is not None:
                if timing:
                    print(
                        "LAIC_WINDOWS_LOCAL_INVESTIGATION_IPC_RECEIVE "
                        f"empty_polls={empty_polls} active_yields={active_yields} "
                        f"requested_sleep_us={requested_sleep * 1e6:.3f} "
                        f"actual_sleep_us={actual_sleep * 1e6:.3f} "
                        f"elapsed_us={(time.perf_counter() - start) * 1e6:.3f}",
                        file=sys.stderr,
                    )
                raw_header, payload = frame
                header = MessageHeader.decode(raw_header)
                if header.payload_len > MAX_IPC_PAYLOAD_LEN:
                    raise FramingError(
                        f"received payload_len {header.payload_len} exceeds "
                        f"IPC frame capacity {MAX_IPC_PAYLOAD_LEN}"
                    )
                return Message.from_parts(header, payload)

            empty_polls += 1
            if active_until is not None and time.perf_counter() < active_until:
                active_yields += 1
                await asyncio.sleep(0)
                continue
            requested_sleep += POLL_INTERVAL
            sleep_start = time.perf_counter()
            await asyncio.sleep(POLL_INTERVAL)
            actual_sleep += time.perf_counter() - sleep_start

    async def close(self) -> None:
        """Close the connection; later sends and receives raise ShuttingDownError."""
        self._closed = True
        for segment in self._segments:
            segment.close()

    async def __aenter__(self) -> IpcConnection:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()