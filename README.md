# laic

A small, dependency-free implementation of the LAIC message protocol.

A LAIC message is a fixed 40-byte little-endian header followed by a
payload whose length is given by the header's `payload_len` field. On a
byte stream, messages are written back to back with no additional length
prefix.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## What is in the package

| Module            | Contents                                                                   |
|-------------------|----------------------------------------------------------------------------|
| `laic.constants`  | `PayloadFormat`, `Qos`, `MsgType`, `HeaderFlag`, `MAGIC`, `VERSION`, `HEADER_SIZE` |
| `laic.header`     | `MessageHeader` with `validate`, `encode`, `encode_into` and `decode`      |
| `laic.message`    | `Message`, a header plus a payload whose length always matches             |
| `laic.framing`    | `write_frame`, `read_frame` and `MAX_PAYLOAD_LEN` for asynchronous streams |
| `laic.ipc`        | `IpcConnection`, a 1:1 local channel over memory-mapped files              |
| `laic.errors`     | `LaicError` and its protocol and transport subclasses                      |

## Header layout

| Offset | Field            | Size |
|--------|------------------|------|
| 0      | `magic`          | 4    |
| 4      | `version`        | 2    |
| 6      | `msg_type`       | 2    |
| 8      | `msg_id`         | 8    |
| 16     | `correlation_id` | 8    |
| 24     | `payload_len`    | 4    |
| 28     | `payload_format` | 1    |
| 29     | `qos`            | 1    |
| 30     | `credit_grant`   | 2    |
| 32     | `flags`          | 4    |
| 36     | `reserved`       | 4    |

The magic number is the ASCII text `LAIC` and the protocol version is
`0x0001`. `MessageHeader.encode`, `encode_into` and `decode` all check the
magic, the version, the payload format and the QoS level, so a sender
never emits a header its own receiver would reject. `encode_into` and
`decode` raise `BufferTooShortError` for buffers under 40 bytes;
`encode_into` leaves any bytes after the first 40 untouched.

## Building and reading messages

```python
from laic.constants import MsgType, PayloadFormat, Qos
from laic.header import MessageHeader
from laic.message import Message

msg = Message(MsgType.DATA, 42, PayloadFormat.RAW, Qos.NORMAL, b"hello")

header, payload = msg.into_parts()
wire = header.encode()              # 40 bytes
again = MessageHeader.decode(wire)  # validated on the way in
rebuilt = Message.from_parts(again, payload)
```

`Message` fills in the magic, version and `payload_len` itself.
`Message.from_parts` validates the header and refuses one whose
`payload_len` does not match the payload (`PayloadLengthMismatchError`).
The `header` property returns a copy, so the length can never drift.

Other members of `Message`:

* `payload`, `msg_type` and `wire_size` (header plus payload length);
* `credit_grant`, whose setter also sets or clears
  `HeaderFlag.HAS_CREDIT_GRANT`;
* `correlation_id`, for matching responses to requests;
* `end_of_stream`, a boolean backed by `HeaderFlag.END_OF_STREAM` that
  leaves the other flags alone.

## Streams

`write_frame(writer, msg)` and `read_frame(reader)` move whole messages over
asynchronous streams such as `asyncio.StreamWriter` and
`asyncio.StreamReader`. Payloads above `MAX_PAYLOAD_LEN` (64 MiB) are
refused in both directions with `FramingError`. A write failure raises
`SendFailedError`; a stream that ends part-way through a frame raises
`ReceiveFailedError`.

## Local IPC

`IpcConnection.open_server(name)` and `IpcConnection.open_client(name)`
open the two ends of a local channel. Each name is one channel between one
server and one client.

```python
from laic.ipc import IpcConnection

async with IpcConnection.open_client("my-channel") as conn:
    await conn.send(msg)
    reply = await conn.receive()
```

* Each direction is a memory-mapped file of 16 frame slots, kept in the
  directory named by `LAIC_IPC_DIR`, or `laic-ipc` under the system
  temporary directory.
* Delivery is best-effort: a subscriber that falls more than 16 frames
  behind loses the oldest ones, and a subscriber only sees frames published
  after it was opened.
* Payloads are limited to 64 KiB (`MAX_IPC_PAYLOAD_LEN`).
* `receive` polls, sleeping 100 µs between empty polls. Setting
  `LAIC_IPC_ACTIVE_POLL_BUDGET_MS` to a positive number of milliseconds
  yields instead of sleeping for that long at the start of each receive;
  setting `LAIC_WINDOWS_LOCAL_IPC_RECEIVE_TIMING` prints polling statistics
  to standard error for each received message.
* After `close`, further sends and receives raise `ShuttingDownError`.

## What the package does not do

There is no network transport: the package has no TLS configuration, no
server that accepts remote connections and no client that dials one, and
no single interface over several kinds of connection. `read_frame` and
`write_frame` work on any asyncio stream, so a caller can carry LAIC frames
over a connection it sets up itself. The package has no command-line
program.

## Errors

Every failure raises a subclass of `laic.errors.LaicError`. Header and
message problems are `ProtocolError` subclasses: `InvalidMagicError`,
`BufferTooShortError`, `UnsupportedVersionError`,
`InvalidPayloadFormatError`, `InvalidQosError` and
`PayloadLengthMismatchError`. Transport problems are `TransportError`
subclasses: `ConnectionFailedError`, `SendFailedError`,
`ReceiveFailedError`, `FramingError`, `BackpressureFullError` and
`ShuttingDownError`. Each error class carries its numeric protocol error
code as `code`.