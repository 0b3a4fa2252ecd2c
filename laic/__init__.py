"""LAIC message protocol: headers, messages, stream framing and a local IPC transport."""

__version__ = "0.2.0"

__all__ = [
    "constants",
    "errors",
    "framing",
    "header",
    "ipc",
    "message",
]