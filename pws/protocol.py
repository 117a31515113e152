"""Core WebSocket protocol types: opcodes, roles, connection states and messages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Union


class Opcode(IntEnum):
    """Frame and message opcodes."""

    CONTINUATION = 0x00
    TEXT = 0x01
    BINARY = 0x02
    CLOSE = 0x08
    PING = 0x09
    PONG = 0x0A


class Role(IntEnum):
    """Which end of the connection this endpoint is."""

    SERVER = 0
    CLIENT = 1


class ConnectionState(IntEnum):
    """State of a WebSocket connection."""

    CONNECTING = 0
    OPEN = 1


class WebSocketError(Exception):
    """Raised when the connection fails or the peer violates the protocol."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


def _as_opcode(value: int) -> Union[Opcode, int]:
    """Return the matching Opcode member, or the plain integer for reserved codes."""
    try:
        return Opcode(value)
    except ValueError:
        return int(value)


@dataclass
class Message:
    """A complete WebSocket message."""

    opcode: Union[Opcode, int]
    payload: bytes = field(default=b"")

    def __post_init__(self) -> None:
        if not 0 <= int(self.opcode) <= 0x0F:
            raise ValueError(f"opcode must fit in four bits, got {self.opcode}")
        self.opcode = _as_opcode(self.opcode)
        self.payload = bytes(self.payload)

    @property
    def length(self) -> int:
        """Number of payload bytes."""
        return len(self.payload)


def create_close_message(status: int, payload: Union[bytes, str] = b"") -> Message:
    """Build a CLOSE message carrying a status code and an optional reason."""
    if not 0 <= status <= 0xFFFF:
        raise ValueError(f"close status must fit in 16 bits, got {status}")
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return Message(Opcode.CLOSE, status.to_bytes(2, "big") + bytes(payload))