"""Encoding and decoding of single WebSocket frames."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntFlag
from itertools import cycle
from typing import Callable, Tuple, Union

from .protocol import Opcode, WebSocketError, _as_opcode

Recv = Callable[[int], bytes]

MASKING_KEY = bytes((69, 12, 37, 42))
HEADER_CHUNK = 256


class FrameFlag(IntFlag):
    """The four flag bits in the first byte of a frame."""

    RSV3 = 1 << 0
    RSV2 = 1 << 1
    RSV1 = 1 << 2
    FIN = 1 << 3


@dataclass
class Frame:
    """A single WebSocket frame."""

    flags: FrameFlag
    opcode: Union[Opcode, int]
    payload: bytes = field(default=b"")

    def __post_init__(self) -> None:
        if not 0 <= int(self.flags) <= 0x0F:
            raise ValueError(f"flags must fit in four bits, got {self.flags}")
        if not 0 <= int(self.opcode) <= 0x0F:
            raise ValueError(f"opcode must fit in four bits, got {self.opcode}")
        self.flags = FrameFlag(int(self.flags))
        self.opcode = _as_opcode(self.opcode)
        self.payload = bytes(self.payload)

    @property
    def length(self) -> int:
        """Number of payload bytes."""
        return len(self.payload)


def _apply_mask(data: bytes, key: bytes) -> bytes:
    return bytes(byte ^ k for byte, k in zip(data, cycle(key)))


def encode_frame(frame: Frame, masked: bool) -> bytes:
    """Serialise a frame to wire bytes, masking the payload when asked."""
    header = bytearray([(int(frame.flags) << 4) | int(frame.opcode)])
    mask_bit = 0x80 if masked else 0x00
    length = frame.length

    if length > 0xFFFF:
        header.append(127 | mask_bit)
        header += length.to_bytes(8, "big")
    elif length > 125:
        header.append(126 | mask_bit)
        header += length.to_bytes(2, "big")
    else:
        header.append(length | mask_bit)

    payload = frame.payload
    if masked:
        header += MASKING_KEY
        payload = _apply_mask(payload, MASKING_KEY)
    return bytes(header) + payload


def read_frame(
    recv: Recv, leftovers: bytes = b"", expect_masked: bool = False
) -> Tuple[Frame, bytes]:
    """Read one frame, starting with any bytes left over from earlier reads.

    ``recv(n)`` returns up to ``n`` bytes, or an empty result when the peer
    has gone. Returns the frame and the bytes received beyond its end.
    """
    buffer = bytearray(leftovers)

    def fill(size: int) -> None:
        while len(buffer) < size:
            chunk = recv(HEADER_CHUNK)
            if not chunk:
                raise WebSocketError("connection closed while reading frame header")
            buffer.extend(chunk)

    fill(2)
    first, second = buffer[0], buffer[1]
    masked = bool(second & 0x80)
    length = second & 0x7F
    offset = 2

    if length == 126:
        offset = 4
        fill(offset)
        length = int.from_bytes(buffer[2:4], "big")
    elif length == 127:
        offset = 10
        fill(offset)
        length = int.from_bytes(buffer[2:10], "big")

    if masked != expect_masked:
        state = "masked" if masked else "unmasked"
        raise WebSocketError(f"received an unexpectedly {state} frame")

    key = b""
    if masked:
        fill(offset + 4)
        key = bytes(buffer[offset:offset + 4])
        offset += 4

    body = bytearray(buffer[offset:offset + length])
    rest = bytes(buffer[offset + length:])

    while len(body) < length:
        chunk = recv(length - len(body))
        if not chunk:
            raise WebSocketError("connection closed while reading frame payload")
        body.extend(chunk)

    payload = _apply_mask(bytes(body), key) if masked else bytes(body)
    frame = Frame(FrameFlag((first >> 4) & 0x0F), first & 0x0F, payload)
    return frame, rest