"""A WebSocket endpoint driven by caller-supplied send and receive functions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .frame import Frame, FrameFlag, encode_frame, read_frame
from .protocol import (
    ConnectionState,
    Message,
    Opcode,
    Role,
    WebSocketError,
    create_close_message,
)

Send = Callable[[bytes], int]
Recv = Callable[[int], bytes]

SWITCHING_PROTOCOLS = b"HTTP/1.1 101 Switching Protocols\r\n"
HEADER_END = b"\r\n\r\n"
RESPONSE_CHUNK = 256
PROTOCOL_ERROR = 1002


@dataclass(frozen=True)
class ConnectInfo:
    """Where a client connects to and on whose behalf."""

    origin: str
    host: str
    path: str


def build_handshake_request(info: ConnectInfo) -> bytes:
    """Return the HTTP upgrade request a client sends to open a connection."""
    lines = [
        f"GET {info.path} HTTP/1.1",
        f"Host: {info.host}",
        "Upgrade: websocket",
        "Connection: Upgrade",
        "Sec-Websocket-Key: dGhlIHNhbXBsZSBub25jZQ==",
        f"Origin: {info.origin}",
        "Sec-Websocket-Protocol: chat, superchat",
        "Sec-Websocket-Version: 13",
    ]
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")


class WebSocket:
    """One end of a WebSocket connection.

    ``send(data)`` writes some of ``data`` and returns how many bytes it wrote,
    zero or less on failure. ``recv(n)`` returns up to ``n`` bytes, or an empty
    result once the peer has gone.
    """

    def __init__(self, role: Role, send: Send, recv: Recv) -> None:
        self.role = Role(role)
        self.state = ConnectionState.CONNECTING
        self._send = send
        self._recv = recv
        self._leftovers = b""

    @property
    def leftovers(self) -> bytes:
        """Bytes received but not yet consumed."""
        return self._leftovers

    def _close_with(self, reason: str, status: int | None = None) -> WebSocketError:
        self.state = ConnectionState.CONNECTING
        return WebSocketError(reason, status)

    def _send_all(self, data: bytes) -> None:
        view = memoryview(data)
        while view:
            sent = self._send(bytes(view))
            if not sent or sent <= 0:
                raise self._close_with("failed to send data")
            view = view[sent:]

    def _require_open(self) -> None:
        if self.state is not ConnectionState.OPEN:
            raise WebSocketError("connection is not open")

    def connect(self, info: ConnectInfo) -> ConnectionState:
        """Perform the client handshake and open the connection."""
        self._send_all(build_handshake_request(info))

        buffer = bytearray(self._leftovers)
        self._leftovers = b""
        while (end := buffer.find(HEADER_END)) < 0:
            chunk = self._recv(RESPONSE_CHUNK)
            if not chunk:
                raise self._close_with("connection closed during handshake")
            buffer.extend(chunk)

        self._leftovers = bytes(buffer[end + len(HEADER_END):])
        if not buffer.startswith(SWITCHING_PROTOCOLS):
            raise self._close_with("server refused to switch protocols")

        self.state = ConnectionState.OPEN
        return self.state

    def _protocol_error(self, reason: str) -> WebSocketError:
        try:
            self.send_message(create_close_message(PROTOCOL_ERROR, reason))
        except WebSocketError:
            pass
        return self._close_with(reason, PROTOCOL_ERROR)

    def recv_message(self) -> Message:
        """Receive frames until one carries FIN and return the joined message."""
        self._require_open()
        expect_masked = self.role is Role.SERVER

        opcode = Opcode.CONTINUATION
        payload = bytearray()
        while True:
            try:
                frame, self._leftovers = read_frame(
                    self._recv, self._leftovers, expect_masked
                )
            except WebSocketError as exc:
                self._leftovers = b""
                raise self._close_with(str(exc)) from exc

            if opcode == Opcode.CONTINUATION:
                if frame.opcode == Opcode.CONTINUATION:
                    raise self._protocol_error(
                        "opcode of first frame in a message must not be set to continuation"
                    )
                opcode = frame.opcode
            elif frame.opcode != Opcode.CONTINUATION:
                raise self._protocol_error(
                    "opcode of n-th frame in a message must be set to continuation"
                )

            payload += frame.payload
            if frame.flags & FrameFlag.FIN:
                return Message(opcode, bytes(payload))

    def send_message(self, message: Message) -> ConnectionState:
        """Send a message as a single frame; sending CLOSE ends the connection."""
        self._require_open()
        frame = Frame(FrameFlag.FIN, message.opcode, message.payload)
        self._send_all(encode_frame(frame, masked=self.role is Role.CLIENT))
        if message.opcode == Opcode.CLOSE:
            self.state = ConnectionState.CONNECTING
        return self.state