# pws

A small WebSocket client that does not own a socket. You give it two
callables, one that sends bytes and one that receives them. It handles the
opening HTTP handshake, encoding and decoding frames (masking included), and
joining fragmented messages back together.

It has no dependencies outside the standard library.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Usage

```python
import socket

from pws.protocol import Message, Opcode, Role, create_close_message
from pws.websocket import ConnectInfo, WebSocket

sock = socket.create_connection(("localhost", 8080))

ws = WebSocket(Role.CLIENT, sock.send, sock.recv)
ws.connect(ConnectInfo(origin="http://localhost", host="localhost:8080", path="/chat"))

ws.send_message(Message(Opcode.TEXT, b"hello"))
reply = ws.recv_message()
print(reply.opcode, reply.payload)

ws.send_message(create_close_message(1000, "bye"))
```

`send(data)` is passed a `bytes` object and returns how many bytes it wrote.
A result of zero or less counts as a failure. `recv(n)` returns up to `n`
bytes. An empty result means the peer has gone.

## The pieces

`pws.protocol`
- `Opcode` holds the opcodes: `CONTINUATION`, `TEXT`, `BINARY`, `CLOSE`,
  `PING` and `PONG`.
- `Role` is either `SERVER` or `CLIENT`.
- `ConnectionState` is either `CONNECTING` or `OPEN`.
- `Message(opcode, payload)` is a whole message. Its `length` property gives
  the payload size. The opcode must fit in four bits.
- `create_close_message(status, payload=b"")` builds a `CLOSE` message. The
  payload is the 16-bit status code in big-endian order, followed by the
  reason. The reason may be bytes or a string; a string is encoded as UTF-8.
- `WebSocketError` is raised on any failure. Its `status` attribute holds the
  close code when one was sent, and is `None` otherwise.

`pws.frame`
- `Frame(flags, opcode, payload)` is a single frame, and `FrameFlag` holds its
  four flag bits: `FIN`, `RSV1`, `RSV2` and `RSV3`.
- `encode_frame(frame, masked)` turns a frame into the bytes that go on the
  wire. It uses the 7-bit, 16-bit or 64-bit length form as the payload size
  requires. When `masked` is true, the payload is masked with a fixed key.
- `read_frame(recv, leftovers=b"", expect_masked=False)` reads one frame,
  starting with `leftovers`. It returns the frame together with any bytes that
  arrived past its end. It raises `WebSocketError` if the peer goes away before
  the frame is complete, or if the frame's mask bit does not match
  `expect_masked`.

`pws.websocket`
- `ConnectInfo(origin, host, path)` says where to connect.
- `build_handshake_request(info)` returns the HTTP upgrade request.
- `WebSocket(role, send, recv)` starts in `ConnectionState.CONNECTING`.
  - `connect(info)` sends the upgrade request and reads the response headers.
    If the response starts with `HTTP/1.1 101 Switching Protocols`, the
    connection becomes `OPEN`. Bytes that arrive after the headers are kept
    for the next read. These unread bytes are visible through the `leftovers`
    property.
  - `send_message(message)` sends the message as one frame with `FIN` set,
    masked when the role is `CLIENT`. Sending a `CLOSE` message puts the
    connection back in `CONNECTING`.
  - `recv_message()` reads frames until one carries `FIN` and returns the
    joined `Message`. When the role is `SERVER`, it expects frames to be
    masked; when the role is `CLIENT`, it expects them unmasked. If the first
    frame's opcode is `CONTINUATION`, or a later frame's opcode is not, it
    sends a `CLOSE` with status 1002 and raises `WebSocketError`.

`send_message` and `recv_message` raise `WebSocketError` unless the connection
is `OPEN`. When the handshake fails, the transport fails, or the peer breaks
the protocol, `WebSocketError` is raised and the state goes back to
`CONNECTING`.

## What it does not do

- There is no server-side handshake. The only way to open a connection is
  `connect`, which sends a client upgrade request.
- The `Sec-Websocket-Key` and the masking key are fixed values. The server's
  `Sec-WebSocket-Accept` header is not checked. Only the status line of the
  response is examined.
- Pings are not answered automatically. `PING`, `PONG` and `CLOSE` arrive from
  `recv_message` as ordinary messages.
- Text payloads are not validated as UTF-8.
- Outgoing messages are never fragmented.
- The package has no TLS support and no socket handling of its own; both are
  left to the `send` and `recv` callables.