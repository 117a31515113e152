import io

import pytest

from pws.frame import (
    MASKING_KEY,
    Frame,
    FrameFlag,
    encode_frame,
    read_frame,
)
from pws.protocol import Opcode, WebSocketError


def make_recv(data, chunk=None):
    stream = io.BytesIO(data)

    def recv(size):
        return stream.read(size if chunk is None else min(size, chunk))

    return recv


def test_unmasked_text_frame_wire_bytes():
    frame = Frame(FrameFlag.FIN, Opcode.TEXT, b"Hello")
    assert encode_frame(frame, masked=False) == b"\x81\x05Hello"


def test_masked_frame_layout():
    payload = b"Hello"
    encoded = encode_frame(Frame(FrameFlag.FIN, Opcode.TEXT, payload), masked=True)
    assert encoded[1] & 0x80
    assert encoded[1] & 0x7F == len(payload)
    assert encoded[2:6] == MASKING_KEY
    assert len(encoded) == 2 + 4 + len(payload)
    assert encoded[6:] != payload


@pytest.mark.parametrize(
    "length, length_byte",
    [(0, 0), (125, 125), (126, 126), (200, 126), (65535, 126), (65536, 127)],
)
def test_length_encoding_round_trip(length, length_byte):
    payload = bytes(i % 251 for i in range(length))
    frame = Frame(FrameFlag.FIN, Opcode.BINARY, payload)
    encoded = encode_frame(frame, masked=False)
    assert encoded[1] & 0x7F == length_byte
    decoded, rest = read_frame(make_recv(encoded), b"", expect_masked=False)
    assert decoded == frame
    assert rest == b""


def test_masked_round_trip_as_server():
    frame = Frame(FrameFlag.FIN | FrameFlag.RSV1, Opcode.TEXT, b"masked data here")
    encoded = encode_frame(frame, masked=True)
    decoded, rest = read_frame(make_recv(encoded), expect_masked=True)
    assert decoded.payload == b"masked data here"
    assert decoded.flags == FrameFlag.FIN | FrameFlag.RSV1
    assert decoded.opcode is Opcode.TEXT
    assert rest == b""


def test_byte_at_a_time_delivery():
    frame = Frame(FrameFlag.FIN, Opcode.BINARY, bytes(range(200)))
    encoded = encode_frame(frame, masked=True)
    decoded, rest = read_frame(make_recv(encoded, chunk=1), expect_masked=True)
    assert decoded == frame
    assert rest == b""


def test_extra_bytes_are_returned_as_leftovers():
    first = Frame(FrameFlag.FIN, Opcode.TEXT, b"one")
    second = Frame(FrameFlag.FIN, Opcode.PING, b"two")
    data = encode_frame(first, False) + encode_frame(second, False)
    decoded, rest = read_frame(make_recv(data))
    assert decoded == first
    assert rest == encode_frame(second, False)

    again, rest2 = read_frame(make_recv(b""), rest)
    assert again == second
    assert rest2 == b""


def test_leftovers_followed_by_more_data():
    frame = Frame(FrameFlag.FIN, Opcode.BINARY, b"abcdefgh")
    encoded = encode_frame(frame, masked=True)
    decoded, rest = read_frame(make_recv(encoded[3:]), encoded[:3], expect_masked=True)
    assert decoded == frame
    assert rest == b""


def test_mask_mismatch_raises():
    encoded = encode_frame(Frame(FrameFlag.FIN, Opcode.TEXT, b"x"), masked=False)
    with pytest.raises(WebSocketError):
        read_frame(make_recv(encoded), expect_masked=True)


def test_masked_frame_rejected_by_client():
    encoded = encode_frame(Frame(FrameFlag.FIN, Opcode.TEXT, b"x"), masked=True)
    with pytest.raises(WebSocketError):
        read_frame(make_recv(encoded), expect_masked=False)


def test_closed_stream_raises():
    with pytest.raises(WebSocketError):
        read_frame(make_recv(b""))


def test_truncated_payload_raises():
    encoded = encode_frame(Frame(FrameFlag.FIN, Opcode.BINARY, bytes(300)), masked=False)
    with pytest.raises(WebSocketError):
        read_frame(make_recv(encoded[:-10]))


def test_truncated_extended_length_raises():
    encoded = encode_frame(Frame(FrameFlag.FIN, Opcode.BINARY, bytes(300)), masked=False)
    with pytest.raises(WebSocketError):
        read_frame(make_recv(encoded[:3]))


def test_reserved_opcode_survives_round_trip():
    frame = Frame(FrameFlag(0), 3, b"r")
    decoded, _ = read_frame(make_recv(encode_frame(frame, False)))
    assert decoded.opcode == 3
    assert decoded.flags == FrameFlag(0)


def test_frame_rejects_wide_opcode():
    with pytest.raises(ValueError):
        Frame(FrameFlag.FIN, 16, b"")


def test_frame_rejects_wide_flags():
    with pytest.raises(ValueError):
        Frame(16, Opcode.TEXT, b"")


def test_flags_and_opcode_share_first_byte():
    frame = Frame(FrameFlag.FIN | FrameFlag.RSV2, Opcode.CLOSE, b"")
    encoded = encode_frame(frame, masked=False)
    assert encoded[0] >> 4 == int(FrameFlag.FIN | FrameFlag.RSV2)
    assert encoded[0] & 0x0F == Opcode.CLOSE