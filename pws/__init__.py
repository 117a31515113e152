"""WebSocket client over caller-supplied send and recv callables: handshake, framing, messages."""

__version__ = "0.1.0"

__all__ = ["frame", "protocol", "websocket"]