"""Socket transport: frame classification, sockets and the reconnecting connection manager."""

from .frames import ChunkFrame, CompletionFrame, InboundFrame, SystemFrame, SystemKind, classify_frame
from .websocket import AiohttpWebSocketTransport, WebSocketChannel, WebSocketTransport
from .connection import ConnectionManager, ConnectionState, ReconnectBackoff

__all__ = [
    "ChunkFrame",
    "CompletionFrame",
    "InboundFrame",
    "SystemFrame",
    "SystemKind",
    "classify_frame",
    "AiohttpWebSocketTransport",
    "WebSocketChannel",
    "WebSocketTransport",
    "ConnectionManager",
    "ConnectionState",
    "ReconnectBackoff",
]
