"""docintel-chat — real-time chat client for the DocIntel document assistant."""

from docintel_chat.chat_models import ChatHistory, ChatMessage, Role
from docintel_chat.config import ChatClientConfig, SystemMarkers
from docintel_chat.errors import ChatApiError, ConnectionNotOpenError, DocIntelError, TransportError
from docintel_chat.transport import (
    ChunkFrame, CompletionFrame, SystemFrame, SystemKind, classify_frame,
    ConnectionManager, ConnectionState, ReconnectBackoff,
)
from docintel_chat.stream import StreamReconstructor
from docintel_chat.correlator import MessageCorrelator
from docintel_chat.session import ChatSession
from docintel_chat.history import HistoryLoader
from docintel_chat.api import ChatApiClient
from docintel_chat.chat_controller import ChatController

__all__ = [
    "ChatHistory",
    "ChatMessage",
    "Role",
    "ChatClientConfig",
    "SystemMarkers",
    "ChatApiError",
    "ConnectionNotOpenError",
    "DocIntelError",
    "TransportError",
    "ChunkFrame",
    "CompletionFrame",
    "SystemFrame",
    "SystemKind",
    "classify_frame",
    "ConnectionManager",
    "ConnectionState",
    "ReconnectBackoff",
    "StreamReconstructor",
    "MessageCorrelator",
    "ChatSession",
    "HistoryLoader",
    "ChatApiClient",
    "ChatController",
    "TerminalChatController",
]


def __getattr__(name: str):
    if name == "TerminalChatController":
        from docintel_chat.terminal import TerminalChatController
        return TerminalChatController
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
