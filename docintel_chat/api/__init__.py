"""REST client for the chat backend."""

from .chat_api import ChatApiClient
from .models import ChatMessageRecord, ChatSummary, DocumentInfo, HypotheticalQuestion, RetrievalInfo

__all__ = [
    "ChatApiClient",
    "ChatMessageRecord",
    "ChatSummary",
    "DocumentInfo",
    "HypotheticalQuestion",
    "RetrievalInfo",
]
