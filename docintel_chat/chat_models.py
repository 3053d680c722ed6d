"""Models for chat handling."""
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Role in a chat conversation."""
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """A single message in a chat conversation.

    Messages are immutable. Streaming produces a new value for every chunk
    instead of extending the published one.
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(default=None, description="Server-issued id, unknown for optimistic user messages")
    role: Role
    text: str
    created_at: Optional[datetime] = None

    def with_text(self, text: str) -> "ChatMessage":
        """Return a copy of this message carrying ``text``."""
        return self.model_copy(update={"text": text})

    def with_id(self, message_id: str) -> "ChatMessage":
        """Return a copy of this message carrying the server-issued id."""
        return self.model_copy(update={"id": message_id})


class ChatHistory(BaseModel):
    """Ordered log of chat messages with value semantics.

    Every operation returns a new history; a snapshot handed to an observer
    never changes afterwards.
    """
    model_config = ConfigDict(frozen=True)

    messages: Tuple[ChatMessage, ...] = ()

    def __len__(self) -> int:
        return len(self.messages)

    def __iter__(self):
        return iter(self.messages)

    def __getitem__(self, index):
        return self.messages[index]

    @property
    def is_empty(self) -> bool:
        return not self.messages

    def append(self, message: ChatMessage) -> "ChatHistory":
        """Return a history with ``message`` added at the end."""
        return ChatHistory(messages=self.messages + (message,))

    def replace_last(self, message: ChatMessage) -> "ChatHistory":
        """Return a history whose last entry is ``message``."""
        if not self.messages:
            raise IndexError("Cannot replace the last message of an empty history")
        return ChatHistory(messages=self.messages[:-1] + (message,))

    def replace_at(self, index: int, message: ChatMessage) -> "ChatHistory":
        """Return a history with the entry at ``index`` swapped for ``message``."""
        messages = list(self.messages)
        messages[index] = message
        return ChatHistory(messages=tuple(messages))

    def get_last_message(self) -> Optional[ChatMessage]:
        """Get the last message in the history."""
        return self.messages[-1] if self.messages else None
