"""Load the stored transcript of a chat."""
import logging
from typing import List, Optional

from docintel_chat.api.chat_api import ChatApiClient
from docintel_chat.api.models import ChatMessageRecord
from docintel_chat.chat_models import ChatMessage, Role

logger = logging.getLogger(__name__)

# error notes persisted by the server are shown like assistant replies
_ROLE_MAP = {
    "user": Role.USER,
    "assistant": Role.ASSISTANT,
    "system": Role.ASSISTANT,
}


def record_to_message(record: ChatMessageRecord) -> Optional[ChatMessage]:
    """Map a transcript record to a message, keeping id and timestamp. None for unknown roles."""
    role = _ROLE_MAP.get(record.role.lower())
    if role is None:
        logger.warning(f"[HISTORY] Skipping message {record.id} with unknown role {record.role!r}")
        return None
    return ChatMessage(id=record.id, role=role, text=record.content, created_at=record.created_at)


class HistoryLoader:
    """Fetch prior messages for a chat through the REST API."""

    def __init__(self, api: ChatApiClient):
        self.api = api

    async def load(self, chat_id: str) -> List[ChatMessage]:
        """Return the transcript of ``chat_id`` in server order.

        Raises ``ChatApiError`` when the request fails.
        """
        records = await self.api.get_messages(chat_id)
        messages = [m for m in (record_to_message(r) for r in records) if m is not None]
        logger.info(f"[HISTORY] Loaded {len(messages)} messages for chat {chat_id}")
        return messages
