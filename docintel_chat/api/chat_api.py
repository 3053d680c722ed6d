"""Async REST client for the DocIntel chat endpoints."""
import asyncio
import logging
from typing import Any, List, Optional

import aiohttp

from docintel_chat.api.models import ChatMessageRecord, ChatSummary, DocumentInfo, RetrievalInfo
from docintel_chat.config import ChatClientConfig
from docintel_chat.errors import ChatApiError

logger = logging.getLogger(__name__)


class ChatApiClient:
    """Thin wrapper around the chat REST resources.

    The HTTP session is created on first use; call ``close()`` or use the
    client as an async context manager to release it.
    """

    def __init__(self, config: Optional[ChatClientConfig] = None, session: Optional[aiohttp.ClientSession] = None):
        self.config = config or ChatClientConfig()
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "ChatApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers={"Accept": "application/json"})
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request(self, method: str, url: str) -> Any:
        try:
            async with self._get_session().request(method, url) as resp:
                if resp.status >= 400:
                    detail = await resp.text()
                    raise ChatApiError(f"{method} {url} failed: {resp.status} {detail[:200]}", status=resp.status)
                if resp.status == 204:
                    return None
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ChatApiError(f"{method} {url} failed: {e}") from e

    def _chat_url(self, *parts: str) -> str:
        return "/".join([self.config.api_base_url.rstrip("/"), *parts])

    @staticmethod
    def _as_list(data: Any, url: str) -> list:
        if data is None:
            return []
        if not isinstance(data, list):
            raise ChatApiError(f"GET {url} returned {type(data).__name__}, expected a list")
        return data

    # ── Chats ───────────────────────────────────────────────────

    async def list_chats(self) -> List[ChatSummary]:
        url = self._chat_url()
        data = await self._request("GET", url)
        return [ChatSummary.model_validate(item) for item in self._as_list(data, url)]

    async def get_chat(self, chat_id: str) -> ChatSummary:
        data = await self._request("GET", self._chat_url(chat_id))
        return ChatSummary.model_validate(data)

    async def delete_chat(self, chat_id: str) -> None:
        await self._request("DELETE", self._chat_url(chat_id))
        logger.info(f"[API] Deleted chat {chat_id}")

    async def get_messages(self, chat_id: str) -> List[ChatMessageRecord]:
        """Fetch the stored transcript of a chat, oldest first."""
        url = self.config.messages_url(chat_id)
        data = await self._request("GET", url)
        return [ChatMessageRecord.model_validate(item) for item in self._as_list(data, url)]

    async def get_document(self, chat_id: str) -> DocumentInfo:
        data = await self._request("GET", self._chat_url(chat_id, "document"))
        return DocumentInfo.model_validate(data)

    # ── Retrieval provenance ────────────────────────────────────

    async def get_retrieval_info(self, message_id: str) -> RetrievalInfo:
        """Fetch which chunks were retrieved to answer the user turn ``message_id``."""
        url = f"{self.config.retrieval_base_url.rstrip('/')}/{message_id}"
        data = await self._request("GET", url)
        return RetrievalInfo.model_validate(data or {})
