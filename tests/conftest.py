"""Test configuration and fixtures."""
import asyncio
from typing import Callable, List, Optional

import pytest

from docintel_chat.api.chat_api import ChatApiClient
from docintel_chat.api.models import ChatMessageRecord, RetrievalInfo
from docintel_chat.chat_controller import ChatController
from docintel_chat.chat_models import ChatHistory
from docintel_chat.config import ChatClientConfig
from docintel_chat.errors import ChatApiError, TransportError
from docintel_chat.transport.connection import ConnectionState
from docintel_chat.transport.websocket import WebSocketChannel, WebSocketTransport


class FakeChannel(WebSocketChannel):
    """In-memory socket. Frames pushed by the test are returned by ``receive``."""

    def __init__(self):
        self.sent: List[str] = []
        self.closed = False
        self._inbox: asyncio.Queue = asyncio.Queue()

    def push(self, raw: str) -> None:
        self._inbox.put_nowait(raw)

    def drop(self) -> None:
        """Simulate the peer closing the socket."""
        self._inbox.put_nowait(None)

    def fail(self, message: str = "connection reset") -> None:
        self._inbox.put_nowait(TransportError(message))

    async def send_text(self, text: str) -> None:
        if self.closed:
            raise TransportError("socket closed")
        self.sent.append(text)

    async def receive(self) -> Optional[str]:
        item = await self._inbox.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._inbox.put_nowait(None)


class FakeTransport(WebSocketTransport):
    """Hands out ``FakeChannel`` sockets, optionally refusing the first attempts."""

    def __init__(self, fail_times: int = 0, always_fail: bool = False):
        self.fail_times = fail_times
        self.always_fail = always_fail
        self.endpoints: List[str] = []
        self.channels: List[FakeChannel] = []
        self.closed = False

    @property
    def latest(self) -> FakeChannel:
        return self.channels[-1]

    async def connect(self, endpoint: str) -> WebSocketChannel:
        self.endpoints.append(endpoint)
        if self.always_fail or self.fail_times > 0:
            self.fail_times -= 1
            raise TransportError(f"connection refused: {endpoint}")
        channel = FakeChannel()
        self.channels.append(channel)
        return channel

    async def close(self) -> None:
        self.closed = True


class RecordingSleep:
    """Reconnect timer that records delays instead of waiting.

    After ``limit`` calls it blocks until cancelled.
    """

    def __init__(self, limit: Optional[int] = None):
        self.limit = limit
        self.delays: List[float] = []
        self.reached = asyncio.Event()

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.limit is not None and len(self.delays) >= self.limit:
            self.reached.set()
            await asyncio.Event().wait()
        await asyncio.sleep(0)


class FakeChatApi(ChatApiClient):
    """REST client serving canned transcripts; ``gate`` holds responses back until set.

    ``records`` is either one transcript for every chat or a dict keyed by chat id.
    """

    def __init__(self, records=None, error: Optional[Exception] = None):
        super().__init__(ChatClientConfig())
        self.records = records or []
        self.error = error
        self.gate = asyncio.Event()
        self.gate.set()
        self.requested: List[str] = []
        self.retrieval_requests: List[str] = []
        self.closed = False

    async def get_messages(self, chat_id: str) -> List[ChatMessageRecord]:
        self.requested.append(chat_id)
        await self.gate.wait()
        if self.error:
            raise self.error
        records = self.records.get(chat_id, []) if isinstance(self.records, dict) else self.records
        return [ChatMessageRecord.model_validate(r) for r in records]

    async def get_retrieval_info(self, message_id: str) -> RetrievalInfo:
        self.retrieval_requests.append(message_id)
        if self.error:
            raise self.error
        return RetrievalInfo.model_validate({"id": "r1", "userQuestion": "q", "hypoteticalQuestions": []})

    async def close(self) -> None:
        self.closed = True


class RecordingController(ChatController):
    """ChatController that records every hook call."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.histories: List[ChatHistory] = []
        self.states: List[ConnectionState] = []
        self.typing: List[bool] = []

    def _on_history_changed(self, history: ChatHistory) -> None:
        self.histories.append(history)

    def _on_connection_changed(self, state: ConnectionState) -> None:
        self.states.append(state)

    def _on_typing_changed(self, is_typing: bool) -> None:
        self.typing.append(is_typing)


async def wait_for(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Yield to the event loop until ``predicate`` holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met in time")
        await asyncio.sleep(0.001)


HISTORY_RECORDS = [
    {"id": "u1", "role": "user", "content": "What is the deadline?", "createdAt": "2025-03-01T10:00:00"},
    {"id": "a1", "role": "assistant", "content": "The deadline is May 5th.", "createdAt": "2025-03-01T10:00:05"},
]


@pytest.fixture
def config():
    return ChatClientConfig(ws_base_url="ws://backend.test", api_base_url="http://backend.test/api/chats")


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def api():
    return FakeChatApi(records=HISTORY_RECORDS)


@pytest.fixture
def chat_api_error():
    return ChatApiError("GET failed: 500", status=500)
