"""Base ChatController owning the active chat session.

Views (terminal, GUI) subclass this and implement the abstract hooks for
rendering. Session lifecycle, reconnects and history loading happen here.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from pydantic import ValidationError

from docintel_chat.api.chat_api import ChatApiClient
from docintel_chat.api.models import RetrievalInfo
from docintel_chat.chat_models import ChatHistory, ChatMessage, Role
from docintel_chat.config import ChatClientConfig
from docintel_chat.errors import ChatApiError
from docintel_chat.history import HistoryLoader
from docintel_chat.session import ChatSession
from docintel_chat.transport.connection import ConnectionManager, ConnectionState, SleepFunc
from docintel_chat.transport.websocket import AiohttpWebSocketTransport, WebSocketTransport

logger = logging.getLogger(__name__)


class ChatController(ABC):
    """Base chat controller with all session logic.

    Exactly one session is active at a time. Every callback bound to a
    session carries the epoch it was created under and is ignored once the
    controller has moved on to a newer session.
    """

    def __init__(
        self,
        *,
        config: Optional[ChatClientConfig] = None,
        transport: Optional[WebSocketTransport] = None,
        api: Optional[ChatApiClient] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """Initialize controller with configuration.

        Args:
            config: Endpoints, backoff bounds and system markers
            transport: Socket factory (default: aiohttp)
            api: REST client used for transcripts and provenance
            sleep: Awaitable used for reconnect timers
        """
        self.config = config or ChatClientConfig()
        self.transport = transport or AiohttpWebSocketTransport(heartbeat=self.config.heartbeat)
        self.api = api or ChatApiClient(self.config)
        self.history_loader = HistoryLoader(self.api)
        self.epoch = 0
        self.session: Optional[ChatSession] = None
        self._history_task: Optional[asyncio.Task] = None
        self._sleep = sleep

    @property
    def chat_id(self) -> Optional[str]:
        return self.session.chat_id if self.session else None

    @property
    def history(self) -> ChatHistory:
        """Current log snapshot, empty when no chat is active."""
        return self.session.history if self.session else ChatHistory()

    @property
    def is_connected(self) -> bool:
        return bool(self.session and self.session.is_connected)

    @property
    def is_typing(self) -> bool:
        return bool(self.session and self.session.is_typing)

    # ========== SESSION LIFECYCLE ==========

    async def activate_chat(self, chat_id: str) -> ChatSession:
        """Tear down the current session and start one for ``chat_id``.

        The socket is opened and the transcript requested concurrently.
        """
        if not chat_id:
            raise ValueError("chat_id is required")
        endpoint = self.config.endpoint_for(chat_id)

        await self._teardown()
        epoch = self.epoch

        session = ChatSession(
            chat_id=chat_id,
            endpoint=endpoint,
            epoch=epoch,
            config=self.config,
            on_history_changed=self._guard(epoch, self._on_history_changed),
            on_typing_changed=self._guard(epoch, self._on_typing_changed),
            on_connection_changed=self._guard(epoch, self._on_connection_changed),
        )
        connection = ConnectionManager(
            self.transport,
            on_frame=self._guard(epoch, session.handle_raw_frame),
            on_state_change=self._guard(epoch, session.handle_connection_state),
            initial_backoff=self.config.initial_backoff,
            max_backoff=self.config.max_backoff,
            sleep=self._sleep,
        )
        session.attach(connection)
        connection.open(endpoint)
        self.session = session
        logger.info(f"[CONTROLLER] Activated chat {chat_id} (epoch {epoch})")

        self._on_history_changed(session.history)
        self._history_task = asyncio.create_task(self._load_history(epoch, session))
        return session

    async def deactivate(self) -> None:
        """Tear down the active session, e.g. when the view closes."""
        await self._teardown()

    async def close(self) -> None:
        """Tear down the active session and release sockets and HTTP resources."""
        await self._teardown()
        await self.transport.close()
        await self.api.close()

    async def wait_until_connected(self, timeout: Optional[float] = None) -> bool:
        if not self.session or not self.session.connection:
            return False
        return await self.session.connection.wait_until_open(timeout)

    async def _teardown(self) -> None:
        # bump the epoch before awaiting anything so in-flight callbacks go stale
        self.epoch += 1
        session, self.session = self.session, None
        history_task, self._history_task = self._history_task, None

        if history_task and not history_task.done():
            history_task.cancel()
        if session is None:
            return

        session.clear()
        if session.connection:
            await session.connection.stop()
        logger.info(f"[CONTROLLER] Tore down chat {session.chat_id} (epoch {session.epoch})")

    def _guard(self, epoch: int, callback: Callable[..., Any]) -> Callable[..., Any]:
        """Wrap ``callback`` so it does nothing once ``epoch`` is outdated."""
        def guarded(*args):
            if epoch != self.epoch:
                logger.debug(f"[CONTROLLER] Dropped stale callback from epoch {epoch} (now {self.epoch})")
                return None
            return callback(*args)
        return guarded

    async def _load_history(self, epoch: int, session: ChatSession) -> None:
        try:
            messages = await self.history_loader.load(session.chat_id)
        except (ChatApiError, ValidationError) as e:
            logger.warning(f"[HISTORY] Could not load history for chat {session.chat_id}: {e}")
            return
        if epoch != self.epoch:
            logger.debug(f"[HISTORY] Chat {session.chat_id} was left before its history arrived")
            return
        session.apply_history(messages)

    # ========== BUSINESS LOGIC ==========

    async def send_message(self, text: str) -> bool:
        """Send a question in the active chat. Returns False if nothing was sent."""
        if self.session is None:
            logger.warning("[CONTROLLER] send_message called without an active chat")
            return False
        return await self.session.send(text)

    def clear_messages(self) -> None:
        if self.session:
            self.session.clear()

    async def retrieval_info(self, message: ChatMessage) -> RetrievalInfo:
        """Fetch the retrieval provenance of an answered user turn."""
        if message.role != Role.USER or not message.id:
            raise ValueError("Provenance is only available for user messages with a server id")
        return await self.api.get_retrieval_info(message.id)

    # ========== ABSTRACT HOOKS (subclasses implement) ==========

    @abstractmethod
    def _on_history_changed(self, history: ChatHistory) -> None:
        """Called after every change of the message log.

        Args:
            history: Immutable snapshot of the full log
        """
        pass

    @abstractmethod
    def _on_connection_changed(self, state: ConnectionState) -> None:
        """Called when the socket state of the active chat changes.

        Args:
            state: New connection state
        """
        pass

    @abstractmethod
    def _on_typing_changed(self, is_typing: bool) -> None:
        """Called when the assistant typing indicator toggles.

        View should show or hide its "assistant is typing" hint.
        """
        pass
