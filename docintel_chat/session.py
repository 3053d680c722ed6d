"""Message store for one active chat.

A ``ChatSession`` holds the ordered message log, the typing indicator and
the connection state of one chat, and routes classified frames into the log.
Observers get immutable ``ChatHistory`` snapshots through callbacks.
"""
import logging
from typing import Callable, Iterable, Optional

from docintel_chat.chat_models import ChatHistory, ChatMessage, Role
from docintel_chat.config import ChatClientConfig
from docintel_chat.errors import ConnectionNotOpenError
from docintel_chat.stream import StreamReconstructor
from docintel_chat.transport.connection import ConnectionManager, ConnectionState
from docintel_chat.transport.frames import InboundFrame, classify_frame

logger = logging.getLogger(__name__)


class ChatSession:
    """Log, typing indicator and connection state of a single chat."""

    def __init__(
        self,
        *,
        chat_id: str,
        endpoint: str,
        epoch: int = 0,
        config: Optional[ChatClientConfig] = None,
        on_history_changed: Optional[Callable[[ChatHistory], None]] = None,
        on_typing_changed: Optional[Callable[[bool], None]] = None,
        on_connection_changed: Optional[Callable[[ConnectionState], None]] = None,
    ):
        self.chat_id = chat_id
        self.endpoint = endpoint
        self.epoch = epoch
        self.config = config or ChatClientConfig()
        self.history = ChatHistory()
        self.is_typing = False
        self.connection_state = ConnectionState.CLOSED
        self.connection: Optional[ConnectionManager] = None
        self.reconstructor = StreamReconstructor()
        self._on_history_changed = on_history_changed
        self._on_typing_changed = on_typing_changed
        self._on_connection_changed = on_connection_changed

    def attach(self, connection: ConnectionManager) -> None:
        """Use ``connection`` for outbound messages."""
        self.connection = connection

    @property
    def is_connected(self) -> bool:
        return self.connection_state == ConnectionState.OPEN

    @property
    def streaming_message(self) -> Optional[ChatMessage]:
        return self.reconstructor.in_progress

    # ── Outbound ────────────────────────────────────────────────

    async def send(self, text: str) -> bool:
        """Send a question to the backend.

        Empty or whitespace-only input is rejected without touching the log
        or the connection. Returns False when the message could not be sent;
        the caller should then keep its input buffer.
        """
        text = (text or "").strip()
        if not text:
            return False

        self._set_history(self.history.append(ChatMessage(role=Role.USER, text=text)))
        self._set_typing(True)
        self.reconstructor.reset()

        try:
            if self.connection is None:
                raise ConnectionNotOpenError("No connection attached")
            await self.connection.send(text)
        except ConnectionNotOpenError as e:
            logger.warning(f"[SESSION] Send failed for chat {self.chat_id}: {e}")
            self._set_history(self.history.append(
                ChatMessage(role=Role.ASSISTANT, text=self.config.connection_error_text)
            ))
            self._set_typing(False)
            return False

        logger.debug(f"[SESSION] Sent {len(text)} chars to chat {self.chat_id}")
        return True

    # ── Inbound ─────────────────────────────────────────────────

    def handle_raw_frame(self, raw: str) -> InboundFrame:
        """Classify ``raw`` and apply it to the log."""
        frame = classify_frame(raw, self.config.markers)
        self.handle_frame(frame)
        return frame

    def handle_frame(self, frame: InboundFrame) -> None:
        self._set_typing(False)
        self._set_history(self.reconstructor.apply(self.history, frame))

    def handle_connection_state(self, state: ConnectionState) -> None:
        if state == ConnectionState.CLOSED:
            # a dropped socket never resumes a partial reply
            self.reconstructor.reset()
        if state == self.connection_state:
            return
        self.connection_state = state
        if self._on_connection_changed:
            self._on_connection_changed(state)

    def apply_history(self, messages: Iterable[ChatMessage]) -> bool:
        """Seed the log with the stored transcript.

        The transcript is only applied while the log is still empty; once live
        traffic has added anything it is discarded. Returns True if applied.
        """
        if not self.history.is_empty:
            logger.info(f"[SESSION] Chat {self.chat_id} already has live messages, transcript discarded")
            return False
        history = ChatHistory(messages=tuple(messages))
        if history.is_empty:
            return False
        self._set_history(history)
        return True

    def clear(self) -> None:
        """Empty the log and drop any partial reply."""
        self.reconstructor.reset()
        self._set_history(ChatHistory())

    # ── State changes ───────────────────────────────────────────

    def _set_history(self, history: ChatHistory) -> None:
        if history is self.history:
            return
        self.history = history
        if self._on_history_changed:
            self._on_history_changed(history)

    def _set_typing(self, is_typing: bool) -> None:
        if is_typing == self.is_typing:
            return
        self.is_typing = is_typing
        if self._on_typing_changed:
            self._on_typing_changed(is_typing)
