"""Rebuild streamed assistant replies from classified frames."""
import logging
from typing import Optional

from docintel_chat.chat_models import ChatHistory, ChatMessage, Role
from docintel_chat.correlator import MessageCorrelator
from docintel_chat.transport.frames import ChunkFrame, CompletionFrame, InboundFrame, SystemFrame, SystemKind

logger = logging.getLogger(__name__)


class StreamReconstructor:
    """Accumulate chunk frames into a single assistant message.

    At most one message is in progress. Each chunk yields a new message value
    that replaces the in-progress entry of the history; published values are
    never modified. Completion and error frames end the stream.
    """

    def __init__(self, correlator: Optional[MessageCorrelator] = None):
        self.correlator = correlator or MessageCorrelator()
        self.in_progress: Optional[ChatMessage] = None
        self._index: Optional[int] = None

    @property
    def is_streaming(self) -> bool:
        return self.in_progress is not None

    def reset(self) -> None:
        """End the current stream, if any."""
        self.in_progress = None
        self._index = None

    def apply(self, history: ChatHistory, frame: InboundFrame) -> ChatHistory:
        """Return the history resulting from ``frame``."""
        if isinstance(frame, ChunkFrame):
            return self._apply_chunk(history, frame.text)
        if isinstance(frame, CompletionFrame):
            self.reset()
            return self.correlator.apply(history, frame)
        if isinstance(frame, SystemFrame):
            if frame.kind == SystemKind.ERROR:
                self.reset()
            return history.append(ChatMessage(role=Role.ASSISTANT, text=frame.text))
        raise TypeError(f"Unsupported frame: {frame!r}")

    def _apply_chunk(self, history: ChatHistory, text: str) -> ChatHistory:
        if not text:
            return history

        if self.in_progress is not None and self._owns_entry(history):
            message = self.in_progress.with_text(self.in_progress.text + text)
            self.in_progress = message
            if self._index == len(history) - 1:
                return history.replace_last(message)
            return history.replace_at(self._index, message)

        message = ChatMessage(role=Role.ASSISTANT, text=text)
        self.in_progress = message
        self._index = len(history)
        logger.debug(f"[STREAM] New assistant message at #{self._index}")
        return history.append(message)

    def _owns_entry(self, history: ChatHistory) -> bool:
        # a welcome banner may have been appended after the stream started
        return (
            self._index is not None
            and self._index < len(history)
            and history[self._index] == self.in_progress
        )
