"""Attach server-issued turn ids to optimistically rendered user messages."""
import logging

from docintel_chat.chat_models import ChatHistory, Role
from docintel_chat.transport.frames import CompletionFrame

logger = logging.getLogger(__name__)


class MessageCorrelator:
    """Bind completion frames to the most recent user message still lacking an id.

    The protocol carries no client-chosen correlation id, so this relies on
    one outstanding question at a time.
    """

    def __init__(self):
        self.unmatched_count = 0

    def apply(self, history: ChatHistory, frame: CompletionFrame) -> ChatHistory:
        """Return ``history`` with ``frame.message_id`` assigned, or unchanged when nothing matches."""
        for index in range(len(history) - 1, -1, -1):
            message = history[index]
            if message.role == Role.USER and message.id is None:
                logger.debug(f"[CORRELATE] Assigned id {frame.message_id} to message #{index}")
                return history.replace_at(index, message.with_id(frame.message_id))

        self.unmatched_count += 1
        logger.info(f"[CORRELATE] No pending user message for completion {frame.message_id}, discarded")
        return history
