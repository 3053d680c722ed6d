"""Classification of inbound socket frames.

The backend multiplexes three kinds of payload over one text channel:

- plain text fragments of the reply being generated,
- a JSON object ``{"messageId": ..., "content": ...}`` closing the turn,
- fixed banner/error phrases that are not part of any reply.

``classify_frame`` maps a raw payload to exactly one of ``ChunkFrame``,
``CompletionFrame`` or ``SystemFrame``. The structured parse is tried first,
marker matching second, and everything else is reply text.
"""
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from docintel_chat.config import SystemMarkers

logger = logging.getLogger(__name__)

_DEFAULT_MARKERS = SystemMarkers()


class SystemKind(str, Enum):
    WELCOME = "welcome"
    ERROR = "error"


@dataclass(frozen=True)
class ChunkFrame:
    """Fragment of the assistant reply currently streaming."""
    text: str


@dataclass(frozen=True)
class CompletionFrame:
    """End of a turn, carrying the server-issued id of the user's message."""
    message_id: str
    content: str
    status: str = "complete"


@dataclass(frozen=True)
class SystemFrame:
    """Welcome banner or server-side error note."""
    kind: SystemKind
    text: str


InboundFrame = Union[ChunkFrame, CompletionFrame, SystemFrame]


def _parse_completion(raw: str) -> Optional[CompletionFrame]:
    """Return a completion frame if ``raw`` is a JSON object with both required fields."""
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    message_id = payload.get("messageId")
    content = payload.get("content")
    if not isinstance(message_id, str) or not isinstance(content, str):
        logger.debug("[FRAME] JSON payload without messageId/content, treating as text")
        return None
    status = payload.get("type")
    return CompletionFrame(
        message_id=message_id,
        content=content,
        status=status if isinstance(status, str) and status else "complete",
    )


def _match_marker(raw: str, markers: SystemMarkers) -> Optional[SystemKind]:
    if any(marker in raw for marker in markers.welcome):
        return SystemKind.WELCOME
    if any(marker in raw for marker in markers.error):
        return SystemKind.ERROR
    return None


def classify_frame(raw: str, markers: Optional[SystemMarkers] = None) -> InboundFrame:
    """Classify a raw text payload received over the socket.

    :param raw: Payload exactly as received
    :param markers: Known system phrases, defaults to the DocIntel set
    :return: The tagged frame
    """
    completion = _parse_completion(raw)
    if completion is not None:
        return completion

    kind = _match_marker(raw, markers or _DEFAULT_MARKERS)
    if kind is not None:
        return SystemFrame(kind=kind, text=raw)

    return ChunkFrame(text=raw)
