"""Wire models of the DocIntel REST API.

Fields use snake_case in Python and camelCase on the wire.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ChatMessageRecord(_WireModel):
    """One stored transcript entry."""
    id: str
    role: str
    content: str
    created_at: Optional[datetime] = None


class ChatSummary(_WireModel):
    """A chat as listed by ``GET /api/chats``."""
    id: str
    title: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    has_document: bool = False


class DocumentInfo(_WireModel):
    """Metadata of the document a chat is about."""
    id: Optional[str] = None
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_at: Optional[datetime] = None


class HypotheticalQuestion(_WireModel):
    """A generated question and the chunk it retrieved for a turn."""
    id: Optional[int] = None
    question: str
    chunk: str = ""
    similarity_score: Optional[float] = None


class RetrievalInfo(_WireModel):
    """Retrieval provenance of one user turn."""
    id: Optional[str] = None
    user_question: Optional[str] = None
    # the backend spells it "hypoteticalQuestions"
    hypothetical_questions: list[HypotheticalQuestion] = Field(
        default_factory=list, alias="hypoteticalQuestions"
    )
