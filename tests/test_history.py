"""Tests for transcript loading."""
from datetime import datetime

import pytest

from docintel_chat.api.models import ChatMessageRecord
from docintel_chat.chat_models import Role
from docintel_chat.errors import ChatApiError
from docintel_chat.history import HistoryLoader, record_to_message

from .conftest import FakeChatApi


def test_record_mapping():
    """Test that ids, roles, text and timestamps are preserved."""
    record = ChatMessageRecord.model_validate(
        {"id": "u1", "role": "user", "content": "What is the deadline?", "createdAt": "2025-03-01T10:00:00"}
    )
    message = record_to_message(record)
    assert message.id == "u1"
    assert message.role == Role.USER
    assert message.text == "What is the deadline?"
    assert message.created_at == datetime(2025, 3, 1, 10, 0, 0)


def test_system_and_unknown_roles():
    system = ChatMessageRecord(id="s1", role="system", content="Input blocked by guardrails")
    assert record_to_message(system).role == Role.ASSISTANT
    assert record_to_message(ChatMessageRecord(id="a1", role="ASSISTANT", content="x")).role == Role.ASSISTANT
    assert record_to_message(ChatMessageRecord(id="t1", role="tool", content="x")) is None


@pytest.mark.asyncio
async def test_loader_keeps_server_order():
    api = FakeChatApi(records=[
        {"id": "u1", "role": "user", "content": "Q1"},
        {"id": "x1", "role": "moderator", "content": "skipped"},
        {"id": "a1", "role": "assistant", "content": "A1"},
        {"id": "u2", "role": "user", "content": "Q2"},
    ])
    messages = await HistoryLoader(api).load("c1")
    assert [m.id for m in messages] == ["u1", "a1", "u2"]
    assert api.requested == ["c1"]


@pytest.mark.asyncio
async def test_loader_propagates_api_errors():
    api = FakeChatApi(error=ChatApiError("GET failed: 404", status=404))
    with pytest.raises(ChatApiError) as exc_info:
        await HistoryLoader(api).load("missing")
    assert exc_info.value.status == 404
