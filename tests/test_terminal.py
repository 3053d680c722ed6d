"""Tests for the terminal view."""
import io

import pytest

from docintel_chat.chat_models import ChatHistory, ChatMessage, Role
from docintel_chat.errors import ChatApiError
from docintel_chat.terminal import TerminalChatController, main
from docintel_chat.transport.connection import ConnectionState

from .conftest import FakeChatApi, FakeTransport


@pytest.fixture
def out():
    return io.StringIO()


@pytest.fixture
def view(out):
    return TerminalChatController(out=out, transport=FakeTransport(), api=FakeChatApi())


def _history(*messages):
    return ChatHistory(messages=tuple(messages))


def test_streamed_reply_is_printed_incrementally(view, out):
    question = ChatMessage(role=Role.USER, text="Hi")
    view._on_history_changed(_history(question))
    view._on_history_changed(_history(question, ChatMessage(role=Role.ASSISTANT, text="Hel")))
    view._on_history_changed(_history(question, ChatMessage(role=Role.ASSISTANT, text="Hello")))
    # id assignment alone prints nothing
    view._on_history_changed(_history(question.with_id("m1"), ChatMessage(role=Role.ASSISTANT, text="Hello")))

    assert out.getvalue() == "\nyou> Hi\ndocintel> Hello"


def test_replaced_history_is_reprinted(view, out):
    view._on_history_changed(_history(ChatMessage(role=Role.ASSISTANT, text="Welcome")))
    view._on_history_changed(_history(ChatMessage(id="u1", role=Role.USER, text="Old question")))

    assert out.getvalue().endswith("\n\nyou> Old question")


def test_status_lines(view, out):
    view._on_connection_changed(ConnectionState.OPEN)
    view._on_connection_changed(ConnectionState.RECONNECTING)
    view._on_connection_changed(ConnectionState.CONNECTING)
    view._on_typing_changed(True)
    view._on_typing_changed(False)

    assert out.getvalue() == "\n[connected]\n[disconnected, reconnecting...]\n[docintel is typing...]"


@pytest.mark.asyncio
async def test_show_sources_without_answered_question(view, out):
    await view.show_sources()
    assert "[no answered question yet]" in out.getvalue()


@pytest.mark.asyncio
async def test_show_sources(out):
    api = FakeChatApi(records=[{"id": "u1", "role": "user", "content": "Q"}])
    view = TerminalChatController(out=out, transport=FakeTransport(), api=api)
    await view.activate_chat("c1")
    await view._history_task

    await view.show_sources()
    assert api.retrieval_requests == ["u1"]
    assert "[sources for: q]" in out.getvalue()

    api.error = ChatApiError("GET failed: 503", status=503)
    await view.show_sources()
    assert "[could not load sources:" in out.getvalue()

    await view.close()


def test_main_requires_chat_id(capsys):
    with pytest.raises(SystemExit):
        main([])
    assert "chat_id is required" in capsys.readouterr().err
