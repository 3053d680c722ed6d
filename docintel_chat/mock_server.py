"""Mock DocIntel backend — run the chat client without the real server.

Usage::

    docintel-mock
    PORT=9000 docintel-mock

Streams a canned answer word by word over
``/document-support-agent/{chat_id}`` and finishes every turn with the
completion JSON frame, like the real backend. Questions containing a blocked
word get the guardrail error reply instead. Transcripts are kept in memory
and served on ``/api/chats/{chat_id}/messages``.

Environment variables:
    PORT            — Server port (default: 8080)
    HOST            — Bind address (default: 127.0.0.1)
"""

import asyncio
import json
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import uuid4

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "Welcome to DocIntel! Connected to chat '{title}'. How can I help you?"
GUARDRAIL_MESSAGE = "Sorry, I am unable to process your request at the moment. It's not something I'm allowed to do."
DEFAULT_ANSWER = "Based on the document you uploaded, the answer to \"{question}\" is covered in section 2."


@dataclass
class MockChat:
    id: str
    title: str
    created_at: datetime = field(default_factory=datetime.now)
    messages: list[dict] = field(default_factory=list)

    def add_message(self, role: str, content: str) -> dict:
        message = {
            "id": str(uuid4()),
            "role": role,
            "content": content,
            "createdAt": datetime.now().isoformat(),
        }
        self.messages.append(message)
        return message


class MockChatStore:
    """In-memory chats keyed by id."""

    def __init__(self):
        self.chats: dict[str, MockChat] = {}

    def get_or_create(self, chat_id: str) -> MockChat:
        chat = self.chats.get(chat_id)
        if chat is None:
            chat = MockChat(id=chat_id, title=f"Chat {chat_id}")
            self.chats[chat_id] = chat
            logger.info(f"[MOCK] Created chat {chat_id}")
        return chat

    def find_message(self, message_id: str) -> Optional[dict]:
        for chat in self.chats.values():
            for message in chat.messages:
                if message["id"] == message_id:
                    return message
        return None


def split_chunks(text: str) -> list[str]:
    """Split ``text`` into word-sized chunks that concatenate back to it."""
    return re.findall(r"\S+\s*", text) or [text]


def create_app(
    answer_template: str = DEFAULT_ANSWER,
    chunk_delay: float = 0.05,
    blocked_words: tuple[str, ...] = ("forbidden",),
):
    """Create the FastAPI application.

    Args:
        answer_template: Reply text, ``{question}`` is replaced by the question
        chunk_delay: Pause in seconds between streamed chunks
        blocked_words: Words that trigger the guardrail error reply
    """
    from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
    from fastapi.responses import Response

    store = MockChatStore()
    store.get_or_create("demo").title = "Demo document"

    _app = FastAPI(title="DocIntel mock backend", docs_url=None, redoc_url=None)
    _app.state.store = store

    def _summary(chat: MockChat) -> dict:
        return {
            "id": chat.id,
            "title": chat.title,
            "createdAt": chat.created_at.isoformat(),
            "updatedAt": chat.created_at.isoformat(),
            "hasDocument": True,
        }

    def _get_chat(chat_id: str) -> MockChat:
        chat = store.chats.get(chat_id)
        if chat is None:
            raise HTTPException(status_code=404, detail=f"Chat {chat_id} not found")
        return chat

    @_app.get("/api/chats")
    async def list_chats():
        return [_summary(chat) for chat in store.chats.values()]

    @_app.get("/api/chats/{chat_id}")
    async def get_chat(chat_id: str):
        return _summary(_get_chat(chat_id))

    @_app.delete("/api/chats/{chat_id}")
    async def delete_chat(chat_id: str):
        _get_chat(chat_id)
        del store.chats[chat_id]
        return Response(status_code=204)

    @_app.get("/api/chats/{chat_id}/messages")
    async def get_messages(chat_id: str):
        return _get_chat(chat_id).messages

    @_app.get("/api/chats/{chat_id}/document")
    async def get_document(chat_id: str):
        chat = _get_chat(chat_id)
        return {
            "id": chat.id,
            "fileName": f"{chat.title}.pdf",
            "fileType": "application/pdf",
            "fileSize": 1024,
            "uploadedAt": chat.created_at.isoformat(),
        }

    @_app.get("/api/retrieve/{message_id}")
    async def retrieve(message_id: str):
        message = store.find_message(message_id)
        if message is None or message["role"] != "user":
            raise HTTPException(status_code=404, detail=f"Message {message_id} not found")
        return {
            "id": str(uuid4()),
            "userQuestion": message["content"],
            "hypoteticalQuestions": [
                {
                    "id": 1,
                    "question": f"What does the document say about {message['content']}?",
                    "chunk": "Section 2 of the document discusses this topic in detail.",
                    "similarityScore": "0.82",
                },
            ],
        }

    @_app.websocket("/document-support-agent/{chat_id}")
    async def chat_socket(ws: WebSocket, chat_id: str):
        await ws.accept()
        chat = store.get_or_create(chat_id)
        logger.info(f"[MOCK] Client connected to chat {chat_id}")

        if not chat.messages:
            await ws.send_text(WELCOME_MESSAGE.format(title=chat.title))

        try:
            while True:
                question = await ws.receive_text()
                user_message = chat.add_message("user", question)

                if any(word in question.lower() for word in blocked_words):
                    reply, status = GUARDRAIL_MESSAGE, "error"
                    chat.add_message("system", "Input blocked by guardrails")
                    await ws.send_text(reply)
                else:
                    reply, status = answer_template.format(question=question), "complete"
                    for chunk in split_chunks(reply):
                        await ws.send_text(chunk)
                        if chunk_delay:
                            await asyncio.sleep(chunk_delay)
                    chat.add_message("assistant", reply)

                await ws.send_text(json.dumps({
                    "messageId": user_message["id"],
                    "content": reply,
                    "type": status,
                }))
        except WebSocketDisconnect:
            logger.info(f"[MOCK] Client disconnected from chat {chat_id}")

    return _app


def main():
    """Start the mock backend with uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )
    host = os.environ.get("HOST", "127.0.0.1")
    port = int(os.environ.get("PORT", "8080"))

    print(f"\n  DocIntel mock backend → http://{host}:{port}\n")
    uvicorn.run(
        "docintel_chat.mock_server:create_app",
        factory=True,
        host=host,
        port=port,
    )


if __name__ == "__main__":
    main()
