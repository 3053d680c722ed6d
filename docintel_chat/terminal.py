#!/usr/bin/env python3
"""Terminal chat client — talk to a DocIntel chat from the console.

Usage::

    docintel-chat <chat_id>
    docintel-chat --list

Commands inside the chat:
    /sources    — show the retrieved chunks behind the last answered question
    /clear      — clear the local message log
    /quit       — leave

Environment variables:
    DOCINTEL_API_URL      — REST base for chats (default: http://localhost:8080/api/chats)
    DOCINTEL_RETRIEVE_URL — REST base for provenance (default: http://localhost:8080/api/retrieve)
    DOCINTEL_WS_URL       — Socket base (default: ws://localhost:8080)
    DOCINTEL_WS_PATH      — Socket path prefix (default: /document-support-agent)
    DOCINTEL_LOG_LEVEL    — Logging level (default: WARNING)

Loads .env from the current working directory or any parent directory.
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Optional, TextIO

from docintel_chat.chat_controller import ChatController
from docintel_chat.chat_models import ChatHistory, Role
from docintel_chat.config import ChatClientConfig
from docintel_chat.errors import ChatApiError
from docintel_chat.transport.connection import ConnectionState

logger = logging.getLogger(__name__)

_PREFIX = {Role.USER: "you", Role.ASSISTANT: "docintel"}


class TerminalChatController(ChatController):
    """ChatController that renders the chat as a plain text stream."""

    def __init__(self, *, out: Optional[TextIO] = None, **kwargs):
        super().__init__(**kwargs)
        self._out = out or sys.stdout
        self._shown = ChatHistory()

    def _write(self, text: str) -> None:
        self._out.write(text)
        self._out.flush()

    @staticmethod
    def _continues(shown: ChatHistory, history: ChatHistory) -> bool:
        if len(history) < len(shown):
            return False
        return all(
            new.role == old.role and new.text.startswith(old.text)
            for old, new in zip(shown, history)
        )

    def _on_history_changed(self, history: ChatHistory) -> None:
        shown = self._shown
        self._shown = history
        if not self._continues(shown, history):
            # log was cleared or replaced by the stored transcript
            shown = ChatHistory()
            if not history.is_empty:
                self._write("\n")

        for index, message in enumerate(history):
            if index < len(shown):
                previous = shown[index]
                if message.text != previous.text and message.text.startswith(previous.text):
                    self._write(message.text[len(previous.text):])
                continue
            self._write(f"\n{_PREFIX[message.role]}> {message.text}")

    def _on_connection_changed(self, state: ConnectionState) -> None:
        if state == ConnectionState.OPEN:
            self._write("\n[connected]")
        elif state == ConnectionState.RECONNECTING:
            self._write("\n[disconnected, reconnecting...]")

    def _on_typing_changed(self, is_typing: bool) -> None:
        if is_typing:
            self._write("\n[docintel is typing...]")

    async def show_sources(self) -> None:
        """Print the provenance of the last answered question."""
        message = next(
            (m for m in reversed(self.history.messages) if m.role == Role.USER and m.id),
            None,
        )
        if message is None:
            self._write("\n[no answered question yet]")
            return
        try:
            info = await self.retrieval_info(message)
        except ChatApiError as e:
            self._write(f"\n[could not load sources: {e}]")
            return
        self._write(f"\n[sources for: {info.user_question or message.text}]")
        for question in info.hypothetical_questions:
            score = f"{question.similarity_score:.3f}" if question.similarity_score is not None else "-"
            self._write(f"\n  ({score}) {question.question}\n    {question.chunk[:200]}")


async def _list_chats(config: ChatClientConfig) -> int:
    from docintel_chat.api.chat_api import ChatApiClient

    async with ChatApiClient(config) as api:
        try:
            chats = await api.list_chats()
        except ChatApiError as e:
            print(f"Could not list chats: {e}", file=sys.stderr)
            return 1
    for chat in chats:
        print(f"{chat.id}  {chat.title or ''}")
    return 0


async def _run_chat(config: ChatClientConfig, chat_id: str) -> int:
    controller = TerminalChatController(config=config)
    loop = asyncio.get_running_loop()
    try:
        await controller.activate_chat(chat_id)
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            text = line.strip()
            if text in ("/quit", "/exit"):
                break
            if text == "/sources":
                await controller.show_sources()
            elif text == "/clear":
                controller.clear_messages()
            elif text:
                await controller.send_message(text)
    finally:
        await controller.close()
        print()
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Load .env, configure logging, and run the terminal chat."""
    from dotenv import load_dotenv, find_dotenv
    load_dotenv(find_dotenv(usecwd=True))

    parser = argparse.ArgumentParser(prog="docintel-chat", description="Chat with a DocIntel document from the terminal.")
    parser.add_argument("chat_id", nargs="?", help="Id of the chat to join")
    parser.add_argument("--list", action="store_true", help="List available chats and exit")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=os.environ.get("DOCINTEL_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )

    config = ChatClientConfig.from_env()
    if args.list:
        return asyncio.run(_list_chats(config))
    if not args.chat_id:
        parser.error("chat_id is required unless --list is given")

    try:
        return asyncio.run(_run_chat(config, args.chat_id))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
