#!/usr/bin/env python3
"""Local demo — run the mock DocIntel backend and chat with it from a terminal.

    cd samples/chat
    python app.py
    docintel-chat demo          # in a second terminal

Type "forbidden" into a question to see the guardrail error reply, stop and
restart this script to watch the client reconnect.

Environment variables:
    PORT            — Server port (default: 8080)
    HOST            — Bind address (default: 127.0.0.1)
"""
from docintel_chat.mock_server import main

if __name__ == "__main__":
    main()
