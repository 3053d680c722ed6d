"""WebSocket transports.

The connection manager only talks to ``WebSocketTransport`` and
``WebSocketChannel``; ``AiohttpWebSocketTransport`` is the production
implementation on top of ``aiohttp``.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import aiohttp

from docintel_chat.errors import TransportError

logger = logging.getLogger(__name__)


class WebSocketChannel(ABC):
    """One open socket."""

    @abstractmethod
    async def send_text(self, text: str) -> None:
        """Send a text frame."""
        pass

    @abstractmethod
    async def receive(self) -> Optional[str]:
        """Wait for the next text frame.

        Returns ``None`` once the peer closed the socket and raises
        ``TransportError`` when the socket failed.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the socket."""
        pass


class WebSocketTransport(ABC):
    """Factory for sockets to a given endpoint."""

    @abstractmethod
    async def connect(self, endpoint: str) -> WebSocketChannel:
        """Open a socket, raising ``TransportError`` on failure."""
        pass

    async def close(self) -> None:
        """Release resources shared between sockets."""
        pass


class AiohttpWebSocketChannel(WebSocketChannel):
    """Socket backed by an ``aiohttp.ClientWebSocketResponse``."""

    def __init__(self, ws: aiohttp.ClientWebSocketResponse):
        self._ws = ws

    async def send_text(self, text: str) -> None:
        try:
            await self._ws.send_str(text)
        except (ConnectionResetError, aiohttp.ClientError) as e:
            raise TransportError(f"Send failed: {e}") from e

    async def receive(self) -> Optional[str]:
        while True:
            msg = await self._ws.receive()
            if msg.type == aiohttp.WSMsgType.TEXT:
                return msg.data
            if msg.type == aiohttp.WSMsgType.BINARY:
                return msg.data.decode("utf-8", errors="replace")
            if msg.type == aiohttp.WSMsgType.ERROR:
                raise TransportError(f"Socket error: {self._ws.exception()}")
            if msg.type in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED):
                return None
            # ping/pong frames are answered by aiohttp itself

    async def close(self) -> None:
        if not self._ws.closed:
            await self._ws.close()


class AiohttpWebSocketTransport(WebSocketTransport):
    """Open sockets through a (lazily created) ``aiohttp.ClientSession``."""

    def __init__(self, heartbeat: Optional[float] = 30.0, session: Optional[aiohttp.ClientSession] = None):
        """Initialize the transport.

        Args:
            heartbeat: Ping interval in seconds, ``None`` to disable
            session: Optional session to share; one is created on first use otherwise
        """
        self.heartbeat = heartbeat
        self._session = session
        self._owns_session = session is None

    async def connect(self, endpoint: str) -> WebSocketChannel:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        try:
            ws = await self._session.ws_connect(endpoint, heartbeat=self.heartbeat)
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
            raise TransportError(f"Could not connect to {endpoint}: {e}") from e
        logger.debug(f"[WS] Socket opened: {endpoint}")
        return AiohttpWebSocketChannel(ws)

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None
