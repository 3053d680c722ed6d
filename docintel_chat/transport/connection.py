"""Socket lifecycle and reconnect policy for one chat session.

``ConnectionManager`` keeps at most one socket alive. A background task runs
the connect → receive → backoff loop; the backoff value lives inside that
loop so two managers (e.g. across a chat switch) never share it. ``stop()``
cancels the loop, which is also the pending reconnect timer, so a close
caused by ``stop()`` never schedules another attempt.
"""
import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from docintel_chat.errors import ConnectionNotOpenError, TransportError
from docintel_chat.transport.websocket import WebSocketChannel, WebSocketTransport

logger = logging.getLogger(__name__)

FrameHandler = Callable[[str], None]
StateHandler = Callable[["ConnectionState"], None]
SleepFunc = Callable[[float], Awaitable[None]]


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    RECONNECTING = "reconnecting"


class ReconnectBackoff:
    """Exponential reconnect delay, doubled per failure and capped."""

    def __init__(self, initial: float = 1.0, maximum: float = 30.0):
        if initial <= 0 or maximum < initial:
            raise ValueError(f"Invalid backoff bounds: initial={initial}, maximum={maximum}")
        self.initial = initial
        self.maximum = maximum
        self.delay = initial

    def reset(self) -> None:
        self.delay = self.initial

    def next_delay(self) -> float:
        """Return the delay to wait now and double it for the following attempt."""
        delay = self.delay
        self.delay = min(self.maximum, self.delay * 2)
        return delay


class ConnectionManager:
    """Own one socket to ``endpoint`` and keep it alive until stopped."""

    def __init__(
        self,
        transport: WebSocketTransport,
        *,
        on_frame: FrameHandler,
        on_state_change: Optional[StateHandler] = None,
        initial_backoff: float = 1.0,
        max_backoff: float = 30.0,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """Initialize the manager.

        Args:
            transport: Opens sockets
            on_frame: Called with every raw text frame received
            on_state_change: Called whenever the connection state changes
            initial_backoff: First reconnect delay in seconds
            max_backoff: Upper bound for the reconnect delay in seconds
            sleep: Awaitable used for the reconnect timer
        """
        self.transport = transport
        self.endpoint: Optional[str] = None
        self.state = ConnectionState.CLOSED
        self.reconnect_delay: Optional[float] = None
        self._on_frame = on_frame
        self._on_state_change = on_state_change
        self._initial_backoff = initial_backoff
        self._max_backoff = max_backoff
        self._sleep = sleep
        self._channel: Optional[WebSocketChannel] = None
        self._task: Optional[asyncio.Task] = None
        self._stopped = False
        self._opened = asyncio.Event()

    @property
    def is_open(self) -> bool:
        return self.state == ConnectionState.OPEN

    @property
    def stopped(self) -> bool:
        return self._stopped

    def open(self, endpoint: str) -> asyncio.Task:
        """Start connecting to ``endpoint`` in the background.

        Must be called from a running event loop. A manager is single-use:
        it cannot be reopened once stopped.
        """
        if self._stopped:
            raise RuntimeError("ConnectionManager was stopped and cannot be reopened")
        if self._task and not self._task.done():
            raise RuntimeError(f"Already connected or connecting to {self.endpoint}")
        # validate before the loop captures it
        ReconnectBackoff(self._initial_backoff, self._max_backoff)
        self.endpoint = endpoint
        self._set_state(ConnectionState.CONNECTING)
        self._task = asyncio.create_task(self._run(endpoint))
        return self._task

    async def wait_until_open(self, timeout: Optional[float] = None) -> bool:
        """Wait until the socket is open. Returns False on timeout."""
        try:
            await asyncio.wait_for(self._opened.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return self.is_open

    async def send(self, text: str) -> None:
        """Send a text frame, raising ``ConnectionNotOpenError`` unless the socket is open."""
        channel = self._channel
        if self.state != ConnectionState.OPEN or channel is None:
            raise ConnectionNotOpenError(f"Connection is {self.state.value}, cannot send")
        try:
            await channel.send_text(text)
        except TransportError as e:
            raise ConnectionNotOpenError(str(e)) from e

    async def stop(self) -> None:
        """Close the socket for good and cancel any pending reconnect. Idempotent."""
        if self._stopped and self._task is None:
            return
        self._stopped = True
        task, self._task = self._task, None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        elif self._channel:
            await self._close_quietly(self._channel)
            self._channel = None
        self.reconnect_delay = None
        self._set_state(ConnectionState.CLOSED)
        logger.info(f"[WS] Stopped connection to {self.endpoint}")

    # ── Connection loop ─────────────────────────────────────────

    async def _run(self, endpoint: str) -> None:
        backoff = ReconnectBackoff(self._initial_backoff, self._max_backoff)
        while not self._stopped:
            logger.info(f"[WS] Connecting to {endpoint}")
            try:
                channel = await self.transport.connect(endpoint)
            except TransportError as e:
                logger.warning(f"[WS] Connect failed: {e}")
            else:
                self._channel = channel
                backoff.reset()
                self.reconnect_delay = None
                self._set_state(ConnectionState.OPEN)
                self._opened.set()
                logger.info(f"[WS] Connected to {endpoint}")
                try:
                    await self._pump(channel)
                except TransportError as e:
                    logger.warning(f"[WS] Transport error: {e}")
                finally:
                    self._channel = None
                    self._opened.clear()
                    await self._close_quietly(channel)

            self._set_state(ConnectionState.CLOSED)
            if self._stopped:
                break

            delay = backoff.next_delay()
            self.reconnect_delay = delay
            self._set_state(ConnectionState.RECONNECTING)
            logger.info(f"[WS] Reconnecting in {delay:.1f}s")
            await self._sleep(delay)
            if not self._stopped:
                self._set_state(ConnectionState.CONNECTING)

    async def _pump(self, channel: WebSocketChannel) -> None:
        while True:
            raw = await channel.receive()
            if raw is None:
                logger.info(f"[WS] Socket closed by peer: {self.endpoint}")
                return
            try:
                self._on_frame(raw)
            except Exception as e:
                logger.error(f"[WS] Frame handler failed: {type(e).__name__}: {e}", exc_info=True)

    async def _close_quietly(self, channel: WebSocketChannel) -> None:
        try:
            await channel.close()
        except Exception as e:
            logger.debug(f"[WS] Close failed: {e}")

    def _set_state(self, state: ConnectionState) -> None:
        if state == self.state:
            return
        self.state = state
        if self._on_state_change:
            try:
                self._on_state_change(state)
            except Exception as e:
                logger.error(f"[WS] State handler failed: {type(e).__name__}: {e}", exc_info=True)
