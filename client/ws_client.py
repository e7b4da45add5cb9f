from __future__ import annotations
import asyncio
from contextlib import suppress
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Set

import websockets
import websockets.exceptions

from shared.envelope import OutboundIntent, encode
from shared.log import get_logger, log_chat_event

logger = get_logger(__name__)


FrameHandler = Callable[[str], Awaitable[None]]
NoticeHandler = Callable[[str], None]
Connector = Callable[..., Awaitable[Any]]

RECONNECT_DELAY = 3.0

NOTICE_CONNECTED = "Connected to chat server"
NOTICE_DISCONNECTED = "Disconnected from server. Trying to reconnect..."
NOTICE_ERROR = "Connection error occurred"

# What websockets.connect raises for refused/unreachable/bad handshake
_CONNECT_ERRORS = (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException)


class SessionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class ClientSession:
    """
    The single relay connection and its reconnect loop.

    connecting -> open -> closed -> connecting -> ...

    Every close (clean or not, including a failed connect) schedules
    exactly one connect() after reconnect_delay. The delay never grows and
    attempts never stop; a pending timer is not cancelled when another
    attempt succeeds first. Errors only produce a notice, reconnection is
    driven by the close that follows.
    """

    def __init__(
        self,
        endpoint: str,
        on_frame: FrameHandler,
        on_notice: NoticeHandler,
        *,
        on_open: Optional[Callable[[], None]] = None,
        reconnect_delay: float = RECONNECT_DELAY,
        ping_interval: Optional[float] = 15,
        ping_timeout: Optional[float] = 45,
        connector: Connector = websockets.connect,
    ) -> None:
        self.endpoint = endpoint
        self.on_frame = on_frame
        self.on_notice = on_notice
        self.on_open = on_open
        self.reconnect_delay = reconnect_delay
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self._connector = connector

        self.state = SessionState.CLOSED
        self.websocket: Optional[Any] = None
        self.reconnect_attempts = 0
        self._shutting_down = False
        self._timers: Set[asyncio.TimerHandle] = set()
        self._background_tasks: Set[asyncio.Task] = set()

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN

    async def connect(self) -> None:
        """Open the relay connection and start reading from it"""
        if self._shutting_down:
            return
        self.state = SessionState.CONNECTING
        logger.info("Connecting", extra={"endpoint": self.endpoint})
        try:
            websocket = await self._connector(
                self.endpoint,
                ping_interval=self.ping_interval,
                ping_timeout=self.ping_timeout,
            )
        except _CONNECT_ERRORS as e:
            logger.warning(f"Connect to {self.endpoint} failed: {e}")
            self.on_notice(NOTICE_ERROR)
            self._handle_close()
            return

        self.websocket = websocket
        self.state = SessionState.OPEN
        logger.info("Connected to server", extra={"endpoint": self.endpoint})
        self.on_notice(NOTICE_CONNECTED)
        if self.on_open is not None:
            self.on_open()
        self._track_background_task(asyncio.create_task(self.recv_loop(websocket)))

    async def recv_loop(self, websocket: Any) -> None:
        try:
            async for raw in websocket:
                try:
                    if isinstance(raw, bytes):
                        raw = raw.decode('utf-8')
                    await self.on_frame(raw)
                except Exception as e:
                    logger.error("Failed to process inbound frame: %s", e)
        except websockets.exceptions.ConnectionClosedError as e:
            logger.warning(f"Connection lost: {e}")
            self.on_notice(NOTICE_ERROR)
        finally:
            if websocket is self.websocket:
                self.websocket = None
            self._handle_close()

    async def send(self, intent: OutboundIntent) -> bool:
        """
        Send an intent if the connection is open.

        Anything sent while connecting or closed is dropped, not queued.
        """
        websocket = self.websocket
        if self.state is not SessionState.OPEN or websocket is None:
            logger.debug(f"Dropped {intent.type.value} while {self.state.value}")
            return False
        try:
            await websocket.send(encode(intent))
        except websockets.exceptions.ConnectionClosed:
            logger.warning(f"Connection closed while sending {intent.type.value}")
            return False
        log_chat_event(logger, "debug", "Sent frame", frame=intent.to_dict())
        return True

    async def close(self) -> None:
        """Stop reconnecting and close the socket (process exit only)"""
        self._shutting_down = True
        for handle in list(self._timers):
            handle.cancel()
        self._timers.clear()
        websocket, self.websocket = self.websocket, None
        if websocket is not None:
            with suppress(Exception):
                await websocket.close(code=1000)
        for task in list(self._background_tasks):
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        self.state = SessionState.CLOSED

    def _handle_close(self) -> None:
        self.state = SessionState.CLOSED
        if self._shutting_down:
            return
        logger.info(f"Disconnected, reconnecting in {self.reconnect_delay}s")
        self.on_notice(NOTICE_DISCONNECTED)
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        loop = asyncio.get_running_loop()
        handle: Optional[asyncio.TimerHandle] = None

        def fire() -> None:
            self._timers.discard(handle)
            self.reconnect_attempts += 1
            self._track_background_task(asyncio.create_task(self.connect()))

        handle = loop.call_later(self.reconnect_delay, fire)
        self._timers.add(handle)

    def _track_background_task(self, task: asyncio.Task) -> None:
        """Keep a strong reference to background tasks until completion."""
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
