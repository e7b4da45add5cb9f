from __future__ import annotations
from typing import Callable, Optional, Union

from shared.config import ClientConfig
from shared.envelope import DecodeError, decode
from shared.log import get_logger
from .commands import ClearInput, Commands, SendIntent, SystemNotice
from .dispatcher import OutboundDispatcher
from .identity import Identity
from .reconcile import TypingReconciler
from .renderer import ConsoleRenderer
from .state import ChatState
from .ws_client import ClientSession, Connector

logger = get_logger(__name__)


class ChatClient:
    """
    Wires the pieces together.

    inbound:  socket frame -> decode -> reconciler -> renderer
    outbound: input action -> dispatcher -> session.send
    """

    def __init__(
        self,
        config: ClientConfig,
        renderer: ConsoleRenderer,
        *,
        connector: Optional[Connector] = None,
        on_clear_input: Optional[Callable[[], None]] = None,
    ) -> None:
        self.config = config
        self.renderer = renderer
        self.on_clear_input = on_clear_input
        self.identity = Identity()
        if config.display_name:
            self.identity.set_display_name(config.display_name)
        self.state = ChatState()
        self.reconciler = TypingReconciler(self.identity, self.state)
        self.dispatcher = OutboundDispatcher(self.identity)

        session_kwargs = {}
        if connector is not None:
            session_kwargs["connector"] = connector
        self.session = ClientSession(
            config.server_url,
            self.handle_frame,
            self.notice,
            on_open=self.identity.begin_connection,
            reconnect_delay=config.reconnect_delay,
            ping_interval=config.ping_interval,
            ping_timeout=config.ping_timeout,
            **session_kwargs,
        )

    async def start(self) -> None:
        await self.session.connect()

    async def stop(self) -> None:
        await self.session.close()

    def notice(self, text: str) -> None:
        self.renderer.apply(SystemNotice(text))

    async def handle_frame(self, raw: Union[str, bytes]) -> None:
        try:
            event = decode(raw)
        except DecodeError as e:
            logger.warning(f"Dropping malformed frame: {e}")
            return
        if event is None:
            return
        await self.execute(self.reconciler.handle(event))

    # Input capture entry points

    async def text_changed(self, text: str, name_field: Optional[str] = None) -> None:
        await self.execute(self.dispatcher.on_text_changed(text, name_field))

    async def submit(self, text: str, name_field: Optional[str] = None) -> None:
        await self.execute(self.dispatcher.on_submit(text, name_field))

    async def commit_name(self, raw: Optional[str]) -> None:
        await self.execute(self.dispatcher.on_name_commit(raw))

    async def execute(self, commands: Commands) -> None:
        for command in commands:
            if isinstance(command, SendIntent):
                await self.session.send(command.intent)
            elif isinstance(command, ClearInput):
                if self.on_clear_input is not None:
                    self.on_clear_input()
            else:
                self.renderer.apply(command)
