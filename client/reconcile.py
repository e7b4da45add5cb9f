from __future__ import annotations
from typing import Optional

from shared.envelope import ChatMessage, InboundEvent, StoppedTyping, TypingUpdate, Welcome
from shared.log import get_logger
from shared.utils import is_blank
from .commands import AppendFinalMessage, Commands, RemoveTypingPreview, RenderTypingPreview
from .identity import Identity
from .state import ChatState, FinalMessage, TypingEntry

logger = get_logger(__name__)


class TypingReconciler:
    """
    Folds the relay's event stream into one live preview per remote user.

    A preview is created by the first non-blank typing event for a
    username, overwritten by later ones, and retired by blank text, an
    explicit stop-typing event, or that user's final message.
    """

    def __init__(self, identity: Identity, state: Optional[ChatState] = None) -> None:
        self.identity = identity
        self.state = state if state is not None else ChatState()

    def handle(self, event: InboundEvent) -> Commands:
        if isinstance(event, Welcome):
            self.identity.observe_welcome(event.client_id)
            return []
        if isinstance(event, TypingUpdate):
            return self.on_typing(event)
        if isinstance(event, ChatMessage):
            return self.on_final_message(event)
        if isinstance(event, StoppedTyping):
            return self.on_stop_typing(event.username)
        logger.debug("No reconciler transition for %r", event)
        return []

    def on_typing(self, event: TypingUpdate) -> Commands:
        # Our own draft comes back from the relay; drop it
        if self.identity.is_self(event.client_id):
            return []

        if is_blank(event.text):
            return self._retire(event.username)

        entry = self.state.get_typing(event.username)
        if entry is None:
            entry = TypingEntry(username=event.username, last_text=event.text)
            self.state.typing[event.username] = entry
            logger.debug("New typing preview", extra={"username": event.username})
        else:
            entry.last_text = event.text
        return [RenderTypingPreview(username=entry.username, text=entry.last_text)]

    def on_stop_typing(self, username: str) -> Commands:
        return self._retire(username)

    def on_final_message(self, event: ChatMessage) -> Commands:
        self.state.log.append(FinalMessage(username=event.username, text=event.text, timestamp=event.timestamp))
        commands: Commands = [AppendFinalMessage(username=event.username, text=event.text, timestamp=event.timestamp)]
        commands.extend(self._retire(event.username))
        return commands

    def _retire(self, username: str) -> Commands:
        if self.state.pop_typing(username) is None:
            return []
        logger.debug("Typing preview retired", extra={"username": username})
        return [RemoveTypingPreview(username=username)]
