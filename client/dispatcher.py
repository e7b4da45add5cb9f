from __future__ import annotations
from typing import Callable, Optional

from shared.envelope import MessageIntent, TypingIntent, UsernameChange
from shared.utils import now_ms
from .commands import ClearInput, Commands, SendIntent
from .identity import Identity

Clock = Callable[[], int]


class OutboundDispatcher:
    """Turns local input actions into outbound intents."""

    def __init__(self, identity: Identity, clock: Clock = now_ms) -> None:
        self.identity = identity
        self.clock = clock

    def on_text_changed(self, text: str, name_field: Optional[str] = None) -> Commands:
        """Fires on every edit, partial or empty text included (no debounce)."""
        username = self.identity.ensure_display_name(name_field)
        return [SendIntent(TypingIntent(username=username, text=text, timestamp=self.clock()))]

    def on_submit(self, text: str, name_field: Optional[str] = None) -> Commands:
        body = text.strip()
        if not body:
            return []
        username = self.identity.ensure_display_name(name_field)
        return [
            SendIntent(MessageIntent(username=username, text=body, timestamp=self.clock())),
            ClearInput(),
        ]

    def on_name_commit(self, raw: Optional[str]) -> Commands:
        username = self.identity.set_display_name(raw)
        return [SendIntent(UsernameChange(username=username))]
