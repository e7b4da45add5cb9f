from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union


@dataclass
class TypingEntry:
    username: str
    last_text: str


@dataclass(frozen=True)
class FinalMessage:
    username: str
    text: str
    timestamp: Union[int, float]


@dataclass
class ChatState:
    """Live typing previews keyed by username, plus the append-only message log."""
    typing: Dict[str, TypingEntry] = field(default_factory=dict)
    log: List[FinalMessage] = field(default_factory=list)

    def get_typing(self, username: str) -> Optional[TypingEntry]:
        return self.typing.get(username)

    def pop_typing(self, username: str) -> Optional[TypingEntry]:
        return self.typing.pop(username, None)

    def typing_sorted(self) -> List[str]:
        return sorted(self.typing.keys())
