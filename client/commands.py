"""
Side effects produced by the client's state transitions.

The reconciler and dispatcher never touch the screen or the socket; they
return lists of these commands and ChatClient executes them in order.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Union

from shared.envelope import OutboundIntent


@dataclass(frozen=True)
class SystemNotice:
    text: str


@dataclass(frozen=True)
class RenderTypingPreview:
    username: str
    text: str


@dataclass(frozen=True)
class RemoveTypingPreview:
    username: str


@dataclass(frozen=True)
class AppendFinalMessage:
    username: str
    text: str
    timestamp: Union[int, float]


@dataclass(frozen=True)
class SendIntent:
    intent: OutboundIntent


@dataclass(frozen=True)
class ClearInput:
    pass


RenderCommand = Union[SystemNotice, RenderTypingPreview, RemoveTypingPreview, AppendFinalMessage]
Command = Union[RenderCommand, SendIntent, ClearInput]
Commands = List[Command]
