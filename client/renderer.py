from __future__ import annotations
from datetime import datetime
from typing import Dict, Optional, Union

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .commands import AppendFinalMessage, RemoveTypingPreview, RenderCommand, RenderTypingPreview, SystemNotice
from .state import ChatState


def format_time(timestamp: Union[int, float]) -> str:
    """Sender timestamp (unix ms) as local HH:MM:SS"""
    try:
        return datetime.fromtimestamp(timestamp / 1000).strftime("%H:%M:%S")
    except (OverflowError, OSError, ValueError):
        return "--:--:--"


class ConsoleRenderer:
    """
    Paints chat output on a terminal with rich.

    A terminal can't rewrite an earlier line in place, so a preview is
    printed each time its text changes and remembered so that repeats
    and removals of unknown users print nothing. Peer text is only ever
    wrapped in Text, so rich applies no markup, emoji codes or
    highlighting to it.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()
        self.previews: Dict[str, str] = {}

    def apply(self, command: RenderCommand) -> None:
        if isinstance(command, SystemNotice):
            self.render_system_notice(command.text)
        elif isinstance(command, RenderTypingPreview):
            self.render_or_update_typing_preview(command.username, command.text)
        elif isinstance(command, RemoveTypingPreview):
            self.remove_typing_preview(command.username)
        elif isinstance(command, AppendFinalMessage):
            self.append_final_message(command.username, command.text, command.timestamp)

    def render_system_notice(self, text: str) -> None:
        self.console.print(Text.assemble(("* " + text, "dim italic")))

    def render_or_update_typing_preview(self, username: str, text: str) -> None:
        if self.previews.get(username) == text:
            return
        self.previews[username] = text
        self.console.print(Text.assemble(
            (username, "bold magenta"), " ", ("typing...", "dim"), " ", (text, "italic"),
        ))

    def remove_typing_preview(self, username: str) -> None:
        self.previews.pop(username, None)

    def append_final_message(self, username: str, text: str, timestamp: Union[int, float]) -> None:
        self.console.print(Text.assemble(
            (format_time(timestamp), "dim"), " ", (username, "bold cyan"), ": ", text,
        ))

    def typing_table(self, state: ChatState) -> Table:
        table = Table(title="Typing now")
        table.add_column("User")
        table.add_column("Draft")
        for username in state.typing_sorted():
            table.add_row(Text(username), Text(state.typing[username].last_text))
        return table
