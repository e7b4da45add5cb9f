#!/usr/bin/env python3

from __future__ import annotations
import asyncio
from pathlib import Path
from typing import Optional

import aioconsole
import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from shared.config import ClientConfig, ConfigError, load_config
from shared.MessageTypes import OUTBOUND_MESSAGES, MessageType
from shared.envelope import MessageIntent, TypingIntent, UsernameChange, encode
from shared.log import configure_root_logging, get_logger
from shared.utils import now_ms
from .app import ChatClient
from .identity import normalize_display_name
from .renderer import ConsoleRenderer
from .ws_client import Connector

app = typer.Typer(help="livetype chat client")
console = Console()
logger = get_logger(__name__)

HELP_TEXT = "<text> send, /draft <text> live preview, /clear, /name <name>, /who, /quit"


def _resolve_config(config_path: Optional[Path], server: Optional[str], name: Optional[str],
                    log_level: Optional[str]) -> ClientConfig:
    try:
        config = load_config(config_path)
        if server:
            config.server_url = server
        if name:
            config.display_name = name
        if log_level:
            config.log_level = log_level
        config.validate()
    except ConfigError as e:
        raise typer.BadParameter(str(e))
    return config


@app.command()
def run(
    server: Optional[str] = typer.Option(None, help="WebSocket URL of the relay"),
    name: Optional[str] = typer.Option(None, help="Display name"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML config file"),
    log_level: Optional[str] = typer.Option(None, help="DEBUG, INFO, WARNING or ERROR"),
):
    """Connect to the relay and chat."""
    config = _resolve_config(config_path, server, name, log_level)
    configure_root_logging(config.log_level)
    console.print(f"[bold green]livetype starting[/] on {config.server_url}")
    asyncio.run(_main_loop(config))


async def _main_loop(config: ClientConfig, connector: Optional[Connector] = None) -> ChatClient:
    client = ChatClient(config, ConsoleRenderer(console), connector=connector)
    await client.start()
    try:
        while True:
            line = await aioconsole.ainput("")
            if line.strip() in {"/quit", "/exit"}:
                break
            if line.strip() == "/help":
                console.print(HELP_TEXT)
                continue
            if line.strip() == "/who":
                console.print(client.renderer.typing_table(client.state))
                continue
            if line.strip() == "/name" or line.startswith("/name "):
                await client.commit_name(line[len("/name"):])
                console.print(Text(f"Name set to {client.identity.name}"))
                continue
            if line.startswith("/draft "):
                await client.text_changed(line[len("/draft "):])
                continue
            if line.strip() == "/clear":
                await client.text_changed("")
                continue
            if line.startswith("/"):
                console.print("Unknown command. /help")
                continue
            # A terminal line arrives whole: one edit then Enter
            await client.text_changed(line)
            await client.submit(line)
    except EOFError:
        pass
    finally:
        await client.stop()
    return client


@app.command("show-config")
def show_config(
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML config file"),
):
    """Print the resolved configuration."""
    config = _resolve_config(config_path, None, None, None)
    table = Table(title="livetype configuration")
    table.add_column("Key")
    table.add_column("Value")
    for key, value in config.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)


@app.command()
def encode_frame(
    msg_type: str = typer.Argument(..., help="typing, message or username_change"),
    username: str = typer.Option("", help="Display name"),
    text: str = typer.Option("", help="Message text"),
):
    """Print the frame the client would send, then exit."""
    if not MessageType.is_valid(msg_type) or MessageType(msg_type) not in OUTBOUND_MESSAGES:
        raise typer.BadParameter(f"Not an outbound type: {msg_type}")
    name = normalize_display_name(username)
    if msg_type == MessageType.TYPING:
        intent = TypingIntent(username=name, text=text, timestamp=now_ms())
    elif msg_type == MessageType.MESSAGE:
        intent = MessageIntent(username=name, text=text.strip(), timestamp=now_ms())
    else:
        intent = UsernameChange(username=name)
    console.print_json(encode(intent))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
