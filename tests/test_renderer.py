import io
from datetime import datetime

import pytest
from rich.console import Console

from client.commands import AppendFinalMessage, RemoveTypingPreview, RenderTypingPreview, SystemNotice
from client.renderer import ConsoleRenderer, format_time
from client.state import ChatState, TypingEntry


def make_renderer():
    buffer = io.StringIO()
    console = Console(file=buffer, width=120, color_system=None, force_terminal=False)
    return ConsoleRenderer(console), buffer


def test_untrusted_markup_is_printed_literally():
    renderer, buffer = make_renderer()
    renderer.apply(AppendFinalMessage(username="[bold]mallory[/bold]", text="[red]pwned[/red]", timestamp=0))
    out = buffer.getvalue()
    assert "[bold]mallory[/bold]" in out
    assert "[red]pwned[/red]" in out


def test_preview_prints_only_on_change():
    renderer, buffer = make_renderer()
    renderer.apply(RenderTypingPreview(username="bob", text="hi"))
    renderer.apply(RenderTypingPreview(username="bob", text="hi"))
    renderer.apply(RenderTypingPreview(username="bob", text="hi!"))
    lines = [line for line in buffer.getvalue().splitlines() if line]
    assert len(lines) == 2
    assert renderer.previews == {"bob": "hi!"}

    renderer.apply(RemoveTypingPreview(username="bob"))
    renderer.apply(RemoveTypingPreview(username="nobody"))
    assert renderer.previews == {}


def test_system_notice():
    renderer, buffer = make_renderer()
    renderer.apply(SystemNotice("Connected to chat server"))
    assert "Connected to chat server" in buffer.getvalue()


def test_final_message_shows_sender_time():
    renderer, buffer = make_renderer()
    ts = 1_700_000_000_000
    renderer.append_final_message("bob", "hello all", ts)
    expected = datetime.fromtimestamp(ts / 1000).strftime("%H:%M:%S")
    assert f"{expected} bob: hello all" in buffer.getvalue()


def test_format_time_tolerates_garbage_timestamps():
    assert format_time(10 ** 30) == "--:--:--"


def test_typing_table_lists_typing_entries():
    renderer, buffer = make_renderer()
    state = ChatState()
    state.typing["carol"] = TypingEntry(username="carol", last_text="yo :smile:")
    state.typing["bob"] = TypingEntry(username="bob", last_text="[b]hey[/b]")
    table = renderer.typing_table(state)
    assert table.row_count == 2

    renderer.console.print(table)
    out = buffer.getvalue()
    assert out.index("bob") < out.index("carol")
    assert "yo :smile:" in out
    assert "[b]hey[/b]" in out


@pytest.mark.parametrize("text", ["I :heart: it", ":thumbs_up:", "see https://example.com 42"])
def test_peer_text_is_printed_verbatim(text):
    renderer, buffer = make_renderer()
    renderer.apply(AppendFinalMessage(username=":smile:", text=text, timestamp=0))
    renderer.apply(RenderTypingPreview(username="bob", text=text))
    renderer.apply(SystemNotice(text))
    out = buffer.getvalue()
    assert out.count(text) == 3
    assert ":smile:" in out
