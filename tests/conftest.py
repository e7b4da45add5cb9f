from __future__ import annotations

import asyncio
import json
from typing import Any, List

import pytest
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK

_CLEAN_CLOSE = object()
_DROP = object()


class DummyWebSocket:
    """Stands in for a websockets ClientConnection."""

    def __init__(self) -> None:
        self.sent_messages: list[str] = []
        self.closed = False
        self.close_code: int | None = None
        self._inbox: asyncio.Queue = asyncio.Queue()

    async def send(self, data: str) -> None:
        if self.closed:
            raise ConnectionClosedOK(None, None)
        self.sent_messages.append(data)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.closed = True
        self.close_code = code
        self._inbox.put_nowait(_CLEAN_CLOSE)

    def feed(self, frame: Any) -> None:
        if isinstance(frame, dict):
            frame = json.dumps(frame)
        self._inbox.put_nowait(frame)

    def drop(self) -> None:
        """Simulate the relay vanishing without a close frame."""
        self._inbox.put_nowait(_DROP)

    def sent_json(self) -> List[dict]:
        return [json.loads(m) for m in self.sent_messages]

    def __aiter__(self) -> "DummyWebSocket":
        return self

    async def __anext__(self) -> Any:
        item = await self._inbox.get()
        if item is _CLEAN_CLOSE:
            raise StopAsyncIteration
        if item is _DROP:
            self.closed = True
            raise ConnectionClosedError(None, None)
        return item


class FakeConnector:
    """Replaces websockets.connect; hands out scripted outcomes in order."""

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, dict]] = []

    async def __call__(self, url: str, **kwargs: Any) -> DummyWebSocket:
        self.calls.append((url, kwargs))
        outcome = self.outcomes.pop(0) if self.outcomes else OSError("Connection refused")
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class RecordingRenderer:
    """Presentation layer double that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.previews: dict[str, str] = {}

    def apply(self, command: Any) -> None:
        from client.commands import AppendFinalMessage, RemoveTypingPreview, RenderTypingPreview, SystemNotice

        if isinstance(command, SystemNotice):
            self.calls.append(("notice", command.text))
        elif isinstance(command, RenderTypingPreview):
            self.previews[command.username] = command.text
            self.calls.append(("preview", command.username, command.text))
        elif isinstance(command, RemoveTypingPreview):
            self.previews.pop(command.username, None)
            self.calls.append(("remove", command.username))
        elif isinstance(command, AppendFinalMessage):
            self.calls.append(("final", command.username, command.text, command.timestamp))

    def notices(self) -> List[str]:
        return [c[1] for c in self.calls if c[0] == "notice"]

    def finals(self) -> List[tuple]:
        return [c[1:] for c in self.calls if c[0] == "final"]


async def wait_for(predicate, timeout: float = 2.0) -> bool:
    loop = asyncio.get_running_loop()
    end = loop.time() + timeout
    while loop.time() < end:
        if predicate():
            return True
        await asyncio.sleep(0.01)
    return predicate()


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def no_default_config(tmp_path, monkeypatch):
    import shared.config

    monkeypatch.setattr(shared.config, "DEFAULT_CONFIG_PATH", tmp_path / "missing.yaml")
    for name in ("LIVETYPE_SERVER", "LIVETYPE_NAME", "LIVETYPE_RECONNECT_DELAY"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path
