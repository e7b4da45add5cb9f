from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from shared.log import get_logger

logger = get_logger(__name__)

DEFAULT_DISPLAY_NAME = "Anonymous"


def normalize_display_name(raw: Optional[str]) -> str:
    """Trim a user-entered name, falling back to the default when blank."""
    name = (raw or "").strip()
    return name or DEFAULT_DISPLAY_NAME


@dataclass
class Identity:
    """
    Who we are on the relay.

    client_id comes from the relay's welcome frame and is only used to
    recognise our own typing echoes. display_name stays None until the
    user commits a name or starts typing.
    """
    client_id: Optional[str] = None
    display_name: Optional[str] = None
    _welcomed: bool = field(default=False, repr=False)

    @property
    def name(self) -> str:
        return self.display_name or DEFAULT_DISPLAY_NAME

    def begin_connection(self) -> None:
        """A fresh connection may carry a fresh welcome."""
        self._welcomed = False

    def observe_welcome(self, client_id: str) -> None:
        if self._welcomed:
            logger.warning("Ignoring repeated welcome on the same connection", extra={"client_id": client_id})
            return
        self.client_id = client_id
        self._welcomed = True
        logger.info("Received clientId", extra={"client_id": client_id})

    def set_display_name(self, raw: Optional[str]) -> str:
        self.display_name = normalize_display_name(raw)
        return self.display_name

    def ensure_display_name(self, fallback_raw: Optional[str] = None) -> str:
        """Capture a name lazily, only if none was committed yet."""
        if self.display_name is None:
            return self.set_display_name(fallback_raw)
        return self.display_name

    def is_self(self, remote_client_id: Optional[str]) -> bool:
        return bool(remote_client_id) and remote_client_id == self.client_id
