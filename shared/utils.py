from __future__ import annotations
import time
from typing import Any
from urllib.parse import urlsplit

# ========================================
#           INPUT VALIDATION HELPERS
# ========================================
"""
Helpers the codec and the config loader call to decide if a value
is properly formatted before it is trusted.
"""

_WS_SCHEMES = ("ws", "wss")


def now_ms() -> int:
    """Current wall-clock time as unix milliseconds (sender timestamps)."""
    return int(time.time() * 1000)


def is_ws_url(s: str) -> bool:
    """
    Accepts 'ws://host:port/path' or 'wss://host/...'.

    - scheme must be ws or wss
    - hostname must be non-empty
    - port, if given, must be between 1 and 65535
    """
    try:
        parts = urlsplit(s)
        if parts.scheme not in _WS_SCHEMES:
            return False
        if not parts.hostname:
            return False
        port = parts.port
        return port is None or 0 < port <= 65535
    except (ValueError, AttributeError):
        return False


def is_number(value: Any) -> bool:
    """
    True for int/float values. bool is rejected even though it
    subclasses int, since JSON true/false is never a timestamp.
    """
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_blank(text: str) -> bool:
    return text.strip() == ""
