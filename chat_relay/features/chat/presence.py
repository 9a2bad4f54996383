"""Name-keyed presence tracking (sender -> assigned color)."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chat_relay.features.chat.palette import ColorPalette


class PresenceRegistry:
    """Thread-safe mapping from sender to the color assigned on join.

    Entries live until removed or the process exits. There is no notion of
    connection ownership; any event naming a sender addresses the same entry.

    All operations take the same lock, so they are atomic with respect to each
    other whether callers are OS threads or asyncio tasks.
    """

    def __init__(self, palette: ColorPalette) -> None:
        self._palette = palette
        self._lock = threading.Lock()
        self._colors: dict[str, str] = {}

    def register(self, sender: str) -> str:
        """Assign a fresh palette color to ``sender``, replacing any previous one."""
        with self._lock:
            color = self._palette.pick()
            self._colors[sender] = color
            return color

    def lookup(self, sender: str) -> str | None:
        with self._lock:
            return self._colors.get(sender)

    def remove(self, sender: str) -> str | None:
        """Delete ``sender`` and return the color that was removed, if any."""
        with self._lock:
            return self._colors.pop(sender, None)

    def size(self) -> int:
        with self._lock:
            return len(self._colors)

    def snapshot(self) -> dict[str, str]:
        """Copy of the current mapping, for diagnostics."""
        with self._lock:
            return dict(self._colors)
