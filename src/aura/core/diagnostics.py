"""Append-only diagnostics log surfaced to the presentation layer."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from aura.models.session import LogEntry

logger = logging.getLogger("aura.diagnostics")

DiagnosticsCallback = Callable[[LogEntry], Any]


class DiagnosticsLog:
    """Timestamped, append-only event log.

    Everything is kept in memory; :meth:`recent` bounds what a UI shows.
    Each entry is mirrored to the ``aura.diagnostics`` logger.
    """

    def __init__(self, display_limit: int = 200) -> None:
        self._display_limit = display_limit
        self._entries: list[LogEntry] = []
        self._callbacks: list[DiagnosticsCallback] = []

    @property
    def entries(self) -> tuple[LogEntry, ...]:
        return tuple(self._entries)

    @property
    def display_limit(self) -> int:
        return self._display_limit

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, message: str) -> LogEntry:
        entry = LogEntry(message=message)
        self._entries.append(entry)
        logger.info(message)
        for cb in self._callbacks:
            try:
                cb(entry)
            except Exception:
                logger.exception("Diagnostics callback failed")
        return entry

    def recent(self, limit: int | None = None) -> list[LogEntry]:
        """Return the newest entries, oldest first."""
        n = self._display_limit if limit is None else limit
        if n <= 0:
            return []
        return self._entries[-n:]

    def format_lines(self, limit: int | None = None) -> list[str]:
        return [entry.format() for entry in self.recent(limit)]

    def contains(self, text: str) -> bool:
        """True if any entry's message includes *text*."""
        return any(text in entry.message for entry in self._entries)

    def on_entry(self, callback: DiagnosticsCallback) -> None:
        """Register a callback fired for every new entry."""
        self._callbacks.append(callback)

    def clear(self) -> None:
        self._entries.clear()
