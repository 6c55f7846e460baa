"""Badge counter of pending updates.

The badge shows the number of pending updates, empty text for none, or
``?`` when a check failed and no positive count is displayed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from .version import parse_leading_int

if TYPE_CHECKING:
    from .interfaces import StorageBackend

logger = structlog.get_logger(__name__)

ERROR_TEXT = "?"


def badge_count(text: str | None) -> int:
    """Return the count shown by badge text, 0 for empty or non-numeric text."""
    return parse_leading_int(text) or 0


def format_badge(count: int) -> str:
    return str(count) if count else ""


class BadgeCounter:
    """Read-modify-write access to the badge through the storage backend."""

    def __init__(self, storage: StorageBackend) -> None:
        self._storage = storage
        self._log = logger.bind(component="badge")

    async def clear(self) -> None:
        """Show the empty badge while a check is in progress."""
        await self._storage.set_badge_text("")

    async def add(self, count: int) -> str:
        """Add ``count`` to the displayed number in a single write.

        Returns:
            The new badge text.
        """
        current = badge_count(await self._storage.get_badge_text())
        text = format_badge(current + count)
        await self._storage.set_badge_text(text)
        self._log.debug("badge_updated", previous=current, added=count, text=text)
        return text

    async def flag_failure(self) -> str:
        """Show the error indicator unless a positive count is displayed.

        Returns:
            The badge text after the call.
        """
        current = await self._storage.get_badge_text()
        if badge_count(current) > 0:
            return current
        await self._storage.set_badge_text(ERROR_TEXT)
        self._log.info("badge_flagged_failure")
        return ERROR_TEXT
