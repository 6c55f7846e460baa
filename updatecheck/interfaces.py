"""Collaborator interfaces for the update checker.

The checker does not own the component inventory or any storage. Hosts
provide implementations of these abstract base classes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import InstalledComponent, ManagementSettings


class ComponentInventory(ABC):
    """Source of installed components."""

    @abstractmethod
    async def list_installed(self) -> list[InstalledComponent]:
        """Return a snapshot of all installed components."""
        ...


class StorageBackend(ABC):
    """Settings, policy and badge storage.

    Reads and writes are not transactional: a value read at the start of a
    cycle may be written back later without any lock in between.
    """

    @abstractmethod
    async def get_settings(self, defaults: ManagementSettings) -> ManagementSettings:
        """Return stored user settings merged over ``defaults``."""
        ...

    @abstractmethod
    async def get_managed_overrides(self, base: ManagementSettings) -> ManagementSettings:
        """Return ``base`` with the managed (enterprise) policy applied."""
        ...

    @abstractmethod
    async def set_removed_extensions(self, removed: dict[str, bool]) -> None:
        """Persist the ``removed_extensions`` map."""
        ...

    @abstractmethod
    async def get_badge_text(self) -> str:
        """Return the currently displayed badge text."""
        ...

    @abstractmethod
    async def set_badge_text(self, text: str) -> None:
        """Display and remember new badge text."""
        ...

    async def get_last_scheduled_update(self) -> float:
        """Return the epoch timestamp of the last scheduled check (0 if never)."""
        return 0.0

    async def set_last_scheduled_update(self, timestamp: float) -> None:  # noqa: B027
        """Remember when the last scheduled check ran."""
        pass
