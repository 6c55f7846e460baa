"""Data models for the update-check system.

This module defines Pydantic models for installed components, user and
managed settings, outbound update requests and check results.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LogLevel(str, Enum):
    """Log level for the checker."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class IconInfo(BaseModel):
    """One icon of an installed component."""

    size: int = Field(..., description="Icon edge length in pixels")
    url: str | None = Field(default=None, description="Icon location")


class InstalledComponent(BaseModel):
    """Snapshot of an installed component, as reported by the inventory.

    The checker only reads these; it never mutates or persists them.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., description="Stable component identifier")
    name: str = Field(default="", description="Display name")
    version: str = Field(default="0", description="Installed dotted version")
    update_url: str | None = Field(
        default=None, alias="updateUrl", description="Update-check endpoint of the component"
    )
    enabled: bool = Field(default=True, description="Whether the component is enabled")
    icons: tuple[IconInfo, ...] = Field(default=(), description="Icons, smallest first")
    homepage_url: str | None = Field(
        default=None, alias="homepageUrl", description="Homepage of the component"
    )


class ComponentRef(BaseModel):
    """Stand-in for a failed aggregated request that has no single component."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Name of the update source")
    id: str | None = Field(default=None, description="Component id, when known")


class ManagementSettings(BaseModel):
    """User settings consulted by one check cycle.

    ``never_check`` holds the per-component opt-out: a component whose id
    maps to True is not checked for updates.
    """

    auto_update: bool = Field(default=True, description="Check periodically in the background")
    check_store_apps: bool = Field(default=True, description="Check official store components")
    check_external_apps: bool = Field(
        default=True, description="Check components with third-party update URLs"
    )
    update_period_in_minutes: int = Field(default=60, ge=1, description="Period between checks")
    removed_extensions: dict[str, bool] = Field(
        default_factory=dict,
        description="Components whose server stopped offering updates",
    )
    manually_install: bool = Field(default=False, description="Always install by manual download")
    webstore_integration: bool = Field(default=True, description="Enable store page integration")
    never_check: dict[str, bool] = Field(
        default_factory=dict, description="Per-component opt-out keyed by component id"
    )

    def is_ignored(self, component_id: str) -> bool:
        """Return True if the component is opted out of update checks."""
        return self.never_check.get(component_id, False)


class ManagedPolicy(BaseModel):
    """Enterprise policy layered over the user settings."""

    overrides: dict[str, Any] = Field(
        default_factory=dict, description="Setting values forced by policy"
    )
    ignored_extensions: list[str] = Field(
        default_factory=list, description="Component ids that must never be checked"
    )


class UpdateRequest(BaseModel):
    """One outbound update-check HTTP request.

    ``component_id`` is None for aggregated store requests that may
    describe several components.
    """

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Full update-check URL")
    source_name: str | None = Field(default=None, description="Store or component name")
    component_id: str | None = Field(default=None, description="Single external component id")
    user_agent: str | None = Field(default=None, description="User-Agent override for the source")


class FetchOutcome(BaseModel):
    """Result of one fetch-and-reconcile unit."""

    request: UpdateRequest
    updates_found: int = Field(default=0, description="Components with a newer version")
    error_message: str | None = Field(default=None, description="Failure reason, if failed")

    @property
    def failed(self) -> bool:
        return self.error_message is not None


class CheckSummary(BaseModel):
    """Summary of one check cycle."""

    run_id: str = Field(..., description="Unique cycle identifier")
    outcomes: list[FetchOutcome] = Field(default_factory=list)
    badge_text: str = Field(default="", description="Badge text after the cycle")

    @property
    def total_updates(self) -> int:
        """Updates found across all successful requests."""
        return sum(o.updates_found for o in self.outcomes if not o.failed)

    @property
    def failed_requests(self) -> int:
        """Number of requests that failed."""
        return sum(1 for o in self.outcomes if o.failed)
