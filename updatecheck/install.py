"""Planning how a found update is handed to the host for installation.

Nothing is downloaded here; the plan only tells the caller which of its
install paths to use for a download URL.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .sources import Webstore


class InstallAction(str, Enum):
    """How the host should handle a download URL."""

    OPEN_TAB = "open_tab"
    MANUAL_DOWNLOAD = "manual_download"
    DOWNLOAD = "download"


@dataclass(frozen=True)
class InstallPlan:
    action: InstallAction
    url: str


def plan_install(
    crx_url: str,
    is_webstore: bool,
    store: Webstore = Webstore.CHROME,
    manually_install: bool = False,
) -> InstallPlan:
    """Choose the install path for an update's download URL.

    Args:
        crx_url: Direct download URL from the update response.
        is_webstore: Whether the update comes from an official store.
        store: Store the component belongs to.
        manually_install: User setting forcing manual installation.

    Returns:
        InstallPlan for the host.
    """
    if is_webstore and not manually_install:
        # Opera packages can only be loaded unpacked
        if store == Webstore.OPERA:
            return InstallPlan(InstallAction.MANUAL_DOWNLOAD, crx_url)
        return InstallPlan(InstallAction.OPEN_TAB, crx_url)

    if manually_install:
        return InstallPlan(InstallAction.MANUAL_DOWNLOAD, crx_url)
    return InstallPlan(InstallAction.DOWNLOAD, crx_url)
