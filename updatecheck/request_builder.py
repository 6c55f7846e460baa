"""Construction of the update-check requests for one cycle.

Components served by an official store are aggregated into one request per
store; every other component with an update URL gets a standalone request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from .models import InstalledComponent, ManagementSettings, UpdateRequest

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .sources import SourceRegistry, UpdateSource

logger = structlog.get_logger(__name__)


def component_query(component_id: str) -> str:
    """Return the ``x`` query segment asking about one component."""
    return f"&x=id%3D{component_id}%26uc"


@dataclass
class RequestPlan:
    """Requests to issue in one cycle and the components they cover."""

    requests: list[UpdateRequest] = field(default_factory=list)
    installed_by_id: dict[str, InstalledComponent] = field(default_factory=dict)


def build_requests(
    components: Iterable[InstalledComponent],
    settings: ManagementSettings,
    registry: SourceRegistry,
    prodversion: str = "",
) -> RequestPlan:
    """Build the deduplicated request set for one check cycle.

    Args:
        components: Installed components to check.
        settings: Effective settings of this cycle.
        registry: Official update sources.
        prodversion: Browser version appended to aggregated store URLs.

    Returns:
        RequestPlan with external requests in component order followed by
        one aggregated request per polled store, in registry order.
    """
    plan = RequestPlan()
    # Aggregated store URLs, local to this cycle
    store_urls: dict[UpdateSource, str] = {}

    for component in components:
        if not component.update_url or settings.is_ignored(component.id):
            continue

        source = registry.classify(component.update_url)
        if source is not None:
            url = store_urls.get(source) or source.batch_url(prodversion)
            store_urls[source] = url + component_query(component.id)
        elif settings.check_external_apps:
            plan.requests.append(
                UpdateRequest(
                    url=component.update_url,
                    source_name=component.name,
                    component_id=component.id,
                )
            )

        plan.installed_by_id[component.id] = component

    if settings.check_store_apps:
        for source in registry:
            url = store_urls.get(source)
            if source.ignore or not url:
                continue
            plan.requests.append(
                UpdateRequest(url=url, source_name=source.name, user_agent=source.user_agent)
            )

    logger.debug(
        "requests_built",
        request_count=len(plan.requests),
        component_count=len(plan.installed_by_id),
    )
    return plan
