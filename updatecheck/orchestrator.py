"""Orchestrator for one update-check cycle.

This module provides the batch orchestrator that builds the cycle's
requests, runs every fetch-and-reconcile unit concurrently, and updates
the badge once all of them have settled.

Ordering:
    - Callbacks of sibling requests may interleave in any order.
    - The badge update and ``on_complete`` happen only after every request
      settled, successfully or not.
    - Overlapping cycles are not serialized here; ``UpdateScheduler`` runs
      them one at a time.
"""

from __future__ import annotations

import asyncio
import contextlib
import uuid
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

import aiohttp
import structlog

from .badge import BadgeCounter
from .config import CheckerConfig, ConfigManager, YamlStorage
from .fetcher import UpdateCheckError, UpdateFetcher, invoke_callback
from .log import configure_logging
from .models import CheckSummary, FetchOutcome, InstalledComponent, ManagementSettings
from .request_builder import build_requests
from .sources import SourceRegistry, default_registry

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    from .fetcher import FailureCallback, UpdateCallback
    from .interfaces import ComponentInventory, StorageBackend

logger = structlog.get_logger(__name__)


class UpdateChecker:
    """Checks installed components for updates.

    The checker is responsible for:
    - Resolving the effective settings of a cycle
    - Building the aggregated and standalone requests
    - Running all requests concurrently with per-request failure isolation
    - Adding the number of updates found to the badge in one write
    """

    def __init__(
        self,
        inventory: ComponentInventory,
        storage: StorageBackend,
        registry: SourceRegistry | None = None,
        config: CheckerConfig | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the checker.

        Args:
            inventory: Source of installed components.
            storage: Settings, policy and badge storage.
            registry: Official update sources. Uses the built-in stores if not provided.
            config: Checker configuration. Uses defaults if not provided.
            session: HTTP session to reuse. A session per cycle is opened if not provided.
        """
        self.inventory = inventory
        self.storage = storage
        self.registry = registry or default_registry()
        self.config = config or CheckerConfig()
        self.badge = BadgeCounter(storage)
        self._session = session
        self._log = logger.bind(component="orchestrator")

    async def check_for_updates(
        self,
        on_update: UpdateCallback | None = None,
        on_failure: FailureCallback | None = None,
        on_complete: Callable[[], Any] | None = None,
        extra_components: Sequence[InstalledComponent] = (),
    ) -> CheckSummary:
        """Run one update-check cycle.

        Args:
            on_update: Called as ``on_update(updatecheck, installed_by_id, appid,
                new_version, is_official)`` for every component with an update.
            on_failure: Called as ``on_failure(removed_from_server, component)``.
            on_complete: Called once after the badge has been updated.
            extra_components: Components checked in addition to the installed ones.

        Returns:
            CheckSummary with the outcome of every request.
        """
        run_id = str(uuid.uuid4())[:8]
        log = self._log.bind(run_id=run_id)

        components = [*await self.inventory.list_installed(), *extra_components]
        settings = await self._effective_settings(components)
        plan = build_requests(components, settings, self.registry, self.config.prodversion)

        log.info(
            "check_started",
            component_count=len(components),
            request_count=len(plan.requests),
        )

        await self.badge.clear()

        async with self._open_session() as session:
            fetcher = UpdateFetcher(
                session,
                self.registry,
                self.storage,
                timeout_seconds=self.config.request_timeout_seconds,
                user_agent=self.config.user_agent,
            )
            tasks = [
                asyncio.create_task(
                    fetcher.run(request, plan.installed_by_id, on_update, on_failure, settings),
                    name=f"update-check-{request.source_name}",
                )
                for request in plan.requests
            ]
            results = await asyncio.gather(*tasks, return_exceptions=True)

        outcomes: list[FetchOutcome] = []
        for request, result in zip(plan.requests, results, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, UpdateCheckError):
                    log.error("fetch_unexpected_error", url=request.url, error=repr(result))
                outcomes.append(
                    FetchOutcome(request=request, error_message=str(result) or repr(result))
                )
            else:
                outcomes.append(FetchOutcome(request=request, updates_found=result))

        summary = CheckSummary(run_id=run_id, outcomes=outcomes)
        summary.badge_text = await self.badge.add(summary.total_updates)
        if summary.failed_requests:
            summary.badge_text = await self.badge.flag_failure()

        log.info(
            "check_completed",
            updates_found=summary.total_updates,
            failed_requests=summary.failed_requests,
            badge=summary.badge_text,
        )

        await invoke_callback(on_complete)
        return summary

    async def _effective_settings(
        self, components: Sequence[InstalledComponent]
    ) -> ManagementSettings:
        """Resolve stored settings and the managed policy for this cycle."""
        defaults = ManagementSettings(never_check={c.id: False for c in components})
        settings = await self.storage.get_settings(defaults)
        return await self.storage.get_managed_overrides(settings)

    @contextlib.asynccontextmanager
    async def _open_session(self) -> AsyncIterator[aiohttp.ClientSession]:
        if self._session is not None:
            yield self._session
            return
        async with aiohttp.ClientSession() as session:
            yield session


def create_checker(
    inventory: ComponentInventory,
    config_path: Path | None = None,
    session: aiohttp.ClientSession | None = None,
) -> UpdateChecker:
    """Create a checker configured from ``config.yaml``.

    Logging is configured at the configured level and settings, policy and
    badge state are kept in YAML files under the storage directory.

    Args:
        inventory: Source of installed components.
        config_path: Optional path to the configuration file.
        session: HTTP session to reuse.

    Returns:
        Configured UpdateChecker.
    """
    manager = ConfigManager(config_path)
    config = manager.get_config()
    configure_logging(config.log_level)

    storage_dir = manager.get_storage_dir()
    storage_dir.mkdir(parents=True, exist_ok=True)
    logger.debug("checker_created", config_path=str(manager.config_path), storage=str(storage_dir))

    return UpdateChecker(inventory, YamlStorage(storage_dir), config=config, session=session)
