"""Fetch-and-reconcile unit for a single update-check request.

One request is fetched, its ``gupdate`` response decoded, and every
reported app reconciled against the installed components:

* a newer version (with ``status="ok"``, or any status from a non-store
  source) is reported through ``on_update`` and counted
* ``status="noupdate"`` for a component not yet flagged as removed is
  reported through ``on_failure(True, component)``
* unknown app ids and apps without a version are skipped

A transport or decode failure fails the whole request: ``on_failure(False,
...)`` is called once and ``UpdateCheckError`` is raised to the orchestrator.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import aiohttp
import structlog

from .models import ComponentRef, InstalledComponent, ManagementSettings, UpdateRequest
from .version import is_newer
from .xml_decoder import as_list, decode

if TYPE_CHECKING:
    from .interfaces import StorageBackend
    from .sources import SourceRegistry

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_USER_AGENT = "omaha-update-check/0.1"

STATUS_OK = "ok"
STATUS_NOUPDATE = "noupdate"

UpdateCallback = Callable[[dict[str, Any], dict[str, InstalledComponent], str, str, bool], Any]
FailureCallback = Callable[[bool, InstalledComponent | ComponentRef], Any]


class UpdateCheckError(Exception):
    """Exception raised when one update-check request fails."""

    def __init__(self, message: str, request: UpdateRequest) -> None:
        """Initialize update-check error.

        Args:
            message: Error message.
            request: The request that failed.
        """
        super().__init__(message)
        self.request = request


async def invoke_callback(callback: Callable[..., Any] | None, *args: Any) -> None:
    """Call a plain or coroutine callback, logging anything it raises."""
    if callback is None:
        return
    try:
        result = callback(*args)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("callback_failed", callback=getattr(callback, "__name__", repr(callback)))


class UpdateFetcher:
    """Fetches one update-check URL and reconciles the reported apps."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        registry: SourceRegistry,
        storage: StorageBackend,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        """Initialize the fetcher.

        Args:
            session: HTTP session shared by the requests of one cycle.
            registry: Official update sources.
            storage: Storage used to persist ``removed_extensions``.
            timeout_seconds: Total timeout of one request.
            user_agent: User-Agent sent unless the source overrides it.
        """
        self._session = session
        self._registry = registry
        self._storage = storage
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._user_agent = user_agent
        self._log = logger.bind(component="fetcher")

    async def run(
        self,
        request: UpdateRequest,
        installed_by_id: dict[str, InstalledComponent],
        on_update: UpdateCallback | None,
        on_failure: FailureCallback | None,
        settings: ManagementSettings,
    ) -> int:
        """Fetch one request and reconcile its apps.

        Args:
            request: The request to issue.
            installed_by_id: Installed components checked this cycle.
            on_update: Called for every component with a newer version.
            on_failure: Called on request failure or server-side removal.
            settings: Settings snapshot shared by the cycle.

        Returns:
            Number of components with an update.

        Raises:
            UpdateCheckError: If the request fails or the response cannot be decoded.
        """
        log = self._log.bind(source=request.source_name, component_id=request.component_id)

        try:
            document = await self._fetch_document(request)
        except UpdateCheckError as e:
            log.warning("fetch_failed", url=request.url, error=str(e))
            await invoke_callback(on_failure, False, self._failed_component(request, installed_by_id))
            raise

        is_official = self._registry.is_official_source(request.url)
        updates = 0
        for app in _reported_apps(document):
            try:
                updates += await self._reconcile_app(
                    app, installed_by_id, on_update, on_failure, settings, is_official
                )
            except Exception:
                log.exception("app_reconcile_failed", app=app)

        log.info("fetch_completed", updates_found=updates)
        return updates

    async def _fetch_document(self, request: UpdateRequest) -> Any:
        """Fetch and decode the response of one request.

        Raises:
            UpdateCheckError: On any failure while fetching, reading or decoding.
        """
        try:
            return decode(await self._fetch(request))
        except UpdateCheckError:
            raise
        except Exception as e:
            raise UpdateCheckError(f"Cannot read response: {e!r}", request) from e

    async def _fetch(self, request: UpdateRequest) -> str:
        """Issue the HTTP GET and return the body.

        Raises:
            UpdateCheckError: On non-200 status, network error or timeout.
        """
        headers = {"User-Agent": request.user_agent or self._user_agent}
        try:
            async with self._session.get(
                request.url, headers=headers, timeout=self._timeout
            ) as response:
                if response.status != 200:
                    raise UpdateCheckError(f"HTTP status {response.status}", request)
                return await response.text()
        except aiohttp.ClientError as e:
            raise UpdateCheckError(f"Network error: {e}", request) from e
        except TimeoutError:
            raise UpdateCheckError("Request timed out", request) from None

    async def _reconcile_app(
        self,
        app: Any,
        installed_by_id: dict[str, InstalledComponent],
        on_update: UpdateCallback | None,
        on_failure: FailureCallback | None,
        settings: ManagementSettings,
        is_official: bool,
    ) -> int:
        """Apply the update policy to one reported app.

        Returns:
            1 if the app has an update, 0 otherwise.
        """
        if not isinstance(app, dict):
            return 0
        updatecheck = app.get("updatecheck")
        if not isinstance(updatecheck, dict):
            return 0

        appid = app.get("@appid")
        new_version = updatecheck.get("@version")
        status = updatecheck.get("@status")
        installed = installed_by_id.get(appid) if isinstance(appid, str) else None
        if not new_version or installed is None:
            return 0

        removed = settings.removed_extensions
        if (status == STATUS_OK or not is_official) and is_newer(installed.version, new_version):
            self._log.info(
                "update_available",
                appid=appid,
                installed_version=installed.version,
                new_version=new_version,
            )
            await invoke_callback(
                on_update, updatecheck, installed_by_id, appid, new_version, is_official
            )
            if removed.pop(appid, None) is not None:
                await self._storage.set_removed_extensions(dict(removed))
            return 1

        if on_failure is not None and status == STATUS_NOUPDATE and appid not in removed:
            self._log.info("update_withdrawn", appid=appid)
            await invoke_callback(on_failure, True, installed)

        return 0

    @staticmethod
    def _failed_component(
        request: UpdateRequest,
        installed_by_id: dict[str, InstalledComponent],
    ) -> InstalledComponent | ComponentRef:
        if request.component_id and request.component_id in installed_by_id:
            return installed_by_id[request.component_id]
        return ComponentRef(name=request.source_name or request.url, id=request.component_id)


def _reported_apps(document: Any) -> list[Any]:
    """Return the ``app`` entries of a decoded ``gupdate`` document as a list."""
    if not isinstance(document, dict):
        return []
    gupdate = document.get("gupdate")
    if not isinstance(gupdate, dict):
        return []
    return as_list(gupdate.get("app"))
