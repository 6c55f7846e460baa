"""Omaha Update Check.

Checks installed components (browser extensions) for updates against
update servers speaking the Omaha-style ``gupdate`` XML protocol.

Module Overview:
    badge: Pending-update badge counter with failure indicator
    config: YAML configuration (XDG spec compliant) and storage backends
    fetcher: Fetch-and-reconcile of a single update-check request
    install: Install-path planning for found updates
    interfaces: Abstract base classes for the inventory and storage collaborators
    log: structlog configuration
    models: Pydantic data models for components, settings and results
    orchestrator: Concurrent update-check cycle
    request_builder: Per-cycle request construction
    schedule: Periodic background checks
    sources: Official store registry and store page helpers
    version: Four-slot version comparison
    xml_decoder: Minimal XML decoder for update-check responses
"""

from importlib.metadata import version as get_package_version

from updatecheck.badge import BadgeCounter
from updatecheck.config import (
    CheckerConfig,
    ConfigManager,
    MemoryStorage,
    YamlConfigLoader,
    YamlStorage,
    apply_managed_policy,
    get_config_dir,
    get_default_config_path,
    merge_settings,
)
from updatecheck.fetcher import UpdateCheckError, UpdateFetcher
from updatecheck.install import InstallAction, InstallPlan, plan_install
from updatecheck.interfaces import ComponentInventory, StorageBackend
from updatecheck.log import configure_logging
from updatecheck.models import (
    CheckSummary,
    ComponentRef,
    FetchOutcome,
    IconInfo,
    InstalledComponent,
    LogLevel,
    ManagedPolicy,
    ManagementSettings,
    UpdateRequest,
)
from updatecheck.orchestrator import UpdateChecker, create_checker
from updatecheck.request_builder import RequestPlan, build_requests
from updatecheck.schedule import UpdateScheduler, initial_delay_minutes
from updatecheck.sources import (
    SourceRegistry,
    UpdateSource,
    Webstore,
    build_extension_url,
    default_registry,
    determine_webstore,
    get_extension_id,
)
from updatecheck.version import Version, compare_versions, is_newer, parse_version
from updatecheck.xml_decoder import as_list, decode

__version__ = get_package_version("omaha-update-check")

__all__ = [
    "BadgeCounter",
    "CheckSummary",
    "CheckerConfig",
    "ComponentInventory",
    "ComponentRef",
    "ConfigManager",
    "FetchOutcome",
    "IconInfo",
    "InstallAction",
    "InstallPlan",
    "InstalledComponent",
    "LogLevel",
    "ManagedPolicy",
    "ManagementSettings",
    "MemoryStorage",
    "RequestPlan",
    "SourceRegistry",
    "StorageBackend",
    "UpdateCheckError",
    "UpdateChecker",
    "UpdateFetcher",
    "UpdateRequest",
    "UpdateScheduler",
    "UpdateSource",
    "Version",
    "Webstore",
    "YamlConfigLoader",
    "YamlStorage",
    "apply_managed_policy",
    "as_list",
    "build_extension_url",
    "build_requests",
    "compare_versions",
    "configure_logging",
    "create_checker",
    "decode",
    "default_registry",
    "determine_webstore",
    "get_config_dir",
    "get_default_config_path",
    "get_extension_id",
    "initial_delay_minutes",
    "is_newer",
    "merge_settings",
    "parse_version",
    "plan_install",
]
