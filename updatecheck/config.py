"""Configuration and storage for the update checker.

This module provides YAML-based configuration loading and saving following
the XDG Base Directory Specification, the merge of user settings with the
managed (enterprise) policy, and two ``StorageBackend`` implementations:
an in-memory one and one backed by YAML files.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, Field

from .interfaces import StorageBackend
from .models import LogLevel, ManagedPolicy, ManagementSettings

logger = structlog.get_logger(__name__)

APP_NAME = "omaha-update-check"
DEFAULT_PRODVERSION = "131.0.0.0"

SYNC_FILE = "sync.yaml"
MANAGED_FILE = "managed.yaml"
LOCAL_FILE = "local.yaml"


class CheckerConfig(BaseModel):
    """Process-wide configuration of the update checker."""

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Log level")
    prodversion: str = Field(
        default=DEFAULT_PRODVERSION, description="Browser version sent to update servers"
    )
    request_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Total timeout of one update-check request"
    )
    user_agent: str = Field(
        default=f"{APP_NAME}/0.1", description="Default User-Agent of update-check requests"
    )
    storage_dir: Path | None = Field(
        default=None, description="Directory of the YAML storage files. None = config dir."
    )


def get_config_dir() -> Path:
    """Get the configuration directory following XDG spec.

    Returns:
        Path to the configuration directory.
    """
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg_config_home) if xdg_config_home else Path.home() / ".config"

    config_dir = base / APP_NAME
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_default_config_path() -> Path:
    return get_config_dir() / "config.yaml"


class YamlConfigLoader:
    """Loads and saves plain dictionaries from/to YAML files."""

    def load(self, path: str) -> dict[str, Any]:
        """Load a YAML mapping.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            yaml.YAMLError: If the file is not valid YAML.
        """
        config_path = Path(path)

        if not config_path.exists():
            logger.debug("config_file_not_found", path=path)
            raise FileNotFoundError(f"Configuration file not found: {path}")

        data = yaml.safe_load(config_path.read_text())
        if data is None:
            return {}

        return data  # type: ignore[no-any-return]

    def save(self, config: dict[str, Any], path: str) -> None:
        config_path = Path(path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        content = yaml.dump(config, default_flow_style=False, sort_keys=False)
        config_path.write_text(content)

        logger.debug("config_saved", path=path)


class ConfigManager:
    """Loads and saves the checker's ``config.yaml``."""

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize the configuration manager.

        Args:
            config_path: Optional path to configuration file.
                        Uses default path if not provided.
        """
        self.config_path = config_path or get_default_config_path()
        self._loader = YamlConfigLoader()
        self._config: CheckerConfig | None = None

    def load(self) -> CheckerConfig:
        """Load configuration from file, or defaults if the file doesn't exist."""
        try:
            data = self._loader.load(str(self.config_path))
            self._config = CheckerConfig(**data)
        except FileNotFoundError:
            logger.info("using_default_config")
            self._config = CheckerConfig()

        return self._config

    def get_config(self) -> CheckerConfig:
        if self._config is None:
            self.load()
        return self._config or CheckerConfig()

    def get_storage_dir(self) -> Path:
        """Directory holding the YAML storage tiers."""
        return self.get_config().storage_dir or self.config_path.parent


def merge_settings(base: ManagementSettings, values: dict[str, Any]) -> ManagementSettings:
    """Overlay stored or policy values on settings.

    ``never_check`` entries are merged key by key; other keys are replaced.

    Args:
        base: Settings to start from.
        values: Raw values, as stored.

    Returns:
        New validated settings.
    """
    data = base.model_dump()
    for key, value in values.items():
        if key == "never_check" and isinstance(value, dict):
            data["never_check"] = {**data["never_check"], **value}
        else:
            data[key] = value
    return ManagementSettings.model_validate(data)


def apply_managed_policy(base: ManagementSettings, policy: ManagedPolicy) -> ManagementSettings:
    """Apply an enterprise policy to user settings.

    Policy overrides replace user values, and every policy-ignored id that
    is a known component (already a ``never_check`` key) is forced to True.
    """
    settings = merge_settings(base, policy.overrides)
    for component_id in policy.ignored_extensions:
        if component_id in settings.never_check:
            settings.never_check[component_id] = True
    return settings


class MemoryStorage(StorageBackend):
    """In-process storage backend.

    Example:
        >>> storage = MemoryStorage(sync={"check_external_apps": False})
    """

    def __init__(
        self,
        sync: dict[str, Any] | None = None,
        policy: ManagedPolicy | None = None,
        badge_text: str = "",
        last_scheduled_update: float = 0.0,
    ) -> None:
        self.sync: dict[str, Any] = dict(sync or {})
        self.policy = policy or ManagedPolicy()
        self.badge_text = badge_text
        self.last_scheduled_update = last_scheduled_update
        self.removed_writes = 0

    async def get_settings(self, defaults: ManagementSettings) -> ManagementSettings:
        return merge_settings(defaults, self.sync)

    async def get_managed_overrides(self, base: ManagementSettings) -> ManagementSettings:
        return apply_managed_policy(base, self.policy)

    async def set_removed_extensions(self, removed: dict[str, bool]) -> None:
        self.sync["removed_extensions"] = dict(removed)
        self.removed_writes += 1

    async def get_badge_text(self) -> str:
        return self.badge_text

    async def set_badge_text(self, text: str) -> None:
        self.badge_text = text

    async def get_last_scheduled_update(self) -> float:
        return self.last_scheduled_update

    async def set_last_scheduled_update(self, timestamp: float) -> None:
        self.last_scheduled_update = timestamp


class YamlStorage(StorageBackend):
    """Storage backend keeping each tier in its own YAML file.

    * ``sync.yaml``: user settings
    * ``managed.yaml``: enterprise policy (read-only here)
    * ``local.yaml``: badge text and last scheduled check
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self._loader = YamlConfigLoader()
        self._log = logger.bind(component="yaml_storage", directory=str(directory))

    def _read(self, filename: str) -> dict[str, Any]:
        try:
            return self._loader.load(str(self.directory / filename))
        except FileNotFoundError:
            return {}

    def _update(self, filename: str, values: dict[str, Any]) -> None:
        data = self._read(filename)
        data.update(values)
        self._loader.save(data, str(self.directory / filename))

    async def get_settings(self, defaults: ManagementSettings) -> ManagementSettings:
        stored = await asyncio.to_thread(self._read, SYNC_FILE)
        return merge_settings(defaults, stored)

    async def get_managed_overrides(self, base: ManagementSettings) -> ManagementSettings:
        data = await asyncio.to_thread(self._read, MANAGED_FILE)
        ignored = data.pop("ignored_extensions", [])
        policy = ManagedPolicy(overrides=data, ignored_extensions=ignored or [])
        return apply_managed_policy(base, policy)

    async def set_removed_extensions(self, removed: dict[str, bool]) -> None:
        await asyncio.to_thread(self._update, SYNC_FILE, {"removed_extensions": dict(removed)})
        self._log.debug("removed_extensions_saved", count=len(removed))

    async def get_badge_text(self) -> str:
        data = await asyncio.to_thread(self._read, LOCAL_FILE)
        return str(data.get("badge_display", ""))

    async def set_badge_text(self, text: str) -> None:
        await asyncio.to_thread(self._update, LOCAL_FILE, {"badge_display": text})

    async def get_last_scheduled_update(self) -> float:
        data = await asyncio.to_thread(self._read, LOCAL_FILE)
        return float(data.get("last_scheduled_update", 0))

    async def set_last_scheduled_update(self, timestamp: float) -> None:
        await asyncio.to_thread(self._update, LOCAL_FILE, {"last_scheduled_update": timestamp})
