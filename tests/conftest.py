"""Shared test fixtures."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from fakes import FakeSession

if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


@pytest.fixture(autouse=True)
def isolated_config_dir(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Keep tests away from the real ``~/.config`` directory."""
    config_home = tmp_path / "xdg_config"
    config_home.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))

    yield config_home


@pytest.fixture
def fake_session() -> FakeSession:
    """Create a fake HTTP session with no routes; unrouted URLs answer 404.

    Returns:
        FakeSession instance. Tests add entries to ``routes``.
    """
    return FakeSession({})
