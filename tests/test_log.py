"""Tests for logging configuration."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
import structlog

from updatecheck.log import configure_logging
from updatecheck.models import LogLevel


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()


@pytest.mark.parametrize(
    ("level", "expected"),
    [
        (LogLevel.DEBUG, logging.DEBUG),
        ("warning", logging.WARNING),
        ("ERROR", logging.ERROR),
        ("verbose", logging.INFO),
    ],
)
def test_configure_logging_sets_root_level(level: LogLevel | str, expected: int) -> None:
    configure_logging(level)

    assert logging.getLogger().level == expected
