"""Tests for data models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from updatecheck.models import (
    CheckSummary,
    ComponentRef,
    FetchOutcome,
    InstalledComponent,
    ManagementSettings,
    UpdateRequest,
)


class TestInstalledComponent:
    """Tests for InstalledComponent model."""

    def test_from_browser_payload(self) -> None:
        component = InstalledComponent.model_validate(
            {
                "id": "abc",
                "name": "Dark Reader",
                "version": "4.9.1",
                "updateUrl": "https://example.com/u.xml",
                "homepageUrl": "https://example.com",
                "icons": [{"size": 16, "url": "icon16.png"}],
            }
        )

        assert component.update_url == "https://example.com/u.xml"
        assert component.homepage_url == "https://example.com"
        assert component.icons[0].size == 16

    def test_defaults(self) -> None:
        component = InstalledComponent(id="abc")

        assert component.version == "0"
        assert component.update_url is None
        assert component.enabled is True

    def test_frozen(self) -> None:
        component = InstalledComponent(id="abc")

        with pytest.raises(ValidationError):
            component.version = "2.0"  # type: ignore[misc]


class TestManagementSettings:
    """Tests for ManagementSettings model."""

    def test_defaults(self) -> None:
        settings = ManagementSettings()

        assert settings.auto_update is True
        assert settings.check_store_apps is True
        assert settings.check_external_apps is True
        assert settings.update_period_in_minutes == 60
        assert settings.removed_extensions == {}

    def test_is_ignored(self) -> None:
        settings = ManagementSettings(never_check={"a": True, "b": False})

        assert settings.is_ignored("a") is True
        assert settings.is_ignored("b") is False
        assert settings.is_ignored("c") is False

    def test_period_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ManagementSettings(update_period_in_minutes=0)


class TestCheckSummary:
    """Tests for CheckSummary model."""

    def test_totals_skip_failed_outcomes(self) -> None:
        request = UpdateRequest(url="https://example.com/u.xml")
        summary = CheckSummary(
            run_id="abc12345",
            outcomes=[
                FetchOutcome(request=request, updates_found=2),
                FetchOutcome(request=request, updates_found=1),
                FetchOutcome(request=request, error_message="HTTP status 500"),
            ],
        )

        assert summary.total_updates == 3
        assert summary.failed_requests == 1
        assert summary.outcomes[2].failed is True

    def test_component_ref_equality(self) -> None:
        assert ComponentRef(name="CWS Extensions") == ComponentRef(name="CWS Extensions", id=None)
