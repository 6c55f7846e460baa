"""Tests for per-cycle request construction."""

from __future__ import annotations

from fakes import CWS_UPDATE_URL, EDGE_UPDATE_URL, ID_A, ID_B, ID_C, make_component

from updatecheck.models import InstalledComponent, ManagementSettings
from updatecheck.request_builder import RequestPlan, build_requests, component_query
from updatecheck.sources import CHROME_WEB_STORE, default_registry

PRODVERSION = "120.0.0.0"
EXTERNAL_URL = "https://example.com/updates.xml"


def build(
    components: list[InstalledComponent], settings: ManagementSettings | None = None
) -> RequestPlan:
    return build_requests(
        components, settings or ManagementSettings(), default_registry(), PRODVERSION
    )


class TestStoreAggregation:
    """Official store components share one request."""

    def test_two_components_one_request(self) -> None:
        plan = build([make_component(ID_A), make_component(ID_B)])

        assert len(plan.requests) == 1
        request = plan.requests[0]
        assert request.url == (
            CHROME_WEB_STORE.batch_url(PRODVERSION) + component_query(ID_A) + component_query(ID_B)
        )
        assert request.source_name == "CWS Extensions"
        assert request.component_id is None

    def test_query_segment_format(self) -> None:
        assert component_query(ID_A) == f"&x=id%3D{ID_A}%26uc"

    def test_no_ids_leak_between_cycles(self) -> None:
        """Each build starts from the bare store URL."""
        registry = default_registry()
        settings = ManagementSettings()

        first = build_requests([make_component(ID_A)], settings, registry, PRODVERSION)
        second = build_requests([make_component(ID_B)], settings, registry, PRODVERSION)

        assert ID_A in first.requests[0].url
        assert ID_A not in second.requests[0].url
        assert ID_B in second.requests[0].url

    def test_ignored_store_not_polled(self) -> None:
        """Edge components are classified but never requested as a batch."""
        plan = build([make_component(ID_A, update_url=EDGE_UPDATE_URL)])

        assert plan.requests == []
        assert ID_A in plan.installed_by_id

    def test_store_with_no_components_dropped(self) -> None:
        plan = build([make_component(ID_A, update_url=EXTERNAL_URL)])

        assert all(r.source_name != "CWS Extensions" for r in plan.requests)

    def test_check_store_apps_disabled(self) -> None:
        plan = build([make_component(ID_A)], ManagementSettings(check_store_apps=False))

        assert plan.requests == []
        assert ID_A in plan.installed_by_id


class TestExternalRequests:
    """Components with third-party update URLs get standalone requests."""

    def test_standalone_request(self) -> None:
        component = make_component(ID_A, update_url=EXTERNAL_URL, name="Ext A")

        plan = build([component])

        assert len(plan.requests) == 1
        request = plan.requests[0]
        assert request.url == EXTERNAL_URL
        assert request.component_id == ID_A
        assert request.source_name == "Ext A"

    def test_check_external_apps_disabled(self) -> None:
        plan = build(
            [make_component(ID_A, update_url=EXTERNAL_URL)],
            ManagementSettings(check_external_apps=False),
        )

        assert plan.requests == []
        assert ID_A in plan.installed_by_id

    def test_external_before_store_requests(self) -> None:
        plan = build(
            [
                make_component(ID_A),
                make_component(ID_B, update_url=EXTERNAL_URL),
                make_component(ID_C, update_url="https://other.example.org/u.xml"),
            ]
        )

        assert [r.component_id for r in plan.requests] == [ID_B, ID_C, None]


class TestSkippedComponents:
    """Components excluded from the cycle."""

    def test_never_check_component_skipped(self) -> None:
        settings = ManagementSettings(never_check={ID_A: True, ID_B: False})

        plan = build([make_component(ID_A), make_component(ID_B)], settings)

        assert ID_A not in plan.installed_by_id
        assert ID_A not in plan.requests[0].url
        assert ID_B in plan.requests[0].url

    def test_component_without_update_url_skipped(self) -> None:
        plan = build([make_component(ID_A, update_url=None)])

        assert plan.requests == []
        assert plan.installed_by_id == {}

    def test_empty_inventory(self) -> None:
        plan = build([])

        assert plan.requests == []


def test_installed_by_id_keeps_components() -> None:
    component = make_component(ID_A, version="3.1")

    plan = build_requests([component], ManagementSettings(), default_registry())

    assert plan.installed_by_id == {ID_A: component}
    assert plan.requests[0].url.startswith(CWS_UPDATE_URL)
