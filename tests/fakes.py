"""HTTP fakes and gupdate response builders shared by the tests."""

from __future__ import annotations

from typing import Any

from updatecheck.interfaces import ComponentInventory
from updatecheck.models import InstalledComponent

CWS_UPDATE_URL = "https://clients2.google.com/service/update2/crx"
EDGE_UPDATE_URL = "https://edge.microsoft.com/extensionwebstorebase/v1/crx"
CWS_BATCH_PREFIX = "https://clients2.google.com/service/update2/crx?response=updatecheck"

ID_A = "a" * 32
ID_B = "b" * 32
ID_C = "c" * 32
ID_D = "d" * 32

Route = tuple[int, str | bytes] | BaseException


def app_xml(
    appid: str,
    status: str = "ok",
    version: str | None = "2.0",
    codebase: str | None = "https://example.com/ext.crx",
) -> str:
    """Render one ``app`` element of a gupdate response."""
    attrs = f'status="{status}"'
    if version is not None:
        attrs += f' version="{version}"'
    if codebase is not None and status == "ok":
        attrs = f'codebase="{codebase}" ' + attrs
    return f'<app appid="{appid}" cohort="1::" cohortname=""><updatecheck {attrs}/></app>'


def gupdate_xml(*apps: str) -> str:
    """Render a gupdate response document."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<gupdate xmlns="http://www.google.com/update2/response" protocol="2.0" server="prod">\n'
        + "\n".join(f"  {app}" for app in apps)
        + "\n</gupdate>\n"
    )


def make_component(
    component_id: str,
    version: str = "1.0",
    update_url: str | None = CWS_UPDATE_URL,
    name: str | None = None,
) -> InstalledComponent:
    return InstalledComponent(
        id=component_id,
        name=name or f"Component {component_id[:4]}",
        version=version,
        update_url=update_url,
    )


class FakeResponse:
    """Async context manager standing in for ``aiohttp.ClientResponse``.

    A bytes body is decoded as UTF-8 by ``text()``, so invalid bytes raise
    ``UnicodeDecodeError`` the way aiohttp does.
    """

    def __init__(self, status: int, body: str | bytes) -> None:
        self.status = status
        self._body = body

    async def text(self) -> str:
        if isinstance(self._body, bytes):
            return self._body.decode("utf-8")
        return self._body

    async def __aenter__(self) -> FakeResponse:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None


class FakeSession:
    """Routes GET requests by URL prefix to canned responses or exceptions."""

    def __init__(self, routes: dict[str, Route]) -> None:
        self.routes = routes
        self.calls: list[tuple[str, dict[str, str]]] = []

    def get(self, url: str, headers: dict[str, str] | None = None, **kwargs: Any) -> FakeResponse:
        self.calls.append((url, headers or {}))
        for prefix, result in self.routes.items():
            if url.startswith(prefix):
                if isinstance(result, BaseException):
                    raise result
                return FakeResponse(*result)
        return FakeResponse(404, "")

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]


class StaticInventory(ComponentInventory):
    """Inventory returning a fixed component list."""

    def __init__(self, components: list[InstalledComponent]) -> None:
        self.components = components

    async def list_installed(self) -> list[InstalledComponent]:
        return list(self.components)
