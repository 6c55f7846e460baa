"""Registry of known update sources (official stores).

A source is recognized by matching a component's update URL against the
source's pattern. Sources flagged ``ignore`` still count as official when
classifying a single component, but are never polled as an aggregated
batch.

The registry is immutable and shared; per-cycle request URLs are built in
a local accumulator by the request builder, never stored on the registry.

This module also holds the store page helpers used to turn a store detail
page URL into a component id or a direct download URL.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class UpdateSource:
    """An official update source."""

    pattern: re.Pattern[str]
    base_url: str
    name: str
    ignore: bool = False
    user_agent: str | None = None

    def matches(self, update_url: str) -> bool:
        return self.pattern.search(update_url) is not None

    def batch_url(self, prodversion: str) -> str:
        """Return the aggregated request URL before any component ids."""
        return self.base_url + prodversion


CHROME_WEB_STORE = UpdateSource(
    pattern=re.compile(r"clients2\.google\.com/service/update2/crx"),
    base_url=(
        "https://clients2.google.com/service/update2/crx"
        "?response=updatecheck&acceptformat=crx2,crx3&prodversion="
    ),
    name="CWS Extensions",
)

EDGE_ADDONS = UpdateSource(
    pattern=re.compile(r"edge\.microsoft\.com/extensionwebstorebase/v1/crx"),
    base_url=(
        "https://edge.microsoft.com/extensionwebstorebase/v1/crx"
        "?os=win&arch=x64&os_arch=x86_64&nacl_arch=x86-64&prod=edgecrx"
        "&prodchannel=&lang=en-US&acceptformat=crx3&prodversion="
    ),
    name="Edge Extensions",
    ignore=True,
)

OPERA_ADDONS = UpdateSource(
    pattern=re.compile(r"extension-updates\.opera\.com/api/omaha/update"),
    base_url=(
        "https://extension-updates.opera.com/api/omaha/update/"
        "?os=win&arch=x64&os_arch=x86_64&nacl_arch=x86-64&prod=chromiumcrx"
        "&prodchannel=Stable&lang=en-US&acceptformat=crx3&prodversion="
    ),
    name="Opera Extensions",
    ignore=True,
    user_agent="foobar",
)


class SourceRegistry:
    """Ordered, read-only set of update sources.

    Classification returns the first source whose pattern matches.
    """

    def __init__(self, sources: list[UpdateSource] | tuple[UpdateSource, ...]) -> None:
        self._sources = tuple(sources)

    @property
    def sources(self) -> tuple[UpdateSource, ...]:
        return self._sources

    def __iter__(self) -> Iterator[UpdateSource]:
        return iter(self._sources)

    def __len__(self) -> int:
        return len(self._sources)

    def classify(self, update_url: str | None) -> UpdateSource | None:
        """Find the source an update URL belongs to.

        Args:
            update_url: Update URL of a component or request.

        Returns:
            The first matching source, or None for external URLs.
        """
        if not update_url:
            return None
        for source in self._sources:
            if source.matches(update_url):
                return source
        return None

    def is_official_source(self, update_url: str | None) -> bool:
        """Return True if any source matches, ignored sources included."""
        return self.classify(update_url) is not None


def default_registry() -> SourceRegistry:
    """Create the registry of built-in official stores."""
    return SourceRegistry([CHROME_WEB_STORE, EDGE_ADDONS, OPERA_ADDONS])


# =============================================================================
# Store page helpers
# =============================================================================


class Webstore(str, Enum):
    """Store a detail page belongs to."""

    CHROME = "chrome"
    EDGE = "edge"
    OPERA = "opera"
    CHROME_NEW = "chromenew"


IS_CWS = re.compile(r"chrome.google.com/webstore", re.IGNORECASE)
IS_NEW_CWS = re.compile(r"chromewebstore.google.com/", re.IGNORECASE)
IS_OPERA = re.compile(r"addons.opera.com/.*extensions", re.IGNORECASE)
IS_EDGE = re.compile(r"microsoftedge\.microsoft\.com/addons/", re.IGNORECASE)

CWS_ID = re.compile(r".*detail/[^/]*/([a-z]{32})", re.IGNORECASE)
NEW_CWS_ID = re.compile(r".*detail(?:/[^/]+)?/([a-z]{32})", re.IGNORECASE)
OPERA_ID = re.compile(r".*details/([^/?#]+)", re.IGNORECASE)
EDGE_ID = re.compile(r".*addons/.+?/([a-z]{32})", re.IGNORECASE)

WEBSTORE_PATTERNS: tuple[tuple[re.Pattern[str], Webstore], ...] = (
    (IS_CWS, Webstore.CHROME),
    (IS_EDGE, Webstore.EDGE),
    (IS_OPERA, Webstore.OPERA),
    (IS_NEW_CWS, Webstore.CHROME_NEW),
)


def determine_webstore(page_url: str) -> Webstore:
    """Return the store a detail page URL belongs to (Chrome by default)."""
    for pattern, store in WEBSTORE_PATTERNS:
        if pattern.search(page_url):
            return store
    return Webstore.CHROME


def get_extension_id(page_url: str) -> str | None:
    """Extract the component id from a store detail page URL.

    Examples:
        >>> get_extension_id("https://addons.opera.com/en/extensions/details/dark-reader/")
        'dark-reader'
    """
    for pattern in (CWS_ID, NEW_CWS_ID, OPERA_ID, EDGE_ID):
        match = pattern.match(page_url)
        if match:
            return match.group(1)
    return None


def build_extension_url(
    page_url: str,
    extension_id: str | None = None,
    prodversion: str = "",
) -> str | None:
    """Build the direct download URL for a component shown on a store page.

    Args:
        page_url: Store detail page URL.
        extension_id: Component id; extracted from ``page_url`` if omitted.
        prodversion: Browser version sent to the Chrome Web Store.

    Returns:
        The download URL, or None if the page is not a known store page.
    """
    extension_id = extension_id or get_extension_id(page_url)
    if extension_id is None:
        logger.debug("extension_id_not_found", page_url=page_url)
        return None

    if IS_CWS.search(page_url) or IS_NEW_CWS.search(page_url):
        return (
            "https://clients2.google.com/service/update2/crx?response=redirect"
            f"&acceptformat=crx2,crx3&prodversion={prodversion}"
            f"&x=id%3D{extension_id}%26installsource%3Dondemand%26uc"
        )
    if IS_OPERA.search(page_url):
        return f"https://addons.opera.com/extensions/download/{extension_id}/"
    if IS_EDGE.search(page_url):
        return (
            "https://edge.microsoft.com/extensionwebstorebase/v1/crx?response=redirect"
            f"&x=id%3D{extension_id}%26installsource%3Dondemand%26uc"
        )
    return None
