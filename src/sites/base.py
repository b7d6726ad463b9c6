"""Abstract base class for per-domain extraction recipes."""

from abc import ABC, abstractmethod
from urllib.parse import urlparse

from src.scraping.fetcher import ResilientFetcher

DEFAULT_MIN_CHARS = 500


class SiteScraper(ABC):
    """Base class that every site-specific scraper must implement.

    Subclasses apply increasingly generic stages, each gated on
    ``min_chars``, and backfill fields from site defaults.
    """

    #: Selectors or visible text the renderer may wait for on this site.
    wait_markers: tuple[str, ...] = ()

    #: Step-by-step manual instructions shown when extraction fails.
    manual_instructions: str = ""

    def __init__(self, min_chars: int = DEFAULT_MIN_CHARS) -> None:
        self.min_chars = min_chars

    @property
    @abstractmethod
    def site_id(self) -> str:
        """Unique identifier for this site (e.g. 'eplus')."""

    @property
    @abstractmethod
    def domains(self) -> tuple[str, ...]:
        """Host fragments this scraper handles (e.g. ('eplus.com',))."""

    @abstractmethod
    def scrape_html(self, html: str, url: str) -> str:
        """Extract job text from already-fetched HTML. Pure."""

    def matches(self, url: str) -> bool:
        host = urlparse(url).netloc.lower()
        return any(domain in host for domain in self.domains)

    async def scrape(self, url: str, fetcher: ResilientFetcher) -> str:
        """Fetch ``url`` and run the recipe against it."""
        result = await fetcher.fetch(url)
        return self.scrape_html(result.body, url)
