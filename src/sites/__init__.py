"""Site-specific scraper registry with lazy loading.

Usage:
    from src.sites import get_site_scraper

    scraper = get_site_scraper(url)
    if scraper is not None:
        text = scraper.scrape_html(html, url)
"""

from __future__ import annotations

import importlib
from urllib.parse import urlparse

from src.sites.base import SiteScraper

__all__ = ["SiteScraper", "available_sites", "get_site_scraper", "load_site"]

# Lazy registry: site id -> (host fragment, module path, class name)
_REGISTRY: dict[str, tuple[str, str, str]] = {
    "eplus": ("eplus.com", "src.sites.eplus.scraper", "EplusScraper"),
}


def load_site(site_id: str) -> SiteScraper:
    """Instantiate a site scraper by id.

    Raises:
        ValueError: If the site id is unknown.
    """
    if site_id not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown site '{site_id}'. Available: {valid}"
        raise ValueError(msg)
    _, module_path, class_name = _REGISTRY[site_id]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls()  # type: ignore[no-any-return]


def get_site_scraper(url: str) -> SiteScraper | None:
    """Return the scraper registered for the URL's host, or None."""
    host = urlparse(url).netloc.lower()
    if not host:
        return None
    for site_id, (fragment, _, _) in _REGISTRY.items():
        if fragment in host:
            return load_site(site_id)
    return None


def available_sites() -> list[str]:
    """Return sorted list of registered site ids."""
    return sorted(_REGISTRY)
