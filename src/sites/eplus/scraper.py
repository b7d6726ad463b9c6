"""ePlus careers scraper: targeted selectors, then main container, then full page.

Design rules:
  - Each stage must reach min_chars or the next stage runs.
  - Company is always ePlus Inc.; location falls back to the head office.
  - Title falls back to the slug in the job URL.
  - Output is non-empty whenever the page has any visible text.
"""

import logging
from urllib.parse import unquote_plus

from bs4 import BeautifulSoup, Tag

from src.scraping.text import (
    clean_text,
    element_text,
    first_text,
    parse_html,
    remove_elements,
    visible_text,
)
from src.sites.base import SiteScraper
from src.sites.eplus.selectors import (
    DEFAULT_COMPANY,
    DEFAULT_LOCATION,
    IMPACT_FALLBACK_SELECTORS,
    IMPACT_HEADING,
    JOB_URL_PATTERN,
    LOCATION_SELECTORS,
    MAIN_CONTAINER_SELECTORS,
    NOISE_SELECTORS,
    OVERVIEW_SELECTORS,
    QUALIFICATIONS_FALLBACK_SELECTORS,
    QUALIFICATIONS_HEADING,
    SECTION_HEADER_PATTERN,
    SECTION_HEADING_TAGS,
    TITLE_SELECTORS,
    WAIT_MARKERS,
)

logger = logging.getLogger(__name__)

MIN_BLOCK_CHARS = 50
MIN_PARAGRAPH_CHARS = 20


def parse_job_url(url: str) -> tuple[str, str] | None:
    """Return (job_id, title-from-slug) for an ePlus job URL, or None.

    ``/jobs/7456/Principal+Architect+-+Carrier+Networking/`` gives
    ``("7456", "Principal Architect - Carrier Networking")``.
    """
    match = JOB_URL_PATTERN.search(url)
    if not match:
        return None
    slug = clean_text(unquote_plus(match.group(2)))
    return match.group(1), slug


class EplusScraper(SiteScraper):
    """Extraction recipe for careers.eplus.com job pages."""

    wait_markers = WAIT_MARKERS
    manual_instructions = (
        "ePlus careers uses a dynamic application that requires JavaScript. "
        "To get the job description:\n"
        "1. Open the link in your browser\n"
        '2. Wait for the page to fully load (you should see "YOUR IMPACT" and '
        '"QUALIFICATIONS" sections)\n'
        "3. Select all text (Ctrl+A or Cmd+A)\n"
        '4. Copy and paste it here using the "Paste Text" option'
    )

    @property
    def site_id(self) -> str:
        return "eplus"

    @property
    def domains(self) -> tuple[str, ...]:
        return ("eplus.com",)

    def scrape_html(self, html: str, url: str) -> str:
        soup = parse_html(html)
        remove_elements(soup, ("script", "style", "noscript"))

        title = first_text(soup, TITLE_SELECTORS)
        if not title:
            info = parse_job_url(url)
            title = info[1] if info else ""
        location = first_text(soup, LOCATION_SELECTORS) or DEFAULT_LOCATION
        header = self._header(title, location)

        content = header + self._targeted(soup)
        if len(content) >= self.min_chars:
            logger.info("ePlus stage 1 (targeted) produced %d chars", len(content))
            return content.strip()

        content = header + self._main_container(soup)
        if len(content) >= self.min_chars:
            logger.info("ePlus stage 2 (main container) produced %d chars", len(content))
            return content.strip()

        full = self._full_page(soup)
        if not full:
            logger.warning("ePlus page has no visible text: %s", url)
            return ""
        logger.info("ePlus stage 3 (full page) produced %d chars", len(header) + len(full))
        return (header + full).strip()

    # --- Stages ---

    def _targeted(self, soup: BeautifulSoup) -> str:
        parts: list[str] = []

        overview = self._overview(soup)
        if overview:
            parts.append(f"Overview:\n{overview}")

        impact = self._section_items(soup, IMPACT_HEADING, IMPACT_FALLBACK_SELECTORS)
        if impact:
            parts.append("Job Responsibilities:\n" + "\n".join(f"- {i}" for i in impact))

        quals = self._section_items(
            soup, QUALIFICATIONS_HEADING, QUALIFICATIONS_FALLBACK_SELECTORS,
        )
        if quals:
            parts.append("Qualifications:\n" + "\n".join(f"- {q}" for q in quals))

        return "\n\n".join(parts)

    def _main_container(self, soup: BeautifulSoup) -> str:
        container = None
        for selector in MAIN_CONTAINER_SELECTORS:
            container = soup.select_one(selector)
            if container is not None and element_text(container):
                break
            container = None
        if container is None:
            return ""

        lines: list[str] = []
        for raw in container.get_text("\n").split("\n"):
            line = clean_text(raw)
            if SECTION_HEADER_PATTERN.match(line) and len(line) < MIN_BLOCK_CHARS:
                lines.append(f"\n{line}:")
            elif len(line) > MIN_BLOCK_CHARS:
                lines.append(line)
        return "\n".join(lines)

    def _full_page(self, soup: BeautifulSoup) -> str:
        remove_elements(soup, NOISE_SELECTORS)
        items: list[str] = []
        for el in soup.find_all(["h1", "h2", "h3", "h4", "p", "li"]):
            text = element_text(el)
            if not text:
                continue
            if el.name == "li":
                items.append(f"- {text}")
            elif el.name == "p":
                if len(text) > MIN_PARAGRAPH_CHARS:
                    items.append(text)
            else:
                items.append(f"\n{text}")
        if items:
            return "\n".join(items)
        return visible_text(soup)

    # --- Helpers ---

    @staticmethod
    def _header(title: str, location: str) -> str:
        lines = [f"Job Title: {title}"] if title else []
        lines += [f"Company: {DEFAULT_COMPANY}", f"Location: {location}"]
        return "\n".join(lines) + "\n\n"

    @staticmethod
    def _overview(soup: BeautifulSoup) -> str:
        anchor = soup.select_one(OVERVIEW_SELECTORS[0])
        if anchor is not None and isinstance(anchor.parent, Tag):
            text = element_text(anchor.parent)
            if text and text.lower() != "overview":
                return text
        for selector in OVERVIEW_SELECTORS[1:]:
            text = first_text(soup, (selector,))
            if text and text.lower() != "overview":
                return text
        return ""

    @staticmethod
    def _section_items(
        soup: BeautifulSoup, heading: str, fallbacks: tuple[str, ...],
    ) -> list[str]:
        """List items under the element wrapping a heading containing ``heading``."""
        for el in soup.find_all(list(SECTION_HEADING_TAGS)):
            if heading in element_text(el).lower() and isinstance(el.parent, Tag):
                items = [element_text(li) for li in el.parent.find_all("li")]
                items = [i for i in items if i]
                if items:
                    return items
        for selector in fallbacks:
            container = soup.select_one(selector)
            if container is not None:
                items = [element_text(li) for li in container.find_all("li")]
                items = [i for i in items if i]
                if items:
                    return items
        return []
