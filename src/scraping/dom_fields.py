"""Field extraction over a rendered DOM snapshot.

This is the logic the headless renderer applies after the page has run its
JavaScript. It takes serialized HTML and returns fields plus heading-driven
sections, so it can be tested against fixtures without a browser.
"""

import logging

from bs4 import BeautifulSoup, Tag

from src.core.schemas import StaticExtraction
from src.scraping.selectors import HEADING_TAGS, INLINE_HEADING_TAGS, SECTION_KEYWORDS
from src.scraping.static_extractor import extract_static, format_job_content
from src.scraping.text import element_text, parse_html, strip_noise

logger = logging.getLogger(__name__)

MAX_HEADING_CHARS = 80


class DomFields:
    """Fields, sections and flattened text read from one DOM snapshot."""

    def __init__(
        self,
        extraction: StaticExtraction,
        sections: dict[str, list[str]],
    ) -> None:
        self.extraction = extraction
        self.sections = sections

    @property
    def fields(self) -> dict[str, str]:
        e = self.extraction
        values = {
            "title": e.title,
            "company": e.company,
            "location": e.location,
            "salary": e.salary,
            "job_type": e.job_type,
        }
        return {k: v for k, v in values.items() if v}

    @property
    def text(self) -> str:
        """Formatted content with any sections the body did not already carry."""
        content = format_job_content(self.extraction)
        for name, items in self.sections.items():
            missing = [i for i in items if i not in content]
            if missing:
                content += f"\n\n{name.title()}:\n" + "\n".join(f"- {i}" for i in missing)
        return content


def section_for_heading(text: str) -> str | None:
    """Section name whose keywords appear in a short heading text, or None."""
    lowered = text.lower().strip()
    if not lowered or len(lowered) > MAX_HEADING_CHARS:
        return None
    for name, keywords in SECTION_KEYWORDS.items():
        if any(kw in lowered for kw in keywords):
            return name
    return None


def _is_heading(el: Tag) -> bool:
    if el.name in HEADING_TAGS:
        return True
    if el.name in INLINE_HEADING_TAGS:
        parent = el.parent
        # <p><strong>Requirements</strong></p> counts; bold words inside prose do not.
        return parent is not None and element_text(parent) == element_text(el)
    return False


def _contains_heading(el: Tag) -> bool:
    if _is_heading(el) and section_for_heading(element_text(el)):
        return True
    for child in el.find_all(list(HEADING_TAGS + INLINE_HEADING_TAGS)):
        if _is_heading(child) and section_for_heading(element_text(child)):
            return True
    return False


def harvest_sections(soup: BeautifulSoup | Tag) -> dict[str, list[str]]:
    """Collect content that follows each recognized section heading.

    For every heading matching a section keyword, walk its following siblings
    until the next heading-tag element or the next recognized section
    heading. Lists contribute one entry per item; other blocks contribute
    their text. Inline headings (<p><strong>X</strong></p>) anchor on their
    wrapping block. First heading per section wins.
    """
    sections: dict[str, list[str]] = {}
    for el in soup.find_all(list(HEADING_TAGS + INLINE_HEADING_TAGS)):
        if not _is_heading(el):
            continue
        name = section_for_heading(element_text(el))
        if name is None or name in sections:
            continue

        anchor: Tag = el
        if el.name in INLINE_HEADING_TAGS and isinstance(el.parent, Tag):
            anchor = el.parent

        items: list[str] = []
        for sib in anchor.find_next_siblings():
            if sib.name in HEADING_TAGS or _contains_heading(sib):
                break
            if sib.name in ("ul", "ol"):
                items.extend(t for t in (element_text(li) for li in sib.find_all("li")) if t)
            else:
                text = element_text(sib)
                if text:
                    items.append(text)
        if items:
            sections[name] = items
    return sections


def extract_dom_fields(
    html: str, url: str | None = None, *, main_content_min_chars: int = 200,
) -> DomFields:
    """Apply static heuristics plus the section harvester to a DOM snapshot."""
    extraction = extract_static(html, url, main_content_min_chars=main_content_min_chars)
    soup = strip_noise(parse_html(html))
    sections = harvest_sections(soup)
    logger.debug(
        "DOM snapshot: %d body chars, sections=%s",
        extraction.visible_text_length, sorted(sections),
    )
    return DomFields(extraction, sections)
