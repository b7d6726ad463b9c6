"""Static HTML extraction: selector heuristics over already-rendered markup.

Order of evidence (first non-empty value per field wins):
  1. JSON-LD JobPosting blocks
  2. Known job-board selectors, chosen by URL domain
  3. Generic selector tuples from selectors.py
  4. Main-content container, then whole-body visible text

The result's visible_text_length drives every downstream escalation.
"""

import json
import logging
from typing import Any

from bs4 import BeautifulSoup, Tag

from src.core.schemas import StaticExtraction
from src.scraping.selectors import (
    COMPANY_SELECTORS,
    DESCRIPTION_SELECTORS,
    HEADING_TAGS,
    INLINE_HEADING_TAGS,
    JOB_BOARD_DOMAINS,
    JOB_BOARD_SELECTORS,
    LOCATION_SELECTORS,
    MAIN_CONTENT_SELECTORS,
    SALARY_SELECTORS,
    SCRIPT_TAGS,
    SECTION_KEYWORDS,
    TITLE_SELECTORS,
)
from src.scraping.text import (
    clean_text,
    element_text,
    find_job_type,
    find_salary,
    first_text,
    parse_html,
    remove_elements,
    strip_noise,
)

logger = logging.getLogger(__name__)

SHORT_DESCRIPTION_CHARS = 100


def is_sufficient(text: str, threshold: int) -> bool:
    """True when text carries at least ``threshold`` characters of content."""
    return len(text.strip()) >= threshold


def detect_job_board(url: str | None) -> str | None:
    """Return the job-board key for a URL (e.g. 'greenhouse'), or None."""
    if not url:
        return None
    lowered = url.lower()
    for fragment, board in JOB_BOARD_DOMAINS:
        if fragment in lowered:
            return board
    return None


def find_json_ld_job(soup: BeautifulSoup) -> dict[str, Any] | None:
    """First JobPosting object in any ld+json block, including @graph lists."""
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("Skipping malformed JSON-LD block")
            continue
        job = _find_job_posting(payload)
        if job is not None:
            return job
    return None


def _find_job_posting(payload: Any) -> dict[str, Any] | None:
    if isinstance(payload, list):
        for item in payload:
            found = _find_job_posting(item)
            if found is not None:
                return found
        return None
    if not isinstance(payload, dict):
        return None
    types = payload.get("@type")
    if types == "JobPosting" or (isinstance(types, list) and "JobPosting" in types):
        return payload
    if isinstance(payload.get("jobPosting"), dict):
        return payload["jobPosting"]
    if "@graph" in payload:
        return _find_job_posting(payload["@graph"])
    return None


def json_ld_fields(job: dict[str, Any]) -> dict[str, str]:
    """Flatten a schema.org JobPosting into plain string fields."""
    org = job.get("hiringOrganization")
    company = org.get("name", "") if isinstance(org, dict) else str(org or "")

    description = str(job.get("description") or "")
    if "<" in description:
        description = BeautifulSoup(description, "html.parser").get_text("\n")

    employment = job.get("employmentType") or ""
    if isinstance(employment, list):
        employment = ", ".join(str(e) for e in employment)

    return {
        "title": clean_text(str(job.get("title") or "")),
        "company": clean_text(str(company)),
        "location": _json_ld_location(job.get("jobLocation")),
        "description": description,
        "salary": _json_ld_salary(job.get("baseSalary")),
        "job_type": clean_text(str(employment)).lower().replace("_", "-"),
    }


def _json_ld_location(loc: Any) -> str:
    if isinstance(loc, list):
        loc = loc[0] if loc else None
    if not isinstance(loc, dict):
        return clean_text(str(loc or ""))
    address = loc.get("address")
    if isinstance(address, dict):
        parts = [
            address.get("addressLocality"),
            address.get("addressRegion"),
            address.get("addressCountry") if not address.get("addressRegion") else None,
        ]
        text = ", ".join(str(p) for p in parts if p and isinstance(p, str))
        if text:
            return clean_text(text)
    return clean_text(str(loc.get("name") or ""))


def _json_ld_salary(salary: Any) -> str:
    if not isinstance(salary, dict):
        return clean_text(str(salary or ""))
    value = salary.get("value")
    currency = salary.get("currency", "")
    if isinstance(value, dict):
        low, high = value.get("minValue"), value.get("maxValue")
        unit = value.get("unitText", "")
        if low is not None and high is not None:
            text = f"{currency} {low} - {high} {unit}"
        else:
            text = f"{currency} {value.get('value', '')} {unit}"
        return clean_text(text)
    return clean_text(f"{currency} {value or ''}")


def board_fields(soup: BeautifulSoup, board: str) -> dict[str, str]:
    selectors = JOB_BOARD_SELECTORS.get(board, {})
    return {field: first_text(soup, sels) for field, sels in selectors.items()}


def extract_sections(soup: BeautifulSoup | Tag) -> dict[str, list[str]]:
    """Map section name to the list items following its heading.

    A heading (h1-h6, strong, b) whose text contains a section keyword claims
    the next <ul>/<ol> in document order. First claim per section wins.
    """
    sections: dict[str, list[str]] = {}
    for el in soup.find_all(list(HEADING_TAGS + INLINE_HEADING_TAGS)):
        heading = element_text(el).lower()
        if not heading or len(heading) > 80:
            continue
        for name, keywords in SECTION_KEYWORDS.items():
            if name in sections or not any(kw in heading for kw in keywords):
                continue
            lst = el.find_next(["ul", "ol"])
            if lst is None:
                continue
            items = [element_text(li) for li in lst.find_all("li")]
            items = [i for i in items if i]
            if items:
                sections[name] = items
            break
    return sections


def extract_static(
    html: str,
    url: str | None = None,
    *,
    main_content_min_chars: int = 200,
) -> StaticExtraction:
    """Extract job fields and body text from static HTML.

    Args:
        html: Raw page markup.
        url: Source URL, used to pick a job-board recipe.
        main_content_min_chars: Minimum text for the main-content fallback.

    Returns:
        StaticExtraction. body_text is never None; it may be empty.
    """
    soup = parse_html(html)
    fields: dict[str, str] = {}
    source = "body"

    job = find_json_ld_job(soup)
    if job is not None:
        fields = json_ld_fields(job)
        if fields.get("description"):
            source = "json-ld"

    remove_elements(soup, SCRIPT_TAGS)

    board = detect_job_board(url)
    if board is not None:
        for key, value in board_fields(soup, board).items():
            if value and not fields.get(key):
                fields[key] = value
                if key == "description":
                    source = f"job-board:{board}"

    for key, selectors in (
        ("title", TITLE_SELECTORS),
        ("company", COMPANY_SELECTORS),
        ("location", LOCATION_SELECTORS),
        ("salary", SALARY_SELECTORS),
    ):
        if not fields.get(key):
            fields[key] = first_text(soup, selectors)

    sections = extract_sections(soup)
    strip_noise(soup)

    description = fields.get("description", "")
    if not description:
        description = first_text(soup, DESCRIPTION_SELECTORS)
        if description:
            source = "selectors"
    if len(clean_text(description)) < SHORT_DESCRIPTION_CHARS:
        main = first_text(soup, MAIN_CONTENT_SELECTORS)
        if len(main) > main_content_min_chars:
            description, source = main, "main-content"
    if len(clean_text(description)) < SHORT_DESCRIPTION_CHARS:
        root = soup.body or soup
        description, source = root.get_text(" "), "body"

    body_text = clean_text(description)
    for name, items in sections.items():
        if all(item in body_text for item in items):
            continue
        body_text += f"\n\n{name.title()}:\n" + "\n".join(f"- {i}" for i in items)

    salary = fields.get("salary") or find_salary(body_text)
    job_type = fields.get("job_type") or find_job_type(body_text)

    logger.debug(
        "Static extraction: %d chars via %s (title=%r)",
        len(body_text), source, fields.get("title", ""),
    )
    return StaticExtraction(
        title=fields.get("title", ""),
        company=fields.get("company", ""),
        location=fields.get("location", ""),
        salary=salary,
        job_type=job_type,
        body_text=body_text,
        visible_text_length=len(body_text),
        source=source,
    )


def format_job_content(extraction: StaticExtraction) -> str:
    """Render an extraction as the plain-text layout the structurer expects."""
    lines: list[str] = []
    for label, value in (
        ("Job Title", extraction.title),
        ("Company", extraction.company),
        ("Location", extraction.location),
        ("Salary", extraction.salary),
        ("Job Type", extraction.job_type),
    ):
        if value:
            lines.append(f"{label}: {value}")
    header = "\n".join(lines)
    body = f"Description:\n{extraction.body_text}" if extraction.body_text else ""
    return "\n\n".join(part for part in (header, body) if part)
