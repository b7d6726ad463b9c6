"""Mine single-page-app payloads for job data the static DOM does not show.

Strategies, first match wins:
  a. global-state   : hydration assignments (window.__INITIAL_STATE__ = {...})
  b. script-json    : JSON objects with job-like keys inside inline scripts,
                      plus JSON-LD / microdata as structured-data
  c. api-endpoint   : declared API bases surfaced as follow-up URLs (never fetched)
  d. text-blocks    : leaf text nodes that read like job-description paragraphs

Every JSON parse is isolated: a failure moves on to the next candidate.
"""

import json
import logging
import re
from typing import Any
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from src.core.schemas import MinedRecord
from src.scraping.static_extractor import find_json_ld_job, json_ld_fields
from src.scraping.text import clean_text, parse_html

logger = logging.getLogger(__name__)

GLOBAL_STATE_PATTERN = re.compile(
    r"(?:window\.)?(__INITIAL_STATE__|__NEXT_DATA__|__NUXT__|__PRELOADED_STATE__|__APP_STATE__)"
    r"\s*=\s*"
    r"|window\.__data\s*=\s*",
)
API_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"api[Uu]rl\s*[:=]\s*[\"']([^\"']+)[\"']"),
    re.compile(r"api[Bb]ase\s*[:=]\s*[\"']([^\"']+)[\"']"),
    re.compile(r"endpoint\s*[:=]\s*[\"']([^\"']+)[\"']"),
    re.compile(r"baseURL\s*[:=]\s*[\"']([^\"']+)[\"']"),
)
JOB_ID_PATTERN = re.compile(r"(?:jobs?|positions?|postings?|careers?)[/\-](\d+)", re.IGNORECASE)

JOB_KEYS: tuple[str, ...] = ("job", "position", "jobTitle", "title")
SCRIPT_HINTS: tuple[str, ...] = ("job", "position", "career")
TEXT_BLOCK_KEYWORDS: tuple[str, ...] = (
    "responsibilities",
    "qualifications",
    "requirements",
    "experience",
    "skills",
    "benefits",
    "salary",
    "location",
    "position",
    "role",
)
TEXT_BLOCK_MIN = 50
TEXT_BLOCK_MAX = 1000

# Sites whose job pages are known to hydrate from an API keyed by job id.
API_BACKED_SITES: tuple[str, ...] = ("eplus",)

_MAX_SCRIPT_CANDIDATES = 200
_MAX_DEPTH = 8


# ---------------------------------------------------------------------------
# JSON recovery
# ---------------------------------------------------------------------------


def extract_balanced(text: str, start: int = 0) -> str | None:
    """Return the balanced {...} or [...] beginning at the first opener at/after start.

    String literals (single or double quoted) and backslash escapes are
    honoured so braces inside strings do not confuse the scan.
    """
    opener_at = -1
    for i in range(start, len(text)):
        if text[i] in "{[":
            opener_at = i
            break
        if not text[i].isspace():
            return None
    if opener_at < 0:
        return None

    depth = 0
    quote: str | None = None
    escaped = False
    for i in range(opener_at, len(text)):
        ch = text[i]
        if quote is not None:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
            continue
        if ch in "\"'":
            quote = ch
        elif ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
            if depth == 0:
                return text[opener_at : i + 1]
    return None


def loads_lenient(raw: str) -> Any:
    """json.loads, retrying once with JS ``undefined`` mapped to null."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return json.loads(re.sub(r"\bundefined\b", "null", raw))


def is_job_like(obj: Any) -> bool:
    return isinstance(obj, dict) and any(key in obj for key in JOB_KEYS)


def find_job_data(obj: Any, depth: int = 0) -> dict[str, Any] | None:
    """Depth-first search for the first job-like mapping in a JSON tree."""
    if depth > _MAX_DEPTH:
        return None
    if isinstance(obj, dict):
        if is_job_like(obj):
            for key in ("job", "position"):
                if isinstance(obj.get(key), dict):
                    return obj[key]  # type: ignore[no-any-return]
            return obj
        children: Any = obj.values()
    elif isinstance(obj, list):
        children = obj
    else:
        return None
    for child in children:
        found = find_job_data(child, depth + 1)
        if found is not None:
            return found
    return None


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def mine_global_state(soup: BeautifulSoup, html: str) -> MinedRecord | None:
    """Strategy (a): hydration payload assignments and the Next.js data tag."""
    next_tag = soup.find("script", id="__NEXT_DATA__")
    if next_tag is not None and next_tag.string:
        try:
            state = json.loads(next_tag.string)
            return MinedRecord(
                strategy="global-state", data=find_job_data(state) or state,
            )
        except json.JSONDecodeError:
            logger.debug("__NEXT_DATA__ tag is not valid JSON")

    for match in GLOBAL_STATE_PATTERN.finditer(html):
        raw = extract_balanced(html, match.end())
        if raw is None:
            continue
        try:
            state = loads_lenient(raw)
        except json.JSONDecodeError:
            logger.debug("Unparseable global state at offset %d", match.start())
            continue
        if isinstance(state, (dict, list)):
            data = find_job_data(state)
            if data is None and isinstance(state, dict):
                data = state
            if data is not None:
                logger.info("Mined global state (%s)", match.group(1) or "window.__data")
                return MinedRecord(strategy="global-state", data=data)
    return None


def mine_structured_data(soup: BeautifulSoup) -> MinedRecord | None:
    """JSON-LD JobPosting or schema.org microdata, as part of strategy (b)."""
    job = find_json_ld_job(soup)
    if job is not None:
        return MinedRecord(strategy="structured-data", data=json_ld_fields(job))

    container = soup.select_one('[itemtype*="JobPosting"]')
    if container is not None:
        props: dict[str, Any] = {}
        for el in container.select("[itemprop]"):
            name = str(el.get("itemprop"))
            value = el.get("content") or el.get_text(" ")
            value = clean_text(str(value))
            if value and name not in props:
                props[name] = value
        if props:
            return MinedRecord(strategy="structured-data", data=props)
    return None


def mine_script_json(soup: BeautifulSoup) -> MinedRecord | None:
    """Strategy (b): standalone JSON objects with job keys inside inline scripts."""
    structured = mine_structured_data(soup)
    if structured is not None:
        return structured

    for script in soup.find_all("script"):
        body = script.string or ""
        lowered = body.lower()
        if not any(hint in lowered for hint in SCRIPT_HINTS):
            continue
        data = _first_job_object(body)
        if data is not None:
            logger.info("Mined job JSON from inline script")
            return MinedRecord(strategy="script-json", data=data)
    return None


def _first_job_object(script: str) -> dict[str, Any] | None:
    pos = script.find("{")
    tried = 0
    while pos >= 0 and tried < _MAX_SCRIPT_CANDIDATES:
        tried += 1
        raw = extract_balanced(script, pos)
        if raw is None:
            pos = script.find("{", pos + 1)
            continue
        try:
            obj = loads_lenient(raw)
        except json.JSONDecodeError:
            pos = script.find("{", pos + 1)
            continue
        data = find_job_data(obj)
        if data is not None:
            return data
        pos = script.find("{", pos + len(raw))
    return None


def mine_api_endpoints(soup: BeautifulSoup, url: str) -> MinedRecord | None:
    """Strategy (c): declared API bases plus id-derived candidates for known sites."""
    declared: list[str] = []
    for script in soup.find_all("script"):
        body = script.string or ""
        for pattern in API_PATTERNS:
            for m in pattern.finditer(body):
                candidate = urljoin(url, m.group(1))
                if candidate not in declared:
                    declared.append(candidate)

    generated: list[str] = []
    if any(site in url.lower() for site in API_BACKED_SITES):
        generated = possible_api_urls(url)

    urls = declared + [u for u in generated if u not in declared]
    if not urls:
        return None
    logger.info("Found %d candidate API endpoints for %s", len(urls), url)
    return MinedRecord(strategy="api-endpoint", api_urls=urls)


def mine_text_blocks(soup: BeautifulSoup) -> MinedRecord | None:
    """Strategy (d): leaf text nodes in paragraph range containing a job keyword."""
    root = soup.body or soup
    blocks: list[str] = []
    for el in root.find_all(True):
        if el.name in ("script", "style", "noscript", "template"):
            continue
        if el.find(True) is not None:
            continue
        text = clean_text(el.get_text(" "))
        if not TEXT_BLOCK_MIN < len(text) < TEXT_BLOCK_MAX:
            continue
        lowered = text.lower()
        if any(kw in lowered for kw in TEXT_BLOCK_KEYWORDS) and text not in blocks:
            blocks.append(text)
    if not blocks:
        return None
    logger.info("Found %d job-like text blocks", len(blocks))
    return MinedRecord(strategy="text-blocks", text_blocks=blocks)


def mine(html: str, url: str) -> MinedRecord | None:
    """Run strategies (a)-(d) in order and return the first record with data.

    Endpoints found by (c) never stop the search: they ride along on the
    text-blocks record, and an endpoints-only record is returned only when
    (d) finds nothing.
    """
    soup = parse_html(html)
    found: dict[str, MinedRecord | None] = {}
    for name, run in (
        ("global-state", lambda: mine_global_state(soup, html)),
        ("script-json", lambda: mine_script_json(soup)),
        ("api-endpoint", lambda: mine_api_endpoints(soup, url)),
        ("text-blocks", lambda: mine_text_blocks(soup)),
    ):
        try:
            found[name] = run()
        except Exception:
            logger.warning("SPA mining strategy '%s' failed", name, exc_info=True)
            continue
        record = found[name]
        if record is not None and name in ("global-state", "script-json"):
            return record

    endpoints = found.get("api-endpoint")
    blocks = found.get("text-blocks")
    if blocks is not None:
        if endpoints is not None:
            return blocks.model_copy(update={"api_urls": endpoints.api_urls})
        return blocks
    return endpoints


def possible_api_urls(url: str) -> list[str]:
    """Guess JSON endpoints for a job page from the id in its URL."""
    match = JOB_ID_PATTERN.search(url)
    if not match:
        return []
    parsed = urlparse(url)
    base = f"{parsed.scheme}://{parsed.netloc}"
    job_id = match.group(1)
    paths = (
        "/api/jobs/{id}",
        "/api/v1/jobs/{id}",
        "/api/positions/{id}",
        "/api/postings/{id}",
        "/api/job/{id}",
        "/api/job-postings/{id}",
        "/careers/api/jobs/{id}",
        "/careers-home/api/jobs/{id}",
    )
    return [base + p.format(id=job_id) for p in paths] + [f"{base}/graphql"]


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

_PRIORITY_KEYS: tuple[str, ...] = (
    "title",
    "jobTitle",
    "name",
    "company",
    "companyName",
    "hiringOrganization",
    "location",
    "jobLocation",
    "salary",
    "employmentType",
    "description",
)


def mined_text(record: MinedRecord) -> str:
    """Flatten a mined record into plain text for the sufficiency gate."""
    if record.text_blocks:
        return "\n\n".join(record.text_blocks)
    if not record.data:
        return ""
    lines: list[str] = []
    data = record.data
    ordered = [k for k in _PRIORITY_KEYS if k in data] + [
        k for k in data if k not in _PRIORITY_KEYS
    ]
    for key in ordered:
        _flatten(key, data[key], lines, 0)
    return "\n".join(lines)


def _flatten(key: str, value: Any, lines: list[str], depth: int) -> None:
    if depth > _MAX_DEPTH or key.startswith("@"):
        return
    if isinstance(value, dict):
        for k, v in value.items():
            _flatten(str(k), v, lines, depth + 1)
    elif isinstance(value, list):
        for item in value:
            _flatten(key, item, lines, depth + 1)
    elif isinstance(value, str):
        text = value
        if "<" in text and ">" in text:
            text = BeautifulSoup(text, "html.parser").get_text(" ")
        text = clean_text(text)
        if text and not text.startswith(("http://", "https://")):
            lines.append(f"{key}: {text}")
