"""Text helpers shared by every extraction strategy."""

import re

from bs4 import BeautifulSoup, Tag

from src.scraping.selectors import NOISE_SELECTORS, SCRIPT_TAGS

_WHITESPACE = re.compile(r"\s+")
_ZERO_WIDTH = re.compile(r"[\u200b-\u200d\ufeff]")
_MOJIBAKE: tuple[tuple[str, str], ...] = (
    ("â€™", "'"),
    ("â€œ", '"'),
    ("â€\u009d", '"'),
    ("â€“", "-"),
    ("â€”", "-"),
    ("Â ", " "),
)

SALARY_PATTERN = re.compile(
    r"\$\s?[\d,]+(?:\.\d+)?\s*[kK]?"
    r"(?:\s*(?:-|to|–)\s*\$?\s?[\d,]+(?:\.\d+)?\s*[kK]?)?"
    r"(?:\s*(?:per|/)\s*(?:year|yr|annum|hour|hr))?",
    re.IGNORECASE,
)
JOB_TYPE_PATTERN = re.compile(
    r"\b(full[- ]?time|part[- ]?time|contract|temporary|internship|freelance)\b",
    re.IGNORECASE,
)


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def clean_text(text: str) -> str:
    """Collapse whitespace, drop zero-width characters, fix common mojibake."""
    for bad, good in _MOJIBAKE:
        text = text.replace(bad, good)
    text = _ZERO_WIDTH.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def clean_lines(text: str) -> str:
    """Like clean_text but keeps line structure; drops blank lines."""
    lines = (clean_text(line) for line in text.splitlines())
    return "\n".join(line for line in lines if line)


def element_text(el: Tag) -> str:
    """Readable text of an element; meta tags yield their content attribute."""
    if el.name == "meta":
        return clean_text(str(el.get("content") or ""))
    return clean_text(el.get_text(" "))


def remove_elements(soup: BeautifulSoup | Tag, selectors: tuple[str, ...]) -> None:
    for selector in selectors:
        for el in soup.select(selector):
            el.decompose()


def visible_text(html: str | BeautifulSoup) -> str:
    """Whole-document visible text with scripts and styles stripped.

    Does not mutate a soup passed in.
    """
    soup = parse_html(html if isinstance(html, str) else str(html))
    remove_elements(soup, SCRIPT_TAGS)
    root = soup.body or soup
    return clean_text(root.get_text(" "))


def strip_noise(soup: BeautifulSoup) -> BeautifulSoup:
    """Remove scripts, navigation, and banners in place. Returns the soup."""
    remove_elements(soup, NOISE_SELECTORS)
    return soup


def first_text(soup: BeautifulSoup | Tag, selectors: tuple[str, ...]) -> str:
    """Text of the first selector match with non-empty text."""
    for selector in selectors:
        for el in soup.select(selector):
            text = element_text(el)
            if text:
                return text
    return ""


def find_salary(text: str) -> str:
    match = SALARY_PATTERN.search(text)
    return clean_text(match.group(0)) if match else ""


def find_job_type(text: str) -> str:
    match = JOB_TYPE_PATTERN.search(text)
    if not match:
        return ""
    return re.sub(r"[- ]?time$", "-time", match.group(1).lower())
