"""Explain why a page could not be extracted and what the user should do.

Pure: no I/O, never attempts extraction. Decision policy, first rule wins:
  1. script ratio > 0.8 and visible text < 1000  -> JavaScript-heavy app
  2. iframe present                              -> content in iframe
  3. shadow DOM markers                          -> shadow DOM hides content
  4. known problematic domain                    -> site step-by-step instructions
  5. otherwise                                   -> generic manual-paste guidance
"""

import logging
import re

from src.core.schemas import ExtractionDiagnosis
from src.scraping.text import parse_html, visible_text
from src.sites import get_site_scraper

logger = logging.getLogger(__name__)

JS_HEAVY_RATIO = 0.8
JS_HEAVY_MAX_VISIBLE = 1000
HIGH_SCRIPT_RATIO = 0.7
LARGE_HTML_BYTES = 500_000
LOW_VISIBLE_TEXT = 500

REACT_MARKERS: tuple[str, ...] = ("react", "_react", "__REACT", "data-reactroot")
ANGULAR_MARKERS: tuple[str, ...] = ("ng-version", "ng-app", "ng-", "angular")
VUE_PATTERN = re.compile(r"\bvue\b|Vue\.|data-v-[0-9a-f]|\sv-(?:if|for|bind|on|model|show)=", re.IGNORECASE)
SHADOW_DOM_MARKERS: tuple[str, ...] = ("shadowRoot", "shadow-root", "shadowrootmode")

ACTION_JS_HEAVY = (
    "This is a JavaScript-heavy application that loads content dynamically. "
    "Please open the page in your browser, wait for it to fully load, then copy "
    "and paste the job description."
)
ACTION_IFRAME = (
    "The job content appears to be inside an iframe which cannot be accessed "
    "directly. Please copy and paste the job description from the webpage."
)
ACTION_SHADOW_DOM = (
    "This page uses Shadow DOM technology which hides content from scrapers. "
    "Please copy and paste the job description manually."
)
ACTION_GENERIC = (
    "Unable to extract job content from this page. Please copy and paste the "
    "job description directly from the webpage."
)


def analyze(html: str, url: str) -> ExtractionDiagnosis:
    """Diagnose a failed or low-yield extraction of ``html`` fetched from ``url``."""
    soup = parse_html(html)
    html_size = len(html)
    script_chars = sum(len(s.get_text()) for s in soup.find_all("script"))
    ratio = script_chars / html_size if html_size else 0.0
    visible_len = len(visible_text(soup))

    has_react = any(m in html for m in REACT_MARKERS)
    has_angular = any(m in html for m in ANGULAR_MARKERS)
    has_vue = bool(VUE_PATTERN.search(html))
    has_iframes = soup.find("iframe") is not None
    has_shadow_dom = any(m in html for m in SHADOW_DOM_MARKERS)

    details: list[str] = []
    if html_size > LARGE_HTML_BYTES:
        details.append(f"Large HTML file ({round(html_size / 1024)}KB)")
    if ratio > HIGH_SCRIPT_RATIO:
        details.append(f"{round(ratio * 100)}% of content is JavaScript")
    if has_react:
        details.append("React application detected")
    elif has_angular:
        details.append("Angular application detected")
    elif has_vue:
        details.append("Vue.js application detected")
    if has_iframes:
        details.append("Content may be inside iframes")
    if has_shadow_dom:
        details.append("Uses Shadow DOM (content hidden from scraping)")
    if visible_len < LOW_VISIBLE_TEXT:
        details.append(f"Very little visible text ({visible_len} characters)")

    site = get_site_scraper(url)
    if ratio > JS_HEAVY_RATIO and visible_len < JS_HEAVY_MAX_VISIBLE:
        action = ACTION_JS_HEAVY
    elif has_iframes:
        action = ACTION_IFRAME
    elif has_shadow_dom:
        action = ACTION_SHADOW_DOM
    elif site is not None and site.manual_instructions:
        action = site.manual_instructions
    else:
        action = ACTION_GENERIC

    logger.debug("Diagnosis for %s: ratio=%.2f visible=%d", url, ratio, visible_len)
    return ExtractionDiagnosis(
        html_size=html_size,
        script_to_html_ratio=round(ratio, 4),
        visible_text_length=visible_len,
        has_react=has_react,
        has_angular=has_angular,
        has_vue=has_vue,
        has_iframes=has_iframes,
        has_shadow_dom=has_shadow_dom,
        recommended_action=action,
        technical_details=details,
    )


def build_error_message(diagnosis: ExtractionDiagnosis) -> str:
    """User-facing message: the recommendation followed by technical details."""
    message = diagnosis.recommended_action
    if diagnosis.technical_details:
        bullets = "\n".join(f"• {d}" for d in diagnosis.technical_details)
        message += f"\n\nTechnical details:\n{bullets}"
    return message
