"""ePlus careers DOM selector constants with fallbacks.

Each constant is a tuple so callers iterate until a match is found.
"""

import re

TITLE_SELECTORS: tuple[str, ...] = (
    "h1",
    ".job-title",
    '[class*="title"]',
)

LOCATION_SELECTORS: tuple[str, ...] = (
    ".location",
    '[class*="location"]',
)

OVERVIEW_SELECTORS: tuple[str, ...] = (
    "#Overview",
    ".overview",
)

SECTION_HEADING_TAGS: tuple[str, ...] = ("h2", "h3", "h4")

IMPACT_HEADING = "your impact"
IMPACT_FALLBACK_SELECTORS: tuple[str, ...] = (".impact-section",)

QUALIFICATIONS_HEADING = "qualifications"
QUALIFICATIONS_FALLBACK_SELECTORS: tuple[str, ...] = (".qualifications-section",)

MAIN_CONTAINER_SELECTORS: tuple[str, ...] = (
    ".job-description",
    "#job-description",
    '[class*="description"]',
    "main",
    "#content",
)

NOISE_SELECTORS: tuple[str, ...] = (
    "script",
    "style",
    "noscript",
    "nav",
    "header",
    "footer",
    ".navigation",
    ".header",
    ".footer",
)

SECTION_HEADER_PATTERN = re.compile(
    r"^(OVERVIEW|YOUR IMPACT|QUALIFICATIONS|JOB RESPONSIBILITIES|REQUIREMENTS)\b",
    re.IGNORECASE,
)

JOB_URL_PATTERN = re.compile(r"/jobs/(\d+)/([^/?#]+)")

# Markers the headless renderer waits for before snapshotting.
WAIT_MARKERS: tuple[str, ...] = (
    "text=YOUR IMPACT",
    "text=QUALIFICATIONS",
    ".job-description",
)

DEFAULT_COMPANY = "ePlus Inc."
DEFAULT_LOCATION = "Plymouth, Minnesota"
