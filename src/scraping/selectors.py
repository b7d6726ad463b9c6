"""Generic job-page DOM selector constants with fallbacks.

Ordered by specificity: data-* > semantic ids > class fragments > tags.
Each constant is a tuple so callers iterate until a non-empty match is found.
"""

# --- Field selectors (first non-empty match wins) ---
TITLE_SELECTORS: tuple[str, ...] = (
    "h1",
    '[class*="job-title"]',
    '[class*="jobTitle"]',
    '[class*="position-title"]',
    '[data-testid*="title"]',
    'meta[property="og:title"]',
)

COMPANY_SELECTORS: tuple[str, ...] = (
    '[class*="company-name"]',
    '[class*="companyName"]',
    '[class*="employer"]',
    '[data-testid*="company"]',
    'meta[property="og:site_name"]',
)

LOCATION_SELECTORS: tuple[str, ...] = (
    '[class*="job-location"]',
    '[data-testid*="location"]',
    '[class*="location"]',
    '[class*="address"]',
)

DESCRIPTION_SELECTORS: tuple[str, ...] = (
    '[class*="job-description"]',
    '[class*="jobDescription"]',
    '[id*="description"]',
    '[data-testid*="description"]',
    '[class*="description"]',
    "article",
    "main",
    '[role="main"]',
)

SALARY_SELECTORS: tuple[str, ...] = (
    '[class*="salary"]',
    '[class*="compensation"]',
    '[data-testid*="salary"]',
)

# --- Main-content fallback containers ---
MAIN_CONTENT_SELECTORS: tuple[str, ...] = (
    "main",
    "article",
    '[role="main"]',
    "#content",
    ".content",
)

# --- Elements removed before reading visible text ---
SCRIPT_TAGS: tuple[str, ...] = ("script", "style", "noscript", "template")

NOISE_SELECTORS: tuple[str, ...] = (
    "script",
    "style",
    "noscript",
    "template",
    "iframe",
    "svg",
    "nav",
    "header",
    "footer",
    "aside",
    ".sidebar",
    ".navigation",
    ".menu",
    ".ads",
    ".advertisement",
    '[class*="cookie"]',
    '[id*="cookie"]',
    '[class*="consent"]',
    '[id*="consent"]',
)

# --- Heading-driven sections: section name -> heading keywords ---
SECTION_KEYWORDS: dict[str, tuple[str, ...]] = {
    "responsibilities": ("responsibilities", "what you'll do", "what you will do", "your impact", "duties"),
    "requirements": ("requirements", "required", "must have"),
    "qualifications": ("qualifications", "qualified", "preferred", "what you bring"),
    "benefits": ("benefits", "perks", "we offer"),
}

HEADING_TAGS: tuple[str, ...] = ("h1", "h2", "h3", "h4", "h5", "h6")
INLINE_HEADING_TAGS: tuple[str, ...] = ("strong", "b")

# --- Known job boards: domain fragment -> field selectors ---
JOB_BOARD_SELECTORS: dict[str, dict[str, tuple[str, ...]]] = {
    "linkedin": {
        "title": (".job-details-jobs-unified-top-card__job-title", ".topcard__title"),
        "company": (".job-details-jobs-unified-top-card__company-name", ".topcard__org-name-link"),
        "location": (".job-details-jobs-unified-top-card__bullet", ".topcard__flavor--bullet"),
        "description": (".jobs-description__content", ".description__text"),
    },
    "indeed": {
        "title": ('[data-testid="job-title"]', ".jobsearch-JobInfoHeader-title"),
        "company": ('[data-testid="company-name"]', ".jobsearch-InlineCompanyRating-companyHeader"),
        "location": ('[data-testid="job-location"]', ".jobsearch-JobInfoHeader-subtitle > div:last-child"),
        "description": ("#jobDescriptionText", ".jobsearch-JobComponent-description"),
    },
    "dice": {
        "title": ('[data-cy="job-title"]', "h1.job-title"),
        "company": ('[data-cy="company-name"]', ".company-name"),
        "location": ('[data-cy="location"]', ".location"),
        "description": ('[data-cy="job-description"]', ".job-description"),
    },
    "greenhouse": {
        "title": ("#header .app-title", "h1.app-title"),
        "company": ("#header .company-name", ".company-name"),
        "location": ("#header .location", ".location"),
        "description": ("#content .content", "#job-details", "#content"),
    },
    "lever": {
        "title": (".posting-headline h2",),
        "company": (".posting-categories .company",),
        "location": (".posting-categories .location",),
        "description": (".posting-content", ".section-wrapper.page-full-width"),
    },
    "workday": {
        "title": ('[data-automation-id="jobPostingHeader"] h2', '[data-automation-id="jobPostingHeader"]'),
        "company": ('[data-automation-id="company"]',),
        "location": ('[data-automation-id="location"]', '[data-automation-id="locations"]'),
        "description": ('[data-automation-id="jobPostingDescription"]',),
    },
}

# Domain fragment -> job board key. Checked in order.
JOB_BOARD_DOMAINS: tuple[tuple[str, str], ...] = (
    ("linkedin.com", "linkedin"),
    ("indeed.com", "indeed"),
    ("dice.com", "dice"),
    ("greenhouse.io", "greenhouse"),
    ("lever.co", "lever"),
    ("myworkdayjobs.com", "workday"),
    ("workday.com", "workday"),
)
