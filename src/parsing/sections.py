"""Split long resumes into header-delimited sections and merge parsed parts.

A line is a section header when it is short and either all-caps or names a
common resume section. Text before the first header is the contact section.
"""

import logging

from src.core.schemas import ParsedResume

logger = logging.getLogger(__name__)

MAX_HEADER_CHARS = 50
MIN_HEADER_CHARS = 4
MIN_SECTION_CHARS = 100

COMMON_SECTION_NAMES: tuple[str, ...] = (
    "EXPERIENCE",
    "WORK EXPERIENCE",
    "PROFESSIONAL EXPERIENCE",
    "EMPLOYMENT",
    "EDUCATION",
    "ACADEMIC BACKGROUND",
    "SKILLS",
    "TECHNICAL SKILLS",
    "CORE COMPETENCIES",
    "CERTIFICATIONS",
    "ACHIEVEMENTS",
    "AWARDS",
    "PROJECTS",
    "SUMMARY",
    "PROFESSIONAL SUMMARY",
    "OBJECTIVE",
    "REFERENCES",
    "INTERESTS",
    "VOLUNTEER EXPERIENCE",
    "LANGUAGES",
)

# Header keyword -> section kind. Checked in order.
_KIND_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("EXPERIENCE", "EMPLOYMENT", "WORK"), "experience"),
    (("EDUCATION", "ACADEMIC"), "education"),
    (("SKILL", "COMPETENCIES", "EXPERTISE"), "skills"),
    (("PROJECT",), "projects"),
    (("SUMMARY", "PROFILE", "OBJECTIVE"), "summary"),
    (("CONTACT", "PERSONAL"), "contact"),
)


class ResumeSection:
    """One header-delimited chunk of resume text."""

    def __init__(self, title: str, content: str) -> None:
        self.title = title
        self.content = content

    @property
    def kind(self) -> str:
        return section_kind(self.title)

    def __repr__(self) -> str:
        return f"ResumeSection({self.title!r}, {len(self.content)} chars)"


def is_section_header(line: str) -> bool:
    line = line.strip()
    if not (MIN_HEADER_CHARS <= len(line) < MAX_HEADER_CHARS):
        return False
    upper = line.upper()
    if any(name == upper.rstrip(":") for name in COMMON_SECTION_NAMES):
        return True
    return line == upper and any(c.isalpha() for c in line)


def section_kind(title: str) -> str:
    upper = title.upper()
    for keywords, kind in _KIND_KEYWORDS:
        if any(kw in upper for kw in keywords):
            return kind
    return "other"


def split_sections(text: str) -> list[ResumeSection]:
    """Split resume text at header lines. The first section is contact info."""
    sections: list[ResumeSection] = []
    title = "CONTACT"
    buffer: list[str] = []
    for line in text.splitlines():
        if is_section_header(line):
            if any(b.strip() for b in buffer):
                sections.append(ResumeSection(title, "\n".join(buffer).strip()))
            title, buffer = line.strip().rstrip(":"), []
        else:
            buffer.append(line)
    if any(b.strip() for b in buffer):
        sections.append(ResumeSection(title, "\n".join(buffer).strip()))
    logger.debug("Split resume into %d sections: %s", len(sections), sections)
    return sections


def merge_resumes(base: ParsedResume, other: ParsedResume) -> ParsedResume:
    """Merge ``other`` into ``base``: first non-empty scalars, de-duplicated lists."""
    contact = base.contact_info.model_copy(
        update={
            k: v
            for k, v in other.contact_info.model_dump().items()
            if v and not getattr(base.contact_info, k)
        },
    )

    seen_exp = {(e.title.lower(), e.company.lower()) for e in base.experience}
    experience = list(base.experience) + [
        e for e in other.experience if (e.title.lower(), e.company.lower()) not in seen_exp
    ]
    seen_edu = {(e.institution.lower(), e.degree.lower()) for e in base.education}
    education = list(base.education) + [
        e for e in other.education
        if (e.institution.lower(), e.degree.lower()) not in seen_edu
    ]
    seen_proj = {p.name.lower() for p in base.projects}
    projects = list(base.projects) + [
        p for p in other.projects if p.name.lower() not in seen_proj
    ]
    seen_skills = {s.lower() for s in base.skills}
    skills = list(base.skills)
    for skill in other.skills:
        if skill.lower() not in seen_skills:
            seen_skills.add(skill.lower())
            skills.append(skill)

    return base.model_copy(
        update={
            "contact_info": contact,
            "summary": base.summary or other.summary,
            "experience": experience,
            "education": education,
            "projects": projects,
            "skills": skills,
        },
    )
