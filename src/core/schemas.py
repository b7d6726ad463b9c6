"""Core data models for the job intake engine.

Every record is frozen. A re-parse or re-score produces a new record;
callers use ``model_copy(update=...)`` rather than mutation.
"""

import re
import typing
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

# ---------------------------------------------------------------------------
# Acquisition
# ---------------------------------------------------------------------------


class CacheEntry(BaseModel):
    """A cached extraction for one URL."""

    model_config = ConfigDict(frozen=True)

    url: str
    content: str
    stored_at: float


class CacheStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    size: int
    max_entries: int
    max_age_s: float


class ExtractionAttempt(BaseModel):
    """Transient record of one escalation step. Never persisted."""

    model_config = ConfigDict(frozen=True)

    strategy: str
    raw_length: int = 0
    visible_text_length: int = 0
    success: bool = False
    error: str = ""


class StaticExtraction(BaseModel):
    """Fields pulled from already-rendered HTML by selector heuristics."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    company: str = ""
    location: str = ""
    salary: str = ""
    job_type: str = ""
    body_text: str = ""
    visible_text_length: int = 0
    source: str = "body"


class MinedRecord(BaseModel):
    """Candidate job data recovered from SPA state or script payloads."""

    model_config = ConfigDict(frozen=True)

    strategy: str
    data: dict | None = None
    text_blocks: list[str] = Field(default_factory=list)
    api_urls: list[str] = Field(default_factory=list)


class RenderResult(BaseModel):
    """Outcome of a headless render pass."""

    model_config = ConfigDict(frozen=True)

    success: bool
    extracted_text: str = ""
    fields: dict[str, str] = Field(default_factory=dict)
    sections: dict[str, list[str]] = Field(default_factory=dict)
    screenshot: bytes | None = None


class ExtractionDiagnosis(BaseModel):
    """Why an extraction failed, and what the user should do instead."""

    model_config = ConfigDict(frozen=True)

    html_size: int
    script_to_html_ratio: float
    visible_text_length: int
    has_react: bool = False
    has_angular: bool = False
    has_vue: bool = False
    has_iframes: bool = False
    has_shadow_dom: bool = False
    recommended_action: str
    technical_details: list[str] = Field(default_factory=list)


class ExtractionResult(BaseModel):
    """Return value of the extraction entry point.

    ``text`` is empty exactly when every strategy was exhausted, in which
    case ``diagnosis`` is always present.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    text: str = ""
    cached: bool = False
    strategy: str | None = None
    diagnosis: ExtractionDiagnosis | None = None
    attempts: list[ExtractionAttempt] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return bool(self.text)

    def raise_for_failure(self) -> None:
        """Raise ExtractionExhausted if no strategy produced text."""
        if self.succeeded:
            return
        from src.core.errors import ExtractionExhausted

        raise ExtractionExhausted(self.url, self.diagnosis)


# ---------------------------------------------------------------------------
# Structured records
# ---------------------------------------------------------------------------

_TRUTHY = frozenset({"true", "yes", "y", "1", "remote"})


class LenientModel(BaseModel):
    """Base for records filled from model output.

    Nulls become field defaults, a bare string becomes a one-item list,
    and loose booleans or numbers ("yes", "5+ years") are coerced.
    """

    model_config = ConfigDict(frozen=True)

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_loose(cls, v: Any, info: ValidationInfo) -> Any:
        field = cls.model_fields[info.field_name]  # type: ignore[index]
        if v is None:
            if field.is_required():
                return v
            return field.get_default(call_default_factory=True)
        annotation = field.annotation
        if typing.get_origin(annotation) is list:
            if isinstance(v, str):
                return [v] if v.strip() else []
            if isinstance(v, list):
                return [item for item in v if item is not None]
        if annotation is bool and isinstance(v, str):
            return v.strip().lower() in _TRUTHY
        if annotation in (int, int | None) and isinstance(v, str):
            digits = re.search(r"\d+", v)
            return int(digits.group(0)) if digits else 0
        if annotation is str and isinstance(v, (int, float)):
            return str(v)
        return v


class ParsedJobDescription(LenientModel):
    """Structured job posting produced from raw text."""

    source_url: str | None = None
    job_title: str = ""
    company_name: str = ""
    location: str = ""
    employment_type: str = ""
    experience_level: str = ""
    salary_range: str = ""
    remote_work: bool = False
    posted_date: str = ""
    job_description: str = ""
    requirements: list[str] = Field(default_factory=list)
    nice_to_have: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)
    responsibilities: list[str] = Field(default_factory=list)
    ats_keywords: list[str] = Field(default_factory=list)
    parse_error: bool = False
    error_details: str | None = None
    raw_text: str | None = None


class ContactInfo(LenientModel):
    full_name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    linkedin: str = ""


class ExperienceEntry(LenientModel):
    title: str = ""
    company: str = ""
    location: str = ""
    start_date: str = ""
    end_date: str = ""
    description: list[str] = Field(default_factory=list)


class EducationEntry(LenientModel):
    institution: str = ""
    degree: str = ""
    field: str = ""
    graduation_date: str = ""


class ProjectEntry(LenientModel):
    name: str = ""
    description: str = ""
    technologies: list[str] = Field(default_factory=list)


class ParsedResume(LenientModel):
    """Structured candidate profile produced from resume text."""

    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    summary: str = ""
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    projects: list[ProjectEntry] = Field(default_factory=list)
    parse_error: bool = False
    error_details: str | None = None
    raw_text: str | None = None


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


class JobMatchingCriteria(LenientModel):
    """What a candidate is looking for, derived once per profile."""

    required_skills: list[str] = Field(default_factory=list)
    preferred_skills: list[str] = Field(default_factory=list)
    experience_years: int = Field(default=0, ge=0)
    education_level: str = ""
    job_types: list[str] = Field(default_factory=lambda: ["full-time"])
    locations: list[str] = Field(default_factory=list)
    salary_min: int | None = None
    remote_preference: str = "any"


class JobRequirements(BaseModel):
    """Scoring view of a job: what the posting asks for."""

    model_config = ConfigDict(frozen=True)

    job_id: str = ""
    title: str = ""
    company: str = ""
    required_skills: list[str] = Field(default_factory=list)
    preferred_skills: list[str] = Field(default_factory=list)
    experience_years: int = Field(default=0, ge=0)
    education_level: str = ""
    location: str = ""
    remote: bool = False
    salary_range: str = ""


class ScoreBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    skills: int = Field(ge=0, le=100)
    experience: int = Field(ge=0, le=100)
    education: int = Field(ge=0, le=100)
    location: int = Field(ge=0, le=100)


class MatchScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100)
    breakdown: ScoreBreakdown


class JobMatch(BaseModel):
    """One (candidate, job) compatibility result."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    match_score: int = Field(ge=0, le=100)
    match_reasons: list[str] = Field(default_factory=list)
    missing_skills: list[str] = Field(default_factory=list)
    title: str = ""
    company: str = ""
    location: str = ""
    salary_range: str = ""
    breakdown: ScoreBreakdown | None = None
