"""Derive matching criteria and job requirements, and build JobMatch records."""

import logging
import re
from typing import Any

from src.core.config import ScoringConfig
from src.core.schemas import (
    JobMatch,
    JobMatchingCriteria,
    JobRequirements,
    ParsedJobDescription,
    ParsedResume,
    ScoreBreakdown,
)
from src.matching.scorer import (
    EDUCATION_LEVELS,
    experience_years,
    score_match,
    skill_covered,
)

logger = logging.getLogger(__name__)

_YEARS_REQUIRED = re.compile(r"(\d+)\s*\+?\s*(?:-\s*\d+\s*)?(?:years?|yrs?)", re.IGNORECASE)


def derive_criteria(
    resume: ParsedResume, llm_criteria: dict[str, Any] | None = None,
) -> JobMatchingCriteria:
    """Build criteria for a candidate. Model-suggested values win when present.

    Fallbacks: profile skills, computed years, first education degree,
    full-time, and no remote preference.
    """
    fallback: dict[str, Any] = {
        "required_skills": list(resume.skills),
        "preferred_skills": [],
        "experience_years": experience_years(resume),
        "education_level": resume.education[0].degree if resume.education else "",
        "job_types": ["full-time"],
        "locations": [resume.contact_info.location] if resume.contact_info.location else [],
        "remote_preference": "any",
    }
    suggested = {k: v for k, v in (llm_criteria or {}).items() if v not in (None, "", [])}
    return JobMatchingCriteria.model_validate({**fallback, **suggested})


def required_years(texts: list[str]) -> int:
    """Largest "N years" figure in the given requirement lines; 0 if none."""
    found = [int(m.group(1)) for t in texts for m in _YEARS_REQUIRED.finditer(t)]
    return max(found, default=0)


def required_education(texts: list[str]) -> str:
    """First education ladder keyword mentioned in the requirement lines."""
    for text in texts:
        lowered = text.lower()
        for key in EDUCATION_LEVELS:
            if key in lowered:
                return key
    return ""


def job_requirements(job: ParsedJobDescription, job_id: str = "") -> JobRequirements:
    """Scoring view of a structured job posting."""
    lines = [job.experience_level, *job.requirements]
    return JobRequirements(
        job_id=job_id or job.source_url or "",
        title=job.job_title,
        company=job.company_name,
        required_skills=list(job.skills),
        preferred_skills=list(job.nice_to_have),
        experience_years=required_years(lines),
        education_level=required_education(job.requirements),
        location=job.location,
        remote=job.remote_work,
        salary_range=job.salary_range,
    )


def missing_skills(criteria: JobMatchingCriteria, job: JobRequirements) -> list[str]:
    have = list(criteria.required_skills) + list(criteria.preferred_skills)
    return [s for s in job.required_skills if not skill_covered(s, have)]


def match_reasons(
    criteria: JobMatchingCriteria, job: JobRequirements, breakdown: ScoreBreakdown,
) -> list[str]:
    reasons: list[str] = []
    if job.required_skills:
        covered = len(job.required_skills) - len(missing_skills(criteria, job))
        if covered:
            reasons.append(f"Matches {covered} of {len(job.required_skills)} required skills")
    if breakdown.experience == 100 and job.experience_years:
        reasons.append(
            f"{criteria.experience_years} years of experience meets the "
            f"{job.experience_years}+ required",
        )
    if breakdown.education == 100 and job.education_level:
        reasons.append(f"Education meets the {job.education_level} requirement")
    if job.remote or "remote" in job.location.lower():
        reasons.append("Remote-friendly role")
    elif breakdown.location >= 80 and job.location:
        reasons.append(f"Location compatible with {job.location}")
    return reasons


def build_job_match(
    criteria: JobMatchingCriteria,
    job: JobRequirements,
    config: ScoringConfig | None = None,
) -> JobMatch:
    """Score a job deterministically and wrap it as a JobMatch."""
    result = score_match(criteria, job, config)
    return JobMatch(
        job_id=job.job_id,
        match_score=result.score,
        match_reasons=match_reasons(criteria, job, result.breakdown),
        missing_skills=missing_skills(criteria, job),
        title=job.title,
        company=job.company,
        location=job.location,
        salary_range=job.salary_range,
        breakdown=result.breakdown,
    )
