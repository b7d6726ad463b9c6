"""Deterministic candidate/job match scoring.

Four sub-scores, each 0-100, combined with ScoringConfig weights
(skills 0.4, experience 0.3, education 0.2, location 0.1 by default) and
rounded. Missing data never fails a match; it scores conservatively.
"""

import logging
import re
from datetime import date

from src.core.config import ScoringConfig
from src.core.schemas import (
    JobMatchingCriteria,
    JobRequirements,
    MatchScore,
    ParsedResume,
    ScoreBreakdown,
)

logger = logging.getLogger(__name__)

# Ordinal ladder. Checked in order by substring against free-text degrees.
EDUCATION_LEVELS: dict[str, int] = {
    "high school": 1,
    "associate": 2,
    "bachelor": 3,
    "master": 4,
    "phd": 5,
    "doctorate": 5,
}
DEFAULT_REQUIRED_EDUCATION = 3

_YEAR_PATTERN = re.compile(r"\b(19\d{2}|20\d{2})\b")


def education_rank(text: str) -> int:
    """Ladder position of a free-text education level; 0 when unrecognised."""
    lowered = text.lower()
    for key, rank in EDUCATION_LEVELS.items():
        if key in lowered:
            return rank
    return 0


def skill_covered(skill: str, candidate_skills: list[str]) -> bool:
    """Case-insensitive exact match after trimming whitespace."""
    needle = skill.lower().strip()
    if not needle:
        return False
    return needle in {have.lower().strip() for have in candidate_skills}


def experience_years(resume: ParsedResume, today: date | None = None) -> int:
    """Current year minus the earliest parseable start year; 0 without dates."""
    years: list[int] = []
    for entry in resume.experience:
        match = _YEAR_PATTERN.search(entry.start_date)
        if match:
            years.append(int(match.group(1)))
    if not years:
        return 0
    current = (today or date.today()).year
    return max(0, current - min(years))


def score_skills(candidate_skills: list[str], job: JobRequirements) -> int:
    if not job.required_skills:
        return 100
    required_hits = sum(skill_covered(s, candidate_skills) for s in job.required_skills)
    required = required_hits / len(job.required_skills) * 80
    if job.preferred_skills:
        preferred_hits = sum(skill_covered(s, candidate_skills) for s in job.preferred_skills)
        preferred = preferred_hits / len(job.preferred_skills) * 20
    else:
        preferred = 20.0
    return round(required + preferred)


def score_experience(candidate_years: int, required_years: int) -> int:
    if candidate_years >= required_years:
        return 100
    if candidate_years >= required_years * 0.8:
        return 80
    if candidate_years >= required_years * 0.6:
        return 60
    return max(0, 40 - (required_years - candidate_years) * 10)


def score_education(candidate_level: str, required_level: str) -> int:
    if not required_level.strip():
        return 100
    required = education_rank(required_level) or DEFAULT_REQUIRED_EDUCATION
    have = education_rank(candidate_level)
    if have >= required:
        return 100
    if have == required - 1:
        return 80
    return max(0, 60 - (required - have) * 20)


def score_location(candidate_location: str, job_location: str, remote: bool = False) -> int:
    job_loc = job_location.lower().strip()
    if remote or not job_loc or "remote" in job_loc:
        return 100
    have = candidate_location.lower().strip()
    if have and have in job_loc:
        return 100
    have_parts = {p.strip() for p in have.split(",") if p.strip()}
    job_parts = {p.strip() for p in job_loc.split(",") if p.strip()}
    if have_parts & job_parts:
        return 80
    return 50


def score_match(
    criteria: JobMatchingCriteria,
    job: JobRequirements,
    config: ScoringConfig | None = None,
) -> MatchScore:
    """Score one candidate against one job. Pure and deterministic."""
    config = config or ScoringConfig()
    candidate_skills = list(criteria.required_skills) + list(criteria.preferred_skills)
    candidate_location = criteria.locations[0] if criteria.locations else ""

    breakdown = ScoreBreakdown(
        skills=score_skills(candidate_skills, job),
        experience=score_experience(criteria.experience_years, job.experience_years),
        education=score_education(criteria.education_level, job.education_level),
        location=score_location(candidate_location, job.location, job.remote),
    )
    total = (
        breakdown.skills * config.skills_weight
        + breakdown.experience * config.experience_weight
        + breakdown.education * config.education_weight
        + breakdown.location * config.location_weight
    )
    score = max(0, min(100, round(total)))
    logger.debug("Scored %s: %d %s", job.job_id or job.title, score, breakdown)
    return MatchScore(score=score, breakdown=breakdown)
