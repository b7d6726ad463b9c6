"""Model-assisted holistic matching of one candidate against many jobs.

One prompt per batch. Each returned entry must carry an integer-like score
0-100 and a list of reasons; anything else is discarded rather than failing
the batch. Results below min_score are dropped and the rest sorted by score
descending.
"""

import asyncio
import json
import logging
from typing import Any

from src.core.config import ScoringConfig
from src.core.schemas import JobMatch, JobMatchingCriteria, JobRequirements, ParsedResume
from src.llm.base import LLMProvider, parse_json_response
from src.matching.criteria import derive_criteria
from src.parsing.structured import snake_keys

logger = logging.getLogger(__name__)

_MATCH_SYSTEM_PROMPT = (
    "You are an expert recruiter evaluating candidate-job fit.\n\n"
    "Score how well each job matches the candidate on a 0-100 scale, "
    "considering in priority order:\n"
    "  1. Skills match, both required and preferred\n"
    "  2. Experience level alignment\n"
    "  3. Location and remote preferences\n"
    "  4. Salary expectations and job type preferences\n"
    "  5. Career progression fit\n\n"
    "Return ONLY a JSON array (no markdown, no explanation) with one object "
    "per job scoring at least {min_score}:\n"
    '[{{"job_id": "<id from input>", "match_score": <integer 0-100>, '
    '"match_reasons": ["specific reason"], '
    '"missing_skills": ["required skill the candidate lacks"]}}]'
)

_CRITERIA_SYSTEM_PROMPT = (
    "Extract job matching criteria from a candidate's resume profile.\n\n"
    "Return ONLY a JSON object (no markdown, no explanation) with:\n"
    "- required_skills (list[str]): must-have skills based on their experience\n"
    "- preferred_skills (list[str]): nice-to-have skills\n"
    "- experience_years (int): total years of professional experience\n"
    "- education_level (string): highest education level\n"
    '- job_types (list[str]): e.g. "full-time", "contract"\n'
    "- locations (list[str]): preferred locations, if mentioned\n"
    "- salary_min (int or null): minimum expected salary if determinable\n"
    '- remote_preference (string): "remote", "hybrid", "onsite" or "any"'
)


def _profile_payload(resume: ParsedResume) -> dict[str, Any]:
    return resume.model_dump(
        include={"skills", "experience", "education", "summary"},
    )


def build_match_prompt(
    resume: ParsedResume, criteria: JobMatchingCriteria, jobs: list[JobRequirements],
) -> str:
    """Assemble the user prompt from profile, criteria and job data."""
    jobs_payload = [
        job.model_dump(exclude_defaults=True) | {"job_id": job.job_id} for job in jobs
    ]
    return (
        "CANDIDATE PROFILE\n"
        f"{json.dumps(_profile_payload(resume), indent=2)}\n\n"
        "MATCHING CRITERIA\n"
        f"{criteria.model_dump_json(indent=2)}\n\n"
        "JOBS TO MATCH\n"
        f"{json.dumps(jobs_payload, indent=2)}"
    )


def _as_score(value: Any) -> int | None:
    """Integer-like 0-100 value, or None."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not number.is_integer() or not 0 <= number <= 100:
        return None
    return int(number)


def parse_match_response(
    raw_text: str, jobs: list[JobRequirements], min_score: int,
) -> list[JobMatch]:
    """Validate a batch response, keeping only well-formed entries for known jobs.

    Raises:
        ValueError: If the response is not JSON at all.
    """
    data = snake_keys(parse_json_response(raw_text))
    if isinstance(data, dict):
        data = data.get("matches", [])
    if not isinstance(data, list):
        msg = f"Expected a JSON array of matches, got {type(data).__name__}"
        raise ValueError(msg)

    by_id = {job.job_id: job for job in jobs}
    matches: list[JobMatch] = []
    for entry in data:
        if not isinstance(entry, dict):
            logger.debug("Discarding non-object match entry: %r", entry)
            continue
        job = by_id.get(str(entry.get("job_id", entry.get("id", ""))))
        score = _as_score(entry.get("match_score", entry.get("score")))
        reasons = entry.get("match_reasons")
        if job is None or score is None or not isinstance(reasons, list):
            logger.debug("Discarding malformed match entry: %r", entry)
            continue
        missing = entry.get("missing_skills")
        matches.append(
            JobMatch(
                job_id=job.job_id,
                match_score=score,
                match_reasons=[str(r) for r in reasons],
                missing_skills=[str(s) for s in missing] if isinstance(missing, list) else [],
                title=job.title,
                company=job.company,
                location=job.location,
                salary_range=job.salary_range,
            ),
        )

    kept = [m for m in matches if m.match_score >= min_score]
    kept.sort(key=lambda m: m.match_score, reverse=True)
    return kept


class LLMBatchMatcher:
    """Score a candidate against a batch of jobs with a single model call."""

    def __init__(
        self,
        provider: LLMProvider,
        config: ScoringConfig | None = None,
        *,
        model: str | None = None,
    ) -> None:
        self._provider = provider
        self._config = config or ScoringConfig()
        self._model = model

    async def match(
        self,
        resume: ParsedResume,
        criteria: JobMatchingCriteria,
        jobs: list[JobRequirements],
    ) -> list[JobMatch]:
        """Return matches scoring at least min_score, best first.

        Raises:
            ValueError: If the response is not JSON.
        """
        if not jobs:
            return []
        system = _MATCH_SYSTEM_PROMPT.format(min_score=self._config.min_score)
        prompt = build_match_prompt(resume, criteria, jobs)
        logger.info("Matching %d jobs with %s", len(jobs), self._provider.provider_id)
        raw = await asyncio.to_thread(
            self._provider.complete, prompt, self._model, system=system,
        )
        matches = parse_match_response(raw, jobs, self._config.min_score)
        logger.info("Model returned %d matches at or above %d", len(matches), self._config.min_score)
        return matches

    async def extract_criteria(self, resume: ParsedResume) -> JobMatchingCriteria:
        """Ask the model for matching criteria, falling back to profile-derived values."""
        prompt = (
            "Based on this resume profile, extract job matching criteria:\n\n"
            f"{resume.model_dump_json(indent=2, exclude={'raw_text'})}"
        )
        raw = await asyncio.to_thread(
            self._provider.complete, prompt, self._model, system=_CRITERIA_SYSTEM_PROMPT,
        )
        try:
            suggested = snake_keys(parse_json_response(raw))
            if not isinstance(suggested, dict):
                msg = "criteria response is not a JSON object"
                raise ValueError(msg)
            return derive_criteria(resume, suggested)
        except ValueError:
            logger.warning("Criteria response unusable; deriving from profile", exc_info=True)
            return derive_criteria(resume)
