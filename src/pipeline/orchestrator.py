"""Orchestrator: the two entry points of the job intake engine.

Extraction data flow:
  1. Cache lookup (hit returns without fetching)
  2. Resilient fetch (failure still allows render and site strategies)
  3. Escalation chain, strictly sequential: static -> spa -> render -> site,
     then model when a provider is configured
  4. First sufficient strategy wins; its text is cached
  5. All insufficient -> failure analysis of the fetched HTML, no text

Matching data flow:
  1. Model pass when a provider is configured and enabled: criteria are
     asked of the model when not given, then all jobs are scored in one call
  2. Criteria otherwise given, or derived from the profile by rule
  3. Deterministic scoring otherwise, or when the provider fails
  4. Filter by min_score, sort by score descending
"""

import logging

from src.core.context import PipelineContext
from src.core.errors import FetchFailure
from src.core.schemas import (
    ExtractionAttempt,
    ExtractionResult,
    JobMatch,
    JobMatchingCriteria,
    JobRequirements,
    ParsedJobDescription,
    ParsedResume,
)
from src.matching.criteria import build_job_match, derive_criteria, job_requirements
from src.matching.llm_matcher import LLMBatchMatcher
from src.scraping.analyzer import analyze

logger = logging.getLogger(__name__)


async def extract_job_content(url: str, ctx: PipelineContext) -> ExtractionResult:
    """Return job text for url, escalating through every strategy as needed.

    Never raises for extraction failures: an exhausted chain returns an
    ExtractionResult with empty text and a diagnosis.
    """
    cached = ctx.cache.get(url)
    if cached is not None:
        logger.info("Cache hit for %s", url)
        return ExtractionResult(url=url, text=cached, cached=True, strategy="cache")

    html: str | None = None
    attempts: list[ExtractionAttempt] = []
    fetch_error: FetchFailure | None = None
    try:
        fetched = await ctx.fetcher.fetch(url)
        html = fetched.body
        logger.info("Fetched %s (%d bytes, HTTP %d)", url, len(html), fetched.status)
    except FetchFailure as e:
        fetch_error = e
        logger.warning("Fetch failed for %s: %s", url, e)
        attempts.append(ExtractionAttempt(strategy="fetch", error=str(e)))

    for strategy in ctx.strategies():
        outcome = await strategy.attempt(url, html)
        attempts.append(outcome.attempt)
        if outcome.sufficient:
            logger.info("Extracted %s via %s strategy", url, strategy.name)
            ctx.cache.set(url, outcome.text)
            return ExtractionResult(
                url=url, text=outcome.text, strategy=strategy.name, attempts=attempts,
            )

    diagnosis = analyze(html or "", url)
    if fetch_error is not None:
        diagnosis = diagnosis.model_copy(
            update={
                "technical_details": [
                    f"Page could not be fetched ({fetch_error})",
                    *diagnosis.technical_details,
                ],
            },
        )
    logger.warning("All extraction strategies exhausted for %s", url)
    return ExtractionResult(url=url, diagnosis=diagnosis, attempts=attempts)


async def score_candidate_against_jobs(
    profile: ParsedResume,
    jobs: list[ParsedJobDescription],
    criteria: JobMatchingCriteria | None = None,
    *,
    ctx: PipelineContext,
) -> list[JobMatch]:
    """Score a candidate against structured jobs. Best match first.

    Jobs are identified by source_url, or by position when it is absent.
    """
    config = ctx.settings.scoring
    requirements = [
        job_requirements(job, job.source_url or f"job-{i}") for i, job in enumerate(jobs)
    ]

    matches: list[JobMatch] | None = None
    if ctx.provider is not None and config.llm_enabled and requirements:
        matcher = LLMBatchMatcher(ctx.provider, config, model=ctx.settings.llm.model)
        try:
            if criteria is None:
                criteria = await matcher.extract_criteria(profile)
            matches = await matcher.match(profile, criteria, requirements)
        except Exception:
            logger.warning(
                "Model matching failed; falling back to rule-based scores", exc_info=True,
            )
        else:
            matches = _blend(matches, criteria, requirements, ctx)

    if criteria is None:
        criteria = derive_criteria(profile)
    if matches is None:
        matches = [build_job_match(criteria, job, config) for job in requirements]

    kept = [m for m in matches if m.match_score >= config.min_score]
    kept.sort(key=lambda m: m.match_score, reverse=True)
    logger.info("%d of %d jobs at or above score %d", len(kept), len(jobs), config.min_score)
    return kept


def _blend(
    llm_matches: list[JobMatch],
    criteria: JobMatchingCriteria,
    requirements: list[JobRequirements],
    ctx: PipelineContext,
) -> list[JobMatch]:
    """Mix rule-based scores into model scores when rule_weight > 0."""
    config = ctx.settings.scoring
    if config.rule_weight <= 0:
        return llm_matches
    by_id = {job.job_id: job for job in requirements}
    blended: list[JobMatch] = []
    for match in llm_matches:
        rule = build_job_match(criteria, by_id[match.job_id], config)
        score = round(config.rule_weight * rule.match_score + config.llm_weight * match.match_score)
        blended.append(
            match.model_copy(update={"match_score": score, "breakdown": rule.breakdown}),
        )
    return blended
