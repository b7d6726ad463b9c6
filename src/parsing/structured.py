"""Structured field extraction: raw job or resume text -> typed record.

Design rules:
  - The provider is the only thing that understands text; this module owns
    prompting, response parsing and validation.
  - A response that is not valid JSON, or does not fit the schema, never
    raises. It yields a degraded record with parse_error=True and the
    original text in raw_text.
  - Provider failures (auth, network, quota) propagate to the caller.
  - Resumes longer than the advanced-parse threshold are split into
    sections, parsed one section at a time, and merged.
"""

import asyncio
import logging
import re
from typing import Any

from src.core.config import ExtractionConfig
from src.core.schemas import ParsedJobDescription, ParsedResume
from src.llm.base import LLMProvider, parse_json_response
from src.parsing.prompts import (
    JOB_SYSTEM_PROMPT,
    RESUME_SYSTEM_PROMPT,
    job_user_prompt,
    page_user_prompt,
    resume_user_prompt,
)
from src.parsing.sections import MIN_SECTION_CHARS, merge_resumes, split_sections

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")
_TRIM_MARKER = "\n\n[... content trimmed ...]\n\n"

# Key names models commonly use instead of the schema's.
_JOB_KEY_ALIASES: dict[str, str] = {
    "title": "job_title",
    "company": "company_name",
    "job_type": "employment_type",
    "salary": "salary_range",
    "remote": "remote_work",
    "description": "job_description",
    "job_summary": "job_description",
    "required_qualifications": "requirements",
    "preferred_qualifications": "nice_to_have",
    "key_responsibilities": "responsibilities",
    "required_skills": "skills",
}


def snake_keys(obj: Any) -> Any:
    """Recursively convert camelCase dict keys to snake_case."""
    if isinstance(obj, dict):
        return {
            _CAMEL_BOUNDARY.sub("_", str(k)).lower(): snake_keys(v)
            for k, v in obj.items()
        }
    if isinstance(obj, list):
        return [snake_keys(item) for item in obj]
    return obj


def _as_object(raw_text: str) -> dict[str, Any]:
    data = parse_json_response(raw_text)
    if not isinstance(data, dict):
        msg = f"Expected a JSON object, got {type(data).__name__}"
        raise ValueError(msg)
    return snake_keys(data)  # type: ignore[no-any-return]


def parse_job_response(
    raw_text: str, text: str, source_url: str | None = None,
) -> ParsedJobDescription:
    """Validate a model response as a job record, degrading on bad output."""
    try:
        data = _as_object(raw_text)
        for alias, key in _JOB_KEY_ALIASES.items():
            if alias in data and not data.get(key):
                data[key] = data.pop(alias)
        known = ParsedJobDescription.model_fields
        data = {k: v for k, v in data.items() if k in known}
        data.update(source_url=source_url, parse_error=False, error_details=None)
        return ParsedJobDescription.model_validate(data)
    except ValueError as e:
        logger.warning("Job response could not be structured: %s", e)
        return ParsedJobDescription(
            source_url=source_url,
            parse_error=True,
            error_details=str(e),
            raw_text=text,
        )


def parse_resume_response(raw_text: str, text: str) -> ParsedResume:
    """Validate a model response as a resume record, degrading on bad output."""
    try:
        data = _as_object(raw_text)
        if "contact" in data and "contact_info" not in data:
            data["contact_info"] = data.pop("contact")
        if isinstance(data.get("contact_info"), dict) and "name" in data["contact_info"]:
            data["contact_info"].setdefault("full_name", data["contact_info"].pop("name"))
        known = ParsedResume.model_fields
        data = {k: v for k, v in data.items() if k in known}
        data.update(parse_error=False, error_details=None)
        return ParsedResume.model_validate(data)
    except ValueError as e:
        logger.warning("Resume response could not be structured: %s", e)
        return ParsedResume(parse_error=True, error_details=str(e), raw_text=text)


def clip_page_text(text: str, max_chars: int) -> str:
    """Keep the head, middle and tail of an over-long page.

    Half of the budget goes to the head, a third to the middle and the rest
    to the tail, so the title, body and footer details all survive.
    """
    if len(text) <= max_chars:
        return text
    head = max_chars // 2
    middle = max_chars // 3
    tail = max_chars - head - middle
    mid_start = len(text) // 2 - middle // 2
    return _TRIM_MARKER.join(
        (text[:head], text[mid_start : mid_start + middle], text[len(text) - tail :]),
    )


def format_parsed_job(job: ParsedJobDescription) -> str:
    """Render a structured job in the same plain-text layout as static extraction."""
    header = [
        f"{label}: {value}"
        for label, value in (
            ("Job Title", job.job_title),
            ("Company", job.company_name),
            ("Location", job.location),
            ("Job Type", job.employment_type),
            ("Salary", job.salary_range),
            ("Experience Level", job.experience_level),
            ("Posted", job.posted_date),
        )
        if value
    ]
    parts = ["\n".join(header)] if header else []
    if job.job_description:
        parts.append(f"Description:\n{job.job_description}")
    for label, items in (
        ("Responsibilities", job.responsibilities),
        ("Requirements", job.requirements),
        ("Preferred Qualifications", job.nice_to_have),
        ("Skills", job.skills),
        ("Benefits", job.benefits),
    ):
        if items:
            parts.append(f"{label}:\n" + "\n".join(f"- {item}" for item in items))
    return "\n\n".join(parts)


class StructuredFieldExtractor:
    """Turn raw text into ParsedJobDescription / ParsedResume via a provider.

    Usage::

        extractor = StructuredFieldExtractor(get_provider("anthropic"))
        job = await extractor.extract_job(text, source_url=url)
    """

    def __init__(
        self,
        provider: LLMProvider,
        *,
        model: str | None = None,
        config: ExtractionConfig | None = None,
    ) -> None:
        self._provider = provider
        self._model = model
        self._config = config or ExtractionConfig()

    async def _complete(self, prompt: str, system: str) -> str:
        # Provider SDKs are synchronous.
        return await asyncio.to_thread(
            self._provider.complete, prompt, self._model, system=system,
        )

    async def extract_job(
        self, text: str, source_url: str | None = None,
    ) -> ParsedJobDescription:
        logger.info(
            "Structuring job text (%d chars) with %s", len(text), self._provider.provider_id,
        )
        raw = await self._complete(job_user_prompt(text), JOB_SYSTEM_PROMPT)
        return parse_job_response(raw, text, source_url)

    async def extract_job_from_page(self, page_text: str, url: str) -> ParsedJobDescription:
        """Structure the visible text of a whole page, clipped to the page budget."""
        clipped = clip_page_text(page_text, self._config.model_page_max_chars)
        logger.info(
            "Structuring page text for %s (%d of %d chars) with %s",
            url, len(clipped), len(page_text), self._provider.provider_id,
        )
        raw = await self._complete(page_user_prompt(url, clipped), JOB_SYSTEM_PROMPT)
        return parse_job_response(raw, clipped, url)

    async def extract_resume(self, text: str) -> ParsedResume:
        """Structure resume text. Long resumes are parsed section by section."""
        if len(text) <= self._config.advanced_parse_threshold:
            raw = await self._complete(resume_user_prompt(text), RESUME_SYSTEM_PROMPT)
            return parse_resume_response(raw, text)

        sections = split_sections(text)
        if len(sections) <= 1:
            clipped = text[: self._config.section_max_chars]
            raw = await self._complete(resume_user_prompt(clipped), RESUME_SYSTEM_PROMPT)
            return parse_resume_response(raw, text)

        logger.info(
            "Resume is %d chars; parsing %d sections separately", len(text), len(sections),
        )
        merged: ParsedResume | None = None
        errors: list[str] = []
        for index, section in enumerate(sections):
            if index > 0 and len(section.content) < MIN_SECTION_CHARS:
                continue
            body = f"{section.title}\n{section.content}"[: self._config.section_max_chars]
            raw = await self._complete(
                resume_user_prompt(body, section.kind), RESUME_SYSTEM_PROMPT,
            )
            part = parse_resume_response(raw, body)
            if part.parse_error:
                errors.append(f"{section.title}: {part.error_details}")
                continue
            merged = part if merged is None else merge_resumes(merged, part)

        if merged is None:
            details = "; ".join(errors) or "no parseable sections"
            return ParsedResume(parse_error=True, error_details=details, raw_text=text)
        if errors:
            logger.warning("Skipped %d unparseable resume sections", len(errors))
        return merged
