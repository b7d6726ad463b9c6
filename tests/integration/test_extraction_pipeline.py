"""Integration test: extraction escalation and matching with mocked I/O (no browser, no network)."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

from src.core.config import Settings
from src.core.context import PipelineContext
from src.core.errors import (
    FetchFailure,
    FetchFailureKind,
    RenderFailure,
    RenderFailureCause,
)
from src.core.schemas import JobMatchingCriteria, ParsedJobDescription, ParsedResume, RenderResult
from src.pipeline.orchestrator import extract_job_content, score_candidate_against_jobs
from src.scraping.analyzer import ACTION_JS_HEAVY
from src.scraping.fetcher import FetchResult
from src.sites.eplus.scraper import EplusScraper

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"
URL = "https://careers.acme.example/jobs/1"
EPLUS_URL = "https://careers.eplus.com/jobs/7456/Principal+Architect+-+Carrier+Networking/"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load(name: str) -> str:
    return (FIXTURES_DIR / name).read_text()


def _context(
    *,
    html: str | None = None,
    fetch_error: FetchFailure | None = None,
    renderer: AsyncMock | None = None,
    settings: Settings | None = None,
    provider: Any = None,
) -> PipelineContext:
    fetcher = AsyncMock()
    if fetch_error is not None:
        fetcher.fetch.side_effect = fetch_error
    else:
        fetcher.fetch.return_value = FetchResult(status=200, body=html or "", url=URL)
    if renderer is None:
        renderer = AsyncMock()
        renderer.render.return_value = RenderResult(success=False)
    return PipelineContext(settings, fetcher=fetcher, renderer=renderer, provider=provider)


def _js_heavy_html() -> str:
    bundle = "function r(e){return e+1}" * 400
    return f'<html><body><div id="root"></div><script>{bundle}</script></body></html>'


# ---------------------------------------------------------------------------
# TestExtractJobContent
# ---------------------------------------------------------------------------


class TestExtractJobContent:
    async def test_static_success_is_cached(self) -> None:
        ctx = _context(html=_load("static_job.html"))

        first = await extract_job_content(URL, ctx)
        second = await extract_job_content(URL, ctx)

        assert first.strategy == "static"
        assert first.cached is False
        assert "Senior Data Engineer" in first.text
        assert [a.strategy for a in first.attempts] == ["static"]
        assert second.cached is True
        assert second.strategy == "cache"
        assert second.text == first.text
        ctx.fetcher.fetch.assert_awaited_once_with(URL)

    async def test_cache_hit_skips_fetch(self) -> None:
        ctx = _context(html="<html></html>")
        ctx.cache.set(URL, "Job Title: Cached Role")

        result = await extract_job_content(URL, ctx)

        assert result.cached is True
        assert result.text == "Job Title: Cached Role"
        assert result.attempts == []
        ctx.fetcher.fetch.assert_not_awaited()

    async def test_spa_state_used_when_static_is_thin(self) -> None:
        ctx = _context(html=_load("spa_shell.html"))
        result = await extract_job_content(URL, ctx)

        assert result.strategy == "spa"
        assert "Staff Backend Engineer" in result.text
        assert [a.strategy for a in result.attempts] == ["static", "spa"]
        ctx.renderer.render.assert_not_awaited()

    async def test_escalation_order(self) -> None:
        calls: list[str] = []

        def _mine(html: str, url: str) -> None:
            calls.append("spa")

        async def _render(url: str, **kwargs: Any) -> RenderResult:
            calls.append("render")
            return RenderResult(success=False)

        def _scrape_html(html: str, url: str) -> str:
            calls.append("site")
            return "Job Title: Principal Architect"

        renderer = AsyncMock()
        renderer.render.side_effect = _render
        ctx = _context(html="<html><body><p>Hi</p></body></html>", renderer=renderer)

        with (
            patch("src.scraping.strategies.mine", side_effect=_mine),
            patch.object(EplusScraper, "scrape_html", side_effect=_scrape_html),
        ):
            result = await extract_job_content(EPLUS_URL, ctx)

        assert calls == ["spa", "render", "site"]
        assert result.strategy == "site"
        assert result.text == "Job Title: Principal Architect"
        assert [a.strategy for a in result.attempts] == ["static", "spa", "render", "site"]
        assert ctx.cache.get(EPLUS_URL) == result.text

    async def test_rendered_text_when_fetch_fails(self) -> None:
        renderer = AsyncMock()
        renderer.render.return_value = RenderResult(
            success=True, extracted_text="Job Title: Machine Learning Engineer\n" + "x" * 600,
        )
        ctx = _context(
            fetch_error=FetchFailure(FetchFailureKind.TIMEOUT, "timed out after 15s"),
            renderer=renderer,
        )

        result = await extract_job_content(URL, ctx)

        assert result.strategy == "render"
        assert result.text.startswith("Job Title: Machine Learning Engineer")
        assert result.attempts[0].strategy == "fetch"
        assert "timed out" in result.attempts[0].error
        assert ctx.cache.get(URL) == result.text

    async def test_exhausted_chain_returns_diagnosis(self) -> None:
        renderer = AsyncMock()
        renderer.render.side_effect = RenderFailure(
            RenderFailureCause.ENVIRONMENT, "could not launch headless browser",
        )
        ctx = _context(html=_js_heavy_html(), renderer=renderer)

        result = await extract_job_content(URL, ctx)

        assert result.text == ""
        assert result.succeeded is False
        assert result.diagnosis is not None
        assert result.diagnosis.recommended_action == ACTION_JS_HEAVY
        assert [a.strategy for a in result.attempts] == ["static", "spa", "render", "site"]
        assert ctx.cache.get(URL) is None

    async def test_exhausted_after_fetch_failure_mentions_it(self) -> None:
        ctx = _context(
            fetch_error=FetchFailure(FetchFailureKind.HTTP_ERROR, "HTTP 404", status=404),
        )
        result = await extract_job_content(URL, ctx)

        assert result.text == ""
        assert result.diagnosis is not None
        assert result.diagnosis.technical_details[0].startswith("Page could not be fetched")

    async def test_model_rung_after_site(self, make_provider: Callable[..., Any]) -> None:
        provider = make_provider(
            '{"job_title": "Support Engineer", "company_name": "Acme", '
            '"job_description": "Help customers run the product."}',
        )
        html = "<html><body><p>Support Engineer at Acme. Apply today.</p></body></html>"
        ctx = _context(html=html, provider=provider)

        result = await extract_job_content(URL, ctx)

        assert result.strategy == "model"
        assert result.text.startswith("Job Title: Support Engineer\nCompany: Acme")
        assert [a.strategy for a in result.attempts] == ["static", "spa", "render", "site", "model"]
        assert "Support Engineer at Acme." in provider.calls[0][0]
        assert ctx.cache.get(URL) == result.text

    async def test_model_rung_failure_keeps_diagnosis(
        self, make_provider: Callable[..., Any],
    ) -> None:
        ctx = _context(
            html="<html><body><p>Careers at Acme</p></body></html>",
            provider=make_provider(RuntimeError("quota exceeded")),
        )

        result = await extract_job_content(URL, ctx)

        assert result.succeeded is False
        assert result.diagnosis is not None
        assert result.attempts[-1].strategy == "model"
        assert result.attempts[-1].error == "quota exceeded"


# ---------------------------------------------------------------------------
# TestScoreCandidateAgainstJobs
# ---------------------------------------------------------------------------


def _profile() -> ParsedResume:
    return ParsedResume(skills=["Python", "SQL"])


def _criteria() -> JobMatchingCriteria:
    return JobMatchingCriteria(
        required_skills=["Python", "SQL"],
        experience_years=5,
        education_level="Bachelor of Science",
        locations=["Austin, TX"],
    )


def _jobs() -> list[ParsedJobDescription]:
    return [
        ParsedJobDescription(
            source_url="https://acme.example/jobs/1",
            job_title="Data Engineer",
            company_name="Acme",
            location="Austin, TX",
            requirements=["3+ years of experience with SQL"],
            skills=["Python", "SQL"],
        ),
        ParsedJobDescription(
            source_url="https://globex.example/jobs/9",
            job_title="Compiler Engineer",
            company_name="Globex",
            location="Seattle, WA",
            requirements=["10+ years of experience", "PhD required"],
            skills=["Rust", "Haskell", "Erlang"],
        ),
        ParsedJobDescription(
            job_title="Analytics Engineer",
            company_name="Initech",
            location="Austin, TX",
            skills=["Python", "SQL"],
        ),
    ]


def _entry(job_id: str, score: int) -> dict[str, Any]:
    return {"job_id": job_id, "match_score": score, "match_reasons": ["Good fit"]}


class TestScoreCandidateAgainstJobs:
    async def test_rule_based_without_provider(self) -> None:
        matches = await score_candidate_against_jobs(
            _profile(), _jobs(), _criteria(), ctx=_context(),
        )
        assert {m.job_id for m in matches} == {"https://acme.example/jobs/1", "job-2"}
        assert all(m.match_score >= 60 for m in matches)
        assert matches[0].match_score >= matches[-1].match_score
        assert all(m.breakdown is not None for m in matches)

    async def test_model_scores_used(self, make_provider: Callable[..., Any]) -> None:
        provider = make_provider(
            json.dumps([
                _entry("https://acme.example/jobs/1", 72),
                _entry("https://globex.example/jobs/9", 30),
                _entry("job-2", 95),
            ]),
        )
        ctx = _context(provider=provider)
        matches = await score_candidate_against_jobs(_profile(), _jobs(), _criteria(), ctx=ctx)

        assert [(m.job_id, m.match_score) for m in matches] == [
            ("job-2", 95),
            ("https://acme.example/jobs/1", 72),
        ]
        assert matches[0].title == "Analytics Engineer"
        assert len(provider.calls) == 1

    async def test_provider_failure_falls_back(self, make_provider: Callable[..., Any]) -> None:
        provider = make_provider(RuntimeError("service unavailable"))
        ctx = _context(provider=provider)
        matches = await score_candidate_against_jobs(_profile(), _jobs(), _criteria(), ctx=ctx)

        assert len(provider.calls) == 1
        assert {m.job_id for m in matches} == {"https://acme.example/jobs/1", "job-2"}
        assert all(m.breakdown is not None for m in matches)

    async def test_unparseable_response_falls_back(
        self, make_provider: Callable[..., Any],
    ) -> None:
        ctx = _context(provider=make_provider("Job one looks great!"))
        matches = await score_candidate_against_jobs(_profile(), _jobs(), _criteria(), ctx=ctx)
        assert {m.job_id for m in matches} == {"https://acme.example/jobs/1", "job-2"}

    async def test_blends_rule_and_model_scores(self, make_provider: Callable[..., Any]) -> None:
        settings = Settings.model_validate(
            {"scoring": {"rule_weight": 0.5, "llm_weight": 0.5}},
        )
        provider = make_provider(json.dumps([_entry("https://acme.example/jobs/1", 80)]))
        ctx = _context(settings=settings, provider=provider)
        matches = await score_candidate_against_jobs(_profile(), _jobs(), _criteria(), ctx=ctx)

        assert len(matches) == 1
        # rule score 100, model score 80
        assert matches[0].match_score == 90
        assert matches[0].breakdown is not None

    async def test_model_disabled(self, make_provider: Callable[..., Any]) -> None:
        settings = Settings.model_validate({"scoring": {"llm_enabled": False}})
        provider = make_provider("[]")
        ctx = _context(settings=settings, provider=provider)
        matches = await score_candidate_against_jobs(_profile(), _jobs(), _criteria(), ctx=ctx)

        assert provider.calls == []
        assert len(matches) == 2

    async def test_criteria_derived_from_profile(self) -> None:
        profile = ParsedResume(skills=["Python", "SQL"])
        matches = await score_candidate_against_jobs(profile, _jobs(), ctx=_context())
        assert "https://globex.example/jobs/9" not in {m.job_id for m in matches}

    async def test_model_suggests_criteria_when_none_given(
        self, make_provider: Callable[..., Any],
    ) -> None:
        provider = make_provider(
            json.dumps({"required_skills": ["Python", "Terraform"], "locations": ["Austin, TX"]}),
            json.dumps([_entry("https://acme.example/jobs/1", 77)]),
        )
        matches = await score_candidate_against_jobs(
            _profile(), _jobs(), ctx=_context(provider=provider),
        )

        assert len(provider.calls) == 2
        criteria_system = provider.calls[0][2]
        assert criteria_system is not None
        assert criteria_system.startswith("Extract job matching criteria")
        assert "Terraform" in provider.calls[1][0]
        assert [(m.job_id, m.match_score) for m in matches] == [("https://acme.example/jobs/1", 77)]

    async def test_criteria_call_failure_falls_back(
        self, make_provider: Callable[..., Any],
    ) -> None:
        provider = make_provider(RuntimeError("service unavailable"))
        matches = await score_candidate_against_jobs(
            _profile(), _jobs(), ctx=_context(provider=provider),
        )

        assert len(provider.calls) == 1
        assert matches
        assert "https://globex.example/jobs/9" not in {m.job_id for m in matches}
        assert all(m.breakdown is not None for m in matches)

    async def test_no_jobs(self, make_provider: Callable[..., Any]) -> None:
        provider = make_provider("[]")
        matches = await score_candidate_against_jobs(
            _profile(), [], _criteria(), ctx=_context(provider=provider),
        )
        assert matches == []
        assert provider.calls == []
