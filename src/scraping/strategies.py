"""Escalation strategies sharing one contract: attempt(url, html) -> StrategyOutcome.

Insufficient output is data, never an exception. Each strategy catches the
failures it owns (render, site fetch) and reports them on the attempt record
so the chain can move on.
"""

import logging
from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict

from src.browser.renderer import HeadlessRenderer
from src.core.config import ExtractionConfig, RenderConfig
from src.core.errors import FetchFailure, RenderFailure
from src.core.schemas import ExtractionAttempt
from src.parsing.structured import StructuredFieldExtractor, format_parsed_job
from src.scraping.fetcher import ResilientFetcher
from src.scraping.spa_miner import mine, mined_text
from src.scraping.static_extractor import extract_static, format_job_content, is_sufficient
from src.scraping.text import visible_text
from src.sites import get_site_scraper

logger = logging.getLogger(__name__)


class StrategyOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = ""
    sufficient: bool = False
    attempt: ExtractionAttempt


class ExtractionStrategy(ABC):
    """One rung of the escalation ladder."""

    def __init__(self, threshold: int) -> None:
        self.threshold = threshold

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier recorded on attempts and results (e.g. 'static')."""

    @abstractmethod
    async def attempt(self, url: str, html: str | None) -> StrategyOutcome:
        """Try to produce job text. ``html`` is None when the fetch failed."""

    def _outcome(
        self,
        text: str,
        *,
        raw_length: int = 0,
        error: str = "",
        sufficient: bool | None = None,
        visible_length: int | None = None,
    ) -> StrategyOutcome:
        if sufficient is None:
            sufficient = is_sufficient(text, self.threshold)
        attempt = ExtractionAttempt(
            strategy=self.name,
            raw_length=raw_length,
            visible_text_length=len(text) if visible_length is None else visible_length,
            success=sufficient,
            error=error,
        )
        logger.info(
            "Strategy %s: %d chars (%s)",
            self.name, len(text), "sufficient" if sufficient else "insufficient",
        )
        return StrategyOutcome(text=text if sufficient else "", sufficient=sufficient, attempt=attempt)


class StaticStrategy(ExtractionStrategy):
    """Selector heuristics over the fetched HTML."""

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self._config = config or ExtractionConfig()
        super().__init__(self._config.sufficiency_threshold)

    @property
    def name(self) -> str:
        return "static"

    async def attempt(self, url: str, html: str | None) -> StrategyOutcome:
        if not html:
            return self._outcome("", error="no html")
        extraction = extract_static(
            html, url, main_content_min_chars=self._config.main_content_min_chars,
        )
        logger.debug("Static extraction source for %s: %s", url, extraction.source)
        # Labels added by the formatter do not count towards sufficiency.
        visible = extraction.visible_text_length
        return self._outcome(
            format_job_content(extraction),
            raw_length=len(html),
            visible_length=visible,
            sufficient=visible >= self.threshold,
        )


class SpaMiningStrategy(ExtractionStrategy):
    """Hydration state, script JSON, API hints and text blocks."""

    @property
    def name(self) -> str:
        return "spa"

    async def attempt(self, url: str, html: str | None) -> StrategyOutcome:
        if not html:
            return self._outcome("", error="no html")
        record = mine(html, url)
        if record is None:
            return self._outcome("", raw_length=len(html))
        if record.api_urls:
            # Surfaced for follow-up only; never fetched here.
            logger.info("Candidate API endpoints for %s: %s", url, ", ".join(record.api_urls))
        text = mined_text(record)
        error = "" if text else f"{record.strategy}: no text"
        return self._outcome(text, raw_length=len(html), error=error)


class HeadlessRenderStrategy(ExtractionStrategy):
    """Render with JavaScript enabled. Render failures are logged and reported."""

    def __init__(
        self,
        renderer: HeadlessRenderer,
        threshold: int,
        config: RenderConfig | None = None,
    ) -> None:
        super().__init__(threshold)
        self._renderer = renderer
        self._config = config or RenderConfig()

    @property
    def name(self) -> str:
        return "render"

    async def attempt(self, url: str, html: str | None) -> StrategyOutcome:
        if not self._config.enabled:
            return self._outcome("", error="render disabled")
        site = get_site_scraper(url)
        markers = site.wait_markers if site is not None else ()
        try:
            result = await self._renderer.render(url, wait_markers=markers)
        except RenderFailure as e:
            logger.warning("Render fallback failed for %s (%s)", url, e.cause.value, exc_info=True)
            return self._outcome("", error=str(e))
        return self._outcome(result.extracted_text, raw_length=len(result.extracted_text))


class SiteSpecificStrategy(ExtractionStrategy):
    """Per-domain recipe. Last resort, so any non-empty text is accepted."""

    def __init__(self, fetcher: ResilientFetcher, threshold: int) -> None:
        super().__init__(threshold)
        self._fetcher = fetcher

    @property
    def name(self) -> str:
        return "site"

    async def attempt(self, url: str, html: str | None) -> StrategyOutcome:
        scraper = get_site_scraper(url)
        if scraper is None:
            return self._outcome("", error="no site scraper", sufficient=False)
        scraper.min_chars = self.threshold
        try:
            if html:
                text = scraper.scrape_html(html, url)
            else:
                text = await scraper.scrape(url, self._fetcher)
        except FetchFailure as e:
            logger.warning("Site scraper %s could not fetch %s: %s", scraper.site_id, url, e)
            return self._outcome("", error=str(e), sufficient=False)
        return self._outcome(
            text, raw_length=len(html or ""), sufficient=bool(text.strip()),
        )


class ModelExtractionStrategy(ExtractionStrategy):
    """Hand the page's visible text to the text-understanding provider.

    Runs after the site recipe and only when a provider is configured. A
    structured record with a title or description is accepted whatever its
    length; a degraded record is not.
    """

    def __init__(
        self,
        extractor: StructuredFieldExtractor,
        threshold: int,
    ) -> None:
        super().__init__(threshold)
        self._extractor = extractor

    @property
    def name(self) -> str:
        return "model"

    async def attempt(self, url: str, html: str | None) -> StrategyOutcome:
        if not html:
            return self._outcome("", error="no html", sufficient=False)
        page_text = visible_text(html)
        if not page_text:
            return self._outcome(
                "", raw_length=len(html), error="no visible text", sufficient=False,
            )
        try:
            job = await self._extractor.extract_job_from_page(page_text, url)
        except Exception as e:
            logger.warning("Model extraction failed for %s", url, exc_info=True)
            return self._outcome("", raw_length=len(html), error=str(e), sufficient=False)
        if job.parse_error:
            return self._outcome(
                "", raw_length=len(html), error=f"unparseable response: {job.error_details}",
                sufficient=False,
            )
        text = format_parsed_job(job)
        return self._outcome(
            text, raw_length=len(html), sufficient=bool(job.job_title or job.job_description),
        )
