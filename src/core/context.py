"""Explicitly constructed pipeline state.

Everything the pipeline shares across calls (cache, fetcher, renderer,
provider) lives on one PipelineContext created at process start. There is
no module-level mutable state; ``reset()`` is the only administrative reset.

Used as an async context manager, the context also runs the periodic cache
cleanup for its lifetime::

    async with PipelineContext.from_settings(settings) as ctx:
        result = await extract_job_content(url, ctx)
"""

import asyncio
import contextlib
import logging

from src.browser.renderer import HeadlessRenderer
from src.core.config import Settings
from src.llm import get_provider
from src.llm.base import LLMProvider
from src.parsing.structured import StructuredFieldExtractor
from src.scraping.cache import ResultCache
from src.scraping.fetcher import ResilientFetcher
from src.scraping.strategies import (
    ExtractionStrategy,
    HeadlessRenderStrategy,
    ModelExtractionStrategy,
    SiteSpecificStrategy,
    SpaMiningStrategy,
    StaticStrategy,
)

logger = logging.getLogger(__name__)


class PipelineContext:
    """Holds settings and the long-lived collaborators of one process."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        cache: ResultCache | None = None,
        fetcher: ResilientFetcher | None = None,
        renderer: HeadlessRenderer | None = None,
        provider: LLMProvider | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.cache = cache or ResultCache(self.settings.cache)
        self.fetcher = fetcher or ResilientFetcher(self.settings.fetch)
        self.renderer = renderer or HeadlessRenderer(
            self.settings.render,
            main_content_min_chars=self.settings.extraction.main_content_min_chars,
        )
        self.provider = provider
        self._cleanup_task: asyncio.Task[None] | None = None
        self.extractor: StructuredFieldExtractor | None = None
        if provider is not None:
            self.extractor = StructuredFieldExtractor(
                provider, model=self.settings.llm.model, config=self.settings.extraction,
            )

    @classmethod
    def from_settings(
        cls, settings: Settings, *, use_provider: bool = True,
    ) -> "PipelineContext":
        """Build a context, instantiating the configured provider if requested."""
        provider = get_provider(settings.llm.provider) if use_provider else None
        return cls(settings, provider=provider)

    def strategies(self) -> list[ExtractionStrategy]:
        """Escalation chain in fixed order: static, spa, render, site.

        A model rung follows the site recipe when a provider is configured
        and ``extraction.model_fallback`` is on.
        """
        threshold = self.settings.extraction.sufficiency_threshold
        chain: list[ExtractionStrategy] = [
            StaticStrategy(self.settings.extraction),
            SpaMiningStrategy(threshold),
            HeadlessRenderStrategy(self.renderer, threshold, self.settings.render),
            SiteSpecificStrategy(self.fetcher, threshold),
        ]
        if self.extractor is not None and self.settings.extraction.model_fallback:
            chain.append(ModelExtractionStrategy(self.extractor, threshold))
        return chain

    def reset(self) -> None:
        """Drop all cached content."""
        self.cache.clear()
        logger.info("Pipeline context reset")

    async def __aenter__(self) -> "PipelineContext":
        self._cleanup_task = asyncio.create_task(self.cache.run_periodic_cleanup())
        return self

    async def __aexit__(self, *exc: object) -> None:
        task = self._cleanup_task
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        self._cleanup_task = None
