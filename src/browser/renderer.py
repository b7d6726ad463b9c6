"""Headless render fallback using patchright.

Hard rules:
  - One playwright + browser + context + page per render() call; nothing
    is shared between calls.
  - Everything acquired is closed on every exit path.
  - Launch failure is an environment problem; navigation failure is a
    target-site problem. Neither is retried here.
  - Per-site wait markers are optional and may time out without aborting.
"""

import logging
from collections.abc import Callable
from typing import Any

from patchright.async_api import Error as PlaywrightError
from patchright.async_api import async_playwright

from src.browser.actions import remove_noise, scroll_until_stable, settle, wait_for_any
from src.core.config import RenderConfig
from src.core.errors import RenderFailure, RenderFailureCause
from src.core.schemas import RenderResult
from src.scraping.dom_fields import extract_dom_fields

logger = logging.getLogger(__name__)


class HeadlessRenderer:
    """Render a URL in a throwaway headless browser and extract job fields.

    Usage::

        renderer = HeadlessRenderer(settings.render)
        result = await renderer.render(url, wait_markers=("text=Qualifications",))
    """

    def __init__(
        self,
        config: RenderConfig | None = None,
        *,
        playwright_factory: Callable[[], Any] = async_playwright,
        main_content_min_chars: int = 200,
    ) -> None:
        self._config = config or RenderConfig()
        self._main_content_min_chars = main_content_min_chars
        self._playwright_factory = playwright_factory

    async def render(
        self,
        url: str,
        *,
        wait_markers: tuple[str, ...] = (),
        screenshot: bool = False,
    ) -> RenderResult:
        """Load url with JavaScript enabled and extract fields from the live DOM.

        Raises:
            RenderFailure: ENVIRONMENT if the browser cannot start,
                TARGET_SITE if navigation fails.
        """
        cfg = self._config
        playwright: Any = None
        browser: Any = None
        context: Any = None
        try:
            try:
                playwright = await self._playwright_factory().start()
                browser = await playwright.chromium.launch(headless=True)
                context = await browser.new_context(
                    viewport={"width": cfg.viewport_width, "height": cfg.viewport_height},
                    user_agent=cfg.user_agent,
                )
                context.set_default_timeout(cfg.timeout_ms)
                page = await context.new_page()
            except Exception as e:
                msg = f"could not launch headless browser: {e}"
                raise RenderFailure(RenderFailureCause.ENVIRONMENT, msg) from e

            try:
                await page.goto(url, wait_until="domcontentloaded", timeout=cfg.timeout_ms)
            except PlaywrightError as e:
                msg = f"navigation to {url} failed: {e}"
                raise RenderFailure(RenderFailureCause.TARGET_SITE, msg) from e

            try:
                await page.wait_for_load_state("networkidle", timeout=cfg.timeout_ms)
            except PlaywrightError:
                logger.info("Network never went idle for %s; continuing", url)

            try:
                await settle(page, cfg.settle_ms)
                await wait_for_any(page, wait_markers, cfg.wait_timeout_ms)
                if cfg.max_scroll_attempts:
                    await scroll_until_stable(page, max_attempts=cfg.max_scroll_attempts)
                await remove_noise(page)

                html: str = await page.content()
                shot: bytes | None = None
                if screenshot:
                    shot = await page.screenshot(full_page=True)
            except PlaywrightError as e:
                msg = f"page {url} failed after load: {e}"
                raise RenderFailure(RenderFailureCause.TARGET_SITE, msg) from e
        finally:
            await _close_quietly(context, browser, playwright)

        dom = extract_dom_fields(
            html, url, main_content_min_chars=self._main_content_min_chars,
        )
        text = dom.text
        logger.info("Rendered %s: %d chars extracted", url, len(text))
        return RenderResult(
            success=bool(dom.extraction.body_text),
            extracted_text=text,
            fields=dom.fields,
            sections=dom.sections,
            screenshot=shot,
        )


async def _close_quietly(context: Any, browser: Any, playwright: Any) -> None:
    """Close context, browser and playwright; one failing close never skips the rest."""
    for name, resource, method in (
        ("context", context, "close"),
        ("browser", browser, "close"),
        ("playwright", playwright, "stop"),
    ):
        if resource is None:
            continue
        try:
            await getattr(resource, method)()
        except Exception:
            logger.warning("Failed to close %s", name, exc_info=True)
