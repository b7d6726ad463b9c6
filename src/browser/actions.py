"""Reusable page actions for the render fallback: settle, wait, scroll, clean.

Design rules:
  - Every wait is bounded; a failed optional wait never aborts the render.
  - Scrolling stops as soon as visible text length stops growing.
  - Noise is removed from the live DOM before the snapshot is taken.
"""

import asyncio
import logging
import random
from typing import Any

logger = logging.getLogger(__name__)

MAX_SCROLL_ATTEMPTS = 3
SCROLL_DELAY_FLOOR = 0.5

# Removed from the live DOM before snapshotting. JSON-LD is kept for the
# field extractor.
LIVE_NOISE_SELECTORS: tuple[str, ...] = (
    'script:not([type="application/ld+json"])',
    "style",
    "noscript",
    "iframe",
    "nav",
    "footer",
    '[class*="cookie"]',
    '[id*="cookie"]',
    '[class*="consent"]',
    '[id*="consent"]',
    '[aria-label*="cookie" i]',
)

_REMOVE_JS = """(selectors) => {
    let removed = 0;
    for (const sel of selectors) {
        document.querySelectorAll(sel).forEach((el) => { el.remove(); removed++; });
    }
    return removed;
}"""

_TEXT_LENGTH_JS = "() => (document.body ? document.body.innerText.length : 0)"


async def random_sleep(min_s: float, max_s: float) -> float:
    """Sleep for a random duration between min_s and max_s seconds.

    If max_s < min_s, max_s is raised to min_s. Returns the duration slept.
    """
    floor = max(min_s, 0.0)
    ceiling = max(max_s, floor)
    duration = random.uniform(floor, ceiling)
    await asyncio.sleep(duration)
    return duration


async def settle(page: Any, settle_ms: int) -> None:
    """Fixed post-load delay for lazy content."""
    if settle_ms > 0:
        await page.wait_for_timeout(settle_ms)


async def wait_for_any(page: Any, markers: tuple[str, ...], timeout_ms: int) -> str | None:
    """Wait until any marker selector appears. Returns the marker, or None.

    Each marker is awaited concurrently. The whole wait is cancelled after
    ``timeout_ms`` independently of any outer timeout, and failure is logged
    rather than raised.
    """
    if not markers or timeout_ms <= 0:
        return None

    tasks = {
        asyncio.ensure_future(page.wait_for_selector(m, timeout=timeout_ms)): m
        for m in markers
    }
    pending = set(tasks)
    try:
        async with asyncio.timeout(timeout_ms / 1000):
            while pending:
                done, pending = await asyncio.wait(
                    pending, return_when=asyncio.FIRST_COMPLETED,
                )
                for task in done:
                    if task.exception() is None and task.result() is not None:
                        logger.debug("Wait marker matched: %s", tasks[task])
                        return tasks[task]
    except TimeoutError:
        pass
    finally:
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
    logger.info("None of %d wait markers appeared within %dms", len(markers), timeout_ms)
    return None


async def scroll_until_stable(
    page: Any,
    *,
    max_attempts: int = MAX_SCROLL_ATTEMPTS,
    scroll_delay_min: float = SCROLL_DELAY_FLOOR,
    scroll_delay_max: float = 1.0,
) -> int:
    """Scroll to the bottom until visible text length stops growing.

    Args:
        page: Browser page object (patchright Page or mock).
        max_attempts: Max scroll iterations before giving up.
        scroll_delay_min: Minimum delay between scrolls (floor: 0.5s).
        scroll_delay_max: Maximum delay between scrolls.

    Returns:
        Final visible text length.
    """
    scroll_delay_min = max(scroll_delay_min, SCROLL_DELAY_FLOOR)
    scroll_delay_max = max(scroll_delay_max, scroll_delay_min)

    previous = await page.evaluate(_TEXT_LENGTH_JS)
    for attempt in range(max_attempts):
        await page.evaluate("window.scrollTo(0, document.body.scrollHeight)")
        await random_sleep(scroll_delay_min, scroll_delay_max)
        current = await page.evaluate(_TEXT_LENGTH_JS)
        logger.debug(
            "Scroll %d/%d: %d text chars (prev: %d)",
            attempt + 1, max_attempts, current, previous,
        )
        if current <= previous:
            break
        previous = current
    return int(previous)


async def remove_noise(
    page: Any, selectors: tuple[str, ...] = LIVE_NOISE_SELECTORS,
) -> int:
    """Delete noise elements from the live DOM. Returns how many were removed."""
    removed = await page.evaluate(_REMOVE_JS, list(selectors))
    logger.debug("Removed %s noise elements", removed)
    return int(removed or 0)
