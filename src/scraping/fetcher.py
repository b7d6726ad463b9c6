"""HTTP fetcher with browser-like headers, hard timeouts, and bounded retries.

Rules:
  - Every call owns its own httpx.AsyncClient; no timer state is shared.
  - The configured timeout bounds each httpx phase and the whole request,
    and is reported separately from connection errors.
  - Network errors, timeouts and 5xx are retried with exponential backoff.
  - 4xx (429 included) is returned to the caller as a failure, never retried.
"""

import asyncio
import logging

import httpx
from pydantic import BaseModel, ConfigDict
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from src.core.config import FetchConfig
from src.core.errors import FetchFailure, FetchFailureKind

logger = logging.getLogger(__name__)

NAVIGATION_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Cache-Control": "max-age=0",
}


class FetchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: int
    body: str
    url: str


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, FetchFailure) and exc.retryable


class ResilientFetcher:
    """GET pages the way a browser would, retrying transient failures.

    Usage::

        fetcher = ResilientFetcher(settings.fetch)
        result = await fetcher.fetch("https://example.com/jobs/1")
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or FetchConfig()
        self._transport = transport

    def build_headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {"User-Agent": self._config.user_agent, **NAVIGATION_HEADERS}
        if extra:
            headers.update(extra)
        return headers

    async def fetch(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout_s: float | None = None,
        max_redirects: int | None = None,
    ) -> FetchResult:
        """Fetch url and return its body.

        Args:
            url: Absolute http(s) URL.
            headers: Extra headers; override the defaults on conflict.
            timeout_s: Hard per-attempt timeout. None uses the config value.
            max_redirects: Redirect limit. None uses the config value.

        Returns:
            FetchResult for a 2xx/3xx final response.

        Raises:
            FetchFailure: After retries are exhausted, or immediately on 4xx.
        """
        timeout = timeout_s if timeout_s is not None else self._config.timeout_s
        redirects = (
            max_redirects if max_redirects is not None else self._config.max_redirects
        )
        request_headers = self.build_headers(headers)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._config.max_retries + 1),
            wait=wait_exponential(
                multiplier=self._config.backoff_min_s,
                min=self._config.backoff_min_s,
                max=self._config.backoff_max_s,
            ),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                n = attempt.retry_state.attempt_number
                if n > 1:
                    logger.info("Retrying %s (attempt %d)", url, n)
                return await self._fetch_once(url, request_headers, timeout, redirects)
        msg = f"no fetch attempt was made for {url}"
        raise FetchFailure(FetchFailureKind.NETWORK_ERROR, msg)

    async def _fetch_once(
        self,
        url: str,
        headers: dict[str, str],
        timeout: float,
        max_redirects: int,
    ) -> FetchResult:
        try:
            async with httpx.AsyncClient(
                headers=headers,
                follow_redirects=True,
                max_redirects=max_redirects,
                timeout=httpx.Timeout(timeout),
                transport=self._transport,
            ) as client:
                response = await asyncio.wait_for(client.get(url), timeout=timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            msg = f"request to {url} timed out after {timeout}s"
            raise FetchFailure(FetchFailureKind.TIMEOUT, msg) from e
        except httpx.HTTPError as e:
            msg = f"request to {url} failed: {e}"
            raise FetchFailure(FetchFailureKind.NETWORK_ERROR, msg) from e

        if response.status_code >= 400:
            msg = f"HTTP {response.status_code} for {url}"
            logger.debug(msg)
            raise FetchFailure(
                FetchFailureKind.HTTP_ERROR, msg, status=response.status_code,
            )

        return FetchResult(
            status=response.status_code, body=response.text, url=str(response.url),
        )
