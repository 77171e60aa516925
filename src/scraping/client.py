"""Scraping API client (Firecrawl REST) with failure classification.

One attempt per call. The client knows nothing about jobs: URL in, HTML or a
classified ScrapeFailure out. Retry policy belongs to the caller.
"""

import logging
import os
from types import TracebackType
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, Field

from src.core.config import ScrapeConfig
from src.core.errors import ConfigurationError
from src.core.schemas import ScrapeFailure, ScrapeResult, ScrapeSuccess

logger = logging.getLogger(__name__)

TRANSPORT_ERROR_STATUS = 502


class ScrapeOptions(BaseModel):
    """Per-request scrape options."""

    headers: dict[str, str] = Field(default_factory=dict)
    wait_for_ms: int = Field(default=5000, ge=0)
    use_proxies: bool = True

    @classmethod
    def from_config(cls, config: ScrapeConfig) -> "ScrapeOptions":
        return cls(
            headers={
                "User-Agent": config.user_agent,
                "Accept-Language": config.accept_language,
            },
            wait_for_ms=config.wait_for_ms,
            use_proxies=config.use_proxies,
        )


class Scraper(Protocol):
    """Anything that can fetch a page; lets tests swap in a stub."""

    async def scrape(self, url: str, options: ScrapeOptions | None = None) -> ScrapeResult: ...


class ScrapeClient:
    """Async client for the Firecrawl ``/v1/scrape`` endpoint.

    Usage::

        async with ScrapeClient(settings.scrape) as client:
            result = await client.scrape(url)
    """

    def __init__(
        self,
        config: ScrapeConfig,
        *,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._api_key = api_key
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "ScrapeClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _resolve_api_key(self) -> str:
        api_key = self._api_key or os.environ.get(self._config.api_key_env)
        if not api_key:
            msg = f"{self._config.api_key_env} environment variable is required"
            raise ConfigurationError(msg)
        return api_key

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._config.timeout_s)
        return self._client

    async def scrape(self, url: str, options: ScrapeOptions | None = None) -> ScrapeResult:
        """Fetch ``url`` through the scraping API and classify the outcome."""
        options = options or ScrapeOptions.from_config(self._config)
        api_key = self._resolve_api_key()
        payload = {
            "url": url,
            "formats": ["html"],
            "headers": options.headers,
            "waitFor": options.wait_for_ms,
            "proxy": "stealth" if options.use_proxies else "basic",
        }

        logger.info("Scraping %s (wait %d ms, proxies=%s)", url, options.wait_for_ms,
                    options.use_proxies)
        try:
            response = await self._http().post(
                f"{self._config.api_url}/v1/scrape",
                json=payload,
                headers={"Authorization": f"Bearer {api_key}"},
            )
        except httpx.HTTPError as e:
            logger.error("Scrape transport error for %s: %s", url, e)
            return ScrapeFailure(
                status_code=TRANSPORT_ERROR_STATUS,
                message=f"Transport error: {type(e).__name__}",
                details=str(e),
            )

        return _classify_response(response)


def _classify_response(response: httpx.Response) -> ScrapeResult:
    """Turn a scraping API response into ScrapeSuccess or ScrapeFailure."""
    body = _safe_json(response)

    if response.is_error:
        failure = ScrapeFailure(
            status_code=response.status_code,
            message=_as_text(body.get("error")) or response.reason_phrase or "Unknown error",
            details=_as_text(body.get("details")),
        )
        _log_failure(failure)
        return failure

    data = body.get("data") if isinstance(body.get("data"), dict) else {}
    html = data.get("html") or ""
    if body.get("success") and html:
        logger.info("Scraped HTML length: %d characters", len(html))
        return ScrapeSuccess(html=html)

    metadata = data.get("metadata") if isinstance(data.get("metadata"), dict) else {}
    status = metadata.get("statusCode")
    failure = ScrapeFailure(
        status_code=status if isinstance(status, int) and status > 0 else 500,
        message=_as_text(body.get("error") or metadata.get("error")) or "Unknown error",
        details=_as_text(body.get("details")) or "No HTML returned",
    )
    _log_failure(failure)
    return failure


def _log_failure(failure: ScrapeFailure) -> None:
    logger.error(
        "Scrape failed: status=%d message=%s details=%s",
        failure.status_code, failure.message, failure.details,
    )


def _safe_json(response: httpx.Response) -> dict[str, Any]:
    """Parse a JSON object body, or {} when the body is not one."""
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)
