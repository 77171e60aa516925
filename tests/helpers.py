"""Shared test doubles: stub scraper, stub extractor, scripted LLM provider."""

from pathlib import Path

from src.core.schemas import JobRecord, ScrapeResult, ScrapeSuccess
from src.llm.base import LLMProvider
from src.scraping.client import ScrapeOptions

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class StubScraper:
    """Returns queued results in order; records every URL asked for."""

    def __init__(self, *results: ScrapeResult) -> None:
        self._results = list(results) or [ScrapeSuccess(html="<html></html>")]
        self.calls: list[tuple[str, ScrapeOptions | None]] = []

    async def scrape(self, url: str, options: ScrapeOptions | None = None) -> ScrapeResult:
        self.calls.append((url, options))
        if len(self._results) > 1:
            return self._results.pop(0)
        return self._results[0]


class StubExtractor:
    """Deterministic stand-in for the LLM extraction step."""

    def __init__(
        self, records: list[JobRecord] | None = None, error: Exception | None = None,
    ) -> None:
        self._records = records or []
        self._error = error
        self.calls: list[str] = []

    async def extract_jobs(self, html: str) -> list[JobRecord]:
        self.calls.append(html)
        if self._error is not None:
            raise self._error
        return list(self._records)


class ScriptedProvider(LLMProvider):
    """LLM provider that replays canned responses."""

    def __init__(self, *responses: str) -> None:
        self._responses = list(responses)
        self.calls: list[dict[str, object]] = []

    @property
    def provider_id(self) -> str:
        return "scripted"

    @property
    def default_model(self) -> str:
        return "scripted-model"

    @property
    def env_var(self) -> None:
        return None

    async def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int = 1024,
        json_mode: bool = False,
    ) -> str:
        self.calls.append({
            "prompt": prompt,
            "model": model,
            "system": system,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "json_mode": json_mode,
        })
        if len(self._responses) > 1:
            return self._responses.pop(0)
        return self._responses[0]
