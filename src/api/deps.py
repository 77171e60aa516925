"""Service container shared by the API routers."""

from dataclasses import dataclass

from fastapi import Request

from src.core.config import Settings
from src.leads.hunter import HunterClient
from src.llm.base import LLMProvider
from src.pipeline.extraction import JobExtractor, JobSource
from src.scraping.client import ScrapeClient, Scraper


@dataclass
class Services:
    """Collaborators injected into request handlers.

    Nothing here holds per-request state; each scrape request builds its own
    ScrapePipeline around these.
    """

    settings: Settings
    scraper: Scraper
    extractor: JobSource
    leads: HunterClient
    assistant_provider: LLMProvider | None = None

    async def aclose(self) -> None:
        if isinstance(self.scraper, ScrapeClient):
            await self.scraper.aclose()


def build_services(settings: Settings) -> Services:
    """Wire the real clients from settings."""
    return Services(
        settings=settings,
        scraper=ScrapeClient(settings.scrape),
        extractor=JobExtractor(settings.llm),
        leads=HunterClient(settings.leads),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services  # type: ignore[no-any-return]
