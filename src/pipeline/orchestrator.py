"""Orchestrator: validate → build URL → scrape → extract → export.

States (one pipeline instance per request):
  IDLE → VALIDATING → BUILDING → SCRAPING → EXTRACTING → EXPORTING → DONE
  Any error moves the pipeline to FAILED and is re-raised for the HTTP layer.

Steps run strictly in sequence; each needs the previous step's output.
"""

import asyncio
import logging
import random
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.core.config import Settings
from src.core.errors import (
    ExtractionParseError,
    InputValidationError,
    PipelineTimeout,
    ScrapeError,
    UpstreamBlocked,
    UpstreamFailure,
    UpstreamRateLimited,
)
from src.core.schemas import JobRecord, ScrapeFailure, ScrapeResult, SearchCriteria
from src.pipeline.export import CsvExport, export_to_csv
from src.pipeline.extraction import JobSource
from src.portals.registry import DEFAULT_PORTAL, get_portal
from src.portals.searcher import build_search_url
from src.scraping.client import ScrapeOptions, Scraper

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    BUILDING = "building"
    SCRAPING = "scraping"
    EXTRACTING = "extracting"
    EXPORTING = "exporting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineOutcome:
    """Everything the HTTP layer needs to answer a successful request."""

    criteria: SearchCriteria
    url: str
    records: list[JobRecord]
    export: CsvExport
    message: str = ""
    states: list[PipelineState] = field(default_factory=list)


def _field(payload: Mapping[str, Any], *names: str) -> str:
    for name in names:
        value = payload.get(name)
        if value is not None:
            return str(value).strip()
    return ""


def validate_search_request(
    payload: Mapping[str, Any],
    default_portal: str = DEFAULT_PORTAL,
) -> SearchCriteria:
    """Validate raw request fields into SearchCriteria.

    Accepts camelCase (jobTitle) or snake_case (job_title) keys. A blank
    portal uses ``default_portal``; an unknown one falls back to it too.

    Raises:
        InputValidationError: On a missing field or an employment type the
            portal cannot filter by (Freelance is always accepted).
    """
    job_title = _field(payload, "jobTitle", "job_title")
    job_location = _field(payload, "jobLocation", "job_location")
    employment_type = _field(payload, "employmentType", "employment_type")
    requested_portal = _field(payload, "portal") or default_portal

    missing = [
        name for name, value in (
            ("jobTitle", job_title),
            ("jobLocation", job_location),
            ("employmentType", employment_type),
        ) if not value
    ]
    if missing:
        msg = f"Missing required fields: {', '.join(missing)}"
        raise InputValidationError(msg)

    portal = get_portal(requested_portal, default_portal)
    if not portal.supports(employment_type):
        msg = f"Invalid employment type for {requested_portal}"
        raise InputValidationError(msg)

    return SearchCriteria(
        job_title=job_title,
        job_location=job_location,
        employment_type=employment_type,
        portal=portal.portal_id,
    )


def classify_scrape_failure(failure: ScrapeFailure, portal: str) -> ScrapeError:
    """Map an upstream scrape failure onto the API error it surfaces as."""
    upstream = f"{failure.message} (Status: {failure.status_code})"
    if failure.details:
        upstream += f": {failure.details}"

    kwargs = {"upstream_status": failure.status_code, "upstream_message": failure.message}
    if failure.status_code == 403:
        return UpstreamBlocked(
            f"Access to {portal} was blocked (403 Forbidden)",
            f"{portal} may have detected scraping. Try adjusting headers or proxies. "
            f"Upstream: {upstream}",
            **kwargs,
        )
    if failure.status_code == 429:
        return UpstreamRateLimited(
            "Too many requests (429)",
            f"Rate limit exceeded. Please try again later. Upstream: {upstream}",
            **kwargs,
        )
    return UpstreamFailure("Scraping failed", upstream, **kwargs)


class ScrapePipeline:
    """One request's run through the job extraction pipeline."""

    def __init__(
        self,
        scraper: Scraper,
        extractor: JobSource,
        settings: Settings,
        *,
        options: ScrapeOptions | None = None,
    ) -> None:
        self._scraper = scraper
        self._extractor = extractor
        self._settings = settings
        self._options = options or ScrapeOptions.from_config(settings.scrape)
        self.state = PipelineState.IDLE
        self.history: list[PipelineState] = [PipelineState.IDLE]
        self.failed_reason: str | None = None

    def _enter(self, state: PipelineState) -> None:
        logger.debug("Pipeline %s → %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    async def run(self, payload: Mapping[str, Any]) -> PipelineOutcome:
        """Run the whole pipeline under the configured request deadline."""
        if self.state is not PipelineState.IDLE:
            msg = "ScrapePipeline instances are single-use"
            raise RuntimeError(msg)

        deadline = self._settings.pipeline.request_deadline_s
        try:
            async with asyncio.timeout(deadline):
                return await self._run(payload)
        except TimeoutError as e:
            self._fail(f"deadline of {deadline:g}s exceeded")
            msg = "Request timed out"
            raise PipelineTimeout(
                msg, f"Pipeline exceeded {deadline:g}s while {self.history[-2].value}",
            ) from e
        except BaseException as e:
            self._fail(str(e) or type(e).__name__)
            raise

    def _fail(self, reason: str) -> None:
        if self.state is PipelineState.FAILED:
            return
        self.failed_reason = reason
        self._enter(PipelineState.FAILED)

    async def _run(self, payload: Mapping[str, Any]) -> PipelineOutcome:
        pipeline_config = self._settings.pipeline

        self._enter(PipelineState.VALIDATING)
        criteria = validate_search_request(payload, pipeline_config.default_portal)

        self._enter(PipelineState.BUILDING)
        url = build_search_url(
            criteria.portal, criteria.job_title, criteria.job_location, criteria.employment_type,
        )
        logger.info("Attempting to scrape URL: %s from %s", url, criteria.portal)

        self._enter(PipelineState.SCRAPING)
        html = await self._scrape(url, criteria.portal)

        self._enter(PipelineState.EXTRACTING)
        records = await self._extract(html)

        message = ""
        if not records:
            message = f"No jobs found for the given criteria on {criteria.portal}"
            logger.warning("No jobs extracted from %s", criteria.portal)

        self._enter(PipelineState.EXPORTING)
        export = export_to_csv(records, criteria.portal, self._settings.export.tmp_dir)

        self._enter(PipelineState.DONE)
        return PipelineOutcome(
            criteria=criteria,
            url=url,
            records=records,
            export=export,
            message=message,
            states=list(self.history),
        )

    async def _scrape(self, url: str, portal: str) -> str:
        """Scrape once; retry only on 429 and only if configured."""
        config = self._settings.pipeline
        attempt = 0
        while True:
            result: ScrapeResult = await self._scraper.scrape(url, self._options)
            if not isinstance(result, ScrapeFailure):
                return result.html

            error = classify_scrape_failure(result, portal)
            if isinstance(error, UpstreamRateLimited) and attempt < config.rate_limit_retries:
                delay = min(
                    config.retry_backoff_s * 2 ** attempt + random.uniform(0, config.retry_backoff_s),
                    config.retry_backoff_cap_s,
                )
                attempt += 1
                logger.warning("Rate limited by %s, retry %d/%d in %.1fs",
                               portal, attempt, config.rate_limit_retries, delay)
                await asyncio.sleep(delay)
                continue
            raise error

    async def _extract(self, html: str) -> list[JobRecord]:
        retries = self._settings.pipeline.extraction_retries
        attempt = 0
        while True:
            try:
                return await self._extractor.extract_jobs(html)
            except ExtractionParseError as e:
                if attempt >= retries:
                    logger.error("Extraction output unparseable: %s (%s)", e.error, e.details)
                    raise
                attempt += 1
                logger.warning("Extraction output unparseable, retry %d/%d", attempt, retries)
