"""Job scraping endpoint: form fields in, CSV download out."""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from starlette.types import Receive, Scope, Send

from src.api.deps import Services, get_services
from src.pipeline.export import CsvExport
from src.pipeline.orchestrator import PipelineOutcome, ScrapePipeline
from src.portals.registry import EMPLOYMENT_TYPES, PORTALS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["jobs"])

T = TypeVar("T")


class ClientDisconnected(Exception):
    """The caller went away before the pipeline finished."""


class CsvDownloadResponse(StreamingResponse):
    """Streams a CsvExport and deletes it however the response ends.

    That includes a send failure before the first body chunk.
    """

    def __init__(self, export: CsvExport, chunk_size: int, headers: dict[str, str]) -> None:
        super().__init__(export.iter_bytes(chunk_size), media_type="text/csv", headers=headers)
        self.export = export

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            self.export.release()


class ScrapeJobsRequest(BaseModel):
    """Raw form fields. Presence and values are checked by the pipeline."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    job_title: str | None = None
    job_location: str | None = None
    employment_type: str | None = None
    portal: str | None = None


async def run_until_disconnect(
    request: Request,
    coro: Coroutine[Any, Any, T],
    poll_s: float,
) -> T:
    """Await ``coro`` but cancel it if the client disconnects first."""
    task = asyncio.create_task(coro)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_s)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.warning("Client disconnected, cancelling pipeline")
                task.cancel()
                await _discard(task)
                raise ClientDisconnected
    finally:
        if not task.done():
            task.cancel()


async def _discard(task: "asyncio.Task[Any]") -> None:
    """Wait for a cancelled task and release anything it still produced."""
    try:
        result = await task
    except asyncio.CancelledError:
        return
    except Exception:
        logger.debug("Pipeline failed after client disconnect", exc_info=True)
        return
    if isinstance(result, PipelineOutcome):
        result.export.release()


@router.get("/portals")
async def list_portals() -> dict[str, Any]:
    """Supported portals and the employment types each can filter by."""
    return {
        "portals": {
            portal_id: [t for t in EMPLOYMENT_TYPES if portal.supports(t)]
            for portal_id, portal in sorted(PORTALS.items())
        },
        "employmentTypes": list(EMPLOYMENT_TYPES),
    }


@router.post("/scrape-jobs")
async def scrape_jobs(
    body: ScrapeJobsRequest,
    request: Request,
    services: Services = Depends(get_services),
) -> CsvDownloadResponse:
    """Scrape a portal and stream the extracted jobs back as CSV.

    Always answers 200 with a CSV (header-only when nothing was found).
    X-Jobs-Count carries the record count; X-Pipeline-Message carries the
    "no jobs found" notice. Once streaming starts the status is committed.
    """
    settings = services.settings
    pipeline = ScrapePipeline(services.scraper, services.extractor, settings)
    outcome = await run_until_disconnect(
        request,
        pipeline.run(body.model_dump(by_alias=True)),
        settings.pipeline.disconnect_poll_s,
    )

    export = outcome.export
    headers = {
        "Content-Disposition": f'attachment; filename="{export.filename}"',
        "X-Jobs-Count": str(export.record_count),
    }
    if outcome.message:
        headers["X-Pipeline-Message"] = outcome.message

    return CsvDownloadResponse(export, settings.export.chunk_size, headers)
