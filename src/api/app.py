"""FastAPI application factory and error rendering."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from src.api.deps import Services, build_services
from src.api.routers import assistant, jobs, leads
from src.api.routers.jobs import ClientDisconnected
from src.core.config import Settings, load_settings
from src.core.errors import JobAssistantError

logger = logging.getLogger(__name__)

CLIENT_CLOSED_REQUEST = 499


async def handle_app_error(request: Request, exc: JobAssistantError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path,
                     exc.error, exc.details)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.error)
    return JSONResponse(status_code=exc.http_status, content=exc.to_body())


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'][1:]) or 'body'}: {err['msg']}"
        for err in exc.errors()
    )
    logger.warning("%s %s invalid body: %s", request.method, request.url.path, problems)
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {problems}"})


async def handle_disconnect(request: Request, exc: Exception) -> Response:
    return Response(status_code=CLIENT_CLOSED_REQUEST)


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unexpected error during %s %s", request.method, request.url.path,
                 exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "details": str(exc) or "An unexpected error occurred",
        },
    )


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    """Build the API app.

    Args:
        settings: Loaded settings. None loads them via load_settings().
        services: Pre-wired collaborators (tests inject stubs). None builds
            the real clients from settings.
    """
    settings = settings or (services.settings if services else load_settings())
    services = services or build_services(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Job outreach assistant API starting")
        yield
        await services.aclose()
        logger.info("Job outreach assistant API stopped")

    app = FastAPI(
        title="Job Outreach Assistant",
        description="Resume matching, cold emails, contact leads and job scraping",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Jobs-Count", "X-Pipeline-Message"],
    )

    app.include_router(jobs.router)
    app.include_router(assistant.router)
    app.include_router(leads.router)

    app.add_exception_handler(JobAssistantError, handle_app_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(ClientDisconnected, handle_disconnect)
    app.add_exception_handler(Exception, handle_unexpected)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
