"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from svj.config import settings
from svj.dependencies import close_shared_clients
from svj.routers import buildings, functions, members, public, templates, votes
from svj.utils.errors import AppError, InvalidInputError

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Report delivery configuration and release HTTP pools on shutdown."""
    if not settings.brevo_api_key:
        logger.warning("BREVO_API_KEY is not set; voting emails will fail")
    logger.info("Voting links point at %s", settings.voting_link_url("<token>"))
    yield
    close_shared_clients()


app = FastAPI(
    title=settings.app_name,
    description="SVJ voting administration - Backend API",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


@app.middleware("http")
async def request_timing_middleware(request: Request, call_next):
    """Add per-request processing time and optionally log slow requests."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.1f}"

    threshold_ms = settings.slow_request_log_threshold_ms
    if threshold_ms > 0 and elapsed_ms >= threshold_ms:
        logger.warning("Slow request %s %s %.1fms", request.method, request.url.path, elapsed_ms)

    return response


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Convert domain exceptions into ``{"error", "code"}`` responses."""
    if exc.status_code >= 500:
        logger.warning("%s on %s: %s", exc.code, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    _: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Report the first invalid field as an INVALID_INPUT error."""
    detail = exc.errors()
    if detail:
        field = ".".join(str(part) for part in detail[0].get("loc", ()) if part != "body")
        message = detail[0].get("msg", "Invalid request")
        message = f"{field}: {message}" if field else message
    else:
        message = "Invalid request"
    api_error = InvalidInputError(message)
    return JSONResponse(status_code=api_error.status_code, content=api_error.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
    """Catch unexpected errors without leaking internals."""
    logger.exception("Unhandled exception", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "code": "INTERNAL_ERROR"},
    )


app.include_router(functions.router, prefix="/functions/v1", tags=["functions"])
app.include_router(public.router, prefix="/vote", tags=["public"])
app.include_router(buildings.router, prefix="/buildings", tags=["buildings"])
app.include_router(members.router, prefix="/buildings/{building_id}/members", tags=["members"])
app.include_router(votes.router, prefix="/buildings/{building_id}/votes", tags=["votes"])
app.include_router(templates.router, prefix="/templates", tags=["templates"])


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint for deploys and uptime monitoring."""
    return {
        "status": "ok",
        "version": settings.app_version,
        "environment": settings.environment,
    }
