"""HTTP routes exposing the aggregated GitHub data as JSON envelopes."""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from showcase.aggregator import ProjectAggregator
from showcase.config import Config
from showcase.errors import NotFoundError, UpstreamFetchError
from showcase.github import GitHubClient

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}

# Upstream statuses that describe the request itself; anything else is our fault.
_PASS_THROUGH_STATUSES = {404, 422}


# ---------------------------------------------------------------------------
# Query-parameter coercion: bad values fall back to the default
# ---------------------------------------------------------------------------


def parse_bool(raw: str | None, default: bool | None = None) -> bool | None:
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    return default


def parse_int(raw: str | None, default: int | None = None) -> int | None:
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def parse_str(raw: str | None, default: str | None = None) -> str | None:
    if raw is None or not raw.strip():
        return default
    return raw.strip()


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

router = APIRouter(prefix="/api", tags=["github"])


def get_aggregator(request: Request) -> ProjectAggregator:
    return request.app.state.aggregator


def get_config(request: Request) -> Config:
    return request.app.state.config


@router.get("/github-projects")
async def github_projects(
    project_type: str | None = Query(None, alias="type"),
    aggregator: ProjectAggregator = Depends(get_aggregator),
):
    kind = "all" if parse_str(project_type) == "all" else "featured"
    if kind == "all":
        repositories = await aggregator.all(with_languages=True)
    else:
        repositories = await aggregator.featured()

    try:
        profile = (await aggregator.profile()).to_dict()
    except UpstreamFetchError as exc:
        logger.warning("Profile fetch failed: {}", exc)
        profile = None

    return {
        "success": True,
        "data": {
            "repositories": [repo.to_dict() for repo in repositories],
            "profile": profile,
            "count": len(repositories),
            "type": kind,
        },
    }


@router.get("/github/repos")
async def github_repos(
    category: str | None = None,
    featured: str | None = None,
    limit: str | None = None,
    aggregator: ProjectAggregator = Depends(get_aggregator),
):
    repositories = await aggregator.all(
        category=parse_str(category),
        featured=parse_bool(featured),
        limit=parse_int(limit),
    )
    return {
        "success": True,
        "data": [repo.to_dict() for repo in repositories],
        "total": len(repositories),
    }


@router.get("/github/repo/{name}")
async def github_repo(name: str, aggregator: ProjectAggregator = Depends(get_aggregator)):
    detail = await aggregator.repository(name)
    return {"success": True, "data": detail.to_dict()}


@router.get("/github/user")
async def github_user(aggregator: ProjectAggregator = Depends(get_aggregator)):
    profile = await aggregator.profile()
    return {"success": True, "data": profile.to_dict()}


@router.get("/github/stats")
async def github_stats(aggregator: ProjectAggregator = Depends(get_aggregator)):
    stats = await aggregator.stats()
    return {"success": True, "data": stats.to_dict()}


@router.get("/health")
async def health(request: Request, config: Config = Depends(get_config)):
    return JSONResponse(
        {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - request.app.state.started_at, 3),
            "environment": config.environment,
            "version": config.version,
            "services": {
                "github": "configured" if config.github_token else "not configured",
            },
        },
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )


# ---------------------------------------------------------------------------
# Error envelopes
# ---------------------------------------------------------------------------


def _failure(status_code: int, error: str, message: str | None = None) -> JSONResponse:
    body: dict = {"success": False, "error": error}
    if message is not None:
        body["message"] = message
    return JSONResponse(body, status_code=status_code)


def _register_error_handlers(app: FastAPI, config: Config) -> None:
    def _message(exc: Exception, fallback: str) -> str:
        return str(exc) if config.is_development else fallback

    @app.exception_handler(UpstreamFetchError)
    async def _upstream_error(request: Request, exc: UpstreamFetchError):
        logger.error("{} {} failed: {}", request.method, request.url.path, exc)
        status_code = exc.status if exc.status in _PASS_THROUGH_STATUSES else 500
        return _failure(
            status_code,
            "Failed to fetch GitHub data",
            _message(exc, "Upstream GitHub request failed"),
        )

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return _failure(404, "Not found", _message(exc, "Resource not found"))

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            response = _failure(405, "Method not allowed")
        elif exc.status_code == 404:
            response = _failure(404, "Not found")
        else:
            response = _failure(exc.status_code, str(exc.detail))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
        return _failure(500, "Internal server error", _message(exc, "Unexpected error"))


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(config: Config, aggregator: ProjectAggregator | None = None) -> FastAPI:
    """Build the FastAPI app.

    When no aggregator is supplied, a :class:`GitHubClient` is opened for the
    lifetime of the app and closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if aggregator is not None:
            yield
            return
        client = GitHubClient(
            config.github_token,
            base_url=config.api_base_url,
            timeout=config.request_timeout,
        )
        app.state.aggregator = ProjectAggregator(client, config)
        logger.info("Serving GitHub projects for {}", config.github_username)
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(
        title="Showcase API",
        description="GitHub projects for the portfolio site",
        version=config.version,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.started_at = time.monotonic()
    if aggregator is not None:
        app.state.aggregator = aggregator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    _register_error_handlers(app, config)
    app.include_router(router)
    return app
