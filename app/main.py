"""Entry point for the FastAPI-powered trailer channel service."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .cache import CacheStore
from .config import Settings, get_settings
from .models import BrowseQuery
from .services.browse import ALL_TRAILERS_FOLDER, BrowseService
from .services.items import TrailerItemBuilder
from .services.orchestrator import CategoryOrchestrator
from .services.pagination import PaginationAggregator
from .services.refresh import RefreshScheduler
from .services.streams import StreamResolver, StreamResolverError
from .services.tmdb import CatalogUnavailableError, TMDBClient

settings = get_settings()

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app: FastAPI


def build_browse_service(
    settings: Settings,
    tmdb_http_client: httpx.AsyncClient,
    resolver_http_client: httpx.AsyncClient,
    cache: CacheStore | None = None,
) -> BrowseService:
    """Wire the TMDb client, resolver and cache into a browse service."""

    if cache is None:
        cache = CacheStore(
            settings.cache_ttl_seconds, max_entries=settings.cache_max_entries
        )
    tmdb = TMDBClient(settings, tmdb_http_client)
    resolver = StreamResolver(
        resolver_http_client,
        str(settings.stream_resolver_url) if settings.stream_resolver_url else None,
        max_bitrate=settings.max_bitrate,
    )
    builder = TrailerItemBuilder(cache, resolver)
    orchestrator = CategoryOrchestrator(
        settings, tmdb, PaginationAggregator(tmdb), builder, cache
    )
    return BrowseService(settings, orchestrator, builder, cache)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    tmdb_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.tmdb_api_url),
            timeout=httpx.Timeout(20.0, connect=10.0),
        )
    )
    resolver_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(timeout=httpx.Timeout(30.0, connect=10.0))
    )
    browse_service = build_browse_service(
        settings, tmdb_http_client, resolver_http_client
    )
    scheduler = RefreshScheduler(settings, browse_service)

    fastapi_app.state.browse_service = browse_service
    fastapi_app.state.refresh_scheduler = scheduler
    await scheduler.start()

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await scheduler.stop()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="TMDb trailers and extras for media server channels",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_browse_service(app: FastAPI) -> BrowseService:
    service = getattr(app.state, "browse_service", None)
    if not isinstance(service, BrowseService):
        raise RuntimeError("Browse service not initialised")
    return service


def get_refresh_scheduler(app: FastAPI) -> RefreshScheduler:
    scheduler = getattr(app.state, "refresh_scheduler", None)
    if not isinstance(scheduler, RefreshScheduler):
        raise RuntimeError("Refresh scheduler not initialised")
    return scheduler


def register_routes(fastapi_app: FastAPI) -> None:
    def _require_channel(service: BrowseService, channel_id: str) -> None:
        for channel in service.channels():
            if channel.id == channel_id and channel.enabled:
                return
        raise HTTPException(status_code=404, detail=f"Channel {channel_id} is disabled")

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/channels")
    async def list_channels() -> dict[str, Any]:
        service = get_browse_service(fastapi_app)
        return {"channels": [channel.to_payload() for channel in service.channels()]}

    @fastapi_app.get("/channels/trailers/items")
    async def trailer_items() -> JSONResponse:
        service = get_browse_service(fastapi_app)
        _require_channel(service, "trailers")
        try:
            result = await service.get_channel_items(BrowseQuery(folderId=ALL_TRAILERS_FOLDER))
        except (CatalogUnavailableError, StreamResolverError) as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return JSONResponse(result.to_payload())

    @fastapi_app.get("/channels/extras/items")
    async def extras_items(request: Request) -> JSONResponse:
        service = get_browse_service(fastapi_app)
        _require_channel(service, "extras")
        try:
            query = BrowseQuery.model_validate(dict(request.query_params))
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=exc.errors(include_context=False)) from exc
        try:
            result = await service.get_channel_items(query)
        except (CatalogUnavailableError, StreamResolverError) as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return JSONResponse(result.to_payload())

    @fastapi_app.get("/media/{video_id}")
    async def media_info(video_id: str) -> dict[str, Any]:
        service = get_browse_service(fastapi_app)
        try:
            sources = await service.get_media_sources(video_id)
        except StreamResolverError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return {"mediaSources": [source.to_payload() for source in sources]}

    @fastapi_app.post("/refresh")
    async def refresh() -> JSONResponse:
        scheduler = get_refresh_scheduler(fastapi_app)
        try:
            status = await scheduler.trigger()
        except (CatalogUnavailableError, StreamResolverError):
            logger.exception("Manual trailer refresh failed")
            return JSONResponse(scheduler.status.to_payload(), status_code=502)
        return JSONResponse(status.to_payload())


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
