"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
import pytest


# Ensure the application package is importable when running tests without an
# editable install. This mirrors the expected runtime layout where ``app`` sits
# at the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.cache import CacheStore  # noqa: E402
from app.config import Settings  # noqa: E402
from app.main import build_browse_service  # noqa: E402
from app.services.browse import BrowseService  # noqa: E402

TMDB_URL = "https://api.example.com/3"
RESOLVER_URL = "https://resolver.example.com"


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now


def build_settings(**overrides: Any) -> Settings:
    """Return a settings object with defaults suitable for tests."""

    base: dict[str, Any] = {
        "TMDB_API_KEY": "test-key",
        "TMDB_API_URL": TMDB_URL,
        "STREAM_RESOLVER_URL": RESOLVER_URL,
    }
    base.update(overrides)
    return Settings(_env_file=None, **base)  # type: ignore[arg-type]


def make_movies(start: int, count: int) -> list[dict[str, Any]]:
    return [
        {
            "id": movie_id,
            "title": f"Movie {movie_id}",
            "poster_path": f"/poster-{movie_id}.jpg",
        }
        for movie_id in range(start, start + count)
    ]


def make_video(
    video_id: str, video_type: str = "Trailer", *, key: str | None = None, site: str = "YouTube"
) -> dict[str, Any]:
    return {
        "id": video_id,
        "name": f"Video {video_id}",
        "site": site,
        "key": key or f"key-{video_id}",
        "type": video_type,
    }


@dataclass
class FakeRemote:
    """In-memory stand-in for TMDb and the stream extraction service."""

    pages: dict[str, list[list[dict[str, Any]]]] = field(default_factory=dict)
    videos: dict[int, list[dict[str, Any]]] = field(default_factory=dict)
    formats: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    failing_movies: set[int] = field(default_factory=set)
    failing_lists: set[str] = field(default_factory=set)
    tmdb_requests: list[httpx.Request] = field(default_factory=list)
    resolver_requests: list[httpx.Request] = field(default_factory=list)

    def list_requests(self, list_name: str) -> list[httpx.Request]:
        return [
            request
            for request in self.tmdb_requests
            if request.url.path.endswith(f"/movie/{list_name}")
        ]

    def video_requests(self) -> list[httpx.Request]:
        return [
            request for request in self.tmdb_requests if request.url.path.endswith("/videos")
        ]

    def tmdb_handler(self, request: httpx.Request) -> httpx.Response:
        self.tmdb_requests.append(request)
        segments = request.url.path.rstrip("/").split("/")
        if segments[-1] == "videos":
            movie_id = int(segments[-2])
            if movie_id in self.failing_movies:
                return httpx.Response(503, json={"status_message": "unavailable"})
            return httpx.Response(
                200, json={"id": movie_id, "results": self.videos.get(movie_id, [])}
            )

        list_name = segments[-1]
        if list_name in self.failing_lists:
            return httpx.Response(500, json={"status_message": "boom"})
        page = int(request.url.params.get("page", "1"))
        pages = self.pages.get(list_name, [])
        results = pages[page - 1] if 0 < page <= len(pages) else []
        return httpx.Response(
            200,
            json={
                "page": page,
                "results": results,
                "total_results": sum(len(entries) for entries in pages),
                "total_pages": len(pages),
            },
        )

    def resolver_handler(self, request: httpx.Request) -> httpx.Response:
        self.resolver_requests.append(request)
        key = request.url.path.rstrip("/").split("/")[-1]
        if key not in self.formats:
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, json={"formats": self.formats[key]})

    def tmdb_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(self.tmdb_handler), base_url=TMDB_URL
        )

    def resolver_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.resolver_handler))

    def build_service(
        self, settings: Settings | None = None, cache: CacheStore | None = None
    ) -> BrowseService:
        return build_browse_service(
            settings or build_settings(),
            self.tmdb_client(),
            self.resolver_client(),
            cache=cache,
        )


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()
