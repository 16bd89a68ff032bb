"""Client for the TMDb movie list and video endpoints."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..categories import CategoryDefinition
from ..config import Settings
from ..models import MoviePage, MovieVideos

logger = logging.getLogger(__name__)


class CatalogUnavailableError(RuntimeError):
    """TMDb could not be reached or answered with an unusable payload."""


class TMDBClient:
    """Client responsible for listing movies and their videos on TMDb."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        if not settings.tmdb_api_key:
            raise ValueError("TMDB API key is required when initialising TMDBClient")
        self._settings = settings
        self._client = http_client
        self._image_base_url = str(settings.tmdb_image_url).rstrip("/")

    async def list_by_category(
        self,
        category: CategoryDefinition,
        *,
        language: str,
        page: int,
        region: str | None = None,
    ) -> MoviePage:
        """Return one page of the category's movie list.

        ``page`` is the one-based TMDb page number.
        """

        params: dict[str, Any] = {
            "api_key": self._settings.tmdb_api_key,
            "language": language,
            "page": page,
        }
        if region:
            params["region"] = region
        payload = await self._get_json(category.list_path, params)
        try:
            return MoviePage.model_validate(payload)
        except ValidationError as exc:
            logger.error(
                "Malformed TMDb %s page %s response: %s", category.key, page, exc
            )
            raise CatalogUnavailableError(
                f"TMDb returned a malformed {category.key} list"
            ) from exc

    async def list_videos_for_movie(self, movie_id: int) -> MovieVideos:
        """Return the trailers and extras attached to a movie."""

        payload = await self._get_json(
            f"/movie/{movie_id}/videos",
            {"api_key": self._settings.tmdb_api_key},
        )
        if isinstance(payload, dict):
            payload.setdefault("id", movie_id)
        try:
            return MovieVideos.model_validate(payload)
        except ValidationError as exc:
            logger.error("Malformed TMDb video list for movie %s: %s", movie_id, exc)
            raise CatalogUnavailableError(
                f"TMDb returned a malformed video list for movie {movie_id}"
            ) from exc

    def build_image_url(self, path: str | None) -> str | None:
        if not path:
            return None
        if path.startswith("http"):
            return path
        return f"{self._image_base_url}/{path.lstrip('/')}"

    async def _get_json(self, endpoint: str, params: dict[str, Any]) -> Any:
        safe_params = {key: value for key, value in params.items() if key != "api_key"}
        try:
            response = await self._client.get(endpoint, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "TMDb request %s %s failed with status %s: %s",
                endpoint,
                safe_params,
                exc.response.status_code,
                exc.response.text,
            )
            raise CatalogUnavailableError(
                f"TMDb request {endpoint} failed with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("TMDb request %s %s failed: %s", endpoint, safe_params, exc)
            raise CatalogUnavailableError(f"TMDb request {endpoint} failed") from exc

        try:
            return response.json()
        except ValueError as exc:
            logger.error("Unexpected non-JSON TMDb response for %s", endpoint)
            raise CatalogUnavailableError(
                f"TMDb returned a non-JSON response for {endpoint}"
            ) from exc
