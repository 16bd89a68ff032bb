"""Folder navigation over TMDb categories, movies and their videos."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..cache import CacheStore, PageKey, VideoKey
from ..categories import CATEGORIES, find_category
from ..config import Settings
from ..models import PAGE_SIZE, BrowseItem, BrowseQuery, BrowseResult, MediaSource, VideoItem
from .items import TrailerItemBuilder
from .orchestrator import CategoryOrchestrator

logger = logging.getLogger(__name__)

ALL_TRAILERS_FOLDER = "all-trailers"


@dataclass(slots=True)
class ChannelInfo:
    """Describes a channel the host can register."""

    id: str
    name: str
    description: str
    enabled: bool
    content_type: str = "MovieExtra"
    max_page_size: int | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "enabled": self.enabled,
            "mediaTypes": ["Video"],
            "contentTypes": [self.content_type],
        }
        if self.max_page_size is not None:
            payload["maxPageSize"] = self.max_page_size
        return payload


class BrowseService:
    """Entry point the host uses to browse folders and request playback."""

    def __init__(
        self,
        settings: Settings,
        orchestrator: CategoryOrchestrator,
        builder: TrailerItemBuilder,
        cache: CacheStore,
    ) -> None:
        self._settings = settings
        self._orchestrator = orchestrator
        self._builder = builder
        self._cache = cache

    def channels(self) -> list[ChannelInfo]:
        return [
            ChannelInfo(
                id="trailers",
                name="TMDb Trailers",
                description="Latest trailers for movies listed on TMDb.",
                enabled=self._settings.enable_trailers_channel,
            ),
            ChannelInfo(
                id="extras",
                name="TMDb Extras",
                description="Trailers, featurettes and clips grouped by movie.",
                enabled=self._settings.enable_extras_channel,
                max_page_size=PAGE_SIZE,
            ),
        ]

    async def get_channel_items(self, query: BrowseQuery) -> BrowseResult:
        """Return the listing for ``query.folder_id``.

        An empty identifier lists the categories, a category keyword lists its
        movies, ``all-trailers`` returns the aggregated trailer listing and a
        movie id lists that movie's playable videos. Unknown identifiers
        produce an empty listing.
        """

        folder_id = (query.folder_id or "").strip()
        if not folder_id:
            return self._root()

        if folder_id.casefold() == ALL_TRAILERS_FOLDER:
            return await self._orchestrator.list_all(force_refresh=False)

        category = find_category(folder_id)
        movie_id = _parse_movie_id(folder_id) if category is None else None
        if category is None and movie_id is None:
            logger.debug("Unknown folder %s", folder_id)
            return BrowseResult()

        page_key = PageKey(category.key if category is not None else str(movie_id))
        cached = self._cache.get(page_key)
        if cached is not None:
            logger.debug("FolderId=%s cache hit", page_key.folder_id)
            return cached

        if category is not None:
            result = await self._orchestrator.list_category(category, query)
        else:
            videos = await self._orchestrator.movie_videos(movie_id)
            items = await self._builder.build_items(movie_id, None, videos, False)
            result = BrowseResult.of(items)

        self._cache.set(page_key, result, self._settings.cache_ttl_seconds)
        return result

    async def get_media_sources(self, video_id: str) -> list[MediaSource]:
        """Resolve playback for a video seen in an earlier listing."""

        video = self._cache.get(VideoKey(video_id))
        if not isinstance(video, VideoItem):
            logger.debug("Video %s is not cached; no media source", video_id)
            return []
        source = await self._builder.build_media_source(video)
        return [source] if source is not None else []

    async def refresh(self) -> BrowseResult:
        """Rebuild the trailer listing, bypassing the cached copy.

        Entries that expired since the last run are swept first, so lookups
        for movies that have left the lists do not linger.
        """

        self._cache.purge_expired()
        return await self._orchestrator.list_all(force_refresh=True)

    @staticmethod
    def _root() -> BrowseResult:
        return BrowseResult.of(
            [BrowseItem.folder(category.key, category.title) for category in CATEGORIES]
        )


def _parse_movie_id(value: str) -> int | None:
    try:
        movie_id = int(value)
    except ValueError:
        return None
    return movie_id if movie_id > 0 else None
