"""Turn TMDb videos into playable browse items."""

from __future__ import annotations

import logging
from typing import Sequence

from ..cache import CacheStore, PosterKey, TrailerTypeKey, VideoKey
from ..categories import CategoryDefinition
from ..models import BrowseItem, MediaSource, TrailerType, VideoItem
from .streams import StreamResolver

logger = logging.getLogger(__name__)

TMDB_PROVIDER = "Tmdb"


class TrailerItemBuilder:
    """Filters a movie's videos and resolves the ones that can be played."""

    def __init__(self, cache: CacheStore, resolver: StreamResolver) -> None:
        self._cache = cache
        self._resolver = resolver

    async def build_items(
        self,
        movie_id: int,
        source_category: CategoryDefinition | None,
        videos: Sequence[VideoItem],
        trailer_mode_only: bool,
    ) -> list[BrowseItem]:
        """Return browse items for the playable videos of one movie.

        In trailer mode only videos typed ``trailer`` are considered and the
        first one that resolves is the only item returned. Videos that cannot
        be resolved are left out.
        """

        poster_url = self._cache.get(PosterKey(movie_id))
        items: list[BrowseItem] = []
        for video in videos:
            if trailer_mode_only and not video.is_trailer():
                continue

            self._cache.set(VideoKey(video.id), video)
            source = await self.build_media_source(video)
            if source is None:
                logger.debug(
                    "Skipping video %s (%s/%s) for movie %s: no playable stream",
                    video.id,
                    video.site,
                    video.key,
                    movie_id,
                )
                continue

            item = BrowseItem(
                id=video.id,
                name=video.name,
                type="media",
                original_title=video.name,
                image_url=poster_url or None,
                media_sources=[source],
            )
            if trailer_mode_only:
                item.extra_type = "Trailer"
                item.trailer_types = [self._trailer_type(movie_id, source_category)]
                item.provider_ids = {TMDB_PROVIDER: str(movie_id)}
                items.append(item)
                break
            items.append(item)
        return items

    async def build_media_source(self, video: VideoItem) -> MediaSource | None:
        resolution = await self._resolver.resolve_playback(video.site, video.key)
        if resolution is None:
            return None
        return MediaSource(
            id=video.id,
            name=video.name,
            path=resolution.url,
            bitrate=resolution.bitrate,
        )

    def _trailer_type(
        self, movie_id: int, source_category: CategoryDefinition | None
    ) -> TrailerType:
        cached = self._cache.get(TrailerTypeKey(movie_id))
        if isinstance(cached, TrailerType):
            return cached
        if source_category is not None:
            return source_category.trailer_type
        return TrailerType.ARCHIVE
