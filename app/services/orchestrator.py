"""Drive category pagination and per-movie video lookups."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from functools import partial
from typing import Awaitable, Callable, Sequence, TypeVar

from ..cache import (
    AggregateKey,
    CacheStore,
    MovieVideosKey,
    PosterKey,
    TrailerTypeKey,
)
from ..categories import CategoryDefinition
from ..config import Settings
from ..models import BrowseItem, BrowseQuery, BrowseResult, MovieSummary, VideoItem
from .items import TrailerItemBuilder
from .pagination import LanguageContext, PaginationAggregator, page_number_for
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FanOutStrategy(str, Enum):
    """How independent per-movie calls are scheduled."""

    CONCURRENT = "concurrent"
    SEQUENTIAL = "sequential"


class CategoryOrchestrator:
    """Coordinates TMDb list paging with video lookups and item building."""

    def __init__(
        self,
        settings: Settings,
        client: TMDBClient,
        aggregator: PaginationAggregator,
        builder: TrailerItemBuilder,
        cache: CacheStore,
        *,
        strategy: FanOutStrategy | None = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._aggregator = aggregator
        self._builder = builder
        self._cache = cache
        self._strategy = strategy or FanOutStrategy(settings.fan_out_strategy)
        self._concurrency = settings.lookup_concurrency
        self._isolate_failures = settings.isolate_lookup_failures
        self._context = LanguageContext(
            language=settings.language, region=settings.region
        )

    @property
    def strategy(self) -> FanOutStrategy:
        return self._strategy

    async def list_category(
        self, category: CategoryDefinition, query: BrowseQuery
    ) -> BrowseResult:
        """Return one folder per movie in the category."""

        movies = await self._aggregator.fetch_category(
            category,
            self._context,
            page_number_for(query.start_index),
            self._settings.trailer_limit,
        )
        self._remember_movies(category, movies)
        folders = [
            BrowseItem.folder(
                str(movie.id),
                movie.title,
                image_url=self._cache.get(PosterKey(movie.id)),
            )
            for movie in movies
        ]
        return BrowseResult.of(folders)

    async def list_all(self, force_refresh: bool = False) -> BrowseResult:
        """Return the first playable trailer of every movie in the enabled categories.

        ``force_refresh`` skips the cached aggregate but still replaces it.
        """

        if not force_refresh:
            cached = self._cache.get(AggregateKey())
            if cached is not None:
                logger.debug("Trailer aggregate served from cache")
                return cached

        entries: list[tuple[CategoryDefinition, MovieSummary]] = []
        for category in self._settings.enabled_categories:
            movies = await self._aggregator.fetch_category(
                category, self._context, 0, self._settings.trailer_limit
            )
            self._remember_movies(category, movies)
            entries.extend((category, movie) for movie in movies)

        lookups = await self._fan_out(
            [partial(self._lookup_videos, movie.id) for _, movie in entries]
        )

        builds: list[Callable[[], Awaitable[list[BrowseItem]]]] = []
        for (category, movie), outcome in zip(entries, lookups):
            if isinstance(outcome, BaseException):
                logger.warning(
                    "Dropping movie %s (%s) from the trailer listing: %s",
                    movie.id,
                    category.key,
                    outcome,
                )
                continue
            builds.append(
                partial(self._builder.build_items, movie.id, category, outcome, True)
            )

        built = await self._fan_out(builds)
        items: list[BrowseItem] = []
        for outcome in built:
            if isinstance(outcome, BaseException):
                logger.warning("Dropping trailer build after failure: %s", outcome)
                continue
            items.extend(outcome)

        result = BrowseResult.of(items)
        self._cache.set(AggregateKey(), result)
        logger.info(
            "Built trailer listing with %s items from %s movies", len(items), len(entries)
        )
        return result

    async def movie_videos(self, movie_id: int) -> list[VideoItem]:
        """Return the movie's videos, fetching them only on a cache miss."""

        cached = self._cache.get(MovieVideosKey(movie_id))
        if cached is not None:
            return cached
        return await self._lookup_videos(movie_id)

    async def _lookup_videos(self, movie_id: int) -> list[VideoItem]:
        response = await self._client.list_videos_for_movie(movie_id)
        videos = list(response.results)
        self._cache.set(MovieVideosKey(movie_id), videos)
        return videos

    def _remember_movies(
        self, category: CategoryDefinition, movies: Sequence[MovieSummary]
    ) -> None:
        for movie in movies:
            self._cache.set(PosterKey(movie.id), self._client.build_image_url(movie.poster_path))
            self._cache.set(TrailerTypeKey(movie.id), category.trailer_type)

    async def _fan_out(
        self, calls: Sequence[Callable[[], Awaitable[T]]]
    ) -> list[T | BaseException]:
        """Run ``calls`` and return their results in submission order.

        With failure isolation enabled an ``Exception`` takes the place of the
        failed call's result; otherwise the first failure cancels the
        remaining calls and propagates.
        """

        if not calls:
            return []
        if self._strategy is FanOutStrategy.SEQUENTIAL:
            return await self._run_sequential(calls)

        semaphore = asyncio.Semaphore(self._concurrency)

        async def _bounded(call: Callable[[], Awaitable[T]]) -> T:
            async with semaphore:
                return await call()

        tasks = [asyncio.create_task(_bounded(call)) for call in calls]
        try:
            results = await asyncio.gather(*tasks, return_exceptions=self._isolate_failures)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        for outcome in results:
            if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                raise outcome
        return list(results)

    async def _run_sequential(
        self, calls: Sequence[Callable[[], Awaitable[T]]]
    ) -> list[T | BaseException]:
        results: list[T | BaseException] = []
        for call in calls:
            try:
                results.append(await call())
            except Exception as exc:
                if not self._isolate_failures:
                    raise
                results.append(exc)
        return results
