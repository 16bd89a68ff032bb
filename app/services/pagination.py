"""Collect TMDb list pages until the per-category cap is reached."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..categories import CategoryDefinition
from ..models import PAGE_SIZE, MovieSummary
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LanguageContext:
    """Language and region sent with every list request."""

    language: str
    region: str | None = None


def page_number_for(start_index: int | None) -> int:
    """Map a host start offset onto a zero-based TMDb page."""

    return (start_index or 0) // PAGE_SIZE


class PaginationAggregator:
    """Pages through a TMDb movie list."""

    def __init__(self, client: TMDBClient) -> None:
        self._client = client

    async def fetch_category(
        self,
        category: CategoryDefinition,
        context: LanguageContext,
        start_page: int,
        limit: int,
    ) -> list[MovieSummary]:
        """Return at most ``limit`` movies starting at ``start_page``.

        Paging stops once ``limit`` movies are collected or TMDb returns an
        empty page. Remote failures propagate to the caller.
        """

        movies: list[MovieSummary] = []
        if limit <= 0:
            return movies
        page_number = max(start_page, 0)
        pages_fetched = 0
        while True:
            page = await self._client.list_by_category(
                category,
                language=context.language,
                page=page_number + 1,
                region=context.region,
            )
            pages_fetched += 1
            page_number += 1
            if not page.results:
                break
            movies.extend(page.results)
            if len(movies) >= limit:
                break

        logger.debug(
            "Fetched %s %s movies across %s pages", len(movies), category.key, pages_fetched
        )
        return movies[:limit]
