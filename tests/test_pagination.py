"""Tests for TMDb list pagination under the per-category cap."""

from __future__ import annotations

import pytest

from app.categories import find_category
from app.services.pagination import LanguageContext, PaginationAggregator, page_number_for
from app.services.tmdb import CatalogUnavailableError, TMDBClient
from conftest import FakeRemote, build_settings, make_movies

CONTEXT = LanguageContext(language="en-US", region="US")


def _aggregator(remote: FakeRemote) -> PaginationAggregator:
    return PaginationAggregator(TMDBClient(build_settings(), remote.tmdb_client()))


@pytest.mark.parametrize(
    ("start_index", "expected"),
    [(None, 0), (0, 0), (19, 0), (20, 1), (45, 2)],
)
def test_page_number_for_divides_by_page_size(start_index, expected) -> None:
    assert page_number_for(start_index) == expected


@pytest.mark.anyio("asyncio")
async def test_cap_reached_on_first_page_stops_paging(remote: FakeRemote) -> None:
    remote.pages["upcoming"] = [make_movies(1, 20), make_movies(21, 20), []]

    movies = await _aggregator(remote).fetch_category(
        find_category("upcoming"), CONTEXT, 0, 20
    )

    assert [movie.id for movie in movies] == list(range(1, 21))
    assert len(remote.list_requests("upcoming")) == 1


@pytest.mark.anyio("asyncio")
async def test_cap_spanning_two_pages_truncates_the_overshoot(remote: FakeRemote) -> None:
    remote.pages["upcoming"] = [make_movies(1, 20), make_movies(21, 20), []]

    movies = await _aggregator(remote).fetch_category(
        find_category("upcoming"), CONTEXT, 0, 30
    )

    assert len(movies) == 30
    assert movies[-1].id == 30
    requests = remote.list_requests("upcoming")
    assert [request.url.params["page"] for request in requests] == ["1", "2"]
    assert requests[0].url.params["region"] == "US"


@pytest.mark.anyio("asyncio")
async def test_empty_page_stops_before_the_cap(remote: FakeRemote) -> None:
    remote.pages["popular"] = [make_movies(1, 20), make_movies(21, 5)]

    movies = await _aggregator(remote).fetch_category(
        find_category("popular"), CONTEXT, 0, 100
    )

    assert len(movies) == 25
    assert len(remote.list_requests("popular")) == 3


@pytest.mark.anyio("asyncio")
async def test_pagination_starts_at_requested_page(remote: FakeRemote) -> None:
    remote.pages["top_rated"] = [make_movies(1, 20), make_movies(21, 20)]

    movies = await _aggregator(remote).fetch_category(
        find_category("top-rated"), CONTEXT, 1, 20
    )

    assert movies[0].id == 21
    assert remote.list_requests("top_rated")[0].url.params["page"] == "2"


@pytest.mark.anyio("asyncio")
@pytest.mark.parametrize("limit", [1, 7, 20, 39, 40, 41, 60])
async def test_never_returns_more_than_the_limit(remote: FakeRemote, limit: int) -> None:
    remote.pages["upcoming"] = [make_movies(1, 20), make_movies(21, 20)]

    movies = await _aggregator(remote).fetch_category(
        find_category("upcoming"), CONTEXT, 0, limit
    )

    assert len(movies) == min(limit, 40)


@pytest.mark.anyio("asyncio")
async def test_remote_failure_propagates(remote: FakeRemote) -> None:
    remote.failing_lists.add("now_playing")

    with pytest.raises(CatalogUnavailableError):
        await _aggregator(remote).fetch_category(
            find_category("now-playing"), CONTEXT, 0, 20
        )
