"""Fixed TMDb movie list categories exposed as browse folders."""

from __future__ import annotations

from dataclasses import dataclass

from .models import TrailerType


@dataclass(frozen=True)
class CategoryDefinition:
    """Describes one TMDb movie list shown as a top level folder."""

    key: str
    title: str
    list_path: str
    trailer_type: TrailerType
    enable_field: str


CATEGORIES: tuple[CategoryDefinition, ...] = (
    CategoryDefinition(
        key="upcoming",
        title="Upcoming",
        list_path="/movie/upcoming",
        trailer_type=TrailerType.COMING_SOON_TO_THEATERS,
        enable_field="enable_trailers_upcoming",
    ),
    CategoryDefinition(
        key="now-playing",
        title="Now Playing",
        list_path="/movie/now_playing",
        trailer_type=TrailerType.COMING_SOON_TO_THEATERS,
        enable_field="enable_trailers_now_playing",
    ),
    CategoryDefinition(
        key="popular",
        title="Popular",
        list_path="/movie/popular",
        trailer_type=TrailerType.ARCHIVE,
        enable_field="enable_trailers_popular",
    ),
    CategoryDefinition(
        key="top-rated",
        title="Top Rated",
        list_path="/movie/top_rated",
        trailer_type=TrailerType.ARCHIVE,
        enable_field="enable_trailers_top_rated",
    ),
)

_CATEGORY_MAP = {category.key: category for category in CATEGORIES}


def find_category(folder_id: str | None) -> CategoryDefinition | None:
    """Return the category matching a folder identifier, if any.

    Matching ignores case and accepts the unhyphenated spellings
    (``nowplaying``, ``top_rated``) older hosts still send.
    """

    if not folder_id:
        return None
    slug = folder_id.strip().lower().replace("_", "-").replace(" ", "-")
    category = _CATEGORY_MAP.get(slug)
    if category is not None:
        return category
    compact = slug.replace("-", "")
    for candidate in CATEGORIES:
        if candidate.key.replace("-", "") == compact:
            return candidate
    return None
