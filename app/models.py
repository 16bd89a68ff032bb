"""Pydantic models describing TMDb payloads and browse results."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

PAGE_SIZE = 20
"""TMDb always returns list results in pages of twenty movies."""


class TrailerType(str, Enum):
    """Host classification attached to trailers."""

    COMING_SOON_TO_THEATERS = "ComingSoonToTheaters"
    ARCHIVE = "Archive"


class MovieSummary(BaseModel):
    """A single movie entry from a TMDb list endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    title: str = ""
    poster_path: str | None = None


class MoviePage(BaseModel):
    """One page of a TMDb movie list."""

    model_config = ConfigDict(extra="ignore")

    page: int = 1
    results: list[MovieSummary] = Field(default_factory=list)
    total_results: int = 0
    total_pages: int = 0


class VideoItem(BaseModel):
    """A trailer or extra attached to a movie."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    name: str = ""
    site: str = ""
    key: str = ""
    type: str = ""

    def is_trailer(self) -> bool:
        return self.type.casefold() == "trailer"


class MovieVideos(BaseModel):
    """Video list returned for a movie."""

    model_config = ConfigDict(extra="ignore")

    id: int
    results: list[VideoItem] = Field(default_factory=list)


class StreamFormat(BaseModel):
    """An encoding offered by the video host."""

    model_config = ConfigDict(extra="ignore")

    bitrate: int
    url: str


class PlaybackResolution(BaseModel):
    """The encoding selected for playback."""

    url: str
    bitrate: int


class MediaSource(BaseModel):
    """Playable source handed to the host."""

    id: str
    name: str
    path: str
    bitrate: int
    protocol: Literal["Http"] = "Http"
    is_remote: bool = True

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "bitrate": self.bitrate,
            "protocol": self.protocol,
            "isRemote": self.is_remote,
        }


class BrowseItem(BaseModel):
    """A folder (category or movie) or a playable video."""

    id: str
    name: str
    type: Literal["folder", "media"]
    media_type: Literal["Video"] = "Video"
    folder_type: Literal["Container"] | None = None
    image_url: str | None = None
    original_title: str | None = None
    extra_type: Literal["Trailer"] | None = None
    trailer_types: list[TrailerType] = Field(default_factory=list)
    provider_ids: dict[str, str] = Field(default_factory=dict)
    media_sources: list[MediaSource] = Field(default_factory=list)

    @classmethod
    def folder(cls, item_id: str, name: str, image_url: str | None = None) -> "BrowseItem":
        return cls(
            id=item_id,
            name=name,
            type="folder",
            folder_type="Container",
            image_url=image_url,
        )

    def to_payload(self) -> dict[str, Any]:
        """Return the camelCase payload consumed by the host."""

        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "mediaType": self.media_type,
        }
        if self.folder_type:
            payload["folderType"] = self.folder_type
        if self.image_url:
            payload["imageUrl"] = self.image_url
        if self.original_title:
            payload["originalTitle"] = self.original_title
        if self.extra_type:
            payload["extraType"] = self.extra_type
        if self.trailer_types:
            payload["trailerTypes"] = [value.value for value in self.trailer_types]
        if self.provider_ids:
            payload["providerIds"] = dict(self.provider_ids)
        if self.media_sources:
            payload["mediaSources"] = [
                source.to_payload() for source in self.media_sources
            ]
        return payload


class BrowseResult(BaseModel):
    """A listing returned for a browse request."""

    items: list[BrowseItem] = Field(default_factory=list)
    total_record_count: int = 0

    @classmethod
    def of(cls, items: list[BrowseItem]) -> "BrowseResult":
        return cls(items=items, total_record_count=len(items))

    def to_payload(self) -> dict[str, Any]:
        return {
            "items": [item.to_payload() for item in self.items],
            "totalRecordCount": self.total_record_count,
        }


class BrowseQuery(BaseModel):
    """Folder navigation request sent by the host."""

    model_config = ConfigDict(populate_by_name=True)

    folder_id: str | None = Field(default=None, alias="folderId")
    start_index: int = Field(default=0, ge=0, alias="startIndex")
    limit: int | None = Field(default=None, ge=1, alias="limit")
