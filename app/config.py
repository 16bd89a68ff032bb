"""Application configuration models."""

from __future__ import annotations

from datetime import time
from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .categories import CATEGORIES, CategoryDefinition


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="TMDb Trailers", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=8096, alias="PORT")

    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_image_url: HttpUrl = Field(
        default="https://image.tmdb.org/t/p/original", alias="TMDB_IMAGE_URL"
    )
    language: str = Field(default="en-US", alias="TMDB_LANGUAGE")
    region: str | None = Field(default=None, alias="TMDB_REGION")

    max_bitrate: int | None = Field(default=None, alias="MAX_BITRATE", gt=0)
    stream_resolver_url: HttpUrl | None = Field(
        default=None, alias="STREAM_RESOLVER_URL"
    )

    enable_trailers_channel: bool = Field(
        default=True, alias="ENABLE_TRAILERS_CHANNEL"
    )
    enable_extras_channel: bool = Field(default=False, alias="ENABLE_EXTRAS_CHANNEL")
    enable_trailers_upcoming: bool = Field(
        default=True, alias="ENABLE_TRAILERS_UPCOMING"
    )
    enable_trailers_now_playing: bool = Field(
        default=True, alias="ENABLE_TRAILERS_NOW_PLAYING"
    )
    enable_trailers_popular: bool = Field(
        default=False, alias="ENABLE_TRAILERS_POPULAR"
    )
    enable_trailers_top_rated: bool = Field(
        default=False, alias="ENABLE_TRAILERS_TOP_RATED"
    )
    trailer_limit: int = Field(default=20, alias="TRAILER_LIMIT", ge=1, le=1_000)

    cache_ttl_seconds: int = Field(default=86_400, alias="CACHE_TTL", ge=1)
    cache_max_entries: int = Field(
        default=10_000, alias="CACHE_MAX_ENTRIES", ge=1
    )
    lookup_concurrency: int = Field(
        default=8, alias="LOOKUP_CONCURRENCY", ge=1, le=64
    )
    fan_out_strategy: Literal["concurrent", "sequential"] = Field(
        default="concurrent", alias="FAN_OUT_STRATEGY"
    )
    isolate_lookup_failures: bool = Field(
        default=False, alias="ISOLATE_LOOKUP_FAILURES"
    )

    refresh_time_of_day: time = Field(default=time(4, 0), alias="REFRESH_TIME")
    refresh_on_startup: bool = Field(default=True, alias="REFRESH_ON_STARTUP")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator(
        "tmdb_api_key", "region", "stream_resolver_url", "max_bitrate", mode="before"
    )
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        if value is None:
            return None
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return value

    @field_validator("region")
    @classmethod
    def _normalise_region(cls, value: str | None) -> str | None:
        """TMDb expects ISO 3166-1 region codes in upper case."""

        if value is None:
            return None
        return value.upper()

    @field_validator("fan_out_strategy", mode="before")
    @classmethod
    def _normalise_strategy(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper() or "INFO"
        return value

    @field_validator("refresh_time_of_day", mode="before")
    @classmethod
    def _parse_time_of_day(cls, value: object) -> object:
        if isinstance(value, str):
            parts = value.strip().split(":")
            if len(parts) not in {2, 3}:
                raise ValueError("REFRESH_TIME must use HH:MM format")
            try:
                hour, minute = int(parts[0]), int(parts[1])
            except ValueError as exc:
                raise ValueError("REFRESH_TIME must use HH:MM format") from exc
            return time(hour, minute)
        return value

    def is_category_enabled(self, category: CategoryDefinition) -> bool:
        return bool(getattr(self, category.enable_field))

    @property
    def enabled_categories(self) -> tuple[CategoryDefinition, ...]:
        """Return the categories aggregated into the trailers channel."""

        return tuple(
            category for category in CATEGORIES if self.is_category_enabled(category)
        )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]
