"""Resolve playable stream URLs for videos hosted on third-party sites."""

from __future__ import annotations

import logging
from typing import Iterable
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from ..models import PlaybackResolution, StreamFormat

logger = logging.getLogger(__name__)


class StreamResolverError(RuntimeError):
    """The extraction service failed or returned an unusable payload."""


def select_playback(
    formats: Iterable[StreamFormat], max_bitrate: int | None
) -> PlaybackResolution | None:
    """Pick the highest bitrate strictly below ``max_bitrate``."""

    best: StreamFormat | None = None
    for candidate in formats:
        if max_bitrate is not None and candidate.bitrate >= max_bitrate:
            continue
        if best is None or candidate.bitrate > best.bitrate:
            best = candidate
    if best is None:
        return None
    return PlaybackResolution(url=best.url, bitrate=best.bitrate)


class StreamResolver:
    """Looks up the encodings a video host offers for a video key.

    YouTube keys are handed to an extraction service which answers with
    ``{"formats": [{"bitrate": ..., "url": ...}]}``. Vimeo is recognised but
    not supported yet; every other site is unknown.
    """

    _SUPPORTED_SITES = frozenset({"youtube"})
    _UNIMPLEMENTED_SITES = frozenset({"vimeo"})

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str | None = None,
        *,
        max_bitrate: int | None = None,
    ) -> None:
        self._client = http_client
        self._base_url = base_url.rstrip("/") if base_url else None
        self._max_bitrate = max_bitrate

    async def resolve(self, site: str, key: str) -> list[StreamFormat] | None:
        """Return the available encodings, or ``None`` if the video is unavailable."""

        normalized_site = (site or "").strip().casefold()
        if normalized_site in self._UNIMPLEMENTED_SITES:
            logger.debug("Site=%s Key=%s is not implemented", site, key)
            return None
        if normalized_site not in self._SUPPORTED_SITES or not key:
            logger.debug("Unsupported site %s for key %s", site, key)
            return None
        if not self._base_url:
            logger.debug("No stream resolver configured; skipping %s", key)
            return None

        url = f"{self._base_url}/{normalized_site}/{quote(key, safe='')}"
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            logger.error("Stream resolution for %s/%s failed: %s", site, key, exc)
            raise StreamResolverError(f"Stream resolution for {key} failed") from exc

        if response.status_code in {404, 410}:
            logger.debug("Video %s/%s is unavailable", site, key)
            return None
        if response.status_code >= 400:
            logger.error(
                "Stream resolution for %s/%s failed with status %s: %s",
                site,
                key,
                response.status_code,
                response.text,
            )
            raise StreamResolverError(
                f"Stream resolution for {key} failed with status {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Unexpected non-JSON stream resolver response for %s", key)
            raise StreamResolverError(
                f"Stream resolver returned a non-JSON response for {key}"
            ) from exc

        raw_formats = payload.get("formats") if isinstance(payload, dict) else None
        if raw_formats is None:
            return None
        if not isinstance(raw_formats, list):
            raise StreamResolverError(f"Stream resolver returned malformed formats for {key}")
        try:
            return [StreamFormat.model_validate(entry) for entry in raw_formats]
        except ValidationError as exc:
            logger.error("Malformed stream formats for %s/%s: %s", site, key, exc)
            raise StreamResolverError(
                f"Stream resolver returned malformed formats for {key}"
            ) from exc

    async def resolve_playback(self, site: str, key: str) -> PlaybackResolution | None:
        """Resolve and select the encoding used for playback."""

        formats = await self.resolve(site, key)
        if not formats:
            return None
        return select_playback(formats, self._max_bitrate)
