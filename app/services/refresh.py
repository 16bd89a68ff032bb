"""Background refresh of the aggregated trailer listing."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Any, Callable

from ..config import Settings
from .browse import BrowseService

logger = logging.getLogger(__name__)


def seconds_until(time_of_day: time, now: datetime) -> float:
    """Return the delay until the next occurrence of ``time_of_day``."""

    target = datetime.combine(now.date(), time_of_day, tzinfo=now.tzinfo)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


@dataclass
class RefreshStatus:
    """Outcome of the most recent refresh run."""

    last_started_at: datetime | None = None
    last_finished_at: datetime | None = None
    last_item_count: int = 0
    last_error: str | None = None
    skipped: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {
            "lastStartedAt": (
                self.last_started_at.isoformat() if self.last_started_at else None
            ),
            "lastFinishedAt": (
                self.last_finished_at.isoformat() if self.last_finished_at else None
            ),
            "itemCount": self.last_item_count,
            "error": self.last_error,
            "skipped": self.skipped,
            "ok": self.last_error is None,
        }


class RefreshScheduler:
    """Refreshes the trailer listing at startup and once a day."""

    def __init__(
        self,
        settings: Settings,
        browse: BrowseService,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._settings = settings
        self._browse = browse
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self._lock = asyncio.Lock()
        self.status = RefreshStatus()

    async def start(self) -> None:
        """Launch the daily refresh loop."""

        if self._task is None:
            self._task = asyncio.create_task(self._refresh_loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def trigger(self) -> RefreshStatus:
        """Rebuild the trailer listing now.

        Failures are recorded on the returned status and re-raised.
        """

        if not self._settings.enable_trailers_channel:
            logger.info("Trailers channel disabled; skipping refresh")
            self.status = RefreshStatus(skipped=True)
            return self.status

        async with self._lock:
            status = RefreshStatus(last_started_at=self._clock())
            self.status = status
            try:
                result = await self._browse.refresh()
            except Exception as exc:
                status.last_error = str(exc) or exc.__class__.__name__
                status.last_finished_at = self._clock()
                raise
            status.last_item_count = result.total_record_count
            status.last_finished_at = self._clock()
            return status

    async def _refresh_loop(self) -> None:
        if self._settings.refresh_on_startup:
            await self._run_safely()
        while True:
            delay = seconds_until(self._settings.refresh_time_of_day, self._clock())
            logger.debug("Next trailer refresh in %.0f seconds", delay)
            await asyncio.sleep(delay)
            await self._run_safely()

    async def _run_safely(self) -> None:
        try:
            await self.trigger()
        except Exception as exc:  # pragma: no cover - background safety net
            logger.exception("Scheduled trailer refresh failed: %s", exc)
