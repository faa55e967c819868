"""
Background refresh of the Cafe24 access token.

Keeps an idle deployment from letting its token lapse: every six hours the
token is refreshed when 30 minutes or less remain, and once a day the
remaining lifetime is logged. Jobs never raise into the scheduler.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from cafe24_bridge.services.token_store import TokenStore

if TYPE_CHECKING:
    from cafe24_bridge.clients.cafe24_auth import Cafe24OAuthClient

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "cafe24_token_refresh"
STATUS_JOB_ID = "cafe24_token_status"


class TokenRefreshScheduler:
    """Owns the APScheduler instance that nudges the refresh path."""

    SCHEDULED_REFRESH_MINUTES = 30

    def __init__(
        self,
        token_store: TokenStore,
        oauth_client: Cafe24OAuthClient,
        *,
        timezone_name: str = "Asia/Seoul",
    ) -> None:
        self._store = token_store
        self._oauth = oauth_client
        self._timezone = ZoneInfo(timezone_name)
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """Schedule both jobs. Must be called from within a running event loop."""
        if self.is_running:
            logger.warning("Token scheduler is already running")
            return

        scheduler = AsyncIOScheduler(timezone=self._timezone)
        scheduler.add_job(
            self.check_and_refresh,
            trigger=CronTrigger(hour="*/6", minute=0, timezone=self._timezone),
            id=REFRESH_JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=300,
            replace_existing=True,
        )
        scheduler.add_job(
            self.log_token_status,
            trigger=CronTrigger(hour=0, minute=0, timezone=self._timezone),
            id=STATUS_JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=300,
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("Token scheduler started (refresh check every 6h, status daily)")

    def stop(self) -> None:
        scheduler = self._scheduler
        if scheduler is None or not scheduler.running:
            logger.warning("Token scheduler is not running")
            return
        scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Token scheduler stopped")

    def job_ids(self) -> list[str]:
        if self._scheduler is None:
            return []
        return [job.id for job in self._scheduler.get_jobs()]

    async def check_and_refresh(self) -> None:
        try:
            record = await self._store.get_stored_access_token()
            if record is None:
                logger.info("Scheduled check: no stored access token")
                return

            minutes_left = record.minutes_left(self._store.now())
            if minutes_left > self.SCHEDULED_REFRESH_MINUTES:
                logger.info("Scheduled check: token healthy (%s minutes left)", minutes_left)
                return

            logger.info("Scheduled check: token expires in %s minutes; refreshing", minutes_left)
            try:
                await self._oauth.refresh_access_token()
            except Exception:  # pylint: disable=broad-except
                logger.exception("Scheduled token refresh failed")
                return
            logger.info("Scheduled token refresh completed")
        except Exception:  # pylint: disable=broad-except
            logger.exception("Scheduled token check failed")

    async def log_token_status(self) -> None:
        try:
            record = await self._store.get_stored_access_token()
            if record is None:
                logger.info("Daily token status: no token stored")
                return

            millis_left = record.millis_left(self._store.now())
            hours, remainder = divmod(millis_left, 3_600_000)
            minutes = remainder // 60_000
            expires_at = datetime.fromtimestamp(
                record.access_expires_at / 1000, tz=timezone.utc
            ).astimezone(self._timezone)
            logger.info(
                "Daily token status: %sh %sm left (expires %s)",
                hours,
                minutes,
                expires_at.isoformat(),
            )
        except Exception:  # pylint: disable=broad-except
            logger.exception("Daily token status logging failed")

    async def manual_refresh(self) -> bool:
        """Refresh on operator request; report the outcome instead of raising."""
        logger.info("Manual token refresh requested")
        try:
            await self._oauth.refresh_access_token()
        except Exception:  # pylint: disable=broad-except
            logger.exception("Manual token refresh failed")
            return False
        logger.info("Manual token refresh completed")
        return True


__all__ = ["REFRESH_JOB_ID", "STATUS_JOB_ID", "TokenRefreshScheduler"]
