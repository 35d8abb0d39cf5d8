import logging
import os
from typing import TYPE_CHECKING, Dict, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.core.config import settings

if TYPE_CHECKING:
    from app.services.exam_session import AttemptCountdown

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def countdown_job_id(attempt_id: int) -> str:
    return f"attempt-countdown:{attempt_id}"


class CountdownRegistry:
    """Live countdowns keyed by attempt id, each backed by an interval job while the scheduler runs."""

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None):
        self.scheduler = scheduler
        self._countdowns: Dict[int, "AttemptCountdown"] = {}

    def get(self, attempt_id: int) -> Optional["AttemptCountdown"]:
        return self._countdowns.get(attempt_id)

    def __contains__(self, attempt_id: int) -> bool:
        return attempt_id in self._countdowns

    def start(self, countdown: "AttemptCountdown") -> None:
        self._countdowns[countdown.attempt_id] = countdown
        if self.scheduler is None or not self.scheduler.running:
            return
        self.scheduler.add_job(
            countdown.tick,
            "interval",
            seconds=settings.COUNTDOWN_TICK_SECONDS,
            id=countdown_job_id(countdown.attempt_id),
            name=f"Countdown for attempt {countdown.attempt_id}",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    def cancel(self, attempt_id: int) -> Optional["AttemptCountdown"]:
        countdown = self._countdowns.pop(attempt_id, None)
        if self.scheduler is not None and self.scheduler.running:
            try:
                self.scheduler.remove_job(countdown_job_id(attempt_id))
            except JobLookupError:
                pass
        return countdown


countdown_registry = CountdownRegistry(scheduler)


async def finalize_overdue_attempts():
    from app.services.exam_session import exam_session_service

    try:
        finalized = await exam_session_service.sweep_overdue()
        if finalized:
            logger.info(f"Overdue sweep finalized {finalized} attempt(s)")
    except Exception as e:
        logger.error(f"Error finalizing overdue attempts: {e}", exc_info=True)


def start_scheduler():
    if os.getenv("TESTING") == "true":
        logger.info("Scheduler disabled in test environment")
        return

    if not scheduler.running:
        scheduler.add_job(
            finalize_overdue_attempts,
            'interval',
            seconds=settings.OVERDUE_SWEEP_SECONDS,
            id='finalize_overdue_attempts',
            name='Finalize Overdue Exam Attempts',
            replace_existing=True
        )
        scheduler.start()
        logger.info("Scheduler started with overdue attempt sweep")


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")
