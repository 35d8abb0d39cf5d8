import asyncio
import logging
import math
import threading
from datetime import datetime
from typing import Awaitable, Callable, Tuple

from sqlalchemy.orm import Session

from app.core.clock import Clock, as_utc, system_clock
from app.core.config import settings
from app.core.constants import ATTEMPT_FINALIZED_EVENT, ExamSessionStateEnum
from app.core.database import SessionLocal
from app.core.decorators import retry_on_storage_error
from app.core.exceptions import AttemptFinalized, StorageError
from app.core.scheduler import CountdownRegistry, countdown_registry
from app.crud.exam_attempt import exam_attempt as crud_exam_attempt
from app.models.exam_attempt import ExamAttempt
from app.models.student_answer import StudentAnswer
from app.schemas.exam_attempt import ScoreSummary, SessionStatus
from app.services.exam_attempt import ExamAttemptService, exam_attempt_service
from app.services.scoring import ScoringService, scoring_service
from app.services.student_answer import StudentAnswerService, student_answer_service
from app.utils.events import EventBus, event_bus

logger = logging.getLogger(__name__)


class AttemptCountdown:
    """Countdown for one in-progress attempt.

    ``tick`` runs once a second; at zero it fires ``on_expire`` through the
    submit path. ``claim_submit`` is the local already-submitting flag: only
    the first claimant (timer or manual submit) gets True, so repeated timer
    firings never schedule a second finalize.
    """

    def __init__(self, attempt_id: int, deadline: datetime, clock: Clock,
                 on_expire: Callable[[int], Awaitable[None]]):
        self.attempt_id = attempt_id
        self.deadline = as_utc(deadline)
        self.clock = clock
        self._on_expire = on_expire
        self._submitting = False
        self._guard = threading.Lock()

    @property
    def submitting(self) -> bool:
        return self._submitting

    def remaining_seconds(self) -> int:
        left = (self.deadline - as_utc(self.clock.now())).total_seconds()
        return max(0, math.ceil(left))

    def claim_submit(self) -> bool:
        with self._guard:
            if self._submitting:
                return False
            self._submitting = True
            return True

    async def tick(self) -> int:
        remaining = self.remaining_seconds()
        if remaining == 0 and self.claim_submit():
            logger.info(f"Time is up for attempt {self.attempt_id}; auto-submitting")
            await self._on_expire(self.attempt_id)
        return remaining


class ExamSessionService:
    """State machine for an attempt: not_started -> in_progress -> completed.

    State is always derived from persisted rows, never kept in memory, so a
    reload after submission reconstructs ``completed`` directly.
    """

    def __init__(
        self,
        attempts: ExamAttemptService = exam_attempt_service,
        answers: StudentAnswerService = student_answer_service,
        scoring: ScoringService = scoring_service,
        clock: Clock = system_clock,
        countdowns: CountdownRegistry = countdown_registry,
        session_factory: Callable[[], Session] = SessionLocal,
        events: EventBus = event_bus,
    ):
        self.attempts = attempts
        self.answers = answers
        self.scoring = scoring
        self.clock = clock
        self.countdowns = countdowns
        self.session_factory = session_factory
        self.events = events

    def get_status(self, db: Session, student_id: int, exam_id: int) -> SessionStatus:
        exam = self.attempts.get_exam(db, exam_id)
        attempt = self.attempts.find_attempt(db, student_id=student_id, exam_id=exam_id)

        if attempt is None:
            return SessionStatus(
                state=ExamSessionStateEnum.NOT_STARTED,
                exam_id=exam_id,
                remaining_seconds=exam.duration_minutes * 60,
            )

        if attempt.is_completed:
            return SessionStatus(
                state=ExamSessionStateEnum.COMPLETED,
                exam_id=exam_id,
                attempt_id=attempt.id,
                started_at=as_utc(attempt.started_at),
                remaining_seconds=0,
                result=self.scoring.get_summary(db, attempt.id),
            )

        return SessionStatus(
            state=ExamSessionStateEnum.IN_PROGRESS,
            exam_id=exam_id,
            attempt_id=attempt.id,
            started_at=as_utc(attempt.started_at),
            remaining_seconds=self.attempts.remaining_seconds(attempt, exam),
            answers=self.answers.get_answers_for_attempt(db, attempt.id),
        )

    async def begin(self, db: Session, student_id: int, exam_id: int) -> SessionStatus:
        attempt = self.attempts.start_attempt(db, student_id=student_id, exam_id=exam_id)
        exam = self.attempts.get_exam(db, exam_id)

        if self.attempts.remaining_seconds(attempt, exam) == 0:
            logger.info(f"Attempt {attempt.id} resumed after its deadline; submitting")
            await self.submit(db, attempt.id)
            return self.get_status(db, student_id=student_id, exam_id=exam_id)

        self._arm_countdown(attempt, exam)
        return self.get_status(db, student_id=student_id, exam_id=exam_id)

    def _arm_countdown(self, attempt: ExamAttempt, exam) -> AttemptCountdown:
        countdown = self.countdowns.get(attempt.id)
        if countdown is None:
            countdown = AttemptCountdown(
                attempt_id=attempt.id,
                deadline=self.attempts.deadline(attempt, exam),
                clock=self.clock,
                on_expire=self.expire,
            )
            self.countdowns.start(countdown)
        return countdown

    @retry_on_storage_error()
    async def _record(self, db: Session, attempt_id: int, question_id: int, selected_answer: str) -> StudentAnswer:
        return self.answers.record_answer(db, attempt_id, question_id, selected_answer)

    async def answer(self, db: Session, attempt_id: int, question_id: int, selected_answer: str) -> StudentAnswer:
        attempt = self.attempts.get_attempt(db, attempt_id)
        if not attempt.is_completed and self.attempts.remaining_seconds(attempt, attempt.exam) == 0:
            await self.submit(db, attempt_id)
            raise AttemptFinalized("Time is up; the attempt has been submitted.")
        return await self._record(db, attempt_id, question_id, selected_answer)

    async def submit(self, db: Session, attempt_id: int) -> ScoreSummary:
        countdown = self.countdowns.cancel(attempt_id)
        if countdown is not None:
            countdown.claim_submit()
        return await self._finalize(db, attempt_id)

    async def expire(self, attempt_id: int) -> None:
        db = self.session_factory()
        try:
            await self._finalize(db, attempt_id)
        except Exception as e:
            logger.error(f"Auto-submit failed for attempt {attempt_id}: {e}", exc_info=True)
        finally:
            db.close()
            self.countdowns.cancel(attempt_id)

    async def _finalize(self, db: Session, attempt_id: int) -> ScoreSummary:
        summary, applied = await self._finalize_rechecking(db, attempt_id)
        if applied:
            await self._publish(db, summary)
        return summary

    async def _finalize_rechecking(self, db: Session, attempt_id: int) -> Tuple[ScoreSummary, bool]:
        max_attempts = settings.STORAGE_RETRY_ATTEMPTS
        for attempt_no in range(1, max_attempts + 1):
            try:
                if attempt_no > 1:
                    # A failed call may still have committed; read before finalizing again
                    attempt = self.attempts.get_attempt(db, attempt_id)
                    if attempt.is_completed:
                        return self.scoring.get_summary(db, attempt_id), False
                return self.scoring.apply_finalization(db, attempt_id)
            except StorageError:
                if attempt_no == max_attempts:
                    raise
                logger.warning(f"Storage error finalizing attempt {attempt_id}; re-checking ({attempt_no}/{max_attempts})")
                await asyncio.sleep(settings.STORAGE_RETRY_BACKOFF_SECONDS * (2 ** (attempt_no - 1)))

    async def _publish(self, db: Session, summary: ScoreSummary) -> None:
        attempt = self.attempts.get_attempt(db, summary.attempt_id)
        await self.events.publish(ATTEMPT_FINALIZED_EVENT, {
            "student_id": attempt.student_id,
            "exam_id": attempt.exam_id,
            **summary.model_dump(mode="json"),
        })

    async def sweep_overdue(self) -> int:
        """Finalize in-progress attempts whose time ran out without a submit."""
        db = self.session_factory()
        finalized = 0
        try:
            now = self.clock.now()
            for attempt in crud_exam_attempt.get_in_progress(db):
                if self.attempts.remaining_seconds(attempt, attempt.exam, now=now) > 0:
                    continue
                self.countdowns.cancel(attempt.id)
                summary, applied = await self._finalize_rechecking(db, attempt.id)
                if applied:
                    finalized += 1
                    await self._publish(db, summary)
        finally:
            db.close()
        return finalized


exam_session_service = ExamSessionService()
