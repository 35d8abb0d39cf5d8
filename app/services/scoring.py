import logging
from decimal import Decimal
from typing import Iterable, NamedTuple, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.clock import Clock, as_utc, system_clock
from app.core.config import settings
from app.core.decorators import translate_storage_errors
from app.core.exceptions import AttemptFinalized, NotFound, ValidationError
from app.crud.exam import exam as crud_exam
from app.crud.exam_attempt import exam_attempt as crud_exam_attempt
from app.crud.question import question as crud_question
from app.crud.student_answer import student_answer as crud_student_answer
from app.models.exam import Exam
from app.models.exam_attempt import ExamAttempt
from app.models.question import Question
from app.models.student_answer import StudentAnswer
from app.schemas.exam_attempt import ScoreSummary
from app.utils.attempt_locks import AttemptLockRegistry, attempt_locks

logger = logging.getLogger(__name__)


class MarkingScheme(BaseModel):
    correct_answer: Decimal = Decimal("1")
    incorrect_answer: Decimal = Decimal("-0.25")
    unanswered: Decimal = Decimal("0")

    @classmethod
    def from_settings(cls) -> "MarkingScheme":
        return cls(
            correct_answer=settings.MARK_CORRECT_ANSWER,
            incorrect_answer=settings.MARK_INCORRECT_ANSWER,
            unanswered=settings.MARK_UNANSWERED,
        )


class SlotTally(NamedTuple):
    correct: int
    incorrect: int
    unattempted: int

    @property
    def attempted(self) -> int:
        return self.correct + self.incorrect

    @property
    def total(self) -> int:
        return self.attempted + self.unattempted


def classify_slots(slots: Iterable[Question], answers: Iterable[StudentAnswer]) -> SlotTally:
    """Put every question slot into exactly one of correct, incorrect or unattempted.

    Answers to questions outside ``slots`` are ignored.
    """
    by_question = {answer.question_id: answer for answer in answers}
    correct = incorrect = unattempted = 0
    for question in slots:
        answer = by_question.get(question.id)
        if answer is None:
            unattempted += 1
        elif answer.is_correct:
            correct += 1
        else:
            incorrect += 1
    return SlotTally(correct=correct, incorrect=incorrect, unattempted=unattempted)


class ScoringService:
    """Turns recorded answers into a final score, exactly once per attempt.

    The completion flag is flipped with a conditional update under both the
    in-process attempt lock and a row lock, so a manual submit racing an
    auto-submit applies the marking scheme once. Every later call rebuilds the
    summary from what was stored.
    """

    def __init__(
        self,
        marking_scheme: Optional[MarkingScheme] = None,
        clock: Clock = system_clock,
        locks: AttemptLockRegistry = attempt_locks,
    ):
        self.marking_scheme = marking_scheme or MarkingScheme.from_settings()
        self.clock = clock
        self.locks = locks

    def compute_score(self, tally: SlotTally) -> Decimal:
        scheme = self.marking_scheme
        return (
            tally.correct * scheme.correct_answer
            + tally.incorrect * scheme.incorrect_answer
            + tally.unattempted * scheme.unanswered
        )

    def _tally(self, db: Session, attempt: ExamAttempt, exam: Exam) -> SlotTally:
        slots = crud_question.get_slots(db, exam_id=exam.id, total_questions=exam.total_questions)
        answers = crud_student_answer.get_all_by_attempt(db, attempt_id=attempt.id)
        tally = classify_slots(slots, answers)
        # Fewer stored questions than configured slots count as unattempted
        missing = exam.total_questions - tally.total
        if missing > 0:
            tally = tally._replace(unattempted=tally.unattempted + missing)
        return tally

    def _summary(self, attempt: ExamAttempt) -> ScoreSummary:
        """Summary of a completed attempt, built only from the tally frozen on its row."""
        correct = attempt.correct_count or 0
        incorrect = attempt.incorrect_count or 0
        return ScoreSummary(
            attempt_id=attempt.id,
            score=attempt.score,
            total_questions=attempt.total_questions or 0,
            attempted=correct + incorrect,
            correct=correct,
            incorrect=incorrect,
            unattempted=attempt.unattempted_count or 0,
            submitted_at=as_utc(attempt.submitted_at) if attempt.submitted_at else None,
        )

    def _already_finalized(self, summary: ScoreSummary, strict: bool) -> ScoreSummary:
        if strict:
            raise AttemptFinalized(summary=summary)
        return summary

    def finalize_attempt(self, db: Session, attempt_id: int, *, strict: bool = False) -> ScoreSummary:
        summary, applied = self.apply_finalization(db, attempt_id)
        if not applied:
            return self._already_finalized(summary, strict)
        return summary

    @translate_storage_errors
    def apply_finalization(self, db: Session, attempt_id: int) -> Tuple[ScoreSummary, bool]:
        """Finalize if nobody has yet. Returns the summary and whether this call applied it."""
        with self.locks.hold(attempt_id):
            attempt = crud_exam_attempt.get_for_update(db, id=attempt_id)
            if not attempt:
                db.rollback()
                raise NotFound("Exam attempt not found.", details={"attempt_id": attempt_id})

            if attempt.is_completed:
                summary = self._summary(attempt)
                db.commit()
                logger.debug(f"Attempt {attempt_id} already finalized; returning stored score")
                return summary, False

            exam = crud_exam.get(db, id=attempt.exam_id)
            tally = self._tally(db, attempt, exam)
            score = self.compute_score(tally)

            if not crud_exam_attempt.mark_completed(
                db,
                attempt_id=attempt_id,
                score=score,
                submitted_at=self.clock.now(),
                total_questions=exam.total_questions,
                correct=tally.correct,
                incorrect=tally.incorrect,
                unattempted=tally.unattempted,
            ):
                db.rollback()
                logger.info(f"Attempt {attempt_id} was finalized concurrently; discarding computed score")
                attempt = crud_exam_attempt.get_for_update(db, id=attempt_id)
                summary = self._summary(attempt)
                db.commit()
                return summary, False

            db.commit()
            db.refresh(attempt)
            summary = self._summary(attempt)

        self.locks.release(attempt_id)
        logger.info(
            f"Finalized attempt {attempt_id}: score={summary.score} correct={tally.correct} "
            f"incorrect={tally.incorrect} unattempted={tally.unattempted}"
        )
        return summary, True

    @translate_storage_errors
    def get_summary(self, db: Session, attempt_id: int) -> ScoreSummary:
        attempt = crud_exam_attempt.get(db, id=attempt_id)
        if not attempt:
            raise NotFound("Exam attempt not found.", details={"attempt_id": attempt_id})
        if not attempt.is_completed:
            raise ValidationError("Attempt has not been submitted yet.", details={"attempt_id": attempt_id})
        return self._summary(attempt)


scoring_service = ScoringService()
