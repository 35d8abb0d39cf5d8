import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.clock import Clock, as_utc, system_clock
from app.core.config import settings
from app.core.constants import AnswerOutcomeEnum
from app.core.decorators import translate_storage_errors
from app.core.exceptions import NotFound
from app.crud.exam_attempt import exam_attempt as crud_exam_attempt
from app.crud.question import question as crud_question
from app.crud.student_answer import student_answer as crud_student_answer
from app.models.exam_attempt import ExamAttempt
from app.schemas.report import AttemptBreakdown, ExamResultRow, LiveAttemptRow, QuestionBreakdown, ResultStatistics
from app.services.exam_attempt import ExamAttemptService, exam_attempt_service

logger = logging.getLogger(__name__)


class ReportService:
    """Read-only views for administrators: results, live attempts and per-question breakdowns."""

    def __init__(self, attempts: ExamAttemptService = exam_attempt_service, clock: Clock = system_clock):
        self.attempts = attempts
        self.clock = clock

    def _result_row(self, attempt: ExamAttempt) -> ExamResultRow:
        return ExamResultRow(
            attempt_id=attempt.id,
            student_id=attempt.student_id,
            student_name=attempt.student.name,
            student_email=attempt.student.email,
            enrollment_number=attempt.student.enrollment_number,
            exam_id=attempt.exam_id,
            exam_title=attempt.exam.title,
            score=attempt.score,
            started_at=as_utc(attempt.started_at),
            submitted_at=as_utc(attempt.submitted_at) if attempt.submitted_at else None,
        )

    @translate_storage_errors
    def list_results(self, db: Session, exam_id: Optional[int] = None, skip: int = 0, limit: int = 500) -> List[ExamResultRow]:
        attempts = crud_exam_attempt.get_completed(db, exam_id=exam_id, skip=skip, limit=limit)
        return [self._result_row(attempt) for attempt in attempts]

    @translate_storage_errors
    def get_result_statistics(self, db: Session, exam_id: int) -> ResultStatistics:
        """Attempt count, average, highest and lowest score and pass rate over completed attempts.

        An attempt passes when its score reaches ``PASS_PERCENTAGE`` of the
        total_questions it was marked against.
        """
        exam = self.attempts.get_exam(db, exam_id)
        pass_share = Decimal(settings.PASS_PERCENTAGE) / 100
        rows = crud_exam_attempt.get_completed_scores(db, exam_id=exam_id)

        zero = Decimal("0")
        scores = [Decimal(score) for score, _ in rows]
        pass_count = sum(
            1 for score, total in rows
            if Decimal(score) >= (total or exam.total_questions) * pass_share
        )
        stats = ResultStatistics(
            exam_id=exam.id,
            exam_title=exam.title,
            total_questions=exam.total_questions,
            pass_mark=exam.total_questions * pass_share,
            total_attempts=len(scores),
            average_score=(sum(scores) / len(scores)).quantize(Decimal("0.0001")) if scores else zero,
            highest_score=max(scores) if scores else zero,
            lowest_score=min(scores) if scores else zero,
            pass_count=pass_count,
            pass_rate=(Decimal(pass_count) * 100 / len(scores)).quantize(Decimal("0.01")) if scores else zero,
        )
        logger.debug(f"Result statistics for exam {exam_id}: {stats.total_attempts} attempts, pass rate {stats.pass_rate}%")
        return stats

    @translate_storage_errors
    def list_live_attempts(self, db: Session, exam_id: Optional[int] = None) -> List[LiveAttemptRow]:
        now = self.clock.now()
        rows = []
        for attempt in crud_exam_attempt.get_in_progress(db, exam_id=exam_id):
            rows.append(LiveAttemptRow(
                attempt_id=attempt.id,
                student_id=attempt.student_id,
                student_name=attempt.student.name,
                enrollment_number=attempt.student.enrollment_number,
                exam_id=attempt.exam_id,
                exam_title=attempt.exam.title,
                started_at=as_utc(attempt.started_at),
                answered=len(attempt.answers),
                remaining_seconds=self.attempts.remaining_seconds(attempt, attempt.exam, now=now),
            ))
        return rows

    @translate_storage_errors
    def get_attempt_breakdown(self, db: Session, attempt_id: int) -> AttemptBreakdown:
        attempt = crud_exam_attempt.get(db, id=attempt_id)
        if not attempt:
            raise NotFound("Exam attempt not found.", details={"attempt_id": attempt_id})

        exam = attempt.exam
        slots = crud_question.get_slots(db, exam_id=exam.id, total_questions=exam.total_questions)
        answers = {
            answer.question_id: answer
            for answer in crud_student_answer.get_all_by_attempt(db, attempt_id=attempt_id)
        }

        questions = []
        for question in slots:
            answer = answers.get(question.id)
            if answer is None:
                outcome = AnswerOutcomeEnum.UNATTEMPTED
            elif answer.is_correct:
                outcome = AnswerOutcomeEnum.CORRECT
            else:
                outcome = AnswerOutcomeEnum.INCORRECT
            questions.append(QuestionBreakdown(
                question_id=question.id,
                question_order=question.question_order,
                question_text=question.question_text,
                section=question.section,
                selected_answer=answer.selected_answer if answer else None,
                correct_answer=question.correct_answer,
                outcome=outcome,
            ))

        return AttemptBreakdown(
            result=self._result_row(attempt),
            total_questions=exam.total_questions,
            questions=questions,
        )


report_service = ReportService()
