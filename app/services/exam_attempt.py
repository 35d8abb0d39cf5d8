import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.clock import Clock, as_utc, system_clock
from app.core.constants import AdmissionDenialReasonEnum
from app.core.decorators import translate_storage_errors
from app.core.exceptions import AlreadyCompleted, NotFound, TestUnavailable
from app.crud.exam import exam as crud_exam
from app.crud.exam_attempt import exam_attempt as crud_exam_attempt
from app.crud.student import student as crud_student
from app.models.exam import Exam
from app.models.exam_attempt import ExamAttempt
from app.schemas.exam import Admission
from app.schemas.exam_attempt import ExamAttemptCreate
from app.services.time_window import is_admissible

logger = logging.getLogger(__name__)

DENIAL_MESSAGES = {
    AdmissionDenialReasonEnum.INACTIVE: "Test not found or not active.",
    AdmissionDenialReasonEnum.NOT_YET_STARTED: "Test has not started yet.",
    AdmissionDenialReasonEnum.EXPIRED: "Test time has expired.",
}


class ExamAttemptService:

    def __init__(self, clock: Clock = system_clock):
        self.clock = clock

    def get_exam(self, db: Session, exam_id: int) -> Exam:
        exam = crud_exam.get(db, id=exam_id)
        if not exam:
            raise NotFound("Test not found.", details={"exam_id": exam_id})
        return exam

    def get_attempt(self, db: Session, attempt_id: int) -> ExamAttempt:
        attempt = crud_exam_attempt.get(db, id=attempt_id)
        if not attempt:
            raise NotFound("Exam attempt not found.", details={"attempt_id": attempt_id})
        return attempt

    def get_attempt_for_student(self, db: Session, attempt_id: int, student_id: int) -> ExamAttempt:
        attempt = self.get_attempt(db, attempt_id)
        if attempt.student_id != student_id:
            raise NotFound("Exam attempt not found.", details={"attempt_id": attempt_id})
        return attempt

    def check_admission(self, db: Session, exam_id: int) -> Admission:
        return is_admissible(self.get_exam(db, exam_id), self.clock.now())

    def find_attempt(self, db: Session, student_id: int, exam_id: int) -> Optional[ExamAttempt]:
        return crud_exam_attempt.get_by_student_and_exam(db, student_id=student_id, exam_id=exam_id)

    def deadline(self, attempt: ExamAttempt, exam: Exam) -> datetime:
        return as_utc(attempt.started_at) + timedelta(minutes=exam.duration_minutes)

    def remaining_seconds(self, attempt: ExamAttempt, exam: Exam, now: Optional[datetime] = None) -> int:
        """Time left measured from the attempt's original start, never negative."""
        now = as_utc(now or self.clock.now())
        elapsed = int((now - as_utc(attempt.started_at)).total_seconds())
        return max(0, exam.duration_minutes * 60 - elapsed)

    def _resume(self, attempt: ExamAttempt) -> ExamAttempt:
        if attempt.is_completed:
            raise AlreadyCompleted()
        logger.info(f"Resuming attempt {attempt.id} for student {attempt.student_id} on exam {attempt.exam_id}")
        return attempt

    @translate_storage_errors
    def start_attempt(self, db: Session, student_id: int, exam_id: int) -> ExamAttempt:
        if not crud_student.get(db, id=student_id):
            raise NotFound("Student not found.", details={"student_id": student_id})

        exam = self.get_exam(db, exam_id)
        now = self.clock.now()

        admission = is_admissible(exam, now)
        if not admission.admissible:
            reason = AdmissionDenialReasonEnum(admission.reason)
            raise TestUnavailable(reason, message=DENIAL_MESSAGES[reason])

        existing = self.find_attempt(db, student_id=student_id, exam_id=exam_id)
        if existing:
            return self._resume(existing)

        attempt_in = ExamAttemptCreate(student_id=student_id, exam_id=exam_id, started_at=now)
        try:
            new_attempt = crud_exam_attempt.create(db, obj_in=attempt_in)
        except IntegrityError:
            db.rollback()
            winner = self.find_attempt(db, student_id=student_id, exam_id=exam_id)
            if winner is None:
                raise
            logger.info(f"Concurrent start for student {student_id} on exam {exam_id}; using attempt {winner.id}")
            return self._resume(winner)

        logger.info(f"Started attempt {new_attempt.id} for student {student_id} on exam {exam_id}")
        return new_attempt


exam_attempt_service = ExamAttemptService()
