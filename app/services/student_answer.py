import logging
from typing import Dict

from sqlalchemy.orm import Session

from app.core.constants import ANSWER_OPTIONS
from app.core.decorators import translate_storage_errors
from app.core.exceptions import AttemptFinalized, ExamPlatformError, NotFound, ValidationError
from app.crud.exam_attempt import exam_attempt as crud_exam_attempt
from app.crud.question import question as crud_question
from app.crud.student_answer import student_answer as crud_student_answer
from app.models.student_answer import StudentAnswer
from app.utils.attempt_locks import AttemptLockRegistry, attempt_locks

logger = logging.getLogger(__name__)


def normalize_option(selected_answer) -> str:
    if not isinstance(selected_answer, str):
        raise ValidationError("Selected answer must be one of A, B, C or D.")
    option = selected_answer.strip().upper()
    if option not in ANSWER_OPTIONS:
        raise ValidationError(
            "Selected answer must be one of A, B, C or D.",
            details={"selected_answer": selected_answer},
        )
    return option


class StudentAnswerService:

    def __init__(self, locks: AttemptLockRegistry = attempt_locks):
        self.locks = locks

    @translate_storage_errors
    def record_answer(self, db: Session, attempt_id: int, question_id: int, selected_answer: str) -> StudentAnswer:
        option = normalize_option(selected_answer)

        with self.locks.hold(attempt_id):
            try:
                attempt = crud_exam_attempt.get_for_update(db, id=attempt_id)
                if not attempt:
                    raise NotFound("Exam attempt not found.", details={"attempt_id": attempt_id})
                if attempt.is_completed:
                    raise AttemptFinalized("Cannot record answers for a submitted attempt.")

                question = crud_question.get(db, id=question_id)
                if not question:
                    raise NotFound("Question not found.", details={"question_id": question_id})
                if question.exam_id != attempt.exam_id:
                    raise ValidationError(
                        "Question does not belong to this exam attempt.",
                        details={"question_id": question_id, "attempt_id": attempt_id},
                    )
            except ExamPlatformError:
                db.rollback()
                raise

            is_correct = option == question.correct_answer.upper()
            answer = crud_student_answer.upsert(
                db,
                attempt_id=attempt_id,
                question_id=question_id,
                selected_answer=option,
                is_correct=is_correct,
            )
            db.commit()

        logger.debug(f"Recorded answer {option} for question {question_id} on attempt {attempt_id}")
        return answer

    @translate_storage_errors
    def get_answers_for_attempt(self, db: Session, attempt_id: int) -> Dict[int, str]:
        return crud_student_answer.get_answer_map(db, attempt_id=attempt_id)


student_answer_service = StudentAnswerService()
