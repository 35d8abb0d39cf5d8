import logging
from typing import List

from sqlalchemy.orm import Session

from app.core.clock import as_utc
from app.core.decorators import translate_storage_errors
from app.core.exceptions import NotFound, ValidationError
from app.crud.exam import exam as crud_exam
from app.crud.question import question as crud_question
from app.models.exam import Exam as ExamModel
from app.models.question import Question
from app.schemas.exam import Exam, ExamCreate, ExamUpdate, ExamWithQuestions
from app.schemas.question import Question as QuestionSchema, QuestionCreate

logger = logging.getLogger(__name__)


class ExamService:

    def _get_exam(self, db: Session, exam_id: int) -> ExamModel:
        exam = crud_exam.get(db, id=exam_id)
        if not exam:
            raise NotFound("Test not found.", details={"exam_id": exam_id})
        return exam

    @translate_storage_errors
    def create_exam(self, db: Session, exam_in: ExamCreate) -> ExamModel:
        exam = crud_exam.create(db, obj_in=exam_in)
        logger.info(f"Created exam {exam.id} '{exam.title}'")
        return exam

    @translate_storage_errors
    def update_exam_settings(self, db: Session, exam_id: int, exam_in: ExamUpdate) -> ExamModel:
        exam = self._get_exam(db, exam_id)
        update_data = exam_in.model_dump(exclude_unset=True, exclude_none=True)

        start_time = update_data.get("start_time", exam.start_time)
        end_time = update_data.get("end_time", exam.end_time)
        if start_time and end_time and as_utc(start_time) > as_utc(end_time):
            raise ValidationError("start_time must not be after end_time.")

        updated = crud_exam.update(db, db_obj=exam, obj_in=update_data)
        logger.info(f"Updated settings of exam {exam_id}: {sorted(update_data)}")
        return updated

    @translate_storage_errors
    def add_questions(self, db: Session, exam_id: int, questions_in: List[QuestionCreate]) -> List[Question]:
        if not questions_in:
            raise ValidationError("No questions provided.")
        self._get_exam(db, exam_id)
        return crud_question.create_many(db, exam_id=exam_id, questions_in=questions_in)

    @translate_storage_errors
    def get_current_exam(self, db: Session) -> ExamModel:
        exam = crud_exam.get_latest(db)
        if not exam:
            raise NotFound("No test has been configured yet.")
        return exam

    @translate_storage_errors
    def get_active_exam(self, db: Session) -> ExamModel:
        exam = crud_exam.get_active(db)
        if not exam:
            raise NotFound("No active test available at the moment.")
        return exam

    @translate_storage_errors
    def get_active_exam_for_student(self, db: Session) -> ExamWithQuestions:
        """The active exam with the questions a student sits, correct answers stripped."""
        exam = self.get_active_exam(db)
        slots = crud_question.get_slots(db, exam_id=exam.id, total_questions=exam.total_questions)
        exam_out = Exam.model_validate(exam).model_dump()
        return ExamWithQuestions(**exam_out, questions=[QuestionSchema.model_validate(q) for q in slots])


exam_service = ExamService()
