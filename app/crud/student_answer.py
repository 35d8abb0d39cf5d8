from typing import Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.student_answer import StudentAnswer
from app.schemas.student_answer import StudentAnswerCreate

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

class CRUDStudentAnswer(CRUDBase[StudentAnswer, StudentAnswerCreate, StudentAnswerCreate]):

    def get_by_attempt_and_question(self, db: Session, attempt_id: int, question_id: int) -> Optional[StudentAnswer]:
        return (
            db.query(StudentAnswer)
            .filter(StudentAnswer.attempt_id == attempt_id)
            .filter(StudentAnswer.question_id == question_id)
            .populate_existing()
            .first()
        )

    def get_all_by_attempt(self, db: Session, attempt_id: int) -> List[StudentAnswer]:
        return (
            db.query(StudentAnswer)
            .filter(StudentAnswer.attempt_id == attempt_id)
            .populate_existing()
            .all()
        )

    def get_answer_map(self, db: Session, attempt_id: int) -> Dict[int, str]:
        rows = (
            db.query(StudentAnswer.question_id, StudentAnswer.selected_answer)
            .filter(StudentAnswer.attempt_id == attempt_id)
            .all()
        )
        return {question_id: selected for question_id, selected in rows}

    def upsert(
        self, db: Session, *, attempt_id: int, question_id: int, selected_answer: str, is_correct: bool
    ) -> StudentAnswer:
        """Insert or overwrite the answer keyed by (attempt_id, question_id). Does not commit."""
        insert = _UPSERT_INSERTS.get(db.get_bind().dialect.name)
        if insert is None:
            return self._upsert_by_lookup(
                db, attempt_id=attempt_id, question_id=question_id,
                selected_answer=selected_answer, is_correct=is_correct,
            )

        stmt = insert(StudentAnswer).values(
            attempt_id=attempt_id,
            question_id=question_id,
            selected_answer=selected_answer,
            is_correct=is_correct,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[StudentAnswer.attempt_id, StudentAnswer.question_id],
            set_={
                "selected_answer": stmt.excluded.selected_answer,
                "is_correct": stmt.excluded.is_correct,
                "updated_at": func.now(),
            },
        )
        db.execute(stmt)
        return self.get_by_attempt_and_question(db, attempt_id=attempt_id, question_id=question_id)

    def _upsert_by_lookup(
        self, db: Session, *, attempt_id: int, question_id: int, selected_answer: str, is_correct: bool
    ) -> StudentAnswer:
        existing = self.get_by_attempt_and_question(db, attempt_id=attempt_id, question_id=question_id)
        if existing:
            existing.selected_answer = selected_answer
            existing.is_correct = is_correct
            db.add(existing)
            db.flush()
            return existing
        db_obj = StudentAnswer(
            attempt_id=attempt_id,
            question_id=question_id,
            selected_answer=selected_answer,
            is_correct=is_correct,
        )
        db.add(db_obj)
        db.flush()
        return db_obj


student_answer = CRUDStudentAnswer(StudentAnswer)
