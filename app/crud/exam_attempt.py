from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Session, selectinload, joinedload
from typing import List, Optional, Tuple
from sqlalchemy import update

from app.crud.base import CRUDBase
from app.models.exam_attempt import ExamAttempt
from app.schemas.exam_attempt import ExamAttemptCreate

class CRUDExamAttempt(CRUDBase[ExamAttempt, ExamAttemptCreate, ExamAttemptCreate]):

    def _query_with_relationships(self, db: Session):
        return db.query(ExamAttempt).options(
            joinedload(ExamAttempt.exam),
            joinedload(ExamAttempt.student),
        )

    def get(self, db: Session, id: int) -> Optional[ExamAttempt]:
        return self._query_with_relationships(db).filter(ExamAttempt.id == id).first()

    def get_for_update(self, db: Session, id: int) -> Optional[ExamAttempt]:
        """Row-locks the attempt until the surrounding transaction ends (no-op on SQLite)."""
        return (
            db.query(ExamAttempt)
            .filter(ExamAttempt.id == id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_by_student_and_exam(self, db: Session, student_id: int, exam_id: int) -> Optional[ExamAttempt]:
        return (
            db.query(ExamAttempt)
            .filter(ExamAttempt.student_id == student_id)
            .filter(ExamAttempt.exam_id == exam_id)
            .populate_existing()
            .first()
        )

    def mark_completed(
        self, db: Session, *, attempt_id: int, score: Decimal, submitted_at: datetime,
        total_questions: int, correct: int, incorrect: int, unattempted: int,
    ) -> bool:
        """Flips ``is_completed`` and freezes the tally only if nobody else has; True when this call won."""
        result = db.execute(
            update(ExamAttempt)
            .where(ExamAttempt.id == attempt_id)
            .where(ExamAttempt.is_completed.is_(False))
            .values(
                is_completed=True,
                score=score,
                submitted_at=submitted_at,
                total_questions=total_questions,
                correct_count=correct,
                incorrect_count=incorrect,
                unattempted_count=unattempted,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def get_completed(self, db: Session, exam_id: Optional[int] = None, skip: int = 0, limit: int = 500) -> List[ExamAttempt]:
        query = self._query_with_relationships(db).filter(ExamAttempt.is_completed.is_(True))
        if exam_id is not None:
            query = query.filter(ExamAttempt.exam_id == exam_id)
        return (
            query.order_by(ExamAttempt.submitted_at.desc(), ExamAttempt.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_completed_scores(self, db: Session, exam_id: int) -> List[Tuple[Decimal, Optional[int]]]:
        """(score, frozen total_questions) of every completed attempt of an exam."""
        return (
            db.query(ExamAttempt.score, ExamAttempt.total_questions)
            .filter(ExamAttempt.exam_id == exam_id)
            .filter(ExamAttempt.is_completed.is_(True))
            .all()
        )

    def get_in_progress(self, db: Session, exam_id: Optional[int] = None) -> List[ExamAttempt]:
        query = (
            self._query_with_relationships(db)
            .options(selectinload(ExamAttempt.answers))
            .filter(ExamAttempt.is_completed.is_(False))
        )
        if exam_id is not None:
            query = query.filter(ExamAttempt.exam_id == exam_id)
        return query.order_by(ExamAttempt.started_at.desc()).all()


exam_attempt = CRUDExamAttempt(ExamAttempt)
