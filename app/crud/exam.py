from typing import Optional
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.exam import Exam
from app.schemas.exam import ExamCreate, ExamUpdate


class CRUDExam(CRUDBase[Exam, ExamCreate, ExamUpdate]):

    def get_active(self, db: Session) -> Optional[Exam]:
        return (
            db.query(Exam)
            .filter(Exam.is_active.is_(True))
            .order_by(Exam.created_at.desc(), Exam.id.desc())
            .first()
        )

    def get_latest(self, db: Session) -> Optional[Exam]:
        return db.query(Exam).order_by(Exam.created_at.desc(), Exam.id.desc()).first()

exam = CRUDExam(Exam)
