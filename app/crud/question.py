from typing import List
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.question import Question
from app.schemas.question import QuestionCreate

class CRUDQuestion(CRUDBase[Question, QuestionCreate, QuestionCreate]):
    def get_slots(self, db: Session, *, exam_id: int, total_questions: int) -> List[Question]:
        """The first ``total_questions`` questions of an exam, in display order."""
        return (
            db.query(self.model)
            .filter(self.model.exam_id == exam_id)
            .order_by(self.model.question_order.asc(), self.model.id.asc())
            .limit(total_questions)
            .all()
        )

    def create_many(self, db: Session, *, exam_id: int, questions_in: List[QuestionCreate]) -> List[Question]:
        db_objs = [Question(exam_id=exam_id, **q.model_dump()) for q in questions_in]
        db.add_all(db_objs)
        db.commit()
        for db_obj in db_objs:
            db.refresh(db_obj)
        return db_objs

question = CRUDQuestion(Question)
