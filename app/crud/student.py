from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.student import Student
from app.schemas.student import StudentCreate

class CRUDStudent(CRUDBase[Student, StudentCreate, StudentCreate]):
    def get_by_credentials(self, db: Session, *, email: str, enrollment_number: str) -> Optional[Student]:
        return (
            db.query(Student)
            .filter(Student.email == email)
            .filter(Student.enrollment_number == enrollment_number)
            .first()
        )

    def exists_with_email_or_enrollment(self, db: Session, *, email: str, enrollment_number: str) -> bool:
        return (
            db.query(Student.id)
            .filter(or_(Student.email == email, Student.enrollment_number == enrollment_number))
            .first()
            is not None
        )

student = CRUDStudent(Student)
