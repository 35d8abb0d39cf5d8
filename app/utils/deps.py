from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.constants import RoleEnum
from app.core.database import SessionLocal
from app.core.security import decode_access_token
from app.crud.student import student as crud_student
from app.models.student import Student
from app.schemas.token import TokenPayload
from app.services.exam_session import ExamSessionService, exam_session_service
from app.services.report import ReportService, report_service

http_bearer = HTTPBearer()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_exam_session_service() -> ExamSessionService:
    return exam_session_service

def get_report_service() -> ReportService:
    return report_service

def get_token_payload(
    credentials: HTTPAuthorizationCredentials = Depends(http_bearer)
) -> TokenPayload:
    payload = decode_access_token(credentials.credentials)
    try:
        return TokenPayload(**payload)
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

def get_current_student(
    db: Session = Depends(get_db),
    token_data: TokenPayload = Depends(get_token_payload)
) -> Student:
    if token_data.role != RoleEnum.STUDENT or token_data.student_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Student access required",
        )

    student = crud_student.get(db, id=token_data.student_id)
    if not student:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Student not found"
        )
    return student

def require_admin(token_data: TokenPayload = Depends(get_token_payload)) -> TokenPayload:
    """Dependency that only lets admin tokens through."""
    if token_data.role != RoleEnum.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return token_data
