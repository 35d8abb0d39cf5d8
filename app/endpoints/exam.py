from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.models.student import Student
from app.schemas.exam import Admission, ExamWithQuestions
from app.schemas.exam_attempt import SessionStatus
from app.schemas.response import APIResponse
from app.services.exam import exam_service
from app.services.exam_session import ExamSessionService
from app.utils import deps

router = APIRouter()

@router.get("/active", response_model=APIResponse[ExamWithQuestions])
def get_active_exam(
    db: Session = Depends(deps.get_db),
    student: Student = Depends(deps.get_current_student)
):
    exam = exam_service.get_active_exam_for_student(db)
    return APIResponse(message="Active test retrieved successfully", data=exam)


@router.get("/{exam_id}/admission", response_model=APIResponse[Admission])
def check_admission(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int,
    student: Student = Depends(deps.get_current_student),
    session_service: ExamSessionService = Depends(deps.get_exam_session_service)
):
    admission = session_service.attempts.check_admission(db, exam_id)
    return APIResponse(message="Admission checked", data=admission)


@router.get("/{exam_id}/session", response_model=APIResponse[SessionStatus])
def get_session_status(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int,
    student: Student = Depends(deps.get_current_student),
    session_service: ExamSessionService = Depends(deps.get_exam_session_service)
):
    session_status = session_service.get_status(db, student_id=student.id, exam_id=exam_id)
    return APIResponse(message="Session status retrieved successfully", data=session_status)


@router.post("/{exam_id}/attempts", response_model=APIResponse[SessionStatus], status_code=status.HTTP_201_CREATED)
async def start_attempt(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int,
    student: Student = Depends(deps.get_current_student),
    session_service: ExamSessionService = Depends(deps.get_exam_session_service)
):
    session_status = await session_service.begin(db, student_id=student.id, exam_id=exam_id)
    return APIResponse(message="Test started successfully", data=session_status)
