from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.models.student import Student
from app.schemas.exam_attempt import ScoreSummary
from app.schemas.response import APIResponse
from app.schemas.student_answer import StudentAnswer, StudentAnswerCreate
from app.services.exam_session import ExamSessionService
from app.utils import deps

router = APIRouter()

@router.post("/{attempt_id}/answers", response_model=APIResponse[StudentAnswer])
async def record_answer(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int,
    answer_in: StudentAnswerCreate,
    student: Student = Depends(deps.get_current_student),
    session_service: ExamSessionService = Depends(deps.get_exam_session_service)
):
    session_service.attempts.get_attempt_for_student(db, attempt_id, student.id)
    answer = await session_service.answer(
        db, attempt_id, question_id=answer_in.question_id, selected_answer=answer_in.selected_answer
    )
    return APIResponse(message="Answer saved", data=StudentAnswer.model_validate(answer))


@router.post("/{attempt_id}/submit", response_model=APIResponse[ScoreSummary])
async def submit_attempt(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int,
    student: Student = Depends(deps.get_current_student),
    session_service: ExamSessionService = Depends(deps.get_exam_session_service)
):
    session_service.attempts.get_attempt_for_student(db, attempt_id, student.id)
    summary = await session_service.submit(db, attempt_id)
    return APIResponse(message="Test submitted successfully", data=summary)


@router.get("/{attempt_id}/result", response_model=APIResponse[ScoreSummary])
def get_attempt_result(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int,
    student: Student = Depends(deps.get_current_student),
    session_service: ExamSessionService = Depends(deps.get_exam_session_service)
):
    session_service.attempts.get_attempt_for_student(db, attempt_id, student.id)
    summary = session_service.scoring.get_summary(db, attempt_id)
    return APIResponse(message="Result retrieved successfully", data=summary)
