from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.schemas.exam import Exam, ExamCreate, ExamUpdate
from app.schemas.question import QuestionCreate, QuestionWithAnswer
from app.schemas.report import AttemptBreakdown, ExamResultRow, LiveAttemptRow, ResultStatistics
from app.schemas.response import APIResponse
from app.services.exam import exam_service
from app.services.report import ReportService
from app.utils import deps

router = APIRouter(dependencies=[Depends(deps.require_admin)])

@router.post("/exams", response_model=APIResponse[Exam], status_code=status.HTTP_201_CREATED)
def create_exam(
    *,
    db: Session = Depends(deps.get_db),
    exam_in: ExamCreate
):
    exam = exam_service.create_exam(db, exam_in)
    return APIResponse(message="Test created successfully", data=Exam.model_validate(exam))


@router.get("/exams/current", response_model=APIResponse[Exam])
def get_current_exam(db: Session = Depends(deps.get_db)):
    exam = exam_service.get_current_exam(db)
    return APIResponse(message="Current test retrieved successfully", data=Exam.model_validate(exam))


@router.put("/exams/{exam_id}", response_model=APIResponse[Exam])
def update_exam_settings(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int,
    exam_in: ExamUpdate
):
    exam = exam_service.update_exam_settings(db, exam_id, exam_in)
    return APIResponse(message="Settings updated successfully", data=Exam.model_validate(exam))


@router.post("/exams/{exam_id}/questions", response_model=APIResponse[List[QuestionWithAnswer]], status_code=status.HTTP_201_CREATED)
def add_questions(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int,
    questions_in: List[QuestionCreate]
):
    questions = exam_service.add_questions(db, exam_id, questions_in)
    return APIResponse(
        message=f"{len(questions)} questions added successfully",
        data=[QuestionWithAnswer.model_validate(q) for q in questions]
    )


@router.get("/results", response_model=APIResponse[List[ExamResultRow]])
def list_results(
    db: Session = Depends(deps.get_db),
    exam_id: Optional[int] = Query(None),
    skip: int = 0,
    limit: int = 500,
    reports: ReportService = Depends(deps.get_report_service)
):
    results = reports.list_results(db, exam_id=exam_id, skip=skip, limit=limit)
    return APIResponse(message="Results retrieved successfully", data=results)


@router.get("/results/stats", response_model=APIResponse[ResultStatistics])
def get_result_statistics(
    db: Session = Depends(deps.get_db),
    exam_id: Optional[int] = Query(None, description="Defaults to the current test"),
    reports: ReportService = Depends(deps.get_report_service)
):
    if exam_id is None:
        exam_id = exam_service.get_current_exam(db).id
    stats = reports.get_result_statistics(db, exam_id)
    return APIResponse(message="Result statistics retrieved successfully", data=stats)


@router.get("/attempts/live", response_model=APIResponse[List[LiveAttemptRow]])
def list_live_attempts(
    db: Session = Depends(deps.get_db),
    exam_id: Optional[int] = Query(None),
    reports: ReportService = Depends(deps.get_report_service)
):
    attempts = reports.list_live_attempts(db, exam_id=exam_id)
    return APIResponse(message="Live attempts retrieved successfully", data=attempts)


@router.get("/attempts/{attempt_id}", response_model=APIResponse[AttemptBreakdown])
def get_attempt_breakdown(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int,
    reports: ReportService = Depends(deps.get_report_service)
):
    breakdown = reports.get_attempt_breakdown(db, attempt_id)
    return APIResponse(message="Attempt details retrieved successfully", data=breakdown)
