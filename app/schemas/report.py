from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from app.core.constants import AnswerOutcomeEnum

class ExamResultRow(BaseModel):
    attempt_id: int
    student_id: int
    student_name: str
    student_email: str
    enrollment_number: str
    exam_id: int
    exam_title: str
    score: Decimal
    started_at: datetime
    submitted_at: Optional[datetime] = None

class LiveAttemptRow(BaseModel):
    attempt_id: int
    student_id: int
    student_name: str
    enrollment_number: str
    exam_id: int
    exam_title: str
    started_at: datetime
    answered: int
    remaining_seconds: int

class QuestionBreakdown(BaseModel):
    question_id: int
    question_order: int
    question_text: str
    section: Optional[str] = None
    selected_answer: Optional[str] = None
    correct_answer: str
    outcome: AnswerOutcomeEnum

class AttemptBreakdown(BaseModel):
    result: ExamResultRow
    total_questions: int
    questions: List[QuestionBreakdown]

class ResultStatistics(BaseModel):
    exam_id: int
    exam_title: str
    total_questions: int
    pass_mark: Decimal
    total_attempts: int
    average_score: Decimal
    highest_score: Decimal
    lowest_score: Decimal
    pass_count: int
    pass_rate: Decimal
