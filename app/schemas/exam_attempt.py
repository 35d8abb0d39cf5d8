from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict
from datetime import datetime
from decimal import Decimal

from app.core.constants import ExamSessionStateEnum

class ExamAttemptCreate(BaseModel):
    student_id: int
    exam_id: int
    started_at: datetime
    score: Decimal = Decimal("0")
    is_completed: bool = False

class ScoreSummary(BaseModel):
    attempt_id: int
    score: Decimal
    total_questions: int
    attempted: int
    correct: int
    incorrect: int
    unattempted: int
    submitted_at: Optional[datetime] = None

class SessionStatus(BaseModel):
    state: ExamSessionStateEnum
    exam_id: int
    attempt_id: Optional[int] = None
    started_at: Optional[datetime] = None
    remaining_seconds: int = 0
    answers: Dict[int, str] = Field(default_factory=dict)
    result: Optional[ScoreSummary] = None

    model_config = ConfigDict(use_enum_values=True)
