from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime

from app.core.constants import ANSWER_OPTIONS

class QuestionBase(BaseModel):
    question_text: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    section: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[str] = None
    question_order: int = Field(default=0, ge=0)

class QuestionCreate(QuestionBase):
    correct_answer: str
    explanation: Optional[str] = None

    @field_validator("correct_answer")
    @classmethod
    def canonicalize_correct_answer(cls, v: str) -> str:
        option = (v or "").strip().upper()
        if option not in ANSWER_OPTIONS:
            raise ValueError("correct_answer must be one of A, B, C or D.")
        return option

class Question(QuestionBase):
    """Question as shown to a student: no correct answer, no explanation."""
    id: int
    exam_id: int

    model_config = ConfigDict(from_attributes=True)

class QuestionWithAnswer(Question):
    correct_answer: str
    explanation: Optional[str] = None
    created_at: Optional[datetime] = None
