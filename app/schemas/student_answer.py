from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

class StudentAnswerCreate(BaseModel):
    question_id: int
    selected_answer: str

class StudentAnswer(BaseModel):
    id: int
    attempt_id: int
    question_id: int
    selected_answer: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
