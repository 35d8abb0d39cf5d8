from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime

from app.core.constants import AdmissionDenialReasonEnum
from app.schemas.question import Question

class ExamBase(BaseModel):
    title: str = "Online Test"
    start_time: datetime
    end_time: datetime
    duration_minutes: int = Field(default=60, gt=0)
    total_questions: int = Field(default=40, gt=0)
    is_active: bool = False

    model_config = ConfigDict(use_enum_values=True)

class ExamCreate(ExamBase):

    @model_validator(mode="after")
    def check_window(self):
        if self.start_time > self.end_time:
            raise ValueError("start_time must not be after end_time.")
        return self

    model_config = ConfigDict(
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "title": "Mock Placement Drive - Aptitude Round",
                "start_time": "2025-01-20T09:00:00Z",
                "end_time": "2025-01-20T18:00:00Z",
                "duration_minutes": 60,
                "total_questions": 40,
                "is_active": True
            }
        },
    )

class ExamUpdate(BaseModel):
    title: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    total_questions: Optional[int] = Field(default=None, gt=0)
    is_active: Optional[bool] = None

    @field_validator("title", "start_time", "end_time", "duration_minutes", "total_questions", "is_active", mode="before")
    @classmethod
    def reject_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null; omit it to keep the current value.")
        return value

    @model_validator(mode="after")
    def check_window(self):
        if self.start_time and self.end_time and self.start_time > self.end_time:
            raise ValueError("start_time must not be after end_time.")
        return self

class Exam(ExamBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ExamWithQuestions(Exam):
    questions: List[Question] = []

class Admission(BaseModel):
    admissible: bool
    reason: Optional[AdmissionDenialReasonEnum] = None

    model_config = ConfigDict(use_enum_values=True)
