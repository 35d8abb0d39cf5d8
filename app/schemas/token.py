from pydantic import BaseModel
from typing import Optional

from app.core.constants import RoleEnum
from app.schemas.student import Student

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

class TokenPayload(BaseModel):
    sub: str
    role: RoleEnum
    student_id: Optional[int] = None

class AdminLogin(BaseModel):
    access_code: str

class StudentLoginResponse(BaseModel):
    token: Token
    student: Student
