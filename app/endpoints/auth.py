from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.schemas.response import APIResponse
from app.schemas.student import StudentCreate, StudentLogin
from app.schemas.token import AdminLogin, StudentLoginResponse, Token
from app.services.auth import auth_service
from app.utils import deps

router = APIRouter()

@router.post("/register", response_model=APIResponse[StudentLoginResponse], status_code=status.HTTP_201_CREATED)
def register_student(
    *,
    db: Session = Depends(deps.get_db),
    student_in: StudentCreate
):
    result = auth_service.register_student(db, student_in=student_in)
    return APIResponse(message="Registration successful", data=result)


@router.post("/login", response_model=APIResponse[StudentLoginResponse])
def login_student(
    *,
    db: Session = Depends(deps.get_db),
    credentials: StudentLogin
):
    result = auth_service.login_student(
        db, email=credentials.email, enrollment_number=credentials.enrollment_number
    )
    return APIResponse(message="Login successful", data=result)


@router.post("/admin/login", response_model=APIResponse[Token])
def login_admin(*, credentials: AdminLogin):
    token = auth_service.login_admin(access_code=credentials.access_code)
    return APIResponse(message="Admin login successful", data=token)
