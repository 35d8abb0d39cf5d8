import logging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.constants import RoleEnum
from app.core.decorators import translate_storage_errors
from app.core.exceptions import Conflict, Unauthorized
from app.core.security import AccessCodeVerifier, admin_code_verifier, create_access_token
from app.crud.student import student as crud_student
from app.models.student import Student
from app.schemas.student import Student as StudentSchema, StudentCreate
from app.schemas.token import StudentLoginResponse, Token

logger = logging.getLogger(__name__)

DUPLICATE_STUDENT_MESSAGE = "Email or enrollment number already exists"


class AuthService:

    def __init__(self, verifier: AccessCodeVerifier = admin_code_verifier):
        self.verifier = verifier

    def _student_token(self, student: Student) -> Token:
        access_token = create_access_token(
            data={"role": RoleEnum.STUDENT.value, "student_id": student.id},
            subject=str(student.id),
        )
        return Token(access_token=access_token)

    @translate_storage_errors
    def register_student(self, db: Session, *, student_in: StudentCreate) -> StudentLoginResponse:
        email = student_in.email.lower()
        if crud_student.exists_with_email_or_enrollment(
            db, email=email, enrollment_number=student_in.enrollment_number
        ):
            raise Conflict(DUPLICATE_STUDENT_MESSAGE)

        try:
            student = crud_student.create(db, obj_in={
                "name": student_in.name,
                "email": email,
                "enrollment_number": student_in.enrollment_number,
            })
        except IntegrityError:
            db.rollback()
            raise Conflict(DUPLICATE_STUDENT_MESSAGE)

        logger.info(f"Registered student {student.id} ({student.enrollment_number})")
        return StudentLoginResponse(token=self._student_token(student), student=StudentSchema.model_validate(student))

    @translate_storage_errors
    def login_student(self, db: Session, *, email: str, enrollment_number: str) -> StudentLoginResponse:
        student = crud_student.get_by_credentials(
            db, email=email.lower(), enrollment_number=enrollment_number.strip()
        )
        if not student:
            raise Unauthorized("Invalid credentials. Please check your email and enrollment number.")
        return StudentLoginResponse(token=self._student_token(student), student=StudentSchema.model_validate(student))

    def login_admin(self, *, access_code: str) -> Token:
        if not self.verifier.verify(access_code):
            logger.warning("Rejected admin login with an invalid access code")
            raise Unauthorized("Invalid admin code")
        access_token = create_access_token(data={"role": RoleEnum.ADMIN.value}, subject="admin")
        return Token(access_token=access_token)


auth_service = AuthService()
