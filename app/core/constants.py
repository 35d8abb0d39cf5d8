from enum import Enum


ANSWER_OPTIONS = ("A", "B", "C", "D")

class RoleEnum(str, Enum):
    ADMIN = "admin"
    STUDENT = "student"

class ExamSessionStateEnum(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

class AdmissionDenialReasonEnum(str, Enum):
    NOT_YET_STARTED = "not-yet-started"
    EXPIRED = "expired"
    INACTIVE = "inactive"

class AnswerOutcomeEnum(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    UNATTEMPTED = "unattempted"


ATTEMPT_FINALIZED_EVENT = "attempt_finalized"
ADMIN_ROOM = "admins"
