from typing import Any, Dict, Optional
from fastapi import status


class ExamPlatformError(Exception):
    """Base class for errors raised by the exam services.

    Carries enough to render the standard error envelope: a stable ``code``,
    an HTTP ``status_code``, a human-readable ``message`` and optional
    ``details``.
    """
    code = "EXAM_PLATFORM_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST
    retryable = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ExamPlatformError):
    code = "VALIDATION_ERROR"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class NotFound(ExamPlatformError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class TestUnavailable(ExamPlatformError):
    code = "TEST_UNAVAILABLE"
    status_code = status.HTTP_403_FORBIDDEN
    __test__ = False

    def __init__(self, reason, message: Optional[str] = None):
        reason_value = getattr(reason, "value", reason)
        super().__init__(
            message or f"Test is not available: {reason_value}.",
            details={"reason": reason_value},
        )
        self.reason = reason


class AlreadyCompleted(ExamPlatformError):
    code = "ALREADY_COMPLETED"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "You have already completed this test.", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details={"reason": "already-completed", **(details or {})})


class AttemptFinalized(ExamPlatformError):
    code = "ATTEMPT_FINALIZED"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "This attempt has already been submitted.", summary=None):
        details = {"summary": summary.model_dump(mode="json")} if summary is not None else None
        super().__init__(message, details=details)
        self.summary = summary


class StorageError(ExamPlatformError):
    code = "STORAGE_ERROR"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True


class Conflict(ExamPlatformError):
    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class Unauthorized(ExamPlatformError):
    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED
