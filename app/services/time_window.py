from datetime import datetime

from app.core.clock import as_utc
from app.core.constants import AdmissionDenialReasonEnum
from app.core.exceptions import ValidationError
from app.schemas.exam import Admission


def is_admissible(exam, now: datetime) -> Admission:
    """Whether ``exam`` may be started at ``now``.

    Admissible iff the exam is active and ``start_time <= now <= end_time``
    (both bounds inclusive). Denials are reported as ``inactive``,
    ``not-yet-started`` or ``expired``, checked in that order.
    """
    if not isinstance(now, datetime):
        raise ValidationError("now must be a datetime.", details={"now": repr(now)})
    if exam.start_time is None or exam.end_time is None:
        raise ValidationError("Test has no configured time window.", details={"exam_id": exam.id})

    start_time = as_utc(exam.start_time)
    end_time = as_utc(exam.end_time)
    if start_time > end_time:
        raise ValidationError("Test window starts after it ends.", details={"exam_id": exam.id})

    if not exam.is_active:
        return Admission(admissible=False, reason=AdmissionDenialReasonEnum.INACTIVE)

    now = as_utc(now)
    if now < start_time:
        return Admission(admissible=False, reason=AdmissionDenialReasonEnum.NOT_YET_STARTED)
    if now > end_time:
        return Admission(admissible=False, reason=AdmissionDenialReasonEnum.EXPIRED)
    return Admission(admissible=True)
