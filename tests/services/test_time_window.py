import pytest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from app.core.exceptions import ValidationError
from app.services.time_window import is_admissible

START = datetime(2025, 1, 20, 9, 0, tzinfo=timezone.utc)
END = datetime(2025, 1, 20, 18, 0, tzinfo=timezone.utc)


def make_exam(**overrides):
    data = {"id": 1, "start_time": START, "end_time": END, "is_active": True}
    data.update(overrides)
    return SimpleNamespace(**data)


def test_inside_window_is_admissible():
    admission = is_admissible(make_exam(), START + timedelta(hours=1))
    assert admission.admissible is True
    assert admission.reason is None


@pytest.mark.parametrize("now", [START, END])
def test_window_bounds_are_inclusive(now):
    assert is_admissible(make_exam(), now).admissible is True


def test_before_start_is_not_yet_started():
    admission = is_admissible(make_exam(), START - timedelta(seconds=1))
    assert admission.admissible is False
    assert admission.reason == "not-yet-started"


def test_after_end_is_expired():
    admission = is_admissible(make_exam(), END + timedelta(seconds=1))
    assert admission.admissible is False
    assert admission.reason == "expired"


def test_inactive_is_reported_before_window_checks():
    exam = make_exam(is_active=False)
    assert is_admissible(exam, START + timedelta(hours=1)).reason == "inactive"
    assert is_admissible(exam, END + timedelta(days=1)).reason == "inactive"


def test_naive_store_datetimes_are_treated_as_utc():
    exam = make_exam(start_time=START.replace(tzinfo=None), end_time=END.replace(tzinfo=None))
    assert is_admissible(exam, START).admissible is True


def test_rejects_non_datetime_now():
    with pytest.raises(ValidationError):
        is_admissible(make_exam(), "2025-01-20T10:00:00Z")


def test_rejects_missing_bounds():
    with pytest.raises(ValidationError):
        is_admissible(make_exam(end_time=None), START)


def test_rejects_inverted_window():
    with pytest.raises(ValidationError):
        is_admissible(make_exam(start_time=END, end_time=START), START)
