import asyncio
import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.decorators import retry_on_storage_error, translate_storage_errors
from app.core.exceptions import StorageError


class FakeSession:
    def __init__(self):
        self.rollbacks = 0

    def rollback(self):
        self.rollbacks += 1


def test_transient_errors_become_storage_errors_and_roll_back():
    db = FakeSession()

    @translate_storage_errors
    def read(db, attempt_id):
        raise OperationalError("SELECT 1", {}, Exception("connection reset"))

    with pytest.raises(StorageError) as exc_info:
        read(db, 1)

    assert db.rollbacks == 1
    assert exc_info.value.retryable is True
    assert exc_info.value.details == {"operation": "read"}


def test_non_transient_errors_pass_through():
    @translate_storage_errors
    def write(db):
        raise IntegrityError("INSERT", {}, Exception("duplicate"))

    with pytest.raises(IntegrityError):
        write(db=FakeSession())


def test_retry_gives_up_after_configured_attempts():
    calls = []

    @retry_on_storage_error(attempts=3, backoff=0)
    def flaky():
        calls.append(1)
        raise StorageError("down")

    with pytest.raises(StorageError):
        flaky()
    assert len(calls) == 3


def test_retry_returns_first_success():
    outcomes = [StorageError("down"), "ok"]

    @retry_on_storage_error(attempts=3, backoff=0)
    def flaky():
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    assert flaky() == "ok"


def test_retry_does_not_touch_domain_errors():
    calls = []

    @retry_on_storage_error(attempts=3, backoff=0)
    def rejected():
        calls.append(1)
        raise ValueError("bad input")

    with pytest.raises(ValueError):
        rejected()
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_async_retry_backs_off_without_blocking(monkeypatch):
    outcomes = [StorageError("down"), StorageError("down"), "ok"]
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)

    @retry_on_storage_error(attempts=3, backoff=0.5)
    async def flaky():
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    assert await flaky() == "ok"
    assert slept == [0.5, 1.0]
