import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

os.environ.setdefault("TESTING", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_ACCESS_CODE", "test-admin-code")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("STORAGE_RETRY_BACKOFF_SECONDS", "0")

import pytest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.database import Base
from app.core.scheduler import CountdownRegistry
from app.core.security import create_access_token
from app.core.constants import RoleEnum
from app.models.exam import Exam
from app.models.question import Question
from app.models.student import Student
from app.services.exam_attempt import ExamAttemptService
from app.services.exam_session import ExamSessionService
from app.services.report import ReportService
from app.services.scoring import ScoringService
from app.services.student_answer import StudentAnswerService
from app.utils import deps as deps_utils
from app.utils.attempt_locks import AttemptLockRegistry
from app.utils.events import EventBus
from tests.helpers.clock import FrozenClock
import main

test_db_url = settings.TEST_DATABASE_URL or "sqlite:///./test.db"

EXAM_OPENS_AT = datetime(2025, 1, 20, 9, 0, tzinfo=timezone.utc)
EXAM_CLOSES_AT = datetime(2025, 1, 20, 18, 0, tzinfo=timezone.utc)

@pytest.fixture(scope="session")
def database_engine():
    if test_db_url.startswith("sqlite"):
        engine = create_engine(test_db_url, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(test_db_url)
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()
    if test_db_url.startswith("sqlite") and os.path.exists("./test.db"):
        os.remove("./test.db")

@pytest.fixture(scope="function")
def session_factory(database_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=database_engine)

@pytest.fixture(scope="function")
def db_session(database_engine, session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        with database_engine.begin() as conn:
            for table in reversed(Base.metadata.sorted_tables):
                conn.execute(table.delete())

@pytest.fixture
def clock():
    return FrozenClock(datetime(2025, 1, 20, 10, 0, tzinfo=timezone.utc))

@pytest.fixture
def services(clock, session_factory):
    """Service graph wired to the frozen clock, a private event bus and an idle countdown registry."""
    locks = AttemptLockRegistry()
    events = EventBus()
    attempts = ExamAttemptService(clock=clock)
    answers = StudentAnswerService(locks=locks)
    scoring = ScoringService(clock=clock, locks=locks)
    countdowns = CountdownRegistry(scheduler=None)
    session = ExamSessionService(
        attempts=attempts,
        answers=answers,
        scoring=scoring,
        clock=clock,
        countdowns=countdowns,
        session_factory=session_factory,
        events=events,
    )
    return SimpleNamespace(
        attempts=attempts,
        answers=answers,
        scoring=scoring,
        countdowns=countdowns,
        events=events,
        session=session,
        reports=ReportService(attempts=attempts, clock=clock),
    )

@pytest.fixture(scope="function")
def client(db_session, services):
    main.app.dependency_overrides[deps_utils.get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_exam_session_service] = lambda: services.session
    main.app.dependency_overrides[deps_utils.get_report_service] = lambda: services.reports
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()

@pytest.fixture
def student_factory(db_session):
    counter = {"n": 0}

    def _student_factory(name="Test Student", email=None, enrollment_number=None):
        counter["n"] += 1
        student = Student(
            name=name,
            email=email or f"student{counter['n']}@test.com",
            enrollment_number=enrollment_number or f"ENR{counter['n']:04d}",
        )
        db_session.add(student)
        db_session.commit()
        db_session.refresh(student)
        return student
    return _student_factory

@pytest.fixture
def exam_factory(db_session):
    def _exam_factory(**overrides):
        data = {
            "title": "Aptitude Test",
            "start_time": EXAM_OPENS_AT,
            "end_time": EXAM_CLOSES_AT,
            "duration_minutes": 60,
            "total_questions": 40,
            "is_active": True,
        }
        data.update(overrides)
        exam = Exam(**data)
        db_session.add(exam)
        db_session.commit()
        db_session.refresh(exam)
        return exam
    return _exam_factory

@pytest.fixture
def question_factory(db_session):
    def _question_factory(exam, count=1, correct_answer="A", start_order=1):
        questions = []
        for offset in range(count):
            order = start_order + offset
            questions.append(Question(
                exam_id=exam.id,
                question_text=f"Question {order}",
                option_a="Option A",
                option_b="Option B",
                option_c="Option C",
                option_d="Option D",
                correct_answer=correct_answer,
                section="Quantitative",
                question_order=order,
            ))
        db_session.add_all(questions)
        db_session.commit()
        for question in questions:
            db_session.refresh(question)
        return questions
    return _question_factory

@pytest.fixture
def student_token():
    def _student_token(student):
        return create_access_token(
            data={"role": RoleEnum.STUDENT.value, "student_id": student.id},
            subject=str(student.id),
        )
    return _student_token

@pytest.fixture
def admin_headers():
    token = create_access_token(data={"role": RoleEnum.ADMIN.value}, subject="admin")
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def expired_window():
    return {"start_time": EXAM_OPENS_AT - timedelta(days=2), "end_time": EXAM_OPENS_AT - timedelta(days=1)}
