import threading
import pytest
from decimal import Decimal

from app.core.exceptions import AttemptFinalized, NotFound, ValidationError
from app.models.exam import Exam
from app.models.exam_attempt import ExamAttempt
from app.schemas.exam import ExamUpdate
from app.services.exam import exam_service
from app.services.scoring import MarkingScheme, ScoringService, SlotTally


def answer_questions(db_session, services, attempt, questions, choices):
    for question, choice in zip(questions, choices):
        if choice is not None:
            services.answers.record_answer(db_session, attempt.id, question.id, choice)


@pytest.fixture
def forty_question_attempt(db_session, services, student_factory, exam_factory, question_factory):
    student = student_factory()
    exam = exam_factory(total_questions=40)
    questions = question_factory(exam, count=40, correct_answer="A")
    attempt = services.attempts.start_attempt(db_session, student_id=student.id, exam_id=exam.id)
    return attempt, questions


def test_compute_score_uses_marking_scheme():
    scoring = ScoringService(marking_scheme=MarkingScheme())
    assert scoring.compute_score(SlotTally(correct=10, incorrect=5, unattempted=25)) == Decimal("8.75")


def test_compute_score_with_custom_scheme():
    scheme = MarkingScheme(correct_answer=Decimal("4"), incorrect_answer=Decimal("-1"), unanswered=Decimal("0"))
    scoring = ScoringService(marking_scheme=scheme)
    assert scoring.compute_score(SlotTally(correct=3, incorrect=2, unattempted=1)) == Decimal("10")


def test_finalize_scores_ten_correct_five_wrong(db_session, services, forty_question_attempt):
    attempt, questions = forty_question_attempt
    choices = ["A"] * 10 + ["B"] * 5
    answer_questions(db_session, services, attempt, questions, choices)

    summary = services.scoring.finalize_attempt(db_session, attempt.id)

    assert summary.score == Decimal("8.75")
    assert summary.correct == 10
    assert summary.incorrect == 5
    assert summary.unattempted == 25
    assert summary.attempted == 15
    assert summary.total_questions == 40
    assert summary.submitted_at is not None

    stored = db_session.get(ExamAttempt, attempt.id)
    db_session.refresh(stored)
    assert stored.is_completed is True
    assert stored.score == Decimal("8.75")


def test_finalize_with_no_answers_scores_zero(db_session, services, forty_question_attempt):
    attempt, _ = forty_question_attempt

    summary = services.scoring.finalize_attempt(db_session, attempt.id)

    assert summary.score == 0
    assert summary.unattempted == 40
    assert summary.attempted == 0


def test_all_wrong_scores_negative(db_session, services, forty_question_attempt):
    attempt, questions = forty_question_attempt
    answer_questions(db_session, services, attempt, questions, ["D"] * 40)

    summary = services.scoring.finalize_attempt(db_session, attempt.id)

    assert summary.score == Decimal("-10")


def test_overwritten_answer_counts_once(db_session, services, forty_question_attempt):
    attempt, questions = forty_question_attempt
    services.answers.record_answer(db_session, attempt.id, questions[0].id, "B")
    services.answers.record_answer(db_session, attempt.id, questions[0].id, "A")

    summary = services.scoring.finalize_attempt(db_session, attempt.id)

    assert summary.correct == 1
    assert summary.incorrect == 0
    assert summary.score == Decimal("1")


def test_missing_question_slots_count_as_unattempted(db_session, services, student_factory, exam_factory, question_factory):
    student = student_factory()
    exam = exam_factory(total_questions=5)
    questions = question_factory(exam, count=3, correct_answer="C")
    attempt = services.attempts.start_attempt(db_session, student_id=student.id, exam_id=exam.id)
    answer_questions(db_session, services, attempt, questions, ["C", "C", "C"])

    summary = services.scoring.finalize_attempt(db_session, attempt.id)

    assert summary.correct == 3
    assert summary.unattempted == 2
    assert summary.attempted + summary.unattempted == 5


def test_answers_beyond_total_questions_are_ignored(db_session, services, student_factory, exam_factory, question_factory):
    student = student_factory()
    exam = exam_factory(total_questions=2)
    questions = question_factory(exam, count=3, correct_answer="A")
    attempt = services.attempts.start_attempt(db_session, student_id=student.id, exam_id=exam.id)
    answer_questions(db_session, services, attempt, questions, ["A", "A", "A"])

    summary = services.scoring.finalize_attempt(db_session, attempt.id)

    assert summary.correct == 2
    assert summary.total_questions == 2
    assert summary.score == Decimal("2")


def test_second_finalize_returns_stored_summary_without_recomputing(db_session, services, forty_question_attempt, monkeypatch):
    attempt, questions = forty_question_attempt
    answer_questions(db_session, services, attempt, questions, ["A"] * 10 + ["B"] * 5)
    first = services.scoring.finalize_attempt(db_session, attempt.id)

    def fail_compute(tally):
        raise AssertionError("score recomputed for a finalized attempt")

    monkeypatch.setattr(services.scoring, "compute_score", fail_compute)
    second = services.scoring.finalize_attempt(db_session, attempt.id)

    assert second == first


def test_strict_finalize_raises_with_stored_summary(db_session, services, forty_question_attempt):
    attempt, questions = forty_question_attempt
    answer_questions(db_session, services, attempt, questions, ["A"] * 4)
    first = services.scoring.finalize_attempt(db_session, attempt.id)

    with pytest.raises(AttemptFinalized) as exc_info:
        services.scoring.finalize_attempt(db_session, attempt.id, strict=True)

    assert exc_info.value.summary == first
    assert exc_info.value.details["summary"]["correct"] == 4


def test_concurrent_finalize_scores_exactly_once(services, session_factory, forty_question_attempt, db_session, monkeypatch):
    attempt, questions = forty_question_attempt
    answer_questions(db_session, services, attempt, questions, ["A"] * 10 + ["B"] * 5)

    calls = []
    original_compute = services.scoring.compute_score

    def counting_compute(tally):
        calls.append(tally)
        return original_compute(tally)

    monkeypatch.setattr(services.scoring, "compute_score", counting_compute)

    barrier = threading.Barrier(2)
    results, errors = [], []

    def finalize():
        db = session_factory()
        try:
            barrier.wait()
            results.append(services.scoring.finalize_attempt(db, attempt.id))
        except Exception as exc:
            errors.append(exc)
        finally:
            db.close()

    threads = [threading.Thread(target=finalize) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert errors == []
    assert len(calls) == 1
    assert len(results) == 2
    assert results[0] == results[1]
    assert results[0].score == Decimal("8.75")


def test_get_summary_requires_completed_attempt(db_session, services, forty_question_attempt):
    attempt, _ = forty_question_attempt

    with pytest.raises(ValidationError):
        services.scoring.get_summary(db_session, attempt.id)
    with pytest.raises(NotFound):
        services.scoring.get_summary(db_session, attempt.id + 999)

    summary = services.scoring.finalize_attempt(db_session, attempt.id)
    assert services.scoring.get_summary(db_session, attempt.id) == summary


def test_finalized_summary_survives_total_questions_change(db_session, services, forty_question_attempt):
    attempt, questions = forty_question_attempt
    answer_questions(db_session, services, attempt, questions, ["A"] * 10)
    first = services.scoring.finalize_attempt(db_session, attempt.id)

    exam_service.update_exam_settings(db_session, attempt.exam_id, ExamUpdate(total_questions=20))
    second = services.scoring.finalize_attempt(db_session, attempt.id)

    assert second == first
    assert second.total_questions == 40
    assert second.correct == 10
    assert second.unattempted == 30
    assert services.scoring.get_summary(db_session, attempt.id) == first


def test_finalized_summary_survives_questions_added_ahead_of_slots(db_session, services, forty_question_attempt, question_factory):
    attempt, questions = forty_question_attempt
    answer_questions(db_session, services, attempt, questions, ["A"] * 10 + ["B"] * 5)
    first = services.scoring.finalize_attempt(db_session, attempt.id)

    exam = db_session.get(Exam, attempt.exam_id)
    question_factory(exam, count=5, correct_answer="D", start_order=-10)

    assert services.scoring.get_summary(db_session, attempt.id) == first
    assert first.score == Decimal("8.75")
    assert first.attempted == 15
