import pytest
from decimal import Decimal

from app.core.exceptions import NotFound
from app.schemas.exam import ExamUpdate
from app.services.exam import exam_service


@pytest.fixture
def four_question_exam(exam_factory, question_factory):
    exam = exam_factory(total_questions=4)
    questions = question_factory(exam, count=4, correct_answer="A")
    return exam, questions


def sit(db_session, services, student, exam, questions, choices):
    attempt = services.attempts.start_attempt(db_session, student_id=student.id, exam_id=exam.id)
    for question, choice in zip(questions, choices):
        if choice is not None:
            services.answers.record_answer(db_session, attempt.id, question.id, choice)
    return services.scoring.finalize_attempt(db_session, attempt.id)


def test_statistics_without_attempts_are_zero(db_session, services, four_question_exam):
    exam, _ = four_question_exam

    stats = services.reports.get_result_statistics(db_session, exam.id)

    assert stats.total_attempts == 0
    assert stats.average_score == 0
    assert stats.pass_rate == 0
    assert stats.pass_mark == Decimal("2")


def test_statistics_over_completed_attempts(db_session, services, student_factory, four_question_exam):
    exam, questions = four_question_exam
    sit(db_session, services, student_factory(), exam, questions, ["A", "A", "A", "A"])
    sit(db_session, services, student_factory(), exam, questions, ["A", "A", None, None])
    sit(db_session, services, student_factory(), exam, questions, ["B", "B", "B", "B"])
    services.attempts.start_attempt(db_session, student_id=student_factory().id, exam_id=exam.id)

    stats = services.reports.get_result_statistics(db_session, exam.id)

    assert stats.total_attempts == 3
    assert stats.highest_score == Decimal("4")
    assert stats.lowest_score == Decimal("-1")
    assert stats.average_score == Decimal("1.6667")
    assert stats.pass_count == 2
    assert stats.pass_rate == Decimal("66.67")


def test_statistics_pass_mark_follows_each_attempts_total(db_session, services, student_factory, four_question_exam):
    exam, questions = four_question_exam
    sit(db_session, services, student_factory(), exam, questions, ["A", None, None, None])

    exam_service.update_exam_settings(db_session, exam.id, ExamUpdate(total_questions=2))
    stats = services.reports.get_result_statistics(db_session, exam.id)

    assert stats.pass_mark == Decimal("1")
    assert stats.pass_count == 0


def test_statistics_for_unknown_exam(db_session, services):
    with pytest.raises(NotFound):
        services.reports.get_result_statistics(db_session, 99999)
