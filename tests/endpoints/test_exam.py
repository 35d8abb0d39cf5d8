from datetime import timedelta

from app.schemas.exam import ExamWithQuestions
from tests.helpers.asserts import api_call, assert_error, auth_headers
from tests.helpers.contract import validate_response_schema


class TestStudentExamEndpoints:
    def test_active_exam_hides_correct_answers(self, client, student_factory, exam_factory, question_factory, student_token):
        student = student_factory()
        exam = exam_factory(total_questions=3)
        question_factory(exam, count=3, correct_answer="D")
        exam_factory(title="Draft", is_active=False)

        response = api_call(client, "GET", "/exams/active", headers=auth_headers(student_token(student)))

        data = response.json()["data"]
        validate_response_schema(data, ExamWithQuestions)
        assert data["id"] == exam.id
        assert [q["question_order"] for q in data["questions"]] == [1, 2, 3]
        for question in data["questions"]:
            assert "correct_answer" not in question
            assert "explanation" not in question

    def test_no_active_exam_is_not_found(self, client, student_factory, exam_factory, student_token):
        student = student_factory()
        exam_factory(is_active=False)

        response = client.get("/exams/active", headers=auth_headers(student_token(student)))

        assert_error(response, 404, "NOT_FOUND")

    def test_admission_reports_denial_reason(self, client, clock, student_factory, exam_factory, student_token):
        student = student_factory()
        headers = auth_headers(student_token(student))
        open_exam = exam_factory()
        future_exam = exam_factory(start_time=clock.now() + timedelta(hours=2))

        open_admission = api_call(client, "GET", f"/exams/{open_exam.id}/admission", headers=headers).json()["data"]
        future_admission = api_call(client, "GET", f"/exams/{future_exam.id}/admission", headers=headers).json()["data"]

        assert open_admission == {"admissible": True, "reason": None}
        assert future_admission == {"admissible": False, "reason": "not-yet-started"}

    def test_start_attempt_then_status(self, client, student_factory, exam_factory, question_factory, student_token):
        student = student_factory()
        headers = auth_headers(student_token(student))
        exam = exam_factory(total_questions=2)
        question_factory(exam, count=2)

        before = api_call(client, "GET", f"/exams/{exam.id}/session", headers=headers).json()["data"]
        assert before["state"] == "not_started"

        response = api_call(client, "POST", f"/exams/{exam.id}/attempts", headers=headers)
        assert response.status_code == 201
        started = response.json()["data"]
        assert started["state"] == "in_progress"
        assert started["remaining_seconds"] == 3600

        during = api_call(client, "GET", f"/exams/{exam.id}/session", headers=headers).json()["data"]
        assert during["attempt_id"] == started["attempt_id"]

    def test_start_on_expired_exam_is_forbidden(self, client, student_factory, exam_factory, student_token, expired_window):
        student = student_factory()
        exam = exam_factory(**expired_window)

        response = client.post(f"/exams/{exam.id}/attempts", headers=auth_headers(student_token(student)))

        error = assert_error(response, 403, "TEST_UNAVAILABLE")
        assert error["details"] == {"reason": "expired"}

    def test_start_after_completion_conflicts(self, client, student_factory, exam_factory, student_token):
        student = student_factory()
        headers = auth_headers(student_token(student))
        exam = exam_factory()
        attempt_id = api_call(client, "POST", f"/exams/{exam.id}/attempts", headers=headers).json()["data"]["attempt_id"]
        api_call(client, "POST", f"/attempts/{attempt_id}/submit", headers=headers)

        response = client.post(f"/exams/{exam.id}/attempts", headers=headers)

        error = assert_error(response, 409, "ALREADY_COMPLETED")
        assert error["details"]["reason"] == "already-completed"
