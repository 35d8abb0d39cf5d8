from tests.helpers.asserts import api_call, assert_error, auth_headers


class TestAuthEndpoints:
    def test_register_returns_student_and_token(self, client):
        response = api_call(client, "POST", "/auth/register", json={
            "name": "Ada Lovelace",
            "email": "Ada@Example.com",
            "enrollment_number": "ENR-001",
        })

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["student"]["email"] == "ada@example.com"
        assert data["student"]["enrollment_number"] == "ENR-001"
        assert data["token"]["access_token"]
        assert data["token"]["token_type"] == "bearer"

    def test_register_duplicate_email_conflicts(self, client, student_factory):
        student_factory(email="taken@example.com")

        response = client.post("/auth/register", json={
            "name": "Someone Else",
            "email": "taken@example.com",
            "enrollment_number": "ENR-999",
        })

        error = assert_error(response, 409, "CONFLICT")
        assert error["message"] == "Email or enrollment number already exists"

    def test_register_duplicate_enrollment_conflicts(self, client, student_factory):
        student_factory(enrollment_number="ENR-777")

        response = client.post("/auth/register", json={
            "name": "Someone Else",
            "email": "fresh@example.com",
            "enrollment_number": "ENR-777",
        })

        assert_error(response, 409, "CONFLICT")

    def test_register_rejects_blank_name(self, client):
        response = client.post("/auth/register", json={
            "name": "   ",
            "email": "blank@example.com",
            "enrollment_number": "ENR-002",
        })

        assert_error(response, 422, "VALIDATION_ERROR")

    def test_login_with_matching_credentials(self, client, student_factory):
        student = student_factory(email="login@example.com", enrollment_number="ENR-100")

        response = api_call(client, "POST", "/auth/login", json={
            "email": "LOGIN@example.com",
            "enrollment_number": "ENR-100",
        })

        data = response.json()["data"]
        assert data["student"]["id"] == student.id
        assert data["token"]["access_token"]

    def test_login_with_wrong_enrollment_is_unauthorized(self, client, student_factory):
        student_factory(email="login@example.com", enrollment_number="ENR-100")

        response = client.post("/auth/login", json={
            "email": "login@example.com",
            "enrollment_number": "ENR-101",
        })

        assert_error(response, 401, "UNAUTHORIZED")

    def test_admin_login_with_configured_code(self, client):
        response = api_call(client, "POST", "/auth/admin/login", json={"access_code": "test-admin-code"})

        token = response.json()["data"]["access_token"]
        api_call(client, "GET", "/admin/results", headers=auth_headers(token))

    def test_admin_login_rejects_wrong_code(self, client):
        response = client.post("/auth/admin/login", json={"access_code": "1234"})

        error = assert_error(response, 401, "UNAUTHORIZED")
        assert error["message"] == "Invalid admin code"

    def test_roles_are_enforced(self, client, student_factory, student_token, admin_headers):
        student = student_factory()

        response = client.get("/admin/results", headers=auth_headers(student_token(student)))
        assert_error(response, 403, "FORBIDDEN")

        response = client.get("/exams/active", headers=admin_headers)
        assert_error(response, 403, "FORBIDDEN")

    def test_garbage_token_is_unauthorized(self, client):
        response = client.get("/exams/active", headers=auth_headers("not-a-jwt"))

        assert_error(response, 401, "UNAUTHORIZED")

    def test_responses_carry_request_id(self, client):
        response = client.post("/auth/admin/login", json={"access_code": "wrong"}, headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"
        assert response.json()["request_id"] == "req-42"
