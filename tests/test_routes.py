"""
End-to-end tests of the console pages against a fake backend.
"""
from tests.conftest import backend_user, leave_json


class TestLoginFlow:

    def test_protected_page_redirects_to_login(self, client):
        response = client.get("/dashboard")

        assert response.status_code == 303
        assert response.headers["location"] == "/login?next=/dashboard"

    def test_login_page_renders(self, client):
        response = client.get("/login?next=/my-leave")

        assert response.status_code == 200
        assert 'value="/my-leave"' in response.text

    def test_login_redirects_to_next(self, client, backend):
        backend.on("POST", "/auth/login", json={"token": "t", "user": backend_user()})

        response = client.post("/login", data={"email": "jane@example.com", "password": "pw", "next": "/my-leave"})

        assert response.status_code == 303
        assert response.headers["location"] == "/my-leave"

    def test_external_next_is_ignored(self, client, backend):
        backend.on("POST", "/auth/login", json={"token": "t", "user": backend_user()})

        response = client.post("/login", data={"email": "jane@example.com", "password": "pw", "next": "//evil.test"})

        assert response.headers["location"] == "/dashboard"

    def test_wrong_password_shows_notice(self, client, backend):
        backend.on("POST", "/auth/login", status=401, json={"message": "Bad credentials"})

        response = client.post("/login", data={"email": "jane@example.com", "password": "nope"})

        assert response.status_code == 401
        assert "Invalid email or password" in response.text
        assert client.get("/dashboard").status_code == 303

    def test_missing_fields(self, client, backend):
        response = client.post("/login", data={"email": "", "password": ""})

        assert response.status_code == 400
        assert "Email and password are required" in response.text
        assert backend.calls == []

    def test_logout(self, client, backend, login_as):
        login_as()

        response = client.post("/logout")

        assert response.headers["location"] == "/login"
        assert client.get("/dashboard").status_code == 303

    def test_login_is_rate_limited(self, client, backend):
        backend.on("POST", "/auth/login", status=401, json={})
        statuses = [
            client.post("/login", data={"email": "jane@example.com", "password": "nope"}).status_code
            for _ in range(6)
        ]

        assert statuses[:5] == [401] * 5
        assert statuses[5] == 429


class TestRegistration:

    def test_register_signs_in(self, client, backend):
        backend.on("POST", "/auth/register", json={"token": "t", "user": backend_user(9, "Sam", "Lee")})

        response = client.post("/register", data={
            "email": "sam@example.com", "password": "pw123456", "first_name": "Sam", "last_name": "Lee",
        })

        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"

    def test_invalid_email(self, client, backend):
        response = client.post("/register", data={
            "email": "not-an-email", "password": "pw123456", "first_name": "Sam", "last_name": "Lee",
        })

        assert response.status_code == 400
        assert "Enter a valid email address" in response.text
        assert backend.calls == []

    def test_public_form_offers_no_role_choice(self, client):
        response = client.get("/register")

        assert response.status_code == 200
        assert 'name="role"' not in response.text

    def test_posted_role_is_ignored(self, client, backend):
        backend.on("POST", "/auth/register", json={"token": "t", "user": backend_user(9, "Sam", "Lee")})

        client.post("/register", data={
            "email": "sam@example.com", "password": "pw123456", "first_name": "Sam", "last_name": "Lee",
            "role": "ADMIN",
        })

        sent = backend.body(backend.sent("POST", "/auth/register")[0])
        assert sent["role"] == "EMPLOYEE"


class TestForcedTermination:

    def test_401_logs_out_and_redirects(self, client, backend, login_as):
        login_as()
        backend.on("GET", "/leave-requests/my", status=401, json={"message": "Token expired"})

        response = client.get("/dashboard")
        assert response.status_code == 303
        assert response.headers["location"] == "/login"

        response = client.get("/my-leave")
        assert response.status_code == 303
        assert response.headers["location"].startswith("/login")

    def test_session_expired_notice_is_shown(self, client, backend, login_as):
        login_as()
        backend.on("GET", "/leave-requests/my", status=401, json={})

        client.get("/dashboard")
        response = client.get("/login")

        assert "Your session has expired" in response.text


class TestEmployeePages:

    def test_dashboard_shows_own_counts(self, client, backend, login_as):
        login_as()
        backend.on("GET", "/leave-requests/my", json=[
            leave_json(1, status="PENDING"),
            leave_json(2, status="APPROVED"),
        ])

        response = client.get("/dashboard")

        assert response.status_code == 200
        assert "My Leave" in response.text
        assert "Leave Requests</a>" not in response.text

    def test_admin_pages_are_denied(self, client, login_as):
        login_as()

        for path in ("/employees", "/leave-requests", "/salary", "/departments"):
            response = client.get(path)
            assert response.status_code == 303, path
            assert response.headers["location"] == "/dashboard"

    def test_employee_cannot_post_decision(self, client, backend, login_as):
        login_as()

        response = client.post("/leave-requests/3/decision", data={"outcome": "APPROVED"})

        assert response.headers["location"] == "/dashboard"
        assert backend.sent("PUT", "/leave-requests/3") == []

    def test_submit_invalid_leave_rerenders_form(self, client, backend, login_as):
        login_as()
        backend.on("GET", "/leave-requests/my", json=[])

        response = client.post("/my-leave", data={
            "type": "SICK", "start_date": "2999-06-12", "end_date": "2999-06-10", "reason": "Not feeling well",
        })

        assert response.status_code == 400
        assert "End date must be on or after the start date" in response.text
        assert backend.sent("POST", "/leave-requests") == []

    def test_submit_leave(self, client, backend, login_as):
        login_as()
        backend.on("POST", "/leave-requests", json=leave_json(
            11, type="SICK", startDate="2999-06-10", endDate="2999-06-12", reason="Not feeling well",
        ))

        response = client.post("/my-leave", data={
            "type": "SICK", "start_date": "2999-06-10", "end_date": "2999-06-12", "reason": "Not feeling well",
        })

        assert response.status_code == 303
        backend.on("GET", "/leave-requests/my", json=[])
        assert "Leave request submitted (3 days)" in client.get("/my-leave").text

    def test_withdraw_decided_request_is_refused(self, client, backend, login_as):
        login_as()
        backend.on("GET", "/leave-requests/3", json=leave_json(3, status="APPROVED"))

        response = client.post("/my-leave/3/withdraw")

        assert response.status_code == 303
        assert response.headers["location"] == "/my-leave"
        assert backend.sent("DELETE", "/leave-requests/3") == []

    def test_bad_field_on_decided_request_is_not_editable(self, client, backend, login_as):
        login_as()
        backend.on("GET", "/leave-requests/3", json=leave_json(3, status="APPROVED"))

        response = client.post("/my-leave/3/edit", data={
            "type": "VACATION", "start_date": "not-a-date", "end_date": "2999-06-12", "reason": "Family trip",
        })

        assert response.status_code == 303
        assert response.headers["location"] == "/my-leave"
        assert backend.sent("PUT", "/leave-requests/3") == []
        backend.on("GET", "/leave-requests/my", json=[])
        assert "Only your own pending leave requests can be changed" in client.get("/my-leave").text

    def test_bad_field_on_other_employees_request_is_not_editable(self, client, backend, login_as):
        login_as()
        backend.on("GET", "/leave-requests/4", json=leave_json(4, employee_id=99))

        response = client.post("/my-leave/4/edit", data={
            "type": "BOGUS", "start_date": "2999-06-10", "end_date": "2999-06-12", "reason": "Family trip",
        })

        assert response.status_code == 303
        assert response.headers["location"] == "/my-leave"
        assert backend.sent("PUT", "/leave-requests/4") == []

    def test_bad_field_on_own_pending_request_rerenders_form(self, client, backend, login_as):
        login_as()
        backend.on("GET", "/leave-requests/3", json=leave_json(3))

        response = client.post("/my-leave/3/edit", data={
            "type": "VACATION", "start_date": "not-a-date", "end_date": "2999-06-12", "reason": "Family trip",
        })

        assert response.status_code == 400
        assert "Enter a valid date (YYYY-MM-DD)" in response.text
        assert 'action="/my-leave/3/edit"' in response.text

    def test_profile_reads_auth_me(self, client, backend, login_as):
        login_as()
        backend.on("GET", "/auth/me", json=backend_user(first="Janet"))

        response = client.get("/profile")

        assert response.status_code == 200
        assert "Janet Doe" in response.text


class TestAdminPages:

    def test_admin_rejects_pending_request(self, client, backend, login_as):
        login_as(role="ADMIN", user_id=1, first="Ada", last="Admin")
        backend.on("GET", "/leave-requests/3", json=leave_json(3))
        backend.on("PUT", "/leave-requests/3", json=leave_json(3, status="REJECTED", comment="insufficient notice"))

        response = client.post("/leave-requests/3/decision", data={"outcome": "REJECTED", "comment": "insufficient notice"})

        assert response.status_code == 303
        assert response.headers["location"] == "/leave-requests"
        sent = backend.body(backend.sent("PUT", "/leave-requests/3")[0])
        assert sent == {"status": "REJECTED", "comment": "insufficient notice"}

        # The backend now reports the request as decided
        backend.on("GET", "/leave-requests/3", json=leave_json(3, status="REJECTED"))
        client.post("/leave-requests/3/decision", data={"outcome": "APPROVED"})

        assert len(backend.sent("PUT", "/leave-requests/3")) == 1
        backend.on("GET", "/leave-requests", json=[])
        assert "already been decided" in client.get("/leave-requests").text

    def test_leave_requests_filter(self, client, backend, login_as):
        login_as(role="ADMIN", user_id=1, first="Ada", last="Admin")
        backend.on("GET", "/leave-requests", json=[
            leave_json(1, employeeName="Jane Doe", status="PENDING"),
            leave_json(2, employeeName="John Smith", status="APPROVED"),
        ])

        response = client.get("/leave-requests?status=approved")

        assert response.status_code == 200
        assert "John Smith" in response.text
        assert "Jane Doe" not in response.text

    def test_admin_dashboard_stats(self, client, backend, login_as):
        login_as(role="ADMIN", user_id=1, first="Ada", last="Admin")
        backend.on("GET", "/employees", json=[])
        backend.on("GET", "/departments", json=[{"id": 1, "name": "Engineering", "description": "", "employeeCount": 4}])
        backend.on("GET", "/leave-requests", json=[leave_json(1)])

        response = client.get("/dashboard")

        assert response.status_code == 200
        assert "Pending Leave Requests" in response.text
        assert "Engineering" in response.text

    def test_delete_staffed_department_warns(self, client, backend, login_as):
        login_as(role="ADMIN", user_id=1, first="Ada", last="Admin")
        backend.on("GET", "/departments/2", json={"id": 2, "name": "Sales", "description": "Deals", "employeeCount": 3})
        backend.on("DELETE", "/departments/2", status=204)
        backend.on("GET", "/departments", json=[])

        client.post("/departments/2/delete")
        page = client.get("/departments").text

        assert "still has 3 employee(s)" in page
        assert "Department Sales deleted" in page

    def test_missing_record_renders_error_page(self, client, login_as):
        login_as(role="ADMIN", user_id=1, first="Ada", last="Admin")

        response = client.get("/salary/404/edit")

        assert response.status_code == 404

    def test_salary_amount_must_be_finite(self, client, backend, login_as):
        login_as(role="ADMIN", user_id=1, first="Ada", last="Admin")
        backend.on("GET", "/employees", json=[])

        response = client.post("/salary", data={
            "employee_id": "1", "base_salary": "nan", "month": "2024-01", "year": "2024",
        })

        assert response.status_code == 400
        assert backend.sent("POST", "/salaries") == []

    def test_employee_salary_must_be_finite(self, client, backend, login_as):
        login_as(role="ADMIN", user_id=1, first="Ada", last="Admin")
        backend.on("GET", "/departments", json=[])

        response = client.post("/employees", data={
            "first_name": "Sam", "last_name": "Lee", "email": "sam@example.com", "salary": "inf",
        })

        assert response.status_code == 400
        assert "Salary must be a number" in response.text
        assert backend.sent("POST", "/employees") == []


class TestMisc:

    def test_unknown_page(self, client):
        response = client.get("/nowhere")

        assert response.status_code == 404
        assert "Page not found" in response.text

    def test_security_headers(self, client):
        response = client.get("/login")

        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
