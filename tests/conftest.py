"""
Shared fixtures for the console tests.

The EMS backend is replaced by ``FakeBackend``, an ``httpx.MockTransport``
handler that answers from a table of canned responses and records every
request it receives.
"""
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from staff_console.auth import TOKEN_KEY, USER_KEY, SessionStore
from staff_console.config import Settings
from staff_console.gateway import ApiGateway
from staff_console.model import Role
from staff_console.schemas import Identity

BASE_URL = "http://backend.test/api"


class FakeBackend:
    """Canned backend responses keyed by (method, path below /api)"""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def on(self, method, path, status=200, json=None):
        self.routes[(method.upper(), "/api" + path)] = (status, json)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "Not found"})
        status, body = route
        if callable(body):
            return body(request)
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def sent(self, method, path):
        """Requests received for one endpoint"""
        return [c for c in self.calls if c.method == method and c.url.path == "/api" + path]

    @staticmethod
    def body(request: httpx.Request):
        return json.loads(request.content)


def backend_user(user_id=7, first="Jane", last="Doe", role="EMPLOYEE"):
    return {
        "id": user_id,
        "email": f"{first.lower()}@example.com",
        "firstName": first,
        "lastName": last,
        "role": role,
    }


def leave_json(request_id=3, employee_id=7, status="PENDING", **overrides):
    data = {
        "id": request_id,
        "employeeId": employee_id,
        "employeeName": "Jane Doe",
        "type": "VACATION",
        "startDate": "2023-07-01",
        "endDate": "2023-07-05",
        "reason": "Family trip",
        "status": status,
    }
    data.update(overrides)
    return data


def signed_in(role=Role.EMPLOYEE, user_id="7", name="Jane Doe"):
    """Session storage holding a signed-in identity"""
    identity = Identity(id=user_id, name=name, email="jane@example.com", role=role)
    return {USER_KEY: identity.model_dump(mode="json"), TOKEN_KEY: "token-abc"}


@pytest.fixture
def settings():
    return Settings(
        API_BASE_URL=BASE_URL,
        SECRET_KEY="test-session-secret",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def http_client(backend):
    return httpx.AsyncClient(transport=httpx.MockTransport(backend.handler), base_url=BASE_URL)


@pytest.fixture
def employee_session():
    return SessionStore(signed_in())


@pytest.fixture
def admin_session():
    return SessionStore(signed_in(role=Role.ADMIN, user_id="1", name="Ada Admin"))


@pytest.fixture
def anonymous_session():
    return SessionStore({})


@pytest.fixture
def make_gateway(http_client):
    def _make(session):
        return ApiGateway(http_client, session)
    return _make


@pytest.fixture
def client(settings, http_client):
    """Console app wired to the fake backend"""
    from staff_console.main import create_app
    from staff_console.routers import auth

    auth.limiter.reset()
    app = create_app(settings, http_client=http_client)
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client
    auth.limiter.reset()


@pytest.fixture
def login_as(client, backend):
    """Sign the test client in through the login form"""
    def _login(role="EMPLOYEE", user_id=7, first="Jane", last="Doe"):
        backend.on("POST", "/auth/login", json={
            "token": f"token-{user_id}",
            "user": backend_user(user_id, first, last, role),
        })
        response = client.post("/login", data={"email": f"{first.lower()}@example.com", "password": "secret"})
        assert response.status_code == 303
        return response
    return _login
