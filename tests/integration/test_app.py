import pytest
from fastapi.testclient import TestClient

from api_gateway.main import create_app
from shared.config.settings import Settings


def test_root(client):
    resp = client.get("/")

    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "running"


def test_health(client):
    resp = client.get("/api/health")

    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["database"] == "ok"


def test_unknown_route_is_json_404(client):
    resp = client.get("/api/v1/bookings")

    assert resp.status_code == 404, resp.text
    body = resp.json()
    assert body["status"] == "fail"
    assert "/api/v1/bookings" in body["message"]


def test_method_not_allowed(client):
    resp = client.put("/api/v1/tours")

    assert resp.status_code == 405, resp.text
    assert resp.json()["status"] == "fail"


def test_request_validation_is_bad_request(client):
    resp = client.post("/api/v1/users/signup", json={"name": "No Email"})

    assert resp.status_code == 400, resp.text
    assert "email" in resp.json()["message"]


def test_development_errors_include_detail(client):
    resp = client.get("/api/v1/tours/9999")

    body = resp.json()
    assert body["error"]["type"] == "NotFoundError"
    assert isinstance(body["stack"], list)


def test_security_headers(client):
    resp = client.get("/api/v1/tours")

    assert resp.headers["x-content-type-options"] == "nosniff"
    assert resp.headers["x-frame-options"] == "SAMEORIGIN"


def test_body_size_limit(client):
    resp = client.post(
        "/api/v1/users/signup",
        content=b"{" + b" " * 20000 + b"}",
        headers={"content-type": "application/json"},
    )

    assert resp.status_code == 413, resp.text


def test_body_size_limit_without_content_length(client):
    def chunks():
        yield b'{"name": "'
        for _ in range(30):
            yield b"x" * 512
        yield b'"}'

    resp = client.post(
        "/api/v1/users/signup",
        content=chunks(),
        headers={"content-type": "application/json"},
    )

    assert resp.status_code == 413, resp.text
    assert resp.json()["status"] == "fail"


def test_small_chunked_body_is_accepted(client):
    def chunks():
        yield b'{"email": "nobody@natours.io",'
        yield b' "password": "wrong-pass"}'

    resp = client.post(
        "/api/v1/users/login",
        content=chunks(),
        headers={"content-type": "application/json"},
    )

    assert resp.status_code == 401, resp.text


def test_rate_limit(db_session):
    app = create_app(Settings(RATE_LIMIT_MAX=3))
    client = TestClient(app)

    statuses = [client.get("/api/v1/tours").status_code for _ in range(4)]

    assert statuses == [200, 200, 200, 429]
    assert client.get("/api/v1/tours").json()["status"] == "fail"
    assert client.get("/").status_code == 200


@pytest.fixture
def production_app(db_session):
    app = create_app(Settings(ENVIRONMENT="production", DEBUG=False))

    @app.get("/api/v1/boom")
    def boom():
        raise RuntimeError("database password leaked in message")

    return app


def test_production_hides_unexpected_errors(production_app):
    client = TestClient(production_app, raise_server_exceptions=False)

    resp = client.get("/api/v1/boom")

    assert resp.status_code == 500
    body = resp.json()
    assert body == {"status": "error", "message": "Algo salió muy mal"}


def test_production_operational_errors_expose_only_message(production_app):
    client = TestClient(production_app)

    resp = client.get("/api/v1/tours/9999")

    assert resp.status_code == 404
    assert set(resp.json()) == {"status", "message"}
