import os
import sys

import httpx
import pytest
from fastapi.testclient import TestClient

# Add root directory to path so we can import modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dashboard_entry import app
from chemviz.dependencies import get_api_service
from helpers import FakeBackend, analytics_payload, build_stack, reply, upload_payload

TOKENS = {"access_token": "AT1", "refresh_token": "RT1"}


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def stack(backend):
    return build_stack(backend, TOKENS)


@pytest.fixture
def client(stack):
    """以假後端取代 API 服務的 TestClient"""
    _, _, _, api = stack
    app.dependency_overrides[get_api_service] = lambda: api
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_login_then_status(backend, stack, client):
    backend.add("POST", "/api/auth/login/", reply(json={"access": "AT5", "refresh": "RT5"}))
    storage = stack[0]

    response = client.post(
        "/session/login", json={"email": "user@example.com", "password": "pw"}
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "", "code": "OK"}
    assert storage.data["access_token"] == "AT5"

    status = client.get("/session/status").json()
    assert status == {"state": "authenticated", "authenticated": True}


def test_login_missing_password_is_422(client):
    response = client.post("/session/login", json={"email": "user@example.com"})

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_logout_reports_anonymous(backend, client):
    backend.add("POST", "/api/auth/logout/", reply(205))

    response = client.post("/session/logout")

    assert response.json() == {"state": "anonymous", "authenticated": False}


def test_analytics_returns_canonical_snapshot(backend, client):
    backend.add("GET", "/api/analytics/", reply(json=analytics_payload()))

    response = client.get("/dashboard/analytics")

    assert response.status_code == 200
    body = response.json()
    assert body["dataset_id"] == 42
    assert body["id"] == "42"
    assert body["filename"] == "equipment.csv"
    assert body["chart_data"]["bar_charts"][0]["data"][1] == {"name": "B", "value": 0}
    assert body["chart_data"]["radar_chart"]["health_score"] == 72.5


def test_unrecoverable_401_maps_to_authentication_error(backend, stack, client):
    backend.add("GET", "/api/analytics/", reply(401))
    backend.add("POST", "/api/auth/refresh/", reply(401))

    response = client.get("/dashboard/analytics")

    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "AUTHENTICATION_ERROR"
    assert response.headers["www-authenticate"] == "Bearer"
    assert stack[0].data == {}


def test_malformed_backend_response_is_502(backend, client):
    backend.add("GET", "/api/analytics/3/", reply(json={"total_records": 1}))

    response = client.get("/dashboard/analytics/3")

    assert response.status_code == 502
    assert response.json()["code"] == "MALFORMED_RESPONSE"
    assert response.json()["details"]["missing"] == ["dataset_id", "file_name"]


def test_network_error_is_503(backend, client):
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    backend.add("GET", "/api/history/", boom)

    response = client.get("/dashboard/history")

    assert response.status_code == 503
    assert response.json()["code"] == "NETWORK_ERROR"


def test_invalid_dataset_id_is_400(backend, client):
    response = client.get("/dashboard/analytics/bad id")

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert backend.requests == []


def test_history_listing(backend, client):
    backend.add(
        "GET",
        "/api/history/",
        reply(json={"datasets": [{"id": 1, "file_name": "a.csv", "total_records": 3}]}),
    )

    body = client.get("/dashboard/history").json()

    assert body["count"] == 1
    assert body["max_history"] == 5
    assert body["is_full"] is False
    assert body["datasets"][0]["record_count"] == 3


def test_upload_forwards_file(backend, client):
    backend.add("POST", "/api/upload/", reply(201, json=upload_payload()))

    response = client.post(
        "/dashboard/upload",
        files={"file": ("equipment.csv", b"Type,Flowrate\nPump,120\n", "text/csv")},
    )

    assert response.status_code == 200
    assert response.json()["file_name"] == "equipment.csv"
    assert b'filename="equipment.csv"' in backend.requests[0].content


def test_report_is_served_as_pdf_attachment(backend, client):
    backend.add("GET", "/api/report/8/", reply(content=b"%PDF-1.4 fake"))

    response = client.get("/dashboard/report/8")

    assert response.status_code == 200
    assert response.content == b"%PDF-1.4 fake"
    assert response.headers["content-type"] == "application/pdf"
    disposition = response.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="Chemical_Report_')
    assert disposition.endswith('.pdf"')


def test_health_reports_unreachable_backend(backend, client):
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    backend.add("GET", "/api/health/", boom)

    assert client.get("/dashboard/health").json() == {"backend_reachable": False}
