import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from api.config import settings
from api.dependencies import get_inference_client, get_session_manager
from api.main import app
from api.services.session_manager import SessionManager
from src.stage2_analyst import ServiceError

from conftest import FakeClient, analysis_reply, gemini_reply


@pytest.fixture
def fake_client():
    return FakeClient(reply=analysis_reply("Total revenue is 300"))


@pytest.fixture
def client(fake_client):
    manager = SessionManager(logs_dir=None)
    app.dependency_overrides[get_session_manager] = lambda: manager
    app.dependency_overrides[get_inference_client] = lambda: fake_client
    yield TestClient(app)
    app.dependency_overrides.clear()


def _new_session(client):
    response = client.post("/api/v1/sessions")
    assert response.status_code == 200
    return response.json()["session_id"]


def _upload(client, session_id, text, name="sales.csv"):
    return client.post(
        f"/api/v1/sessions/{session_id}/dataset",
        files={"file": (name, text.encode("utf-8"), "text/csv")}
    )


def test_root_and_health(client):
    assert client.get("/").json()["name"] == "CSV Analyst API"
    assert client.get("/api/v1/health").json()["status"] == "healthy"
    assert client.get("/api/v1/health/live").json() == {"alive": True}


def test_upload_reports_shape(client, revenue_csv):
    session_id = _new_session(client)

    response = _upload(client, session_id, revenue_csv + "broken line\n")

    assert response.status_code == 200
    body = response.json()
    assert body["row_count"] == 2
    assert body["column_count"] == 2
    assert body["columns"] == ["region", "revenue"]
    assert body["message"] == "2 rows and 2 columns detected."


def test_upload_rejects_duplicate_columns(client):
    session_id = _new_session(client)

    response = _upload(client, session_id, "a,a\n1,2\n")

    assert response.status_code == 400
    assert "Duplicate column" in response.json()["detail"]


def test_upload_rejects_non_utf8(client):
    session_id = _new_session(client)

    response = client.post(
        f"/api/v1/sessions/{session_id}/dataset",
        files={"file": ("bad.csv", b"a,b\n\xff\xfe,1\n", "text/csv")}
    )

    assert response.status_code == 400


def test_ask_question_returns_assistant_message(client, revenue_csv, fake_client):
    session_id = _new_session(client)
    _upload(client, session_id, revenue_csv)

    response = client.post(f"/api/v1/sessions/{session_id}/questions", json={"question": "total revenue"})

    assert response.status_code == 200
    message = response.json()["message"]
    assert message["role"] == "assistant"
    assert message["text"] == "Total revenue is 300"
    assert message["chart_svg"] is None
    assert "East" in fake_client.requests[0].prompt

    history = client.get(f"/api/v1/sessions/{session_id}/messages").json()
    assert [m["role"] for m in history["messages"]] == ["system-notice", "user", "assistant"]
    assert history["file_name"] == "sales.csv"
    assert history["busy"] is False


def test_question_without_dataset_is_validation_error(client):
    session_id = _new_session(client)

    response = client.post(f"/api/v1/sessions/{session_id}/questions", json={"question": "total?"})

    assert response.status_code == 400
    assert response.json()["detail"]["error_kind"] == "validation"


def test_decode_and_service_errors_are_distinct(client, revenue_csv, fake_client):
    session_id = _new_session(client)
    _upload(client, session_id, revenue_csv)

    fake_client.reply = gemini_reply("{not json")
    decode = client.post(f"/api/v1/sessions/{session_id}/questions", json={"question": "q"})
    fake_client.error = ServiceError("model overloaded")
    service = client.post(f"/api/v1/sessions/{session_id}/questions", json={"question": "q"})

    assert decode.status_code == 422
    assert decode.json()["detail"]["error_kind"] == "decode"
    assert service.status_code == 502
    assert service.json()["detail"]["message"] == "API Error: model overloaded"


def test_unknown_session_is_404(client):
    assert client.get("/api/v1/sessions/nope/messages").status_code == 404
    assert client.post("/api/v1/sessions/nope/questions", json={"question": "q"}).status_code == 404
    assert client.delete("/api/v1/sessions/nope").status_code == 404


def test_delete_session(client):
    session_id = _new_session(client)

    assert client.delete(f"/api/v1/sessions/{session_id}").status_code == 200
    assert client.get(f"/api/v1/sessions/{session_id}/messages").status_code == 404


def test_upload_over_size_limit_is_413(client, revenue_csv, monkeypatch):
    monkeypatch.setattr(settings, "MAX_FILE_SIZE_MB", 0)
    session_id = _new_session(client)

    response = _upload(client, session_id, revenue_csv)

    assert response.status_code == 413
    assert "File too large" in response.json()["detail"]
    history = client.get(f"/api/v1/sessions/{session_id}/messages").json()
    assert history["file_name"] is None


def test_requests_while_exchange_in_flight_are_409(revenue_csv):
    manager = SessionManager(logs_dir=None)

    async def scenario():
        gate = asyncio.Event()
        fake = FakeClient(reply=analysis_reply("done"), gate=gate)
        app.dependency_overrides[get_session_manager] = lambda: manager
        app.dependency_overrides[get_inference_client] = lambda: fake

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
            session_id = (await http.post("/api/v1/sessions")).json()["session_id"]
            await http.post(
                f"/api/v1/sessions/{session_id}/dataset",
                files={"file": ("sales.csv", revenue_csv.encode("utf-8"), "text/csv")}
            )

            first = asyncio.create_task(
                http.post(f"/api/v1/sessions/{session_id}/questions", json={"question": "q1"})
            )
            for _ in range(1000):
                if manager.get_session(session_id).busy:
                    break
                await asyncio.sleep(0)
            assert manager.get_session(session_id).busy

            question = await http.post(f"/api/v1/sessions/{session_id}/questions", json={"question": "q2"})
            upload = await http.post(
                f"/api/v1/sessions/{session_id}/dataset",
                files={"file": ("other.csv", revenue_csv.encode("utf-8"), "text/csv")}
            )

            gate.set()
            return question, upload, await first

    try:
        question, upload, first = asyncio.run(scenario())
    finally:
        app.dependency_overrides.clear()

    assert question.status_code == 409
    assert question.json()["detail"]["error_kind"] == "busy"
    assert upload.status_code == 409
    assert upload.json()["detail"]["error_kind"] == "busy"
    assert first.status_code == 200
    assert first.json()["message"]["text"] == "done"


def test_error_responses_are_documented(client):
    paths = client.get("/openapi.json").json()["paths"]

    question_responses = paths["/api/v1/sessions/{session_id}/questions"]["post"]["responses"]
    for status in ("400", "409", "422", "502"):
        schema = question_responses[status]["content"]["application/json"]["schema"]
        assert schema["$ref"].endswith("/ErrorResponse")
    upload_responses = paths["/api/v1/sessions/{session_id}/dataset"]["post"]["responses"]
    assert "409" in upload_responses
