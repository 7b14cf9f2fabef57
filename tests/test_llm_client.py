import json

import httpx
import pytest

from src.stage1_ingest import parse_csv
from src.stage2_analyst import InferenceClient, PromptBuilder, ServiceError

from conftest import analysis_reply


def _request():
    return PromptBuilder().build("total revenue", parse_csv("region,revenue\nEast,100\n"))


def _client(handler):
    return InferenceClient(
        api_key="test-key",
        model="gemini-test",
        transport=httpx.MockTransport(handler)
    )


def test_submit_posts_prompt_and_schema(run):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=analysis_reply("ok"))

    reply = run(_client(handler).submit(_request()))

    assert reply == analysis_reply("ok")
    assert seen["url"].endswith("/models/gemini-test:generateContent")
    assert "test-key" not in seen["url"]
    assert seen["headers"]["x-goog-api-key"] == "test-key"
    body = seen["body"]
    assert body["contents"][0]["role"] == "user"
    assert "total revenue" in body["contents"][0]["parts"][0]["text"]
    assert body["generationConfig"]["responseMimeType"] == "application/json"
    assert body["generationConfig"]["responseSchema"]["propertyOrdering"] == ["analysis_text", "chart_svg"]


def test_submit_returns_reply_without_candidates_undecoded(run):
    client = _client(lambda request: httpx.Response(200, json={"candidates": []}))

    assert run(client.submit(_request())) == {"candidates": []}


@pytest.mark.parametrize("usage", [None, [1], "n/a"])
def test_submit_tolerates_malformed_usage_metadata(run, usage):
    body = {"candidates": [], "usageMetadata": usage}
    client = _client(lambda request: httpx.Response(200, json=body))

    assert run(client.submit(_request())) == body


def test_submit_returns_non_object_json_undecoded(run):
    client = _client(lambda request: httpx.Response(200, json=["unexpected"]))

    assert run(client.submit(_request())) == ["unexpected"]


def test_submit_error_status_uses_remote_message(run):
    error_body = {"error": {"code": 400, "message": "API key not valid.", "status": "INVALID_ARGUMENT"}}
    client = _client(lambda request: httpx.Response(400, json=error_body))

    with pytest.raises(ServiceError) as exc_info:
        run(client.submit(_request()))

    assert str(exc_info.value) == "API key not valid."
    assert exc_info.value.status_code == 400
    assert exc_info.value.user_message == "API Error: API key not valid."


def test_submit_error_status_without_message_is_generic(run):
    client = _client(lambda request: httpx.Response(503, text="Service Unavailable"))

    with pytest.raises(ServiceError) as exc_info:
        run(client.submit(_request()))

    assert exc_info.value.user_message == "API Error: Unknown error"


def test_submit_network_failure_is_service_error(run):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ServiceError) as exc_info:
        run(_client(handler).submit(_request()))

    assert exc_info.value.kind == "service"
    assert "connection refused" in exc_info.value.user_message


def test_submit_non_json_body_is_service_error(run):
    client = _client(lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(ServiceError):
        run(client.submit(_request()))


def test_submit_makes_a_single_attempt(run):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, json={"error": {"code": 500, "message": "internal", "status": "INTERNAL"}})

    with pytest.raises(ServiceError):
        run(_client(handler).submit(_request()))

    assert len(calls) == 1
