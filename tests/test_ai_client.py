import asyncio
import json
import random

import httpx
import pytest


def _gemini_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture()
def configured(monkeypatch):
    from cvscreen.app import config

    monkeypatch.setattr(config, "GEMINI_API_KEY", "test-key")
    monkeypatch.setattr(config, "GEMINI_MODEL", "gemini-test")
    monkeypatch.setattr(config, "GEMINI_BASE_URL", "https://gemini.test")


def _assert_mock_shape(raw: str):
    data = json.loads(raw)
    assert 60 <= data["OverallScore"] <= 95
    assert 2 <= len(data["Strengths"]) <= 4
    assert 1 <= len(data["Weaknesses"]) <= 3


def test_mock_analysis_ranges_and_uniqueness():
    from cvscreen.app.services.mock_analysis import MOCK_STRENGTHS, MOCK_WEAKNESSES, generate_mock_analysis

    rng = random.Random(1234)
    for _ in range(50):
        data = json.loads(generate_mock_analysis(rng))
        assert 60 <= data["OverallScore"] <= 95
        assert 2 <= len(data["Strengths"]) <= 4
        assert 1 <= len(data["Weaknesses"]) <= 3
        assert len(set(data["Strengths"])) == len(data["Strengths"])
        assert set(data["Strengths"]) <= set(MOCK_STRENGTHS)
        assert set(data["Weaknesses"]) <= set(MOCK_WEAKNESSES)
        assert f"{data['OverallScore']}% match" in data["Summary"]


def test_analyze_without_key_returns_mock(monkeypatch):
    from cvscreen.app import config
    from cvscreen.app.services.ai_client import ai_configured, analyze

    monkeypatch.setattr(config, "GEMINI_API_KEY", "")
    assert ai_configured() is False

    def handler(request):
        raise AssertionError("provider must not be called without a key")

    _assert_mock_shape(asyncio.run(analyze("prompt", client=_client(handler))))


def test_placeholder_key_counts_as_missing(monkeypatch):
    from cvscreen.app import config
    from cvscreen.app.services.ai_client import ai_configured

    monkeypatch.setattr(config, "GEMINI_API_KEY", "YourGeminiAIApiKeyHere")
    assert ai_configured() is False


def test_analyze_returns_model_text(configured):
    from cvscreen.app.services.ai_client import analyze

    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers.get("x-goog-api-key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_gemini_body('{"OverallScore": 77}'))

    raw = asyncio.run(analyze("Screen this CV", client=_client(handler)))

    assert raw == '{"OverallScore": 77}'
    assert seen["url"] == "https://gemini.test/v1beta/models/gemini-test:generateContent"
    assert seen["key"] == "test-key"
    assert seen["body"]["contents"][0]["parts"][0]["text"] == "Screen this CV"


def test_analyze_falls_back_on_http_error(configured):
    from cvscreen.app.services.ai_client import analyze

    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, text="upstream exploded")

    _assert_mock_shape(asyncio.run(analyze("prompt", client=_client(handler))))
    # No retries.
    assert len(calls) == 1


def test_analyze_falls_back_on_malformed_envelope(configured):
    from cvscreen.app.services.ai_client import analyze

    def handler(request):
        return httpx.Response(200, json={"candidates": []})

    _assert_mock_shape(asyncio.run(analyze("prompt", client=_client(handler))))


def test_analyze_falls_back_on_network_error(configured):
    from cvscreen.app.services.ai_client import analyze

    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    _assert_mock_shape(asyncio.run(analyze("prompt", client=_client(handler))))


def test_analyze_falls_back_on_empty_text(configured):
    from cvscreen.app.services.ai_client import analyze

    def handler(request):
        return httpx.Response(200, json=_gemini_body("   "))

    _assert_mock_shape(asyncio.run(analyze("prompt", client=_client(handler))))


def test_gemini_generate_content_raises_typed_errors():
    from cvscreen.app.services.ai_client import AIClientHTTPError, AIClientTimeout, gemini_generate_content

    def forbidden(request):
        return httpx.Response(403, text="bad key")

    with pytest.raises(AIClientHTTPError) as exc:
        asyncio.run(
            gemini_generate_content(
                api_key="k",
                base_url="https://gemini.test",
                model="models/gemini-test",
                user_text="x",
                client=_client(forbidden),
            )
        )
    assert exc.value.status_code == 403

    def slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(AIClientTimeout):
        asyncio.run(
            gemini_generate_content(
                api_key="k",
                base_url="https://gemini.test",
                model="gemini-test",
                user_text="x",
                client=_client(slow),
            )
        )
