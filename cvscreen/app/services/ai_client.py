import json
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from .. import config
from .mock_analysis import generate_mock_analysis


logger = logging.getLogger(__name__)


class AIClientError(RuntimeError):
    pass


class AIClientTimeout(AIClientError):
    pass


class AIClientHTTPError(AIClientError):
    def __init__(self, *, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class GeminiMeta:
    model: str
    latency_ms: int
    status_code: int | None


def _safe_truncate(s: str, n: int = 800) -> str:
    s = s or ""
    if len(s) <= n:
        return s
    return s[:n] + "…"


def _response_text(data: Any) -> str:
    """
    Pull candidates[0].content.parts[0].text out of a generateContent body.

    Typical shape:
    { candidates: [ { content: { parts: [ { text: "..." } ] } } ], ... }
    """
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        raise AIClientError("Gemini response missing candidates[0].content.parts[0].text") from None
    if not isinstance(text, str):
        raise AIClientError("Gemini response text is not a string")
    return text


async def gemini_generate_content(
    *,
    api_key: str,
    base_url: str,
    api_version: str = "v1beta",
    model: str,
    user_text: str,
    temperature: float = 0.0,
    timeout_s: float = 20.0,
    log_payloads: bool = False,
    client: httpx.AsyncClient | None = None,
) -> tuple[str, GeminiMeta]:
    """
    Calls Gemini Generative Language API (API key auth) and returns the model text.

    Endpoint:
      POST {base_url}/{api_version}/models/{model}:generateContent
    Auth:
      x-goog-api-key: {api_key}

    Single attempt: any failure raises an AIClientError subclass.
    """
    if not api_key:
        raise AIClientError("Missing GEMINI_API_KEY")
    if not model:
        raise AIClientError("Missing GEMINI_MODEL")
    api_v = (api_version or "v1beta").strip().strip("/")
    base = (base_url or "").rstrip("/")
    model_path = model.strip()
    if model_path.startswith("models/"):
        model_path = model_path[len("models/") :]
    url = f"{base}/{api_v}/models/{model_path}:generateContent"

    body = {
        "contents": [
            {"role": "user", "parts": [{"text": user_text or ""}]},
        ],
        "generationConfig": {
            "temperature": float(temperature),
        },
    }
    headers = {
        "x-goog-api-key": api_key,
        "content-type": "application/json",
    }

    if log_payloads:
        logger.info(
            "Gemini request model=%s url=%s body=%s",
            model,
            url,
            _safe_truncate(json.dumps(body, ensure_ascii=False)),
        )

    start = time.perf_counter()
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=timeout_s)
    try:
        r = await http.post(url, json=body, headers=headers, timeout=timeout_s)
    except httpx.TimeoutException:
        raise AIClientTimeout("Gemini request timed out") from None
    except httpx.RequestError as e:
        raise AIClientError(f"Gemini request failed: {type(e).__name__}") from e
    finally:
        if owns_client:
            await http.aclose()

    if r.status_code >= 400:
        raise AIClientHTTPError(status_code=r.status_code, message=_safe_truncate(r.text, 1000))

    try:
        data = r.json()
    except ValueError:
        raise AIClientError("Gemini response is not JSON") from None

    text = _response_text(data)
    meta = GeminiMeta(
        model=model,
        latency_ms=int((time.perf_counter() - start) * 1000),
        status_code=r.status_code,
    )
    logger.info(
        "Gemini ok model=%s status=%s latency_ms=%s",
        meta.model,
        meta.status_code,
        meta.latency_ms,
    )
    return text.strip(), meta


def ai_configured() -> bool:
    key = (config.GEMINI_API_KEY or "").strip()
    return bool(key) and key not in config.GEMINI_PLACEHOLDER_KEYS


async def analyze(prompt: str, *, client: httpx.AsyncClient | None = None) -> str:
    """
    Raw model text for a screening prompt.

    Provider unavailability (no key, network/HTTP failure, malformed envelope,
    empty answer) is never raised: the mock analysis is returned instead.
    """
    if not ai_configured():
        logger.warning("Gemini API key not configured, using mock analysis")
        return generate_mock_analysis()

    try:
        text, _meta = await gemini_generate_content(
            api_key=(config.GEMINI_API_KEY or "").strip(),
            base_url=config.GEMINI_BASE_URL,
            api_version=config.GEMINI_API_VERSION,
            model=config.GEMINI_MODEL,
            user_text=prompt,
            temperature=0.0,
            timeout_s=config.AI_TIMEOUT_S,
            log_payloads=config.AI_LOG_PAYLOADS,
            client=client,
        )
    except AIClientHTTPError as e:
        logger.warning("Gemini HTTP %s, using mock analysis: %s", e.status_code, _safe_truncate(str(e), 200))
        return generate_mock_analysis()
    except AIClientError as e:
        logger.warning("Gemini call failed (%s), using mock analysis: %s", type(e).__name__, e)
        return generate_mock_analysis()

    if not text:
        logger.warning("Gemini returned empty text, using mock analysis")
        return generate_mock_analysis()
    return text
