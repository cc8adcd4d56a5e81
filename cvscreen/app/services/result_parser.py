import json
import logging

from pydantic import ValidationError as PydanticValidationError

from ..schemas.screening import AnalysisResult

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "Analysis could not be completed due to processing error."
FALLBACK_DETAILED_ANALYSIS = (
    "The CV analysis could not be completed successfully. Please try again or contact support."
)


def degraded_result() -> AnalysisResult:
    return AnalysisResult(
        overall_score=50,
        summary=FALLBACK_SUMMARY,
        strengths=["Unable to determine"],
        weaknesses=["Analysis failed"],
        detailed_analysis=FALLBACK_DETAILED_ANALYSIS,
    )


def extract_json_payload(text: str) -> dict:
    """
    Best-effort extraction of the JSON object in a model response.

    Takes everything from the first "{" to the last "}" so prose or markdown
    fences around the object are tolerated.
    """
    raw = (text or "").strip()
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("No JSON object found in AI response")
    obj = json.loads(raw[start : end + 1])
    if not isinstance(obj, dict):
        raise ValueError("AI response JSON is not an object")
    return obj


def parse_analysis(raw_text: str) -> AnalysisResult:
    """
    Structured analysis from raw model text. Never raises: anything that
    cannot be decoded becomes the fixed degraded result.
    """
    try:
        obj = extract_json_payload(raw_text)
        return AnalysisResult.model_validate(obj)
    except (ValueError, PydanticValidationError) as e:
        logger.error("Error parsing analysis result: %s", type(e).__name__)
        return degraded_result()
    except Exception:
        logger.exception("Unexpected error parsing analysis result")
        return degraded_result()
