import json

import pytest


def test_parse_wrapped_json():
    from cvscreen.app.services.result_parser import parse_analysis

    raw = (
        "Here is my assessment:\n```json\n"
        + json.dumps(
            {
                "OverallScore": 82,
                "Summary": "Strong backend fit.",
                "Strengths": ["Python", "APIs"],
                "Weaknesses": ["No Kubernetes"],
                "DetailedAnalysis": "Solid experience.",
                "Recommendation": "Interview",
                "SkillMatch": {"RequiredSkillsMatch": 90},
            }
        )
        + "\n```\nLet me know if you need more."
    )
    result = parse_analysis(raw)

    assert result.overall_score == 82
    assert result.summary == "Strong backend fit."
    assert result.strengths == ["Python", "APIs"]
    assert result.weaknesses == ["No Kubernetes"]
    assert result.detailed_analysis == "Solid experience."
    assert result.recommendation == "Interview"


def test_parse_prose_without_json_is_degraded():
    from cvscreen.app.services.result_parser import FALLBACK_SUMMARY, parse_analysis

    result = parse_analysis("I am unable to evaluate this candidate right now.")

    assert result.overall_score == 50
    assert result.summary == FALLBACK_SUMMARY
    assert result.summary == "Analysis could not be completed due to processing error."
    assert result.strengths == ["Unable to determine"]
    assert result.weaknesses == ["Analysis failed"]


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "{not: valid json}",
        "[1, 2, 3]",
        '{"OverallScore": 70, "Strengths": {"a": 1}}',
        '{"Summary": {"nested": true}}',
    ],
)
def test_parse_never_raises(raw):
    from cvscreen.app.services.result_parser import FALLBACK_SUMMARY, parse_analysis

    assert parse_analysis(raw).summary == FALLBACK_SUMMARY


@pytest.mark.parametrize(
    "score,expected",
    [(150, 100), (-20, 0), ("88", 88), (72.6, 73), ("high", 50), (None, 50)],
)
def test_score_is_clamped(score, expected):
    from cvscreen.app.services.result_parser import parse_analysis

    assert parse_analysis(json.dumps({"OverallScore": score, "Summary": "ok"})).overall_score == expected


def test_parse_is_idempotent():
    from cvscreen.app.services.mock_analysis import generate_mock_analysis
    from cvscreen.app.services.result_parser import parse_analysis

    for raw in (generate_mock_analysis(), "no json here", '{"OverallScore": 101}'):
        assert parse_analysis(raw) == parse_analysis(raw)


def test_snake_case_keys_are_accepted():
    from cvscreen.app.services.result_parser import parse_analysis

    result = parse_analysis('{"overall_score": 64, "summary": "fine", "strengths": "single item"}')
    assert result.overall_score == 64
    assert result.strengths == ["single item"]
    assert result.weaknesses == []
