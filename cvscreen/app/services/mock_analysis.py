import json
import random

MOCK_STRENGTHS = (
    "Strong technical background",
    "Relevant work experience",
    "Good educational qualifications",
    "Demonstrated problem-solving skills",
    "Team collaboration experience",
)

MOCK_WEAKNESSES = (
    "Limited experience with specific technologies",
    "Could benefit from more leadership experience",
    "Communication skills need improvement",
    "Lacks industry-specific knowledge",
)

MOCK_INTERVIEW_QUESTIONS = (
    "Walk us through the project you are most proud of and your role in it.",
    "Describe a difficult problem you solved recently and how you approached it.",
    "How do you keep your skills current?",
    "Tell us about a time you disagreed with a teammate and how it was resolved.",
)


def _recommendation(score: int) -> str:
    if score >= 85:
        return "Hire - strong alignment with the role requirements."
    if score >= 70:
        return "Interview - meets the core requirements; confirm depth in interview."
    return "Interview - some gaps; assess potential before deciding."


def generate_mock_analysis(rng: random.Random | None = None) -> str:
    """
    Local stand-in for the AI provider.

    Produces JSON in the same shape the screening prompt asks for: score in
    [60, 95], 2-4 strengths and 1-3 weaknesses sampled without replacement.
    """
    r = rng or random.Random()
    score = r.randint(60, 95)
    strengths = r.sample(MOCK_STRENGTHS, r.randint(2, 4))
    weaknesses = r.sample(MOCK_WEAKNESSES, r.randint(1, 3))

    payload = {
        "OverallScore": score,
        "Summary": f"The candidate shows a {score}% match with the job requirements. {' '.join(strengths[:2])}.",
        "Strengths": strengths,
        "Weaknesses": weaknesses,
        "DetailedAnalysis": (
            f"Based on the CV analysis, the candidate demonstrates {', '.join(strengths).lower()}. "
            f"However, there are areas for improvement including {', '.join(weaknesses).lower()}. "
            f"The overall assessment indicates a {score}% alignment with the position requirements."
        ),
        "SkillMatch": {
            "RequiredSkillsMatch": max(0, min(100, score + r.randint(-10, 5))),
            "PreferredSkillsMatch": max(0, min(100, score + r.randint(-20, 0))),
            "MissingCriticalSkills": [],
            "StrongSkills": [],
        },
        "ExperienceAssessment": {
            "RelevantExperience": max(0, min(100, score + r.randint(-10, 5))),
            "ExperienceLevelMatch": "Mid",
            "YearsOfExperience": 0,
            "IndustryExperience": "",
        },
        "Recommendation": _recommendation(score),
        "InterviewQuestions": r.sample(MOCK_INTERVIEW_QUESTIONS, 3),
    }
    return json.dumps(payload, ensure_ascii=False)
