"""
Screening prompt construction.

The job posting is classified into a job type and an experience level with
ordered (predicate, category) tables; the first matching predicate wins.
The prompt is then assembled in a fixed order:

    guidelines + job details -> job-type focus -> level guidance
    -> scoring rubric -> output schema -> CV text (last)
"""
import enum
import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Sequence

from ..models.job import Job


class JobType(str, enum.Enum):
    SOFTWARE = "Software Development"
    MARKETING = "Marketing"
    SALES = "Sales"
    FINANCE = "Finance"
    HR = "Human Resources"
    DESIGN = "Design"
    DATA = "Data Science"
    MANAGEMENT = "Management"
    OPERATIONS = "Operations"
    CUSTOMER_SERVICE = "Customer Service"


class ExperienceLevel(str, enum.Enum):
    ENTRY = "Entry Level"
    MID = "Mid Level"
    SENIOR = "Senior Level"
    LEAD = "Lead Level"
    EXECUTIVE = "Executive Level"


@dataclass(frozen=True)
class JobContext:
    job_type: JobType
    experience_level: ExperienceLevel


Predicate = Callable[[str], bool]


def keywords(*terms: str) -> Predicate:
    """
    Case-insensitive whole-term match for any of `terms`.

    Terms may contain punctuation ("c#", ".net", "5+ years"), so the
    boundaries are alphanumeric lookarounds rather than \\b.
    """
    alternatives = "|".join(re.escape(t.lower()) for t in terms)
    pattern = re.compile(rf"(?<![a-z0-9])(?:{alternatives})(?![a-z0-9])")
    return lambda text: bool(pattern.search(text.lower()))


JOB_TYPE_RULES: Sequence[tuple[Predicate, JobType]] = (
    (
        keywords(
            "software", "developer", "programmer", "programming", "backend", "back-end",
            "frontend", "front-end", "full stack", "full-stack", "devops", "python", "java",
            "javascript", "typescript", "c#", ".net", "react", "node.js", "api", "microservices",
        ),
        JobType.SOFTWARE,
    ),
    (
        keywords(
            "marketing", "seo", "sem", "social media", "content strategy", "brand",
            "campaign", "digital marketing", "growth marketing",
        ),
        JobType.MARKETING,
    ),
    (
        keywords(
            "sales", "account executive", "business development", "quota", "prospecting",
            "lead generation", "b2b", "b2c", "closing deals",
        ),
        JobType.SALES,
    ),
    (
        keywords(
            "finance", "financial", "accounting", "accountant", "audit", "tax", "cpa", "cfa",
            "budgeting", "forecasting", "treasury", "bookkeeping",
        ),
        JobType.FINANCE,
    ),
    (
        keywords(
            "human resources", "hr", "recruiter", "recruiting", "recruitment", "talent acquisition",
            "payroll", "employee relations", "hris", "shrm",
        ),
        JobType.HR,
    ),
    (
        keywords(
            "design", "designer", "ui", "ux", "ui/ux", "figma", "sketch", "adobe", "graphic",
            "wireframe", "prototyping",
        ),
        JobType.DESIGN,
    ),
    (
        keywords(
            "data science", "data scientist", "data analyst", "data engineer", "machine learning",
            "deep learning", "statistics", "analytics", "sql", "pandas", "tensorflow", "pytorch",
        ),
        JobType.DATA,
    ),
    (
        keywords(
            "manager", "management", "head of", "team lead", "leadership", "strategic planning",
            "p&l", "stakeholder",
        ),
        JobType.MANAGEMENT,
    ),
    (
        keywords(
            "operations", "logistics", "supply chain", "procurement", "lean", "six sigma",
            "inventory", "warehouse", "erp",
        ),
        JobType.OPERATIONS,
    ),
    (
        keywords(
            "customer service", "customer support", "customer success", "help desk", "helpdesk",
            "call center", "support agent", "ticketing", "zendesk",
        ),
        JobType.CUSTOMER_SERVICE,
    ),
)

# Explicit level values on a posting ("Senior", "mid-level", "Entry Level", ...).
EXPLICIT_LEVEL_RULES: Sequence[tuple[Predicate, ExperienceLevel]] = (
    (keywords("entry", "entry level", "entry-level", "junior", "intern", "graduate"), ExperienceLevel.ENTRY),
    (keywords("mid", "mid level", "mid-level", "intermediate"), ExperienceLevel.MID),
    (keywords("senior", "sr"), ExperienceLevel.SENIOR),
    (keywords("lead", "principal", "staff"), ExperienceLevel.LEAD),
    (keywords("executive", "director", "vp", "c-level"), ExperienceLevel.EXECUTIVE),
)

# Inference from the description when no explicit level is set.
DESCRIPTION_LEVEL_RULES: Sequence[tuple[Predicate, ExperienceLevel]] = (
    (keywords("entry", "junior", "graduate"), ExperienceLevel.ENTRY),
    (keywords("senior", "lead", "principal", "5+ years", "7+ years"), ExperienceLevel.SENIOR),
    (keywords("executive", "director", "vp", "10+ years", "15+ years"), ExperienceLevel.EXECUTIVE),
)


def first_match(rules: Iterable[tuple[Predicate, Any]], text: str, default: Any) -> Any:
    for predicate, category in rules:
        if predicate(text):
            return category
    return default


def skills_text(raw: str | None) -> str:
    """Skills columns hold either free text or a JSON string list."""
    raw = (raw or "").strip()
    if not raw:
        return ""
    if raw.startswith("["):
        try:
            items = json.loads(raw)
        except ValueError:
            return raw
        if isinstance(items, list):
            return ", ".join(str(x).strip() for x in items if str(x).strip())
    return raw


def classify_job_type(*, description: str | None, skills: str | None) -> JobType:
    text = f"{description or ''}\n{skills or ''}"
    return first_match(JOB_TYPE_RULES, text, JobType.SOFTWARE)


def classify_experience_level(*, explicit_level: str | None, description: str | None) -> ExperienceLevel:
    explicit = (explicit_level or "").strip()
    if explicit:
        level = first_match(EXPLICIT_LEVEL_RULES, explicit, None)
        if level is not None:
            return level
    return first_match(DESCRIPTION_LEVEL_RULES, description or "", ExperienceLevel.MID)


def build_job_context(job: Job) -> JobContext:
    return JobContext(
        job_type=classify_job_type(
            description=job.job_description,
            skills=skills_text(job.required_skills),
        ),
        experience_level=classify_experience_level(
            explicit_level=job.experience_level,
            description=job.job_description,
        ),
    )


# ------------------------- Prompt sections -------------------------

GUIDELINES_PREAMBLE = (
    "You are an expert HR recruiter and technical interviewer with 15+ years of experience in talent acquisition.\n"
    "Your task is to analyze a candidate's CV against a specific job posting and provide a comprehensive, "
    "objective assessment.\n\n"
    "ANALYSIS GUIDELINES:\n"
    "1. Be objective and fair in your assessment\n"
    "2. Focus on relevant skills, experience, and qualifications\n"
    "3. Consider both technical and soft skills\n"
    "4. Look for growth potential and cultural fit indicators\n"
    "5. Identify any red flags or concerns\n"
    "6. Provide actionable insights for hiring decisions\n"
)

JOB_TYPE_FOCUS: dict[JobType, str] = {
    JobType.SOFTWARE: (
        "SOFTWARE DEVELOPMENT FOCUS:\n"
        "- Technical Skills: Programming languages, frameworks, databases, cloud platforms\n"
        "- Development Experience: Full-stack, frontend, backend, mobile, DevOps\n"
        "- Project Portfolio: GitHub, personal projects, open-source contributions\n"
        "- Problem-Solving: Algorithm knowledge, system design, debugging skills\n"
        "- Collaboration: Code reviews, pair programming, agile methodologies\n"
        "- Continuous Learning: Certifications, courses, technology trends\n"
    ),
    JobType.MARKETING: (
        "MARKETING FOCUS:\n"
        "- Digital Marketing: SEO, SEM, social media, email marketing, content marketing\n"
        "- Analytics: Google Analytics, data analysis, ROI measurement, KPI tracking\n"
        "- Tools: Marketing automation platforms, CRM systems, design tools\n"
        "- Campaign Management: Strategy development, execution, performance optimization\n"
        "- Brand Management: Brand positioning, messaging, visual identity\n"
        "- Industry Knowledge: Market trends, competitor analysis, customer insights\n"
    ),
    JobType.SALES: (
        "SALES FOCUS:\n"
        "- Sales Experience: B2B, B2C, inside sales, field sales, account management\n"
        "- Sales Process: Lead generation, prospecting, qualification, closing\n"
        "- CRM Systems: Salesforce, HubSpot, or similar platforms\n"
        "- Communication: Presentation skills, negotiation, relationship building\n"
        "- Industry Knowledge: Product knowledge, market understanding, competitive landscape\n"
        "- Performance Metrics: Sales targets, conversion rates, revenue generation\n"
    ),
    JobType.FINANCE: (
        "FINANCE FOCUS:\n"
        "- Financial Analysis: Financial modeling, forecasting, budgeting, variance analysis\n"
        "- Accounting: GAAP, financial reporting, audit experience, tax knowledge\n"
        "- Software: Excel, QuickBooks, SAP, Oracle, or similar financial systems\n"
        "- Certifications: CPA, CFA, CMA, or relevant financial certifications\n"
        "- Industry Experience: Banking, investment, corporate finance, or specific sectors\n"
        "- Regulatory Knowledge: Compliance, risk management, financial regulations\n"
    ),
    JobType.HR: (
        "HUMAN RESOURCES FOCUS:\n"
        "- HR Functions: Recruitment, employee relations, performance management, training\n"
        "- HR Systems: ATS, HRIS, payroll systems, performance management tools\n"
        "- Compliance: Employment law, labor relations, workplace policies\n"
        "- Communication: Conflict resolution, employee engagement, organizational development\n"
        "- Certifications: PHR, SHRM-CP, or similar HR certifications\n"
        "- Industry Knowledge: HR best practices, talent management, organizational culture\n"
    ),
    JobType.DESIGN: (
        "DESIGN FOCUS:\n"
        "- Design Skills: UI/UX, graphic design, web design, product design\n"
        "- Tools: Figma, Adobe Creative Suite, Sketch, InVision, or similar\n"
        "- Portfolio: Design projects, case studies, creative problem-solving\n"
        "- User Research: User testing, personas, wireframing, prototyping\n"
        "- Collaboration: Working with developers, product managers, stakeholders\n"
        "- Industry Knowledge: Design trends, accessibility, responsive design\n"
    ),
    JobType.DATA: (
        "DATA SCIENCE FOCUS:\n"
        "- Technical Skills: Python, R, SQL, machine learning, statistics\n"
        "- Data Tools: Pandas, NumPy, Scikit-learn, TensorFlow, PyTorch\n"
        "- Analytics: Data visualization, statistical analysis, predictive modeling\n"
        "- Databases: SQL, NoSQL, data warehousing, ETL processes\n"
        "- Domain Knowledge: Business intelligence, data engineering, AI/ML applications\n"
        "- Communication: Data storytelling, presenting insights to stakeholders\n"
    ),
    JobType.MANAGEMENT: (
        "MANAGEMENT FOCUS:\n"
        "- Leadership: Team management, project leadership, strategic planning\n"
        "- Communication: Stakeholder management, cross-functional collaboration\n"
        "- Decision Making: Problem-solving, risk assessment, resource allocation\n"
        "- Industry Experience: Relevant sector knowledge, market understanding\n"
        "- Results: Performance improvement, team development, business impact\n"
        "- Education: MBA, management certifications, or equivalent experience\n"
    ),
    JobType.OPERATIONS: (
        "OPERATIONS FOCUS:\n"
        "- Process Improvement: Lean, Six Sigma, operational efficiency\n"
        "- Project Management: PMP, Agile, Scrum, or similar methodologies\n"
        "- Systems: ERP, supply chain management, quality control systems\n"
        "- Industry Knowledge: Manufacturing, logistics, service operations\n"
        "- Problem Solving: Root cause analysis, continuous improvement\n"
        "- Leadership: Team management, vendor relationships, cost optimization\n"
    ),
    JobType.CUSTOMER_SERVICE: (
        "CUSTOMER SERVICE FOCUS:\n"
        "- Communication: Verbal and written communication, active listening\n"
        "- Problem Solving: Issue resolution, customer satisfaction, conflict management\n"
        "- Systems: CRM, ticketing systems, knowledge management platforms\n"
        "- Industry Knowledge: Product knowledge, service standards, customer expectations\n"
        "- Soft Skills: Empathy, patience, professionalism, teamwork\n"
        "- Performance: Customer satisfaction scores, resolution times, feedback\n"
    ),
}

EXPERIENCE_LEVEL_GUIDANCE: dict[ExperienceLevel, str] = {
    ExperienceLevel.ENTRY: (
        "ENTRY LEVEL CONSIDERATIONS:\n"
        "- Focus on education, internships, and potential\n"
        "- Look for transferable skills and eagerness to learn\n"
        "- Consider cultural fit and motivation\n"
        "- Evaluate problem-solving approach and communication skills\n"
        "- Don't expect extensive industry experience\n"
    ),
    ExperienceLevel.MID: (
        "MID LEVEL CONSIDERATIONS:\n"
        "- Look for 2-5 years of relevant experience\n"
        "- Evaluate technical competency and project experience\n"
        "- Consider leadership potential and mentoring abilities\n"
        "- Assess problem-solving skills and independent work capability\n"
        "- Look for growth trajectory and career progression\n"
    ),
    ExperienceLevel.SENIOR: (
        "SENIOR LEVEL CONSIDERATIONS:\n"
        "- Require 5+ years of relevant experience\n"
        "- Evaluate technical expertise and architectural thinking\n"
        "- Look for mentoring and leadership experience\n"
        "- Assess strategic thinking and business impact\n"
        "- Consider industry knowledge and best practices\n"
    ),
    ExperienceLevel.LEAD: (
        "LEAD LEVEL CONSIDERATIONS:\n"
        "- Require 7+ years of relevant experience\n"
        "- Evaluate team leadership and technical direction\n"
        "- Look for project management and stakeholder management\n"
        "- Assess strategic thinking and business acumen\n"
        "- Consider innovation and process improvement experience\n"
    ),
    ExperienceLevel.EXECUTIVE: (
        "EXECUTIVE LEVEL CONSIDERATIONS:\n"
        "- Require 10+ years of relevant experience\n"
        "- Evaluate strategic leadership and vision\n"
        "- Look for P&L responsibility and business impact\n"
        "- Assess industry expertise and market knowledge\n"
        "- Consider board-level communication and decision-making\n"
    ),
}

SCORING_RUBRIC = (
    "SCORING CRITERIA (0-100 scale):\n"
    "- 90-100: Exceptional match - exceeds requirements, strong hire\n"
    "- 80-89: Strong match - meets most requirements, good hire\n"
    "- 70-79: Good match - meets basic requirements, consider for interview\n"
    "- 60-69: Fair match - some gaps, interview to assess potential\n"
    "- 50-59: Weak match - significant gaps, consider only if other factors are strong\n"
    "- Below 50: Poor match - does not meet basic requirements\n\n"
    "FACTORS TO CONSIDER:\n"
    "1. Technical/Functional Skills (30%)\n"
    "2. Relevant Experience (25%)\n"
    "3. Education/Certifications (15%)\n"
    "4. Soft Skills/Communication (15%)\n"
    "5. Cultural Fit/Potential (10%)\n"
    "6. Career Progression/Growth (5%)\n\n"
    "Be thorough but concise in your analysis. Provide specific examples from the CV to support your assessment.\n"
)

OUTPUT_SCHEMA_INSTRUCTION = (
    "Return ONLY a JSON object, no markdown and no text outside it, in exactly this shape:\n"
    "{\n"
    '  "OverallScore": number (0-100),\n'
    '  "Summary": "string (2-3 sentences summarizing the candidate\'s fit)",\n'
    '  "Strengths": ["string1", "string2", "string3"],\n'
    '  "Weaknesses": ["string1", "string2", "string3"],\n'
    '  "DetailedAnalysis": "string (comprehensive analysis of 3-4 paragraphs)",\n'
    '  "SkillMatch": {\n'
    '    "RequiredSkillsMatch": number (0-100),\n'
    '    "PreferredSkillsMatch": number (0-100),\n'
    '    "MissingCriticalSkills": ["skill1", "skill2"],\n'
    '    "StrongSkills": ["skill1", "skill2"]\n'
    "  },\n"
    '  "ExperienceAssessment": {\n'
    '    "RelevantExperience": number (0-100),\n'
    '    "ExperienceLevelMatch": "string (Entry/Mid/Senior/Lead/Executive)",\n'
    '    "YearsOfExperience": number,\n'
    '    "IndustryExperience": "string"\n'
    "  },\n"
    '  "Recommendation": "string (Hire/Interview/Reject with brief reasoning)",\n'
    '  "InterviewQuestions": ["question1", "question2", "question3"]\n'
    "}\n"
)


def _job_details(job: Job, context: JobContext) -> str:
    return (
        "JOB DETAILS:\n"
        f"- Job Title: {job.job_title or ''}\n"
        f"- Job Type: {context.job_type.value}\n"
        f"- Experience Level: {context.experience_level.value}\n"
        f"- Job Description: {job.job_description or ''}\n"
        f"- Required Skills: {skills_text(job.required_skills)}\n"
        f"- Preferred Skills: {skills_text(job.preferred_skills)}\n"
        f"- Key Responsibilities: {job.responsibilities or ''}\n"
    )


def build_screening_prompt(*, job: Job, cv_text: str, context: JobContext | None = None) -> str:
    ctx = context or build_job_context(job)
    sections = [
        GUIDELINES_PREAMBLE,
        _job_details(job, ctx),
        JOB_TYPE_FOCUS[ctx.job_type],
        EXPERIENCE_LEVEL_GUIDANCE[ctx.experience_level],
        SCORING_RUBRIC,
        OUTPUT_SCHEMA_INSTRUCTION,
        "CV CONTENT TO ANALYZE:\n-----\n" f"{cv_text or ''}\n" "-----\n",
    ]
    return "\n".join(sections)
