"""Coach agent - résumé analysis, learning plans and portfolio project ideas."""

import logging
import time

from google import genai

from .errors import MalformedResponseError, MissingInputError
from .llm import call_gemini, inline_part, parse_response
from .models import CareerAnalysis, ProjectIdea, ResumeFile, WeeklyPlan

logger = logging.getLogger(__name__)

MAX_RESUME_CHARS = 30_000

ANALYST_PROMPT = """Role: Senior Career Coach.
Task: Analyze the candidate's profile against the target role: "{target_role}".

Output strictly in JSON format matching the schema.
- readiness_score: integer 0-100 based on fit.
- summary: A 2-3 sentence executive summary.
- skills: List of skills extracted, categorized as 'technical', 'soft' or 'domain', and marked as 'acquired' (found in resume) or 'missing' (required for target role).
- strengths: Top 3 selling points.
- weaknesses: Top 3 gaps to fill."""

CURRICULUM_PROMPT = """Role: Expert Curriculum Designer.
Task: Create a 1-Week Intensive Learning Sprint for a "{target_role}".
Focus strictly on these gaps: {focus_skills}.

Requirements:
- Output exactly 1 week (week_number: 1).
- 4-5 high-impact tasks per week.
- Mix of 'course', 'reading', 'project'.
- Every task starts with completed: false.
- Provide detailed, engaging titles and descriptions for each task and week theme.
{regenerate_note}
- Timestamp: {timestamp}"""

REGENERATE_NOTE = (
    "- This is a regeneration request. Please create a completely new and different learning plan "
    "with fresh tasks and approaches."
)

PROJECTS_PROMPT = """Role: Senior Engineering Manager.
Task: Suggest 3 portfolio projects for a "{target_role}".
Levels: Beginner, Intermediate, Advanced (one project per level).
For each project give the tech stack, the key features to build and why it adds value on a resume."""


def analyze_profile(
    client: genai.Client,
    target_role: str,
    resume_text: str | None = None,
    resume_file: ResumeFile | None = None,
) -> CareerAnalysis:
    """
    Analyze a résumé against a target role.

    Args:
        client: Gemini client instance.
        target_role: Role the candidate is aiming for.
        resume_text: Pasted résumé text.
        resume_file: Uploaded résumé, sent inline. Takes precedence over text.

    Returns:
        Readiness score, summary, categorized skills, strengths and weaknesses.

    Raises:
        MissingInputError: If neither text nor file is given. No call is made.
        MalformedResponseError: If the response is not a valid analysis.
    """
    prompt = ANALYST_PROMPT.format(target_role=target_role)

    if resume_file is not None:
        contents: list = [inline_part(resume_file.data, resume_file.mime_type), prompt]
    elif resume_text:
        contents = [f'Resume Content:\n"{resume_text[:MAX_RESUME_CHARS]}"\n\n{prompt}']
    else:
        raise MissingInputError("No resume input provided")

    content = call_gemini(client, contents, response_schema=CareerAnalysis)
    return parse_response(content, CareerAnalysis, "analysis")


def generate_learning_plan(
    client: genai.Client,
    target_role: str,
    missing_skills: list[str],
    regenerate: bool = False,
) -> list[WeeklyPlan]:
    """
    Generate a one-week learning sprint focused on the candidate's gaps.

    Only the first five missing skills are used. With no gaps the sprint covers
    core competencies for the role. Weeks are renumbered from 1 and only the
    first week is kept.
    """
    if missing_skills:
        focus_skills = ", ".join(missing_skills[:5])
    else:
        focus_skills = f"core modern competencies for {target_role}"

    prompt = CURRICULUM_PROMPT.format(
        target_role=target_role,
        focus_skills=focus_skills,
        regenerate_note=REGENERATE_NOTE if regenerate else "",
        timestamp=int(time.time() * 1000),
    )

    content = call_gemini(client, prompt, response_schema=list[WeeklyPlan])
    weeks: list[WeeklyPlan] = parse_response(content, list[WeeklyPlan], "learning plan")

    if not weeks:
        raise MalformedResponseError("Learning plan response contained no weeks", raw_text=content)
    if len(weeks) > 1:
        logger.info("Model returned %d weeks for a one-week sprint, keeping the first", len(weeks))

    for index, week in enumerate(weeks, 1):
        week.week_number = index
    return weeks[:1]


def generate_project_ideas(client: genai.Client, target_role: str) -> list[ProjectIdea]:
    """Suggest three portfolio projects, one per difficulty tier."""
    prompt = PROJECTS_PROMPT.format(target_role=target_role)
    content = call_gemini(client, prompt, response_schema=list[ProjectIdea])
    return parse_response(content, list[ProjectIdea], "project ideas")
