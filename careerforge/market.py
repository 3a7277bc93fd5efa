"""Market agent - grounded job search and market trend snapshots.

Both calls use Google Search grounding, which the Gemini API does not allow
together with a response schema. The JSON shape is described in the prompt
and the output goes through the same extractor and validators as everything
else, so these are the least reliable calls in the pipeline.
"""

import json
import logging

from google import genai

from .errors import MalformedResponseError
from .llm import call_gemini, parse_json, parse_response, validate_payload
from .models import JobListing, MarketTrend

logger = logging.getLogger(__name__)

_EXAMPLE_JOBS = [
    {
        "id": "apple-ml-2025",
        "title": "Machine Learning Engineer, OS Intelligence",
        "company": "Apple",
        "location": "Cupertino, CA / Remote Eligible",
        "salary": "$126,800 - $220,900",
        "posted_at": "3 days ago",
        "match_score": 95,
        "description": "Design deep learning architectures and implement ML algorithms to optimize "
        "operating system performance and battery life.",
        "skills_matched": ["Python", "PyTorch", "TensorFlow", "Deep Learning"],
        "apply_link": "https://www.apple.com/careers",
    }
]

RECRUITER_PROMPT = """Role: Technical Recruiter.
Task: Search for {count} active, relevant job listings for "{target_role}" and return them as a JSON array.

Context: The candidate has these skills: {skills}.

Instructions:
1. Use Google Search to find REAL, active job listings.
2. For each job, analyze the description and calculate a 'match_score' (0-100) based on the candidate's skills.
3. Extract 'skills_matched' from the job description that overlap with candidate's skills.
4. Format the output EXACTLY as this JSON example (same keys):
{example}

Output Rules:
- Return ONLY the JSON array.
- No markdown formatting (no ```json).
- Ensure 'apply_link' is a valid direct link if possible, or a search result link.
- If exact salary is not found, estimate based on role/location or use 'Competitive'.
- Start with '[' and end with ']'."""

ANALYST_PROMPT = """Role: Tech Analyst.
Task: Provide a real-time market snapshot for "{target_role}" including salary ranges, demand, hot technologies, and recent industry news.

Instructions:
1. Use Google Search to find CURRENT data for:
   - Salary range (US average or global tech hubs)
   - Market demand level (one of High, Medium, Low)
   - Trending technologies/skills for this role
   - Recent news headlines affecting this role
2. Format the output EXACTLY as this JSON object:
{example}

Output Rules:
- Return ONLY the JSON object.
- No markdown formatting.
- Start with '{{' and end with '}}'."""


def find_matching_jobs(
    client: genai.Client,
    target_role: str,
    skills: list[str],
    count: int = 3,
) -> list[JobListing]:
    """
    Find live job listings for a role via grounded search.

    Args:
        client: Gemini client instance.
        target_role: Role to search for.
        skills: All of the candidate's skills, used by the model to score matches.
        count: How many listings to ask for.

    Returns:
        Listings as the model scored them. An empty response or a payload that
        is not a JSON array yields an empty list.
    """
    prompt = RECRUITER_PROMPT.format(
        count=count,
        target_role=target_role,
        skills=", ".join(skills),
        example=json.dumps(_EXAMPLE_JOBS),
    )

    content = call_gemini(client, prompt, grounded=True)
    if not content.strip():
        return []

    try:
        data = parse_json(content)
    except MalformedResponseError:
        logger.error("Could not parse job search response. Raw text: %s", content)
        raise

    if not isinstance(data, list):
        logger.warning("Job search returned %s instead of a list, ignoring", type(data).__name__)
        return []

    for index, item in enumerate(data, 1):
        if isinstance(item, dict) and not item.get("id"):
            item["id"] = f"job-{index}"

    return validate_payload(data, list[JobListing], "job search", content)


def fetch_market_trends(client: genai.Client, target_role: str) -> MarketTrend:
    """Snapshot salary range, demand, hot technologies and industry news for a role."""
    example = {
        "role": target_role,
        "salary_range": "$120k - $180k",
        "demand_level": "High",
        "hot_technologies": [{"name": "TechName", "growth_reason": "Reason for growth"}],
        "industry_news": [{"headline": "Headline", "summary": "Short summary", "impact": "Impact on career"}],
    }
    prompt = ANALYST_PROMPT.format(target_role=target_role, example=json.dumps(example))

    content = call_gemini(client, prompt, grounded=True)
    return parse_response(content, MarketTrend, "market trends")
