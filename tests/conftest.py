"""Shared pytest fixtures for CareerForge tests."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from careerforge.auth import AuthService
from careerforge.models import (
    CareerAnalysis,
    ChatMessage,
    LearningTask,
    Skill,
    WeeklyPlan,
)
from careerforge.session import CareerSession
from careerforge.store import JsonFileStore


def make_response(text: str | None) -> MagicMock:
    resp = MagicMock()
    resp.text = text
    return resp


def make_client(*texts: str | None) -> MagicMock:
    """A Gemini client whose generate_content calls return *texts* in order."""
    client = MagicMock()
    client.models.generate_content.side_effect = [make_response(t) for t in texts]
    return client


@pytest.fixture()
def sample_analysis() -> CareerAnalysis:
    return CareerAnalysis(
        readiness_score=62,
        summary="Solid analytical foundation with Python and SQL. Needs BI tooling and statistics depth.",
        skills=[
            Skill(name="Python", category="technical", status="acquired"),
            Skill(name="SQL", category="technical", status="acquired"),
            Skill(name="Tableau", category="technical", status="missing"),
            Skill(name="Statistics", category="domain", status="missing"),
            Skill(name="Storytelling", category="soft", status="in-progress"),
        ],
        strengths=["Python scripting", "SQL querying", "Automation mindset"],
        weaknesses=["No BI dashboards", "Limited statistics", "Few stakeholder-facing projects"],
    )


@pytest.fixture()
def sample_plan() -> list[WeeklyPlan]:
    return [
        WeeklyPlan(
            week_number=1,
            theme="Dashboards and descriptive statistics",
            tasks=[
                LearningTask(
                    id="t1",
                    title="Tableau Fundamentals",
                    description="Build your first dashboard.",
                    type="course",
                    estimated_hours=4,
                    completed=False,
                ),
                LearningTask(
                    id="t2",
                    title="Think Stats chapter 1-3",
                    description="Read up on distributions.",
                    type="reading",
                    estimated_hours=3,
                    completed=False,
                ),
                LearningTask(
                    id="t3",
                    title="Sales dashboard",
                    description="Publish a dashboard on public data.",
                    type="project",
                    estimated_hours=6,
                    completed=False,
                ),
                LearningTask(
                    id="t4",
                    title="A/B testing basics",
                    description="Learn hypothesis testing.",
                    type="course",
                    estimated_hours=2.5,
                    completed=False,
                ),
            ],
        )
    ]


@pytest.fixture()
def sample_plan_json(sample_plan: list[WeeklyPlan]) -> str:
    return json.dumps([week.model_dump(mode="json") for week in sample_plan])


@pytest.fixture()
def sample_transcript() -> list[ChatMessage]:
    return [
        ChatMessage(id="1", role="model", text="Hi, I'm Dana. Tell me about a dashboard you built.", timestamp=1),
        ChatMessage(id="2", role="user", text="I built a churn dashboard in Tableau.", timestamp=2),
        ChatMessage(id="3", role="model", text="Good. How did you pick the metrics?", timestamp=3),
    ]


@pytest.fixture()
def store(tmp_path: Path) -> JsonFileStore:
    return JsonFileStore(tmp_path / "data")


@pytest.fixture()
def auth(store: JsonFileStore) -> AuthService:
    return AuthService(store)


@pytest.fixture()
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def session(auth: AuthService, client: MagicMock) -> CareerSession:
    """A logged-in session with a target role and pasted résumé."""
    career = CareerSession(auth, client=client)
    result = career.signup("alex@example.com", "secret123")
    assert result.success
    career.set_target_role("Data Analyst")
    career.set_resume_text("Experienced in Python, SQL")
    return career
