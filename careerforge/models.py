"""Pydantic models for CareerForge data structures.

Models passed to Gemini as a response schema (``CareerAnalysis``,
``WeeklyPlan``, ``ProjectIdea``, ``InterviewFeedback`` and their children)
must not declare field defaults; the Gemini API rejects them.
"""

from typing import Literal

from pydantic import BaseModel, Field, computed_field, field_validator

SkillCategory = Literal["technical", "soft", "domain"]
SkillStatus = Literal["acquired", "missing", "in-progress"]
TaskType = Literal["course", "project", "reading"]


class ResumeFile(BaseModel):
    """An uploaded résumé, kept as base64 so it can be stored and sent inline."""

    data: str = Field(description="Base64-encoded file content")
    mime_type: str = Field(description="Declared media type, e.g. 'application/pdf'")


class UserProfile(BaseModel):
    """Who the user is and what role they are aiming for."""

    name: str = "User"
    target_role: str = ""
    resume_text: str | None = None
    resume_file: ResumeFile | None = None

    @property
    def has_resume(self) -> bool:
        return bool(self.resume_text) or self.resume_file is not None


class Skill(BaseModel):
    """A single skill extracted from the résumé or required by the role."""

    name: str = Field(description="Skill name, e.g. 'SQL' or 'Stakeholder management'")
    category: SkillCategory = Field(description="Kind of skill")
    status: SkillStatus = Field(
        description="'acquired' if found in the resume, 'missing' if required for the target role but absent"
    )


class CareerAnalysis(BaseModel):
    """Fit of a résumé against a target role."""

    readiness_score: int = Field(ge=0, le=100, description="Readiness for the target role from 0-100")
    summary: str = Field(description="2-3 sentence executive summary")
    skills: list[Skill] = Field(description="Skills found in the resume and skills the role requires")
    strengths: list[str] = Field(description="Top 3 selling points")
    weaknesses: list[str] = Field(description="Top 3 gaps to fill")

    @property
    def missing_skills(self) -> list[str]:
        return [s.name for s in self.skills if s.status == "missing"]


class LearningTask(BaseModel):
    """One task in a learning sprint.

    The search queries are derived from the title, never requested from the model.
    """

    id: str = Field(description="Short unique task identifier")
    title: str = Field(description="Engaging, specific task title")
    description: str = Field(description="What to do and why it matters")
    type: TaskType = Field(description="Kind of task")
    estimated_hours: float = Field(description="Estimated effort in hours")
    completed: bool = Field(description="Whether the task is done; false for new tasks")

    @field_validator("estimated_hours")
    @classmethod
    def hours_positive(cls, v: float) -> float:
        if v <= 0:
            msg = "estimated_hours must be positive"
            raise ValueError(msg)
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def video_query(self) -> str:
        return f"{self.title} tutorial"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def udemy_query(self) -> str:
        return f"{self.title} course"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def coursera_query(self) -> str:
        return f"{self.title} specialization"


class WeeklyPlan(BaseModel):
    """A themed week of learning tasks."""

    week_number: int = Field(description="Week number, starting at 1")
    theme: str = Field(description="Theme of the week")
    tasks: list[LearningTask] = Field(description="4-5 high-impact tasks")


class JobListing(BaseModel):
    """A job found through grounded search, scored against the candidate's skills.

    ``match_score`` is passed through exactly as the model produced it.
    """

    id: str
    title: str
    company: str
    location: str = ""
    salary: str | None = None
    posted_at: str | None = None
    match_score: float = 0
    description: str = ""
    skills_matched: list[str] = Field(default_factory=list)
    apply_link: str | None = None


class ProjectIdea(BaseModel):
    """A portfolio project suggestion."""

    id: str = Field(description="Short unique identifier")
    title: str = Field(description="Project title")
    difficulty: Literal["Beginner", "Intermediate", "Advanced"] = Field(description="Difficulty tier")
    description: str = Field(description="What the project is")
    tech_stack: list[str] = Field(description="Technologies used")
    key_features: list[str] = Field(description="Features to build")
    resume_value: str = Field(description="Why this project helps on a resume")


class HotTechnology(BaseModel):
    name: str
    growth_reason: str = ""


class IndustryNews(BaseModel):
    headline: str
    summary: str = ""
    impact: str = ""


class MarketTrend(BaseModel):
    """Market snapshot for a role."""

    role: str
    salary_range: str = ""
    demand_level: Literal["High", "Medium", "Low"]
    hot_technologies: list[HotTechnology] = Field(default_factory=list)
    industry_news: list[IndustryNews] = Field(default_factory=list)


class ChatMessage(BaseModel):
    """One turn of an interview transcript."""

    id: str
    role: Literal["user", "model"]
    text: str
    timestamp: int = Field(description="Milliseconds since the epoch")


class InterviewFeedback(BaseModel):
    """Coach's evaluation of a finished interview."""

    score: float = Field(ge=0, le=10, description="Overall score from 0-10")
    feedback_summary: str = Field(description="Short summary of the performance")
    strengths: list[str] = Field(description="What went well")
    improvements: list[str] = Field(description="What to improve")
    recommended_focus: str = Field(description="One specific area to study next")


class UserRecord(BaseModel):
    """A registered account. Only a salted hash of the password is kept."""

    email: str
    password_hash: str
    salt: str
    name: str
    created_at: int = Field(description="Milliseconds since the epoch")


class UserData(BaseModel):
    """Everything stored for one user, persisted as a single unit."""

    user_profile: UserProfile = Field(default_factory=UserProfile)
    analysis: CareerAnalysis | None = None
    plan: list[WeeklyPlan] | None = None
    jobs: list[JobListing] = Field(default_factory=list)
    projects: list[ProjectIdea] = Field(default_factory=list)
    trends: MarketTrend | None = None
    chat_messages: list[ChatMessage] = Field(default_factory=list)
    interview_feedback: InterviewFeedback | None = None


class AuthResult(BaseModel):
    """Outcome of a signup or login attempt."""

    success: bool
    message: str | None = None
    name: str | None = None
