"""Application state for one signed-in user.

``CareerSession`` owns the in-memory aggregate and is the only place that
writes it back to storage: every mutating operation ends with an explicit
``commit()``. Provider failures propagate to the caller, which owns the
matching error slot and retry button.
"""

import logging
import time
from typing import Literal

from google import genai

from .auth import AuthService
from .coach import analyze_profile, generate_learning_plan, generate_project_ideas
from .errors import MissingInputError
from .interview import InterviewSession, generate_interview_feedback
from .llm import create_client
from .market import fetch_market_trends, find_matching_jobs
from .models import (
    AuthResult,
    CareerAnalysis,
    ChatMessage,
    InterviewFeedback,
    JobListing,
    LearningTask,
    MarketTrend,
    ProjectIdea,
    TaskType,
    UserData,
    UserProfile,
    WeeklyPlan,
)
from .resume import prepare_resume

logger = logging.getLogger(__name__)

CHAT_ERROR_MESSAGE = "I'm having trouble connecting right now (High Traffic). Please try again in a moment."

View = Literal["ONBOARDING", "DASHBOARD"]


def _now_ms() -> int:
    return int(time.time() * 1000)


class CareerSession:
    """In-memory aggregate plus the operations that change it."""

    def __init__(self, auth: AuthService, client: genai.Client | None = None):
        self.auth = auth
        self._client = client
        self.email: str | None = None
        self.data = UserData()
        self.interview: InterviewSession | None = None

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = create_client()
        return self._client

    @property
    def logged_in(self) -> bool:
        return self.email is not None

    @property
    def profile(self) -> UserProfile:
        return self.data.user_profile

    @property
    def view(self) -> View:
        return "DASHBOARD" if self.data.analysis is not None else "ONBOARDING"

    def commit(self) -> None:
        """Write the whole aggregate back to storage if someone is logged in."""
        if self.email is not None:
            self.auth.save_user_data(self.email, self.data)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def _validate_credentials(self, email: str, password: str) -> AuthResult | None:
        if not self.auth.is_valid_email(email):
            return AuthResult(success=False, message="Please enter a valid email address.")
        if not self.auth.is_valid_password(password):
            return AuthResult(success=False, message="Password must be at least 6 characters.")
        return None

    def signup(self, email: str, password: str) -> AuthResult:
        """Create an account and log straight into it."""
        email = email.strip()
        invalid = self._validate_credentials(email, password)
        if invalid is not None:
            return invalid
        result = self.auth.signup(email, password)
        if not result.success:
            return result
        return self._hydrate(email, result)

    def login(self, email: str, password: str) -> AuthResult:
        email = email.strip()
        invalid = self._validate_credentials(email, password)
        if invalid is not None:
            return invalid
        result = self.auth.login(email, password)
        if not result.success:
            return result
        return self._hydrate(email, result)

    def _hydrate(self, email: str, result: AuthResult) -> AuthResult:
        data = self.auth.get_user_data(email)
        if data is None:
            return AuthResult(success=False, message="Critical error loading user data.")
        self.email = email
        self.data = data
        self.interview = None
        logger.info("Loaded session for %s", email)
        return result

    def logout(self) -> None:
        """Forget the in-memory state. Stored data is kept."""
        self.email = None
        self.data = UserData()
        self.interview = None

    # ------------------------------------------------------------------
    # Profile & lifecycle
    # ------------------------------------------------------------------

    def set_target_role(self, target_role: str) -> None:
        self.profile.target_role = target_role.strip()
        self.commit()

    def set_resume_text(self, resume_text: str) -> None:
        self.profile.resume_text = resume_text or None
        self.commit()

    def attach_resume(self, filename: str, data: bytes, mime_type: str | None = None) -> None:
        """Store an uploaded résumé (inline for PDFs, extracted text otherwise)."""
        text, resume_file = prepare_resume(filename, data, mime_type)
        if resume_file is not None:
            self.profile.resume_file = resume_file
        else:
            self.profile.resume_text = text
            self.profile.resume_file = None
        self.commit()

    def _clear_results(self) -> None:
        self.data.analysis = None
        self.data.plan = None
        self.data.jobs = []
        self.data.projects = []
        self.data.trends = None
        self.data.chat_messages = []
        self.data.interview_feedback = None
        self.interview = None

    def reset_data(self) -> None:
        """Wipe résumé, role, plan and progress. Only the display name survives."""
        self.data = UserData(user_profile=UserProfile(name=self.profile.name))
        self.interview = None
        self.commit()

    def switch_track(self) -> None:
        """Start over with a new target role but keep the résumé."""
        self.profile.target_role = ""
        self._clear_results()
        self.commit()

    # ------------------------------------------------------------------
    # Analysis & learning plan
    # ------------------------------------------------------------------

    def _require_role(self) -> str:
        if not self.profile.target_role:
            raise MissingInputError("Please define a target role first.")
        return self.profile.target_role

    def _require_analysis(self) -> CareerAnalysis:
        if self.data.analysis is None:
            raise MissingInputError("Analyze your resume first.")
        return self.data.analysis

    def analyze(self) -> CareerAnalysis:
        target_role = self._require_role()
        if not self.profile.has_resume:
            raise MissingInputError("Paste your resume or upload a file first.")
        analysis = analyze_profile(
            self.client,
            target_role,
            resume_text=self.profile.resume_text,
            resume_file=self.profile.resume_file,
        )
        self.data.analysis = analysis
        self.commit()
        return analysis

    def generate_plan(self) -> list[WeeklyPlan]:
        """Generate a plan, or a fresh one if a plan already exists."""
        analysis = self._require_analysis()
        plan = generate_learning_plan(
            self.client,
            self.profile.target_role,
            analysis.missing_skills,
            regenerate=self.data.plan is not None,
        )
        self.data.plan = plan
        self.commit()
        return plan

    def _week(self, week_index: int) -> WeeklyPlan:
        if not self.data.plan:
            raise MissingInputError("Generate a learning plan first.")
        return self.data.plan[week_index]

    def toggle_task(self, week_index: int, task_id: str) -> bool | None:
        """Flip a task's completed flag. Returns the new value, or None if the task is unknown."""
        for task in self._week(week_index).tasks:
            if task.id == task_id:
                task.completed = not task.completed
                self.commit()
                return task.completed
        return None

    def delete_task(self, week_index: int, task_id: str) -> None:
        week = self._week(week_index)
        week.tasks = [t for t in week.tasks if t.id != task_id]
        self.commit()

    def add_task(self, week_index: int, title: str, task_type: TaskType = "course", hours: float = 1) -> LearningTask:
        title = title.strip()
        if not title:
            raise MissingInputError("Task title is required.")
        task = LearningTask(
            id=str(_now_ms()),
            title=title,
            description="Manually added task",
            type=task_type,
            estimated_hours=hours,
            completed=False,
        )
        self._week(week_index).tasks.append(task)
        self.commit()
        return task

    # ------------------------------------------------------------------
    # Jobs, projects, trends
    # ------------------------------------------------------------------

    def scan_jobs(self) -> list[JobListing]:
        analysis = self._require_analysis()
        jobs = find_matching_jobs(self.client, self.profile.target_role, [s.name for s in analysis.skills])
        self.data.jobs = jobs
        self.commit()
        return jobs

    def generate_projects(self) -> list[ProjectIdea]:
        projects = generate_project_ideas(self.client, self._require_role())
        self.data.projects = projects
        self.commit()
        return projects

    def fetch_trends(self) -> MarketTrend:
        trends = fetch_market_trends(self.client, self._require_role())
        self.data.trends = trends
        self.commit()
        return trends

    # ------------------------------------------------------------------
    # Interview
    # ------------------------------------------------------------------

    def _append_message(self, role: Literal["user", "model"], text: str) -> ChatMessage:
        messages = self.data.chat_messages
        message_id = str(_now_ms())
        if any(m.id == message_id for m in messages):
            message_id = f"{message_id}-{len(messages)}"
        message = ChatMessage(id=message_id, role=role, text=text, timestamp=_now_ms())
        messages.append(message)
        return message

    def start_interview(self) -> ChatMessage:
        """Open a fresh interview and return the interviewer's greeting."""
        target_role = self._require_role()
        interview = InterviewSession(self.client, target_role)
        greeting = interview.open()

        self.interview = interview
        self.data.interview_feedback = None
        self.data.chat_messages = []
        message = self._append_message("model", greeting)
        self.commit()
        return message

    def resume_interview(self) -> InterviewSession:
        """Rebuild the chat from the stored transcript after a reload."""
        self.interview = InterviewSession(self.client, self._require_role(), history=self.data.chat_messages)
        return self.interview

    def send_message(self, text: str) -> ChatMessage:
        """Send an answer and return the interviewer's reply.

        A failed turn does not raise: it shows up in the transcript as a
        high-traffic notice so the conversation can continue.
        """
        text = text.strip()
        if not text:
            raise MissingInputError("Type an answer first.")
        if self.interview is None and not self.data.chat_messages:
            raise MissingInputError("Start the interview first.")
        interview = self.interview or self.resume_interview()

        self._append_message("user", text)
        try:
            reply = interview.reply(text)
        except Exception:
            logger.exception("Interview turn failed")
            reply = CHAT_ERROR_MESSAGE
        message = self._append_message("model", reply)
        self.commit()
        return message

    def end_interview(self) -> InterviewFeedback | None:
        """Finish the interview and score it.

        With fewer than two messages there is nothing to score, so the
        transcript is dropped and None is returned. If scoring fails the
        transcript is dropped and the error re-raised.
        """
        self.interview = None
        messages = self.data.chat_messages
        if len(messages) < 2:
            self.data.chat_messages = []
            self.commit()
            return None

        try:
            feedback = generate_interview_feedback(self.client, messages, self.profile.target_role)
        except Exception:
            self.data.chat_messages = []
            self.commit()
            raise

        self.data.interview_feedback = feedback
        self.commit()
        return feedback
