"""Tests for careerforge.session: the per-user state container."""

from unittest.mock import MagicMock, patch

import pytest
from freezegun import freeze_time

from careerforge.auth import AuthService
from careerforge.errors import MissingInputError, ProviderError
from careerforge.models import (
    CareerAnalysis,
    ChatMessage,
    InterviewFeedback,
    JobListing,
    MarketTrend,
    ResumeFile,
    WeeklyPlan,
)
from careerforge.session import CHAT_ERROR_MESSAGE, CareerSession

FEEDBACK = InterviewFeedback(
    score=8,
    feedback_summary="Good.",
    strengths=["Clarity"],
    improvements=["Depth"],
    recommended_focus="SQL window functions",
)


@pytest.fixture()
def analyzed(session: CareerSession, sample_analysis: CareerAnalysis) -> CareerSession:
    session.data.analysis = sample_analysis
    session.commit()
    return session


@pytest.fixture()
def planned(analyzed: CareerSession, sample_plan: list[WeeklyPlan]) -> CareerSession:
    analyzed.data.plan = sample_plan
    analyzed.commit()
    return analyzed


def _stored(career: CareerSession):
    return career.auth.get_user_data(career.email)


class TestAuthFlow:
    def test_signup_logs_in(self, session: CareerSession):
        assert session.logged_in
        assert session.profile.name == "alex"
        assert session.view == "ONBOARDING"

    def test_invalid_email(self, auth: AuthService):
        result = CareerSession(auth).signup("not-an-email", "secret123")
        assert result.message == "Please enter a valid email address."

    def test_short_password(self, auth: AuthService):
        result = CareerSession(auth).login("alex@example.com", "123")
        assert result.message == "Password must be at least 6 characters."

    def test_login_restores_state(self, session: CareerSession, auth: AuthService):
        session.logout()
        assert not session.logged_in
        assert session.profile.target_role == ""

        result = session.login("alex@example.com", "secret123")

        assert result.success
        assert session.profile.target_role == "Data Analyst"
        assert session.profile.resume_text == "Experienced in Python, SQL"

    def test_missing_aggregate_is_critical(self, session: CareerSession, auth: AuthService):
        session.logout()
        with patch.object(auth, "get_user_data", return_value=None):
            result = session.login("alex@example.com", "secret123")

        assert not result.success
        assert result.message == "Critical error loading user data."
        assert not session.logged_in

    def test_commit_without_login_is_noop(self, auth: AuthService):
        career = CareerSession(auth)
        career.set_target_role("SRE")
        assert list(auth.store.data_dir.iterdir()) == []


class TestProfile:
    def test_set_target_role_persists(self, session: CareerSession):
        session.set_target_role("  ML Engineer ")
        assert _stored(session).user_profile.target_role == "ML Engineer"

    def test_attach_pdf_keeps_text(self, session: CareerSession):
        session.attach_resume("cv.pdf", b"%PDF-1.4", "application/pdf")

        assert session.profile.resume_file is not None
        assert session.profile.resume_text == "Experienced in Python, SQL"
        assert _stored(session).user_profile.resume_file.mime_type == "application/pdf"

    def test_attach_text_file_replaces_pdf(self, session: CareerSession):
        session.attach_resume("cv.pdf", b"%PDF-1.4", "application/pdf")
        session.attach_resume("cv.md", b"# Alex\nPython, SQL, dbt")

        assert session.profile.resume_file is None
        assert session.profile.resume_text == "# Alex\nPython, SQL, dbt"


class TestAnalyze:
    def test_requires_role(self, session: CareerSession, client: MagicMock):
        session.set_target_role("")

        with pytest.raises(MissingInputError, match="target role"):
            session.analyze()
        client.models.generate_content.assert_not_called()

    def test_requires_resume(self, session: CareerSession, client: MagicMock):
        session.set_resume_text("")

        with pytest.raises(MissingInputError, match="resume"):
            session.analyze()
        client.models.generate_content.assert_not_called()

    @patch("careerforge.session.analyze_profile")
    def test_stores_result_and_switches_view(
        self, mock_analyze: MagicMock, session: CareerSession, sample_analysis: CareerAnalysis
    ):
        mock_analyze.return_value = sample_analysis

        session.analyze()

        mock_analyze.assert_called_once_with(
            session.client, "Data Analyst", resume_text="Experienced in Python, SQL", resume_file=None
        )
        assert session.view == "DASHBOARD"
        assert _stored(session).analysis == sample_analysis

    @patch("careerforge.session.analyze_profile", side_effect=ProviderError("down"))
    def test_failure_keeps_previous_state(self, _mock: MagicMock, analyzed: CareerSession):
        before = analyzed.data.analysis

        with pytest.raises(ProviderError):
            analyzed.analyze()

        assert analyzed.data.analysis == before


class TestLearningPlan:
    def test_requires_analysis(self, session: CareerSession):
        with pytest.raises(MissingInputError, match="Analyze"):
            session.generate_plan()

    @patch("careerforge.session.generate_learning_plan")
    def test_generate_then_regenerate(
        self, mock_plan: MagicMock, analyzed: CareerSession, sample_plan: list[WeeklyPlan]
    ):
        mock_plan.return_value = sample_plan

        analyzed.generate_plan()
        analyzed.generate_plan()

        first, second = mock_plan.call_args_list
        assert first.args[2] == ["Tableau", "Statistics"]
        assert first.kwargs["regenerate"] is False
        assert second.kwargs["regenerate"] is True

    def test_toggle_twice_restores(self, planned: CareerSession):
        assert planned.toggle_task(0, "t1") is True
        assert _stored(planned).plan[0].tasks[0].completed
        assert planned.toggle_task(0, "t1") is False
        assert not _stored(planned).plan[0].tasks[0].completed

    def test_toggle_unknown_task(self, planned: CareerSession):
        assert planned.toggle_task(0, "nope") is None

    def test_delete_task(self, planned: CareerSession):
        planned.delete_task(0, "t2")

        assert [t.id for t in _stored(planned).plan[0].tasks] == ["t1", "t3", "t4"]

    @freeze_time("2026-03-01 12:00:00")
    def test_add_task(self, planned: CareerSession):
        task = planned.add_task(0, "  Window functions  ", "reading", 2)

        assert task.id == "1772366400000"
        assert task.title == "Window functions"
        assert task.description == "Manually added task"
        assert not task.completed
        assert _stored(planned).plan[0].tasks[-1].title == "Window functions"

    def test_add_task_defaults(self, planned: CareerSession):
        task = planned.add_task(0, "Kaggle notebook")
        assert task.type == "course"
        assert task.estimated_hours == 1

    def test_add_empty_title(self, planned: CareerSession):
        with pytest.raises(MissingInputError):
            planned.add_task(0, "   ")

    def test_edit_without_plan(self, analyzed: CareerSession):
        with pytest.raises(MissingInputError, match="learning plan"):
            analyzed.toggle_task(0, "t1")


class TestFollowUps:
    @patch("careerforge.session.find_matching_jobs")
    def test_scan_jobs_uses_all_skills(self, mock_find: MagicMock, analyzed: CareerSession):
        mock_find.return_value = [JobListing(id="j1", title="Analyst", company="Acme")]

        analyzed.scan_jobs()

        assert mock_find.call_args.args[2] == ["Python", "SQL", "Tableau", "Statistics", "Storytelling"]
        assert _stored(analyzed).jobs[0].company == "Acme"

    @patch("careerforge.session.fetch_market_trends")
    def test_fetch_trends(self, mock_trends: MagicMock, analyzed: CareerSession):
        mock_trends.return_value = MarketTrend(role="Data Analyst", demand_level="Medium")

        analyzed.fetch_trends()

        assert _stored(analyzed).trends.demand_level == "Medium"

    @patch("careerforge.session.generate_project_ideas", return_value=[])
    def test_projects_require_role(self, mock_projects: MagicMock, session: CareerSession):
        session.set_target_role("")

        with pytest.raises(MissingInputError):
            session.generate_projects()
        mock_projects.assert_not_called()


class TestLifecycle:
    def test_reset_keeps_only_name(self, planned: CareerSession):
        planned.attach_resume("cv.pdf", b"%PDF-1.4", "application/pdf")

        planned.reset_data()

        stored = _stored(planned)
        assert stored.user_profile.name == "alex"
        assert stored.user_profile.target_role == ""
        assert not stored.user_profile.has_resume
        assert stored.analysis is None
        assert stored.plan is None
        assert planned.view == "ONBOARDING"

    def test_switch_track_keeps_resume(self, planned: CareerSession):
        planned.data.jobs = [JobListing(id="j1", title="Analyst", company="Acme")]
        planned.data.chat_messages = [ChatMessage(id="1", role="model", text="hi", timestamp=1)]

        planned.switch_track()

        stored = _stored(planned)
        assert stored.user_profile.resume_text == "Experienced in Python, SQL"
        assert stored.user_profile.target_role == ""
        assert stored.analysis is None
        assert stored.plan is None
        assert stored.jobs == []
        assert stored.chat_messages == []


class TestInterview:
    @patch("careerforge.session.InterviewSession")
    def test_start_clears_previous(self, mock_cls: MagicMock, analyzed: CareerSession):
        mock_cls.return_value.open.return_value = "Hello, tell me about yourself."
        analyzed.data.interview_feedback = FEEDBACK

        message = analyzed.start_interview()

        assert message.role == "model"
        assert analyzed.data.interview_feedback is None
        assert [m.text for m in _stored(analyzed).chat_messages] == ["Hello, tell me about yourself."]

    @patch("careerforge.session.InterviewSession")
    def test_failed_start_keeps_memory_and_storage_in_sync(
        self, mock_cls: MagicMock, analyzed: CareerSession, sample_transcript: list[ChatMessage]
    ):
        analyzed.data.chat_messages = list(sample_transcript)
        analyzed.data.interview_feedback = FEEDBACK
        analyzed.commit()
        mock_cls.return_value.open.side_effect = RuntimeError("503")

        with pytest.raises(RuntimeError):
            analyzed.start_interview()

        stored = _stored(analyzed)
        assert analyzed.data.chat_messages == stored.chat_messages == sample_transcript
        assert analyzed.data.interview_feedback == stored.interview_feedback == FEEDBACK
        assert analyzed.interview is None

    @patch("careerforge.session.InterviewSession")
    def test_send_message(self, mock_cls: MagicMock, analyzed: CareerSession):
        mock_cls.return_value.open.return_value = "Hello"
        mock_cls.return_value.reply.return_value = "Nice. Next question?"
        analyzed.start_interview()

        reply = analyzed.send_message("I like SQL")

        assert reply.text == "Nice. Next question?"
        assert [m.role for m in analyzed.data.chat_messages] == ["model", "user", "model"]
        assert len({m.id for m in analyzed.data.chat_messages}) == 3

    @patch("careerforge.session.InterviewSession")
    def test_failed_turn_degrades_into_message(self, mock_cls: MagicMock, analyzed: CareerSession):
        mock_cls.return_value.open.return_value = "Hello"
        mock_cls.return_value.reply.side_effect = RuntimeError("429 quota")
        analyzed.start_interview()

        reply = analyzed.send_message("I like SQL")

        assert reply.text == CHAT_ERROR_MESSAGE
        assert reply.role == "model"
        assert _stored(analyzed).chat_messages[-1].text == CHAT_ERROR_MESSAGE

    @patch("careerforge.session.InterviewSession")
    def test_send_resumes_stored_transcript(
        self, mock_cls: MagicMock, analyzed: CareerSession, sample_transcript: list[ChatMessage]
    ):
        analyzed.data.chat_messages = list(sample_transcript)
        mock_cls.return_value.reply.return_value = "Thanks."

        analyzed.send_message("By churn rate.")

        assert mock_cls.call_args.kwargs["history"][:3] == sample_transcript
        assert analyzed.data.chat_messages[-1].text == "Thanks."

    @patch("careerforge.session.InterviewSession", side_effect=ValueError("GOOGLE_API_KEY environment variable not set"))
    def test_send_when_resume_fails_leaves_transcript(
        self, _mock_cls: MagicMock, analyzed: CareerSession, sample_transcript: list[ChatMessage]
    ):
        analyzed.data.chat_messages = list(sample_transcript)

        with pytest.raises(ValueError):
            analyzed.send_message("By churn rate.")

        assert analyzed.data.chat_messages == sample_transcript
        assert analyzed.interview is None

    def test_send_without_interview(self, analyzed: CareerSession):
        with pytest.raises(MissingInputError):
            analyzed.send_message("hello")

    def test_end_with_short_transcript(self, analyzed: CareerSession):
        analyzed.data.chat_messages = [ChatMessage(id="1", role="model", text="Hello", timestamp=1)]

        assert analyzed.end_interview() is None
        assert _stored(analyzed).chat_messages == []

    @patch("careerforge.session.generate_interview_feedback", return_value=FEEDBACK)
    def test_end_stores_feedback(
        self, mock_feedback: MagicMock, analyzed: CareerSession, sample_transcript: list[ChatMessage]
    ):
        analyzed.data.chat_messages = list(sample_transcript)

        feedback = analyzed.end_interview()

        assert feedback == FEEDBACK
        assert mock_feedback.call_args.args[1] == sample_transcript
        assert _stored(analyzed).interview_feedback == FEEDBACK
        assert len(_stored(analyzed).chat_messages) == 3

    @patch("careerforge.session.generate_interview_feedback", side_effect=ProviderError("down"))
    def test_end_failure_clears_transcript(
        self, _mock: MagicMock, analyzed: CareerSession, sample_transcript: list[ChatMessage]
    ):
        analyzed.data.chat_messages = list(sample_transcript)

        with pytest.raises(ProviderError):
            analyzed.end_interview()

        assert analyzed.data.chat_messages == []
        assert analyzed.data.interview_feedback is None


def test_resume_file_round_trip_through_store(session: CareerSession):
    session.profile.resume_file = ResumeFile(data="JVBERi0=", mime_type="application/pdf")
    session.commit()

    assert _stored(session).user_profile.resume_file.data == "JVBERi0="
