"""Streamlit web UI for CareerForge."""

import logging
import os
from collections.abc import Callable
from urllib.parse import quote_plus

import streamlit as st

# ---------------------------------------------------------------------------
# Inject settings from Streamlit secrets into env vars
# (must happen before any careerforge imports that read env vars)
# ---------------------------------------------------------------------------
for key in ("GOOGLE_API_KEY", "CAREERFORGE_MODEL", "CAREERFORGE_DATA_DIR"):
    if key not in os.environ:
        try:
            os.environ[key] = st.secrets[key]
        except (KeyError, FileNotFoundError):
            pass  # handled later via validation

import sys as _sys  # noqa: E402
from pathlib import Path as _Path  # noqa: E402

_sys.path.insert(0, str(_Path(__file__).resolve().parent.parent))

from careerforge.auth import AuthService  # noqa: E402
from careerforge.errors import MissingInputError, user_message  # noqa: E402
from careerforge.models import JobListing, LearningTask  # noqa: E402
from careerforge.resume import SUPPORTED_EXTENSIONS  # noqa: E402
from careerforge.session import CareerSession  # noqa: E402
from careerforge.store import DEFAULT_DATA_DIR, JsonFileStore  # noqa: E402

# ---------------------------------------------------------------------------
# Page configuration
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="CareerForge",
    page_icon="🧭",
    layout="wide",
    initial_sidebar_state="expanded",
)

logger = logging.getLogger(__name__)

PAGES = ["Dashboard", "Learning Plan", "Jobs", "Projects", "Market Trends", "Interview"]
SCAN_STEPS = [
    "Searching global job boards...",
    "Filtering for your skills...",
    "Analyzing salary data...",
    "Finalizing matches...",
]

# ---------------------------------------------------------------------------
# Session state defaults
# ---------------------------------------------------------------------------
_DEFAULTS = {
    "page": "Dashboard",
    "next_page": None,
    "errors": {},
    "autoloaded": set(),
    "resume_upload_id": None,
    "last_answer": None,
}
for k, v in _DEFAULTS.items():
    if k not in st.session_state:
        st.session_state[k] = v

if "career" not in st.session_state:
    data_dir = _Path(os.getenv("CAREERFORGE_DATA_DIR") or DEFAULT_DATA_DIR)
    st.session_state.career = CareerSession(AuthService(JsonFileStore(data_dir)))

career: CareerSession = st.session_state.career


# ---------------------------------------------------------------------------
# Helper: per-feature error slots
# ---------------------------------------------------------------------------
def _run(feature: str, default_message: str, operation: Callable[[], object]) -> bool:
    """Run *operation*, recording a failure in the feature's error slot."""
    st.session_state.errors[feature] = None
    try:
        operation()
        return True
    except MissingInputError as e:
        st.session_state.errors[feature] = str(e)
    except Exception as e:
        logger.exception("%s failed", default_message)
        st.session_state.errors[feature] = user_message(e, default_message)
    return False


def _render_error(feature: str, retry: Callable[[], None]) -> bool:
    """Show the feature's error with a Retry button. Returns True if an error is shown."""
    message = st.session_state.errors.get(feature)
    if not message:
        return False
    st.error(message)
    if st.button("🔄 Retry", key=f"retry_{feature}"):
        retry()
        st.rerun()
    return True


def _score_emoji(score: float) -> str:
    if score >= 85:
        return "🟢"
    if score >= 70:
        return "🟡"
    if score >= 50:
        return "🟠"
    return "🔴"


# ---------------------------------------------------------------------------
# Feature actions
# ---------------------------------------------------------------------------
def _analyze() -> None:
    with st.spinner("Analyzing your profile against the target role..."):
        if _run("analyze", "Analysis failed", career.analyze):
            st.session_state.next_page = "Dashboard"


def _generate_plan() -> None:
    with st.spinner("Designing your learning sprint..."):
        if _run("plan", "Failed to generate plan", career.generate_plan):
            st.session_state.next_page = "Learning Plan"


def _scan_jobs() -> None:
    with st.status("Initializing scan...", expanded=False) as status:
        for step in SCAN_STEPS:
            status.write(step)
        ok = _run("jobs", "Failed to scan jobs", career.scan_jobs)
        status.update(label="Scan complete" if ok else "Scan failed", state="complete" if ok else "error")


def _generate_projects() -> None:
    with st.spinner("Brainstorming portfolio projects..."):
        _run("projects", "Failed to generate projects", career.generate_projects)


def _fetch_trends() -> None:
    with st.spinner("Gathering live market data..."):
        _run("trends", "Failed to fetch trends", career.fetch_trends)


def _autoload(page: str, is_empty: bool, action: Callable[[], None]) -> None:
    """Load a page's data on the first visit when nothing is stored yet."""
    if is_empty and page not in st.session_state.autoloaded:
        st.session_state.autoloaded.add(page)
        action()


# ---------------------------------------------------------------------------
# Logged-out: auth form
# ---------------------------------------------------------------------------
def _render_auth() -> None:
    st.title("🧭 CareerForge")
    st.caption("Analyze your resume, close your skill gaps, and practice interviews with AI.")

    col_pad_l, col_center, col_pad_r = st.columns([1, 2, 1])
    with col_center:
        mode = st.radio("Account", ["Log in", "Sign up"], horizontal=True, key="auth_mode")
        with st.form("auth_form"):
            email = st.text_input("Email", key="auth_email")
            password = st.text_input("Password", type="password", key="auth_password")
            submitted = st.form_submit_button(mode, use_container_width=True, type="primary")

        if submitted:
            result = career.signup(email, password) if mode == "Sign up" else career.login(email, password)
            if result.success:
                st.session_state.next_page = "Dashboard"
                st.session_state.errors = {}
                st.session_state.autoloaded = set()
                st.rerun()
            st.error(result.message or "Login failed.")


# ---------------------------------------------------------------------------
# Onboarding: role + résumé
# ---------------------------------------------------------------------------
def _render_onboarding() -> None:
    st.header("Let's set your target")
    profile = career.profile

    target_role = st.text_input("Target role", value=profile.target_role, placeholder="e.g. Data Analyst")
    resume_text = st.text_area("Paste your resume", value=profile.resume_text or "", height=220)
    uploaded = st.file_uploader(
        "...or upload it (max 2 MB)",
        type=[ext.lstrip(".") for ext in SUPPORTED_EXTENSIONS],
    )

    if uploaded is not None and uploaded.file_id != st.session_state.resume_upload_id:
        try:
            career.attach_resume(uploaded.name, uploaded.getvalue(), uploaded.type)
            st.session_state.resume_upload_id = uploaded.file_id
        except ValueError as e:
            st.error(str(e))

    if profile.resume_file is not None:
        st.caption(f"📄 Resume file attached ({profile.resume_file.mime_type})")

    if st.button("🔍 Analyze", type="primary", disabled=not target_role.strip()):
        if target_role.strip() != profile.target_role:
            career.set_target_role(target_role)
        if resume_text != (profile.resume_text or ""):
            career.set_resume_text(resume_text)
        _analyze()
        st.rerun()

    _render_error("analyze", _analyze)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------
def _render_dashboard() -> None:
    analysis = career.data.analysis
    if analysis is None:
        return

    st.header(f"Readiness for {career.profile.target_role}")
    col_score, col_plan, col_summary = st.columns([1, 1, 3])
    with col_score:
        st.metric("Readiness score", f"{analysis.readiness_score}/100")
    with col_plan:
        tasks = [t for week in career.data.plan or [] for t in week.tasks]
        if tasks:
            done = sum(t.completed for t in tasks)
            st.metric("Plan progress", f"{done}/{len(tasks)} tasks")
            st.progress(done / len(tasks))
        else:
            st.metric("Plan progress", "No plan yet")
    with col_summary:
        st.markdown(analysis.summary)

    for status, label in (("acquired", "✅ Acquired"), ("in-progress", "⏳ In progress"), ("missing", "❌ Missing")):
        names = [f"`{s.name}`" for s in analysis.skills if s.status == status]
        if names:
            st.markdown(f"**{label}:** " + " · ".join(names))

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Strengths")
        for item in analysis.strengths:
            st.markdown(f"- {item}")
    with col2:
        st.subheader("Gaps")
        for item in analysis.weaknesses:
            st.markdown(f"- {item}")

    label = "🔁 Regenerate learning plan" if career.data.plan else "📚 Build my learning plan"
    if st.button(label, type="primary"):
        _generate_plan()
        st.rerun()
    _render_error("plan", _generate_plan)


# ---------------------------------------------------------------------------
# Learning plan
# ---------------------------------------------------------------------------
def _render_task(week_index: int, task: LearningTask) -> None:
    with st.container(border=True):
        left, center, right = st.columns([0.5, 5, 1])
        with left:
            done = st.checkbox("Done", value=task.completed, key=f"done_{task.id}", label_visibility="collapsed")
            if done != task.completed:
                career.toggle_task(week_index, task.id)
                st.rerun()
        with center:
            title = f"~~{task.title}~~" if task.completed else f"**{task.title}**"
            st.markdown(f"{title}  \n{task.description}")
            st.caption(
                f"{task.type} · {task.estimated_hours:g}h · "
                f"[YouTube](https://www.youtube.com/results?search_query={quote_plus(task.video_query)}) · "
                f"[Udemy](https://www.udemy.com/courses/search/?q={quote_plus(task.udemy_query)}) · "
                f"[Coursera](https://www.coursera.org/search?query={quote_plus(task.coursera_query)})"
            )
        with right:
            if st.button("🗑️", key=f"delete_{task.id}", help="Delete task"):
                career.delete_task(week_index, task.id)
                st.rerun()


def _render_plan() -> None:
    st.header("Learning plan")
    if career.data.plan is None:
        st.info("No plan yet.")
        if st.button("📚 Build my learning plan", type="primary"):
            _generate_plan()
            st.rerun()
        _render_error("plan", _generate_plan)
        return

    for week_index, week in enumerate(career.data.plan):
        done = sum(t.completed for t in week.tasks)
        st.subheader(f"Week {week.week_number}: {week.theme}")
        st.progress(done / len(week.tasks) if week.tasks else 0.0, text=f"{done}/{len(week.tasks)} tasks done")
        for task in week.tasks:
            _render_task(week_index, task)

        with st.form(f"add_task_{week_index}", clear_on_submit=True):
            col_title, col_type, col_hours = st.columns([4, 1.5, 1])
            with col_title:
                title = st.text_input("New task")
            with col_type:
                task_type = st.selectbox("Type", ["course", "reading", "project"])
            with col_hours:
                hours = st.number_input("Hours", min_value=0.5, value=1.0, step=0.5)
            if st.form_submit_button("➕ Add task"):
                try:
                    career.add_task(week_index, title, task_type, hours)
                    st.rerun()
                except MissingInputError as e:
                    st.warning(str(e))

    if st.button("🔁 Regenerate plan"):
        _generate_plan()
        st.rerun()
    _render_error("plan", _generate_plan)


# ---------------------------------------------------------------------------
# Jobs, projects, trends
# ---------------------------------------------------------------------------
def _render_job_card(job: JobListing) -> None:
    with st.container(border=True):
        left, center, right = st.columns([0.8, 4, 1])
        with left:
            st.markdown(f"{_score_emoji(job.match_score)} **{job.match_score:g}**")
        with center:
            st.markdown(f"**{job.title}** @ {job.company}")
            details = [f"📍 {job.location}"] if job.location else []
            if job.salary:
                details.append(f"💰 {job.salary}")
            if job.posted_at:
                details.append(f"🕐 {job.posted_at}")
            st.caption("  •  ".join(details))
            st.markdown(job.description)
            if job.skills_matched:
                st.markdown("**Matched:** " + ", ".join(job.skills_matched))
        with right:
            if job.apply_link:
                st.link_button("Apply ↗", job.apply_link, use_container_width=True)


def _render_jobs() -> None:
    st.header("Matching jobs")
    _autoload("Jobs", not career.data.jobs, _scan_jobs)
    if _render_error("jobs", _scan_jobs):
        return
    if not career.data.jobs:
        st.info("No jobs found yet.")
    for job in career.data.jobs:
        _render_job_card(job)
    if st.button("🔎 Scan again"):
        _scan_jobs()
        st.rerun()


def _render_projects() -> None:
    st.header("Portfolio projects")
    _autoload("Projects", not career.data.projects, _generate_projects)
    if _render_error("projects", _generate_projects):
        return
    for idea in career.data.projects:
        with st.expander(f"[{idea.difficulty}] {idea.title}", expanded=True):
            st.markdown(idea.description)
            st.markdown("**Tech stack:** " + " · ".join(f"`{t}`" for t in idea.tech_stack))
            st.markdown("**Key features:**\n" + "\n".join(f"- {f}" for f in idea.key_features))
            st.caption(f"💼 {idea.resume_value}")
    if st.button("💡 New ideas"):
        _generate_projects()
        st.rerun()


def _render_trends() -> None:
    st.header("Market trends")
    _autoload("Market Trends", career.data.trends is None, _fetch_trends)
    if _render_error("trends", _fetch_trends):
        return
    trends = career.data.trends
    if trends is None:
        return

    col1, col2 = st.columns(2)
    col1.metric("Salary range", trends.salary_range or "n/a")
    col2.metric("Demand", trends.demand_level)

    st.subheader("🔥 Hot technologies")
    for tech in trends.hot_technologies:
        st.markdown(f"- **{tech.name}**: {tech.growth_reason}")

    st.subheader("📰 Industry news")
    for news in trends.industry_news:
        with st.container(border=True):
            st.markdown(f"**{news.headline}**  \n{news.summary}")
            st.caption(f"Impact: {news.impact}")

    if st.button("🔄 Refresh"):
        _fetch_trends()
        st.rerun()


# ---------------------------------------------------------------------------
# Interview
# ---------------------------------------------------------------------------
def _start_interview() -> None:
    with st.spinner("Connecting you to the interviewer..."):
        _run("interview", "Failed to start interview", career.start_interview)


def _send_answer() -> None:
    answer = st.session_state.last_answer or ""
    with st.spinner("Interviewer is thinking..."):
        _run("chat", "Failed to send answer", lambda: career.send_message(answer))


def _end_interview() -> None:
    with st.spinner("Scoring your interview..."):
        _run("interview", "Failed to generate feedback", career.end_interview)


def _render_interview() -> None:
    st.header(f"Mock interview: {career.profile.target_role}")
    feedback = career.data.interview_feedback
    messages = career.data.chat_messages

    if feedback is not None:
        st.metric("Score", f"{feedback.score:g}/10")
        st.markdown(feedback.feedback_summary)
        col1, col2 = st.columns(2)
        with col1:
            st.subheader("Strengths")
            for item in feedback.strengths:
                st.markdown(f"- {item}")
        with col2:
            st.subheader("Improvements")
            for item in feedback.improvements:
                st.markdown(f"- {item}")
        st.info(f"🎯 Focus next on: {feedback.recommended_focus}")

    if not messages:
        if st.button("🎙️ Start interview", type="primary"):
            _start_interview()
            st.rerun()
        _render_error("interview", _start_interview)
        return

    for message in messages:
        with st.chat_message("user" if message.role == "user" else "assistant"):
            st.markdown(message.text)

    if feedback is None:
        answer = st.chat_input("Your answer")
        if answer:
            st.session_state.last_answer = answer
            _send_answer()
            st.rerun()
        _render_error("chat", _send_answer)
        if st.button("🏁 End interview & get feedback"):
            _end_interview()
            st.rerun()
    elif st.button("🔁 New interview"):
        _start_interview()
        st.rerun()
    _render_error("interview", _end_interview)


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
def _render_sidebar() -> None:
    with st.sidebar:
        st.title("🧭 CareerForge")
        st.markdown(f"👤 **{career.profile.name}**")
        if career.profile.target_role:
            st.markdown(f"🎯 **Target:** {career.profile.target_role}")
        st.divider()

        if career.data.analysis is not None:
            # the radio owns "page" once drawn, so queued navigation lands before it
            if st.session_state.next_page:
                st.session_state.page = st.session_state.next_page
                st.session_state.next_page = None
            st.radio("Navigate", PAGES, key="page")
            st.divider()
            if st.button("🔀 Switch track", use_container_width=True, help="New target role, same resume"):
                career.switch_track()
                st.session_state.autoloaded = set()
                st.rerun()

        confirm = st.checkbox("I understand reset deletes my resume and progress", key="confirm_reset")
        if st.button("🗑️ Reset data", use_container_width=True, disabled=not confirm):
            career.reset_data()
            st.session_state.autoloaded = set()
            st.rerun()
        if st.button("🚪 Log out", use_container_width=True):
            career.logout()
            st.session_state.errors = {}
            st.rerun()

        st.divider()
        st.caption("Built with [Streamlit](https://streamlit.io) • Powered by Gemini")


# ---------------------------------------------------------------------------
# Main area
# ---------------------------------------------------------------------------
if not career.logged_in:
    _render_auth()
else:
    if not os.getenv("GOOGLE_API_KEY"):
        st.warning(
            "Missing API key: **GOOGLE_API_KEY**. "
            "Add it to `.streamlit/secrets.toml` or set it as an environment variable."
        )
    _render_sidebar()
    if career.view == "ONBOARDING":
        _render_onboarding()
    else:
        page = st.session_state.page
        if page == "Learning Plan":
            _render_plan()
        elif page == "Jobs":
            _render_jobs()
        elif page == "Projects":
            _render_projects()
        elif page == "Market Trends":
            _render_trends()
        elif page == "Interview":
            _render_interview()
        else:
            _render_dashboard()
