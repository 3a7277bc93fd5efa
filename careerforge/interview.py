"""Interview agent - mock interview chat and post-interview feedback."""

from google import genai
from google.genai import types

from .llm import call_gemini, get_model, parse_response
from .models import ChatMessage, InterviewFeedback

INTERVIEWER_INSTRUCTION = """You are a hiring manager for {target_role}.
Ask 1 relevant question at a time.
Keep responses concise (<80 words).
Critique the answer briefly, then ask the next question."""

KICKOFF_MESSAGE = "Start the interview. Introduce yourself briefly and ask the first question."
FALLBACK_GREETING = "Hello! I'm ready to interview you. Tell me about yourself."
FALLBACK_REPLY = "I didn't catch that. Could you please repeat?"

FEEDBACK_PROMPT = """Role: Interview Coach.
Task: Evaluate transcript for "{target_role}".
Transcript:
{transcript}

Provide score (0-10), feedback_summary, strengths, improvements and recommended_focus (one specific area to study)."""


class InterviewSession:
    """A live mock interview backed by a Gemini chat.

    The chat keeps its own history; a stored transcript can be replayed into
    a new session with ``history`` so an interview survives a reload.
    """

    def __init__(self, client: genai.Client, target_role: str, history: list[ChatMessage] | None = None):
        self.target_role = target_role
        self._chat = client.chats.create(
            model=get_model(),
            config=types.GenerateContentConfig(
                system_instruction=INTERVIEWER_INSTRUCTION.format(target_role=target_role),
            ),
            history=_to_history(history or []),
        )

    def open(self) -> str:
        """Send the hidden kick-off message and return the interviewer's greeting."""
        response = self._chat.send_message(KICKOFF_MESSAGE)
        return response.text or FALLBACK_GREETING

    def reply(self, text: str) -> str:
        """Send the candidate's answer and return the interviewer's next turn."""
        response = self._chat.send_message(text)
        return response.text or FALLBACK_REPLY


def _to_history(messages: list[ChatMessage]) -> list[types.Content]:
    history = [types.Content(role=m.role, parts=[types.Part(text=m.text)]) for m in messages]
    # The transcript starts with the interviewer; the chat API wants a user turn first.
    if history and history[0].role == "model":
        history.insert(0, types.Content(role="user", parts=[types.Part(text=KICKOFF_MESSAGE)]))
    return history


def format_transcript(messages: list[ChatMessage]) -> str:
    return "\n".join(f"{'Candidate' if m.role == 'user' else 'Interviewer'}: {m.text}" for m in messages)


def generate_interview_feedback(
    client: genai.Client,
    messages: list[ChatMessage],
    target_role: str,
) -> InterviewFeedback:
    """
    Score a finished interview transcript.

    Args:
        client: Gemini client instance.
        messages: The full transcript, interviewer and candidate turns.
        target_role: Role the interview was for.

    Returns:
        Score out of 10 with strengths, improvements and a focus area.
    """
    prompt = FEEDBACK_PROMPT.format(target_role=target_role, transcript=format_transcript(messages))
    content = call_gemini(client, prompt, response_schema=InterviewFeedback)
    return parse_response(content, InterviewFeedback, "interview feedback")
