"""Shared Gemini client, retry logic, and JSON extraction for model output."""

import base64
import json
import logging
import os
import re
import time
from collections.abc import Callable
from typing import Any, TypeVar

from google import genai
from google.genai import types
from pydantic import TypeAdapter, ValidationError

from .errors import MalformedResponseError, ProviderError, RateLimitError, is_rate_limit_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MODEL = "gemini-2.5-flash"

# Retry configuration
DEFAULT_RETRIES = 3
RATE_LIMIT_RETRIES = 5
BASE_DELAY_MS = 1000
MAX_DELAY_MS = 8000
MAX_RATE_LIMIT_DELAY_MS = 15000

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_CLOSERS = {"{": "}", "[": "]"}


def get_model() -> str:
    """Model name from ``CAREERFORGE_MODEL``, read on every call."""
    return os.getenv("CAREERFORGE_MODEL") or DEFAULT_MODEL


def create_client() -> genai.Client:
    """Create a Gemini client."""
    api_key = os.getenv("GOOGLE_API_KEY")
    if not api_key:
        raise ValueError("GOOGLE_API_KEY environment variable not set")
    return genai.Client(api_key=api_key)


def backoff_delay(attempt: int, rate_limited: bool) -> float:
    """Seconds to wait after the zero-based *attempt* failed.

    Rate limits back off harder (4s, 8s, 15s cap) than other failures (1s, 2s, 4s, 8s cap).
    """
    if rate_limited:
        delay_ms = min(BASE_DELAY_MS * 2 ** (attempt + 2), MAX_RATE_LIMIT_DELAY_MS)
    else:
        delay_ms = min(BASE_DELAY_MS * 2**attempt, MAX_DELAY_MS)
    return delay_ms / 1000


def with_retry(operation: Callable[[], T], retries: int = DEFAULT_RETRIES, label: str = "Gemini call") -> T:
    """Run *operation* until it succeeds or the retry budget is spent.

    The first rate-limit failure raises the budget to at least
    ``RATE_LIMIT_RETRIES``. Intermediate failures are logged; only the last
    one reaches the caller, wrapped in ``RateLimitError`` or ``ProviderError``.
    """
    last_exception: Exception | None = None
    last_rate_limited = False
    attempt = 0

    while attempt < retries:
        try:
            return operation()
        except Exception as e:
            last_exception = e
            last_rate_limited = is_rate_limit_error(e)
            if last_rate_limited and retries < RATE_LIMIT_RETRIES:
                retries = RATE_LIMIT_RETRIES

            delay = backoff_delay(attempt, last_rate_limited)
            attempt += 1
            if attempt >= retries:
                break
            if last_rate_limited:
                logger.warning("Rate limit hit for %s, retrying in %.0fs (%d/%d)", label, delay, attempt, retries)
            else:
                logger.warning("Attempt %d/%d failed for %s: %s", attempt, retries, label, e)
            time.sleep(delay)

    logger.error("%s failed after %d attempts: %s", label, attempt, last_exception)
    if last_rate_limited:
        raise RateLimitError(str(last_exception)) from last_exception
    raise ProviderError(str(last_exception)) from last_exception


def call_gemini(
    client: genai.Client,
    contents: Any,
    *,
    response_schema: Any = None,
    grounded: bool = False,
    temperature: float = 0.7,
    max_tokens: int = 8192,
    retries: int = DEFAULT_RETRIES,
) -> str:
    """Make one Gemini generation call through :func:`with_retry`.

    A *response_schema* asks for strict JSON output. *grounded* enables Google
    Search instead; the API does not accept both on the same call.
    """
    if response_schema is not None and grounded:
        raise ValueError("response_schema and grounded search cannot be combined")

    options: dict[str, Any] = {}
    if response_schema is not None:
        options["response_mime_type"] = "application/json"
        options["response_schema"] = response_schema
    if grounded:
        options["tools"] = [types.Tool(google_search=types.GoogleSearch())]

    config = types.GenerateContentConfig(
        temperature=temperature,
        max_output_tokens=max_tokens,
        thinking_config=types.ThinkingConfig(thinking_budget=0),
        **options,
    )

    model = get_model()
    response = with_retry(
        lambda: client.models.generate_content(model=model, contents=contents, config=config),
        retries=retries,
        label=model,
    )
    return response.text or ""


def inline_part(data_b64: str, mime_type: str) -> types.Part:
    """Wrap base64 file content as an inline request part."""
    return types.Part.from_bytes(data=base64.b64decode(data_b64), mime_type=mime_type)


def extract_json(text: str) -> str:
    """Cut the JSON payload out of free-form model output.

    Markdown fences are dropped, then whichever of ``{`` or ``[`` appears first
    decides the payload type. The payload runs from that opener to the last
    matching closer in the text. Braces inside string values are not
    accounted for.

    Raises:
        MalformedResponseError: If no opener or no matching closer is found.
    """
    cleaned = _FENCE_RE.sub("", text).strip()

    starts = [i for i in (cleaned.find("{"), cleaned.find("[")) if i != -1]
    if not starts:
        raise MalformedResponseError("No JSON object or array found in response", raw_text=text)

    start = min(starts)
    end = cleaned.rfind(_CLOSERS[cleaned[start]])
    if end < start:
        raise MalformedResponseError(f"Unterminated JSON {cleaned[start]!r} in response", raw_text=text)

    return cleaned[start : end + 1]


def parse_json(text: str) -> dict | list:
    """Extract and parse JSON from a model response that may contain fences or commentary.

    Handles responses like:
        ```json\\n{...}\\n```
        Here you go: [...] Hope this helps!
        Raw JSON
    """
    if not text or not text.strip():
        raise MalformedResponseError("Empty response from API", raw_text=text)

    payload = extract_json(text)
    try:
        return json.loads(payload)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Could not parse JSON from response: {e}", raw_text=text) from e


def parse_response(content: str, schema: Any, what: str) -> Any:
    """Parse *content* as JSON and validate it against *schema* (a model or a type like ``list[Model]``).

    Raises:
        MalformedResponseError: If the text holds no JSON or the JSON does not fit *schema*.
    """
    try:
        data = parse_json(content)
    except MalformedResponseError:
        logger.error("Could not parse %s response. Raw text: %s", what, content)
        raise
    return validate_payload(data, schema, what, content)


def validate_payload(data: Any, schema: Any, what: str, content: str = "") -> Any:
    """Validate already-parsed JSON against *schema*, rejecting anything that does not conform."""
    try:
        return TypeAdapter(schema).validate_python(data)
    except ValidationError as e:
        logger.error("%s response failed validation: %s\nRaw text: %s", what.capitalize(), e, content)
        raise MalformedResponseError("Failed to parse AI response. Please try again.", raw_text=content) from e
