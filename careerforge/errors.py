"""Error types shared by the CareerForge pipeline and its user-facing surfaces."""

HIGH_TRAFFIC_MESSAGE = "AI system is experiencing high traffic. Please wait 60 seconds and try again."

_RATE_LIMIT_MARKERS = ("429", "quota", "resource_exhausted")


class CareerForgeError(Exception):
    """Base class for all CareerForge errors."""


class MissingInputError(CareerForgeError, ValueError):
    """An operation was invoked without its required input."""


class ResumeTooLargeError(CareerForgeError, ValueError):
    """An uploaded résumé exceeds the size limit."""


class MalformedResponseError(CareerForgeError, ValueError):
    """The model's output could not be turned into the expected JSON shape."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class ProviderError(CareerForgeError, RuntimeError):
    """A Gemini call kept failing after all retries."""


class RateLimitError(ProviderError):
    """The last failure was a 429 / quota / RESOURCE_EXHAUSTED response."""


def is_rate_limit_error(exc: BaseException) -> bool:
    """Return True if *exc* looks like a 429, quota or RESOURCE_EXHAUSTED failure."""
    if isinstance(exc, RateLimitError):
        return True
    for attr in ("code", "status"):
        if getattr(exc, attr, None) == 429:
            return True
    message = str(exc).lower()
    return any(marker in message for marker in _RATE_LIMIT_MARKERS)


def user_message(exc: BaseException, default: str) -> str:
    """Render *exc* as the text shown next to a feature's retry button."""
    if is_rate_limit_error(exc):
        return HIGH_TRAFFIC_MESSAGE
    detail = str(exc).rstrip(".") or "Unknown error"
    return f"{default}: {detail}."
