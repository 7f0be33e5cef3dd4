"""Error types raised by the language-model gateway."""


class LLMError(RuntimeError):
    """Base error for language-model calls."""


class LLMTimeoutError(LLMError, TimeoutError):
    """A language-model call exceeded its configured timeout."""


class LLMTransientError(LLMError):
    """Network failure, rate limit or temporary upstream outage."""


class LLMResponseError(LLMError):
    """Upstream rejected the request or returned an unusable payload."""
