"""Exception types raised while running a literature review.

Where each one ends up during a run:
- SearchProviderError / ToolArgumentError: caught by the agent loop and
  fed back to the model as the tool result, the run continues
- LLMError: ends the run with a single ``error`` event
- InvalidInputError: raised before any model call is made

Semantic Scholar 429 answers are retried with tenacity before they
surface as RateLimitError.
"""

import logging
from enum import Enum
from typing import Optional

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    """What went wrong, independent of where it was raised."""

    RATE_LIMITED = "rate_limited"
    PROVIDER_FAILURE = "provider_failure"
    BAD_TOOL_CALL = "bad_tool_call"
    LLM_FAILURE = "llm_failure"
    BAD_INPUT = "bad_input"


class AgentError(Exception):
    """Base class for review errors.

    ``message`` is the user-facing text; it is what ends up in events,
    tool results and HTTP error bodies.
    """

    kind = ErrorKind.PROVIDER_FAILURE
    recoverable = True

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        context: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.context = dict(context or {})

    def __str__(self) -> str:
        return f"{self.message} ({self.kind.value})"


class SearchProviderError(AgentError):
    """A search provider answered with a non-success status or could not be reached."""

    def __init__(
        self,
        message: str,
        provider: str,
        status: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, cause=cause, context={"provider": provider, "status": status})
        self.provider = provider
        self.status = status


class RateLimitError(SearchProviderError):
    """HTTP 429 from a provider."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, provider: str, message: str = "Rate limit exceeded"):
        super().__init__(message, provider=provider, status=429)


class LLMError(AgentError):
    """The model call failed or its answer was unusable."""

    kind = ErrorKind.LLM_FAILURE
    recoverable = False


class ToolArgumentError(AgentError):
    """The model called a tool with arguments that do not fit its schema."""

    kind = ErrorKind.BAD_TOOL_CALL

    def __init__(self, tool_name: str, problem: str):
        super().__init__(f"Invalid arguments for {tool_name}: {problem}", context={"tool": tool_name})
        self.tool_name = tool_name


class InvalidInputError(AgentError):
    """User input that cannot be reviewed."""

    kind = ErrorKind.BAD_INPUT
    recoverable = False


def _log_backoff(retry_state) -> None:
    error = retry_state.outcome.exception()
    logger.warning(
        f"{error.message}; backing off {retry_state.next_action.sleep:.1f}s "
        f"before attempt {retry_state.attempt_number + 1}"
    )


def retry_rate_limited(attempts: int = 3, min_wait: float = 2.0, max_wait: float = 30.0):
    """Decorate a coroutine so RateLimitError is retried with exponential backoff.

    The last RateLimitError is re-raised once ``attempts`` are used up.
    """
    return retry(
        retry=retry_if_exception_type(RateLimitError),
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=2, min=min_wait, max=max_wait),
        before_sleep=_log_backoff,
        reraise=True,
    )
