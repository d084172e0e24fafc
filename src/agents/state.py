"""Run state shared across the review workflow.

Defines the cancellation token threaded through both phases, the
outcomes of the search phase, and the summary returned for a run.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List

from models.events import AgentEvent
from models.paper import Paper

# Async sink that receives every event of a run, in order
EventEmitter = Callable[[AgentEvent], Awaitable[None]]

CANCELLED_MESSAGE = "Review cancelled by user"


class CancellationToken:
    """Cooperative cancellation flag.

    The workflow polls ``cancelled`` at its check points; nothing is
    interrupted preemptively.
    """

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


class SearchOutcome(str, Enum):
    """How the search phase ended."""

    DONE = "done"  # termination condition met
    EXHAUSTED = "exhausted"  # iteration ceiling reached, proceeds like DONE
    ABORTED = "aborted"  # LLM call failed, run is over
    CANCELLED = "cancelled"

    @property
    def proceeds_to_synthesis(self) -> bool:
        return self in (SearchOutcome.DONE, SearchOutcome.EXHAUSTED)


class ReviewOutcome(str, Enum):
    """How a full review run ended."""

    COMPLETED = "completed"
    NO_PAPERS = "no_papers"
    ABORTED = "aborted"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class SearchPhaseResult:
    outcome: SearchOutcome
    iterations: int
    tool_calls: int = 0


@dataclass
class ReviewResult:
    """Summary of a finished run (the event stream is the primary output)."""

    outcome: ReviewOutcome
    papers: List[Paper] = field(default_factory=list)
    iterations: int = 0

    @property
    def paper_count(self) -> int:
        return len(self.papers)
