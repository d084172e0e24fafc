"""Review pipeline: search phase, then synthesis, over one ordered event channel."""

import asyncio
import logging
from typing import AsyncIterator, Optional

from agents.llm import LLMClient
from agents.search_agent import run_search_phase
from agents.state import (
    CancellationToken,
    EventEmitter,
    ReviewOutcome,
    ReviewResult,
    SearchOutcome,
)
from agents.synthesis_agent import run_synthesis_phase
from agents.tools import ToolExecutor
from aggregators.paper_collection import CollectedPaperSet
from models.events import AgentEvent, EventType

logger = logging.getLogger(__name__)

_SEARCH_TO_REVIEW_OUTCOME = {
    SearchOutcome.ABORTED: ReviewOutcome.ABORTED,
    SearchOutcome.CANCELLED: ReviewOutcome.CANCELLED,
}


class RunEmitter:
    """Event sink for a single run.

    Once the run has been cancelled, every event other than one final
    ``error`` is dropped, and nothing at all follows a terminal event.
    """

    def __init__(self, sink: EventEmitter, cancel_token: CancellationToken):
        self._sink = sink
        self._cancel_token = cancel_token
        self.finished = False
        self.emitted = 0

    async def __call__(self, event: AgentEvent) -> None:
        if self.finished:
            logger.debug(f"Dropping {event.type.value} event after terminal event")
            return
        if self._cancel_token.cancelled and event.type is not EventType.ERROR:
            logger.debug(f"Dropping {event.type.value} event after cancellation")
            return
        if event.is_terminal:
            self.finished = True
        self.emitted += 1
        await self._sink(event)


async def run_literature_review(
    topic: str,
    emit: EventEmitter,
    cancel_token: Optional[CancellationToken] = None,
    llm: Optional[LLMClient] = None,
    executor: Optional[ToolExecutor] = None,
    max_iterations: Optional[int] = None,
) -> ReviewResult:
    """Run a full literature review, reporting progress through ``emit``.

    Never raises: any unexpected failure is reported as a single
    ``error`` event.

    Args:
        topic: Research topic
        emit: Async event sink
        cancel_token: Cooperative cancellation (default: never cancelled)
        llm: LLM client (default: LLMClient() on the configured model)
        executor: Tool executor (default: live search providers)
        max_iterations: Search step ceiling override

    Returns:
        ReviewResult with the outcome and collected papers
    """
    cancel_token = cancel_token or CancellationToken()
    llm = llm or LLMClient()
    executor = executor or ToolExecutor()
    run_emit = RunEmitter(emit, cancel_token)
    papers = CollectedPaperSet()
    iterations = 0

    try:
        logger.info(f"Starting literature review on '{topic}' with {llm.model}")
        await run_emit(AgentEvent.status(f'Starting literature review on: "{topic}"'))

        search = await run_search_phase(
            topic, papers, run_emit, cancel_token, llm, executor,
            max_iterations=max_iterations,
        )
        iterations = search.iterations
        if not search.outcome.proceeds_to_synthesis:
            return ReviewResult(
                outcome=_SEARCH_TO_REVIEW_OUTCOME[search.outcome],
                papers=papers.papers(),
                iterations=iterations,
            )

        outcome = await run_synthesis_phase(topic, papers.papers(), run_emit, cancel_token, llm)
    except Exception as e:
        logger.exception(f"Literature review on '{topic}' crashed")
        await run_emit(AgentEvent.error(f"An unexpected error occurred: {e}"))
        outcome = ReviewOutcome.FAILED

    logger.info(f"Literature review on '{topic}' finished: {outcome.value}")
    return ReviewResult(outcome=outcome, papers=papers.papers(), iterations=iterations)


async def stream_literature_review(
    topic: str,
    cancel_token: Optional[CancellationToken] = None,
    llm: Optional[LLMClient] = None,
    executor: Optional[ToolExecutor] = None,
    max_iterations: Optional[int] = None,
) -> AsyncIterator[AgentEvent]:
    """Run a review in a background task and yield its events in order.

    The stream ends after the run's terminal event. Closing the iterator
    early cancels the run.
    """
    cancel_token = cancel_token or CancellationToken()
    queue: "asyncio.Queue[Optional[AgentEvent]]" = asyncio.Queue()

    async def run() -> None:
        try:
            await run_literature_review(
                topic, queue.put, cancel_token,
                llm=llm, executor=executor, max_iterations=max_iterations,
            )
        finally:
            await queue.put(None)

    task = asyncio.create_task(run())
    try:
        while True:
            event = await queue.get()
            if event is None:
                break
            yield event
    finally:
        if not task.done():
            cancel_token.cancel()
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
