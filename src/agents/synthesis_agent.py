"""Synthesis Agent: streams the structured literature review.

Receives only the topic and the collected papers (never the search
transcript) and forwards every generated fragment as a ``review_chunk``
event the moment it arrives.
"""

import logging
from typing import List

from agents.errors import AgentError
from agents.llm import LLMClient
from agents.prompts import REVIEW_SYSTEM_PROMPT, build_review_prompt
from agents.state import CANCELLED_MESSAGE, CancellationToken, EventEmitter, ReviewOutcome
from models.events import AgentEvent
from models.paper import Paper

logger = logging.getLogger(__name__)

NO_PAPERS_MESSAGE = "No papers were found. Please try a different or broader topic."


async def run_synthesis_phase(
    topic: str,
    papers: List[Paper],
    emit: EventEmitter,
    cancel_token: CancellationToken,
    llm: LLMClient,
) -> ReviewOutcome:
    """Stream the review for ``papers`` and finish the run.

    Exactly one terminal event is emitted: ``complete`` on success,
    ``error`` otherwise. Chunks already sent are never retracted.

    Args:
        topic: Research topic
        papers: Final collected papers, in discovery order
        emit: Async event sink
        cancel_token: Checked before the call opens and on every streamed fragment
        llm: LLM client used for the streaming call

    Returns:
        ReviewOutcome of the run
    """
    if cancel_token.cancelled:
        await emit(AgentEvent.error(CANCELLED_MESSAGE))
        return ReviewOutcome.CANCELLED

    if not papers:
        logger.warning(f"No papers collected for '{topic}', skipping synthesis")
        await emit(AgentEvent.error(NO_PAPERS_MESSAGE))
        return ReviewOutcome.NO_PAPERS

    await emit(AgentEvent.review_start())
    await emit(AgentEvent.status(f"Writing literature review from {len(papers)} papers..."))

    prompt = build_review_prompt(topic, papers)
    stream = llm.stream_text(REVIEW_SYSTEM_PROMPT, prompt)
    chunk_count = 0

    try:
        async for chunk in stream:
            if cancel_token.cancelled:
                await emit(AgentEvent.error(CANCELLED_MESSAGE))
                return ReviewOutcome.CANCELLED
            chunk_count += 1
            await emit(AgentEvent.review_chunk(chunk))
    except Exception as e:
        if cancel_token.cancelled:
            await emit(AgentEvent.error(CANCELLED_MESSAGE))
            return ReviewOutcome.CANCELLED
        message = e.message if isinstance(e, AgentError) else str(e)
        logger.error(f"Review generation failed after {chunk_count} chunk(s): {message}")
        await emit(AgentEvent.error(f"Review generation error: {message}"))
        return ReviewOutcome.FAILED
    finally:
        await stream.aclose()

    if cancel_token.cancelled:
        await emit(AgentEvent.error(CANCELLED_MESSAGE))
        return ReviewOutcome.CANCELLED

    logger.info(f"Review streamed in {chunk_count} chunk(s) from {len(papers)} papers")
    await emit(AgentEvent.complete(len(papers)))
    return ReviewOutcome.COMPLETED
