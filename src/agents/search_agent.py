"""Search Agent: the tool-calling loop of the first review phase.

The loop alternates between one LLM reasoning step and the sequential
execution of the tools that step requested, until one of:

1. the model's text contains the SYNTHESIS_READY phrase,
2. the model requests no tools and at least MIN_ITERATIONS_BEFORE_STOP
   steps have run,
3. the model ends its turn naturally without requesting tools,

or until the iteration ceiling is reached. Conditions are checked in that
order on every step. The second one is a heuristic: it can end the search
before the model says the phrase, and that early stop is accepted.
"""

import logging
from typing import Any, Dict, List, Optional

from agents.errors import AgentError
from agents.llm import LLMClient, LLMTurn
from agents.prompts import (
    SEARCH_NUDGE_PROMPT,
    SEARCH_SYSTEM_PROMPT,
    SYNTHESIS_READY,
    build_search_prompt,
)
from agents.state import (
    CANCELLED_MESSAGE,
    CancellationToken,
    EventEmitter,
    SearchOutcome,
    SearchPhaseResult,
)
from agents.tools import TOOL_DEFINITIONS, ToolExecutor
from aggregators.paper_collection import CollectedPaperSet
from models.events import AgentEvent
from utils.config import Config

logger = logging.getLogger(__name__)

MIN_ITERATIONS_BEFORE_STOP = 3
MAX_SEARCH_ITERATIONS = 8


def should_stop(turn: LLMTurn, iteration: int) -> Optional[str]:
    """Return the reason the search phase is done, or None to keep going."""
    if SYNTHESIS_READY in turn.text:
        return "stop phrase"
    if not turn.tool_calls and iteration >= MIN_ITERATIONS_BEFORE_STOP:
        return "no tool calls"
    if not turn.tool_calls and turn.ended_naturally:
        return "turn ended"
    return None


def _tool_result_message(tool_call_id: str, content: str) -> Dict[str, Any]:
    return {"role": "tool", "tool_call_id": tool_call_id, "content": content}


async def run_search_phase(
    topic: str,
    papers: CollectedPaperSet,
    emit: EventEmitter,
    cancel_token: CancellationToken,
    llm: LLMClient,
    executor: ToolExecutor,
    max_iterations: Optional[int] = None,
) -> SearchPhaseResult:
    """Drive the model through tool calls until it has collected enough papers.

    The transcript is local to this function and discarded on return;
    only ``papers`` carries results forward.

    Args:
        topic: Research topic to review
        papers: Collected paper set, filled in place by the executor
        emit: Async event sink
        cancel_token: Polled before every step and around every tool call
        llm: LLM client used for the reasoning steps
        executor: Runs the requested tools
        max_iterations: Step ceiling (default: Config.AGENT_MAX_ITERATIONS).
            Never above MAX_SEARCH_ITERATIONS, whatever the override.

    Returns:
        SearchPhaseResult; on ABORTED or CANCELLED an ``error`` event has
        already been emitted
    """
    max_iterations = min(
        max_iterations or Config.AGENT_MAX_ITERATIONS, MAX_SEARCH_ITERATIONS
    )
    messages: List[Dict[str, Any]] = [
        {"role": "user", "content": build_search_prompt(topic)},
    ]
    iteration = 0
    tool_call_count = 0

    def finish(outcome: SearchOutcome) -> SearchPhaseResult:
        logger.info(
            f"Search phase {outcome.value} after {iteration} step(s), "
            f"{tool_call_count} tool call(s), {len(papers)} paper(s)"
        )
        return SearchPhaseResult(outcome=outcome, iterations=iteration, tool_calls=tool_call_count)

    async def cancelled() -> bool:
        if cancel_token.cancelled:
            await emit(AgentEvent.error(CANCELLED_MESSAGE))
            return True
        return False

    while iteration < max_iterations:
        if await cancelled():
            return finish(SearchOutcome.CANCELLED)

        iteration += 1
        await emit(AgentEvent.status(f"Agent reasoning... (step {iteration})"))

        try:
            turn = await llm.complete_with_tools(SEARCH_SYSTEM_PROMPT, messages, TOOL_DEFINITIONS)
        except Exception as e:
            message = e.message if isinstance(e, AgentError) else str(e)
            logger.error(f"Search step {iteration} failed: {message}")
            await emit(AgentEvent.error(f"API error: {message}"))
            return finish(SearchOutcome.ABORTED)

        thinking = turn.text.strip()
        if thinking:
            await emit(AgentEvent.thinking(thinking))

        reason = should_stop(turn, iteration)
        if reason:
            logger.debug(f"Search phase stopping at step {iteration}: {reason}")
            await emit(AgentEvent.status(f"Search phase complete. Collected {len(papers)} papers."))
            return finish(SearchOutcome.DONE)

        messages.append(turn.to_message())

        if not turn.tool_calls:
            # Too early to stop: ask the model to confirm it is done
            messages.append({"role": "user", "content": SEARCH_NUDGE_PROMPT})
            continue

        for call in turn.tool_calls:
            if await cancelled():
                return finish(SearchOutcome.CANCELLED)

            tool_call_count += 1
            logger.debug(f"Dispatching {call.name} {call.arguments}")
            try:
                result = await executor.execute(call.name, call.arguments, papers, emit)
            except Exception as e:
                message = e.message if isinstance(e, AgentError) else str(e)
                logger.warning(f"Tool {call.name} failed: {message}")
                await emit(AgentEvent.status(f"Warning: {call.name} failed - {message}. Continuing..."))
                result = f"Error: {message}. Please continue with other searches."

            messages.append(_tool_result_message(call.id, result))

        if await cancelled():
            return finish(SearchOutcome.CANCELLED)

    logger.warning(f"Search phase hit the {max_iterations}-step ceiling")
    await emit(AgentEvent.status(
        f"Search step limit reached. Continuing with {len(papers)} papers."
    ))
    return finish(SearchOutcome.EXHAUSTED)
