#!/usr/bin/env python
"""End-to-end tests of the review pipeline with scripted LLM and providers.

Covers:
- Full run: search both providers, deduplicate, stream review, complete
- Exactly one terminal event per run
- Abort, no-papers and cancellation outcomes
- RunEmitter guard
- stream_literature_review async iterator (including early close)

Run with: pytest tests/test_review_pipeline.py -v
"""

import asyncio
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from conftest import EventCollector, FakeAdapter, FakeLLM, make_paper, text_turn, tool_call, tool_turn  # noqa: E402

from agents.errors import LLMError  # noqa: E402
from agents.prompts import SYNTHESIS_READY  # noqa: E402
from agents.review import RunEmitter, run_literature_review, stream_literature_review  # noqa: E402
from agents.state import CANCELLED_MESSAGE, CancellationToken, ReviewOutcome  # noqa: E402
from agents.synthesis_agent import NO_PAPERS_MESSAGE  # noqa: E402
from agents.tools import ToolExecutor  # noqa: E402
from models.events import AgentEvent, EventType  # noqa: E402
from models.paper import PaperSource  # noqa: E402


def _scenario():
    """Semantic Scholar yields 3 papers, arXiv 2 of which one repeats a title."""
    adapter = FakeAdapter({
        PaperSource.SEMANTIC_SCHOLAR: [[
            make_paper("Federated Learning Survey"),
            make_paper("Differential Privacy in FL"),
            make_paper("Secure Aggregation"),
        ]],
        PaperSource.ARXIV: [[
            make_paper("secure aggregation ", PaperSource.ARXIV),
            make_paper("Personalized Federated Learning", PaperSource.ARXIV),
        ]],
    })
    llm = FakeLLM(
        turns=[
            tool_turn(tool_call("search_semantic_scholar", "c1", query="federated learning privacy")),
            tool_turn(tool_call("search_arxiv", "c2", query="federated learning privacy")),
            text_turn(f"Good coverage. {SYNTHESIS_READY}"),
        ],
        chunks=["## Executive Summary\n", "Federated learning...", "\n## References\n"],
    )
    return adapter, llm


def _terminal_events(events):
    return [e for e in events if e.is_terminal]


# === Test 1: Full run ===

@pytest.mark.asyncio
async def test_full_review_run(collector):
    adapter, llm = _scenario()

    result = await run_literature_review(
        "federated learning privacy",
        collector,
        llm=llm,
        executor=ToolExecutor(adapter=adapter, search_delay=0, detail_delay=0),
    )

    assert result.outcome is ReviewOutcome.COMPLETED
    assert result.paper_count == 4
    assert result.iterations == 3

    assert collector.events[0].data == 'Starting literature review on: "federated learning privacy"'
    assert collector.data(EventType.PAPERS_COUNT) == [3, 4]
    assert len(collector.data(EventType.PAPER_FOUND)) == 4
    assert [p["source"] for p in collector.data(EventType.PAPER_FOUND)] == [
        "Semantic Scholar", "Semantic Scholar", "Semantic Scholar", "arXiv",
    ]

    types = collector.types()
    start = types.index(EventType.REVIEW_START)
    assert EventType.REVIEW_CHUNK not in types[:start]
    assert EventType.PAPER_FOUND not in types[start:]
    assert collector.events[-1].type is EventType.COMPLETE
    assert collector.events[-1].data == {"paperCount": 4}
    assert len(_terminal_events(collector.events)) == 1

    # The synthesis prompt lists the papers in discovery order
    _, user_prompt = llm.stream_prompts[0]
    assert user_prompt.index("Federated Learning Survey") < user_prompt.index("Personalized Federated Learning")
    assert "Based on the following 4 papers" in user_prompt


# === Test 2: Other outcomes ===

@pytest.mark.asyncio
async def test_llm_failure_ends_run_without_synthesis(collector):
    llm = FakeLLM(turns=[LLMError("invalid api key")], chunks=["never"])

    result = await run_literature_review(
        "t", collector, llm=llm,
        executor=ToolExecutor(adapter=FakeAdapter(), search_delay=0, detail_delay=0),
    )

    assert result.outcome is ReviewOutcome.ABORTED
    assert llm.stream_prompts == []
    assert _terminal_events(collector.events)[0].data == "API error: invalid api key"
    assert len(_terminal_events(collector.events)) == 1


@pytest.mark.asyncio
async def test_no_papers_found(collector):
    llm = FakeLLM(turns=[
        tool_turn(tool_call("search_arxiv", "c1", query="zzz")),
        text_turn(SYNTHESIS_READY),
    ])

    result = await run_literature_review(
        "zzz", collector, llm=llm,
        executor=ToolExecutor(adapter=FakeAdapter(), search_delay=0, detail_delay=0),
    )

    assert result.outcome is ReviewOutcome.NO_PAPERS
    assert collector.events[-1].data == NO_PAPERS_MESSAGE
    assert EventType.REVIEW_START not in collector.types()


@pytest.mark.asyncio
async def test_tool_crash_is_recovered(collector):
    class BrokenExecutor:
        async def execute(self, *args, **kwargs):
            raise RuntimeError("boom")

    llm = FakeLLM(turns=[tool_turn(tool_call("search_arxiv", "c1", query="q")), text_turn(SYNTHESIS_READY)])

    result = await run_literature_review("t", collector, llm=llm, executor=BrokenExecutor())

    assert result.outcome is ReviewOutcome.NO_PAPERS
    assert "Warning: search_arxiv failed - boom. Continuing..." in collector.data(EventType.STATUS)
    assert len(_terminal_events(collector.events)) == 1


@pytest.mark.asyncio
async def test_stream_failure_fails_run(collector):
    class BrokenLLM(FakeLLM):
        async def stream_text(self, system_prompt, user_prompt, max_tokens=None):
            raise ValueError("stream refused")
            yield  # pragma: no cover

    adapter, _ = _scenario()
    llm = BrokenLLM(turns=[tool_turn(tool_call("search_arxiv", "c1", query="q")), text_turn(SYNTHESIS_READY)])

    result = await run_literature_review(
        "t", collector, llm=llm,
        executor=ToolExecutor(adapter=adapter, search_delay=0, detail_delay=0),
    )

    assert result.outcome is ReviewOutcome.FAILED
    assert result.paper_count == 2
    assert collector.events[-1].data == "Review generation error: stream refused"


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_error_event(collector, monkeypatch):
    async def crash(*args, **kwargs):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr("agents.review.run_search_phase", crash)

    result = await run_literature_review("t", collector, llm=FakeLLM(), executor=object())

    assert result.outcome is ReviewOutcome.FAILED
    assert collector.types() == [EventType.STATUS, EventType.ERROR]
    assert collector.events[-1].data == "An unexpected error occurred: disk on fire"


# === Test 3: Cancellation ===

@pytest.mark.asyncio
async def test_cancel_during_search_stops_everything():
    cancel_token = CancellationToken()

    def cancel_on_first_paper(event):
        if event.type is EventType.PAPER_FOUND:
            cancel_token.cancel()

    collector = EventCollector(on_event=cancel_on_first_paper)
    adapter, llm = _scenario()

    result = await run_literature_review(
        "t", collector, cancel_token, llm=llm,
        executor=ToolExecutor(adapter=adapter, search_delay=0, detail_delay=0),
    )

    assert result.outcome is ReviewOutcome.CANCELLED
    # Only the first discovery got through; everything after is suppressed
    assert len(collector.data(EventType.PAPER_FOUND)) == 1
    assert EventType.PAPERS_COUNT not in collector.types()
    assert collector.events[-1].type is EventType.ERROR
    assert collector.events[-1].data == CANCELLED_MESSAGE
    assert llm.stream_prompts == []


@pytest.mark.asyncio
async def test_run_emitter_guard():
    cancel_token = CancellationToken()
    collector = EventCollector()
    emit = RunEmitter(collector, cancel_token)

    await emit(AgentEvent.status("one"))
    cancel_token.cancel()
    await emit(AgentEvent.status("dropped"))
    await emit(AgentEvent.error(CANCELLED_MESSAGE))
    await emit(AgentEvent.error("second terminal"))

    assert [e.data for e in collector.events] == ["one", CANCELLED_MESSAGE]
    assert emit.finished
    assert emit.emitted == 2


# === Test 4: Async iterator ===

@pytest.mark.asyncio
async def test_stream_literature_review_yields_all_events():
    adapter, llm = _scenario()

    events = [
        event async for event in stream_literature_review(
            "federated learning privacy",
            llm=llm,
            executor=ToolExecutor(adapter=adapter, search_delay=0, detail_delay=0),
        )
    ]

    assert events[0].type is EventType.STATUS
    assert events[-1].type is EventType.COMPLETE
    assert "".join(e.data for e in events if e.type is EventType.REVIEW_CHUNK) == (
        "## Executive Summary\nFederated learning...\n## References\n"
    )


@pytest.mark.asyncio
async def test_closing_stream_early_cancels_run():
    adapter, llm = _scenario()
    cancel_token = CancellationToken()

    stream = stream_literature_review(
        "t", cancel_token, llm=llm,
        executor=ToolExecutor(adapter=adapter, search_delay=0.05, detail_delay=0),
    )
    first = await stream.__anext__()
    await stream.aclose()

    assert first.type is EventType.STATUS
    assert cancel_token.cancelled
    # Let any leftover callbacks run; nothing should raise
    await asyncio.sleep(0)
