"""Shared fakes for the review agent tests.

The LLM and the search providers are replaced by scripted fakes so the
orchestration logic can be tested without network access.
"""

import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from agents.llm import LLMTurn, ToolCall  # noqa: E402
from agents.state import CancellationToken  # noqa: E402
from models.events import AgentEvent, EventType  # noqa: E402
from models.paper import Paper, PaperSource  # noqa: E402


class EventCollector:
    """Async event sink that records every event it receives."""

    def __init__(self, on_event=None):
        self.events: List[AgentEvent] = []
        self.on_event = on_event

    async def __call__(self, event: AgentEvent) -> None:
        self.events.append(event)
        if self.on_event is not None:
            self.on_event(event)

    def types(self) -> List[EventType]:
        return [e.type for e in self.events]

    def data(self, event_type: EventType) -> list:
        return [e.data for e in self.events if e.type is event_type]


class FakeLLM:
    """Scripted stand-in for LLMClient.

    ``turns`` are returned one per search step (an Exception entry is raised
    instead); ``chunks`` are streamed by ``stream_text``.
    """

    model = "fake/model"

    def __init__(
        self,
        turns: Optional[list] = None,
        chunks: Optional[List[str]] = None,
        stream_error: Optional[Exception] = None,
        completion: str = "",
    ):
        self.turns = list(turns or [])
        self.chunks = list(chunks or [])
        self.stream_error = stream_error
        self.completion = completion
        self.search_calls: List[List[dict]] = []
        self.stream_prompts: List[tuple] = []
        self.complete_prompts: List[tuple] = []
        self.stream_closed = False

    async def complete_with_tools(self, system_prompt, messages, tools, max_tokens=None):
        self.search_calls.append([dict(m) for m in messages])
        if not self.turns:
            raise AssertionError("FakeLLM ran out of scripted turns")
        turn = self.turns.pop(0)
        if isinstance(turn, Exception):
            raise turn
        return turn

    async def stream_text(self, system_prompt, user_prompt, max_tokens=None):
        self.stream_prompts.append((system_prompt, user_prompt))
        try:
            for chunk in self.chunks:
                yield chunk
            if self.stream_error is not None:
                raise self.stream_error
        finally:
            self.stream_closed = True

    async def complete(self, system_prompt, user_prompt, max_tokens=2000):
        self.complete_prompts.append((system_prompt, user_prompt))
        return self.completion


class FakeAdapter:
    """Stand-in for SearchProviderAdapter backed by canned results."""

    def __init__(
        self,
        results: Optional[Dict[PaperSource, list]] = None,
        details: Optional[Dict[str, Paper]] = None,
    ):
        # Each source maps to a list of responses consumed in order;
        # an Exception entry is raised instead of returned.
        self.results = {k: list(v) for k, v in (results or {}).items()}
        self.details = details or {}
        self.search_calls: List[tuple] = []
        self.detail_calls: List[tuple] = []

    async def search(self, source, query, limit=10):
        self.search_calls.append((source, query, limit))
        responses = self.results.get(source) or [[]]
        response = responses.pop(0) if len(responses) > 1 else responses[0]
        if isinstance(response, Exception):
            raise response
        return list(response)

    async def fetch_detail(self, paper_id, source):
        self.detail_calls.append((paper_id, source))
        return self.details.get(paper_id)


def make_paper(
    title: str,
    source: PaperSource = PaperSource.SEMANTIC_SCHOLAR,
    **kwargs,
) -> Paper:
    defaults = {
        "id": title.lower().replace(" ", "-"),
        "authors": ["Ada Lovelace", "Alan Turing"],
        "year": 2021,
        "abstract": f"Abstract of {title}.",
        "url": f"https://example.org/{title.lower().replace(' ', '-')}",
        "citation_count": 10 if source is PaperSource.SEMANTIC_SCHOLAR else None,
    }
    defaults.update(kwargs)
    return Paper(title=title, source=source, **defaults)


def tool_call(name: str, call_id: str = "call_1", **arguments) -> ToolCall:
    import json

    return ToolCall(id=call_id, name=name, arguments=arguments, raw_arguments=json.dumps(arguments))


def tool_turn(*calls: ToolCall, text: str = "") -> LLMTurn:
    return LLMTurn(text=text, tool_calls=list(calls), finish_reason="tool_calls")


def text_turn(text: str, finish_reason: str = "stop") -> LLMTurn:
    return LLMTurn(text=text, finish_reason=finish_reason)


@pytest.fixture
def collector() -> EventCollector:
    return EventCollector()


@pytest.fixture
def cancel_token() -> CancellationToken:
    return CancellationToken()
