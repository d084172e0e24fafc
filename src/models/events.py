"""Lifecycle events emitted by a review run, and their SSE framing."""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Union

EventData = Union[str, int, Dict[str, Any]]


class EventType(str, Enum):
    """Event names as they appear on the wire."""

    STATUS = "status"
    PAPER_FOUND = "paper_found"
    THINKING = "thinking"
    REVIEW_START = "review_start"
    REVIEW_CHUNK = "review_chunk"
    PAPERS_COUNT = "papers_count"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class AgentEvent:
    """One entry of the ordered, append-only event stream of a run."""

    type: EventType
    data: EventData

    @property
    def is_terminal(self) -> bool:
        return self.type in (EventType.COMPLETE, EventType.ERROR)

    def to_sse(self) -> str:
        """Frame the event as a server-sent event block."""
        payload = json.dumps(self.data, ensure_ascii=False)
        return f"event: {self.type.value}\ndata: {payload}\n\n"

    # Named constructors

    @classmethod
    def status(cls, text: str) -> "AgentEvent":
        return cls(EventType.STATUS, text)

    @classmethod
    def paper_found(cls, paper: Dict[str, Any]) -> "AgentEvent":
        return cls(EventType.PAPER_FOUND, paper)

    @classmethod
    def thinking(cls, text: str) -> "AgentEvent":
        return cls(EventType.THINKING, text)

    @classmethod
    def review_start(cls) -> "AgentEvent":
        return cls(EventType.REVIEW_START, "")

    @classmethod
    def review_chunk(cls, text: str) -> "AgentEvent":
        return cls(EventType.REVIEW_CHUNK, text)

    @classmethod
    def papers_count(cls, count: int) -> "AgentEvent":
        return cls(EventType.PAPERS_COUNT, count)

    @classmethod
    def complete(cls, paper_count: int) -> "AgentEvent":
        return cls(EventType.COMPLETE, {"paperCount": paper_count})

    @classmethod
    def error(cls, message: str) -> "AgentEvent":
        return cls(EventType.ERROR, message)
