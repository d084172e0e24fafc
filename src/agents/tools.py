"""Tools the search agent can call, and the executor that runs them.

Tool dispatch is closed: every tool is a ToolKind with a typed argument
record and a handler. Names the model invents are answered with a
sentinel string instead of an exception so the model can correct itself.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from agents.errors import ToolArgumentError
from agents.state import EventEmitter
from aggregators.paper_collection import CollectedPaperSet
from aggregators.search_adapter import DEFAULT_SEARCH_LIMIT, SearchProviderAdapter, clamp_limit
from models.events import AgentEvent
from models.paper import Paper, PaperSource
from utils.config import Config

logger = logging.getLogger(__name__)

ABSTRACT_RESULT_LIMIT = 500
DETAIL_NOT_FOUND = "Paper not found or API error occurred."


class ToolKind(str, Enum):
    """Every tool offered to the model."""

    SEARCH_SEMANTIC_SCHOLAR = "search_semantic_scholar"
    SEARCH_ARXIV = "search_arxiv"
    GET_PAPER_DETAILS = "get_paper_details"
    EXTRACT_FINDINGS = "extract_findings"


# =============================================================================
# Typed arguments
# =============================================================================

def _require_str(tool: ToolKind, args: Dict[str, Any], key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ToolArgumentError(tool.value, f"'{key}' must be a non-empty string")
    return value.strip()


@dataclass(frozen=True)
class SearchArgs:
    query: str
    limit: int = DEFAULT_SEARCH_LIMIT

    @classmethod
    def parse(cls, tool: ToolKind, args: Dict[str, Any]) -> "SearchArgs":
        query = _require_str(tool, args, "query")
        raw_limit = args.get("limit")
        try:
            limit = clamp_limit(int(raw_limit) if raw_limit is not None else None)
        except (TypeError, ValueError):
            raise ToolArgumentError(tool.value, "'limit' must be a number")
        return cls(query=query, limit=limit)


@dataclass(frozen=True)
class DetailArgs:
    paper_id: str
    source: PaperSource

    @classmethod
    def parse(cls, tool: ToolKind, args: Dict[str, Any]) -> "DetailArgs":
        paper_id = _require_str(tool, args, "paper_id")
        try:
            source = PaperSource(args.get("source"))
        except ValueError:
            allowed = ", ".join(s.value for s in PaperSource)
            raise ToolArgumentError(tool.value, f"'source' must be one of: {allowed}")
        return cls(paper_id=paper_id, source=source)


@dataclass(frozen=True)
class FindingsArgs:
    paper_title: str
    paper_text: str

    @classmethod
    def parse(cls, tool: ToolKind, args: Dict[str, Any]) -> "FindingsArgs":
        return cls(
            paper_title=_require_str(tool, args, "paper_title"),
            paper_text=_require_str(tool, args, "paper_text"),
        )


# =============================================================================
# Tool catalog (function-calling schema)
# =============================================================================

def _function(name: ToolKind, description: str, properties: dict, required: List[str]) -> dict:
    return {
        "type": "function",
        "function": {
            "name": name.value,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        },
    }


_SEARCH_PROPERTIES = {
    "query": {
        "type": "string",
        "description": "The search query for finding papers",
    },
    "limit": {
        "type": "number",
        "description": "Maximum number of results to return (default: 10, max: 20)",
    },
}

TOOL_DEFINITIONS: List[dict] = [
    _function(
        ToolKind.SEARCH_SEMANTIC_SCHOLAR,
        "Search for academic papers on Semantic Scholar. Returns papers with titles, "
        "authors, years, abstracts, and citation counts. Use varied query phrasings "
        "to get diverse results.",
        _SEARCH_PROPERTIES,
        ["query"],
    ),
    _function(
        ToolKind.SEARCH_ARXIV,
        "Search for papers on the arXiv preprint server. Good for recent research "
        "and preprints. Returns papers with titles, authors, years, and abstracts.",
        _SEARCH_PROPERTIES,
        ["query"],
    ),
    _function(
        ToolKind.GET_PAPER_DETAILS,
        "Get detailed information about a specific paper including its full "
        "abstract and metadata.",
        {
            "paper_id": {
                "type": "string",
                "description": "The unique identifier of the paper",
            },
            "source": {
                "type": "string",
                "enum": [s.value for s in PaperSource],
                "description": "Which database the paper is from",
            },
        },
        ["paper_id", "source"],
    ),
    _function(
        ToolKind.EXTRACT_FINDINGS,
        "Structure a paper's abstract or text into key findings, methodology, and "
        "conclusions. Use this for papers that seem particularly important.",
        {
            "paper_title": {
                "type": "string",
                "description": "The title of the paper",
            },
            "paper_text": {
                "type": "string",
                "description": "The abstract or text of the paper to analyze",
            },
        },
        ["paper_title", "paper_text"],
    ),
]


# =============================================================================
# Executor
# =============================================================================

class ToolExecutor:
    """Runs tool calls against the search providers.

    Owns no state of its own: the collected paper set and the event
    emitter are passed in on every call by the agent loop, which is the
    only writer of the set.
    """

    def __init__(
        self,
        adapter: Optional[SearchProviderAdapter] = None,
        search_delay: Optional[float] = None,
        detail_delay: Optional[float] = None,
    ):
        self.adapter = adapter or SearchProviderAdapter()
        self.search_delay = Config.SEARCH_PACING_SECONDS if search_delay is None else search_delay
        self.detail_delay = Config.DETAIL_PACING_SECONDS if detail_delay is None else detail_delay

    async def execute(
        self,
        tool_name: str,
        args: Dict[str, Any],
        papers: CollectedPaperSet,
        emit: EventEmitter,
    ) -> str:
        """Execute one tool call and return the text fed back to the model.

        Args:
            tool_name: Name requested by the model
            args: Decoded tool arguments
            papers: The run's collected paper set (mutated in place)
            emit: Event sink for status and discovery events

        Returns:
            Tool result payload (usually JSON)

        Raises:
            SearchProviderError: when a search provider fails
        """
        try:
            kind = ToolKind(tool_name)
        except ValueError:
            logger.warning(f"Model requested unknown tool '{tool_name}'")
            return f"Unknown tool: {tool_name}"

        try:
            if kind is ToolKind.SEARCH_SEMANTIC_SCHOLAR:
                return await self._search(
                    PaperSource.SEMANTIC_SCHOLAR, SearchArgs.parse(kind, args), papers, emit
                )
            if kind is ToolKind.SEARCH_ARXIV:
                return await self._search(
                    PaperSource.ARXIV, SearchArgs.parse(kind, args), papers, emit
                )
            if kind is ToolKind.GET_PAPER_DETAILS:
                return await self._get_details(DetailArgs.parse(kind, args), papers, emit)
            return await self._extract_findings(FindingsArgs.parse(kind, args), emit)
        except ToolArgumentError as e:
            logger.warning(e.message)
            return e.message

    async def _search(
        self,
        source: PaperSource,
        args: SearchArgs,
        papers: CollectedPaperSet,
        emit: EventEmitter,
    ) -> str:
        await emit(AgentEvent.status(f'Searching {source.display_name} for "{args.query}"...'))
        await asyncio.sleep(self.search_delay)

        results = await self.adapter.search(source, args.query, args.limit)
        new_count = await self._merge(results, papers, emit)
        await emit(AgentEvent.papers_count(len(papers)))

        logger.info(
            f"{source.display_name} search '{args.query}': {len(results)} results, "
            f"{new_count} new, {len(papers)} collected"
        )
        return json.dumps(
            [paper.to_search_result(ABSTRACT_RESULT_LIMIT) for paper in results],
            ensure_ascii=False,
        )

    async def _get_details(
        self,
        args: DetailArgs,
        papers: CollectedPaperSet,
        emit: EventEmitter,
    ) -> str:
        await emit(AgentEvent.status("Fetching details for paper..."))
        await asyncio.sleep(self.detail_delay)

        paper = await self.adapter.fetch_detail(args.paper_id, args.source)
        if paper is None:
            return DETAIL_NOT_FOUND

        if await self._merge([paper], papers, emit):
            await emit(AgentEvent.papers_count(len(papers)))
        return json.dumps(paper.to_detail_result(), ensure_ascii=False)

    async def _extract_findings(self, args: FindingsArgs, emit: EventEmitter) -> str:
        # No computation here: the text is echoed back for the model to structure itself.
        await emit(AgentEvent.status(f'Extracting findings from "{args.paper_title[:60]}..."'))
        return json.dumps(
            {
                "paper_title": args.paper_title,
                "text_analyzed": args.paper_text,
                "instruction": (
                    "Use the above text to identify key findings, methodology, and "
                    "conclusions for the literature review."
                ),
            },
            ensure_ascii=False,
        )

    @staticmethod
    async def _merge(results: List[Paper], papers: CollectedPaperSet, emit: EventEmitter) -> int:
        """Add unseen papers to the set, announcing each one. Returns how many were new."""
        new_count = 0
        for paper in results:
            if papers.add(paper):
                new_count += 1
                await emit(AgentEvent.paper_found(paper.to_found_event()))
        return new_count
