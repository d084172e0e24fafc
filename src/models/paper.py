"""Normalized paper model shared by every search provider."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

SEMANTIC_SCHOLAR_PAPER_URL = "https://www.semanticscholar.org/paper/"

_WHITESPACE = re.compile(r"\s+")


class PaperSource(str, Enum):
    """Which search provider a paper came from."""

    SEMANTIC_SCHOLAR = "semantic_scholar"
    ARXIV = "arxiv"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    PaperSource.SEMANTIC_SCHOLAR: "Semantic Scholar",
    PaperSource.ARXIV: "arXiv",
}


def collapse_whitespace(text: Optional[str]) -> str:
    """Collapse runs of whitespace (including feed line breaks) to single spaces."""
    return _WHITESPACE.sub(" ", text or "").strip()


def normalize_title(title: str) -> str:
    """Deduplication key for a paper: trimmed, lowercased title."""
    return title.lower().strip()


@dataclass(frozen=True)
class Paper:
    """An academic record normalized from Semantic Scholar or arXiv.

    ``citation_count`` stays ``None`` when the provider does not report it;
    zero is a real value and is never used as a default.
    """

    id: str
    title: str
    source: PaperSource
    authors: List[str] = field(default_factory=list)
    year: Optional[int] = None
    abstract: str = ""
    url: str = ""
    citation_count: Optional[int] = None

    @property
    def normalized_title(self) -> str:
        return normalize_title(self.title)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "title": self.title,
            "authors": list(self.authors),
            "year": self.year,
            "abstract": self.abstract,
            "url": self.url,
            "citationCount": self.citation_count,
            "source": self.source.value,
        }

    def to_found_event(self) -> Dict[str, Any]:
        """Payload for a ``paper_found`` event."""
        return {
            "title": self.title,
            "authors": self.authors[:3],
            "year": self.year,
            "source": self.source.display_name,
        }

    def to_search_result(self, abstract_limit: int = 500) -> Dict[str, Any]:
        """Compact form fed back to the LLM after a search tool call."""
        result = {
            "id": self.id,
            "title": self.title,
            "authors": ", ".join(self.authors[:3]),
            "year": self.year,
            "abstract": self.abstract[:abstract_limit] or "No abstract available",
            "source": self.source.value,
        }
        if self.source is PaperSource.SEMANTIC_SCHOLAR:
            result["citationCount"] = self.citation_count
        return result

    def to_detail_result(self) -> Dict[str, Any]:
        """Full form fed back to the LLM after a detail lookup."""
        return {
            "id": self.id,
            "title": self.title,
            "authors": ", ".join(self.authors),
            "year": self.year,
            "abstract": self.abstract,
            "url": self.url,
            "citationCount": self.citation_count,
        }

    @classmethod
    def from_semantic_scholar(cls, data: Dict[str, Any]) -> Optional["Paper"]:
        """Create a Paper from a Semantic Scholar Graph API record.

        Returns None for records without a title.
        """
        title = (data.get("title") or "").strip()
        if not title:
            return None

        paper_id = data.get("paperId") or ""
        citation_count = data.get("citationCount")
        return cls(
            id=paper_id,
            title=title,
            source=PaperSource.SEMANTIC_SCHOLAR,
            authors=[a.get("name") or "" for a in (data.get("authors") or [])],
            year=data.get("year"),
            abstract=data.get("abstract") or "",
            url=data.get("url") or f"{SEMANTIC_SCHOLAR_PAPER_URL}{paper_id}",
            citation_count=int(citation_count) if citation_count is not None else None,
        )

    @classmethod
    def from_arxiv_result(cls, result) -> Optional["Paper"]:
        """Create a Paper from an ``arxiv.Result``.

        Returns None for entries without a title.
        """
        title = collapse_whitespace(result.title)
        if not title:
            return None

        entry_id = (result.entry_id or "").strip()
        return cls(
            id=entry_id.split("/abs/")[-1],
            title=title,
            source=PaperSource.ARXIV,
            authors=[author.name for author in result.authors],
            year=result.published.year if result.published else None,
            abstract=collapse_whitespace(result.summary),
            url=entry_id,
        )
