#!/usr/bin/env python
"""Tests for the Paper and AgentEvent models.

Covers:
- Semantic Scholar normalization (url fallback, optional citation count)
- arXiv normalization (whitespace, id, year)
- Tool-result and paper_found payloads
- SSE framing of events

Run with: pytest tests/test_models.py -v
"""

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from models.events import AgentEvent, EventType  # noqa: E402
from models.paper import Paper, PaperSource, normalize_title  # noqa: E402


def _arxiv_result(**overrides):
    fields = {
        "entry_id": "http://arxiv.org/abs/2101.00001v2",
        "title": "  Attention\n   Is All\tYou Need ",
        "summary": "We propose\n  a new   architecture.\n",
        "authors": [SimpleNamespace(name="Ashish Vaswani"), SimpleNamespace(name="Noam Shazeer")],
        "published": datetime(2017, 6, 12, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


# === Semantic Scholar normalization ===

def test_semantic_scholar_record_is_normalized():
    paper = Paper.from_semantic_scholar({
        "paperId": "abc123",
        "title": "Federated Learning",
        "authors": [{"name": "H. McMahan"}, {"name": "E. Moore"}],
        "year": 2017,
        "abstract": "Communication-efficient learning.",
        "url": "https://www.semanticscholar.org/paper/abc123",
        "citationCount": 4200,
    })
    assert paper.id == "abc123"
    assert paper.authors == ["H. McMahan", "E. Moore"]
    assert paper.year == 2017
    assert paper.citation_count == 4200
    assert paper.source is PaperSource.SEMANTIC_SCHOLAR


def test_semantic_scholar_missing_url_is_constructed():
    paper = Paper.from_semantic_scholar({"paperId": "xyz", "title": "T"})
    assert paper.url == "https://www.semanticscholar.org/paper/xyz"
    assert paper.abstract == ""
    assert paper.authors == []
    assert paper.year is None


def test_semantic_scholar_citation_count_zero_is_kept():
    """0 citations is a real value and must not become None."""
    paper = Paper.from_semantic_scholar({"paperId": "p", "title": "T", "citationCount": 0})
    assert paper.citation_count == 0


def test_semantic_scholar_missing_citation_count_stays_none():
    paper = Paper.from_semantic_scholar({"paperId": "p", "title": "T"})
    assert paper.citation_count is None


def test_semantic_scholar_record_without_title_is_discarded():
    assert Paper.from_semantic_scholar({"paperId": "p", "title": None}) is None
    assert Paper.from_semantic_scholar({"paperId": "p", "title": "   "}) is None


# === arXiv normalization ===

def test_arxiv_result_is_normalized():
    paper = Paper.from_arxiv_result(_arxiv_result())
    assert paper.title == "Attention Is All You Need"
    assert paper.abstract == "We propose a new architecture."
    assert paper.id == "2101.00001v2"
    assert paper.url == "http://arxiv.org/abs/2101.00001v2"
    assert paper.year == 2017
    assert paper.citation_count is None
    assert paper.source is PaperSource.ARXIV


def test_arxiv_result_without_published_date_has_no_year():
    paper = Paper.from_arxiv_result(_arxiv_result(published=None))
    assert paper.year is None


def test_arxiv_result_without_title_is_discarded():
    assert Paper.from_arxiv_result(_arxiv_result(title=" \n ")) is None


# === Payloads ===

def test_normalized_title_trims_and_lowercases():
    assert normalize_title("  Deep Learning  ") == "deep learning"
    paper = Paper.from_semantic_scholar({"paperId": "p", "title": "Deep LEARNING"})
    assert paper.normalized_title == "deep learning"


def test_search_result_truncates_abstract():
    paper = Paper(id="1", title="T", source=PaperSource.ARXIV, abstract="x" * 900)
    result = paper.to_search_result(500)
    assert len(result["abstract"]) == 500
    assert "citationCount" not in result


def test_search_result_placeholder_for_empty_abstract():
    paper = Paper(id="1", title="T", source=PaperSource.SEMANTIC_SCHOLAR, citation_count=3)
    result = paper.to_search_result()
    assert result["abstract"] == "No abstract available"
    assert result["citationCount"] == 3


def test_found_event_lists_at_most_three_authors():
    paper = Paper(
        id="1", title="T", source=PaperSource.ARXIV,
        authors=["A", "B", "C", "D"], year=2020,
    )
    assert paper.to_found_event() == {
        "title": "T",
        "authors": ["A", "B", "C"],
        "year": 2020,
        "source": "arXiv",
    }


# === Events ===

def test_sse_framing():
    event = AgentEvent.paper_found({"title": "Café", "authors": [], "year": None, "source": "arXiv"})
    frame = event.to_sse()
    assert frame.startswith("event: paper_found\ndata: ")
    assert frame.endswith("\n\n")
    data_line = frame.split("\n")[1]
    assert json.loads(data_line[len("data: "):])["title"] == "Café"


def test_review_chunk_with_newlines_stays_on_one_data_line():
    frame = AgentEvent.review_chunk("line one\nline two").to_sse()
    assert frame == 'event: review_chunk\ndata: "line one\\nline two"\n\n'


def test_complete_event_payload():
    event = AgentEvent.complete(4)
    assert event.type is EventType.COMPLETE
    assert event.data == {"paperCount": 4}
    assert event.is_terminal


def test_status_event_is_not_terminal():
    assert not AgentEvent.status("working").is_terminal
    assert AgentEvent.error("boom").is_terminal
