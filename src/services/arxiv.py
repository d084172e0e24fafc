"""arXiv service - Search papers through the arXiv Atom feed API.

All calls share one ``arxiv.Client`` (connection reuse, client-level
retries) and are spaced at least ARXIV_COOLDOWN_SECONDS apart, as arXiv
asks of API users. The client is synchronous, so requests run in the
default thread executor and the spacing is enforced under a lock.
"""

import asyncio
import logging
import threading
import time
from typing import Callable, List, Optional, TypeVar

import arxiv

from agents.errors import SearchProviderError
from models.paper import Paper
from utils.config import Config

logger = logging.getLogger(__name__)

PROVIDER = "arxiv"
PAGE_SIZE = 20

T = TypeVar("T")


class _FeedClient:
    """Lazily built arxiv.Client plus request spacing."""

    def __init__(self):
        self._client: Optional[arxiv.Client] = None
        self._lock = threading.Lock()
        self._last_request = float("-inf")

    @property
    def client(self) -> arxiv.Client:
        if self._client is None:
            self._client = arxiv.Client(page_size=PAGE_SIZE, num_retries=3, delay_seconds=5)
        return self._client

    def _space_requests(self) -> None:
        with self._lock:
            gap = Config.ARXIV_COOLDOWN_SECONDS - (time.monotonic() - self._last_request)
            if gap > 0:
                logger.debug(f"Spacing arXiv requests: sleeping {gap:.1f}s")
                time.sleep(gap)
            self._last_request = time.monotonic()

    def fetch(self, search: arxiv.Search) -> List[arxiv.Result]:
        """Blocking: wait for the cooldown, then drain the result generator."""
        self._space_requests()
        return list(self.client.results(search))


_feed = _FeedClient()


async def _run_search(search: arxiv.Search) -> List[arxiv.Result]:
    return await _run_blocking(lambda: _feed.fetch(search))


async def _run_blocking(fn: Callable[[], T]) -> T:
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, fn)
    except arxiv.HTTPError as e:
        raise SearchProviderError(
            f"arXiv API error: {e.status}",
            provider=PROVIDER,
            status=e.status,
            cause=e,
        )
    except (arxiv.ArxivError, OSError) as e:
        logger.warning(f"arXiv request failed: {e!r}")
        raise SearchProviderError(
            f"arXiv request failed: {e}",
            provider=PROVIDER,
            cause=e,
        )


def _to_papers(results: List[arxiv.Result]) -> List[Paper]:
    papers = []
    for result in results:
        paper = Paper.from_arxiv_result(result)
        if paper is not None:
            papers.append(paper)
    return papers


async def search_papers(query: str, max_results: int = 10) -> List[Paper]:
    """
    Search arXiv for papers matching the query across all fields.

    Args:
        query: Free-text search query
        max_results: Maximum number of results

    Returns:
        Normalized papers ordered by relevance
    """
    search = arxiv.Search(
        query=f"all:{query}",
        max_results=max_results,
        sort_by=arxiv.SortCriterion.Relevance,
        sort_order=arxiv.SortOrder.Descending,
    )
    papers = _to_papers(await _run_search(search))
    logger.debug(f"arXiv returned {len(papers)} papers for '{query}'")
    return papers


async def get_paper_metadata(arxiv_id: str) -> Optional[Paper]:
    """
    Get metadata for a specific arXiv paper.

    Args:
        arxiv_id: arXiv paper ID (e.g., "2301.00001" or "2301.00001v1")

    Returns:
        The normalized paper, or None if the ID matches no entry
    """
    search = arxiv.Search(id_list=[arxiv_id])
    papers = _to_papers(await _run_search(search))
    return papers[0] if papers else None
