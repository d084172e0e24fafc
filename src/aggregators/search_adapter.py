"""Uniform search interface over Semantic Scholar and arXiv."""

import logging
from typing import List, Optional

from agents.errors import AgentError
from models.paper import Paper, PaperSource
from services import arxiv as arxiv_service
from services import semantic_scholar

logger = logging.getLogger(__name__)

# Provider-agnostic ceiling on results per search call
MAX_SEARCH_LIMIT = 20
DEFAULT_SEARCH_LIMIT = 10


def clamp_limit(limit: Optional[int]) -> int:
    """Clamp a requested result count into [1, MAX_SEARCH_LIMIT]."""
    if not limit:
        return DEFAULT_SEARCH_LIMIT
    return max(1, min(int(limit), MAX_SEARCH_LIMIT))


class SearchProviderAdapter:
    """Routes searches and detail lookups to the right provider.

    Every call goes to the network; there is no caching layer, so
    repeated identical queries hit the provider again.
    """

    async def search(
        self,
        source: PaperSource,
        query: str,
        limit: Optional[int] = DEFAULT_SEARCH_LIMIT,
    ) -> List[Paper]:
        """Search one provider.

        Args:
            source: Which provider to query
            query: Search query string
            limit: Requested result count, clamped to MAX_SEARCH_LIMIT

        Returns:
            Normalized papers

        Raises:
            SearchProviderError: on a non-success status or transport failure
        """
        limit = clamp_limit(limit)
        if source is PaperSource.SEMANTIC_SCHOLAR:
            return await semantic_scholar.search_papers(query, limit=limit)
        return await arxiv_service.search_papers(query, max_results=limit)

    async def fetch_detail(self, paper_id: str, source: PaperSource) -> Optional[Paper]:
        """Look up one paper by its provider ID.

        Failures degrade to None since detail lookups are opportunistic.
        """
        try:
            if source is PaperSource.SEMANTIC_SCHOLAR:
                return await semantic_scholar.get_paper(paper_id)
            return await arxiv_service.get_paper_metadata(paper_id)
        except AgentError as e:
            logger.warning(f"Detail lookup for {source.value}:{paper_id} failed: {e}")
            return None
