"""Semantic Scholar service - Search academic papers via the Graph API."""

import asyncio
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp

from agents.errors import RateLimitError, SearchProviderError, retry_rate_limited
from models.paper import Paper
from utils.config import Config

logger = logging.getLogger(__name__)

# API configuration
BASE_URL = "https://api.semanticscholar.org/graph/v1"
PAPER_FIELDS = "title,authors,year,abstract,url,citationCount"
PROVIDER = "semantic_scholar"


def _headers() -> Dict[str, str]:
    headers = {"User-Agent": "LiteratureReviewAgent/1.0"}
    # Optional, increases rate limit
    if Config.SEMANTIC_SCHOLAR_API_KEY:
        headers["x-api-key"] = Config.SEMANTIC_SCHOLAR_API_KEY
    return headers


@retry_rate_limited(attempts=3)
async def _make_request(endpoint: str, params: Optional[dict] = None) -> Any:
    """Make async GET request to the Semantic Scholar API.

    Raises:
        RateLimitError: on HTTP 429 (retried by the decorator)
        SearchProviderError: on any other non-200 status, an unparseable body
            or a transport failure
    """
    url = f"{BASE_URL}/{endpoint}"
    timeout = aiohttp.ClientTimeout(total=Config.HTTP_TIMEOUT_SECONDS)

    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url, params=params, headers=_headers()) as response:
                if response.status == 200:
                    try:
                        return await response.json()
                    except ValueError as e:
                        raise SearchProviderError(
                            "Semantic Scholar returned an invalid JSON body",
                            provider=PROVIDER,
                            status=response.status,
                            cause=e,
                        )
                if response.status == 429:
                    raise RateLimitError(PROVIDER, "Semantic Scholar rate limit exceeded")
                text = await response.text()
                raise SearchProviderError(
                    f"Semantic Scholar API error: {response.status} {text[:200]}".strip(),
                    provider=PROVIDER,
                    status=response.status,
                )
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.warning(f"Semantic Scholar request to {endpoint} failed: {e!r}")
        raise SearchProviderError(
            f"Semantic Scholar request failed: {str(e) or type(e).__name__}",
            provider=PROVIDER,
            cause=e,
        )


async def search_papers(query: str, limit: int = 10) -> List[Paper]:
    """
    Search for papers on Semantic Scholar.

    Args:
        query: Search query string
        limit: Maximum number of results

    Returns:
        Normalized papers; records without a title are dropped
    """
    params = {"query": query, "limit": limit, "fields": PAPER_FIELDS}
    result = await _make_request("paper/search", params)

    papers = []
    for record in result.get("data") or []:
        paper = Paper.from_semantic_scholar(record)
        if paper is not None:
            papers.append(paper)

    logger.debug(f"Semantic Scholar returned {len(papers)} papers for '{query}'")
    return papers


async def get_paper(paper_id: str) -> Optional[Paper]:
    """
    Get detailed information for a specific paper.

    Args:
        paper_id: Semantic Scholar paper ID (DOI:, arXiv: and CorpusId: prefixes also work)

    Returns:
        The normalized paper, or None if the record has no title
    """
    result = await _make_request(
        f"paper/{quote(paper_id, safe=':')}",
        {"fields": PAPER_FIELDS},
    )
    return Paper.from_semantic_scholar(result)
