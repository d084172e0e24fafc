"""Aggregators for searching providers and collecting their results."""

from aggregators.paper_collection import CollectedPaperSet
from aggregators.search_adapter import (
    MAX_SEARCH_LIMIT,
    SearchProviderAdapter,
    clamp_limit,
)

__all__ = [
    "CollectedPaperSet",
    "MAX_SEARCH_LIMIT",
    "SearchProviderAdapter",
    "clamp_limit",
]
