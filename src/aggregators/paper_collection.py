"""Deduplicating collection of the papers discovered during one review run."""

from typing import Dict, Iterator, List

from models.paper import Paper, normalize_title


class CollectedPaperSet:
    """Papers keyed by normalized title.

    The normalized title is the only deduplication key: two distinct papers
    whose titles match after trimming and lowercasing collapse into the
    first one seen. Iteration follows discovery order.
    """

    def __init__(self):
        self._papers: Dict[str, Paper] = {}

    def add(self, paper: Paper) -> bool:
        """Add a paper unless its title is empty or already present.

        Returns:
            True if the paper was new and has been stored
        """
        key = normalize_title(paper.title)
        if not key or key in self._papers:
            return False
        self._papers[key] = paper
        return True

    def __contains__(self, title: str) -> bool:
        return normalize_title(title) in self._papers

    def __len__(self) -> int:
        return len(self._papers)

    def __iter__(self) -> Iterator[Paper]:
        return iter(self._papers.values())

    def papers(self) -> List[Paper]:
        return list(self._papers.values())
