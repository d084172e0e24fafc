"""Result model for the citation/writing review of an uploaded paper."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class AnnotationType(str, Enum):
    """Annotation categories the reviewer prompt asks for."""

    CITATION = "citation"
    ACCURACY = "accuracy"
    CLARITY = "clarity"
    METHODOLOGY = "methodology"
    MISSING_CITATION = "missing-citation"
    STRENGTH = "strength"


@dataclass
class Annotation:
    """A reviewer comment anchored to an exact quote from the paper."""

    quote: str
    comment: str
    type: str = AnnotationType.CLARITY.value

    def to_dict(self) -> Dict[str, str]:
        return {"quote": self.quote, "comment": self.comment, "type": self.type}


@dataclass
class CitationAnalysis:
    """Structured outcome of a citation analysis."""

    annotations: List[Annotation] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    ethical_score: Optional[int] = None
    paper_filename: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camel-case payload returned over HTTP."""
        return {
            "annotations": [a.to_dict() for a in self.annotations],
            "suggestions": list(self.suggestions),
            "ethicalScore": self.ethical_score,
            "paperFilename": self.paper_filename,
        }
