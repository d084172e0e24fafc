"""Citation Agent: peer-review style annotations for a paper's text.

Text extraction from PDF/DOCX happens upstream; this agent receives the
extracted text, asks the LLM for a JSON review and normalizes the answer.
"""

import json
import logging
import math
import re
from typing import Any, List, Optional

from agents.errors import InvalidInputError, LLMError
from agents.llm import LLMClient
from agents.prompts import CITATION_REVIEW_SYSTEM_PROMPT, CITATION_REVIEW_USER_PROMPT
from models.citation_analysis import Annotation, AnnotationType, CitationAnalysis
from utils.config import Config

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 50
MAX_TEXT_LENGTH = 35000

PARSE_FAILURE_MESSAGE = "Failed to parse the analysis. Please try again."

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def extract_json_object(text: str) -> dict:
    """Parse the outermost ``{...}`` span of a model answer.

    Tolerates markdown fences or stray prose around the object.

    Raises:
        ValueError: if no JSON object can be parsed
    """
    match = _JSON_OBJECT.search(text)
    if not match:
        raise ValueError("No JSON object found")
    parsed = json.loads(match.group(0))
    if not isinstance(parsed, dict):
        raise ValueError("Expected a JSON object")
    return parsed


def _clamp_score(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return max(0, min(100, round(value)))


def _parse_annotations(raw: Any) -> List[Annotation]:
    if not isinstance(raw, list):
        return []
    annotations = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        quote, comment = item.get("quote"), item.get("comment")
        if not isinstance(quote, str) or not isinstance(comment, str):
            continue
        annotations.append(Annotation(
            quote=quote,
            comment=comment,
            type=str(item.get("type") or AnnotationType.CLARITY.value),
        ))
    return annotations


def parse_citation_analysis(raw_text: str, filename: Optional[str] = None) -> CitationAnalysis:
    """Normalize the model's JSON answer into a CitationAnalysis.

    Raises:
        LLMError: if the answer contains no parseable JSON object
    """
    try:
        parsed = extract_json_object(raw_text)
    except ValueError as e:
        logger.error(f"Failed to parse citation analysis: {raw_text[:500]}")
        raise LLMError(
            PARSE_FAILURE_MESSAGE,
            cause=e,
        )

    suggestions = parsed.get("suggestions")
    if not isinstance(suggestions, list):
        suggestions = []

    return CitationAnalysis(
        annotations=_parse_annotations(parsed.get("annotations")),
        suggestions=[s for s in suggestions if isinstance(s, str)],
        ethical_score=_clamp_score(parsed.get("ethicalScore")),
        paper_filename=filename,
    )


async def analyze_citations(
    paper_text: str,
    filename: Optional[str] = None,
    llm: Optional[LLMClient] = None,
) -> CitationAnalysis:
    """Review a paper's citations and writing.

    Args:
        paper_text: Extracted full text of the paper
        filename: Original file name, echoed back in the result
        llm: LLM client (default: LLMClient() on the configured model)

    Returns:
        CitationAnalysis with annotations, suggestions and an ethical score

    Raises:
        InvalidInputError: if the text is too short to review
        LLMError: if the LLM call fails or its answer cannot be parsed
    """
    if not paper_text or len(paper_text.strip()) < MIN_TEXT_LENGTH:
        raise InvalidInputError(
            "Could not extract meaningful text from this paper. The PDF may be image-based."
        )

    llm = llm or LLMClient()
    truncated = paper_text[:MAX_TEXT_LENGTH]
    if len(paper_text) > MAX_TEXT_LENGTH:
        logger.info(f"Truncated paper text from {len(paper_text)} to {MAX_TEXT_LENGTH} chars")

    raw = await llm.complete(
        CITATION_REVIEW_SYSTEM_PROMPT,
        CITATION_REVIEW_USER_PROMPT.format(paper_text=truncated),
        max_tokens=Config.CITATION_MAX_TOKENS,
    )
    analysis = parse_citation_analysis(raw, filename=filename)
    logger.info(
        f"Citation analysis: {len(analysis.annotations)} annotations, "
        f"{len(analysis.suggestions)} suggestions, score={analysis.ethical_score}"
    )
    return analysis
