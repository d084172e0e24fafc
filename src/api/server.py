"""HTTP API for the literature review agent.

Endpoints:

* **GET /health** - Liveness check with the configured model name.

* **POST /api/review** - Body ``{"topic": str}``. Streams the review run
  as server-sent events (``event: <type>\\ndata: <json>\\n\\n``). A stream
  that closes without a ``complete`` event is an incomplete run. Client
  disconnects cancel the run.

* **POST /api/review/analyze-citations** - Body ``{"text": str,
  "filename": str?}``. Returns citation annotations for already-extracted
  paper text.
"""

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ValidationError

from agents.citation_agent import PARSE_FAILURE_MESSAGE, analyze_citations
from agents.errors import InvalidInputError, LLMError
from agents.review import stream_literature_review
from agents.state import CancellationToken
from models.events import AgentEvent
from utils.config import Config

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}
DISCONNECT_POLL_SECONDS = 0.5


class ReviewRequest(BaseModel):
    topic: str


class CitationAnalysisRequest(BaseModel):
    text: str
    filename: Optional[str] = None


app = FastAPI(title="Literature Review Agent", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def _read_json(request: Request) -> Optional[Dict[str, Any]]:
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


async def _watch_disconnect(request: Request, cancel_token: CancellationToken) -> None:
    """Relay a client disconnect to the run's cancellation token."""
    while not cancel_token.cancelled:
        if await request.is_disconnected():
            logger.info("Client disconnected, cancelling review")
            cancel_token.cancel()
            return
        try:
            await asyncio.wait_for(cancel_token.wait(), DISCONNECT_POLL_SECONDS)
        except asyncio.TimeoutError:
            pass


async def review_event_stream(
    topic: str,
    cancel_token: CancellationToken,
    request: Optional[Request] = None,
    **review_kwargs,
) -> AsyncIterator[str]:
    """SSE body for one review run."""
    watcher = None
    if request is not None:
        watcher = asyncio.create_task(_watch_disconnect(request, cancel_token))

    events = stream_literature_review(topic, cancel_token, **review_kwargs)
    try:
        async for event in events:
            yield event.to_sse()
    except Exception as e:
        logger.exception("Review stream failed")
        yield AgentEvent.error(str(e) or "An unexpected error occurred").to_sse()
    finally:
        await events.aclose()
        if watcher is not None:
            watcher.cancel()


@app.get("/health")
async def health_check() -> Dict[str, Any]:
    return {"status": "ok", "model": Config.LITELLM_MODEL}


@app.post("/api/review")
async def review(request: Request):
    body = await _read_json(request)
    if body is None:
        return _error("Invalid request body", 400)

    try:
        payload = ReviewRequest(**body)
    except ValidationError:
        return _error("Topic is required", 400)

    topic = payload.topic.strip()
    if not topic:
        return _error("Topic is required", 400)

    logger.info(f"Review requested: '{topic}'")
    return StreamingResponse(
        review_event_stream(topic, CancellationToken(), request),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@app.post("/api/review/analyze-citations")
async def analyze_paper_citations(request: Request):
    body = await _read_json(request)
    if body is None:
        return _error("Invalid request body", 400)

    try:
        payload = CitationAnalysisRequest(**body)
    except ValidationError:
        return _error("text is required", 400)

    try:
        analysis = await analyze_citations(payload.text, filename=payload.filename)
    except InvalidInputError as e:
        return _error(e.message, 422)
    except LLMError as e:
        logger.error(f"Citation analysis failed: {e}")
        if e.message == PARSE_FAILURE_MESSAGE:
            return _error(e.message, 500)
        return _error("Failed to analyze the paper", 500)

    return analysis.to_dict()


def main() -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    from utils.logging_setup import setup_logging

    setup_logging()
    uvicorn.run(app, host=Config.HOST, port=Config.PORT)


if __name__ == "__main__":
    main()
