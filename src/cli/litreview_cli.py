"""Command line interface for the literature review agent."""

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import List

from cli.output import get_reporter
from models.events import AgentEvent, EventType
from utils.logging_setup import setup_logging

logger = logging.getLogger(__name__)


class ReviewPrinter:
    """Renders review events on the console and keeps the streamed text."""

    def __init__(self):
        self.out = get_reporter("litreview.review")
        self.chunks: List[str] = []
        self.completed = False

    async def __call__(self, event: AgentEvent) -> None:
        if event.type is EventType.STATUS:
            self.out.progress(event.data)
        elif event.type is EventType.PAPER_FOUND:
            paper = event.data
            authors = ", ".join(paper["authors"])
            self.out.item(
                f"{paper['title']} ({paper.get('year') or 'n.d.'}) - {authors} [{paper['source']}]"
            )
        elif event.type is EventType.THINKING:
            self.out.thought(event.data)
        elif event.type is EventType.PAPERS_COUNT:
            logger.debug(f"Papers collected: {event.data}")
        elif event.type is EventType.REVIEW_START:
            self.out.banner("Literature Review")
        elif event.type is EventType.REVIEW_CHUNK:
            self.chunks.append(event.data)
            self.out.stream(event.data)
        elif event.type is EventType.COMPLETE:
            self.completed = True
            print()
            self.out.done(f"Review complete ({event.data['paperCount']} papers)")
        elif event.type is EventType.ERROR:
            self.out.fail(str(event.data))

    @property
    def review_text(self) -> str:
        return "".join(self.chunks)


async def cmd_review(args) -> int:
    """Execute review command."""
    from agents.review import run_literature_review
    from agents.state import CancellationToken

    out = get_reporter("litreview.review")
    out.banner(f"Reviewing: '{args.topic}'")

    cancel_token = CancellationToken()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_token.cancel)
    except NotImplementedError:
        # add_signal_handler is unavailable on Windows event loops
        pass

    printer = ReviewPrinter()
    result = await run_literature_review(
        args.topic.strip(),
        printer,
        cancel_token,
        max_iterations=args.max_iterations,
    )

    if printer.completed and args.output:
        output_path = Path(args.output)
        output_path.write_text(
            f"# Literature Review: {args.topic}\n\n{printer.review_text}\n",
            encoding="utf-8",
        )
        out.done(f"Review saved to: {output_path}")

    out.summary({
        "Outcome": result.outcome.value,
        "Papers": result.paper_count,
        "Search steps": result.iterations,
    })
    return 0 if printer.completed else 1


async def cmd_search(args) -> int:
    """Execute search command."""
    from agents.errors import AgentError
    from aggregators.search_adapter import SearchProviderAdapter
    from models.paper import PaperSource

    out = get_reporter("litreview.search")
    source = PaperSource(args.source)
    out.banner(f"Searching {source.display_name}: '{args.query}'")

    try:
        papers = await SearchProviderAdapter().search(source, args.query, args.limit)
    except AgentError as e:
        out.fail(f"Error: {e.message}")
        return 1

    if not papers:
        out.line("No papers found.")
        return 0

    for i, paper in enumerate(papers, 1):
        citations = f", {paper.citation_count} citations" if paper.citation_count is not None else ""
        out.line(f"{i}. {paper.title} ({paper.year or 'n.d.'}{citations})")
        out.line(f"   {', '.join(paper.authors[:3])}")
        out.line(f"   {paper.url}")
        if args.verbose and paper.abstract:
            out.line(f"   {paper.abstract[:300]}")

    if args.output:
        output_path = Path(args.output)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump([p.to_dict() for p in papers], f, indent=2, ensure_ascii=False)
        out.done(f"Results saved to: {output_path}")
    return 0


async def cmd_analyze(args) -> int:
    """Execute analyze command on an already-extracted text file."""
    from agents.citation_agent import analyze_citations
    from agents.errors import AgentError

    out = get_reporter("litreview.analyze")
    text_path = Path(args.text_file)
    if not text_path.exists():
        out.fail(f"File not found: {text_path}")
        return 1

    out.banner(f"Analyzing citations: {text_path.name}")
    try:
        analysis = await analyze_citations(
            text_path.read_text(encoding="utf-8"),
            filename=text_path.name,
        )
    except AgentError as e:
        out.fail(e.message)
        return 1

    out.summary({"Ethical score": analysis.ethical_score})
    for annotation in analysis.annotations:
        out.item(f"[{annotation.type}] \"{annotation.quote}\"")
        out.line(f"     {annotation.comment}")
    if analysis.suggestions:
        out.banner("Suggestions")
        out.listing(analysis.suggestions)

    if args.output:
        output_path = Path(args.output)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(analysis.to_dict(), f, indent=2, ensure_ascii=False)
        out.done(f"Analysis saved to: {output_path}")
    return 0


def cmd_serve(args) -> int:
    """Run the HTTP server."""
    import uvicorn

    from api.server import app

    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    from utils.config import Config

    parser = argparse.ArgumentParser(
        prog="litreview",
        description="Literature review agent - search, collect and synthesize papers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  litreview review "federated learning privacy" --output review.md
  litreview search "diffusion models" --source arxiv --limit 5
  litreview analyze paper.txt --output analysis.json
  litreview serve --port 8000
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    review_parser = subparsers.add_parser("review", help="Run a full literature review")
    review_parser.add_argument("topic", help="Research topic")
    review_parser.add_argument("--output", "-o", help="Write the review to a Markdown file")
    review_parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help=f"Search step ceiling, at most 8 (default: {Config.AGENT_MAX_ITERATIONS})",
    )

    search_parser = subparsers.add_parser("search", help="Search one provider")
    search_parser.add_argument("query", help="Search query")
    search_parser.add_argument(
        "--source", "-s",
        choices=["semantic_scholar", "arxiv"],
        default="semantic_scholar",
        help="Provider to search (default: semantic_scholar)",
    )
    search_parser.add_argument(
        "--limit", "-l",
        type=int,
        default=10,
        help="Max results, capped at 20 (default: 10)",
    )
    search_parser.add_argument("--output", "-o", help="Save results as JSON")

    analyze_parser = subparsers.add_parser(
        "analyze", help="Annotate citation issues in extracted paper text"
    )
    analyze_parser.add_argument("text_file", help="Plain-text file with the paper's content")
    analyze_parser.add_argument("--output", "-o", help="Save the analysis as JSON")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP/SSE server")
    serve_parser.add_argument("--host", default=Config.HOST)
    serve_parser.add_argument("--port", type=int, default=Config.PORT)

    return parser


async def async_main(args) -> int:
    """Async main entry point."""
    if args.command == "review":
        return await cmd_review(args)
    elif args.command == "search":
        return await cmd_search(args)
    elif args.command == "analyze":
        return await cmd_analyze(args)
    else:
        print("No command specified. Use --help for usage.")
        return 1


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(verbose=args.verbose)

    if args.command == "serve":
        return cmd_serve(args)
    return asyncio.run(async_main(args))


if __name__ == "__main__":
    sys.exit(main())
