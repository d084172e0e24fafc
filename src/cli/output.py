"""Console reporting for CLI commands.

Everything shown to the user is also written to a named logger, so the
log file holds the same progress trail as the terminal. Streamed review
text is the exception: it goes to stdout only.
"""

import logging
import sys
from typing import Any, Dict, Iterable, Optional


class ConsoleReporter:
    """Prints CLI progress and mirrors it to logging.

    Usage:
        from cli.output import get_reporter
        report = get_reporter("litreview.review")
        report.banner("Literature Review")
        report.progress("Searching arXiv...")
        report.done("Review complete")
    """

    RULE_WIDTH = 60

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _show(self, text: str, level: int = logging.INFO, log_text: Optional[str] = None) -> None:
        print(text)
        self.logger.log(level, log_text if log_text is not None else text)

    def line(self, text: str) -> None:
        self._show(text)

    def progress(self, text: str) -> None:
        self._show(f"… {text}", log_text=text)

    def thought(self, text: str) -> None:
        self._show(f"💭 {text}", logging.DEBUG, log_text=f"model: {text}")

    def done(self, text: str) -> None:
        self._show(f"✓ {text}", log_text=f"[done] {text}")

    def warn(self, text: str) -> None:
        self._show(f"⚠ {text}", logging.WARNING, log_text=text)

    def fail(self, text: str) -> None:
        self._show(f"❌ {text}", logging.ERROR, log_text=text)

    def banner(self, title: str) -> None:
        rule = "=" * self.RULE_WIDTH
        print(f"\n{rule}\n  {title}\n{rule}\n")
        self.logger.info(f"--- {title} ---")

    def item(self, text: str) -> None:
        self._show(f"   - {text}", log_text=f"item: {text}")

    def listing(self, entries: Iterable[str]) -> None:
        for n, entry in enumerate(entries, 1):
            self._show(f"   {n}. {entry}", log_text=f"#{n} {entry}")

    def summary(self, fields: Dict[str, Any]) -> None:
        for label, value in fields.items():
            self._show(f"   {label}: {value}", log_text=f"{label}={value}")

    def stream(self, text: str) -> None:
        """Write a review fragment as-is, without a trailing newline."""
        sys.stdout.write(text)
        sys.stdout.flush()


_reporters: Dict[str, ConsoleReporter] = {}


def get_reporter(name: str = "litreview") -> ConsoleReporter:
    """Return the reporter bound to logger ``name``, creating it once."""
    if name not in _reporters:
        _reporters[name] = ConsoleReporter(logging.getLogger(name))
    return _reporters[name]
