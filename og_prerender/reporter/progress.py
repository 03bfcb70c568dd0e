"""Tree-style console progress for og:image captures."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.markup import escape

from og_prerender.models.capture_result import CaptureResult

logger = logging.getLogger(__name__)

BRANCH = "├─"
LAST_BRANCH = "└─"


def format_progress_line(index: int, total: int, result: CaptureResult) -> str:
    glyph = LAST_BRANCH if index == total - 1 else BRANCH
    # half-up, so 1 of 8 reads 13%
    percent = int((index + 1) / total * 100 + 0.5) if total else 100
    return f"  {glyph} {result.output_path} ({result.elapsed_ms}ms) {percent}%"


class CaptureProgress:
    """Prints one line per finished capture, in queue order."""

    def __init__(self, total: int, console: Console | None = None):
        self.total = total
        self.console = console or Console()
        self.reported = 0

    def start(self) -> None:
        logger.info("Pre-rendering %d og:image screenshots...", self.total)

    def report(self, index: int, result: CaptureResult) -> None:
        style = "gray50" if result.success else "red"
        line = escape(format_progress_line(index, self.total, result))
        self.console.print(f"[{style}]{line}[/{style}]", highlight=False)
        self.reported += 1

    def summary(self, results: list[CaptureResult]) -> None:
        failed = sum(1 for r in results if not r.success)
        if failed:
            self.console.print(
                f"[red]{failed} of {len(results)} og:image screenshots failed[/red]"
            )
        else:
            self.console.print(
                f"[green]Generated {len(results)} og:image screenshots[/green]"
            )
