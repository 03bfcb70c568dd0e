"""Pipeline driver — render pass, capture queue and the capture stage."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Iterable, Optional

from rich.console import Console

from og_prerender.capture.screenshot import CaptureFn, screenshot
from og_prerender.capture.worker import CaptureWorker
from og_prerender.extractor.directive import (
    DirectiveParseError,
    extract_directive,
    should_scan,
)
from og_prerender.models.capture_result import CaptureResult
from og_prerender.models.config import GeneratorConfig
from og_prerender.models.options import (
    BROWSER_PROVIDER,
    EffectiveOptions,
    QueueEntry,
    RenderContext,
)
from og_prerender.pipeline.merger import is_capture_candidate, merge_options
from og_prerender.pipeline.queue import CaptureQueue
from og_prerender.reporter.json_report import generate_json_manifest
from og_prerender.rules.route_rules import RouteRules
from og_prerender.url_utils import IMAGE_DIR, route_for_file

logger = logging.getLogger(__name__)

# Terminal build events; whichever fires first triggers the captures.
BUILD_EVENTS = ("bundled", "closed")
HTML_GLOB = "*.html"


def discover_pages(public_dir: Path) -> list[RenderContext]:
    """Enumerate the rendered documents under ``public_dir`` in path order.

    ``blog/index.html`` is served as ``/blog`` and ``about.html`` as ``/about``.
    Anything inside a generated image directory is ignored.
    """
    pages = []
    for path in sorted(public_dir.rglob(HTML_GLOB)):
        rel = path.relative_to(public_dir).as_posix()
        if IMAGE_DIR in rel.split("/"):
            continue
        pages.append(RenderContext(
            route=route_for_file(rel),
            file_name=rel,
            contents=path.read_text(encoding="utf-8"),
        ))
    return pages


class Orchestrator:
    """Owns the capture queue and route rules for one generation run.

    The render pass feeds ``process_page`` one page at a time; once it is
    complete a build event drains the queue through the capture worker.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        public_dir: str | Path | None = None,
        full_prerender: Optional[bool] = None,
        capture: CaptureFn = screenshot,
        console: Console | None = None,
        worker: CaptureWorker | None = None,
    ):
        self.config = config
        self.public_dir = Path(public_dir or config.public_dir)
        self.full_prerender = config.full_prerender if full_prerender is None else full_prerender
        self.route_rules = RouteRules(config.route_rules)
        self.queue = CaptureQueue()
        self.worker = worker or CaptureWorker(
            config, self.public_dir, capture=capture, console=console,
        )
        self.results: list[CaptureResult] = []

    # ------------------------------------------------------------------
    # Render pass
    # ------------------------------------------------------------------

    def process_page(self, context: RenderContext) -> EffectiveOptions | None:
        """Extract, resolve and merge the og:image options of one rendered page.

        The stripped markup is written back to ``context.contents``. Returns
        the effective options when the page is eligible, queued or not.
        Raises DirectiveParseError on a malformed directive.
        """
        if not should_scan(context.route):
            return None
        # No markup yet means the route isn't known to render.
        if not context.contents:
            return None

        directive, stripped = extract_directive(context.contents)
        context.contents = stripped

        resolution = self.route_rules.resolve(context.route)
        options = merge_options(context, directive, resolution, self.config.defaults)
        if options is None:
            return None

        if options.provider == BROWSER_PROVIDER and not self.config.browser_provider:
            logger.debug("Browser provider disabled, not capturing %s", context.route)
        elif is_capture_candidate(options, self.full_prerender):
            self.queue.enqueue(options)
        return options

    def render_pass(self, pages: Iterable[RenderContext], write_back: bool = True) -> int:
        """Run every page through ``process_page``; returns the pages processed.

        A malformed directive fails only its own page.
        """
        processed = 0
        for context in pages:
            original = context.contents
            try:
                self.process_page(context)
            except DirectiveParseError as e:
                logger.error("Skipping og:image for %s: %s", context.route, e)
                continue
            processed += 1
            if write_back and context.contents != original:
                path = self.public_dir / context.file_name
                path.write_text(context.contents or "", encoding="utf-8")
                logger.debug("Stripped og:image options from %s", path)
        return processed

    # ------------------------------------------------------------------
    # Capture stage
    # ------------------------------------------------------------------

    async def capture_all(self) -> list[CaptureResult]:
        """Drain the queue through the capture worker. No-op when empty."""
        entries: list[QueueEntry] = self.queue.drain_all()
        if not entries:
            return []
        results = await self.worker.run(entries)
        self.results.extend(results)
        return results

    async def on_build_event(self, event: str) -> list[CaptureResult]:
        if event not in BUILD_EVENTS:
            raise ValueError(f"Unknown build event: {event!r}")
        logger.debug("Build event %s", event)
        return await self.capture_all()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run(self) -> dict:
        """Render pass over the public dir followed by the capture stage."""
        return asyncio.run(self._run())

    async def _run(self) -> dict:
        start = time.time()
        if not self.public_dir.is_dir():
            raise FileNotFoundError(f"Public dir not found: {self.public_dir}")

        logger.info("--- Scanning rendered pages in %s ---", self.public_dir)
        pages = discover_pages(self.public_dir)
        processed = self.render_pass(pages)
        queued = len(self.queue)
        logger.info("--- Scanned %d pages, %d og:image screenshots queued ---",
                    processed, queued)

        for event in BUILD_EVENTS:
            await self.on_build_event(event)

        if self.config.manifest_path:
            manifest = Path(self.config.manifest_path)
            generate_json_manifest(self.results, manifest, host=self.config.host)
            logger.info("Manifest: %s", manifest)

        duration = time.time() - start
        return {
            "pages": len(pages),
            "processed": processed,
            "queued": queued,
            "succeeded": sum(1 for r in self.results if r.success),
            "failed": sum(1 for r in self.results if not r.success),
            "duration": round(duration, 2),
            "results": self.results,
        }

    def plan(self) -> list[QueueEntry]:
        """Dry run: the captures a run would perform, without touching files."""
        self.render_pass(discover_pages(self.public_dir), write_back=False)
        return self.queue.drain_all()
