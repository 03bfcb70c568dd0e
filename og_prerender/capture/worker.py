"""Capture worker — screenshots queued pages against a live preview server."""

from __future__ import annotations

import logging
import time
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from rich.console import Console

from og_prerender.capture.browser import BrowserSession
from og_prerender.capture.screenshot import CaptureFn, screenshot
from og_prerender.capture.server import PreviewServer, ServerStartError
from og_prerender.models.capture_result import CaptureResult
from og_prerender.models.config import GeneratorConfig
from og_prerender.models.options import QueueEntry
from og_prerender.pipeline.merger import overlay_options
from og_prerender.reporter.progress import CaptureProgress
from og_prerender.url_utils import join_url, output_path_for

logger = logging.getLogger(__name__)


class WorkerState(str, Enum):
    IDLE = "idle"
    SERVER_STARTING = "server_starting"
    BROWSER_STARTING = "browser_starting"
    DRAINING = "draining"
    DONE = "done"


class CaptureWorker:
    """Drains queue entries one at a time with a single server and browser.

    Setup failures (server never ready, browser not launched) abort the
    batch; failures of a single capture are logged, recorded and skipped.
    Server and browser are released on every exit path.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        public_dir: Path,
        capture: CaptureFn = screenshot,
        console: Console | None = None,
        server_factory: Optional[Callable[[], PreviewServer]] = None,
        session_factory: Optional[Callable[[], BrowserSession]] = None,
    ):
        self.config = config
        self.public_dir = Path(public_dir)
        self.capture = capture
        self.console = console
        self.server_factory = server_factory or self._default_server
        self.session_factory = session_factory or self._default_session
        self.state = WorkerState.IDLE

    def _default_server(self) -> PreviewServer:
        server_cfg = self.config.server
        return PreviewServer(
            self.public_dir,
            command=server_cfg.command or None,
            ready_pattern=server_cfg.ready_pattern,
            ready_timeout=server_cfg.ready_timeout_seconds,
            shutdown_grace=server_cfg.shutdown_grace_seconds,
        )

    def _default_session(self) -> BrowserSession:
        return BrowserSession(
            headless=self.config.browser.headless,
            launch_args=self.config.browser.launch_args,
        )

    async def run(self, entries: list[QueueEntry]) -> list[CaptureResult]:
        if not entries:
            self.state = WorkerState.DONE
            return []

        results: list[CaptureResult] = []
        try:
            self.state = WorkerState.SERVER_STARTING
            async with self.server_factory() as server:
                self.state = WorkerState.BROWSER_STARTING
                async with self.session_factory() as browser:
                    if browser is None:
                        logger.error(
                            "Failed to create a browser to create og:images, "
                            "skipping %d screenshots", len(entries),
                        )
                        return results
                    self.state = WorkerState.DRAINING
                    results = await self._drain(browser, server.origin or "", entries)
        except ServerStartError as e:
            logger.error("Preview server failed to start, skipping %d screenshots: %s",
                         len(entries), e)
        finally:
            self.state = WorkerState.DONE
        return results

    async def _drain(self, browser, origin: str, entries: list[QueueEntry]) -> list[CaptureResult]:
        progress = CaptureProgress(len(entries), console=self.console)
        progress.start()
        results: list[CaptureResult] = []
        for index, entry in enumerate(entries):
            result = await self._capture_one(browser, origin, entry)
            results.append(result)
            progress.report(index, result)
        progress.summary(results)
        return results

    async def _capture_one(self, browser, origin: str, entry: QueueEntry) -> CaptureResult:
        options = entry.options
        relative = output_path_for(options.render_context.file_name)
        target = self.public_dir / relative
        start = time.monotonic()
        error: str | None = None
        try:
            capture_options = overlay_options(self.config.defaults, options.capture_options())
            image = await self.capture(browser, join_url(origin, options.path), capture_options)
            self._ensure_dir(target.parent)
            target.write_bytes(image)
        except Exception as e:
            logger.error("og:image capture failed for %s: %s", options.path, e)
            logger.debug("Capture failure details", exc_info=True)
            error = str(e) or type(e).__name__
        elapsed_ms = int((time.monotonic() - start) * 1000)
        return CaptureResult(
            path=options.path,
            output_path=relative,
            elapsed_ms=elapsed_ms,
            success=error is None,
            error=error,
        )

    def _ensure_dir(self, directory: Path) -> None:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            if self.config.strict_output_dirs:
                raise
            # Lenient mode: the write below reports the real problem, if any.
            logger.debug("Could not create %s: %s", directory, e)
