"""Preview server supervisor — serves the built output while screenshots are taken."""

from __future__ import annotations

import asyncio
import logging
import re
import sys
from pathlib import Path
from typing import Optional

from og_prerender.models.config import DEFAULT_READY_PATTERN

logger = logging.getLogger(__name__)


class ServerStartError(RuntimeError):
    """The preview server exited or never reported that it was ready."""


async def wait_for_pattern(
    stream: asyncio.StreamReader,
    pattern: str | re.Pattern,
    timeout: Optional[float] = None,
) -> re.Match:
    """Read lines from ``stream`` until one matches ``pattern``.

    Raises ServerStartError if ``pattern`` does not compile, the stream
    closes first, or ``timeout`` seconds pass. ``timeout=None`` waits indefinitely.
    """
    try:
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    except re.error as e:
        raise ServerStartError(f"Invalid ready pattern {pattern!r}: {e}") from e

    async def _scan() -> re.Match:
        while True:
            raw = await stream.readline()
            if not raw:
                raise ServerStartError("Output closed before the ready line appeared")
            line = raw.decode("utf-8", errors="replace").rstrip()
            logger.debug("[preview] %s", line)
            match = regex.search(line)
            if match:
                return match

    try:
        return await asyncio.wait_for(_scan(), timeout)
    except asyncio.TimeoutError as e:
        raise ServerStartError(f"No ready line within {timeout}s") from e


def default_server_command(public_dir: Path) -> list[str]:
    return [
        sys.executable, "-u", "-m", "http.server", "0",
        "--bind", "127.0.0.1", "--directory", str(public_dir),
    ]


class PreviewServer:
    """Runs a static file server subprocess over the public dir.

    Use as an async context manager; the process is always terminated on
    exit. ``origin`` is available once ``start`` returns.
    """

    def __init__(
        self,
        public_dir: Path,
        command: list[str] | None = None,
        ready_pattern: str = DEFAULT_READY_PATTERN,
        ready_timeout: Optional[float] = 30.0,
        shutdown_grace: float = 5.0,
    ):
        self.public_dir = Path(public_dir)
        self.command = (
            [arg.replace("{public_dir}", str(self.public_dir)) for arg in command]
            if command else default_server_command(self.public_dir)
        )
        self.ready_pattern = ready_pattern
        self.ready_timeout = ready_timeout
        self.shutdown_grace = shutdown_grace
        self.origin: str | None = None
        self._process: asyncio.subprocess.Process | None = None
        self._pump: asyncio.Task | None = None

    async def __aenter__(self) -> "PreviewServer":
        try:
            await self.start()
        except BaseException:
            await self.stop()
            raise
        return self

    async def __aexit__(self, *exc) -> None:
        await self.stop()

    async def start(self) -> str:
        logger.debug("Starting preview server: %s", " ".join(self.command))
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise ServerStartError(f"Could not launch preview server: {e}") from e

        assert self._process.stdout is not None
        match = await wait_for_pattern(
            self._process.stdout, self.ready_pattern, self.ready_timeout,
        )
        origin = match.groupdict().get("origin") or match.group(0)
        self.origin = origin.strip().rstrip("/")
        logger.info("Preview server ready at %s", self.origin)

        # Keep the pipe drained so request logging never blocks the server.
        self._pump = asyncio.create_task(self._drain_output(self._process.stdout))
        return self.origin

    async def _drain_output(self, stream: asyncio.StreamReader) -> None:
        while True:
            raw = await stream.readline()
            if not raw:
                return
            logger.debug("[preview] %s", raw.decode("utf-8", errors="replace").rstrip())

    async def stop(self) -> None:
        process, self._process = self._process, None
        pump, self._pump = self._pump, None
        if process is not None and process.returncode is None:
            try:
                process.terminate()
            except ProcessLookupError:
                pass
            try:
                await asyncio.wait_for(process.wait(), self.shutdown_grace)
            except asyncio.TimeoutError:
                logger.warning("Preview server did not exit, killing it")
                process.kill()
                await process.wait()
            logger.debug("Preview server stopped")
        if pump is not None:
            pump.cancel()
            try:
                await pump
            except asyncio.CancelledError:
                pass
