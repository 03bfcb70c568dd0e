"""Browser session manager — one headless Chromium for the whole capture batch."""

from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright

from og_prerender.models.config import DEFAULT_LAUNCH_ARGS
from og_prerender.models.options import ImageOptions

logger = logging.getLogger(__name__)


async def launch_browser(
    playwright: Playwright,
    headless: bool = True,
    args: Optional[list[str]] = None,
) -> Browser:
    """Launch Chromium with flags suited to deterministic screenshots."""
    return await playwright.chromium.launch(
        headless=headless,
        args=args if args is not None else DEFAULT_LAUNCH_ARGS,
    )


async def create_capture_context(browser: Browser, options: ImageOptions) -> BrowserContext:
    """Open an isolated context sized to the image being captured."""
    context_kwargs: dict = {
        "viewport": {
            "width": options.width or 1200,
            "height": options.height or 630,
        },
        "device_scale_factor": 1,
    }
    if options.color_scheme:
        context_kwargs["color_scheme"] = options.color_scheme
    return await browser.new_context(**context_kwargs)


class BrowserSession:
    """Async context manager yielding a launched Browser, or None if launch failed.

    The browser and the Playwright driver are shut down exactly once when the
    block exits, whether it finished normally or raised.
    """

    def __init__(self, headless: bool = True, launch_args: Optional[list[str]] = None):
        self.headless = headless
        self.launch_args = launch_args
        self.browser: Browser | None = None
        self._playwright_cm = None
        self._playwright: Playwright | None = None
        self._closed = False

    async def __aenter__(self) -> Browser | None:
        try:
            self._playwright_cm = async_playwright()
            self._playwright = await self._playwright_cm.__aenter__()
            logger.debug("Launching Chromium for og:image capture...")
            self.browser = await launch_browser(
                self._playwright, headless=self.headless, args=self.launch_args,
            )
        except Exception as e:
            logger.error("Failed to launch browser: %s", e)
            await self.close()
            return None
        return self.browser

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        browser, self.browser = self.browser, None
        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                logger.warning("Error closing browser: %s", e)
        playwright_cm, self._playwright_cm = self._playwright_cm, None
        if playwright_cm is not None and self._playwright is not None:
            self._playwright = None
            await playwright_cm.__aexit__(None, None, None)
