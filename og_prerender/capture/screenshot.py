"""Default capture provider — screenshots a page with Playwright."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from playwright.async_api import Browser

from og_prerender.capture.browser import create_capture_context
from og_prerender.models.options import ImageOptions

logger = logging.getLogger(__name__)

DEFAULT_NAVIGATION_TIMEOUT_MS = 10_000

CaptureFn = Callable[[Browser, str, ImageOptions], Awaitable[bytes]]

_HIDE_MASK_SCRIPT = """
(selector) => {
    for (const el of document.querySelectorAll(selector)) {
        el.style.display = 'none';
    }
}
"""


async def screenshot(browser: Browser, url: str, options: ImageOptions) -> bytes:
    """Navigate to ``url`` in a fresh context and return PNG bytes."""
    context = await create_capture_context(browser, options)
    try:
        page = await context.new_page()
        await page.goto(
            url,
            wait_until="networkidle",
            timeout=options.timeout or DEFAULT_NAVIGATION_TIMEOUT_MS,
        )
        if options.delay:
            await page.wait_for_timeout(options.delay)
        if options.mask:
            await page.evaluate(_HIDE_MASK_SCRIPT, options.mask)
        if options.selector:
            return await page.locator(options.selector).first.screenshot(type="png")
        return await page.screenshot(type="png", full_page=False)
    finally:
        await context.close()
