"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Browser, BrowserContext, Page

from og_prerender.extractor.directive import embed_directive
from og_prerender.models.config import GeneratorConfig
from og_prerender.models.options import (
    EffectiveOptions,
    ImageOptions,
    QueueEntry,
    RenderContext,
)

PAGE_TEMPLATE = "<html><head><title>{title}</title></head><body><h1>{title}</h1></body></html>"


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def generator_config(tmp_path: Path) -> GeneratorConfig:
    """Create a test generator configuration."""
    return GeneratorConfig(
        public_dir=str(tmp_path / "public"),
        full_prerender=False,
        route_rules={
            "/admin/**": False,
            "/docs/**": {"component": "DocsImage"},
        },
    )


@pytest.fixture
def temp_config_file(generator_config: GeneratorConfig, tmp_path: Path) -> Path:
    """Create a temporary config file."""
    config_file = tmp_path / "og-config.json"
    generator_config.save(config_file)
    return config_file


# ============================================================================
# Rendered Site Fixtures
# ============================================================================


def render_page(title: str, directive: Optional[dict[str, Any]] = None) -> str:
    """Build page markup, optionally carrying an og:image directive."""
    html = PAGE_TEMPLATE.format(title=title)
    if directive is not None:
        html = embed_directive(html, ImageOptions.model_validate(directive))
    return html


def write_page(public_dir: Path, file_name: str, html: str) -> Path:
    path = public_dir / file_name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(html, encoding="utf-8")
    return path


@pytest.fixture
def public_dir(tmp_path: Path) -> Path:
    """A rendered site with two screenshot pages, a suppressed page and a plain page."""
    root = tmp_path / "public"
    write_page(root, "index.html",
               render_page("Home", {"provider": "browser", "static": True}))
    write_page(root, "blog/index.html",
               render_page("Blog", {"provider": "browser", "static": True, "title": "Blog"}))
    write_page(root, "admin/index.html", render_page("Admin"))
    write_page(root, "about/index.html", render_page("About"))
    return root


def make_entry(path: str = "/", order: int = 0, file_name: str | None = None,
               **fields: Any) -> QueueEntry:
    """Create a QueueEntry for a page."""
    if file_name is None:
        file_name = "index.html" if path == "/" else f"{path.strip('/')}/index.html"
    context = RenderContext(route=path, file_name=file_name, contents="<html></html>")
    fields.setdefault("provider", "browser")
    options = EffectiveOptions(path=path, render_context=context, **fields)
    return QueueEntry(order=order, options=options)


# ============================================================================
# Capture Infrastructure Fakes
# ============================================================================


class FakeServer:
    """Stands in for PreviewServer; counts starts and stops."""

    def __init__(self, origin: str = "http://127.0.0.1:4173", error: Exception | None = None):
        self.origin = origin
        self.error = error
        self.started = 0
        self.stopped = 0

    async def __aenter__(self):
        self.started += 1
        if self.error:
            self.stopped += 1
            raise self.error
        return self

    async def __aexit__(self, *exc):
        self.stopped += 1


class FakeSession:
    """Stands in for BrowserSession; yields ``browser`` (None simulates a failed launch)."""

    def __init__(self, browser: Any = None):
        self.browser = browser
        self.opened = 0
        self.closed = 0

    async def __aenter__(self):
        self.opened += 1
        return self.browser

    async def __aexit__(self, *exc):
        self.closed += 1


@pytest.fixture
def fake_server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def fake_session(mock_browser) -> FakeSession:
    return FakeSession(mock_browser)


# ============================================================================
# Playwright Mocks
# ============================================================================


@pytest.fixture
def mock_page() -> AsyncMock:
    """Create a mock Playwright page."""
    page = AsyncMock(spec=Page)
    page.url = "http://127.0.0.1:4173/"
    page.goto = AsyncMock()
    page.screenshot = AsyncMock(return_value=b"\x89PNG page")
    page.wait_for_timeout = AsyncMock()
    page.evaluate = AsyncMock()
    locator = MagicMock()
    locator.first.screenshot = AsyncMock(return_value=b"\x89PNG element")
    page.locator = MagicMock(return_value=locator)
    return page


@pytest.fixture
def mock_context(mock_page) -> AsyncMock:
    """Create a mock Playwright browser context."""
    context = AsyncMock(spec=BrowserContext)
    context.new_page = AsyncMock(return_value=mock_page)
    context.close = AsyncMock()
    return context


@pytest.fixture
def mock_browser(mock_context) -> AsyncMock:
    """Create a mock Playwright browser."""
    browser = AsyncMock(spec=Browser)
    browser.new_context = AsyncMock(return_value=mock_context)
    browser.close = AsyncMock()
    return browser
