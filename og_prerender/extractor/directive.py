"""Directive extractor — finds and strips the og:image options embedded in rendered pages."""

from __future__ import annotations

import json
import logging
import re
from typing import Optional

from pydantic import ValidationError

from og_prerender.models.options import ImageOptions
from og_prerender.url_utils import has_file_extension

logger = logging.getLogger(__name__)

DIRECTIVE_ID = "og-prerender-options"
INTERNAL_ROUTE_PREFIX = "/__og_image__"

_DIRECTIVE_RE = re.compile(
    r'<script[^>]*\bid=["\']' + re.escape(DIRECTIVE_ID) + r'["\'][^>]*>(.*?)</script>',
    re.DOTALL | re.IGNORECASE,
)


class DirectiveParseError(ValueError):
    """The embedded options payload of a page could not be parsed."""


def should_scan(route: str) -> bool:
    """Whether a rendered route is a document the extractor should look at.

    Static assets (anything with a file extension) and the generator's own
    capture route are skipped.
    """
    path = route.split("?", 1)[0]
    if path.startswith(INTERNAL_ROUTE_PREFIX) or "/__og_image__/" in path:
        return False
    return not has_file_extension(path)


def extract_directive(html: Optional[str]) -> tuple[Optional[ImageOptions], Optional[str]]:
    """Parse the first embedded directive and strip all markers from the markup.

    Returns ``(None, html)`` untouched when the markup is empty or has no
    marker. Raises DirectiveParseError on a malformed payload.
    """
    if not html:
        return None, html

    match = _DIRECTIVE_RE.search(html)
    if not match:
        return None, html

    payload = match.group(1).strip()
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise DirectiveParseError(f"Invalid og:image options JSON: {e}") from e
    if not isinstance(data, dict):
        raise DirectiveParseError(
            f"og:image options must be a JSON object, got {type(data).__name__}"
        )
    try:
        options = ImageOptions.model_validate(data)
    except ValidationError as e:
        raise DirectiveParseError(f"Invalid og:image options: {e}") from e

    return options, strip_directive(html)


def strip_directive(html: str) -> str:
    return _DIRECTIVE_RE.sub("", html)


def embed_directive(html: str, options: ImageOptions) -> str:
    """Insert a directive marker before ``</head>``, or append it."""
    payload = json.dumps(options.defined()).replace("</", "<\\/")
    tag = f'<script id="{DIRECTIVE_ID}" type="application/json">{payload}</script>'
    html = strip_directive(html)
    idx = html.lower().find("</head>")
    if idx == -1:
        return html + tag
    return html[:idx] + tag + html[idx:]
