"""JSON manifest of a capture run."""

from __future__ import annotations

import json
from pathlib import Path

from og_prerender.models.capture_result import CaptureResult
from og_prerender.url_utils import join_url


def generate_json_manifest(
    results: list[CaptureResult], output_path: Path, host: str = "",
) -> None:
    """Write a machine-readable list of the generated images.

    With a site ``host`` each image also gets the absolute ``url`` it will be
    published under, ready to drop into an ``og:image`` meta tag.
    """
    images = []
    for r in results:
        image = r.model_dump()
        if host:
            image["url"] = join_url(host, "/" + r.output_path)
        images.append(image)

    manifest = {
        "total": len(results),
        "succeeded": sum(1 for r in results if r.success),
        "failed": sum(1 for r in results if not r.success),
        "images": images,
    }

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(manifest, f, indent=2, default=str)
