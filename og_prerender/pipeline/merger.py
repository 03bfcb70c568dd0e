"""Options merger — combines defaults, page directive and route override."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from og_prerender.models.options import (
    BROWSER_PROVIDER,
    EffectiveOptions,
    ImageOptions,
    RenderContext,
)

if TYPE_CHECKING:
    from og_prerender.rules.route_rules import RuleResolution


def overlay_options(*layers: Optional[ImageOptions]) -> ImageOptions:
    """Overlay option fragments field by field; later layers win.

    Only fields a layer explicitly sets are applied, so ``ImageOptions()``
    is a neutral element and ``width=None`` given explicitly does clear a
    lower layer's value.
    """
    merged: dict = {}
    for layer in layers:
        if layer is None:
            continue
        merged.update(layer.defined())
    return ImageOptions.model_validate(merged)


def merge_options(
    render_context: RenderContext,
    directive: Optional[ImageOptions],
    resolution: "RuleResolution",
    defaults: Optional[ImageOptions] = None,
) -> Optional[EffectiveOptions]:
    """Build the effective options for one page, or None if it is not eligible.

    Precedence, highest first: route rule suppression, route rule override,
    page directive, site defaults.
    """
    if resolution.suppressed:
        return None
    if directive is None and resolution.override.is_empty():
        return None

    merged = overlay_options(defaults, directive, resolution.override).defined()

    known = set(EffectiveOptions.model_fields) - {"path", "extra", "render_context"}
    fields = {k: v for k, v in merged.items() if k in known and v is not None}
    extra = {k: v for k, v in merged.items() if k not in known}
    return EffectiveOptions(
        path=render_context.route,
        render_context=render_context,
        extra=extra,
        **fields,
    )


def is_capture_candidate(options: EffectiveOptions, full_prerender: bool) -> bool:
    """Only browser-provider pages are captured, and only when generating
    everything or when the page is marked static."""
    return options.provider == BROWSER_PROVIDER and (full_prerender or options.static)
