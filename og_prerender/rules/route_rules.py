"""Route rules — path-pattern scoped og:image overrides and suppression.

Patterns use radix-router style segments:

- ``/about``        literal path
- ``/blog/*``       exactly one segment after ``/blog``
- ``/blog/**``      ``/blog`` itself and everything below it

Several rules may match a path. ``match_all`` orders them most specific
first; ``resolve`` applies them general-to-specific so the most specific
rule decides. A ``false`` suppresses the page unless a more specific
options object matches too. ``**`` is only allowed as the last segment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Union

from og_prerender.models.options import ImageOptions
from og_prerender.pipeline.merger import overlay_options
from og_prerender.url_utils import split_segments

logger = logging.getLogger(__name__)

RuleValue = Union[bool, ImageOptions, dict]


@dataclass(frozen=True)
class RouteRule:
    pattern: str
    value: Union[bool, ImageOptions]  # False suppresses
    index: int = 0  # declaration order

    @property
    def segments(self) -> list[str]:
        return split_segments(self.pattern)

    @property
    def suppresses(self) -> bool:
        return self.value is False

    def matches(self, path: str) -> bool:
        return _match_segments(self.segments, split_segments(path))

    def specificity(self) -> tuple[int, int, int]:
        segs = self.segments
        literal = sum(1 for s in segs if s not in ("*", "**"))
        has_globstar = any(s == "**" for s in segs)
        return (literal, 0 if has_globstar else 1, len(segs))


@dataclass(frozen=True)
class RuleResolution:
    suppressed: bool = False
    override: ImageOptions = field(default_factory=ImageOptions)
    matched: tuple[str, ...] = ()


def validate_pattern(pattern: str) -> str:
    """Reject patterns the matcher cannot honour; returns the pattern unchanged."""
    if not pattern.startswith("/"):
        raise ValueError(f"Route rule pattern {pattern!r} must start with '/'")
    segments = split_segments(pattern)
    if "**" in segments[:-1]:
        raise ValueError(f"Route rule pattern {pattern!r} may only use '**' as its last segment")
    return pattern


def _match_segments(pattern: list[str], path: list[str]) -> bool:
    if not pattern:
        return not path
    head = pattern[0]
    if head == "**":
        return True
    if not path:
        return False
    if head == "*" or head == path[0]:
        return _match_segments(pattern[1:], path[1:])
    return False


class RouteRules:
    """Immutable set of route rules with most-specific-first matching."""

    def __init__(self, rules: Mapping[str, RuleValue] | None = None):
        parsed: list[RouteRule] = []
        for i, (pattern, value) in enumerate((rules or {}).items()):
            validate_pattern(pattern)
            if value is True:
                raise ValueError(f"Route rule {pattern!r} must be false or an options object")
            if isinstance(value, dict):
                value = ImageOptions.model_validate(value)
            parsed.append(RouteRule(pattern=pattern, value=value, index=i))
        self._rules: tuple[RouteRule, ...] = tuple(parsed)

    def __len__(self) -> int:
        return len(self._rules)

    @property
    def rules(self) -> tuple[RouteRule, ...]:
        return self._rules

    def match_all(self, path: str) -> list[RouteRule]:
        """All rules matching ``path``, most specific first."""
        matched = [r for r in self._rules if r.matches(path)]
        # Stable sort: among equally specific rules, declaration order is kept.
        return sorted(matched, key=lambda r: r.specificity(), reverse=True)

    def resolve(self, path: str) -> RuleResolution:
        matched = self.match_all(path)
        if not matched:
            return RuleResolution()

        names = tuple(r.pattern for r in matched)
        # General to specific: ``false`` discards what came before it, and a
        # more specific options object lifts the suppression again.
        suppressed = False
        layers: list[ImageOptions] = []
        for rule in reversed(matched):
            if rule.suppresses:
                suppressed = True
                layers = []
            else:
                suppressed = False
                layers.append(rule.value)

        if suppressed:
            logger.debug("og:image suppressed for %s by route rules %s", path, names)
            return RuleResolution(suppressed=True, matched=names)

        override = overlay_options(*layers)
        logger.debug("Route rules %s resolved for %s: %s", names, path, override.defined())
        return RuleResolution(override=override, matched=names)
