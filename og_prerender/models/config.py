"""Configuration models for the og:image generator."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator

from og_prerender.models.options import SATORI_PROVIDER, ImageOptions
from og_prerender.rules.route_rules import validate_pattern

DEFAULT_READY_PATTERN = r"Serving HTTP on .*\((?P<origin>https?://[^)\s]+?)/?\)"
DEFAULT_LAUNCH_ARGS = ["--disable-gpu", "--hide-scrollbars"]


def _default_defaults() -> ImageOptions:
    return ImageOptions(
        component="OgImageBasic",
        width=1200,
        height=630,
        provider=SATORI_PROVIDER,
    )


class ServerConfig(BaseModel):
    # Empty command means "python -m http.server" over the public dir.
    # "{public_dir}" in any argument is substituted.
    command: list[str] = Field(default_factory=list)
    ready_pattern: str = DEFAULT_READY_PATTERN
    ready_timeout_seconds: Optional[float] = 30.0
    shutdown_grace_seconds: float = 5.0

    @field_validator("ready_pattern")
    @classmethod
    def check_ready_pattern(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid ready pattern {v!r}: {e}") from e
        return v


class BrowserConfig(BaseModel):
    headless: bool = True
    launch_args: list[str] = Field(default_factory=lambda: list(DEFAULT_LAUNCH_ARGS))


class GeneratorConfig(BaseModel):
    # Build output
    public_dir: str = ".output/public"
    # Public site origin; gives manifest entries an absolute image URL
    host: str = ""

    # Generation mode: capture every browser-provider page, not only static ones
    full_prerender: bool = False
    browser_provider: bool = True

    # Option layers
    defaults: ImageOptions = Field(default_factory=_default_defaults)
    route_rules: dict[str, Union[bool, ImageOptions]] = Field(default_factory=dict)

    # Capture infrastructure
    server: ServerConfig = Field(default_factory=ServerConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)

    # Output
    strict_output_dirs: bool = True
    manifest_path: Optional[str] = None

    @field_validator("route_rules", mode="before")
    @classmethod
    def check_route_rules(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return v
        for pattern, rule in v.items():
            validate_pattern(str(pattern))
            if rule is True:
                raise ValueError(
                    f"Route rule {pattern!r} must be false or an options object"
                )
        return v

    @classmethod
    def load(cls, path: str | Path) -> "GeneratorConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(mode="json", exclude_none=True), f, indent=2)
