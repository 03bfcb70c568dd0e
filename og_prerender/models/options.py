"""Image option fragments, effective options and queue entries."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

BROWSER_PROVIDER = "browser"
SATORI_PROVIDER = "satori"


class ImageOptions(BaseModel):
    """A partial og:image configuration.

    Used for the directive embedded in a page, for route rule overrides and
    for the site-wide defaults. Only explicitly set fields take part in an
    overlay, so an unset field never clobbers a value from a lower layer.
    Unknown keys are kept as free-form visual parameters for the component.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    component: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    provider: Optional[str] = None
    static: Optional[bool] = None
    alt: Optional[str] = None

    # Capture parameters
    selector: Optional[str] = None
    mask: Optional[str] = None
    delay: Optional[int] = None  # ms
    color_scheme: Optional[Literal["light", "dark"]] = Field(default=None, alias="colorScheme")
    timeout: Optional[int] = None  # ms

    def defined(self) -> dict[str, Any]:
        """Fields explicitly set on this fragment, extras included."""
        data = self.model_dump(exclude_unset=True)
        data.update(self.model_extra or {})
        return data

    def is_empty(self) -> bool:
        return not self.defined()


class RenderContext(BaseModel):
    """A rendered page as handed over by the render pass."""

    route: str
    file_name: str  # relative to the public dir, e.g. "blog/index.html"
    contents: Optional[str] = None


class EffectiveOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    component: Optional[str] = None
    width: int = 1200
    height: int = 630
    provider: str = SATORI_PROVIDER
    static: bool = False
    alt: Optional[str] = None
    selector: Optional[str] = None
    mask: Optional[str] = None
    delay: Optional[int] = None
    color_scheme: Optional[Literal["light", "dark"]] = None
    timeout: Optional[int] = None
    extra: dict[str, Any] = Field(default_factory=dict)
    render_context: RenderContext

    def capture_options(self) -> ImageOptions:
        """The page's own settings as a fragment, for overlaying on defaults."""
        data = self.model_dump(
            exclude={"path", "extra", "render_context"}, exclude_none=True,
        )
        data.update(self.extra)
        return ImageOptions.model_validate(data)


class QueueEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    order: int
    options: EffectiveOptions
