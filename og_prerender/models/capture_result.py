"""Per-job capture outcomes produced by the capture worker."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class CaptureResult(BaseModel):
    path: str
    output_path: str  # relative to the public dir
    elapsed_ms: int = 0
    success: bool = True
    error: Optional[str] = None
