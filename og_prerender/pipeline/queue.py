"""Capture queue — ordered, append-only, drained once per run."""

from __future__ import annotations

import logging

from og_prerender.models.options import EffectiveOptions, QueueEntry

logger = logging.getLogger(__name__)


class CaptureQueue:
    """Pages waiting for a screenshot, in render order.

    Filled one page at a time by the render pass and emptied in one go by
    ``drain_all``. Not safe for concurrent producers.
    """

    def __init__(self) -> None:
        self._entries: list[QueueEntry] = []

    def enqueue(self, options: EffectiveOptions) -> QueueEntry:
        entry = QueueEntry(order=len(self._entries), options=options)
        self._entries.append(entry)
        logger.debug("Queued og:image capture #%d for %s", entry.order, options.path)
        return entry

    def drain_all(self) -> list[QueueEntry]:
        entries, self._entries = self._entries, []
        return entries

    @property
    def pending(self) -> tuple[QueueEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)
