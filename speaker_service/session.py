from __future__ import annotations

import logging
from typing import Iterable

from common.schemas import SpeakerLabel, WordTimestamp

logger = logging.getLogger(__name__)


def label_sort_key(label: SpeakerLabel) -> tuple[float, float]:
    """Chronological order: start time, then end time."""
    return (label.start, label.end)


class SpeakerSession:
    """Per-stream state: accumulates word timestamps and reconciles speaker labels."""

    def __init__(self, stream_id: str = ""):
        self.stream_id = stream_id
        self._timestamps: list[WordTimestamp] = []
        self._speaker_labels: list[SpeakerLabel] = []

    def append_timestamps(self, words: Iterable[WordTimestamp]) -> None:
        """Append finalized word timestamps in arrival order."""
        self._timestamps.extend(words)

    def merge_labels(self, labels: Iterable[SpeakerLabel]) -> None:
        """Merge a batch of speaker labels into the session.

        Labels are interim until the very last one, so a new label for a span
        we already have replaces the old one (possibly with another speaker).
        The batch does not have to be in order relative to earlier ones; the
        merged list is re-sorted with a stable sort so equal spans keep their
        arrival order.
        """
        labels = list(labels)
        revised = {label.span for label in labels}
        kept = [old for old in self._speaker_labels if old.span not in revised]
        replaced = len(self._speaker_labels) - len(kept)

        kept.extend(labels)
        kept.sort(key=label_sort_key)
        self._speaker_labels = kept

        if replaced:
            logger.debug("Session %s: %d speaker labels revised", self.stream_id, replaced)

    def is_final(self) -> bool:
        return bool(self._speaker_labels) and self._speaker_labels[-1].final

    @property
    def timestamps(self) -> list[WordTimestamp]:
        return list(self._timestamps)

    @property
    def speaker_labels(self) -> list[SpeakerLabel]:
        return list(self._speaker_labels)

    @property
    def timestamp_count(self) -> int:
        return len(self._timestamps)

    @property
    def label_count(self) -> int:
        return len(self._speaker_labels)
