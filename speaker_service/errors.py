"""Error events signaled by a speaker stream.

These are returned alongside results rather than raised, so a caller can
decide whether to keep feeding the stream after one of them.
"""

from __future__ import annotations

from typing import Iterable, Optional

from common.schemas import ErrorKind, ErrorMessage, SpeakerLabel, WordTimestamp


class SpeakerStreamError(Exception):
    kind: ErrorKind

    def __init__(
        self,
        message: str,
        timestamps: Iterable[WordTimestamp] = (),
        speaker_labels: Iterable[SpeakerLabel] = (),
    ):
        super().__init__(message)
        # Copies: the session keeps mutating after the error is signaled
        self.timestamps: list[WordTimestamp] = list(timestamps)
        self.speaker_labels: list[SpeakerLabel] = list(speaker_labels)

    def to_message(self, stream_id: str = "") -> ErrorMessage:
        return ErrorMessage(stream_id=stream_id, kind=self.kind, detail=str(self))


class NoTimestampsError(SpeakerStreamError):
    """Results arrived without word timestamps, so no speaker can be attached."""

    kind = ErrorKind.configuration


class MismatchError(SpeakerStreamError):
    """Word timestamps and speaker labels cannot be lined up."""

    kind = ErrorKind.mismatch

    def __init__(
        self,
        message: str,
        timestamps: Iterable[WordTimestamp] = (),
        speaker_labels: Iterable[SpeakerLabel] = (),
        speaker_label: Optional[SpeakerLabel] = None,
        timestamp: Optional[WordTimestamp] = None,
    ):
        super().__init__(message, timestamps, speaker_labels)
        self.speaker_label = speaker_label
        self.timestamp = timestamp
