from __future__ import annotations

from typing import Sequence

from common.schemas import SpeakerLabel, SpeakerSegment, WordTimestamp
from speaker_service.errors import MismatchError


def pair_labels(
    timestamps: Sequence[WordTimestamp],
    speaker_labels: Sequence[SpeakerLabel],
) -> list[tuple[WordTimestamp, SpeakerLabel]]:
    """Line up each speaker label with the word timestamp at the same index.

    Raises MismatchError at the first label whose span does not match its
    word. Timestamps past the last label are left unpaired until their labels
    arrive.
    """
    pairs = []
    for i, label in enumerate(speaker_labels):
        timestamp = timestamps[i] if i < len(timestamps) else None
        if timestamp is None or timestamp.start != label.start or timestamp.end != label.end:
            raise MismatchError(
                "Mismatch between speaker_label and word timestamp",
                timestamps=timestamps,
                speaker_labels=speaker_labels,
                speaker_label=label,
                timestamp=timestamp,
            )
        pairs.append((timestamp, label))
    return pairs


def group_by_speaker(
    pairs: Sequence[tuple[WordTimestamp, SpeakerLabel]],
    final: bool,
) -> list[SpeakerSegment]:
    """Split paired words into one segment per speaker turn.

    Every segment gets the same ``final`` flag: only the last label of the
    session is ever final, and once it is, the whole round is.
    """
    segments: list[SpeakerSegment] = []
    for timestamp, label in pairs:
        current = segments[-1] if segments else None
        if current is None or current.speaker != label.speaker:
            current = SpeakerSegment(speaker=label.speaker, final=final)
            segments.append(current)
        current.transcript += timestamp.word + " "
        current.word_timestamps.append(timestamp)
    return segments


def segment(
    timestamps: Sequence[WordTimestamp],
    speaker_labels: Sequence[SpeakerLabel],
    final: bool,
) -> list[SpeakerSegment]:
    return group_by_speaker(pair_labels(timestamps, speaker_labels), final)
