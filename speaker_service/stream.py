"""Splits recognizer results up by speaker.

A ``SpeakerStream`` is fed recognizer updates one at a time. Word timestamps
arrive in ``results`` and speaker labels arrive separately, possibly revising
earlier ones, so after every update the whole conversation is re-segmented
and returned as a single ``SegmentedResult`` with one entry per speaker turn.

All results are interim until the final batch: the text of a word never
changes, but its speaker may, so a word can move from one segment to another
between emissions. Interim results from the recognizer are ignored.
"""

from __future__ import annotations

import logging
from typing import Any, Union

from common.config import SpeakerStreamSettings
from common.schemas import RecognizeUpdate, SegmentedResult
from speaker_service.errors import MismatchError, NoTimestampsError, SpeakerStreamError
from speaker_service.preconditions import no_timestamps
from speaker_service.segmenter import segment
from speaker_service.session import SpeakerSession

logger = logging.getLogger(__name__)

StreamEvent = Union[SegmentedResult, SpeakerStreamError]


class SpeakerStream:
    def __init__(self, stream_id: str = "", settings: SpeakerStreamSettings | None = None):
        self.stream_id = stream_id
        self.settings = settings or SpeakerStreamSettings()
        self.session = SpeakerSession(stream_id)
        self.closed = False
        logger.info("Speaker stream opened: %s", stream_id)

    def write(self, update: RecognizeUpdate | dict[str, Any]) -> list[StreamEvent]:
        """Process one update and return the events it produced, in order.

        Errors are returned as events, not raised. At most one
        SegmentedResult is produced per update.
        """
        if self.closed:
            raise RuntimeError(f"Stream {self.stream_id} is closed")
        if not isinstance(update, RecognizeUpdate):
            update = RecognizeUpdate.model_validate(update)

        events: list[StreamEvent] = []
        if update.results is not None:
            error = self._handle_results(update)
            if error is not None:
                events.append(error)
        if update.speaker_labels is not None:
            self.session.merge_labels(update.speaker_labels)

        events.extend(self._process())
        return events

    def close(self) -> list[SpeakerStreamError]:
        """End the stream and check that every word got a speaker label.

        Catches sessions where speaker_labels were never enabled and data
        loss between the two series.
        """
        if self.closed:
            return []
        self.closed = True

        n_timestamps = self.session.timestamp_count
        n_labels = self.session.label_count
        logger.info(
            "Speaker stream closed: %s (%d timestamps, %d speaker_labels)",
            self.stream_id, n_timestamps, n_labels,
        )
        if n_timestamps == n_labels:
            return []

        if n_timestamps and not n_labels:
            msg = "No speaker_labels found. SpeakerStream requires speaker_labels to be enabled."
        else:
            msg = (
                f"Mismatch between number of word timestamps ({n_timestamps}) and number of "
                f"speaker_labels ({n_labels}) - some data may be lost."
            )
        error = MismatchError(
            msg,
            timestamps=self.session.timestamps,
            speaker_labels=self.session.speaker_labels,
        )
        logger.warning("Stream %s: %s", self.stream_id, error)
        return [error]

    def _handle_results(self, update: RecognizeUpdate) -> NoTimestampsError | None:
        if self.settings.check_timestamps and no_timestamps(update):
            error = NoTimestampsError(
                "SpeakerStream requires that timestamps and speaker_labels be enabled"
            )
            logger.warning("Stream %s: %s", self.stream_id, error)
            return error

        for result in update.results:
            if not result.final or not result.alternatives:
                continue
            self.session.append_timestamps(result.alternatives[0].timestamps or [])
        return None

    def _process(self) -> list[StreamEvent]:
        final = self.session.is_final()
        try:
            segments = segment(self.session.timestamps, self.session.speaker_labels, final)
        except MismatchError as error:
            logger.warning(
                "Stream %s: %s (label=%s, timestamp=%s)",
                self.stream_id, error, error.speaker_label, error.timestamp,
            )
            return [error]

        if not segments:
            return []
        logger.debug(
            "Stream %s: %d segments from %d labelled words (final=%s)",
            self.stream_id, len(segments), self.session.label_count, final,
        )
        return [SegmentedResult(results=segments)]
