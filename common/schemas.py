from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


# --- Recognizer updates: results and speaker_labels ---

class WordTimestamp(BaseModel):
    """One recognized word and its time span in seconds."""

    word: str
    start: float = Field(alias="from")
    end: float = Field(alias="to")

    model_config = {"frozen": True, "populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def _from_triple(cls, data: Any) -> Any:
        # The recognizer sends timestamps as positional [word, from, to] arrays
        if isinstance(data, (list, tuple)):
            if len(data) != 3:
                raise ValueError(f"expected [word, from, to], got {len(data)} items")
            word, start, end = data
            return {"word": word, "from": start, "to": end}
        return data

    @property
    def span(self) -> tuple[float, float]:
        return (self.start, self.end)


class SpeakerLabel(BaseModel):
    start: float = Field(alias="from")
    end: float = Field(alias="to")
    speaker: Union[int, str]
    confidence: float = 0.0
    final: bool = False

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def span(self) -> tuple[float, float]:
        return (self.start, self.end)


class Alternative(BaseModel):
    transcript: str = ""
    confidence: Optional[float] = None
    timestamps: Optional[list[WordTimestamp]] = None


class SpeechResult(BaseModel):
    final: bool = False
    alternatives: list[Alternative] = []


class RecognizeUpdate(BaseModel):
    """A single incremental message from the recognizer.

    Either field may be missing; word timestamps arrive in ``results`` and
    diarization arrives separately in ``speaker_labels``.
    """

    results: Optional[list[SpeechResult]] = None
    result_index: Optional[int] = None
    speaker_labels: Optional[list[SpeakerLabel]] = None

    @field_validator("results", "speaker_labels", mode="before")
    @classmethod
    def _ignore_non_lists(cls, value: Any) -> Any:
        # Fields that are not arrays are treated as absent
        return value if isinstance(value, (list, tuple)) else None


# --- Segmented output ---

class SpeakerSegment(BaseModel):
    speaker: Union[int, str]
    transcript: str = ""
    word_timestamps: list[WordTimestamp] = []
    final: bool = False


class SegmentedResult(BaseModel):
    """The whole conversation so far, split into one result per speaker turn.

    result_index is always 0 because every emission replaces the previous one.
    """

    results: list[SpeakerSegment]
    result_index: int = 0


# --- Errors ---

class ErrorKind(str, Enum):
    configuration = "CONFIGURATION"
    mismatch = "MISMATCH"


class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    stream_id: str = ""
    kind: ErrorKind
    detail: str
