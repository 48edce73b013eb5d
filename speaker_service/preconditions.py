from __future__ import annotations

from common.schemas import RecognizeUpdate


def no_timestamps(update: RecognizeUpdate) -> bool:
    """True if any result lacks word timestamps on its top alternative."""
    for result in update.results or []:
        if not result.alternatives:
            continue
        if not result.alternatives[0].timestamps:
            return True
    return False
