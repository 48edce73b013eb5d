from __future__ import annotations

import logging
from typing import Any, AsyncIterable, AsyncIterator, Iterable, Union

from common.config import SpeakerStreamSettings
from common.schemas import RecognizeUpdate, SegmentedResult
from speaker_service.errors import SpeakerStreamError
from speaker_service.stream import SpeakerStream, StreamEvent

logger = logging.getLogger(__name__)

Update = Union[RecognizeUpdate, dict[str, Any]]


async def _aiter(updates: Iterable[Update] | AsyncIterable[Update]) -> AsyncIterator[Update]:
    if hasattr(updates, "__aiter__"):
        async for update in updates:
            yield update
    else:
        for update in updates:
            yield update


async def iter_events(
    updates: Iterable[Update] | AsyncIterable[Update],
    stream_id: str = "",
    settings: SpeakerStreamSettings | None = None,
) -> AsyncIterator[StreamEvent]:
    """Run a whole session, yielding results and errors as they are produced.

    The end-of-stream check runs once ``updates`` is exhausted.
    """
    stream = SpeakerStream(stream_id=stream_id, settings=settings)
    async for update in _aiter(updates):
        for event in stream.write(update):
            yield event
    for error in stream.close():
        yield error


async def collect_results(
    updates: Iterable[Update] | AsyncIterable[Update],
    stream_id: str = "",
    settings: SpeakerStreamSettings | None = None,
) -> list[SegmentedResult]:
    """Run a whole session and return every SegmentedResult it emitted.

    Raises the first error signaled by the stream.
    """
    results: list[SegmentedResult] = []
    events = iter_events(updates, stream_id=stream_id, settings=settings)
    try:
        async for event in events:
            if isinstance(event, SpeakerStreamError):
                raise event
            results.append(event)
    finally:
        await events.aclose()
    logger.info("Stream %s produced %d results", stream_id, len(results))
    return results
