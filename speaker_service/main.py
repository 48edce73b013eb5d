"""Replay newline-delimited recognizer updates through a speaker stream.

    python -m speaker_service.main updates.jsonl

Each SegmentedResult and each error is written to stdout as one JSON line.
Reads stdin when no path is given.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Iterator, TextIO

from common.config import SpeakerStreamSettings
from speaker_service.adapters import iter_events
from speaker_service.errors import SpeakerStreamError

logger = logging.getLogger(__name__)


def read_updates(lines: TextIO) -> Iterator[dict]:
    for line in lines:
        line = line.strip()
        if line:
            yield json.loads(line)


async def run(lines: TextIO, out: TextIO, settings: SpeakerStreamSettings, stream_id: str = "") -> int:
    """Write every event as JSON; return the number of errors signaled."""
    errors = 0
    events = iter_events(read_updates(lines), stream_id=stream_id, settings=settings)
    try:
        async for event in events:
            if isinstance(event, SpeakerStreamError):
                errors += 1
                out.write(event.to_message(stream_id).model_dump_json() + "\n")
                if settings.stop_on_error:
                    logger.info("Stopping at first error")
                    break
            else:
                out.write(event.model_dump_json(by_alias=True) + "\n")
    finally:
        await events.aclose()
    return errors


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Split recognizer results up by speaker")
    parser.add_argument("path", nargs="?", help="JSON lines file of updates (default: stdin)")
    parser.add_argument("--stream-id", default="cli", help="Identifier used in logs and error messages")
    parser.add_argument("--stop-on-error", action="store_true", help="Stop at the first error event")
    args = parser.parse_args(argv)

    settings = SpeakerStreamSettings(stop_on_error=True) if args.stop_on_error else SpeakerStreamSettings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.path:
        with open(args.path) as f:
            errors = asyncio.run(run(f, sys.stdout, settings, args.stream_id))
    else:
        errors = asyncio.run(run(sys.stdin, sys.stdout, settings, args.stream_id))
    return 1 if errors else 0


if __name__ == "__main__":
    sys.exit(main())
