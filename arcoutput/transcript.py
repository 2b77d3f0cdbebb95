"""Recorded chunk transcripts and terminal rendering of messages.

A transcript is a JSON Lines file, one recorded chunk per line::

    {"stdout": "{\\"type\\":\\"phutil:out\\",\\"message\\":\\"hello\\\\n\\"}"}
    {"stderr": "warning: something\\n"}

It stands in for the process execution layer when replaying captured runs.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import AsyncIterator, Iterable

from arcoutput.log_setup import TRACE
from arcoutput.models import ERROR, LOG, NormalizedMessage, OutputChunk

logger = logging.getLogger(__name__)

_RED = "\x1b[31m"
_YELLOW = "\x1b[33m"
_RESET = "\x1b[0m"


class TranscriptError(Exception):
    """Raised when a transcript file is missing or malformed."""

    pass


def parse_record(line: str, line_no: int) -> list[OutputChunk]:
    """Decode one transcript line into chunks.

    Raises:
        TranscriptError: If the line is not a valid record.
    """
    try:
        record = json.loads(line)
    except ValueError as exc:
        raise TranscriptError(f"line {line_no}: invalid JSON ({exc})") from exc
    if not isinstance(record, dict):
        raise TranscriptError(f"line {line_no}: expected an object")
    try:
        return OutputChunk.from_record(record)
    except ValueError as exc:
        raise TranscriptError(f"line {line_no}: {exc}") from exc


async def read_transcript(path: str | Path) -> AsyncIterator[OutputChunk]:
    """Stream chunks from a transcript file, one line at a time.

    Reads happen on a background thread so a large transcript never blocks
    the event loop. Blank lines are skipped.

    Raises:
        TranscriptError: If the file does not exist or a line is malformed.
    """
    transcript = Path(path)
    if not transcript.is_file():
        raise TranscriptError(f"Transcript not found: {path}")

    loop = asyncio.get_running_loop()
    with open(transcript, encoding="utf-8") as f:
        line_no = 0
        while True:
            try:
                line = await loop.run_in_executor(None, f.readline)
            except UnicodeDecodeError as exc:
                raise TranscriptError(f"line {line_no + 1}: not valid UTF-8 ({exc.reason})") from exc
            if not line:
                break
            line_no += 1
            if not line.strip():
                continue
            chunks = parse_record(line, line_no)
            logger.log(TRACE, "transcript line %d: %d chunk(s)", line_no, len(chunks))
            for chunk in chunks:
                yield chunk


def write_transcript(path: str | Path, records: Iterable[OutputChunk | dict]) -> int:
    """Write chunks or recorded dicts as a transcript. Returns the line count."""
    count = 0
    with open(path, "w", encoding="utf-8") as f:
        for record in records:
            if isinstance(record, OutputChunk):
                record = {record.channel.value: record.text}
            f.write(json.dumps(record) + "\n")
            count += 1
    logger.debug("Wrote %d transcript record(s) to %s", count, path)
    return count


def render_message(message: NormalizedMessage, color: bool = False) -> str:
    """Format a message for a terminal, keeping its own line terminator."""
    if message.level == LOG:
        return message.text
    prefix = f"{message.level}: "
    if color:
        tint = _RED if message.level == ERROR else _YELLOW
        prefix = f"{tint}{prefix}{_RESET}"
    return prefix + message.text
