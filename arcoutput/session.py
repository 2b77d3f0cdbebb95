"""Parse session: line reassembly, classification and normalization in one place.

- :class:`ParseSession` — explicit per-run state (two channel buffers and
  the normalizer). Synchronous :meth:`~ParseSession.feed` /
  :meth:`~ParseSession.finish` plus the async :meth:`~ParseSession.run`
  driver.
- :func:`process_output` — collect every message of a chunk sequence along
  with the terminal status.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterable, AsyncIterator, Iterable, Union

from arcoutput.config import ParserConfig
from arcoutput.envelope import classify_line, complete_envelope
from arcoutput.line_buffer import LineReassembler
from arcoutput.models import (
    Channel,
    NormalizedMessage,
    OutputChunk,
    OutputParseError,
    RunStatus,
)
from arcoutput.normalizer import OutputNormalizer

logger = logging.getLogger(__name__)

ChunkSource = Union[AsyncIterable[Union[OutputChunk, dict]], Iterable[Union[OutputChunk, dict]]]


class SessionClosedError(OutputParseError):
    """Raised when a finished or aborted session is fed again."""

    pass


async def iter_chunks(source: ChunkSource) -> AsyncIterator[OutputChunk]:
    """Iterate a sync or async source, expanding recorded dicts into chunks."""
    if hasattr(source, "__aiter__"):
        async for item in source:
            for chunk in _as_chunks(item):
                yield chunk
    else:
        for item in source:
            for chunk in _as_chunks(item):
                yield chunk


def _as_chunks(item: OutputChunk | dict) -> list[OutputChunk]:
    if isinstance(item, OutputChunk):
        return [item]
    if isinstance(item, dict):
        return OutputChunk.from_record(item)
    raise TypeError(f"expected OutputChunk or dict, got {type(item).__name__}")


class ParseSession:
    """Turns raw output chunks into :class:`NormalizedMessage` records.

    One session covers one run of the monitored process. Chunks must be fed
    one at a time in arrival order; cross-channel order does not matter.
    """

    def __init__(self, config: ParserConfig | None = None) -> None:
        self._types = (config or ParserConfig()).envelope_types()
        self._lines = LineReassembler()
        self._normalizer = OutputNormalizer()
        self.status: RunStatus | None = None
        self.emitted: int = 0
        # set after a chunk-final envelope: its own "\n" may open the next chunk
        self._envelope_open: bool = False

    @property
    def done(self) -> bool:
        return self.status is not None

    @property
    def lines(self) -> LineReassembler:
        return self._lines

    def feed(self, chunk: OutputChunk) -> list[NormalizedMessage]:
        """Process one chunk and return the messages it completes.

        Raises:
            SessionClosedError: If the session already finished or aborted.
        """
        if self.done:
            raise SessionClosedError(f"session already ended with status {self.status.value}")

        if chunk.channel is Channel.STDERR:
            lines = self._lines.feed(Channel.STDERR, chunk.text)
            return self._emit([self._normalizer.push_stderr(line) for line in lines])

        text = chunk.text
        if self._envelope_open and text:
            self._envelope_open = False
            if text.startswith("\n"):
                text = text[1:]

        lines = self._lines.feed(Channel.STDOUT, text)
        if complete_envelope(self._lines.pending(Channel.STDOUT), self._types):
            lines.append(self._lines.take_pending(Channel.STDOUT))
            self._envelope_open = True
        messages = []
        for line in lines:
            messages.extend(self._normalizer.push(classify_line(line, self._types)))
        return self._emit(messages)

    def finish(self, status: RunStatus | str = RunStatus.SUCCESS) -> list[NormalizedMessage]:
        """Flush both channels at end of input and set the terminal status.

        A fatal envelope seen during the run forces ``FAILURE``. Calling
        this on an ended session returns an empty list.
        """
        if self.done:
            return []

        messages: list[NormalizedMessage] = []
        tail = self._lines.flush(Channel.STDOUT)
        if tail is not None:
            messages.extend(self._normalizer.push(classify_line(tail, self._types)))
        messages.extend(self._normalizer.flush())
        tail = self._lines.flush(Channel.STDERR)
        if tail is not None:
            messages.append(self._normalizer.push_stderr(tail))

        self.status = RunStatus.FAILURE if self._normalizer.fatal else RunStatus(status)
        messages = self._emit(messages)
        logger.debug("Session finished status=%s messages=%d", self.status.value, self.emitted)
        return messages

    def abort(self, status: RunStatus | str = RunStatus.CANCELLED) -> None:
        """End the session without flushing; partial lines are dropped."""
        if self.done:
            return
        self._lines.discard()
        self._normalizer.discard()
        self.status = RunStatus(status)
        logger.debug("Session aborted status=%s messages=%d", self.status.value, self.emitted)

    async def run(
        self, chunks: ChunkSource, status: RunStatus | str = RunStatus.SUCCESS,
    ) -> AsyncIterator[NormalizedMessage]:
        """Drive the session over ``chunks``, yielding messages as they complete.

        The consumer may pause between messages; nothing but the partial-line
        buffers is held meanwhile. If the source raises or the consumer
        cancels, partial lines are discarded and the error propagates.
        """
        try:
            async for chunk in iter_chunks(chunks):
                for message in self.feed(chunk):
                    yield message
        except (asyncio.CancelledError, GeneratorExit):
            self.abort(RunStatus.CANCELLED)
            raise
        except Exception:
            logger.debug("Upstream failed, dropping partial lines", exc_info=True)
            self.abort(RunStatus.FAILURE)
            raise

        for message in self.finish(status):
            yield message

    def _emit(self, messages: list[NormalizedMessage]) -> list[NormalizedMessage]:
        self.emitted += len(messages)
        return messages


async def process_output(
    chunks: ChunkSource,
    status: RunStatus | str = RunStatus.SUCCESS,
    config: ParserConfig | None = None,
) -> tuple[list[NormalizedMessage], RunStatus]:
    """Normalize a whole chunk sequence.

    Args:
        chunks: Sync or async iterable of :class:`OutputChunk` or recorded
            ``{"stdout": ...}`` / ``{"stderr": ...}`` dicts.
        status: Terminal status reported by the process execution layer.
        config: Parser settings; defaults apply when omitted.

    Returns:
        The emitted messages and the session's terminal status.
    """
    session = ParseSession(config)
    messages = [message async for message in session.run(chunks, status)]
    return messages, session.status
