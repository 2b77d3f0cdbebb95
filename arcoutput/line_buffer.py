"""Per-channel line reassembly for fragmented process output.

Chunks arrive with arbitrary boundaries. :class:`LineReassembler` keeps the
unterminated tail of each channel and hands back complete lines, terminator
included, as soon as a newline closes them.
"""

from __future__ import annotations

import logging
from enum import Enum

from arcoutput.log_setup import TRACE
from arcoutput.models import Channel, OutputParseError

logger = logging.getLogger(__name__)


class BufferClosedError(OutputParseError):
    """Raised when a channel is fed after it was flushed or discarded."""

    pass


class BufferState(Enum):
    """Lifecycle of one channel buffer.

    Values:
        EMPTY: No pending text.
        ACCUMULATING: An unterminated partial line is buffered.
        FLUSHED: End of input reached, the buffer accepts no more text.
    """
    EMPTY = "empty"
    ACCUMULATING = "accumulating"
    FLUSHED = "flushed"


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` keeping terminators. The last item may be unterminated."""
    if not text:
        return []
    # str.splitlines also breaks on \r, form feeds and unicode separators
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


class LineReassembler:
    """Accumulates fragments per channel until newlines complete them."""

    def __init__(self) -> None:
        self._buffers: dict[Channel, str] = {channel: "" for channel in Channel}
        self._closed: set[Channel] = set()

    def state(self, channel: Channel) -> BufferState:
        if channel in self._closed:
            return BufferState.FLUSHED
        return BufferState.ACCUMULATING if self._buffers[channel] else BufferState.EMPTY

    def pending(self, channel: Channel) -> str:
        """Return the buffered unterminated tail without consuming it."""
        return self._buffers[channel]

    def feed(self, channel: Channel, raw_text: str) -> list[str]:
        """Append ``raw_text`` and return every line it completes, in order.

        Raises:
            BufferClosedError: If the channel was already flushed.
        """
        if channel in self._closed:
            raise BufferClosedError(f"{channel.value} buffer is closed")
        if not raw_text:
            return []

        buffered = self._buffers[channel] + raw_text
        cut = buffered.rfind("\n") + 1
        self._buffers[channel] = buffered[cut:]
        lines = split_lines(buffered[:cut])
        if lines:
            logger.log(TRACE, "%s: %d line(s) complete, %d char(s) pending",
                       channel.value, len(lines), len(self._buffers[channel]))
        return lines

    def take_pending(self, channel: Channel) -> str:
        """Consume the buffered tail as a finished line, leaving the channel open."""
        text = self._buffers[channel]
        self._buffers[channel] = ""
        return text

    def flush(self, channel: Channel) -> str | None:
        """Close the channel and return its unterminated tail, if any.

        A second flush with nothing fed in between returns None.
        """
        text = self._buffers[channel]
        self._buffers[channel] = ""
        self._closed.add(channel)
        if text:
            logger.debug("%s: flushing %d unterminated char(s)", channel.value, len(text))
            return text
        return None

    def discard(self) -> None:
        """Drop every buffered tail and close all channels without emitting."""
        for channel, text in self._buffers.items():
            if text:
                logger.debug("%s: discarding %d buffered char(s)", channel.value, len(text))
            self._buffers[channel] = ""
            self._closed.add(channel)
