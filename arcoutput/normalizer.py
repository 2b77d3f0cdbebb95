"""Mapping of classified content to leveled :class:`NormalizedMessage` records.

Envelope payloads are not line-aligned: one envelope may hold several
lines, and a line may be spread over consecutive envelopes. The normalizer
re-splits stdout content per level and only emits a message once a newline
completes it, so ``"foo"`` followed by ``"bar\\n"`` becomes ``"foobar\\n"``.
"""

from __future__ import annotations

import logging

from arcoutput.line_buffer import split_lines
from arcoutput.models import ERROR, LOG, Classified, NormalizedMessage, Plain, Structured

logger = logging.getLogger(__name__)


class OutputNormalizer:
    """Per-level line buffering for classified stdout content."""

    def __init__(self) -> None:
        # level -> unterminated text
        self._partials: dict[str, str] = {}
        self.fatal: bool = False

    def push(self, classified: Classified) -> list[NormalizedMessage]:
        """Normalize one classified stdout line."""
        if isinstance(classified, Structured):
            if classified.fatal and not self.fatal:
                logger.debug("Fatal envelope seen, run will report failure")
                self.fatal = True
            return self.push_plain(classified.text, classified.level)
        if isinstance(classified, Plain):
            return self.push_plain(classified.text, LOG)
        raise TypeError(f"cannot normalize {type(classified).__name__}")

    def push_stderr(self, line: str) -> NormalizedMessage:
        """Wrap a reassembled stderr line; it never joins stdout partials."""
        return NormalizedMessage(ERROR, line)

    def push_plain(self, text: str, level: str) -> list[NormalizedMessage]:
        """Split ``text`` into lines at ``level``, joining any pending partial."""
        messages: list[NormalizedMessage] = []
        for part in split_lines(text):
            pending = self._partials.pop(level, "") + part
            if pending.endswith("\n"):
                messages.append(NormalizedMessage(level, pending))
            else:
                self._partials[level] = pending
        return messages

    def pending(self) -> dict[str, str]:
        return dict(self._partials)

    def flush(self) -> list[NormalizedMessage]:
        """Emit every pending partial line, unterminated."""
        messages = [
            NormalizedMessage(level, text)
            for level, text in self._partials.items()
            if text
        ]
        self._partials.clear()
        return messages

    def discard(self) -> None:
        if self._partials:
            logger.debug("Discarding partial text for level(s): %s", ", ".join(self._partials))
        self._partials.clear()
