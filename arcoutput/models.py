"""Shared data types for the output normalization pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

LOG = "log"
ERROR = "error"


class Channel(Enum):
    """Output streams of a monitored process."""

    STDOUT = "stdout"
    STDERR = "stderr"


class RunStatus(Enum):
    """Terminal status token that accompanies the end of a message sequence."""

    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"


class OutputParseError(Exception):
    """Base class for parser misuse errors."""

    pass


@dataclass(frozen=True)
class OutputChunk:
    """One raw fragment of process output tagged with its channel."""

    channel: Channel
    text: str

    @classmethod
    def from_record(cls, record: dict) -> list[OutputChunk]:
        """Build chunks from a recorded ``{"stdout": ..., "stderr": ...}`` record.

        Either key may be missing. Stderr comes first when both are set.

        Raises:
            ValueError: If the record carries neither key or a non-string payload.
        """
        chunks: list[OutputChunk] = []
        for channel in (Channel.STDERR, Channel.STDOUT):
            text = record.get(channel.value)
            if text is None:
                continue
            if not isinstance(text, str):
                raise ValueError(f"{channel.value} payload must be a string, got {type(text).__name__}")
            chunks.append(cls(channel, text))
        if not chunks:
            raise ValueError("record has neither stdout nor stderr")
        return chunks


@dataclass(frozen=True)
class NormalizedMessage:
    """Leveled line of output as seen by the log sink."""

    level: str
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"level": self.level, "text": self.text}


@dataclass(frozen=True)
class Structured:
    """Stdout line decoded as a recognized JSON envelope."""

    level: str
    text: str
    fatal: bool = False


@dataclass(frozen=True)
class Plain:
    """Line taken verbatim."""

    text: str


Classified = Structured | Plain
