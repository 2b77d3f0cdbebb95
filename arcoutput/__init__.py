"""Streaming process-output normalization: reassembler → classifier → normalizer."""

from arcoutput.models import Channel, NormalizedMessage, OutputChunk, RunStatus  # noqa: F401
from arcoutput.pump import OutputPump  # noqa: F401
from arcoutput.session import ParseSession, process_output  # noqa: F401

__all__ = [
    "Channel",
    "NormalizedMessage",
    "OutputChunk",
    "OutputPump",
    "ParseSession",
    "RunStatus",
    "process_output",
]
