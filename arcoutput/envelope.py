"""Classification of stdout lines into phutil JSON envelopes or plain text.

Arcanist-style tools interleave JSON-encoded messages with raw text on
stdout. An envelope is a JSON object with a ``type`` discriminator and a
``message`` string, e.g.::

    {"type": "phutil:out", "message": "hello\\nanother line\\n"}

Anything that fails to decode as a recognized envelope is plain text and is
passed through unchanged.
"""

from __future__ import annotations

import json
import logging
from typing import Mapping

from arcoutput.log_setup import TRACE
from arcoutput.models import ERROR, LOG, Classified, Plain, Structured

logger = logging.getLogger(__name__)

# type -> level
ENVELOPE_TYPES: dict[str, str] = {
    "phutil:out": LOG,
    "phutil:out:raw": LOG,
    "phutil:err": ERROR,
    "error": ERROR,
}

# Envelope types that mark the whole run as failed.
FATAL_TYPES = frozenset({"error"})


def decode_envelope(
    line: str, types: Mapping[str, str] = ENVELOPE_TYPES,
) -> Structured | None:
    """Decode ``line`` as a recognized envelope, or return None."""
    stripped = line.strip()
    if not stripped.startswith("{"):
        return None
    try:
        obj = json.loads(stripped)
    except (ValueError, RecursionError):
        # RecursionError: nesting deeper than the decoder can follow
        logger.log(TRACE, "Not JSON, treating as text: %r", stripped[:200])
        return None
    if not isinstance(obj, dict):
        return None

    kind = obj.get("type")
    message = obj.get("message")
    if not isinstance(kind, str) or kind not in types or not isinstance(message, str):
        if kind is not None:
            logger.debug("Unrecognized envelope type %r, treating as text", kind)
        return None

    level = obj.get("level")
    if not isinstance(level, str) or not level:
        level = types[kind]
    return Structured(level=level, text=message, fatal=kind in FATAL_TYPES)


def classify_line(line: str, types: Mapping[str, str] = ENVELOPE_TYPES) -> Classified:
    """Classify one complete stdout line.

    Never raises: malformed JSON, non-object JSON, objects without a
    recognized ``type`` and envelopes without a string ``message`` all come
    back as :class:`Plain` holding the original line verbatim.

    Args:
        line: A complete (or flushed) stdout line, terminator included.
        types: Envelope type to level table.

    Returns:
        :class:`Structured` for a recognized envelope, :class:`Plain` otherwise.
    """
    envelope = decode_envelope(line, types)
    if envelope is None:
        return Plain(line)
    return envelope


def complete_envelope(tail: str, types: Mapping[str, str] = ENVELOPE_TYPES) -> bool:
    """Check whether an unterminated stdout tail is already a whole envelope.

    ``arc --json``-style producers write one envelope per chunk without a
    trailing newline. Such a tail must be treated as a finished line or the
    next envelope would be glued onto it.
    """
    if not tail.rstrip().endswith("}"):
        return False
    return decode_envelope(tail, types) is not None
