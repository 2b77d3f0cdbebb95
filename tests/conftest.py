import json
import logging

import pytest

from arcoutput.log_setup import LOGGER_NAME


def stdout_line(message: str, kind: str = "phutil:out") -> dict:
    """Recorded stdout chunk holding one phutil envelope, no trailing newline."""
    return {"stdout": json.dumps({"type": kind, "message": message})}


async def aiter_records(records):
    """Async source yielding recorded records in order."""
    for record in records:
        yield record


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers installed by setup_logging so no test writes to a stale stream."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


@pytest.fixture
def transcript_file(tmp_path):
    """Write a transcript of recorded records and return its path."""

    def _write(records, name="run.jsonl"):
        path = tmp_path / name
        path.write_text("".join(json.dumps(r) + "\n" for r in records))
        return path

    return _write
