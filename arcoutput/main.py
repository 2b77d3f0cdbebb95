from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from arcoutput.config import AppConfig, ConfigError, load_config
from arcoutput.log_setup import setup_logging
from arcoutput.models import NormalizedMessage, RunStatus
from arcoutput.pump import OutputPump
from arcoutput.transcript import TranscriptError, read_transcript, render_message

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Normalize recorded process output into leveled log lines",
    )
    parser.add_argument("transcript",
                        help="Path to a JSON Lines transcript of stdout/stderr chunks")
    parser.add_argument("--config", default=None,
                        help="Path to YAML config file (defaults apply when omitted)")
    parser.add_argument("--status", choices=[s.value for s in RunStatus], default="success",
                        help="Terminal status reported by the recorded run (default: success)")
    parser.add_argument("--json", action="store_true",
                        help="Print one JSON object per message instead of text")
    parser.add_argument("--debug", action="store_true",
                        help="Enable debug mode (verbose logging)")
    parser.add_argument("--trace", action="store_true",
                        help="Enable trace mode (writes trace file to debug/)")
    parser.add_argument("--verbose", action="store_true",
                        help="With --trace, also send trace output to terminal")
    return parser.parse_args(argv)


def _write(message: NormalizedMessage, config: AppConfig, as_json: bool) -> None:
    if as_json:
        sys.stdout.write(json.dumps(message.to_dict()) + "\n")
        return
    text = render_message(message, color=config.output.color)
    if not text.endswith("\n"):
        text += "\n"
    sys.stdout.write(text)


async def run(args: argparse.Namespace, config: AppConfig) -> int:
    """Replay the transcript through an OutputPump and print every message."""
    pump = OutputPump(read_transcript(args.transcript), config.parser, status=args.status)
    pump.start()
    try:
        async for message in pump.messages():
            _write(message, config, args.json)
    except TranscriptError as exc:
        logger.error("%s", exc)
        return EXIT_USAGE
    finally:
        await pump.stop()
        sys.stdout.flush()

    logger.debug("Emitted %d message(s), status=%s", pump.session.emitted, pump.status.value)
    if pump.status is RunStatus.SUCCESS:
        if config.output.success_message:
            print(config.output.success_message)
        return EXIT_OK
    if config.output.failure_message:
        print(config.output.failure_message, file=sys.stderr)
    return EXIT_FAILED


def main(argv: list[str] | None = None) -> int:
    """Entry point for the arcoutput command."""
    args = _parse_args(argv)

    try:
        config = load_config(args.config) if args.config else AppConfig()
    except ConfigError as exc:
        setup_logging(debug=args.debug, trace=args.trace, verbose=args.verbose)
        logger.error("%s", exc)
        return EXIT_USAGE

    # CLI flags switch debug settings on; they never switch config ones off
    if args.debug:
        config.debug.enabled = True
    if args.trace:
        config.debug.trace = True
    if args.verbose:
        config.debug.verbose = True
    setup_logging(
        debug=config.debug.enabled, trace=config.debug.trace, verbose=config.debug.verbose,
    )

    return asyncio.run(run(args, config))


if __name__ == "__main__":
    sys.exit(main())
