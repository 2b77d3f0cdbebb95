#!/usr/bin/env python3
"""Replay a recorded output transcript as normalized log lines.

Usage:
    python run.py transcript.jsonl [--config config.yaml] [--status success|failure]
                  [--json] [--debug] [--trace] [--verbose]
"""
import sys

from arcoutput.main import main

if __name__ == "__main__":
    sys.exit(main())
