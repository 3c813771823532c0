"""Logging setup for the server process.

Logs go to stderr: stdout carries the MCP stdio transport.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    root = logging.getLogger()

    # Replace handlers so repeated calls don't duplicate output
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    resolved = logging.getLevelName((level or "INFO").strip().upper())
    root.setLevel(resolved if isinstance(resolved, int) else logging.INFO)
    return root
