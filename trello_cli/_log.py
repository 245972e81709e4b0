"""
Structured stderr logging for trello-cli.

One JSON object per line, prefixed with a bracketed tag. Nothing is written
unless the matching config switch (or --verbose) is on.
"""

import json
import sys

from trello_cli import config


def _emit(tag, fields):
    line = json.dumps(fields, ensure_ascii=False, sort_keys=True, default=str)
    print(f"[{tag}] {line}", file=sys.stderr)


def debug(event, **fields):
    """Emit a debug event when TRELLO_DEBUG or --verbose is set."""
    if not (config.DEBUG_LOG_ENABLED or config.RUNTIME_VERBOSE):
        return
    _emit("DEBUG", {"event": event, **fields})


def http_event(**fields):
    """Emit structured HTTP logs to stderr when enabled."""
    if not config.HTTP_LOG_ENABLED:
        return
    _emit("HTTP", fields)
