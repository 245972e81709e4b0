"""Core output dispatchers."""

import json
import sys

from trello_cli import config


def output(data, formatter=None, fmt="table"):
    """Output data in requested format."""
    if fmt == "table" and formatter:
        print(formatter(data))
    else:
        print(json.dumps(data, indent=2, ensure_ascii=False))


def mutation_response(action, name=None, record_id=None, data=None, fmt="table"):
    """Report a completed mutation.

    Table mode writes the confirmation to stderr (stdout stays clean for
    piping); JSON mode prints the result object to stdout.
    """
    if fmt == "json":
        payload = {"ok": True, "mutation": {"action": action, "id": record_id, "name": name}}
        if data:
            payload["data"] = data
        print(json.dumps(payload, ensure_ascii=False))
        return
    if config.RUNTIME_QUIET:
        return
    line = f"{action}: '{name}'" if name is not None else action
    print(line, file=sys.stderr)
    if record_id:
        print(f"id: {record_id}", file=sys.stderr)
