"""
trello-cli — CLI tool for browsing and editing Trello boards, lists, and cards
"""

import argparse
import json
import sys

from trello_cli import config
from trello_cli.api import _check_token
from trello_cli.commands import (
    cmd_attach,
    cmd_attachments,
    cmd_close,
    cmd_create,
    cmd_edit,
    cmd_label,
    cmd_open,
    cmd_search,
    cmd_show,
    cmd_url,
)
from trello_cli.exceptions import CliError

HELP_TEXT = """\
Usage: trello-cli <command> [args...]

Boards, lists, and cards are selected by name. Names are regular expressions
matched anywhere in the name; an exact match wins when several objects match.

Global flags:
  --format json           Output as JSON instead of readable text (default: table)
  --quiet, -q             Suppress confirmations
  --verbose, -v           Enable debug and HTTP request logging on stderr
  --version               Show version number

Commands:
  show [board] [list] [card]
                          - No board: list open boards. Board/list: render it.
                            Card: open it in $EDITOR and upload every save.
    -i, --ignore-case       Case-insensitive name matching
    -f, --label-filter <re> Only show cards carrying a matching label
    --print                 Print the card instead of opening the editor
  edit <board> <list> <card>
                          - Open a card in $EDITOR (falls back to vi)
  open <board|list|card> <id>
                          - Reopen a closed board, list, or card
  close <board> [list] [card]
                          - Close the deepest selected object
    --show                  Print the board afterwards
  create [board] [list]   - Create a board, a list on board, or a card in list
    --name <text>           Name to use instead of prompting
    --show                  Open a new card in $EDITOR right away
  attachments <board> <list> <card>
                          - List attachment URLs of a card
  attach <board> <list> <card> <path>
                          - Upload a file as a card attachment
  url <board> [list] [card]
                          - Print the web URL (lists print their board's)
  search <query>          - Search cards and boards
    -p, --partial           Match partial words
  label <board> <list> <card> <label>
                          - Apply a board label to a card
    -d, --delete            Remove the label instead
  version                 - Show version number

Configuration (.env or environment): TRELLO_API_KEY, TRELLO_TOKEN,
TRELLO_EDITOR, TRELLO_DEBUG, TRELLO_HTTP_LOG.
"""


# ---------------------------------------------------------------------------
# Global flag extraction (before argparse, so flags work after subcommand)
# ---------------------------------------------------------------------------


def _extract_global_flags(argv):
    """Extract global flags from argv regardless of position.

    Returns (format_str, quiet, verbose, remaining_argv).
    Handles --version directly.
    """
    fmt = "table"
    quiet = False
    verbose = False
    remaining = []
    i = 0
    while i < len(argv):
        if argv[i] == "--version":
            print(f"trello-cli {config.VERSION}")
            sys.exit(0)
        elif argv[i] in ("--quiet", "-q"):
            quiet = True
        elif argv[i] in ("--verbose", "-v"):
            verbose = True
        elif argv[i] == "--format" and i + 1 < len(argv):
            fmt = argv[i + 1]
            if fmt not in ("json", "table"):
                raise CliError(f"[ERROR] Invalid format '{fmt}'. Use: json, table")
            i += 2
            continue
        else:
            remaining.append(argv[i])
        i += 1
    if quiet and verbose:
        raise CliError("[ERROR] --quiet and --verbose are mutually exclusive.")
    return fmt, quiet, verbose, remaining


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


class _SubcommandParser(argparse.ArgumentParser):
    """Subparser that raises CliError instead of printing full help text."""

    def error(self, message):
        raise CliError(f"[ERROR] {message}")


_SELECTION_ARGS = (("board", "board"), ("list_name", "list"), ("card", "card"))


def _add_selection(p, required=0, levels=3):
    """Add positional board/list/card names; the first *required* are mandatory."""
    for i, (dest, metavar) in enumerate(_SELECTION_ARGS[:levels]):
        if i < required:
            p.add_argument(dest, metavar=metavar)
        else:
            p.add_argument(dest, metavar=metavar, nargs="?")
    p.add_argument("--ignore-case", "-i", action="store_true", dest="ignore_case")


def build_parser():
    parser = _SubcommandParser(
        prog="trello-cli",
        description="CLI tool for browsing and editing Trello boards, lists, and cards",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument("--help", "-h", action="store_true", dest="show_help")
    sub = parser.add_subparsers(dest="command", parser_class=_SubcommandParser)

    # --- show ---
    p = sub.add_parser("show")
    _add_selection(p)
    p.add_argument("--label-filter", "-f", dest="label_filter")
    p.add_argument("--print", action="store_true", dest="print_only")
    p.set_defaults(func=cmd_show)

    # --- edit ---
    p = sub.add_parser("edit")
    _add_selection(p, required=3)
    p.set_defaults(func=cmd_edit)

    # --- open ---
    p = sub.add_parser("open")
    p.add_argument("type", choices=config.OBJECT_TYPES)
    p.add_argument("id")
    p.set_defaults(func=cmd_open)

    # --- close ---
    p = sub.add_parser("close")
    _add_selection(p, required=1)
    p.add_argument("--show", action="store_true")
    p.set_defaults(func=cmd_close)

    # --- create ---
    p = sub.add_parser("create")
    _add_selection(p, levels=2)
    p.add_argument("--name")
    p.add_argument("--show", action="store_true")
    p.set_defaults(func=cmd_create)

    # --- attachments / attach ---
    p = sub.add_parser("attachments")
    _add_selection(p, required=3)
    p.set_defaults(func=cmd_attachments)

    p = sub.add_parser("attach")
    _add_selection(p, required=3)
    p.add_argument("path")
    p.set_defaults(func=cmd_attach)

    # --- url ---
    p = sub.add_parser("url")
    _add_selection(p, required=1)
    p.set_defaults(func=cmd_url)

    # --- search ---
    p = sub.add_parser("search")
    p.add_argument("query")
    p.add_argument("--partial", "-p", action="store_true")
    p.set_defaults(func=cmd_search)

    # --- label ---
    p = sub.add_parser("label")
    _add_selection(p, required=3)
    p.add_argument("label_name", metavar="label")
    p.add_argument("--delete", "-d", action="store_true")
    p.set_defaults(func=cmd_label)

    # --- version (bare word) ---
    sub.add_parser("version").set_defaults(func=None)

    return parser


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

NO_TOKEN_COMMANDS = {"version"}


def _error_type_from_message(message):
    if message.startswith("[TOKEN_EXPIRED]"):
        return "token_expired"
    if message.startswith("[SETUP_NEEDED]"):
        return "setup_needed"
    if message.startswith("[ERROR]"):
        return "error"
    return "cli_error"


def _emit_cli_error(err, fmt):
    msg = str(err)
    if fmt == "json":
        payload = {
            "ok": False,
            "schema_version": config.CONTRACT_SCHEMA_VERSION,
            "error": {
                "type": _error_type_from_message(msg),
                "message": msg,
                "exit_code": getattr(err, "exit_code", 1),
            },
        }
        print(json.dumps(payload, ensure_ascii=False), file=sys.stderr)
        return
    print(msg, file=sys.stderr)


def main(argv=None):
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")

    argv = sys.argv[1:] if argv is None else argv
    fmt = "table"
    try:
        fmt, quiet, verbose, remaining_argv = _extract_global_flags(argv)
        config.RUNTIME_QUIET = quiet
        config.RUNTIME_VERBOSE = verbose
        if verbose:
            config.HTTP_LOG_ENABLED = True

        if not remaining_argv:
            print(HELP_TEXT)
            sys.exit(0)

        parser = build_parser()
        ns = parser.parse_args(remaining_argv)
        ns.format = fmt  # inject global format flag

        if ns.show_help or not ns.command:
            print(HELP_TEXT)
            sys.exit(0)

        cmd = ns.command

        if cmd == "version":
            print(f"trello-cli {config.VERSION}")
            sys.exit(0)

        if cmd not in NO_TOKEN_COMMANDS:
            _check_token()

        handler = getattr(ns, "func", None)
        if handler:
            handler(ns)
        else:
            raise CliError(f"[ERROR] Unknown command: {cmd}")

    except CliError as e:
        _emit_cli_error(e, fmt)
        sys.exit(e.exit_code)


if __name__ == "__main__":
    main()
