"""
Command implementations for trello-cli.
Each cmd_*() function receives an argparse.Namespace and handles one CLI command.

Business logic lives in client.py (TrelloClient). These thin wrappers
handle argparse → keyword args, prompting, format selection, and formatter
dispatch.
"""

from trello_cli import _log
from trello_cli.client import TrelloClient
from trello_cli.exceptions import CliError
from trello_cli.formatters import (
    format_attachment,
    format_attachments,
    format_board,
    format_boards_table,
    format_card,
    format_list,
    format_search_results,
    format_url,
    mutation_response,
    output,
)


def _get_client():
    return TrelloClient(validate_token=False)


def _prompt(text):
    """Read one line from the user; Ctrl-D / Ctrl-C abort the command."""
    try:
        return input(text).strip()
    except (EOFError, KeyboardInterrupt):
        print()
        raise CliError("[ERROR] Aborted.") from None


def _target(ns):
    return {
        "board": getattr(ns, "board", None),
        "list_name": getattr(ns, "list_name", None),
        "card": getattr(ns, "card", None),
        "ignore_case": getattr(ns, "ignore_case", False),
    }


def _require_card_args(ns, command):
    if not (ns.board and ns.list_name and ns.card):
        raise CliError(f"[ERROR] {command} needs a board, a list, and a card name.")


# ---------------------------------------------------------------------------
# Read commands
# ---------------------------------------------------------------------------


def cmd_show(ns):
    _log.debug("show", board=ns.board, list=ns.list_name, card=ns.card)
    client = _get_client()
    fmt = ns.format
    if not ns.board:
        output(client.list_boards(), format_boards_table, fmt)
        return
    if not ns.list_name:
        output(
            client.get_board(ns.board, ns.ignore_case, ns.label_filter),
            format_board,
            fmt,
        )
        return
    if not ns.card:
        output(
            client.get_list(ns.board, ns.list_name, ns.ignore_case, ns.label_filter),
            format_list,
            fmt,
        )
        return
    if ns.print_only:
        output(client.get_card(**_target(ns)), format_card, fmt)
        return
    result = client.edit_card(**_target(ns))
    if fmt == "json":
        output(result, fmt=fmt)


def cmd_edit(ns):
    _require_card_args(ns, "edit")
    result = _get_client().edit_card(**_target(ns))
    if ns.format == "json":
        output(result, fmt=ns.format)
    elif result["updated"]:
        mutation_response("Updated card", result["card"]["name"], result["card"]["id"])


def cmd_url(ns):
    if not ns.board:
        raise CliError("[ERROR] url needs at least a board name.")
    output(_get_client().get_url(**_target(ns)), format_url, ns.format)


def cmd_search(ns):
    output(_get_client().search(ns.query, partial=ns.partial), format_search_results, ns.format)


def cmd_attachments(ns):
    _require_card_args(ns, "attachments")
    output(_get_client().list_attachments(**_target(ns)), format_attachments, ns.format)


# ---------------------------------------------------------------------------
# Mutation commands
# ---------------------------------------------------------------------------


def cmd_open(ns):
    result = _get_client().reopen(ns.type, ns.id)
    mutation_response(f"Opened {result['type']}", result["name"], result["id"], fmt=ns.format)


def cmd_close(ns):
    if not ns.board:
        raise CliError("[ERROR] close needs at least a board name.")
    result = _get_client().close(**_target(ns))
    if ns.show and "board" in result and ns.format != "json":
        print(format_board(result["board"]))
        print()
    mutation_response(
        f"Closed {result['type']}",
        result["name"],
        result["id"],
        data=result.get("board") if ns.show else None,
        fmt=ns.format,
    )


def cmd_create(ns):
    client = _get_client()
    if ns.list_name and not ns.board:
        raise CliError("[ERROR] A list name needs a board name.")
    if ns.list_name:
        kind = "Card"
    elif ns.board:
        kind = "List"
    else:
        kind = "Board"
    name = ns.name or _prompt(f"{kind} name: ")
    result = client.create(
        name, board=ns.board, list_name=ns.list_name, ignore_case=ns.ignore_case
    )
    mutation_response(f"Created {result['type']}", result["name"], result["id"], fmt=ns.format)
    if ns.show and result["type"] == "card":
        client.edit_card_by_id(result["id"])


def cmd_attach(ns):
    _require_card_args(ns, "attach")
    result = _get_client().attach_file(path=ns.path, **_target(ns))
    output(result, format_attachment, ns.format)


def cmd_label(ns):
    _require_card_args(ns, "label")
    result = _get_client().set_label(label=ns.label_name, delete=ns.delete, **_target(ns))
    if ns.format == "json":
        output(result, fmt="json")
        return
    label = result["label"]["name"] or result["label"]["color"]
    card_name = result["card"]["name"]
    messages = {
        ("applied", True): f"Applied [{label}] label to '{card_name}'",
        ("removed", False): f"Removed [{label}] label from '{card_name}'",
        ("unchanged", True): f"Label [{label}] already exists on '{card_name}'",
        ("unchanged", False): f"Label [{label}] does not exist on '{card_name}'",
    }
    mutation_response(messages[(result["action"], result["present"])])
