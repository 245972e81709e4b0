"""Write tools: create, close, reopen, update, label (5 tools)."""

from __future__ import annotations

from typing import Literal

from trello_cli import CliError
from trello_cli.mcp_server._core import _call, _contract_error, _finalize_tool_result
from trello_cli.mcp_server._security import _validate_input


def create(name: str, board: str | None = None, list_name: str | None = None) -> dict:
    """Create a card in a list, a list on a board, or (with no board) a board.

    Args:
        name: Name of the new record.
        board: Board name pattern. Omit to create a board.
        list_name: List name pattern. Give it to create a card.
    """
    try:
        name = _validate_input(name, "name")
    except CliError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(_call("create", name=name, board=board, list_name=list_name))


def close(board: str, list_name: str | None = None, card: str | None = None) -> dict:
    """Close (archive) the deepest selected board, list, or card."""
    return _finalize_tool_result(_call("close", board=board, list_name=list_name, card=card))


def reopen(object_type: Literal["board", "list", "card"], object_id: str) -> dict:
    """Reopen a closed board, list, or card by its Trello ID."""
    return _finalize_tool_result(_call("reopen", object_type=object_type, object_id=object_id))


def update_card(
    board: str,
    list_name: str,
    card: str,
    name: str | None = None,
    desc: str | None = None,
) -> dict:
    """Rename a card and/or replace its description.

    Args:
        name: New card name.
        desc: New description (markdown).
    """
    try:
        if name is not None:
            name = _validate_input(name, "name")
        if desc is not None:
            desc = _validate_input(desc, "desc")
    except CliError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call("update_card", board=board, list_name=list_name, card=card, name=name, desc=desc)
    )


def set_label(
    board: str, list_name: str, card: str, label: str, delete: bool = False
) -> dict:
    """Apply a board label to a card, or remove it with delete=True.

    Returns:
        Dict with ``action`` set to applied, removed, or unchanged.
    """
    return _finalize_tool_result(
        _call(
            "set_label",
            board=board,
            list_name=list_name,
            card=card,
            label=label,
            delete=delete,
        )
    )


def register(mcp):
    """Register all write tools with the FastMCP instance."""
    mcp.tool()(create)
    mcp.tool()(close)
    mcp.tool()(reopen)
    mcp.tool()(update_card)
    mcp.tool()(set_label)
