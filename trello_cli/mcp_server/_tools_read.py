"""Read tools: boards, lists, cards, URLs, search, attachments (7 tools)."""

from __future__ import annotations

from trello_cli import CliError
from trello_cli.mcp_server._core import _call, _contract_error, _finalize_tool_result
from trello_cli.mcp_server._security import _sanitize_board, _sanitize_card, _validate_input


def list_boards() -> dict:
    """List the open boards of the authenticated Trello member.

    Returns:
        Dict with a ``boards`` list of {id, name, closed, url}.
    """
    result = _call("list_boards")
    if isinstance(result, list):
        result = {"boards": result}
    return _finalize_tool_result(result)


def get_board(board: str, ignore_case: bool = False, label_filter: str | None = None) -> dict:
    """Get a board with its open lists and cards.

    Args:
        board: Board name pattern (regex, exact name wins on ties).
        ignore_case: Match names case-insensitively.
        label_filter: Only keep cards with a label matching this pattern.
    """
    result = _call("get_board", board=board, ignore_case=ignore_case, label_filter=label_filter)
    if isinstance(result, dict) and result.get("ok") is not False:
        result = _sanitize_board(result)
    return _finalize_tool_result(result)


def get_list(
    board: str, list_name: str, ignore_case: bool = False, label_filter: str | None = None
) -> dict:
    """Get one list of a board with its open cards."""
    result = _call(
        "get_list",
        board=board,
        list_name=list_name,
        ignore_case=ignore_case,
        label_filter=label_filter,
    )
    if isinstance(result, dict) and result.get("cards"):
        result = {**result, "cards": [_sanitize_card(c) for c in result["cards"]]}
    return _finalize_tool_result(result)


def get_card(board: str, list_name: str, card: str, ignore_case: bool = False) -> dict:
    """Get a card's name, description, labels, and URL."""
    result = _call(
        "get_card", board=board, list_name=list_name, card=card, ignore_case=ignore_case
    )
    if isinstance(result, dict) and result.get("ok") is not False:
        result = _sanitize_card(result)
    return _finalize_tool_result(result)


def get_url(
    board: str,
    list_name: str | None = None,
    card: str | None = None,
    ignore_case: bool = False,
) -> dict:
    """Get the web URL of a board or card. Lists resolve to their board's URL."""
    return _finalize_tool_result(
        _call("get_url", board=board, list_name=list_name, card=card, ignore_case=ignore_case)
    )


def search(query: str, partial: bool = False) -> dict:
    """Search cards and boards by text.

    Args:
        query: Search text (max 1000 chars).
        partial: Also match word prefixes.
    """
    try:
        query = _validate_input(query, "query")
    except CliError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    result = _call("search", query=query, partial=partial)
    if isinstance(result, dict) and result.get("cards"):
        result = {**result, "cards": [_sanitize_card(c) for c in result["cards"]]}
    return _finalize_tool_result(result)


def list_attachments(board: str, list_name: str, card: str, ignore_case: bool = False) -> dict:
    """List the attachments (name and URL) of a card."""
    result = _call(
        "list_attachments",
        board=board,
        list_name=list_name,
        card=card,
        ignore_case=ignore_case,
    )
    if isinstance(result, list):
        result = {"attachments": result}
    return _finalize_tool_result(result)


def register(mcp):
    """Register all read tools with the FastMCP instance."""
    mcp.tool()(list_boards)
    mcp.tool()(get_board)
    mcp.tool()(get_list)
    mcp.tool()(get_card)
    mcp.tool()(get_url)
    mcp.tool()(search)
    mcp.tool()(list_attachments)
