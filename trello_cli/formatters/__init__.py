"""Output formatting package for trello-cli.

Re-exports all public names so consumers can do:
    from trello_cli.formatters import format_board
"""

from trello_cli.formatters._core import (
    mutation_response,
    output,
)
from trello_cli.formatters._entities import (
    format_attachment,
    format_attachments,
    format_board,
    format_boards_table,
    format_card,
    format_list,
    format_search_results,
    format_url,
)
from trello_cli.formatters._table import (
    _CONTROL_RE,
    _header,
    _sanitize_str,
    _table,
    _trunc,
)

__all__ = [
    "_CONTROL_RE",
    "_header",
    "_sanitize_str",
    "_table",
    "_trunc",
    "format_attachment",
    "format_attachments",
    "format_board",
    "format_boards_table",
    "format_card",
    "format_list",
    "format_search_results",
    "format_url",
    "mutation_response",
    "output",
]
