"""
Name-based lookup of boards, lists, and cards.

Names are matched as regular expressions searched within object names. An
exact name match wins when a pattern matches several objects.
"""

import re
from dataclasses import dataclass, replace

from trello_cli import _log, entities
from trello_cli.exceptions import CliError
from trello_cli.models import Board, Card, TrelloList


@dataclass(frozen=True)
class Selection:
    """The deepest board/list/card a lookup resolved to."""

    board: Board | None = None
    list: TrelloList | None = None
    card: Card | None = None


def _compile(pattern, ignore_case):
    flags = re.IGNORECASE if ignore_case else 0
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise CliError(f"[ERROR] Invalid name pattern '{pattern}': {e}") from None


def _display_name(obj):
    return getattr(obj, "display_name", None) or obj.name


def get_object_by_name(objects, name, ignore_case=False):
    """Return the single object whose name matches *name*.

    Raises CliError when nothing matches, or when several objects match
    and none of them is an exact match.
    """
    regex = _compile(name, ignore_case)
    matches = [o for o in objects if regex.search(_display_name(o))]
    if len(matches) == 1:
        return matches[0]

    if ignore_case:
        exact = [o for o in matches if _display_name(o).casefold() == name.casefold()]
    else:
        exact = [o for o in matches if _display_name(o) == name]
    if len(exact) == 1:
        return exact[0]

    if not matches:
        raise CliError(f"[ERROR] No object found matching '{name}'.")
    found = ", ".join(f"'{_display_name(o)}'" for o in matches)
    raise CliError(
        f"[ERROR] More than one object found matching '{name}'. "
        f"Specify a more precise filter (found {found})."
    )


def resolve(board_name=None, list_name=None, card_name=None, ignore_case=False):
    """Walk board -> list -> card by name and return a Selection.

    Each level is only looked up when the level above was given.
    """
    _log.debug(
        "resolve",
        board=board_name,
        list=list_name,
        card=card_name,
        ignore_case=ignore_case,
    )
    if not board_name:
        return Selection()

    board = get_object_by_name(entities.get_boards(), board_name, ignore_case)
    board = entities.retrieve_nested(board)
    if not list_name:
        return Selection(board=board)

    trello_list = get_object_by_name(board.lists or [], list_name, ignore_case)
    if not card_name:
        return Selection(board=board, list=trello_list)

    card = get_object_by_name(trello_list.cards or [], card_name, ignore_case)
    return Selection(board=board, list=trello_list, card=card)


# ---------------------------------------------------------------------------
# Label filtering
# ---------------------------------------------------------------------------


def _card_matches(card, regex):
    return any(regex.search(lbl.display_name) for lbl in card.labels or [])


def filter_list(trello_list, label_filter, ignore_case=False):
    """Return a copy of *trello_list* keeping only cards with a matching label."""
    regex = _compile(label_filter, ignore_case)
    cards = [c for c in trello_list.cards or [] if _card_matches(c, regex)]
    return replace(trello_list, cards=cards)


def filter_board(board, label_filter, ignore_case=False):
    """Apply filter_list to every list of *board*."""
    lists = [filter_list(x, label_filter, ignore_case) for x in board.lists or []]
    return replace(board, lists=lists)
