"""
Trello record operations: boards, lists, cards, labels, attachments, search.

Every function performs one (or, for nested retrieval, two) API calls and
returns model objects. Failures surface as CliError from the api layer.
"""

import os

from trello_cli.api import (
    _expect_list_response,
    _expect_object_response,
    delete,
    get,
    post,
    put,
)
from trello_cli.exceptions import CliError
from trello_cli.models import Attachment, Board, Card, Label, SearchResults, TrelloList

_BOARD_FIELDS = "id,name,closed,url"
_CARD_FIELDS = "id,name,desc,closed,url,idList,idBoard,labels"

# ---------------------------------------------------------------------------
# Boards
# ---------------------------------------------------------------------------


def get_boards():
    """Return the open boards of the authenticated member."""
    result = _expect_list_response(
        get("/1/members/me/boards", {"filter": "open", "fields": _BOARD_FIELDS}),
        "boards",
    )
    return [Board.from_api(b) for b in result]


def retrieve_nested(board):
    """Return a copy of *board* with its open lists and their open cards."""
    result = _expect_list_response(
        get(f"/1/boards/{board.id}/lists", {"cards": "open", "card_fields": _CARD_FIELDS}),
        "lists",
    )
    lists = [TrelloList.from_api(x) for x in result]
    return Board(id=board.id, name=board.name, closed=board.closed, url=board.url, lists=lists)


def create_board(name):
    result = post("/1/boards/", data={"name": name})
    return Board.from_api(_expect_object_response(result, "board"))


def update_board(board):
    result = put(f"/1/boards/{board.id}", data={"name": board.name, "closed": board.closed})
    return Board.from_api(_expect_object_response(result, "board"))


def open_board(board_id):
    result = put(f"/1/boards/{board_id}", data={"closed": False})
    return Board.from_api(_expect_object_response(result, "board"))


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------


def create_list(board_id, name):
    result = post("/1/lists", data={"name": name, "idBoard": board_id})
    return TrelloList.from_api(_expect_object_response(result, "list"))


def update_list(trello_list):
    result = put(
        f"/1/lists/{trello_list.id}",
        data={"name": trello_list.name, "closed": trello_list.closed},
    )
    return TrelloList.from_api(_expect_object_response(result, "list"))


def open_list(list_id):
    result = put(f"/1/lists/{list_id}", data={"closed": False})
    return TrelloList.from_api(_expect_object_response(result, "list"))


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------


def get_card(card_id):
    result = get(f"/1/cards/{card_id}", {"fields": _CARD_FIELDS})
    return Card.from_api(_expect_object_response(result, "card"))


def create_card(list_id, name, desc=""):
    data = {"idList": list_id, "name": name}
    if desc:
        data["desc"] = desc
    result = post("/1/cards", data=data)
    return Card.from_api(_expect_object_response(result, "card"))


def update_card(card):
    """Push a card's name, description, and closed flag. Returns the stored card."""
    result = put(
        f"/1/cards/{card.id}",
        data={"name": card.name, "desc": card.desc, "closed": card.closed},
    )
    return Card.from_api(_expect_object_response(result, "card"))


def open_card(card_id):
    result = put(f"/1/cards/{card_id}", data={"closed": False})
    return Card.from_api(_expect_object_response(result, "card"))


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------


def get_labels(board_id):
    result = _expect_list_response(get(f"/1/boards/{board_id}/labels"), "labels")
    return [Label.from_api(x) for x in result]


def apply_label(card_id, label_id):
    post(f"/1/cards/{card_id}/idLabels", data={"value": label_id})


def remove_label(card_id, label_id):
    delete(f"/1/cards/{card_id}/idLabels/{label_id}")


# ---------------------------------------------------------------------------
# Attachments
# ---------------------------------------------------------------------------


def get_attachments(card_id):
    result = _expect_list_response(get(f"/1/cards/{card_id}/attachments"), "attachments")
    return [Attachment.from_api(x) for x in result]


def upload_attachment(card_id, path):
    """Upload a local file as a card attachment."""
    if not os.path.isfile(path):
        raise CliError(f"[ERROR] Attachment file not found: {path}")
    result = post(
        f"/1/cards/{card_id}/attachments",
        data={"name": os.path.basename(path)},
        files=[("file", path)],
    )
    return Attachment.from_api(_expect_object_response(result, "attachment"))


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def search(query, partial=False):
    """Search cards and boards visible to the member."""
    result = get(
        "/1/search",
        {
            "query": query,
            "partial": "true" if partial else "false",
            "modelTypes": "cards,boards",
            "card_fields": _CARD_FIELDS,
            "board_fields": _BOARD_FIELDS,
        },
    )
    return SearchResults.from_api(_expect_object_response(result, "search"))
