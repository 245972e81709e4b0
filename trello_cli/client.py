"""
TrelloClient — public Python API for browsing and editing Trello records.

Single entry point for the CLI commands and the MCP server.
All methods except select() return flat dicts suitable for JSON serialization.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from trello_cli import _log, config, entities, find
from trello_cli.api import _check_token
from trello_cli.editor import edit_card
from trello_cli.exceptions import CliError


def _require(value, what):
    if value is None:
        raise CliError(f"[ERROR] Unable to find {what}.")
    return value


class TrelloClient:
    """Programmatic access to boards, lists, cards, labels, and attachments.

    Records are addressed by name patterns (board -> list -> card) exactly
    like the CLI; see trello_cli.find for the matching rules.
    """

    def __init__(self, validate_token: bool = True):
        if validate_token:
            _check_token()

    # -- lookup ------------------------------------------------------------

    def select(
        self,
        board: str | None = None,
        list_name: str | None = None,
        card: str | None = None,
        ignore_case: bool = False,
    ) -> find.Selection:
        return find.resolve(board, list_name, card, ignore_case)

    def list_boards(self) -> list[dict[str, Any]]:
        """Return the open boards of the current member."""
        return [b.to_dict() for b in entities.get_boards()]

    def get_board(
        self, board: str, ignore_case: bool = False, label_filter: str | None = None
    ) -> dict[str, Any]:
        """Return a board with its open lists and cards."""
        found = _require(self.select(board, ignore_case=ignore_case).board, "board")
        if label_filter:
            found = find.filter_board(found, label_filter, ignore_case)
        return found.to_dict()

    def get_list(
        self,
        board: str,
        list_name: str,
        ignore_case: bool = False,
        label_filter: str | None = None,
    ) -> dict[str, Any]:
        found = _require(self.select(board, list_name, ignore_case=ignore_case).list, "list")
        if label_filter:
            found = find.filter_list(found, label_filter, ignore_case)
        return found.to_dict()

    def get_card(
        self, board: str, list_name: str, card: str, ignore_case: bool = False
    ) -> dict[str, Any]:
        found = _require(self.select(board, list_name, card, ignore_case).card, "card")
        return found.to_dict()

    def get_url(
        self,
        board: str,
        list_name: str | None = None,
        card: str | None = None,
        ignore_case: bool = False,
    ) -> dict[str, Any]:
        """Return the web URL of the selection. Lists have none; their board's is used."""
        sel = self.select(board, list_name, card, ignore_case)
        if sel.card is not None:
            return {"type": "card", "id": sel.card.id, "url": sel.card.url}
        found = _require(sel.board, "board")
        kind = "list" if sel.list is not None else "board"
        return {"type": kind, "id": found.id, "url": found.url}

    def search(self, query: str, partial: bool = False) -> dict[str, Any]:
        if not query.strip():
            raise CliError("[ERROR] Search query cannot be empty.")
        return entities.search(query, partial).to_dict()

    # -- mutations ---------------------------------------------------------

    def create(
        self,
        name: str,
        board: str | None = None,
        list_name: str | None = None,
        ignore_case: bool = False,
    ) -> dict[str, Any]:
        """Create a card in the selected list, a list on the selected board,
        or a board when nothing is selected."""
        name = (name or "").strip()
        if not name:
            raise CliError("[ERROR] Name cannot be empty.")
        sel = self.select(board, list_name, ignore_case=ignore_case)
        if sel.list is not None:
            created = entities.create_card(sel.list.id, name)
            return {"ok": True, "type": "card", **created.to_dict()}
        if sel.board is not None:
            created_list = entities.create_list(sel.board.id, name)
            return {"ok": True, "type": "list", **created_list.to_dict()}
        created_board = entities.create_board(name)
        return {"ok": True, "type": "board", **created_board.to_dict()}

    def close(
        self,
        board: str,
        list_name: str | None = None,
        card: str | None = None,
        ignore_case: bool = False,
    ) -> dict[str, Any]:
        """Close the deepest selected record.

        Closing a list or card also returns the refreshed parent board.
        """
        sel = self.select(board, list_name, card, ignore_case)
        found_board = _require(sel.board, "board")
        if sel.card is not None:
            closed = entities.update_card(replace(sel.card, closed=True))
            kind, record = "card", closed
        elif sel.list is not None:
            closed_list = entities.update_list(replace(sel.list, closed=True))
            kind, record = "list", closed_list
        else:
            closed_board = entities.update_board(replace(found_board, closed=True))
            return {"ok": True, "type": "board", "id": closed_board.id, "name": closed_board.name}
        refreshed = entities.retrieve_nested(found_board)
        return {
            "ok": True,
            "type": kind,
            "id": record.id,
            "name": record.name,
            "board": refreshed.to_dict(),
        }

    def reopen(self, object_type: str, object_id: str) -> dict[str, Any]:
        """Reopen a closed board, list, or card by ID."""
        openers = {
            "board": entities.open_board,
            "list": entities.open_list,
            "card": entities.open_card,
        }
        if object_type not in openers:
            valid = ", ".join(config.OBJECT_TYPES)
            raise CliError(f"[ERROR] Unknown object type '{object_type}'. Valid: {valid}")
        record = openers[object_type](object_id)
        return {"ok": True, "type": object_type, "id": record.id, "name": record.name}

    def update_card(
        self,
        board: str,
        list_name: str,
        card: str,
        name: str | None = None,
        desc: str | None = None,
        ignore_case: bool = False,
    ) -> dict[str, Any]:
        """Non-interactive name/description update."""
        if name is None and desc is None:
            raise CliError("[ERROR] Nothing to update: pass a name and/or a description.")
        if name is not None and not name.strip():
            raise CliError("[ERROR] Card name cannot be empty.")
        found = _require(self.select(board, list_name, card, ignore_case).card, "card")
        changed = replace(
            found,
            name=found.name if name is None else name.strip(),
            desc=found.desc if desc is None else desc,
        )
        return {"ok": True, **entities.update_card(changed).to_dict()}

    def edit_card(
        self, board: str, list_name: str, card: str, ignore_case: bool = False
    ) -> dict[str, Any]:
        """Open the interactive editor on a card (see trello_cli.editor)."""
        found = _require(self.select(board, list_name, card, ignore_case).card, "card")
        return self.edit_selected(found)

    def edit_card_by_id(self, card_id: str) -> dict[str, Any]:
        return self.edit_selected(entities.get_card(card_id))

    def edit_selected(self, card) -> dict[str, Any]:
        outcome = edit_card(card)
        if outcome is None:
            _log.debug("edit_no_changes", card_id=card.id)
            return {"ok": True, "updated": False, "card": card.to_dict()}
        return {"ok": True, "updated": True, "card": outcome.card.to_dict()}

    # -- labels ------------------------------------------------------------

    def set_label(
        self,
        board: str,
        list_name: str,
        card: str,
        label: str,
        delete: bool = False,
        ignore_case: bool = False,
    ) -> dict[str, Any]:
        """Apply (or with delete=True remove) a board label on a card.

        Result ``action`` is "applied", "removed", or "unchanged".
        """
        sel = self.select(board, list_name, card, ignore_case)
        found_board = _require(sel.board, "board")
        found_card = _require(sel.card, "card")
        if found_card.labels is None:
            raise CliError("[ERROR] Unable to retrieve card labels.")
        labels = entities.get_labels(found_board.id)
        target = find.get_object_by_name(labels, label, ignore_case)
        has_label = found_card.has_label(target.id)

        if delete and has_label:
            entities.remove_label(found_card.id, target.id)
            action = "removed"
        elif not delete and not has_label:
            entities.apply_label(found_card.id, target.id)
            action = "applied"
        else:
            action = "unchanged"
        return {
            "ok": True,
            "action": action,
            "present": not delete,
            "label": target.to_dict(),
            "card": {"id": found_card.id, "name": found_card.name},
        }

    # -- attachments -------------------------------------------------------

    def list_attachments(
        self, board: str, list_name: str, card: str, ignore_case: bool = False
    ) -> list[dict[str, Any]]:
        found = _require(self.select(board, list_name, card, ignore_case).card, "card")
        return [a.to_dict() for a in entities.get_attachments(found.id)]

    def attach_file(
        self, board: str, list_name: str, card: str, path: str, ignore_case: bool = False
    ) -> dict[str, Any]:
        found = _require(self.select(board, list_name, card, ignore_case).card, "card")
        attachment = entities.upload_attachment(found.id, path)
        return {"ok": True, "card_id": found.id, **attachment.to_dict()}
