"""
Typed models for Trello records and parsed card contents.
"""

from dataclasses import dataclass, field, replace

from trello_cli.exceptions import CliError


def _require_object(value, context):
    if isinstance(value, dict):
        return value
    raise CliError(
        f"[ERROR] Invalid {context} payload: expected object, got {type(value).__name__}."
    )


@dataclass(frozen=True)
class Label:
    id: str
    name: str = ""
    color: str | None = None

    @classmethod
    def from_api(cls, data):
        data = _require_object(data, "label")
        return cls(id=data["id"], name=data.get("name") or "", color=data.get("color"))

    @property
    def display_name(self):
        """Label name, falling back to its colour for unnamed labels."""
        return self.name or self.color or self.id

    def to_dict(self):
        return {"id": self.id, "name": self.name, "color": self.color}


@dataclass(frozen=True)
class Attachment:
    id: str
    name: str
    url: str

    @classmethod
    def from_api(cls, data):
        data = _require_object(data, "attachment")
        return cls(id=data["id"], name=data.get("name") or "", url=data.get("url") or "")

    def to_dict(self):
        return {"id": self.id, "name": self.name, "url": self.url}


@dataclass(frozen=True)
class Card:
    """A Trello card. ``labels`` is None when the API response omitted them."""

    id: str
    name: str
    desc: str = ""
    closed: bool = False
    url: str = ""
    id_list: str | None = None
    id_board: str | None = None
    labels: list[Label] | None = None

    @classmethod
    def from_api(cls, data):
        data = _require_object(data, "card")
        labels = data.get("labels")
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            desc=data.get("desc") or "",
            closed=bool(data.get("closed", False)),
            url=data.get("url") or "",
            id_list=data.get("idList"),
            id_board=data.get("idBoard"),
            labels=None if labels is None else [Label.from_api(x) for x in labels],
        )

    def with_contents(self, contents):
        """Return a copy carrying the name/description of *contents*."""
        return replace(self, name=contents.name, desc=contents.desc)

    def has_label(self, label_id):
        return any(lbl.id == label_id for lbl in self.labels or [])

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "desc": self.desc,
            "closed": self.closed,
            "url": self.url,
            "id_list": self.id_list,
            "id_board": self.id_board,
            "labels": None if self.labels is None else [x.to_dict() for x in self.labels],
        }


@dataclass(frozen=True)
class TrelloList:
    """A Trello list. ``cards`` is None until retrieved with the board."""

    id: str
    name: str
    closed: bool = False
    id_board: str | None = None
    cards: list[Card] | None = None

    @classmethod
    def from_api(cls, data):
        data = _require_object(data, "list")
        cards = data.get("cards")
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            closed=bool(data.get("closed", False)),
            id_board=data.get("idBoard"),
            cards=None if cards is None else [Card.from_api(c) for c in cards],
        )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "closed": self.closed,
            "id_board": self.id_board,
            "cards": None if self.cards is None else [c.to_dict() for c in self.cards],
        }


@dataclass(frozen=True)
class Board:
    """A Trello board. ``lists`` is None until nested data is retrieved."""

    id: str
    name: str
    closed: bool = False
    url: str = ""
    lists: list[TrelloList] | None = None

    @classmethod
    def from_api(cls, data):
        data = _require_object(data, "board")
        lists = data.get("lists")
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            closed=bool(data.get("closed", False)),
            url=data.get("url") or "",
            lists=None if lists is None else [TrelloList.from_api(x) for x in lists],
        )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "closed": self.closed,
            "url": self.url,
            "lists": None if self.lists is None else [x.to_dict() for x in self.lists],
        }


@dataclass(frozen=True)
class CardContents:
    """The user-editable part of a card, as parsed from the scratch document."""

    name: str
    desc: str


@dataclass(frozen=True)
class SearchResults:
    cards: list[Card] = field(default_factory=list)
    boards: list[Board] = field(default_factory=list)

    @classmethod
    def from_api(cls, data):
        data = _require_object(data, "search")
        return cls(
            cards=[Card.from_api(c) for c in data.get("cards") or []],
            boards=[Board.from_api(b) for b in data.get("boards") or []],
        )

    def to_dict(self):
        return {
            "cards": [c.to_dict() for c in self.cards],
            "boards": [b.to_dict() for b in self.boards],
        }
