"""trello-cli — CLI tool for browsing and editing Trello boards, lists, and cards."""

from trello_cli.client import TrelloClient
from trello_cli.config import VERSION
from trello_cli.editor import EditSession, SyncOutcome, edit_card
from trello_cli.exceptions import CliError, ContentParseError, SetupError
from trello_cli.models import Attachment, Board, Card, CardContents, Label, TrelloList

__all__ = [
    "VERSION",
    "Attachment",
    "Board",
    "Card",
    "CardContents",
    "CliError",
    "ContentParseError",
    "EditSession",
    "Label",
    "SetupError",
    "SyncOutcome",
    "TrelloClient",
    "TrelloList",
    "edit_card",
]
