"""
Text form of a card used by the interactive editor.

    Card name
    =========
    Free-form description,
    possibly spanning several lines.
"""

from trello_cli.exceptions import ContentParseError
from trello_cli.models import CardContents

NAME_DELIMITER = "="


def render_card(card):
    """Render a card (or CardContents) as editable text."""
    underline = NAME_DELIMITER * max(len(card.name), 1)
    return f"{card.name}\n{underline}\n{card.desc}"


def parse_card_contents(text):
    """Parse editable text back into CardContents.

    Raises ContentParseError when the header or its delimiter line is
    missing, or the name is empty.
    """
    lines = text.replace("\r\n", "\n").split("\n", 2)
    if len(lines) < 2:
        raise ContentParseError(
            f"[ERROR] Unable to parse card: missing name delimiter line ('{NAME_DELIMITER * 4}')."
        )
    name, delimiter = lines[0].strip(), lines[1].strip()
    if not delimiter or delimiter.strip(NAME_DELIMITER):
        raise ContentParseError(
            f"[ERROR] Unable to parse card: second line must only contain '{NAME_DELIMITER}'."
        )
    if not name:
        raise ContentParseError("[ERROR] Unable to parse card: name cannot be empty.")
    desc = lines[2] if len(lines) > 2 else ""
    return CardContents(name=name, desc=desc)
