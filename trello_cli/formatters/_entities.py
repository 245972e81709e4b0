"""Text formatters for boards, lists, cards, attachments, and search results.

All formatters accept the flat dicts returned by TrelloClient.
"""

from trello_cli.formatters._table import _header, _sanitize_str, _table, _trunc


def _label_tags(card):
    names = [lbl.get("name") or lbl.get("color") or "" for lbl in card.get("labels") or []]
    return " ".join(f"[{_sanitize_str(n)}]" for n in names if n)


def _card_line(card):
    line = f"* {_sanitize_str(card.get('name', ''))}"
    tags = _label_tags(card)
    return f"{line} {tags}" if tags else line


def format_boards_table(boards):
    """Format the open-boards overview."""
    lines = [_header("Open Boards"), ""]
    if not boards:
        lines.append("No open boards.")
    for b in boards:
        lines.append(f"* {_sanitize_str(b.get('name', ''))}")
    return "\n".join(lines)


def format_list(trello_list):
    lines = [_header(trello_list.get("name", ""), "-")]
    for card in trello_list.get("cards") or []:
        lines.append(_card_line(card))
    return "\n".join(lines)


def format_board(board):
    """Render a board with its lists and cards."""
    sections = [_header(board.get("name", ""))]
    for trello_list in board.get("lists") or []:
        sections.append(format_list(trello_list))
    return "\n\n".join(sections)


def format_card(card):
    """Render a card the same way the editor presents it."""
    lines = [_header(card.get("name", ""))]
    tags = _label_tags(card)
    if tags:
        lines.append(tags)
    if card.get("desc"):
        lines.append(_sanitize_str(card["desc"]))
    return "\n".join(lines)


def format_attachments(attachments):
    """One attachment URL per line."""
    return "\n".join(a.get("url", "") for a in attachments)


def format_attachment(attachment):
    return f"{_sanitize_str(attachment.get('name', ''))}\n{attachment.get('url', '')}"


def format_url(result):
    return result.get("url", "")


def format_search_results(results):
    """Format cards (with a closed marker) and boards found by search."""
    out = []
    cards = results.get("cards") or []
    if cards:
        rows = [
            (
                _trunc(c.get("name", ""), 40),
                "[Closed]" if c.get("closed") else "",
                c.get("id", ""),
            )
            for c in cards
        ]
        out.append("Cards\n" + _table([("Name", 40), ("State", 9), ("ID", 0)], rows))
    boards = results.get("boards") or []
    if boards:
        rows = [(_trunc(b.get("name", ""), 40), b.get("id", "")) for b in boards]
        out.append("Boards\n" + _table([("Name", 40), ("ID", 0)], rows))
    if not out:
        return "No results."
    return "\n\n".join(out)
