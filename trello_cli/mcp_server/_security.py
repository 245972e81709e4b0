"""Security: injection detection, output tagging, input validation."""

from __future__ import annotations

import re

from trello_cli import CliError
from trello_cli.formatters import _CONTROL_RE

_INJECTION_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (
        re.compile(r"^(system|assistant|user)\s*:", re.IGNORECASE | re.MULTILINE),
        "role label",
    ),
    (
        re.compile(
            r"<\s*/?\s*(system|instruction|admin|prompt|tool_call|function_call)",
            re.IGNORECASE,
        ),
        "XML-like directive tag",
    ),
    (
        re.compile(
            r"ignore\s+(all\s+)?(previous|prior|above)\s+(instructions|prompts|rules)",
            re.IGNORECASE,
        ),
        "override directive",
    ),
]

_INPUT_LIMITS = {
    "name": 16_384,
    "desc": 16_384,
    "query": 1_000,
    "pattern": 500,
}

_USER_TEXT_FIELDS = ("name", "desc")


def _check_injection(text: str) -> list[str]:
    """Return descriptions of prompt-injection patterns found in *text*."""
    if len(text) < 10:
        return []
    return [desc for pattern, desc in _INJECTION_PATTERNS if pattern.search(text)]


def _tag_user_text(text: str | None) -> str | None:
    """Wrap user-authored text in [USER_DATA] boundary markers."""
    if text is None:
        return None
    return f"[USER_DATA]{text}[/USER_DATA]"


def _sanitize_card(card: dict) -> dict:
    """Tag card name/desc and add _safety_warnings if injection is detected."""
    out = dict(card)
    warnings: list[str] = []
    for field in _USER_TEXT_FIELDS:
        if isinstance(out.get(field), str):
            warnings.extend(f"{field}: {d}" for d in _check_injection(out[field]))
            out[field] = _tag_user_text(out[field])
    if warnings:
        out["_safety_warnings"] = warnings
    return out


def _sanitize_board(board: dict) -> dict:
    out = dict(board)
    if out.get("lists"):
        out["lists"] = [
            {**lst, "cards": [_sanitize_card(c) for c in lst.get("cards") or []]}
            for lst in out["lists"]
        ]
    return out


def _validate_input(text: str, field: str) -> str:
    """Strip control characters and enforce length limits.

    Raises CliError if text is not a string or exceeds the field limit.
    """
    if not isinstance(text, str):
        raise CliError(f"[ERROR] {field} must be a string")
    cleaned = _CONTROL_RE.sub("", text)
    limit = _INPUT_LIMITS.get(field, 10_000)
    if len(cleaned) > limit:
        raise CliError(f"[ERROR] {field} exceeds maximum length of {limit} characters")
    return cleaned
