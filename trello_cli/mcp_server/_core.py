"""Core helpers: client caching, _call dispatcher, response contract."""

from __future__ import annotations

from trello_cli import CliError, SetupError, TrelloClient
from trello_cli.config import CONTRACT_SCHEMA_VERSION, MCP_RESPONSE_MODE

_client: TrelloClient | None = None


def _get_client() -> TrelloClient:
    """Return a cached TrelloClient, creating one on first use."""
    global _client
    if _client is None:
        _client = TrelloClient()
    return _client


def _contract_error(message: str, error_type: str = "error") -> dict:
    """Return a stable MCP error envelope."""
    return {
        "ok": False,
        "schema_version": CONTRACT_SCHEMA_VERSION,
        "error": message,
        "error_detail": {
            "type": error_type,
            "message": message,
        },
    }


def _finalize_tool_result(result):
    """Attach contract metadata according to the configured response mode.

    Modes:
        - legacy (default): dicts gain ok/schema_version, lists pass through.
        - envelope: successes become {"ok", "schema_version", "data"}.
    """
    if isinstance(result, dict):
        if result.get("ok") is False:
            return result
        if MCP_RESPONSE_MODE == "envelope":
            data = {k: v for k, v in result.items() if k not in ("ok", "schema_version")}
            return {"ok": True, "schema_version": CONTRACT_SCHEMA_VERSION, "data": data}
        out = dict(result)
        out.setdefault("ok", True)
        out.setdefault("schema_version", CONTRACT_SCHEMA_VERSION)
        return out
    if MCP_RESPONSE_MODE == "envelope":
        return {"ok": True, "schema_version": CONTRACT_SCHEMA_VERSION, "data": result}
    return result


_ALLOWED_METHODS = {
    "list_boards",
    "get_board",
    "get_list",
    "get_card",
    "get_url",
    "search",
    "list_attachments",
    "create",
    "close",
    "reopen",
    "update_card",
    "set_label",
}


def _call(method_name: str, **kwargs):
    """Call a TrelloClient method, converting exceptions to error dicts."""
    if method_name not in _ALLOWED_METHODS:
        return _contract_error(f"Unknown method: {method_name}", "error")
    try:
        client = _get_client()
        return getattr(client, method_name)(**kwargs)
    except SetupError as e:
        return _contract_error(str(e), "setup")
    except CliError as e:
        return _contract_error(str(e), "error")
    except Exception as e:
        return _contract_error(f"Unexpected error: {e}", "error")
