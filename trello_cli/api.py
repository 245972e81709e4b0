"""
HTTP request layer, URL building, and credential checks for trello-cli.
"""

import json
import mimetypes
import os
import re
import time
import urllib.error
import urllib.parse
import urllib.request
import uuid

from trello_cli import _log, config
from trello_cli.exceptions import CliError, HTTPError, SetupError

_RETRYABLE_HTTP_CODES = frozenset({429, 502, 503, 504})
_SECRET_PARAMS = frozenset({"key", "token"})


# ---------------------------------------------------------------------------
# Security helpers
# ---------------------------------------------------------------------------


def _sanitize_error(body, max_len=500):
    """Truncate and clean error body for safe display."""
    if not body:
        return ""
    cleaned = re.sub(r"<[^>]+>", "", body)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    if len(cleaned) > max_len:
        return cleaned[:max_len] + "... [truncated]"
    return cleaned


def _sanitize_url_for_log(url):
    """Mask the key/token query params in URLs before logging."""
    parsed = urllib.parse.urlsplit(url)
    if not parsed.query:
        return url
    pairs = urllib.parse.parse_qsl(parsed.query, keep_blank_values=True)
    masked = [(k, "***") if k.lower() in _SECRET_PARAMS else (k, v) for k, v in pairs]
    safe_query = urllib.parse.urlencode(masked, doseq=True)
    return urllib.parse.urlunsplit(
        (parsed.scheme, parsed.netloc, parsed.path, safe_query, parsed.fragment)
    )


# ---------------------------------------------------------------------------
# URL building
# ---------------------------------------------------------------------------


def trello_url(path, params=None):
    """Return the full API URL for *path* with auth params first.

    >>> trello_url("/1/boards/abc/", [("lists", "open")])  # doctest: +SKIP
    'https://api.trello.com/1/boards/abc/?key=...&token=...&lists=open'
    """
    auth = [("key", config.API_KEY), ("token", config.TOKEN)]
    extra = list(params.items()) if isinstance(params, dict) else list(params or [])
    return f"{config.BASE_URL}{path}?{urllib.parse.urlencode(auth + extra)}"


def _encode_multipart(fields, files):
    """Encode form fields and files as multipart/form-data.

    files: list of (field_name, file_path). Returns (body_bytes, content_type).
    """
    boundary = uuid.uuid4().hex
    chunks = []
    for name, value in fields.items():
        chunks.append(f"--{boundary}\r\n".encode())
        chunks.append(f'Content-Disposition: form-data; name="{name}"\r\n\r\n'.encode())
        chunks.append(f"{value}\r\n".encode())
    for name, path in files:
        filename = os.path.basename(path)
        mime = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        with open(path, "rb") as f:
            payload = f.read()
        chunks.append(f"--{boundary}\r\n".encode())
        chunks.append(
            f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'.encode()
        )
        chunks.append(f"Content-Type: {mime}\r\n\r\n".encode())
        chunks.append(payload)
        chunks.append(b"\r\n")
    chunks.append(f"--{boundary}--\r\n".encode())
    return b"".join(chunks), f"multipart/form-data; boundary={boundary}"


# ---------------------------------------------------------------------------
# HTTP request layer
# ---------------------------------------------------------------------------


def _error_envelope(message, status=None, request_id=None, retryable=None, detail=None):
    """Build a consistent CLI-safe HTTP error message."""
    meta = []
    if status is not None:
        meta.append(f"status={status}")
    if request_id:
        meta.append(f"request_id={request_id}")
    if retryable is not None:
        meta.append(f"retryable={'yes' if retryable else 'no'}")
    suffix = f" ({', '.join(meta)})" if meta else ""
    body = f"[ERROR] {message}{suffix}"
    if detail:
        body += f"\n{detail}"
    return body


def _parse_retry_after(headers):
    """Return Retry-After seconds from response headers, or None."""
    if not headers:
        return None
    value = headers.get("Retry-After")
    if value is None:
        return None
    try:
        secs = int(str(value).strip())
    except ValueError:
        return None
    return max(0, secs)


def _http_request(url, data=None, headers=None, method="GET", idempotent=False, body=None):
    """Make an HTTP request with standard error handling.
    Returns parsed JSON on success.
    Raises HTTPError for HTTP errors (caller handles specific codes).
    Raises CliError on network/timeout/parse errors."""
    if body is None and data is not None:
        body = json.dumps(data).encode("utf-8")
    request_id = (headers or {}).get("X-Request-Id")
    safe_url = _sanitize_url_for_log(url)
    max_attempts = 1 + max(0, config.HTTP_MAX_RETRIES if idempotent else 0)
    timeout = max(1, config.HTTP_TIMEOUT_SECONDS)
    last_timeout = False
    last_url_error = None

    for attempt in range(max_attempts):
        start = time.perf_counter()
        req = urllib.request.Request(url, data=body, headers=headers or {}, method=method)
        _log.http_event(
            phase="request",
            method=method,
            url=safe_url,
            attempt=attempt + 1,
            max_attempts=max_attempts,
            idempotent=idempotent,
            request_id=request_id,
        )
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                content_type = resp.headers.get("Content-Type", "")
                raw = resp.read(config.HTTP_MAX_RESPONSE_BYTES + 1)
                if len(raw) > config.HTTP_MAX_RESPONSE_BYTES:
                    raise CliError(
                        "[ERROR] Response too large from Trello API "
                        f"(>{config.HTTP_MAX_RESPONSE_BYTES} bytes)."
                    )
                _log.http_event(
                    phase="response",
                    method=method,
                    url=safe_url,
                    attempt=attempt + 1,
                    status=getattr(resp, "status", 200),
                    bytes=len(raw),
                    latency_ms=round((time.perf_counter() - start) * 1000, 2),
                    request_id=request_id,
                )
                try:
                    return json.loads(raw.decode("utf-8"))
                except (json.JSONDecodeError, UnicodeDecodeError):
                    if content_type and "json" not in content_type.lower():
                        raise CliError(
                            f"[ERROR] Unexpected Content-Type from server "
                            f"({content_type}). This may be a proxy or "
                            "network issue."
                        ) from None
                    raise CliError(
                        "[ERROR] Unexpected response from Trello API (not valid JSON)."
                    ) from None
        except urllib.error.HTTPError as e:
            error_body = (
                e.read(config.HTTP_MAX_RESPONSE_BYTES).decode("utf-8", errors="replace")
                if e.fp
                else ""
            )
            retryable = e.code in _RETRYABLE_HTTP_CODES
            can_retry = idempotent and attempt < max_attempts - 1 and retryable
            _log.http_event(
                phase="response",
                method=method,
                url=safe_url,
                attempt=attempt + 1,
                status=e.code,
                retryable=retryable,
                will_retry=can_retry,
                latency_ms=round((time.perf_counter() - start) * 1000, 2),
                request_id=request_id,
            )
            if can_retry:
                retry_after = _parse_retry_after(getattr(e, "headers", None))
                if retry_after is None:
                    retry_after = config.HTTP_RETRY_BASE_SECONDS * (2**attempt)
                time.sleep(retry_after)
                continue
            raise HTTPError(e.code, e.reason, error_body, headers=e.headers) from e
        except TimeoutError as e:
            last_timeout = True
            _log.http_event(
                phase="network_error",
                method=method,
                url=safe_url,
                attempt=attempt + 1,
                error="timeout",
                request_id=request_id,
            )
            if idempotent and attempt < max_attempts - 1:
                time.sleep(config.HTTP_RETRY_BASE_SECONDS * (2**attempt))
                continue
            raise CliError(
                _error_envelope(
                    f"Request timed out after {timeout} seconds. Is the Trello API reachable?",
                    request_id=request_id,
                    retryable=False,
                )
            ) from e
        except urllib.error.URLError as e:
            last_url_error = e.reason
            _log.http_event(
                phase="network_error",
                method=method,
                url=safe_url,
                attempt=attempt + 1,
                error=f"url_error: {e.reason}",
                request_id=request_id,
            )
            if idempotent and attempt < max_attempts - 1:
                time.sleep(config.HTTP_RETRY_BASE_SECONDS * (2**attempt))
                continue
            raise CliError(
                _error_envelope(
                    f"Connection failed: {e.reason}",
                    request_id=request_id,
                    retryable=False,
                )
            ) from e

    if last_timeout:
        raise CliError(
            _error_envelope(
                f"Request timed out after {timeout} seconds. Is the Trello API reachable?",
                request_id=request_id,
                retryable=False,
            )
        )
    if last_url_error is not None:
        raise CliError(
            _error_envelope(
                f"Connection failed: {last_url_error}",
                request_id=request_id,
                retryable=False,
            )
        )
    raise CliError(_error_envelope("Request failed.", request_id=request_id))


def trello_request(method, path, params=None, data=None, files=None):
    """Make an authenticated Trello API call and return the decoded JSON.

    GET requests are treated as idempotent and retried on transient
    failures; mutations are sent once.
    """
    url = trello_url(path, params)
    headers = {
        "Accept": "application/json",
        "X-Request-Id": str(uuid.uuid4()),
    }
    body = None
    if files:
        body, headers["Content-Type"] = _encode_multipart(data or {}, files)
        data = None
    elif data is not None:
        headers["Content-Type"] = "application/json"
    try:
        return _http_request(
            url, data, headers, method, idempotent=(method == "GET"), body=body
        )
    except HTTPError as e:
        if e.code == 401:
            raise SetupError(
                "[TOKEN_EXPIRED] Trello rejected the API key or token. "
                "Check TRELLO_API_KEY and TRELLO_TOKEN in .env."
            ) from e
        if e.code == 429:
            raise CliError(
                "[ERROR] Rate limit reached (Trello allows ~100 req/10s per token). "
                "Wait a few seconds and retry."
            ) from e
        raise CliError(
            _error_envelope(
                f"HTTP {e.code}: {e.reason}",
                status=e.code,
                request_id=headers["X-Request-Id"],
                retryable=e.code in _RETRYABLE_HTTP_CODES,
                detail=_sanitize_error(e.body),
            )
        ) from e


def get(path, params=None):
    return trello_request("GET", path, params)


def post(path, params=None, data=None, files=None):
    return trello_request("POST", path, params, data, files)


def put(path, params=None, data=None):
    return trello_request("PUT", path, params, data)


def delete(path, params=None):
    return trello_request("DELETE", path, params)


def _expect_object_response(result, operation):
    """Ensure API helpers only return JSON objects (dict)."""
    if isinstance(result, dict):
        return result
    raise CliError(
        f"[ERROR] Unexpected {operation} response shape: "
        f"expected JSON object, got {type(result).__name__}."
    )


def _expect_list_response(result, operation):
    """Ensure collection endpoints return JSON arrays."""
    if isinstance(result, list):
        return result
    raise CliError(
        f"[ERROR] Unexpected {operation} response shape: "
        f"expected JSON array, got {type(result).__name__}."
    )


# ---------------------------------------------------------------------------
# Credential check
# ---------------------------------------------------------------------------


def _check_token():
    """Fail fast when the API key or token is not configured."""
    if not config.API_KEY or not config.TOKEN:
        raise SetupError(
            "[SETUP_NEEDED] No Trello credentials found.\n"
            "  Set TRELLO_API_KEY and TRELLO_TOKEN in .env or the environment."
        )
