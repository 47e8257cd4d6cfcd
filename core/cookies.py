from __future__ import annotations

import json
from typing import Any

SESSION_COOKIE_NAME = "__Secure-next-auth.session-token"
_FLAT_TOKEN_KEYS = ("session_cookie", "session_token", SESSION_COOKIE_NAME)


def _token_from_cookie_map(raw: Any) -> str | None:
    if not isinstance(raw, dict):
        return None
    value = raw.get(SESSION_COOKIE_NAME)
    return value if isinstance(value, str) else None


def _token_from_json(data: Any) -> str | None:
    if isinstance(data, dict):
        http = data.get("http")
        if isinstance(http, dict):
            token = _token_from_cookie_map(http.get("cookies"))
            if token:
                return token
        token = _token_from_cookie_map(data.get("cookies"))
        if token:
            return token
        for key in _FLAT_TOKEN_KEYS:
            value = data.get(key)
            if isinstance(value, str):
                return value
        return None

    if isinstance(data, list):
        for item in data:
            if isinstance(item, dict) and item.get("name") == SESSION_COOKIE_NAME:
                value = item.get("value")
                if isinstance(value, str):
                    return value
    return None


def parse_cookie_input(raw: str | None) -> str:
    """
    Normalize whatever the user pasted as a cookie.

    Accepts a bare session token, a raw Cookie header, a JSON export from a
    cookie editor (object or array form). Returns the session token when one
    can be located, otherwise the trimmed input unchanged.
    """
    text = (raw or "").strip()
    if not text:
        return ""
    if text.startswith("eyJ"):
        return text

    if text[0] in "[{":
        try:
            data = json.loads(text)
        except ValueError:
            return text
        token = _token_from_json(data)
        if token:
            return token

    return text


def cookie_header(raw: str | None) -> str:
    value = parse_cookie_input(raw)
    if not value or "=" in value:
        return value
    return f"{SESSION_COOKIE_NAME}={value}"
