from __future__ import annotations

import json

from core.cookies import SESSION_COOKIE_NAME, cookie_header, parse_cookie_input


def test_parse_cookie_input_passthrough_and_bare_token() -> None:
    assert parse_cookie_input("   ") == ""
    assert parse_cookie_input(None) == ""
    assert parse_cookie_input(" eyJhbGciOi.abc ") == "eyJhbGciOi.abc"
    assert parse_cookie_input("a=1; b=2") == "a=1; b=2"
    assert parse_cookie_input("{not json") == "{not json"


def test_parse_cookie_input_json_exports() -> None:
    nested = json.dumps({"http": {"cookies": {SESSION_COOKIE_NAME: "tok-http"}}})
    flat_map = json.dumps({"cookies": {SESSION_COOKIE_NAME: "tok-map"}})
    flat_key = json.dumps({"session_token": "tok-flat"})
    array = json.dumps([{"name": "other", "value": "x"}, {"name": SESSION_COOKIE_NAME, "value": "tok-arr"}])

    assert parse_cookie_input(nested) == "tok-http"
    assert parse_cookie_input(flat_map) == "tok-map"
    assert parse_cookie_input(flat_key) == "tok-flat"
    assert parse_cookie_input(array) == "tok-arr"


def test_parse_cookie_input_json_without_token_returns_input() -> None:
    raw = json.dumps({"unrelated": True})
    assert parse_cookie_input(raw) == raw


def test_cookie_header_wraps_bare_tokens_only() -> None:
    assert cookie_header("tok") == f"{SESSION_COOKIE_NAME}=tok"
    assert cookie_header("a=1; b=2") == "a=1; b=2"
    assert cookie_header("") == ""
