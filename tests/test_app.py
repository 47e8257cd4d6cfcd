from __future__ import annotations

import asyncio
import json

import pytest

from app import build_parser, main


def test_generate_arguments() -> None:
    args = build_parser().parse_args(
        [
            "generate",
            "a castle",
            "--ratio",
            "9:16",
            "--count",
            "3",
            "--ref",
            "a.png",
            "--ref",
            "b.jpg",
            "--header",
            "x-browser-year: 2026",
        ]
    )

    assert args.prompt == "a castle"
    assert args.count == 3
    assert args.ref == ["a.png", "b.jpg"]
    assert args.header == [("x-browser-year", "2026")]


def test_malformed_header_is_rejected() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["generate", "p", "--header", "no-colon"])


def test_accounts_commands_round_trip(tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.setenv("WHISK_ACCOUNTS_PATH", str(tmp_path / "accounts.json"))

    assert asyncio.run(main(["accounts", "add", "me@example.com", '{"session_token": "tok"}'])) == 0
    added = json.loads(capsys.readouterr().out)
    assert added["cookieData"] == "tok"

    assert asyncio.run(main(["accounts", "list"])) == 0
    listed = json.loads(capsys.readouterr().out)
    assert [item["id"] for item in listed] == [added["id"]]

    assert asyncio.run(main(["accounts", "delete", added["id"]])) == 0
    assert json.loads(capsys.readouterr().out) == {"deleted": True}


def test_generate_with_unknown_account_fails(tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.setenv("WHISK_ACCOUNTS_PATH", str(tmp_path / "accounts.json"))

    assert asyncio.run(main(["generate", "p", "--account", "acc-missing"])) == 1
    result = json.loads(capsys.readouterr().out)
    assert result["success"] is False
    assert "Unknown account" in result["error"]
