from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from core.models import Credential

logger = logging.getLogger(__name__)


@dataclass
class Account:
    id: str
    email: str
    credits: int = 0
    has_cookies: bool = False
    is_expired: bool = False
    expires_in: str | None = None
    cookie_data: str | None = None
    bearer_token: str | None = None
    headers: dict[str, str] | None = None

    def credential(self) -> Credential:
        return Credential(cookie=self.cookie_data or "", bearer_token=self.bearer_token or "")


def account_to_dict(account: Account) -> dict[str, Any]:
    return {
        "id": account.id,
        "email": account.email,
        "credits": account.credits,
        "hasCookies": account.has_cookies,
        "isExpired": account.is_expired,
        "expiresIn": account.expires_in,
        "cookieData": account.cookie_data,
        "bearerToken": account.bearer_token,
        "headers": account.headers,
    }


def dict_to_account(data: dict[str, Any]) -> Account | None:
    account_id = str(data.get("id") or "").strip()
    if not account_id:
        return None

    headers = data.get("headers")
    if isinstance(headers, dict):
        headers = {str(key): str(value) for key, value in headers.items()}
    else:
        headers = None

    try:
        credits = int(data.get("credits") or 0)
    except (TypeError, ValueError):
        credits = 0

    return Account(
        id=account_id,
        email=str(data.get("email") or ""),
        credits=credits,
        has_cookies=bool(data.get("hasCookies", False)),
        is_expired=bool(data.get("isExpired", False)),
        expires_in=data.get("expiresIn"),
        cookie_data=data.get("cookieData"),
        bearer_token=data.get("bearerToken"),
        headers=headers,
    )


class AccountStore:
    """Flat JSON file holding the list of saved accounts."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> list[Account]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, TypeError, ValueError):
            logger.warning("Accounts file %s is unreadable, treating as empty", self.path)
            return []
        if not isinstance(raw, list):
            return []

        accounts: list[Account] = []
        for item in raw:
            if isinstance(item, dict):
                account = dict_to_account(item)
                if account is not None:
                    accounts.append(account)
        return accounts

    def _save(self, accounts: list[Account]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(f"{self.path.suffix}.tmp")
        tmp_path.write_text(
            json.dumps([account_to_dict(a) for a in accounts], ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        tmp_path.replace(self.path)

    def list(self) -> list[Account]:
        return self._load()

    def get(self, account_id: str) -> Account | None:
        for account in self._load():
            if account.id == account_id:
                return account
        return None

    def add(
        self,
        email: str,
        cookies: str,
        bearer_token: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> Account:
        accounts = self._load()
        account = Account(
            id=f"acc-{int(time.time() * 1000)}",
            email=email,
            has_cookies=bool(cookies),
            cookie_data=cookies,
            bearer_token=bearer_token,
            headers=dict(headers) if headers else None,
        )
        accounts.append(account)
        self._save(accounts)
        logger.info("Saved account %s (%s)", account.id, email)
        return account

    def delete(self, account_id: str) -> bool:
        accounts = self._load()
        remaining = [account for account in accounts if account.id != account_id]
        if len(remaining) == len(accounts):
            return False
        self._save(remaining)
        logger.info("Deleted account %s", account_id)
        return True
