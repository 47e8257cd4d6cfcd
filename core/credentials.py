from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.errors import CredentialError, GenerationError
from core.models import (
    Credential,
    DiagnosticTrace,
    is_valid_bearer_token,
    normalize_bearer_token,
)

if TYPE_CHECKING:
    from whisk_client import WhiskClient

logger = logging.getLogger(__name__)


class CredentialResolver:
    """Turns a cookie plus optional bearer token into a usable credential."""

    def __init__(self, client: WhiskClient) -> None:
        self.client = client

    async def resolve(self, credential: Credential, trace: DiagnosticTrace) -> Credential:
        token = normalize_bearer_token(credential.bearer_token)
        if is_valid_bearer_token(token):
            trace.append("Bearer token supplied")
        else:
            token = await self._fetch(credential.cookie, trace)

        if not is_valid_bearer_token(token):
            logger.warning("No usable bearer token for this batch")
            raise CredentialError(f"No valid bearer token. {trace.render()}")

        resolved = Credential(cookie=credential.cookie, bearer_token=token)
        trace.append(f"Token: {resolved.token_hint()}")
        logger.info("Bearer token resolved (%s)", resolved.token_hint())
        return resolved

    async def _fetch(self, cookie: str, trace: DiagnosticTrace) -> str:
        if not cookie:
            trace.append("No bearer token and no cookie, auto-fetch skipped")
            return ""

        trace.append("No bearer token, trying auto-fetch...")
        try:
            fetched = await self.client.fetch_bearer_token(cookie)
        except GenerationError as exc:
            trace.append(f"Auto-fetch error: {exc}")
            return ""

        token = normalize_bearer_token(fetched)
        if not token:
            trace.append("Auto-fetch: no token")
        elif not is_valid_bearer_token(token):
            trace.append("Auto-fetch: token is not a ya29. bearer")
        else:
            trace.append("Auto-fetch bearer OK")
        return token
