"""
Whisk HTTP client.

Talks to the labs.google creative-tools backend the way a signed-in browser
tab does:
- Exchanges a session cookie for a bearer token
- Creates a workflow (project) to correlate a batch of calls
- Uploads reference images into that workflow
- Fires single image-generation calls
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from config import Config
from core.errors import (
    NetworkError,
    ParseError,
    SessionWarning,
    UploadError,
    UpstreamStatusError,
)
from core.extraction import parse_generation_body
from core.fingerprint import DEFAULT_HEADER_TABLES, HeaderTables
from core.models import SessionContext
from core.payloads import RequestBuilder
from core.references import ReferenceImage

logger = logging.getLogger(__name__)

TOKEN_KEYS = ("accessToken", "access_token", "token")
AUTH_TEST_INPUT = '{"json":null,"meta":{"values":["undefined"]}}'


def extract_session_token(data: Any) -> str | None:
    """Find the access token in a session-exchange response.

    Top-level keys are tried before the ``user`` object, each in TOKEN_KEYS order.
    """
    if not isinstance(data, dict):
        return None

    scopes = [data]
    user = data.get("user")
    if isinstance(user, dict):
        scopes.append(user)

    for scope in scopes:
        for key in TOKEN_KEYS:
            value = scope.get(key)
            if isinstance(value, str) and value:
                return value
    return None


def extract_workflow_id(data: Any) -> str | None:
    node = data
    for key in ("result", "data", "json", "result", "workflowId"):
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node if isinstance(node, str) and node else None


class WhiskClient:
    """Async client for the Whisk web endpoints."""

    def __init__(
        self,
        config: Config,
        *,
        header_tables: HeaderTables = DEFAULT_HEADER_TABLES,
    ) -> None:
        self.config = config
        self.builder = RequestBuilder(header_tables, project_url=config.project_url)
        self._session: aiohttp.ClientSession | None = None

    # -- session management --------------------------------------------------

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            # No pool cap: large batches never queue for a connection.
            self._session = aiohttp.ClientSession(connector=aiohttp.TCPConnector(limit=0))
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    def _timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.config.request_timeout)

    # -- cookie-authenticated calls ------------------------------------------

    async def test_auth(self, cookie: str) -> bool:
        """Return True if the cookie is accepted by the backend."""
        session = await self._get_session()
        try:
            async with session.get(
                self.config.auth_test_url,
                params={"input": AUTH_TEST_INPUT},
                headers=self.builder.cookie_headers(cookie),
                timeout=self._timeout(),
            ) as resp:
                return 200 <= resp.status < 300
        except (aiohttp.ClientError, asyncio.TimeoutError):
            logger.warning("Auth probe failed", exc_info=True)
            return False

    async def fetch_bearer_token(self, cookie: str) -> str | None:
        """
        Exchange the session cookie for an access token.

        Returns None when the response carries no token. A non-2xx status
        raises UpstreamStatusError; transport and body errors raise
        NetworkError / ParseError.
        """
        session = await self._get_session()
        try:
            async with session.get(
                self.config.session_url,
                headers=self.builder.cookie_headers(cookie),
                timeout=self._timeout(),
            ) as resp:
                if not 200 <= resp.status < 300:
                    logger.info("Session exchange returned HTTP %s", resp.status)
                    raise UpstreamStatusError(resp.status, await resp.text())
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NetworkError(str(exc) or type(exc).__name__) from exc
        except ValueError as exc:
            raise ParseError(f"JSON parse: {exc}") from exc

        return extract_session_token(data)

    async def create_workflow(self, cookie: str, session_id: str) -> str:
        """Create a workflow and return its id. Raises SessionWarning on any failure."""
        session = await self._get_session()
        try:
            async with session.post(
                self.config.workflow_url,
                json=self.builder.workflow_body(session_id),
                headers=self.builder.cookie_headers(cookie),
                timeout=self._timeout(),
            ) as resp:
                if not 200 <= resp.status < 300:
                    raise SessionWarning(f"HTTP {resp.status}")
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise SessionWarning(str(exc) or type(exc).__name__) from exc

        workflow_id = extract_workflow_id(data)
        if not workflow_id:
            raise SessionWarning("response has no workflowId")
        return workflow_id

    async def upload_reference_image(
        self,
        cookie: str,
        image: ReferenceImage,
        context: SessionContext,
    ) -> None:
        """Upload one reference image into the workflow. Raises UploadError on failure."""
        session = await self._get_session()
        try:
            async with session.post(
                self.config.upload_url,
                json=self.builder.upload_body(image.to_data_uri(), context),
                headers=self.builder.upload_headers(cookie, context.workflow_id),
                timeout=self._timeout(),
            ) as resp:
                if not 200 <= resp.status < 300:
                    raise UploadError(f"HTTP {resp.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise UploadError(str(exc) or type(exc).__name__) from exc

    # -- bearer-authenticated generation -------------------------------------

    async def generate_image(
        self,
        *,
        bearer_token: str,
        prompt: str,
        aspect_ratio: str,
        seed: int,
        context: SessionContext,
        extra_headers: Mapping[str, str] | None = None,
    ) -> str:
        """Run one generation call and return the base64 image payload."""
        session = await self._get_session()
        body = self.builder.generate_body(
            prompt=prompt,
            aspect_ratio=aspect_ratio,
            seed=seed,
            context=context,
        )
        try:
            async with session.post(
                self.config.generate_url,
                data=json.dumps(body),
                headers=self.builder.generate_headers(bearer_token, extra_headers),
                timeout=self._timeout(),
            ) as resp:
                status = resp.status
                text = await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NetworkError(f"HTTP error: {str(exc) or type(exc).__name__}") from exc
        except UnicodeDecodeError as exc:
            raise ParseError(f"Read error: {exc}") from exc

        if not 200 <= status < 300:
            raise UpstreamStatusError(status, text)

        return parse_generation_body(text)
