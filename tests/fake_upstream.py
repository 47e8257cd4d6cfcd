from __future__ import annotations

import asyncio
import base64
import contextlib
import json
from collections import defaultdict
from collections.abc import AsyncIterator, Callable
from io import BytesIO
from typing import Any

from aiohttp import web
from aiohttp.test_utils import TestServer
from PIL import Image

from config import Config

VALID_TOKEN = "ya29.a0AfB_fake_token_value_123456"
WORKFLOW_ID = "wf-0123456789abcdef"

GenerateResponder = Callable[[dict[str, Any]], tuple[int, str]]


def png_bytes(width: int = 8, height: int = 4, color: tuple[int, int, int] = (200, 30, 30)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def png_b64(width: int = 8, height: int = 4) -> str:
    return base64.b64encode(png_bytes(width, height)).decode("ascii")


def panel_response(encoded: str) -> str:
    return json.dumps({"imagePanels": [{"generatedImages": [{"encodedImage": encoded}]}]})


class FakeUpstream:
    """In-process stand-in for the four labs.google endpoints."""

    def __init__(self) -> None:
        self.session_response: tuple[int, Any] = (200, {"accessToken": VALID_TOKEN})
        self.auth_status = 200
        self.workflow_response: tuple[int, Any] = (
            200,
            {"result": {"data": {"json": {"result": {"workflowId": WORKFLOW_ID}}}}},
        )
        self.upload_status = 200
        self.generate_delay = 0.0
        self.generate_responder: GenerateResponder = lambda body: (200, panel_response(png_b64()))
        self.requests: dict[str, list[dict[str, Any]]] = defaultdict(list)

    async def _record(self, name: str, request: web.Request) -> dict[str, Any]:
        text = await request.text()
        entry = {
            "headers": request.headers.copy(),
            "query": dict(request.query),
            "body": json.loads(text) if text else None,
        }
        self.requests[name].append(entry)
        return entry

    async def _session(self, request: web.Request) -> web.Response:
        await self._record("session", request)
        status, payload = self.session_response
        return web.json_response(payload, status=status)

    async def _auth(self, request: web.Request) -> web.Response:
        await self._record("auth", request)
        return web.json_response({}, status=self.auth_status)

    async def _workflow(self, request: web.Request) -> web.Response:
        await self._record("workflow", request)
        status, payload = self.workflow_response
        return web.json_response(payload, status=status)

    async def _upload(self, request: web.Request) -> web.Response:
        await self._record("upload", request)
        return web.json_response({}, status=self.upload_status)

    async def _generate(self, request: web.Request) -> web.Response:
        entry = await self._record("generate", request)
        if self.generate_delay:
            await asyncio.sleep(self.generate_delay)
        status, text = self.generate_responder(entry["body"])
        return web.Response(status=status, text=text, content_type="application/json")

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/session", self._session)
        app.router.add_get("/auth", self._auth)
        app.router.add_post("/workflow", self._workflow)
        app.router.add_post("/upload", self._upload)
        app.router.add_post("/generate", self._generate)
        return app

    @staticmethod
    def config_for(server: TestServer, **overrides: Any) -> Config:
        values: dict[str, Any] = {
            "session_url": str(server.make_url("/session")),
            "auth_test_url": str(server.make_url("/auth")),
            "workflow_url": str(server.make_url("/workflow")),
            "upload_url": str(server.make_url("/upload")),
            "generate_url": str(server.make_url("/generate")),
            "project_url": "https://labs.google/fx/tools/whisk/project",
            "request_timeout": 5.0,
            "default_save_folder": "",
        }
        values.update(overrides)
        return Config(**values)


@contextlib.asynccontextmanager
async def serve(upstream: FakeUpstream, **overrides: Any) -> AsyncIterator[Config]:
    async with TestServer(upstream.app()) as server:
        yield upstream.config_for(server, **overrides)
