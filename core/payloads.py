from __future__ import annotations

import time
import uuid
from collections.abc import Mapping
from datetime import date
from typing import Any

from core.fingerprint import DEFAULT_HEADER_TABLES, HeaderTables
from core.models import SessionContext, normalize_bearer_token

TOOL_NAME = "BACKBONE"
IMAGE_MODEL = "IMAGEN_3_5"
BOARD_MEDIA_CATEGORY = "MEDIA_CATEGORY_BOARD"
SUBJECT_MEDIA_CATEGORY = "MEDIA_CATEGORY_SUBJECT"
REFERENCE_CAPTION = "Reference image for Whisk"

DEFAULT_ASPECT_RATIO = "IMAGE_ASPECT_RATIO_LANDSCAPE"
ASPECT_RATIOS = {
    "16:9": "IMAGE_ASPECT_RATIO_LANDSCAPE",
    "9:16": "IMAGE_ASPECT_RATIO_PORTRAIT",
    "1:1": "IMAGE_ASPECT_RATIO_SQUARE",
}


def map_aspect_ratio(ratio: str | None) -> str:
    return ASPECT_RATIOS.get((ratio or "").strip(), DEFAULT_ASPECT_RATIO)


def session_id_now(now: float | None = None) -> str:
    millis = int((time.time() if now is None else now) * 1000)
    return f";{millis}"


def fallback_workflow_id() -> str:
    return str(uuid.uuid4())


def workflow_name(today: date | None = None) -> str:
    day = today or date.today()
    return f"Whisk: {day.month}/{day.day}/{day.year % 100}"


class RequestBuilder:
    """Builds request bodies and header sets for the four upstream calls."""

    def __init__(
        self,
        tables: HeaderTables = DEFAULT_HEADER_TABLES,
        *,
        project_url: str = "https://labs.google/fx/tools/whisk/project",
    ) -> None:
        self.tables = tables
        self.project_url = project_url.rstrip("/")

    # -- headers -------------------------------------------------------------

    def cookie_headers(self, cookie: str, *, referer: str | None = None) -> dict[str, str]:
        headers = dict(self.tables.browser)
        headers.update(self.tables.identity)
        headers["Cookie"] = cookie
        headers["Content-Type"] = "application/json"
        if referer:
            headers["Referer"] = referer
        return headers

    def upload_headers(self, cookie: str, workflow_id: str) -> dict[str, str]:
        return self.cookie_headers(cookie, referer=f"{self.project_url}/{workflow_id}")

    def generate_headers(
        self,
        bearer_token: str,
        extra_headers: Mapping[str, str] | None = None,
    ) -> dict[str, str]:
        headers = dict(self.tables.browser)
        headers.update(self.tables.generate)
        headers["Authorization"] = f"Bearer {normalize_bearer_token(bearer_token)}"
        if extra_headers is not None:
            headers.update({str(key): str(value) for key, value in extra_headers.items()})
        else:
            headers.update(self.tables.identity)
        return headers

    # -- bodies --------------------------------------------------------------

    @staticmethod
    def workflow_body(session_id: str, *, today: date | None = None) -> dict[str, Any]:
        return {
            "json": {
                "clientContext": {
                    "tool": TOOL_NAME,
                    "sessionId": session_id,
                },
                "mediaGenerationIdsToCopy": [],
                "workflowMetadata": {"workflowName": workflow_name(today)},
            }
        }

    @staticmethod
    def upload_body(data_uri: str, context: SessionContext) -> dict[str, Any]:
        return {
            "json": {
                "clientContext": {
                    "workflowId": context.workflow_id,
                    "sessionId": context.session_id,
                },
                "uploadMediaInput": {
                    "mediaCategory": SUBJECT_MEDIA_CATEGORY,
                    "rawBytes": data_uri,
                    "caption": REFERENCE_CAPTION,
                },
            }
        }

    @staticmethod
    def generate_body(
        *,
        prompt: str,
        aspect_ratio: str,
        seed: int,
        context: SessionContext,
    ) -> dict[str, Any]:
        return {
            "clientContext": {
                "workflowId": context.workflow_id,
                "tool": TOOL_NAME,
                "sessionId": context.session_id,
            },
            "imageModelSettings": {
                "imageModel": IMAGE_MODEL,
                "aspectRatio": aspect_ratio,
            },
            "seed": seed,
            "prompt": prompt,
            "mediaCategory": BOARD_MEDIA_CATEGORY,
        }
