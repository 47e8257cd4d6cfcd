from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from core.errors import UploadError
from core.models import DiagnosticTrace, SessionContext
from core.references import load_reference

if TYPE_CHECKING:
    from whisk_client import WhiskClient

logger = logging.getLogger(__name__)


class ReferenceImageUploader:
    def __init__(self, client: WhiskClient) -> None:
        self.client = client

    async def upload_all(
        self,
        cookie: str,
        references: Sequence[str],
        context: SessionContext,
        trace: DiagnosticTrace,
    ) -> int:
        """Upload references one after another; returns how many succeeded."""
        uploaded = 0
        for position, reference in enumerate(references, start=1):
            try:
                image = await asyncio.to_thread(load_reference, reference)
                await self.client.upload_reference_image(cookie, image, context)
            except UploadError as exc:
                logger.warning("Reference #%d upload failed: %s", position, exc)
                trace.append(f"Ref #{position} upload failed: {exc}")
                continue

            uploaded += 1
            trace.append(f"Ref #{position} uploaded ({image.mime})")

        logger.info("Uploaded %d/%d reference images", uploaded, len(references))
        return uploaded
