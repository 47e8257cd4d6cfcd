from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from pathlib import Path

from core.errors import PersistError
from core.image_utils import inline_data_uri, output_filename, save_payload
from core.models import (
    BatchResult,
    DiagnosticTrace,
    GenerationFailure,
    GenerationOutcome,
    GenerationSuccess,
    SavedImage,
)

logger = logging.getLogger(__name__)

NO_IMAGES_MARKER = "No images generated"


class ResultAggregator:
    """
    Folds joined generation outcomes into a BatchResult.

    Only the first failure is narrated into the trace; the rest are counted.
    Must be called after every task has finished, since it is the only place
    that touches the trace during the generation phase.
    """

    def __init__(
        self,
        *,
        file_prefix: str = "whisk",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.file_prefix = file_prefix
        self.clock = clock

    async def _persist(
        self,
        outcome: GenerationSuccess,
        folder: Path,
        timestamp: int,
        trace: DiagnosticTrace,
    ) -> str | None:
        path = folder / output_filename(self.file_prefix, timestamp, outcome.index)
        try:
            await asyncio.to_thread(save_payload, outcome.payload, path)
        except PersistError as exc:
            logger.warning("Could not save image #%d: %s", outcome.index + 1, exc)
            trace.append(f"Save failed #{outcome.index + 1}: {exc}")
            return None
        return str(path)

    async def aggregate(
        self,
        outcomes: Sequence[GenerationOutcome],
        *,
        project_link: str,
        trace: DiagnosticTrace,
        save_folder: str | None = None,
    ) -> BatchResult:
        timestamp = int(self.clock())
        folder = Path(save_folder) if save_folder else None
        images: list[SavedImage] = []
        failed = 0

        for outcome in outcomes:
            if isinstance(outcome, GenerationFailure):
                if failed == 0:
                    trace.append(f"Error #{outcome.index + 1}: {outcome.detail}")
                failed += 1
                continue

            saved_path = None
            if folder is not None:
                saved_path = await self._persist(outcome, folder, timestamp, trace)
            images.append(
                SavedImage(
                    saved_path=saved_path,
                    encoded_image=saved_path or inline_data_uri(outcome.payload),
                )
            )

        if failed > 1:
            logger.warning("%d more generations failed without narration", failed - 1)
        trace.append(f"API done: {len(images)}/{len(outcomes)} images")

        if not images:
            trace.append(NO_IMAGES_MARKER)
            diagnostics = trace.render()
            return BatchResult(
                success=False,
                project_link=project_link,
                diagnostics=diagnostics,
                error=f"{NO_IMAGES_MARKER} | {diagnostics}",
            )

        return BatchResult(
            success=True,
            images=images,
            project_link=project_link,
            diagnostics=trace.render(),
        )
