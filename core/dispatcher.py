from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

from core.errors import GenerationError
from core.models import (
    Credential,
    GenerationFailure,
    GenerationOutcome,
    GenerationRequest,
    GenerationSuccess,
    GenerationTask,
    SessionContext,
)
from core.payloads import map_aspect_ratio

if TYPE_CHECKING:
    from whisk_client import WhiskClient

logger = logging.getLogger(__name__)

SEED_BASE_MIN = 100_000
SEED_BASE_MAX = 999_999


def plan_tasks(count: int, rng: random.Random) -> list[GenerationTask]:
    """One task per index, seeds consecutive from a single random base."""
    if count < 1:
        return []
    base = rng.randrange(SEED_BASE_MIN, SEED_BASE_MAX)
    return [GenerationTask(index=index, seed=base + index) for index in range(count)]


class GenerationDispatcher:
    """Fans a batch out into concurrent generation calls and joins them all."""

    def __init__(self, client: WhiskClient, *, rng: random.Random | None = None) -> None:
        self.client = client
        self.rng = rng or random.Random()

    async def _run_task(
        self,
        task: GenerationTask,
        *,
        credential: Credential,
        context: SessionContext,
        prompt: str,
        aspect_ratio: str,
        extra_headers: Mapping[str, str] | None,
    ) -> GenerationOutcome:
        try:
            payload = await self.client.generate_image(
                bearer_token=credential.bearer_token,
                prompt=prompt,
                aspect_ratio=aspect_ratio,
                seed=task.seed,
                context=context,
                extra_headers=extra_headers,
            )
        except GenerationError as exc:
            logger.warning("Generation #%d (seed %d) failed: %s", task.index + 1, task.seed, exc)
            return GenerationFailure(index=task.index, detail=str(exc))

        logger.info("Generation #%d (seed %d) done", task.index + 1, task.seed)
        return GenerationSuccess(index=task.index, payload=payload)

    async def dispatch(
        self,
        request: GenerationRequest,
        credential: Credential,
        context: SessionContext,
    ) -> list[GenerationOutcome]:
        """Return one outcome per task index, after every task has finished."""
        tasks = plan_tasks(request.count, self.rng)
        if not tasks:
            return []

        aspect_ratio = map_aspect_ratio(request.aspect_ratio)
        extra_headers = (
            MappingProxyType(dict(request.extra_headers))
            if request.extra_headers is not None
            else None
        )
        logger.info(
            "Dispatching %d generations (seeds %d..%d, ratio=%s)",
            len(tasks),
            tasks[0].seed,
            tasks[-1].seed,
            aspect_ratio,
        )

        results = await asyncio.gather(
            *(
                self._run_task(
                    task,
                    credential=credential,
                    context=context,
                    prompt=request.prompt,
                    aspect_ratio=aspect_ratio,
                    extra_headers=extra_headers,
                )
                for task in tasks
            ),
            return_exceptions=True,
        )

        outcomes: list[GenerationOutcome] = []
        for task, result in zip(tasks, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                logger.error("Generation #%d crashed", task.index + 1, exc_info=result)
                outcomes.append(
                    GenerationFailure(index=task.index, detail=f"Task error: {result}")
                )
            else:
                outcomes.append(result)
        return outcomes
