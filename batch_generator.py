"""
Batch image generation against Whisk.

Pipeline for one batch:
  resolve credential -> establish session -> upload references ->
  dispatch N concurrent generations -> aggregate outcomes

Only a missing bearer token stops the batch early. Every other failure is
narrated into the diagnostic trace and the pipeline carries on, so run()
always returns a BatchResult.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable

from config import Config
from core.aggregator import ResultAggregator
from core.cookies import cookie_header
from core.credentials import CredentialResolver
from core.dispatcher import GenerationDispatcher
from core.errors import CredentialError
from core.models import BatchResult, Credential, DiagnosticTrace, GenerationRequest
from core.payloads import map_aspect_ratio
from core.session import SessionEstablisher
from core.uploader import ReferenceImageUploader
from whisk_client import WhiskClient

logger = logging.getLogger(__name__)


class BatchGenerator:
    def __init__(
        self,
        client: WhiskClient,
        config: Config,
        *,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self.resolver = CredentialResolver(client)
        self.sessions = SessionEstablisher(client, clock=clock)
        self.uploader = ReferenceImageUploader(client)
        self.dispatcher = GenerationDispatcher(client, rng=rng)
        self.aggregator = ResultAggregator(file_prefix=config.file_prefix, clock=clock)

    async def run(self, credential: Credential, request: GenerationRequest) -> BatchResult:
        trace = DiagnosticTrace()
        credential = Credential(
            cookie=cookie_header(credential.cookie),
            bearer_token=credential.bearer_token,
        )

        try:
            credential = await self.resolver.resolve(credential, trace)
        except CredentialError as exc:
            return BatchResult(success=False, diagnostics=trace.render(), error=str(exc))

        context = await self.sessions.establish(
            credential.cookie,
            trace,
            existing_workflow_id=request.workflow_id,
        )

        if request.reference_images:
            await self.uploader.upload_all(
                credential.cookie,
                request.reference_images,
                context,
                trace,
            )

        trace.append(
            f"API start: inputRatio={request.aspect_ratio}, "
            f"ratio={map_aspect_ratio(request.aspect_ratio)}, count={request.count}"
        )
        outcomes = await self.dispatcher.dispatch(request, credential, context)

        result = await self.aggregator.aggregate(
            outcomes,
            project_link=self.config.project_link(context.workflow_id),
            trace=trace,
            save_folder=request.save_folder or self.config.default_save_folder or None,
        )
        logger.info(
            "Batch finished: success=%s, %d/%d images, workflow=%s",
            result.success,
            len(result.images),
            request.count,
            context.workflow_id,
        )
        return result
