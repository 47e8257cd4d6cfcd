from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from core.errors import SessionWarning
from core.models import DiagnosticTrace, SessionContext
from core.payloads import fallback_workflow_id, session_id_now

if TYPE_CHECKING:
    from whisk_client import WhiskClient

logger = logging.getLogger(__name__)


class SessionEstablisher:
    """
    Produces the workflow/session pair that correlates one batch.

    The session id is always local. The workflow id comes from the server when
    a cookie is available and the call succeeds; otherwise a random UUID is
    used. Neither outcome blocks the batch.
    """

    def __init__(
        self,
        client: WhiskClient,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.clock = clock

    async def establish(
        self,
        cookie: str,
        trace: DiagnosticTrace,
        *,
        existing_workflow_id: str | None = None,
    ) -> SessionContext:
        session_id = session_id_now(self.clock())

        if existing_workflow_id:
            trace.append(f"Workflow reused: {existing_workflow_id[:8]}...")
            return SessionContext(workflow_id=existing_workflow_id, session_id=session_id)

        if not cookie:
            trace.append("No cookie, using local workflow id")
            return SessionContext(workflow_id=fallback_workflow_id(), session_id=session_id)

        trace.append("Workflow creating...")
        try:
            workflow_id = await self.client.create_workflow(cookie, session_id)
        except SessionWarning as exc:
            logger.warning("Workflow creation failed (%s), using fallback id", exc)
            trace.append(f"Workflow failed, using fallback: {exc}")
            return SessionContext(workflow_id=fallback_workflow_id(), session_id=session_id)

        trace.append(f"Workflow OK: {workflow_id[:8]}...")
        logger.info("Workflow %s created", workflow_id)
        return SessionContext(workflow_id=workflow_id, session_id=session_id)
