"""Job worker.

Pops jobs from the Redis-backed queue and dispatches them by name. A job
that fails is logged and parked on the queue's failed list; nothing is
retried here.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from agora.core.context import clear_context, set_job_id
from agora.core.logging import get_logger
from agora.core.queue import Job, JobQueue
from agora.jobs.handlers import send_comment_notification_email
from agora.notifications.models import COMMENT_NOTIFICATION_JOB


if TYPE_CHECKING:
    from agora.services import Services


logger = get_logger(__name__)

JobHandler = Callable[[dict[str, Any], "Services"], Awaitable[None]]

DEFAULT_HANDLERS: dict[str, JobHandler] = {
    COMMENT_NOTIFICATION_JOB: send_comment_notification_email,
}


class JobWorker:
    """Consumes one queue until stopped."""

    def __init__(
        self,
        queue: JobQueue,
        services: "Services",
        handlers: dict[str, JobHandler] | None = None,
        poll_timeout: int = 5,
    ):
        self.queue = queue
        self.services = services
        self.handlers = dict(DEFAULT_HANDLERS if handlers is None else handlers)
        self.poll_timeout = poll_timeout
        self._stopping = asyncio.Event()

    def stop(self) -> None:
        self._stopping.set()

    async def run(self) -> None:
        """Process jobs until ``stop()`` is called."""
        logger.info("job_worker_started", queue=self.queue.queue_name)
        while not self._stopping.is_set():
            job = await self.queue.next_job(timeout=self.poll_timeout)
            if job is not None:
                await self.process(job)
        logger.info("job_worker_stopped", queue=self.queue.queue_name)

    async def process(self, job: Job) -> bool:
        """Run one job.

        Returns:
            True when the handler completed
        """
        set_job_id(job.job_id)
        try:
            handler = self.handlers.get(job.name)
            if handler is None:
                logger.error("job_unknown", job_name=job.name)
                await self.queue.mark_failed(job, f"no handler for {job.name}")
                return False

            try:
                await handler(job.payload, self.services)
            except Exception as e:
                logger.exception(
                    "job_failed",
                    job_name=job.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await self.queue.mark_failed(job, str(e))
                return False

            logger.info("job_completed", job_name=job.name)
            return True
        finally:
            clear_context()
