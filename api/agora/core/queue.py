"""Background job queue on top of a Redis list.

Producers push JSON envelopes with ``add_job``; ``agora.jobs`` workers pop
them with ``next_job``. Delivery is at-most-once and best-effort: there is
no acknowledgement, retry or backoff here.
"""

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from agora.core.logging import get_logger
from agora.core.redis import failed_jobs_key, job_queue_key


if TYPE_CHECKING:
    from redis.asyncio import Redis


logger = get_logger(__name__)


@dataclass
class Job:
    """A unit of background work."""

    name: str
    payload: dict[str, Any]
    job_id: str = field(default_factory=lambda: str(uuid4()))
    enqueued_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_json(self) -> str:
        """Serialize the job envelope."""
        return json.dumps(
            {
                "id": self.job_id,
                "name": self.name,
                "payload": self.payload,
                "enqueued_at": self.enqueued_at.isoformat(),
            }
        )

    @classmethod
    def from_json(cls, raw: str) -> "Job":
        """Parse a job envelope produced by ``to_json``."""
        data = json.loads(raw)
        return cls(
            name=data["name"],
            payload=data.get("payload") or {},
            job_id=data["id"],
            enqueued_at=datetime.fromisoformat(data["enqueued_at"]),
        )


class JobQueue:
    """Named job queue backed by Redis."""

    def __init__(self, redis: "Redis", queue_name: str = "default"):
        self.redis = redis
        self.queue_name = queue_name
        self._key = job_queue_key(queue_name)
        self._failed_key = failed_jobs_key(queue_name)

    async def add_job(self, name: str, payload: dict[str, Any]) -> Job:
        """Enqueue a job.

        Args:
            name: Registered job type, e.g. ``comment.send_notification_email``
            payload: JSON-serializable job arguments

        Returns:
            The enqueued job
        """
        job = Job(name=name, payload=payload)
        await self.redis.rpush(self._key, job.to_json())
        logger.debug("job_enqueued", job_name=name, job_id=job.job_id)
        return job

    async def next_job(self, timeout: int = 5) -> Job | None:
        """Block up to ``timeout`` seconds for the next job.

        Entries that are not job envelopes are moved to the failed list and
        ``None`` is returned in their place.
        """
        item = await self.redis.blpop([self._key], timeout=timeout)
        if item is None:
            return None
        _key, raw = item
        try:
            return Job.from_json(raw)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("job_malformed", error=str(e), error_type=type(e).__name__)
            await self.redis.rpush(
                self._failed_key, json.dumps({"raw": str(raw), "error": str(e)})
            )
            return None

    async def mark_failed(self, job: Job, error: str) -> None:
        """Park a failed job for inspection."""
        envelope = json.loads(job.to_json())
        envelope["error"] = error
        await self.redis.rpush(self._failed_key, json.dumps(envelope))

    async def size(self) -> int:
        """Number of pending jobs."""
        return await self.redis.llen(self._key)
