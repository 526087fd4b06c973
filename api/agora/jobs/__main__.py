"""Run the job worker: ``python -m agora.jobs``."""

import asyncio
import signal
from pathlib import Path

from agora.config import get_settings
from agora.core.database.async_cassandra import (
    init_async_cassandra,
    shutdown_async_cassandra,
)
from agora.core.logging import configure_structlog, get_logger
from agora.core.redis import init_redis, shutdown_redis
from agora.jobs.worker import JobWorker
from agora.services import build_services


async def main() -> None:
    settings = get_settings()
    configure_structlog(settings, log_dir=Path(settings.log_dir))
    logger = get_logger("agora.jobs")

    redis_client = await init_redis(settings)
    session = await init_async_cassandra(settings)
    services = build_services(settings, session, redis_client)

    worker = JobWorker(
        services.job_queue, services, poll_timeout=settings.job_poll_timeout
    )
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, worker.stop)

    try:
        await worker.run()
    finally:
        logger.info("job_worker_shutting_down")
        await services.aclose()
        await shutdown_redis()
        await shutdown_async_cassandra()


if __name__ == "__main__":
    asyncio.run(main())
