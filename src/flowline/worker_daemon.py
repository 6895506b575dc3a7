"""Worker daemon that resumes runs whose Wait node has elapsed."""

import logging
import signal
import sys
import time

import redis

from flowline.config import Settings
from flowline.container import build_components, get_redis_client
from flowline.services.log_service import configure_logging
from flowline.services.wait_scheduler import RedisWaitScheduler
from flowline.services.workflow_engine import WorkflowEngine

logger = logging.getLogger("worker_daemon")


class WorkerDaemon:
    """Polls the wait scheduler and resumes due instances."""

    def __init__(
        self,
        engine: WorkflowEngine,
        scheduler: RedisWaitScheduler,
        poll_interval: float = 1.0,
        batch_size: int = 10,
    ):
        if engine is None:
            raise ValueError("engine is required")
        if scheduler is None:
            raise ValueError("scheduler is required")
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")

        self.engine = engine
        self.scheduler = scheduler
        self.poll_interval = poll_interval
        self.batch_size = batch_size
        self.running = True

    def process_due(self) -> int:
        """Resume every instance that is due now. Returns how many were resumed."""
        resumed = 0
        for instance_id in self.scheduler.claim_due(count=self.batch_size):
            try:
                self.engine.resume_instance(instance_id)
                resumed += 1
            except Exception as e:
                logger.error(f"Error resuming instance {instance_id}: {e}")
        return resumed

    def run(self) -> None:
        """Main daemon loop."""
        logger.info("Worker daemon started, polling for due waits...")

        while self.running:
            try:
                resumed = self.process_due()
                if resumed:
                    logger.info(f"Resumed {resumed} instance(s)")
                else:
                    time.sleep(self.poll_interval)
            except redis.RedisError as e:
                logger.error(f"Error in daemon loop: {e}")
                time.sleep(self.poll_interval)

        logger.info("Worker daemon stopped")

    def stop(self) -> None:
        """Signal daemon to stop."""
        self.running = False


def main() -> int:
    settings = Settings.from_env()
    configure_logging(
        log_file="flowline-worker.log",
        log_dir=settings.log_dir,
        level=settings.log_level,
    )

    if not settings.durable_waits:
        logger.error("DURABLE_WAITS is disabled, nothing for the worker to do")
        return 1

    logger.info(f"Connecting to Redis at {settings.redis_url}")
    redis_client = get_redis_client(settings)

    try:
        redis_client.ping()
        logger.info("Redis connection established")
    except redis.ConnectionError as e:
        logger.error(f"Failed to connect to Redis: {e}")
        return 1

    components = build_components(redis_client, settings)
    daemon = WorkerDaemon(
        components.engine,
        components.scheduler,
        poll_interval=settings.worker_poll_interval,
    )

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        daemon.stop()

    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)

    daemon.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
