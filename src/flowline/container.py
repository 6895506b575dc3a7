"""Wiring of stores, sinks and services for the entry points."""

from dataclasses import dataclass

import redis

from flowline.config import Settings
from flowline.services.instance_ledger import RedisInstanceLedger
from flowline.services.node_executor import NodeExecutor
from flowline.services.record_sink import RedisEmailOutbox, RedisRecordSink
from flowline.services.wait_scheduler import RedisWaitScheduler
from flowline.services.webhook_client import WebhookClient
from flowline.services.workflow_engine import WorkflowEngine
from flowline.services.workflow_service import WorkflowService
from flowline.services.workflow_store import RedisWorkflowStore


@dataclass
class Components:
    redis_client: redis.Redis
    store: RedisWorkflowStore
    ledger: RedisInstanceLedger
    scheduler: RedisWaitScheduler | None
    engine: WorkflowEngine
    service: WorkflowService


def get_redis_client(settings: Settings) -> redis.Redis:
    """Create Redis client from settings."""
    return redis.Redis.from_url(settings.redis_url, decode_responses=True)


def build_components(redis_client: redis.Redis, settings: Settings) -> Components:
    """Assemble the engine and service over one Redis connection."""
    store = RedisWorkflowStore(redis_client)
    ledger = RedisInstanceLedger(redis_client)
    scheduler = RedisWaitScheduler(redis_client) if settings.durable_waits else None

    executor = NodeExecutor(
        records=RedisRecordSink(redis_client),
        webhook_client=WebhookClient(timeout=settings.webhook_timeout),
        email_outbox=RedisEmailOutbox(redis_client),
    )
    engine = WorkflowEngine(store, ledger, executor, scheduler=scheduler)
    service = WorkflowService(store, ledger, scheduler=scheduler)

    return Components(
        redis_client=redis_client,
        store=store,
        ledger=ledger,
        scheduler=scheduler,
        engine=engine,
        service=service,
    )
