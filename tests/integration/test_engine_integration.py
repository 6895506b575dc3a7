"""Integration tests for the workflow engine against a real Redis."""

import time
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from redis import Redis
from testcontainers.redis import RedisContainer

from flowline.models.graph import (
    NodeData,
    NotificationConfig,
    NotificationContent,
    Position,
    TriggerContent,
    TriggerType,
    WaitConfig,
    WaitContent,
    WaitUnit,
    WorkflowEdge,
    WorkflowNode,
)
from flowline.models.state import InstanceStatus, LogStatus
from flowline.services.instance_ledger import RedisInstanceLedger
from flowline.services.node_executor import NodeExecutor
from flowline.services.record_sink import RedisRecordSink
from flowline.services.wait_scheduler import RedisWaitScheduler
from flowline.services.workflow_engine import WorkflowEngine
from flowline.services.workflow_service import WorkflowService
from flowline.services.workflow_store import RedisWorkflowStore
from flowline.worker_daemon import WorkerDaemon

pytestmark = pytest.mark.integration


@pytest.fixture(scope="module")
def redis_container():
    with RedisContainer() as container:
        yield container


@pytest.fixture
def redis_client(redis_container):
    client = Redis(
        host=redis_container.get_container_host_ip(),
        port=redis_container.get_exposed_port(6379),
        decode_responses=True,
    )
    yield client
    client.flushdb()
    client.close()


@pytest.fixture
def store(redis_client):
    return RedisWorkflowStore(redis_client)


@pytest.fixture
def ledger(redis_client):
    return RedisInstanceLedger(redis_client)


@pytest.fixture
def scheduler(redis_client):
    return RedisWaitScheduler(redis_client)


@pytest.fixture
def engine(redis_client, store, ledger, scheduler):
    executor = NodeExecutor(RedisRecordSink(redis_client), MagicMock())
    return WorkflowEngine(store, ledger, executor, scheduler=scheduler)


@pytest.fixture
def service(store, ledger, scheduler):
    return WorkflowService(store, ledger, scheduler=scheduler)


def node(node_id, content):
    return WorkflowNode(
        id=node_id,
        position=Position(x=0, y=0),
        data=NodeData(title=node_id, content=content),
    )


@pytest.fixture
def waiting_workflow(service):
    workflow_id = service.create_workflow("sub-int", "Nurture").workflow.id
    nodes = [
        node("T", TriggerContent(trigger_type=TriggerType.CONTACT_FORM)),
        node("W", WaitContent(config=WaitConfig(duration=1, unit=WaitUnit.SECONDS))),
        node("N", NotificationContent(config=NotificationConfig(message="Follow up"))),
    ]
    edges = [WorkflowEdge.connect("T", "W"), WorkflowEdge.connect("W", "N")]
    service.save_workflow_nodes(workflow_id, nodes, edges)
    service.publish_workflow(workflow_id, True)
    return workflow_id


class TestDurableWaitIntegration:
    """A run suspended at a Wait node is resumed by the worker."""

    def test_worker_resumes_after_wait(self, engine, ledger, scheduler, waiting_workflow):
        result = engine.execute_workflow(waiting_workflow, "CONTACT_FORM", {"email": "a@b.c"})
        suspended = ledger.get_instance(result.instance_id)
        assert suspended.status == InstanceStatus.RUNNING

        daemon = WorkerDaemon(engine, scheduler, poll_interval=0.1)
        assert daemon.process_due() == 0

        due = datetime.now(timezone.utc) + timedelta(seconds=5)
        while scheduler.pending_count() and datetime.now(timezone.utc) < due:
            daemon.process_due()
            time.sleep(0.05)

        instance = ledger.get_instance(result.instance_id)
        assert instance.status == InstanceStatus.COMPLETED
        assert [e.node_id for e in instance.logs if e.status == LogStatus.COMPLETED] == [
            "T",
            "W",
            "N",
        ]
        waited = instance.logs[-2].timestamp - suspended.logs[-1].timestamp
        assert waited >= timedelta(seconds=1)


class TestLedgerIntegration:
    """Run history ordering and cascade on a real Redis."""

    def test_history_and_cascade(self, service, ledger, waiting_workflow):
        first = ledger.create_instance(waiting_workflow, "MANUAL")
        second = ledger.create_instance(waiting_workflow, "MANUAL")

        assert [i.id for i in service.list_instances(waiting_workflow)] == [
            second.id,
            first.id,
        ]

        assert service.delete_workflow(waiting_workflow).success
        assert service.get_instance(first.id) is None
        assert service.list_instances(waiting_workflow) == []
