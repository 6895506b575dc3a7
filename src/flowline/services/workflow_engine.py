"""Workflow engine: runs published workflows against trigger events."""

import logging
import time
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Sequence

from flowline.models.graph import TriggerType, WorkflowEdge, WorkflowNode
from flowline.models.results import ExecutionResult
from flowline.models.state import (
    ExecutionLogEntry,
    InstanceStatus,
    LogStatus,
    WorkflowInstance,
    WorkflowRecord,
)
from flowline.services.graph_codec import GraphCodec, GraphLoadResult, load_graph, parse_flow_path
from flowline.services.graph_compiler import compute_flow_path, graph_fingerprint
from flowline.services.instance_ledger import InstanceNotFoundError, RedisInstanceLedger
from flowline.services.node_executor import NodeExecutor, RunContext
from flowline.services.wait_scheduler import RedisWaitScheduler
from flowline.services.workflow_store import RedisWorkflowStore, WorkflowNotFoundError

logger = logging.getLogger(__name__)


def edge_branch(edge: WorkflowEdge) -> bool | None:
    """Branch an edge belongs to, from its source handle or label."""
    for marker in (edge.source_handle, edge.label):
        if marker is None:
            continue
        value = marker.strip().lower()
        if value == "true":
            return True
        if value == "false":
            return False
    return None


class WorkflowEngine:
    """Executes workflow runs node by node and records them in the ledger.

    Runs execute inline in the caller. With a wait scheduler, a Wait node
    suspends the run and the scheduler's worker resumes it later; without
    one, the engine sleeps for the wait duration.
    """

    def __init__(
        self,
        store: RedisWorkflowStore,
        ledger: RedisInstanceLedger,
        executor: NodeExecutor,
        scheduler: RedisWaitScheduler | None = None,
        sleep: Callable[[float], None] = time.sleep,
        codec: GraphCodec | None = None,
    ):
        if store is None:
            raise ValueError("store is required")
        if ledger is None:
            raise ValueError("ledger is required")
        if executor is None:
            raise ValueError("executor is required")

        self._store = store
        self._ledger = ledger
        self._executor = executor
        self._scheduler = scheduler
        self._sleep = sleep
        self._codec = codec or GraphCodec()

    def _utc_now(self) -> datetime:
        return datetime.now(timezone.utc)

    def execute_workflow(
        self,
        workflow_id: str,
        trigger_type: TriggerType | str,
        trigger_data: dict[str, Any] | None = None,
    ) -> ExecutionResult:
        """Create a run instance for a published workflow and run it."""
        if not workflow_id:
            return ExecutionResult(success=False, error="Workflow not found")

        try:
            workflow = self._store.get_workflow(workflow_id)
        except WorkflowNotFoundError:
            return ExecutionResult(success=False, error="Workflow not found")
        except Exception as e:
            logger.error(f"Failed to load workflow {workflow_id}: {e}")
            return ExecutionResult(
                success=False, error="Failed to start workflow execution"
            )

        if not workflow.published:
            return ExecutionResult(success=False, error="Workflow is not published")

        if isinstance(trigger_type, TriggerType):
            trigger_type = trigger_type.value

        try:
            instance = self._ledger.create_instance(
                workflow_id, trigger_type, trigger_data or {}
            )
            logger.info(f"Starting instance {instance.id} of workflow {workflow_id}")
            self.run_instance(instance.id)
        except Exception as e:
            logger.error(f"Failed to start workflow {workflow_id}: {e}")
            return ExecutionResult(
                success=False, error="Failed to start workflow execution"
            )

        return ExecutionResult(success=True, instance_id=instance.id)

    def run_instance(self, instance_id: str) -> WorkflowInstance | None:
        """Run (or continue) an instance. Never raises for run failures.

        Returns the instance as last persisted, or None when the instance or
        its workflow no longer exists.
        """
        try:
            instance = self._ledger.get_instance(instance_id)
        except InstanceNotFoundError:
            logger.warning(f"Instance {instance_id} not found, nothing to run")
            return None
        except Exception as e:
            logger.error(f"Failed to load instance {instance_id}: {e}")
            return None

        try:
            return self._run(instance)
        except Exception as e:
            logger.exception(f"Instance {instance_id} failed unexpectedly")
            try:
                return self._ledger.update_instance(
                    instance_id,
                    status=InstanceStatus.FAILED,
                    error=str(e),
                    completed_at=self._utc_now(),
                )
            except Exception as update_error:
                logger.error(
                    f"Failed to record failure of instance {instance_id}: {update_error}"
                )
                return None

    def resume_instance(self, instance_id: str) -> WorkflowInstance | None:
        """Continue an instance suspended at a Wait node."""
        logger.info(f"Resuming instance {instance_id}")
        return self.run_instance(instance_id)

    def _run(self, instance: WorkflowInstance) -> WorkflowInstance | None:
        if instance.status.is_terminal:
            logger.info(f"Instance {instance.id} already {instance.status.value}")
            return instance

        if instance.status == InstanceStatus.RUNNING:
            if instance.resume_at is None:
                logger.warning(f"Instance {instance.id} is already running")
                return instance
            if instance.resume_at > self._utc_now():
                logger.info(f"Instance {instance.id} not due until {instance.resume_at}")
                return instance

        try:
            workflow = self._store.get_workflow(instance.workflow_id)
        except WorkflowNotFoundError:
            logger.warning(
                f"Workflow {instance.workflow_id} for instance {instance.id} not found"
            )
            return None

        graph = load_graph(workflow.nodes, workflow.edges, self._codec)

        if instance.status == InstanceStatus.PENDING:
            instance = self._ledger.update_instance(
                instance.id,
                status=InstanceStatus.RUNNING,
                flow_path=self._resolve_flow_path(workflow, graph),
                cursor=0,
            )

        return self._walk(instance, workflow, graph)

    def _resolve_flow_path(
        self, workflow: WorkflowRecord, graph: GraphLoadResult
    ) -> list[str]:
        """Cached flow path if it still matches the graph, else a fresh one."""
        if workflow.flow_path is None:
            return []

        cached = parse_flow_path(workflow.flow_path)
        if workflow.flow_hash and workflow.flow_hash == graph_fingerprint(
            graph.nodes, graph.edges
        ):
            return cached

        fresh = compute_flow_path(graph.nodes, graph.edges)
        if fresh != cached:
            logger.warning(
                f"Cached flow path of workflow {workflow.id} is stale, recomputed"
            )
        return fresh

    def _walk(
        self,
        instance: WorkflowInstance,
        workflow: WorkflowRecord,
        graph: GraphLoadResult,
    ) -> WorkflowInstance:
        nodes_by_id = {node.id: node for node in graph.nodes}
        path = instance.flow_path or []
        logs = list(instance.logs)
        outcomes = dict(instance.branch_outcomes)
        ctx = RunContext(
            workflow_id=workflow.id,
            instance_id=instance.id,
            sub_account_id=workflow.sub_account_id,
            trigger_data=instance.trigger_data,
        )
        index = instance.cursor

        # Finish the Wait node the run was suspended on
        if instance.resume_at is not None:
            waited = nodes_by_id.get(path[index]) if index < len(path) else None
            if waited is not None:
                logs.append(self._entry(waited, LogStatus.COMPLETED, f"Completed {waited.title}"))
            index += 1
            instance = self._ledger.update_instance(
                instance.id, logs=logs, cursor=index, resume_at=None
            )

        live = self._live_nodes(graph.nodes, graph.edges, outcomes)

        while index < len(path):
            node = nodes_by_id.get(path[index])
            if node is None:
                index += 1
                continue

            if node.id not in live:
                logs.append(
                    self._entry(node, LogStatus.SKIPPED, "Skipped: branch not taken")
                )
                index += 1
                continue

            logs.append(self._entry(node, LogStatus.STARTED, f"Executing {node.title}"))

            try:
                outcome = self._executor.execute(node, ctx)
            except Exception as e:
                error = str(e) or "Node execution failed"
                logger.warning(f"Node {node.id} of instance {instance.id} failed: {error}")
                logs.append(self._entry(node, LogStatus.FAILED, error))
                return self._ledger.update_instance(
                    instance.id,
                    status=InstanceStatus.FAILED,
                    error=error,
                    logs=logs,
                    cursor=index,
                    branch_outcomes=outcomes,
                    completed_at=self._utc_now(),
                )

            if outcome.branch is not None:
                outcomes[node.id] = outcome.branch
                live = self._live_nodes(graph.nodes, graph.edges, outcomes)

            if outcome.delay_ms:
                if self._scheduler is not None:
                    return self._suspend(instance, logs, index, outcomes, outcome.delay_ms)
                self._sleep(outcome.delay_ms / 1000)

            logs.append(
                self._entry(
                    node,
                    LogStatus.COMPLETED,
                    outcome.message or f"Completed {node.title}",
                    outcome.data,
                )
            )
            index += 1
            instance = self._ledger.update_instance(
                instance.id, logs=logs, cursor=index, branch_outcomes=outcomes
            )

        logger.info(f"Instance {instance.id} completed")
        return self._ledger.update_instance(
            instance.id,
            status=InstanceStatus.COMPLETED,
            logs=logs,
            cursor=index,
            branch_outcomes=outcomes,
            completed_at=self._utc_now(),
        )

    def _suspend(
        self,
        instance: WorkflowInstance,
        logs: list[ExecutionLogEntry],
        index: int,
        outcomes: dict[str, bool],
        delay_ms: float,
    ) -> WorkflowInstance:
        resume_at = self._utc_now() + timedelta(milliseconds=delay_ms)
        suspended = self._ledger.update_instance(
            instance.id,
            logs=logs,
            cursor=index,
            branch_outcomes=outcomes,
            resume_at=resume_at,
        )
        self._scheduler.schedule(instance.id, resume_at)
        logger.info(f"Instance {instance.id} waiting until {resume_at.isoformat()}")
        return suspended

    def _live_nodes(
        self,
        nodes: Sequence[WorkflowNode],
        edges: Sequence[WorkflowEdge],
        outcomes: dict[str, bool],
    ) -> set[str]:
        """Nodes still reachable over active edges.

        Reachability starts at the trigger and at nodes without incoming
        edges. A branch edge leaving an evaluated condition is active only
        for the matching outcome; conditions not yet evaluated keep both
        branches open.
        """
        targets = {edge.target for edge in edges}
        outgoing: dict[str, list[WorkflowEdge]] = defaultdict(list)
        for edge in edges:
            outgoing[edge.source].append(edge)

        stack = [node.id for node in nodes if node.is_trigger or node.id not in targets]
        live = set(stack)
        while stack:
            source = stack.pop()
            for edge in outgoing[source]:
                if edge.target in live:
                    continue
                branch = edge_branch(edge)
                if branch is not None and outcomes.get(source, branch) != branch:
                    continue
                live.add(edge.target)
                stack.append(edge.target)
        return live

    def _entry(
        self,
        node: WorkflowNode,
        status: LogStatus,
        message: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> ExecutionLogEntry:
        return ExecutionLogEntry(
            timestamp=self._utc_now(),
            node_id=node.id,
            node_type=node.node_type,
            status=status,
            message=message,
            data=data,
        )
