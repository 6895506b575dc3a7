"""Management operations on persisted workflows."""

import logging
from dataclasses import dataclass, field
from typing import Sequence

from flowline.models.graph import WorkflowEdge, WorkflowNode, default_trigger_node
from flowline.models.results import ActionResult
from flowline.models.state import InstanceStatus, WorkflowInstance, WorkflowRecord
from flowline.services.graph_codec import GraphCodec, load_graph
from flowline.services.graph_compiler import (
    compute_flow_path,
    graph_fingerprint,
    has_trigger,
)
from flowline.services.instance_ledger import (
    DEFAULT_LIST_LIMIT,
    InstanceNotFoundError,
    RedisInstanceLedger,
)
from flowline.services.wait_scheduler import RedisWaitScheduler
from flowline.services.workflow_store import RedisWorkflowStore, WorkflowNotFoundError

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500


@dataclass
class LoadedWorkflow:
    """A workflow record with its graph parsed."""

    record: WorkflowRecord
    nodes: list[WorkflowNode] = field(default_factory=list)
    edges: list[WorkflowEdge] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class WorkflowSummary:
    record: WorkflowRecord
    node_count: int
    instance_count: int


class WorkflowService:
    """CRUD, graph saving and publishing for workflows."""

    def __init__(
        self,
        store: RedisWorkflowStore,
        ledger: RedisInstanceLedger,
        scheduler: RedisWaitScheduler | None = None,
        codec: GraphCodec | None = None,
    ):
        if store is None:
            raise ValueError("store is required")
        if ledger is None:
            raise ValueError("ledger is required")

        self._store = store
        self._ledger = ledger
        self._scheduler = scheduler
        self._codec = codec or GraphCodec()

    def _validate_text(
        self, name: str | None, description: str | None
    ) -> str | None:
        if name is not None and not 1 <= len(name.strip()) <= MAX_NAME_LENGTH:
            return f"Name must be between 1 and {MAX_NAME_LENGTH} characters"
        if description is not None and len(description) > MAX_DESCRIPTION_LENGTH:
            return f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters"
        return None

    def create_workflow(
        self, sub_account_id: str, name: str, description: str = ""
    ) -> ActionResult:
        """Create a workflow seeded with a single manual trigger."""
        error = self._validate_text(name or "", description)
        if error:
            return ActionResult(success=False, error=error)

        try:
            workflow = self._store.create_workflow(
                sub_account_id=sub_account_id,
                name=name.strip(),
                description=description or "",
                nodes=self._codec.dump_nodes([default_trigger_node()]),
                edges="[]",
            )
        except Exception as e:
            logger.error(f"Failed to create workflow: {e}")
            return ActionResult(success=False, error="Failed to create workflow")

        logger.info(f"Created workflow {workflow.id} for sub-account {sub_account_id}")
        return ActionResult(success=True, workflow=workflow)

    def get_workflow(self, workflow_id: str) -> LoadedWorkflow | None:
        try:
            record = self._store.get_workflow(workflow_id)
        except (WorkflowNotFoundError, ValueError):
            return None

        graph = load_graph(record.nodes, record.edges, self._codec)
        return LoadedWorkflow(
            record=record, nodes=graph.nodes, edges=graph.edges, errors=graph.errors
        )

    def list_workflows(self, sub_account_id: str) -> list[WorkflowSummary]:
        """Workflows with node and run counts, most recently updated first."""
        try:
            records = self._store.list_workflows(sub_account_id)
        except Exception as e:
            logger.error(f"Failed to list workflows: {e}")
            return []

        return [
            WorkflowSummary(
                record=record,
                node_count=len(load_graph(record.nodes, "[]", self._codec).nodes),
                instance_count=self._ledger.count_instances(record.id),
            )
            for record in records
        ]

    def update_workflow(
        self,
        workflow_id: str,
        name: str | None = None,
        description: str | None = None,
    ) -> ActionResult:
        """Rename or re-describe a workflow."""
        error = self._validate_text(name, description)
        if error:
            return ActionResult(success=False, error=error)

        changes = {}
        if name is not None:
            changes["name"] = name.strip()
        if description is not None:
            changes["description"] = description

        try:
            workflow = self._store.update_workflow(workflow_id, **changes)
        except WorkflowNotFoundError:
            return ActionResult(success=False, error="Workflow not found")
        except Exception as e:
            logger.error(f"Failed to update workflow {workflow_id}: {e}")
            return ActionResult(success=False, error="Failed to update workflow")

        return ActionResult(success=True, workflow=workflow)

    def delete_workflow(self, workflow_id: str) -> ActionResult:
        """Delete a workflow together with its run instances."""
        try:
            self._store.get_workflow(workflow_id)
            total = self._ledger.count_instances(workflow_id)
            if self._scheduler is not None and total:
                for instance in self._ledger.list_instances(workflow_id, limit=total):
                    if instance.status == InstanceStatus.RUNNING:
                        self._scheduler.cancel(instance.id)
            removed = self._ledger.delete_workflow_instances(workflow_id)
            self._store.delete_workflow(workflow_id)
        except WorkflowNotFoundError:
            return ActionResult(success=False, error="Workflow not found")
        except Exception as e:
            logger.error(f"Failed to delete workflow {workflow_id}: {e}")
            return ActionResult(success=False, error="Failed to delete workflow")

        logger.info(f"Deleted workflow {workflow_id} and {removed} instance(s)")
        return ActionResult(success=True)

    def save_workflow_nodes(
        self,
        workflow_id: str,
        nodes: Sequence[WorkflowNode],
        edges: Sequence[WorkflowEdge],
    ) -> ActionResult:
        """Persist a graph together with its freshly compiled flow path."""
        flow_path = compute_flow_path(nodes, edges)

        try:
            workflow = self._store.update_workflow(
                workflow_id,
                nodes=self._codec.dump_nodes(nodes),
                edges=self._codec.dump_edges(edges),
                flow_path=self._codec.dump_flow_path(flow_path),
                flow_hash=graph_fingerprint(nodes, edges),
            )
        except WorkflowNotFoundError:
            return ActionResult(success=False, error="Workflow not found")
        except Exception as e:
            logger.error(f"Failed to save workflow nodes for {workflow_id}: {e}")
            return ActionResult(success=False, error="Failed to save workflow")

        logger.info(f"Saved workflow {workflow_id}: {len(flow_path)} node(s) in flow path")
        return ActionResult(success=True, workflow=workflow)

    def publish_workflow(self, workflow_id: str, publish: bool) -> ActionResult:
        """Publish or unpublish. Publishing requires a trigger in the live graph."""
        try:
            record = self._store.get_workflow(workflow_id)
        except (WorkflowNotFoundError, ValueError):
            return ActionResult(success=False, error="Workflow not found")

        if publish:
            nodes = load_graph(record.nodes, "[]", self._codec).nodes
            if not has_trigger(nodes):
                return ActionResult(
                    success=False,
                    error="Workflow must have a trigger node to be published",
                )

        try:
            workflow = self._store.update_workflow(workflow_id, published=publish)
        except Exception as e:
            logger.error(f"Failed to publish workflow {workflow_id}: {e}")
            return ActionResult(success=False, error="Failed to update workflow status")

        return ActionResult(
            success=True,
            message="Workflow published" if publish else "Workflow unpublished",
            workflow=workflow,
        )

    def list_instances(
        self, workflow_id: str, limit: int = DEFAULT_LIST_LIMIT
    ) -> list[WorkflowInstance]:
        """Run history of a workflow, most recent first."""
        try:
            return self._ledger.list_instances(workflow_id, limit)
        except Exception as e:
            logger.error(f"Failed to get workflow instances: {e}")
            return []

    def get_instance(self, instance_id: str) -> WorkflowInstance | None:
        try:
            return self._ledger.get_instance(instance_id)
        except (InstanceNotFoundError, ValueError):
            return None
