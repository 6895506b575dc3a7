"""Redis-based store for persisted workflows."""

import uuid
from datetime import datetime, timezone
from typing import Any

from redis import Redis

from flowline.models.state import WorkflowRecord


class WorkflowNotFoundError(Exception):
    """Raised when workflow is not found."""

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow not found: {workflow_id}")


def _decode(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class RedisWorkflowStore:
    """Stores workflow records as JSON documents in Redis.

    Graph columns (nodes, edges, flow path) are opaque text here.
    """

    _UPDATABLE = frozenset(
        {
            "name",
            "description",
            "nodes",
            "edges",
            "flow_path",
            "flow_hash",
            "published",
        }
    )

    def __init__(self, redis_client: Redis):
        if redis_client is None:
            raise ValueError("redis_client is required")
        self._redis = redis_client

    def _workflow_key(self, workflow_id: str) -> str:
        return f"workflow:{workflow_id}"

    def _sub_account_key(self, sub_account_id: str) -> str:
        return f"subaccount:{sub_account_id}:workflows"

    def _utc_now(self) -> datetime:
        return datetime.now(timezone.utc)

    def create_workflow(
        self,
        sub_account_id: str,
        name: str,
        description: str = "",
        nodes: str = "[]",
        edges: str = "[]",
    ) -> WorkflowRecord:
        """Create a new unpublished workflow."""
        if not sub_account_id:
            raise ValueError("sub_account_id is required")
        if not name:
            raise ValueError("name is required")

        now = self._utc_now()
        record = WorkflowRecord(
            id=str(uuid.uuid4()),
            name=name,
            description=description,
            sub_account_id=sub_account_id,
            nodes=nodes,
            edges=edges,
            created_at=now,
            updated_at=now,
        )
        self._write(record)
        return record

    def get_workflow(self, workflow_id: str) -> WorkflowRecord:
        """Get workflow by ID."""
        if not workflow_id:
            raise ValueError("workflow_id is required")

        data = self._redis.get(self._workflow_key(workflow_id))
        if data is None:
            raise WorkflowNotFoundError(workflow_id)

        return WorkflowRecord.model_validate_json(data)

    def update_workflow(self, workflow_id: str, **changes: Any) -> WorkflowRecord:
        """Apply field changes to a workflow and bump ``updated_at``."""
        if not workflow_id:
            raise ValueError("workflow_id is required")

        unknown = set(changes) - self._UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        record = self.get_workflow(workflow_id)
        updated = record.model_copy(
            update={**changes, "updated_at": self._utc_now()}
        )
        self._write(updated)
        return updated

    def list_workflows(self, sub_account_id: str) -> list[WorkflowRecord]:
        """Workflows of a sub-account, most recently updated first."""
        if not sub_account_id:
            raise ValueError("sub_account_id is required")

        ids = self._redis.zrevrange(self._sub_account_key(sub_account_id), 0, -1)
        records = []
        for workflow_id in ids:
            data = self._redis.get(self._workflow_key(_decode(workflow_id)))
            if data is not None:
                records.append(WorkflowRecord.model_validate_json(data))
        return records

    def delete_workflow(self, workflow_id: str) -> WorkflowRecord:
        """Delete a workflow and return the deleted record."""
        record = self.get_workflow(workflow_id)
        self._redis.zrem(self._sub_account_key(record.sub_account_id), workflow_id)
        self._redis.delete(self._workflow_key(workflow_id))
        return record

    def _write(self, record: WorkflowRecord) -> None:
        self._redis.set(self._workflow_key(record.id), record.model_dump_json())
        self._redis.zadd(
            self._sub_account_key(record.sub_account_id),
            {record.id: record.updated_at.timestamp()},
        )
