"""Redis-based ledger of workflow run instances."""

import uuid
from datetime import datetime, timezone
from typing import Any

from redis import Redis

from flowline.models.state import InstanceStatus, WorkflowInstance

DEFAULT_LIST_LIMIT = 20


class InstanceNotFoundError(Exception):
    """Raised when a run instance is not found."""

    def __init__(self, instance_id: str):
        self.instance_id = instance_id
        super().__init__(f"Instance not found: {instance_id}")


def _decode(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class RedisInstanceLedger:
    """Records run instances and their logs.

    Each update is a single write of the whole instance document. Instances
    are only removed together with their workflow.
    """

    def __init__(self, redis_client: Redis):
        if redis_client is None:
            raise ValueError("redis_client is required")
        self._redis = redis_client

    def _instance_key(self, instance_id: str) -> str:
        return f"instance:{instance_id}"

    def _workflow_instances_key(self, workflow_id: str) -> str:
        return f"workflow:{workflow_id}:instances"

    def _utc_now(self) -> datetime:
        return datetime.now(timezone.utc)

    def create_instance(
        self,
        workflow_id: str,
        trigger_type: str,
        trigger_data: dict[str, Any] | None = None,
    ) -> WorkflowInstance:
        """Create a new instance in pending state with an empty log."""
        if not workflow_id:
            raise ValueError("workflow_id is required")
        if not trigger_type:
            raise ValueError("trigger_type is required")

        instance = WorkflowInstance(
            id=str(uuid.uuid4()),
            workflow_id=workflow_id,
            status=InstanceStatus.PENDING,
            trigger_type=trigger_type,
            trigger_data=trigger_data or {},
            logs=[],
            started_at=self._utc_now(),
        )

        self._redis.set(self._instance_key(instance.id), instance.model_dump_json())
        self._redis.zadd(
            self._workflow_instances_key(workflow_id),
            {instance.id: instance.started_at.timestamp()},
        )
        return instance

    def get_instance(self, instance_id: str) -> WorkflowInstance:
        """Get instance by ID."""
        if not instance_id:
            raise ValueError("instance_id is required")

        data = self._redis.get(self._instance_key(instance_id))
        if data is None:
            raise InstanceNotFoundError(instance_id)

        return WorkflowInstance.model_validate_json(data)

    def update_instance(self, instance_id: str, **changes: Any) -> WorkflowInstance:
        """Apply field changes to an instance."""
        if not instance_id:
            raise ValueError("instance_id is required")
        if "id" in changes or "workflow_id" in changes:
            raise ValueError("id and workflow_id cannot be changed")

        instance = self.get_instance(instance_id)
        updated = instance.model_copy(update=changes)
        self._redis.set(self._instance_key(instance_id), updated.model_dump_json())
        return updated

    def list_instances(
        self, workflow_id: str, limit: int = DEFAULT_LIST_LIMIT
    ) -> list[WorkflowInstance]:
        """Instances of a workflow, most recently started first."""
        if not workflow_id:
            raise ValueError("workflow_id is required")
        if limit <= 0:
            raise ValueError("limit must be positive")

        ids = self._redis.zrevrange(
            self._workflow_instances_key(workflow_id), 0, limit - 1
        )
        instances = []
        for instance_id in ids:
            data = self._redis.get(self._instance_key(_decode(instance_id)))
            if data is not None:
                instances.append(WorkflowInstance.model_validate_json(data))
        return instances

    def count_instances(self, workflow_id: str) -> int:
        if not workflow_id:
            raise ValueError("workflow_id is required")
        return self._redis.zcard(self._workflow_instances_key(workflow_id))

    def delete_workflow_instances(self, workflow_id: str) -> int:
        """Delete every instance of a workflow. Returns how many were removed."""
        if not workflow_id:
            raise ValueError("workflow_id is required")

        key = self._workflow_instances_key(workflow_id)
        ids = self._redis.zrange(key, 0, -1)
        for instance_id in ids:
            self._redis.delete(self._instance_key(_decode(instance_id)))
        self._redis.delete(key)
        return len(ids)
