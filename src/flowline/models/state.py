"""State models for persisted workflows and their run instances."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from flowline.models.graph import WorkflowNodeType


class InstanceStatus(str, Enum):
    """Run instance status.

    CANCELLED is part of the persisted vocabulary but nothing transitions
    into it yet.
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (
            InstanceStatus.COMPLETED,
            InstanceStatus.FAILED,
            InstanceStatus.CANCELLED,
        )


class LogStatus(str, Enum):
    """Status of a single execution log entry."""

    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ExecutionLogEntry(BaseModel):
    """One line of a run's execution log."""

    timestamp: datetime
    node_id: str
    node_type: WorkflowNodeType
    status: LogStatus
    message: str | None = None
    data: dict[str, Any] | None = None


class WorkflowRecord(BaseModel):
    """Persisted workflow.

    ``nodes``, ``edges`` and ``flow_path`` hold JSON text; parsing them is
    the caller's job (see ``services.graph_codec``). ``flow_path`` and
    ``flow_hash`` are a derived cache of the graph.
    """

    id: str
    name: str
    description: str = ""
    sub_account_id: str
    nodes: str = "[]"
    edges: str = "[]"
    flow_path: str | None = None
    flow_hash: str | None = None
    published: bool = False
    created_at: datetime
    updated_at: datetime


class WorkflowInstance(BaseModel):
    """Persisted record of one execution attempt."""

    id: str
    workflow_id: str
    status: InstanceStatus
    trigger_type: str
    trigger_data: dict[str, Any] = {}
    logs: list[ExecutionLogEntry] = []
    error: str | None = None
    started_at: datetime
    completed_at: datetime | None = None

    # Run cursor, persisted so a suspended run can resume
    flow_path: list[str] | None = None
    cursor: int = 0
    resume_at: datetime | None = None
    branch_outcomes: dict[str, bool] = Field(default_factory=dict)
