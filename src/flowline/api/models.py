"""Request and response models for REST API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from flowline.models.graph import WorkflowEdge, WorkflowNode
from flowline.models.state import ExecutionLogEntry


class WorkflowCreateRequest(BaseModel):
    """Request to create a workflow."""

    model_config = ConfigDict(extra="forbid")

    sub_account_id: str
    name: str
    description: str = ""

    @field_validator("sub_account_id")
    @classmethod
    def sub_account_id_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("sub_account_id is required")
        return v


class WorkflowUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    description: str | None = None


class GraphSaveRequest(BaseModel):
    """Request to save a workflow graph in the wire format."""

    model_config = ConfigDict(extra="forbid")

    nodes: list[WorkflowNode]
    edges: list[WorkflowEdge] = []


class PublishRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    publish: bool


class ExecuteRequest(BaseModel):
    """Request to trigger a workflow run."""

    model_config = ConfigDict(extra="forbid")

    trigger_type: str = "MANUAL"
    trigger_data: dict[str, Any] = {}


class WorkflowResponse(BaseModel):
    """Workflow with its graph parsed."""

    id: str
    name: str
    description: str
    sub_account_id: str
    published: bool
    nodes: list[dict[str, Any]]
    edges: list[dict[str, Any]]
    flow_path: list[str]
    created_at: datetime
    updated_at: datetime
    parse_errors: list[str] = []


class WorkflowSummaryResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    published: bool
    node_count: int
    instance_count: int
    updated_at: datetime


class WorkflowListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    sub_account_id: str
    workflows: list[WorkflowSummaryResponse]


class ActionResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    message: str | None = None
    workflow_id: str | None = None


class ExecuteResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    instance_id: str
    status: str


class InstanceResponse(BaseModel):
    """Response for a run instance."""

    model_config = ConfigDict(frozen=True)

    id: str
    workflow_id: str
    status: str
    trigger_type: str
    trigger_data: dict[str, Any]
    logs: list[ExecutionLogEntry] = Field(default_factory=list)
    error: str | None = None
    started_at: datetime
    completed_at: datetime | None = None
    resume_at: datetime | None = None


class InstanceListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    workflow_id: str
    instances: list[InstanceResponse]


class ErrorResponse(BaseModel):
    """Error response."""

    model_config = ConfigDict(frozen=True)

    detail: str


class HealthResponse(BaseModel):
    """Health check response."""

    model_config = ConfigDict(frozen=True)

    status: str
