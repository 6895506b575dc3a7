"""Structured results returned to callers instead of raising."""

from pydantic import BaseModel, ConfigDict

from flowline.models.state import WorkflowRecord


class ActionResult(BaseModel):
    """Outcome of a workflow management operation."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str | None = None
    error: str | None = None
    workflow: WorkflowRecord | None = None


class ExecutionResult(BaseModel):
    """Outcome of triggering a workflow run."""

    model_config = ConfigDict(frozen=True)

    success: bool
    instance_id: str | None = None
    error: str | None = None
