# API package

from flowline.api.app import FlowlineAPI
from flowline.api.models import (
    ActionResponse,
    ErrorResponse,
    ExecuteRequest,
    ExecuteResponse,
    GraphSaveRequest,
    HealthResponse,
    InstanceListResponse,
    InstanceResponse,
    PublishRequest,
    WorkflowCreateRequest,
    WorkflowListResponse,
    WorkflowResponse,
    WorkflowUpdateRequest,
)

__all__ = [
    "ActionResponse",
    "ErrorResponse",
    "ExecuteRequest",
    "ExecuteResponse",
    "FlowlineAPI",
    "GraphSaveRequest",
    "HealthResponse",
    "InstanceListResponse",
    "InstanceResponse",
    "PublishRequest",
    "WorkflowCreateRequest",
    "WorkflowListResponse",
    "WorkflowResponse",
    "WorkflowUpdateRequest",
]
