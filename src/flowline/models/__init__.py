"""Models package."""

from flowline.models.editor import (
    AddEdge,
    AddNode,
    Clear,
    DeleteEdge,
    DeleteNode,
    EditorAction,
    EditorState,
    HistoryState,
    LoadData,
    Redo,
    SelectNode,
    Undo,
    UpdateEdges,
    UpdateNode,
)
from flowline.models.graph import (
    NODE_PALETTE,
    ActionContent,
    ActionType,
    ConditionContent,
    ConditionOperator,
    EmailContent,
    NotificationContent,
    Position,
    TriggerContent,
    TriggerType,
    WaitContent,
    WaitUnit,
    WorkflowEdge,
    WorkflowNode,
    WorkflowNodeType,
    create_node,
)
from flowline.models.state import (
    ExecutionLogEntry,
    InstanceStatus,
    LogStatus,
    WorkflowInstance,
    WorkflowRecord,
)

__all__ = [
    "NODE_PALETTE",
    "ActionContent",
    "ActionType",
    "AddEdge",
    "AddNode",
    "Clear",
    "ConditionContent",
    "ConditionOperator",
    "DeleteEdge",
    "DeleteNode",
    "EditorAction",
    "EditorState",
    "EmailContent",
    "ExecutionLogEntry",
    "HistoryState",
    "InstanceStatus",
    "LoadData",
    "LogStatus",
    "NotificationContent",
    "Position",
    "Redo",
    "SelectNode",
    "TriggerContent",
    "TriggerType",
    "Undo",
    "UpdateEdges",
    "UpdateNode",
    "WaitContent",
    "WaitUnit",
    "WorkflowEdge",
    "WorkflowInstance",
    "WorkflowNode",
    "WorkflowNodeType",
    "WorkflowRecord",
    "create_node",
]
