# Services package

from flowline.services.editor import WorkflowEditor, editor_reducer
from flowline.services.graph_codec import (
    GraphCodec,
    GraphLoadResult,
    GraphParseError,
    load_graph,
    parse_flow_path,
)
from flowline.services.graph_compiler import (
    GraphIssue,
    IssueSeverity,
    compute_flow_path,
    get_trigger_node,
    graph_fingerprint,
    has_trigger,
    validate_graph,
)
from flowline.services.instance_ledger import InstanceNotFoundError, RedisInstanceLedger
from flowline.services.log_service import SizeAndTimeRotatingHandler, configure_logging
from flowline.services.node_executor import (
    NodeExecutionError,
    NodeExecutor,
    NodeOutcome,
    RunContext,
)
from flowline.services.record_sink import RedisEmailOutbox, RedisRecordSink
from flowline.services.wait_scheduler import RedisWaitScheduler
from flowline.services.webhook_client import (
    WebhookClient,
    WebhookError,
    WebhookRequest,
    WebhookResponse,
)
from flowline.services.workflow_engine import WorkflowEngine
from flowline.services.workflow_service import WorkflowService
from flowline.services.workflow_store import RedisWorkflowStore, WorkflowNotFoundError

__all__ = [
    "GraphCodec",
    "GraphIssue",
    "GraphLoadResult",
    "GraphParseError",
    "InstanceNotFoundError",
    "IssueSeverity",
    "NodeExecutionError",
    "NodeExecutor",
    "NodeOutcome",
    "RedisEmailOutbox",
    "RedisInstanceLedger",
    "RedisRecordSink",
    "RedisWaitScheduler",
    "RedisWorkflowStore",
    "RunContext",
    "SizeAndTimeRotatingHandler",
    "WebhookClient",
    "WebhookError",
    "WebhookRequest",
    "WebhookResponse",
    "WorkflowEditor",
    "WorkflowEngine",
    "WorkflowNotFoundError",
    "WorkflowService",
    "compute_flow_path",
    "configure_logging",
    "editor_reducer",
    "get_trigger_node",
    "graph_fingerprint",
    "has_trigger",
    "load_graph",
    "parse_flow_path",
    "validate_graph",
]
