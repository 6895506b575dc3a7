"""Workflow graph model: nodes, edges and per-kind node content."""

import uuid
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WorkflowNodeType(str, Enum):
    """Kinds of node a workflow graph can contain."""

    TRIGGER = "Trigger"
    ACTION = "Action"
    CONDITION = "Condition"
    WAIT = "Wait"
    EMAIL = "Email"
    NOTIFICATION = "Notification"


class TriggerType(str, Enum):
    """Events that can start a workflow."""

    CONTACT_FORM = "CONTACT_FORM"
    PIPELINE_STAGE_CHANGE = "PIPELINE_STAGE_CHANGE"
    TICKET_CREATED = "TICKET_CREATED"
    MANUAL = "MANUAL"


class ActionType(str, Enum):
    """Things an Action node can do."""

    CREATE_CONTACT = "CREATE_CONTACT"
    UPDATE_CONTACT = "UPDATE_CONTACT"
    MOVE_PIPELINE_STAGE = "MOVE_PIPELINE_STAGE"
    SEND_EMAIL = "SEND_EMAIL"
    SEND_NOTIFICATION = "SEND_NOTIFICATION"
    WEBHOOK = "WEBHOOK"


class ConditionOperator(str, Enum):
    """Comparison operators for Condition nodes."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


class WaitUnit(str, Enum):
    """Time units accepted by Wait nodes."""

    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"

    def to_milliseconds(self, duration: float) -> float:
        """Convert a duration in this unit to milliseconds."""
        return duration * _UNIT_MILLISECONDS[self]


_UNIT_MILLISECONDS = {
    WaitUnit.SECONDS: 1000,
    WaitUnit.MINUTES: 60 * 1000,
    WaitUnit.HOURS: 60 * 60 * 1000,
    WaitUnit.DAYS: 24 * 60 * 60 * 1000,
}


class WebhookMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class _WireModel(BaseModel):
    """Immutable model that reads and writes camelCase wire names."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


# Per-kind configuration payloads


class TriggerConfig(_WireModel):
    funnel_page_id: str | None = Field(default=None, alias="funnelPageId")
    pipeline_id: str | None = Field(default=None, alias="pipelineId")
    lane_id: str | None = Field(default=None, alias="laneId")


class ActionConfig(_WireModel):
    contact_fields: dict[str, str] | None = Field(default=None, alias="contactFields")
    target_pipeline_id: str | None = Field(default=None, alias="targetPipelineId")
    target_lane_id: str | None = Field(default=None, alias="targetLaneId")
    email_template: str | None = Field(default=None, alias="emailTemplate")
    email_subject: str | None = Field(default=None, alias="emailSubject")
    notification_message: str | None = Field(
        default=None, alias="notificationMessage"
    )
    webhook_url: str | None = Field(default=None, alias="webhookUrl")
    webhook_method: WebhookMethod | None = Field(default=None, alias="webhookMethod")
    webhook_headers: dict[str, str] | None = Field(default=None, alias="webhookHeaders")
    webhook_body: str | None = Field(default=None, alias="webhookBody")


class ConditionConfig(_WireModel):
    field: str
    operator: ConditionOperator
    value: str


class WaitConfig(_WireModel):
    duration: float
    unit: WaitUnit

    @field_validator("duration")
    @classmethod
    def duration_not_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("duration must be non-negative")
        return v

    @property
    def milliseconds(self) -> float:
        return self.unit.to_milliseconds(self.duration)


class EmailConfig(_WireModel):
    to: str
    subject: str
    body: str
    from_name: str | None = Field(default=None, alias="fromName")


class NotificationConfig(_WireModel):
    message: str
    user_id: str | None = Field(default=None, alias="userId")


# Node content variants, discriminated by nodeType


class TriggerContent(_WireModel):
    node_type: Literal["Trigger"] = Field(default="Trigger", alias="nodeType")
    trigger_type: TriggerType = Field(alias="triggerType")
    config: TriggerConfig | None = None


class ActionContent(_WireModel):
    node_type: Literal["Action"] = Field(default="Action", alias="nodeType")
    action_type: ActionType = Field(alias="actionType")
    config: ActionConfig | None = None


class ConditionContent(_WireModel):
    node_type: Literal["Condition"] = Field(default="Condition", alias="nodeType")
    config: ConditionConfig | None = None


class WaitContent(_WireModel):
    node_type: Literal["Wait"] = Field(default="Wait", alias="nodeType")
    config: WaitConfig | None = None


class EmailContent(_WireModel):
    node_type: Literal["Email"] = Field(default="Email", alias="nodeType")
    config: EmailConfig | None = None


class NotificationContent(_WireModel):
    node_type: Literal["Notification"] = Field(
        default="Notification", alias="nodeType"
    )
    config: NotificationConfig | None = None


NodeContent = Annotated[
    Union[
        TriggerContent,
        ActionContent,
        ConditionContent,
        WaitContent,
        EmailContent,
        NotificationContent,
    ],
    Field(discriminator="node_type"),
]


class Position(_WireModel):
    """Canvas coordinates. Not used by compilation or execution."""

    x: float
    y: float


class NodeData(_WireModel):
    title: str
    description: str = ""
    completed: bool = False
    current: bool = False
    content: NodeContent


class WorkflowNode(_WireModel):
    """A vertex in the workflow graph."""

    id: str
    type: str = "WorkflowNode"
    position: Position
    data: NodeData

    @field_validator("id")
    @classmethod
    def id_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("id must not be empty")
        return v

    @property
    def node_type(self) -> WorkflowNodeType:
        return WorkflowNodeType(self.data.content.node_type)

    @property
    def title(self) -> str:
        return self.data.title

    @property
    def is_trigger(self) -> bool:
        return self.node_type == WorkflowNodeType.TRIGGER


class WorkflowEdge(_WireModel):
    """Directed connection between two nodes.

    Handles name sub-ports on a node; Condition nodes use them to tell their
    true and false branches apart.
    """

    id: str
    source: str
    target: str
    source_handle: str | None = Field(default=None, alias="sourceHandle")
    target_handle: str | None = Field(default=None, alias="targetHandle")
    label: str | None = None

    @classmethod
    def connect(
        cls,
        source: str,
        target: str,
        source_handle: str | None = None,
        target_handle: str | None = None,
        label: str | None = None,
    ) -> "WorkflowEdge":
        """Create an edge with the conventional ``{source}-{target}`` id."""
        return cls(
            id=f"{source}-{target}",
            source=source,
            target=target,
            source_handle=source_handle,
            target_handle=target_handle,
            label=label,
        )

    @property
    def connection_key(self) -> tuple[str, str | None, str, str | None]:
        """Identity used to detect duplicate connections."""
        return (self.source, self.source_handle, self.target, self.target_handle)


# Node palette used by authoring surfaces to instantiate nodes


class NodePaletteItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: WorkflowNodeType
    title: str
    description: str
    icon: str
    default_content: NodeContent


NODE_PALETTE: tuple[NodePaletteItem, ...] = (
    NodePaletteItem(
        type=WorkflowNodeType.TRIGGER,
        title="Trigger",
        description="Start the workflow",
        icon="Zap",
        default_content=TriggerContent(trigger_type=TriggerType.MANUAL),
    ),
    NodePaletteItem(
        type=WorkflowNodeType.ACTION,
        title="Action",
        description="Perform an action",
        icon="Play",
        default_content=ActionContent(action_type=ActionType.SEND_NOTIFICATION),
    ),
    NodePaletteItem(
        type=WorkflowNodeType.CONDITION,
        title="Condition",
        description="Branch based on criteria",
        icon="GitBranch",
        default_content=ConditionContent(),
    ),
    NodePaletteItem(
        type=WorkflowNodeType.WAIT,
        title="Wait",
        description="Delay execution",
        icon="Clock",
        default_content=WaitContent(
            config=WaitConfig(duration=1, unit=WaitUnit.HOURS)
        ),
    ),
    NodePaletteItem(
        type=WorkflowNodeType.EMAIL,
        title="Send Email",
        description="Send an email",
        icon="Mail",
        default_content=EmailContent(),
    ),
    NodePaletteItem(
        type=WorkflowNodeType.NOTIFICATION,
        title="Notification",
        description="Send in-app notification",
        icon="Bell",
        default_content=NotificationContent(),
    ),
)


def get_palette_item(node_type: WorkflowNodeType | str) -> NodePaletteItem:
    """Look up the palette entry for a node kind."""
    try:
        kind = WorkflowNodeType(node_type)
    except ValueError as e:
        raise ValueError(f"Unknown node type: {node_type}") from e

    for item in NODE_PALETTE:
        if item.type == kind:
            return item
    raise ValueError(f"Unknown node type: {node_type}")


def create_node(
    node_type: WorkflowNodeType | str,
    position: Position | tuple[float, float],
    node_id: str | None = None,
) -> WorkflowNode:
    """Create a node with the palette defaults for its kind."""
    item = get_palette_item(node_type)
    if not isinstance(position, Position):
        x, y = position
        position = Position(x=x, y=y)

    return WorkflowNode(
        id=node_id or str(uuid.uuid4()),
        position=position,
        data=NodeData(
            title=item.title,
            description=item.description,
            content=item.default_content,
        ),
    )


def default_trigger_node() -> WorkflowNode:
    """Trigger node a newly created workflow starts with."""
    return create_node(WorkflowNodeType.TRIGGER, Position(x=250, y=100))
