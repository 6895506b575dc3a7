"""Per-kind handlers that carry out a single workflow node."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from flowline.models.graph import (
    ActionConfig,
    ActionContent,
    ActionType,
    ConditionContent,
    EmailContent,
    NotificationContent,
    TriggerContent,
    WaitContent,
    WorkflowNode,
)
from flowline.models.records import OutboundEmail
from flowline.services.conditions import evaluate_condition, render_template
from flowline.services.record_sink import RedisEmailOutbox, RedisRecordSink
from flowline.services.webhook_client import WebhookClient, WebhookRequest

logger = logging.getLogger(__name__)


class NodeExecutionError(Exception):
    """Raised when a node cannot be executed."""

    pass


@dataclass(frozen=True)
class RunContext:
    """What a node handler may read about the run it belongs to."""

    workflow_id: str
    instance_id: str
    sub_account_id: str
    trigger_data: dict[str, Any] = field(default_factory=dict)


@dataclass
class NodeOutcome:
    """Result of executing one node.

    ``delay_ms`` asks the engine to hold the run before the next node;
    ``branch`` is the outcome of a Condition node.
    """

    message: str | None = None
    data: dict[str, Any] | None = None
    delay_ms: float | None = None
    branch: bool | None = None


class NodeExecutor:
    """Dispatches nodes to handlers by kind."""

    def __init__(
        self,
        records: RedisRecordSink,
        webhook_client: WebhookClient,
        email_outbox: RedisEmailOutbox | None = None,
    ):
        if records is None:
            raise ValueError("records is required")
        if webhook_client is None:
            raise ValueError("webhook_client is required")

        self._records = records
        self._webhooks = webhook_client
        self._outbox = email_outbox

    def execute(self, node: WorkflowNode, ctx: RunContext) -> NodeOutcome:
        """Execute a node. Handler failures propagate to the caller."""
        content = node.data.content

        if isinstance(content, TriggerContent):
            return NodeOutcome()
        if isinstance(content, ActionContent):
            return self._execute_action(content, ctx)
        if isinstance(content, WaitContent):
            return self._execute_wait(content)
        if isinstance(content, NotificationContent):
            return self._execute_notification(content, ctx)
        if isinstance(content, ConditionContent):
            return self._execute_condition(content, ctx)
        if isinstance(content, EmailContent):
            return self._execute_email(content, ctx)

        raise NodeExecutionError(f"Unknown node type: {type(content).__name__}")

    # Node kinds

    def _execute_wait(self, content: WaitContent) -> NodeOutcome:
        if content.config is None:
            return NodeOutcome(message="Wait node has no duration")
        config = content.config
        return NodeOutcome(
            message=f"Waiting {config.duration:g} {config.unit.value}",
            data={"duration": config.duration, "unit": config.unit.value},
            delay_ms=config.milliseconds,
        )

    def _execute_notification(
        self, content: NotificationContent, ctx: RunContext
    ) -> NodeOutcome:
        if content.config is None or not content.config.message:
            return NodeOutcome(message="Notification has no message")

        # Agency and recipient resolution are not available to the engine
        notification = self._records.create_notification(
            sub_account_id=ctx.sub_account_id,
            message=content.config.message,
            user_id=content.config.user_id or "",
            agency_id="",
        )
        return NodeOutcome(
            message="Notification created",
            data={"notification_id": notification.id},
        )

    def _execute_condition(
        self, content: ConditionContent, ctx: RunContext
    ) -> NodeOutcome:
        if content.config is None:
            return NodeOutcome(message="Condition not configured, passing", branch=True)

        result = evaluate_condition(content.config, ctx.trigger_data)
        return NodeOutcome(
            message=f"Condition evaluated to {str(result).lower()}",
            data={
                "field": content.config.field,
                "operator": content.config.operator.value,
                "value": content.config.value,
                "result": result,
            },
            branch=result,
        )

    def _execute_email(self, content: EmailContent, ctx: RunContext) -> NodeOutcome:
        if content.config is None:
            return NodeOutcome(message="Email node has no configuration")

        config = content.config
        email = OutboundEmail(
            to=render_template(config.to, ctx.trigger_data),
            subject=render_template(config.subject, ctx.trigger_data),
            body=render_template(config.body, ctx.trigger_data),
            from_name=config.from_name,
            sub_account_id=ctx.sub_account_id,
            workflow_id=ctx.workflow_id,
            instance_id=ctx.instance_id,
        )
        return self._queue_email(email)

    # Actions

    def _execute_action(self, content: ActionContent, ctx: RunContext) -> NodeOutcome:
        config = content.config or ActionConfig()
        action = content.action_type

        if action == ActionType.CREATE_CONTACT:
            return self._create_contact(config, ctx)
        if action == ActionType.UPDATE_CONTACT:
            return self._update_contact(config, ctx)
        if action == ActionType.MOVE_PIPELINE_STAGE:
            return self._move_pipeline_stage(config, ctx)
        if action == ActionType.SEND_EMAIL:
            return self._send_email_action(config, ctx)
        if action == ActionType.SEND_NOTIFICATION:
            return self._send_notification_action(config)
        if action == ActionType.WEBHOOK:
            return self._call_webhook(config, ctx)

        raise NodeExecutionError(f"Unknown action type: {action}")

    def _render_fields(self, config: ActionConfig, ctx: RunContext) -> dict[str, str]:
        return {
            key: render_template(value, ctx.trigger_data)
            for key, value in (config.contact_fields or {}).items()
        }

    def _create_contact(self, config: ActionConfig, ctx: RunContext) -> NodeOutcome:
        name = ctx.trigger_data.get("name")
        email = ctx.trigger_data.get("email")
        if not name or not email:
            return NodeOutcome(message="No name or email in trigger data, nothing created")

        contact = self._records.create_contact(
            sub_account_id=ctx.sub_account_id,
            name=str(name),
            email=str(email),
            fields=self._render_fields(config, ctx),
        )
        return NodeOutcome(message="Contact created", data={"contact_id": contact.id})

    def _update_contact(self, config: ActionConfig, ctx: RunContext) -> NodeOutcome:
        email = ctx.trigger_data.get("email")
        fields = self._render_fields(config, ctx)
        if not email or not fields:
            return NodeOutcome(message="No email or contact fields, nothing updated")

        contact = self._records.update_contact(ctx.sub_account_id, str(email), fields)
        if contact is None:
            return NodeOutcome(message=f"No contact with email {email}")
        return NodeOutcome(message="Contact updated", data={"contact_id": contact.id})

    def _move_pipeline_stage(
        self, config: ActionConfig, ctx: RunContext
    ) -> NodeOutcome:
        ticket_id = ctx.trigger_data.get("ticketId")
        if not ticket_id or not config.target_lane_id:
            return NodeOutcome(message="No ticket or target lane, nothing moved")

        self._records.move_ticket(
            str(ticket_id), config.target_lane_id, config.target_pipeline_id
        )
        return NodeOutcome(
            message=f"Ticket moved to lane {config.target_lane_id}",
            data={"ticket_id": ticket_id, "lane_id": config.target_lane_id},
        )

    def _send_email_action(self, config: ActionConfig, ctx: RunContext) -> NodeOutcome:
        to = ctx.trigger_data.get("email")
        if not to or not config.email_template:
            return NodeOutcome(message="No recipient or template, nothing sent")

        email = OutboundEmail(
            to=str(to),
            subject=render_template(config.email_subject or "", ctx.trigger_data),
            body=render_template(config.email_template, ctx.trigger_data),
            sub_account_id=ctx.sub_account_id,
            workflow_id=ctx.workflow_id,
            instance_id=ctx.instance_id,
        )
        return self._queue_email(email)

    def _send_notification_action(self, config: ActionConfig) -> NodeOutcome:
        if not config.notification_message:
            return NodeOutcome(message="Notification has no message")
        # Recipient resolution is not implemented; the message is only logged
        logger.info(f"Notification: {config.notification_message}")
        return NodeOutcome(message=config.notification_message)

    def _call_webhook(self, config: ActionConfig, ctx: RunContext) -> NodeOutcome:
        if not config.webhook_url:
            return NodeOutcome(message="No webhook URL configured")

        method = config.webhook_method.value if config.webhook_method else "POST"
        request = WebhookRequest(
            url=config.webhook_url,
            method=method,
            headers={"Content-Type": "application/json", **(config.webhook_headers or {})},
            body=config.webhook_body or json.dumps(ctx.trigger_data),
        )
        response = self._webhooks.send(request)
        return NodeOutcome(
            message=f"{method} {config.webhook_url} returned {response.status_code}",
            data={"status_code": response.status_code},
        )

    def _queue_email(self, email: OutboundEmail) -> NodeOutcome:
        if self._outbox is None:
            logger.info(f"Email to {email.to} not sent: no outbox configured")
            return NodeOutcome(message=f"Email to {email.to} logged only")

        self._outbox.enqueue(email)
        return NodeOutcome(message=f"Email to {email.to} queued", data={"to": email.to})
