"""Unit tests for workflow graph models."""

import pytest
from pydantic import ValidationError

from flowline.models.graph import (
    NODE_PALETTE,
    ActionContent,
    ActionType,
    ConditionContent,
    NodeData,
    Position,
    TriggerContent,
    TriggerType,
    WaitConfig,
    WaitContent,
    WaitUnit,
    WorkflowEdge,
    WorkflowNode,
    WorkflowNodeType,
    create_node,
    default_trigger_node,
    get_palette_item,
)


class TestWaitUnit:
    """Tests for wait duration conversion."""

    @pytest.mark.parametrize(
        "unit,expected",
        [
            (WaitUnit.SECONDS, 1000),
            (WaitUnit.MINUTES, 60000),
            (WaitUnit.HOURS, 3600000),
            (WaitUnit.DAYS, 86400000),
        ],
    )
    def test_to_milliseconds(self, unit, expected):
        assert unit.to_milliseconds(1) == expected

    def test_wait_config_milliseconds(self):
        config = WaitConfig(duration=2, unit=WaitUnit.SECONDS)
        assert config.milliseconds == 2000

    def test_fractional_duration(self):
        config = WaitConfig(duration=1.5, unit=WaitUnit.MINUTES)
        assert config.milliseconds == 90000

    def test_negative_duration_rejected(self):
        with pytest.raises(ValidationError, match="non-negative"):
            WaitConfig(duration=-1, unit=WaitUnit.SECONDS)

    def test_unknown_unit_rejected(self):
        with pytest.raises(ValidationError):
            WaitConfig(duration=1, unit="weeks")


class TestWorkflowNode:
    """Tests for node parsing from the wire format."""

    def test_parse_trigger_node(self):
        node = WorkflowNode.model_validate(
            {
                "id": "t1",
                "type": "WorkflowNode",
                "position": {"x": 10, "y": 20},
                "data": {
                    "title": "Form submitted",
                    "description": "",
                    "completed": False,
                    "current": False,
                    "content": {"nodeType": "Trigger", "triggerType": "CONTACT_FORM"},
                },
            }
        )
        assert node.node_type == WorkflowNodeType.TRIGGER
        assert node.is_trigger
        assert isinstance(node.data.content, TriggerContent)
        assert node.data.content.trigger_type == TriggerType.CONTACT_FORM

    def test_parse_action_with_config(self):
        node = WorkflowNode.model_validate(
            {
                "id": "a1",
                "position": {"x": 0, "y": 0},
                "data": {
                    "title": "Call CRM",
                    "content": {
                        "nodeType": "Action",
                        "actionType": "WEBHOOK",
                        "config": {
                            "webhookUrl": "https://example.com/hook",
                            "webhookMethod": "PUT",
                        },
                    },
                },
            }
        )
        content = node.data.content
        assert isinstance(content, ActionContent)
        assert content.action_type == ActionType.WEBHOOK
        assert content.config.webhook_url == "https://example.com/hook"
        assert content.config.webhook_method.value == "PUT"
        assert not node.is_trigger

    def test_wrong_discriminant_rejected(self):
        with pytest.raises(ValidationError):
            WorkflowNode.model_validate(
                {
                    "id": "x",
                    "position": {"x": 0, "y": 0},
                    "data": {"title": "X", "content": {"nodeType": "Teleport"}},
                }
            )

    def test_missing_kind_field_rejected(self):
        """Action content must carry an actionType."""
        with pytest.raises(ValidationError):
            WorkflowNode.model_validate(
                {
                    "id": "a1",
                    "position": {"x": 0, "y": 0},
                    "data": {"title": "A", "content": {"nodeType": "Action"}},
                }
            )

    def test_condition_config_requires_operator(self):
        with pytest.raises(ValidationError):
            ConditionContent.model_validate(
                {"nodeType": "Condition", "config": {"field": "email", "value": "x"}}
            )

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError, match="id must not be empty"):
            WorkflowNode(
                id=" ",
                position=Position(x=0, y=0),
                data=NodeData(title="T", content=WaitContent()),
            )

    def test_nodes_are_immutable(self):
        node = default_trigger_node()
        with pytest.raises(ValidationError):
            node.id = "other"

    def test_dump_uses_wire_names(self):
        node = create_node(WorkflowNodeType.TRIGGER, (1, 2), node_id="t1")
        data = node.model_dump(mode="json", by_alias=True)
        assert data["data"]["content"]["nodeType"] == "Trigger"
        assert data["data"]["content"]["triggerType"] == "MANUAL"
        assert data["position"] == {"x": 1, "y": 2}


class TestWorkflowEdge:
    """Tests for edges."""

    def test_parse_with_handles(self):
        edge = WorkflowEdge.model_validate(
            {
                "id": "e1",
                "source": "c1",
                "target": "a1",
                "sourceHandle": "true",
                "label": "Yes",
            }
        )
        assert edge.source_handle == "true"
        assert edge.target_handle is None
        assert edge.label == "Yes"

    def test_connect_builds_conventional_id(self):
        edge = WorkflowEdge.connect("a", "b")
        assert edge.id == "a-b"
        assert edge.source == "a"
        assert edge.target == "b"

    def test_connection_key_includes_handles(self):
        true_edge = WorkflowEdge.connect("c", "a", source_handle="true")
        false_edge = WorkflowEdge.connect("c", "a", source_handle="false")
        assert true_edge.connection_key != false_edge.connection_key


class TestNodePalette:
    """Tests for the node palette and node factory."""

    def test_palette_covers_every_kind(self):
        assert {item.type for item in NODE_PALETTE} == set(WorkflowNodeType)

    def test_get_palette_item_by_name(self):
        item = get_palette_item("Wait")
        assert item.type == WorkflowNodeType.WAIT
        assert item.default_content.config.unit == WaitUnit.HOURS

    def test_get_palette_item_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown node type: Teleport"):
            get_palette_item("Teleport")

    def test_create_node_uses_palette_defaults(self):
        node = create_node(WorkflowNodeType.ACTION, Position(x=5, y=6))
        assert node.title == "Action"
        assert node.data.description == "Perform an action"
        assert node.data.content.action_type == ActionType.SEND_NOTIFICATION
        assert node.id

    def test_create_node_generates_unique_ids(self):
        a = create_node(WorkflowNodeType.EMAIL, (0, 0))
        b = create_node(WorkflowNodeType.EMAIL, (0, 0))
        assert a.id != b.id

    def test_default_trigger_node(self):
        node = default_trigger_node()
        assert node.is_trigger
        assert node.position == Position(x=250, y=100)
        assert node.data.content.trigger_type == TriggerType.MANUAL
