"""Unit tests for graph serialization."""

import json

import pytest

from flowline.models.graph import (
    WaitConfig,
    WaitContent,
    WaitUnit,
    WorkflowEdge,
    WorkflowNodeType,
    create_node,
)
from flowline.services.graph_codec import (
    GraphCodec,
    GraphParseError,
    load_graph,
    parse_flow_path,
)


@pytest.fixture
def codec():
    return GraphCodec()


@pytest.fixture
def nodes():
    trigger = create_node(WorkflowNodeType.TRIGGER, (0, 0), node_id="t1")
    wait = create_node(WorkflowNodeType.WAIT, (0, 100), node_id="w1")
    wait = wait.model_copy(
        update={
            "data": wait.data.model_copy(
                update={"content": WaitContent(config=WaitConfig(duration=2, unit=WaitUnit.SECONDS))}
            )
        }
    )
    return [trigger, wait]


@pytest.fixture
def edges():
    return [WorkflowEdge.connect("t1", "w1")]


class TestGraphCodecParse:
    """Tests for parsing stored graph text."""

    def test_parse_dumped_nodes(self, codec, nodes):
        parsed = codec.parse_nodes(codec.dump_nodes(nodes))
        assert parsed == nodes

    def test_parse_edges_from_wire_json(self, codec):
        text = json.dumps(
            [{"id": "e1", "source": "a", "target": "b", "sourceHandle": "false"}]
        )
        edges = codec.parse_edges(text)
        assert len(edges) == 1
        assert edges[0].source_handle == "false"

    def test_parse_empty_array(self, codec):
        assert codec.parse_nodes("[]") == []

    def test_parse_none_raises(self, codec):
        with pytest.raises(GraphParseError, match="No nodes data"):
            codec.parse_nodes(None)

    def test_parse_invalid_json_raises(self, codec):
        with pytest.raises(GraphParseError, match="Invalid nodes JSON"):
            codec.parse_nodes("{not json")

    def test_parse_non_array_raises(self, codec):
        with pytest.raises(GraphParseError, match="must be a JSON array"):
            codec.parse_edges('{"id": "e1"}')

    def test_parse_wrong_discriminant_raises(self, codec):
        text = json.dumps(
            [
                {
                    "id": "n1",
                    "position": {"x": 0, "y": 0},
                    "data": {"title": "X", "content": {"nodeType": "Unknown"}},
                }
            ]
        )
        with pytest.raises(GraphParseError, match="Invalid nodes"):
            codec.parse_nodes(text)


class TestGraphCodecDump:
    """Tests for writing graph text."""

    def test_dump_uses_camel_case(self, codec, nodes):
        data = json.loads(codec.dump_nodes(nodes))
        assert data[1]["data"]["content"] == {
            "nodeType": "Wait",
            "config": {"duration": 2.0, "unit": "seconds"},
        }

    def test_dump_omits_unset_optionals(self, codec, edges):
        data = json.loads(codec.dump_edges(edges))
        assert data == [{"id": "t1-w1", "source": "t1", "target": "w1"}]

    def test_dump_flow_path(self, codec):
        assert json.loads(codec.dump_flow_path(["t1", "w1"])) == ["t1", "w1"]


class TestLoadGraph:
    """Tests for fail-open graph loading."""

    def test_load_valid_graph(self, codec, nodes, edges):
        result = load_graph(codec.dump_nodes(nodes), codec.dump_edges(edges))
        assert result.ok
        assert [n.id for n in result.nodes] == ["t1", "w1"]
        assert len(result.edges) == 1

    def test_malformed_nodes_fall_back_to_empty(self, codec, edges):
        result = load_graph("garbage", codec.dump_edges(edges))
        assert not result.ok
        assert result.nodes == []
        assert len(result.edges) == 1
        assert len(result.errors) == 1

    def test_partially_typed_nodes_rejected_whole(self, codec, nodes):
        raw = json.loads(codec.dump_nodes(nodes))
        raw.append({"id": "bad", "position": {"x": 0, "y": 0}, "data": {"title": "B"}})
        result = load_graph(json.dumps(raw), "[]")
        assert result.nodes == []
        assert result.errors

    def test_both_halves_missing(self):
        result = load_graph(None, None)
        assert result.nodes == []
        assert result.edges == []
        assert len(result.errors) == 2

    def test_parse_errors_are_logged(self, caplog):
        with caplog.at_level("WARNING"):
            load_graph("[", "[]")
        assert "Failed to parse workflow nodes" in caplog.text


class TestParseFlowPath:
    """Tests for reading the cached flow path."""

    def test_parse_valid(self):
        assert parse_flow_path('["a", "b"]') == ["a", "b"]

    def test_none_is_empty(self):
        assert parse_flow_path(None) == []

    def test_invalid_is_empty(self):
        assert parse_flow_path("not a list") == []

    def test_wrong_item_type_is_empty(self):
        assert parse_flow_path("[1, {}]") == []
