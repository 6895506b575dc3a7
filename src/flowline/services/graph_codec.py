"""Serialization of workflow graphs to and from their stored JSON text."""

import json
import logging
from dataclasses import dataclass, field
from typing import Iterable

from pydantic import TypeAdapter, ValidationError

from flowline.models.graph import WorkflowEdge, WorkflowNode

logger = logging.getLogger(__name__)


class GraphParseError(Exception):
    """Raised when a stored graph cannot be parsed."""

    pass


_NODES = TypeAdapter(list[WorkflowNode])
_EDGES = TypeAdapter(list[WorkflowEdge])
_FLOW_PATH = TypeAdapter(list[str])


@dataclass
class GraphLoadResult:
    """Outcome of a fail-open graph load."""

    nodes: list[WorkflowNode] = field(default_factory=list)
    edges: list[WorkflowEdge] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class GraphCodec:
    """Parses and dumps the node/edge wire format."""

    def parse_nodes(self, text: str) -> list[WorkflowNode]:
        """Parse a JSON array of nodes."""
        return self._parse(text, _NODES, "nodes")

    def parse_edges(self, text: str) -> list[WorkflowEdge]:
        """Parse a JSON array of edges."""
        return self._parse(text, _EDGES, "edges")

    def dump_nodes(self, nodes: Iterable[WorkflowNode]) -> str:
        return self._dump(list(nodes), _NODES)

    def dump_edges(self, edges: Iterable[WorkflowEdge]) -> str:
        return self._dump(list(edges), _EDGES)

    def dump_flow_path(self, flow_path: list[str]) -> str:
        return json.dumps(flow_path)

    def _parse(self, text: str, adapter: TypeAdapter, what: str) -> list:
        if text is None:
            raise GraphParseError(f"No {what} data")

        try:
            raw = json.loads(text)
        except (json.JSONDecodeError, TypeError) as e:
            raise GraphParseError(f"Invalid {what} JSON: {e}") from e

        if not isinstance(raw, list):
            raise GraphParseError(f"{what} must be a JSON array")

        try:
            return adapter.validate_python(raw)
        except ValidationError as e:
            raise GraphParseError(f"Invalid {what}: {e}") from e

    def _dump(self, items: list, adapter: TypeAdapter) -> str:
        data = adapter.dump_python(items, mode="json", by_alias=True, exclude_none=True)
        return json.dumps(data)


def load_graph(
    nodes_text: str | None,
    edges_text: str | None,
    codec: GraphCodec | None = None,
) -> GraphLoadResult:
    """Load a stored graph, falling back to empty halves on parse failure.

    Never raises. Parse failures are logged and returned in ``errors``.
    """
    codec = codec or GraphCodec()
    result = GraphLoadResult()

    try:
        result.nodes = codec.parse_nodes(nodes_text)
    except GraphParseError as e:
        logger.warning(f"Failed to parse workflow nodes: {e}")
        result.errors.append(str(e))

    try:
        result.edges = codec.parse_edges(edges_text)
    except GraphParseError as e:
        logger.warning(f"Failed to parse workflow edges: {e}")
        result.errors.append(str(e))

    return result


def parse_flow_path(text: str | None) -> list[str]:
    """Parse a cached flow path. Missing or invalid caches read as empty."""
    if text is None:
        return []

    try:
        return _FLOW_PATH.validate_json(text)
    except ValidationError as e:
        logger.warning(f"Failed to parse flow path: {e}")
        return []
