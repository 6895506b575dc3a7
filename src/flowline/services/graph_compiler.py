"""Compilation of workflow graphs into a linear execution order."""

import hashlib
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from flowline.models.graph import WorkflowEdge, WorkflowNode

logger = logging.getLogger(__name__)


class IssueSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class GraphIssue:
    """A structural problem found in a workflow graph."""

    code: str
    severity: IssueSeverity
    message: str
    node_id: str | None = None
    edge_id: str | None = None


def get_trigger_node(nodes: Sequence[WorkflowNode]) -> WorkflowNode | None:
    """Return the first Trigger node, if any."""
    for node in nodes:
        if node.is_trigger:
            return node
    return None


def has_trigger(nodes: Sequence[WorkflowNode]) -> bool:
    return get_trigger_node(nodes) is not None


def compute_flow_path(
    nodes: Sequence[WorkflowNode],
    edges: Sequence[WorkflowEdge],
) -> list[str]:
    """Compute the execution order by depth-first traversal from the trigger.

    Outgoing edges are followed in list order. Each node appears at most
    once, at the position of the first edge that reaches it. Returns an
    empty list when the graph has no trigger.
    """
    trigger = get_trigger_node(nodes)
    if trigger is None:
        return []

    outgoing: dict[str, list[str]] = {}
    for edge in edges:
        outgoing.setdefault(edge.source, []).append(edge.target)

    visited: set[str] = set()
    path: list[str] = []

    # Explicit stack; targets pushed in reverse so they pop in edge order
    stack = [trigger.id]
    while stack:
        node_id = stack.pop()
        if node_id in visited:
            continue
        visited.add(node_id)
        path.append(node_id)
        for target in reversed(outgoing.get(node_id, [])):
            if target not in visited:
                stack.append(target)

    logger.debug(f"Computed flow path of {len(path)} nodes from {trigger.id}")
    return path


def graph_fingerprint(
    nodes: Sequence[WorkflowNode],
    edges: Sequence[WorkflowEdge],
) -> str:
    """Content hash of the parts of a graph that affect execution."""
    payload = {
        "nodes": [
            node.model_dump(mode="json", by_alias=True, exclude={"position"})
            for node in nodes
        ],
        "edges": [edge.model_dump(mode="json", by_alias=True) for edge in edges],
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()


def validate_graph(
    nodes: Sequence[WorkflowNode],
    edges: Sequence[WorkflowEdge],
) -> list[GraphIssue]:
    """Report structural problems without raising."""
    issues: list[GraphIssue] = []
    node_ids = {node.id for node in nodes}

    triggers = [node for node in nodes if node.is_trigger]
    if not triggers:
        issues.append(
            GraphIssue(
                code="missing_trigger",
                severity=IssueSeverity.ERROR,
                message="Workflow has no trigger node",
            )
        )
    for extra in triggers[1:]:
        issues.append(
            GraphIssue(
                code="multiple_triggers",
                severity=IssueSeverity.ERROR,
                message="Workflow has more than one trigger node",
                node_id=extra.id,
            )
        )

    for edge in edges:
        if edge.source == edge.target:
            issues.append(
                GraphIssue(
                    code="self_loop",
                    severity=IssueSeverity.WARNING,
                    message=f"Edge {edge.id} connects {edge.source} to itself",
                    edge_id=edge.id,
                )
            )
        missing = [end for end in (edge.source, edge.target) if end not in node_ids]
        if missing:
            issues.append(
                GraphIssue(
                    code="dangling_edge",
                    severity=IssueSeverity.WARNING,
                    message=f"Edge {edge.id} references unknown node(s): {missing}",
                    edge_id=edge.id,
                )
            )

    if triggers:
        reachable = set(compute_flow_path(nodes, edges))
        for node in nodes:
            if node.id not in reachable:
                issues.append(
                    GraphIssue(
                        code="unreachable_node",
                        severity=IssueSeverity.WARNING,
                        message=f"Node {node.id} is not reachable from the trigger",
                        node_id=node.id,
                    )
                )

    if issues:
        logger.debug(f"Graph validation found {len(issues)} issue(s)")
    return issues
