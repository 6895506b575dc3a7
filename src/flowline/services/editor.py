"""Undo/redo-capable editor state machine for authoring workflow graphs."""

import logging
from typing import Iterable

from flowline.models.editor import (
    MAX_HISTORY_LENGTH,
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
from flowline.models.graph import WorkflowEdge, WorkflowNode

logger = logging.getLogger(__name__)


def _commit(state: HistoryState, present: EditorState) -> HistoryState:
    """Record ``state.present`` in history and make ``present`` current."""
    past = (state.past + (state.present,))[-MAX_HISTORY_LENGTH:]
    return HistoryState(present=present, past=past, future=())


def editor_reducer(state: HistoryState, action: EditorAction) -> HistoryState:
    """Apply an editor action and return the new history state.

    Pure: ``state`` is never modified. Rejected actions return ``state``
    itself.
    """
    present = state.present

    if isinstance(action, LoadData):
        return HistoryState(
            present=EditorState(
                elements=tuple(action.elements),
                edges=tuple(action.edges),
            )
        )

    if isinstance(action, AddNode):
        node = action.node
        if node.is_trigger and any(el.is_trigger for el in present.elements):
            logger.debug(f"Rejected second trigger node {node.id}")
            return state
        return _commit(
            state,
            EditorState(
                elements=present.elements + (node,),
                edges=present.edges,
                selected_node=node,
            ),
        )

    if isinstance(action, UpdateNode):
        node = action.node
        selected = present.selected_node
        if selected is not None and selected.id == node.id:
            selected = node
        return _commit(
            state,
            EditorState(
                elements=tuple(node if el.id == node.id else el for el in present.elements),
                edges=present.edges,
                selected_node=selected,
            ),
        )

    if isinstance(action, DeleteNode):
        node_id = action.id
        selected = present.selected_node
        if selected is not None and selected.id == node_id:
            selected = None
        return _commit(
            state,
            EditorState(
                elements=tuple(el for el in present.elements if el.id != node_id),
                edges=tuple(
                    e for e in present.edges
                    if e.source != node_id and e.target != node_id
                ),
                selected_node=selected,
            ),
        )

    if isinstance(action, SelectNode):
        # Selection is not undoable
        return HistoryState(
            present=EditorState(
                elements=present.elements,
                edges=present.edges,
                selected_node=action.node,
            ),
            past=state.past,
            future=state.future,
        )

    if isinstance(action, UpdateEdges):
        return _commit(
            state,
            EditorState(
                elements=present.elements,
                edges=tuple(action.edges),
                selected_node=present.selected_node,
            ),
        )

    if isinstance(action, AddEdge):
        edge = action.edge
        if edge.source == edge.target:
            logger.debug(f"Rejected self-loop edge on {edge.source}")
            return state
        if any(e.connection_key == edge.connection_key for e in present.edges):
            return state
        return _commit(
            state,
            EditorState(
                elements=present.elements,
                edges=present.edges + (edge,),
                selected_node=present.selected_node,
            ),
        )

    if isinstance(action, DeleteEdge):
        return _commit(
            state,
            EditorState(
                elements=present.elements,
                edges=tuple(e for e in present.edges if e.id != action.id),
                selected_node=present.selected_node,
            ),
        )

    if isinstance(action, Undo):
        if not state.past:
            return state
        return HistoryState(
            present=state.past[-1],
            past=state.past[:-1],
            future=(present,) + state.future,
        )

    if isinstance(action, Redo):
        if not state.future:
            return state
        return HistoryState(
            present=state.future[0],
            past=state.past + (present,),
            future=state.future[1:],
        )

    if isinstance(action, Clear):
        return _commit(state, EditorState())

    raise TypeError(f"Unknown editor action: {type(action).__name__}")


class WorkflowEditor:
    """Holds editor history and applies actions to it."""

    def __init__(
        self,
        initial_nodes: Iterable[WorkflowNode] = (),
        initial_edges: Iterable[WorkflowEdge] = (),
    ):
        self._history = HistoryState(
            present=EditorState(
                elements=tuple(initial_nodes),
                edges=tuple(initial_edges),
            )
        )

    @property
    def history(self) -> HistoryState:
        return self._history

    @property
    def state(self) -> EditorState:
        return self._history.present

    @property
    def nodes(self) -> tuple[WorkflowNode, ...]:
        return self._history.present.elements

    @property
    def edges(self) -> tuple[WorkflowEdge, ...]:
        return self._history.present.edges

    @property
    def selected_node(self) -> WorkflowNode | None:
        return self._history.present.selected_node

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    def dispatch(self, action: EditorAction) -> EditorState:
        self._history = editor_reducer(self._history, action)
        return self._history.present

    def undo(self) -> EditorState:
        return self.dispatch(Undo())

    def redo(self) -> EditorState:
        return self.dispatch(Redo())

    def get_node(self, node_id: str) -> WorkflowNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_connected_nodes(self, node_id: str) -> list[WorkflowNode]:
        """Nodes sharing an edge with ``node_id``, in element order."""
        connected = set()
        for edge in self.edges:
            if edge.source == node_id:
                connected.add(edge.target)
            elif edge.target == node_id:
                connected.add(edge.source)
        connected.discard(node_id)
        return [node for node in self.nodes if node.id in connected]
