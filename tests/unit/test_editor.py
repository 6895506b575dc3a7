"""Unit tests for the editor reducer and WorkflowEditor."""

import pytest

from flowline.models.editor import (
    MAX_HISTORY_LENGTH,
    AddEdge,
    AddNode,
    Clear,
    DeleteEdge,
    DeleteNode,
    EditorState,
    HistoryState,
    LoadData,
    Redo,
    SelectNode,
    Undo,
    UpdateEdges,
    UpdateNode,
)
from flowline.models.graph import WorkflowEdge, WorkflowNodeType, create_node
from flowline.services.editor import WorkflowEditor, editor_reducer
from flowline.services.graph_compiler import compute_flow_path


def node(node_id: str, kind: WorkflowNodeType = WorkflowNodeType.ACTION):
    return create_node(kind, (0, 0), node_id=node_id)


def retitled(original, title: str):
    return original.model_copy(
        update={"data": original.data.model_copy(update={"title": title})}
    )


@pytest.fixture
def empty():
    return HistoryState()


@pytest.fixture
def loaded():
    """History with a trigger and two actions wired T -> A -> B."""
    return editor_reducer(
        HistoryState(),
        LoadData(
            elements=(node("T", WorkflowNodeType.TRIGGER), node("A"), node("B")),
            edges=(WorkflowEdge.connect("T", "A"), WorkflowEdge.connect("A", "B")),
        ),
    )


class TestLoadData:
    """Tests for LOAD_DATA."""

    def test_replaces_graph_and_resets_history(self, empty):
        state = editor_reducer(empty, AddNode(node("X")))
        state = editor_reducer(
            state, LoadData(elements=(node("A"),), edges=())
        )
        assert [n.id for n in state.present.elements] == ["A"]
        assert state.present.selected_node is None
        assert state.past == ()
        assert state.future == ()


class TestNodeActions:
    """Tests for ADD_NODE, UPDATE_NODE and DELETE_NODE."""

    def test_add_node_appends_and_selects(self, empty):
        a = node("A")
        state = editor_reducer(empty, AddNode(a))
        assert state.present.elements == (a,)
        assert state.present.selected_node == a
        assert state.past == (empty.present,)

    def test_add_second_trigger_rejected(self, loaded):
        state = editor_reducer(loaded, AddNode(node("T2", WorkflowNodeType.TRIGGER)))
        assert state is loaded

    def test_update_node_replaces_by_id(self, loaded):
        updated = retitled(loaded.present.elements[1], "Renamed")
        state = editor_reducer(loaded, UpdateNode(updated))
        assert state.present.elements[1].title == "Renamed"
        assert len(state.present.elements) == 3
        assert state.can_undo

    def test_update_node_refreshes_selection(self, loaded):
        a = loaded.present.elements[1]
        state = editor_reducer(loaded, SelectNode(a))
        state = editor_reducer(state, UpdateNode(retitled(a, "Renamed")))
        assert state.present.selected_node.title == "Renamed"

    def test_update_node_leaves_other_selection(self, loaded):
        b = loaded.present.elements[2]
        state = editor_reducer(loaded, SelectNode(b))
        state = editor_reducer(
            state, UpdateNode(retitled(loaded.present.elements[1], "Renamed"))
        )
        assert state.present.selected_node == b

    def test_delete_node_removes_connected_edges(self, loaded):
        state = editor_reducer(loaded, DeleteNode("A"))
        assert [n.id for n in state.present.elements] == ["T", "B"]
        assert state.present.edges == ()

    def test_deleted_node_absent_from_flow_path(self, loaded):
        state = editor_reducer(loaded, DeleteNode("A"))
        path = compute_flow_path(state.present.elements, state.present.edges)
        assert "A" not in path
        assert path == ["T"]

    def test_delete_selected_node_clears_selection(self, loaded):
        state = editor_reducer(loaded, SelectNode(loaded.present.elements[1]))
        state = editor_reducer(state, DeleteNode("A"))
        assert state.present.selected_node is None


class TestSelectNode:
    """Tests for SELECT_NODE."""

    def test_selection_is_not_undoable(self, loaded):
        state = editor_reducer(loaded, AddNode(node("C")))
        state = editor_reducer(state, SelectNode(state.present.elements[0]))
        assert state.past == (loaded.present,)
        assert state.present.selected_node.id == "T"

    def test_selection_keeps_future(self, loaded):
        state = editor_reducer(loaded, AddNode(node("C")))
        state = editor_reducer(state, Undo())
        state = editor_reducer(state, SelectNode(None))
        assert state.can_redo


class TestEdgeActions:
    """Tests for ADD_EDGE, DELETE_EDGE and UPDATE_EDGES."""

    def test_add_edge(self, loaded):
        state = editor_reducer(loaded, AddEdge(WorkflowEdge.connect("T", "B")))
        assert len(state.present.edges) == 3

    def test_add_edge_is_idempotent(self, loaded):
        e = WorkflowEdge.connect("T", "B")
        once = editor_reducer(loaded, AddEdge(e))
        twice = editor_reducer(once, AddEdge(e))
        assert twice is once
        assert len(twice.present.edges) == 3

    def test_duplicate_with_different_id_rejected(self, loaded):
        dup = WorkflowEdge(id="other-id", source="T", target="A")
        assert editor_reducer(loaded, AddEdge(dup)) is loaded

    def test_same_pair_different_handles_allowed(self, empty):
        state = editor_reducer(
            empty,
            LoadData(
                elements=(node("C", WorkflowNodeType.CONDITION), node("A")),
                edges=(),
            ),
        )
        state = editor_reducer(
            state, AddEdge(WorkflowEdge(id="e-true", source="C", target="A", source_handle="true"))
        )
        state = editor_reducer(
            state, AddEdge(WorkflowEdge(id="e-false", source="C", target="A", source_handle="false"))
        )
        assert len(state.present.edges) == 2

    def test_self_loop_rejected(self, loaded):
        assert editor_reducer(loaded, AddEdge(WorkflowEdge.connect("A", "A"))) is loaded

    def test_delete_edge(self, loaded):
        state = editor_reducer(loaded, DeleteEdge("T-A"))
        assert [e.id for e in state.present.edges] == ["A-B"]
        assert state.can_undo

    def test_update_edges_replaces_wholesale(self, loaded):
        replacement = (WorkflowEdge.connect("T", "B"),)
        state = editor_reducer(loaded, UpdateEdges(replacement))
        assert state.present.edges == replacement


class TestUndoRedo:
    """Tests for history navigation."""

    def test_undo_and_redo_n_actions(self, empty):
        actions = [
            AddNode(node("T", WorkflowNodeType.TRIGGER)),
            AddNode(node("A")),
            AddEdge(WorkflowEdge.connect("T", "A")),
            AddNode(node("B")),
            AddEdge(WorkflowEdge.connect("A", "B")),
        ]
        state = empty
        for action in actions:
            state = editor_reducer(state, action)
        final = state.present

        for _ in actions:
            state = editor_reducer(state, Undo())
        assert state.present == EditorState()
        assert not state.can_undo

        for _ in actions:
            state = editor_reducer(state, Redo())
        assert state.present == final
        assert not state.can_redo

    def test_undo_on_empty_past_is_noop(self, empty):
        assert editor_reducer(empty, Undo()) is empty

    def test_redo_on_empty_future_is_noop(self, loaded):
        assert editor_reducer(loaded, Redo()) is loaded

    def test_mutation_after_undo_clears_future(self, empty):
        state = editor_reducer(empty, AddNode(node("A")))
        state = editor_reducer(state, Undo())
        assert state.can_redo
        state = editor_reducer(state, AddNode(node("B")))
        assert not state.can_redo
        assert editor_reducer(state, Redo()) is state

    def test_past_is_capped(self, empty):
        state = empty
        for i in range(MAX_HISTORY_LENGTH + 10):
            state = editor_reducer(state, AddNode(node(f"n{i}")))
        assert len(state.past) == MAX_HISTORY_LENGTH
        # Oldest snapshots were dropped first
        assert len(state.past[0].elements) == 10

    def test_clear_is_undoable(self, loaded):
        state = editor_reducer(loaded, Clear())
        assert state.present == EditorState()
        state = editor_reducer(state, Undo())
        assert state.present == loaded.present

    def test_reducer_does_not_mutate_input(self, loaded):
        before = loaded.present
        editor_reducer(loaded, DeleteNode("A"))
        assert loaded.present is before
        assert len(loaded.present.elements) == 3

    def test_unknown_action_raises(self, empty):
        with pytest.raises(TypeError, match="Unknown editor action"):
            editor_reducer(empty, object())


class TestWorkflowEditor:
    """Tests for the stateful editor wrapper."""

    def test_initial_graph(self):
        editor = WorkflowEditor([node("T", WorkflowNodeType.TRIGGER)], [])
        assert [n.id for n in editor.nodes] == ["T"]
        assert editor.edges == ()
        assert not editor.can_undo

    def test_dispatch_undo_redo(self):
        editor = WorkflowEditor()
        editor.dispatch(AddNode(node("A")))
        assert editor.selected_node.id == "A"
        editor.undo()
        assert editor.nodes == ()
        assert editor.can_redo
        editor.redo()
        assert editor.get_node("A") is not None

    def test_get_node_missing(self):
        assert WorkflowEditor().get_node("nope") is None

    def test_get_connected_nodes(self):
        editor = WorkflowEditor(
            [node("T", WorkflowNodeType.TRIGGER), node("A"), node("B"), node("C")],
            [WorkflowEdge.connect("T", "A"), WorkflowEdge.connect("A", "B")],
        )
        assert [n.id for n in editor.get_connected_nodes("A")] == ["T", "B"]
        assert editor.get_connected_nodes("C") == []
