"""Editor state snapshots and the actions that transform them."""

from dataclasses import dataclass, field

from flowline.models.graph import WorkflowEdge, WorkflowNode

MAX_HISTORY_LENGTH = 50


@dataclass(frozen=True)
class EditorState:
    """In-memory authoring state. Never persisted directly."""

    elements: tuple[WorkflowNode, ...] = ()
    edges: tuple[WorkflowEdge, ...] = ()
    selected_node: WorkflowNode | None = None


@dataclass(frozen=True)
class HistoryState:
    """Undo/redo history of editor snapshots.

    ``past`` is oldest-first; ``future`` is next-first.
    """

    present: EditorState = field(default_factory=EditorState)
    past: tuple[EditorState, ...] = ()
    future: tuple[EditorState, ...] = ()

    @property
    def can_undo(self) -> bool:
        return len(self.past) > 0

    @property
    def can_redo(self) -> bool:
        return len(self.future) > 0


# Actions


@dataclass(frozen=True)
class LoadData:
    elements: tuple[WorkflowNode, ...]
    edges: tuple[WorkflowEdge, ...]


@dataclass(frozen=True)
class AddNode:
    node: WorkflowNode


@dataclass(frozen=True)
class UpdateNode:
    node: WorkflowNode


@dataclass(frozen=True)
class DeleteNode:
    id: str


@dataclass(frozen=True)
class SelectNode:
    node: WorkflowNode | None


@dataclass(frozen=True)
class UpdateEdges:
    edges: tuple[WorkflowEdge, ...]


@dataclass(frozen=True)
class AddEdge:
    edge: WorkflowEdge


@dataclass(frozen=True)
class DeleteEdge:
    id: str


@dataclass(frozen=True)
class Undo:
    pass


@dataclass(frozen=True)
class Redo:
    pass


@dataclass(frozen=True)
class Clear:
    pass


EditorAction = (
    LoadData
    | AddNode
    | UpdateNode
    | DeleteNode
    | SelectNode
    | UpdateEdges
    | AddEdge
    | DeleteEdge
    | Undo
    | Redo
    | Clear
)
