"""
Diagram Builder - Applies graph events to an in-memory Diagram.

This module implements:
- O(1) node/edge lookups via index dictionaries
- Per-event results instead of exceptions, so a consumer can keep going
- Batch-aware change callbacks (fired once per outermost batch)
- Layout hints recorded on the diagram metadata
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

from .events import (
    AddEdge, AddNode, BatchEnd, BatchStart, GraphEvent, SetLayout, UpdateNode,
)
from .models import Diagram, Edge, Node, utc_now

logger = logging.getLogger(__name__)


class EventStatus(str, Enum):
    """Outcome of applying one event."""
    SUCCESS = "success"
    NODE_EXISTS = "node_exists"
    NODE_NOT_FOUND = "node_not_found"
    EDGE_EXISTS = "edge_exists"
    INVALID = "invalid"


@dataclass
class EventResult:
    status: EventStatus
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == EventStatus.SUCCESS

    def to_dict(self) -> dict:
        result = {"status": self.status.value}
        if self.message:
            result["message"] = self.message
        return result


class DiagramBuilder:
    """
    Builds a single diagram from a stream of graph events.

    Features:
    - O(1) node/edge lookups via index dictionaries
    - Kind index and per-node edge index
    - Change callbacks, deferred while a batch is open
    """

    def __init__(self, name: str = "Untitled Diagram"):
        self._diagram = Diagram(name=name)
        self._on_change_callbacks: list[Callable] = []
        self._batch_depth = 0
        self._pending_change = False

        # O(1) lookup indexes
        self._node_index: dict[str, Node] = {}          # node_id -> Node
        self._edge_index: dict[str, Edge] = {}          # edge_id -> Edge
        self._kind_index: dict[str, set[str]] = {}      # kind -> set of node_ids
        self._edges_by_node: dict[str, set[str]] = {}   # node_id -> set of edge_ids

    # --- Index Management ---

    def _index_node(self, node: Node):
        """Add a node to the indexes."""
        self._node_index[node.id] = node
        self._kind_index.setdefault(node.kind, set()).add(node.id)

    def _index_edge(self, edge: Edge):
        """Add an edge to the indexes."""
        self._edge_index[edge.id] = edge
        self._edges_by_node.setdefault(edge.source, set()).add(edge.id)
        self._edges_by_node.setdefault(edge.target, set()).add(edge.id)

    # --- Properties ---

    @property
    def diagram(self) -> Diagram:
        """Get the diagram being built."""
        return self._diagram

    @property
    def in_batch(self) -> bool:
        return self._batch_depth > 0

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._node_index.get(node_id)

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        return self._edge_index.get(edge_id)

    def nodes_of_kind(self, kind: str) -> list[Node]:
        """All nodes with a given kind, in insertion order."""
        ids = self._kind_index.get(kind, set())
        return [node for node in self._diagram.nodes if node.id in ids]

    def edges_for_node(self, node_id: str) -> list[Edge]:
        """All edges touching a node, in insertion order."""
        ids = self._edges_by_node.get(node_id, set())
        return [edge for edge in self._diagram.edges if edge.id in ids]

    # --- Change Callbacks ---

    def on_change(self, callback: Callable):
        """Register a callback for diagram changes."""
        self._on_change_callbacks.append(callback)

    def _notify_change(self):
        """Notify callbacks now, or once the outermost batch ends."""
        if self.in_batch:
            self._pending_change = True
            return
        self._pending_change = False
        for callback in self._on_change_callbacks:
            callback()

    # --- Event Application ---

    def apply(self, event: GraphEvent) -> EventResult:
        """Apply one event to the diagram."""
        if isinstance(event, AddNode):
            return self._add_node(event)
        if isinstance(event, UpdateNode):
            return self._update_node(event)
        if isinstance(event, AddEdge):
            return self._add_edge(event)
        if isinstance(event, SetLayout):
            return self._set_layout(event)
        if isinstance(event, BatchStart):
            self._batch_depth += 1
            return EventResult(EventStatus.SUCCESS)
        if isinstance(event, BatchEnd):
            if self._batch_depth == 0:
                return EventResult(EventStatus.INVALID, "BatchEnd without BatchStart")
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._pending_change:
                self._notify_change()
            return EventResult(EventStatus.SUCCESS)
        return EventResult(EventStatus.INVALID, f"Unknown event {type(event).__name__}")

    def apply_all(self, events: Iterable[GraphEvent]) -> list[EventResult]:
        """Apply a whole event stream, returning one result per event."""
        results = [self.apply(event) for event in events]
        failed = [r for r in results if not r.ok]
        if failed:
            logger.debug("%d of %d events were not applied", len(failed), len(results))
        return results

    def _add_node(self, event: AddNode) -> EventResult:
        if event.id in self._node_index:
            return EventResult(EventStatus.NODE_EXISTS, f"Node {event.id} already exists")

        node = Node(id=event.id, label=event.label or event.id, kind=event.kind, attrs=dict(event.attrs))
        self._diagram.nodes.append(node)
        self._index_node(node)
        self._touch()
        return EventResult(EventStatus.SUCCESS)

    def _update_node(self, event: UpdateNode) -> EventResult:
        # O(1) lookup
        node = self._node_index.get(event.id)
        if node is None:
            return EventResult(EventStatus.NODE_NOT_FOUND, f"Node {event.id} not found")

        old_kind = node.kind
        for key, value in event.attrs.items():
            if key == "kind":
                node.kind = value
            elif key == "label":
                node.label = value
            else:
                node.attrs[key] = value

        if old_kind != node.kind:
            self._kind_index.get(old_kind, set()).discard(node.id)
            self._kind_index.setdefault(node.kind, set()).add(node.id)

        self._touch()
        return EventResult(EventStatus.SUCCESS)

    def _add_edge(self, event: AddEdge) -> EventResult:
        if event.id in self._edge_index:
            return EventResult(EventStatus.EDGE_EXISTS, f"Edge {event.id} already exists")
        for endpoint in (event.source, event.target):
            if endpoint not in self._node_index:
                return EventResult(EventStatus.NODE_NOT_FOUND, f"Node {endpoint} not found")

        edge = Edge(
            id=event.id,
            source=event.source,
            target=event.target,
            label=event.label or "",
            sequence=event.sequence,
            attrs=dict(event.attrs),
        )
        self._diagram.edges.append(edge)
        self._index_edge(edge)
        self._touch()
        return EventResult(EventStatus.SUCCESS)

    def _set_layout(self, event: SetLayout) -> EventResult:
        metadata = self._diagram.metadata
        metadata.layout = event.layout
        metadata.direction = event.direction
        metadata.layout_attrs = dict(event.attrs)
        self._touch()
        return EventResult(EventStatus.SUCCESS)

    def _touch(self):
        self._diagram.metadata.updated_at = utc_now()
        self._notify_change()


def build_diagram(events: Iterable[GraphEvent], name: str = "Untitled Diagram",
                  fmt: Optional[str] = None) -> Diagram:
    """Build a Diagram from events, ignoring events that could not be applied."""
    builder = DiagramBuilder(name=name)
    builder.diagram.metadata.format = fmt
    builder.apply_all(events)
    return builder.diagram
