"""
Diagram models - What the events build up to.

These models define the schema of an assembled diagram:
- Nodes with a kind tag and free-form string attributes
- Edges connecting nodes (using source/target naming convention)
- Metadata for timestamps and the layout hint

Field Naming Convention:
- Edges use `source` and `target`
- JSON serialization outputs `source`/`target` for consistency
- Legacy `from`/`to` input is handled on the AddEdge event, not here
"""

from datetime import datetime, timezone
from typing import Optional
import uuid

from pydantic import BaseModel, Field

from .events import DEFAULT_KIND, Direction, LayoutKind


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Node(BaseModel):
    """A node in the diagram."""
    id: str
    label: str = ""
    kind: str = DEFAULT_KIND
    attrs: dict[str, str] = Field(default_factory=dict)


class Edge(BaseModel):
    """
    An edge connecting two nodes.

    `sequence` is only set for sequence diagram messages.
    """
    id: str
    source: str  # Source node ID
    target: str  # Target node ID
    label: str = ""
    sequence: Optional[int] = None  # Message order in sequence diagrams
    attrs: dict[str, str] = Field(default_factory=dict)

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        result = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "label": self.label,
            "attrs": dict(self.attrs),
        }
        # Only include the sequence number for messages
        if self.sequence is not None:
            result["sequence"] = self.sequence
        return result


class DiagramMetadata(BaseModel):
    """Metadata about the diagram."""
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    format: Optional[str] = None  # "dot" or "sequence"
    layout: Optional[LayoutKind] = None
    direction: Optional[Direction] = None
    layout_attrs: dict[str, str] = Field(default_factory=dict)


class Diagram(BaseModel):
    """
    The complete diagram structure, as built from an event stream.
    """
    id: str = Field(default_factory=lambda: f"diagram-{uuid.uuid4().hex[:8]}")
    name: str = "Untitled Diagram"
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    metadata: DiagramMetadata = Field(default_factory=DiagramMetadata)

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict with proper field names."""
        return {
            "id": self.id,
            "name": self.name,
            "nodes": [n.model_dump() for n in self.nodes],
            "edges": [e.to_json_dict() for e in self.edges],
            "metadata": self.metadata.model_dump(mode="json"),
        }

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get a node by ID (O(n) - use DiagramBuilder for indexed access)."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


# --- API Request Models ---

class ParseRequest(BaseModel):
    """Request to convert diagram text into events or a diagram."""
    text: str
    format: Optional[str] = None      # "dot" or "sequence"; detected when omitted
    batch_mode: Optional[str] = None  # "diagram" or "block"
    name: Optional[str] = None        # Diagram name for /api/diagram
