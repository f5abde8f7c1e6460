"""
Graph events - The output protocol of the assembler.

A diagram is delivered as an ordered list of immutable events:
- SetLayout: a layout hint, always before any node/edge event
- BatchStart / BatchEnd: consumption hints delimiting a group of events
- AddNode / UpdateNode: node creation and attribute deltas
- AddEdge: a connection, numbered for sequence diagrams

Field Naming Convention:
- Edges use `source` and `target`, matching the diagram models
- For backward compatibility, `from`/`to` are accepted on input and converted

All attribute values are strings. The `type` field discriminates the variants
when events are loaded back from JSON.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

DEFAULT_KIND = "generic"


class LayoutKind(str, Enum):
    """Layout families a consumer may apply."""
    HIERARCHICAL = "hierarchical"
    FORCE = "force"
    CIRCULAR = "circular"
    GRID = "grid"
    SEQUENTIAL = "sequential"


class Direction(str, Enum):
    """Flow direction for hierarchical and sequential layouts."""
    TOP_TO_BOTTOM = "TB"
    BOTTOM_TO_TOP = "BT"
    LEFT_TO_RIGHT = "LR"
    RIGHT_TO_LEFT = "RL"


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class SetLayout(_Event):
    """Layout hint for the whole diagram."""
    type: Literal["set_layout"] = "set_layout"
    layout: LayoutKind
    direction: Direction = Direction.TOP_TO_BOTTOM
    attrs: dict[str, str] = Field(default_factory=dict)


class BatchStart(_Event):
    """Start of a group of events meant to be applied together."""
    type: Literal["batch_start"] = "batch_start"


class BatchEnd(_Event):
    """End of the group opened by the matching BatchStart."""
    type: Literal["batch_end"] = "batch_end"


class AddNode(_Event):
    """A node, emitted exactly once per distinct node id."""
    type: Literal["add_node"] = "add_node"
    id: str
    kind: str = DEFAULT_KIND
    label: str = ""
    attrs: dict[str, str] = Field(default_factory=dict)

    def merged(self, delta: dict[str, str]) -> "AddNode":
        """Return a copy with an UpdateNode-style delta folded in."""
        attrs = dict(self.attrs)
        kind = self.kind
        label = self.label
        for key, value in delta.items():
            if key == "kind":
                kind = value
            elif key == "label":
                label = value
            else:
                attrs[key] = value
        return self.model_copy(update={"kind": kind, "label": label, "attrs": attrs})


class UpdateNode(_Event):
    """Attribute deltas for an existing node.

    The reserved keys `kind` and `label` update those fields; all other
    keys are merged into the node's attributes.
    """
    type: Literal["update_node"] = "update_node"
    id: str
    attrs: dict[str, str] = Field(default_factory=dict)


class AddEdge(_Event):
    """
    A connection between two nodes.

    Uses `source` and `target` as canonical field names.
    Accepts `from`/`to` on input for backward compatibility.
    """
    type: Literal["add_edge"] = "add_edge"
    id: str
    source: str
    target: str
    sequence: Optional[int] = None  # Message order, sequence diagrams only
    label: Optional[str] = None
    attrs: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert legacy 'from'/'to' fields to 'source'/'target'."""
        if isinstance(data, dict):
            data = dict(data)
            if 'from' in data and 'source' not in data:
                data['source'] = data.pop('from')
            if 'to' in data and 'target' not in data:
                data['target'] = data.pop('to')
        return data


GraphEvent = Annotated[
    Union[SetLayout, BatchStart, BatchEnd, AddNode, UpdateNode, AddEdge],
    Field(discriminator="type"),
]

_event_list_adapter = TypeAdapter(list[GraphEvent])


def events_to_json(events: list[GraphEvent]) -> list[dict]:
    """Serialize events to JSON-compatible dicts."""
    return [event.model_dump(mode="json") for event in events]


def events_from_json(data: list[dict]) -> list[GraphEvent]:
    """Load events previously produced by `events_to_json`."""
    return _event_list_adapter.validate_python(data)
