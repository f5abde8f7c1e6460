"""
diagram-events - Convert diagram text into a stream of graph events.

Supports Graphviz DOT graphs and PlantUML-style sequence diagrams. The same
event stream drives the CLI, the HTTP backend and the MCP tools.
"""

from .errors import (
    DiagramError,
    DiagramSyntaxError,
    AssemblyError,
    UnmatchedScopeClose,
    UnterminatedScope,
    NegativeActivation,
    MalformedArrow,
    StrayStatement,
)
from .events import (
    # Enums
    LayoutKind,
    Direction,
    # Events
    SetLayout,
    BatchStart,
    BatchEnd,
    AddNode,
    UpdateNode,
    AddEdge,
    GraphEvent,
    events_to_json,
    events_from_json,
)
from .productions import DiagramFormat, Document
from .registry import IdentityRegistry, ConflictingDeclaration
from .scope import ScopeKind, ScopeFrame, ScopeTracker
from .activation import ActivationTracker
from .assembler import AssemblyContext, BatchMode, EventAssembler
from .frontends import DotFrontend, SequenceFrontend, detect_format, get_frontend
from .pipeline import (
    assemble_diagram,
    iter_events,
    parse_diagram,
    parse_document,
    parse_dot,
    parse_sequence,
)
from .models import Node, Edge, DiagramMetadata, Diagram
from .builder import DiagramBuilder, EventResult, EventStatus, build_diagram
from .validation import validate_events, validation_summary, ValidationIssue, IssueSeverity

__all__ = [
    # Errors
    "DiagramError",
    "DiagramSyntaxError",
    "AssemblyError",
    "UnmatchedScopeClose",
    "UnterminatedScope",
    "NegativeActivation",
    "MalformedArrow",
    "StrayStatement",
    # Events
    "LayoutKind",
    "Direction",
    "SetLayout",
    "BatchStart",
    "BatchEnd",
    "AddNode",
    "UpdateNode",
    "AddEdge",
    "GraphEvent",
    "events_to_json",
    "events_from_json",
    # Parsing and assembly
    "DiagramFormat",
    "Document",
    "IdentityRegistry",
    "ConflictingDeclaration",
    "ScopeKind",
    "ScopeFrame",
    "ScopeTracker",
    "ActivationTracker",
    "AssemblyContext",
    "BatchMode",
    "EventAssembler",
    "DotFrontend",
    "SequenceFrontend",
    "detect_format",
    "get_frontend",
    "assemble_diagram",
    "iter_events",
    "parse_diagram",
    "parse_document",
    "parse_dot",
    "parse_sequence",
    # Models
    "Node",
    "Edge",
    "DiagramMetadata",
    "Diagram",
    # Builder
    "DiagramBuilder",
    "EventResult",
    "EventStatus",
    "build_diagram",
    # Validation
    "validate_events",
    "validation_summary",
    "ValidationIssue",
    "IssueSeverity",
]
