"""
Normalized productions - What a grammar front-end hands to the assembler.

Both grammars lower their parse trees into a flat, document-ordered list of
these records. Opening and closing constructs (block keywords, braces) stay
separate productions so the assembler can check their balance itself.

Every production carries the line/column where it starts.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class DiagramFormat(str, Enum):
    """Supported diagram text formats."""
    DOT = "dot"
    SEQUENCE = "sequence"


@dataclass(frozen=True, kw_only=True)
class Production:
    line: int = 0
    column: int = 0


# --- Sequence productions ---

@dataclass(frozen=True)
class Declaration(Production):
    """`participant "Long Name" as L #color`"""
    kind: str
    name: str
    alias: Optional[str] = None
    label: Optional[str] = None
    attrs: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Message(Production):
    """`A -> B ++ : label`"""
    source: str
    arrow: str
    target: str
    label: Optional[str] = None
    activation: Optional[str] = None  # "++" or "--"


@dataclass(frozen=True)
class Activation(Production):
    name: str
    attrs: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Deactivation(Production):
    name: str


@dataclass(frozen=True)
class Destroy(Production):
    name: str


@dataclass(frozen=True)
class Note(Production):
    targets: tuple[str, ...]
    position: str  # left, right or over
    text: str


@dataclass(frozen=True)
class Divider(Production):
    style: str  # separator, delay or space
    text: str = ""


@dataclass(frozen=True)
class BlockOpen(Production):
    kind: str
    condition: Optional[str] = None


@dataclass(frozen=True)
class BlockElse(Production):
    condition: Optional[str] = None


@dataclass(frozen=True)
class BlockEnd(Production):
    pass


@dataclass(frozen=True)
class Comment(Production):
    text: str


# --- Graph (DOT) productions ---

@dataclass(frozen=True)
class NodeRef:
    name: str
    port: Optional[str] = None


@dataclass(frozen=True)
class GraphOpen(Production):
    directed: bool
    strict: bool = False
    name: Optional[str] = None


@dataclass(frozen=True)
class SubgraphOpen(Production):
    name: Optional[str] = None


@dataclass(frozen=True)
class ScopeClose(Production):
    """`}` or `} -> C [attrs]`

    A closing brace followed by an edge chain makes the closed subgraph the
    chain's first endpoint; `endpoints` and `operators` hold the rest of the
    chain, shaped as in EdgeStatement.
    """
    endpoints: tuple[tuple[NodeRef, ...], ...] = ()
    operators: tuple[str, ...] = ()
    attrs: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class NodeStatement(Production):
    node: NodeRef
    attrs: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class EdgeStatement(Production):
    """`A -> B -> {C D} [attrs]`

    `endpoints` holds one tuple per chain position; a `{C D}` group yields a
    tuple with several members. `operators[i]` joins endpoints i and i+1.
    """
    endpoints: tuple[tuple[NodeRef, ...], ...]
    operators: tuple[str, ...]
    attrs: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class AttrStatement(Production):
    """`graph|node|edge [attrs]`"""
    target: str
    attrs: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Assignment(Production):
    """`rankdir=LR`"""
    key: str
    value: str


@dataclass
class Document:
    """A parsed diagram: its format plus productions in document order."""
    format: DiagramFormat
    productions: list[Production] = field(default_factory=list)
