"""
Scope tracking - The nesting stack for subgraphs and control blocks.

Frames live in a flat list; each frame refers to its parent by index, so the
stack never holds references into itself. Frames close in strict LIFO order.

Graph format:    graph, subgraph
Sequence format: alt, loop, opt, par, group, critical, break
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from .errors import UnmatchedScopeClose, UnterminatedScope


class ScopeKind(str, Enum):
    """Kinds of nesting frames."""
    GRAPH = "graph"
    SUBGRAPH = "subgraph"
    ALT = "alt"
    LOOP = "loop"
    OPT = "opt"
    PAR = "par"
    GROUP = "group"
    CRITICAL = "critical"
    BREAK = "break"


GRAPH_KINDS = frozenset({ScopeKind.GRAPH, ScopeKind.SUBGRAPH})
BLOCK_KINDS = frozenset(set(ScopeKind) - GRAPH_KINDS)
BRANCHING_KINDS = frozenset({ScopeKind.ALT, ScopeKind.PAR, ScopeKind.CRITICAL})


@dataclass
class ScopeFrame:
    """One open scope."""
    kind: ScopeKind
    label: Optional[str] = None       # Subgraph name or block condition
    parent: Optional[int] = None      # Index of the enclosing frame
    block_id: int = 0                 # Shared by all branches of a block
    branch: int = 0                   # 0 for the first branch, +1 per else
    line: int = 0
    node_defaults: dict[str, str] = field(default_factory=dict)
    edge_defaults: dict[str, str] = field(default_factory=dict)
    attrs: dict[str, str] = field(default_factory=dict)  # Graph attributes
    members: list[str] = field(default_factory=list)     # Node ids referenced inside


class ScopeTracker:
    """
    Explicit stack of nesting frames.

    A new frame copies its parent's node/edge defaults and graph attributes,
    so lookups only ever need the top frame.
    """

    def __init__(self):
        self._frames: list[ScopeFrame] = []
        self._next_block_id = 1

    def __len__(self) -> int:
        return len(self._frames)

    @property
    def frames(self) -> tuple[ScopeFrame, ...]:
        return tuple(self._frames)

    def current(self) -> Optional[ScopeFrame]:
        return self._frames[-1] if self._frames else None

    def current_depth(self) -> int:
        return len(self._frames)

    def open(self, kind: ScopeKind, label: Optional[str] = None, line: int = 0) -> ScopeFrame:
        """Push a new frame inheriting from the current one."""
        parent = self.current()
        frame = ScopeFrame(
            kind=ScopeKind(kind),
            label=label,
            parent=len(self._frames) - 1 if parent else None,
            block_id=self._next_block_id,
            line=line,
        )
        self._next_block_id += 1
        if parent:
            frame.node_defaults = dict(parent.node_defaults)
            frame.edge_defaults = dict(parent.edge_defaults)
            frame.attrs = dict(parent.attrs)
        self._frames.append(frame)
        return frame

    def _pop(self, closer: str, accepts: Iterable[ScopeKind], line: int) -> ScopeFrame:
        top = self.current()
        if top is None:
            raise UnmatchedScopeClose(
                f"'{closer}' without an open scope",
                line=line,
                construct=closer,
            )
        if top.kind not in set(accepts):
            raise UnmatchedScopeClose(
                f"'{closer}' cannot close '{top.kind.value}' opened at line {top.line}",
                line=line,
                scope_kind=top.kind.value,
                construct=closer,
            )
        return self._frames.pop()

    def close(self, closer: str, accepts: Iterable[ScopeKind], line: int = 0) -> ScopeFrame:
        """
        Pop the top frame. Its members carry over to the enclosing frame.

        Raises:
            UnmatchedScopeClose: the stack is empty or the top frame's kind
                is not one `closer` may close
        """
        closed = self._pop(closer, accepts, line)
        parent = self.current()
        if parent is not None:
            for node_id in closed.members:
                if node_id not in parent.members:
                    parent.members.append(node_id)
        return closed

    def add_member(self, node_id: str) -> None:
        """Record a node as referenced inside the current frame."""
        frame = self.current()
        if frame is not None and node_id not in frame.members:
            frame.members.append(node_id)

    def reopen_branch(self, condition: Optional[str], accepts: Iterable[ScopeKind],
                      line: int = 0) -> ScopeFrame:
        """Replace the current branch with its next sibling (`else`)."""
        closed = self._pop("else", accepts, line)
        frame = ScopeFrame(
            kind=closed.kind,
            label=condition,
            parent=closed.parent,
            block_id=closed.block_id,
            branch=closed.branch + 1,
            line=line,
            node_defaults=dict(closed.node_defaults),
            edge_defaults=dict(closed.edge_defaults),
            attrs=dict(closed.attrs),
        )
        self._frames.append(frame)
        return frame

    def ensure_closed(self) -> None:
        """Raise UnterminatedScope if any frame is still open."""
        top = self.current()
        if top is not None:
            raise UnterminatedScope(
                f"'{top.kind.value}' opened at line {top.line} is never closed",
                line=top.line,
                scope_kind=top.kind.value,
            )

    # --- Inherited attributes ---

    def _group_names(self) -> list[str]:
        return [
            frame.label for frame in self._frames
            if frame.kind == ScopeKind.SUBGRAPH and frame.label
        ]

    def inherited_node_attrs(self) -> dict[str, str]:
        """Attributes a node picks up from the open frames."""
        top = self.current()
        if top is None:
            return {}
        attrs = dict(top.node_defaults)
        for frame in reversed(self._frames):
            if "rank" in frame.attrs:
                attrs["rank"] = frame.attrs["rank"]
                break
        groups = self._group_names()
        if groups:
            attrs["group"] = groups[-1]
            attrs["group_path"] = "/".join(groups)
        return attrs

    def inherited_edge_attrs(self) -> dict[str, str]:
        """Attributes an edge picks up from the open frames."""
        top = self.current()
        return dict(top.edge_defaults) if top else {}
