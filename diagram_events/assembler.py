"""
Event assembler - Turns a parsed Document into an ordered list of graph events.

The assembler walks the productions in document order and:
- resolves every referenced name through the identity registry
- tracks subgraphs and control blocks on the scope stack
- tracks participant activations (sequence diagrams)
- numbers sequence messages with one diagram-wide counter
- wraps the output in BatchStart/BatchEnd markers

Graph (DOT) diagrams hoist node events: every AddNode comes before the first
AddEdge, in first-appearance order.

All per-run state lives in an AssemblyContext created by each call, so one
EventAssembler can be shared freely. Any structural error aborts the pass;
no partial event list is returned.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from .activation import ActivationTracker
from .arrows import check_edge_operator, classify_arrow
from .errors import AssemblyError, StrayStatement
from .events import (
    AddEdge, AddNode, BatchEnd, BatchStart, Direction, GraphEvent,
    LayoutKind, SetLayout, UpdateNode,
)
from .productions import (
    Activation, Assignment, AttrStatement, BlockElse, BlockEnd, BlockOpen,
    Comment, Deactivation, Declaration, Destroy, DiagramFormat, Divider,
    Document, EdgeStatement, GraphOpen, Message, NodeRef, NodeStatement,
    Note, Production, ScopeClose, SubgraphOpen,
)
from .registry import IdentityRegistry
from .scope import BLOCK_KINDS, BRANCHING_KINDS, GRAPH_KINDS, ScopeKind, ScopeTracker

logger = logging.getLogger(__name__)


class BatchMode(str, Enum):
    """How the event stream is grouped into batches."""
    DIAGRAM = "diagram"  # One pair around the whole diagram
    BLOCK = "block"      # One pair per top-level control block (sequence only)


# Graphviz layout engine -> layout family
LAYOUT_ENGINES = {
    "dot": LayoutKind.HIERARCHICAL,
    "neato": LayoutKind.FORCE,
    "fdp": LayoutKind.FORCE,
    "sfdp": LayoutKind.FORCE,
    "circo": LayoutKind.CIRCULAR,
    "twopi": LayoutKind.CIRCULAR,
    "osage": LayoutKind.GRID,
    "patchwork": LayoutKind.GRID,
}


@dataclass
class AssemblyContext:
    """Mutable state of a single assembly pass."""
    format: DiagramFormat
    batch_mode: BatchMode = BatchMode.DIAGRAM
    registry: IdentityRegistry = field(default_factory=IdentityRegistry)
    scopes: ScopeTracker = field(default_factory=ScopeTracker)
    activations: ActivationTracker = field(default_factory=ActivationTracker)
    events: list[GraphEvent] = field(default_factory=list)
    next_sequence: int = 1

    # Graph format
    directed: bool = True
    strict: bool = False
    graph_closed: bool = False
    edge_count: int = 0
    pending_nodes: dict[str, AddNode] = field(default_factory=dict)
    pending_edges: list[AddEdge] = field(default_factory=list)
    seen_edges: set = field(default_factory=set)

    def emit(self, event: GraphEvent) -> None:
        self.events.append(event)

    def take_sequence(self) -> int:
        number = self.next_sequence
        self.next_sequence += 1
        return number


class EventAssembler:
    """
    Converts Documents into graph events.

    Usage:
        assembler = EventAssembler()
        events = assembler.assemble(document)
    """

    def __init__(self, batch_mode: BatchMode = BatchMode.DIAGRAM):
        self.batch_mode = BatchMode(batch_mode)
        self._handlers: dict[type, Callable[[AssemblyContext, Production], None]] = {
            # Sequence
            Declaration: self._on_declaration,
            Message: self._on_message,
            Activation: self._on_activation,
            Deactivation: self._on_deactivation,
            Destroy: self._on_destroy,
            Note: self._on_note,
            Divider: self._on_skipped,
            Comment: self._on_skipped,
            BlockOpen: self._on_block_open,
            BlockElse: self._on_block_else,
            BlockEnd: self._on_block_end,
            # Graph
            GraphOpen: self._on_graph_open,
            SubgraphOpen: self._on_subgraph_open,
            ScopeClose: self._on_scope_close,
            NodeStatement: self._on_node_statement,
            EdgeStatement: self._on_edge_statement,
            AttrStatement: self._on_attr_statement,
            Assignment: self._on_assignment,
        }

    def assemble(self, document: Document) -> list[GraphEvent]:
        """Assemble a document and return its events."""
        return self.run(document).events

    def run(self, document: Document) -> AssemblyContext:
        """Assemble a document and return the finished context.

        The context also exposes the registry (including recorded
        declaration conflicts) after the pass.
        """
        fmt = DiagramFormat(document.format)
        batch_mode = self.batch_mode if fmt == DiagramFormat.SEQUENCE else BatchMode.DIAGRAM
        ctx = AssemblyContext(format=fmt, batch_mode=batch_mode)

        if batch_mode == BatchMode.DIAGRAM:
            ctx.emit(BatchStart())

        if fmt == DiagramFormat.SEQUENCE:
            ctx.emit(SetLayout(layout=LayoutKind.SEQUENTIAL, direction=Direction.LEFT_TO_RIGHT))
        else:
            layout = self._scan_graph_layout(document.productions)
            if layout is not None:
                ctx.emit(layout)

        for production in document.productions:
            handler = self._handlers.get(type(production))
            if handler is None:
                raise AssemblyError(
                    f"Unsupported production {type(production).__name__}",
                    line=production.line,
                    column=production.column,
                )
            handler(ctx, production)

        ctx.scopes.ensure_closed()

        if fmt == DiagramFormat.DOT:
            ctx.events.extend(ctx.pending_nodes.values())
            ctx.events.extend(ctx.pending_edges)

        if batch_mode == BatchMode.DIAGRAM:
            ctx.emit(BatchEnd())

        logger.debug(
            "Assembled %d events from %s diagram (%d nodes, %d conflicts)",
            len(ctx.events), fmt.value, len(ctx.registry), len(ctx.registry.conflicts),
        )
        return ctx

    # --- Sequence diagrams ---

    def _participant(self, ctx: AssemblyContext, name: str) -> str:
        """Resolve a participant, emitting AddNode when it is new."""
        resolution = ctx.registry.resolve(name)
        if resolution.created:
            record = resolution.record
            ctx.emit(AddNode(
                id=record.id,
                kind=record.kind,
                label=record.label,
                attrs={**record.attrs, "order": str(record.order)},
            ))
        return resolution.node_id

    def _block_attrs(self, ctx: AssemblyContext) -> dict[str, str]:
        frame = ctx.scopes.current()
        if frame is None or frame.kind not in BLOCK_KINDS:
            return {}
        attrs = {
            "block": frame.kind.value,
            "block_id": str(frame.block_id),
            "branch": str(frame.branch),
            "depth": str(ctx.scopes.current_depth()),
        }
        if frame.label:
            attrs["condition"] = frame.label
        return attrs

    def _on_declaration(self, ctx: AssemblyContext, p: Declaration) -> None:
        attrs = dict(p.attrs)
        if p.alias:
            attrs["alias"] = p.alias
        declared = ctx.registry.declare(
            p.name, kind=p.kind, label=p.label, alias=p.alias, attrs=attrs, line=p.line,
        )
        record = declared.record
        if declared.created:
            ctx.emit(AddNode(
                id=record.id,
                kind=record.kind,
                label=record.label,
                attrs={**record.attrs, "order": str(record.order)},
            ))
        elif declared.delta:
            ctx.emit(UpdateNode(id=declared.node_id, attrs=declared.delta))

    def _on_message(self, ctx: AssemblyContext, p: Message) -> None:
        info = classify_arrow(p.arrow, line=p.line)
        source = self._participant(ctx, p.source)
        target = self._participant(ctx, p.target)
        if info.reversed:
            source, target = target, source

        sequence = ctx.take_sequence()
        ctx.emit(AddEdge(
            id=f"msg-{sequence}",
            source=source,
            target=target,
            sequence=sequence,
            label=p.label,
            attrs={"direction": info.kind.value, "arrow": p.arrow, **self._block_attrs(ctx)},
        ))

        if p.activation == "++":
            ctx.emit(ctx.activations.activate(target))
        elif p.activation == "--":
            ctx.emit(ctx.activations.deactivate(source, line=p.line))

    def _on_activation(self, ctx: AssemblyContext, p: Activation) -> None:
        node_id = self._participant(ctx, p.name)
        ctx.emit(ctx.activations.activate(node_id, p.attrs))

    def _on_deactivation(self, ctx: AssemblyContext, p: Deactivation) -> None:
        node_id = self._participant(ctx, p.name)
        ctx.emit(ctx.activations.deactivate(node_id, line=p.line))

    def _on_destroy(self, ctx: AssemblyContext, p: Destroy) -> None:
        node_id = self._participant(ctx, p.name)
        ctx.emit(ctx.activations.destroy(node_id))

    def _on_note(self, ctx: AssemblyContext, p: Note) -> None:
        # Every target exists before the note lands on any of them
        node_ids = [self._participant(ctx, name) for name in p.targets]
        for node_id in node_ids:
            ctx.emit(UpdateNode(id=node_id, attrs={"note": p.text, "note_position": p.position}))

    def _on_skipped(self, ctx: AssemblyContext, p: Production) -> None:
        logger.debug("Skipping %s at line %d", type(p).__name__.lower(), p.line)

    def _on_block_open(self, ctx: AssemblyContext, p: BlockOpen) -> None:
        if ctx.batch_mode == BatchMode.BLOCK and ctx.scopes.current_depth() == 0:
            ctx.emit(BatchStart())
        ctx.scopes.open(ScopeKind(p.kind), p.condition, line=p.line)

    def _on_block_else(self, ctx: AssemblyContext, p: BlockElse) -> None:
        ctx.scopes.reopen_branch(p.condition, BRANCHING_KINDS, line=p.line)

    def _on_block_end(self, ctx: AssemblyContext, p: BlockEnd) -> None:
        ctx.scopes.close("end", BLOCK_KINDS, line=p.line)
        if ctx.batch_mode == BatchMode.BLOCK and ctx.scopes.current_depth() == 0:
            ctx.emit(BatchEnd())

    # --- Graph diagrams ---

    def _scan_graph_layout(self, productions: list[Production]) -> Optional[SetLayout]:
        """Collect root-level graph attributes and build the layout hint."""
        root: dict[str, str] = {}
        depth = 0
        for p in productions:
            if isinstance(p, (GraphOpen, SubgraphOpen)):
                depth += 1
            elif isinstance(p, ScopeClose):
                depth -= 1
                if depth <= 0:
                    break
            elif depth == 1 and isinstance(p, Assignment):
                root[p.key] = p.value
            elif depth == 1 and isinstance(p, AttrStatement) and p.target == "graph":
                root.update(p.attrs)

        if "rankdir" not in root and "layout" not in root:
            return None

        attrs = dict(root)
        engine = attrs.pop("layout", None)
        rankdir = attrs.pop("rankdir", "TB").upper()
        if engine:
            attrs["engine"] = engine
        try:
            direction = Direction(rankdir)
        except ValueError:
            logger.debug("Unknown rankdir %r, using TB", rankdir)
            direction = Direction.TOP_TO_BOTTOM
        layout = LAYOUT_ENGINES.get((engine or "dot").lower(), LayoutKind.HIERARCHICAL)
        return SetLayout(layout=layout, direction=direction, attrs=attrs)

    def _require_graph_body(self, ctx: AssemblyContext, p: Production) -> None:
        if ctx.scopes.current_depth() == 0:
            raise StrayStatement(
                f"{type(p).__name__} outside of the graph body",
                line=p.line,
                column=p.column,
            )

    def _graph_node(self, ctx: AssemblyContext, name: str) -> str:
        """Resolve a node referenced by an edge, queueing AddNode if new."""
        resolution = ctx.registry.resolve(name, attrs=ctx.scopes.inherited_node_attrs())
        if resolution.created:
            record = resolution.record
            ctx.pending_nodes[record.id] = AddNode(
                id=record.id, kind=record.kind, label=record.label, attrs=dict(record.attrs),
            )
        ctx.scopes.add_member(resolution.node_id)
        return resolution.node_id

    def _on_graph_open(self, ctx: AssemblyContext, p: GraphOpen) -> None:
        if ctx.graph_closed or ctx.scopes.current_depth() > 0:
            raise StrayStatement("Only one graph per document", line=p.line, column=p.column)
        ctx.directed = p.directed
        ctx.strict = p.strict
        ctx.scopes.open(ScopeKind.GRAPH, p.name, line=p.line)

    def _on_subgraph_open(self, ctx: AssemblyContext, p: SubgraphOpen) -> None:
        self._require_graph_body(ctx, p)
        ctx.scopes.open(ScopeKind.SUBGRAPH, p.name, line=p.line)

    def _on_scope_close(self, ctx: AssemblyContext, p: ScopeClose) -> None:
        closed = ctx.scopes.close("}", GRAPH_KINDS, line=p.line)
        if ctx.scopes.current_depth() == 0:
            if p.operators:
                raise StrayStatement("Edge from the root graph", line=p.line, column=p.column)
            ctx.graph_closed = True
        elif p.operators:
            # The closed subgraph's nodes are the chain's tails
            tails = [(node_id, NodeRef(name=node_id)) for node_id in closed.members]
            self._expand_edges(ctx, tails, p.endpoints, p.operators, p.attrs, p.line)

    def _on_node_statement(self, ctx: AssemblyContext, p: NodeStatement) -> None:
        self._require_graph_body(ctx, p)
        attrs = dict(p.attrs)
        kind = attrs.pop("type", None)
        label = attrs.pop("label", None)
        level = attrs.pop("level", None)
        if level is not None:
            if level.isdigit():
                attrs["layer"] = str(int(level))
            else:
                logger.debug("Ignoring non-numeric level %r on node %r", level, p.node.name)

        name = p.node.name
        if name not in ctx.registry or ctx.scopes.current_depth() > 1:
            attrs = {**ctx.scopes.inherited_node_attrs(), **attrs}

        declared = ctx.registry.declare(name, kind=kind, label=label, attrs=attrs, line=p.line)
        record = declared.record
        if declared.created:
            ctx.pending_nodes[record.id] = AddNode(
                id=record.id, kind=record.kind, label=record.label, attrs=dict(record.attrs),
            )
        elif declared.delta:
            ctx.pending_nodes[record.id] = ctx.pending_nodes[record.id].merged(declared.delta)
        ctx.scopes.add_member(record.id)

    def _on_edge_statement(self, ctx: AssemblyContext, p: EdgeStatement) -> None:
        self._require_graph_body(ctx, p)
        tails = [(self._graph_node(ctx, ref.name), ref) for ref in p.endpoints[0]]
        self._expand_edges(ctx, tails, p.endpoints[1:], p.operators, p.attrs, p.line)

    def _expand_edges(self, ctx: AssemblyContext, tails: list[tuple[str, NodeRef]],
                      endpoints: tuple[tuple[NodeRef, ...], ...], operators: tuple[str, ...],
                      stmt_attrs: dict[str, str], line: int) -> None:
        """Expand resolved tails and the rest of a chain into edges."""
        for operator in operators:
            check_edge_operator(operator, ctx.directed, line=line)

        resolved = [tails] + [
            [(self._graph_node(ctx, ref.name), ref) for ref in group]
            for group in endpoints
        ]

        base = {**ctx.scopes.inherited_edge_attrs(), **stmt_attrs}
        label = base.pop("label", None)
        base["direction"] = "directed" if ctx.directed else "undirected"

        for sources, targets in zip(resolved, resolved[1:]):
            for source, tail_ref in sources:
                for target, head_ref in targets:
                    self._add_graph_edge(ctx, source, tail_ref, target, head_ref, label, base)

    def _add_graph_edge(self, ctx: AssemblyContext, source: str, tail_ref: NodeRef,
                        target: str, head_ref: NodeRef, label: Optional[str],
                        base: dict[str, str]) -> None:
        if ctx.strict:
            key = (source, target) if ctx.directed else frozenset((source, target))
            if key in ctx.seen_edges:
                logger.debug("Dropping repeated edge %s -> %s in strict graph", source, target)
                return
            ctx.seen_edges.add(key)

        attrs = dict(base)
        if tail_ref.port:
            attrs["tailport"] = tail_ref.port
        if head_ref.port:
            attrs["headport"] = head_ref.port

        ctx.edge_count += 1
        ctx.pending_edges.append(AddEdge(
            id=f"edge-{ctx.edge_count}",
            source=source,
            target=target,
            label=label,
            attrs=attrs,
        ))

    def _on_attr_statement(self, ctx: AssemblyContext, p: AttrStatement) -> None:
        self._require_graph_body(ctx, p)
        frame = ctx.scopes.current()
        if p.target == "node":
            frame.node_defaults.update(p.attrs)
        elif p.target == "edge":
            frame.edge_defaults.update(p.attrs)
        else:
            frame.attrs.update(p.attrs)

    def _on_assignment(self, ctx: AssemblyContext, p: Assignment) -> None:
        self._require_graph_body(ctx, p)
        ctx.scopes.current().attrs[p.key] = p.value
