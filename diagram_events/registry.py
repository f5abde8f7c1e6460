"""
Identity registry - Maps textual names to stable node ids.

Guarantees at most one node per name. Names seen for the first time in a
message, note or edge are auto-created with the generic kind; a later
explicit declaration upgrades that node instead of creating a duplicate.

A declaration may bind an alias (`participant "Web Server" as Web`): the
primary name and the alias then resolve to the same id.
"""

import logging
from dataclasses import dataclass, field
from typing import NamedTuple, Optional

from .events import DEFAULT_KIND

logger = logging.getLogger(__name__)


@dataclass
class NodeRecord:
    """Registry-side state of one node."""
    id: str
    kind: str
    label: str
    attrs: dict[str, str] = field(default_factory=dict)
    explicit: bool = False  # True once declared, False while only auto-created
    order: int = 0          # Creation order, 0-based


@dataclass
class ConflictingDeclaration:
    """A redeclaration that changed an explicitly declared kind.

    Recorded rather than raised: the last declaration wins.
    """
    name: str
    node_id: str
    previous_kind: str
    new_kind: str
    line: int = 0


class Resolution(NamedTuple):
    node_id: str
    record: NodeRecord
    created: bool


class Declared(NamedTuple):
    node_id: str
    record: NodeRecord
    created: bool
    delta: dict[str, str]  # Changed fields when an existing node was upgraded


class IdentityRegistry:
    """
    Name -> node id registry for a single diagram.

    Ids are assigned by the registry: a node's id is the first name it was
    seen under. Records are kept in creation order.
    """

    def __init__(self, default_kind: str = DEFAULT_KIND):
        self._default_kind = default_kind
        self._names: dict[str, str] = {}            # name or alias -> node_id
        self._records: dict[str, NodeRecord] = {}   # node_id -> NodeRecord
        self.conflicts: list[ConflictingDeclaration] = []

    def __contains__(self, name: str) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._records)

    def get(self, node_id: str) -> Optional[NodeRecord]:
        """Get a node record by id."""
        return self._records.get(node_id)

    def lookup(self, name: str) -> Optional[str]:
        """Return the id bound to a name, without creating anything."""
        return self._names.get(name)

    def names_for(self, node_id: str) -> list[str]:
        """All names and aliases that resolve to a node id."""
        return [name for name, bound in self._names.items() if bound == node_id]

    def records(self) -> list[NodeRecord]:
        """All node records in creation order."""
        return list(self._records.values())

    def _new_record(self, name: str, kind: str, label: Optional[str],
                    attrs: Optional[dict[str, str]], explicit: bool) -> NodeRecord:
        record = NodeRecord(
            id=name,
            kind=kind,
            label=label or name,
            attrs=dict(attrs or {}),
            explicit=explicit,
            order=len(self._records),
        )
        self._records[name] = record
        self._names[name] = name
        return record

    def resolve(self, name: str, attrs: Optional[dict[str, str]] = None) -> Resolution:
        """
        Resolve a referenced name to a node id, auto-creating it if unknown.

        Args:
            name: The referenced name or alias
            attrs: Attributes for the node if it has to be created

        Returns:
            Resolution with `created=True` when the node is new
        """
        node_id = self._names.get(name)
        if node_id is not None:
            return Resolution(node_id, self._records[node_id], False)

        record = self._new_record(name, self._default_kind, None, attrs, explicit=False)
        return Resolution(record.id, record, True)

    def _bind(self, name: str, node_id: str) -> None:
        bound = self._names.get(name)
        if bound is not None and bound != node_id:
            logger.warning("Name %r rebound from node %r to node %r", name, bound, node_id)
        self._names[name] = node_id

    def declare(
        self,
        name: str,
        kind: Optional[str] = None,
        label: Optional[str] = None,
        alias: Optional[str] = None,
        attrs: Optional[dict[str, str]] = None,
        line: int = 0,
    ) -> Declared:
        """
        Register an explicit declaration.

        If the name already resolves to a node, that node is upgraded in place
        and the changed fields are returned as `delta`. A new name is matched
        through its alias only when the alias names an auto-created node;
        an alias held by another declared node is rebound to the new one.
        A different kind on an already declared node is accepted (last write
        wins) and recorded in `conflicts`.
        """
        existing = self._names.get(name)
        if existing is None and alias:
            aliased = self._names.get(alias)
            if aliased is not None and not self._records[aliased].explicit:
                existing = aliased

        if existing is None:
            record = self._new_record(name, kind or self._default_kind, label, attrs, explicit=True)
            if alias:
                self._bind(alias, record.id)
            return Declared(record.id, record, True, {})

        record = self._records[existing]
        delta: dict[str, str] = {}

        if kind and kind != record.kind:
            if record.explicit:
                self.conflicts.append(ConflictingDeclaration(
                    name=name,
                    node_id=record.id,
                    previous_kind=record.kind,
                    new_kind=kind,
                    line=line,
                ))
                logger.warning(
                    "Node %r redeclared as %r (was %r) at line %d",
                    name, kind, record.kind, line,
                )
            record.kind = kind
            delta["kind"] = kind

        if label and label != record.label:
            record.label = label
            delta["label"] = label

        for key, value in (attrs or {}).items():
            if record.attrs.get(key) != value:
                record.attrs[key] = value
                delta[key] = value

        record.explicit = True
        self._bind(name, record.id)
        if alias:
            self._bind(alias, record.id)
        return Declared(record.id, record, False, delta)
