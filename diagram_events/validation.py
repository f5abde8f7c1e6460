"""
Event stream validation - Check event lists for structural issues.

Used by the CLI `check` command and the /api/diagram endpoint to report on
streams produced by the assembler or loaded from JSON.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .events import AddEdge, AddNode, BatchEnd, BatchStart, GraphEvent, SetLayout, UpdateNode


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Invalid stream, a consumer cannot apply it
    WARNING = "warning"  # Potential problem, should review
    INFO = "info"        # Informational, may be intentional


@dataclass
class ValidationIssue:
    """A single validation issue found in an event stream."""
    severity: IssueSeverity
    message: str
    index: int | None = None  # Position of the offending event
    node_id: str | None = None
    edge_id: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.index is not None:
            result["index"] = self.index
        if self.node_id:
            result["node_id"] = self.node_id
        if self.edge_id:
            result["edge_id"] = self.edge_id
        return result


def validate_events(events: Iterable[GraphEvent]) -> list[ValidationIssue]:
    """
    Validate an event stream and return a list of issues.

    Checks for:
    - Unbalanced or nested batch markers - ERROR
    - SetLayout after node/edge events - ERROR
    - Duplicate AddNode - ERROR
    - UpdateNode/AddEdge referencing an unknown node - ERROR
    - Non-increasing or gapped sequence numbers - ERROR
    - Orphan nodes (no connections) - WARNING
    - Self-referencing edges - INFO
    - Empty stream - INFO

    Args:
        events: The events to validate, in stream order

    Returns:
        List of ValidationIssue objects
    """
    events = list(events)
    issues: list[ValidationIssue] = []

    if not events:
        issues.append(ValidationIssue(
            severity=IssueSeverity.INFO,
            message="Event stream is empty"
        ))
        return issues

    node_ids: list[str] = []
    known: set[str] = set()
    connected: set[str] = set()
    batch_open = False
    seen_graph_event = False
    last_sequence = 0

    for index, event in enumerate(events):
        if isinstance(event, BatchStart):
            if batch_open:
                issues.append(ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    message="BatchStart inside an open batch",
                    index=index
                ))
            batch_open = True

        elif isinstance(event, BatchEnd):
            if not batch_open:
                issues.append(ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    message="BatchEnd without BatchStart",
                    index=index
                ))
            batch_open = False

        elif isinstance(event, SetLayout):
            if seen_graph_event:
                issues.append(ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    message="SetLayout after node or edge events",
                    index=index
                ))

        elif isinstance(event, AddNode):
            seen_graph_event = True
            if event.id in known:
                issues.append(ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    message=f"Node added twice: {event.id}",
                    index=index,
                    node_id=event.id
                ))
            else:
                known.add(event.id)
                node_ids.append(event.id)

        elif isinstance(event, UpdateNode):
            seen_graph_event = True
            if event.id not in known:
                issues.append(ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    message=f"Update references non-existent node: {event.id}",
                    index=index,
                    node_id=event.id
                ))

        elif isinstance(event, AddEdge):
            seen_graph_event = True
            for role, endpoint in (("source", event.source), ("target", event.target)):
                if endpoint not in known:
                    issues.append(ValidationIssue(
                        severity=IssueSeverity.ERROR,
                        message=f"Edge references non-existent {role} node: {endpoint}",
                        index=index,
                        edge_id=event.id
                    ))
            connected.add(event.source)
            connected.add(event.target)

            if event.source == event.target:
                issues.append(ValidationIssue(
                    severity=IssueSeverity.INFO,
                    message="Self-referencing edge (node points to itself)",
                    index=index,
                    edge_id=event.id,
                    node_id=event.source
                ))

            if event.sequence is not None:
                if event.sequence != last_sequence + 1:
                    issues.append(ValidationIssue(
                        severity=IssueSeverity.ERROR,
                        message=f"Sequence number {event.sequence} follows {last_sequence}",
                        index=index,
                        edge_id=event.id
                    ))
                last_sequence = max(last_sequence, event.sequence)

    if batch_open:
        issues.append(ValidationIssue(
            severity=IssueSeverity.ERROR,
            message="Stream ends inside an open batch"
        ))

    orphans = [node_id for node_id in node_ids if node_id not in connected]
    if orphans:
        issues.append(ValidationIssue(
            severity=IssueSeverity.WARNING,
            message=f"Orphan nodes (no connections): {', '.join(orphans)}"
        ))

    return issues


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """
    Create a summary of validation issues.

    Args:
        issues: List of validation issues

    Returns:
        Dictionary with counts by severity
    """
    return {
        "total": len(issues),
        "errors": len([i for i in issues if i.severity == IssueSeverity.ERROR]),
        "warnings": len([i for i in issues if i.severity == IssueSeverity.WARNING]),
        "info": len([i for i in issues if i.severity == IssueSeverity.INFO]),
        "valid": len([i for i in issues if i.severity == IssueSeverity.ERROR]) == 0
    }
