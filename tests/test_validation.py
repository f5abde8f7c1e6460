from diagram_events import parse_dot, parse_sequence
from diagram_events.events import (
    AddEdge, AddNode, BatchEnd, BatchStart, LayoutKind, SetLayout, UpdateNode,
    events_from_json, events_to_json,
)
from diagram_events.validation import IssueSeverity, validate_events, validation_summary


def errors(issues):
    return [i for i in issues if i.severity == IssueSeverity.ERROR]


def test_assembled_streams_are_valid():
    for events in (
        parse_sequence("A -> B\nalt x\n  B -> A\nelse\n  A -> B\nend\n"),
        parse_dot("digraph { A -> B; B -> C }"),
    ):
        issues = validate_events(events)
        assert errors(issues) == []
        assert validation_summary(issues)["valid"] is True


def test_empty_stream():
    [issue] = validate_events([])
    assert issue.severity == IssueSeverity.INFO


def test_structural_errors_are_reported():
    issues = validate_events([
        AddNode(id="A"),
        SetLayout(layout=LayoutKind.GRID),
        AddNode(id="A"),
        UpdateNode(id="B"),
        AddEdge(id="e1", source="A", target="C", sequence=1),
        AddEdge(id="e2", source="A", target="A", sequence=3),
        BatchEnd(),
    ])

    messages = [i.message for i in errors(issues)]
    assert "SetLayout after node or edge events" in messages
    assert "Node added twice: A" in messages
    assert "Update references non-existent node: B" in messages
    assert "Edge references non-existent target node: C" in messages
    assert "Sequence number 3 follows 1" in messages
    assert "BatchEnd without BatchStart" in messages

    summary = validation_summary(issues)
    assert summary["valid"] is False
    assert summary["info"] == 1  # self-loop on A


def test_nested_and_unclosed_batches():
    issues = validate_events([BatchStart(), BatchStart(), AddNode(id="A"), AddNode(id="B"),
                              AddEdge(id="e", source="A", target="B")])
    messages = [i.message for i in errors(issues)]
    assert messages == ["BatchStart inside an open batch", "Stream ends inside an open batch"]


def test_orphan_nodes_are_warnings():
    issues = validate_events(parse_dot("digraph { A -> B; C }"))
    [warning] = [i for i in issues if i.severity == IssueSeverity.WARNING]
    assert "C" in warning.message
    assert warning.to_dict()["type"] == "warning"


def test_events_survive_json():
    events = parse_sequence("actor A\nA -> B : hi\nnote left of B : x\n")
    assert events_from_json(events_to_json(events)) == events


def test_legacy_edge_fields_are_accepted():
    [edge] = events_from_json([{"type": "add_edge", "id": "e", "from": "A", "to": "B"}])
    assert (edge.source, edge.target) == ("A", "B")
