from diagram_events import parse_dot, parse_sequence
from diagram_events.builder import DiagramBuilder, EventStatus, build_diagram
from diagram_events.events import (
    AddEdge, AddNode, BatchEnd, BatchStart, LayoutKind, UpdateNode,
)


def test_build_sequence_diagram():
    diagram = build_diagram(
        parse_sequence("actor User\nUser -> Server : hi\nServer --> User : bye\n"),
        name="Login",
        fmt="sequence",
    )

    assert diagram.name == "Login"
    assert [n.id for n in diagram.nodes] == ["User", "Server"]
    assert diagram.get_node("User").kind == "actor"
    assert [e.sequence for e in diagram.edges] == [1, 2]
    assert diagram.metadata.layout == LayoutKind.SEQUENTIAL
    assert diagram.metadata.format == "sequence"


def test_build_dot_diagram_round_trips_through_json():
    diagram = build_diagram(parse_dot('digraph { A -> B [label="go"] }'))

    data = diagram.to_json_dict()
    assert data["edges"][0]["label"] == "go"
    assert "sequence" not in data["edges"][0]
    assert data["metadata"]["layout"] is None


def test_update_node_changes_kind_and_attrs():
    builder = DiagramBuilder()
    builder.apply(AddNode(id="A"))
    result = builder.apply(UpdateNode(id="A", attrs={"kind": "actor", "label": "Alice", "note": "hi"}))

    assert result.ok
    node = builder.get_node("A")
    assert (node.kind, node.label, node.attrs) == ("actor", "Alice", {"note": "hi"})
    assert builder.nodes_of_kind("actor") == [node]
    assert builder.nodes_of_kind("generic") == []


def test_apply_reports_failures():
    builder = DiagramBuilder()

    assert builder.apply(AddNode(id="A")).ok
    assert builder.apply(AddNode(id="A")).status == EventStatus.NODE_EXISTS
    assert builder.apply(UpdateNode(id="Z")).status == EventStatus.NODE_NOT_FOUND
    assert builder.apply(AddEdge(id="e", source="A", target="Z")).status == EventStatus.NODE_NOT_FOUND
    assert builder.apply(AddEdge(id="e", source="A", target="A")).ok
    assert builder.apply(AddEdge(id="e", source="A", target="A")).status == EventStatus.EDGE_EXISTS
    assert builder.apply(BatchEnd()).status == EventStatus.INVALID


def test_edges_for_node():
    builder = DiagramBuilder()
    builder.apply_all(parse_dot("digraph { A -> B; B -> C; C -> A; D }"))

    assert [e.id for e in builder.edges_for_node("B")] == ["edge-1", "edge-2"]
    assert builder.edges_for_node("D") == []
    assert builder.get_edge("edge-2").target == "C"


def test_change_callbacks_fire_once_per_batch():
    builder = DiagramBuilder()
    calls = []
    builder.on_change(lambda: calls.append(1))

    builder.apply_all([BatchStart(), AddNode(id="A"), AddNode(id="B"), BatchEnd()])
    assert len(calls) == 1

    builder.apply(AddNode(id="C"))
    assert len(calls) == 2
