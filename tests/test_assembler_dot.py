import pytest

from diagram_events import parse_diagram, parse_dot
from diagram_events.assembler import BatchMode
from diagram_events.errors import (
    MalformedArrow, StrayStatement, UnmatchedScopeClose, UnterminatedScope,
)
from diagram_events.events import (
    AddEdge, AddNode, BatchEnd, BatchStart, Direction, LayoutKind, SetLayout,
)


def nodes(events):
    return {e.id: e for e in events if isinstance(e, AddNode)}


def edges(events):
    return [e for e in events if isinstance(e, AddEdge)]


def test_simple_digraph_scenario():
    events = parse_diagram("digraph G { A -> B; B -> C; }")

    assert events == [
        BatchStart(),
        AddNode(id="A", label="A"),
        AddNode(id="B", label="B"),
        AddNode(id="C", label="C"),
        AddEdge(id="edge-1", source="A", target="B", attrs={"direction": "directed"}),
        AddEdge(id="edge-2", source="B", target="C", attrs={"direction": "directed"}),
        BatchEnd(),
    ]


def test_nodes_are_hoisted_before_edges():
    events = parse_dot("digraph { A -> B; C; B -> C }")

    kinds = [type(e) for e in events]
    assert kinds == [BatchStart, AddNode, AddNode, AddNode, AddEdge, AddEdge, BatchEnd]
    assert [e.id for e in events[1:4]] == ["A", "B", "C"]


def test_later_declaration_merges_into_node():
    events = parse_dot('digraph { A -> B; B [label="Bee", type=service, color=red] }')

    node = nodes(events)["B"]
    assert node.kind == "service"
    assert node.label == "Bee"
    assert node.attrs == {"color": "red"}
    assert len(nodes(events)) == 2


def test_layout_from_root_attributes():
    events = parse_dot("digraph { rankdir=LR; layout=neato; splines=ortho; A -> B }")

    assert events[1] == SetLayout(
        layout=LayoutKind.FORCE,
        direction=Direction.LEFT_TO_RIGHT,
        attrs={"engine": "neato", "splines": "ortho"},
    )


def test_layout_from_graph_attr_statement():
    events = parse_dot("digraph { graph [rankdir=BT] A }")
    assert events[1] == SetLayout(layout=LayoutKind.HIERARCHICAL, direction=Direction.BOTTOM_TO_TOP)


def test_no_layout_without_rankdir_or_layout():
    events = parse_dot("digraph { subgraph s { rankdir=LR } A }")
    assert not any(isinstance(e, SetLayout) for e in events)


@pytest.mark.parametrize("engine,expected", [
    ("dot", LayoutKind.HIERARCHICAL),
    ("circo", LayoutKind.CIRCULAR),
    ("osage", LayoutKind.GRID),
])
def test_layout_engines(engine, expected):
    events = parse_dot(f"graph {{ layout={engine} }}")
    assert events[1].layout == expected


def test_subgraph_attributes_are_inherited():
    events = parse_dot(
        "digraph {\n"
        "  node [shape=box];\n"
        "  subgraph cluster_api {\n"
        "    rank=same;\n"
        "    X; Y\n"
        "  }\n"
        "  X -> Y [color=red]\n"
        "}\n"
    )

    assert nodes(events)["X"].attrs == {
        "shape": "box",
        "rank": "same",
        "group": "cluster_api",
        "group_path": "cluster_api",
    }
    [edge] = edges(events)
    assert edge.attrs == {"color": "red", "direction": "directed"}


def test_edge_defaults_label_and_ports():
    events = parse_dot("digraph { edge [color=blue]; A:out -> B:in [label=x] }")

    [edge] = edges(events)
    assert edge.label == "x"
    assert edge.attrs == {
        "color": "blue",
        "direction": "directed",
        "tailport": "out",
        "headport": "in",
    }


def test_undirected_graph():
    [edge] = edges(parse_dot("graph { a -- b }"))
    assert edge.attrs["direction"] == "undirected"
    assert edge.sequence is None


def test_operator_must_match_graph_kind():
    with pytest.raises(MalformedArrow):
        parse_dot("graph { A -> B }")
    with pytest.raises(MalformedArrow):
        parse_dot("digraph { A -- B }")


def test_target_group_expands():
    result = edges(parse_dot("digraph { A -> {B C} -> D }"))
    assert [(e.source, e.target) for e in result] == [
        ("A", "B"), ("A", "C"), ("B", "D"), ("C", "D"),
    ]
    assert [e.id for e in result] == ["edge-1", "edge-2", "edge-3", "edge-4"]


def test_strict_graph_drops_repeated_edges():
    directed = edges(parse_dot("strict digraph { A -> B; A -> B; B -> A }"))
    assert [(e.source, e.target) for e in directed] == [("A", "B"), ("B", "A")]

    undirected = edges(parse_dot("strict graph { a -- b; b -- a }"))
    assert len(undirected) == 1


def test_missing_closing_brace_is_unterminated():
    with pytest.raises(UnterminatedScope) as exc_info:
        parse_dot("digraph {\n  subgraph s {\n    A -> B\n}\n")
    assert exc_info.value.scope_kind == "graph"
    assert exc_info.value.line == 1


def test_extra_closing_brace_is_unmatched():
    with pytest.raises(UnmatchedScopeClose):
        parse_dot("digraph { A } }")


def test_statement_after_root_is_stray():
    with pytest.raises(StrayStatement):
        parse_dot("digraph { A } B")


def test_block_batch_mode_does_not_change_graphs():
    events = parse_diagram("digraph { A -> B }", batch_mode=BatchMode.BLOCK)
    assert isinstance(events[0], BatchStart)
    assert isinstance(events[-1], BatchEnd)


def test_brace_group_as_edge_tail():
    events = parse_dot("digraph G { {A B} -> C; }")

    assert [e.id for e in nodes(events).values()] == ["A", "B", "C"]
    assert [(e.source, e.target) for e in edges(events)] == [("A", "C"), ("B", "C")]


def test_named_subgraph_as_edge_tail():
    events = parse_dot(
        "digraph G {\n"
        "  subgraph outer { subgraph inner { A } B } -> C [color=red];\n"
        "  C -> subgraph t { D }\n"
        "}\n"
    )

    assert [(e.source, e.target) for e in edges(events)] == [("A", "C"), ("B", "C"), ("C", "D")]
    assert edges(events)[0].attrs == {"color": "red", "direction": "directed"}
    assert nodes(events)["A"].attrs["group_path"] == "outer/inner"
    assert "group" not in nodes(events)["C"].attrs


def test_edge_from_root_graph_is_stray():
    with pytest.raises(StrayStatement):
        parse_dot("digraph { A } -> B")


def test_level_becomes_layer():
    events = parse_dot('digraph { A [level="2", type=service]; B [level=top] }')

    assert nodes(events)["A"].kind == "service"
    assert nodes(events)["A"].attrs == {"layer": "2"}
    assert nodes(events)["B"].attrs == {}
