from diagram_events.registry import IdentityRegistry


def test_resolve_creates_generic_node_once():
    registry = IdentityRegistry()
    first = registry.resolve("Alice")
    second = registry.resolve("Alice")

    assert first.created is True
    assert second.created is False
    assert first.node_id == second.node_id == "Alice"
    assert first.record.kind == "generic"
    assert first.record.label == "Alice"
    assert len(registry) == 1


def test_declare_upgrades_auto_created_node():
    registry = IdentityRegistry()
    registry.resolve("User")

    declared = registry.declare("User", kind="actor")

    assert declared.created is False
    assert declared.node_id == "User"
    assert declared.delta == {"kind": "actor"}
    assert registry.get("User").kind == "actor"
    assert registry.conflicts == []


def test_alias_and_name_resolve_to_same_id():
    registry = IdentityRegistry()
    declared = registry.declare("Web Server", kind="participant", alias="Web")

    assert registry.resolve("Web").node_id == declared.node_id
    assert registry.resolve("Web Server").node_id == declared.node_id
    assert len(registry) == 1


def test_declare_through_alias_upgrades_existing_node():
    registry = IdentityRegistry()
    registry.resolve("A")

    declared = registry.declare("Alice", kind="actor", label="Alice", alias="A")

    assert declared.created is False
    assert declared.node_id == "A"
    assert declared.delta["label"] == "Alice"
    assert registry.lookup("Alice") == "A"
    assert sorted(registry.names_for("A")) == ["A", "Alice"]


def test_conflicting_kind_is_recorded_and_last_wins(caplog):
    registry = IdentityRegistry()
    registry.declare("DB", kind="database", line=1)

    with caplog.at_level("WARNING"):
        declared = registry.declare("DB", kind="queue", line=4)

    assert declared.delta == {"kind": "queue"}
    assert registry.get("DB").kind == "queue"
    assert len(registry.conflicts) == 1
    conflict = registry.conflicts[0]
    assert (conflict.previous_kind, conflict.new_kind, conflict.line) == ("database", "queue", 4)
    assert "redeclared" in caplog.text


def test_records_keep_creation_order():
    registry = IdentityRegistry()
    for name in ("C", "A", "B"):
        registry.resolve(name)

    assert [r.id for r in registry.records()] == ["C", "A", "B"]
    assert [r.order for r in registry.records()] == [0, 1, 2]


def test_alias_of_declared_node_is_rebound_to_new_declaration(caplog):
    registry = IdentityRegistry()
    first = registry.declare("A", kind="participant", alias="X")

    with caplog.at_level("WARNING"):
        second = registry.declare("B", kind="participant", alias="X")

    assert second.created is True
    assert second.node_id == "B"
    assert first.node_id == "A"
    assert registry.lookup("X") == "B"
    assert registry.lookup("A") == "A"
    assert len(registry) == 2
    assert "rebound" in caplog.text
