import pytest

from diagram_events.errors import DiagramSyntaxError
from diagram_events.frontends import SequenceFrontend, detect_format
from diagram_events.productions import (
    BlockElse, BlockEnd, BlockOpen, Comment, Declaration, DiagramFormat,
    Divider, Message, Note,
)


def parse(text):
    return SequenceFrontend().parse(text).productions


def test_declarations_and_messages():
    productions = parse(
        "@startuml\n"
        "actor User\n"
        'participant "Web Server" as Web #lightblue\n'
        "User -> Web ++ : GET /\n"
        "Web --> User -- : 200\n"
        "@enduml\n"
    )

    assert productions == [
        Declaration(kind="actor", name="User", label="User", line=2, column=1),
        Declaration(
            kind="participant", name="Web Server", alias="Web", label="Web Server",
            attrs={"color": "#lightblue"}, line=3, column=1,
        ),
        Message(source="User", arrow="->", target="Web", label="GET /", activation="++", line=4, column=1),
        Message(source="Web", arrow="-->", target="User", label="200", activation="--", line=5, column=1),
    ]


def test_quoted_alias_becomes_label():
    [declaration] = parse('database DB as "Orders DB" <<postgres>>\n')

    assert declaration.name == "DB"
    assert declaration.alias == "Orders DB"
    assert declaration.label == "Orders DB"
    assert declaration.attrs == {"stereotype": "postgres"}


def test_arrow_tokens_are_kept_verbatim():
    productions = parse("A->>B\nA<<--B\nA ->x B\nA -> B\n")
    assert [p.arrow for p in productions] == ["->>", "<<--", "->x", "->"]


def test_notes():
    productions = parse(
        "note left of A : hello\n"
        "note over A, B : shared\n"
        "note right of B\n"
        "  first line\n"
        "  second line\n"
        "end note\n"
    )

    assert productions[0] == Note(targets=("A",), position="left", text="hello", line=1, column=1)
    assert productions[1].targets == ("A", "B")
    assert productions[1].position == "over"
    assert productions[2].position == "right"
    assert productions[2].text == "first line\nsecond line"


def test_blocks_are_flat_productions():
    productions = parse(
        "alt success\n"
        "A -> B : ok\n"
        "else failure\n"
        "A -> B : err\n"
        "end\n"
        "loop\n"
        "end\n"
    )

    assert [type(p) for p in productions] == [
        BlockOpen, Message, BlockElse, Message, BlockEnd, BlockOpen, BlockEnd,
    ]
    assert productions[0].kind == "alt"
    assert productions[0].condition == "success"
    assert productions[2].condition == "failure"
    assert productions[5].condition is None


def test_dividers_and_comments():
    productions = parse(
        "== Setup ==\n"
        "...\n"
        "|||\n"
        "' single line\n"
        "/' block\n"
        "   comment '/\n"
    )

    assert productions[0] == Divider(style="separator", text="Setup", line=1, column=1)
    assert productions[1].style == "delay"
    assert productions[2].style == "space"
    assert isinstance(productions[3], Comment)
    assert productions[3].text == "single line"
    assert isinstance(productions[4], Comment)


def test_activation_statements():
    productions = parse("activate A #gold\ndeactivate A\ndestroy A\n")

    assert productions[0].name == "A"
    assert productions[0].attrs == {"color": "#gold"}
    assert productions[1].name == "A"
    assert productions[2].name == "A"


def test_blank_lines_and_crlf():
    productions = parse("\r\n\r\nA -> B\r\n\r\n   B -> A\r\n")
    assert [(p.source, p.target) for p in productions] == [("A", "B"), ("B", "A")]


def test_syntax_error_reports_line():
    with pytest.raises(DiagramSyntaxError) as exc_info:
        parse("A -> B\nA -> : missing target\n")

    assert exc_info.value.line == 2
    assert exc_info.value.code == "E_SYNTAX"


def test_unbalanced_blocks_still_parse():
    productions = parse("end\nalt x\n")
    assert [type(p) for p in productions] == [BlockEnd, BlockOpen]


def test_detect_format():
    assert detect_format("actor A\nA -> B\n") == DiagramFormat.SEQUENCE
    assert detect_format("Graph -> X\n") == DiagramFormat.SEQUENCE
    assert detect_format("// comment\ndigraph G {\n}") == DiagramFormat.DOT
    assert detect_format("strict graph {}") == DiagramFormat.DOT


def test_deactivation_suffix_with_and_without_label():
    with_label, bare = parse("B --> A -- : done\nA -> B --\n")

    assert (with_label.arrow, with_label.activation, with_label.label) == ("-->", "--", "done")
    assert (bare.arrow, bare.activation, bare.label) == ("->", "--", None)


def test_stereotype_with_color():
    [declaration] = parse("participant API <<service>> #red\n")

    assert declaration.name == "API"
    assert declaration.attrs == {"stereotype": "service", "color": "#red"}


def test_double_angle_arrows_are_not_stereotypes():
    [message] = parse("A <<-- B : <<reply>>\n")

    assert message.arrow == "<<--"
    assert message.label == "<<reply>>"
