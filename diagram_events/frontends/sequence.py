"""
Sequence diagram front-end - PlantUML-style sequence notation.

Line oriented. Supported statements:
- participant declarations: participant, actor, boundary, control, entity,
  database, collections, queue; with `as` alias, <<stereotype>> and #color
- messages: `A -> B`, `A ->> B : label`, `A -> B ++`, `A --> B --`
- activate / deactivate / destroy
- notes: `note left of A : text`, `note over A, B : text` and multi-line
  notes closed by `end note`
- dividers: `== title ==`, `...`, `|||`
- blocks: alt, loop, opt, par, group, critical, break; `else`; `end`
- comments: `' line` and `/' block '/`

@startuml/@enduml markers are ignored. Block balance is left to the assembler.
"""

import re
from typing import NamedTuple

from lark import Token, Transformer, v_args

from ..productions import (
    Activation, BlockElse, BlockEnd, BlockOpen, Comment, Deactivation,
    Declaration, Destroy, DiagramFormat, Divider, Message, Note,
)
from .base import Frontend

SEQUENCE_GRAMMAR = r"""
start: (_stmt? _NL)*

_stmt: declaration
     | message
     | activation
     | deactivation
     | destroy
     | note
     | divider
     | block_open
     | block_else
     | block_end
     | comment

declaration: PARTICIPANT_KIND name (_AS name)? STEREOTYPE? COLOR?
message: name ARROW name ACTIVATION_MARK? LABEL?
activation: ACTIVATE name COLOR?
deactivation: DEACTIVATE name
destroy: DESTROY name
note: NOTE note_target LABEL
    | NOTE note_target _NL NOTE_BODY
note_target: NOTE_SIDE _OF? name
           | _OVER name ("," name)*
divider: SEPARATOR | DELAY | SPACER
block_open: BLOCK_KIND TEXT?
block_else: ELSE TEXT?
block_end: END
comment: COMMENT | BLOCK_COMMENT

name: NAME | STRING

PARTICIPANT_KIND.2: /(participant|actor|boundary|control|entity|database|collections|queue)\b/
BLOCK_KIND.2: /(alt|loop|opt|par|group|critical|break)\b/
ELSE.2: /else\b/
END.2: /end\b/
ACTIVATE.2: /activate\b/
DEACTIVATE.2: /deactivate\b/
DESTROY.2: /destroy\b/
NOTE.2: /[hr]?note\b/
NOTE_SIDE.2: /(left|right)\b/
_OF.2: /of\b/
_OVER.2: /over\b/
_AS.2: /as\b/

ARROW: /[<\\\/-][-<>\\\/]*([xo](?!\w))?/
ACTIVATION_MARK.3: /\+\+|--(?=[\t ]*(:|\n))/
LABEL: /:[^\n]*/
TEXT: /[^\s][^\n]*/
NOTE_BODY: /([^\n]*\n)*?[\t ]*end ?note/
NAME: /[^\W\d]\w*/
STRING: /"[^"\n]*"/
STEREOTYPE.3: /<<[\t ]*[\w"][^>\n]*>>/
COLOR: /#\w+/

SEPARATOR: /==[^\n]*/
DELAY: /\.\.\.[^\n]*/
SPACER: /\|\|\|[^\n]*/
COMMENT: /'[^\n]*/
BLOCK_COMMENT: /\/'[\s\S]*?'\//
UML_MARKER: /@(start|end)uml[^\n]*/

_NL: /(\n[\t ]*)+/

%import common.WS_INLINE
%ignore WS_INLINE
%ignore UML_MARKER
"""

_NOTE_END = re.compile(r"[\t ]*end ?note$")


class _Name(NamedTuple):
    text: str
    quoted: bool


def _position(meta) -> dict:
    return {"line": getattr(meta, "line", 0), "column": getattr(meta, "column", 0)}


def _note_text(body: str) -> str:
    lines = [line.strip() for line in _NOTE_END.sub("", body).split("\n")]
    return "\n".join(lines).strip("\n")


class SequenceTransformer(Transformer):
    """Lowers a sequence parse tree into productions."""

    def start(self, children):
        return list(children)

    def name(self, children):
        token = children[0]
        if token.type == "STRING":
            return _Name(token[1:-1], True)
        return _Name(str(token), False)

    @v_args(meta=True)
    def declaration(self, meta, children):
        names = [child for child in children if isinstance(child, _Name)]
        tokens = {child.type: str(child) for child in children if isinstance(child, Token)}

        primary = names[0]
        alias = names[1] if len(names) > 1 else None
        label = alias.text if alias and alias.quoted else primary.text

        attrs = {}
        if "STEREOTYPE" in tokens:
            attrs["stereotype"] = tokens["STEREOTYPE"][2:-2].strip()
        if "COLOR" in tokens:
            attrs["color"] = tokens["COLOR"]

        return Declaration(
            kind=tokens["PARTICIPANT_KIND"],
            name=primary.text,
            alias=alias.text if alias else None,
            label=label,
            attrs=attrs,
            **_position(meta),
        )

    @v_args(meta=True)
    def message(self, meta, children):
        source, arrow, target = children[:3]
        label = None
        activation = None
        for token in children[3:]:
            if token.type == "LABEL":
                label = token[1:].strip() or None
            elif token.type == "ACTIVATION_MARK":
                activation = str(token)
        return Message(
            source=source.text,
            arrow=str(arrow),
            target=target.text,
            label=label,
            activation=activation,
            **_position(meta),
        )

    @v_args(meta=True)
    def activation(self, meta, children):
        attrs = {}
        if len(children) > 2:
            attrs["color"] = str(children[2])
        return Activation(name=children[1].text, attrs=attrs, **_position(meta))

    @v_args(meta=True)
    def deactivation(self, meta, children):
        return Deactivation(name=children[1].text, **_position(meta))

    @v_args(meta=True)
    def destroy(self, meta, children):
        return Destroy(name=children[1].text, **_position(meta))

    def note_target(self, children):
        position = "over"
        names = []
        for child in children:
            if isinstance(child, _Name):
                names.append(child.text)
            elif child.type == "NOTE_SIDE":
                position = str(child)
        return position, tuple(names)

    @v_args(meta=True)
    def note(self, meta, children):
        position, targets = children[1]
        body = children[2]
        if body.type == "LABEL":
            text = body[1:].strip()
        else:
            text = _note_text(str(body))
        return Note(targets=targets, position=position, text=text, **_position(meta))

    @v_args(meta=True)
    def divider(self, meta, children):
        token = children[0]
        if token.type == "SEPARATOR":
            return Divider(style="separator", text=token.strip("= \t"), **_position(meta))
        style = "delay" if token.type == "DELAY" else "space"
        return Divider(style=style, text=token[3:].strip(), **_position(meta))

    @v_args(meta=True)
    def block_open(self, meta, children):
        condition = children[1].strip() if len(children) > 1 else None
        return BlockOpen(kind=str(children[0]), condition=condition or None, **_position(meta))

    @v_args(meta=True)
    def block_else(self, meta, children):
        condition = children[1].strip() if len(children) > 1 else None
        return BlockElse(condition=condition or None, **_position(meta))

    @v_args(meta=True)
    def block_end(self, meta, children):
        return BlockEnd(**_position(meta))

    @v_args(meta=True)
    def comment(self, meta, children):
        token = children[0]
        text = token[2:-2] if token.type == "BLOCK_COMMENT" else token[1:]
        return Comment(text=text.strip(), **_position(meta))


class SequenceFrontend(Frontend):
    """Front-end for PlantUML-style sequence diagrams."""

    format = DiagramFormat.SEQUENCE
    grammar = SEQUENCE_GRAMMAR

    def prepare(self, text: str) -> str:
        # Every statement is newline-terminated
        return text.replace("\r\n", "\n").replace("\r", "\n") + "\n"

    def transformer(self) -> Transformer:
        return SequenceTransformer()
