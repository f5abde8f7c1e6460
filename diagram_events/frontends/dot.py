"""
DOT front-end - Graphviz graph and digraph files.

The body is lowered to flat statements: braces become explicit
SubgraphOpen/ScopeClose productions so nesting is checked by the assembler.
IDs may be bare identifiers, numerals, double-quoted strings (with escapes)
or HTML strings. `//`, `/* */` and `#` comments are ignored.
"""

import re

from lark import Token, Transformer, v_args

from ..productions import (
    Assignment, AttrStatement, DiagramFormat, EdgeStatement, GraphOpen,
    NodeRef, NodeStatement, ScopeClose, SubgraphOpen,
)
from .base import Frontend

DOT_GRAMMAR = r"""
start: graph_open _stmt*

graph_open: STRICT? (GRAPH | DIGRAPH) id? LBRACE

_stmt: subgraph_open
     | scope_close
     | edge_stmt
     | node_stmt
     | attr_stmt
     | assignment
     | ";"

subgraph_open: SUBGRAPH id? LBRACE
             | LBRACE
scope_close: RBRACE (_edge_chain attr_list?)?

edge_stmt: node_ref _edge_chain attr_list?
_edge_chain: (EDGE_OP _edge_target)+
_edge_target: node_ref | node_group
node_group: (SUBGRAPH id?)? LBRACE (node_ref ";"?)* RBRACE
node_stmt: node_ref attr_list?
node_ref: id port?
port: ":" id (":" id)?
attr_stmt: (GRAPH | NODE | EDGE) attr_list
assignment: id "=" id

attr_list: ("[" (attr ("," | ";")?)* "]")+
attr: id ("=" id)?

id: ID | NUMERAL | STRING | HTML_STRING

STRICT.2: /strict\b/i
DIGRAPH.2: /digraph\b/i
GRAPH.2: /graph\b/i
SUBGRAPH.2: /subgraph\b/i
NODE.2: /node\b/i
EDGE.2: /edge\b/i

EDGE_OP: "->" | "--"
LBRACE: "{"
RBRACE: "}"

ID: /[^\W\d]\w*/
NUMERAL: /-?(\.\d+|\d+(\.\d*)?)/
STRING: /"(\\.|[^"\\])*"/
HTML_STRING: /<[^<>]*(<[^<>]*>[^<>]*)*>/

LINE_COMMENT: /\/\/[^\n]*/
BLOCK_COMMENT: /\/\*[\s\S]*?\*\//
PREPROCESSOR: /#[^\n]*/

%import common.WS
%ignore WS
%ignore LINE_COMMENT
%ignore BLOCK_COMMENT
%ignore PREPROCESSOR
"""

_LINE_CONTINUATION = re.compile(r"\\\r?\n")


def _unescape(value: str) -> str:
    return _LINE_CONTINUATION.sub("", value).replace('\\"', '"')


def _position(meta) -> dict:
    return {"line": getattr(meta, "line", 0), "column": getattr(meta, "column", 0)}


def _names(children) -> list[str]:
    """Lowered ids among a rule's children (tokens are keywords or braces)."""
    return [child for child in children if isinstance(child, str) and not isinstance(child, Token)]


def _edge_chain(children) -> tuple[tuple, tuple, dict]:
    """Split `-> B -> {C D} [attrs]` into endpoints, operators and attrs."""
    endpoints = []
    operators = []
    attrs = {}
    for child in children:
        if isinstance(child, Token):
            operators.append(str(child))
        elif isinstance(child, NodeRef):
            endpoints.append((child,))
        elif isinstance(child, tuple):
            endpoints.append(child)
        elif isinstance(child, dict):
            attrs = child
    return tuple(endpoints), tuple(operators), attrs


class DotTransformer(Transformer):
    """Lowers a DOT parse tree into productions."""

    def start(self, children):
        return list(children)

    def id(self, children):
        token = children[0]
        if token.type == "STRING":
            return _unescape(token[1:-1])
        if token.type == "HTML_STRING":
            return token[1:-1]
        return str(token)

    def port(self, children):
        return ":".join(children)

    def node_ref(self, children):
        return NodeRef(name=children[0], port=children[1] if len(children) > 1 else None)

    def node_group(self, children):
        return tuple(child for child in children if isinstance(child, NodeRef))

    def attr(self, children):
        return children[0], children[1] if len(children) > 1 else "true"

    def attr_list(self, children):
        return dict(children)

    @v_args(meta=True)
    def graph_open(self, meta, children):
        types = {child.type for child in children if isinstance(child, Token)}
        names = _names(children)
        return GraphOpen(
            directed="DIGRAPH" in types,
            strict="STRICT" in types,
            name=names[0] if names else None,
            **_position(meta),
        )

    @v_args(meta=True)
    def subgraph_open(self, meta, children):
        names = _names(children)
        return SubgraphOpen(name=names[0] if names else None, **_position(meta))

    @v_args(meta=True)
    def scope_close(self, meta, children):
        endpoints, operators, attrs = _edge_chain(children[1:])
        return ScopeClose(endpoints=endpoints, operators=operators, attrs=attrs, **_position(meta))

    @v_args(meta=True)
    def edge_stmt(self, meta, children):
        endpoints, operators, attrs = _edge_chain(children[1:])
        return EdgeStatement(
            endpoints=((children[0],),) + endpoints,
            operators=operators,
            attrs=attrs,
            **_position(meta),
        )

    @v_args(meta=True)
    def node_stmt(self, meta, children):
        attrs = children[1] if len(children) > 1 else {}
        return NodeStatement(node=children[0], attrs=attrs, **_position(meta))

    @v_args(meta=True)
    def attr_stmt(self, meta, children):
        return AttrStatement(target=children[0].lower(), attrs=children[1], **_position(meta))

    @v_args(meta=True)
    def assignment(self, meta, children):
        return Assignment(key=children[0], value=children[1], **_position(meta))


class DotFrontend(Frontend):
    """Front-end for Graphviz DOT graphs."""

    format = DiagramFormat.DOT
    grammar = DOT_GRAMMAR

    def transformer(self) -> Transformer:
        return DotTransformer()
