"""
Arrow classification for sequence messages and graph edge operators.
"""

from enum import Enum
from typing import NamedTuple

from .errors import MalformedArrow


class MessageKind(str, Enum):
    """Semantic tag attached to a message edge as its `direction` attribute."""
    SYNCHRONOUS = "synchronous"
    ASYNCHRONOUS = "asynchronous"
    RETURN = "return"
    LOST = "lost"
    FOUND = "found"
    BIDIRECTIONAL = "bidirectional"


class ArrowInfo(NamedTuple):
    kind: MessageKind
    reversed: bool  # Source and target are swapped in the emitted edge


ARROWS: dict[str, ArrowInfo] = {
    "->": ArrowInfo(MessageKind.SYNCHRONOUS, False),
    "->>": ArrowInfo(MessageKind.ASYNCHRONOUS, False),
    "-->": ArrowInfo(MessageKind.RETURN, False),
    "-->>": ArrowInfo(MessageKind.RETURN, False),
    "<-": ArrowInfo(MessageKind.SYNCHRONOUS, True),
    "<<-": ArrowInfo(MessageKind.ASYNCHRONOUS, True),
    "<--": ArrowInfo(MessageKind.RETURN, True),
    "<<--": ArrowInfo(MessageKind.RETURN, True),
    "<->": ArrowInfo(MessageKind.BIDIRECTIONAL, False),
    "<-->": ArrowInfo(MessageKind.BIDIRECTIONAL, False),
    "->x": ArrowInfo(MessageKind.LOST, False),
    "-->x": ArrowInfo(MessageKind.LOST, False),
    "-\\": ArrowInfo(MessageKind.LOST, False),
    "\\-": ArrowInfo(MessageKind.FOUND, True),
    "\\\\": ArrowInfo(MessageKind.SYNCHRONOUS, False),
}

DIRECTED_OPERATOR = "->"
UNDIRECTED_OPERATOR = "--"


def classify_arrow(arrow: str, line: int = 0) -> ArrowInfo:
    """Look up a sequence arrow token, raising MalformedArrow if unknown."""
    info = ARROWS.get(arrow)
    if info is None:
        raise MalformedArrow(f"Unknown arrow '{arrow}'", line=line, construct=arrow)
    return info


def check_edge_operator(operator: str, directed: bool, line: int = 0) -> None:
    """An edge operator must match the graph kind."""
    expected = DIRECTED_OPERATOR if directed else UNDIRECTED_OPERATOR
    if operator != expected:
        graph_kind = "digraph" if directed else "graph"
        raise MalformedArrow(
            f"Edge operator '{operator}' not allowed in a {graph_kind}, use '{expected}'",
            line=line,
            construct=operator,
        )
