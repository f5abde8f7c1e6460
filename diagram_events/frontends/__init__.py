"""
Grammar front-ends, one per supported diagram format.
"""

import re
from typing import Union

from ..productions import DiagramFormat
from .base import Frontend
from .dot import DotFrontend
from .sequence import SequenceFrontend

FRONTENDS: dict[DiagramFormat, type[Frontend]] = {
    DiagramFormat.DOT: DotFrontend,
    DiagramFormat.SEQUENCE: SequenceFrontend,
}

# `[strict] (graph|digraph) [ID] {` at the start of a line, possibly after comments
_DOT_HEADER = re.compile(
    r'^\s*(?:strict\s+)?(?:di)?graph\b\s*(?:"[^"]*"|[\w.]+)?\s*\{',
    re.IGNORECASE | re.MULTILINE,
)


def detect_format(text: str) -> DiagramFormat:
    """Guess the format: a graph/digraph header means DOT, anything else is sequence."""
    if _DOT_HEADER.search(text):
        return DiagramFormat.DOT
    return DiagramFormat.SEQUENCE


def get_frontend(fmt: Union[DiagramFormat, str]) -> Frontend:
    """Return a front-end instance for a format name."""
    return FRONTENDS[DiagramFormat(fmt)]()


__all__ = [
    "FRONTENDS",
    "Frontend",
    "DotFrontend",
    "SequenceFrontend",
    "detect_format",
    "get_frontend",
]
