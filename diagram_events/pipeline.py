"""
Text-to-events pipeline: front-end parse followed by assembly.
"""

import logging
from typing import Iterator, Optional, Union

from . import config
from .assembler import AssemblyContext, BatchMode, EventAssembler
from .events import GraphEvent
from .frontends import detect_format, get_frontend
from .productions import DiagramFormat, Document

logger = logging.getLogger(__name__)


def _batch_mode(batch_mode: Optional[Union[BatchMode, str]]) -> BatchMode:
    return BatchMode(batch_mode or config.BATCH_MODE)


def parse_document(text: str, fmt: Optional[Union[DiagramFormat, str]] = None) -> Document:
    """Parse text into a Document, detecting the format when not given."""
    fmt = DiagramFormat(fmt) if fmt else detect_format(text)
    logger.debug("Parsing %d chars as %s", len(text), fmt.value)
    return get_frontend(fmt).parse(text)


def assemble_diagram(
    text: str,
    fmt: Optional[Union[DiagramFormat, str]] = None,
    *,
    batch_mode: Optional[Union[BatchMode, str]] = None,
) -> AssemblyContext:
    """Parse and assemble, returning the finished context (events, registry, conflicts)."""
    document = parse_document(text, fmt)
    return EventAssembler(_batch_mode(batch_mode)).run(document)


def parse_diagram(
    text: str,
    fmt: Optional[Union[DiagramFormat, str]] = None,
    *,
    batch_mode: Optional[Union[BatchMode, str]] = None,
) -> list[GraphEvent]:
    """
    Convert diagram text into graph events.

    Args:
        text: DOT or sequence diagram source
        fmt: "dot" or "sequence"; detected from the text when omitted
        batch_mode: "diagram" (default) or "block"

    Raises:
        DiagramSyntaxError: the text does not parse
        AssemblyError: the text parses but is structurally invalid
    """
    return assemble_diagram(text, fmt, batch_mode=batch_mode).events


def parse_dot(text: str) -> list[GraphEvent]:
    return parse_diagram(text, DiagramFormat.DOT)


def parse_sequence(text: str, *, batch_mode: Optional[Union[BatchMode, str]] = None) -> list[GraphEvent]:
    return parse_diagram(text, DiagramFormat.SEQUENCE, batch_mode=batch_mode)


def iter_events(
    text: str,
    fmt: Optional[Union[DiagramFormat, str]] = None,
    *,
    batch_mode: Optional[Union[BatchMode, str]] = None,
) -> Iterator[GraphEvent]:
    """Iterate over the events of a diagram.

    The whole diagram is assembled before the first event is yielded, so
    errors surface before any event is consumed.
    """
    yield from parse_diagram(text, fmt, batch_mode=batch_mode)
