#!/usr/bin/env python3
"""diagram-events CLI - parse, build and check diagram text."""

import argparse
import json
import logging
import sys

from pydantic import ValidationError

from . import config
from .assembler import BatchMode
from .builder import build_diagram
from .errors import DiagramError
from .events import events_from_json, events_to_json
from .pipeline import assemble_diagram
from .productions import DiagramFormat
from .validation import validate_events, validation_summary

logger = logging.getLogger(__name__)


def _json_out(data, code=0):
    print(json.dumps(data))
    sys.exit(code)


def _error_out(error):
    if isinstance(error, DiagramError):
        _json_out({"status": "error", **error.to_dict()}, code=1)
    _json_out({"status": "error", "code": "E_INPUT", "error": str(error)}, code=1)


def _read_source(path):
    """Read diagram text from a file, or stdin for '-'."""
    if path == "-":
        return sys.stdin.read()
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        _error_out(f"Cannot read {path}: {e.strerror}")


def _assemble(args):
    text = _read_source(args.file)
    try:
        return assemble_diagram(text, args.format, batch_mode=args.batch_mode)
    except DiagramError as e:
        _error_out(e)


# ── Commands ─────────────────────────────────────────────────────────────────

def cmd_parse(args):
    ctx = _assemble(args)
    _json_out({
        "status": "ok",
        "format": ctx.format.value,
        "events": events_to_json(ctx.events),
    })


def cmd_build(args):
    ctx = _assemble(args)
    diagram = build_diagram(ctx.events, name=args.name, fmt=ctx.format.value)
    _json_out({
        "status": "ok",
        "format": ctx.format.value,
        "diagram": diagram.to_json_dict(),
        "conflicts": [
            {"name": c.name, "node_id": c.node_id, "previous_kind": c.previous_kind,
             "new_kind": c.new_kind, "line": c.line}
            for c in ctx.registry.conflicts
        ],
    })


def cmd_check(args):
    if args.events:
        text = _read_source(args.file)
        try:
            events = events_from_json(json.loads(text))
        except (json.JSONDecodeError, ValidationError) as e:
            _error_out(f"Invalid event JSON: {e}")
    else:
        events = _assemble(args).events

    issues = validate_events(events)
    _json_out({
        "status": "ok",
        "validation": validation_summary(issues),
        "issues": [issue.to_dict() for issue in issues],
    })


def main(argv=None):
    parser = argparse.ArgumentParser(description="Convert diagram text into graph events")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_input(p):
        p.add_argument("file", help="Diagram file, or - for stdin")
        p.add_argument("--format", choices=[f.value for f in DiagramFormat], default=None)
        p.add_argument("--batch-mode", choices=[m.value for m in BatchMode], default=None)

    p = sub.add_parser("parse", help="Print the event stream")
    add_input(p)

    p = sub.add_parser("build", help="Print the diagram built from the events")
    add_input(p)
    p.add_argument("--name", default="Untitled Diagram")

    p = sub.add_parser("check", help="Validate the event stream")
    add_input(p)
    p.add_argument("--events", action="store_true", help="Input is an event JSON list")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )

    cmd_map = {
        "parse": cmd_parse,
        "build": cmd_build,
        "check": cmd_check,
    }
    cmd_map[args.command](args)


if __name__ == "__main__":
    main()
