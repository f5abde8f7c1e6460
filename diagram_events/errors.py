"""
Diagram errors - Structured failures raised while parsing or assembling.

Every error carries a stable ``code`` so the CLI and HTTP layers can map it
without string matching, plus the document position of the offending construct.

Hierarchy:
- DiagramError (ValueError)
  - DiagramSyntaxError     - text rejected by a grammar front-end
  - AssemblyError          - structural problems found by the assembler
    - UnmatchedScopeClose
    - UnterminatedScope
    - NegativeActivation
    - MalformedArrow
    - StrayStatement
"""

from typing import Optional


class DiagramError(ValueError):
    """Base class for all diagram failures."""

    code = "E_DIAGRAM"

    def __init__(
        self,
        message: str,
        *,
        line: Optional[int] = None,
        column: Optional[int] = None,
        scope_kind: Optional[str] = None,
        construct: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column
        self.scope_kind = scope_kind
        self.construct = construct

    def __str__(self) -> str:
        if self.line:
            return f"line {self.line}: {self.message}"
        return self.message

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {"code": self.code, "error": self.message}
        if self.line is not None:
            result["line"] = self.line
        if self.column is not None:
            result["column"] = self.column
        if self.scope_kind:
            result["scope_kind"] = self.scope_kind
        if self.construct:
            result["construct"] = self.construct
        return result


class DiagramSyntaxError(DiagramError):
    """The grammar front-end could not parse the text."""

    code = "E_SYNTAX"


class AssemblyError(DiagramError):
    """A structural error detected while assembling events."""

    code = "E_ASSEMBLY"


class UnmatchedScopeClose(AssemblyError):
    """A closing construct (``end``, ``else``, ``}``) with no matching open scope."""

    code = "E_UNMATCHED_CLOSE"


class UnterminatedScope(AssemblyError):
    """Input ended while a scope was still open."""

    code = "E_UNTERMINATED"


class NegativeActivation(AssemblyError):
    """A participant was deactivated more often than it was activated."""

    code = "E_NEGATIVE_ACTIVATION"


class MalformedArrow(AssemblyError):
    """An arrow or edge operator outside the recognized set."""

    code = "E_MALFORMED_ARROW"


class StrayStatement(AssemblyError):
    """A statement outside of any graph body."""

    code = "E_STRAY_STATEMENT"
