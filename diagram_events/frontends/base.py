"""
Front-end base class - Runs a lark grammar and lowers the tree to productions.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from lark import Lark, Transformer, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from ..errors import DiagramSyntaxError
from ..productions import DiagramFormat, Document, Production

logger = logging.getLogger(__name__)


class Frontend(ABC):
    """
    A grammar front-end for one diagram format.

    Subclasses provide the lark grammar and a Transformer that turns the
    parse tree's top-level children into productions. The LALR parser is
    built on first use and shared by all instances of the subclass.
    """

    format: DiagramFormat
    grammar: str
    _parser: Optional[Lark] = None

    @classmethod
    def parser(cls) -> Lark:
        if cls.__dict__.get("_parser") is None:
            cls._parser = Lark(
                cls.grammar,
                parser="lalr",
                lexer="contextual",
                propagate_positions=True,
                maybe_placeholders=False,
            )
            logger.debug("Built %s parser", cls.format.value)
        return cls._parser

    @abstractmethod
    def transformer(self) -> Transformer:
        """Return a fresh Transformer for one parse."""

    def prepare(self, text: str) -> str:
        """Hook for normalizing text before parsing."""
        return text

    def parse(self, text: str) -> Document:
        """
        Parse diagram text into a Document.

        Raises:
            DiagramSyntaxError: the text does not match the grammar
        """
        source = self.prepare(text)
        try:
            tree = self.parser().parse(source)
        except UnexpectedInput as exc:
            raise self._syntax_error(exc, source) from exc

        lowered = self.transformer().transform(tree)
        productions = lowered.children if isinstance(lowered, Tree) else list(lowered)
        return Document(format=self.format, productions=self._flatten(productions))

    def _flatten(self, items: list) -> list[Production]:
        productions: list[Production] = []
        for item in items:
            if isinstance(item, Production):
                productions.append(item)
            elif isinstance(item, list):
                productions.extend(self._flatten(item))
        return productions

    def _syntax_error(self, exc: UnexpectedInput, source: str) -> DiagramSyntaxError:
        line = getattr(exc, "line", None)
        column = getattr(exc, "column", None)
        # lark reports -1 (or nothing) when the error sits at end of input
        line = line if isinstance(line, int) and line > 0 else None
        column = column if isinstance(column, int) and column > 0 else None

        if isinstance(exc, UnexpectedEOF):
            message = "Unexpected end of input"
        elif isinstance(exc, UnexpectedToken):
            message = f"Unexpected {exc.token.type} {str(exc.token)!r}"
            if exc.token.type == "$END":
                message = "Unexpected end of input"
        elif isinstance(exc, UnexpectedCharacters):
            message = f"Unexpected character {exc.char!r}"
        else:
            message = "Syntax error"

        context = exc.get_context(source).strip() if line else ""
        if context:
            message = f"{message} near {context.splitlines()[0]!r}"

        return DiagramSyntaxError(
            f"{self.format.value}: {message}",
            line=line,
            column=column,
        )
