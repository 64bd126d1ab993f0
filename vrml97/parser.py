"""
Document builder: parses a whole VRML97 document into a Scene.
"""

import logging
from pathlib import Path
from typing import Optional

from .context import ParserContext
from .errors import DepthExceededException, InvalidHeaderException
from .lexer import tokenize
from .nodes import Scene
from .options import ParserOptions
from .statements import parse_statements

logger = logging.getLogger(__name__)


HEADER_PREFIX = '#VRML V2.0'


class Parser:
    """Parses one document; create a new Parser for every document."""

    def __init__(self, source: str, options: Optional[ParserOptions] = None):
        self.source = source
        self.options = options or ParserOptions()

    def parse(self) -> Scene:
        """Parse the source into a Scene. Any error aborts the whole parse."""
        header = self._read_header()

        context = ParserContext(tokenize(self.source), self.options)
        try:
            nodes = parse_statements(context)
        except RecursionError:
            # max_depth set above what the interpreter stack can hold
            raise DepthExceededException(
                f"Nesting too deep to parse with max_depth {self.options.max_depth}",
                context.last_token) from None

        logger.debug("Parsed %d node(s), %d DEF name(s), %d PROTO(s), %d ROUTE(s)",
                     len(nodes), len(context.symbols), len(context.protos),
                     len(context.routes))
        return Scene(nodes=nodes, symbols=context.symbols, protos=context.protos,
                     routes=context.routes, header=header)

    def _read_header(self) -> Optional[str]:
        first_line = self.source.split('\n', 1)[0].rstrip('\r')
        if first_line.startswith(HEADER_PREFIX):
            return first_line
        if self.options.require_header:
            raise InvalidHeaderException(
                f"Expected '{HEADER_PREFIX} utf8' header, found {first_line[:40]!r}",
                line=1, column=1)
        logger.warning("Document has no '%s' header", HEADER_PREFIX)
        return None


def parse(source: str, options: Optional[ParserOptions] = None) -> Scene:
    """Convenience function to parse source text into a Scene."""
    return Parser(source, options).parse()


def parse_file(path, options: Optional[ParserOptions] = None) -> Scene:
    """Read a UTF-8 file and parse it."""
    source = Path(path).read_text(encoding='utf-8')
    return parse(source, options)
