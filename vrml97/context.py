"""
Parser state for one VRML97 document.

ParserContext is the cursor over the token stream and owns the symbol table
(DEF names), the PROTO table and the nesting counter. It is not reentrant;
use one context per document.
"""

import logging
import math
import re
from contextlib import contextmanager
from typing import Dict, Iterable, List, Optional

from .errors import (
    DepthExceededException, InvalidEventInException, InvalidEventOutException,
    InvalidFieldException, InvalidVrmlSyntaxException, NodeRedefinitionException,
    UndefinedNodeReference, UnexpectedEndOfInput,
)
from .fields import FIELD_TYPES
from .lexer import Token, TokenType
from .node_types import BUILTIN_NODE_TYPES, NodeInterface, ProtoDeclaration
from .options import ParserOptions

logger = logging.getLogger(__name__)


# Words that have a fixed meaning and cannot name nodes, fields or events
RESERVED_WORDS = {
    'DEF', 'EXTERNPROTO', 'FALSE', 'IS', 'NULL', 'PROTO', 'ROUTE', 'TO',
    'TRUE', 'USE', 'eventIn', 'eventOut', 'exposedField', 'field',
}

DECIMAL_INT_RE = re.compile(r'[+-]?[0-9]+')

INT32_MIN = -2 ** 31
INT32_MAX = 2 ** 31 - 1
# Hex literals may spell the full unsigned range, as SFImage pixels do
UINT32_MAX = 2 ** 32 - 1

SYMBOL_TEXT = {
    TokenType.LBRACE: '{',
    TokenType.RBRACE: '}',
    TokenType.LBRACKET: '[',
    TokenType.RBRACKET: ']',
    TokenType.PERIOD: '.',
}


def describe(token: Optional[Token]) -> str:
    """Short description of a token for error messages."""
    if token is None:
        return "end of input"
    if token.type == TokenType.STRING:
        return f"string {token.value!r}"
    return repr(token.value)


class ParserContext:
    """Token cursor plus the per-document symbol and PROTO tables."""

    def __init__(self, tokens: Iterable[Token], options: Optional[ParserOptions] = None):
        self._tokens = iter(tokens)
        self._lookahead: Optional[Token] = None
        self._last: Optional[Token] = None
        self.options = options or ParserOptions()
        self.symbols: Dict[str, 'Node'] = {}
        self.protos: Dict[str, ProtoDeclaration] = {}
        self.depth = 0
        self.routes: List['Route'] = []
        self._proto_interfaces: List[NodeInterface] = []
        self._route_lists: List[list] = [self.routes]

    # =========================================================================
    # Token cursor
    # =========================================================================

    def peek(self) -> Optional[Token]:
        """Next significant token, or None at end of input. Commas are whitespace."""
        if self._lookahead is None:
            for token in self._tokens:
                if token.type != TokenType.COMMA:
                    self._lookahead = token
                    break
        return self._lookahead

    def advance(self) -> Token:
        token = self.peek()
        if token is None:
            if self._last is None:
                raise UnexpectedEndOfInput("Unexpected end of input", line=1, column=1)
            raise UnexpectedEndOfInput(
                f"Unexpected end of input after {describe(self._last)}", self._last)
        self._lookahead = None
        self._last = token
        return token

    @property
    def last_token(self) -> Optional[Token]:
        """The most recently consumed token."""
        return self._last

    def at_end(self) -> bool:
        return self.peek() is None

    def check(self, token_type: TokenType) -> bool:
        token = self.peek()
        return token is not None and token.type == token_type

    def check_keyword(self, keyword: str) -> bool:
        token = self.peek()
        return token is not None and token.type == TokenType.IDENTIFIER and token.value == keyword

    def read_keyword(self, expected: str) -> Token:
        if self.check_keyword(expected):
            return self.advance()
        if self.at_end():
            self.advance()
        raise InvalidVrmlSyntaxException(
            f"Expected '{expected}', found {describe(self.peek())}", self.peek())

    def read_symbol(self, token_type: TokenType) -> Token:
        if self.check(token_type):
            return self.advance()
        if self.at_end():
            self.advance()
        raise InvalidVrmlSyntaxException(
            f"Expected '{SYMBOL_TEXT[token_type]}', found {describe(self.peek())}", self.peek())

    # =========================================================================
    # Identifiers
    # =========================================================================

    def _read_identifier(self, error_cls, what: str) -> Token:
        token = self.peek()
        if token is None:
            self.advance()
        if token.type != TokenType.IDENTIFIER or token.value in RESERVED_WORDS:
            raise error_cls(f"Expected {what}, found {describe(token)}", token)
        return self.advance()

    def parse_field_type(self) -> str:
        """Consume a field type name such as SFVec3f or MFNode."""
        token = self.peek()
        if token is None:
            self.advance()
        if token.type != TokenType.IDENTIFIER or token.value not in FIELD_TYPES:
            raise InvalidFieldException(f"Unknown field type {describe(token)}", token)
        return self.advance().value

    def parse_field_id(self) -> Token:
        return self._read_identifier(InvalidFieldException, "field name")

    def parse_event_in_id(self) -> Token:
        return self._read_identifier(InvalidEventInException, "eventIn name")

    def parse_event_out_id(self) -> Token:
        return self._read_identifier(InvalidEventOutException, "eventOut name")

    def parse_node_name_id(self) -> Token:
        return self._read_identifier(InvalidVrmlSyntaxException, "node name")

    def parse_node_type_id(self) -> Token:
        return self._read_identifier(InvalidVrmlSyntaxException, "node type")

    # =========================================================================
    # Literals
    # =========================================================================

    def _read_number_token(self, what: str) -> Token:
        token = self.peek()
        if token is None:
            self.advance()
        if token.type != TokenType.NUMBER:
            raise InvalidFieldException(f"Expected {what}, found {describe(token)}", token)
        return self.advance()

    def read_float(self) -> float:
        token = self._read_number_token("number")
        text = token.value
        try:
            value = float(int(text, 16)) if 'x' in text or 'X' in text else float(text)
        except OverflowError:
            value = math.inf
        if not math.isfinite(value):
            raise InvalidFieldException(f"Number out of range: {describe(token)}", token)
        return value

    def read_int(self) -> int:
        token = self._read_number_token("integer")
        text = token.value
        if 'x' in text or 'X' in text:
            value = int(text, 16)
            upper = UINT32_MAX
        elif DECIMAL_INT_RE.fullmatch(text):
            value = int(text)
            upper = INT32_MAX
        else:
            raise InvalidFieldException(f"Expected integer, found {describe(token)}", token)
        if not INT32_MIN <= value <= upper:
            raise InvalidFieldException(f"Integer out of range: {describe(token)}", token)
        return value

    def read_bool(self) -> bool:
        token = self.peek()
        if token is None:
            self.advance()
        if token.type != TokenType.IDENTIFIER or token.value not in ('TRUE', 'FALSE'):
            raise InvalidFieldException(f"Expected TRUE or FALSE, found {describe(token)}", token)
        return self.advance().value == 'TRUE'

    def read_string(self) -> str:
        token = self.peek()
        if token is None:
            self.advance()
        if token.type != TokenType.STRING:
            raise InvalidFieldException(f"Expected string, found {describe(token)}", token)
        return self.advance().value

    # =========================================================================
    # Symbol and PROTO tables
    # =========================================================================

    def define_node(self, name_token: Token, node: 'Node'):
        """Bind a DEF name; later USE statements resolve to this node."""
        name = name_token.value
        if name in self.symbols:
            if self.options.strict_def:
                raise NodeRedefinitionException(f"Node name {name!r} is already defined", name_token)
            logger.debug("Rebinding DEF %s at line %d", name, name_token.line)
        self.symbols[name] = node

    def resolve_use(self, name_token: Token) -> 'Node':
        node = self.symbols.get(name_token.value)
        if node is None:
            raise UndefinedNodeReference(f"Undefined node name {name_token.value!r}", name_token)
        return node

    def define_proto(self, decl: ProtoDeclaration):
        if decl.name in self.protos:
            logger.debug("Redefining PROTO %s at line %d", decl.name, decl.line)
        else:
            logger.debug("Defined %s %s", "EXTERNPROTO" if decl.is_extern else "PROTO", decl.name)
        self.protos[decl.name] = decl

    def find_node_type(self, name: str) -> Optional[NodeInterface]:
        """Interface of a PROTO or built-in node type; PROTOs shadow built-ins."""
        decl = self.protos.get(name)
        if decl is not None:
            return decl.interface
        return BUILTIN_NODE_TYPES.get(name)

    # =========================================================================
    # Nesting
    # =========================================================================

    @contextmanager
    def nested(self, token: Token):
        """Count one level of statement nesting around the body being parsed."""
        if self.depth >= self.options.max_depth:
            raise DepthExceededException(
                f"Nesting deeper than {self.options.max_depth} levels", token)
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1

    @contextmanager
    def proto_body(self, interface: NodeInterface):
        """Make interface the target of IS mappings while a PROTO body is parsed.

        Yields the list that collects the ROUTE statements of the body.
        """
        routes = []
        self._proto_interfaces.append(interface)
        self._route_lists.append(routes)
        try:
            yield routes
        finally:
            self._route_lists.pop()
            self._proto_interfaces.pop()

    def add_route(self, route: 'Route'):
        """Record a ROUTE in the document, or in the PROTO body being parsed."""
        self._route_lists[-1].append(route)

    @property
    def current_proto(self) -> Optional[NodeInterface]:
        return self._proto_interfaces[-1] if self._proto_interfaces else None
