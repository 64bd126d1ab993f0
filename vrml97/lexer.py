"""
Lexer for the VRML97 text format.

Turns source text into a lazy stream of tokens for the statement parser.
The terminals live in vrml97.lark and are matched by Lark's basic lexer.
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Iterator

from lark import Lark
from lark.exceptions import UnexpectedCharacters

from .errors import LexError


GRAMMAR_PATH = Path(__file__).parent / "vrml97.lark"


class TokenType(Enum):
    IDENTIFIER = auto()
    NUMBER = auto()
    STRING = auto()

    # Symbols
    LBRACE = auto()      # {
    RBRACE = auto()      # }
    LBRACKET = auto()    # [
    RBRACKET = auto()    # ]
    COMMA = auto()       # ,
    PERIOD = auto()      # .


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    line: int
    column: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


# Lark terminal name -> token type
TERMINALS = {
    'ID': TokenType.IDENTIFIER,
    'NUMBER': TokenType.NUMBER,
    'STRING': TokenType.STRING,
    'LBRACE': TokenType.LBRACE,
    'RBRACE': TokenType.RBRACE,
    'LBRACKET': TokenType.LBRACKET,
    'RBRACKET': TokenType.RBRACKET,
    'COMMA': TokenType.COMMA,
    'PERIOD': TokenType.PERIOD,
}

NUMBER_RE = re.compile(
    r'[+-]?(?:0[xX][0-9a-fA-F]+|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)'
)

ESCAPE_RE = re.compile(r'\\(.)', re.DOTALL)


def unescape(body: str) -> str:
    """Resolve backslash escapes inside a string literal body."""
    return ESCAPE_RE.sub(lambda m: m.group(1), body)


class Lexer:
    """Tokenizer for VRML97 source text."""

    _lark = None

    def __init__(self, source: str):
        self.source = source

    @classmethod
    def _get_lark(cls) -> Lark:
        if cls._lark is None:
            cls._lark = Lark(GRAMMAR_PATH.read_text(encoding="utf-8"),
                             parser="lalr", lexer="basic")
        return cls._lark

    def tokenize(self) -> Iterator[Token]:
        """Yield tokens one at a time; errors surface when reached."""
        stream = self._get_lark().lex(self.source)
        while True:
            try:
                raw = next(stream)
            except StopIteration:
                return
            except UnexpectedCharacters as e:
                raise self._character_error(e) from None
            yield self._convert(raw)

    def _convert(self, raw) -> Token:
        token_type = TERMINALS[raw.type]
        value = str(raw)

        if token_type == TokenType.NUMBER:
            if not NUMBER_RE.fullmatch(value):
                raise LexError(f"Malformed number: {value!r}", raw.line, raw.column)
        elif token_type == TokenType.STRING:
            value = unescape(value[1:-1])
        elif token_type == TokenType.IDENTIFIER and value.startswith('/*'):
            raise LexError("Unterminated comment", raw.line, raw.column)

        return Token(token_type, value, raw.line, raw.column)

    @staticmethod
    def _character_error(e: UnexpectedCharacters) -> LexError:
        if e.char == '"':
            return LexError("Unterminated string", e.line, e.column)
        return LexError(f"Unexpected character: {e.char!r}", e.line, e.column)


def tokenize(source: str) -> Iterator[Token]:
    """Convenience function to tokenize source text lazily."""
    return Lexer(source).tokenize()
