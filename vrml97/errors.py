"""
Parse errors for the VRML97 reader.

Every error aborts the current parse and carries the position of the token
(or character) at which it was detected.
"""

from typing import Optional


class VrmlParseException(Exception):
    """Base class for all positioned parse failures."""

    def __init__(self, message: str, token=None, line: Optional[int] = None,
                 column: Optional[int] = None):
        self.token = token
        self.line = token.line if token is not None else line
        self.column = token.column if token is not None else column
        self.message = message
        if self.line is None:
            super().__init__(message)
        else:
            super().__init__(f"Line {self.line}, column {self.column}: {message}")


class LexError(VrmlParseException):
    """Malformed token: unterminated string, bad number, stray character."""

    def __init__(self, message: str, line: int, column: int):
        super().__init__(message, line=line, column=column)


class InvalidVrmlSyntaxException(VrmlParseException):
    """A required keyword or punctuation did not match."""


class UnexpectedEndOfInput(InvalidVrmlSyntaxException):
    """The input ended inside a statement."""


class InvalidFieldException(VrmlParseException):
    """Unknown field name or field type, or a value of the wrong shape."""


class InvalidEventInException(VrmlParseException):
    """An eventIn identifier is not valid where it appears."""


class InvalidEventOutException(VrmlParseException):
    """An eventOut identifier is not valid where it appears."""


class UndefinedNodeReference(VrmlParseException):
    """USE of a name that has not been DEF'd yet."""


class NodeRedefinitionException(VrmlParseException):
    """A DEF name was reused while strict DEF checking is on."""


class DepthExceededException(VrmlParseException):
    """Statements are nested deeper than the configured bound."""


class InvalidHeaderException(VrmlParseException):
    """The document does not start with the expected header line."""
