"""
Reader for the VRML97 scene-description format.

    from vrml97 import parse
    scene = parse(open("world.wrl").read())
"""

from .errors import (
    DepthExceededException, InvalidEventInException, InvalidEventOutException,
    InvalidFieldException, InvalidHeaderException, InvalidVrmlSyntaxException,
    LexError, NodeRedefinitionException, UndefinedNodeReference,
    UnexpectedEndOfInput, VrmlParseException,
)
from .fields import FIELD_TYPES, Field, FieldVisitor, MField
from .nodes import Node, Route, Scene
from .options import ParserOptions, load_options
from .parser import Parser, parse, parse_file

__all__ = [
    'parse', 'parse_file', 'Parser', 'ParserOptions', 'load_options',
    'Scene', 'Node', 'Route', 'Field', 'MField', 'FieldVisitor', 'FIELD_TYPES',
    'VrmlParseException', 'LexError', 'InvalidVrmlSyntaxException',
    'UnexpectedEndOfInput', 'InvalidFieldException', 'InvalidEventInException',
    'InvalidEventOutException', 'UndefinedNodeReference',
    'NodeRedefinitionException', 'DepthExceededException', 'InvalidHeaderException',
]
