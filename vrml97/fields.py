"""
Field values of the VRML97 format.

Single-value fields (SF*) and multi-value fields (MF*) form a closed set of
classes registered in FIELD_TYPES. Each class parses its own literal syntax
from a ParserContext, clones deeply, and dispatches to the matching
FieldVisitor method so consumers never need isinstance checks.
"""

import copy
from dataclasses import dataclass, field as dataclass_field, fields as dataclass_fields
from typing import ClassVar, Dict, List, Optional

from .errors import InvalidFieldException
from .lexer import TokenType


class Field:
    """Base class for every field value."""

    type_name: ClassVar[str] = ''
    visit_method: ClassVar[str] = ''

    @classmethod
    def parse(cls, context) -> 'Field':
        raise NotImplementedError

    def clone(self, memo: Optional[dict] = None) -> 'Field':
        """Independent copy of the value.

        memo maps id(node) to its copy, so nodes shared inside the value stay
        shared in the copy. Plain values hold only immutable data.
        """
        return copy.copy(self)

    def accept_visitor(self, visitor):
        return getattr(visitor, self.visit_method)(self)


# =============================================================================
# Single-value fields
# =============================================================================

class _FloatTupleField(Field):
    """SF field made of a fixed number of floats, one per dataclass field."""

    @classmethod
    def parse(cls, context) -> 'Field':
        return cls(*[context.read_float() for _ in dataclass_fields(cls)])

    def components(self) -> tuple:
        return tuple(getattr(self, f.name) for f in dataclass_fields(self))


@dataclass
class SFBool(Field):
    value: bool = False

    type_name: ClassVar[str] = 'SFBool'
    visit_method: ClassVar[str] = 'visit_sf_bool'

    @classmethod
    def parse(cls, context) -> 'SFBool':
        return cls(context.read_bool())


@dataclass
class SFInt32(Field):
    value: int = 0

    type_name: ClassVar[str] = 'SFInt32'
    visit_method: ClassVar[str] = 'visit_sf_int32'

    @classmethod
    def parse(cls, context) -> 'SFInt32':
        return cls(context.read_int())


@dataclass
class SFFloat(_FloatTupleField):
    value: float = 0.0

    type_name: ClassVar[str] = 'SFFloat'
    visit_method: ClassVar[str] = 'visit_sf_float'


@dataclass
class SFDouble(_FloatTupleField):
    value: float = 0.0

    type_name: ClassVar[str] = 'SFDouble'
    visit_method: ClassVar[str] = 'visit_sf_double'


@dataclass
class SFTime(_FloatTupleField):
    """Seconds since 1970-01-01 UTC."""
    value: float = 0.0

    type_name: ClassVar[str] = 'SFTime'
    visit_method: ClassVar[str] = 'visit_sf_time'


@dataclass
class SFString(Field):
    value: str = ''

    type_name: ClassVar[str] = 'SFString'
    visit_method: ClassVar[str] = 'visit_sf_string'

    @classmethod
    def parse(cls, context) -> 'SFString':
        return cls(context.read_string())


@dataclass
class SFVec2f(_FloatTupleField):
    x: float = 0.0
    y: float = 0.0

    type_name: ClassVar[str] = 'SFVec2f'
    visit_method: ClassVar[str] = 'visit_sf_vec2f'


@dataclass
class SFVec3f(_FloatTupleField):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    type_name: ClassVar[str] = 'SFVec3f'
    visit_method: ClassVar[str] = 'visit_sf_vec3f'


@dataclass
class SFVec4f(_FloatTupleField):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 0.0

    type_name: ClassVar[str] = 'SFVec4f'
    visit_method: ClassVar[str] = 'visit_sf_vec4f'


@dataclass
class SFRotation(_FloatTupleField):
    """Axis and angle in radians, kept exactly as written (not normalized)."""
    x: float = 0.0
    y: float = 0.0
    z: float = 1.0
    angle: float = 0.0

    type_name: ClassVar[str] = 'SFRotation'
    visit_method: ClassVar[str] = 'visit_sf_rotation'


@dataclass
class SFColor(_FloatTupleField):
    # Components are not clamped to [0, 1]
    red: float = 0.0
    green: float = 0.0
    blue: float = 0.0

    type_name: ClassVar[str] = 'SFColor'
    visit_method: ClassVar[str] = 'visit_sf_color'


@dataclass
class SFColorRGBA(_FloatTupleField):
    red: float = 0.0
    green: float = 0.0
    blue: float = 0.0
    alpha: float = 0.0

    type_name: ClassVar[str] = 'SFColorRGBA'
    visit_method: ClassVar[str] = 'visit_sf_color_rgba'


@dataclass
class SFImage(Field):
    """width height components, then width*height packed pixel values."""
    width: int = 0
    height: int = 0
    components: int = 0
    pixels: List[int] = dataclass_field(default_factory=list)

    type_name: ClassVar[str] = 'SFImage'
    visit_method: ClassVar[str] = 'visit_sf_image'

    @classmethod
    def parse(cls, context) -> 'SFImage':
        token = context.peek()
        width = context.read_int()
        height = context.read_int()
        components = context.read_int()
        if width < 0 or height < 0 or not 0 <= components <= 4:
            raise InvalidFieldException(
                f"Invalid image header {width} {height} {components}", token)
        pixels = [context.read_int() for _ in range(width * height)]
        return cls(width, height, components, pixels)

    def clone(self, memo: Optional[dict] = None) -> 'SFImage':
        return SFImage(self.width, self.height, self.components, list(self.pixels))


@dataclass
class SFNode(Field):
    """A node reference; None is the NULL node."""
    node: Optional['Node'] = None

    type_name: ClassVar[str] = 'SFNode'
    visit_method: ClassVar[str] = 'visit_sf_node'

    @classmethod
    def parse(cls, context) -> 'SFNode':
        from .statements import parse_node_value
        return cls(parse_node_value(context, allow_null=True))

    def clone(self, memo: Optional[dict] = None) -> 'SFNode':
        if self.node is None:
            return SFNode(None)
        return SFNode(self.node.clone({} if memo is None else memo))


# =============================================================================
# Multi-value fields
# =============================================================================

class MField(Field):
    """Ordered sequence of one SF kind: "[ a, b, c ]" or a single bare value."""

    element_type: ClassVar[type] = Field

    def __init__(self, values=None):
        self.values: List[Field] = []
        for value in values or ():
            self.append(value)

    def append(self, value: Field):
        if type(value) is not self.element_type:
            raise TypeError(
                f"{self.type_name} holds {self.element_type.type_name} values, "
                f"not {type(value).__name__}")
        self.values.append(value)

    @classmethod
    def _parse_element(cls, context) -> Field:
        return cls.element_type.parse(context)

    @classmethod
    def parse(cls, context) -> 'MField':
        result = cls()
        if context.check(TokenType.LBRACKET):
            context.advance()
            while not context.check(TokenType.RBRACKET):
                result.append(cls._parse_element(context))
            context.advance()
        else:
            result.append(cls._parse_element(context))
        return result

    def clone(self, memo: Optional[dict] = None) -> 'MField':
        if memo is None:
            memo = {}
        result = type(self)()
        for element in self.values:
            result.values.append(element.clone(memo))
        return result

    def __len__(self):
        return len(self.values)

    def __iter__(self):
        return iter(self.values)

    def __getitem__(self, index):
        return self.values[index]

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.values == other.values

    __hash__ = None

    def __repr__(self):
        return f"{type(self).__name__}({self.values!r})"


class MFBool(MField):
    element_type = SFBool
    type_name = 'MFBool'
    visit_method = 'visit_mf_bool'


class MFInt32(MField):
    element_type = SFInt32
    type_name = 'MFInt32'
    visit_method = 'visit_mf_int32'


class MFFloat(MField):
    element_type = SFFloat
    type_name = 'MFFloat'
    visit_method = 'visit_mf_float'


class MFDouble(MField):
    element_type = SFDouble
    type_name = 'MFDouble'
    visit_method = 'visit_mf_double'


class MFTime(MField):
    element_type = SFTime
    type_name = 'MFTime'
    visit_method = 'visit_mf_time'


class MFString(MField):
    element_type = SFString
    type_name = 'MFString'
    visit_method = 'visit_mf_string'


class MFVec2f(MField):
    element_type = SFVec2f
    type_name = 'MFVec2f'
    visit_method = 'visit_mf_vec2f'


class MFVec3f(MField):
    element_type = SFVec3f
    type_name = 'MFVec3f'
    visit_method = 'visit_mf_vec3f'


class MFVec4f(MField):
    element_type = SFVec4f
    type_name = 'MFVec4f'
    visit_method = 'visit_mf_vec4f'


class MFRotation(MField):
    element_type = SFRotation
    type_name = 'MFRotation'
    visit_method = 'visit_mf_rotation'


class MFColor(MField):
    element_type = SFColor
    type_name = 'MFColor'
    visit_method = 'visit_mf_color'


class MFColorRGBA(MField):
    element_type = SFColorRGBA
    type_name = 'MFColorRGBA'
    visit_method = 'visit_mf_color_rgba'


class MFImage(MField):
    element_type = SFImage
    type_name = 'MFImage'
    visit_method = 'visit_mf_image'


class MFNode(MField):
    """Child nodes; NULL is not allowed as an element."""
    element_type = SFNode
    type_name = 'MFNode'
    visit_method = 'visit_mf_node'

    @classmethod
    def _parse_element(cls, context) -> SFNode:
        from .statements import parse_node_value
        return SFNode(parse_node_value(context, allow_null=False))

    @property
    def nodes(self) -> List['Node']:
        return [element.node for element in self.values]


FIELD_TYPES: Dict[str, type] = {
    cls.type_name: cls for cls in (
        SFBool, SFInt32, SFFloat, SFDouble, SFTime, SFString,
        SFVec2f, SFVec3f, SFVec4f, SFRotation, SFColor, SFColorRGBA,
        SFImage, SFNode,
        MFBool, MFInt32, MFFloat, MFDouble, MFTime, MFString,
        MFVec2f, MFVec3f, MFVec4f, MFRotation, MFColor, MFColorRGBA,
        MFImage, MFNode,
    )
}


# =============================================================================
# Visitor
# =============================================================================

class FieldVisitor:
    """Per-variant behaviour for fields.

    Subclasses override the visit_* methods they care about; anything left
    alone goes to generic_visit, which refuses by default.
    """

    def generic_visit(self, field: Field):
        raise NotImplementedError(f"{type(self).__name__} does not handle {field.type_name}")

    def visit_sf_bool(self, field: SFBool):
        return self.generic_visit(field)

    def visit_sf_int32(self, field: SFInt32):
        return self.generic_visit(field)

    def visit_sf_float(self, field: SFFloat):
        return self.generic_visit(field)

    def visit_sf_double(self, field: SFDouble):
        return self.generic_visit(field)

    def visit_sf_time(self, field: SFTime):
        return self.generic_visit(field)

    def visit_sf_string(self, field: SFString):
        return self.generic_visit(field)

    def visit_sf_vec2f(self, field: SFVec2f):
        return self.generic_visit(field)

    def visit_sf_vec3f(self, field: SFVec3f):
        return self.generic_visit(field)

    def visit_sf_vec4f(self, field: SFVec4f):
        return self.generic_visit(field)

    def visit_sf_rotation(self, field: SFRotation):
        return self.generic_visit(field)

    def visit_sf_color(self, field: SFColor):
        return self.generic_visit(field)

    def visit_sf_color_rgba(self, field: SFColorRGBA):
        return self.generic_visit(field)

    def visit_sf_image(self, field: SFImage):
        return self.generic_visit(field)

    def visit_sf_node(self, field: SFNode):
        return self.generic_visit(field)

    def visit_mf_bool(self, field: MFBool):
        return self.generic_visit(field)

    def visit_mf_int32(self, field: MFInt32):
        return self.generic_visit(field)

    def visit_mf_float(self, field: MFFloat):
        return self.generic_visit(field)

    def visit_mf_double(self, field: MFDouble):
        return self.generic_visit(field)

    def visit_mf_time(self, field: MFTime):
        return self.generic_visit(field)

    def visit_mf_string(self, field: MFString):
        return self.generic_visit(field)

    def visit_mf_vec2f(self, field: MFVec2f):
        return self.generic_visit(field)

    def visit_mf_vec3f(self, field: MFVec3f):
        return self.generic_visit(field)

    def visit_mf_vec4f(self, field: MFVec4f):
        return self.generic_visit(field)

    def visit_mf_rotation(self, field: MFRotation):
        return self.generic_visit(field)

    def visit_mf_color(self, field: MFColor):
        return self.generic_visit(field)

    def visit_mf_color_rgba(self, field: MFColorRGBA):
        return self.generic_visit(field)

    def visit_mf_image(self, field: MFImage):
        return self.generic_visit(field)

    def visit_mf_node(self, field: MFNode):
        return self.generic_visit(field)
