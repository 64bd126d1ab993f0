"""
Statement grammar for the VRML97 format.

Recursive descent over a ParserContext. Node, USE, PROTO, EXTERNPROTO and
ROUTE statements are mutually recursive with the field parsers in
fields.py: an SFNode or MFNode value is itself parsed as node statements.
"""

from typing import List, Optional

from .context import ParserContext, describe
from .errors import (
    InvalidEventInException, InvalidEventOutException, InvalidFieldException,
    InvalidVrmlSyntaxException,
)
from .fields import FIELD_TYPES, MFString
from .lexer import TokenType
from .node_types import (
    BUILTIN_NODE_TYPES, EVENT_IN, EVENT_OUT, EXPOSED_FIELD, FIELD,
    EventDecl, InterfaceField, NodeInterface, ProtoDeclaration,
)
from .nodes import Node, Route


PROTO_INTERFACE_KINDS = (EVENT_IN, EVENT_OUT, FIELD, EXPOSED_FIELD)
SCRIPT_INTERFACE_KINDS = (EVENT_IN, EVENT_OUT, FIELD)

DECLARATION_ERRORS = {
    EVENT_IN: InvalidEventInException,
    EVENT_OUT: InvalidEventOutException,
    FIELD: InvalidFieldException,
    EXPOSED_FIELD: InvalidFieldException,
}


# =============================================================================
# Statement lists
# =============================================================================

def parse_statements(context: ParserContext,
                     closing: Optional[TokenType] = None) -> List[Node]:
    """Parse statements up to closing (not consumed), or to end of input if None.

    PROTO, EXTERNPROTO and ROUTE statements are recorded in the context;
    the nodes are returned in document order.
    """
    nodes = []

    while True:
        if closing is None:
            if context.at_end():
                break
        elif context.check(closing):
            break
        elif context.at_end():
            context.advance()

        if context.check_keyword('PROTO'):
            parse_proto_statement(context)
        elif context.check_keyword('EXTERNPROTO'):
            parse_externproto_statement(context)
        elif context.check_keyword('ROUTE'):
            context.add_route(parse_route_statement(context))
        else:
            nodes.append(parse_node_statement(context))

    return nodes


# =============================================================================
# Node statements
# =============================================================================

def parse_node_value(context: ParserContext, allow_null: bool = True) -> Optional[Node]:
    """Parse an SFNode/MFNode element: NULL, USE name, or a node statement."""
    if context.check_keyword('NULL'):
        token = context.advance()
        if not allow_null:
            raise InvalidFieldException("NULL is not allowed in MFNode", token)
        return None
    return parse_node_statement(context)


def parse_node_statement(context: ParserContext) -> Node:
    """Parse: USE name | [DEF name] TypeId { body }"""
    if context.check_keyword('USE'):
        return parse_use_statement(context)

    def_token = None
    if context.check_keyword('DEF'):
        context.advance()
        def_token = context.parse_node_name_id()

    node = parse_node(context)

    # Registered after the body, so a node cannot USE itself
    if def_token is not None:
        node.def_name = def_token.value
        context.define_node(def_token, node)
    return node


def parse_use_statement(context: ParserContext) -> Node:
    """Parse: USE name. Returns the DEF'd node itself, not a copy."""
    context.read_keyword('USE')
    name_token = context.parse_node_name_id()
    return context.resolve_use(name_token)


def parse_node(context: ParserContext) -> Node:
    """Parse: TypeId { field statements }"""
    type_token = context.parse_node_type_id()
    interface = context.find_node_type(type_token.value)
    if interface is None:
        raise InvalidVrmlSyntaxException(f"Unknown node type {type_token.value!r}", type_token)

    node = Node(type_token.value, line=type_token.line, column=type_token.column)
    if type_token.value == 'Script' and interface is BUILTIN_NODE_TYPES['Script']:
        node.interface = NodeInterface(fields=dict(interface.fields),
                                       event_ins=dict(interface.event_ins),
                                       event_outs=dict(interface.event_outs))
        interface = node.interface

    with context.nested(type_token):
        context.read_symbol(TokenType.LBRACE)
        while not context.check(TokenType.RBRACE):
            _parse_node_body_element(context, node, interface)
        context.advance()

    return node


def _parse_node_body_element(context: ParserContext, node: Node, interface: NodeInterface):
    if context.check_keyword('PROTO'):
        parse_proto_statement(context)
    elif context.check_keyword('EXTERNPROTO'):
        parse_externproto_statement(context)
    elif context.check_keyword('ROUTE'):
        context.add_route(parse_route_statement(context))
    elif node.interface is not None and _check_any_keyword(context, SCRIPT_INTERFACE_KINDS):
        _parse_script_declaration(context, node)
    else:
        _parse_field_statement(context, node, interface)


def _check_any_keyword(context: ParserContext, keywords) -> bool:
    return any(context.check_keyword(keyword) for keyword in keywords)


# =============================================================================
# Field statements
# =============================================================================

def _parse_field_statement(context: ParserContext, node: Node, interface: NodeInterface):
    """Parse: fieldId value | fieldId IS interfaceId"""
    field_token = context.parse_field_id()
    name = field_token.value
    if name in node.fields or name in node.is_mappings:
        raise InvalidFieldException(
            f"Duplicate field {name!r} in {node.type_name}", field_token)

    if context.current_proto is not None and context.check_keyword('IS'):
        own_type = (interface.field_type(name)
                    or interface.event_in_type(name)
                    or interface.event_out_type(name))
        if own_type is None:
            raise InvalidFieldException(
                f"Unknown field {name!r} for node type {node.type_name}", field_token)
        _parse_is_mapping(context, node, name, own_type)
        return

    type_name = interface.field_type(name)
    if type_name is None:
        raise InvalidFieldException(
            f"Unknown field {name!r} for node type {node.type_name}", field_token)
    node.fields[name] = FIELD_TYPES[type_name].parse(context)


def _parse_is_mapping(context: ParserContext, node: Node, name: str, own_type: str):
    """Parse: IS interfaceId, checking it against the enclosing PROTO interface."""
    context.read_keyword('IS')
    target_token = context.parse_field_id()
    proto = context.current_proto
    target = target_token.value
    proto_type = (proto.field_type(target)
                  or proto.event_in_type(target)
                  or proto.event_out_type(target))
    if proto_type is None:
        raise InvalidFieldException(
            f"{target!r} is not declared in the PROTO interface", target_token)
    if proto_type != own_type:
        raise InvalidFieldException(
            f"IS {target!r} maps {proto_type} onto {own_type} field {name!r}", target_token)
    node.is_mappings[name] = target


# =============================================================================
# Interface declarations
# =============================================================================

def parse_interface_declaration(context: ParserContext, interface: NodeInterface,
                                kinds, with_defaults: bool, allow_is: bool = False):
    """Parse one of: eventIn T id | eventOut T id | field T id [value] | exposedField T id [value]

    The declaration is added to interface and returned. With allow_is, a
    following IS is left for the caller instead of reading a value.
    """
    keyword = context.peek()
    if keyword is None:
        context.advance()
    if keyword.type != TokenType.IDENTIFIER or keyword.value not in kinds:
        expected = ', '.join(kinds)
        raise InvalidVrmlSyntaxException(
            f"Expected one of {expected}, found {describe(keyword)}", keyword)
    kind = context.advance().value

    type_name = context.parse_field_type()
    if kind == EVENT_IN:
        id_token = context.parse_event_in_id()
    elif kind == EVENT_OUT:
        id_token = context.parse_event_out_id()
    else:
        id_token = context.parse_field_id()

    name = id_token.value
    if interface.declares(name):
        raise DECLARATION_ERRORS[kind](f"Duplicate declaration of {name!r}", id_token)

    if kind == EVENT_IN:
        decl = EventDecl(name, type_name, id_token.line, id_token.column)
        interface.event_ins[name] = decl
    elif kind == EVENT_OUT:
        decl = EventDecl(name, type_name, id_token.line, id_token.column)
        interface.event_outs[name] = decl
    else:
        decl = InterfaceField(name, type_name, kind, line=id_token.line, column=id_token.column)
        interface.fields[name] = decl
        if with_defaults and not (allow_is and context.current_proto is not None
                                  and context.check_keyword('IS')):
            decl.default = FIELD_TYPES[type_name].parse(context)
    return decl


def _parse_script_declaration(context: ParserContext, node: Node):
    """Inline Script interface: eventIn T id | eventOut T id | field T id value, each optionally IS."""
    decl = parse_interface_declaration(context, node.interface, SCRIPT_INTERFACE_KINDS,
                                       with_defaults=True, allow_is=True)
    if context.current_proto is not None and context.check_keyword('IS'):
        _parse_is_mapping(context, node, decl.name, decl.type_name)
    elif isinstance(decl, InterfaceField):
        node.fields[decl.name] = decl.default.clone()


# =============================================================================
# PROTO / EXTERNPROTO
# =============================================================================

def _parse_interface_block(context: ParserContext, kinds, with_defaults: bool) -> NodeInterface:
    interface = NodeInterface()
    context.read_symbol(TokenType.LBRACKET)
    while not context.check(TokenType.RBRACKET):
        parse_interface_declaration(context, interface, kinds, with_defaults)
    context.advance()
    return interface


def parse_proto_statement(context: ParserContext) -> ProtoDeclaration:
    """Parse: PROTO Name [ interface ] { body }"""
    keyword = context.read_keyword('PROTO')
    name_token = context.parse_node_type_id()

    interface = _parse_interface_block(context, PROTO_INTERFACE_KINDS, with_defaults=True)

    decl = ProtoDeclaration(name_token.value, interface,
                            line=keyword.line, column=keyword.column)

    open_brace = context.read_symbol(TokenType.LBRACE)
    with context.proto_body(interface) as routes, context.nested(name_token):
        decl.body = parse_statements(context, closing=TokenType.RBRACE)
    decl.routes = routes
    if not decl.body:
        raise InvalidVrmlSyntaxException(
            f"PROTO {decl.name} body must contain at least one node", open_brace)
    context.advance()

    context.define_proto(decl)
    return decl


def parse_externproto_statement(context: ParserContext) -> ProtoDeclaration:
    """Parse: EXTERNPROTO Name [ interface without values ] urls"""
    keyword = context.read_keyword('EXTERNPROTO')
    name_token = context.parse_node_type_id()
    interface = _parse_interface_block(context, PROTO_INTERFACE_KINDS, with_defaults=False)
    urls = MFString.parse(context)

    decl = ProtoDeclaration(name_token.value, interface,
                            urls=[url.value for url in urls], is_extern=True,
                            line=keyword.line, column=keyword.column)
    context.define_proto(decl)
    return decl


# =============================================================================
# ROUTE
# =============================================================================

def _node_interface(context: ParserContext, node: Node) -> Optional[NodeInterface]:
    if node.interface is not None:
        return node.interface
    return context.find_node_type(node.type_name)


def parse_route_statement(context: ParserContext) -> Route:
    """Parse: ROUTE A.eventOut TO B.eventIn"""
    keyword = context.read_keyword('ROUTE')
    from_token = context.parse_node_name_id()
    context.read_symbol(TokenType.PERIOD)
    out_token = context.parse_event_out_id()
    context.read_keyword('TO')
    to_token = context.parse_node_name_id()
    context.read_symbol(TokenType.PERIOD)
    in_token = context.parse_event_in_id()

    source = context.resolve_use(from_token)
    target = context.resolve_use(to_token)

    out_type = _node_interface(context, source).event_out_type(out_token.value)
    if out_type is None:
        raise InvalidEventOutException(
            f"{source.type_name} {from_token.value} has no eventOut {out_token.value!r}",
            out_token)
    in_type = _node_interface(context, target).event_in_type(in_token.value)
    if in_type is None:
        raise InvalidEventInException(
            f"{target.type_name} {to_token.value} has no eventIn {in_token.value!r}",
            in_token)
    if in_type != out_type:
        raise InvalidEventInException(
            f"Cannot route {out_type} {out_token.value!r} to {in_type} {in_token.value!r}",
            in_token)

    return Route(from_token.value, out_token.value, to_token.value, in_token.value,
                 line=keyword.line, column=keyword.column)
