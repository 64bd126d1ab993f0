"""
Writes fields, nodes and scenes back to VRML97 text.

A DEF'd node is written in full the first time it is reached and as
"USE name" afterwards, so shared instances stay shared when the output is
parsed again.
"""

from typing import List, Optional

from .fields import Field, FieldVisitor
from .node_types import BUILTIN_NODE_TYPES, EVENT_IN, EVENT_OUT, NodeInterface, ProtoDeclaration
from .nodes import Node, Route, Scene


HEADER = '#VRML V2.0 utf8'


def format_float(value: float) -> str:
    """Shortest text that reads back as the same float."""
    text = repr(float(value))
    if text.endswith('.0'):
        text = text[:-2]
    return text


def quote(text: str) -> str:
    return '"' + text.replace('\\', '\\\\').replace('"', '\\"') + '"'


class Writer(FieldVisitor):
    """Serializer; one instance per document so USE tracking stays consistent."""

    def __init__(self, indent: str = '  '):
        self.indent = indent
        self.level = 0
        self._written = set()

    # =========================================================================
    # Scene level
    # =========================================================================

    def write_scene(self, scene: Scene) -> str:
        parts = [scene.header or HEADER, '']
        for proto in scene.protos.values():
            parts.append(self.write_proto(proto))
        for node in scene.nodes:
            parts.append(self.write_node(node))
        for route in scene.routes:
            parts.append(self.write_route(route))
        return '\n'.join(parts) + '\n'

    def write_route(self, route: Route) -> str:
        return (f"{self._pad()}ROUTE {route.from_node}.{route.from_event} "
                f"TO {route.to_node}.{route.to_event}")

    def write_proto(self, proto: ProtoDeclaration) -> str:
        keyword = 'EXTERNPROTO' if proto.is_extern else 'PROTO'
        lines = [f"{self._pad()}{keyword} {proto.name} ["]
        self.level += 1
        lines.extend(self._interface_lines(proto.interface))
        self.level -= 1

        if proto.is_extern:
            urls = ', '.join(quote(url) for url in proto.urls)
            lines.append(f"{self._pad()}] [{urls}]")
            return '\n'.join(lines)

        lines.append(f"{self._pad()}] {{")
        self.level += 1
        for node in proto.body:
            lines.append(self.write_node(node))
        for route in proto.routes:
            lines.append(self.write_route(route))
        self.level -= 1
        lines.append(f"{self._pad()}}}")
        return '\n'.join(lines)

    def _interface_lines(self, interface: NodeInterface) -> List[str]:
        lines = []
        for name, decl in interface.event_ins.items():
            lines.append(f"{self._pad()}{EVENT_IN} {decl.type_name} {name}")
        for name, decl in interface.event_outs.items():
            lines.append(f"{self._pad()}{EVENT_OUT} {decl.type_name} {name}")
        for name, decl in interface.fields.items():
            line = f"{self._pad()}{decl.kind} {decl.type_name} {name}"
            if decl.default is not None:
                line += ' ' + decl.default.accept_visitor(self)
            lines.append(line)
        return lines

    # =========================================================================
    # Nodes
    # =========================================================================

    def write_node(self, node: Optional[Node]) -> str:
        """Node text starting at the current indent (no leading padding)."""
        return self._pad() + self._node_text(node)

    def _node_text(self, node: Optional[Node]) -> str:
        if node is None:
            return 'NULL'
        if node.def_name and id(node) in self._written:
            return f"USE {node.def_name}"

        header = f"DEF {node.def_name} {node.type_name}" if node.def_name else node.type_name
        lines = [header + ' {']
        self.level += 1

        inline = set()
        if node.interface is not None:
            builtin = BUILTIN_NODE_TYPES['Script']
            inline = {name for name in self._declared_names(node.interface)
                      if not builtin.declares(name)}
            lines.extend(self._script_lines(node, inline))

        for name, value in node.fields.items():
            if name not in inline:
                lines.append(f"{self._pad()}{name} {value.accept_visitor(self)}")
        for name, target in node.is_mappings.items():
            if name not in inline:
                lines.append(f"{self._pad()}{name} IS {target}")

        self.level -= 1
        lines.append(f"{self._pad()}}}")

        if node.def_name:
            self._written.add(id(node))
        return '\n'.join(lines)

    @staticmethod
    def _declared_names(interface: NodeInterface) -> List[str]:
        return list(interface.event_ins) + list(interface.event_outs) + list(interface.fields)

    def _script_lines(self, node: Node, inline) -> List[str]:
        interface = node.interface
        lines = []
        for name in self._declared_names(interface):
            if name not in inline:
                continue
            if name in interface.event_ins:
                text = f"{EVENT_IN} {interface.event_ins[name].type_name} {name}"
            elif name in interface.event_outs:
                text = f"{EVENT_OUT} {interface.event_outs[name].type_name} {name}"
            else:
                decl = interface.fields[name]
                text = f"{decl.kind} {decl.type_name} {name}"
                if name in node.fields:
                    text += ' ' + node.fields[name].accept_visitor(self)
            if name in node.is_mappings:
                text += f" IS {node.is_mappings[name]}"
            lines.append(self._pad() + text)
        return lines

    def _pad(self) -> str:
        return self.indent * self.level

    # =========================================================================
    # Field visitor
    # =========================================================================

    def visit_sf_bool(self, field):
        return 'TRUE' if field.value else 'FALSE'

    def visit_sf_int32(self, field):
        return str(field.value)

    def visit_sf_string(self, field):
        return quote(field.value)

    def _write_floats(self, field):
        return ' '.join(format_float(v) for v in field.components())

    visit_sf_float = visit_sf_double = visit_sf_time = _write_floats
    visit_sf_vec2f = visit_sf_vec3f = visit_sf_vec4f = _write_floats
    visit_sf_rotation = visit_sf_color = visit_sf_color_rgba = _write_floats

    def visit_sf_image(self, field):
        pixels = ' '.join(f"0x{p:X}" if p >= 0 else str(p) for p in field.pixels)
        text = f"{field.width} {field.height} {field.components}"
        return f"{text} {pixels}" if pixels else text

    def visit_sf_node(self, field):
        return self._node_text(field.node)

    def _write_multi(self, field):
        items = [element.accept_visitor(self) for element in field]
        return '[' + ', '.join(items) + ']'

    visit_mf_bool = visit_mf_int32 = visit_mf_float = visit_mf_double = _write_multi
    visit_mf_time = visit_mf_string = visit_mf_vec2f = visit_mf_vec3f = _write_multi
    visit_mf_vec4f = visit_mf_rotation = visit_mf_color = visit_mf_color_rgba = _write_multi
    visit_mf_image = _write_multi

    def visit_mf_node(self, field):
        if not len(field):
            return '[]'
        self.level += 1
        items = [self.write_node(element.node) for element in field]
        self.level -= 1
        return '[\n' + '\n'.join(items) + '\n' + self._pad() + ']'


def write_field(field: Field) -> str:
    return field.accept_visitor(Writer())


def write_scene(scene: Scene) -> str:
    return Writer().write_scene(scene)
