"""
Scene to plain data (dicts, lists, numbers) for YAML/JSON output.
"""

from typing import Any, Dict, List

from .fields import FieldVisitor
from .node_types import NodeInterface, ProtoDeclaration
from .nodes import Node, Route, Scene


class FieldToData(FieldVisitor):
    """Converts field values to plain data; repeated DEF'd nodes become {'use': name}."""

    def __init__(self):
        self._seen = set()

    def node_to_dict(self, node: Node) -> Dict[str, Any]:
        if node.def_name and id(node) in self._seen:
            return {'use': node.def_name}
        if node.def_name:
            self._seen.add(id(node))

        result = {'type': node.type_name}
        if node.def_name:
            result['def'] = node.def_name
        if node.interface is not None:
            result['interface'] = interface_to_dict(node.interface, self)
        result['fields'] = {name: value.accept_visitor(self) for name, value in node.fields.items()}
        if node.is_mappings:
            result['is'] = dict(node.is_mappings)
        return result

    def _value(self, field):
        return field.value

    visit_sf_bool = visit_sf_int32 = visit_sf_float = _value
    visit_sf_double = visit_sf_time = visit_sf_string = _value

    def _components(self, field):
        return list(field.components())

    visit_sf_vec2f = visit_sf_vec3f = visit_sf_vec4f = _components
    visit_sf_rotation = visit_sf_color = visit_sf_color_rgba = _components

    def visit_sf_image(self, field):
        return {
            'width': field.width,
            'height': field.height,
            'components': field.components,
            'pixels': list(field.pixels),
        }

    def visit_sf_node(self, field):
        return None if field.node is None else self.node_to_dict(field.node)

    def _elements(self, field):
        return [element.accept_visitor(self) for element in field]

    visit_mf_bool = visit_mf_int32 = visit_mf_float = visit_mf_double = _elements
    visit_mf_time = visit_mf_string = visit_mf_vec2f = visit_mf_vec3f = _elements
    visit_mf_vec4f = visit_mf_rotation = visit_mf_color = visit_mf_color_rgba = _elements
    visit_mf_image = visit_mf_node = _elements


def interface_to_dict(interface: NodeInterface, converter: FieldToData = None) -> Dict[str, Any]:
    converter = converter or FieldToData()
    fields = []
    for decl in interface.fields.values():
        entry = {'name': decl.name, 'kind': decl.kind, 'type': decl.type_name}
        if decl.default is not None:
            entry['default'] = decl.default.accept_visitor(converter)
        fields.append(entry)
    return {
        'fields': fields,
        'eventIns': [{'name': d.name, 'type': d.type_name} for d in interface.event_ins.values()],
        'eventOuts': [{'name': d.name, 'type': d.type_name} for d in interface.event_outs.values()],
    }


def route_to_dict(route: Route) -> Dict[str, Any]:
    return {
        'from': f"{route.from_node}.{route.from_event}",
        'to': f"{route.to_node}.{route.to_event}",
    }


def proto_to_dict(proto: ProtoDeclaration, converter: FieldToData) -> Dict[str, Any]:
    result = {
        'name': proto.name,
        'extern': proto.is_extern,
        'interface': interface_to_dict(proto.interface, converter),
    }
    if proto.is_extern:
        result['urls'] = list(proto.urls)
    else:
        result['body'] = [converter.node_to_dict(node) for node in proto.body]
        if proto.routes:
            result['routes'] = [route_to_dict(route) for route in proto.routes]
    return result


def scene_to_dict(scene: Scene) -> Dict[str, Any]:
    """Convert a Scene to nested dicts and lists."""
    converter = FieldToData()
    result: Dict[str, Any] = {'header': scene.header}
    if scene.protos:
        result['protos'] = [proto_to_dict(p, converter) for p in scene.protos.values()]
    result['nodes'] = [converter.node_to_dict(node) for node in scene.nodes]
    if scene.routes:
        result['routes'] = [route_to_dict(route) for route in scene.routes]
    result['defs'] = sorted(scene.symbols)
    return result


def node_summary(nodes: List[Node]) -> Dict[str, int]:
    """Count node instances by type, each shared instance once."""
    counts: Dict[str, int] = {}
    seen = set()
    collector = _NodeCollector(seen, counts)
    for node in nodes:
        collector.collect(node)
    return dict(sorted(counts.items()))


class _NodeCollector(FieldVisitor):
    def __init__(self, seen, counts):
        self.seen = seen
        self.counts = counts

    def collect(self, node: Node):
        if node is None or id(node) in self.seen:
            return
        self.seen.add(id(node))
        self.counts[node.type_name] = self.counts.get(node.type_name, 0) + 1
        for value in node.fields.values():
            value.accept_visitor(self)

    def generic_visit(self, field):
        return None

    def visit_sf_node(self, field):
        self.collect(field.node)

    def visit_mf_node(self, field):
        for element in field:
            self.collect(element.node)
