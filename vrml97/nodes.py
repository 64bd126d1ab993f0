"""
Scene model: nodes, routes and the parsed document.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from .fields import Field
from .node_types import NodeInterface, ProtoDeclaration


@dataclass
class Node:
    """One node instance.

    fields keeps the field statements in the order they were written.
    A node named with DEF is shared by reference wherever it is USEd.
    """
    type_name: str
    fields: Dict[str, Field] = field(default_factory=dict)
    def_name: Optional[str] = None
    # field or event name -> PROTO interface name (inside PROTO bodies only)
    is_mappings: Dict[str, str] = field(default_factory=dict)
    # Script nodes only: built-in Script fields plus inline declarations
    interface: Optional[NodeInterface] = None
    line: int = field(default=0, compare=False)
    column: int = field(default=0, compare=False)

    def __getitem__(self, name: str) -> Field:
        return self.fields[name]

    def __contains__(self, name: str) -> bool:
        return name in self.fields

    def get(self, name: str, default: Optional[Field] = None) -> Optional[Field]:
        return self.fields.get(name, default)

    def clone(self, memo: Optional[dict] = None) -> 'Node':
        """Copy this node and everything below it.

        memo maps id(node) to its copy; a node reached twice (USE) is copied
        once, so sharing inside the subtree is kept in the copy.
        """
        if memo is None:
            memo = {}
        if id(self) in memo:
            return memo[id(self)]

        result = Node(self.type_name, def_name=self.def_name,
                      is_mappings=dict(self.is_mappings),
                      line=self.line, column=self.column)
        memo[id(self)] = result
        if self.interface is not None:
            result.interface = _clone_interface(self.interface, memo)
        for name, value in self.fields.items():
            result.fields[name] = value.clone(memo)
        return result


def _clone_interface(interface: NodeInterface, memo: dict) -> NodeInterface:
    fields = {}
    for name, decl in interface.fields.items():
        default = decl.default.clone(memo) if decl.default is not None else None
        fields[name] = replace(decl, default=default)
    return NodeInterface(fields=fields, event_ins=dict(interface.event_ins),
                         event_outs=dict(interface.event_outs))


@dataclass
class Route:
    """ROUTE from_node.from_event TO to_node.to_event (recorded, never executed)."""
    from_node: str
    from_event: str
    to_node: str
    to_event: str
    line: int = field(default=0, compare=False)
    column: int = field(default=0, compare=False)


@dataclass
class Scene:
    """Result of parsing one document."""
    nodes: List[Node] = field(default_factory=list)
    symbols: Dict[str, Node] = field(default_factory=dict)
    protos: Dict[str, ProtoDeclaration] = field(default_factory=dict)
    routes: List[Route] = field(default_factory=list)
    header: Optional[str] = None

    def find(self, def_name: str) -> Optional[Node]:
        return self.symbols.get(def_name)
