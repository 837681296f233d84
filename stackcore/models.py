"""
Core Domain Models Module

Responsibility:
- Ref: a reference from one node's input to another node's output attribute
- ResourceNode: one conditionally present provisioning unit
- Edge: a resolved dependency derived from a Ref
- OutputBinding: a named external output sourced from node attributes
- ResourceGraph: the ordered set of present nodes with their edges
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from stackcore.utils.graph_utils import sort_graphdict


@dataclass(frozen=True)
class Ref:
    """Reference to ``attribute`` (optionally element ``index``) of node ``node``."""

    node: str
    attribute: str
    index: Optional[int] = None

    def expression(self) -> str:
        """Terraform expression for this reference."""
        expr = f"module.{self.node}.{self.attribute}"
        if self.index is not None:
            expr += f"[{self.index}]"
        return expr

    def describe(self) -> str:
        text = f"{self.node}.{self.attribute}"
        if self.index is not None:
            text += f"[{self.index}]"
        return text


def find_refs(value: Any) -> Iterator[Ref]:
    """Yield every Ref nested anywhere inside ``value`` in a stable order."""
    if isinstance(value, Ref):
        yield value
    elif isinstance(value, dict):
        for key in value:
            yield from find_refs(value[key])
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from find_refs(item)


@dataclass(frozen=True)
class ResourceNode:
    """
    A unit of conditional provisioning.

    Only nodes whose enablement predicate held are ever instantiated, so a
    ResourceNode existing in a graph means it is enabled.
    """

    id: str
    kind: str
    name: str
    inputs: Dict[str, Any] = field(default_factory=dict)
    outputs: Tuple[str, ...] = ()

    def refs(self) -> List[Ref]:
        return list(find_refs(self.inputs))

    def dependencies(self) -> List[str]:
        """IDs of nodes this node consumes, in first-reference order."""
        deps: List[str] = []
        for ref in self.refs():
            if ref.node not in deps:
                deps.append(ref.node)
        return deps


@dataclass(frozen=True)
class Edge:
    """``source`` consumes ``target.attribute``; ``target`` is materialized first."""

    source: str
    target: str
    attribute: str


@dataclass(frozen=True)
class OutputBinding:
    """
    Named external output.

    policy:
        single       - value of one attribute, None if the node is absent
        compact_list - list of several attributes with absent slots removed,
                       None if the node is absent
        derived      - computed from the graph itself, always present
    """

    name: str
    node: Optional[str]
    attributes: Tuple[str, ...] = ()
    policy: str = "single"
    description: str = ""


@dataclass
class ResourceGraph:
    """Present nodes in provisioning order plus the edges between them."""

    nodes: Dict[str, ResourceNode]
    edges: List[Edge]
    order: List[str]
    summary: Dict[str, Any] = field(default_factory=dict)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self.nodes

    def __iter__(self) -> Iterator[ResourceNode]:
        for node_id in self.order:
            yield self.nodes[node_id]

    def get(self, node_id: str) -> Optional[ResourceNode]:
        return self.nodes.get(node_id)

    def dependencies(self, node_id: str) -> List[str]:
        return sorted({edge.target for edge in self.edges if edge.source == node_id})

    @property
    def graphdict(self) -> Dict[str, List[str]]:
        """Mapping of node ID to the node IDs it depends on, sorted."""
        return sort_graphdict(
            {node_id: self.dependencies(node_id) for node_id in self.nodes}
        )
