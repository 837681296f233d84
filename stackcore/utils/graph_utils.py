"""Graph manipulation utilities for ZoneStack.

This module works on ``graphdict`` structures: dictionaries mapping a node
ID to the list of node IDs it depends on.
"""

from typing import Dict, List, Optional


def sort_graphdict(graphdict: Dict[str, List[str]]) -> Dict[str, List[str]]:
    """Sort graph dictionary keys and connection lists.

    Args:
        graphdict: Graph dictionary to sort

    Returns:
        New sorted graph dictionary (the input is not modified)
    """
    return {key: sorted(graphdict[key]) for key in sorted(graphdict)}


def find_circular_refs(graphdict: Dict[str, List[str]]) -> List[List[str]]:
    """Find dependency cycles of any length.

    Uses a depth-first search with an explicit recursion stack. Each cycle
    is reported once, as the path that closes it, e.g. ``[a, b, c, a]``.

    Args:
        graphdict: Dictionary where keys are nodes and values are dependencies

    Returns:
        list: List of cycles (empty when the graph is acyclic)
    """
    cycles: List[List[str]] = []
    seen = set()
    visited = set()

    def visit(node: str, stack: List[str]) -> None:
        if node in stack:
            cycle = stack[stack.index(node) :] + [node]
            cycle_key = frozenset(cycle)
            if cycle_key not in seen:
                seen.add(cycle_key)
                cycles.append(cycle)
            return
        if node in visited:
            return
        visited.add(node)
        stack.append(node)
        for dep in graphdict.get(node, []):
            visit(dep, stack)
        stack.pop()

    for node in graphdict:
        visit(node, [])
    return cycles


def topological_order(
    graphdict: Dict[str, List[str]], declaration_order: Optional[List[str]] = None
) -> List[str]:
    """Order nodes so that every dependency comes before its dependants.

    Kahn's algorithm; whenever several nodes are ready, the one declared
    first wins, so the result is deterministic.

    Args:
        graphdict: Mapping of node to the nodes it depends on
        declaration_order: Tie-break order (defaults to graphdict key order)

    Returns:
        list: Node IDs in provisioning order

    Raises:
        ValueError: If the graph contains a cycle or references unknown nodes
    """
    order = [n for n in (declaration_order or []) if n in graphdict]
    order += [n for n in graphdict if n not in order]
    rank = {node: i for i, node in enumerate(order)}
    for node, deps in graphdict.items():
        for dep in deps:
            if dep not in graphdict:
                raise ValueError(f"Node '{node}' depends on unknown node '{dep}'")

    remaining = {node: set(graphdict[node]) for node in order}
    result: List[str] = []
    while remaining:
        ready = [node for node, deps in remaining.items() if not deps]
        if not ready:
            cycles = find_circular_refs({n: list(d) for n, d in remaining.items()})
            raise ValueError(f"Dependency cycle detected: {cycles}")
        node = min(ready, key=lambda n: rank[n])
        result.append(node)
        del remaining[node]
        for deps in remaining.values():
            deps.discard(node)
    return result


def dependants_of(graphdict: Dict[str, List[str]], target: str) -> List[str]:
    """Return every node that depends on ``target``, directly or transitively.

    Args:
        graphdict: Mapping of node to the nodes it depends on
        target: Node whose dependants are wanted

    Returns:
        list: Dependant node IDs in graphdict key order
    """
    found = set()
    frontier = [target]
    while frontier:
        current = frontier.pop()
        for node, deps in graphdict.items():
            if current in deps and node not in found:
                found.add(node)
                frontier.append(node)
    return [node for node in graphdict if node in found]
