"""Field dependency graph: cycles, evaluation order and dangling references"""

from __future__ import annotations

from graphlib import CycleError, TopologicalSorter
from typing import Dict, Iterable, Iterator, List, Tuple

from .errors import ExpressionError
from .expressions import find_placeholders
from .models import FormField

DependencyGraph = Dict[str, List[str]]


def field_references(field: FormField) -> List[str]:
    """Field IDs referenced by enabled visibility conditions and calculations."""
    refs = field.references()
    calculated = field.calculated_config
    if calculated and calculated.enabled and calculated.formula:
        refs.extend(find_placeholders(calculated.formula))
    return list(dict.fromkeys(refs))


def build_dependency_graph(fields: Iterable[FormField]) -> DependencyGraph:
    """Map each field ID to the known field IDs it depends on.

    Node order follows form order; the first field wins on duplicate IDs.
    Fields without an ID are left out.
    """
    fields = [field for field in fields if field.id is not None]
    known = {field.id for field in fields}
    graph: DependencyGraph = {}
    for field in fields:
        if field.id in graph:
            continue
        graph[field.id] = [ref for ref in field_references(field) if ref in known]
    return graph


def find_cycle_groups(graph: DependencyGraph) -> List[List[str]]:
    """Return one group per set of fields that depend on each other.

    Depth-first traversal from every unvisited node in graph order; nodes
    that re-enter the current path are collected per strongly connected
    component, so an A -> B -> A loop yields a single group. A field that
    references itself is a group of one. The walk keeps its own stack, so
    long dependency chains do not hit the recursion limit.
    """
    index: Dict[str, int] = {}
    lowlink: Dict[str, int] = {}
    stack: List[str] = []
    on_path: set[str] = set()
    groups: List[List[str]] = []
    position = {node: i for i, node in enumerate(graph)}
    work: List[Tuple[str, Iterator[str]]] = []

    def enter(node: str) -> None:
        index[node] = lowlink[node] = len(index)
        stack.append(node)
        on_path.add(node)
        work.append((node, iter(graph.get(node, ()))))

    def close(node: str) -> None:
        component = []
        while True:
            member = stack.pop()
            on_path.discard(member)
            component.append(member)
            if member == node:
                break

        if len(component) > 1 or node in graph.get(node, ()):
            groups.append(sorted(component, key=position.__getitem__))

    for root in graph:
        if root in index:
            continue
        enter(root)
        while work:
            node, deps = work[-1]
            for dep in deps:
                if dep not in index:
                    enter(dep)
                    break
                if dep in on_path:
                    lowlink[node] = min(lowlink[node], index[dep])
            else:
                work.pop()
                if work:
                    parent = work[-1][0]
                    lowlink[parent] = min(lowlink[parent], lowlink[node])
                if lowlink[node] == index[node]:
                    close(node)

    groups.sort(key=lambda group: position[group[0]])
    return groups


def topological_order(graph: DependencyGraph) -> List[str]:
    """Order nodes so every node comes after the nodes it depends on.

    Raises:
        ExpressionError: the graph contains a cycle
    """
    try:
        return list(TopologicalSorter(graph).static_order())
    except CycleError as e:
        cycle = " -> ".join(e.args[1]) if len(e.args) > 1 else ""
        raise ExpressionError(f"Circular dependency between fields: {cycle}") from e


def find_unknown_references(fields: Iterable[FormField]) -> List[Tuple[FormField, str]]:
    """Return (field, missing_id) pairs for references to IDs not in the form."""
    fields = list(fields)
    known = {field.id for field in fields}
    return [(field, ref) for field in fields for ref in field_references(field) if ref not in known]
