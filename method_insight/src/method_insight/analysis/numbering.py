from typing import Optional

from method_insight.src.method_insight.models.call_graph import CallGraph, MethodIdentity


def assign_numbers(graph: CallGraph, entry: Optional[MethodIdentity] = None) -> dict[MethodIdentity, int]:
    """
    Numbers call targets 1, 2, 3... in the order edges were discovered.
    The entry method is never numbered here, even when it is called recursively.
    """
    numbering: dict[MethodIdentity, int] = {}
    for edge in graph.edges:
        if edge.target == entry or edge.target in numbering:
            continue
        numbering[edge.target] = len(numbering) + 1
    return numbering


def next_number(numbering: dict[MethodIdentity, int]) -> int:
    return max(numbering.values(), default=0) + 1
