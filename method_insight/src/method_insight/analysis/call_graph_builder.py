import logging
from typing import Optional

from method_insight.src.method_insight.collaborators import CallSite, MethodRef, SourceModel
from method_insight.src.method_insight.config import ReportConfig
from method_insight.src.method_insight.models.call_graph import (
    CallEdge,
    CallGraph,
    CallGraphResult,
    MethodIdentity,
)

logger = logging.getLogger(__name__)

UNKNOWN_ARGUMENT = "?"


class CallGraphBuilder:
    """
    Builds a bounded call graph from one entry method.

    Every method is expanded (its body scanned) at most once per build, so
    recursive and mutually recursive code terminates. Calls out of a method
    expanded at the depth bound are still recorded; their targets become
    leaves whose own calls are never scanned.
    """

    def __init__(self, source_model: SourceModel, config: Optional[ReportConfig] = None):
        self.source_model = source_model
        self.config = config or ReportConfig()

    @property
    def max_depth(self) -> int:
        return self.config.max_depth

    def build(self, entry_ref: MethodRef) -> CallGraphResult:
        graph = CallGraph()
        identity_index: dict[MethodIdentity, int] = {}

        entry = self.source_model.resolve(entry_ref)
        if entry is None:
            logger.info("Entry %s could not be resolved; returning an empty graph", entry_ref)
            return CallGraphResult(graph, identity_index)

        self._expand(entry, graph, identity_index)
        logger.debug(
            "Built call graph for %s: %d methods, %d edges",
            entry, len(graph), len(graph.edges),
        )
        return CallGraphResult(graph, identity_index, entry)

    def _expand(self, entry: MethodIdentity, graph: CallGraph,
                identity_index: dict[MethodIdentity, int]):
        """
        Depth-first walk with an explicit stack of (method, depth, pending
        call sites), so long call chains do not hit the recursion limit.
        """
        identity_index.setdefault(entry, 0)
        visited = {entry}
        stack = [(entry, 0, iter(self.source_model.call_sites(entry)))]

        while stack:
            method, depth, pending = stack[-1]
            call = next(pending, None)
            if call is None:
                stack.pop()
                continue

            target = self.source_model.resolve_call_target(call)
            if target is None:
                logger.debug("Skipping unresolved call %s in %s", call.name, method)
                continue
            if not self.source_model.is_analyzable_content(target):
                logger.debug("Skipping call to %s outside project content", target)
                continue

            identity_index.setdefault(target, depth + 1)
            graph.add_edge(CallEdge(method, target, describe_call(call, target)))

            if depth + 1 <= self.max_depth and target not in visited:
                visited.add(target)
                stack.append((target, depth + 1, iter(self.source_model.call_sites(target))))


def describe_call(call: CallSite, target: MethodIdentity) -> str:
    """Renders a call site as `name(arg, ...)` using the argument source text."""
    args = ", ".join(a if a is not None else UNKNOWN_ARGUMENT for a in call.arguments)
    return f"{target.method_name}({args})"
