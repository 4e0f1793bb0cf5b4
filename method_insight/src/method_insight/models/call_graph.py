# --- Call graph model ---------------------------------------------------------
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class MethodIdentity:
    """
    Identifies a method independently of how it is represented in source.
    Equality and hashing cover all three fields, so overloads never collide.
    """
    class_name: str  # declaring type, fully qualified where known
    method_name: str
    signature: str  # parameter types, e.g. "(String, int)"

    @property
    def display_label(self) -> str:
        return f"{self.class_name}.{self.method_name}{self.signature}"

    @property
    def simple_class_name(self) -> str:
        return self.class_name.rsplit(".", 1)[-1]

    @property
    def package_name(self) -> str:
        """Declaring type minus its last segment (the whole name when unqualified)."""
        if "." not in self.class_name:
            return self.class_name
        return self.class_name.rsplit(".", 1)[0]

    @property
    def simple_display(self) -> str:
        return f"{self.simple_class_name}.{self.method_name}{self.signature}"

    def __str__(self) -> str:
        return self.display_label


@dataclass(frozen=True)
class CallEdge:
    """One call site: caller -> callee. Repeated call sites give repeated edges."""
    source: MethodIdentity
    target: MethodIdentity
    call_text: str


class CallGraph:
    """
    Append-only container of edges. Methods are registered only through
    add_edge, in the order they are first seen.
    """

    def __init__(self):
        self._edges: list[CallEdge] = []
        self._methods: dict[MethodIdentity, None] = {}  # insertion-ordered set

    @property
    def edges(self) -> list[CallEdge]:
        return list(self._edges)

    @property
    def methods(self) -> list[MethodIdentity]:
        return list(self._methods)

    def add_edge(self, edge: CallEdge) -> None:
        self._edges.append(edge)
        self._methods.setdefault(edge.source, None)
        self._methods.setdefault(edge.target, None)

    def __contains__(self, method: MethodIdentity) -> bool:
        return method in self._methods

    def __len__(self) -> int:
        return len(self._methods)


@dataclass
class CallGraphResult:
    """
    A built graph plus the identity index: every method registered during the
    build (entry included) mapped to the depth it was first reached at.
    """
    graph: CallGraph
    identity_index: dict[MethodIdentity, int]
    entry: Optional[MethodIdentity] = None
