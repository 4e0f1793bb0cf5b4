import re

from method_insight.src.method_insight.models.call_graph import CallEdge, CallGraph, MethodIdentity

HEADER = "sequenceDiagram"
INDENT = "    "
FALLBACK_ALIAS = "Participant"
# Mermaid reads a raw "#" as the start of an entity code, so emit the entity itself.
NUMBER_MARKER = "#35;"

_ALIAS_UNSAFE = re.compile(r"[^A-Za-z0-9_]")


# --- Mermaid sequence diagram ---------------------------------------------------

class MermaidRenderer:
    """Turns a call graph into Mermaid `sequenceDiagram` text."""

    def render(self, graph: CallGraph, entry: MethodIdentity,
               numbering: dict[MethodIdentity, int]) -> str:
        aliases = build_alias_map(graph, entry)
        lines = [HEADER]

        declared: set[str] = set()
        for alias in aliases.values():
            if alias not in declared:
                declared.add(alias)
                lines.append(f"{INDENT}participant {alias}")

        for edge in graph.edges:
            lines.append(self._message(edge, aliases, numbering))

        return "\n".join(lines) + "\n"

    def _message(self, edge: CallEdge, aliases: dict[MethodIdentity, str],
                 numbering: dict[MethodIdentity, int]) -> str:
        number = numbering.get(edge.target)
        marker = f"{NUMBER_MARKER}{number} " if number is not None else ""
        return f"{INDENT}{aliases[edge.source]}->>{aliases[edge.target]}: {marker}{edge.call_text}"


def build_alias_map(graph: CallGraph, entry: MethodIdentity) -> dict[MethodIdentity, str]:
    """
    Gives every method the alias of its declaring type. Types whose simple
    names collide get `_2`, `_3`... in the order they are registered: entry
    first, then the remaining methods sorted by (type, method).
    """
    mapping: dict[MethodIdentity, str] = {}
    alias_by_class: dict[str, str] = {}
    taken: set[str] = set()

    def alias_for(class_name: str) -> str:
        if class_name in alias_by_class:
            return alias_by_class[class_name]
        base = class_name.rsplit(".", 1)[-1] or class_name.replace(".", "_")
        base = sanitize_alias(base)
        alias, count = base, 1
        while alias in taken:
            count += 1
            alias = f"{base}_{count}"
        taken.add(alias)
        alias_by_class[class_name] = alias
        return alias

    mapping[entry] = alias_for(entry.class_name)
    others = sorted(
        (m for m in graph.methods if m != entry),
        key=lambda m: (m.class_name, m.method_name),
    )
    for method in others:
        mapping[method] = alias_for(method.class_name)
    return mapping


def sanitize_alias(raw: str) -> str:
    sanitized = _ALIAS_UNSAFE.sub("_", raw)
    return FALLBACK_ALIAS if not sanitized.strip() else sanitized
