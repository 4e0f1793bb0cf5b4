from typing import Optional

from method_insight.src.method_insight.models.call_graph import CallGraphResult
from method_insight.src.method_insight.models.test_models import MatchRecord, MatchReport

# Only these five characters are escaped. Everything else, including other
# control characters, is written through unchanged.
_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


# --- JSON export & pretty printing -------------------------------------------

def to_json(report: MatchReport) -> str:
    """
    Serializes a match report to compact JSON with a fixed field order.
    This is what gets written next to the Markdown report.
    """
    findings = ",".join(_finding(ref) for ref in report.findings)
    return f'{{"entryPoint":{_string(report.entry.display_label)},"findings":[{findings}]}}'


def _finding(ref: MatchRecord) -> str:
    matched = ref.matched_method.display_label if ref.matched_method is not None else None
    fields = [
        ("className", _string(ref.class_name)),
        ("methodName", _string(ref.method_name)),
        ("framework", _string(ref.framework)),
        ("displayName", _string(ref.display_name)),
        ("matchType", _string(ref.match_kind.name)),
        ("sourceCode", _string(ref.source_code)),
        ("languageId", _string(ref.language_id)),
        ("matchedMethod", _string(matched)),
    ]
    return "{" + ",".join(f'"{name}":{value}' for name, value in fields) + "}"


def _string(value: Optional[str]) -> str:
    if value is None:
        return "null"
    return '"' + escape(value) + '"'


def escape(value: str) -> str:
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def print_summary(graph_result: CallGraphResult, report: MatchReport):
    """
    Human-friendly printout of the call graph and the tests found for it.
    """
    print(f"\n=== CALLS FROM {report.entry.display_label} ===")
    edges = graph_result.graph.edges
    if not edges:
        print(" (no calls into project code)")
    for edge in edges:
        print(f" - {edge.source.simple_display} -> {edge.target.simple_display}: {edge.call_text}")

    print("\n=== TESTS ===")
    if not report.findings:
        print(" (none)")
    for ref in report.findings:
        via = f" via {ref.matched_method.simple_display}" if ref.matched_method else ""
        print(f" - [{ref.match_kind.name}] {ref.class_name}.{ref.method_name} ({ref.framework}){via}")
