from typing import Optional

from method_insight.src.method_insight.analysis.numbering import next_number
from method_insight.src.method_insight.config import ReportConfig
from method_insight.src.method_insight.models.call_graph import MethodIdentity
from method_insight.src.method_insight.models.test_models import MatchRecord, MatchReport

NO_TESTS_MESSAGE = "No matching tests were found."
UNRESOLVED_HEADER = "## Call (unresolved method)"


# --- Markdown sequence report -------------------------------------------------

class MarkdownReportRenderer:
    """
    Assembles the final report: title, overview, Mermaid diagram and the
    tests grouped under the numbered call they exercise.

    `render` may add fallback numbers to `numbering` for matched methods the
    call graph never numbered (the entry method, typically).
    """

    def __init__(self, config: Optional[ReportConfig] = None):
        self.config = config or ReportConfig()

    def render(self, entry: MethodIdentity, mermaid: str, report: MatchReport,
               numbering: dict[MethodIdentity, int]) -> str:
        lines = [f"# Sequence Report: {entry.display_label}", ""]
        lines += self._overview(entry, report)
        lines += [
            "## Sequence Diagram",
            "---",
            "```mermaid",
            mermaid.strip(),
            "```",
            "",
            "## Tests",
            "---",
        ]
        sections = self._sections(report.findings, numbering)
        lines += sections if sections else [NO_TESTS_MESSAGE]
        return "\n".join(lines) + "\n"

    def _overview(self, entry: MethodIdentity, report: MatchReport) -> list[str]:
        frameworks = report.frameworks
        return [
            "## Overview",
            f"- Package: {entry.package_name}",
            f"- Entry method: {entry.display_label}",
            f"- Frameworks: {', '.join(frameworks) if frameworks else '-'}",
            f"- Tests: total {len(report.findings)}",
            "",
        ]

    def _sections(self, findings: list[MatchRecord],
                  numbering: dict[MethodIdentity, int]) -> list[str]:
        grouped: dict[MethodIdentity, list[MatchRecord]] = {
            method: [] for method, _ in sorted(numbering.items(), key=lambda kv: kv[1])
        }
        for ref in findings:
            method = ref.matched_method
            if method is not None and method not in grouped:
                grouped[method] = []
                numbering[method] = next_number(numbering)

        unassigned: list[MatchRecord] = []
        for ref in findings:
            if ref.matched_method is not None and ref.matched_method in grouped:
                grouped[ref.matched_method].append(ref)
            else:
                unassigned.append(ref)

        lines: list[str] = []
        ordered = sorted(grouped.items(), key=lambda kv: numbering.get(kv[0], float("inf")))
        for method, tests in ordered:
            with_source = [t for t in tests if t.source_code]
            if with_source:
                lines += self._section(method, numbering.get(method), with_source)

        leftover = [t for t in unassigned if t.source_code]
        if leftover:
            lines += self._section(None, None, leftover)
        return lines

    def _section(self, method: Optional[MethodIdentity], number: Optional[int],
                 tests: list[MatchRecord]) -> list[str]:
        lines = [section_header(method, number)]
        if method is not None:
            lines.append(f"- Declared in: {method.class_name}")
        lines.append("")

        for index, ref in enumerate(tests, start=1):
            lines += [
                f"#### {index}. {ref.simple_class_name}.{ref.method_name}",
                "",
                f"- Display name: {ref.display_name if ref.display_name is not None else '-'}",
                "",
            ]
            if not ref.source_code:
                continue
            language = ref.language_id if ref.language_id and ref.language_id.strip() \
                else self.config.default_language_tag
            lines += [
                "<details>",
                "<summary>Show source</summary>",
                "",
                f"```{language}",
                ref.source_code.strip(),
                "```",
                "",
                "</details>",
                "",
            ]
        return lines


def section_header(method: Optional[MethodIdentity], number: Optional[int]) -> str:
    if method is None:
        return UNRESOLVED_HEADER
    if number is None:
        return f"## Call {method.simple_display}"
    return f"## #{number} {method.simple_display}"
