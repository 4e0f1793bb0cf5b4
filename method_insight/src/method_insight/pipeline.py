import logging
from dataclasses import dataclass
from typing import Optional

from method_insight.src.method_insight.analysis.call_graph_builder import CallGraphBuilder
from method_insight.src.method_insight.analysis.numbering import assign_numbers
from method_insight.src.method_insight.analysis.test_matcher import TestMatcher
from method_insight.src.method_insight.collaborators import MethodRef, ReferenceIndex, SourceModel
from method_insight.src.method_insight.config import ReportConfig
from method_insight.src.method_insight.models.call_graph import CallGraphResult, MethodIdentity
from method_insight.src.method_insight.models.test_models import MatchReport
from method_insight.src.method_insight.outputs.markdown import MarkdownReportRenderer
from method_insight.src.method_insight.outputs.mermaid import MermaidRenderer
from method_insight.src.method_insight.outputs.output import to_json

logger = logging.getLogger(__name__)


@dataclass
class SequenceReport:
    """Everything produced for one entry method."""
    entry: MethodIdentity
    graph_result: CallGraphResult
    numbering: dict[MethodIdentity, int]
    mermaid: str
    tests: MatchReport
    markdown: str
    export: str


@dataclass(frozen=True)
class ReportFileNames:
    markdown: str
    mermaid: str
    export: str


def generate_report(entry_ref: MethodRef, source_model: SourceModel,
                    reference_index: ReferenceIndex,
                    config: Optional[ReportConfig] = None) -> Optional[SequenceReport]:
    """
    Builds the call graph, finds the tests and renders every artifact.
    Returns None when the entry method cannot be resolved.
    """
    config = config or ReportConfig()
    graph_result = CallGraphBuilder(source_model, config).build(entry_ref)
    entry = graph_result.entry
    if entry is None:
        logger.error("Could not resolve entry method %s", entry_ref)
        return None

    numbering = assign_numbers(graph_result.graph, entry)
    mermaid = MermaidRenderer().render(graph_result.graph, entry, numbering)
    tests = TestMatcher(reference_index, config).find_tests(entry, graph_result)
    # may extend numbering with fallback numbers for matched methods
    markdown = MarkdownReportRenderer(config).render(entry, mermaid, tests, numbering)
    logger.info(
        "Report for %s: %d calls, %d tests",
        entry.display_label, len(graph_result.graph.edges), len(tests.findings),
    )
    return SequenceReport(
        entry=entry,
        graph_result=graph_result,
        numbering=numbering,
        mermaid=mermaid,
        tests=tests,
        markdown=markdown,
        export=to_json(tests),
    )


def report_file_names(entry: MethodIdentity, config: Optional[ReportConfig] = None) -> ReportFileNames:
    config = config or ReportConfig()
    base = entry.method_name
    return ReportFileNames(
        markdown=f"{base}.{config.markdown_suffix}.{config.markdown_extension}",
        mermaid=f"{base}.{config.mermaid_suffix}.{config.mermaid_extension}",
        export=f"{base}.{config.export_extension}",
    )
