# --- Query contracts the analysis depends on ----------------------------------
"""
The call graph builder and test matcher only talk to source code through the
two protocols below. Any backend that answers these queries (a tree-sitter
index, a language server, a batch indexer) can be plugged in.
"""
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, Union

from method_insight.src.method_insight.models.ast_models import AnnotationUsage
from method_insight.src.method_insight.models.call_graph import MethodIdentity


@dataclass(frozen=True)
class CallSite:
    """A call expression inside a method body."""
    caller: MethodIdentity
    name: str
    receiver: Optional[str]
    arguments: tuple[Optional[str], ...]  # None where the argument text is unavailable
    line: int
    col: int
    is_constructor: bool = False


@dataclass(frozen=True)
class Location:
    """Where a method is referenced."""
    file_path: Optional[str]
    line: int
    col: int
    enclosing: Optional[MethodIdentity]  # None for references outside any method


MethodRef = Union[MethodIdentity, str]


class SourceModel(Protocol):
    def resolve(self, method_ref: MethodRef) -> Optional[MethodIdentity]: ...

    def call_sites(self, method: MethodIdentity) -> Sequence[CallSite]: ...

    def resolve_call_target(self, call_site: CallSite) -> Optional[MethodIdentity]: ...

    def is_analyzable_content(self, method: MethodIdentity) -> bool: ...


class ReferenceIndex(Protocol):
    def references_to(self, method: MethodIdentity) -> Sequence[Location]: ...

    def enclosing_method(self, location: Location) -> Optional[MethodIdentity]: ...

    def is_test_source(self, method: MethodIdentity) -> bool: ...

    def annotations_of(self, method: MethodIdentity) -> Sequence[AnnotationUsage]: ...

    def source_text_of(self, method: MethodIdentity) -> Optional[str]: ...

    def language_tag_of(self, method: MethodIdentity) -> Optional[str]: ...
