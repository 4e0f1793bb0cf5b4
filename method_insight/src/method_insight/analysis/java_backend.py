"""
SourceModel and ReferenceIndex over a JavaIndexer.

Resolution is syntactic: a call's receiver is typed from locals, parameters,
fields or a type name, and overloads are told apart by argument count only.
Calls into types the index has never seen (the JDK, libraries) do not
resolve, which keeps them out of the graph.
"""
import logging
import re
from typing import Optional

from method_insight.src.method_insight.collaborators import CallSite, Location, MethodRef
from method_insight.src.method_insight.config import ReportConfig
from method_insight.src.method_insight.indexer import JavaIndexer, is_path_match, method_identity
from method_insight.src.method_insight.models.ast_models import AnnotationUsage, ClassInfo, MethodCall, MethodInfo
from method_insight.src.method_insight.models.call_graph import MethodIdentity
from method_insight.src.method_insight.tree_sitter_helpers import collapse_whitespace, erase_generics

logger = logging.getLogger(__name__)

LANGUAGE_TAG = "java"
INITIALIZER = "<initializer>"  # placeholder caller for field initializer calls

_REFERENCE = re.compile(r"^\s*(?P<owner>[\w$.]+?)\s*[#.]\s*(?P<method>[\w$<>]+)\s*(?P<signature>\(.*\))?\s*$")
_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")


def _normalize_signature(signature: str) -> str:
    inner = signature.strip()[1:-1]
    return "(" + ", ".join(collapse_whitespace(p) for p in inner.split(",") if p.strip()) + ")"


class JavaSourceModel:
    """Answers source queries for the Java code held by a JavaIndexer."""

    def __init__(self, indexer: JavaIndexer, config: Optional[ReportConfig] = None):
        self.indexer = indexer
        self.config = config or indexer.config

    # -- SourceModel ------------------------------------------------------------

    def resolve(self, method_ref: MethodRef) -> Optional[MethodIdentity]:
        """
        Accepts an identity or text such as `UserService.addUser`,
        `com.acme.UserService#addUser` or `UserService.addUser(String)`.
        Without a signature the first declared overload is chosen.
        """
        if isinstance(method_ref, MethodIdentity):
            return method_ref if method_ref in self.indexer.methods else None

        match = _REFERENCE.match(method_ref)
        if match is None:
            return None
        owner, name, signature = match.group("owner", "method", "signature")
        wanted = _normalize_signature(signature) if signature else None

        for cls in self._classes_named(owner):
            for info in cls.methods.get(name, []):
                identity = method_identity(cls, info)
                if wanted is None or identity.signature == wanted:
                    return identity
        return None

    def call_sites(self, method: MethodIdentity) -> list[CallSite]:
        found = self.indexer.lookup(method)
        if found is None:
            return []
        _, info = found
        return [self.call_site_for(method, call) for call in info.calls]

    def resolve_call_target(self, call_site: CallSite) -> Optional[MethodIdentity]:
        found = self.indexer.lookup(call_site.caller)
        if found is None:
            return None
        cls, info = found
        return self.resolve_in(cls, info, call_site)

    def is_analyzable_content(self, method: MethodIdentity) -> bool:
        cls = self.indexer.classes.get(method.class_name)
        if cls is None:
            return False
        return not is_path_match(cls.file_path, self.config.excluded_content_patterns, cls.package)

    # -- resolution ---------------------------------------------------------------

    def call_site_for(self, caller: MethodIdentity, call: MethodCall) -> CallSite:
        return CallSite(
            caller=caller,
            name=call.name,
            receiver=call.receiver,
            arguments=tuple(call.arguments),
            line=call.line,
            col=call.col,
            is_constructor=call.is_constructor,
        )

    def resolve_in(self, cls: ClassInfo, info: Optional[MethodInfo],
                   call: CallSite) -> Optional[MethodIdentity]:
        argc = len(call.arguments)
        if call.is_constructor:
            target = self.resolve_type(call.name, cls)
            if target is None:
                return None
            return self._find_method(target, target.simple_name, argc, inherited=False)

        receiver = call.receiver.strip() if call.receiver else None
        if receiver is None or receiver == "this":
            # Unqualified calls may target the class, its outer classes or their supertypes
            scope: Optional[ClassInfo] = cls
            while scope is not None:
                found = self._find_method(scope, call.name, argc)
                if found is not None:
                    return found
                scope = self.indexer.classes.get(scope.outer) if scope.outer else None
            return None

        if receiver == "super":
            parent = self._superclass(cls)
            return self._find_method(parent, call.name, argc) if parent else None

        owner = self._receiver_type(cls, info, receiver)
        if owner is None:
            return None
        return self._find_method(owner, call.name, argc)

    def _receiver_type(self, cls: ClassInfo, info: Optional[MethodInfo],
                       receiver: str) -> Optional[ClassInfo]:
        if receiver.startswith("this."):
            field_type = self._field_type(cls, receiver[len("this."):])
            return self.resolve_type(field_type, cls) if field_type else None

        if _IDENTIFIER.match(receiver):
            type_text = info.local_types.get(receiver) if info else None
            if type_text is None:
                type_text = self._field_type(cls, receiver)
            if type_text is not None:
                return self.resolve_type(type_text, cls)

        # Not a variable: maybe a type name, as in a static call
        if all(_IDENTIFIER.match(part) for part in receiver.split(".")):
            return self.resolve_type(receiver, cls)
        return None

    def _field_type(self, cls: ClassInfo, name: str) -> Optional[str]:
        scope: Optional[ClassInfo] = cls
        seen: set[str] = set()
        while scope is not None and scope.fqcn not in seen:
            seen.add(scope.fqcn)
            if name in scope.fields:
                return scope.fields[name]
            scope = self._superclass(scope) or (self.indexer.classes.get(scope.outer) if scope.outer else None)
        return None

    def _superclass(self, cls: ClassInfo) -> Optional[ClassInfo]:
        if not cls.superclass:
            return None
        return self.resolve_type(cls.superclass, cls)

    def _find_method(self, cls: ClassInfo, name: str, argc: int,
                     inherited: bool = True) -> Optional[MethodIdentity]:
        """First overload accepting `argc` arguments, walking up the superclass chain."""
        scope: Optional[ClassInfo] = cls
        seen: set[str] = set()
        while scope is not None and scope.fqcn not in seen:
            seen.add(scope.fqcn)
            for info in scope.methods.get(name, []):
                if len(info.params) == argc or (info.is_varargs and argc >= len(info.params) - 1):
                    return method_identity(scope, info)
            if not inherited:
                return None
            scope = self._superclass(scope)
        return None

    def resolve_type(self, type_text: str, context: ClassInfo) -> Optional[ClassInfo]:
        """
        Resolves a type as written in `context` to an indexed class: nested
        types first, then single-type imports, the same package, wildcard
        imports, and finally a unique simple-name match.
        """
        name = erase_generics(type_text)
        if not name:
            return None
        classes = self.indexer.classes
        if name in classes:
            return classes[name]

        head, _, rest = name.partition(".")
        candidates = []
        scope: Optional[ClassInfo] = context
        while scope is not None:
            candidates.append(f"{scope.fqcn}.{head}")
            scope = classes.get(scope.outer) if scope.outer else None
        for imported in context.imports:
            if imported.endswith("." + head):
                candidates.append(imported)
        if context.package:
            candidates.append(f"{context.package}.{head}")
        for imported in context.imports:
            if imported.endswith(".*"):
                candidates.append(f"{imported[:-2]}.{head}")

        for candidate in candidates:
            fqcn = f"{candidate}.{rest}" if rest else candidate
            if fqcn in classes:
                return classes[fqcn]

        if not rest:
            matches = [c for c in classes.values() if c.simple_name == head]
            if len(matches) == 1:
                return matches[0]
        return None

    def _classes_named(self, owner: str) -> list[ClassInfo]:
        classes = self.indexer.classes
        if owner in classes:
            return [classes[owner]]
        return [c for fqcn, c in classes.items() if fqcn.endswith("." + owner) or c.simple_name == owner]


class JavaReferenceIndex:
    """
    Reverse call index over a JavaIndexer: which call sites resolve to a method.
    Built once, on first use, by resolving every recorded call.
    """

    def __init__(self, source_model: JavaSourceModel):
        self.source_model = source_model
        self.indexer = source_model.indexer
        self._references: Optional[dict[MethodIdentity, list[Location]]] = None

    def _build(self) -> dict[MethodIdentity, list[Location]]:
        references: dict[MethodIdentity, list[Location]] = {}
        for cls in list(self.indexer.classes.values()):
            for call in cls.initializer_calls:
                # Field initializers have no enclosing method
                site = self.source_model.call_site_for(MethodIdentity(cls.fqcn, INITIALIZER, "()"), call)
                target = self.source_model.resolve_in(cls, None, site)
                if target is not None:
                    references.setdefault(target, []).append(
                        Location(cls.file_path, call.line, call.col, None))
            for overloads in cls.methods.values():
                for info in overloads:
                    caller = method_identity(cls, info)
                    for call in info.calls:
                        site = self.source_model.call_site_for(caller, call)
                        target = self.source_model.resolve_in(cls, info, site)
                        if target is not None:
                            references.setdefault(target, []).append(
                                Location(cls.file_path, call.line, call.col, caller))
        logger.debug("Built reference index for %d methods", len(references))
        return references

    # -- ReferenceIndex -----------------------------------------------------------

    def references_to(self, method: MethodIdentity) -> list[Location]:
        if self._references is None:
            self._references = self._build()
        return list(self._references.get(method, []))

    def enclosing_method(self, location: Location) -> Optional[MethodIdentity]:
        return location.enclosing

    def is_test_source(self, method: MethodIdentity) -> bool:
        cls = self.indexer.classes.get(method.class_name)
        return cls is not None and cls.is_test

    def annotations_of(self, method: MethodIdentity) -> list[AnnotationUsage]:
        """Annotations with their names qualified through the file's imports."""
        found = self.indexer.lookup(method)
        if found is None:
            return []
        cls, info = found
        qualified = []
        for annotation in info.annotations:
            for name in self._qualify(annotation.name, cls):
                qualified.append(AnnotationUsage(name, dict(annotation.attributes)))
        return qualified

    def source_text_of(self, method: MethodIdentity) -> Optional[str]:
        found = self.indexer.lookup(method)
        return found[1].source if found else None

    def language_tag_of(self, method: MethodIdentity) -> Optional[str]:
        return LANGUAGE_TAG if self.indexer.lookup(method) else None

    def _qualify(self, name: str, cls: ClassInfo) -> list[str]:
        if "." in name:
            return [name]
        for imported in cls.imports:
            if imported.endswith("." + name):
                return [imported]
        wildcards = [f"{i[:-2]}.{name}" for i in cls.imports if i.endswith(".*")]
        return wildcards or [name]
