import fnmatch
import logging
from typing import Optional

from tree_sitter import Language, Node, Parser, Tree

from method_insight.src.method_insight.config import ReportConfig
from method_insight.src.method_insight.models.ast_models import (
    AnnotationUsage,
    ClassInfo,
    MethodCall,
    MethodInfo,
)
from method_insight.src.method_insight.models.call_graph import MethodIdentity
from method_insight.src.method_insight.tree_sitter_helpers import (
    code_children,
    collapse_whitespace,
    node_point,
    node_text,
    optional_text,
    simple_type,
)

logger = logging.getLogger(__name__)

CLASS_NODES = ("class_declaration", "interface_declaration", "enum_declaration", "record_declaration")
METHOD_NODES = ("method_declaration", "constructor_declaration")
ANNOTATION_NODES = ("marker_annotation", "annotation")


# --- Tree-sitter language loading -------------------------------------------

def load_java_language() -> Language:
    """
    Loads the Tree-sitter Java grammar shipped by the `tree-sitter-java` wheel.
    """
    try:
        import tree_sitter_java
    except ImportError as exc:
        raise RuntimeError(
            "Could not load Java grammar.\n"
            "- Install `tree-sitter-java` (pip install tree-sitter-java)."
        ) from exc
    return Language(tree_sitter_java.language())


def source_root(file_path: str, package: Optional[str] = None) -> str:
    """
    The directory part of `file_path` above the package directories, as
    "/src/main/java/" for `src/main/java/com/acme/App.java` in `com.acme`.
    Falls back to the file's directory when the path does not end in the
    package directories.
    """
    parts = file_path.replace("\\", "/").strip("/").split("/")[:-1]
    package_dirs = package.split(".") if package else []
    if package_dirs and parts[-len(package_dirs):] == package_dirs:
        parts = parts[:-len(package_dirs)]
    return "/" + "".join(part + "/" for part in parts)


def is_path_match(file_path: Optional[str], patterns: tuple[str, ...],
                  package: Optional[str] = None) -> bool:
    """
    Matches the source root of a file (see `source_root`) against fnmatch
    globs, so package names like `com.acme.build` never match `*/build/*`.
    """
    if not file_path:
        return False
    root = source_root(file_path, package)
    return any(fnmatch.fnmatchcase(root, p) for p in patterns)


def method_identity(cls: ClassInfo, method: MethodInfo) -> MethodIdentity:
    signature = "(" + ", ".join(simple_type(t) for t, _ in method.params) + ")"
    return MethodIdentity(cls.fqcn, method.name, signature)


# --- The Indexer -------------------------------------------------------------

class JavaIndexer:
    """
    Walks a Tree-sitter Java AST to build a semantic index:
    packages -> classes -> methods -> annotations, locals and calls.
    """

    def __init__(self, config: Optional[ReportConfig] = None):
        self.config = config or ReportConfig()
        self.language = load_java_language()
        self.parser = Parser(self.language)

        # In-memory index
        self.packages: set[str] = set()
        self.classes: dict[str, ClassInfo] = {}  # fqcn -> ClassInfo
        self.methods: dict[MethodIdentity, tuple[ClassInfo, MethodInfo]] = {}

    def parse(self, source: str) -> Tree:
        return self.parser.parse(source.encode("utf-8"))

    def index_source(self, source: str, file_path: Optional[str] = None,
                     is_test: Optional[bool] = None):
        """
        Parses & indexes a Java source file. Test membership comes from
        `is_test` when given, else from the configured test source globs.
        """
        source_bytes = source.encode("utf-8")
        root: Node = self.parse(source).root_node

        package = self._find_package(source_bytes, root)
        if package:
            self.packages.add(package)
        if is_test is None:
            is_test = is_path_match(file_path, self.config.test_source_patterns, package)
        imports = self._find_imports(source_bytes, root)

        for child in root.children:
            if child.type in CLASS_NODES:
                self._index_class(source_bytes, child, package, None,
                                  file_path=file_path, imports=imports, is_test=is_test)
        logger.debug("Indexed %s (%d classes total)", file_path or "<source>", len(self.classes))

    def lookup(self, identity: MethodIdentity) -> Optional[tuple[ClassInfo, MethodInfo]]:
        return self.methods.get(identity)

    # -- AST helpers ----------------------------------------------------------

    def _find_package(self, source_bytes: bytes, root: Node) -> Optional[str]:
        for child in root.children:
            if child.type == "package_declaration":
                for part in child.named_children:
                    if part.type in ("scoped_identifier", "identifier"):
                        return node_text(source_bytes, part)
        return None

    def _find_imports(self, source_bytes: bytes, root: Node) -> list[str]:
        """Single-type and wildcard imports as "a.b.C" / "a.b.*"."""
        imports = []
        for child in root.children:
            if child.type != "import_declaration":
                continue
            name = None
            wildcard = False
            for part in child.children:
                if part.type in ("scoped_identifier", "identifier"):
                    name = node_text(source_bytes, part)
                elif part.type == "asterisk":
                    wildcard = True
            if name:
                imports.append(f"{name}.*" if wildcard else name)
        return imports

    def _index_class(self, source_bytes: bytes, node: Node, pkg: Optional[str],
                     outer: Optional[ClassInfo], **file_info):
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        simple = node_text(source_bytes, name_node)
        if outer is not None:
            fqcn = f"{outer.fqcn}.{simple}"
        else:
            fqcn = f"{pkg}.{simple}" if pkg else simple

        line, col = node_point(node)
        superclass = None
        super_node = node.child_by_field_name("superclass")
        if super_node is not None:
            type_nodes = list(code_children(super_node))
            superclass = node_text(source_bytes, type_nodes[0]) if type_nodes else None

        cls = ClassInfo(
            simple_name=simple,
            fqcn=fqcn,
            line=line,
            col=col,
            file_path=file_info["file_path"],
            package=pkg,
            imports=file_info["imports"],
            superclass=superclass,
            outer=outer.fqcn if outer else None,
            is_test=file_info["is_test"],
        )
        # First declaration wins when the same type is indexed twice
        if fqcn in self.classes:
            return
        self.classes[fqcn] = cls

        if node.type == "record_declaration":
            self._index_record_components(source_bytes, node, cls)

        body = node.child_by_field_name("body")
        if body is None:
            return
        for member in self._members(body):
            if member.type in CLASS_NODES:
                self._index_class(source_bytes, member, pkg, cls, **file_info)
            elif member.type in METHOD_NODES:
                self._index_method(source_bytes, member, cls)
            elif member.type in ("field_declaration", "constant_declaration"):
                self._index_field(source_bytes, member, cls)

    def _members(self, body: Node) -> list[Node]:
        members = []
        for child in code_children(body):
            if child.type == "enum_body_declarations":
                members.extend(code_children(child))
            else:
                members.append(child)
        return members

    def _index_record_components(self, source_bytes: bytes, node: Node, cls: ClassInfo):
        params = node.child_by_field_name("parameters")
        for type_text, name in self._parameters(source_bytes, params):
            cls.fields[name] = type_text

    def _index_field(self, source_bytes: bytes, node: Node, cls: ClassInfo):
        type_text = optional_text(source_bytes, node.child_by_field_name("type")) or "?"
        for declarator in node.children_by_field_name("declarator"):
            name = optional_text(source_bytes, declarator.child_by_field_name("name"))
            if name:
                cls.fields[name] = type_text
            value = declarator.child_by_field_name("value")
            if value is not None:
                cls.initializer_calls.extend(self._collect_calls(source_bytes, value))

    def _index_method(self, source_bytes: bytes, node: Node, cls: ClassInfo):
        """
        Pulls out a method's name, parameters, annotations and source, then
        finds the calls and local variable types within its body.
        """
        is_constructor = node.type == "constructor_declaration"
        name_node = node.child_by_field_name("name")
        method_name = node_text(source_bytes, name_node) if name_node else cls.simple_name

        return_type = None
        if not is_constructor:
            return_type = optional_text(source_bytes, node.child_by_field_name("type"))

        params = self._parameters(source_bytes, node.child_by_field_name("parameters"))
        line, col = node_point(node)
        method_info = MethodInfo(
            name=method_name,
            params=params,
            return_type=return_type,
            line=line,
            col=col,
            source=node_text(source_bytes, node),
            annotations=self._annotations(source_bytes, node),
            local_types={name: type_text for type_text, name in params},
            is_constructor=is_constructor,
        )

        body = node.child_by_field_name("body")
        if body is not None:
            method_info.calls = self._collect_calls(source_bytes, body, method_info.local_types)

        cls.methods.setdefault(method_name, []).append(method_info)
        identity = method_identity(cls, method_info)
        self.methods.setdefault(identity, (cls, method_info))

    def _parameters(self, source_bytes: bytes, params_node: Optional[Node]) -> list[tuple[str, str]]:
        """(type text, name) pairs; varargs types keep their trailing `...`."""
        params = []
        if params_node is None:
            return params
        for p in code_children(params_node):
            if p.type == "formal_parameter":
                p_type = optional_text(source_bytes, p.child_by_field_name("type")) or "?"
                p_name = optional_text(source_bytes, p.child_by_field_name("name")) or "param"
                params.append((p_type, p_name))
            elif p.type == "spread_parameter":
                p_type, p_name = "?", "param"
                for part in code_children(p):
                    if part.type == "variable_declarator":
                        p_name = optional_text(source_bytes, part.child_by_field_name("name")) or p_name
                    elif part.type != "modifiers":
                        p_type = node_text(source_bytes, part)
                params.append((f"{p_type}...", p_name))
        return params

    def _annotations(self, source_bytes: bytes, node: Node) -> list[AnnotationUsage]:
        annotations = []
        for child in node.children:
            if child.type != "modifiers":
                continue
            for mod in child.children:
                if mod.type not in ANNOTATION_NODES:
                    continue
                name = optional_text(source_bytes, mod.child_by_field_name("name"))
                if not name:
                    continue
                attributes = {}
                args = mod.child_by_field_name("arguments")
                if args is not None:
                    for arg in code_children(args):
                        if arg.type == "element_value_pair":
                            key = optional_text(source_bytes, arg.child_by_field_name("key"))
                            value = optional_text(source_bytes, arg.child_by_field_name("value"))
                            if key and value is not None:
                                attributes[key] = value
                        else:
                            attributes["value"] = node_text(source_bytes, arg)
                annotations.append(AnnotationUsage(name, attributes))
        return annotations

    def _collect_calls(self, source_bytes: bytes, root: Node,
                       local_types: Optional[dict[str, str]] = None) -> list[MethodCall]:
        """
        Finds `method_invocation` and `object_creation_expression` nodes in
        source order, recording local variable types on the way when asked to.
        Local and nested class declarations are indexed on their own, so their
        bodies are skipped here.
        """
        calls: list[MethodCall] = []
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type in CLASS_NODES:
                continue

            if node.type == "method_invocation":
                name_node = node.child_by_field_name("name")
                calls.append(MethodCall(
                    name=node_text(source_bytes, name_node) if name_node else "<unknown>",
                    receiver=optional_text(source_bytes, node.child_by_field_name("object")),
                    arguments=self._arguments(source_bytes, node),
                    line=node_point(node)[0],
                    col=node_point(node)[1],
                ))
            elif node.type == "object_creation_expression":
                # `new Foo(bar)` is a call to Foo's constructor
                type_node = node.child_by_field_name("type")
                calls.append(MethodCall(
                    name=node_text(source_bytes, type_node) if type_node else "<anon>",
                    receiver=None,
                    arguments=self._arguments(source_bytes, node),
                    line=node_point(node)[0],
                    col=node_point(node)[1],
                    is_constructor=True,
                ))
            elif local_types is not None and node.type == "local_variable_declaration":
                type_text = optional_text(source_bytes, node.child_by_field_name("type"))
                for declarator in node.children_by_field_name("declarator"):
                    name = optional_text(source_bytes, declarator.child_by_field_name("name"))
                    if name and type_text:
                        local_types[name] = type_text
            elif local_types is not None and node.type == "enhanced_for_statement":
                type_text = optional_text(source_bytes, node.child_by_field_name("type"))
                name = optional_text(source_bytes, node.child_by_field_name("name"))
                if name and type_text:
                    local_types[name] = type_text

            # Reverse so children are visited in source order
            stack.extend(reversed(node.children))
        return calls

    def _arguments(self, source_bytes: bytes, call_node: Node) -> list[Optional[str]]:
        args_node = call_node.child_by_field_name("arguments")
        if args_node is None:
            return []
        return [collapse_whitespace(node_text(source_bytes, a)) for a in code_children(args_node)]
