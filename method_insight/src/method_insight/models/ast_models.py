# --- Data models for the Java source index ----------------------------------
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class AnnotationUsage:
    """An annotation as written on a declaration."""
    name: str  # as written, e.g. "Test" or "org.junit.Test"
    attributes: dict[str, str] = field(default_factory=dict)  # attribute -> raw literal text


@dataclass
class MethodCall:
    """Represents a method call or object creation found inside a body."""
    name: str  # simple method name, or the created type for constructors
    receiver: Optional[str]  # text of the call's receiver/object if present (e.g., "this.repo")
    arguments: list[Optional[str]]  # argument source texts
    line: int
    col: int
    is_constructor: bool = False


@dataclass
class MethodInfo:
    """Information about a method or constructor declaration in a class."""
    name: str  # e.g., "addUser"; constructors carry the class simple name
    params: list[tuple[str, str]]  # (type text, parameter name)
    return_type: Optional[str]  # None for constructors
    line: int
    col: int
    source: str = ""
    annotations: list[AnnotationUsage] = field(default_factory=list)
    local_types: dict[str, str] = field(default_factory=dict)  # local variable -> type text
    calls: list[MethodCall] = field(default_factory=list)
    is_constructor: bool = False

    @property
    def is_varargs(self) -> bool:
        return bool(self.params) and self.params[-1][0].endswith("...")


@dataclass
class ClassInfo:
    """Information about a class-like type in a package."""
    simple_name: str  # e.g., "UserService"
    fqcn: str  # fully-qualified class name, e.g., "com.acme.UserService"
    line: int
    col: int
    file_path: Optional[str] = None
    package: Optional[str] = None
    imports: list[str] = field(default_factory=list)  # "a.b.C" or "a.b.*"
    superclass: Optional[str] = None  # type text as written
    outer: Optional[str] = None  # fqcn of the enclosing class, for nested types
    is_test: bool = False
    fields: dict[str, str] = field(default_factory=dict)  # field name -> type text
    initializer_calls: list[MethodCall] = field(default_factory=list)
    methods: dict[str, list[MethodInfo]] = field(default_factory=dict)  # name -> [overloads]
