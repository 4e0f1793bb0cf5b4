# --- Tree-sitter plumbing ----------------------------------------------------
import re
from typing import Iterator, Optional

_WHITESPACE = re.compile(r"\s+")
_QUALIFIER = re.compile(r"(?:[A-Za-z_$][\w$]*\.)+(?=[A-Za-z_$])")
_GENERIC_ARGS = re.compile(r"<.*>")

COMMENT_NODES = ("line_comment", "block_comment")


def node_text(source_bytes: bytes, node) -> str:
    """
    Converts a node's [start_byte:end_byte] into the corresponding string.
    Tree-sitter nodes only store byte offsets, so we slice the original source.
    """
    return source_bytes[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def optional_text(source_bytes: bytes, node) -> Optional[str]:
    return node_text(source_bytes, node) if node is not None else None


def node_point(node) -> tuple[int, int]:
    """
    Returns the (line, column) of a node's start in 0-based coordinates.
    """
    return (node.start_point[0], node.start_point[1])


def code_children(node) -> Iterator:
    """Named children, minus comments."""
    for child in node.named_children:
        if child.type not in COMMENT_NODES:
            yield child


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def simple_type(type_text: str) -> str:
    """`java.util.List<java.lang.String>` -> `List<String>`."""
    return _QUALIFIER.sub("", collapse_whitespace(type_text))


def erase_generics(type_text: str) -> str:
    """`Map<K, V>` -> `Map`, `String[]` -> `String`; used to look types up."""
    erased = _GENERIC_ARGS.sub("", collapse_whitespace(type_text))
    return erased.replace("[]", "").replace("...", "").strip()
