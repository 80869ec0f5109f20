"""
Source context for impact results — tree-sitter based.

For each reported location this gives a reader the two things they look at
first: the source line itself and the function it sits in. Context is best
effort: a missing or binary file yields an empty annotation, never an error.
"""

import os
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import tree_sitter_c as tsc
from tree_sitter import Language, Parser, Node

from ciana.location import SourceLocation

logger = logging.getLogger(__name__)

C_LANGUAGE = Language(tsc.language())
_parser = Parser(C_LANGUAGE)

FILE_SCOPE = "<file scope>"


@dataclass
class ContextEntry:
    """A result location annotated with its surroundings."""
    location: SourceLocation
    function: Optional[str]     # enclosing function name, None at file scope
    line_text: str              # stripped source line, "" when unavailable

    def __str__(self) -> str:
        where = self.function or FILE_SCOPE
        return f"{self.location} [{where}] {self.line_text}".rstrip()


class SourceContext:
    """Annotates locations with the enclosing function and line text."""

    def __init__(self, workspace_root: str):
        self.workspace_root = workspace_root
        self._cache: Dict[str, Tuple[Optional[bytes], Optional[object]]] = {}

    def _resolve(self, file_path: str) -> str:
        native = file_path.replace("/", os.sep).replace("\\", os.sep)
        if os.path.isabs(native):
            return native
        return os.path.join(self.workspace_root, native)

    def _get_tree(self, file_path: str) -> Tuple[Optional[bytes], Optional[object]]:
        """Parse file and cache the result."""
        full = self._resolve(file_path)
        if full in self._cache:
            return self._cache[full]

        if not os.path.isfile(full):
            logger.warning("File not found: %s", full)
            self._cache[full] = (None, None)
            return None, None

        try:
            with open(full, "rb") as f:
                source = f.read()
        except OSError as e:
            logger.error("Failed to read %s: %s", full, e)
            self._cache[full] = (None, None)
            return None, None

        # Skip binary files
        if b"\x00" in source[:8192]:
            logger.warning("Skipping binary file: %s", full)
            self._cache[full] = (None, None)
            return None, None

        tree = _parser.parse(source)
        self._cache[full] = (source, tree)
        return source, tree

    # ────────────────────────────────────────────────────────────────
    #  Queries
    # ────────────────────────────────────────────────────────────────

    def get_line(self, file_path: str, line: int) -> str:
        """Return a single stripped line (1-indexed), or "" if unavailable."""
        source, _ = self._get_tree(file_path)
        if source is None:
            return ""
        lines = source.decode("utf-8", errors="replace").splitlines()
        if 1 <= line <= len(lines):
            return lines[line - 1].strip()
        return ""

    def enclosing_function(self, file_path: str, line: int) -> Optional[str]:
        """Name of the function definition spanning ``line``, or None."""
        source, tree = self._get_tree(file_path)
        if tree is None:
            return None
        for node in _walk_type(tree.root_node, "function_definition"):
            if node.start_point[0] + 1 <= line <= node.end_point[0] + 1:
                return _function_name(node, source)
        return None

    def annotate(self, location: SourceLocation) -> ContextEntry:
        return ContextEntry(
            location=location,
            function=self.enclosing_function(location.filename, location.line),
            line_text=self.get_line(location.filename, location.line),
        )


# ═══════════════════════════════════════════════════════════════════════
#  Tree traversal helpers
# ═══════════════════════════════════════════════════════════════════════

def _walk_type(node: Node, type_name: str):
    """Yield all descendant nodes of a given type."""
    cursor = node.walk()
    visited = False
    while True:
        if not visited and cursor.node.type == type_name:
            yield cursor.node
        if not visited and cursor.goto_first_child():
            visited = False
            continue
        if cursor.goto_next_sibling():
            visited = False
            continue
        if cursor.goto_parent():
            visited = True
            continue
        break


def _find_child(node: Node, type_name: str) -> Optional[Node]:
    """Find first direct or grandchild node of a given type."""
    for child in node.children:
        if child.type == type_name:
            return child
    for child in node.children:
        for grandchild in child.children:
            if grandchild.type == type_name:
                return grandchild
    return None


def _function_name(fn_node: Node, source: bytes) -> Optional[str]:
    declarator = _find_child(fn_node, "function_declarator")
    if declarator is None:
        # int *f(void) nests the function declarator in a pointer declarator
        ptr_decl = _find_child(fn_node, "pointer_declarator")
        if ptr_decl is not None:
            declarator = _find_child(ptr_decl, "function_declarator")
    if declarator is None:
        return None
    name_node = _find_child(declarator, "identifier")
    if name_node is None:
        return None
    return source[name_node.start_byte:name_node.end_byte].decode("utf-8", errors="replace")
