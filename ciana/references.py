"""
Reference walkers — the algorithmic core of the impact analysis.

All walks are read-only pre-order traversals over a tree view (see
``ciana.tree``) and compare positions only through ``location.matches``:

  • resolve_reference  — location of the declaration a use-site refers to
  • is_wide_scope      — whether a declaration sits outside any function
  • find_references    — every use-site referring to a declaration
  • declaration_at     — whether the target itself is a declaration
  • nodes_at           — every node at a location (for inspection)
"""

import logging
from typing import List, Tuple

from ciana.errors import NoTargetError
from ciana.location import SourceLocation, matches
from ciana.tree import NodeKind, walk

logger = logging.getLogger(__name__)

_DECLARING_KINDS = (NodeKind.DECLARATION, NodeKind.FUNCTION_DEFINITION)


def _in_file(node, filename: str) -> bool:
    return node.location is not None and node.location.filename == filename


def useful_reference(node):
    """The node's reference edge, or None when absent or pointing at itself."""
    ref = node.reference
    if ref is None or ref == node:
        return None
    return ref


# ═══════════════════════════════════════════════════════════════════════
#  Reference resolution
# ═══════════════════════════════════════════════════════════════════════

def resolve_reference(tree, target: SourceLocation) -> SourceLocation:
    """Return the location of the declaration referenced at ``target``.

    Several nodes can share one location (an implicit cast wrapping the
    reference it converts, for instance). A node at the target that has no
    usable reference does not end the search; the first node in pre-order
    that both matches and resolves wins.

    Raises:
        NoTargetError: nothing at ``target`` references a located declaration.
    """
    for node in walk(tree):
        if not matches(node, target):
            continue
        ref = useful_reference(node)
        if ref is not None and ref.location is not None:
            return ref.location
    raise NoTargetError(target)


# ═══════════════════════════════════════════════════════════════════════
#  Scope classification
# ═══════════════════════════════════════════════════════════════════════

def scope_fold(tree, target: SourceLocation) -> Tuple[bool, bool]:
    """Fold over the pre-order node sequence up to ``target``.

    Returns ``(found, seen_function)``: whether the target was reached, and
    whether a function definition in the target's own file had been visited
    before reaching it. Definitions pulled in from included headers come
    first in a translation unit and do not count. The target test comes
    before a node's own kind is folded in, so a function definition located
    at the target has not yet "seen" itself.
    """
    seen_function = False
    for node in walk(tree):
        if matches(node, target):
            return True, seen_function
        if node.kind is NodeKind.FUNCTION_DEFINITION and _in_file(node, target.filename):
            seen_function = True
    return False, seen_function


def is_wide_scope(tree, target: SourceLocation) -> bool:
    """Approximate whether the declaration at ``target`` is file/global scope.

    This is positional, not semantic: anything that comes before the first
    function definition of its own file counts as wide scope, anything
    after it as local. A target that is never found is treated as local.
    """
    found, seen_function = scope_fold(tree, target)
    if not found:
        logger.debug("Scope target %s not found, assuming local", target)
        return False
    return not seen_function


# ═══════════════════════════════════════════════════════════════════════
#  Cross-reference scanning
# ═══════════════════════════════════════════════════════════════════════

def find_references(tree, target: SourceLocation) -> List[SourceLocation]:
    """Collect the locations of all nodes that refer to the declaration at ``target``.

    A matching node is treated as a leaf: its children are not searched.
    Results keep traversal order and are not deduplicated. The declaring
    node itself never qualifies because its reference (if any) is itself.
    """
    results: List[SourceLocation] = []
    stack = [tree]
    while stack:
        node = stack.pop()
        ref = useful_reference(node)
        if ref is not None and matches(ref, target):
            if node.location is not None:
                results.append(node.location)
            else:
                logger.debug("Skipping reference to %s without file location", target)
            continue
        stack.extend(reversed(list(node.children)))
    return results


# ═══════════════════════════════════════════════════════════════════════
#  Helpers used by the analyzer and for inspection
# ═══════════════════════════════════════════════════════════════════════

def declaration_at(tree, target: SourceLocation) -> bool:
    """True when a declaring node (without an outward reference) sits at ``target``."""
    for node in walk(tree):
        if matches(node, target) and node.kind in _DECLARING_KINDS:
            if useful_reference(node) is None:
                return True
    return False


def nodes_at(tree, target: SourceLocation) -> List:
    """All nodes located exactly at ``target``, in pre-order."""
    return [node for node in walk(tree) if matches(node, target)]


def describe_node(node) -> str:
    """One-line debug rendering: ``location:KIND:spelling -> reference``."""
    where = str(node.location) if node.location is not None else "<no location>"
    text = f"{where}:{node.kind_name}:{node.spelling or ''}"
    ref = useful_reference(node)
    if ref is not None:
        ref_where = str(ref.location) if ref.location is not None else "<no location>"
        text += f" -> {ref_where}:{ref.kind_name}:{ref.spelling or ''}"
    return text
