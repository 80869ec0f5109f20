"""
Syntax tree view consumed by the reference walkers.

The walkers never own or mutate a tree. They only read four things from a
node: ``kind``, ``location``, ``reference`` and ``children``. Any object that
exposes those (plus ``spelling`` and ``kind_name`` for display) can be
walked, which is how the libclang adapter and the in-memory trees below share
one engine.
"""

import enum
from dataclasses import dataclass, field
from typing import List, Optional

from ciana.location import SourceLocation


class NodeKind(enum.Enum):
    FUNCTION_DEFINITION = "function_definition"
    DECLARATION = "declaration"
    REFERENCE = "reference"
    OTHER = "other"


@dataclass(eq=False)
class MemoryNode:
    """A hand-built tree node.

    Equality is identity: two nodes at the same location are still different
    nodes, which is what the self-reference check in the scanner relies on.
    ``reference`` may point into another tree (a use in one translation unit
    referring to a declaration parsed from a header).
    """
    kind: NodeKind = NodeKind.OTHER
    location: Optional[SourceLocation] = None
    children: List["MemoryNode"] = field(default_factory=list)
    reference: Optional["MemoryNode"] = field(default=None, repr=False)
    spelling: str = ""

    @property
    def kind_name(self) -> str:
        return self.kind.name

    def add(self, *nodes: "MemoryNode") -> "MemoryNode":
        """Append children and return self, for building trees inline."""
        self.children.extend(nodes)
        return self


def walk(node):
    """Yield ``node`` and all its descendants in pre-order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(current.children)))
