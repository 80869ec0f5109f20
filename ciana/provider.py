"""
Tree provider interface.

The analyzer never talks to a C/C++ front-end directly. It asks a provider
for two things:

  • parse(filename, arguments)  — the syntax tree of one translation unit
  • enumerate_compile_set()     — the project's (source file, arguments) pairs

and brackets a whole analysis run in ``session()`` so that front-end state
is acquired once per run and always released.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence

from ciana.errors import ParseFailureError


@dataclass
class CompileCommand:
    """One entry of the compilation set."""
    source_file: str                                     # relative to the provider root
    arguments: List[str] = field(default_factory=list)   # flags needed to reparse it


class TreeProvider(ABC):
    """Capability interface over a parser plus a compilation set."""

    @abstractmethod
    def parse(self, filename: str, arguments: Optional[Sequence[str]] = None):
        """Return the root node of ``filename``'s tree.

        Raises:
            ParseFailureError: the front-end produced no tree.
        """

    @abstractmethod
    def enumerate_compile_set(self) -> List[CompileCommand]:
        """Return every translation unit of the project, in database order."""

    def arguments_for(self, filename: str) -> Optional[List[str]]:
        """Compile arguments recorded for ``filename``, or None when it has no entry."""
        for command in self.enumerate_compile_set():
            if command.source_file == filename:
                return list(command.arguments)
        return None

    def open(self) -> None:
        """Acquire per-run front-end state."""

    def close(self) -> None:
        """Release whatever ``open()`` acquired."""

    @contextmanager
    def session(self) -> Iterator["TreeProvider"]:
        self.open()
        try:
            yield self
        finally:
            self.close()


class MemoryProvider(TreeProvider):
    """Serves pre-built trees (see ``ciana.tree.MemoryNode``).

    Useful wherever a real front-end is unavailable or unwanted: the trees
    are registered per filename, and the compilation set is the list of
    registered compile commands in insertion order.
    """

    def __init__(self, trees: Optional[Dict[str, object]] = None,
                 compile_set: Optional[Sequence[CompileCommand]] = None):
        self.trees: Dict[str, object] = dict(trees or {})
        self.compile_set: List[CompileCommand] = list(compile_set or [])
        self.parsed: List[str] = []
        self.parsed_arguments: Dict[str, Optional[List[str]]] = {}
        self.sessions_open = 0

    def add_tree(self, filename: str, root, in_compile_set: bool = True,
                 arguments: Optional[Sequence[str]] = None) -> None:
        self.trees[filename] = root
        if in_compile_set:
            self.compile_set.append(CompileCommand(filename, list(arguments or [])))

    def parse(self, filename: str, arguments: Optional[Sequence[str]] = None):
        self.parsed.append(filename)
        self.parsed_arguments[filename] = None if arguments is None else list(arguments)
        root = self.trees.get(filename)
        if root is None:
            raise ParseFailureError(filename, "no tree registered")
        return root

    def enumerate_compile_set(self) -> List[CompileCommand]:
        return list(self.compile_set)

    def open(self) -> None:
        self.sessions_open += 1

    def close(self) -> None:
        self.sessions_open -= 1
