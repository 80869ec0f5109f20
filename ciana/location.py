"""
Source locations and the single location-equality primitive.

Every tree walk in ciana compares nodes to a target through ``matches()``,
so there is exactly one definition of "same place" in the system: the
filename, line and column must all be equal.
"""

import os
from dataclasses import dataclass
from typing import Optional

from ciana.errors import FileSystemError


@dataclass(frozen=True)
class SourceLocation:
    """A position in a source file. Line and column are 1-indexed."""
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


def matches(node, target: SourceLocation) -> bool:
    """True when ``node`` sits exactly at ``target``.

    Nodes without a file-backed location (built-ins, synthetic nodes) never
    match.
    """
    location = node.location
    if location is None:
        return False
    return location == target


def _norm_path(p: str) -> str:
    """Normalise to forward slashes so stored and queried paths compare equal."""
    return p.replace("\\", "/")


def absolute_to_relative(path: str, start: Optional[str] = None) -> str:
    """Rewrite an absolute path relative to ``start`` (default: the cwd).

    Relative paths are only normalised. Absolute paths that do not live
    under ``start`` (system headers, for instance) are returned unchanged.
    """
    if not os.path.isabs(path):
        return _norm_path(os.path.normpath(path))

    try:
        base = os.path.abspath(start) if start else os.getcwd()
    except OSError as e:
        raise FileSystemError(f"cannot determine working directory: {e}") from e

    path = os.path.normpath(path)
    try:
        if os.path.commonpath([base, path]) != base:
            return _norm_path(path)
        return _norm_path(os.path.relpath(path, base))
    except ValueError as e:
        # Windows: paths on different drives
        raise FileSystemError(f"cannot relativise {path} against {base}: {e}") from e
