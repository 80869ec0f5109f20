"""
libclang tree provider.

Wraps ``clang.cindex`` behind the ``TreeProvider`` interface:

  • ClangNode          — read-only view over a cindex Cursor (kind, location,
                         reference edge, children)
  • LibClangProvider   — parses translation units with one Index per analysis
                         session and enumerates the compilation database
  • sanitize_arguments — turns a stored compile command into reparse flags

Locations are reported relative to the provider root so that they compare
equal to user-supplied targets such as ``src/main.c``.
"""

import os
import logging
from typing import List, Optional, Sequence

from clang import cindex

from ciana.config import DEFAULT_CONFIG_FILE, load_config
from ciana.errors import ConfigMissingError, ParseFailureError
from ciana.location import SourceLocation, absolute_to_relative
from ciana.provider import CompileCommand, TreeProvider
from ciana.tree import NodeKind

logger = logging.getLogger(__name__)

# Cursor kinds that open a function body when they are definitions
_FUNCTION_KINDS = {
    cindex.CursorKind.FUNCTION_DECL,
    cindex.CursorKind.CXX_METHOD,
    cindex.CursorKind.CONSTRUCTOR,
    cindex.CursorKind.DESTRUCTOR,
    cindex.CursorKind.CONVERSION_FUNCTION,
    cindex.CursorKind.FUNCTION_TEMPLATE,
}

# Flags whose value is a path relative to the command's directory
_PATH_FLAGS = ("-I", "-isystem", "-iquote", "-idirafter", "-include")

# Flags that only matter for producing object files
_DROPPED_FLAGS = {"-c"}


# ═══════════════════════════════════════════════════════════════════════
#  Cursor view
# ═══════════════════════════════════════════════════════════════════════

class ClangNode:
    """A tree node backed by a ``cindex.Cursor``."""

    __slots__ = ("cursor", "root")

    def __init__(self, cursor: cindex.Cursor, root: str):
        self.cursor = cursor
        self.root = root

    def __eq__(self, other):
        if not isinstance(other, ClangNode):
            return NotImplemented
        return self.cursor == other.cursor

    def __hash__(self):
        return self.cursor.hash

    def __repr__(self):
        return f"ClangNode({self.kind_name}, {self.spelling!r}, {self.location})"

    @property
    def kind(self) -> NodeKind:
        kind = self.cursor.kind
        if kind in _FUNCTION_KINDS and self.cursor.is_definition():
            return NodeKind.FUNCTION_DEFINITION
        if kind.is_declaration():
            return NodeKind.DECLARATION
        if kind.is_reference() or kind in (cindex.CursorKind.DECL_REF_EXPR,
                                           cindex.CursorKind.MEMBER_REF_EXPR):
            return NodeKind.REFERENCE
        return NodeKind.OTHER

    @property
    def kind_name(self) -> str:
        return self.cursor.kind.name

    @property
    def spelling(self) -> str:
        return self.cursor.spelling or ""

    @property
    def location(self) -> Optional[SourceLocation]:
        loc = self.cursor.location
        if loc.file is None:
            return None
        return SourceLocation(
            absolute_to_relative(loc.file.name, self.root), loc.line, loc.column
        )

    @property
    def reference(self) -> Optional["ClangNode"]:
        ref = self.cursor.referenced
        if ref is None:
            return None
        return ClangNode(ref, self.root)

    @property
    def children(self) -> List["ClangNode"]:
        return [ClangNode(child, self.root) for child in self.cursor.get_children()]


# ═══════════════════════════════════════════════════════════════════════
#  Compile command handling
# ═══════════════════════════════════════════════════════════════════════

def source_file_of(directory: str, filename: str) -> str:
    """Absolute path of a compile command's source file."""
    if os.path.isabs(filename):
        return os.path.normpath(filename)
    return os.path.normpath(os.path.join(directory, filename))


def _absolute(path: str, directory: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.normpath(os.path.join(directory, path))


def sanitize_arguments(arguments: Sequence[str], directory: str, source_file: str) -> List[str]:
    """Reduce a stored compiler invocation to the flags needed for reparsing.

    Drops the compiler executable, the source file itself, ``-c`` and the
    ``-o`` output, and anchors relative include paths to ``directory`` since
    the reparse does not run from the command's directory.
    """
    result: List[str] = []
    it = iter(list(arguments)[1:])
    for arg in it:
        if arg in _DROPPED_FLAGS:
            continue
        if arg == "-o":
            next(it, None)
            continue
        if arg.startswith("-o"):
            continue
        if not arg.startswith("-") and source_file_of(directory, arg) == source_file:
            continue

        if arg in _PATH_FLAGS:
            value = next(it, None)
            if value is not None:
                result.extend([arg, _absolute(value, directory)])
            continue
        if arg.startswith("-I") and len(arg) > 2:
            result.append("-I" + _absolute(arg[2:], directory))
            continue

        result.append(arg)
    return result


# ═══════════════════════════════════════════════════════════════════════
#  Provider
# ═══════════════════════════════════════════════════════════════════════

class LibClangProvider(TreeProvider):
    """Parses C/C++ with libclang and reads ``compile_commands.json``.

    Usage:
        provider = LibClangProvider("/path/to/project")
        with provider.session():
            tree = provider.parse("src/main.c")
    """

    def __init__(self, root: Optional[str] = None,
                 config_path: str = DEFAULT_CONFIG_FILE,
                 default_arguments: Optional[Sequence[str]] = None):
        self.root = os.path.abspath(root or os.getcwd())
        self.config_path = config_path if os.path.isabs(config_path) \
            else os.path.join(self.root, config_path)
        self.default_arguments = list(default_arguments or [])
        self._index: Optional[cindex.Index] = None
        self._compile_set: Optional[List[CompileCommand]] = None

    def open(self) -> None:
        self._index = cindex.Index.create()

    def close(self) -> None:
        self._index = None
        self._compile_set = None

    def _resolve(self, file_path: str) -> str:
        """Resolve a (possibly POSIX-style) relative path against the root."""
        native = file_path.replace("/", os.sep).replace("\\", os.sep)
        if os.path.isabs(native):
            return native
        return os.path.join(self.root, native)

    def parse(self, filename: str, arguments: Optional[Sequence[str]] = None) -> ClangNode:
        full = self._resolve(filename)
        if not os.path.isfile(full):
            raise ParseFailureError(filename, "file not found")

        index = self._index if self._index is not None else cindex.Index.create()
        args = list(self.default_arguments if arguments is None else arguments)
        try:
            tu = index.parse(full, args=args)
        except cindex.TranslationUnitLoadError as e:
            raise ParseFailureError(filename, str(e)) from e

        errors = [d for d in tu.diagnostics if d.severity >= cindex.Diagnostic.Error]
        if errors:
            logger.warning("%s parsed with %d error(s), first: %s",
                           filename, len(errors), errors[0].spelling)
        logger.debug("Parsed %s with %d argument(s)", filename, len(args))
        return ClangNode(tu.cursor, self.root)

    def enumerate_compile_set(self) -> List[CompileCommand]:
        if self._compile_set is None:
            self._compile_set = self._load_compile_set()
        return list(self._compile_set)

    def arguments_for(self, filename: str) -> Optional[List[str]]:
        # Without a dotfile there is no database to consult; parse with defaults
        if not os.path.isfile(self.config_path):
            logger.debug("No %s, parsing %s with default arguments", self.config_path, filename)
            return None
        return super().arguments_for(filename)

    def _load_compile_set(self) -> List[CompileCommand]:
        config = load_config(self.config_path)
        try:
            database = cindex.CompilationDatabase.fromDirectory(config.compilation_database)
        except cindex.CompilationDatabaseError as e:
            raise ConfigMissingError(
                f"cannot open compilation database in {config.compilation_database}"
            ) from e

        commands = database.getAllCompileCommands()
        if commands is None:
            logger.warning("Compilation database in %s is empty", config.compilation_database)
            return []

        result: List[CompileCommand] = []
        for command in commands:
            source = source_file_of(command.directory, command.filename)
            args = sanitize_arguments(list(command.arguments), command.directory, source)
            result.append(CompileCommand(absolute_to_relative(source, self.root), args))
        logger.info("Compilation set: %d translation unit(s)", len(result))
        return result
