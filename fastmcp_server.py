"""
CIANA Change Impact Agent — MCP Server

Exposes tools to LLM clients via the Model Context Protocol:

  1. configure          — set the workspace root and the .cianarc location
  2. resolve_reference  — declaration referenced at file:line:column
  3. analyze_impact     — every reference affected by changing that declaration
  4. inspect_location   — raw syntax tree nodes at a location (debugging)
"""

from mcp.server.fastmcp import FastMCP
import os
import sys

# Ensure the ciana package is importable
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from ciana.analyzer import ImpactAnalyzer
from ciana.clang_provider import LibClangProvider
from ciana.config import DEFAULT_CONFIG_FILE
from ciana.context import SourceContext
from ciana.errors import CianaError
from ciana.location import SourceLocation, absolute_to_relative
from ciana.report import ImpactReport

# ═══════════════════════════════════════════════════════════════════════
#  Server Setup
# ═══════════════════════════════════════════════════════════════════════

mcp = FastMCP("CIANA Change Impact Agent")

provider = None
analyzer = None
source_context = None


def _target(file_path: str, line: int, column: int) -> SourceLocation:
    return SourceLocation(absolute_to_relative(file_path, provider.root), line, column)


def _check_position(line: int, column: int):
    """Return an error string for out-of-range positions, else None."""
    if line < 1 or column < 1:
        return f"Error: line and column are 1-based (got {line}:{column})."
    return None


# ═══════════════════════════════════════════════════════════════════════
#  Tool 1 — Configure
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def configure(workspace_root: str, config_path: str = DEFAULT_CONFIG_FILE) -> str:
    """
    Points the agent at a C/C++ workspace.

    Args:
        workspace_root: Root directory of the project. Reported paths are
                        relative to it.
        config_path:    Dotfile naming the compilation database directory,
                        relative to workspace_root (default ".cianarc").
                        Only needed for globals, whose references are
                        searched across the whole compilation database.
    """
    global provider, analyzer, source_context

    if not os.path.isdir(workspace_root):
        return f"Error: Workspace root not found at {workspace_root}"

    provider = LibClangProvider(root=workspace_root, config_path=config_path)
    analyzer = ImpactAnalyzer(provider)
    source_context = SourceContext(provider.root)

    has_config = os.path.isfile(provider.config_path)
    return (
        f"Workspace configured: `{provider.root}`.\n"
        f"Compilation database config: `{provider.config_path}`"
        f" ({'found' if has_config else 'missing — global symbols cannot be searched'})."
    )


# ═══════════════════════════════════════════════════════════════════════
#  Tool 2 — Resolve Reference
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def resolve_reference(file_path: str, line: int, column: int) -> str:
    """
    Returns the declaration that the identifier at file:line:column refers to.

    Args:
        file_path: Source file, relative to the workspace root.
        line:      1-based line of the identifier.
        column:    1-based column of the identifier's first character.
    """
    if analyzer is None:
        return "Error: Not configured. Call configure first."
    bad = _check_position(line, column)
    if bad:
        return bad

    try:
        target = _target(file_path, line, column)
        declaration = analyzer.resolve(target)
    except CianaError as e:
        return f"Error [{e.code}]: {e}"

    line_text = source_context.get_line(declaration.filename, declaration.line)
    fn = source_context.enclosing_function(declaration.filename, declaration.line)
    return (
        f"`{target}` refers to the declaration at `{declaration}`"
        f" ({'in `' + fn + '`' if fn else 'file scope'}):\n"
        f"```c\n{line_text}\n```"
    )


# ═══════════════════════════════════════════════════════════════════════
#  Tool 3 — Analyze Impact
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def analyze_impact(file_path: str, line: int, column: int, show_context: bool = True) -> str:
    """
    Lists every location affected by changing the entity at file:line:column.

    The location may be a use of the variable or its declaration. Locals are
    searched in their own file; globals across every translation unit of
    the compilation database.

    Args:
        file_path:    Source file, relative to the workspace root.
        line:         1-based line.
        column:       1-based column.
        show_context: Include the enclosing function and code line for each hit.
    """
    if analyzer is None:
        return "Error: Not configured. Call configure first."
    bad = _check_position(line, column)
    if bad:
        return bad

    try:
        result = analyzer.run(_target(file_path, line, column))
    except CianaError as e:
        return f"Error [{e.code}]: {e}"

    report = ImpactReport.build(result, source_context if show_context else None)
    return report.to_markdown()


# ═══════════════════════════════════════════════════════════════════════
#  Tool 4 — Inspect Location
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def inspect_location(file_path: str, line: int, column: int) -> str:
    """
    Shows the raw syntax tree nodes at file:line:column with their kinds,
    spellings and reference targets. Useful when resolve_reference reports
    no target and the position needs adjusting.

    Args:
        file_path: Source file, relative to the workspace root.
        line:      1-based line.
        column:    1-based column.
    """
    if analyzer is None:
        return "Error: Not configured. Call configure first."
    bad = _check_position(line, column)
    if bad:
        return bad

    try:
        target = _target(file_path, line, column)
        lines = analyzer.inspect(target)
    except CianaError as e:
        return f"Error [{e.code}]: {e}"

    if not lines:
        return f"No syntax tree nodes at `{target}`."
    return f"**{len(lines)} node(s) at `{target}`:**\n\n" + "\n".join(f"- `{ln}`" for ln in lines)


if __name__ == "__main__":
    mcp.run()
