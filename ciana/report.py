"""
Rendering of impact results for terminals (CLI) and for LLM clients (MCP).
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ciana.analyzer import ImpactResult
from ciana.context import FILE_SCOPE, ContextEntry, SourceContext


@dataclass
class ImpactReport:
    """An ImpactResult plus optional per-reference source context."""
    result: ImpactResult
    entries: List[ContextEntry] = field(default_factory=list)

    @classmethod
    def build(cls, result: ImpactResult, context: Optional[SourceContext] = None) -> "ImpactReport":
        entries = []
        if context is not None:
            entries = [context.annotate(loc) for loc in result.references]
        return cls(result=result, entries=entries)

    def to_lines(self) -> List[str]:
        """One reference per line; annotated when context was gathered."""
        if self.entries:
            return [str(entry) for entry in self.entries]
        return [str(loc) for loc in self.result.references]

    def to_markdown(self) -> str:
        r = self.result
        md = f"## Change Impact — `{r.target}`\n\n"
        md += "| Field | Value |\n|-------|-------|\n"
        md += f"| **Declaration** | `{r.declaration}` |\n"
        md += f"| **Scope** | {'global / file scope' if r.wide_scope else 'local'} |\n"
        md += f"| **Files searched** | {len(r.searched_files)} |\n"
        md += f"| **References** | {len(r.references)} |\n\n"

        if not r.references:
            md += "No other references found; the change is confined to the declaration.\n"
            return md

        md += "### References\n\n"
        if self.entries:
            md += "| Location | Function | Code |\n|----------|----------|------|\n"
            for entry in self.entries:
                code = entry.line_text.replace("|", "\\|")
                md += f"| `{entry.location}` | `{entry.function or FILE_SCOPE}` | `{code}` |\n"
        else:
            for loc in r.references:
                md += f"- `{loc}`\n"

        files = sorted({loc.filename for loc in r.references})
        if len(files) > 1:
            md += f"\n**⚠ Impact spans {len(files)} files:** "
            md += ", ".join(f"`{f}`" for f in files) + "\n"
        return md
