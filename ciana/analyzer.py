"""
Impact Analyzer — orchestrates one analysis run.

    resolve  →  classify scope  →  pick search set  →  scan  →  concatenate

The whole run happens inside a single provider session. Any failure aborts
the run; callers either get the complete, ordered list of reference
locations or an exception.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ciana.errors import NoTargetError
from ciana.location import SourceLocation
from ciana.provider import TreeProvider
from ciana.references import (
    declaration_at, describe_node, find_references, is_wide_scope,
    nodes_at, resolve_reference,
)

logger = logging.getLogger(__name__)


@dataclass
class ImpactResult:
    """Everything one run learned about a target."""
    target: SourceLocation
    declaration: SourceLocation
    wide_scope: bool
    searched_files: List[str] = field(default_factory=list)
    references: List[SourceLocation] = field(default_factory=list)


class ImpactAnalyzer:
    """Finds every place affected by a change to the entity at a location."""

    def __init__(self, provider: TreeProvider):
        self.provider = provider

    # ────────────────────────────────────────────────────────────────
    #  Public operations
    # ────────────────────────────────────────────────────────────────

    def analyze(self, target: SourceLocation) -> List[SourceLocation]:
        """Return the locations of all references to the entity at ``target``."""
        return self.run(target).references

    def run(self, target: SourceLocation) -> ImpactResult:
        with self.provider.session():
            target_args = self.provider.arguments_for(target.filename)
            target_tree = self.provider.parse(target.filename, target_args)
            declaration = self._declaration_for(target_tree, target)

            if declaration.filename == target.filename:
                decl_tree = target_tree
            else:
                # Headers have no compile command; they were found through the target's flags
                decl_args = self.provider.arguments_for(declaration.filename)
                if decl_args is None:
                    decl_args = target_args
                decl_tree = self.provider.parse(declaration.filename, decl_args)
            wide = is_wide_scope(decl_tree, declaration)
            logger.info("Declaration %s classified as %s scope",
                        declaration, "wide" if wide else "local")

            result = ImpactResult(target=target, declaration=declaration, wide_scope=wide)
            for filename, arguments in self._search_set(declaration, wide):
                if not wide:
                    tree = decl_tree
                else:
                    tree = self.provider.parse(filename, arguments)
                found = find_references(tree, declaration)
                logger.debug("%s: %d reference(s)", filename, len(found))
                result.searched_files.append(filename)
                result.references.extend(found)

        logger.info("%d reference(s) to %s in %d file(s)",
                    len(result.references), declaration, len(result.searched_files))
        return result

    def resolve(self, target: SourceLocation) -> SourceLocation:
        """Location of the declaration referenced at ``target``."""
        with self.provider.session():
            tree = self._parse_target(target)
            return resolve_reference(tree, target)

    def inspect(self, target: SourceLocation) -> List[str]:
        """Debug lines for every node at ``target``."""
        with self.provider.session():
            tree = self._parse_target(target)
            return [describe_node(node) for node in nodes_at(tree, target)]

    # ────────────────────────────────────────────────────────────────
    #  Steps
    # ────────────────────────────────────────────────────────────────

    def _parse_target(self, target: SourceLocation):
        return self.provider.parse(target.filename, self.provider.arguments_for(target.filename))

    @staticmethod
    def _declaration_for(tree, target: SourceLocation) -> SourceLocation:
        """Resolve a use-site to its declaration; a declaration stands for itself."""
        try:
            return resolve_reference(tree, target)
        except NoTargetError:
            if declaration_at(tree, target):
                logger.debug("%s is itself a declaration", target)
                return target
            raise

    def _search_set(self, declaration: SourceLocation,
                    wide: bool) -> List[Tuple[str, Optional[Sequence[str]]]]:
        if not wide:
            return [(declaration.filename, None)]
        return [(command.source_file, command.arguments)
                for command in self.provider.enumerate_compile_set()]
