"""
Source Context & Report Tests — tree-sitter annotation and rendering.
"""

import os
import sys
import tempfile
import unittest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from ciana.analyzer import ImpactResult
from ciana.context import ContextEntry, SourceContext
from ciana.location import SourceLocation
from ciana.report import ImpactReport

FIXTURE = os.path.join(PROJECT_ROOT, "tests", "c_project")


def L(filename, line, column):
    return SourceLocation(filename, line, column)


class TestSourceContext(unittest.TestCase):

    def setUp(self):
        self.ctx = SourceContext(FIXTURE)

    def test_line_inside_function(self):
        entry = self.ctx.annotate(L("src/counter.c", 6, 13))
        self.assertEqual(entry.function, "bump")
        self.assertEqual(entry.line_text, "total = total + step;")

    def test_header_line_is_file_scope(self):
        entry = self.ctx.annotate(L("src/counter.h", 4, 12))
        self.assertIsNone(entry.function)
        self.assertEqual(entry.line_text, "extern int counter;")
        self.assertEqual(str(entry), "src/counter.h:4:12 [<file scope>] extern int counter;")

    def test_main(self):
        self.assertEqual(self.ctx.enclosing_function("src/main.c", 7), "main")
        self.assertEqual(self.ctx.get_line("src/main.c", 7), "return counter;")

    def test_line_out_of_range(self):
        self.assertEqual(self.ctx.get_line("src/main.c", 500), "")
        self.assertIsNone(self.ctx.enclosing_function("src/main.c", 500))

    def test_missing_file_is_empty(self):
        entry = self.ctx.annotate(L("src/missing.c", 1, 1))
        self.assertEqual(entry, ContextEntry(L("src/missing.c", 1, 1), None, ""))
        self.assertEqual(str(entry), "src/missing.c:1:1 [<file scope>]")

    def test_pointer_returning_function(self):
        with tempfile.TemporaryDirectory() as tmp:
            with open(os.path.join(tmp, "p.c"), "w", encoding="utf-8") as f:
                f.write("static int slot;\n\nint *slot_ptr(void)\n{\n    return &slot;\n}\n")
            ctx = SourceContext(tmp)
            self.assertEqual(ctx.enclosing_function("p.c", 5), "slot_ptr")
            self.assertIsNone(ctx.enclosing_function("p.c", 1))

    def test_binary_file_is_skipped(self):
        with tempfile.TemporaryDirectory() as tmp:
            with open(os.path.join(tmp, "blob.c"), "wb") as f:
                f.write(b"int x;\x00\x01\x02")
            ctx = SourceContext(tmp)
            self.assertEqual(ctx.get_line("blob.c", 1), "")


class TestImpactReport(unittest.TestCase):

    def setUp(self):
        self.result = ImpactResult(
            target=L("src/main.c", 6, 5),
            declaration=L("src/counter.h", 4, 12),
            wide_scope=True,
            searched_files=["src/counter.c", "src/main.c", "src/storage.c"],
            references=[L("src/counter.c", 7, 5), L("src/main.c", 6, 5)],
        )

    def test_plain_lines(self):
        self.assertEqual(ImpactReport.build(self.result).to_lines(),
                         ["src/counter.c:7:5", "src/main.c:6:5"])

    def test_annotated_lines(self):
        lines = ImpactReport.build(self.result, SourceContext(FIXTURE)).to_lines()
        self.assertEqual(lines, [
            "src/counter.c:7:5 [bump] counter = counter + total;",
            "src/main.c:6:5 [main] counter = 0;",
        ])

    def test_markdown_with_context(self):
        md = ImpactReport.build(self.result, SourceContext(FIXTURE)).to_markdown()
        self.assertIn("`src/counter.h:4:12`", md)
        self.assertIn("global / file scope", md)
        self.assertIn("| `src/main.c:6:5` | `main` | `counter = 0;` |", md)
        self.assertIn("Impact spans 2 files", md)

    def test_markdown_header_declared_global(self):
        """The declaring header is reported but is neither searched nor counted as impacted."""
        md = ImpactReport.build(self.result).to_markdown()
        self.assertIn("| **Declaration** | `src/counter.h:4:12` |", md)
        self.assertIn("| **Files searched** | 3 |", md)
        self.assertIn("| **References** | 2 |", md)
        self.assertIn("- `src/counter.c:7:5`\n- `src/main.c:6:5`\n", md)
        self.assertIn("Impact spans 2 files:** `src/counter.c`, `src/main.c`", md)
        self.assertNotIn("`src/counter.h`", md)

    def test_markdown_without_references(self):
        self.result.references = []
        md = ImpactReport.build(self.result).to_markdown()
        self.assertIn("No other references found", md)
        self.assertNotIn("### References", md)

    def test_markdown_local_single_file(self):
        self.result.wide_scope = False
        self.result.references = [L("src/counter.c", 6, 5)]
        md = ImpactReport.build(self.result).to_markdown()
        self.assertIn("| **Scope** | local |", md)
        self.assertIn("- `src/counter.c:6:5`", md)
        self.assertNotIn("Impact spans", md)


if __name__ == "__main__":
    unittest.main()
