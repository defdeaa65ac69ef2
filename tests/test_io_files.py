import os
import tempfile
import unittest

from config import CFG
from io_files import write_layout_view_html, write_report
from models import Placed, Region, RegionResult
from shapes import parse_shape_rows


class WriteOutputsTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self._orig_report = CFG.REPORT_OUT
        self._orig_layout = CFG.LAYOUT_HTML

    def tearDown(self) -> None:
        CFG.REPORT_OUT = self._orig_report
        CFG.LAYOUT_HTML = self._orig_layout

    def _results(self):
        bar = parse_shape_rows(["###"])
        fits = RegionResult(
            Region(3, 2, (2,)), True, [Placed(0, 0, 0, bar), Placed(0, 1, 0, bar)],
            None, "backtracking", 0.25,
        )
        crowded = RegionResult(
            Region(2, 2, (2,)), False, [], "Proven infeasible (present area exceeds region)",
            "area_pruning", 0.0,
        )
        return [fits, crowded]

    def test_write_report_uses_configured_relative_path(self) -> None:
        CFG.REPORT_OUT = "outputs/custom_report.txt"

        path = write_report(self._results(), self.tmpdir.name)

        expected = os.path.join(self.tmpdir.name, "outputs", "custom_report.txt")
        self.assertEqual(path, expected)
        self.assertTrue(os.path.exists(path))

        with open(path, "r", encoding="utf-8") as fh:
            lines = fh.read().splitlines()
        self.assertEqual(lines[0], "1 of 2 regions fit")
        self.assertIn("#1 3x2: 2 -> fits [backtracking, 0.25s]", lines)
        self.assertIn("  shape 0 @ (0,1) size (3×1) cells=3", lines)
        self.assertIn("#2 2x2: 2 -> does not fit [area_pruning, 0.00s]", lines)
        self.assertIn("  No solution (Proven infeasible (present area exceeds region))", lines)

    def test_blank_report_name_falls_back_to_default(self) -> None:
        CFG.REPORT_OUT = "  "
        path = write_report([], self.tmpdir.name)
        self.assertEqual(path, os.path.join(self.tmpdir.name, "report.txt"))

    def test_write_layout_view_html_accepts_absolute_path(self) -> None:
        target = os.path.join(self.tmpdir.name, "html", "layout.html")
        CFG.LAYOUT_HTML = target

        svg = "<svg></svg>"
        legend = "<li>shape 0</li>"

        path = write_layout_view_html([("#1 3x2", svg, legend)], self.tmpdir.name)

        self.assertEqual(path, target)
        self.assertTrue(os.path.exists(path))

        with open(path, "r", encoding="utf-8") as fh:
            contents = fh.read()
        self.assertIn(svg, contents)
        self.assertIn(legend, contents)
        self.assertIn("#1 3x2", contents)

    def test_layout_without_sections_says_so(self) -> None:
        CFG.LAYOUT_HTML = "empty.html"
        path = write_layout_view_html([], self.tmpdir.name)
        with open(path, "r", encoding="utf-8") as fh:
            self.assertIn("No feasible regions", fh.read())


if __name__ == "__main__":
    unittest.main()
