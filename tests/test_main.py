import pytest

from config import CFG
from main import TITLE, build_parser, main
from models import Placed
from render import render_result
from shapes import parse_shape_rows
from tests.data import EXAMPLE_PUZZLE


@pytest.fixture
def puzzle_file(tmp_path):
    path = tmp_path / "input.txt"
    path.write_text(EXAMPLE_PUZZLE, encoding="utf-8")
    return path


def test_cli_prints_feasible_region_count(puzzle_file, capsys):
    assert main([str(puzzle_file), "--workers", "1"]) == 0
    captured = capsys.readouterr()
    out = captured.out.splitlines()
    assert out[:3] == [TITLE, "=" * len(TITLE), "Part 1: 2"]
    assert " Solved: 2 of 3 regions fit in " in captured.err


def test_cli_reports_missing_input(tmp_path, capsys):
    assert main([str(tmp_path / "missing.txt")]) == 1
    assert "could not load" in capsys.readouterr().err


def test_cli_reports_malformed_input(tmp_path, capsys):
    bad = tmp_path / "bad.txt"
    bad.write_text("0:\n#\n\nfour by four\n", encoding="utf-8")
    assert main([str(bad)]) == 2
    assert "line 4" in capsys.readouterr().err


def test_cli_writes_report_and_layout(puzzle_file, tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(CFG, "REPORT_OUT", "report.txt")
    monkeypatch.setattr(CFG, "LAYOUT_HTML", "layout_view.html")
    out_dir = tmp_path / "out"
    code = main([str(puzzle_file), "--report", "--layout", "--out-dir", str(out_dir)])
    assert code == 0
    report = (out_dir / "report.txt").read_text(encoding="utf-8")
    assert report.startswith("2 of 3 regions fit")
    html = (out_dir / "layout_view.html").read_text(encoding="utf-8")
    assert html.count("<section") == 2
    assert "Report written to" in capsys.readouterr().out


def test_parser_rejects_unknown_strategy():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["input.txt", "--strategy", "greedy"])


def test_render_draws_one_rect_per_occupied_cell():
    ell = parse_shape_rows(["#.", "##"])
    svg, legend = render_result([Placed(0, 0, 3, ell)], 2, 2)
    assert svg.count("<title>") == 3
    assert legend.count("<li>") == 1
    assert "shape 3" in legend


def test_render_labels_present_on_its_first_occupied_cell():
    s_piece = parse_shape_rows([".##", "##."])
    svg, _legend = render_result([Placed(2, 1, 0, s_piece)], 6, 4)
    # (2,1) is empty; the first occupied cell is (3,1)
    assert '<text x="76" y="38"' in svg
    assert '<text x="52" y="38"' not in svg
