import pytest

from demand_parser import PuzzleFormatError, parse_puzzle, parse_region_line
from models import Region
from tests.data import EXAMPLE_PUZZLE


def test_parse_example_puzzle():
    shapes, regions = parse_puzzle(EXAMPLE_PUZZLE)
    assert sorted(shapes) == [0, 1, 2, 3, 4, 5]
    assert all(s.area == 7 for s in shapes.values())
    assert shapes[4].rows() == ["###", "#..", "###"]
    assert [(r.w, r.h) for r in regions] == [(4, 4), (12, 5), (12, 5)]
    assert regions[0].counts == (0, 0, 0, 0, 2, 0)
    assert regions[2].counts == (1, 0, 1, 0, 3, 2)
    assert regions[2].present_count() == 7


def test_parse_region_line():
    region = parse_region_line("12x5: 1 0 1 0 2 2")
    assert region == Region(12, 5, (1, 0, 1, 0, 2, 2), "12x5")
    assert region.area == 60


def test_region_line_tolerates_whitespace_and_no_counts():
    assert parse_region_line("  3 x 2 :   ").counts == ()
    assert parse_region_line("3x2:4").counts == (4,)


@pytest.mark.parametrize(
    "line",
    ["3x: 1", "x3: 1", "3x3 1 2", "0x4: 1", "3x3: 1 two", "3x3: -1"],
)
def test_bad_region_lines_are_rejected(line):
    with pytest.raises(PuzzleFormatError):
        parse_region_line(line, 7)


def test_errors_carry_line_numbers():
    text = "0:\n##\n\n1:\n#x\n"
    with pytest.raises(PuzzleFormatError) as info:
        parse_puzzle(text)
    assert info.value.line_no == 5
    assert str(info.value).startswith("line 5:")


def test_duplicate_shape_index_is_rejected():
    text = "0:\n#\n\n0:\n##\n"
    with pytest.raises(PuzzleFormatError, match="duplicate shape index 0") as info:
        parse_puzzle(text)
    assert info.value.line_no == 4


def test_shape_header_without_rows_is_rejected():
    with pytest.raises(PuzzleFormatError, match="shape 3 has no rows"):
        parse_puzzle("3:\n\n4x4: 1\n")


def test_shape_with_only_empty_cells_is_rejected():
    with pytest.raises(PuzzleFormatError, match="shape 0"):
        parse_puzzle("0:\n...\n")


def test_stray_rows_outside_a_shape_block_are_rejected():
    with pytest.raises(PuzzleFormatError, match="unexpected line"):
        parse_puzzle("##\n")


def test_parse_error_is_a_value_error():
    assert issubclass(PuzzleFormatError, ValueError)


def test_empty_text_parses_to_nothing():
    assert parse_puzzle("") == ({}, [])
