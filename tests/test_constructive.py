from models import Present
from packer.constructive import quick_block_fill
from shapes import build_orientation_table, parse_shape_rows


def _overlaps(placed):
    seen = set()
    for p in placed:
        for cell in p.cells():
            if cell in seen:
                return True
            seen.add(cell)
    return False


def test_block_fill_places_every_present_without_overlap():
    table = build_orientation_table([parse_shape_rows(["##", "#."]), parse_shape_rows(["###"])])
    presents = [Present(0, 3)] * 3 + [Present(1, 3)] * 2
    placed = quick_block_fill(9, 4, presents, table)
    assert placed is not None
    assert [p.index for p in placed] == [0, 0, 0, 1, 1]
    assert not _overlaps(placed)
    for p in placed:
        assert p.shape in table[p.index]
        assert all(0 <= x < 9 and 0 <= y < 4 for x, y in p.cells())


def test_block_fill_turns_shapes_when_upright_blocks_do_not_fit():
    table = build_orientation_table([parse_shape_rows(["####"])])
    placed = quick_block_fill(2, 4, [Present(0, 4), Present(0, 4)], table)
    assert placed is not None
    assert all((p.shape.w, p.shape.h) == (1, 4) for p in placed)
    assert not _overlaps(placed)


def test_block_fill_gives_up_without_deciding():
    table = build_orientation_table([parse_shape_rows(["###", "#..", "###"])])
    # Two of these fit a 4x4 box when interlocked, but not in separate blocks.
    assert quick_block_fill(4, 4, [Present(0, 7), Present(0, 7)], table) is None


def test_block_fill_of_nothing_is_empty():
    assert quick_block_fill(3, 3, [], {}) == []
