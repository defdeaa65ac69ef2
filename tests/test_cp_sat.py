import pytest

pytest.importorskip("ortools")

from demand_parser import parse_puzzle
from models import Present
from packer.cp_sat import OPTION_CACHE_SIZE, _compute_options, build_options, try_pack_cp_sat
from packer.search import expand_presents, try_pack_region
from shapes import build_orientation_table, parse_shape_rows
from tests.data import EXAMPLE_PUZZLE


@pytest.fixture(scope="module")
def example():
    shapes, regions = parse_puzzle(EXAMPLE_PUZZLE)
    return build_orientation_table(shapes), regions


def test_cp_sat_agrees_with_search_on_example(example):
    table, regions = example
    verdicts = []
    for region in regions:
        ok, placed, reason = try_pack_region(region, table, strategy="cp_sat")
        verdicts.append(ok)
        if ok:
            assert reason is None
            assert try_pack_region.last_meta["solved_via"] == "cp_sat"
            cells = [c for p in placed for c in p.cells()]
            assert len(cells) == len(set(cells))
            assert all(0 <= x < region.w and 0 <= y < region.h for x, y in cells)
        else:
            assert reason == "Proven infeasible under current constraints"
    assert verdicts == [True, True, False]


def test_options_cover_every_orientation_and_position():
    table = build_orientation_table([parse_shape_rows(["##"])])
    opts, meta = build_options(3, 2, [Present(0, 2)], table)
    # horizontal: 2 x 2 positions, vertical: 3 x 1 positions
    assert len(opts[0]) == 7
    assert meta["option_count"] == 7
    assert meta["uncoverable_cells"] == 0


def test_present_wider_than_region_has_no_options():
    table = build_orientation_table([parse_shape_rows(["####"])])
    ok, placed, reason = try_pack_cp_sat(3, 3, [Present(0, 4)], table)
    assert not ok and placed == []
    assert "larger than the region" in reason


def test_cp_sat_area_prune_and_empty_request():
    table = build_orientation_table([parse_shape_rows(["##", "##"])])
    assert try_pack_cp_sat(1, 1, [], table) == (True, [], None)
    ok, _placed, reason = try_pack_cp_sat(3, 2, [Present(0, 4), Present(0, 4)], table)
    assert not ok
    assert reason == "Proven infeasible (present area exceeds region)"


def test_cp_sat_reports_solver_status(example):
    table, regions = example
    _ok, presents, _ = expand_presents(regions[0].counts, table)
    ok, placed, _ = try_pack_cp_sat(4, 4, presents, table, max_seconds=10)
    assert ok and len(placed) == 2
    assert try_pack_cp_sat.last_meta["status"] in ("OPTIMAL", "FEASIBLE")


def test_option_cache_stays_bounded_across_region_sizes():
    table = build_orientation_table([parse_shape_rows(["#"])])
    _compute_options.cache_clear()
    for w in range(1, OPTION_CACHE_SIZE + 20):
        build_options(w, 1, [Present(0, 1)], table)
    assert _compute_options.cache_info().currsize == OPTION_CACHE_SIZE
    # a repeated size is served from the cache
    hits = _compute_options.cache_info().hits
    build_options(OPTION_CACHE_SIZE + 19, 1, [Present(0, 1)], table)
    assert _compute_options.cache_info().hits == hits + 1
