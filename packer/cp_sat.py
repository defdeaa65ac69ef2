from collections import defaultdict
from functools import lru_cache
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ortools.sat.python import cp_model as _cp

from config import CFG
from models import Placed, Present, Shape

Option = Tuple[int, int, Shape]  # (x, y, orientation)

OPTION_CACHE_SIZE = 64


@lru_cache(maxsize=OPTION_CACHE_SIZE)
def _compute_options(W: int, H: int, variants: Tuple[Shape, ...]) -> Tuple[Option, ...]:
    return tuple(
        (x, y, shape)
        for shape in variants
        for y in range(H - shape.h + 1)
        for x in range(W - shape.w + 1)
    )


def build_options(
    W: int,
    H: int,
    presents: Sequence[Present],
    table: Mapping[int, Sequence[Shape]],
) -> Tuple[List[Tuple[Option, ...]], Dict[str, object]]:
    opts = [_compute_options(int(W), int(H), tuple(table[p.index])) for p in presents]
    coverage = [0] * (W * H)
    for options in opts:
        for x, y, shape in options:
            for dx, dy in shape.cells:
                coverage[(y + dy) * W + x + dx] += 1
    meta: Dict[str, object] = {
        "option_count": sum(len(o) for o in opts),
        "present_option_counts": [len(o) for o in opts],
        "uncoverable_cells": sum(1 for c in coverage if c == 0),
    }
    return opts, meta


def try_pack_cp_sat(
    W: int,
    H: int,
    presents: Sequence[Present],
    table: Mapping[int, Sequence[Shape]],
    *,
    max_seconds: Optional[float] = None,
) -> Tuple[bool, List[Placed], Optional[str]]:
    """CP-SAT model of the packing decision (cells may stay empty)."""

    presents = sorted(presents, key=lambda p: p.index)
    if not presents:
        return True, [], None
    if sum(p.area for p in presents) > W * H:
        return False, [], "Proven infeasible (present area exceeds region)"

    options, meta = build_options(W, H, presents, table)
    setattr(try_pack_cp_sat, "last_meta", meta)
    n = len(presents)

    m = _cp.CpModel()
    p = [[m.NewBoolVar(f"p_{i}_{k}") for k in range(len(options[i]))] for i in range(n)]
    for i in range(n):
        if not p[i]:
            return False, [], "Proven infeasible (a present is larger than the region)"
        m.AddExactlyOne(p[i])

    # symmetry breaking: copies of one shape take options in non-decreasing order
    place_idx = []
    for i in range(n):
        idx = m.NewIntVar(0, max(0, len(options[i]) - 1), f"idx_{i}")
        m.Add(idx == sum(k * p[i][k] for k in range(len(options[i]))))
        place_idx.append(idx)
    for a in range(1, n):
        if presents[a].index == presents[a - 1].index:
            m.Add(place_idx[a - 1] <= place_idx[a])

    cell_to_vars: Dict[int, List[_cp.IntVar]] = defaultdict(list)
    for i in range(n):
        for k, (x, y, shape) in enumerate(options[i]):
            for dx, dy in shape.cells:
                cell_to_vars[(y + dy) * W + x + dx].append(p[i][k])
    for vars_here in cell_to_vars.values():
        if len(vars_here) > 1:
            m.AddAtMostOne(vars_here)

    seconds = CFG.CP_SECONDS if max_seconds is None or max_seconds <= 0 else max_seconds
    solver = _cp.CpSolver()
    solver.parameters.max_time_in_seconds = float(seconds)
    solver.parameters.max_memory_in_mb = int(CFG.MAX_MEMORY_MB)
    solver.parameters.num_search_workers = max(1, int(CFG.CP_WORKERS))
    solver.parameters.random_seed = int(CFG.RANDOM_SEED)
    solver.parameters.log_search_progress = False

    res = solver.Solve(m)
    meta["status"] = solver.StatusName(res)
    meta["wall_time"] = solver.WallTime()

    if res in (_cp.OPTIMAL, _cp.FEASIBLE):
        placed: List[Placed] = []
        for i in range(n):
            for k, (x, y, shape) in enumerate(options[i]):
                if solver.BooleanValue(p[i][k]):
                    placed.append(Placed(x, y, presents[i].index, shape))
                    break
        return True, placed, None
    if res == _cp.INFEASIBLE:
        return False, [], "Proven infeasible under current constraints"
    if res == _cp.MODEL_INVALID:
        return False, [], "Model invalid (configuration error)"
    return False, [], "Stopped before solution (timebox)"


__all__ = ["build_options", "try_pack_cp_sat"]
