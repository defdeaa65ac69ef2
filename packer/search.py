import time
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

from config import CFG, STRATEGIES
from models import Placed, Present, Region, Shape

Table = Mapping[int, Sequence[Shape]]

# ---------------- helpers ----------------

def expand_presents(
    counts: Sequence[int],
    table: Table,
) -> Tuple[bool, List[Present], Optional[str]]:
    """Expand per-index counts into one :class:`Present` per required copy.

    The result is ordered by shape index so identical shapes are contiguous.
    A positive count for an index without a definition is rejected.
    """

    out: List[Present] = []
    for index, raw in enumerate(counts):
        try:
            n = int(raw)
        except (TypeError, ValueError):
            return False, [], f"Bad demand: count {raw!r} is not an integer"
        if n < 0:
            return False, [], "Bad demand: negative count"
        if n == 0:
            continue
        variants = table.get(index)
        if not variants:
            return False, [], f"Bad demand: unknown shape index {index}"
        out.extend([Present(index, variants[0].area)] * n)
    out.sort(key=lambda p: p.index)
    return True, out, None


def total_area(presents: Sequence[Present]) -> int:
    return sum(p.area for p in presents)


def _row_major_offsets(shape: Shape, W: int) -> Tuple[int, ...]:
    return tuple(y * W + x for x, y in sorted(shape.cells, key=lambda c: (c[1], c[0])))


# ---------------- positional backtracking ----------------

def pack_presents(
    W: int,
    H: int,
    presents: Sequence[Present],
    table: Table,
    *,
    node_limit: Optional[int] = None,
    deadline: Optional[float] = None,
) -> Optional[List[Placed]]:
    """Backtracking packer that tries every orientation at every position.

    Presents are processed in shape-index order.  For each one the search
    walks its orientations, and for each orientation the top-left positions in
    row-major order.  A present that repeats the shape of its predecessor only
    considers positions at or after the predecessor's, so interchangeable
    copies are never permuted against each other.  Placements are committed
    into a ``bytearray`` owned by this call and undone on backtrack.

    Returns the placements on success, ``[]`` for an empty request and
    ``None`` when no packing exists.  ``None`` is also returned when
    ``node_limit`` or ``deadline`` trips; ``pack_presents.last_stats`` tells
    the two apart (``limit_hit`` / ``timed_out``).
    """

    W = int(W)
    H = int(H)
    presents = sorted(presents, key=lambda p: p.index)

    stats: Dict[str, object] = {
        "board": (W, H),
        "presents": len(presents),
        "nodes": 0,
        "node_limit": node_limit,
        "limit_hit": False,
        "timed_out": False,
        "reason": None,
    }
    setattr(pack_presents, "last_stats", dict(stats))

    if not presents:
        stats["reason"] = "empty"
        setattr(pack_presents, "last_stats", dict(stats))
        return []

    if W <= 0 or H <= 0 or total_area(presents) > W * H:
        stats["reason"] = "area_exceeds_region"
        setattr(pack_presents, "last_stats", dict(stats))
        return None

    variants: Dict[int, List[Tuple[Shape, Tuple[int, ...]]]] = {}
    for p in presents:
        if p.index not in variants:
            variants[p.index] = [(o, _row_major_offsets(o, W)) for o in table[p.index]]

    grid = bytearray(W * H)
    anchors = [0] * len(presents)
    placements: List[Placed] = []
    count = len(presents)
    nodes = 0
    aborted = False

    def _should_stop() -> bool:
        nonlocal aborted
        if aborted:
            return True
        if node_limit is not None and node_limit > 0 and nodes > node_limit:
            stats["limit_hit"] = True
            aborted = True
        elif deadline is not None and (nodes & 0x3FF) == 1 and time.time() >= deadline:
            stats["timed_out"] = True
            aborted = True
        return aborted

    def _place(i: int) -> bool:
        nonlocal nodes
        if i == count:
            return True
        nodes += 1
        if _should_stop():
            return False

        present = presents[i]
        start = 0
        if i > 0 and presents[i - 1].index == present.index:
            start = anchors[i - 1]
        start_y, start_x = divmod(start, W)

        for shape, offsets in variants[present.index]:
            max_x = W - shape.w
            max_y = H - shape.h
            if max_x < 0 or max_y < 0:
                continue
            for y in range(start_y, max_y + 1):
                row = y * W
                for x in range(start_x if y == start_y else 0, max_x + 1):
                    base = row + x
                    fits = True
                    for off in offsets:
                        if grid[base + off]:
                            fits = False
                            break
                    if not fits:
                        continue
                    for off in offsets:
                        grid[base + off] = 1
                    anchors[i] = base
                    placements.append(Placed(x, y, present.index, shape))
                    if _place(i + 1):
                        return True
                    placements.pop()
                    for off in offsets:
                        grid[base + off] = 0
                    if aborted:
                        return False
        return False

    solved = _place(0)
    stats["nodes"] = nodes
    if solved:
        stats["reason"] = "solved"
    elif not aborted:
        stats["reason"] = "exhausted"
    setattr(pack_presents, "last_stats", dict(stats))
    return list(placements) if solved else None


# ---------------- anchored rescue ----------------

def anchored_pack(
    W: int,
    H: int,
    presents: Sequence[Present],
    table: Table,
    *,
    deadline: Optional[float] = None,
) -> Optional[List[Placed]]:
    """Exhaustive DFS that always resolves the first undecided cell.

    The lowest free cell (row-major) is either covered by a remaining present
    whose first row-major cell lands on it, or it is left empty at the cost of
    one unit of slack (region area minus present area).  The occupancy is an
    int bitmask; ``(mask, remaining)`` states already proven dead are memoized.
    Same contract as :func:`pack_presents`; stats in ``anchored_pack.last_stats``.
    """

    W = int(W)
    H = int(H)
    stats: Dict[str, object] = {
        "board": (W, H),
        "presents": len(presents),
        "nodes": 0,
        "memo_hits": 0,
        "timed_out": False,
        "reason": None,
    }
    setattr(anchored_pack, "last_stats", dict(stats))

    if not presents:
        stats["reason"] = "empty"
        setattr(anchored_pack, "last_stats", dict(stats))
        return []

    area = W * H
    if W <= 0 or H <= 0 or total_area(presents) > area:
        stats["reason"] = "area_exceeds_region"
        setattr(anchored_pack, "last_stats", dict(stats))
        return None

    order: List[int] = sorted({p.index for p in presents})
    slot_of = {index: slot for slot, index in enumerate(order)}
    remaining0 = [0] * len(order)
    for p in presents:
        remaining0[slot_of[p.index]] += 1

    # candidates[cell] -> placements whose first row-major cell is ``cell``
    candidates: List[List[Tuple[int, int, int, int, Shape]]] = [[] for _ in range(area)]
    for slot, index in enumerate(order):
        for shape in table[index]:
            anchor_x = min(x for x, y in shape.cells if y == 0)
            for y in range(H - shape.h + 1):
                for x in range(W - shape.w + 1):
                    bits = 0
                    for cx, cy in shape.cells:
                        bits |= 1 << ((y + cy) * W + x + cx)
                    candidates[y * W + x + anchor_x].append((slot, bits, x, y, shape))

    failed: Set[Tuple[int, Tuple[int, ...]]] = set()
    placements: List[Placed] = []
    nodes = 0
    memo_hits = 0
    timed_out = False

    def _fill(mask: int, remaining: Tuple[int, ...], slack: int) -> bool:
        nonlocal nodes, memo_hits, timed_out
        while True:
            if not any(remaining):
                return True
            nodes += 1
            if deadline is not None and (nodes & 0x3FF) == 1 and time.time() >= deadline:
                timed_out = True
            if timed_out:
                return False
            key = (mask, remaining)
            if key in failed:
                memo_hits += 1
                return False

            free_bit = ~mask & (mask + 1)
            cell = free_bit.bit_length() - 1
            if cell >= area:
                failed.add(key)
                return False

            for slot, bits, x, y, shape in candidates[cell]:
                if not remaining[slot] or mask & bits:
                    continue
                nxt = remaining[:slot] + (remaining[slot] - 1,) + remaining[slot + 1:]
                placements.append(Placed(x, y, order[slot], shape))
                if _fill(mask | bits, nxt, slack):
                    return True
                placements.pop()
                if timed_out:
                    return False

            failed.add(key)
            if slack <= 0:
                return False
            # leave the cell empty and move on
            mask |= free_bit
            slack -= 1

    solved = _fill(0, tuple(remaining0), area - total_area(presents))
    stats.update({
        "nodes": nodes,
        "memo_hits": memo_hits,
        "timed_out": timed_out,
        "reason": "solved" if solved else (None if timed_out else "exhausted"),
    })
    setattr(anchored_pack, "last_stats", dict(stats))
    return list(placements) if solved else None


# ---------------- main entrypoint ----------------

def _deadline_from(max_seconds: Optional[float]) -> Optional[float]:
    if max_seconds is None or max_seconds <= 0:
        return None
    return time.time() + float(max_seconds)


def try_pack_region(
    region: Region,
    table: Table,
    *,
    strategy: Optional[str] = None,
    max_seconds: Optional[float] = None,
) -> Tuple[bool, List[Placed], Optional[str]]:
    """Decide whether every present ``region`` requires fits at once.

    Returns ``(ok, placed, reason)``; ``reason`` is ``None`` on success.  The
    metadata of the last call is kept in ``try_pack_region.last_meta``.
    """

    strategy = (strategy or CFG.STRATEGY or "auto").lower()
    if max_seconds is None:
        max_seconds = CFG.MAX_SECONDS

    meta: Dict[str, object] = {
        "region": region.label,
        "strategy": strategy,
        "solved_via": None,
        "attempts": [],
    }
    attempts: List[Dict[str, object]] = meta["attempts"]  # type: ignore[assignment]

    def _finish(ok: bool, placed: List[Placed], reason: Optional[str]):
        meta["ok"] = bool(ok)
        meta["reason"] = reason
        meta["placed"] = len(placed)
        setattr(try_pack_region, "last_meta", meta)
        return ok, placed, reason

    if strategy not in STRATEGIES:
        meta["error"] = "unknown_strategy"
        return _finish(False, [], f"Bad config: unknown strategy {strategy!r}")

    try:
        W = int(region.w)
        H = int(region.h)
    except (TypeError, ValueError):
        meta["error"] = "region_not_integers"
        return _finish(False, [], "Bad region: W/H must be integers")
    if W <= 0 or H <= 0:
        meta["error"] = "region_non_positive"
        return _finish(False, [], "Bad region: W/H must be positive")

    ok, presents, reason = expand_presents(region.counts, table)
    if not ok:
        meta["error"] = "demand_parse"
        return _finish(False, [], reason)

    meta["presents"] = len(presents)
    if not presents:
        meta["solved_via"] = "empty"
        return _finish(True, [], None)

    demand_area = total_area(presents)
    meta["demand_area"] = demand_area
    if demand_area > W * H:
        meta["solved_via"] = "area_pruning"
        return _finish(False, [], "Proven infeasible (present area exceeds region)")

    deadline = _deadline_from(max_seconds)

    def _run(stage: str, fn, **kwargs) -> Optional[List[Placed]]:
        start = time.time()
        placed = fn(W, H, presents, table, deadline=deadline, **kwargs)
        attempt: Dict[str, object] = {"stage": stage, "elapsed": time.time() - start}
        stats = getattr(fn, "last_stats", None)
        if isinstance(stats, dict):
            attempt.update({k: stats.get(k) for k in ("nodes", "limit_hit", "timed_out", "reason")})
        attempt["result"] = "solved" if placed is not None else "failed"
        attempts.append(attempt)
        return placed

    def _stopped(stage: str) -> bool:
        last = attempts[-1] if attempts else {}
        return bool(last.get("stage") == stage and (last.get("timed_out") or last.get("limit_hit")))

    if strategy == "cp_sat":
        from packer.cp_sat import try_pack_cp_sat

        ok, placed, reason = try_pack_cp_sat(W, H, presents, table, max_seconds=max_seconds)
        if ok:
            meta["solved_via"] = "cp_sat"
        return _finish(ok, placed, reason)

    if strategy == "auto" and CFG.QUICK_FILL:
        from packer.constructive import quick_block_fill

        placed = quick_block_fill(W, H, presents, table)
        if placed is not None:
            meta["solved_via"] = "quick_block_fill"
            return _finish(True, placed, None)

    if strategy in ("auto", "backtracking"):
        node_limit = CFG.NODE_LIMIT if strategy == "auto" else None
        placed = _run("backtracking", pack_presents, node_limit=node_limit)
        if placed is not None:
            meta["solved_via"] = "backtracking"
            return _finish(True, placed, None)
        if not _stopped("backtracking"):
            return _finish(False, [], "Proven infeasible under current constraints")
        if strategy == "backtracking" or attempts[-1].get("timed_out"):
            return _finish(False, [], "Stopped before solution (timebox)")

    placed = _run("anchored", anchored_pack)
    if placed is not None:
        meta["solved_via"] = "anchored_rescue" if strategy == "auto" else "anchored"
        return _finish(True, placed, None)
    if _stopped("anchored"):
        return _finish(False, [], "Stopped before solution (timebox)")
    return _finish(False, [], "Proven infeasible under current constraints")


def region_fits(region: Region, table: Table, **kwargs) -> bool:
    ok, _placed, _reason = try_pack_region(region, table, **kwargs)
    return bool(ok)


__all__ = [
    "anchored_pack",
    "expand_presents",
    "pack_presents",
    "region_fits",
    "total_area",
    "try_pack_region",
]
