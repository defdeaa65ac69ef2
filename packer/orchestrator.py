# Orchestrator: evaluate every region of a puzzle and count the feasible ones
from __future__ import annotations

import multiprocessing as mp
import time
import traceback
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from config import CFG
from demand_parser import parse_puzzle
from models import Region, RegionResult, Shape
from progress import (
    log_attempt_detail, log_warning, record_region, reset, set_done,
    set_message, set_region, start_timer,
)
from packer.cp_isolate import run_region_isolated
from packer.search import try_pack_region
from shapes import build_orientation_table

Table = Dict[int, Tuple[Shape, ...]]


# ---------- helpers ----------

def _region_tag(n: int, region: Region) -> str:
    return f"{region.label} #{n + 1}"


def _check_region(region: Region, table: Table, strategy: Optional[str]) -> RegionResult:
    """Run one region in this process; top-level so pool workers can pickle it."""

    t0 = time.time()
    try:
        ok, placed, reason = try_pack_region(region, table, strategy=strategy)
    except RecursionError:
        return RegionResult(region, False, [], "Stopped before solution (recursion limit)",
                            None, time.time() - t0)
    meta = getattr(try_pack_region, "last_meta", None)
    solved_via = meta.get("solved_via") if isinstance(meta, dict) else None
    return RegionResult(region, bool(ok), list(placed), reason, solved_via, time.time() - t0)


def _check_region_isolated(
    region: Region, table: Table, strategy: Optional[str], seconds: float,
) -> RegionResult:
    t0 = time.time()
    ok, placed, reason, solved_via, crash_note = run_region_isolated(
        region, table, seconds, strategy=strategy,
    )
    if crash_note:
        log_warning("Isolated region stopped", region=region.label, note=crash_note)
    return RegionResult(region, bool(ok), list(placed), reason, solved_via, time.time() - t0)


def _record(n: int, result: RegionResult) -> None:
    set_region(_region_tag(n, result.region))
    log_attempt_detail(
        "Region verdict",
        region=result.region.label,
        presents=result.region.present_count(),
        ok=result.ok,
        strategy=result.solved_via,
        elapsed=f"{result.elapsed:.3f}s",
    )
    if result.reason and result.reason.startswith("Bad"):
        log_warning("Region rejected", region=result.region.label, reason=result.reason)
    record_region(result.ok, reason=result.reason, solved_via=result.solved_via)


# ---------- public entrypoints ----------

def solve_regions(
    shapes: Mapping[int, Shape],
    regions: Sequence[Region],
    *,
    workers: Optional[int] = None,
    region_seconds: Optional[float] = None,
    strategy: Optional[str] = None,
) -> List[RegionResult]:
    """
    Evaluate each region and return one RegionResult per region, in order.

    ``workers > 1`` spreads regions over a spawn-context process pool;
    ``region_seconds > 0`` runs each region in its own child process that is
    killed when the timebox expires.
    """
    workers = CFG.WORKERS if workers is None else int(workers)
    region_seconds = CFG.REGION_SECONDS if region_seconds is None else float(region_seconds)

    table = build_orientation_table(shapes)
    reset(total=len(regions))
    start_timer()
    log_attempt_detail(
        "Run configuration",
        PP_STRATEGY=strategy or CFG.STRATEGY,
        PP_NODE_LIMIT=CFG.NODE_LIMIT,
        PP_WORKERS=workers,
        PP_REGION_SECONDS=region_seconds,
        shapes=len(table),
        regions=len(regions),
    )

    results: List[RegionResult] = []
    try:
        if region_seconds > 0:
            for n, region in enumerate(regions):
                set_region(_region_tag(n, region))
                result = _check_region_isolated(region, table, strategy, region_seconds)
                _record(n, result)
                results.append(result)
        elif workers > 1 and len(regions) > 1:
            ctx = mp.get_context("spawn")
            jobs = [(region, table, strategy) for region in regions]
            with ctx.Pool(processes=min(workers, len(regions))) as pool:
                for n, result in enumerate(pool.starmap(_check_region, jobs)):
                    _record(n, result)
                    results.append(result)
        else:
            for n, region in enumerate(regions):
                set_region(_region_tag(n, region))
                result = _check_region(region, table, strategy)
                _record(n, result)
                results.append(result)
    except Exception as exc:
        set_message(f"{type(exc).__name__}: {exc}")
        log_warning("Run failed", error=type(exc).__name__, trace=traceback.format_exc(limit=3))
        set_done(False)
        raise

    feasible = count_feasible(results)
    set_done(True, message=f"{feasible} of {len(results)} regions fit")
    return results


def count_feasible(results: Sequence[RegionResult]) -> int:
    return sum(1 for r in results if r.ok)


def solve_puzzle(text: str, **kwargs) -> Tuple[int, List[RegionResult]]:
    """Parse ``text`` and return (feasible region count, per-region results)."""

    shapes, regions = parse_puzzle(text)
    results = solve_regions(shapes, regions, **kwargs)
    return count_feasible(results), results


__all__ = ["count_feasible", "solve_puzzle", "solve_regions"]
