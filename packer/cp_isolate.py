# packer/cp_isolate.py
import multiprocessing as mp
import queue
import time
import traceback
from typing import Dict, List, Optional, Sequence, Tuple

from models import Placed, Region, Shape


# Worker must be top-level (picklable under spawn)
def _solve_worker(q, region: Region, table: Dict[int, Sequence[Shape]], strategy: Optional[str]):
    try:
        from packer.search import try_pack_region  # import inside child
        ok, placed, reason = try_pack_region(region, table, strategy=strategy)
        meta = getattr(try_pack_region, "last_meta", None)
        solved_via = meta.get("solved_via") if isinstance(meta, dict) else None
        q.put(("ok", ok, placed, reason, solved_via))
    except MemoryError:
        q.put(("err", False, [], "Child ran out of memory", None))
    except Exception as e:
        q.put(("exc", False, [], f"{e}\n{traceback.format_exc()}", None))


def _terminate(p, grace: float = 2.0) -> None:
    p.terminate()
    p.join(grace)
    if p.is_alive():
        p.kill()
        p.join(grace)


def run_region_isolated(
    region: Region,
    table: Dict[int, Sequence[Shape]],
    max_seconds: float,
    *,
    strategy: Optional[str] = None,
    poll: float = 0.05,
) -> Tuple[bool, List[Placed], Optional[str], Optional[str], Optional[str]]:
    """
    Returns (ok, placed, reason, solved_via, crash_note).
    crash_note is non-empty only if the child crashed/was killed/timed out.
    """
    ctx = mp.get_context("spawn")  # safest across platforms
    q = ctx.Queue()
    p = ctx.Process(target=_solve_worker, args=(q, region, dict(table), strategy))
    p.daemon = True
    p.start()

    deadline = time.time() + float(max_seconds)
    # Read before join so a large result cannot block the child on a full pipe.
    while True:
        try:
            tag, ok, placed, reason, solved_via = q.get(timeout=poll)
            break
        except queue.Empty:
            pass
        if not p.is_alive():
            try:
                tag, ok, placed, reason, solved_via = q.get(timeout=0.5)
                break
            except queue.Empty:
                return (
                    False, [], f"Stopped before solution (child exit {p.exitcode})",
                    None, "child crashed",
                )
        if time.time() >= deadline:
            _terminate(p)
            return False, [], "Stopped before solution (timebox)", None, "killed: timeout"

    p.join(2.0)
    if p.is_alive():
        _terminate(p)

    if tag == "ok":
        return ok, placed, reason, solved_via, None
    return False, [], reason, None, "child failed"
