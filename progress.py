from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

from config import CFG

# ------------------------------
# Thread-safe global progress state
# ------------------------------

PROGRESS_LOCK = threading.Lock()


def _log_file_path() -> Optional[Path]:
    configured = (CFG.ATTEMPT_LOG or "").strip()
    if not configured:
        return None
    path = Path(configured)
    if not path.is_absolute():
        path = Path(__file__).resolve().parent / path
    return path


def _init_logger() -> logging.Logger:
    logger = logging.getLogger("packer.attempt_log")
    if logger.handlers:
        return logger

    log_path = _log_file_path()
    if log_path is None:
        return logger
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    except OSError:
        # An unwritable log location leaves the logger silent.
        logger.handlers.clear()
    return logger


ATTEMPT_LOGGER = _init_logger()


def _log_enabled() -> bool:
    return bool(ATTEMPT_LOGGER.handlers)


def _fmt_seconds(seconds: Optional[float]) -> Optional[str]:
    if seconds is None:
        return None
    try:
        return f"{float(seconds):.2f}s"
    except (TypeError, ValueError):
        return None


def _emit_log(event: str, level: int = logging.INFO, **fields: Any) -> None:
    if not _log_enabled():
        return
    extras = [
        f"{key}={value}"
        for key, value in fields.items()
        if value is not None and value != ""
    ]
    if extras:
        ATTEMPT_LOGGER.log(level, "%s | %s", event, " ".join(extras))
    else:
        ATTEMPT_LOGGER.log(level, "%s", event)


def log_attempt_detail(event: str, **fields: Any) -> None:
    _emit_log(event, **fields)


def log_warning(event: str, **fields: Any) -> None:
    _emit_log(event, logging.WARNING, **fields)


# Run state; the CLI prints its summary line when a run ends
PROGRESS: Dict[str, Any] = {
    "status": "Idle",          # Idle | Solving | Solved | Error
    "regions_total": 0,
    "regions_done": 0,
    "feasible": 0,
    "elapsed_start": None,     # t0 (float) when solving started
    "elapsed": 0.0,            # seconds snapshot
    "message": "",
    "run_id": 0,               # monotonically increasing identifier
}

LOG_STATE: Dict[str, Any] = {
    "run_start": None,
    "region": "",
    "region_start": None,
}


# ------------------------------
# Helpers
# ------------------------------

def _now() -> float:
    return time.time()


def _fmt_elapsed(seconds: float) -> str:
    seconds = max(0.0, float(seconds))
    if seconds < 60:
        return f"{int(seconds)}s"
    m, s = divmod(int(seconds), 60)
    if m < 60:
        return f"{m}m {s}s"
    h, m = divmod(m, 60)
    return f"{h}h {m}m"


def _touch_elapsed_locked() -> None:
    t0 = PROGRESS.get("elapsed_start")
    if t0 is not None:
        PROGRESS["elapsed"] = _now() - float(t0)


def _finalize_region_locked(now: float, *, ok: Optional[bool] = None, reason: Optional[str] = None) -> None:
    region = LOG_STATE.get("region")
    if not region:
        return
    start = LOG_STATE.get("region_start")
    duration = None
    if isinstance(start, (int, float)):
        duration = max(0.0, now - float(start))
    _emit_log(
        "Region finished",
        region=region,
        ok=ok,
        duration=_fmt_seconds(duration),
        reason=reason,
    )
    LOG_STATE["region"] = ""
    LOG_STATE["region_start"] = None


# ------------------------------
# Setters
# ------------------------------

def reset(total: int = 0) -> None:
    with PROGRESS_LOCK:
        now = _now()
        _finalize_region_locked(now, reason="reset")
        new_run_id = int(PROGRESS.get("run_id", 0)) + 1
        PROGRESS.update({
            "status": "Idle",
            "regions_total": max(0, int(total)),
            "regions_done": 0,
            "feasible": 0,
            "elapsed_start": None,
            "elapsed": 0.0,
            "message": "",
            "run_id": new_run_id,
        })
        LOG_STATE.update({"run_start": None, "region": "", "region_start": None})
        _emit_log("Progress reset", run_id=new_run_id, regions=PROGRESS["regions_total"])


def start_timer() -> None:
    with PROGRESS_LOCK:
        now = _now()
        PROGRESS["elapsed_start"] = now
        PROGRESS["elapsed"] = 0.0
        PROGRESS["status"] = "Solving"
        LOG_STATE["run_start"] = now
        _emit_log("Run timer started")


def set_message(msg: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["message"] = "" if msg is None else str(msg)


def set_region(label: Any) -> None:
    with PROGRESS_LOCK:
        label_str = "" if label is None else str(label)
        if label_str == LOG_STATE.get("region"):
            return
        now = _now()
        if LOG_STATE.get("region"):
            _finalize_region_locked(now, reason="switch")
        LOG_STATE["region"] = label_str
        LOG_STATE["region_start"] = now if label_str else None
        if label_str:
            _emit_log("Region started", region=label_str)


def record_region(ok: bool, *, reason: Optional[str] = None, solved_via: Optional[str] = None) -> None:
    """Count one finished region and close its attempt log entry."""

    with PROGRESS_LOCK:
        now = _now()
        PROGRESS["regions_done"] = int(PROGRESS["regions_done"]) + 1
        if ok:
            PROGRESS["feasible"] = int(PROGRESS["feasible"]) + 1
        _touch_elapsed_locked()
        if solved_via:
            _emit_log("Region solved via", region=LOG_STATE.get("region"), strategy=solved_via)
        _finalize_region_locked(now, ok=bool(ok), reason=reason)


def set_done(ok: Any = None, *, message: Any = None) -> None:
    with PROGRESS_LOCK:
        _touch_elapsed_locked()
        now = _now()
        _finalize_region_locked(now, reason="run_complete")
        if ok is None:
            ok = PROGRESS.get("status") != "Error"
        PROGRESS["status"] = "Solved" if ok else "Error"
        if message is not None:
            PROGRESS["message"] = str(message)
        run_start = LOG_STATE.get("run_start")
        total = max(0.0, now - float(run_start)) if isinstance(run_start, (int, float)) else None
        LOG_STATE["run_start"] = None
        _emit_log(
            "Run finished",
            status=PROGRESS["status"],
            feasible=PROGRESS["feasible"],
            regions=PROGRESS["regions_done"],
            duration=_fmt_seconds(total),
            message=PROGRESS.get("message"),
        )


# ------------------------------
# Snapshots
# ------------------------------

def snapshot() -> Dict[str, Any]:
    with PROGRESS_LOCK:
        _touch_elapsed_locked()
        snap = {k: v for k, v in PROGRESS.items() if k != "elapsed_start"}
        snap["elapsed_str"] = _fmt_elapsed(PROGRESS["elapsed"])
        return snap


def summary_line() -> str:
    """One-line account of the latest run, e.g. ``run 3 Solved: 2 of 3 regions fit in 4s``."""

    snap = snapshot()
    done = f"{snap['feasible']} of {snap['regions_done']} regions fit"
    if snap["regions_done"] < snap["regions_total"]:
        done += f" ({snap['regions_total'] - snap['regions_done']} unchecked)"
    return f"run {snap['run_id']} {snap['status']}: {done} in {snap['elapsed_str']}"


__all__ = [
    "log_attempt_detail",
    "log_warning",
    "reset",
    "start_timer",
    "set_message",
    "set_region",
    "record_region",
    "set_done",
    "snapshot",
    "summary_line",
]
