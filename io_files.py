"""Helpers for writing solver outputs to disk."""

from __future__ import annotations

import os
from typing import List, Sequence, Tuple

from config import CFG
from models import RegionResult


def _resolve_output_path(base_dir: str, configured_name: str, fallback: str) -> str:
    """Return the absolute path where an output artifact should be written."""

    name = (configured_name or "").strip() or fallback
    if os.path.isabs(name):
        return name
    return os.path.join(base_dir, name)


def write_report(results: Sequence[RegionResult], base_dir: str) -> str:
    """Write each region's verdict and placements to the configured text file."""

    path = _resolve_output_path(base_dir, CFG.REPORT_OUT, "report.txt")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    feasible = sum(1 for r in results if r.ok)
    with open(path, "w", encoding="utf-8") as f:
        f.write(f"{feasible} of {len(results)} regions fit\n")
        for n, res in enumerate(results, start=1):
            region = res.region
            counts = " ".join(str(c) for c in region.counts)
            verdict = "fits" if res.ok else "does not fit"
            f.write(f"\n#{n} {region.label}: {counts} -> {verdict}")
            if res.solved_via:
                f.write(f" [{res.solved_via}, {res.elapsed_str()}]")
            f.write("\n")
            if not res.ok:
                f.write(f"  No solution ({res.reason or 'infeasible'})\n")
                continue
            for p in res.placed:
                f.write(f"  shape {p.index} @ ({p.x},{p.y}) size ({p.shape.w}×{p.shape.h}) cells={p.shape.area}\n")
    return path


def write_layout_view_html(sections: List[Tuple[str, str, str]], base_dir: str) -> str:
    """Write rendered (title, svg, legend) sections to the configured HTML file."""

    path = _resolve_output_path(base_dir, CFG.LAYOUT_HTML, "layout_view.html")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    body = "".join(
        f"<section class='card'><h3>{title}</h3><div class='gridwrap'>{svg}</div>"
        f"<ul>{legend}</ul></section>"
        for title, svg, legend in sections
    )
    with open(path, "w", encoding="utf-8") as vf:
        vf.write(
            f"""<!doctype html>
<html><head><meta charset='utf-8'><title>Layout View</title>
<style>.swatch{{display:inline-block;width:12px;height:12px;margin-right:6px}}</style></head>
<body class='container'>
<h1>Layout View</h1>
{body or "<p>No feasible regions</p>"}
</body></html>"""
        )
    return path


__all__ = ["write_report", "write_layout_view_html"]
