import random
from typing import Dict, List

from models import Placed

CELL_PX = 24


def _color(index: int) -> str:
    rng = random.Random(index * 2654435761 & 0xFFFFFFFF)
    r = rng.randint(40, 200)
    g = rng.randint(40, 200)
    b = rng.randint(40, 200)
    return f"rgb({r},{g},{b})"


def render_result(placed: List[Placed], Wc: int, Hc: int):
    palette: Dict[int, str] = {}
    for p in placed:
        palette.setdefault(p.index, _color(p.index))

    svg_w = Wc * CELL_PX + 2
    svg_h = Hc * CELL_PX + 2

    cells = []
    for n, p in enumerate(placed):
        for cx, cy in p.cells():
            x = cx * CELL_PX + 1
            y = cy * CELL_PX + 1
            cells.append(
                f'<rect x="{x}" y="{y}" width="{CELL_PX}" height="{CELL_PX}" fill="{palette[p.index]}" '
                f'stroke="black" stroke-width="0.5"><title>present {n} (shape {p.index})</title></rect>'
            )
        # label the first occupied cell; the bounding-box corner may be empty
        lx, ly = next(p.cells())
        cells.append(
            f'<text x="{lx * CELL_PX + 4}" y="{ly * CELL_PX + 14}" font-size="10" fill="black">{n}</text>'
        )
    grid = f'<rect x="1" y="1" width="{svg_w-2}" height="{svg_h-2}" fill="none" stroke="black" stroke-width="2"/>'
    svg = (
        f'<svg class="layout-svg" xmlns="http://www.w3.org/2000/svg" '
        f'width="{svg_w}" height="{svg_h}" '
        f'viewBox="0 0 {svg_w} {svg_h}" preserveAspectRatio="xMinYMin meet">'
        f'{grid}{"".join(cells)}</svg>'
    )

    legend = "".join(
        f"<li><span class='swatch' style='background:{c}'></span>shape {n}</li>"
        for n, c in sorted(palette.items())
    )
    return svg, legend
