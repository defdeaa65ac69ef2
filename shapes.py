# shapes.py: shape normalization and orientation sets
from __future__ import annotations

from typing import Dict, Iterable, Mapping, Sequence, Tuple, Union

from models import Cell, Shape

_ORIENTATION_CACHE: Dict[Shape, Tuple[Shape, ...]] = {}


def normalize(cells: Iterable[Cell]) -> Shape:
    """Translate ``cells`` so the smallest x and the smallest y become 0."""

    pts = [(int(x), int(y)) for x, y in cells]
    if not pts:
        raise ValueError("Bad shape: no occupied cells")
    min_x = min(x for x, _ in pts)
    min_y = min(y for _, y in pts)
    norm = frozenset((x - min_x, y - min_y) for x, y in pts)
    w = max(x for x, _ in norm) + 1
    h = max(y for _, y in norm) + 1
    return Shape(norm, w, h)


def rotate(shape: Shape) -> Shape:
    # one quarter turn
    return normalize((y, -x) for x, y in shape.cells)


def mirror(shape: Shape) -> Shape:
    return normalize((-x, y) for x, y in shape.cells)


def orientations(shape: Shape) -> Tuple[Shape, ...]:
    """Return the distinct rotations of ``shape`` followed by those of its mirror.

    The enumeration order is fixed (0°, 90°, 180°, 270°, then the same four
    turns of the mirrored shape) so search traces are reproducible.  Symmetric
    shapes collapse to fewer than eight entries.
    """

    base = normalize(shape.cells)
    cached = _ORIENTATION_CACHE.get(base)
    if cached is not None:
        return cached

    seen = set()
    out = []
    for start in (base, mirror(base)):
        current = start
        for _ in range(4):
            if current.cells not in seen:
                seen.add(current.cells)
                out.append(current)
            current = rotate(current)

    result = tuple(out)
    _ORIENTATION_CACHE[base] = result
    return result


def parse_shape_rows(rows: Sequence[str]) -> Shape:
    """Build a shape from grid rows where ``#`` is occupied and ``.`` is empty."""

    cells = []
    for y, row in enumerate(rows):
        for x, ch in enumerate(row.strip()):
            if ch == "#":
                cells.append((x, y))
            elif ch != ".":
                raise ValueError(f"Bad shape: unexpected character {ch!r}")
    return normalize(cells)


def build_orientation_table(
    shapes: Union[Mapping[int, Shape], Sequence[Shape]],
) -> Dict[int, Tuple[Shape, ...]]:
    """Map each shape index to its precomputed orientation variants."""

    if isinstance(shapes, Mapping):
        items = shapes.items()
    else:
        items = enumerate(shapes)
    return {int(idx): orientations(shape) for idx, shape in items}


__all__ = [
    "normalize",
    "rotate",
    "mirror",
    "orientations",
    "parse_shape_rows",
    "build_orientation_table",
]
