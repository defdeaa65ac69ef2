# packer/constructive.py
from typing import List, Mapping, Optional, Sequence

from models import Placed, Present, Shape
from shapes import rotate


def quick_block_fill(
    W: int,
    H: int,
    presents: Sequence[Present],
    table: Mapping[int, Sequence[Shape]],
) -> Optional[List[Placed]]:
    """
    Block constructive solver.

    Cut the region into equal blocks the size of the largest bounding box among
    the required shapes.  When there are at least as many blocks as presents,
    every present gets a block of its own and no two can overlap.  Both the
    upright layout and the one with every shape turned a quarter are tried.

    Returns the placements, or None if neither layout has enough blocks.  A
    None result says nothing about feasibility.
    """
    if not presents:
        return []

    upright = {p.index: table[p.index][0] for p in presents}
    turned = {idx: rotate(shape) for idx, shape in upright.items()}

    for chosen in (upright, turned):
        bw = max(s.w for s in chosen.values())
        bh = max(s.h for s in chosen.values())
        cols = W // bw
        rows = H // bh
        if cols * rows < len(presents):
            continue
        placed: List[Placed] = []
        for n, present in enumerate(presents):
            row, col = divmod(n, cols)
            placed.append(Placed(col * bw, row * bh, present.index, chosen[present.index]))
        return placed

    return None
