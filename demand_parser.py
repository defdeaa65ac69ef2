# demand_parser.py
import re
from typing import Dict, List, Optional, Tuple

from models import Region, Shape
from shapes import parse_shape_rows

_HEADER_RE = re.compile(r"^\s*(?P<idx>\d+)\s*:\s*$")
_REGION_RE = re.compile(
    r"^\s*(?P<w>\d+)\s*[x×]\s*(?P<h>\d+)\s*:(?P<counts>.*)$",
    re.IGNORECASE,
)
_ROW_RE = re.compile(r"^[#.]+$")


class PuzzleFormatError(ValueError):
    def __init__(self, message: str, line_no: Optional[int] = None):
        self.line_no = line_no
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)


def parse_region_line(line: str, line_no: Optional[int] = None) -> Region:
    """Parse ``WxH: c0 c1 ...`` into a :class:`Region`."""

    m = _REGION_RE.match(line or "")
    if not m:
        raise PuzzleFormatError(f"not a region line: {line.strip()!r}", line_no)
    w = int(m.group("w"))
    h = int(m.group("h"))
    if w <= 0 or h <= 0:
        raise PuzzleFormatError(f"region must have positive size, got {w}x{h}", line_no)
    counts = []
    for tok in m.group("counts").split():
        try:
            counts.append(int(tok))
        except ValueError:
            raise PuzzleFormatError(f"bad count {tok!r}", line_no) from None
    if any(c < 0 for c in counts):
        raise PuzzleFormatError("counts must be non-negative", line_no)
    return Region(w, h, tuple(counts), f"{w}x{h}")


def parse_puzzle(text: str) -> Tuple[Dict[int, Shape], List[Region]]:
    """
    Parse the puzzle notation into ({index: Shape}, [Region, ...]).

    Shape blocks are an ``N:`` header followed by ``#``/``.`` rows; region
    lines are ``WxH: counts...``.  Blank lines separate blocks.
    """
    shapes: Dict[int, Shape] = {}
    regions: List[Region] = []

    current: Optional[int] = None
    header_line = 0
    rows: List[str] = []

    def _close_shape() -> None:
        nonlocal current, rows
        if current is None:
            return
        if not rows:
            raise PuzzleFormatError(f"shape {current} has no rows", header_line)
        try:
            shapes[current] = parse_shape_rows(rows)
        except ValueError as exc:
            raise PuzzleFormatError(f"shape {current}: {exc}", header_line) from None
        current = None
        rows = []

    for line_no, raw in enumerate((text or "").splitlines(), start=1):
        line = raw.strip()
        if not line:
            _close_shape()
            continue

        m = _HEADER_RE.match(line)
        if m:
            _close_shape()
            idx = int(m.group("idx"))
            if idx in shapes:
                raise PuzzleFormatError(f"duplicate shape index {idx}", line_no)
            current = idx
            header_line = line_no
            continue

        if _REGION_RE.match(line):
            _close_shape()
            regions.append(parse_region_line(line, line_no))
            continue

        if current is not None and _ROW_RE.match(line):
            rows.append(line)
            continue

        raise PuzzleFormatError(f"unexpected line {line!r}", line_no)

    _close_shape()
    return shapes, regions


__all__ = ["PuzzleFormatError", "parse_puzzle", "parse_region_line"]
