from dataclasses import dataclass, field
from typing import FrozenSet, Iterator, List, Optional, Tuple

Cell = Tuple[int, int]


@dataclass(frozen=True)
class Shape:
    cells: FrozenSet[Cell]
    w: int
    h: int

    @property
    def area(self) -> int:
        return len(self.cells)

    def rows(self) -> List[str]:
        return [
            "".join("#" if (x, y) in self.cells else "." for x in range(self.w))
            for y in range(self.h)
        ]


@dataclass(frozen=True)
class Region:
    w: int
    h: int
    counts: Tuple[int, ...]
    name: str = ""

    @property
    def area(self) -> int:
        return self.w * self.h

    @property
    def label(self) -> str:
        return self.name or f"{self.w}x{self.h}"

    def present_count(self) -> int:
        return sum(c for c in self.counts if c > 0)


@dataclass(frozen=True)
class Present:
    index: int
    area: int


@dataclass
class Placed:
    x: int
    y: int
    index: int
    shape: Shape

    def cells(self) -> Iterator[Cell]:
        for dx, dy in sorted(self.shape.cells, key=lambda c: (c[1], c[0])):
            yield (self.x + dx, self.y + dy)


@dataclass
class RegionResult:
    region: Region
    ok: bool
    placed: List[Placed] = field(default_factory=list)
    reason: Optional[str] = None
    solved_via: Optional[str] = None
    elapsed: float = 0.0

    def elapsed_str(self) -> str:
        if self.elapsed < 60:
            return f"{self.elapsed:.2f}s"
        return f"{int(self.elapsed // 60)}m {int(self.elapsed % 60)}s"
