from __future__ import annotations

from typing import Any, Generic, TypeVar
from collections.abc import Iterator

import math

from .geometry import AABB, Vec2

T = TypeVar("T")


class Bin(Generic[T]):
    """One grid cell: its items, their grid ids and the precomputed neighborhood."""

    __slots__ = ("bounds", "items", "ids", "neighbors", "min_id", "max_id")

    def __init__(self, bounds: AABB) -> None:
        self.bounds = bounds
        self.items: list[T] = []
        self.ids: list[int] = []
        self.neighbors: list[Bin[T]] = []
        self.min_id: float = math.inf
        self.max_id: float = -math.inf

    def __len__(self) -> int:
        return len(self.items)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(items={len(self.items)}, range=({self.min_id}, {self.max_id}))"

    @property
    def id_range(self) -> tuple[float, float]:
        return (self.min_id, self.max_id)

    def clear(self) -> None:
        self.items = []
        self.ids = []
        self.min_id = math.inf
        self.max_id = -math.inf


class BinGrid(Generic[T]):
    """Uniform n x n spatial index over a region.

    Each bin knows its Moore neighborhood (itself first), so radius queries
    scan at most 9 bins. Queries are exact as long as the radius does not
    exceed one cell.
    """

    def __init__(self, bounds: AABB, subdivisions: int) -> None:
        if subdivisions < 1:
            raise ValueError("subdivisions must be >= 1.")
        if not (bounds.width > 0.0 and bounds.height > 0.0):
            raise ValueError("bounds must have positive width and height.")
        self.bounds = bounds
        self.subdivisions = int(subdivisions)
        self._count = 0

        n = self.subdivisions
        bw = bounds.width / n
        bh = bounds.height / n
        left, bottom = bounds.left, bounds.bottom
        # row-major, j = 0 is the bottom row
        self._bins: list[Bin[T]] = [
            Bin(AABB(left + (i + 0.5) * bw, bottom + (j + 0.5) * bh, bw, bh))
            for j in range(n)
            for i in range(n)
        ]
        for j in range(n):
            for i in range(n):
                b = self._bins[j * n + i]
                b.neighbors.append(b)
                for dj in (-1, 0, 1):
                    for di in (-1, 0, 1):
                        if di == 0 and dj == 0:
                            continue
                        ii, jj = i + di, j + dj
                        if 0 <= ii < n and 0 <= jj < n:
                            b.neighbors.append(self._bins[jj * n + ii])

    # -------- properties --------
    @property
    def bins(self) -> tuple[Bin[T], ...]: return tuple(self._bins)

    @property
    def next_id(self) -> int:
        """Id the next successful insert will receive."""
        return self._count

    @property
    def cell_size(self) -> tuple[float, float]:
        return (self.bounds.width / self.subdivisions, self.bounds.height / self.subdivisions)

    def __len__(self) -> int:
        return len(self._bins)

    def __iter__(self) -> Iterator[Bin[T]]:
        return iter(self._bins)

    def item_count(self) -> int:
        return sum(len(b.items) for b in self._bins)

    # -------- addressing --------
    def index_of(self, x: float, y: float) -> tuple[int, int]:
        """Cell indices (i, j) for world coordinates, clamped to the grid."""
        n = self.subdivisions
        i = int(math.floor((x - self.bounds.left) / self.bounds.width * n))
        j = int(math.floor((y - self.bounds.bottom) / self.bounds.height * n))
        return min(max(i, 0), n - 1), min(max(j, 0), n - 1)

    def get(self, i: int, j: int) -> Bin[T]:
        return self._bins[j * self.subdivisions + i]

    def get_bin_at(self, point: Vec2) -> Bin[T] | None:
        if not self.bounds.contains(point):
            return None
        i, j = self.index_of(point.x, point.y)
        return self.get(i, j)

    # -------- mutation --------
    def insert(self, item: Any) -> bool:
        """Insert a point-like item; False if it lies outside the region."""
        b = self.get_bin_at(item)
        if b is None:
            return False
        uid = self._count
        self._count += 1
        b.items.append(item)
        b.ids.append(uid)
        b.min_id = min(b.min_id, uid)
        b.max_id = max(b.max_id, uid)
        return True

    def insert_at(self, i: int, j: int, item: T) -> bool:
        """Insert by cell index, without id bookkeeping."""
        n = self.subdivisions
        if not (0 <= i < n and 0 <= j < n):
            return False
        self.get(i, j).items.append(item)
        return True

    def clear(self) -> None:
        """Empty every bin. Topology and the id counter are kept."""
        for b in self._bins:
            b.clear()

    # -------- queries --------
    def has_point_within_radius(self, point: Vec2, radius: float) -> bool:
        b = self.get_bin_at(point)
        if b is None:
            return False
        r2 = radius * radius
        for cell in b.neighbors:
            for p in cell.items:
                dx = p.x - point.x
                dy = p.y - point.y
                if dx * dx + dy * dy < r2:
                    return True
        return False

    def has_vertex_within_radius(self, point: Vec2, radius: float, exclude: int | None = None) -> bool:
        """Like has_point_within_radius, ignoring vertices of streamline `exclude`."""
        b = self.get_bin_at(point)
        if b is None:
            return False
        r2 = radius * radius
        for cell in b.neighbors:
            for p in cell.items:
                if exclude is not None and p.streamline_id == exclude:
                    continue
                dx = p.x - point.x
                dy = p.y - point.y
                if dx * dx + dy * dy < r2:
                    return True
        return False

    def min_distance(self, point: Vec2, exclude: int | None = None) -> float:
        """Distance to the nearest item in the neighborhood (inf if none)."""
        b = self.get_bin_at(point)
        if b is None:
            return math.inf
        best = math.inf
        for cell in b.neighbors:
            for p in cell.items:
                if exclude is not None and p.streamline_id == exclude:
                    continue
                dx = p.x - point.x
                dy = p.y - point.y
                d2 = dx * dx + dy * dy
                if d2 < best:
                    best = d2
        return math.sqrt(best)
