from __future__ import annotations

from dataclasses import dataclass

import math
import numpy as np


# ---------------------------
# Vectors
# ---------------------------
@dataclass(slots=True)
class Vec2:
    """2D vector / point with value semantics."""
    x: float
    y: float

    def __add__(self, other: Vec2) -> Vec2:
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2) -> Vec2:
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, k: float) -> Vec2:
        return Vec2(self.x * k, self.y * k)

    __rmul__ = __mul__

    def __neg__(self) -> Vec2:
        return Vec2(-self.x, -self.y)

    def __iter__(self):
        yield self.x
        yield self.y

    def copy(self) -> Vec2:
        return Vec2(self.x, self.y)

    def dot(self, other: Vec2) -> float:
        return self.x * other.x + self.y * other.y

    def dotn(self, other: Vec2) -> float:
        """Dot product of the normalized vectors; 0 if either one is zero."""
        den = math.sqrt(self.squared_magnitude() * other.squared_magnitude())
        if den == 0.0:
            return 0.0
        return self.dot(other) / den

    def squared_magnitude(self) -> float:
        return self.x * self.x + self.y * self.y

    def magnitude(self) -> float:
        return math.hypot(self.x, self.y)

    def normalized(self) -> Vec2:
        """Unit vector in the same direction. A zero vector stays zero."""
        len2 = self.x * self.x + self.y * self.y
        if len2 > 0.0:
            inv = 1.0 / math.sqrt(len2)
            return Vec2(self.x * inv, self.y * inv)
        return Vec2(self.x, self.y)

    def perpendicular(self) -> Vec2:
        """Rotate by +90 degrees."""
        return Vec2(-self.y, self.x)

    def distance(self, other: Vec2) -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def squared_distance(self, other: Vec2) -> float:
        dx = other.x - self.x
        dy = other.y - self.y
        return dx * dx + dy * dy

    def lerp(self, other: Vec2, t: float) -> Vec2:
        return Vec2(self.x + t * (other.x - self.x), self.y + t * (other.y - self.y))


# ---------------------------
# Regions
# ---------------------------
@dataclass(slots=True)
class AABB:
    """Axis-aligned box centered at (x, y)."""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_bounds(cls, xmin: float, xmax: float, ymin: float, ymax: float) -> AABB:
        if not (xmax >= xmin and ymax >= ymin):
            raise ValueError("bounds must satisfy xmin <= xmax and ymin <= ymax.")
        return cls(0.5 * (xmin + xmax), 0.5 * (ymin + ymax), xmax - xmin, ymax - ymin)

    @property
    def left(self) -> float: return self.x - self.width / 2

    @property
    def right(self) -> float: return self.x + self.width / 2

    @property
    def top(self) -> float: return self.y + self.height / 2

    @property
    def bottom(self) -> float: return self.y - self.height / 2

    def as_domain(self) -> tuple[float, float, float, float]:
        """(xmin, xmax, ymin, ymax)"""
        return (self.left, self.right, self.bottom, self.top)

    def contains(self, point: Vec2) -> bool:
        """Inclusive containment test."""
        return (abs(point.x - self.x) <= self.width / 2
                and abs(point.y - self.y) <= self.height / 2)

    def sample(self, rng: np.random.Generator | None = None) -> Vec2:
        """Point drawn uniformly from the region."""
        rng = np.random.default_rng() if rng is None else rng
        return Vec2(
            float(rng.uniform(self.left, self.right)),
            float(rng.uniform(self.bottom, self.top)),
        )
