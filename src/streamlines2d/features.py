from __future__ import annotations

from collections.abc import Callable

import math

from .geometry import Vec2

# f(dx, dy, t) -> (vx, vy), with (dx, dy) relative to the feature origin
FeatureFunction = Callable[[float, float, float], tuple[float, float]]


def _zero(dx: float, dy: float, t: float) -> tuple[float, float]:
    return 0.0, 0.0


class FieldFeature:
    """Parametric velocity contribution anchored at (x, y) and scaled by `strength`."""

    def __init__(
        self,
        x: float,
        y: float,
        strength: float = 1.0,
        fn: FeatureFunction | None = None,
        *,
        name: str = "feature",
    ) -> None:
        self.x = float(x)
        self.y = float(y)
        self.strength = float(strength)
        self.enabled = True
        self.name = name
        self._fn: FeatureFunction = fn or _zero

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r}, origin=({self.x}, {self.y}), strength={self.strength})"

    @property
    def origin(self) -> Vec2: return Vec2(self.x, self.y)

    def set_origin(self, x: float, y: float) -> None:
        self.x = float(x)
        self.y = float(y)

    def velocity(self, x: float, y: float, t: float = 0.0) -> Vec2:
        """Contribution at world point (x, y); NaN components count as 0."""
        if not self.enabled:
            return Vec2(0.0, 0.0)
        vx, vy = self._fn(x - self.x, y - self.y, t)
        vx = float(vx)
        vy = float(vy)
        if math.isnan(vx):
            vx = 0.0
        if math.isnan(vy):
            vy = 0.0
        return Vec2(vx * self.strength, vy * self.strength)

    def clone(self) -> FieldFeature:
        return FieldFeature(self.x, self.y, self.strength, self._fn, name=self.name)


# ---------------------------
# Feature library
# ---------------------------
def vortex(
    x: float,
    y: float,
    strength: float = 1.0,
    *,
    radius: float = 250.0,
    clockwise: bool = False,
) -> FieldFeature:
    """Unit-speed rotation damped by a Gaussian of width `radius`."""
    sign = -1.0 if clockwise else 1.0

    def fn(dx: float, dy: float, t: float) -> tuple[float, float]:
        r = math.hypot(dx, dy)
        if r == 0.0:
            return 0.0, 0.0
        e = math.exp(-(r * r) / (radius * radius))
        return sign * -dy / r * e, sign * dx / r * e

    return FieldFeature(x, y, strength, fn, name="vortex")


def sink(x: float, y: float, strength: float = 1.0, *, radius: float | None = None) -> FieldFeature:
    """Radial inflow of unit speed, optionally Gaussian-damped."""

    def fn(dx: float, dy: float, t: float) -> tuple[float, float]:
        r = math.hypot(dx, dy)
        if r == 0.0:
            return 0.0, 0.0
        e = 1.0 if radius is None else math.exp(-(r * r) / (radius * radius))
        return -dx / r * e, -dy / r * e

    return FieldFeature(x, y, strength, fn, name="sink")


def source(x: float, y: float, strength: float = 1.0, *, radius: float | None = None) -> FieldFeature:
    f = sink(x, y, -strength, radius=radius)
    f.name = "source"
    return f


def shear(
    x: float,
    y: float,
    strength: float = 1.0,
    *,
    wavelength: float = 10.0,
) -> FieldFeature:
    """Unit flow along +x with a sinusoidal cross-flow sin(dx / wavelength)."""

    def fn(dx: float, dy: float, t: float) -> tuple[float, float]:
        return 1.0, math.sin(dx / wavelength)

    return FieldFeature(x, y, strength, fn, name="shear")


def uniform(vx: float, vy: float, strength: float = 1.0) -> FieldFeature:
    def fn(dx: float, dy: float, t: float) -> tuple[float, float]:
        return vx, vy

    return FieldFeature(0.0, 0.0, strength, fn, name="uniform")


def gyre(
    x: float,
    y: float,
    strength: float = 1.0,
    *,
    scale: float = 100.0,
    amplitude: float = 0.1,
    epsilon: float = 0.25,
    period: float = 10.0,
) -> FieldFeature:
    """Time-dependent double gyre on [0, 2*scale] x [0, scale] from the origin.

        f(x, t) = a(t) x^2 + b(t) x,  a = eps sin(wt),  b = 1 - 2 eps sin(wt)
        u = -pi A sin(pi f) cos(pi y)
        v =  pi A cos(pi f) sin(pi y) df/dx
    """
    omega = 2.0 * math.pi / period

    def fn(dx: float, dy: float, t: float) -> tuple[float, float]:
        px = dx / scale
        py = dy / scale
        s = epsilon * math.sin(omega * t)
        a = s
        b = 1.0 - 2.0 * s
        f = a * px * px + b * px
        dfdx = 2.0 * a * px + b
        u = -math.pi * amplitude * math.sin(math.pi * f) * math.cos(math.pi * py)
        v = math.pi * amplitude * math.cos(math.pi * f) * math.sin(math.pi * py) * dfdx
        return u, v

    return FieldFeature(x, y, strength, fn, name="gyre")
