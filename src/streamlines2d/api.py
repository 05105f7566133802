from __future__ import annotations

from dataclasses import dataclass

import math
import numpy as np

from .geometry import AABB, Vec2
from .integrators import IntegratorName


# ----------------------
# Configuration objects
# ----------------------

@dataclass(slots=True)
class FieldParameters:
    """Placement knobs. Distances are fractions of the region's smaller side.

    The field turns them into absolute thresholds on `update_parameters`.
    Loop thresholds (`loop_*`, `alpha`, `beta`) are absolute: ids, world
    units and radians respectively.
    """
    d_sep: float = 0.02
    d_test: float = 0.01
    candidate_spacing: float = 0.04
    step_size: float = 0.01
    min_length: float = 0.1
    min_step: float = 1e-4
    seed_x: float = 0.0   # in [-1, 1] across the region
    seed_y: float = 0.0
    time_step: float = 0.01
    t_end: float = 1.0
    t_span: float = 1.0
    check_bounds: bool = True
    check_sep: bool = True
    check_loops: bool = True
    tapering: bool = True
    candidate_placement: bool = True
    integrator: IntegratorName = "rk4"
    loop_sigma: int = 4
    loop_epsilon: float = 1e-20
    alpha: float = math.radians(40.0)
    beta: float = math.radians(20.0)

    def __post_init__(self) -> None:
        for name in ("d_sep", "d_test", "candidate_spacing", "step_size", "min_step"):
            val = getattr(self, name)
            if not (np.isfinite(val) and val > 0.0):
                raise ValueError(f"{name} must be positive.")
        if self.d_test > self.d_sep:
            raise ValueError("d_test must not exceed d_sep.")
        if not self.min_length >= 0.0:
            raise ValueError("min_length must be non-negative.")
        if not self.time_step >= 0.0:
            raise ValueError("time_step must be non-negative.")
        if not self.t_span >= 0.0:
            raise ValueError("t_span must be non-negative.")
        if self.loop_sigma < 0:
            raise ValueError("loop_sigma must be non-negative.")
        for name in ("alpha", "beta"):
            if not 0.0 <= getattr(self, name) <= math.pi:
                raise ValueError(f"{name} must lie in [0, pi].")
        if self.integrator not in {"euler", "rk4"}:
            raise ValueError(f"Unknown integrator: {self.integrator}")


# ----------------------
# Seeder utilities
# ----------------------

def seed_grid(bounds: AABB, n: int) -> list[Vec2]:
    """Centers of an n x n lattice over the region, bottom row first."""
    if n < 1:
        raise ValueError("n must be >= 1.")
    dx = bounds.width / n
    dy = bounds.height / n
    return [
        Vec2(bounds.left + (i + 0.5) * dx, bounds.bottom + (j + 0.5) * dy)
        for j in range(n)
        for i in range(n)
    ]


def seed_random(bounds: AABB, n: int, rng: np.random.Generator | None = None) -> list[Vec2]:
    """n points drawn uniformly from the region."""
    rng = np.random.default_rng() if rng is None else rng
    return [bounds.sample(rng) for _ in range(n)]
