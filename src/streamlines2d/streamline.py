from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, Literal
from collections.abc import Iterator

import logging
import math
import numpy as np
from numpy.typing import NDArray

from .geometry import Vec2

if TYPE_CHECKING:
    from .field import Field

logger = logging.getLogger(__name__)

# Hard cap on integration steps per direction. Long curves are truncated.
MAX_STEPS: Final = 1000

FORWARD: Final = 1
BACKWARD: Final = -1

StopReason = Literal["stagnated", "bounds", "separation", "loop", "max_steps"]
LoopKind = Literal["closed", "spiral"]


@dataclass(slots=True, eq=False)
class Vertex(Vec2):
    """Streamline sample.

    `streamline_id` is a handle to the owning curve, `uid` its insertion id in
    the per-curve loop grid and `arc_length` the distance along the curve.
    """
    streamline_id: int = -1
    uid: int = -1
    arc_length: float = 0.0
    v: Vec2 = field(default_factory=lambda: Vec2(0.0, 0.0))
    t: float = 0.0
    thickness: float = 1.0


# ---------------------------
# Loop / spiral detection
# ---------------------------
def detect_loop(fld: Field, p1: Vertex, p0: Vertex, direction: int) -> LoopKind | None:
    """Classify the step p1 -> p0 against earlier samples of the same curve.

    Candidates come from the loop grid around p1, skipping samples whose id
    lies within `loop_sigma` of the one p0 would receive. A candidate closer
    than `d_test` whose heading agrees with the step (within alpha) and that
    is not strictly behind the step closes the curve or makes it spiral;
    either way tracing must stop.
    """
    grid = fld.loop_grid
    b = grid.get_bin_at(p1)
    if b is None:
        return None
    cur_id = grid.next_id
    sigma = fld.loop_sigma
    cos_alpha = math.cos(fld.alpha)
    cos_beta = math.cos(fld.beta)
    v1 = (p0 - p1) * direction

    for cell in b.neighbors:
        if not cell.items:
            continue
        # every sample in this cell is too recent
        if cur_id - cell.min_id < sigma:
            continue
        for uid, q in zip(cell.ids, cell.items):
            if abs(uid - cur_id) < sigma:
                continue
            d = q.distance(p0)
            if d >= fld.d_test:
                continue
            if d <= fld.loop_epsilon:
                return "closed"
            if q.v.dotn(v1) < cos_alpha:
                continue
            u0 = (p0 - q) * direction
            u1 = (p1 - q) * direction
            if u0.dot(v1) >= 0.0 and u1.dot(v1) >= 0.0:
                continue
            if abs(u0.dotn(p0.v)) > cos_beta:
                return "closed"
            return "spiral"
    return None


# ---------------------------
# Curves
# ---------------------------
class Streamline:
    """Integral curve through a seed, traced forward then backward.

    The curve is computed once in the constructor. Vertices run from the far
    backward end to the far forward end; the seed itself sits implicitly
    between the two halves.
    """

    def __init__(self, seed: Vec2, fld: Field, *, t: float = 0.0) -> None:
        self.uid: int = fld.new_streamline_id()
        self.seed = Vertex(seed.x, seed.y, streamline_id=self.uid, t=float(t))
        self.seed.v = fld.vec_at(seed.x, seed.y, self.seed.t)
        self.vertices: list[Vertex] = []
        self.arc_length: float = 0.0
        self.forward_stop: StopReason | None = None
        self.backward_stop: StopReason | None = None
        fld.loop_grid.clear()
        self._compute(fld)

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(id={self.uid}, vertices={len(self.vertices)}, "
                f"arc_length={self.arc_length:.4g})")

    def __len__(self) -> int:
        return len(self.vertices)

    def __iter__(self) -> Iterator[Vertex]:
        return iter(self.vertices)

    @property
    def truncated(self) -> bool:
        """True if a direction hit MAX_STEPS rather than a natural stop."""
        return "max_steps" in (self.forward_stop, self.backward_stop)

    def to_array(self) -> NDArray[np.float64]:
        """Vertex positions as an (N,2) array."""
        return np.array([(v.x, v.y) for v in self.vertices], dtype=np.float64).reshape(-1, 2)

    def _compute(self, fld: Field) -> None:
        fv, f_len, self.forward_stop = self._trace(fld, FORWARD)
        bv, b_len, self.backward_stop = self._trace(fld, BACKWARD)
        self.arc_length = f_len + b_len
        for v in reversed(bv):
            v.arc_length = b_len - v.arc_length
            self.vertices.append(v)
        for v in fv:
            v.arc_length += b_len
            self.vertices.append(v)
        if self.truncated:
            logger.debug("Streamline %d truncated at %d steps per direction.", self.uid, MAX_STEPS)

    def _trace(
        self,
        fld: Field,
        direction: int,
        *,
        unsteady: bool = False,
    ) -> tuple[list[Vertex], float, StopReason]:
        """Integrate one direction; returns (vertices, arc length, stop reason)."""
        integrator = fld.integrator
        advance = integrator.step if direction == FORWARD else integrator.step_reverse
        dt = fld.time_step if unsteady else 0.0
        grid = fld.loop_grid

        vertices: list[Vertex] = []
        arc = 0.0
        prev = self.seed
        t = self.seed.t
        for _ in range(MAX_STEPS):
            p = advance(prev.x, prev.y, t, dt)
            t_next = t + dt
            cur = Vertex(p.x, p.y, streamline_id=self.uid, t=t_next)
            cur.v = fld.vec_at(cur.x, cur.y, t_next)

            seg = prev.distance(cur)
            if seg < fld.min_step_length:
                return vertices, arc, "stagnated"
            reason = self._check(fld, prev, cur, direction)
            if reason is not None:
                return vertices, arc, reason

            arc += seg
            cur.arc_length = arc
            uid = grid.next_id
            if grid.insert(cur):
                cur.uid = uid
            cur.thickness = self._thickness(fld, cur)
            vertices.append(cur)
            prev = cur
            t = t_next
        return vertices, arc, "max_steps"

    def _check(self, fld: Field, prev: Vertex, cur: Vertex, direction: int) -> StopReason | None:
        if fld.check_bounds and not fld.bounds.contains(cur):
            return "bounds"
        if fld.check_sep and fld.grid.has_vertex_within_radius(cur, fld.d_test, self.uid):
            return "separation"
        if fld.check_loops:
            kind = detect_loop(fld, prev, cur, direction)
            if kind is not None:
                logger.debug("Streamline %d stopped: %s loop.", self.uid, kind)
                return "loop"
        return None

    def _thickness(self, fld: Field, v: Vertex) -> float:
        # 2 at d_sep or beyond, tapering to 0 at d_test
        d = fld.grid.min_distance(v, exclude=self.uid)
        span = fld.d_sep - fld.d_test
        if d >= fld.d_sep or span <= 0.0:
            return 2.0
        return 2.0 * min(max((d - fld.d_test) / span, 0.0), 1.0)


class Pathline(Streamline):
    """Forward-only curve through a time-varying field, starting at time t."""

    def __init__(self, seed: Vec2, fld: Field, t: float = 0.0) -> None:
        super().__init__(seed, fld, t=t)

    @property
    def start_time(self) -> float:
        return self.seed.t

    def _compute(self, fld: Field) -> None:
        self.vertices, self.arc_length, self.forward_stop = self._trace(fld, FORWARD, unsteady=True)
