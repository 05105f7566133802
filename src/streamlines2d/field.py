from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from typing import Any
from collections.abc import Iterable

import itertools
import logging
import numpy as np
from numpy.typing import NDArray

from .api import FieldParameters
from .bingrid import BinGrid
from .features import FieldFeature
from .geometry import AABB, Vec2
from .integrators import Integrator, make_integrator
from .mesh import VectorMesh
from .streamline import Pathline, Streamline, Vertex

logger = logging.getLogger(__name__)

FloatArray = NDArray[np.float64]


# ---------------------------
# Base field
# ---------------------------
class Field(ABC):
    """A vector field together with its evenly-spaced streamline placement state.

    Owns the persistent bin grid of accepted vertices (separation tests), the
    per-curve loop grid, the integrator, the FIFO seed queue and every
    absolute threshold derived from `FieldParameters`.
    """

    def __init__(
        self,
        bounds: AABB,
        params: FieldParameters | None = None,
        *,
        subdivisions: int = 25,
    ) -> None:
        self.subdivisions = int(subdivisions)
        self.params = params or FieldParameters()
        self._seeds: deque[Vec2] = deque()
        self._streamlines: list[Streamline] = []
        self._pathlines: list[Pathline] = []
        self._ids = itertools.count()
        self.set_bounds(bounds)

    # -------- configuration --------
    def set_bounds(self, bounds: AABB) -> None:
        """Rebuild grids and thresholds for a new region, dropping all curves."""
        self.bounds = bounds
        self._streamlines = []
        self._build_grids(self._grid_subdivisions(self.params))
        self.update_parameters(self.params)
        self.reset()

    def _grid_subdivisions(self, params: FieldParameters) -> int:
        # radius queries scan one ring of cells, so a cell must span the
        # largest query radius (d_sep for thickness, d_test for separation)
        vdim = min(self.bounds.width, self.bounds.height)
        radius = max(params.d_sep, params.d_test) * vdim
        return max(1, min(self.subdivisions, int(vdim // radius)))

    def _build_grids(self, n: int) -> None:
        self.grid: BinGrid[Vertex] = BinGrid(self.bounds, n)
        self.loop_grid: BinGrid[Vertex] = BinGrid(self.bounds, n)
        for s in self._streamlines:
            for v in s.vertices:
                self.grid.insert(v)

    def update_parameters(self, params: FieldParameters) -> None:
        """Recompute absolute thresholds relative to the region's smaller side."""
        self.params = params
        vdim = min(self.bounds.width, self.bounds.height)
        n = self._grid_subdivisions(params)
        if n != self.grid.subdivisions:
            logger.debug("Rebuilding bin grids with %d x %d cells.", n, n)
            self._build_grids(n)
        self.d_sep = params.d_sep * vdim
        self.d_test = params.d_test * vdim
        self.candidate_spacing = params.candidate_spacing * vdim
        self.min_step_length = params.min_step * vdim
        self.min_streamline_length = params.min_length * vdim
        self.integrator: Integrator = make_integrator(params.integrator, params.step_size * vdim, self)
        self.time_step = params.time_step
        self.t_end = params.t_end
        self.t_span = params.t_span
        self.check_bounds = params.check_bounds
        self.check_sep = params.check_sep
        self.check_loops = params.check_loops
        self.tapering = params.tapering
        self.enable_candidate_placement = params.candidate_placement
        self.loop_sigma = params.loop_sigma
        self.loop_epsilon = params.loop_epsilon
        self.alpha = params.alpha
        self.beta = params.beta

        # seed_x, seed_y in [-1, 1] span the region
        self.initial_seed = Vec2(
            self.bounds.x + params.seed_x * self.bounds.width / 2,
            self.bounds.y + params.seed_y * self.bounds.height / 2,
        )
        if not self._seeds:
            self._seeds.append(self.initial_seed.copy())

    def reset(self) -> None:
        """Drop all curves and queue the initial seed again."""
        self._seeds = deque([self.initial_seed.copy()])
        self._streamlines = []
        self._pathlines = []
        self.grid.clear()
        self.loop_grid.clear()

    # -------- read-only views --------
    @property
    def streamlines(self) -> tuple[Streamline, ...]: return tuple(self._streamlines)

    @property
    def pathlines(self) -> tuple[Pathline, ...]: return tuple(self._pathlines)

    @property
    def seeds(self) -> tuple[Vec2, ...]: return tuple(self._seeds)

    def new_streamline_id(self) -> int:
        return next(self._ids)

    # -------- velocity --------
    @abstractmethod
    def vec_at(self, x: float, y: float, t: float = 0.0) -> Vec2:
        """Velocity at (x, y) and time t."""

    def sample_velocity_grid(
        self, nx: int, ny: int, t: float = 0.0
    ) -> tuple[FloatArray, FloatArray, FloatArray, FloatArray]:
        xmin, xmax, ymin, ymax = self.bounds.as_domain()
        xs = np.linspace(xmin, xmax, nx)
        ys = np.linspace(ymin, ymax, ny)
        X, Y = np.meshgrid(xs, ys, indexing="xy")
        U = np.empty_like(X)
        V = np.empty_like(X)
        for j in range(ny):
            for i in range(nx):
                v = self.vec_at(float(X[j, i]), float(Y[j, i]), t)
                U[j, i] = v.x
                V[j, i] = v.y
        return X, Y, U, V

    # -------- seeding --------
    def add_seed(self, point: Vec2) -> None:
        self._seeds.append(Vec2(float(point.x), float(point.y)))

    def add_seeds(self, points: Iterable[Vec2]) -> None:
        for p in points:
            self.add_seed(p)

    def clear_seeds(self) -> None:
        self._seeds.clear()

    def step(self) -> Streamline | None:
        """Process the front seed. Returns the accepted streamline, if any."""
        if not self._seeds:
            return None
        seed = self._seeds.popleft()
        if not self.bounds.contains(seed):
            logger.debug("Seed (%.4g, %.4g) rejected: outside region.", seed.x, seed.y)
            return None
        if self.grid.has_point_within_radius(seed, self.d_test):
            logger.debug("Seed (%.4g, %.4g) rejected: within d_test of a streamline.", seed.x, seed.y)
            return None

        s = Streamline(seed, self)
        if s.arc_length < self.min_streamline_length:
            logger.debug("Streamline %d rejected: arc length %.4g below %.4g.",
                         s.uid, s.arc_length, self.min_streamline_length)
            return None

        self.add_stream(s)
        if self.enable_candidate_placement:
            self._seeds.extend(self.generate_candidates(s))
        return s

    def add_stream(self, s: Streamline) -> None:
        """Store an accepted streamline and index its vertices for separation tests."""
        self._streamlines.append(s)
        for v in s.vertices:
            self.grid.insert(v)

    def generate_streamlines(self) -> list[Streamline]:
        """Drain the seed queue. Can be called again after adding seeds."""
        accepted: list[Streamline] = []
        processed = 0
        while self._seeds:
            s = self.step()
            processed += 1
            if s is not None:
                accepted.append(s)
        if processed:
            logger.info("Placed %d streamlines from %d seeds (%d total).",
                        len(accepted), processed, len(self._streamlines))
        return accepted

    def generate_candidates(self, s: Streamline) -> list[Vec2]:
        """Seeds offset by d_sep on both sides, every candidate_spacing along s."""
        out: list[Vec2] = []
        verts = s.vertices
        if len(verts) < 2:
            return out
        mark = verts[0].arc_length + self.candidate_spacing
        for prev, cur in zip(verts, verts[1:]):
            seg = cur.arc_length - prev.arc_length
            while seg > 0.0 and mark <= cur.arc_length:
                p = prev.lerp(cur, (mark - prev.arc_length) / seg)
                mark += self.candidate_spacing
                v = self.vec_at(p.x, p.y, s.seed.t)
                mag = v.magnitude()
                if mag == 0.0:
                    continue
                ortho = v.perpendicular() * (self.d_sep / mag)
                out.append(p + ortho)
                out.append(p - ortho)
        return out

    # -------- pathlines --------
    def generate_pathlines(
        self,
        n: int = 10,
        t_start: float = 0.0,
        t_stop: float = 10.0,
        t_step: float = 1.0,
    ) -> list[Pathline]:
        """Forward pathlines from an n x n lattice released at every start time."""
        if t_step <= 0.0:
            raise ValueError("t_step must be positive.")
        created: list[Pathline] = []
        for t in np.arange(t_start, t_stop, t_step):
            for j in range(n):
                y = self.bounds.top - j * self.bounds.height / n
                for i in range(n):
                    x = self.bounds.left + i * self.bounds.width / n
                    created.append(Pathline(Vec2(x, y), self, float(t)))
        self._pathlines.extend(created)
        logger.info("Traced %d pathlines.", len(created))
        return created


# ---------------------------
# Providers
# ---------------------------
class FeatureField(Field):
    """Superposition of parametric field features."""

    def __init__(
        self,
        bounds: AABB,
        params: FieldParameters | None = None,
        *,
        features: Iterable[FieldFeature] = (),
        subdivisions: int = 25,
    ) -> None:
        self.features: list[FieldFeature] = list(features)
        super().__init__(bounds, params, subdivisions=subdivisions)

    def add_features(self, *features: FieldFeature) -> None:
        self.features.extend(features)

    def vec_at(self, x: float, y: float, t: float = 0.0) -> Vec2:
        vx = 0.0
        vy = 0.0
        for f in self.features:
            v = f.velocity(x, y, t)
            vx += v.x
            vy += v.y
        return Vec2(vx, vy)

    def discretize(self, subdivisions: int, *, t: float = 0.0) -> MeshField:
        """Piecewise-linear copy of this field sampled on a regular triangulation."""
        mesh = VectorMesh.create(self.bounds, subdivisions, lambda x, y: self.vec_at(x, y, t))
        return MeshField(self.bounds, mesh, self.params, subdivisions=self.subdivisions)


class MeshField(Field):
    """Field interpolated from a triangulated mesh; zero outside the mesh."""

    def __init__(
        self,
        bounds: AABB,
        mesh: VectorMesh,
        params: FieldParameters | None = None,
        *,
        subdivisions: int = 25,
    ) -> None:
        self.mesh = mesh
        super().__init__(bounds, params, subdivisions=subdivisions)

    @classmethod
    def from_records(
        cls,
        data: Any,
        params: FieldParameters | None = None,
        *,
        bounds: AABB | None = None,
    ) -> MeshField:
        mesh = VectorMesh.from_records(data)
        return cls(bounds or mesh.bounds, mesh, params)

    def vec_at(self, x: float, y: float, t: float = 0.0) -> Vec2:
        v = self.mesh.interpolate(x, y)
        return Vec2(0.0, 0.0) if v is None else v

    def export(self) -> dict[str, Any]:
        return self.mesh.to_records()
