from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from collections.abc import Callable, Mapping, Sequence

import logging
import numpy as np
from numpy.typing import NDArray

from .bingrid import BinGrid
from .geometry import AABB, Vec2

logger = logging.getLogger(__name__)

FloatArray = NDArray[np.float64]

VERTEX_FIELDS = ("x", "y", "vx", "vy")


# ---------------------------
# Utility
# ---------------------------
def _det(a: Vec2, b: Vec2, c: Vec2) -> float:
    """Twice the signed area of triangle (a, b, c); positive when counter-clockwise."""
    return (b.x - a.x) * (c.y - a.y) - (c.x - a.x) * (b.y - a.y)


def _as_float_array1(x: Any, name: str) -> FloatArray:
    arr = np.asarray(x, dtype=np.float64)
    if arr.ndim != 1:
        raise ValueError(f"{name} must be 1-D.")
    if not np.isfinite(arr).all():
        raise ValueError(f"{name} contains non-finite values.")
    return np.ascontiguousarray(arr)


def _as_index_array3(x: Any, name: str, n_vertices: int) -> NDArray[np.int64]:
    try:
        arr = np.asarray(x)
    except ValueError as exc:  # ragged index lists
        raise ValueError(f"{name} must be a sequence of index triples.") from exc
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"{name} must have shape (M,3).")
    if arr.size and not np.issubdtype(arr.dtype, np.integer):
        raise ValueError(f"{name} must contain integer indices.")
    arr = arr.astype(np.int64)
    if arr.size and (arr.min() < 0 or arr.max() >= n_vertices):
        raise ValueError(f"{name} references vertices outside [0, {n_vertices}).")
    return arr


# ---------------------------
# Mesh elements
# ---------------------------
@dataclass(slots=True, eq=False)
class MeshVertex(Vec2):
    """Mesh node: position plus sampled velocity."""
    uid: int = 0
    vx: float = 0.0
    vy: float = 0.0

    @property
    def velocity(self) -> Vec2: return Vec2(self.vx, self.vy)


class Face:
    """Triangle over three shared mesh vertices."""

    __slots__ = ("uid", "a", "b", "c", "determinant")

    def __init__(self, uid: int, a: MeshVertex, b: MeshVertex, c: MeshVertex) -> None:
        self.uid = uid
        self.a = a
        self.b = b
        self.c = c
        self.determinant = _det(a, b, c)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.uid}, vertices=({self.a.uid}, {self.b.uid}, {self.c.uid}))"

    @property
    def area(self) -> float:
        return 0.5 * abs(self.determinant)

    def bounding_box(self) -> tuple[float, float, float, float]:
        """(xmin, xmax, ymin, ymax)"""
        xs = (self.a.x, self.b.x, self.c.x)
        ys = (self.a.y, self.b.y, self.c.y)
        return min(xs), max(xs), min(ys), max(ys)

    def cartesian_to_barycentric(self, p: Vec2) -> tuple[float, float, float]:
        u = _det(p, self.b, self.c) / self.determinant
        v = _det(self.a, p, self.c) / self.determinant
        w = _det(self.a, self.b, p) / self.determinant
        return u, v, w

    def barycentric_to_cartesian(self, u: float, v: float, w: float) -> Vec2:
        return Vec2(
            u * self.a.x + v * self.b.x + w * self.c.x,
            u * self.a.y + v * self.b.y + w * self.c.y,
        )

    def interpolate(self, p: Vec2) -> Vec2:
        """Barycentric blend of the three vertex velocities at p."""
        u, v, w = self.cartesian_to_barycentric(p)
        return Vec2(
            u * self.a.vx + v * self.b.vx + w * self.c.vx,
            u * self.a.vy + v * self.b.vy + w * self.c.vy,
        )

    def contains(self, p: Vec2) -> bool:
        """Sign-consistency test; points on an edge count as inside."""
        d1 = _det(self.a, self.b, p)
        d2 = _det(self.b, self.c, p)
        d3 = _det(self.c, self.a, p)
        has_neg = d1 < 0.0 or d2 < 0.0 or d3 < 0.0
        has_pos = d1 > 0.0 or d2 > 0.0 or d3 > 0.0
        return not (has_neg and has_pos)


# ---------------------------
# Mesh
# ---------------------------
class VectorMesh:
    """Triangulated, piecewise-linear velocity field with a face bin grid."""

    def __init__(
        self,
        vertices: Sequence[MeshVertex],
        faces: Sequence[Face],
        *,
        subdivisions: int = 20,
    ) -> None:
        if not faces:
            raise ValueError("mesh must contain at least one face.")
        self._vertices: list[MeshVertex] = list(vertices)
        self._faces: list[Face] = list(faces)
        xs = [v.x for v in self._vertices]
        ys = [v.y for v in self._vertices]
        self.bounds = AABB.from_bounds(min(xs), max(xs), min(ys), max(ys))
        self.bingrid: BinGrid[Face] = BinGrid(self.bounds, subdivisions)
        self._fill_bins()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(vertices={len(self._vertices)}, faces={len(self._faces)})"

    @property
    def vertices(self) -> tuple[MeshVertex, ...]: return tuple(self._vertices)

    @property
    def faces(self) -> tuple[Face, ...]: return tuple(self._faces)

    def _fill_bins(self) -> None:
        # Conservative rasterization: every cell touched by a face's bounding
        # box, dilated by one cell.
        n = self.bingrid.subdivisions
        for f in self._faces:
            xmin, xmax, ymin, ymax = f.bounding_box()
            i0, j0 = self.bingrid.index_of(xmin, ymin)
            i1, j1 = self.bingrid.index_of(xmax, ymax)
            for j in range(max(j0 - 1, 0), min(j1 + 1, n - 1) + 1):
                for i in range(max(i0 - 1, 0), min(i1 + 1, n - 1) + 1):
                    self.bingrid.insert_at(i, j, f)

    def get_face_at(self, x: float, y: float) -> Face | None:
        p = Vec2(x, y)
        b = self.bingrid.get_bin_at(p)
        if b is None:
            return None
        for f in b.items:
            if f.contains(p):
                return f
        return None

    def interpolate(self, x: float, y: float) -> Vec2 | None:
        """Velocity at (x, y), or None outside the mesh."""
        f = self.get_face_at(x, y)
        if f is None:
            return None
        return f.interpolate(Vec2(x, y))

    # --------- Construction ---------
    @classmethod
    def create(
        cls,
        region: AABB,
        subdivisions: int,
        vec_at: Callable[[float, float], Vec2],
        *,
        bin_subdivisions: int = 20,
    ) -> VectorMesh:
        """Regular triangulation of `region` sampling `vec_at` at every lattice node."""
        if subdivisions < 1:
            raise ValueError("subdivisions must be >= 1.")
        n = int(subdivisions)
        xs = np.linspace(region.left, region.right, n + 1)
        ys = np.linspace(region.bottom, region.top, n + 1)
        vertices: list[MeshVertex] = []
        for j in range(n + 1):
            for i in range(n + 1):
                x, y = float(xs[i]), float(ys[j])
                v = vec_at(x, y)
                vertices.append(MeshVertex(x, y, uid=len(vertices), vx=float(v.x), vy=float(v.y)))
        faces: list[Face] = []
        for j in range(n):
            for i in range(n):
                v00 = vertices[j * (n + 1) + i]
                v10 = vertices[j * (n + 1) + i + 1]
                v01 = vertices[(j + 1) * (n + 1) + i]
                v11 = vertices[(j + 1) * (n + 1) + i + 1]
                faces.append(Face(len(faces), v00, v10, v11))
                faces.append(Face(len(faces), v00, v11, v01))
        return cls(vertices, faces, subdivisions=bin_subdivisions)

    @classmethod
    def from_records(cls, data: Mapping[str, Any], *, subdivisions: int = 20) -> VectorMesh:
        """Build a mesh from PLY-shaped records.

        Expected shape::

            {"vertex": {"x": [...], "y": [...], "vx": [...], "vy": [...]},
             "face": {"vertex_indices": [[i, j, k], ...]}}

        Everything is validated before any mesh object is created.
        """
        try:
            x, y, vx, vy, idx = cls._validate_records(data)
        except ValueError as exc:
            logger.error("Invalid vector mesh records: %s", exc)
            raise
        vertices = [
            MeshVertex(float(x[k]), float(y[k]), uid=k, vx=float(vx[k]), vy=float(vy[k]))
            for k in range(x.shape[0])
        ]
        faces = [
            Face(k, vertices[int(a)], vertices[int(b)], vertices[int(c)])
            for k, (a, b, c) in enumerate(idx)
        ]
        return cls(vertices, faces, subdivisions=subdivisions)

    @staticmethod
    def _validate_records(data: Mapping[str, Any]) -> tuple[FloatArray, FloatArray, FloatArray, FloatArray, NDArray[np.int64]]:
        if not isinstance(data, Mapping):
            raise ValueError("mesh records must be a mapping.")
        if "vertex" not in data:
            raise ValueError("Data must contain 'vertex' elements.")
        vertex = data["vertex"]
        for key in VERTEX_FIELDS:
            if key not in vertex:
                raise ValueError(f"Data must contain a '{key}' property on 'vertex' elements.")
        if "face" not in data:
            raise ValueError("Data must contain 'face' elements.")
        if "vertex_indices" not in data["face"]:
            raise ValueError("Data must contain a 'vertex_indices' property on 'face' elements.")

        x, y, vx, vy = (_as_float_array1(vertex[k], f"vertex.{k}") for k in VERTEX_FIELDS)
        n = x.shape[0]
        if n < 3:
            raise ValueError("mesh needs at least 3 vertices.")
        for arr, key in zip((y, vx, vy), VERTEX_FIELDS[1:]):
            if arr.shape[0] != n:
                raise ValueError(f"vertex.{key} must match vertex.x length.")
        idx = _as_index_array3(data["face"]["vertex_indices"], "face.vertex_indices", n)
        if idx.shape[0] == 0:
            raise ValueError("mesh must contain at least one face.")

        # zero-area faces would make barycentric conversion divide by zero
        ax, ay = x[idx[:, 0]], y[idx[:, 0]]
        bx, by = x[idx[:, 1]], y[idx[:, 1]]
        cx, cy = x[idx[:, 2]], y[idx[:, 2]]
        dets = (bx - ax) * (cy - ay) - (cx - ax) * (by - ay)
        bad = np.nonzero(dets == 0.0)[0]
        if bad.size:
            raise ValueError(f"face {int(bad[0])} is degenerate (zero area).")
        return x, y, vx, vy, idx

    def to_records(self) -> dict[str, dict[str, FloatArray | NDArray[np.int64]]]:
        """Inverse of from_records."""
        verts = self._vertices
        index = {id(v): k for k, v in enumerate(verts)}
        return {
            "vertex": {
                "x": np.array([v.x for v in verts], dtype=np.float64),
                "y": np.array([v.y for v in verts], dtype=np.float64),
                "vx": np.array([v.vx for v in verts], dtype=np.float64),
                "vy": np.array([v.vy for v in verts], dtype=np.float64),
            },
            "face": {
                "vertex_indices": np.array(
                    [(index[id(f.a)], index[id(f.b)], index[id(f.c)]) for f in self._faces],
                    dtype=np.int64,
                ).reshape(-1, 3),
            },
        }
