from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.collections import LineCollection
from matplotlib.colors import to_rgba
from matplotlib.patches import Rectangle

if TYPE_CHECKING:
    from matplotlib.axes import Axes

    from .field import Field
    from .streamline import Streamline


@dataclass(slots=True)
class PlotConfig:
    line_width: float = 1.0
    line_color: str = "black"
    pathline_color: str = "tab:blue"
    show_region: bool = True
    show_grid: bool = False
    show_mesh: bool = False
    show_seeds: bool = False
    show_field: bool = False
    field_nx: int = 24
    field_ny: int = 24
    figsize: tuple[float, float] = (7.0, 7.0)

    def __post_init__(self) -> None:
        if self.line_width <= 0.0:
            raise ValueError("line_width must be positive.")
        if self.field_nx < 2 or self.field_ny < 2:
            raise ValueError("field_nx and field_ny must be >= 2.")


# ---------------------------
# Segment builders
# ---------------------------
def streamline_segments(
    s: Streamline, *, tapering: bool = True, base_width: float = 1.0
) -> tuple[np.ndarray, np.ndarray]:
    """(K,2,2) segments between consecutive vertices and their line widths."""
    verts = s.vertices
    if len(verts) < 2:
        return np.empty((0, 2, 2)), np.empty(0)
    pts = s.to_array()
    segs = np.stack([pts[:-1], pts[1:]], axis=1)
    if tapering:
        # a segment is as thin as its thinner end
        th = np.array([v.thickness for v in verts], dtype=float)
        widths = base_width * np.minimum(th[:-1], th[1:])
    else:
        widths = np.full(segs.shape[0], base_width)
    return segs, widths


def pathline_segments(
    s: Streamline, t_end: float, t_span: float
) -> tuple[np.ndarray, np.ndarray]:
    """Segments inside [t_end - t_span, t_end] with opacity rising towards t_end."""
    verts = s.vertices
    t0 = t_end - t_span
    segs: list[tuple[tuple[float, float], tuple[float, float]]] = []
    alphas: list[float] = []
    for a, b in zip(verts, verts[1:]):
        if a.t < t0 or b.t > t_end:
            continue
        segs.append(((a.x, a.y), (b.x, b.y)))
        alphas.append(1.0 if t_span == 0.0 else (b.t - t0) / t_span)
    return np.array(segs, dtype=float).reshape(-1, 2, 2), np.clip(np.array(alphas, dtype=float), 0.0, 1.0)


# ---------------------------
# Static plot
# ---------------------------
def plot_field(
    fld: Field,
    *,
    config: PlotConfig | None = None,
    ax: Axes | None = None,
    show: bool = True,
) -> Any:
    """Draw the region, optional overlays, streamlines and pathlines. Returns the Axes."""
    cfg = config or PlotConfig()
    if ax is None:
        _, ax = plt.subplots(figsize=cfg.figsize)
    xmin, xmax, ymin, ymax = fld.bounds.as_domain()

    if cfg.show_field:
        X, Y, U, V = fld.sample_velocity_grid(cfg.field_nx, cfg.field_ny)
        speed = np.sqrt(U * U + V * V)
        ax.quiver(X, Y, U, V, speed, cmap="viridis", alpha=0.5)

    if cfg.show_grid:
        for b in fld.grid:
            r = b.bounds
            ax.add_patch(Rectangle((r.left, r.bottom), r.width, r.height,
                                   fill=False, lw=0.3, ec="0.8"))

    mesh = getattr(fld, "mesh", None)
    if cfg.show_mesh and mesh is not None:
        edges = [
            [(a.x, a.y), (b.x, b.y)]
            for f in mesh.faces
            for a, b in ((f.a, f.b), (f.b, f.c), (f.c, f.a))
        ]
        ax.add_collection(LineCollection(edges, colors="0.7", linewidths=0.3))

    segs_all: list[np.ndarray] = []
    widths_all: list[np.ndarray] = []
    for s in fld.streamlines:
        segs, widths = streamline_segments(s, tapering=fld.tapering, base_width=cfg.line_width)
        segs_all.append(segs)
        widths_all.append(widths)
    if segs_all:
        ax.add_collection(LineCollection(
            np.concatenate(segs_all), linewidths=np.concatenate(widths_all), colors=cfg.line_color,
        ))

    rgba = np.array(to_rgba(cfg.pathline_color))
    for p in fld.pathlines:
        segs, alphas = pathline_segments(p, fld.t_end, fld.t_span)
        if segs.shape[0] == 0:
            continue
        colors = np.tile(rgba, (segs.shape[0], 1))
        colors[:, 3] = alphas
        ax.add_collection(LineCollection(segs, colors=colors, linewidths=cfg.line_width))

    if cfg.show_seeds and fld.seeds:
        pts = np.array([(p.x, p.y) for p in fld.seeds])
        ax.scatter(pts[:, 0], pts[:, 1], s=6.0, c="tab:red", marker=".")

    if cfg.show_region:
        ax.add_patch(Rectangle((xmin, ymin), xmax - xmin, ymax - ymin, fill=False, lw=0.8, ec="k"))

    ax.set_xlim(xmin, xmax)
    ax.set_ylim(ymin, ymax)
    ax.set_aspect("equal", adjustable="box")
    ax.set_title(f"{len(fld.streamlines)} streamlines, d_sep = {fld.d_sep:.4g}")
    if show:
        plt.show()
    return ax

