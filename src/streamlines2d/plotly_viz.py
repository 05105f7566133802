from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Any, TYPE_CHECKING

import numpy as np

try:
    import plotly.graph_objects as go
    _PLOTLY = True
except Exception:  # pragma: no cover
    _PLOTLY = False

if TYPE_CHECKING:
    from .field import Field
    from .streamline import Streamline


@dataclass(slots=True)
class PlotlyFieldConfig:
    nx: int = 64
    ny: int = 64
    show_speed: bool = True
    show_pathlines: bool = True
    colorscale: str = "Viridis"
    norm: Literal["linear", "log"] = "linear"
    cbar_label: str = "Speed"
    line_color: str = "black"


def _curve_xy(curves: tuple[Streamline, ...]) -> tuple[list[float | None], list[float | None]]:
    """Concatenate curves into one None-separated polyline for a single Scatter trace."""
    xs: list[float | None] = []
    ys: list[float | None] = []
    for s in curves:
        for v in s.vertices:
            xs.append(v.x)
            ys.append(v.y)
        xs.append(None)
        ys.append(None)
    return xs, ys


def _apply_norm(speed: np.ndarray, mode: Literal["linear", "log"]) -> tuple[np.ndarray, str]:
    if mode == "linear":
        return speed, "linear"
    eps = max(1e-12, float(speed.max()) * 1e-6)
    return np.log10(speed + eps), "log10"


def plot_field_interactive(
    fld: Field,
    *,
    config: PlotlyFieldConfig | None = None,
    save_html: str | None = None,
) -> Any:
    """Interactive view of a placed field with Plotly (pan/zoom, hover). Returns the Figure."""
    if not _PLOTLY:
        raise RuntimeError("plotly is not installed. `pip install plotly`")

    cfg = config or PlotlyFieldConfig()
    xmin, xmax, ymin, ymax = fld.bounds.as_domain()

    fig = go.Figure()
    if cfg.show_speed:
        X, Y, U, V = fld.sample_velocity_grid(cfg.nx, cfg.ny)
        speed = np.sqrt(U * U + V * V)
        z, norm_name = _apply_norm(speed, cfg.norm)
        fig.add_trace(
            go.Heatmap(
                x=X[0, :], y=Y[:, 0], z=z,
                colorscale=cfg.colorscale,
                colorbar=dict(title=f"{cfg.cbar_label} ({norm_name})"),
                zsmooth="best",
            )
        )

    sx, sy = _curve_xy(fld.streamlines)
    fig.add_trace(go.Scattergl(x=sx, y=sy, mode="lines",
                               line=dict(width=1, color=cfg.line_color), name="streamlines"))
    if cfg.show_pathlines and fld.pathlines:
        px, py = _curve_xy(fld.pathlines)
        fig.add_trace(go.Scattergl(x=px, y=py, mode="lines", line=dict(width=1), name="pathlines"))

    fig.update_layout(
        title=f"{len(fld.streamlines)} streamlines, d_sep = {fld.d_sep:.4g}",
        xaxis_title="x",
        yaxis_title="y",
        xaxis=dict(scaleanchor="y", scaleratio=1, range=[xmin, xmax]),
        yaxis=dict(range=[ymin, ymax]),
        template="plotly_white",
        legend=dict(x=0.01, y=0.99),
    )

    if save_html:
        fig.write_html(save_html, include_plotlyjs="cdn")
    return fig
