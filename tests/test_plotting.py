from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pytest

from streamlines2d import (
    AABB,
    FeatureField,
    FieldParameters,
    PlotConfig,
    plot_field,
    plot_field_interactive,
    uniform,
    vortex,
)
from streamlines2d.plotting import pathline_segments, streamline_segments


@pytest.fixture
def fld() -> FeatureField:
    params = FieldParameters(d_sep=0.1, d_test=0.05, candidate_spacing=0.2, time_step=0.1,
                             t_end=3.0, t_span=1.0)
    f = FeatureField(AABB(0.0, 0.0, 100.0, 100.0), params,
                     features=[vortex(10.0, 0.0, 1.0, radius=60.0), uniform(0.2, 0.0)])
    f.generate_streamlines()
    f.generate_pathlines(2, t_start=0.0, t_stop=2.0, t_step=1.0)
    return f


def test_plot_field_smoke(fld: FeatureField):
    cfg = PlotConfig(show_grid=True, show_seeds=True, show_field=True)
    ax = plot_field(fld, config=cfg, show=False)
    assert len(ax.collections) >= 1
    assert ax.get_xlim() == (-50.0, 50.0)
    plt.close(ax.figure)


def test_plot_mesh_field(fld: FeatureField):
    mf = fld.discretize(6)
    mf.generate_streamlines()
    fig, ax = plt.subplots()
    out = plot_field(mf, config=PlotConfig(show_mesh=True), ax=ax, show=False)
    assert out is ax
    plt.close(fig)


def test_tapered_widths_follow_thickness(fld: FeatureField):
    s = fld.streamlines[-1]
    segs, widths = streamline_segments(s, tapering=True, base_width=2.0)
    assert segs.shape == (len(s) - 1, 2, 2)
    assert np.all((widths >= 0.0) & (widths <= 4.0))
    _, flat = streamline_segments(s, tapering=False, base_width=2.0)
    assert np.all(flat == 2.0)


def test_pathline_window(fld: FeatureField):
    for p in fld.pathlines:
        segs, alphas = pathline_segments(p, fld.t_end, fld.t_span)
        assert segs.shape[0] == alphas.shape[0]
        assert np.all((alphas >= 0.0) & (alphas <= 1.0))
    inside = [v for v in fld.pathlines[0].vertices if 2.0 <= v.t <= 3.0]
    segs, _ = pathline_segments(fld.pathlines[0], 3.0, 1.0)
    assert segs.shape[0] <= max(len(inside) - 1, 0)


def test_plot_config_validation():
    with pytest.raises(ValueError):
        PlotConfig(line_width=0.0)


def test_plotly_figure(fld: FeatureField, tmp_path):
    pytest.importorskip("plotly")
    out = tmp_path / "field.html"
    fig = plot_field_interactive(fld, save_html=str(out))
    names = [t.name for t in fig.data]
    assert "streamlines" in names
    assert "pathlines" in names
    assert out.exists()
