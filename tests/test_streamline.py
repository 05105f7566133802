from __future__ import annotations

import math
from types import SimpleNamespace

import numpy as np
import pytest

from streamlines2d import (
    AABB,
    MAX_STEPS,
    FeatureField,
    FieldParameters,
    BinGrid,
    Pathline,
    Streamline,
    Vec2,
    Vertex,
    detect_loop,
    sink,
    uniform,
    vortex,
)


def _vortex_field(features=None, **overrides) -> FeatureField:
    params = FieldParameters(
        d_sep=0.02, d_test=0.01, step_size=0.002, min_length=0.1,
        candidate_placement=False, **overrides,
    )
    return FeatureField(AABB(0.0, 0.0, 500.0, 500.0), params, features=features or [vortex(0.0, 0.0, 1.0)])


def _uniform_field(vx: float = 1.0, vy: float = 0.0, **overrides) -> FeatureField:
    params = FieldParameters(step_size=0.01, candidate_placement=False, **overrides)
    return FeatureField(AABB(0.0, 0.0, 100.0, 100.0), params, features=[uniform(vx, vy)])


def test_single_vortex_closes_loop():
    fld = _vortex_field()
    s = Streamline(Vec2(50.0, 0.0), fld)
    assert s.forward_stop == "loop"
    assert s.backward_stop == "loop"
    assert not s.truncated
    assert 50.0 < s.arc_length < 2 * np.pi * 50.0
    assert len(s) < MAX_STEPS
    radii = np.hypot(*s.to_array().T)
    assert np.allclose(radii, 50.0, atol=1e-3)


def test_without_loop_checks_the_trace_is_truncated():
    fld = _vortex_field(check_loops=False)
    s = Streamline(Vec2(50.0, 0.0), fld)
    assert s.forward_stop == "max_steps"
    assert s.backward_stop == "max_steps"
    assert s.truncated
    assert len(s) == 2 * MAX_STEPS


def test_uniform_field_runs_wall_to_wall():
    fld = _uniform_field()
    s = Streamline(Vec2(0.0, 0.0), fld)
    assert s.forward_stop == "bounds"
    assert s.backward_stop == "bounds"
    pts = s.to_array()
    assert np.all(np.diff(pts[:, 0]) > 0.0)
    assert np.all(pts[:, 1] == 0.0)
    assert np.all(np.abs(pts[:, 0]) <= 50.0)
    assert s.arc_length == pytest.approx(len(s), rel=1e-9)
    assert pts[0, 0] == pytest.approx(-50.0, abs=1.0)
    assert pts[-1, 0] == pytest.approx(50.0, abs=1.0)


def test_arc_length_increases_along_vertices():
    fld = _uniform_field()
    s = Streamline(Vec2(10.0, 5.0), fld)
    arcs = np.array([v.arc_length for v in s.vertices])
    assert np.all(np.diff(arcs) > 0.0)
    assert arcs[-1] == pytest.approx(s.arc_length)


def test_vertices_carry_field_vector_and_owner():
    fld = _uniform_field(0.0, 2.0)
    s = Streamline(Vec2(0.0, 0.0), fld)
    assert all(v.streamline_id == s.uid for v in s.vertices)
    assert all(v.v == Vec2(0.0, 2.0) for v in s.vertices)
    assert s.seed.v == Vec2(0.0, 2.0)


def test_first_streamline_is_full_thickness():
    fld = _uniform_field()
    s = Streamline(Vec2(0.0, 0.0), fld)
    assert all(v.thickness == 2.0 for v in s.vertices)


def test_zero_field_stagnates():
    fld = _uniform_field(0.0, 0.0)
    s = Streamline(Vec2(0.0, 0.0), fld)
    assert len(s) == 0
    assert s.forward_stop == "stagnated"
    assert s.arc_length == 0.0


def test_separation_stops_against_accepted_curve():
    fld = _uniform_field(0.0, 1.0, d_sep=0.1, d_test=0.05)
    fld.clear_seeds()
    fld.add_seed(Vec2(0.0, 0.0))
    fld.generate_streamlines()
    # a horizontal trace crossing the vertical line stops short of it
    fld.features[:] = [uniform(1.0, 0.0)]
    s = Streamline(Vec2(-30.0, 10.0), fld)
    assert s.forward_stop == "separation"
    assert s.vertices[-1].x < -fld.d_test + 1e-9


def test_pathline_time_tags():
    fld = _uniform_field(time_step=0.5)
    p = Pathline(Vec2(0.0, 0.0), fld, t=2.0)
    assert p.start_time == 2.0
    assert p.backward_stop is None
    assert len(p) > 0
    for k, v in enumerate(p.vertices):
        assert v.t == pytest.approx(2.0 + 0.5 * (k + 1))
    assert p.vertices[0].x > 0.0


def test_vortex_with_sink_spirals_inward_until_loop_stop():
    fld = _vortex_field([vortex(0.0, 0.0, 1.0), sink(0.0, 0.0, 0.05)])
    s = Streamline(Vec2(50.0, 0.0), fld)
    assert s.forward_stop == "loop"
    # backward runs outward along the spiral and never meets itself
    assert s.backward_stop == "max_steps"
    assert s.truncated
    radii = np.hypot(*s.to_array().T)
    assert radii[-1] < 50.0
    assert radii[0] > 50.0


# ---------------------------
# detect_loop on hand-built loop grids
# ---------------------------
def _loop_state(epsilon: float = 1e-9) -> SimpleNamespace:
    return SimpleNamespace(
        loop_grid=BinGrid(AABB(0.0, 0.0, 100.0, 100.0), 10),
        loop_sigma=4,
        loop_epsilon=epsilon,
        d_test=5.0,
        alpha=math.radians(40.0),
        beta=math.radians(20.0),
    )


def _age(st: SimpleNamespace, k: int) -> None:
    """Insert k far-away samples so earlier ids fall out of the sigma window."""
    for _ in range(k):
        st.loop_grid.insert(Vertex(40.0, 40.0))


def _east(x: float, y: float) -> Vertex:
    return Vertex(x, y, v=Vec2(1.0, 0.0))


def test_detect_loop_coincident_point_is_closed():
    st = _loop_state()
    st.loop_grid.insert(_east(0.0, 0.0))
    _age(st, 10)
    assert detect_loop(st, _east(-1.0, 0.0), _east(0.0, 0.0), 1) == "closed"


def test_detect_loop_skips_cells_holding_only_recent_ids():
    st = _loop_state()
    st.loop_grid.insert(_east(0.0, 0.0))
    # next id is 1, so the whole cell lies inside the sigma window
    assert detect_loop(st, _east(-1.0, 0.0), _east(0.0, 0.0), 1) is None


def test_detect_loop_skips_recent_ids_in_an_old_cell():
    st = _loop_state()
    st.loop_grid.insert(_east(9.0, 9.0))  # id 0, old but far away
    _age(st, 5)
    st.loop_grid.insert(_east(1.0, 1.0))  # id 6, next id 7
    p1, p0 = _east(-1.0, 1.0), _east(0.0, 1.0)
    assert detect_loop(st, p1, p0, 1) is None
    _age(st, 3)
    assert detect_loop(st, p1, p0, 1) == "closed"


def test_detect_loop_spiral_when_approach_is_oblique():
    st = _loop_state()
    st.loop_grid.insert(_east(0.0, 0.0))
    _age(st, 10)
    assert detect_loop(st, _east(-2.0, 3.0), _east(-1.0, 3.0), 1) == "spiral"


def test_detect_loop_closed_when_approach_is_head_on():
    st = _loop_state()
    st.loop_grid.insert(_east(0.0, 0.0))
    _age(st, 10)
    assert detect_loop(st, _east(-3.0, 0.2), _east(-2.0, 0.2), 1) == "closed"


def test_detect_loop_ignores_samples_behind_the_step():
    st = _loop_state()
    st.loop_grid.insert(_east(0.0, 0.0))
    _age(st, 10)
    assert detect_loop(st, _east(1.0, 3.0), _east(2.0, 3.0), 1) is None


def test_detect_loop_ignores_opposite_heading():
    st = _loop_state()
    st.loop_grid.insert(Vertex(0.0, 0.0, v=Vec2(-1.0, 0.0)))
    _age(st, 10)
    assert detect_loop(st, _east(-2.0, 3.0), _east(-1.0, 3.0), 1) is None


def test_detect_loop_backward_direction():
    st = _loop_state()
    st.loop_grid.insert(_east(0.0, 0.0))
    _age(st, 10)
    # tracing against the field towards -x, the sample lies ahead
    assert detect_loop(st, _east(2.0, 3.0), _east(1.0, 3.0), -1) == "spiral"
    assert detect_loop(st, _east(-1.0, 3.0), _east(-2.0, 3.0), -1) is None


def test_detect_loop_beyond_d_test_is_ignored():
    st = _loop_state()
    st.loop_grid.insert(_east(0.0, 0.0))
    _age(st, 10)
    assert detect_loop(st, _east(-7.0, 0.0), _east(-6.0, 0.0), 1) is None
