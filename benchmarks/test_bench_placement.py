from __future__ import annotations

import pytest

from streamlines2d import AABB, FeatureField, FieldParameters, vortex, uniform


def _make_field(d_sep: float, integrator: str) -> FeatureField:
    params = FieldParameters(d_sep=d_sep, d_test=d_sep / 2, candidate_spacing=d_sep,
                             step_size=d_sep / 5, integrator=integrator)
    return FeatureField(
        AABB(0.0, 0.0, 200.0, 200.0), params,
        features=[vortex(30.0, 20.0, 1.0, radius=80.0), vortex(-40.0, -30.0, -1.0, radius=80.0),
                  uniform(0.3, 0.1)],
    )


@pytest.mark.benchmark(group="placement")
@pytest.mark.parametrize("d_sep", [0.08, 0.04])
@pytest.mark.parametrize("integrator", ["euler", "rk4"])
def test_placement_benchmark(benchmark, d_sep: float, integrator: str) -> None:
    fld = _make_field(d_sep, integrator)

    def run() -> None:
        fld.reset()
        placed = fld.generate_streamlines()
        assert placed

    benchmark(run)


@pytest.mark.benchmark(group="mesh-lookup")
@pytest.mark.parametrize("subdivisions", [10, 40])
def test_mesh_interpolation_benchmark(benchmark, subdivisions: int) -> None:
    mf = _make_field(0.08, "rk4").discretize(subdivisions)

    def run() -> None:
        for k in range(200):
            mf.vec_at(-99.0 + k, 0.5 * k - 50.0)

    benchmark(run)
