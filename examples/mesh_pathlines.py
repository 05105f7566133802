from __future__ import annotations

import logging

from streamlines2d import (
    AABB,
    FeatureField,
    FieldParameters,
    MeshField,
    gyre,
    plot_field,
    plot_field_interactive,
    setup_logging,
)


def main() -> None:
    setup_logging(logging.INFO)

    params = FieldParameters(step_size=0.005, time_step=0.05, t_end=6.0, t_span=2.0)
    region = AABB(100.0, 50.0, 200.0, 100.0)
    fld = FeatureField(region, params, features=[gyre(0.0, 0.0, 1.0, scale=100.0)])

    # pathlines need the time-dependent analytic field
    fld.generate_pathlines(12, t_start=0.0, t_stop=4.0, t_step=1.0)
    plot_field(fld)

    # streamlines over the mesh sampled at t = 0, exported and reloaded
    records = fld.discretize(32).export()
    mf = MeshField.from_records(records, params)
    mf.generate_streamlines()
    plot_field_interactive(mf, save_html="mesh_streamlines.html")

if __name__ == "__main__":
    main()
