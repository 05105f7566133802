from __future__ import annotations

import logging

from streamlines2d import (
    AABB,
    FeatureField,
    FieldParameters,
    PlotConfig,
    plot_field,
    setup_logging,
    uniform,
    vortex,
)


def main() -> None:
    setup_logging(logging.INFO)

    params = FieldParameters(d_sep=0.02, d_test=0.01, candidate_spacing=0.02, step_size=0.004)
    fld = FeatureField(
        AABB(0.0, 0.0, 800.0, 600.0),
        params,
        features=[
            vortex(-150.0, 0.0, 1.0, radius=250.0),
            vortex(150.0, 0.0, 1.0, radius=250.0, clockwise=True),
            uniform(0.0, 0.2),
        ],
    )
    fld.generate_streamlines()

    plot_field(fld, config=PlotConfig(line_width=0.8, show_field=True))

if __name__ == "__main__":
    main()
