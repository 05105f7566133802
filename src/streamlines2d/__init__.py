from .geometry import Vec2, AABB
from .bingrid import Bin, BinGrid
from .integrators import Integrator, RungeKutta4, Euler, make_integrator
from .features import FieldFeature, vortex, sink, source, shear, uniform, gyre
from .mesh import MeshVertex, Face, VectorMesh
from .streamline import Vertex, Streamline, Pathline, detect_loop, MAX_STEPS
from .field import Field, FeatureField, MeshField
from .api import FieldParameters, seed_grid, seed_random
from .logging_config import setup_logging
from .plotting import PlotConfig, plot_field
from .plotly_viz import PlotlyFieldConfig, plot_field_interactive

__all__ = [
    "Vec2", "AABB",
    "Bin", "BinGrid",
    "Integrator", "RungeKutta4", "Euler", "make_integrator",
    "FieldFeature", "vortex", "sink", "source", "shear", "uniform", "gyre",
    "MeshVertex", "Face", "VectorMesh",
    "Vertex", "Streamline", "Pathline", "detect_loop", "MAX_STEPS",
    "Field", "FeatureField", "MeshField",
    "FieldParameters", "seed_grid", "seed_random",
    "setup_logging",
    "PlotConfig", "plot_field",
    "PlotlyFieldConfig", "plot_field_interactive",
]
