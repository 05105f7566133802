from __future__ import annotations

import argparse
import time
import tracemalloc

from streamlines2d import AABB, FeatureField, FieldParameters, seed_random, vortex


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--d-sep", type=float, default=0.02)
    ap.add_argument("--integrator", choices=["euler", "rk4"], default="rk4")
    ap.add_argument("--random-seeds", type=int, default=0)
    ap.add_argument("--no-candidates", action="store_true")
    args = ap.parse_args()

    params = FieldParameters(d_sep=args.d_sep, d_test=args.d_sep / 2, candidate_spacing=args.d_sep,
                             integrator=args.integrator, candidate_placement=not args.no_candidates)
    region = AABB(0.0, 0.0, 500.0, 500.0)
    fld = FeatureField(region, params, features=[vortex(-80.0, 0.0, 1.0), vortex(80.0, 0.0, -1.0)])
    if args.random_seeds:
        fld.add_seeds(seed_random(region, args.random_seeds))

    tracemalloc.start()
    t0 = time.perf_counter()
    fld.generate_streamlines()
    elapsed = time.perf_counter() - t0
    current, peak = tracemalloc.get_traced_memory()
    tracemalloc.stop()
    n_vertices = sum(len(s) for s in fld.streamlines)
    print(f"streamlines={len(fld.streamlines)} vertices={n_vertices} "
          f"time={elapsed:.2f}s peak={peak/1e6:.1f} MB")

if __name__ == "__main__":
    main()
