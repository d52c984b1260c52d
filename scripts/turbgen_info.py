from __future__ import annotations

import argparse
import logging

from turbgen.core import TurbulenceGenerator


def main():
    p = argparse.ArgumentParser(description="Print the derived driving parameters and query the field.")
    p.add_argument("param_file", type=str, help="Turbulence generator parameter file.")
    p.add_argument("--time", type=float, default=None, help="Advance the driving pattern to this time first.")
    p.add_argument(
        "--point",
        type=float,
        nargs="+",
        action="append",
        default=[],
        help="Query position (ndim coordinates); may be repeated.",
    )
    p.add_argument("--verbose", action="store_true")
    args = p.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="TurbGen: %(message)s")

    gen = TurbulenceGenerator.from_parameter_file(args.param_file)
    if args.time is not None:
        changed = gen.check_for_update(args.time)
        print(f"pattern #{gen.step} ({'updated' if changed else 'unchanged'}) at time {args.time:g}")

    for point in args.point:
        if len(point) != gen.ndim:
            p.error(f"--point needs {gen.ndim} coordinates (got {len(point)})")
        v = gen.get_turb_vector(*point)
        coords = ", ".join(f"{c:g}" for c in point)
        comps = ", ".join(f"{c:.6e}" for c in v)
        print(f"v({coords}) = ({comps})")


if __name__ == "__main__":
    main()
