"""
HOW TO RUN (minimal example)
----------------------------
# Record 100 consecutive driving patterns of the example configuration on a 32^3 grid
python scripts/generate_driving_dataset.py --param-file scripts/turbulence_generator.inp \
  --output-root ./data --dataset-name turbgen_driving

Notes:
- Output is saved locally as a Hugging Face Dataset under <output_root>/<dataset_name>/patterns
- Metadata is saved to <output_root>/<dataset_name>/metadata.json
"""

from __future__ import annotations

import argparse
import logging
import os

from turbgen.data.snapshot_writer import SnapshotBuildConfig, build_and_save_dataset


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Sample consecutive turbulent driving patterns on a uniform grid.")

    # Output / dataset
    p.add_argument("--output-root", type=str, default="./data", help="Root directory to save datasets.")
    p.add_argument("--dataset-name", type=str, default="turbgen_driving", help="Dataset folder name under output-root.")
    p.add_argument("--overwrite", action="store_true", help="Overwrite existing output directory if it exists.")
    p.add_argument("--dtype", type=str, default="float32", choices=["float32", "float64"], help="Stored dtype.")

    # Generator
    p.add_argument(
        "--param-file",
        type=str,
        default="turbulence_generator.inp",
        help="Turbulence generator parameter file (key = value lines).",
    )
    p.add_argument("--n-patterns", type=int, default=100, help="Number of consecutive driving patterns to record.")

    # Sampling
    p.add_argument("--N", type=int, default=32, help="Grid cells per axis.")
    p.add_argument("--device", type=str, default="cpu", help="Device string, e.g. cpu, cuda, cuda:0")

    # Writing / progress
    p.add_argument(
        "--writer-batch-size",
        type=int,
        default=16,
        help="HF datasets writer batch size (smaller = lower memory, more overhead).",
    )
    p.add_argument("--no-progress", dest="progress", action="store_false", help="Disable the progress bar.")
    p.add_argument("--verbose", action="store_true", help="Log per-step generator details.")

    return p.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="TurbGen: %(message)s")

    cfg = SnapshotBuildConfig(
        dataset_name=args.dataset_name,
        output_root=args.output_root,
        n_patterns=args.n_patterns,
        dtype=args.dtype,
        param_file=args.param_file,
        N=args.N,
        device=args.device,
        progress=args.progress,
        writer_batch_size=args.writer_batch_size,
        overwrite=args.overwrite,
    )

    os.makedirs(cfg.output_root, exist_ok=True)
    out_dir = build_and_save_dataset(cfg)
    print(f"Saved dataset to: {out_dir}")
    print(f"Metadata: {os.path.join(out_dir, 'metadata.json')}")


if __name__ == "__main__":
    main()
