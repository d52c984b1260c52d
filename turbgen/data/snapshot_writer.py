from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import os
import shutil
from typing import Any, Dict, Iterator, Optional

import numpy as np
import datasets
from tqdm import trange

from ..core.config import TurbGenConfig
from ..core.generator import TurbulenceGenerator
from ..core.params import read_parameter_file
from ..models.driving_field import DrivingField
from ..utils.metrics import compressive_fraction, rms_magnitude

logger = logging.getLogger(__name__)


@dataclass
class SnapshotBuildConfig:
    # Dataset structure
    dataset_name: str
    output_root: str
    n_patterns: int  # consecutive driving patterns to record, starting at step 0
    dtype: str = "float32"  # stored dtype

    # Generator: either a parameter file or an explicit config
    param_file: Optional[str] = None
    turbgen: Optional[TurbGenConfig] = None

    # Sampling grid (cells per axis, cell-centred on the generator box)
    N: int = 32
    device: str = "cpu"

    # Writing / progress
    progress: bool = True
    writer_batch_size: int = 16
    overwrite: bool = False


class RunningStats:
    """Simple online stats collector for scalar diagnostics."""
    def __init__(self) -> None:
        self.n = 0
        self.sums: Dict[str, float] = {}
        self.mins: Dict[str, float] = {}
        self.maxs: Dict[str, float] = {}

    def update(self, **vals: float) -> None:
        self.n += 1
        for k, v in vals.items():
            v = float(v)
            self.sums[k] = self.sums.get(k, 0.0) + v
            self.mins[k] = v if k not in self.mins else min(self.mins[k], v)
            self.maxs[k] = v if k not in self.maxs else max(self.maxs[k], v)

    def summary(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"count": self.n, "mean": {}, "min": {}, "max": {}}
        if self.n == 0:
            return out
        for k, s in self.sums.items():
            out["mean"][k] = s / float(self.n)
        out["min"] = dict(self.mins)
        out["max"] = dict(self.maxs)
        return out


def _ensure_empty_dir(path: str, overwrite: bool) -> None:
    if os.path.exists(path):
        if not overwrite:
            raise FileExistsError(f"Output directory already exists: {path} (use --overwrite to replace)")
        shutil.rmtree(path)
    os.makedirs(path, exist_ok=True)


def _dtype_to_hf(dtype: str) -> str:
    dtype = dtype.lower().strip()
    if dtype not in ("float32", "float64"):
        raise ValueError(f"Unsupported dtype for storage: {dtype}")
    return dtype


def _make_features(dtype: str, ndim: int, N: int) -> datasets.Features:
    dtype = _dtype_to_hf(dtype)
    shape = (ndim,) + (N,) * ndim
    if ndim == 1:
        field = datasets.Array2D(shape=shape, dtype=dtype)
    elif ndim == 2:
        field = datasets.Array3D(shape=shape, dtype=dtype)
    else:
        field = datasets.Array4D(shape=shape, dtype=dtype)
    return datasets.Features(
        {
            "step": datasets.Value("int32"),
            "time": datasets.Value(dtype),
            "field": field,
        }
    )


def _resolve_turbgen_config(cfg: SnapshotBuildConfig) -> tuple[TurbGenConfig, str]:
    if cfg.turbgen is not None:
        return cfg.turbgen, ""
    if cfg.param_file is None:
        raise ValueError("either param_file or turbgen must be given")
    return read_parameter_file(cfg.param_file), str(cfg.param_file)


def _box(tcfg: TurbGenConfig) -> tuple[list[float], list[float]]:
    lower = [tcfg.xmin, tcfg.ymin, tcfg.zmin][: tcfg.ndim]
    upper = [tcfg.xmax, tcfg.ymax, tcfg.zmax][: tcfg.ndim]
    return lower, upper


def build_and_save_dataset(cfg: SnapshotBuildConfig) -> str:
    """
    Record consecutive driving patterns sampled on a uniform grid as an HF
    Dataset saved to disk under:
        <output_root>/<dataset_name>/

    Returns
    -------
    out_dir : str
        Path to saved dataset directory.
    """
    if cfg.N <= 0:
        raise ValueError("N must be > 0")
    if cfg.n_patterns < 1:
        raise ValueError("n_patterns must be >= 1")
    _dtype_to_hf(cfg.dtype)

    tcfg, source = _resolve_turbgen_config(cfg)
    out_dir = os.path.join(cfg.output_root, cfg.dataset_name)
    _ensure_empty_dir(out_dir, overwrite=cfg.overwrite)

    generator = TurbulenceGenerator(tcfg, source=source)
    field = DrivingField(generator, device=cfg.device)
    lower, upper = _box(tcfg)
    features = _make_features(cfg.dtype, tcfg.ndim, int(cfg.N))
    np_dtype = np.float32 if cfg.dtype == "float32" else np.float64
    stats = RunningStats()

    def make_generator() -> Iterator[Dict[str, Any]]:
        for step in trange(int(cfg.n_patterns), desc="driving patterns", disable=not cfg.progress):
            generator.advance_to_step(step)
            field.sync(generator)
            v = field.sample_grid(lower, upper, int(cfg.N))
            rms = float(rms_magnitude(v.reshape(tcfg.ndim, -1).T).item())
            if not np.isfinite(rms):
                raise RuntimeError(f"Non-finite driving field at step {generator.step}")
            comp = float(compressive_fraction(field.modes, field.aka, field.akb).item())
            stats.update(rms=rms, compressive_fraction=comp)

            yield {
                "step": np.int32(generator.step),
                "time": np_dtype(generator.step * generator.dt),
                "field": v.cpu().numpy().astype(np_dtype, copy=False),
            }

    ds = datasets.Dataset.from_generator(
        make_generator,
        features=features,
        writer_batch_size=int(cfg.writer_batch_size),
        cache_dir=os.path.join(out_dir, "_hf_cache"),
        keep_in_memory=False,
    )
    ds.save_to_disk(os.path.join(out_dir, "patterns"))
    logger.info("saved %i driving patterns to %s", len(ds), out_dir)

    args = {k: v for k, v in cfg.__dict__.items() if k != "turbgen"}
    meta = {
        "description": (
            "Turbulent driving field (Ornstein-Uhlenbeck phases, Federrath et al. 2010) sampled on a "
            "cell-centred uniform grid; one row per driving pattern."
        ),
        "axis_ordering": {
            "field": "field[a, i, j, k] is component a at x_i, y_j, z_k (ij indexing, cell centres).",
        },
        "args": args,
        "turbgen": {k: (int(v) if k == "spect_form" else v) for k, v in tcfg.__dict__.items()},
        "derived": generator.info(),
        "grid": {"N": cfg.N, "lower": lower, "upper": upper},
        "rms_summary": stats.summary(),
    }
    with open(os.path.join(out_dir, "metadata.json"), "w", encoding="utf-8") as f:
        json.dump(meta, f, indent=2, sort_keys=True)

    return out_dir
