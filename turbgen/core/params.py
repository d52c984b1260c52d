from __future__ import annotations

import logging
import os
from typing import Dict

from .config import TurbGenConfig
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

INT_KEYS = ("ndim", "spect_form", "random_seed", "nsteps_per_turnover_time", "max_n_modes")
REQUIRED_KEYS = (
    "ndim",
    "xmin",
    "xmax",
    "ymin",
    "ymax",
    "zmin",
    "zmax",
    "velocity",
    "k_driv",
    "k_min",
    "k_max",
    "sol_weight",
    "spect_form",
    "power_law_exp",
    "angles_exp",
    "energy_coeff",
    "random_seed",
    "nsteps_per_turnover_time",
)
OPTIONAL_KEYS = ("max_n_modes",)

_COMMENT_CHARS = ("!", "#")


def _strip_comment(line: str) -> str:
    cut = len(line)
    for c in _COMMENT_CHARS:
        i = line.find(c)
        if i >= 0:
            cut = min(cut, i)
    return line[:cut]


def parse_parameter_lines(text: str) -> Dict[str, str]:
    """
    Collect ``key = value`` pairs; the first occurrence of a key wins and
    anything after ``!`` or ``#`` is a comment.
    """
    entries: Dict[str, str] = {}
    for raw in text.splitlines():
        line = _strip_comment(raw)
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if key and key not in entries:
            entries[key] = value.strip()
    return entries


def _convert(key: str, text: str, path: str):
    try:
        if key in INT_KEYS:
            try:
                return int(text)
            except ValueError:
                f = float(text)
                if not f.is_integer():
                    raise
                return int(f)
        return float(text)
    except ValueError:
        raise ConfigurationError(f"cannot read parameter '{key}' = '{text}' in file '{path}'") from None


def read_parameter_file(path: str) -> TurbGenConfig:
    """Read and validate a generator configuration from a key/value parameter file."""
    path = str(path)
    if not os.path.isfile(path):
        raise ConfigurationError(f"cannot access parameter file '{path}'")
    with open(path, "r", encoding="utf-8") as f:
        entries = parse_parameter_lines(f.read())

    values = {}
    for key in REQUIRED_KEYS:
        if key not in entries:
            raise ConfigurationError(f"requested parameter '{key}' not found in file '{path}'")
        values[key] = _convert(key, entries[key], path)
    for key in OPTIONAL_KEYS:
        if key in entries:
            values[key] = _convert(key, entries[key], path)

    for key in entries:
        if key not in REQUIRED_KEYS and key not in OPTIONAL_KEYS:
            logger.debug("ignoring unknown parameter '%s' in '%s'", key, path)

    return TurbGenConfig(**values).validate()


def write_parameter_file(cfg: TurbGenConfig, path: str) -> str:
    lines = ["# turbulence generator parameters"]
    for key in REQUIRED_KEYS + OPTIONAL_KEYS:
        value = getattr(cfg, key)
        if key in INT_KEYS:
            lines.append(f"{key:<26} = {int(value)}")
        else:
            lines.append(f"{key:<26} = {float(value)!r}")
    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")
    return str(path)
