from __future__ import annotations

from dataclasses import dataclass, fields, replace
import enum
import math
import sys

from .errors import ConfigurationError

# Margin applied to the band limits so that integer shells are not lost to rounding.
DBL_EPSILON = sys.float_info.epsilon

DEFAULT_MAX_N_MODES = 100000

# Seeds live in a 31-bit integer; the generators are exact only for |seed| < 2^31 - 1.
MAX_RANDOM_SEED = 2147483646


class SpectralForm(enum.IntEnum):
    BAND = 0
    PARABOLA = 1
    POWER_LAW = 2


@dataclass(frozen=True)
class TurbGenConfig:
    """
    Input record of the turbulence generator.

    Lengths are in code units of the host simulation; wavenumbers ``k_driv``,
    ``k_min`` and ``k_max`` are in units of 2π/Lx.
    """

    ndim: int
    xmin: float
    xmax: float
    ymin: float
    ymax: float
    zmin: float
    zmax: float
    velocity: float  # target velocity dispersion
    k_driv: float  # characteristic driving wavenumber
    k_min: float
    k_max: float
    sol_weight: float  # 0: compressive, 0.5: natural mix, 1: solenoidal
    spect_form: SpectralForm
    power_law_exp: float  # power-law form only
    angles_exp: float  # power-law form only; 2.0 samples shells fully in 3D
    energy_coeff: float
    random_seed: int
    nsteps_per_turnover_time: int
    max_n_modes: int = DEFAULT_MAX_N_MODES

    def __post_init__(self) -> None:
        try:
            value = int(self.spect_form)
            if value != self.spect_form:
                raise ValueError(self.spect_form)
            form = SpectralForm(value)
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"spect_form must be one of {[int(f) for f in SpectralForm]} (got {self.spect_form})"
            ) from None
        object.__setattr__(self, "spect_form", form)

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def with_updates(self, **changes) -> "TurbGenConfig":
        return replace(self, **changes)

    def validate(self) -> "TurbGenConfig":
        if self.ndim not in (1, 2, 3):
            raise ConfigurationError(f"ndim must be 1, 2 or 3 (got {self.ndim})")
        extents = [("x", self.xmin, self.xmax), ("y", self.ymin, self.ymax), ("z", self.zmin, self.zmax)]
        for name, lo, hi in extents[: self.ndim]:
            if not (math.isfinite(lo) and math.isfinite(hi)) or hi <= lo:
                raise ConfigurationError(f"{name}max must be > {name}min (got {name}min={lo}, {name}max={hi})")
        if not 0.0 <= self.sol_weight <= 1.0:
            raise ConfigurationError(f"sol_weight must be in [0, 1] (got {self.sol_weight})")
        if self.velocity <= 0.0:
            raise ConfigurationError("velocity must be > 0")
        if self.k_driv <= 0.0:
            raise ConfigurationError("k_driv must be > 0")
        if self.k_min <= 0.0:
            raise ConfigurationError("k_min must be > 0 (the zero wavevector cannot be driven)")
        if self.k_max < self.k_min:
            raise ConfigurationError("k_max must be >= k_min")
        if self.nsteps_per_turnover_time < 1:
            raise ConfigurationError("nsteps_per_turnover_time must be >= 1")
        if self.energy_coeff < 0.0:
            raise ConfigurationError(f"energy_coeff must be >= 0 (got {self.energy_coeff})")
        if not 1 <= abs(self.random_seed) <= MAX_RANDOM_SEED:
            raise ConfigurationError(
                f"random_seed must satisfy 1 <= |random_seed| <= {MAX_RANDOM_SEED} (got {self.random_seed})"
            )
        if self.max_n_modes < 1:
            raise ConfigurationError("max_n_modes must be >= 1")
        return self

    # derived physical quantities

    @property
    def lengths(self) -> tuple[float, float, float]:
        return (self.xmax - self.xmin, self.ymax - self.ymin, self.zmax - self.zmin)

    @property
    def Lx(self) -> float:
        return self.xmax - self.xmin

    @property
    def stir_min(self) -> float:
        return (self.k_min - DBL_EPSILON) * 2 * math.pi / self.Lx

    @property
    def stir_max(self) -> float:
        return (self.k_max + DBL_EPSILON) * 2 * math.pi / self.Lx

    @property
    def decay(self) -> float:
        """Auto-correlation (turbulent turnover) time, Lx / k_driv / velocity."""
        return self.Lx / self.k_driv / self.velocity

    @property
    def energy(self) -> float:
        """Energy injection rate ~ velocity^3 / Lx."""
        return self.energy_coeff * math.pow(self.velocity, 3.0) / self.Lx

    @property
    def ou_variance(self) -> float:
        return math.sqrt(self.energy / self.decay)

    @property
    def dt(self) -> float:
        """Interval between successive driving patterns."""
        return self.decay / self.nsteps_per_turnover_time

    @property
    def sol_weight_norm(self) -> float:
        return solenoidal_weight_norm(self.sol_weight, self.ndim)


def solenoidal_weight_norm(sol_weight: float, ndim: int) -> float:
    """
    Normalisation that keeps the rms of the driving field independent of the
    solenoidal weight w:  sqrt(3/d) * sqrt(3) / sqrt(1 - 2w + d w^2).

    The denominator only vanishes for d=1, w=1. A one-dimensional field has no
    solenoidal part, so the field is identically zero there and the norm is 0.
    """
    w = float(sol_weight)
    d = float(ndim)
    denom = 1.0 - 2.0 * w + d * math.pow(w, 2.0)
    if denom <= 0.0:
        return 0.0
    return math.sqrt(3.0 / d) * math.sqrt(3.0) * 1.0 / math.sqrt(denom)
