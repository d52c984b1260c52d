from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional

import numpy as np

from .config import SpectralForm, TurbGenConfig
from .decomposition import decomposition_coeffs
from .evaluate import evaluate_points
from .modes import ModeTable, build_mode_table
from .ou import OrnsteinUhlenbeckPhases
from .params import read_parameter_file
from .rng import ParkMillerUniform

logger = logging.getLogger(__name__)


class TurbulenceGenerator:
    """
    Time-correlated turbulent vector field for driving (or initialising)
    turbulence in a host simulation, following Federrath et al. (2010).

    A generator owns its mode table, OU phases and random streams, so several
    independent driven fields simply use several instances. The host calls
    ``check_for_update(time)`` once per coarse step and ``get_turb_vector`` /
    ``evaluate`` at any number of positions in between. Evaluation is read-only;
    step advancement must be serialised against it by the caller.

    Replicas built from the same configuration and advanced with the same
    sequence of times hold bit-identical state.
    """

    def __init__(self, config: TurbGenConfig, log: Optional[logging.Logger] = None, source: str = ""):
        self.config = config.validate()
        self.log = log if log is not None else logger
        self.source = source

        self.modes: ModeTable
        self.modes, seed = build_mode_table(self.config, self.config.random_seed, self.log)
        self.rng = ParkMillerUniform(seed)

        self.ou = OrnsteinUhlenbeckPhases(
            n_modes=self.modes.n_modes,
            variance=self.config.ou_variance,
            dt=self.config.dt,
            decay=self.config.decay,
            rng=self.rng,
        )
        self.ou.initialize()
        self.aka, self.akb = self._decompose()
        self.log_info()

    @classmethod
    def from_parameter_file(cls, path: str, log: Optional[logging.Logger] = None) -> "TurbulenceGenerator":
        return cls(read_parameter_file(path), log=log, source=str(path))

    # ------------------------------------------------------------------ state

    @property
    def ndim(self) -> int:
        return self.config.ndim

    @property
    def n_modes(self) -> int:
        return self.modes.n_modes

    @property
    def step(self) -> int:
        """Index of the current driving pattern; -1 until the first update."""
        return self.ou.step

    @property
    def dt(self) -> float:
        return self.config.dt

    @property
    def seed(self) -> int:
        """Working seed of the Gaussian stream."""
        return self.rng.seed

    @property
    def sol_weight_norm(self) -> float:
        return self.config.sol_weight_norm

    @property
    def phases(self) -> np.ndarray:
        return self.ou.phases.copy()

    def _decompose(self) -> tuple[np.ndarray, np.ndarray]:
        aka, akb = decomposition_coeffs(
            self.modes.vectors, self.ou.by_mode, self.config.sol_weight, self.config.ndim
        )
        if self.log.isEnabledFor(logging.DEBUG):
            for i in range(self.n_modes):
                for j in range(self.ndim):
                    self.log.debug(
                        "mode=%3i dim=%1i k=%12.6f aka=%12.6f akb=%12.6f ampl=%12.6f",
                        i, j, self.modes.vectors[i, j], aka[i, j], akb[i, j], self.modes.amplitudes[i],
                    )
        return aka, akb

    # ------------------------------------------------------------- stepping

    def advance_to_step(self, step_requested: int) -> bool:
        """
        Seek the OU sequence to ``step_requested``, passing through every
        intermediate step, then recompute the decomposition once.

        Returns False (and changes nothing) if the pattern is already at or
        beyond the requested step.
        """
        step_requested = int(step_requested)
        self.log.debug("step_requested = %i", step_requested)
        if step_requested <= self.ou.step:
            self.log.debug("no update of pattern...returning.")
            return False
        while self.ou.step < step_requested:
            self.ou.update()
            self.log.debug("step = %i, time = %f", self.ou.step, self.ou.step * self.dt)
        self.aka, self.akb = self._decompose()
        time_gen = self.ou.step * self.dt
        self.log.info(
            "Generated new turbulence driving pattern: #%6i, time = %f, time/t_turb = %f",
            self.ou.step, time_gen, time_gen / self.config.decay,
        )
        return True

    def check_for_update(self, time: float) -> bool:
        """
        Update the driving pattern for simulation ``time``.

        Returns True if a new pattern was generated, False if the current one
        is still valid.
        """
        time = float(time)
        if not math.isfinite(time):
            raise ValueError(f"time must be finite (got {time})")
        return self.advance_to_step(math.floor(time / self.dt))

    # ----------------------------------------------------------- evaluation

    def evaluate(self, points) -> np.ndarray:
        """Field at ``points`` (shape (P, ndim)); returns (P, ndim)."""
        return evaluate_points(
            points,
            self.modes.vectors,
            self.modes.amplitudes,
            self.aka,
            self.akb,
            self.sol_weight_norm,
            self.ndim,
        )

    def get_turb_vector(self, x: float, y: float = 0.0, z: float = 0.0) -> np.ndarray:
        """Field at a single position; returns ``ndim`` components."""
        return self.evaluate(np.array([[x, y, z]], dtype=np.float64))[0]

    # ---------------------------------------------------------- diagnostics

    def info(self) -> Dict[str, Any]:
        cfg = self.config
        out: Dict[str, Any] = {
            "n_modes": self.n_modes,
            "spect_form": cfg.spect_form.name.lower(),
            "Lx": cfg.Lx,
            "velocity": cfg.velocity,
            "decay": cfg.decay,
            "k_characteristic": cfg.Lx / cfg.velocity / cfg.decay,
            "k_min": cfg.stir_min / (2 * math.pi) * cfg.Lx,
            "k_max": cfg.stir_max / (2 * math.pi) * cfg.Lx,
            "energy": cfg.energy,
            "energy_coeff": cfg.energy / math.pow(cfg.velocity, 3.0) * cfg.Lx,
            "sol_weight": cfg.sol_weight,
            "sol_weight_norm": cfg.sol_weight_norm,
            "ndim": cfg.ndim,
            "random_seed": cfg.random_seed,
            "dt": cfg.dt,
        }
        if cfg.spect_form == SpectralForm.POWER_LAW:
            out["power_law_exp"] = cfg.power_law_exp
            out["angles_exp"] = cfg.angles_exp
        return out

    def describe(self) -> str:
        info = self.info()
        cfg = self.config
        source = f" based on parameter file '{self.source}'" if self.source else ""
        lines = [f"Initialized {info['n_modes']} modes for turbulence{source}."]
        lines.append(f" spectral form                                       = {int(cfg.spect_form)} ({cfg.spect_form.name.replace('_', ' ').title()})")
        if cfg.spect_form == SpectralForm.POWER_LAW:
            lines.append(f" power-law exponent                                  = {cfg.power_law_exp:f}")
            lines.append(f" power-law angles sampling exponent                  = {cfg.angles_exp:f}")
        lines += [
            f" box size Lx                                         = {info['Lx']:f}",
            f" turbulent dispersion                                = {info['velocity']:f}",
            f" auto-correlation time                               = {info['decay']:f}",
            f"  -> characteristic turbulent wavenumber (in 2pi/Lx) = {info['k_characteristic']:f}",
            f" minimum wavenumber (in 2pi/Lx)                      = {info['k_min']:f}",
            f" maximum wavenumber (in 2pi/Lx)                      = {info['k_max']:f}",
            f" driving energy (injection rate)                     = {info['energy']:f}",
            f"  -> energy coefficient (energy / velocity^3 * Lx)   = {info['energy_coeff']:f}",
            f" solenoidal weight (0.0: comp, 0.5: mix, 1.0: sol)   = {info['sol_weight']:f}",
            f"  -> solenoidal weight norm (set based on Ndim = {cfg.ndim})  = {info['sol_weight_norm']:f}",
            f" random seed                                         = {info['random_seed']}",
        ]
        return "\n".join(lines)

    def log_info(self) -> None:
        for line in self.describe().splitlines():
            self.log.info(line)
