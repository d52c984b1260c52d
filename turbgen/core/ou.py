from __future__ import annotations

import math

import numpy as np

from .rng import ParkMillerUniform

# phase channels per mode: 3 axes x (cosine, sine) components
CHANNELS_PER_MODE = 6


class OrnsteinUhlenbeckPhases:
    """
    Ornstein-Uhlenbeck sequence driving the complex amplitudes of all modes.

    Every channel follows the Markov recurrence

        x_{n+1} = f x_n + sigma sqrt(1 - f^2) z_n,    f = exp(-dt / ts),

    with z_n drawn from a unit-variance Gaussian and sigma the target standard
    deviation. The sequence has zero mean, stationary rms sigma and
    auto-correlation time ts; its temporal power spectrum ranges from white to
    brown noise depending on dt / ts (Eswaran & Pope 1988; Bartosch 2001;
    Federrath et al. 2010).

    Channel layout matches ``phases[6*i + 2*j + c]`` for mode i, axis j and
    component c (0: real, 1: imaginary); ``by_mode`` exposes it as [n_modes, 3, 2].
    """

    def __init__(self, n_modes: int, variance: float, dt: float, decay: float, rng: ParkMillerUniform):
        self.n_modes = int(n_modes)
        self.variance = float(variance)
        self.dt = float(dt)
        self.decay = float(decay)
        self.rng = rng
        self.step = -1
        self.phases = np.zeros(CHANNELS_PER_MODE * self.n_modes, dtype=np.float64)

    @property
    def damping_factor(self) -> float:
        return math.exp(-self.dt / self.decay)

    @property
    def by_mode(self) -> np.ndarray:
        return self.phases.reshape(self.n_modes, 3, 2)

    def initialize(self) -> None:
        n = CHANNELS_PER_MODE * self.n_modes
        self.phases = self.variance * self.rng.gaussians(n)

    def update(self) -> None:
        """Advance every channel by one step of length dt and bump the step counter."""
        f = self.damping_factor
        g = self.rng.gaussians(self.phases.shape[0])
        self.phases = self.phases * f + math.sqrt(1.0 - f * f) * self.variance * g
        self.step += 1
