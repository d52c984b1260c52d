from __future__ import annotations

import math

import numpy as np
import pytest

from turbgen.core.ou import CHANNELS_PER_MODE, OrnsteinUhlenbeckPhases
from turbgen.core.rng import ParkMillerUniform


def _process(n_modes=50, variance=0.7, dt=0.5, decay=1.0, seed=140281):
    return OrnsteinUhlenbeckPhases(n_modes, variance, dt, decay, ParkMillerUniform(seed))


def test_initial_state():
    ou = _process()
    assert ou.step == -1
    assert ou.phases.shape == (CHANNELS_PER_MODE * 50,)
    ou.initialize()
    assert ou.step == -1
    assert ou.by_mode.shape == (50, 3, 2)
    assert ou.by_mode[3, 2, 1] == ou.phases[6 * 3 + 2 * 2 + 1]


def test_update_increments_step_and_follows_recurrence():
    ou = _process()
    ou.initialize()
    before = ou.phases.copy()
    twin = ParkMillerUniform(ou.rng.seed)
    ou.update()
    assert ou.step == 0

    f = math.exp(-0.5)
    g = twin.gaussians(before.shape[0])
    np.testing.assert_allclose(ou.phases, before * f + math.sqrt(1.0 - f * f) * 0.7 * g, rtol=1e-14)


def test_initial_draws_have_target_variance():
    ou = _process(n_modes=5000)
    ou.initialize()
    assert np.var(ou.phases) == pytest.approx(0.49, rel=0.03)


def test_stationary_statistics():
    ou = _process()
    ou.initialize()
    samples = []
    for _ in range(2000):
        ou.update()
        samples.append(ou.phases.copy())
    x = np.asarray(samples)

    assert abs(x.mean()) < 0.05 * 0.7
    assert x.var() == pytest.approx(0.49, rel=0.05)
    lag1 = np.mean(x[1:] * x[:-1]) / np.mean(x * x)
    assert lag1 == pytest.approx(ou.damping_factor, abs=0.03)


def test_same_seed_same_sequence():
    a = _process(seed=7)
    b = _process(seed=7)
    a.initialize()
    b.initialize()
    for _ in range(5):
        a.update()
        b.update()
    np.testing.assert_array_equal(a.phases, b.phases)
