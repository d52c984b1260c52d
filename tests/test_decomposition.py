from __future__ import annotations

import numpy as np
import pytest

from turbgen.core.decomposition import decomposition_coeffs
from turbgen.core.errors import NumericalDegeneracy


@pytest.fixture
def modes_and_phases():
    rng = np.random.default_rng(0)
    modes = rng.integers(-4, 5, size=(40, 3)).astype(np.float64) * 2 * np.pi
    modes[np.all(modes == 0.0, axis=1)] = [2 * np.pi, 0.0, 0.0]
    phases = rng.normal(size=(40, 3, 2))
    return modes, phases


def _dot(a, b):
    return np.sum(a * b, axis=1)


def test_compressive_limit_is_parallel_to_k(modes_and_phases):
    modes, phases = modes_and_phases
    aka, akb = decomposition_coeffs(modes, phases, 0.0, 3)
    np.testing.assert_allclose(np.cross(aka, modes), 0.0, atol=1e-9)
    np.testing.assert_allclose(np.cross(akb, modes), 0.0, atol=1e-9)
    kk = _dot(modes, modes)
    np.testing.assert_allclose(aka, modes * (_dot(modes, phases[:, :, 0]) / kk)[:, None], rtol=1e-12, atol=1e-12)


def test_solenoidal_limit_is_divergence_free(modes_and_phases):
    modes, phases = modes_and_phases
    aka, akb = decomposition_coeffs(modes, phases, 1.0, 3)
    np.testing.assert_allclose(_dot(modes, aka), 0.0, atol=1e-9)
    np.testing.assert_allclose(_dot(modes, akb), 0.0, atol=1e-9)


def test_mixture_is_linear_in_weight(modes_and_phases):
    modes, phases = modes_and_phases
    a0, b0 = decomposition_coeffs(modes, phases, 0.0, 3)
    a1, b1 = decomposition_coeffs(modes, phases, 1.0, 3)
    a, b = decomposition_coeffs(modes, phases, 0.3, 3)
    np.testing.assert_allclose(a, 0.3 * a1 + 0.7 * a0, atol=1e-12)
    np.testing.assert_allclose(b, 0.3 * b1 + 0.7 * b0, atol=1e-12)


def test_unused_axes_are_zero(modes_and_phases):
    modes, phases = modes_and_phases
    modes = modes.copy()
    modes[:, 2] = 0.0
    modes[np.all(modes == 0.0, axis=1)] = [2 * np.pi, 0.0, 0.0]
    aka, akb = decomposition_coeffs(modes, phases, 0.5, 2)
    assert np.all(aka[:, 2] == 0.0)
    assert np.all(akb[:, 2] == 0.0)


def test_zero_wavevector_raises():
    modes = np.array([[2 * np.pi, 0.0, 0.0], [0.0, 0.0, 0.0]])
    phases = np.ones((2, 3, 2))
    with pytest.raises(NumericalDegeneracy):
        decomposition_coeffs(modes, phases, 0.5, 3)


def test_empty_table():
    aka, akb = decomposition_coeffs(np.zeros((0, 3)), np.zeros((0, 3, 2)), 0.5, 3)
    assert aka.shape == (0, 3)
    assert akb.shape == (0, 3)
