from __future__ import annotations

import logging
import math

import numpy as np
import pytest

from turbgen.core.generator import TurbulenceGenerator

from .conftest import make_config


def _grid(n, ndim):
    axes = [(np.arange(n) + 0.5) / n] * ndim
    mesh = np.meshgrid(*axes, indexing="ij")
    return np.stack([m.reshape(-1) for m in mesh], axis=-1)


def test_starts_before_first_pattern():
    gen = TurbulenceGenerator(make_config())
    assert gen.step == -1
    assert gen.phases.shape == (6 * gen.n_modes,)
    assert gen.aka.shape == (gen.n_modes, 3)


def test_update_is_idempotent_within_a_step():
    gen = TurbulenceGenerator(make_config())
    assert gen.check_for_update(0.0) is True
    assert gen.step == 0
    phases = gen.phases
    aka = gen.aka.copy()
    v = gen.get_turb_vector(0.1, 0.2, 0.3)

    assert gen.check_for_update(0.5 * gen.dt) is False
    assert gen.check_for_update(0.0) is False
    np.testing.assert_array_equal(gen.phases, phases)
    np.testing.assert_array_equal(gen.aka, aka)
    np.testing.assert_array_equal(gen.get_turb_vector(0.1, 0.2, 0.3), v)


def test_time_before_start_changes_nothing():
    gen = TurbulenceGenerator(make_config())
    phases = gen.phases
    assert gen.check_for_update(-0.5 * gen.dt) is False
    assert gen.step == -1
    np.testing.assert_array_equal(gen.phases, phases)


def test_non_finite_time_raises():
    gen = TurbulenceGenerator(make_config())
    with pytest.raises(ValueError):
        gen.check_for_update(float("nan"))
    with pytest.raises(ValueError):
        gen.check_for_update(float("inf"))


def test_catch_up_matches_single_steps():
    cfg = make_config()
    jump = TurbulenceGenerator(cfg)
    walk = TurbulenceGenerator(cfg)

    assert jump.check_for_update(5.5 * cfg.dt) is True
    assert jump.step == 5
    for step in range(6):
        walk.advance_to_step(step)
    assert walk.step == 5
    np.testing.assert_array_equal(jump.phases, walk.phases)
    np.testing.assert_array_equal(jump.aka, walk.aka)
    np.testing.assert_array_equal(jump.akb, walk.akb)


def test_replicas_stay_identical():
    cfg = make_config(spect_form=2)
    a = TurbulenceGenerator(cfg)
    b = TurbulenceGenerator(cfg)
    pts = _grid(4, 3)
    for t in [0.0, 0.013, 0.2, 0.21, 1.7]:
        assert a.check_for_update(t) == b.check_for_update(t)
        assert a.seed == b.seed
        np.testing.assert_array_equal(a.evaluate(pts), b.evaluate(pts))


def test_instances_are_independent():
    cfg = make_config()
    a = TurbulenceGenerator(cfg)
    b = TurbulenceGenerator(cfg)
    fresh = TurbulenceGenerator(cfg)
    a.check_for_update(10 * cfg.dt)
    b.check_for_update(0.0)
    fresh.check_for_update(0.0)
    np.testing.assert_array_equal(b.phases, fresh.phases)


def test_different_seeds_differ():
    a = TurbulenceGenerator(make_config(random_seed=1))
    b = TurbulenceGenerator(make_config(random_seed=2))
    assert not np.array_equal(a.phases, b.phases)


def test_turb_vector_has_ndim_components():
    for ndim in (1, 2, 3):
        gen = TurbulenceGenerator(make_config(ndim=ndim))
        gen.check_for_update(0.0)
        v = gen.get_turb_vector(0.25, 0.5, 0.75)
        assert v.shape == (ndim,)
        np.testing.assert_array_equal(v, gen.evaluate([[0.25, 0.5, 0.75][:ndim]])[0])


def test_one_dimensional_purely_solenoidal_field_vanishes():
    cfg = make_config(ndim=1, ymin=0.0, ymax=0.0, zmin=0.0, zmax=0.0, spect_form=0, sol_weight=1.0)
    gen = TurbulenceGenerator(cfg)
    gen.check_for_update(0.0)
    assert gen.sol_weight_norm == 0.0
    np.testing.assert_allclose(gen.aka, 0.0, atol=1e-12)
    np.testing.assert_array_equal(gen.evaluate(_grid(16, 1)), 0.0)


def test_one_dimensional_compressive_field_formula():
    cfg = make_config(ndim=1, ymin=0.0, ymax=0.0, zmin=0.0, zmax=0.0, spect_form=0, sol_weight=0.0)
    gen = TurbulenceGenerator(cfg)
    gen.check_for_update(0.0)
    assert gen.n_modes == 3
    # in one dimension the compressive projection keeps the phases unchanged
    np.testing.assert_allclose(gen.aka[:, 0], gen.ou.by_mode[:, 0, 0])
    np.testing.assert_allclose(gen.akb[:, 0], gen.ou.by_mode[:, 0, 1])

    x = np.linspace(0.0, 1.0, 11)
    k = gen.modes.vectors[:, 0]
    expected = np.sum(
        2.0 * 3.0 * gen.modes.amplitudes * (gen.aka[:, 0] * np.cos(np.outer(x, k)) - gen.akb[:, 0] * np.sin(np.outer(x, k))),
        axis=1,
    )
    np.testing.assert_allclose(gen.evaluate(x[:, None])[:, 0], expected, rtol=1e-10, atol=1e-12)


def test_rms_independent_of_solenoidal_weight():
    pts = _grid(8, 3)
    mean_sq = {}
    for w in (0.0, 0.5, 1.0):
        cfg = make_config(k_min=1.0, k_max=2.0, spect_form=0, sol_weight=w, nsteps_per_turnover_time=1)
        gen = TurbulenceGenerator(cfg)
        acc = []
        for step in range(100):
            gen.advance_to_step(step)
            v = gen.evaluate(pts)
            acc.append(np.mean(np.sum(v * v, axis=1)))
        mean_sq[w] = float(np.mean(acc))

    expected = 12.0 * cfg.ou_variance ** 2 * float(np.sum(gen.modes.amplitudes ** 2))
    for w, ms in mean_sq.items():
        assert ms == pytest.approx(expected, rel=0.2), w
    assert mean_sq[0.0] == pytest.approx(mean_sq[1.0], rel=0.15)
    assert mean_sq[0.5] == pytest.approx(mean_sq[1.0], rel=0.15)


def test_info_and_describe():
    cfg = make_config(spect_form=2)
    gen = TurbulenceGenerator(cfg)
    info = gen.info()
    assert info["n_modes"] == gen.n_modes
    assert info["spect_form"] == "power_law"
    assert info["decay"] == pytest.approx(cfg.decay)
    assert info["k_characteristic"] == pytest.approx(cfg.k_driv)
    assert info["energy_coeff"] == pytest.approx(cfg.energy_coeff)
    assert info["k_min"] == pytest.approx(cfg.k_min)
    assert "power_law_exp" in info

    text = gen.describe()
    assert text.startswith(f"Initialized {gen.n_modes} modes for turbulence.")
    assert "random seed" in text
    assert "power-law exponent" in text


def test_pattern_changes_are_logged(caplog):
    log = logging.getLogger("host.driving")
    with caplog.at_level(logging.INFO, logger="host.driving"):
        gen = TurbulenceGenerator(make_config(), log=log)
        gen.check_for_update(3 * gen.dt)
    messages = [r.getMessage() for r in caplog.records if r.name == "host.driving"]
    assert any(m.startswith("Initialized") for m in messages)
    assert any("Generated new turbulence driving pattern" in m and "#     3" in m for m in messages)


def test_time_of_pattern():
    cfg = make_config(nsteps_per_turnover_time=4)
    gen = TurbulenceGenerator(cfg)
    gen.check_for_update(cfg.decay)
    assert gen.step == 4
    assert gen.step * gen.dt == pytest.approx(cfg.decay)
    assert math.isclose(gen.dt, cfg.decay / 4)
