from __future__ import annotations

from turbgen.core.config import TurbGenConfig


def make_config(**overrides) -> TurbGenConfig:
    values = dict(
        ndim=3,
        xmin=0.0,
        xmax=1.0,
        ymin=0.0,
        ymax=1.0,
        zmin=0.0,
        zmax=1.0,
        velocity=1.0,
        k_driv=2.0,
        k_min=1.0,
        k_max=3.0,
        sol_weight=0.5,
        spect_form=1,
        power_law_exp=-2.0,
        angles_exp=1.0,
        energy_coeff=5.0e-3,
        random_seed=140281,
        nsteps_per_turnover_time=10,
    )
    values.update(overrides)
    return TurbGenConfig(**values)
