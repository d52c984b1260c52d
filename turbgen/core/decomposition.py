from __future__ import annotations

import numpy as np

from .errors import NumericalDegeneracy


def decomposition_coeffs(
    modes: np.ndarray, phases_by_mode: np.ndarray, sol_weight: float, ndim: int
) -> tuple[np.ndarray, np.ndarray]:
    """
    Apply the Helmholtz projection operator to the OU phases of every mode.

    For mode k with complex amplitude a + i b (a, b = real/imaginary channels),
    the compressive part is k (k.a)/k^2 and the solenoidal part is the
    remainder; both are blended with the solenoidal weight w.

    Parameters
    ----------
    modes : (n_modes, 3) array
    phases_by_mode : (n_modes, 3, 2) array
    sol_weight : float
        0: purely compressive (curl-free), 1: purely solenoidal (divergence-free).
    ndim : int
        Only the first ``ndim`` axes take part; the remaining coefficients are zero.

    Returns
    -------
    aka, akb : (n_modes, 3) arrays
    """
    n_modes = modes.shape[0]
    w = float(sol_weight)
    aka = np.zeros((n_modes, 3), dtype=np.float64)
    akb = np.zeros((n_modes, 3), dtype=np.float64)
    if n_modes == 0:
        return aka, akb

    ka = np.zeros(n_modes, dtype=np.float64)
    kb = np.zeros(n_modes, dtype=np.float64)
    kk = np.zeros(n_modes, dtype=np.float64)
    for j in range(ndim):
        kk = kk + modes[:, j] * modes[:, j]
        ka = ka + modes[:, j] * phases_by_mode[:, j, 1]
        kb = kb + modes[:, j] * phases_by_mode[:, j, 0]

    if np.any(kk == 0.0):
        bad = int(np.flatnonzero(kk == 0.0)[0])
        raise NumericalDegeneracy(f"mode {bad} has |k|^2 = 0; cannot project its phases")

    for j in range(ndim):
        diva = modes[:, j] * ka / kk
        divb = modes[:, j] * kb / kk
        curla = phases_by_mode[:, j, 0] - divb
        curlb = phases_by_mode[:, j, 1] - diva
        aka[:, j] = w * curla + (1.0 - w) * divb
        akb[:, j] = w * curlb + (1.0 - w) * diva
    return aka, akb
