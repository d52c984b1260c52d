from __future__ import annotations

import numpy as np

# bound on points x modes handled per chunk
_CHUNK_ELEMENTS = 1 << 22


def as_points(points, ndim: int) -> np.ndarray:
    """
    Promote query points to a (P, 3) float64 array; missing axes are zero.
    A scalar or a flat sequence is read as a single point.
    """
    p = np.asarray(points, dtype=np.float64)
    if p.ndim <= 1:
        p = p.reshape(1, -1)
    if p.ndim != 2 or p.shape[1] < ndim or p.shape[1] > 3:
        raise ValueError(f"points must have shape (P, {ndim}) (got {np.shape(points)})")
    out = np.zeros((p.shape[0], 3), dtype=np.float64)
    out[:, : p.shape[1]] = p
    return out


def _evaluate_chunk(
    pts: np.ndarray, modes: np.ndarray, prefactor: np.ndarray, aka: np.ndarray, akb: np.ndarray, ndim: int
) -> np.ndarray:
    ax = modes[None, :, 0] * pts[:, 0:1]
    ay = modes[None, :, 1] * pts[:, 1:2]
    az = modes[None, :, 2] * pts[:, 2:3]
    sinx, cosx = np.sin(ax), np.cos(ax)
    siny, cosy = np.sin(ay), np.cos(ay)
    sinz, cosz = np.sin(az), np.cos(az)

    # real and imaginary parts of exp(i k.x), expanded with the angle-sum identities
    real = (cosx * cosy - sinx * siny) * cosz - (sinx * cosy + cosx * siny) * sinz
    imag = cosx * (cosy * sinz + siny * cosz) + sinx * (cosy * cosz - siny * sinz)

    out = np.empty((pts.shape[0], ndim), dtype=np.float64)
    for a in range(ndim):
        out[:, a] = np.sum(prefactor[None, :] * (aka[None, :, a] * real - akb[None, :, a] * imag), axis=1)
    return out


def evaluate_points(
    points,
    modes: np.ndarray,
    amplitudes: np.ndarray,
    aka: np.ndarray,
    akb: np.ndarray,
    sol_weight_norm: float,
    ndim: int,
) -> np.ndarray:
    """
    Driving field at each query point.

        v(x) = sum_m 2 N_w A_m (aka_m cos(k_m.x) - akb_m sin(k_m.x))

    Parameters
    ----------
    points : array-like, (P, ndim)
    modes : (n_modes, 3); amplitudes : (n_modes,); aka, akb : (n_modes, 3)
    sol_weight_norm : float
        N_w, keeps the field rms independent of the solenoidal weight.

    Returns
    -------
    v : (P, ndim) float64 array
    """
    pts = as_points(points, ndim)
    n_points = pts.shape[0]
    n_modes = modes.shape[0]
    if n_modes == 0:
        return np.zeros((n_points, ndim), dtype=np.float64)

    prefactor = 2.0 * sol_weight_norm * amplitudes
    chunk = max(1, _CHUNK_ELEMENTS // n_modes)
    out = np.empty((n_points, ndim), dtype=np.float64)
    for start in range(0, n_points, chunk):
        stop = min(start + chunk, n_points)
        out[start:stop] = _evaluate_chunk(pts[start:stop], modes, prefactor, aka, akb, ndim)
    return out
