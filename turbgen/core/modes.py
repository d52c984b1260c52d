from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Optional

import numpy as np

from .config import SpectralForm, TurbGenConfig
from .errors import ModeCapacityExceeded, NumericalDegeneracy
from .rng import LEcuyerUniform

logger = logging.getLogger(__name__)

# Largest integer wavenumber enumerated per axis for full sampling.
IK_MAX = 256


@dataclass(frozen=True)
class ModeTable:
    vectors: np.ndarray  # [n_modes, 3] wavevectors in 2pi/length units
    amplitudes: np.ndarray  # [n_modes]
    ndim: int
    spect_form: SpectralForm
    n_full_sampling: int  # modes a full (non-sparse) sampling of the band would give

    @property
    def n_modes(self) -> int:
        return int(self.vectors.shape[0])

    def magnitudes(self) -> np.ndarray:
        v = self.vectors
        return np.sqrt(v[:, 0] * v[:, 0] + v[:, 1] * v[:, 1] + v[:, 2] * v[:, 2])


def c_round(x: float) -> int:
    """Round half away from zero."""
    if x < 0.0:
        return -c_round(-x)
    r = math.floor(x)
    return int(r + 1) if x - r >= 0.5 else int(r)


def reflection_multiplicity(ndim: int) -> int:
    """Modes emitted per accepted wavevector: itself plus its ky/kz sign flips."""
    return 1 + (1 if ndim > 1 else 0) + (2 if ndim > 2 else 0)


def _axis_wavenumbers(ik_max: int, length: float) -> np.ndarray:
    ik = np.arange(0, ik_max + 1, dtype=np.float64)
    if ik_max == 0:
        return np.zeros(1, dtype=np.float64)
    return 2 * math.pi * ik / length


def _full_sampling_hits(cfg: TurbGenConfig) -> tuple[np.ndarray, np.ndarray]:
    """
    Enumerate integer wavenumber triples (ikx outermost, ikz innermost) whose
    physical magnitude falls inside [stir_min, stir_max].

    Returns
    -------
    k_vec : (n_hits, 3) float64 accepted wavevectors, in enumeration order
    k_mag : (n_hits,) float64 their magnitudes
    """
    Lx, Ly, Lz = cfg.lengths
    ikymax = IK_MAX if cfg.ndim > 1 else 0
    ikzmax = IK_MAX if cfg.ndim > 2 else 0

    ky_1d = _axis_wavenumbers(ikymax, Ly)
    kz_1d = _axis_wavenumbers(ikzmax, Lz)
    ky, kz = np.meshgrid(ky_1d, kz_1d, indexing="ij")
    ky = ky.reshape(-1)
    kz = kz.reshape(-1)
    ky2 = ky * ky
    kz2 = kz * kz

    stir_min = cfg.stir_min
    stir_max = cfg.stir_max
    vec_chunks = []
    mag_chunks = []
    for ikx in range(0, IK_MAX + 1):
        kx = 2 * math.pi * ikx / Lx
        k = np.sqrt(kx * kx + ky2 + kz2)
        hit = (k >= stir_min) & (k <= stir_max)
        if not hit.any():
            continue
        n = int(hit.sum())
        vec_chunks.append(np.stack([np.full(n, kx), ky[hit], kz[hit]], axis=1))
        mag_chunks.append(k[hit])

    if not vec_chunks:
        return np.zeros((0, 3), dtype=np.float64), np.zeros(0, dtype=np.float64)
    return np.concatenate(vec_chunks, axis=0), np.concatenate(mag_chunks, axis=0)


def _characteristic_k(cfg: TurbGenConfig) -> float:
    if cfg.spect_form == SpectralForm.PARABOLA:
        return 0.5 * (cfg.stir_min + cfg.stir_max)
    return cfg.stir_min


def _check_nonzero(k_mag: np.ndarray) -> None:
    if np.any(k_mag <= 0.0):
        raise NumericalDegeneracy("mode table would contain the zero wavevector (|k| = 0)")


def _build_full_sampling(
    cfg: TurbGenConfig, k_vec: np.ndarray, k_mag: np.ndarray, log: logging.Logger
) -> tuple[np.ndarray, np.ndarray]:
    ndim = cfg.ndim
    mult = reflection_multiplicity(ndim)
    n_modes = mult * k_vec.shape[0]
    if n_modes > cfg.max_n_modes:
        raise ModeCapacityExceeded(n_modes, cfg.max_n_modes)
    _check_nonzero(k_mag)
    log.info("Generating %i driving modes...", n_modes)

    kc = _characteristic_k(cfg)
    if cfg.spect_form == SpectralForm.BAND:
        amplitude = np.ones_like(k_mag)
    else:
        parab_prefact = -4.0 / math.pow(cfg.stir_max - cfg.stir_min, 2.0)
        amplitude = np.abs(parab_prefact * (k_mag - kc) ** 2 + 1.0)
    # power spectrum ~ amplitude^2 k^(ndim-1), so rescale to keep it normalised across ndim
    amplitude = np.sqrt(amplitude) * np.power(kc / k_mag, (ndim - 1) / 2.0)

    # each accepted mode is followed by its reflections: (kx,-ky,kz), (kx,ky,-kz), (kx,-ky,-kz)
    signs = [(1.0, 1.0, 1.0)]
    if ndim > 1:
        signs.append((1.0, -1.0, 1.0))
    if ndim > 2:
        signs.append((1.0, 1.0, -1.0))
        signs.append((1.0, -1.0, -1.0))
    signs_arr = np.asarray(signs, dtype=np.float64)  # [mult, 3]

    vectors = (k_vec[:, None, :] * signs_arr[None, :, :]).reshape(n_modes, 3)
    amplitudes = np.repeat(amplitude, mult)
    return vectors, amplitudes


def _build_power_law(
    cfg: TurbGenConfig, seed: int, log: logging.Logger
) -> tuple[np.ndarray, np.ndarray, int]:
    """
    Sparse sampling of k-shells: ``2^ndim * ceil(ik^angles_exp)`` random
    directions per integer shell ik, each at a jittered radius and snapped to
    the nearest lattice wavevector.
    """
    ndim = cfg.ndim
    Lx, Ly, Lz = cfg.lengths
    kc = _characteristic_k(cfg)

    # the shuffle table is seeded from a throwaway copy; the working seed then drives the draws
    rng = LEcuyerUniform(-seed)
    rng.uniform()
    rng.reseed(seed)

    ikmin = max(1, c_round(cfg.stir_min * Lx / (2 * math.pi)))
    ikmax = c_round(cfg.stir_max * Lx / (2 * math.pi))
    log.info("Generating driving modes within k = [%i, %i]", ikmin, ikmax)

    vectors: list[tuple[float, float, float]] = []
    amplitudes: list[float] = []
    for ik in range(ikmin, ikmax + 1):
        nang = int(math.pow(2.0, ndim) * math.ceil(math.pow(float(ik), cfg.angles_exp)))
        log.debug("ik, number of angles = %i, %i", ik, nang)

        for _ in range(nang):
            phi = 2 * math.pi * rng.uniform()
            if ndim == 1:
                phi = 0.0 if phi < math.pi else math.pi
            theta = math.pi / 2.0
            if ndim > 2:
                theta = math.acos(1.0 - 2.0 * rng.uniform())

            rand = ik + rng.uniform() - 0.5
            kx = 2 * math.pi * c_round(rand * math.sin(theta) * math.cos(phi)) / Lx
            ky = 0.0
            if ndim > 1:
                ky = 2 * math.pi * c_round(rand * math.sin(theta) * math.sin(phi)) / Ly
            kz = 0.0
            if ndim > 2:
                kz = 2 * math.pi * c_round(rand * math.cos(theta)) / Lz

            k = math.sqrt(kx * kx + ky * ky + kz * kz)
            if not (cfg.stir_min <= k <= cfg.stir_max):
                continue
            if len(vectors) + 1 > cfg.max_n_modes:
                raise ModeCapacityExceeded(len(vectors) + 1, cfg.max_n_modes)
            if k <= 0.0:
                raise NumericalDegeneracy("mode table would contain the zero wavevector (|k| = 0)")

            amplitude = math.pow(k / kc, cfg.power_law_exp)
            # correct for the sparse angular coverage relative to a full shell (~ik^(ndim-1) modes)
            amplitude = math.sqrt(
                amplitude * math.pow(float(ik), ndim - 1) / float(nang) * 4.0 * math.sqrt(3.0)
            ) * math.pow(kc / k, (ndim - 1) / 2.0)

            vectors.append((kx, ky, kz))
            amplitudes.append(amplitude)
            if len(vectors) % 1000 == 0:
                log.debug(" ... %i modes generated...", len(vectors))

    vec_arr = np.asarray(vectors, dtype=np.float64).reshape(-1, 3)
    amp_arr = np.asarray(amplitudes, dtype=np.float64)
    return vec_arr, amp_arr, rng.idum


def build_mode_table(
    cfg: TurbGenConfig, seed: int, log: Optional[logging.Logger] = None
) -> tuple[ModeTable, int]:
    """
    Build the driving modes for ``cfg``.

    Parameters
    ----------
    cfg : TurbGenConfig
        Validated configuration.
    seed : int
        Working random seed. Only the power-law form consumes random numbers.

    Returns
    -------
    table : ModeTable
    seed : int
        Working seed after mode construction; it seeds the OU process.
    """
    log = logger if log is None else log
    k_vec, k_mag = _full_sampling_hits(cfg)
    n_full = reflection_multiplicity(cfg.ndim) * k_vec.shape[0]

    if cfg.spect_form == SpectralForm.POWER_LAW:
        log.info(
            "There would be %i driving modes, if k-space were fully sampled (angles_exp = 2.0)...", n_full
        )
        log.info("Here we are using angles_exp = %f", cfg.angles_exp)
        vectors, amplitudes, seed = _build_power_law(cfg, seed, log)
    else:
        vectors, amplitudes = _build_full_sampling(cfg, k_vec, k_mag, log)

    table = ModeTable(
        vectors=vectors,
        amplitudes=amplitudes,
        ndim=cfg.ndim,
        spect_form=cfg.spect_form,
        n_full_sampling=int(n_full),
    )
    return table, seed
