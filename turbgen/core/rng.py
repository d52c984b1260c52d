from __future__ import annotations

import math

import numpy as np

# Minimal standard generator (Park & Miller), Schrage factorisation of IM.
IA = 16807
IM = 2147483647
IQ = 127773
IR = 2836
AM = 1.0 / IM
EPS = 1.2e-7
RNMX = 1.0 - EPS

# L'Ecuyer combined generator with Bays-Durham shuffle.
IM1 = 2147483563
IM2 = 2147483399
IMM1 = IM1 - 1
IA1 = 40014
IA2 = 40692
IQ1 = 53668
IQ2 = 52774
IR1 = 12211
IR2 = 3791
NTAB = 32
NDIV = 1 + IMM1 // NTAB
AM1 = 1.0 / IM1

_JUMP_BLOCK = 1024


def _jump_table(block: int) -> np.ndarray:
    # IA^(i+1) mod IM for i in [0, block)
    out = np.empty(block, dtype=np.int64)
    p = 1
    for i in range(block):
        p = (p * IA) % IM
        out[i] = p
    return out


_POWERS = _jump_table(_JUMP_BLOCK)


class ParkMillerUniform:
    """
    Uniform deviates in (0, 1) from the multiplicative congruential generator
    x_{n+1} = 16807 x_n mod (2^31 - 1), clamped below 1 by EPS.

    ``seed`` is the working state; it is advanced by every draw and is the only
    state of the engine, so two engines with equal ``seed`` produce equal streams.
    """

    def __init__(self, seed: int):
        if abs(int(seed)) >= IM:
            raise ValueError(f"seed must satisfy |seed| < {IM} (got {seed})")
        self.seed = int(seed)

    def _normalised_state(self) -> int:
        if self.seed <= 0:
            self.seed = max(-self.seed, 1)
        return self.seed

    def uniform(self) -> float:
        idum = self._normalised_state()
        k = idum // IQ
        idum = IA * (idum - k * IQ) - IR * k
        if idum < 0:
            idum += IM
        self.seed = idum
        return min(AM * idum, RNMX)

    def uniforms(self, n: int) -> np.ndarray:
        """
        Next ``n`` deviates, identical to ``n`` successive calls of ``uniform()``.

        States are generated blockwise by jumping ahead on the exact integer
        recurrence; all products stay below 2^62 so int64 arithmetic is exact.
        """
        n = int(n)
        if n <= 0:
            return np.empty(0, dtype=np.float64)
        start = self._normalised_state()
        n_blocks = (n + _JUMP_BLOCK - 1) // _JUMP_BLOCK
        jump = int(_POWERS[-1])

        starts = np.empty(n_blocks, dtype=np.int64)
        s = start
        for b in range(n_blocks):
            starts[b] = s
            s = (s * jump) % IM

        states = (starts[:, None] * _POWERS[None, :]) % IM
        states = states.reshape(-1)[:n]
        self.seed = int(states[-1])
        return np.minimum(AM * states.astype(np.float64), RNMX)

    def gaussian(self) -> float:
        return float(self.gaussians(1)[0])

    def gaussians(self, n: int) -> np.ndarray:
        """
        Unit-variance normal deviates via the Box-Muller transform,
        g = sqrt(2 ln(1/r1)) cos(2 pi r2), consuming r1 then r2 per draw.
        """
        u = self.uniforms(2 * int(n))
        r1 = u[0::2]
        r2 = u[1::2]
        return np.sqrt(2.0 * np.log(1.0 / r1)) * np.cos(2 * math.pi * r2)


class LEcuyerUniform:
    """
    Long-period (> 2e18) uniform deviates in (0, 1): L'Ecuyer's combination of
    two congruential generators, shuffled through a 32-entry Bays-Durham table.

    Seeding with a non-positive ``idum`` re-initialises the shuffle table and the
    second generator on the next draw. A positive ``idum`` only replaces the
    state of the first generator and keeps the table.
    """

    def __init__(self, idum: int = -1):
        self.idum = int(idum)
        self.idum2 = 123456789
        self.iy = 0
        self.iv = [0] * NTAB

    def reseed(self, idum: int) -> None:
        self.idum = int(idum)

    def _initialise(self) -> None:
        self.idum = max(-self.idum, 1)
        self.idum2 = self.idum
        for j in range(NTAB + 7, -1, -1):
            k = self.idum // IQ1
            self.idum = IA1 * (self.idum - k * IQ1) - k * IR1
            if self.idum < 0:
                self.idum += IM1
            if j < NTAB:
                self.iv[j] = self.idum
        self.iy = self.iv[0]

    def uniform(self) -> float:
        if self.idum <= 0:
            self._initialise()
        k = self.idum // IQ1
        self.idum = IA1 * (self.idum - k * IQ1) - k * IR1
        if self.idum < 0:
            self.idum += IM1
        k = self.idum2 // IQ2
        self.idum2 = IA2 * (self.idum2 - k * IQ2) - k * IR2
        if self.idum2 < 0:
            self.idum2 += IM2
        j = self.iy // NDIV
        self.iy = self.iv[j] - self.idum2
        self.iv[j] = self.idum
        if self.iy < 1:
            self.iy += IMM1
        return min(AM1 * self.iy, RNMX)
