from __future__ import annotations


class TurbGenError(Exception):
    """Base class for all turbulence generator errors."""


class ConfigurationError(TurbGenError, ValueError):
    """Missing, unreadable or semantically invalid generator parameter."""


class ModeCapacityExceeded(TurbGenError, RuntimeError):
    """The mode table would grow beyond its fixed capacity."""

    def __init__(self, n_modes: int, max_n_modes: int):
        self.n_modes = int(n_modes)
        self.max_n_modes = int(max_n_modes)
        super().__init__(
            f"Too many driving modes: n_modes={self.n_modes} exceeds max_n_modes={self.max_n_modes}"
        )


class NumericalDegeneracy(TurbGenError, ArithmeticError):
    """A quantity required to be non-zero (e.g. |k|^2 of a mode) vanished."""
