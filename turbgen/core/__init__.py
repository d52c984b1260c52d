"""Turbulence driving-field generator: modes, OU phases, projection and evaluation."""

from .config import SpectralForm, TurbGenConfig
from .errors import ConfigurationError, ModeCapacityExceeded, NumericalDegeneracy, TurbGenError
from .generator import TurbulenceGenerator
from .params import read_parameter_file, write_parameter_file

__all__ = [
    "ConfigurationError",
    "ModeCapacityExceeded",
    "NumericalDegeneracy",
    "SpectralForm",
    "TurbGenConfig",
    "TurbGenError",
    "TurbulenceGenerator",
    "read_parameter_file",
    "write_parameter_file",
]
