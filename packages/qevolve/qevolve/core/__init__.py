"""qevolve: Core Subpackage
-----------------------
Errors and logging, the algorithm registry, and solver option models.
"""

from .config import NoiseStructure, ODEOptions, SDEOptions, SolverOptions, load_options
from .errors import (
    QEVConfigError,
    QEVError,
    QEVIntegratorError,
    QEVPreconditionError,
    QEVRegistryError,
    QEVStateError,
    QEVWarning,
    configure_logging,
    get_logger,
)
from .registry import RegistryCenter, register, registry

__all__ = [
    "NoiseStructure",
    "SolverOptions",
    "ODEOptions",
    "SDEOptions",
    "load_options",
    "QEVError",
    "QEVPreconditionError",
    "QEVConfigError",
    "QEVStateError",
    "QEVIntegratorError",
    "QEVRegistryError",
    "QEVWarning",
    "get_logger",
    "configure_logging",
    "RegistryCenter",
    "registry",
    "register",
]
