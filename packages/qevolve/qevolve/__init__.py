"""Structured-State Time Evolution
==============================

Integrate ordinary and stochastic equations of motion written for structured
states (density operators, state vectors, ...) with general-purpose solvers
that only understand flat complex vectors.

Public API
----------
integrate
    Deterministic evolution with optional steady-state termination.
integrate_stoch
    Stochastic evolution with scalar or diagonal noise.
integrate_stoch_nondiagonal
    Stochastic evolution with ``n`` coupled noise channels.
recast
    In-place copy between flat vectors and structured states.
ArrayState
    Reference numpy-backed structured state.
"""

# Trigger self-registration of the built-in algorithms.
from . import integrator as _qev_integrators  # noqa: F401
from .core.config import NoiseStructure, ODEOptions, SDEOptions, load_options
from .core.errors import (
    QEVConfigError,
    QEVError,
    QEVIntegratorError,
    QEVPreconditionError,
    QEVRegistryError,
    QEVStateError,
    configure_logging,
    get_logger,
)
from .core.registry import registry
from .metrics import normdistance, tracedistance
from .recast import ArrayRecast, RecastAdapter, recast
from .states import ArrayState
from .timeevolution import (
    SteadyStateCondition,
    integrate,
    integrate_stoch,
    integrate_stoch_nondiagonal,
)

# Public version string
__version__ = "0.1.0"

__all__ = [
    "integrate",
    "integrate_stoch",
    "integrate_stoch_nondiagonal",
    "SteadyStateCondition",
    "recast",
    "RecastAdapter",
    "ArrayRecast",
    "ArrayState",
    "tracedistance",
    "normdistance",
    "NoiseStructure",
    "ODEOptions",
    "SDEOptions",
    "load_options",
    "registry",
    "QEVError",
    "QEVPreconditionError",
    "QEVConfigError",
    "QEVStateError",
    "QEVIntegratorError",
    "QEVRegistryError",
    "get_logger",
    "configure_logging",
    "__version__",
]
