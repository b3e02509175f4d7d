"""qevolve: Integrator Subpackage
-----------------------------
The stepping engine the time-evolution drivers talk to: problem containers,
engine callbacks, a deterministic driver over scipy's ``OdeSolver`` family
and a fixed-step stochastic driver over the registered schemes.

Importing this package registers the built-in algorithms.
"""

from .base import ODEProblem, SDEProblem, Scheme, StepIntegrator, contract_noise
from .callbacks import CallbackSet, DiscreteCallback, SavedValues, SavingCallback
from .euler_heun import EulerHeun
from .euler_maruyama import EulerMaruyama
from .milstein import RKMil  # register via decorator on import
from .ode import ODEIntegrator, resolve_ode_algorithm, solve_ode
from .sde import SDEIntegrator, resolve_sde_algorithm, solve_sde

__all__ = [
    "ODEProblem",
    "SDEProblem",
    "Scheme",
    "StepIntegrator",
    "contract_noise",
    "CallbackSet",
    "DiscreteCallback",
    "SavedValues",
    "SavingCallback",
    "EulerMaruyama",
    "RKMil",
    "EulerHeun",
    "ODEIntegrator",
    "SDEIntegrator",
    "resolve_ode_algorithm",
    "resolve_sde_algorithm",
    "solve_ode",
    "solve_sde",
]
