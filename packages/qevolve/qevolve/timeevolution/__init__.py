"""qevolve: Time Evolution Subpackage
---------------------------------
Drivers that integrate equations of motion written for structured states,
with output sampling and steady-state detection.
"""

from .adapters import ChannelDiffusionAdapter, DerivativeAdapter, OutputSampler, copy_state
from .deterministic import integrate
from .steady_state import SteadyStateCondition
from .stochastic import integrate_stoch, integrate_stoch_nondiagonal

__all__ = [
    "integrate",
    "integrate_stoch",
    "integrate_stoch_nondiagonal",
    "SteadyStateCondition",
    "OutputSampler",
    "DerivativeAdapter",
    "ChannelDiffusionAdapter",
    "copy_state",
]
