"""qevolve: Euler-Maruyama Scheme
------------------------------
Reference Itô scheme, valid for every noise structure, integrated with the
registry for discovery.

Behavior
--------
- Step rule ``dy = f(u,t)·dt + g(u,t) · dW``; the contraction over noise
  channels is element-wise for scalar/diagonal noise and a matrix-vector
  product for general noise.
"""

from typing import ClassVar

import numpy as np

from ..core.config import NoiseStructure
from ..core.registry import register, registry
from .base import SDEProblem, contract_noise

__all__ = [
    "EulerMaruyama",
]


@register("sde_algorithm", "euler_maruyama", noise=("scalar", "diagonal", "general"))
class EulerMaruyama:
    """Euler–Maruyama scheme (strong order 0.5) under the Itô interpretation.

    Work buffers are allocated once in :meth:`initialize`; :meth:`step`
    returns the same increment array every call.

    References
    ----------
    - Kloeden, P. E., & Platen, E. (1992). Numerical Solution of Stochastic
      Differential Equations. Springer.

    """

    noise_structures: ClassVar[tuple[NoiseStructure, ...]] = (
        NoiseStructure.SCALAR,
        NoiseStructure.DIAGONAL,
        NoiseStructure.GENERAL,
    )
    interpretation = "ito"

    def initialize(self, problem: SDEProblem) -> None:
        self._f = np.zeros_like(problem.u0)
        if problem.noise is NoiseStructure.GENERAL:
            self._g = problem.noise_rate_prototype
        else:
            self._g = problem.diffusion_buffer()
        self._dy = np.zeros_like(problem.u0)

    def step(
        self, problem: SDEProblem, u: np.ndarray, t: float, dt: float, dW: np.ndarray
    ) -> np.ndarray:
        """Compute ``dy = f·dt + g·dW`` without mutating ``u``."""
        problem.f(t, u, self._f)
        problem.g(t, u, self._g)
        contract_noise(self._g, dW, self._dy, problem.noise)
        self._dy += self._f * dt
        return self._dy


registry.register("sde_algorithm", "em", EulerMaruyama, noise=("scalar", "diagonal", "general"))
