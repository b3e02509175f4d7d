"""qevolve: Euler-Heun Scheme
-------------------------
Predictor-corrector scheme converging to the Stratonovich solution for any
noise structure, including general non-commutative noise.

Behavior
--------
- Predictor ``ũ = u + f(u)·dt + g(u)·dW``; corrector
  ``dy = (f(u) + f(ũ))·dt/2 + (g(u) + g(ũ))·dW/2``.
- Both diffusion evaluations write into one buffer, contracted with ``dW``
  straight after each evaluation. For general noise that buffer is the
  problem's ``noise_rate_prototype``.
"""

from typing import ClassVar

import numpy as np

from ..core.config import NoiseStructure
from ..core.registry import register
from .base import SDEProblem, contract_noise

__all__ = [
    "EulerHeun",
]


@register("sde_algorithm", "euler_heun", noise=("scalar", "diagonal", "general"))
class EulerHeun:
    """Euler–Heun scheme (strong order 0.5 for general Stratonovich noise)."""

    noise_structures: ClassVar[tuple[NoiseStructure, ...]] = (
        NoiseStructure.SCALAR,
        NoiseStructure.DIAGONAL,
        NoiseStructure.GENERAL,
    )
    interpretation = "stratonovich"

    def initialize(self, problem: SDEProblem) -> None:
        self._f0 = np.zeros_like(problem.u0)
        self._f1 = np.zeros_like(problem.u0)
        if problem.noise is NoiseStructure.GENERAL:
            self._g = problem.noise_rate_prototype
        else:
            self._g = problem.diffusion_buffer()
        self._gdw = np.zeros_like(problem.u0)
        self._utilde = np.zeros_like(problem.u0)
        self._dy = np.zeros_like(problem.u0)

    def step(
        self, problem: SDEProblem, u: np.ndarray, t: float, dt: float, dW: np.ndarray
    ) -> np.ndarray:
        problem.f(t, u, self._f0)
        problem.g(t, u, self._g)
        contract_noise(self._g, dW, self._gdw, problem.noise)

        # Predictor
        np.multiply(self._f0, dt, out=self._utilde)
        self._utilde += self._gdw
        self._utilde += u
        self._dy[:] = self._gdw

        # Corrector
        problem.f(t + dt, self._utilde, self._f1)
        problem.g(t + dt, self._utilde, self._g)
        contract_noise(self._g, dW, self._gdw, problem.noise)
        self._dy += self._gdw
        self._dy *= 0.5
        self._f0 += self._f1
        self._dy += (0.5 * dt) * self._f0
        return self._dy
