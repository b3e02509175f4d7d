"""qevolve: Runge-Kutta Milstein Scheme
------------------------------------
Derivative-free Milstein scheme of strong order 1.0 for scalar and diagonal
noise. The diffusion derivative term is approximated by a finite difference
of ``g`` along the supporting value ``u + f·dt + g·sqrt(dt)``, so no Jacobian
is needed.

Behavior
--------
Component-wise, with ``K = u + f·dt`` and ``ũ = K + g·sqrt(dt)``::

    g' g ≈ (g(ũ) - g(u)) / sqrt(dt)
    Stratonovich:  dy = f·dt + g·dW + 1/2 · g'g · dW²
    Itô:           dy = f·dt + g·dW + 1/2 · g'g · (dW² - dt)

Notes
-----
- General (non-diagonal) noise would need Lévy areas and is rejected; use
  ``euler_heun`` there.
"""

from typing import ClassVar

import numpy as np

from ..core.config import NoiseStructure
from ..core.errors import QEVConfigError
from ..core.registry import register
from .base import SDEProblem

__all__ = [
    "RKMil",
]


@register("sde_algorithm", "rkmil", noise=("scalar", "diagonal"))
class RKMil:
    """Runge–Kutta Milstein scheme (Rößler/Kloeden–Platen derivative-free form).

    Parameters
    ----------
    interpretation : {"stratonovich", "ito"}, default "stratonovich"
        Stochastic calculus the drift is written in.

    Raises
    ------
    QEVConfigError
        - [518] Unknown interpretation.

    """

    noise_structures: ClassVar[tuple[NoiseStructure, ...]] = (
        NoiseStructure.SCALAR,
        NoiseStructure.DIAGONAL,
    )

    def __init__(self, interpretation: str = "stratonovich") -> None:
        interp = str(interpretation).strip().lower()
        if interp not in ("stratonovich", "ito"):
            raise QEVConfigError(f"[518] Unknown interpretation {interpretation!r}")
        self.interpretation = interp

    def initialize(self, problem: SDEProblem) -> None:
        self._f = np.zeros_like(problem.u0)
        self._g0 = problem.diffusion_buffer()
        self._g1 = problem.diffusion_buffer()
        self._utilde = np.zeros_like(problem.u0)
        self._dy = np.zeros_like(problem.u0)

    def step(
        self, problem: SDEProblem, u: np.ndarray, t: float, dt: float, dW: np.ndarray
    ) -> np.ndarray:
        sqdt = np.sqrt(dt)
        problem.f(t, u, self._f)
        problem.g(t, u, self._g0)

        # Supporting value ũ = u + f·dt + g·sqrt(dt)
        np.multiply(self._f, dt, out=self._dy)
        np.add(u, self._dy, out=self._utilde)
        self._utilde += self._g0 * sqdt
        problem.g(t, self._utilde, self._g1)

        self._dy += self._g0 * dW
        if self.interpretation == "stratonovich":
            corr = 0.5 * dW * dW
        else:
            corr = 0.5 * (dW * dW - dt)
        self._g1 -= self._g0
        self._g1 *= corr / sqdt
        self._dy += self._g1
        return self._dy
