"""qevolve: Integrator Base Protocols
---------------------------------

Contracts between the stepping engine and the objects it drives:

- ``ODEProblem`` / ``SDEProblem``: flat-vector problem containers whose
  right-hand sides are in-place callables ``f(t, u, du)``.
- ``Scheme``: a single-step stochastic rule returning an increment ``dy``.
- ``StepIntegrator``: the view of a running integration handed to callbacks.

This module is dependency-light and safe to import in any environment.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, ClassVar, Protocol, runtime_checkable

import numpy as np

from ..core.config import NoiseStructure
from ..core.errors import QEVConfigError

__all__ = [
    "InplaceFn",
    "ODEProblem",
    "SDEProblem",
    "Scheme",
    "StepIntegrator",
    "contract_noise",
]

InplaceFn = Callable[[float, np.ndarray, np.ndarray], None]
"""Type for in-place right-hand sides ``f(t, u, du)``.

Parameters
----------
t : float
    Current time.
u : np.ndarray
    Flat state, shape ``(k,)``. Must not be mutated.
du : np.ndarray
    Output buffer; ``(k,)`` for drift and scalar/diagonal diffusion,
    ``(k, n)`` for general diffusion.
"""


@dataclass
class ODEProblem:
    """Deterministic problem ``du/dt = f(t, u)`` on ``tspan = (t0, t1)``."""

    f: InplaceFn
    u0: np.ndarray
    tspan: tuple[float, float]


@dataclass
class SDEProblem:
    """Stratonovich/Itô problem ``du = f(t, u) dt + g(t, u) dW``.

    Attributes
    ----------
    f, g : InplaceFn
        Drift and diffusion.
    u0 : np.ndarray
        Flat initial state, shape ``(k,)``.
    tspan : tuple[float, float]
        Integration interval.
    noise : NoiseStructure
        ``SCALAR``: one Wiener channel shared by all elements; ``DIAGONAL``:
        one independent channel per element; ``GENERAL``: ``g`` fills a
        ``(k, n)`` noise-rate matrix contracted with ``n`` channels.
    noise_rate_prototype : np.ndarray, optional
        The ``(k, n)`` buffer for ``GENERAL`` noise. Allocated once per run;
        schemes evaluate ``g`` into this very array.

    """

    f: InplaceFn
    g: InplaceFn
    u0: np.ndarray
    tspan: tuple[float, float]
    noise: NoiseStructure = NoiseStructure.DIAGONAL
    noise_rate_prototype: np.ndarray | None = None

    def __post_init__(self):
        self.noise = NoiseStructure(self.noise)
        if self.noise is NoiseStructure.GENERAL:
            proto = self.noise_rate_prototype
            if proto is None or proto.ndim != 2 or proto.shape[0] != self.u0.size:
                raise QEVConfigError(
                    "[516] General noise needs a noise_rate_prototype of shape "
                    f"({self.u0.size}, n)"
                )

    @property
    def noise_dim(self) -> int:
        """Number of independent Wiener channels."""
        if self.noise is NoiseStructure.SCALAR:
            return 1
        if self.noise is NoiseStructure.DIAGONAL:
            return int(self.u0.size)
        assert self.noise_rate_prototype is not None
        return int(self.noise_rate_prototype.shape[1])

    def diffusion_buffer(self) -> np.ndarray:
        """Allocate one more buffer shaped like the diffusion output."""
        if self.noise is NoiseStructure.GENERAL:
            assert self.noise_rate_prototype is not None
            return np.zeros_like(self.noise_rate_prototype)
        return np.zeros_like(self.u0)


def contract_noise(G: np.ndarray, dW: np.ndarray, out: np.ndarray, noise: NoiseStructure) -> np.ndarray:
    """Write ``G . dW`` into ``out``.

    Matrix-vector product for general noise; element-wise product otherwise
    (``dW`` of length 1 broadcasts for scalar noise).
    """
    if noise is NoiseStructure.GENERAL:
        return np.matmul(G, dW, out=out)
    return np.multiply(G, dW, out=out)


@runtime_checkable
class Scheme(Protocol):
    """Protocol for single-step SDE schemes returning an increment ``dy``.

    Implementations advance the solution by producing ``dy`` such that
    ``u_next = u + dy``. Schemes MUST NOT mutate ``u`` and return an array
    they own (reused between steps) with the same shape as ``u``.

    Attributes
    ----------
    noise_structures : tuple[NoiseStructure, ...]
        Noise layouts for which the scheme is valid.
    interpretation : str
        ``"ito"`` or ``"stratonovich"``.

    Methods
    -------
    initialize(problem)
        Allocate work buffers for one run.
    step(problem, u, t, dt, dW)
        Compute the increment for one step of size ``dt`` with Wiener
        increments ``dW`` of shape ``(problem.noise_dim,)``.

    """

    noise_structures: ClassVar[tuple[NoiseStructure, ...]]
    interpretation: str

    def initialize(self, problem: SDEProblem) -> None: ...

    def step(
        self,
        problem: SDEProblem,
        u: np.ndarray,
        t: float,
        dt: float,
        dW: np.ndarray,
    ) -> np.ndarray: ...


@runtime_checkable
class StepIntegrator(Protocol):
    """View of a running integration passed to callbacks.

    Attributes
    ----------
    t, tprev : float
        Time after and before the step just accepted.
    dt : float
        Size of the step just accepted.
    u : np.ndarray
        Flat state at ``t``.

    Methods
    -------
    interpolate(t) -> np.ndarray
        State at ``tprev <= t <= self.t``.
    terminate()
        Stop after the current round of callbacks.

    """

    t: float
    tprev: float
    dt: float
    u: np.ndarray
    terminated: bool

    def interpolate(self, t: float) -> Any: ...

    def terminate(self) -> None: ...
