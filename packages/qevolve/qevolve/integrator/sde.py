"""qevolve: Stochastic Stepping Engine
----------------------------------

Fixed-step driver for the single-step schemes in ``sde_algorithm``.

Behavior
--------
- Steps have size ``dt`` except where shortened to land exactly on a stop
  time (every requested sample time and the end of the span).
- Wiener increments are drawn from ``numpy.random.default_rng(seed)``; equal
  seeds give identical trajectories.
- Non-finite states raise :class:`QEVIntegratorError`.

Notes
-----
- Tolerances are accepted for call compatibility with the deterministic
  engine and ignored by the fixed-step schemes.
"""

from collections.abc import Iterable
from typing import Any

import numpy as np

from ..core.errors import QEVConfigError, QEVIntegratorError, get_logger
from ..core.registry import registry
from .base import SDEProblem
from .callbacks import as_callback_set

__all__ = [
    "SDEIntegrator",
    "resolve_sde_algorithm",
    "solve_sde",
]

logger = get_logger()

# Relative slack used when snapping a step onto a stop time
_SNAP = 1e-9


def resolve_sde_algorithm(alg: Any) -> Any:
    """Return a scheme instance for a registry name, class or instance.

    Raises
    ------
    QEVRegistryError
        - [404] Unknown algorithm name.
    QEVConfigError
        - [511] ``alg`` does not provide ``step``.

    """
    if isinstance(alg, str):
        return registry.create(f"sde_algorithm:{alg}")
    if isinstance(alg, type):
        alg = alg()
    if callable(getattr(alg, "step", None)) and callable(getattr(alg, "initialize", None)):
        return alg
    raise QEVConfigError(f"[511] Not an SDE algorithm: {alg!r}")


class SDEIntegrator:
    """Running stochastic integration, as seen by callbacks."""

    def __init__(self, problem: SDEProblem, scheme: Any, seed: int | None = None) -> None:
        self.problem = problem
        self.scheme = scheme
        self.u = np.array(problem.u0, dtype=np.complex128)
        self.uprev = self.u.copy()
        self.t = float(problem.tspan[0])
        self.tprev = self.t
        self.dt = 0.0
        self.terminated = False
        self.naccept = 0
        self.rng = np.random.default_rng(seed)
        self._dW = np.zeros(problem.noise_dim, dtype=float)

    def interpolate(self, t: float) -> np.ndarray:
        """Linear interpolation between ``uprev`` and ``u``."""
        if t == self.t or self.t == self.tprev:
            return self.u
        theta = (t - self.tprev) / (self.t - self.tprev)
        return self.uprev + theta * (self.u - self.uprev)

    def terminate(self) -> None:
        self.terminated = True

    def step(self, h: float, t_target: float | None = None) -> None:
        """Advance by ``h``; ``t_target`` pins the new time exactly.

        Raises
        ------
        QEVIntegratorError
            - [301] The state became non-finite.

        """
        self.rng.standard_normal(out=self._dW)
        self._dW *= np.sqrt(h)
        dy = self.scheme.step(self.problem, self.u, self.t, h, self._dW)
        self.uprev[:] = self.u
        self.u += dy
        self.tprev = self.t
        self.t = self.t + h if t_target is None else float(t_target)
        self.dt = h
        self.naccept += 1
        if not np.all(np.isfinite(self.u)):
            raise QEVIntegratorError(
                f"[301] Non-finite state at t={self.t} after {self.naccept} steps"
            )


def solve_sde(
    problem: SDEProblem,
    alg: Any,
    *,
    dt: float,
    seed: int | None = None,
    tstops: Iterable[float] = (),
    callback: Any = None,
    abstol: float | None = None,
    reltol: float | None = None,
    **kwargs: Any,
) -> SDEIntegrator:
    """Integrate ``problem`` with fixed steps, running callbacks per step.

    Parameters
    ----------
    problem : SDEProblem
        Problem with in-place drift and diffusion.
    alg : str, type or scheme
        Registry name (``"rkmil"``, ``"euler_heun"``, ...), scheme class or
        instance.
    dt : float
        Nominal step size.
    seed : int, optional
        Seed for the Wiener increments.
    tstops : iterable of float
        Times the integrator must land on exactly.
    callback : callback, CallbackSet or None
        Hooks run after initialisation and after every step.
    abstol, reltol : float, optional
        Ignored by fixed-step schemes.

    Returns
    -------
    SDEIntegrator
        The finished (or terminated) integrator.

    Raises
    ------
    QEVConfigError
        - [510] Scheme does not support the problem's noise structure.
        - [512] Non-positive ``dt``.
        - [513] Unknown solver option.
    QEVIntegratorError
        - [301] Non-finite state.

    """
    if kwargs:
        raise QEVConfigError(
            f"[513] Unsupported options for stochastic integration: {sorted(kwargs)}"
        )
    if not dt > 0:
        raise QEVConfigError(f"[512] Step size must be positive, got {dt!r}")
    scheme = resolve_sde_algorithm(alg)
    if problem.noise not in tuple(scheme.noise_structures):
        raise QEVConfigError(
            f"[510] {type(scheme).__name__} does not support "
            f"{problem.noise.value} noise"
        )
    scheme.initialize(problem)

    t0, t1 = float(problem.tspan[0]), float(problem.tspan[1])
    stops = sorted({float(s) for s in tstops if t0 < float(s) < t1} | {t1})

    integrator = SDEIntegrator(problem, scheme, seed=seed)
    callbacks = as_callback_set(callback)
    callbacks.initialize(integrator)
    for stop in stops:
        if integrator.terminated:
            break
        while integrator.t < stop and not integrator.terminated:
            remaining = stop - integrator.t
            if remaining <= dt * (1.0 + _SNAP):
                integrator.step(remaining, t_target=stop)
            else:
                integrator.step(dt)
            callbacks.apply(integrator)
    logger.debug(
        "solve_sde: %s stopped at t=%g after %d steps (dt=%g, seed=%s)",
        type(scheme).__name__,
        integrator.t,
        integrator.naccept,
        dt,
        seed,
    )
    return integrator
