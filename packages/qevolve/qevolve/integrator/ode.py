"""qevolve: Deterministic Stepping Engine
-------------------------------------

Drives a ``scipy.integrate.OdeSolver`` one accepted step at a time so that
callbacks can sample, inspect and terminate the run between steps.

Behavior
--------
- Algorithms are looked up in the ``ode_algorithm`` registry namespace or
  given directly as ``OdeSolver`` subclasses.
- Solver failure raises :class:`QEVIntegratorError` carrying the solver
  message; nothing is retried.
- The engine keeps no trajectory of its own; callbacks are the only output.

Notes
-----
- ``RK45`` is the Dormand-Prince 5(4) pair and is registered as ``dp5``.
  ``LSODA`` is not registered because it rejects complex states.
"""

from typing import Any

import numpy as np
from scipy.integrate import BDF, DOP853, RK23, RK45, OdeSolver, Radau

from ..core.errors import QEVConfigError, QEVIntegratorError, get_logger
from ..core.registry import registry
from .base import ODEProblem
from .callbacks import as_callback_set

__all__ = [
    "ODEIntegrator",
    "resolve_ode_algorithm",
    "solve_ode",
]

logger = get_logger()

for _names, _cls in (
    (("dp5", "rk45"), RK45),
    (("dop853",), DOP853),
    (("rk23", "bs3"), RK23),
    (("radau",), Radau),
    (("bdf",), BDF),
):
    for _name in _names:
        registry.register(
            "ode_algorithm", _name, _cls, overwrite=True, return_callable=True
        )


def resolve_ode_algorithm(alg: Any) -> type[OdeSolver]:
    """Return the ``OdeSolver`` subclass for a registry name or class.

    Raises
    ------
    QEVRegistryError
        - [404] Unknown algorithm name.
    QEVConfigError
        - [511] ``alg`` is neither a name nor an ``OdeSolver`` subclass.

    """
    if isinstance(alg, str):
        return registry.create(f"ode_algorithm:{alg}")
    if isinstance(alg, type) and issubclass(alg, OdeSolver):
        return alg
    raise QEVConfigError(f"[511] Not an ODE algorithm: {alg!r}")


class ODEIntegrator:
    """Running deterministic integration, as seen by callbacks.

    Parameters
    ----------
    problem : ODEProblem
        Problem being solved.
    solver : OdeSolver
        Constructed scipy solver positioned at ``problem.tspan[0]``.

    """

    def __init__(self, problem: ODEProblem, solver: OdeSolver) -> None:
        self.problem = problem
        self.solver = solver
        self.terminated = False
        self.naccept = 0
        self._dense = None

    @property
    def t(self) -> float:
        return float(self.solver.t)

    @property
    def tprev(self) -> float:
        t_old = self.solver.t_old
        return self.t if t_old is None else float(t_old)

    @property
    def dt(self) -> float:
        """Size of the step just accepted (0 before the first step)."""
        h = self.solver.step_size
        return 0.0 if h is None else float(h)

    @property
    def u(self) -> np.ndarray:
        return self.solver.y

    def interpolate(self, t: float) -> np.ndarray:
        """Dense-output state at ``tprev <= t <= self.t``."""
        if t == self.t:
            return self.solver.y
        if self._dense is None:
            self._dense = self.solver.dense_output()
        return self._dense(t)

    def terminate(self) -> None:
        self.terminated = True

    def step(self) -> None:
        """Advance by one accepted step.

        Raises
        ------
        QEVIntegratorError
            - [300] The solver could not satisfy the tolerances.

        """
        self.solver.step()
        if self.solver.status == "failed":
            raise QEVIntegratorError(
                f"[300] {type(self.solver).__name__} failed at t={self.t}: "
                f"{self.solver.message}"
            )
        self._dense = None
        self.naccept += 1


def _allocating_rhs(f):
    # scipy stores the returned derivative arrays between stages, so every
    # evaluation gets its own output array.
    def fun(t, y):
        du = np.zeros_like(y)
        f(t, y, du)
        return du

    return fun


def solve_ode(
    problem: ODEProblem,
    alg: Any = "dp5",
    *,
    abstol: float = 1e-8,
    reltol: float = 1e-6,
    callback: Any = None,
    **kwargs: Any,
) -> ODEIntegrator:
    """Integrate ``problem`` over its full span, running callbacks per step.

    Parameters
    ----------
    problem : ODEProblem
        Problem with in-place right-hand side ``f(t, u, du)``.
    alg : str or type, default "dp5"
        Registry name or ``OdeSolver`` subclass.
    abstol, reltol : float
        Tolerances forwarded to scipy as ``atol`` / ``rtol``.
    callback : callback, CallbackSet or None
        Hooks run after initialisation and after every accepted step.
    **kwargs : Any
        Extra solver options (``max_step``, ``first_step``, ...).

    Returns
    -------
    ODEIntegrator
        The finished (or terminated) integrator.

    Raises
    ------
    QEVIntegratorError
        - [300] Solver failure.

    Examples
    --------
    >>> def decay(t, u, du):
    ...     du[:] = -u
    >>> prob = ODEProblem(decay, np.array([1.0 + 0j]), (0.0, 1.0))
    >>> solve_ode(prob).u  # doctest: +SKIP
    array([0.36787944+0.j])

    """
    solver_cls = resolve_ode_algorithm(alg)
    t0, t1 = float(problem.tspan[0]), float(problem.tspan[1])
    y0 = np.array(problem.u0, dtype=np.complex128)
    solver = solver_cls(
        _allocating_rhs(problem.f), t0, y0, t1, rtol=reltol, atol=abstol, **kwargs
    )
    integrator = ODEIntegrator(problem, solver)
    callbacks = as_callback_set(callback)
    callbacks.initialize(integrator)
    while solver.status == "running" and not integrator.terminated:
        integrator.step()
        callbacks.apply(integrator)
    logger.debug(
        "solve_ode: %s stopped at t=%g after %d steps (%d rhs evaluations)",
        solver_cls.__name__,
        integrator.t,
        integrator.naccept,
        solver.nfev,
    )
    return integrator
