"""qevolve: Deterministic Time Evolution
------------------------------------

``integrate`` solves ``d(state)/dt = df(t, state)`` for a structured state by
handing a flat recasting right-hand side to the ODE engine.

Behavior
--------
- Samples ``fout(t, state)`` at every time in ``tspan`` (the start time from
  the initial state) and, with ``save_everystep``, after every accepted step.
- With ``steady_state`` the run ends once the state stops changing (see
  :mod:`qevolve.timeevolution.steady_state`); the terminal state is always
  sampled.
- The engine keeps no trajectory; the returned lists are the only output.
"""

from collections.abc import Callable
from typing import Any

from ..core.config import ODEOptions
from ..core.errors import get_logger
from ..integrator import (
    CallbackSet,
    DiscreteCallback,
    ODEProblem,
    SavedValues,
    SavingCallback,
    solve_ode,
)
from .adapters import DerivativeAdapter, OutputSampler
from .base import check_tspan, prepare_x0
from .steady_state import SteadyStateCondition

__all__ = [
    "integrate",
]

logger = get_logger()


def integrate(
    tspan: Any,
    df: Callable[[float, Any, Any], Any],
    x0: Any,
    state: Any,
    dstate: Any,
    fout: Callable[[float, Any], Any] | None = None,
    options: Any = None,
    **kwargs: Any,
) -> tuple[list[float], list[Any]]:
    """Integrate a deterministic equation of motion written for structured states.

    Parameters
    ----------
    tspan : array_like
        Strictly increasing sample times; the first and last bound the run.
    df : callable
        ``df(t, state, dstate)`` writing the time derivative into ``dstate``.
    x0 : array_like
        Initial state as a flat vector; not modified.
    state, dstate : structured states
        Pre-allocated, distinct buffers with ``len(x0)`` elements each. Both
        are overwritten during the run.
    fout : callable, optional
        ``fout(t, state) -> value`` recorded at each sample. Must not keep a
        reference to ``state``. Defaults to a copy of ``state``.
    options : ODEOptions or mapping, optional
        Option record; keyword arguments override its fields.
    **kwargs : Any
        ``alg``, ``abstol``, ``reltol``, ``steady_state``, ``tol``,
        ``save_everystep``, ``callback``, ``distance``, ``adapter``; any
        other key is forwarded to the scipy solver.

    Returns
    -------
    tuple[list[float], list[Any]]
        Sample times and the corresponding ``fout`` values.

    Raises
    ------
    QEVConfigError
        Invalid options or time span.
    QEVStateError
        Buffer sizes, dtypes or aliasing are wrong.
    QEVIntegratorError
        The solver failed.

    Examples
    --------
    >>> import numpy as np
    >>> from qevolve.states import ArrayState
    >>> rho = ArrayState(np.zeros((2, 2)))
    >>> def decay(t, rho, drho):
    ...     drho.data[:] = -rho.data
    >>> tout, out = integrate([0.0, 1.0], decay, np.ones(4), rho, rho.zeros_like())
    >>> len(out)
    2

    """
    opts = ODEOptions.from_raw(options, **kwargs)
    ts = check_tspan(tspan)
    u0 = prepare_x0(x0, state, (dstate,), check_payload=opts.adapter is None)
    alg = "dp5" if opts.alg is None else opts.alg

    f = DerivativeAdapter(df, state, dstate, opts.adapter)
    sampler = OutputSampler(fout, state, opts.adapter)
    out = SavedValues()
    saving = SavingCallback(
        sampler, out, saveat=ts, save_everystep=opts.save_everystep
    )
    callbacks = CallbackSet(opts.callback, saving)

    if opts.steady_state:
        condition = SteadyStateCondition.from_initial(
            u0, opts.tol, state, distance=opts.distance, adapter=opts.adapter
        )

        def stop_at_steady_state(integrator) -> None:
            if not opts.save_everystep:
                saving.affect(integrator, force_save=True)
            logger.debug(
                "integrate: steady state reached at t=%g (distance %.3e over dt=%.3e)",
                integrator.t,
                condition.last_distance,
                integrator.dt,
            )
            integrator.terminate()

        callbacks = CallbackSet(callbacks, DiscreteCallback(condition, stop_at_steady_state))

    logger.debug(
        "integrate: %d sample times on [%g, %g], alg=%s, steady_state=%s",
        ts.size,
        ts[0],
        ts[-1],
        alg,
        opts.steady_state,
    )
    problem = ODEProblem(f, u0, (float(ts[0]), float(ts[-1])))
    solve_ode(
        problem,
        alg,
        abstol=opts.abstol,
        reltol=opts.reltol,
        callback=callbacks,
        **opts.engine_kwargs(),
    )
    return out.t, out.saveval
