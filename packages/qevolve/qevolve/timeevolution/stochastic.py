"""qevolve: Stochastic Time Evolution
---------------------------------

Drivers for stochastic equations of motion written for structured states:

    d(state) = df(t, state) dt + dg(t, state) ∘ dW

- ``integrate_stoch``: scalar noise (one Wiener channel shared by every
  element) or diagonal noise (one independent channel per element).
- ``integrate_stoch_nondiagonal``: ``n`` channels coupling arbitrarily into
  the state through a ``(len(x0), n)`` noise-rate matrix.

Behavior
--------
- Fixed-step integration; steps are shortened to land on every sample time.
- Trajectories always run to the end of ``tspan``; there is no steady-state
  option in stochastic mode.
- Default schemes are Stratonovich: ``rkmil`` for scalar/diagonal noise and
  ``euler_heun`` for non-diagonal noise.
"""

import warnings
from collections.abc import Callable, Sequence
from typing import Any

import numpy as np

from ..core.config import NoiseStructure, SDEOptions
from ..core.errors import QEVConfigError, QEVWarning, get_logger
from ..integrator import CallbackSet, SavedValues, SavingCallback, SDEProblem, solve_sde
from .adapters import ChannelDiffusionAdapter, DerivativeAdapter, OutputSampler
from .base import check_tspan, default_dt, prepare_x0

__all__ = [
    "integrate_stoch",
    "integrate_stoch_nondiagonal",
]

logger = get_logger()


def _solve(
    problem: SDEProblem,
    ts: np.ndarray,
    fout: Callable[[float, Any], Any] | None,
    state: Any,
    opts: SDEOptions,
    default_alg: str,
) -> tuple[list[float], list[Any]]:
    sampler = OutputSampler(fout, state, opts.adapter)
    out = SavedValues()
    saving = SavingCallback(
        sampler, out, saveat=ts, save_everystep=opts.save_everystep
    )
    alg = default_alg if opts.alg is None else opts.alg
    dt = default_dt(ts) if opts.dt is None else opts.dt
    if dt > np.min(np.diff(ts)):
        warnings.warn(
            f"[901] dt={dt:g} is coarser than the smallest sampling interval; "
            "steps before those samples are shortened",
            QEVWarning,
            stacklevel=3,
        )
    logger.debug(
        "integrate_stoch: %d sample times on [%g, %g], alg=%s, noise=%s, dt=%g",
        ts.size,
        ts[0],
        ts[-1],
        alg,
        problem.noise.value,
        dt,
    )
    solve_sde(
        problem,
        alg,
        dt=dt,
        seed=opts.seed,
        tstops=ts,
        callback=CallbackSet(opts.callback, saving),
        abstol=opts.abstol,
        reltol=opts.reltol,
        **opts.engine_kwargs(),
    )
    return out.t, out.saveval


def integrate_stoch(
    tspan: Any,
    df: Callable[[float, Any, Any], Any],
    dg: Callable[[float, Any, Any], Any],
    x0: Any,
    state: Any,
    dstate: Any,
    fout: Callable[[float, Any], Any] | None = None,
    options: Any = None,
    **kwargs: Any,
) -> tuple[list[float], list[Any]]:
    """Integrate a stochastic equation with scalar or diagonal noise.

    Parameters
    ----------
    tspan : array_like
        Strictly increasing sample times.
    df, dg : callable
        ``df(t, state, dstate)`` and ``dg(t, state, dstate)`` writing the
        drift and the per-element noise amplitude into ``dstate``.
    x0 : array_like
        Initial flat state; not modified.
    state, dstate : structured states
        Distinct pre-allocated buffers of ``len(x0)`` elements. ``dstate`` is
        shared by drift and diffusion evaluations.
    fout : callable, optional
        ``fout(t, state) -> value``; defaults to a copy of ``state``.
    options : SDEOptions or mapping, optional
        Option record; keyword arguments override its fields.
    **kwargs : Any
        ``alg``, ``noise``, ``dt``, ``seed``, ``abstol``, ``reltol``,
        ``save_everystep``, ``callback``, ``adapter``.

    Returns
    -------
    tuple[list[float], list[Any]]
        Sample times and recorded values.

    Raises
    ------
    QEVConfigError
        - [514] ``noise="general"``; use :func:`integrate_stoch_nondiagonal`.
        - [510] The scheme does not support the noise structure.
        - [513] Unknown option (``steady_state`` included).
    QEVStateError
        Buffer sizes, dtypes or aliasing are wrong.

    Warns
    -----
    QEVWarning
        - [901] ``dt`` is coarser than the smallest sampling interval.

    """
    opts = SDEOptions.from_raw(options, **kwargs)
    if opts.noise is NoiseStructure.GENERAL:
        raise QEVConfigError(
            "[514] integrate_stoch handles scalar and diagonal noise; "
            "use integrate_stoch_nondiagonal for general noise"
        )
    ts = check_tspan(tspan)
    u0 = prepare_x0(x0, state, (dstate,), check_payload=opts.adapter is None)

    problem = SDEProblem(
        f=DerivativeAdapter(df, state, dstate, opts.adapter),
        g=DerivativeAdapter(dg, state, dstate, opts.adapter),
        u0=u0,
        tspan=(float(ts[0]), float(ts[-1])),
        noise=opts.noise,
    )
    return _solve(problem, ts, fout, state, opts, default_alg="rkmil")


def integrate_stoch_nondiagonal(
    tspan: Any,
    df: Callable[[float, Any, Any], Any],
    dg: Callable[[float, Any, Any], Any] | Sequence[Callable[[float, Any, Any], Any]],
    x0: Any,
    state: Any,
    dstate: Any,
    fout: Callable[[float, Any], Any] | None,
    n: int,
    options: Any = None,
    **kwargs: Any,
) -> tuple[list[float], list[Any]]:
    """Integrate a stochastic equation driven by ``n`` coupled noise channels.

    Channel ``i`` contributes ``dg[i](t, state) dW_i``; the engine sees the
    ``(len(x0), n)`` matrix whose column ``i`` is ``dg[i]`` recast to a flat
    vector. That matrix is allocated once and reused for every evaluation.

    Parameters
    ----------
    dg : callable or sequence of callables
        One diffusion function per channel, or a single function used for
        every channel.
    dstate : structured state or sequence of structured states
        One buffer per channel, or a single buffer reused for every channel.
        The drift writes into the first one.
    n : int
        Number of noise channels (>= 1).

    Other parameters are as for :func:`integrate_stoch`; the ``noise``
    option is ignored.

    Raises
    ------
    QEVConfigError
        - [515] ``n`` is not a positive integer.
        - [519] ``dg`` or ``dstate`` does not have ``n`` entries.
        - [510] The scheme does not support general noise (e.g. ``rkmil``).

    Warns
    -----
    QEVWarning
        - [901] ``dt`` is coarser than the smallest sampling interval.

    """
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or n < 1:
        raise QEVConfigError(f"[515] Number of noise channels must be a positive integer, got {n!r}")
    n = int(n)
    opts = SDEOptions.from_raw(options, **kwargs)
    ts = check_tspan(tspan)

    funcs = [dg] * n if callable(dg) else list(dg)
    if len(funcs) != n:
        raise QEVConfigError(f"[519] Expected {n} diffusion functions, got {len(funcs)}")
    dstates = list(dstate) if isinstance(dstate, (list, tuple)) else [dstate] * n
    if len(dstates) != n:
        raise QEVConfigError(f"[519] Expected {n} diffusion buffers, got {len(dstates)}")
    u0 = prepare_x0(x0, state, dstates, check_payload=opts.adapter is None)

    problem = SDEProblem(
        f=DerivativeAdapter(df, state, dstates[0], opts.adapter),
        g=ChannelDiffusionAdapter(funcs, state, dstates, opts.adapter),
        u0=u0,
        tspan=(float(ts[0]), float(ts[-1])),
        noise=NoiseStructure.GENERAL,
        noise_rate_prototype=np.zeros((u0.size, n), dtype=np.complex128),
    )
    return _solve(problem, ts, fout, state, opts, default_alg="euler_heun")
