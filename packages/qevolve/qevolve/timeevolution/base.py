"""qevolve: Run Set-Up Checks
-------------------------
Precondition checks shared by the drivers. Everything here runs before the
first step, so a run that fails them produces no samples.
"""

from collections.abc import Sequence
from typing import Any

import numpy as np

from ..core.errors import QEVConfigError, QEVStateError
from ..recast import payload

__all__ = [
    "check_tspan",
    "prepare_x0",
    "default_dt",
]


def check_tspan(tspan: Any) -> np.ndarray:
    """Validate a time span and return it as a float array.

    Raises
    ------
    QEVConfigError
        - [501] Not convertible to real numbers, not 1-D, fewer than two
          entries, non-finite or not strictly increasing.

    """
    try:
        ts = np.asarray(tspan, dtype=float)
    except (TypeError, ValueError) as e:
        raise QEVConfigError(f"[501] tspan is not a sequence of real times: {e}") from e
    if ts.ndim != 1 or ts.size < 2:
        raise QEVConfigError(
            f"[501] tspan must be a 1-D sequence of at least two times, got shape {ts.shape}"
        )
    if not np.all(np.isfinite(ts)):
        raise QEVConfigError("[501] tspan contains non-finite times")
    if np.any(np.diff(ts) <= 0):
        raise QEVConfigError("[501] tspan must be strictly increasing")
    return ts


def default_dt(ts: np.ndarray) -> float:
    """Fixed stochastic step: a hundredth of the smallest sampling interval."""
    return float(np.min(np.diff(ts))) / 100.0


def prepare_x0(
    x0: Any, state: Any, buffers: Sequence[Any], check_payload: bool = True
) -> np.ndarray:
    """Return ``x0`` as a flat complex array after checking the run buffers.

    Parameters
    ----------
    x0 : array_like
        Initial flat state.
    state : structured state
        Buffer the flat state is recast into.
    buffers : sequence of structured states
        Derivative/diffusion buffers; each must differ from ``state``.
    check_payload : bool, default True
        Also check element counts, dtypes and memory overlap of the numpy
        payloads. Disabled when a custom recast adapter owns the layout.

    Raises
    ------
    QEVStateError
        - [700] Element count of a buffer differs from ``len(x0)``.
        - [702] A buffer aliases ``state``.
        - [703] A payload cannot hold complex values.
        - [705] ``x0`` is not 1-D.

    """
    u0 = np.asarray(x0)
    if u0.ndim != 1:
        raise QEVStateError(f"[705] x0 must be a flat 1-D vector, got shape {u0.shape}")
    u0 = u0.astype(np.complex128, copy=False)
    for buf in buffers:
        if buf is state:
            raise QEVStateError("[702] state and dstate must be distinct objects")
    if not check_payload:
        return u0
    data = payload(state)
    for obj in (state, *buffers):
        arr = payload(obj)
        if arr.size != u0.size:
            raise QEVStateError(
                f"[700] Length mismatch: x0 has {u0.size} elements, "
                f"{type(obj).__name__} has {arr.size}"
            )
        if not np.can_cast(np.complex128, arr.dtype, casting="safe"):
            raise QEVStateError(
                f"[703] {type(obj).__name__} payload of dtype {arr.dtype} "
                "cannot hold complex values"
            )
        if obj is not state and np.shares_memory(arr, data):
            raise QEVStateError("[702] state and dstate share memory")
    return u0
