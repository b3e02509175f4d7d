"""qevolve: Engine-Facing Adapters
------------------------------

Callable objects handed to the stepping engine. Each holds the caller's
function together with the structured buffers it works on, and translates
between the engine's flat vectors and those buffers on every call.

- ``DerivativeAdapter``: ``f(t, u, du)`` for drift or scalar/diagonal
  diffusion.
- ``ChannelDiffusionAdapter``: ``g(t, u, G)`` filling one column of the
  ``(k, n)`` noise-rate buffer per channel.
- ``OutputSampler``: ``save_func(u, t, integrator)`` for the saving callback.

The buffers are owned by one run; adapters never allocate structured states.
"""

import copy
from collections.abc import Callable, Sequence
from typing import Any

import numpy as np

from ..recast import RecastAdapter, ArrayRecast

__all__ = [
    "DerivativeAdapter",
    "ChannelDiffusionAdapter",
    "OutputSampler",
    "copy_state",
    "duplicate",
]


def duplicate(obj: Any) -> Any:
    """Independent copy of a structured state (``.copy()`` or deepcopy)."""
    cp = getattr(obj, "copy", None)
    if callable(cp):
        return cp()
    return copy.deepcopy(obj)


def copy_state(t: float, state: Any) -> Any:
    """Default output function: a copy of ``state`` that later steps cannot alter."""
    return duplicate(state)


class DerivativeAdapter:
    """Flat in-place right-hand side wrapping ``func(t, state, dstate)``.

    Parameters
    ----------
    func : callable
        Caller function writing the derivative of ``state`` into ``dstate``.
    state, dstate : structured states
        Run-owned buffers, reused on every call.
    adapter : RecastAdapter, optional
        Conversion strategy; defaults to :class:`ArrayRecast`.

    """

    def __init__(
        self,
        func: Callable[[float, Any, Any], Any],
        state: Any,
        dstate: Any,
        adapter: RecastAdapter | None = None,
    ) -> None:
        self.func = func
        self.state = state
        self.dstate = dstate
        self.adapter = adapter or ArrayRecast()
        self.ncalls = 0

    def __call__(self, t: float, u: np.ndarray, du: np.ndarray) -> None:
        self.adapter.to_structured(u, self.state)
        self.adapter.to_structured(du, self.dstate)
        self.func(t, self.state, self.dstate)
        self.adapter.to_flat(self.dstate, du)
        self.ncalls += 1


class ChannelDiffusionAdapter:
    """Noise-rate filler for general (non-diagonal) noise.

    Column ``i`` of the ``(k, n)`` buffer is produced by ``funcs[i]`` writing
    into ``dstates[i]``. Columns are strided views of the engine's buffer, so
    results land directly in the array the scheme passed in.
    """

    def __init__(
        self,
        funcs: Sequence[Callable[[float, Any, Any], Any]],
        state: Any,
        dstates: Sequence[Any],
        adapter: RecastAdapter | None = None,
    ) -> None:
        self.funcs = list(funcs)
        self.state = state
        self.dstates = list(dstates)
        self.adapter = adapter or ArrayRecast()

    @property
    def nchannels(self) -> int:
        return len(self.funcs)

    def __call__(self, t: float, u: np.ndarray, G: np.ndarray) -> None:
        for i, (func, dstate) in enumerate(zip(self.funcs, self.dstates)):
            column = G[:, i]
            self.adapter.to_structured(u, self.state)
            self.adapter.to_structured(column, dstate)
            func(t, self.state, dstate)
            self.adapter.to_flat(dstate, column)


class OutputSampler:
    """Save function recording ``fout(t, state)`` for the flat state ``u``.

    ``fout=None`` selects :func:`copy_state` once, at construction.
    """

    def __init__(
        self,
        fout: Callable[[float, Any], Any] | None,
        state: Any,
        adapter: RecastAdapter | None = None,
    ) -> None:
        self.fout = copy_state if fout is None else fout
        self.state = state
        self.adapter = adapter or ArrayRecast()

    @property
    def is_default(self) -> bool:
        return self.fout is copy_state

    def __call__(self, u: np.ndarray, t: float, integrator: Any = None) -> Any:
        self.adapter.to_structured(u, self.state)
        return self.fout(t, self.state)
