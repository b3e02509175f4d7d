"""qevolve: Engine Callbacks
------------------------

Hooks the stepping engine evaluates after every accepted step.

- ``DiscreteCallback``: ``condition(u, t, integrator) -> bool`` gating
  ``affect(integrator)``.
- ``SavingCallback``: records ``save_func(u, t, integrator)`` at requested
  times (interpolated inside the step that crosses them) and, optionally,
  after every step.
- ``CallbackSet``: ordered composition; ``None`` members are dropped and
  nested sets are flattened.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from ..core.errors import QEVConfigError
from .base import StepIntegrator

__all__ = [
    "SavedValues",
    "DiscreteCallback",
    "SavingCallback",
    "CallbackSet",
    "as_callback_set",
]

Condition = Callable[[np.ndarray, float, StepIntegrator], bool]
Affect = Callable[[StepIntegrator], None]


@dataclass
class SavedValues:
    """Sampled output: parallel lists of times and recorded values."""

    t: list[float] = field(default_factory=list)
    saveval: list[Any] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.t)


class DiscreteCallback:
    """Run ``affect`` after any accepted step where ``condition`` holds."""

    def __init__(self, condition: Condition, affect: Affect) -> None:
        self.condition = condition
        self.affect = affect

    def initialize(self, integrator: StepIntegrator) -> None:
        pass

    def apply(self, integrator: StepIntegrator) -> None:
        if self.condition(integrator.u, integrator.t, integrator):
            self.affect(integrator)


class SavingCallback(DiscreteCallback):
    """Record a projection of the state at chosen times.

    Parameters
    ----------
    save_func : callable
        ``save_func(u, t, integrator) -> value``. ``u`` may be an engine
        buffer; the function must not keep a reference to it.
    saved_values : SavedValues
        Destination, appended in increasing time order.
    saveat : iterable of float
        Requested sample times. Times equal to the start time are recorded
        from the initial state; later ones by interpolation within the step
        that reaches them.
    save_everystep : bool
        Also record after every accepted step.
    save_start : bool
        Record the start time even if it is not listed in ``saveat``.

    """

    def __init__(
        self,
        save_func: Callable[[np.ndarray, float, StepIntegrator], Any],
        saved_values: SavedValues,
        *,
        saveat: Iterable[float] = (),
        save_everystep: bool = False,
        save_start: bool = False,
    ) -> None:
        self.save_func = save_func
        self.saved_values = saved_values
        self.saveat = np.sort(np.asarray(list(saveat), dtype=float))
        self.save_everystep = save_everystep
        self.save_start = save_start
        self._next = 0

    def _record(self, u: np.ndarray, t: float, integrator: StepIntegrator) -> None:
        self.saved_values.t.append(float(t))
        self.saved_values.saveval.append(self.save_func(u, t, integrator))

    def initialize(self, integrator: StepIntegrator) -> None:
        self._next = 0
        t0 = integrator.t
        if self.save_start and not np.any(self.saveat == t0):
            self._record(integrator.u, t0, integrator)
        while self._next < self.saveat.size and self.saveat[self._next] <= t0:
            self._record(integrator.u, t0, integrator)
            self._next += 1

    def apply(self, integrator: StepIntegrator) -> None:
        self.affect(integrator)

    def affect(self, integrator: StepIntegrator, force_save: bool = False) -> None:
        """Record pending sample times up to ``integrator.t``.

        With ``force_save`` (or ``save_everystep``) the current state is
        recorded as well, unless that time was just recorded.
        """
        while self._next < self.saveat.size and self.saveat[self._next] <= integrator.t:
            ts = float(self.saveat[self._next])
            self._record(integrator.interpolate(ts), ts, integrator)
            self._next += 1
        if self.save_everystep or force_save:
            times = self.saved_values.t
            if not times or times[-1] != integrator.t:
                self._record(integrator.u, integrator.t, integrator)


class CallbackSet:
    """Ordered collection of callbacks applied one after the other."""

    def __init__(self, *callbacks: Any) -> None:
        self.callbacks: list[Any] = []
        for cb in callbacks:
            if cb is None:
                continue
            if isinstance(cb, CallbackSet):
                self.callbacks.extend(cb.callbacks)
            elif isinstance(cb, DiscreteCallback) or hasattr(cb, "apply"):
                self.callbacks.append(cb)
            elif callable(cb):
                # Bare functions run after every step.
                self.callbacks.append(DiscreteCallback(lambda u, t, integrator: True, cb))
            else:
                raise QEVConfigError(f"[517] Not a callback: {cb!r}")

    def __len__(self) -> int:
        return len(self.callbacks)

    def initialize(self, integrator: StepIntegrator) -> None:
        for cb in self.callbacks:
            init = getattr(cb, "initialize", None)
            if init is not None:
                init(integrator)

    def apply(self, integrator: StepIntegrator) -> None:
        for cb in self.callbacks:
            cb.apply(integrator)


def as_callback_set(callback: Any) -> CallbackSet:
    """Wrap ``None``, a single callback or a set into a ``CallbackSet``."""
    if isinstance(callback, CallbackSet):
        return callback
    return CallbackSet(callback)
