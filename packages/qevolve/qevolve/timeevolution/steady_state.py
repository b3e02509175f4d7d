"""qevolve: Steady-State Detection
------------------------------

Predicate that ends a deterministic run once the state stops changing.

Behavior
--------
After every accepted step the current flat state is recast into ``state``
and compared with ``rho0``, the state after the previous step. ``rho0`` is
then overwritten with the current state, whether or not the condition
fires. The condition fires when

    distance(rho0, state) / dt < tol

with ``dt`` the size of the step just accepted, i.e. when the mean rate of
change over that step drops below ``tol``. Once fired it stays fired.

Notes
-----
- The threshold is relative to the adaptive step size, so a solver that
  takes larger steps near convergence fires earlier than one that does not.
"""

from collections.abc import Callable
from typing import Any

import numpy as np

from ..core.errors import QEVConfigError
from ..metrics import tracedistance
from ..recast import ArrayRecast, RecastAdapter
from .adapters import duplicate

__all__ = [
    "SteadyStateCondition",
]


class SteadyStateCondition:
    """Stateful steady-state predicate ``condition(u, t, integrator) -> bool``.

    Parameters
    ----------
    rho0 : structured state
        Reference buffer owned by the condition; holds the previous state.
    tol : float
        Rate threshold (> 0).
    state : structured state
        Scratch buffer receiving the current flat state.
    distance : callable, optional
        ``distance(a, b) -> float``; defaults to :func:`tracedistance`.
    adapter : RecastAdapter, optional
        Conversion strategy; defaults to :class:`ArrayRecast`.

    Raises
    ------
    QEVConfigError
        - [502] Non-positive tolerance.

    Examples
    --------
    >>> cond = SteadyStateCondition.from_initial(u0, 1e-3, state)  # doctest: +SKIP
    >>> cond(u, t, integrator)  # doctest: +SKIP
    False

    """

    def __init__(
        self,
        rho0: Any,
        tol: float,
        state: Any,
        distance: Callable[[Any, Any], float] | None = None,
        adapter: RecastAdapter | None = None,
    ) -> None:
        if not tol > 0:
            raise QEVConfigError(f"[502] Steady-state tolerance must be positive, got {tol!r}")
        self.rho0 = rho0
        self.tol = float(tol)
        self.state = state
        self.distance = tracedistance if distance is None else distance
        self.adapter = adapter or ArrayRecast()
        self.last_distance: float | None = None
        self._fired = False

    @classmethod
    def from_initial(
        cls, u0: np.ndarray, tol: float, state: Any, **kwargs: Any
    ) -> "SteadyStateCondition":
        """Build a condition whose reference is ``u0`` recast into a copy of ``state``."""
        cond = cls(duplicate(state), tol, state, **kwargs)
        cond.update(u0)
        return cond

    @property
    def fired(self) -> bool:
        return self._fired

    def update(self, u: np.ndarray) -> None:
        """Overwrite the reference with the flat state ``u``."""
        self.adapter.to_structured(u, self.rho0)

    def __call__(self, u: np.ndarray, t: float, integrator: Any) -> bool:
        if self._fired:
            return True
        self.adapter.to_structured(u, self.state)
        drho = float(self.distance(self.rho0, self.state))
        self.update(u)
        self.last_distance = drho
        h = float(integrator.dt)
        if h > 0 and drho / h < self.tol:
            self._fired = True
        return self._fired
