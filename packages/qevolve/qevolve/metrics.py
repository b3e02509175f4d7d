"""qevolve: Distance Metrics
------------------------
Distances between two structured states, used as the convergence measure of
steady-state detection. Any callable ``distance(a, b) -> float`` can be passed
to the drivers instead.
"""

import numpy as np

from .core.errors import QEVStateError
from .recast import payload

__all__ = [
    "tracedistance",
    "tracedistance_h",
    "normdistance",
]


def _operator_difference(a, b) -> np.ndarray:
    da, db = payload(a), payload(b)
    if da.shape != db.shape:
        raise QEVStateError(f"[710] Shape mismatch: {da.shape} vs {db.shape}")
    if da.ndim != 2 or da.shape[0] != da.shape[1]:
        raise QEVStateError(
            f"[711] Trace distance needs square operators, got shape {da.shape}"
        )
    return da - db


def tracedistance(rho, sigma) -> float:
    """Trace distance ``1/2 * sum |lambda_i|`` of the eigenvalues of ``rho - sigma``.

    Uses the general eigenvalue solver, so non-Hermitian intermediate states
    are handled.
    """
    return float(0.5 * np.sum(np.abs(np.linalg.eigvals(_operator_difference(rho, sigma)))))


def tracedistance_h(rho, sigma) -> float:
    """Trace distance for Hermitian operators (faster ``eigvalsh`` path)."""
    return float(0.5 * np.sum(np.abs(np.linalg.eigvalsh(_operator_difference(rho, sigma)))))


def normdistance(a, b) -> float:
    """Euclidean (Frobenius) norm of ``a - b`` for states of any shape."""
    da, db = payload(a), payload(b)
    if da.shape != db.shape:
        raise QEVStateError(f"[710] Shape mismatch: {da.shape} vs {db.shape}")
    return float(np.linalg.norm(da - db))
