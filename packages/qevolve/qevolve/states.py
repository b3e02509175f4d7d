"""qevolve: NumPy State Container
-----------------------------
Reference structured state backed by a single complex numpy array. Kets are
stored as 1-D arrays, operators (density matrices) as 2-D arrays.

Behavior
--------
- Satisfies the recast contract through ``data_view()``.
- ``copy()`` is deep; it is what the drivers store when no output function
  is given.
"""

from dataclasses import dataclass, field
from typing import Any

import numpy as np

__all__ = [
    "ArrayState",
]


@dataclass(eq=False)
class ArrayState:
    """NumPy-backed structured state.

    Parameters
    ----------
    data : np.ndarray
        State payload of any shape; converted to complex dtype.
    attrs : dict, optional
        Lightweight metadata (basis labels, etc.).

    Examples
    --------
    >>> import numpy as np
    >>> rho = ArrayState(np.diag([1.0, 0.0]))
    >>> rho.shape
    (2, 2)
    >>> rho.data.dtype
    dtype('complex128')

    """

    data: np.ndarray
    attrs: dict = field(default_factory=dict)

    def __post_init__(self):
        """Ensure the payload is a complex numpy array."""
        self.data = np.asarray(self.data)
        if not np.iscomplexobj(self.data):
            self.data = self.data.astype(np.complex128)

    @property
    def shape(self) -> tuple[int, ...]:
        return self.data.shape

    @property
    def size(self) -> int:
        return int(self.data.size)

    def __len__(self) -> int:
        return self.size

    def data_view(self) -> np.ndarray:
        """Return the underlying NumPy array (no copy)."""
        return self.data

    def copy(self) -> "ArrayState":
        """Return a deep copy of the state."""
        return ArrayState(data=self.data.copy(), attrs=self.attrs.copy())

    def zeros_like(self) -> "ArrayState":
        """Return a zero state of the same shape, e.g. for a ``dstate`` buffer."""
        return ArrayState(data=np.zeros_like(self.data), attrs=self.attrs.copy())

    def flatten(self) -> np.ndarray:
        """Return a new flat copy of the payload, e.g. for an initial ``x0``."""
        return self.data.reshape(-1).copy()

    @classmethod
    def from_flat(cls, flat: Any, shape: tuple[int, ...]) -> "ArrayState":
        """Construct a state by reshaping a flat vector (copies)."""
        return cls(data=np.array(flat, dtype=np.complex128).reshape(shape))
