"""qevolve: Recast Protocol
-----------------------

In-place conversion between flat complex vectors, the only representation the
stepping engine manipulates, and structured state objects, the representation
the caller's derivative functions are written against.

Behavior
--------
- A structured state exposes its numeric payload as a numpy array, either
  through a ``data_view()`` method or a ``data`` attribute. Elements map to
  flat positions in C order.
- Conversion copies into the destination's existing storage; nothing is
  allocated on the destination side.
- Sizes must match exactly and the copy must be lossless, otherwise
  :class:`~qevolve.core.errors.QEVStateError` is raised.

Notes
-----
- Storage layouts that are not a single numpy array can implement the
  :class:`RecastAdapter` protocol and be passed to the drivers via
  ``adapter=``.
"""

from typing import Any, Protocol, runtime_checkable

import numpy as np

from .core.errors import QEVStateError

__all__ = [
    "RecastAdapter",
    "ArrayRecast",
    "payload",
    "element_count",
    "recast",
]


def payload(obj: Any) -> np.ndarray:
    """Return the numpy array backing a structured state, without copying.

    Raises
    ------
    QEVStateError
        - [704] The object exposes neither ``data_view()`` nor a ``data``
          numpy array.

    """
    view = getattr(obj, "data_view", None)
    arr = view() if callable(view) else getattr(obj, "data", None)
    if not isinstance(arr, np.ndarray):
        raise QEVStateError(
            f"[704] {type(obj).__name__} exposes no numpy payload "
            "(expected data_view() or a 'data' array)"
        )
    return arr


def element_count(obj: Any) -> int:
    """Number of numeric elements held by a flat vector or structured state."""
    if isinstance(obj, np.ndarray):
        return int(obj.size)
    return int(payload(obj).size)


def _check_pair(flat: np.ndarray, data: np.ndarray, src: np.ndarray, dst: np.ndarray) -> None:
    if flat.ndim != 1:
        raise QEVStateError(f"[705] Flat state must be 1-D, got shape {flat.shape}")
    if flat.size != data.size:
        raise QEVStateError(
            f"[700] Length mismatch: flat state has {flat.size} elements, "
            f"structured state has {data.size}"
        )
    if not np.can_cast(src.dtype, dst.dtype, casting="safe"):
        raise QEVStateError(
            f"[703] Lossy recast from {src.dtype} into {dst.dtype}"
        )


@runtime_checkable
class RecastAdapter(Protocol):
    """Bidirectional in-place conversion between flat and structured states.

    Methods
    -------
    to_structured(flat, state) -> state
        Copy the flat vector into the state's storage.
    to_flat(state, flat) -> flat
        Copy the state's storage into the flat vector (which may be a strided
        view, e.g. one column of a noise-rate buffer).

    """

    def to_structured(self, flat: np.ndarray, state: Any) -> Any: ...

    def to_flat(self, state: Any, flat: np.ndarray) -> np.ndarray: ...


class ArrayRecast:
    """Default adapter for states backed by one numpy array."""

    def to_structured(self, flat: np.ndarray, state: Any) -> Any:
        data = payload(state)
        _check_pair(flat, data, flat, data)
        np.copyto(data, flat.reshape(data.shape))
        return state

    def to_flat(self, state: Any, flat: np.ndarray) -> np.ndarray:
        data = payload(state)
        _check_pair(flat, data, data, flat)
        np.copyto(flat, data.reshape(-1))
        return flat


_default_adapter = ArrayRecast()


def recast(source: Any, destination: Any, adapter: RecastAdapter | None = None) -> Any:
    """Copy ``source`` into ``destination`` across the flat/structured boundary.

    Exactly one of the two arguments must be a numpy array (the flat side).
    Applying ``recast`` twice with the roles swapped reproduces the original
    values exactly.

    Parameters
    ----------
    source : numpy.ndarray or structured state
        Values to copy.
    destination : structured state or numpy.ndarray
        Storage to overwrite in place.
    adapter : RecastAdapter, optional
        Conversion strategy; defaults to :class:`ArrayRecast`.

    Returns
    -------
    Any
        ``destination``.

    Raises
    ------
    QEVStateError
        - [700] Element counts differ.
        - [701] Both or neither argument is a flat array.
        - [703] The copy would lose precision.

    Examples
    --------
    >>> from qevolve.states import ArrayState
    >>> s = ArrayState(np.zeros((2, 2), dtype=complex))
    >>> _ = recast(np.arange(4, dtype=complex), s)
    >>> s.data[1, 0]
    np.complex128(2+0j)

    """
    ad = _default_adapter if adapter is None else adapter
    src_flat = isinstance(source, np.ndarray)
    dst_flat = isinstance(destination, np.ndarray)
    if src_flat and not dst_flat:
        ad.to_structured(source, destination)
    elif dst_flat and not src_flat:
        ad.to_flat(source, destination)
    else:
        raise QEVStateError(
            "[701] recast needs exactly one flat array and one structured state, "
            f"got {type(source).__name__} and {type(destination).__name__}"
        )
    return destination
