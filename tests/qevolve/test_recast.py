"""Tests for the flat/structured recast protocol."""

import numpy as np
import pytest
from qevolve.core.errors import QEVPreconditionError, QEVStateError
from qevolve.recast import ArrayRecast, RecastAdapter, element_count, payload, recast
from qevolve.states import ArrayState


def test_recast_round_trip_is_exact():
    x = np.array([1 + 2j, -0.5j, 3.0, 1e-300 + 7j])
    rho = ArrayState(np.zeros((2, 2), dtype=complex))
    recast(x, rho)
    np.testing.assert_array_equal(rho.data, x.reshape(2, 2))

    y = np.zeros(4, dtype=complex)
    recast(rho, y)
    np.testing.assert_array_equal(y, x)


def test_recast_writes_in_place():
    rho = ArrayState(np.zeros((2, 2), dtype=complex))
    buffer = rho.data
    flat = np.zeros(4, dtype=complex)
    out = recast(np.arange(4, dtype=complex), rho)
    assert out is rho
    assert rho.data is buffer
    assert recast(rho, flat) is flat


def test_recast_uses_c_order():
    rho = ArrayState(np.zeros((2, 2), dtype=complex))
    recast(np.arange(4, dtype=complex), rho)
    assert rho.data[0, 1] == 1
    assert rho.data[1, 0] == 2


def test_length_mismatch_raises():
    s = ArrayState(np.zeros(3, dtype=complex))
    with pytest.raises(QEVStateError, match=r"\[700\]"):
        recast(np.zeros(5, dtype=complex), s)
    with pytest.raises(QEVStateError, match=r"\[700\]"):
        recast(s, np.zeros(5, dtype=complex))


def test_length_mismatch_is_a_precondition_error():
    s = ArrayState(np.zeros(3, dtype=complex))
    with pytest.raises(QEVPreconditionError):
        recast(np.zeros(2, dtype=complex), s)


def test_two_structured_or_two_flat_rejected():
    a = ArrayState(np.zeros(2, dtype=complex))
    b = ArrayState(np.zeros(2, dtype=complex))
    with pytest.raises(QEVStateError, match=r"\[701\]"):
        recast(a, b)
    with pytest.raises(QEVStateError, match=r"\[701\]"):
        recast(np.zeros(2, dtype=complex), np.zeros(2, dtype=complex))


def test_complex_into_real_payload_is_rejected():
    class RealState:
        def __init__(self):
            self.data = np.zeros(2)

    with pytest.raises(QEVStateError, match=r"\[703\]"):
        recast(np.array([1 + 1j, 0j]), RealState())


def test_real_flat_into_complex_payload_is_allowed():
    s = ArrayState(np.zeros(2, dtype=complex))
    recast(np.array([1.0, 2.0]), s)
    np.testing.assert_array_equal(s.data, [1, 2])


def test_object_without_payload_rejected():
    with pytest.raises(QEVStateError, match=r"\[704\]"):
        payload(object())


def test_data_attribute_is_enough():
    class Bare:
        def __init__(self):
            self.data = np.zeros((2, 3), dtype=complex)

    b = Bare()
    assert element_count(b) == 6
    recast(np.ones(6, dtype=complex), b)
    assert np.all(b.data == 1)


def test_strided_flat_view_is_written():
    G = np.zeros((3, 2), dtype=complex)
    s = ArrayState(np.array([1.0, 2.0, 3.0]))
    ArrayRecast().to_flat(s, G[:, 1])
    np.testing.assert_array_equal(G[:, 1], [1, 2, 3])
    np.testing.assert_array_equal(G[:, 0], 0)


def test_custom_adapter_is_used():
    class Halves:
        """Stores a flat vector as two separate arrays."""

        def __init__(self, n):
            self.re = np.zeros(n)
            self.im = np.zeros(n)

    class HalvesRecast:
        def to_structured(self, flat, state):
            state.re[:] = flat.real
            state.im[:] = flat.imag
            return state

        def to_flat(self, state, flat):
            flat[:] = state.re + 1j * state.im
            return flat

    adapter = HalvesRecast()
    assert isinstance(adapter, RecastAdapter)
    h = Halves(2)
    recast(np.array([1 + 2j, 3 - 4j]), h, adapter)
    np.testing.assert_array_equal(h.re, [1, 3])
    np.testing.assert_array_equal(h.im, [2, -4])
    back = recast(h, np.zeros(2, dtype=complex), adapter)
    np.testing.assert_array_equal(back, [1 + 2j, 3 - 4j])


def test_from_flat_builds_a_compatible_buffer():
    x = np.array([1.0, 2j, -3.0, 4.0])
    rho = ArrayState.from_flat(x, (2, 2))
    assert rho.data.shape == (2, 2)
    assert not np.shares_memory(rho.data, x)

    y = np.zeros(4, dtype=complex)
    recast(rho, y)
    np.testing.assert_array_equal(y, x)
    np.testing.assert_array_equal(rho.flatten(), x)
