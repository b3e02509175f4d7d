"""Pytest configuration for qevolve tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add qevolve to path
# This file is in tests/qevolve/
# Root is ../../
packages_dir = Path(__file__).parents[2] / "packages"
sys.path.insert(0, str(packages_dir / "qevolve"))

from qevolve.states import ArrayState  # noqa: E402


@pytest.fixture
def qubit_buffers():
    """A (state, dstate) pair of 2x2 operators."""
    state = ArrayState(np.zeros((2, 2), dtype=complex))
    return state, state.zeros_like()


@pytest.fixture
def vector_buffers():
    """A (state, dstate) pair of length-3 kets."""
    state = ArrayState(np.zeros(3, dtype=complex))
    return state, state.zeros_like()


@pytest.fixture
def excited_qubit():
    """Flat initial state of the density matrix |1><1|."""
    return np.array([0.0, 0.0, 0.0, 1.0], dtype=complex)
