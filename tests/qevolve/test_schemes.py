"""Tests for the stochastic schemes and the fixed-step engine."""

import numpy as np
import pytest
from qevolve.core.config import NoiseStructure
from qevolve.core.errors import QEVConfigError, QEVIntegratorError
from qevolve.integrator import (
    EulerHeun,
    EulerMaruyama,
    RKMil,
    SDEProblem,
    SavedValues,
    SavingCallback,
    solve_sde,
)


def neg_drift(t, u, du):
    du[:] = -u


def zero_drift(t, u, du):
    du[:] = 0.0


def unit_noise(t, u, du):
    du[:] = 1.0


def linear_noise(t, u, du):
    du[:] = u


def make_problem(f, g, u0=(1.0,), noise=NoiseStructure.DIAGONAL, **kwargs):
    return SDEProblem(
        f=f,
        g=g,
        u0=np.array(u0, dtype=complex),
        tspan=(0.0, 1.0),
        noise=noise,
        **kwargs,
    )


@pytest.mark.parametrize("scheme_cls", [EulerMaruyama, RKMil, EulerHeun])
def test_additive_noise_step(scheme_cls):
    """Zero drift and constant diffusion: every scheme gives g·dW."""
    problem = make_problem(zero_drift, unit_noise)
    scheme = scheme_cls()
    scheme.initialize(problem)
    u = problem.u0.copy()
    dy = scheme.step(problem, u, 0.0, 0.01, np.array([0.1]))
    np.testing.assert_allclose(dy, 0.1)
    np.testing.assert_array_equal(u, problem.u0)


def test_euler_maruyama_step():
    problem = make_problem(neg_drift, unit_noise)
    scheme = EulerMaruyama()
    scheme.initialize(problem)
    # dy = -y*dt + 1*dW = -0.01 + 0.1 = 0.09
    dy = scheme.step(problem, problem.u0.copy(), 0.0, 0.01, np.array([0.1]))
    assert np.allclose(dy, 0.09)


def test_rkmil_stratonovich_correction():
    # g(u) = u: dy = u dW + u dW^2 / 2
    problem = make_problem(zero_drift, linear_noise)
    scheme = RKMil()
    scheme.initialize(problem)
    dy = scheme.step(problem, problem.u0.copy(), 0.0, 0.01, np.array([0.1]))
    np.testing.assert_allclose(dy, 0.105)


def test_rkmil_ito_correction():
    # g(u) = u: dy = u dW + u (dW^2 - dt) / 2
    problem = make_problem(zero_drift, linear_noise)
    scheme = RKMil(interpretation="ito")
    scheme.initialize(problem)
    dy = scheme.step(problem, problem.u0.copy(), 0.0, 0.01, np.array([0.1]))
    np.testing.assert_allclose(dy, 0.1)


def test_euler_heun_matches_stratonovich_correction():
    problem = make_problem(zero_drift, linear_noise)
    scheme = EulerHeun()
    scheme.initialize(problem)
    dy = scheme.step(problem, problem.u0.copy(), 0.0, 0.01, np.array([0.1]))
    np.testing.assert_allclose(dy, 0.105)


def test_scalar_noise_shares_one_channel():
    problem = make_problem(zero_drift, unit_noise, u0=(0.0, 0.0, 0.0), noise="scalar")
    assert problem.noise_dim == 1
    scheme = RKMil()
    scheme.initialize(problem)
    dy = scheme.step(problem, problem.u0.copy(), 0.0, 0.01, np.array([0.3]))
    np.testing.assert_allclose(dy, [0.3, 0.3, 0.3])


def test_euler_heun_general_noise_contracts_matrix():
    G = np.array([[1.0, 2.0], [3.0, 4.0]], dtype=complex)

    def matrix_noise(t, u, out):
        out[:] = G

    proto = np.zeros((2, 2), dtype=complex)
    problem = make_problem(
        zero_drift,
        matrix_noise,
        u0=(0.0, 0.0),
        noise="general",
        noise_rate_prototype=proto,
    )
    assert problem.noise_dim == 2
    scheme = EulerHeun()
    scheme.initialize(problem)
    dy = scheme.step(problem, problem.u0.copy(), 0.0, 0.01, np.array([0.1, 0.2]))
    np.testing.assert_allclose(dy, [0.5, 1.1])
    np.testing.assert_array_equal(proto, G)


def test_general_noise_needs_prototype():
    with pytest.raises(QEVConfigError, match=r"\[516\]"):
        make_problem(zero_drift, unit_noise, noise="general")
    with pytest.raises(QEVConfigError, match=r"\[516\]"):
        make_problem(
            zero_drift,
            unit_noise,
            noise="general",
            noise_rate_prototype=np.zeros((3, 2), dtype=complex),
        )


def test_rkmil_rejects_unknown_interpretation():
    with pytest.raises(QEVConfigError, match=r"\[518\]"):
        RKMil(interpretation="backward")


def test_rkmil_does_not_support_general_noise():
    problem = make_problem(
        zero_drift,
        unit_noise,
        noise="general",
        noise_rate_prototype=np.zeros((1, 2), dtype=complex),
    )
    with pytest.raises(QEVConfigError, match=r"\[510\]"):
        solve_sde(problem, "rkmil", dt=0.01)


def test_engine_lands_on_stops():
    problem = make_problem(neg_drift, unit_noise)
    out = SavedValues()
    saveat = [0.0, 0.125, 0.3, 1.0]
    cb = SavingCallback(lambda u, t, integ: u.copy(), out, saveat=saveat)
    integ = solve_sde(problem, "euler_maruyama", dt=0.1, seed=1, tstops=saveat, callback=cb)
    assert out.t == saveat
    assert integ.t == 1.0
    # 0 -> 0.1 -> 0.125 -> 0.225 -> 0.3 -> ... -> 1.0
    assert integ.naccept == 11


def test_engine_is_reproducible_with_seed():
    results = []
    for seed in (7, 7, 8):
        problem = make_problem(neg_drift, unit_noise)
        results.append(solve_sde(problem, "em", dt=0.01, seed=seed).u.copy())
    np.testing.assert_array_equal(results[0], results[1])
    assert not np.array_equal(results[0], results[2])


def test_engine_rejects_bad_step_and_options():
    problem = make_problem(neg_drift, unit_noise)
    with pytest.raises(QEVConfigError, match=r"\[512\]"):
        solve_sde(problem, "em", dt=0.0)
    with pytest.raises(QEVConfigError, match=r"\[513\]"):
        solve_sde(problem, "em", dt=0.1, steady_state=True)


def test_engine_rejects_non_scheme():
    problem = make_problem(neg_drift, unit_noise)
    with pytest.raises(QEVConfigError, match=r"\[511\]"):
        solve_sde(problem, 42, dt=0.1)


def test_engine_raises_on_divergence():
    def explode(t, u, du):
        du[:] = u * 1e200

    problem = make_problem(explode, unit_noise)
    with pytest.raises(QEVIntegratorError, match=r"\[301\]"):
        solve_sde(problem, "em", dt=0.1, seed=0)
