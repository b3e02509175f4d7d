"""Tests for the algorithm registry."""

import pytest
from qevolve.core.errors import QEVRegistryError
from qevolve.core.registry import RegistryCenter, registry
from qevolve.integrator import EulerHeun, RKMil, resolve_ode_algorithm, resolve_sde_algorithm
from scipy.integrate import DOP853, RK45


class Dummy:
    def __init__(self, scale=1.0):
        self.scale = scale


def test_register_and_create():
    rc = RegistryCenter()
    rc.register("sde_algorithm", "dummy", Dummy)
    obj = rc.create("sde_algorithm:dummy", scale=2.0)
    assert isinstance(obj, Dummy)
    assert obj.scale == 2.0


def test_keys_are_case_insensitive():
    rc = RegistryCenter()
    rc.register("SDE_Algorithm", "Dummy", Dummy)
    assert rc.contains("sde_algorithm:DUMMY")


def test_duplicate_registration_rejected():
    rc = RegistryCenter()
    rc.register("sde_algorithm", "dummy", Dummy)
    with pytest.raises(QEVRegistryError, match=r"\[400\]"):
        rc.register("sde_algorithm", "dummy", Dummy)
    rc.register("sde_algorithm", "dummy", Dummy, overwrite=True)


def test_unknown_key_lists_known_names():
    rc = RegistryCenter()
    rc.register("sde_algorithm", "dummy", Dummy)
    with pytest.raises(QEVRegistryError, match=r"\[404\].*dummy"):
        rc.create("sde_algorithm:other")


def test_key_without_namespace():
    with pytest.raises(QEVRegistryError, match=r"\[405\]"):
        RegistryCenter().create("dummy")


def test_return_callable_entries_are_not_instantiated():
    rc = RegistryCenter()
    rc.register("ode_algorithm", "dummy", Dummy, return_callable=True)
    assert rc.create("ode_algorithm:dummy") is Dummy


def test_decorator_registration():
    rc = RegistryCenter()

    @rc.decorator("sde_algorithm", "decorated", noise=("diagonal",))
    class Decorated:
        pass

    meta = rc.list("sde_algorithm")["decorated"]
    assert meta["noise"] == ("diagonal",)
    assert "registered_at" in meta
    assert isinstance(rc.create("sde_algorithm:decorated"), Decorated)


def test_builtin_algorithms_are_registered():
    listing = registry.list()
    assert {"dp5", "rk45", "dop853", "rk23", "bs3", "radau", "bdf"} <= set(
        listing["ode_algorithm"]
    )
    assert {"euler_maruyama", "em", "rkmil", "euler_heun"} <= set(listing["sde_algorithm"])


def test_resolve_ode_algorithm():
    assert resolve_ode_algorithm("dp5") is RK45
    assert resolve_ode_algorithm("DOP853") is DOP853
    assert resolve_ode_algorithm(DOP853) is DOP853


def test_resolve_sde_algorithm():
    assert isinstance(resolve_sde_algorithm("rkmil"), RKMil)
    assert isinstance(resolve_sde_algorithm(EulerHeun), EulerHeun)
    scheme = RKMil(interpretation="ito")
    assert resolve_sde_algorithm(scheme) is scheme
