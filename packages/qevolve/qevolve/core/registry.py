"""qevolve: Algorithm Registry
--------------------------

Central registry mapping public algorithm names to the builders that
construct them, organised by namespace:

- ``ode_algorithm``: ``scipy.integrate.OdeSolver`` subclasses
- ``sde_algorithm``: stochastic stepping schemes

Behavior
--------
- Keys have the form ``"namespace:name"`` and are case-insensitive.
- ``create()`` returns the builder itself when the entry was registered with
  ``return_callable=True`` (solver classes that the engine instantiates per
  run) and an instance otherwise (schemes).
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .errors import QEVRegistryError

__all__ = [
    "RegistryCenter",
    "registry",
    "register",
]

Builder = Callable[..., Any]


@dataclass
class _Entry:
    """Internal record describing a registry entry."""

    builder: Builder
    meta: dict[str, Any] = field(default_factory=dict)


class RegistryCenter:
    """Registry for pluggable algorithms with factory-style lookup.

    Methods
    -------
    register(namespace, name, builder, *, overwrite=False, **meta) -> None
        Register a builder immediately. Raises QEVRegistryError on duplicates
        (- [400]).
    decorator(namespace, name, **meta) -> Callable
        Return a decorator that registers the decorated object on import.
    create(full_name, /, **kwargs) -> Any
        Resolve and construct entries given "namespace:name". Raises
        QEVRegistryError on unknown keys (- [404]).
    list(namespace=None) -> dict[str, Any]
        List available entries with metadata for a namespace or all.

    Examples
    --------
    >>> rc = RegistryCenter()
    >>> rc.register("sde_algorithm", "noop", lambda: "noop")
    >>> rc.create("sde_algorithm:noop")
    'noop'

    """

    def __init__(self) -> None:
        self._tables: dict[str, dict[str, _Entry]] = {}

    @staticmethod
    def _split(full_name: str) -> tuple[str, str]:
        if ":" not in full_name:
            raise QEVRegistryError(
                f"[405] Registry key must be 'namespace:name', got {full_name!r}"
            )
        ns, nm = full_name.split(":", 1)
        return ns.strip().lower(), nm.strip().lower()

    def register(
        self,
        namespace: str,
        name: str,
        builder: Builder,
        *,
        overwrite: bool = False,
        **meta: Any,
    ) -> None:
        """Register a builder under a namespace.

        Parameters
        ----------
        namespace : str
            Target namespace (``"ode_algorithm"`` or ``"sde_algorithm"``).
        name : str
            Public key (case-insensitive).
        builder : Callable[..., Any]
            Class or function that constructs the registered object.
        overwrite : bool, default False
            Replace an existing entry instead of raising.
        **meta : Any
            Metadata stored with the entry (e.g. ``return_callable``,
            ``noise``). ``registered_at`` is filled in automatically.

        Raises
        ------
        QEVRegistryError
            - [400] Duplicate registration when ``overwrite`` is False.

        """
        ns = namespace.strip().lower()
        nm = name.strip().lower()
        table = self._tables.setdefault(ns, {})
        if not overwrite and nm in table:
            raise QEVRegistryError(f"[400] Duplicate registration: {ns}:{nm}")
        full_meta = dict(meta)
        full_meta.setdefault("registered_at", datetime.now(UTC).isoformat())
        table[nm] = _Entry(builder=builder, meta=full_meta)

    def decorator(self, namespace: str, name: str, **meta: Any):
        """Return a decorator that registers the object on import."""

        def _wrap(obj: Any):
            self.register(namespace, name, obj, **meta)
            return obj

        return _wrap

    def create(self, full_name: str, /, **kwargs: Any) -> Any:
        """Resolve and construct an entry given a ``"namespace:name"`` key.

        Raises
        ------
        QEVRegistryError
            - [404] Unknown registry key.
            - [405] Key without namespace.

        """
        ns, nm = self._split(full_name)
        entry = self._tables.get(ns, {}).get(nm)
        if entry is None:
            known = ", ".join(sorted(self._tables.get(ns, {})))
            raise QEVRegistryError(
                f"[404] Unknown registry key: {ns}:{nm} (known: {known or 'none'})"
            )
        if entry.meta.get("return_callable"):
            return entry.builder
        return entry.builder(**kwargs)

    def contains(self, full_name: str) -> bool:
        ns, nm = self._split(full_name)
        return nm in self._tables.get(ns, {})

    def list(self, namespace: str | None = None) -> dict[str, Any]:
        """List available entries with metadata.

        Returns
        -------
        dict[str, Any]
            Entry name to metadata for a single namespace, or namespace to
            sorted names when ``namespace`` is None.

        """
        if namespace is None:
            return {ns: sorted(tbl) for ns, tbl in self._tables.items()}
        table = self._tables.get(namespace.strip().lower(), {})
        return {name: dict(e.meta) for name, e in table.items()}


registry = RegistryCenter()


def register(namespace: str, name: str, **meta: Any):
    """Decorator form registration on the global registry.

    Examples
    --------
    >>> @register("sde_algorithm", "my_scheme", noise=("diagonal",))
    ... class MyScheme:
    ...     ...

    """
    return registry.decorator(namespace, name, **meta)
