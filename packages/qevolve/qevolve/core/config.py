"""qevolve: Solver Option Models
-----------------------------

Pydantic models for the option records accepted by the integration drivers,
plus a YAML loader for keeping option sets in files.

Public API
----------
``NoiseStructure`` : Closed set of stochastic noise layouts
``SolverOptions`` : Options shared by deterministic and stochastic runs
``ODEOptions`` : Deterministic run options (steady-state detection)
``SDEOptions`` : Stochastic run options (noise layout, step, seed)
``load_options`` : Read and validate an option file

Notes
-----
- Unknown keys are kept (``extra="allow"``) and forwarded to the stepping
  engine, e.g. ``max_step`` or ``first_step`` for the scipy solvers.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import QEVConfigError

__all__ = [
    "NoiseStructure",
    "SolverOptions",
    "ODEOptions",
    "SDEOptions",
    "load_options",
]


class NoiseStructure(str, Enum):
    """Layout of the Wiener increments driving a stochastic run."""

    SCALAR = "scalar"
    DIAGONAL = "diagonal"
    GENERAL = "general"


class SolverOptions(BaseModel):
    """Options shared by every driver.

    Tolerances default to strict error control; the engine's own saving is
    always disabled and cannot be re-enabled from here.
    """

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    alg: Any = Field(
        None,
        description="Registry name, solver class or scheme instance. None selects "
        "the driver default.",
    )
    abstol: float = Field(1e-8, gt=0, description="Absolute tolerance")
    reltol: float = Field(1e-6, gt=0, description="Relative tolerance")
    save_everystep: bool = Field(
        False, description="Also sample after every accepted step"
    )
    callback: Any = Field(
        None, description="Extra engine callback composed before the core ones"
    )
    adapter: Any = Field(
        None, description="RecastAdapter; None uses the data-array adapter"
    )

    @classmethod
    def from_raw(cls, raw: Any | None = None, **overrides: Any) -> SolverOptions:
        """Normalize ``raw`` plus keyword overrides into an instance.

        Accepts None (defaults), a mapping, or an instance of this class.

        Raises
        ------
        QEVConfigError
            - [500] Validation failed; the pydantic error is chained.

        """
        if raw is None:
            data: dict[str, Any] = {}
        elif isinstance(raw, BaseModel):
            # Shallow field copy; model_dump would serialize callables and
            # dataclass adapters into plain dicts.
            data = {name: getattr(raw, name) for name in type(raw).model_fields}
            data.update(raw.model_extra or {})
        else:
            data = dict(raw)
        data.update(overrides)
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise QEVConfigError(f"[500] Invalid {cls.__name__}: {e}") from e

    def engine_kwargs(self) -> dict[str, Any]:
        """Extra options forwarded verbatim to the stepping engine."""
        return dict(self.model_extra or {})


class ODEOptions(SolverOptions):
    """Options for :func:`qevolve.timeevolution.integrate`."""

    alg: Any = Field("dp5", description="ODE algorithm (default Dormand-Prince 5(4))")
    steady_state: bool = Field(
        False, description="Terminate once the state stops changing"
    )
    tol: float = Field(1e-3, gt=0, description="Steady-state tolerance")
    distance: Any = Field(
        None, description="Metric distance(a, b); None uses tracedistance"
    )


class SDEOptions(SolverOptions):
    """Options for the stochastic drivers."""

    noise: NoiseStructure = Field(
        NoiseStructure.DIAGONAL,
        description="Noise layout for integrate_stoch (scalar or diagonal)",
    )
    dt: float | None = Field(
        None, gt=0, description="Fixed step; None uses min(diff(tspan)) / 100"
    )
    seed: int | None = Field(None, description="Random seed")


def load_options(
    path: str | Path, kind: Literal["ode", "sde"] = "ode"
) -> SolverOptions:
    """Load an option record from a YAML file.

    Parameters
    ----------
    path : str or Path
        YAML file holding a flat mapping of option names to values.
    kind : {"ode", "sde"}
        Which option model to validate against.

    Returns
    -------
    SolverOptions
        ``ODEOptions`` or ``SDEOptions`` instance.

    Raises
    ------
    QEVConfigError
        - [520] File not found.
        - [521] File is not valid YAML.
        - [522] Top level is not a mapping.
        - [523] Unknown kind.
        - [500] Values fail validation.

    Examples
    --------
    >>> opts = load_options("steady.yaml", kind="ode")  # doctest: +SKIP
    >>> opts.steady_state  # doctest: +SKIP
    True

    """
    models: dict[str, type[SolverOptions]] = {"ode": ODEOptions, "sde": SDEOptions}
    if kind not in models:
        raise QEVConfigError(f"[523] Unknown option kind {kind!r}; use 'ode' or 'sde'")
    p = Path(path)
    if not p.exists():
        raise QEVConfigError(f"[520] Option file not found: {p}")
    try:
        with open(p, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise QEVConfigError(f"[521] Cannot parse option file {p}: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise QEVConfigError(
            f"[522] Option file {p} must contain a mapping, got {type(data).__name__}"
        )
    return models[kind].from_raw(data)
