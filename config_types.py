# config_types.py
"""
Configuration Dataclasses for Phase Shift Runs
==============================================

Typed containers for the sections of a run configuration. Each one can
be created from a plain params dict (as parsed from YAML) and turned
back into one, and knows how to build the runtime object it describes.

Usage:
    mesh_cfg = MeshConfig.from_params(params)
    method = mesh_cfg.build_method()
    potential = PotentialConfig.from_params(params).build()
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Literal, Any, Dict, List, Union

import numpy as np

from constants import (
    DEFAULT_MESH_SIZE,
    DEFAULT_CONVERGENCE_TOLERANCE,
    M_NP,
)
from kmatrix import KMatrix
from mesh import momentum_from_energy
from potentials import (
    Potential,
    Pion,
    SquareWell,
    UVRegulator,
    Yukawa,
    regularize,
)

NAMED_MASSES: Dict[str, float] = {
    "np": M_NP,
    "pn": M_NP,
}

POTENTIAL_KINDS = ("yukawa", "square_well", "pion")


def resolve_mass(value: Union[str, float]) -> float:
    """Mass in fm^-1 from a name in NAMED_MASSES or a number."""
    if isinstance(value, str):
        try:
            return NAMED_MASSES[value.lower()]
        except KeyError:
            raise ValueError(
                f"Unknown mass '{value}'. Use a number in fm^-1 or one of {sorted(NAMED_MASSES)}."
            ) from None
    return float(value)


@dataclass
class MeshConfig:
    """Configuration for the K-matrix mesh.

    Attributes
    ----------
    mesh_size : int
        Number of Gauss-Legendre points N.
    n_workers : int
        Threads for independent scan points (1 = serial).
    """
    mesh_size: int = DEFAULT_MESH_SIZE
    n_workers: int = 1

    @classmethod
    def from_params(cls, params: dict) -> MeshConfig:
        """Create MeshConfig from params dict."""
        m = params.get('mesh') or {}
        return cls(
            mesh_size=m.get('mesh_size', DEFAULT_MESH_SIZE),
            n_workers=m.get('n_workers', 1),
        )

    def to_dict(self) -> dict:
        return {'mesh_size': self.mesh_size, 'n_workers': self.n_workers}

    def build_method(self) -> KMatrix:
        return KMatrix(int(self.mesh_size))


@dataclass
class PotentialConfig:
    """Configuration for the interaction.

    Attributes
    ----------
    kind : str
        "yukawa", "square_well" or "pion".
    params : dict
        Constructor arguments of the potential class, e.g.
        {"strength": -0.5, "mu": 0.7} for a Yukawa.
    regulator_cutoff : float, optional
        If set, wrap the potential in a UVRegulator with this cutoff [fm^-1].
    regulator_power : int
        Exponent n of exp(-(k/Λ)^(2n)).
    """
    kind: Literal["yukawa", "square_well", "pion"] = "yukawa"
    params: Dict[str, Any] = field(default_factory=lambda: {"strength": -0.5, "mu": 0.7})
    regulator_cutoff: Optional[float] = None
    regulator_power: int = 2

    @classmethod
    def from_params(cls, params: dict) -> PotentialConfig:
        """Create PotentialConfig from params dict."""
        p = dict(params.get('potential') or {})
        if not p:
            return cls()
        kind = p.pop('kind', 'yukawa')
        reg = p.pop('regulator', None) or {}
        return cls(
            kind=kind,
            params=p,
            regulator_cutoff=reg.get('cutoff'),
            regulator_power=reg.get('power', 2),
        )

    def to_dict(self) -> dict:
        d = {'kind': self.kind, **self.params}
        if self.regulator_cutoff is not None:
            d['regulator'] = {'cutoff': self.regulator_cutoff, 'power': self.regulator_power}
        return d

    def build(self) -> Potential:
        """Instantiate the configured potential."""
        classes = {"yukawa": Yukawa, "square_well": SquareWell, "pion": Pion}
        if self.kind not in classes:
            raise ValueError(f"Unknown potential kind '{self.kind}'. Must be one of {POTENTIAL_KINDS}.")
        try:
            potential = classes[self.kind](**self.params)
        except TypeError as exc:
            raise ValueError(f"Invalid parameters for potential '{self.kind}': {exc}") from exc

        if self.regulator_cutoff is not None:
            potential = regularize(
                potential, UVRegulator(cutoff=float(self.regulator_cutoff), power=int(self.regulator_power))
            )
        return potential


@dataclass
class MomentumConfig:
    """On-shell points of a scan.

    Attributes
    ----------
    type : str
        "single", "linear" or "list".
    unit : str
        "fm^-1" for momenta, "MeV" for center-of-mass energies.
    start, end, step : float
        Range for "linear" (inclusive end) and value for "single" (start).
    values : list of float, optional
        Points for "list".
    """
    type: Literal["single", "linear", "list"] = "linear"
    unit: Literal["fm^-1", "MeV"] = "MeV"
    start: float = 1.0
    end: float = 50.0
    step: float = 1.0
    values: Optional[List[float]] = None

    @classmethod
    def from_params(cls, params: dict) -> MomentumConfig:
        """Create MomentumConfig from params dict."""
        mo = params.get('momenta') or {}
        return cls(
            type=mo.get('type', 'linear'),
            unit=mo.get('unit', 'MeV'),
            start=mo.get('start', 1.0),
            end=mo.get('end', 50.0),
            step=mo.get('step', 1.0),
            values=mo.get('values'),
        )

    def to_dict(self) -> dict:
        return {
            'type': self.type,
            'unit': self.unit,
            'start': self.start,
            'end': self.end,
            'step': self.step,
            'values': self.values,
        }

    def build(self, mass: float) -> np.ndarray:
        """On-shell momenta in fm^-1."""
        if self.type == "single":
            points = np.array([self.start], dtype=float)
        elif self.type == "linear":
            # small epsilon keeps `end` in the range despite rounding
            points = np.arange(self.start, self.end + 1e-9 * abs(self.step), self.step, dtype=float)
        elif self.type == "list":
            points = np.asarray(self.values or [], dtype=float)
        else:
            raise ValueError(f"Unknown momenta type '{self.type}'.")

        if self.unit == "MeV":
            return np.asarray(momentum_from_energy(points, mass), dtype=float)
        return points


@dataclass
class ConvergenceConfig:
    """Optional mesh convergence study at one momentum.

    Attributes
    ----------
    enabled : bool
        Run the study after the scan.
    k0 : float
        On-shell momentum in fm^-1.
    mesh_sizes : list of int
        Mesh sizes in increasing order.
    tolerance : float
        Convergence threshold on successive differences [degrees].
    """
    enabled: bool = False
    k0: float = 0.25
    mesh_sizes: List[int] = field(default_factory=lambda: [10, 20, 40])
    tolerance: float = DEFAULT_CONVERGENCE_TOLERANCE

    @classmethod
    def from_params(cls, params: dict) -> ConvergenceConfig:
        """Create ConvergenceConfig from params dict."""
        c = params.get('convergence') or {}
        return cls(
            enabled=c.get('enabled', bool(c)),
            k0=c.get('k0', 0.25),
            mesh_sizes=list(c.get('mesh_sizes', [10, 20, 40])),
            tolerance=c.get('tolerance', DEFAULT_CONVERGENCE_TOLERANCE),
        )

    def to_dict(self) -> dict:
        return {
            'enabled': self.enabled,
            'k0': self.k0,
            'mesh_sizes': list(self.mesh_sizes),
            'tolerance': self.tolerance,
        }
