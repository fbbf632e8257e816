# potentials.py
#
# S-wave projected momentum-space potentials V(k, k') for the K-matrix
# solver.
#
# Normalization (same as the kernel in kmatrix.create_A):
#
#   V(k, k') = ∫_0^∞ dr r² j_0(k r) V(r) j_0(k' r)
#            = 1/(k k') ∫_0^∞ dr sin(k r) V(r) sin(k' r)
#
# Units:
# - k, k' in fm^-1
# - V(r) in fm^-1 (MeV / ħc); V(k, k') then carries fm^2
# - masses in fm^-1, see constants.py
#
# Any callable P(k, k') -> float works as a potential for the solver;
# the classes below add a vectorised on_mesh() used to fill the
# potential matrix in one numpy call.


from __future__ import annotations
import numpy as np
from dataclasses import dataclass, field
from typing import Callable, Tuple

from constants import HBARC, M_PION
from logging_config import get_logger

logger = get_logger(__name__)

PotentialLike = Callable[[float, float], float]

_SMALL = 1e-12


class Potential:
    """
    Base class for momentum-space S-wave potentials.

    Subclasses implement `_evaluate(k, kp)` for broadcastable arrays.
    """

    def _evaluate(self, k: np.ndarray, kp: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def __call__(self, k: float, kp: float) -> float:
        return float(self._evaluate(np.asarray(k, dtype=float), np.asarray(kp, dtype=float)))

    def radial(self, r):
        """Coordinate-space V(r) in fm^-1. Only local potentials define it."""
        raise NotImplementedError(f"{type(self).__name__} has no coordinate-space form.")

    def radial_breakpoints(self) -> Tuple[float, ...]:
        """Radii where V(r) is discontinuous."""
        return ()

    def on_mesh(self, k: np.ndarray) -> np.ndarray:
        """
        Potential matrix V[i, j] = V(k[i], k[j]).

        Parameters
        ----------
        k : np.ndarray, shape (M,)
            Mesh momenta in fm^-1, all > 0.

        Returns
        -------
        np.ndarray, shape (M, M)
        """
        k = np.asarray(k, dtype=float)
        V = self._evaluate(k[:, None], k[None, :])
        return np.broadcast_to(V, (k.size, k.size)).astype(float, copy=True)


@dataclass(frozen=True)
class Yukawa(Potential):
    """
    Yukawa potential V(r) = strength · exp(-mu r) / r.

    Momentum space:
        V(k, k') = strength / (4 k k') · ln[(mu² + (k+k')²) / (mu² + (k-k')²)]

    Attributes
    ----------
    strength : float
        Dimensionless coupling; negative values are attractive.
    mu : float
        Inverse range in fm^-1.
    """
    strength: float
    mu: float

    def __post_init__(self):
        if self.mu <= 0.0:
            raise ValueError(f"Yukawa: mu must be > 0, got {self.mu}.")

    def _evaluate(self, k, kp):
        D = self.mu ** 2 + (k - kp) ** 2
        x = 4.0 * k * kp / D
        safe_x = np.where(x > _SMALL, x, 1.0)
        # log1p(x)/x -> 1 as k k' -> 0
        ratio = np.where(x > _SMALL, np.log1p(safe_x) / safe_x, 1.0 - 0.5 * x)
        return self.strength * ratio / D

    def radial(self, r):
        r = np.asarray(r, dtype=float)
        return self.strength * np.exp(-self.mu * r) / r


@dataclass(frozen=True)
class Pion(Yukawa):
    """
    Central one-pion-exchange Yukawa tail,

        V(r) = (f²/4π) · (σ·σ)(τ·τ)/3 · exp(-m_π r) / r,

    with the isospin-averaged pion mass as inverse range. The default
    spin-isospin factor (σ·σ)(τ·τ) = -3 is the 1S0 channel. The contact
    term of the full OPE is left out.
    `strength` is derived from `coupling` and `spin_isospin` and cannot
    be passed directly.
    """
    strength: float = field(init=False, default=0.0)
    mu: float = M_PION / HBARC
    coupling: float = 0.075
    spin_isospin: float = -3.0

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, "strength", self.coupling * self.spin_isospin / 3.0)


@dataclass(frozen=True)
class SquareWell(Potential):
    """
    Attractive square well V(r) = -depth for r < radius, 0 outside.

    Momentum space:
        V(k, k') = -depth/(k k') · (R/2)[sinc((k-k')R/π) - sinc((k+k')R/π)]

    Attributes
    ----------
    depth : float
        Well depth in fm^-1 (MeV / ħc); positive is attractive.
    radius : float
        Well radius R in fm.
    """
    depth: float
    radius: float

    def __post_init__(self):
        if self.radius <= 0.0:
            raise ValueError(f"SquareWell: radius must be > 0, got {self.radius}.")

    def _evaluate(self, k, kp):
        R = self.radius
        overlap = 0.5 * R * (np.sinc((k - kp) * R / np.pi) - np.sinc((k + kp) * R / np.pi))
        return -self.depth * overlap / (k * kp)

    def radial(self, r):
        return np.where(np.asarray(r, dtype=float) < self.radius, -self.depth, 0.0)

    def radial_breakpoints(self):
        return (self.radius,)

    def analytical(self, k0: float, m: float) -> float:
        """
        Exact S-wave phase shift in degrees, wrapped into (-90, 90].

        Matching sin(K r) inside to sin(k0 r + δ) outside at r = R gives
            δ = atan(k0/K · tan(K R)) - k0 R,   K = sqrt(k0² + m · depth).
        """
        K = np.sqrt(k0 ** 2 + m * self.depth)
        delta = np.arctan(k0 / K * np.tan(K * self.radius)) - k0 * self.radius
        delta = np.pi / 2.0 - (np.pi / 2.0 - delta) % np.pi
        return float(np.degrees(delta))


@dataclass(frozen=True)
class UVRegulator:
    """
    Ultraviolet regulator f(k) = exp(-(k/cutoff)^(2 power)).
    """
    cutoff: float
    power: int = 2

    def __post_init__(self):
        if self.cutoff <= 0.0:
            raise ValueError(f"UVRegulator: cutoff must be > 0, got {self.cutoff}.")
        if self.power < 1:
            raise ValueError(f"UVRegulator: power must be >= 1, got {self.power}.")

    def __call__(self, k):
        return np.exp(-(np.asarray(k, dtype=float) / self.cutoff) ** (2 * self.power))


@dataclass(frozen=True)
class RegularizedPotential(Potential):
    """f(k) · V(k, k') · f(k') for an arbitrary potential V."""
    potential: PotentialLike
    regulator: UVRegulator

    def _evaluate(self, k, kp):
        if isinstance(self.potential, Potential):
            bare = self.potential._evaluate(k, kp)
        else:
            bare = np.vectorize(self.potential, otypes=[float])(k, kp)
        return self.regulator(k) * bare * self.regulator(kp)


def regularize(potential: PotentialLike, regulator: UVRegulator) -> RegularizedPotential:
    """Wrap a potential with a UV regulator on both momenta."""
    return RegularizedPotential(potential=potential, regulator=regulator)


def potential_matrix(potential: PotentialLike, k: np.ndarray) -> np.ndarray:
    """
    V[i, j] = potential(k[i], k[j]) for every pair of mesh points.

    Uses the vectorised path for Potential instances and falls back to
    pointwise calls for plain callables.
    """
    k = np.asarray(k, dtype=float)
    if isinstance(potential, Potential):
        return potential.on_mesh(k)
    return np.array([[potential(ki, kj) for kj in k] for ki in k], dtype=float)


def born_phaseshift(potential: PotentialLike, k0: float, m: float) -> float:
    """
    First Born approximation tan δ ≈ -m k0 V(k0, k0), in degrees.

    Accurate for weak potentials at low momentum, where it serves as a
    reference for the full K-matrix result.
    """
    return float(np.degrees(np.arctan(-m * k0 * potential(k0, k0))))
