# mesh.py
#
# Momentum mesh for the K-matrix method: Gauss-Legendre quadrature on
# [-1, 1], mapped onto the semi-infinite momentum axis (0, ∞).
#
# Conventions:
# - Momenta k in fm^-1.
# - Masses in fm^-1 (MeV / ħc), see constants.py.
# - Energies in MeV with E = ħc · k² / m, m being twice the reduced mass.
#
# The map
#     k(x) = tan(π/4 · (1 + x)),    dk/dx = π/4 / cos²(π/4 · (1 + x))
# is a monotonic bijection (-1, 1) -> (0, ∞). Half of the nodes land
# below k = 1 fm^-1, which is where low-energy scattering lives, while
# the tail still reaches arbitrarily large momenta.


from __future__ import annotations
import numbers
import numpy as np
from dataclasses import dataclass
from typing import Tuple

from constants import HBARC
from errors import InvalidConfiguration, InvariantViolation
from logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MomentumMesh:
    """
    Quadrature mesh on (0, ∞).

    Attributes
    ----------
    k : np.ndarray
        Mesh momenta in fm^-1, shape (N,). Strictly positive and
        increasing for meshes built by make_momentum_mesh.
    weights : np.ndarray
        Quadrature weights ω for ∫_0^∞ f(k) dk ≈ Σ ω_i f(k_i), shape (N,).
    """
    k: np.ndarray
    weights: np.ndarray

    @property
    def size(self) -> int:
        return int(self.k.size)

    def integrate(self, f: np.ndarray) -> float:
        """Approximate ∫_0^∞ f(k) dk from samples of f on the mesh."""
        f = np.asarray(f, dtype=float)
        if f.shape != self.k.shape:
            raise ValueError("MomentumMesh.integrate: f and mesh.k must have same shape.")
        return float(np.sum(self.weights * f))


def momentum_from_energy(E_MeV: float | np.ndarray, mass: float) -> float | np.ndarray:
    """
    Convert a center-of-mass energy in MeV to momentum in fm^-1.

        E = ħc · k² / m   =>   k = sqrt(m · E / ħc)

    Parameters
    ----------
    E_MeV : float or np.ndarray
        Energy in MeV. Slightly negative values from rounding clip to 0.
    mass : float
        Mass in fm^-1 (e.g. constants.M_NP).
    """
    E = np.maximum(np.asarray(E_MeV, dtype=float), 0.0)
    return np.sqrt(mass * E / HBARC)


def energy_from_momentum(k: float | np.ndarray, mass: float) -> float | np.ndarray:
    """Inverse of momentum_from_energy: E [MeV] = ħc · k² / m."""
    return HBARC * np.asarray(k, dtype=float) ** 2 / mass


def gauss_legendre(N: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Gauss-Legendre nodes and weights on [-1, 1].

    Parameters
    ----------
    N : int
        Number of nodes, >= 1.

    Returns
    -------
    x, w : np.ndarray
        Ascending nodes in (-1, 1) and positive weights summing to 2.

    Raises
    ------
    InvalidConfiguration
        If N is not a positive integer.
    """
    if isinstance(N, bool) or not isinstance(N, numbers.Integral) or N < 1:
        raise InvalidConfiguration(f"Mesh size must be a positive integer, got {N!r}.")
    x, w = np.polynomial.legendre.leggauss(int(N))
    return x, w


def transform_to_momentum(xs: np.ndarray, weights: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Map quadrature nodes from (-1, 1) to (0, ∞) in place.

        ω = π/4 · w / cos²(π/4 · (1 + x))
        k = tan(π/4 · (1 + x))

    Float ndarrays are overwritten and returned; weights are rescaled
    first since they depend on the original nodes. Other sequences
    (lists, integer arrays) are converted and the mapped copies returned.

    Raises
    ------
    InvalidConfiguration
        If lengths differ or a node lies outside (-1, 1).
    """
    xs = np.asarray(xs, dtype=float)
    weights = np.asarray(weights, dtype=float)
    if xs.shape != weights.shape:
        raise InvalidConfiguration(
            f"Nodes and weights must have equal length, got {xs.size} and {weights.size}."
        )
    if np.any(np.abs(xs) >= 1.0):
        raise InvalidConfiguration("Quadrature nodes must lie strictly inside (-1, 1).")

    theta = np.pi / 4.0 * (1.0 + xs)
    weights *= np.pi / 4.0 / np.cos(theta) ** 2
    xs[:] = np.tan(theta)
    return xs, weights


def make_momentum_mesh(N: int) -> MomentumMesh:
    """
    Build the N-point momentum mesh used by the K-matrix method.

    Returns
    -------
    MomentumMesh
        Mesh with strictly increasing, strictly positive momenta.
    """
    x, w = gauss_legendre(N)
    k, omega = transform_to_momentum(x.astype(float), w.astype(float))

    if not (np.all(k > 0.0) and np.all(np.diff(k) > 0.0)):
        raise RuntimeError("Generated momentum mesh is not strictly increasing. Check N.")

    logger.debug("Momentum mesh N=%d: k in [%.3e, %.3e] fm^-1", N, k[0], k[-1])
    return MomentumMesh(k=k, weights=omega)


def append_on_shell(mesh: MomentumMesh, k0: float) -> np.ndarray:
    """
    Mesh momenta with the on-shell momentum k0 appended as the last point.

    Raises
    ------
    InvariantViolation
        If k0 equals one of the mesh nodes exactly.
    """
    if np.any(mesh.k == k0):
        raise InvariantViolation(f"k0={k0!r} can not be in the mesh points k.")
    return np.append(mesh.k, float(k0))
