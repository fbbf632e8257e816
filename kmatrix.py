# kmatrix.py
"""
K-Matrix (Reactance Matrix) Solver
==================================

Computes S-wave phase shifts by solving the Lippmann-Schwinger equation
for the reactance matrix on a momentum mesh.

Equation
--------
    K(k, k') = V(k, k') + 2/π P∫_0^∞ dq q² V(k, q) K(q, k') / ((k0² - q²)/m)

On the mesh {k_1 .. k_N} ∪ {k0} this becomes the dense linear system

    A K = V,    A_ij = δ_ij - V_ij u_j

with the column weights

    u_j     = 2/π · ω_j k_j² / ((k0² - k_j²)/m)             j = 1..N
    u_{N+1} = -2/π · Σ_n ω_n k0² / ((k0² - k_n²)/m)

The last column is the principal-value subtraction: P∫_0^∞ dq / (k0² - q²)
vanishes, so subtracting k0² V(k, k0) K(k0, k') times that integral removes
the pole without changing the result.

Phase shift
-----------
    K(k0, k0) = -tan(δ) / (m k0)   =>   δ = atan(-K(k0, k0) m k0)

Reference: M. Hjorth-Jensen, lecture notes on nuclear forces,
"Scattering theory", section on the K-matrix.

Logging
-------
Uses logging_config. Set KMATRIX_LOG_LEVEL=DEBUG for per-solve output.
"""

from __future__ import annotations
import numbers
import numpy as np
from dataclasses import dataclass
from typing import Optional, Tuple

from scipy.linalg import lu_factor, lu_solve

from constants import CONDITION_WARNING_THRESHOLD
from errors import InvalidConfiguration, InvariantViolation
from logging_config import get_logger
from mesh import MomentumMesh, make_momentum_mesh, append_on_shell
from methods import check_kinematics
from potentials import PotentialLike, potential_matrix

logger = get_logger(__name__)


@dataclass(frozen=True)
class KMatrixSolution:
    """
    Full output of one K-matrix solve.

    Attributes
    ----------
    k0 : float
        On-shell momentum in fm^-1.
    mass : float
        Mass in fm^-1.
    k : np.ndarray
        Mesh momenta with k0 appended last, shape (N+1,).
    weights : np.ndarray
        Quadrature weights of the first N points, shape (N,).
    V, A, K : np.ndarray
        Potential, system and reactance matrices, shape (N+1, N+1).
    condition_number : float
        2-norm condition number of A.
    residual : float
        Relative residual ||A K - V|| / ||V|| (0 when V vanishes).
    """
    k0: float
    mass: float
    k: np.ndarray
    weights: np.ndarray
    V: np.ndarray
    A: np.ndarray
    K: np.ndarray
    condition_number: float
    residual: float

    @property
    def K_on_shell(self) -> float:
        return float(self.K[-1, -1])

    @property
    def phase_shift(self) -> float:
        """S-wave phase shift δ in degrees, in (-90, 90)."""
        return float(np.degrees(np.arctan(-self.K_on_shell * self.mass * self.k0)))


def create_A(V: np.ndarray, k: np.ndarray, weights: np.ndarray, m: float) -> np.ndarray:
    """
    Construct the system matrix A of A K = V.

    Parameters
    ----------
    V : np.ndarray, shape (N+1, N+1)
        Potential evaluated on every pair of mesh points.
    k : np.ndarray, shape (N+1,)
        Mesh momenta, the on-shell momentum k0 last.
    weights : np.ndarray, shape (N,)
        Quadrature weights of the first N momenta.
    m : float
        Mass, > 0.

    Returns
    -------
    A : np.ndarray, shape (N+1, N+1)

    Raises
    ------
    InvalidConfiguration
        If the shapes disagree or m <= 0.
    """
    V = np.asarray(V, dtype=float)
    k = np.asarray(k, dtype=float)
    weights = np.asarray(weights, dtype=float)

    if k.ndim != 1 or weights.ndim != 1 or k.size - 1 != weights.size:
        raise InvalidConfiguration(
            f"Need len(k) - 1 == len(weights), got {k.size} and {weights.size}."
        )
    if V.shape != (k.size, k.size):
        raise InvalidConfiguration(
            f"V must be square with side {k.size}, got shape {V.shape}."
        )
    if not m > 0:
        raise InvalidConfiguration(f"Mass must be > 0, got {m}.")

    N = weights.size
    k0 = k[-1]
    kq = k[:N]
    denominator = (k0 ** 2 - kq ** 2) / m

    u = np.empty(N + 1)
    u[:N] = 2.0 / np.pi * weights * kq ** 2 / denominator
    u[N] = -2.0 / np.pi * np.sum(weights * k0 ** 2 / denominator)

    # A_ij = δ_ij - V_ij u_j
    return np.eye(N + 1) - V * u[None, :]


def create_system(
    k0: float,
    m: float,
    N: int,
    potential: PotentialLike,
    mesh: Optional[MomentumMesh] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build A and V for on-shell momentum k0 on an N-point mesh.

    The mesh comes from Gauss-Legendre quadrature mapped to (0, ∞) unless
    one is passed in explicitly, in which case it must have N points.

    Returns
    -------
    A, V : np.ndarray, shape (N+1, N+1)

    Raises
    ------
    InvariantViolation
        If k0 coincides with a mesh node.
    InvalidConfiguration
        If the potential is NaN or infinite anywhere on the mesh.
    """
    A, V, _, _ = _assemble(k0, m, N, potential, mesh)
    return A, V


def _assemble(k0, m, N, potential, mesh):
    if mesh is None:
        mesh = make_momentum_mesh(N)
    elif mesh.size != N:
        raise InvalidConfiguration(f"Mesh has {mesh.size} points, expected N={N}.")

    k = append_on_shell(mesh, k0)
    V = potential_matrix(potential, k)
    if not np.all(np.isfinite(V)):
        bad = np.argwhere(~np.isfinite(V))[0]
        raise InvalidConfiguration(
            f"Potential is not finite at (k, k') = ({k[bad[0]]:.6g}, {k[bad[1]]:.6g}) fm^-1."
        )
    A = create_A(V, k, mesh.weights, m)
    return A, V, k, mesh


@dataclass(frozen=True)
class KMatrix:
    """
    K-matrix method with an N-point momentum mesh.

    Accuracy improves with N; the dense solve costs O(N³). Convergence
    in N is the caller's responsibility, see driver.convergence_study.

    Examples
    --------
    >>> from constants import M_NP
    >>> from potentials import Yukawa
    >>> method = KMatrix(20)
    >>> delta = method(0.25, M_NP, Yukawa(strength=-0.5, mu=0.7))
    """
    N: int

    def __post_init__(self):
        if isinstance(self.N, bool) or not isinstance(self.N, numbers.Integral) or self.N < 1:
            raise InvalidConfiguration(f"Mesh size N must be a positive integer, got {self.N!r}.")

    def solve(
        self,
        k0: float,
        m: float,
        potential: PotentialLike,
        mesh: Optional[MomentumMesh] = None,
    ) -> KMatrixSolution:
        """
        Solve A K = V and keep every intermediate matrix.

        An ill-conditioned A is logged as a warning, never raised: the
        result is still returned.
        """
        check_kinematics(k0, m)
        A, V, k, mesh = _assemble(k0, m, self.N, potential, mesh)

        K = lu_solve(lu_factor(A), V)

        size = (self.N + 1, self.N + 1)
        if not (A.shape == V.shape == K.shape == size):
            raise InvariantViolation(
                f"Matrix shapes A{A.shape}, V{V.shape}, K{K.shape} differ from {size}."
            )

        condition_number = float(np.linalg.cond(A))
        V_norm = np.linalg.norm(V)
        residual = float(np.linalg.norm(A @ K - V) / V_norm) if V_norm > 0 else 0.0

        if not condition_number < CONDITION_WARNING_THRESHOLD:
            logger.warning(
                "Ill-conditioned K-matrix system: N=%d, k0=%.6g, cond(A)=%.3e. "
                "k0 may lie too close to a mesh node.",
                self.N, k0, condition_number,
            )

        solution = KMatrixSolution(
            k0=float(k0), mass=float(m), k=k, weights=mesh.weights,
            V=V, A=A, K=K,
            condition_number=condition_number, residual=residual,
        )
        logger.debug(
            "KMatrix N=%d k0=%.6g: K(k0,k0)=%.6e, delta=%.6f deg, cond=%.3e, residual=%.2e",
            self.N, k0, solution.K_on_shell, solution.phase_shift, condition_number, residual,
        )
        return solution

    def evaluate(self, k0: float, m: float, potential: PotentialLike) -> float:
        """S-wave phase shift in degrees."""
        return self.solve(k0, m, potential).phase_shift

    def __call__(self, k0: float, m: float, potential: PotentialLike) -> float:
        return self.evaluate(k0, m, potential)
