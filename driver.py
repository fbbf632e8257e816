# driver.py
"""
Phase Shift Scans and Mesh Convergence
======================================

High-level orchestration on top of the K-matrix solver.

Pipeline
--------
1. Build the method (KMatrix(N) or VPA) and potential from configuration
2. Loop over on-shell momenta, one independent solve per point
3. Collect δ(k0), σ(k0) and solver diagnostics
4. Optionally repeat one momentum for increasing N to check convergence

Execution
---------
Solves share nothing, so a scan may run on a thread pool; numpy/LAPACK
release the GIL during the dense solve.

Units
-----
- Momenta in fm^-1, masses in fm^-1, energies in MeV
- Phase shifts in degrees, cross sections in fm²

Logging
-------
Uses logging_config module. Set KMATRIX_LOG_LEVEL=DEBUG for verbose output.
"""


from __future__ import annotations
import numpy as np
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Sequence
import concurrent.futures
import time

from constants import DEFAULT_CONVERGENCE_TOLERANCE
from errors import InvalidConfiguration, InvariantViolation
from kmatrix import KMatrix
from logging_config import get_logger
from mesh import energy_from_momentum
from methods import PhaseShiftMethod
from potentials import PotentialLike

logger = get_logger(__name__)


@dataclass(frozen=True)
class PhaseShiftPoint:
    """
    Result at one on-shell momentum.

    `ok` is False when the solver rejected the point (e.g. k0 on a mesh
    node); the numeric fields are then NaN.
    """
    k0: float
    energy_MeV: float
    delta_deg: float
    sigma_fm2: float
    condition_number: float = float("nan")
    residual: float = float("nan")
    ok: bool = True


@dataclass
class PhaseShiftScan:
    """Ordered collection of PhaseShiftPoint for one method and potential."""
    mesh_size: Optional[int]
    mass: float
    points: List[PhaseShiftPoint] = field(default_factory=list)

    @property
    def momenta(self) -> np.ndarray:
        return np.array([p.k0 for p in self.points])

    @property
    def phase_shifts(self) -> np.ndarray:
        return np.array([p.delta_deg for p in self.points])

    @property
    def n_failed(self) -> int:
        return sum(not p.ok for p in self.points)

    def to_dict(self) -> Dict:
        return {
            "mesh_size": self.mesh_size,
            "mass": self.mass,
            "points": [asdict(p) for p in self.points],
        }


@dataclass
class ConvergenceStudy:
    """Phase shift at fixed k0 for a sequence of mesh sizes."""
    k0: float
    mesh_sizes: List[int]
    phase_shifts: List[float]

    @property
    def differences(self) -> np.ndarray:
        """|δ(N_{i+1}) - δ(N_i)| in degrees."""
        return np.abs(np.diff(np.asarray(self.phase_shifts, dtype=float)))

    def is_converged(self, tol: float = DEFAULT_CONVERGENCE_TOLERANCE) -> bool:
        """True if the last successive difference is below tol degrees."""
        diffs = self.differences
        return bool(diffs.size > 0 and np.isfinite(diffs[-1]) and diffs[-1] < tol)

    def to_dict(self) -> Dict:
        return {
            "k0": self.k0,
            "mesh_sizes": list(self.mesh_sizes),
            "phase_shifts": list(self.phase_shifts),
            "differences": self.differences.tolist(),
        }


def _solve_point(
    method: PhaseShiftMethod, k0: float, m: float, potential: PotentialLike
) -> PhaseShiftPoint:
    energy = float(energy_from_momentum(k0, m))
    try:
        if isinstance(method, KMatrix):
            sol = method.solve(k0, m, potential)
            delta, cond, res = sol.phase_shift, sol.condition_number, sol.residual
        else:
            delta, cond, res = method.evaluate(k0, m, potential), float("nan"), float("nan")
    except (InvalidConfiguration, InvariantViolation) as exc:
        logger.warning("Skipping k0=%.6g fm^-1: %s", k0, exc)
        return PhaseShiftPoint(
            k0=float(k0), energy_MeV=energy, delta_deg=float("nan"),
            sigma_fm2=float("nan"), ok=False,
        )

    sigma = 4.0 * np.pi * np.sin(np.radians(delta)) ** 2 / k0 ** 2
    return PhaseShiftPoint(
        k0=float(k0), energy_MeV=energy, delta_deg=float(delta),
        sigma_fm2=float(sigma), condition_number=cond, residual=res,
    )


def compute_phase_shifts(
    method: PhaseShiftMethod,
    momenta: Sequence[float],
    m: float,
    potential: PotentialLike,
    n_workers: int = 1,
) -> PhaseShiftScan:
    """
    Phase shifts for every on-shell momentum in `momenta`.

    Points the solver rejects are logged and kept as NaN entries so the
    scan stays aligned with the input momenta.

    Parameters
    ----------
    method : PhaseShiftMethod
        e.g. KMatrix(20).
    momenta : sequence of float
        On-shell momenta in fm^-1.
    m : float
        Mass in fm^-1.
    potential : callable
        P(k, k').
    n_workers : int
        Threads used for independent points; 1 runs serially.
    """
    if not m > 0:
        raise InvalidConfiguration(f"Mass must be > 0, got {m}.")
    momenta = [float(k0) for k0 in momenta]
    mesh_size = getattr(method, "N", None)

    logger.info(
        "Phase shift scan: %d momenta, N=%s, n_workers=%d", len(momenta), mesh_size, n_workers
    )
    t0 = time.perf_counter()

    if n_workers <= 1 or len(momenta) <= 1:
        points = [_solve_point(method, k0, m, potential) for k0 in momenta]
    else:
        points = [None] * len(momenta)
        with concurrent.futures.ThreadPoolExecutor(max_workers=n_workers) as executor:
            futures = {
                executor.submit(_solve_point, method, k0, m, potential): i
                for i, k0 in enumerate(momenta)
            }
            for future in concurrent.futures.as_completed(futures):
                points[futures[future]] = future.result()

    scan = PhaseShiftScan(mesh_size=mesh_size, mass=float(m), points=list(points))
    logger.info(
        "Scan finished in %.2f s (%d failed points)", time.perf_counter() - t0, scan.n_failed
    )
    return scan


def convergence_study(
    k0: float,
    m: float,
    potential: PotentialLike,
    mesh_sizes: Sequence[int],
) -> ConvergenceStudy:
    """
    Phase shift at k0 for each mesh size in `mesh_sizes`.

    The sequence is returned as-is; judging convergence is left to
    ConvergenceStudy.is_converged.
    """
    mesh_sizes = [int(N) for N in mesh_sizes]
    if not mesh_sizes:
        raise InvalidConfiguration("convergence_study: need at least one mesh size.")

    deltas = [KMatrix(N).evaluate(k0, m, potential) for N in mesh_sizes]
    study = ConvergenceStudy(k0=float(k0), mesh_sizes=mesh_sizes, phase_shifts=deltas)

    for N, d in zip(mesh_sizes, deltas):
        logger.debug("Convergence k0=%.6g: N=%d -> delta=%.8f deg", k0, N, d)
    if len(mesh_sizes) > 1 and not study.is_converged():
        logger.warning(
            "Phase shift at k0=%.6g not converged: last difference %.3e deg",
            k0, study.differences[-1],
        )
    return study
