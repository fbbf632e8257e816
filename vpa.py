# vpa.py
"""
Variable Phase Approach
=======================

S-wave phase shift from the phase equation of a local potential,

    dδ/dr = -(m/k0) · V(r) · sin²(k0 r + δ(r)),    δ(0) = 0,

integrated outward; δ(r_max) is the phase shift once V(r_max) has died
off. With U(r) = m V(r) this is the Schrödinger equation
u'' + (k0² - U) u = 0 rewritten for the phase of u.

Needs the coordinate-space form V(r) (Potential.radial), so only local
potentials (Yukawa, Pion, SquareWell) qualify. Results are wrapped into
(-90, 90] degrees to compare with the K-matrix method.

Implementation
--------------
- scipy.integrate.solve_ivp (RK45), step capped at a fraction of the
  wavelength
- Integration restarts at every radius in Potential.radial_breakpoints()
  so discontinuities fall on segment ends

Logging
-------
Uses logging_config. Set KMATRIX_LOG_LEVEL=DEBUG for per-solve output.
"""

from __future__ import annotations
import numpy as np
from dataclasses import dataclass

from scipy.integrate import solve_ivp

from errors import InvalidConfiguration, InvariantViolation
from logging_config import get_logger
from methods import check_kinematics
from potentials import Potential, PotentialLike

logger = get_logger(__name__)


def _phase_rhs_factory(potential: Potential, k0: float, m: float):
    """Build rhs(r, δ) for solve_ivp."""
    scale = m / k0

    def rhs(r, y):
        return -scale * potential.radial(r) * np.sin(k0 * r + y) ** 2

    return rhs


@dataclass(frozen=True)
class VPA:
    """
    Variable phase method.

    Attributes
    ----------
    r_max : float
        Outer radius in fm; V(r_max) must be negligible.
    r_min : float
        Start radius in fm. Keeps 1/r potentials finite at the origin.
    rtol, atol : float
        solve_ivp tolerances.
    """
    r_max: float = 30.0
    r_min: float = 1e-6
    rtol: float = 1e-8
    atol: float = 1e-10

    def __post_init__(self):
        if not 0.0 < self.r_min < self.r_max:
            raise InvalidConfiguration(
                f"Need 0 < r_min < r_max, got r_min={self.r_min}, r_max={self.r_max}."
            )

    def evaluate(self, k0: float, m: float, potential: PotentialLike) -> float:
        """S-wave phase shift in degrees."""
        check_kinematics(k0, m)
        if not isinstance(potential, Potential):
            raise InvalidConfiguration("VPA needs a Potential with a coordinate-space form.")
        try:
            potential.radial(self.r_max)
        except NotImplementedError as exc:
            raise InvalidConfiguration(str(exc)) from exc

        rhs = _phase_rhs_factory(potential, k0, m)
        max_step = min(2.0 * np.pi / k0 / 20.0, 0.2)

        edges = [self.r_min]
        edges += sorted(b for b in potential.radial_breakpoints() if self.r_min < b < self.r_max)
        edges.append(self.r_max)

        delta = 0.0
        for a, b in zip(edges[:-1], edges[1:]):
            sol = solve_ivp(
                fun=rhs,
                t_span=(a, b),
                y0=[delta],
                method="RK45",
                max_step=max_step,
                rtol=self.rtol,
                atol=self.atol,
            )
            if not sol.success:
                raise InvariantViolation(f"Phase equation failed on [{a}, {b}] fm: {sol.message}")
            delta = float(sol.y[0, -1])

        wrapped = np.pi / 2.0 - (np.pi / 2.0 - delta) % np.pi
        logger.debug(
            "VPA k0=%.6g: delta(r_max)=%.6f rad, wrapped=%.6f deg",
            k0, delta, np.degrees(wrapped),
        )
        return float(np.degrees(wrapped))

    def __call__(self, k0: float, m: float, potential: PotentialLike) -> float:
        return self.evaluate(k0, m, potential)
