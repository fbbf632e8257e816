# methods.py
"""
Phase Shift Methods
===================

Common entry points for every technique that turns a potential into an
S-wave phase shift. A method is any object with

    evaluate(k0, m, potential) -> float   # degrees

KMatrix (kmatrix.py) and VPA (vpa.py) are the implementations. Methods are
immutable configuration values: the same instance may be reused across
calls and threads.

Observables
-----------
- phaseshift    : δ(k0) in degrees
- cross_section : S-wave cross section 4π sin²δ / k0² in fm²
"""

from __future__ import annotations
import numpy as np
from typing import Protocol, runtime_checkable

from constants import FM2_TO_BARN
from errors import InvalidConfiguration
from potentials import PotentialLike


@runtime_checkable
class PhaseShiftMethod(Protocol):
    """Anything that can compute an S-wave phase shift in degrees."""

    def evaluate(self, k0: float, m: float, potential: PotentialLike) -> float:
        ...


def check_kinematics(k0: float, m: float) -> None:
    """Reject non-positive on-shell momentum or mass."""
    if not k0 > 0.0:
        raise InvalidConfiguration(f"On-shell momentum k0 must be > 0, got {k0}.")
    if not m > 0.0:
        raise InvalidConfiguration(f"Mass must be > 0, got {m}.")


def phaseshift(method: PhaseShiftMethod, k0: float, m: float, potential: PotentialLike) -> float:
    """
    S-wave phase shift in degrees.

    Parameters
    ----------
    method : PhaseShiftMethod
        Configured solution technique, e.g. KMatrix(20).
    k0 : float
        On-shell momentum in fm^-1.
    m : float
        Mass in fm^-1 (twice the reduced mass, e.g. constants.M_NP).
    potential : callable
        P(k, k') in the normalization of potentials.py.
    """
    check_kinematics(k0, m)
    return method.evaluate(k0, m, potential)


def cross_section(method: PhaseShiftMethod, k0: float, m: float, potential: PotentialLike) -> float:
    """
    S-wave cross section σ = 4π sin²δ / k0² in fm².
    """
    delta = np.radians(phaseshift(method, k0, m, potential))
    return float(4.0 * np.pi * np.sin(delta) ** 2 / k0 ** 2)


def sigma_fm2_to_barn(sigma_fm2: float) -> float:
    """Convert a cross section from fm² to barn."""
    return sigma_fm2 * FM2_TO_BARN
