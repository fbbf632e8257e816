# constants.py
"""
Physical and Numerical Constants for K-Matrix Calculations
==========================================================

This module centralizes all magic numbers used throughout the codebase,
providing named constants with documentation for maintainability.

Units
-----
Momenta are in fm^-1 and masses are converted to fm^-1 by dividing
by ħc, so that the Lippmann-Schwinger energy denominator (k0² - k²)/m
is dimensionless-consistent with potentials given in fm^-1.

Physics Constants
-----------------
- M_NEUTRON, M_PROTON: nucleon masses in MeV/c²
- M_NP: nucleon mass 2 m_n m_p / (m_n + m_p) in fm^-1
- M_PION_*: pion masses in MeV/c²

Numerical Defaults
------------------
- DEFAULT_MESH_SIZE: default number of Gauss-Legendre points
- CONDITION_WARNING_THRESHOLD: condition number above which the solver warns
"""

from __future__ import annotations

# =============================================================================
# PHYSICAL CONSTANTS
# =============================================================================

HBARC: float = 197.0
"""ħc in MeV fm, rounded the way the mass conversions below use it."""

M_NEUTRON: float = 939.565
"""Neutron mass [MeV/c²]."""

M_PROTON: float = 939.272
"""Proton mass [MeV/c²]."""

M_NP: float = 2.0 * (M_NEUTRON * M_PROTON) / (M_NEUTRON + M_PROTON) / HBARC
"""Nucleon mass entering the np energy denominator [fm^-1].

Twice the reduced mass, so that E = k²/M_NP in fm^-1 (≈ 4.77).
"""

M_PN: float = M_NP

M_PION_CHARGED: float = 139.570
"""Charged pion mass [MeV/c²]."""

M_PION_NEUTRAL: float = 134.977
"""Neutral pion mass [MeV/c²]."""

M_PION: float = (2.0 * M_PION_CHARGED + M_PION_NEUTRAL) / 3.0
"""Isospin-averaged pion mass [MeV/c²]."""

FM2_TO_BARN: float = 0.01
"""1 fm² = 10 mb = 0.01 b."""

# =============================================================================
# NUMERICAL DEFAULTS
# =============================================================================

DEFAULT_MESH_SIZE: int = 20
"""Default number of Gauss-Legendre points before the on-shell point is appended.

Accuracy grows with N; the dense solve costs O(N³).
"""

CONDITION_WARNING_THRESHOLD: float = 1e12
"""Condition number of A above which a warning is logged.

The result is still returned; k0 lying very close to a mesh node is the
usual cause.
"""

DEFAULT_CONVERGENCE_TOLERANCE: float = 1e-3
"""Phase shift difference in degrees below which successive meshes count as converged."""
