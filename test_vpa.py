"""
test_vpa.py
===========

Variable phase approach, checked against the exact square well and the
K-matrix method.

Run:
    pytest test_vpa.py
"""

import numpy as np
import pytest

from constants import M_NP
from driver import compute_phase_shifts
from errors import InvalidConfiguration
from kmatrix import KMatrix
from methods import PhaseShiftMethod, phaseshift
from potentials import SquareWell, UVRegulator, Yukawa, regularize
from vpa import VPA

SHALLOW = SquareWell(depth=0.05, radius=2.0)
DEEP = SquareWell(depth=0.2, radius=2.0)  # one bound state


@pytest.mark.parametrize("well, k0", [(SHALLOW, 0.3), (SHALLOW, 0.6), (DEEP, 0.15), (DEEP, 0.3)])
def test_square_well_matches_analytical(well, k0):
    assert VPA()(k0, M_NP, well) == pytest.approx(well.analytical(k0, M_NP), abs=1e-4)


def test_yukawa_agrees_with_kmatrix():
    P = Yukawa(strength=-0.2, mu=0.7)
    for k0 in (0.1, 0.25, 0.6):
        assert VPA()(k0, M_NP, P) == pytest.approx(KMatrix(80)(k0, M_NP, P), abs=0.1)


def test_zero_strength_gives_zero_phase():
    assert VPA()(0.25, M_NP, Yukawa(strength=0.0, mu=0.7)) == 0.0


def test_vpa_is_a_phase_shift_method():
    method = VPA()
    assert isinstance(method, PhaseShiftMethod)
    assert phaseshift(method, 0.3, M_NP, SHALLOW) == method(0.3, M_NP, SHALLOW)


def test_non_local_potentials_are_rejected():
    with pytest.raises(InvalidConfiguration):
        VPA()(0.25, M_NP, lambda k, kp: 0.0)
    with pytest.raises(InvalidConfiguration):
        VPA()(0.25, M_NP, regularize(SHALLOW, UVRegulator(cutoff=2.0)))


@pytest.mark.parametrize("kwargs", [{"r_min": 0.0}, {"r_max": 1e-7}])
def test_bad_radii(kwargs):
    with pytest.raises(InvalidConfiguration):
        VPA(**kwargs)


def test_scan_with_vpa():
    momenta = [0.2, 0.4]
    scan = compute_phase_shifts(VPA(), momenta, M_NP, SHALLOW)

    assert scan.mesh_size is None
    assert scan.n_failed == 0
    np.testing.assert_allclose(
        scan.phase_shifts, [SHALLOW.analytical(k0, M_NP) for k0 in momenta], atol=1e-4
    )
    assert all(np.isnan(p.condition_number) for p in scan.points)


def test_scan_with_vpa_records_rejected_potential():
    scan = compute_phase_shifts(VPA(), [0.2], M_NP, lambda k, kp: 0.0)
    assert scan.n_failed == 1
    assert np.isnan(scan.phase_shifts[0])
