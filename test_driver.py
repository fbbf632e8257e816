"""
test_driver.py
==============

Phase shift scans, convergence studies and result output.

Run:
    pytest test_driver.py
"""

import numpy as np
import pytest

from constants import M_NP
from driver import ConvergenceStudy, compute_phase_shifts, convergence_study
from errors import InvalidConfiguration
from kmatrix import KMatrix
from mesh import make_momentum_mesh
from output_utils import get_json_path, load_results, save_results
from potentials import Yukawa

P = Yukawa(strength=-0.2, mu=0.7)


def test_scan_matches_single_solves():
    method = KMatrix(16)
    momenta = [0.1, 0.25, 0.5]
    scan = compute_phase_shifts(method, momenta, M_NP, P)

    np.testing.assert_array_equal(scan.momenta, momenta)
    assert scan.mesh_size == 16
    assert scan.n_failed == 0
    for point, k0 in zip(scan.points, momenta):
        assert point.ok
        assert point.delta_deg == method(k0, M_NP, P)
        assert point.energy_MeV == pytest.approx(197.0 * k0 ** 2 / M_NP)
        assert point.sigma_fm2 == pytest.approx(
            4 * np.pi * np.sin(np.radians(point.delta_deg)) ** 2 / k0 ** 2
        )


def test_scan_records_rejected_points():
    method = KMatrix(10)
    node = make_momentum_mesh(10).k[2]
    scan = compute_phase_shifts(method, [0.2, node, 0.4], M_NP, P)

    assert [p.ok for p in scan.points] == [True, False, True]
    assert np.isnan(scan.phase_shifts[1])
    assert scan.n_failed == 1


def test_threaded_scan_matches_serial():
    method = KMatrix(20)
    momenta = np.linspace(0.05, 1.0, 9)
    serial = compute_phase_shifts(method, momenta, M_NP, P)
    threaded = compute_phase_shifts(method, momenta, M_NP, P, n_workers=3)
    np.testing.assert_allclose(threaded.phase_shifts, serial.phase_shifts, rtol=0, atol=1e-12)


def test_scan_rejects_bad_mass():
    with pytest.raises(InvalidConfiguration):
        compute_phase_shifts(KMatrix(10), [0.2], -1.0, P)


def test_convergence_study():
    study = convergence_study(0.25, M_NP, P, [10, 20, 40])
    assert study.mesh_sizes == [10, 20, 40]
    assert len(study.phase_shifts) == 3
    assert study.differences.shape == (2,)
    assert study.differences[1] < study.differences[0]
    assert study.is_converged(tol=1.0)


def test_convergence_tolerance():
    study = ConvergenceStudy(k0=0.1, mesh_sizes=[10, 20, 40], phase_shifts=[10.0, 10.5, 10.51])
    np.testing.assert_allclose(study.differences, [0.5, 0.01])
    assert study.is_converged(tol=0.02)
    assert not study.is_converged(tol=0.005)
    assert not ConvergenceStudy(k0=0.1, mesh_sizes=[10], phase_shifts=[1.0]).is_converged()


def test_convergence_study_needs_mesh_sizes():
    with pytest.raises(InvalidConfiguration):
        convergence_study(0.25, M_NP, P, [])


def test_results_round_trip(tmp_path):
    scan = compute_phase_shifts(KMatrix(10), [0.2, 0.3], M_NP, P)
    path = get_json_path("unit", "scan", base=tmp_path)
    assert path == tmp_path / "results" / "results_unit_scan.json"

    save_results({"first": scan.to_dict()}, path)
    save_results({"second": {"mesh_size": 12}}, path)

    data = load_results(path)
    assert set(data) == {"first", "second"}
    assert data["first"]["mesh_size"] == 10
    assert data["first"]["points"][0]["k0"] == 0.2


def test_load_results_missing_or_corrupt(tmp_path):
    assert load_results(tmp_path / "nope.json") == {}
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    assert load_results(bad) == {}


def test_scan_survives_non_finite_potential():
    def nan_on_diagonal(k, kp):
        return np.nan if k == kp else -0.1 * np.sin(k - kp) / (k - kp)

    scan = compute_phase_shifts(KMatrix(10), [0.2, 0.3], M_NP, nan_on_diagonal, n_workers=2)
    assert scan.n_failed == 2
    assert np.all(np.isnan(scan.phase_shifts))
