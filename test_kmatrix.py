"""
test_kmatrix.py
===============

K-matrix linear system and phase shift extraction.

Verifies:
1. No interaction: A = I, K = 0, δ = 0
2. Precondition and invariant failures
3. Linearity of A in V, idempotence of repeated solves
4. Weak Yukawa against the Born approximation, and convergence in N

Run:
    pytest test_kmatrix.py
"""

import numpy as np
import pytest

from constants import M_NP
from errors import InvalidConfiguration, InvariantViolation
from kmatrix import KMatrix, create_A, create_system
from mesh import append_on_shell, make_momentum_mesh
from methods import PhaseShiftMethod, cross_section, phaseshift, sigma_fm2_to_barn
from potentials import SquareWell, Yukawa, born_phaseshift

K0 = 50.0 / 197.0  # 50 MeV/c in fm^-1


def zero_potential(k, kp):
    return 0.0


def _system_inputs(N=12, k0=K0, potential=None):
    mesh = make_momentum_mesh(N)
    k = append_on_shell(mesh, k0)
    potential = potential or Yukawa(strength=-0.2, mu=0.7)
    V = potential.on_mesh(k)
    return V, k, mesh.weights


# =============================================================================
# No interaction
# =============================================================================

@pytest.mark.parametrize("N", [1, 7, 20])
def test_zero_potential_gives_identity_and_zero_phase(N):
    sol = KMatrix(N).solve(K0, M_NP, zero_potential)

    np.testing.assert_array_equal(sol.A, np.eye(N + 1))
    np.testing.assert_array_equal(sol.V, np.zeros((N + 1, N + 1)))
    np.testing.assert_array_equal(sol.K, np.zeros((N + 1, N + 1)))
    assert sol.phase_shift == 0.0
    assert KMatrix(N)(K0, M_NP, zero_potential) == 0.0


# =============================================================================
# Linear system builder
# =============================================================================

def test_create_A_column_weights():
    V, k, w = _system_inputs(N=6)
    m = M_NP
    N = w.size
    k0 = k[-1]
    A = create_A(V, k, w, m)

    u = np.empty(N + 1)
    for j in range(N):
        u[j] = 2 / np.pi * w[j] * k[j] ** 2 / ((k0 ** 2 - k[j] ** 2) / m)
    u[N] = -2 / np.pi * sum(w[n] * k0 ** 2 / ((k0 ** 2 - k[n] ** 2) / m) for n in range(N))

    expected = np.eye(N + 1)
    for i in range(N + 1):
        for j in range(N + 1):
            expected[i, j] -= V[i, j] * u[j]
    np.testing.assert_allclose(A, expected, rtol=1e-10, atol=1e-12)


def test_create_A_is_linear_in_V():
    V, k, w = _system_inputs()
    I = np.eye(k.size)
    A1 = create_A(V, k, w, M_NP)
    A3 = create_A(3.5 * V, k, w, M_NP)
    np.testing.assert_allclose(I - A3, 3.5 * (I - A1), rtol=1e-12, atol=1e-14)


def test_create_A_rejects_weight_length_mismatch():
    V, k, w = _system_inputs()
    with pytest.raises(InvalidConfiguration):
        create_A(V, k, w[:-1], M_NP)


def test_create_A_rejects_mis_sized_V():
    V, k, w = _system_inputs()
    with pytest.raises(InvalidConfiguration):
        create_A(V[:, :-1], k, w, M_NP)
    with pytest.raises(InvalidConfiguration):
        create_A(V[:-1, :-1], k, w, M_NP)


@pytest.mark.parametrize("m", [0.0, -1.0])
def test_create_A_rejects_non_positive_mass(m):
    V, k, w = _system_inputs()
    with pytest.raises(InvalidConfiguration):
        create_A(V, k, w, m)


def test_create_system_shapes():
    P = Yukawa(strength=-0.2, mu=0.7)
    A, V = create_system(K0, M_NP, 15, P)
    assert A.shape == V.shape == (16, 16)
    assert V[-1, -1] == pytest.approx(P(K0, K0))


# =============================================================================
# Invariants
# =============================================================================

def test_k0_on_injected_mesh_node_raises():
    mesh = make_momentum_mesh(10)
    P = Yukawa(strength=-0.2, mu=0.7)
    with pytest.raises(InvariantViolation):
        create_system(mesh.k[4], M_NP, 10, P, mesh=mesh)


def test_k0_on_generated_mesh_node_raises():
    node = make_momentum_mesh(10).k[6]
    with pytest.raises(InvariantViolation):
        KMatrix(10)(node, M_NP, Yukawa(strength=-0.2, mu=0.7))


@pytest.mark.parametrize("N", [0, -1, 3.0])
def test_invalid_mesh_size(N):
    with pytest.raises(InvalidConfiguration):
        KMatrix(N)


@pytest.mark.parametrize("k0, m", [(0.0, M_NP), (-0.1, M_NP), (K0, 0.0)])
def test_invalid_kinematics(k0, m):
    with pytest.raises(InvalidConfiguration):
        KMatrix(10)(k0, m, Yukawa(strength=-0.2, mu=0.7))


# =============================================================================
# Phase shifts
# =============================================================================

def test_phase_shift_stays_in_open_interval():
    potentials = [
        Yukawa(strength=-3.0, mu=0.7),
        Yukawa(strength=2.0, mu=0.7),
        SquareWell(depth=1.0, radius=2.0),
    ]
    for P in potentials:
        for k0 in (0.05, 0.25, 0.8, 2.0):
            delta = KMatrix(20)(k0, M_NP, P)
            assert np.isfinite(delta)
            assert -90.0 < delta < 90.0


def test_repeated_solves_are_identical():
    method = KMatrix(20)
    P = Yukawa(strength=-0.2, mu=0.7)
    first = method(K0, M_NP, P)
    second = method(K0, M_NP, P)
    third = KMatrix(20)(K0, M_NP, P)
    assert first == pytest.approx(second, rel=0, abs=1e-12)
    assert first == pytest.approx(third, rel=0, abs=1e-12)


def test_attractive_yukawa_has_positive_phase():
    assert KMatrix(20)(K0, M_NP, Yukawa(strength=-0.2, mu=0.7)) > 0.0
    assert KMatrix(20)(K0, M_NP, Yukawa(strength=0.2, mu=0.7)) < 0.0


def test_weak_yukawa_matches_born_approximation():
    # m|strength|/mu ≈ 0.014: second-order corrections are ~1%
    P = Yukawa(strength=-0.002, mu=0.7)
    delta = KMatrix(20)(K0, M_NP, P)
    born = born_phaseshift(P, K0, M_NP)
    assert born > 0.0
    assert delta == pytest.approx(born, rel=0.05)


def test_phase_shift_converges_with_mesh_size():
    P = Yukawa(strength=-0.2, mu=0.7)
    d10, d20, d40 = (KMatrix(N)(K0, M_NP, P) for N in (10, 20, 40))
    assert abs(d40 - d20) < abs(d20 - d10)
    assert abs(d40 - d20) < 0.1


def test_solution_diagnostics():
    sol = KMatrix(20).solve(K0, M_NP, Yukawa(strength=-0.2, mu=0.7))
    assert sol.K.shape == (21, 21)
    assert sol.k[-1] == K0
    assert np.isfinite(sol.condition_number) and sol.condition_number >= 1.0
    assert sol.residual < 1e-10
    assert sol.phase_shift == pytest.approx(
        np.degrees(np.arctan(-sol.K[-1, -1] * M_NP * K0))
    )


# =============================================================================
# Method interface
# =============================================================================

def test_kmatrix_is_a_phase_shift_method():
    assert isinstance(KMatrix(5), PhaseShiftMethod)


def test_phaseshift_entry_point_matches_call():
    P = Yukawa(strength=-0.2, mu=0.7)
    method = KMatrix(20)
    assert phaseshift(method, K0, M_NP, P) == method(K0, M_NP, P)


def test_cross_section():
    P = Yukawa(strength=-0.2, mu=0.7)
    method = KMatrix(20)
    delta = np.radians(method(K0, M_NP, P))
    assert cross_section(method, K0, M_NP, P) == pytest.approx(
        4 * np.pi * np.sin(delta) ** 2 / K0 ** 2
    )
    assert cross_section(method, K0, M_NP, zero_potential) == 0.0


def test_sigma_unit_conversion():
    assert sigma_fm2_to_barn(100.0) == pytest.approx(1.0)


# =============================================================================
# Exact solution and ill-defined potentials
# =============================================================================

@pytest.mark.parametrize("well, k0", [
    (SquareWell(depth=0.05, radius=2.0), 0.3),
    (SquareWell(depth=0.05, radius=2.0), 0.6),
    (SquareWell(depth=0.2, radius=2.0), 0.15),  # bound state below threshold
    (SquareWell(depth=0.2, radius=2.0), 0.3),
])
def test_square_well_matches_analytical(well, k0):
    assert KMatrix(80)(k0, M_NP, well) == pytest.approx(well.analytical(k0, M_NP), abs=0.1)


def nan_on_diagonal(k, kp):
    return np.nan if k == kp else -0.1 * np.sin(k - kp) / (k - kp)


def test_non_finite_potential_is_rejected():
    with pytest.raises(InvalidConfiguration, match="not finite"):
        KMatrix(10)(K0, M_NP, nan_on_diagonal)
    with pytest.raises(InvalidConfiguration):
        create_system(K0, M_NP, 10, lambda k, kp: np.inf)
