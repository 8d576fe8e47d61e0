import math

import numpy as np
import pytest
from scipy.special import eval_hermite

from braket import Ket
from domains import DomainSection1D
from potentials import HarmonicWell, InfiniteSquareWell, hermite_function_poly
from signatures import WF_1SPACE_1TIME


@pytest.fixture
def isw():
    return InfiniteSquareWell(width=1.0, mass=1.0, hbar=1.0, step_size=0.001)


@pytest.fixture
def harmonic():
    return HarmonicWell(omega=1.0, mass=1.0, step_size=0.01, hbar=1.0, half_width=8.0)


# -----------------------------------------------------------------------------
# Hermite functions
# -----------------------------------------------------------------------------

@pytest.mark.parametrize("k", range(7))
def test_hermite_recurrence_matches_scipy(k):
    xi = np.linspace(-3.0, 3.0, 13)
    norm = math.sqrt(2.0 ** k * math.factorial(k) * math.sqrt(math.pi))
    np.testing.assert_allclose(hermite_function_poly(k, xi), eval_hermite(k, xi) / norm, rtol=1e-10, atol=1e-12)


def test_hermite_scalar_input():
    assert hermite_function_poly(0, 0.0) == pytest.approx(math.pi ** -0.25)
    assert np.shape(hermite_function_poly(3, 0.5)) == ()


def test_hermite_high_order_stays_finite():
    assert np.all(np.isfinite(hermite_function_poly(150, np.linspace(-15.0, 15.0, 31))))


# -----------------------------------------------------------------------------
# Infinite square well
# -----------------------------------------------------------------------------

def test_isw_energies(isw):
    for n in (1, 2, 5):
        assert isw.energy(n) == pytest.approx((n * math.pi) ** 2 / 2.0)


def test_isw_eigenstate_shape_and_phase(isw):
    state = isw.eigenstate(2)
    assert state.subdomain.lower == 0.0 and state.subdomain.upper == 1.0
    t = 0.01
    expected = math.sqrt(2.0) * math.sin(2 * math.pi * 0.3) * np.exp(-1j * isw.energy(2) * t)
    assert state.f(0.3, t) == pytest.approx(expected, abs=1e-5)
    assert state.f(1.5, t) == 0


def test_isw_orthonormal(isw):
    states = isw.eigenstates(4)
    for i, a in enumerate(states):
        bra = a.to_adjoint()
        for j, b in enumerate(states):
            expected = 1.0 if i == j else 0.0
            assert bra.apply(b) == pytest.approx(expected, abs=1e-2)


def test_expansion_state_lives_in_narrow_box(isw):
    state = isw.expansion_state(0.5, 1)
    assert state.subdomain.upper == 0.5
    assert state.norm_sqr().real == pytest.approx(1.0, abs=1e-3)
    assert state.f(0.75) == 0


def test_isw_evolution_round_trip(isw):
    initial = isw.expansion_state(0.5, 1)
    coeffs = isw.coefficients(initial, 0.0, 10)
    evolved = isw.evolution(initial, 0.0, 10)
    again = isw.coefficients(evolved, 0.0, 10)
    np.testing.assert_allclose(again, coeffs, atol=1e-3)
    # Most of the probability sits in the first few states.
    assert np.sum(np.abs(coeffs) ** 2) == pytest.approx(1.0, abs=0.05)


def test_evolution_of_eigenstate_is_the_eigenstate(isw):
    initial = isw.eigenstate(3)
    evolved = isw.evolution(initial, 0.0, 5)
    xs = np.linspace(0.05, 0.95, 19)
    for t in (0.0, 0.02, 0.1):
        np.testing.assert_allclose(evolved.f(xs, t), initial.f(xs, t), atol=1e-3)


def test_evolution_uses_t0(isw):
    initial = isw.eigenstate(1)
    t0 = 0.3
    evolved = isw.evolution(initial, t0, 3)
    xs = np.linspace(0.1, 0.9, 9)
    np.testing.assert_allclose(evolved.f(xs, t0), initial.f(xs, t0), atol=1e-3)


def test_evolution_returns_ket_over_basis_support(isw):
    box = Ket.new(lambda x, t: np.ones_like(x), DomainSection1D(0.2, 0.4, 0.001), WF_1SPACE_1TIME)
    evolved = isw.evolution(box, 0.0, 4)
    assert evolved.subdomain.lower == 0.0
    assert evolved.subdomain.upper == 1.0


@pytest.mark.parametrize("bad", [0, -1, 1.5, "2", True])
def test_invalid_indices(isw, bad):
    with pytest.raises(ValueError):
        isw.eigenstate(bad)


@pytest.mark.parametrize(
    "params",
    [
        dict(width=0.0, mass=1.0, hbar=1.0, step_size=0.01),
        dict(width=1.0, mass=-1.0, hbar=1.0, step_size=0.01),
        dict(width=1.0, mass=1.0, hbar=1.0, step_size=0.0),
        dict(width=1.0, mass=1.0, hbar=float("nan"), step_size=0.01),
    ],
)
def test_invalid_well_parameters(params):
    with pytest.raises(ValueError):
        InfiniteSquareWell(**params)


# -----------------------------------------------------------------------------
# Harmonic well
# -----------------------------------------------------------------------------

def test_harmonic_energies(harmonic):
    assert harmonic.energy(1) == pytest.approx(0.5)
    assert harmonic.energy(4) == pytest.approx(3.5)


def test_harmonic_ground_state_profile(harmonic):
    state = harmonic.eigenstate(1)
    assert state.f(0.0) == pytest.approx(math.pi ** -0.25, rel=1e-5)
    assert state.f(1.0) == pytest.approx(math.pi ** -0.25 * math.exp(-0.5), rel=1e-5)
    assert state.f(9.0) == 0


def test_harmonic_orthonormal(harmonic):
    states = harmonic.eigenstates(5)
    for i, a in enumerate(states):
        bra = a.to_adjoint()
        for j, b in enumerate(states):
            expected = 1.0 if i == j else 0.0
            assert bra.apply(b, 0.7) == pytest.approx(expected, abs=1e-3)


def test_harmonic_displaced_state_coefficients(harmonic):
    ground = harmonic.eigenstate(1)
    displaced = ground.translate_space(1.0)
    coeffs = harmonic.coefficients(displaced, 0.0, 12)
    # Coherent state: |c_n|^2 is Poisson with mean |α|^2 = x0^2 / 2.
    mean = 0.5
    expected = np.array([math.exp(-mean) * mean ** k / math.factorial(k) for k in range(12)])
    np.testing.assert_allclose(np.abs(coeffs) ** 2, expected, atol=1e-3)


def test_harmonic_invalid_parameters():
    with pytest.raises(ValueError):
        HarmonicWell(omega=0.0, mass=1.0, step_size=0.01, hbar=1.0, half_width=8.0)
    with pytest.raises(ValueError):
        HarmonicWell(omega=1.0, mass=1.0, step_size=0.01, hbar=1.0, half_width=8.0).eigenstate(0)


def test_harmonic_requires_hbar_and_width():
    with pytest.raises(TypeError):
        HarmonicWell(omega=1.0, mass=1.0, step_size=0.01)
    with pytest.raises(TypeError):
        HarmonicWell(omega=1.0, mass=1.0, step_size=0.01, hbar=1.0)
