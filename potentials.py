"""
potentials.py — Confined 1-D potentials with closed-form eigenstates.

SYSTEMS:
- InfiniteSquareWell on [0, width]:
    ψ_n(x, t) = sqrt(2/w) sin(nπx/w) e^{-i E_n t/ħ},   E_n = (nπħ/w)² / 2m,   n = 1, 2, ...
- HarmonicWell truncated to [-half_width, half_width]:
    ψ_n(x, t) = (mω/ħ)^{1/4} e^{-ξ²/2} h_{n-1}(ξ) e^{-i E_n t/ħ},   ξ = sqrt(mω/ħ) x
    E_n = ħω (n - 1/2),   n = 1, 2, ...   (n = 1 is the ground state)
  where h_k is the normalised Hermite function polynomial
    h_k(ξ) = H_k(ξ) / sqrt(2^k k! sqrt(π)).

EIGENBASIS EVOLUTION:
    c_n = <ψ_n(t0)|ψ_initial>            (inner product at t0)
    ψ(t) = Σ_n c_n ψ_n(t)                (lazy weighted sum, evaluated on demand)

Quadrature error (finite step) and truncation error (finite n range) both
enter the result; neither is estimated here.
"""
from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

import numpy as np
from numba import jit

from braket import Bra, InnerProductStrategy, Ket
from domains import DomainSection1D
from signatures import WF_1SPACE_1TIME, WFSignature

logger = logging.getLogger(__name__)


# =============================================================================
# Numba-accelerated functions
# =============================================================================

@jit(nopython=True, cache=True)
def _hermite_function_poly(k: int, xi: np.ndarray) -> np.ndarray:
    """
    Normalised Hermite polynomial h_k(ξ) = H_k(ξ) / sqrt(2^k k! sqrt(π)).

    Three-term recurrence on the normalised values; stays finite for large k
    where H_k and k! individually overflow.
    """
    h_prev = np.full(xi.shape, np.pi ** -0.25)
    if k == 0:
        return h_prev
    h = np.sqrt(2.0) * xi * h_prev
    for j in range(1, k):
        h_next = np.sqrt(2.0 / (j + 1)) * xi * h - np.sqrt(j / (j + 1.0)) * h_prev
        h_prev = h
        h = h_next
    return h


def hermite_function_poly(k: int, xi: Any) -> np.ndarray:
    """Vectorised wrapper around the JIT recurrence; accepts scalars and arrays."""
    xi_arr = np.atleast_1d(np.asarray(xi, dtype=np.float64))
    return _hermite_function_poly(int(k), xi_arr).reshape(np.shape(xi))


def _check_index(n: Any, lowest: int = 1) -> int:
    if isinstance(n, (bool, np.bool_)) or not isinstance(n, (int, np.integer)):
        raise ValueError(f"eigenstate index must be an integer, got {n!r}")
    if n < lowest:
        raise ValueError(f"eigenstate index must be >= {lowest}, got {n}")
    return int(n)


def _check_positive(**params: float) -> None:
    for name, value in params.items():
        if not (np.isfinite(value) and value > 0):
            raise ValueError(f"{name} must be positive and finite, got {value}")


def _phase(energy: float, hbar: float, t: Any) -> Any:
    return np.exp(-1j * energy * np.asarray(t, dtype=np.float64) / hbar)


# =============================================================================
# Shared eigenbasis expansion
# =============================================================================

class ConfinedPotential(ABC):
    """A 1-D potential whose stationary states are known in closed form.

    Subclasses provide ``energy(n)`` and ``eigenstate(n)`` for n = 1, 2, ...
    """

    signature: WFSignature = WF_1SPACE_1TIME

    @abstractmethod
    def energy(self, n: int) -> float:
        """Energy of the n-th stationary state."""

    @abstractmethod
    def eigenstate(self, n: int) -> Ket:
        """The n-th stationary state, including its time phase."""

    def eigenstates(self, max_n: int) -> List[Ket]:
        return [self.eigenstate(n) for n in range(1, max_n + 1)]

    def coefficients(
        self,
        initial_state: Ket,
        t0: Any,
        max_n: int,
        strategy: Optional[InnerProductStrategy] = None,
    ) -> np.ndarray:
        """Project ``initial_state`` at ``t0`` onto eigenstates 1..max_n."""
        _check_index(max_n)
        return project_onto_basis(self.eigenstates(max_n), initial_state, t0, strategy)

    def evolution(
        self,
        initial_state: Ket,
        t0: Any,
        max_n: int,
        strategy: Optional[InnerProductStrategy] = None,
    ) -> Ket:
        """Time-dependent ket Σ_n c_n ψ_n(t) over eigenstates 1..max_n."""
        _check_index(max_n)
        basis = self.eigenstates(max_n)
        coeffs = project_onto_basis(basis, initial_state, t0, strategy)
        return Ket.weighted_sum(list(zip(coeffs, basis)), self.signature)


def project_onto_basis(
    basis: Iterable[Ket],
    initial_state: Ket,
    t0: Any,
    strategy: Optional[InnerProductStrategy],
) -> np.ndarray:
    basis = list(basis)
    start = time.perf_counter()
    coeffs = np.empty(len(basis), dtype=initial_state.signature.out.dtype)
    for i, state in enumerate(basis):
        bra: Bra = state.to_adjoint()
        coeffs[i] = bra.apply(initial_state, t0, strategy=strategy)
        logger.debug(f"c[{i}] = {complex(coeffs[i]):.6g}")
    elapsed = time.perf_counter() - start
    logger.info(f"Projected onto {len(basis)} basis states in {elapsed * 1000:.1f}ms")
    return coeffs


# =============================================================================
# Infinite square well
# =============================================================================

@dataclass(frozen=True)
class InfiniteSquareWell(ConfinedPotential):
    """Particle in an infinitely deep box [0, width].

    Parameters
    ----------
    width : float
        Width of the well.
    mass : float
        Particle mass.
    hbar : float
        Reduced Planck constant (in the caller's units).
    step_size : float
        Quadrature step of the eigenstate subdomains.
    """
    width: float
    mass: float
    hbar: float
    step_size: float

    def __post_init__(self) -> None:
        _check_positive(width=self.width, mass=self.mass, hbar=self.hbar, step_size=self.step_size)

    def energy(self, n: int) -> float:
        return self._energy(_check_index(n), self.width)

    def _energy(self, n: int, width: float) -> float:
        k = n * np.pi * self.hbar / width
        return k * k / (2.0 * self.mass)

    def _state(self, n: int, width: float) -> Ket:
        energy = self._energy(n, width)
        amplitude = np.sqrt(2.0 / width)
        wavenumber = n * np.pi / width
        hbar = self.hbar

        def psi(x, t):
            return amplitude * np.sin(wavenumber * x) * _phase(energy, hbar, t)

        return Ket.new(psi, DomainSection1D(0.0, width, self.step_size), self.signature)

    def eigenstate(self, n: int) -> Ket:
        return self._state(_check_index(n), self.width)

    def expansion_state(self, initial_width: float, n: int) -> Ket:
        """n-th eigenstate of the same particle in the narrower box [0, initial_width].

        The starting point of a sudden expansion of the walls to ``width``.
        """
        _check_positive(initial_width=initial_width)
        return self._state(_check_index(n), float(initial_width))


# =============================================================================
# Harmonic well
# =============================================================================

@dataclass(frozen=True)
class HarmonicWell(ConfinedPotential):
    """Harmonic oscillator V = mω²x²/2, eigenstates truncated to [-half_width, half_width]."""
    omega: float
    mass: float
    step_size: float
    hbar: float
    half_width: float

    def __post_init__(self) -> None:
        _check_positive(
            omega=self.omega,
            mass=self.mass,
            step_size=self.step_size,
            hbar=self.hbar,
            half_width=self.half_width,
        )

    def energy(self, n: int) -> float:
        n = _check_index(n)
        return self.hbar * self.omega * (n - 0.5)

    def eigenstate(self, n: int) -> Ket:
        energy = self.energy(n)
        k = n - 1
        mw_hbar = self.mass * self.omega / self.hbar
        amplitude = mw_hbar ** 0.25
        scale = np.sqrt(mw_hbar)
        hbar = self.hbar

        def psi(x, t):
            xi = scale * np.asarray(x, dtype=np.float64)
            spatial = amplitude * np.exp(-0.5 * xi * xi) * hermite_function_poly(k, xi)
            return spatial * _phase(energy, hbar, t)

        subdomain = DomainSection1D(-self.half_width, self.half_width, self.step_size)
        return Ket.new(psi, subdomain, self.signature)
