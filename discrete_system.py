"""
discrete_system.py — Quantum systems with finitely many basis states.

A state of an N-level system is a ket over the index space (signature WF_FINITE):
f(i, t) is the amplitude of basis state i at time t. Inner products sum over the
indices with unit weight, so <a|b> = Σ_i conj(a_i) b_i.

TWO-STATE SYSTEM:
    H = [[level_1,        conj(coupling)],
         [coupling,       level_2       ]]

With Δ = level_1 - level_2, |V| = |coupling|, S = sqrt(Δ²/4 + |V|²),
θ = ½ atan2(2|V|, Δ) and φ = coupling/|V| (φ = 1 when uncoupled):
    n = 0:  E = mean - S,  v = (-sin θ,  φ cos θ)
    n = 1:  E = mean + S,  v = ( cos θ,  φ sin θ)
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

import numpy as np

from braket import InnerProductStrategy, Ket
from domains import FiniteSubDomain
from potentials import project_onto_basis
from signatures import WF_FINITE, WFSignature

logger = logging.getLogger(__name__)


class DiscreteSystem(ABC):
    """An N-level system with known energy eigenstates, indexed from ``min_index``."""

    signature: WFSignature = WF_FINITE
    min_index: int = 0
    max_index: int = 0

    @abstractmethod
    def energy(self, n: int) -> float: ...

    @abstractmethod
    def energy_eigenstate(self, n: int) -> Ket:
        """The n-th energy eigenstate, including its time phase."""

    def eigenstate(self, n: int) -> Ket:
        return self.energy_eigenstate(n)

    def _check_index(self, n: Any) -> int:
        if isinstance(n, (bool, np.bool_)) or not isinstance(n, (int, np.integer)):
            raise ValueError(f"eigenstate index must be an integer, got {n!r}")
        if not self.min_index <= n <= self.max_index:
            raise ValueError(
                f"{type(self).__name__} has eigenstates {self.min_index}..{self.max_index}, got {n}"
            )
        return int(n)

    def _basis(self, min_n: Optional[int], max_n: Optional[int]) -> List[Ket]:
        lo = self.min_index if min_n is None else self._check_index(min_n)
        hi = self.max_index if max_n is None else self._check_index(max_n)
        return [self.energy_eigenstate(n) for n in range(lo, hi + 1)]

    def coefficients(
        self,
        initial_state: Ket,
        t0: Any,
        min_n: Optional[int] = None,
        max_n: Optional[int] = None,
        strategy: Optional[InnerProductStrategy] = None,
    ) -> np.ndarray:
        """Project ``initial_state`` at ``t0`` onto eigenstates min_n..max_n (inclusive)."""
        return project_onto_basis(self._basis(min_n, max_n), initial_state, t0, strategy)

    def evolution(
        self,
        initial_state: Ket,
        t0: Any,
        min_n: Optional[int] = None,
        max_n: Optional[int] = None,
        strategy: Optional[InnerProductStrategy] = None,
    ) -> Ket:
        """Σ_n c_n ψ_n(t) over eigenstates min_n..max_n; the full basis by default."""
        basis = self._basis(min_n, max_n)
        coeffs = project_onto_basis(basis, initial_state, t0, strategy)
        return Ket.weighted_sum(list(zip(coeffs, basis)), self.signature)


@dataclass(frozen=True)
class TwoState(DiscreteSystem):
    """Two coupled levels; see the module docstring for the eigenvectors."""
    level_1: float
    level_2: float
    coupling: complex
    hbar: float

    min_index = 0
    max_index = 1

    def __post_init__(self) -> None:
        if not (np.isfinite(self.hbar) and self.hbar > 0):
            raise ValueError(f"hbar must be positive and finite, got {self.hbar}")

    @property
    def hamiltonian(self) -> np.ndarray:
        v = complex(self.coupling)
        return np.array([[self.level_1, v.conjugate()], [v, self.level_2]], dtype=np.complex128)

    def _splitting(self) -> Tuple[float, float, float, complex]:
        delta = float(self.level_1) - float(self.level_2)
        v_abs = abs(complex(self.coupling))
        half_gap = float(np.sqrt(0.25 * delta * delta + v_abs * v_abs))
        theta = 0.5 * float(np.arctan2(2.0 * v_abs, delta))
        phase = complex(self.coupling) / v_abs if v_abs > 0 else 1.0 + 0.0j
        return half_gap, theta, v_abs, phase

    def energy(self, n: int) -> float:
        n = self._check_index(n)
        mean = 0.5 * (float(self.level_1) + float(self.level_2))
        half_gap = self._splitting()[0]
        return mean - half_gap if n == 0 else mean + half_gap

    def amplitudes(self, n: int) -> np.ndarray:
        """Eigenvector components (a_0, a_1) of the n-th state at t = 0."""
        n = self._check_index(n)
        _, theta, _, phase = self._splitting()
        if n == 0:
            return np.array([-np.sin(theta), phase * np.cos(theta)], dtype=np.complex128)
        return np.array([np.cos(theta), phase * np.sin(theta)], dtype=np.complex128)

    def energy_eigenstate(self, n: int) -> Ket:
        energy = self.energy(n)
        a0, a1 = self.amplitudes(n)
        hbar = self.hbar

        def psi(i, t):
            time_phase = np.exp(-1j * energy * np.asarray(t, dtype=np.float64) / hbar)
            return np.where(np.asarray(i) == 0, a0, a1) * time_phase

        return Ket.new(psi, FiniteSubDomain(0, 1), self.signature)

    def state(self, a0: complex, a1: complex) -> Ket:
        """A stationary (time-independent) ket with the given level amplitudes."""
        def psi(i, t):
            return np.where(np.asarray(i) == 0, a0, a1) + 0j * np.asarray(t)

        return Ket.new(psi, FiniteSubDomain(0, 1), self.signature)
