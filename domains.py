"""
domains.py — Domains (wavefunction inputs) and subdomains (where a wavefunction lives).

A Domain is an ordered, additive coordinate type with three sentinels:
first() / last() bound the whole domain, zero() is the additive identity
(default evaluation time, degenerate bound of an empty subdomain).

A SubDomain is a bounded, steppable subset of a Domain. It is the truncation
mask of a ket/bra and the sample set of the inner-product quadrature:

    ∫ f dx  ≈  Σ_{x in points()} f(x) · step_size()

Combination rules (1-D):
    A + B   widest bounds, finer step      (support of a linear combination)
    A * B   narrowest bounds, finer step   (integration domain of <bra|ket>)

Iteration conventions:
- DomainSection1D is half-open, [lower, upper): x_k = lower + k·step while x_k < upper.
  This is the left-endpoint rectangle rule; an interval with lower >= upper yields no points.
- FiniteSubDomain is closed, [min_idx, max_idx]: every index is a state.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

import numpy as np


# -----------------------------------------------------------------------------
# Domains
# -----------------------------------------------------------------------------

class Domain(ABC):
    """Ordered additive coordinate type."""

    dtype: np.dtype

    @abstractmethod
    def first(self) -> Any:
        """Lower bound of the domain."""

    @abstractmethod
    def last(self) -> Any:
        """Upper bound of the domain."""

    def zero(self) -> Any:
        return self.dtype.type(0)

    def cast(self, value: Any) -> Any:
        if np.ndim(value) == 0:
            return self.dtype.type(value)
        return np.asarray(value, dtype=self.dtype)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.dtype})"

    # Singletons: signatures compare them by identity.
    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


class RealDomain(Domain):
    """The real line in float32, bounded by ±inf."""

    dtype = np.dtype(np.float32)

    def first(self) -> Any:
        return self.dtype.type(-np.inf)

    def last(self) -> Any:
        return self.dtype.type(np.inf)


class IndexDomain(Domain):
    """Discrete state indices in int32.

    Sentinels are returned as Python ints so translating them cannot overflow.
    """

    dtype = np.dtype(np.int32)

    def first(self) -> int:
        return int(np.iinfo(np.int32).min)

    def last(self) -> int:
        return int(np.iinfo(np.int32).max)

    def cast(self, value: Any) -> Any:
        if np.ndim(value) == 0:
            return int(value)
        return np.asarray(value, dtype=self.dtype)


REAL_LINE = RealDomain()
INDICES = IndexDomain()


# -----------------------------------------------------------------------------
# SubDomain interface
# -----------------------------------------------------------------------------

class SubDomain(ABC):
    """Bounded, steppable subset of a Domain. Immutable."""

    domain: Domain

    @abstractmethod
    def contains(self, x: Any) -> Any:
        """Membership test; elementwise (boolean array) for array input."""

    @classmethod
    @abstractmethod
    def all(cls, domain: Optional[Domain] = None) -> "SubDomain":
        """The entire domain. The bounds are sentinels, not meant for iteration."""

    @classmethod
    @abstractmethod
    def none(cls, domain: Optional[Domain] = None) -> "SubDomain":
        """The degenerate subdomain at the domain's zero."""

    @abstractmethod
    def points(self) -> np.ndarray:
        """All sample points, in order, as one array of the domain dtype."""

    @abstractmethod
    def step_size(self) -> Any:
        """Step between samples; the volume element of the quadrature."""

    @abstractmethod
    def translate(self, offset: Any) -> "SubDomain":
        """Shift both bounds by offset, keeping the step."""

    @abstractmethod
    def with_step_size(self, step_size: Any) -> "SubDomain":
        """Same bounds, different step."""

    @abstractmethod
    def __add__(self, other: "SubDomain") -> "SubDomain":
        """Union rule."""

    @abstractmethod
    def __mul__(self, other: "SubDomain") -> "SubDomain":
        """Intersection rule."""

    def iter(self) -> Iterator[Any]:
        """Yield the sample points one at a time."""
        return iter(self.points())

    def __iter__(self) -> Iterator[Any]:
        return self.iter()

    def _check_compatible(self, other: Any) -> None:
        if type(other) is not type(self):
            raise TypeError(
                f"cannot combine {type(self).__name__} with {type(other).__name__}"
            )
        if other.domain is not self.domain:
            raise TypeError(f"cannot combine subdomains over {self.domain!r} and {other.domain!r}")


# -----------------------------------------------------------------------------
# 1-D section of a continuous domain
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class DomainSection1D(SubDomain):
    """Interval [lower, upper] sampled every ``step``.

    Parameters
    ----------
    lower, upper : float
        Bounds (inclusive for ``contains``; iteration stops before ``upper``).
    step : float
        Positive sample spacing. ``inf`` is allowed (single sample at ``lower``).
    domain : Domain
        Coordinate type of the bounds.
    """
    lower: Any
    upper: Any
    step: Any
    domain: Domain = field(default=REAL_LINE, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "lower", self.domain.cast(self.lower))
        object.__setattr__(self, "upper", self.domain.cast(self.upper))
        object.__setattr__(self, "step", self.domain.cast(self.step))
        if not self.step > 0:
            raise ValueError(f"step must be positive, got {self.step}")

    def contains(self, x: Any) -> Any:
        return (self.lower <= x) & (x <= self.upper)

    @classmethod
    def all(cls, domain: Optional[Domain] = None) -> "DomainSection1D":
        d = domain or REAL_LINE
        return cls(d.first(), d.last(), d.last(), domain=d)

    @classmethod
    def none(cls, domain: Optional[Domain] = None) -> "DomainSection1D":
        d = domain or REAL_LINE
        return cls(d.zero(), d.zero(), d.last(), domain=d)

    def points(self) -> np.ndarray:
        dtype = self.domain.dtype
        lower, upper, step = float(self.lower), float(self.upper), float(self.step)
        if not (np.isfinite(lower) and np.isfinite(upper)):
            raise ValueError(
                f"cannot sample an unbounded subdomain [{lower}, {upper}]; "
                f"bound it (e.g. by intersecting with a finite section) first"
            )
        if upper <= lower:
            return np.empty(0, dtype=dtype)
        if not np.isfinite(step):
            return np.array([self.lower], dtype=dtype)

        n = int(np.ceil((upper - lower) / step))
        xs = (lower + step * np.arange(n, dtype=np.float64)).astype(dtype)
        return xs[xs < self.upper]

    def step_size(self) -> Any:
        return self.step

    def translate(self, offset: Any) -> "DomainSection1D":
        offset = self.domain.cast(offset)
        return DomainSection1D(self.lower + offset, self.upper + offset, self.step, domain=self.domain)

    def with_step_size(self, step_size: Any) -> "DomainSection1D":
        return DomainSection1D(self.lower, self.upper, step_size, domain=self.domain)

    def __add__(self, other: "DomainSection1D") -> "DomainSection1D":
        self._check_compatible(other)
        return DomainSection1D(
            min(self.lower, other.lower),
            max(self.upper, other.upper),
            min(self.step, other.step),
            domain=self.domain,
        )

    def __mul__(self, other: "DomainSection1D") -> "DomainSection1D":
        self._check_compatible(other)
        return DomainSection1D(
            max(self.lower, other.lower),
            min(self.upper, other.upper),
            min(self.step, other.step),
            domain=self.domain,
        )


# -----------------------------------------------------------------------------
# Finite index range
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class FiniteSubDomain(SubDomain):
    """Closed index range [min_idx, max_idx] with unit step.

    A two-level system lives on FiniteSubDomain(0, 1).
    """
    min_idx: int
    max_idx: int
    domain: Domain = field(default=INDICES, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "min_idx", int(self.min_idx))
        object.__setattr__(self, "max_idx", int(self.max_idx))

    def contains(self, x: Any) -> Any:
        return (self.min_idx <= x) & (x <= self.max_idx)

    @classmethod
    def all(cls, domain: Optional[Domain] = None) -> "FiniteSubDomain":
        d = domain or INDICES
        return cls(d.first(), d.last(), domain=d)

    @classmethod
    def none(cls, domain: Optional[Domain] = None) -> "FiniteSubDomain":
        d = domain or INDICES
        return cls(d.zero(), d.zero(), domain=d)

    def points(self) -> np.ndarray:
        if self.min_idx <= self.domain.first() or self.max_idx >= self.domain.last():
            raise ValueError(
                f"cannot sample an unbounded index range [{self.min_idx}, {self.max_idx}]"
            )
        if self.max_idx < self.min_idx:
            return np.empty(0, dtype=self.domain.dtype)
        return np.arange(self.min_idx, self.max_idx + 1, dtype=self.domain.dtype)

    def step_size(self) -> int:
        return 1

    def translate(self, offset: Any) -> "FiniteSubDomain":
        return FiniteSubDomain(self.min_idx + int(offset), self.max_idx + int(offset), domain=self.domain)

    def with_step_size(self, step_size: Any) -> "FiniteSubDomain":
        # Index ranges are always sampled at every index.
        return self

    def __add__(self, other: "FiniteSubDomain") -> "FiniteSubDomain":
        self._check_compatible(other)
        return FiniteSubDomain(
            min(self.min_idx, other.min_idx),
            max(self.max_idx, other.max_idx),
            domain=self.domain,
        )

    def __mul__(self, other: "FiniteSubDomain") -> "FiniteSubDomain":
        self._check_compatible(other)
        return FiniteSubDomain(
            max(self.min_idx, other.min_idx),
            min(self.max_idx, other.max_idx),
            domain=self.domain,
        )
