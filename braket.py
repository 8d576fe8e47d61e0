"""
braket.py — Lazy wavefunction expressions, kets, bras and the inner product.

WAVEFUNCTION MODEL:
- An Operation is an immutable expression tree over (Space, Time) -> Out.
  Leaves wrap a callable; inner nodes combine children pointwise with the
  output field's arithmetic. Builders attach new parents to existing children
  (structural sharing), so copying a tree is O(1).
- A Ket pairs an Operation with a SubDomain. Outside the subdomain the ket is
  exactly the field's zero: the subdomain is a truncation mask.
- A Bra has the same structure and is the dual object. Bra.apply(ket, t)
  integrates bra.f · ket.f over the intersection of the two subdomains.

INNER PRODUCT:
    <b|k>(t) ≈ Σ_{x in D} step · b.f(x,t) · k.f(x,t),   D = k.subdomain * b.subdomain

The sum runs through an InnerProductStrategy. SerialStrategy reduces in one
pass; ThreadedStrategy splits the sample points into chunks, reduces each chunk
on the shared thread pool and adds the partial sums. Both give the same value
up to floating-point association order.

EVALUATION:
All evaluation is vectorised: x may be a scalar or a numpy array of points,
and leaf callables are expected to broadcast (numpy ufuncs do).

CONFIGURATION:
The module reads no environment. The default strategy is SerialStrategy until
set_default_strategy() replaces it; every entry point also takes strategy=.
"""
from __future__ import annotations

import atexit
import copy
import functools
import logging
import operator
import os
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Sequence, Tuple

import numpy as np

from domains import SubDomain
from fields import Field
from signatures import WFSignature
from vectorspace import VectorSpace

logger = logging.getLogger(__name__)

WFFunc = Callable[[Any, Any], Any]


# =============================================================================
# Thread pool / strategy configuration
# =============================================================================

_num_threads = os.cpu_count() or 4

_executor: Optional[ThreadPoolExecutor] = None
_executor_lock = threading.Lock()


def get_executor() -> ThreadPoolExecutor:
    """Get or create the shared thread pool used by ThreadedStrategy."""
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(max_workers=_num_threads, thread_name_prefix="braket")
    return _executor


def _shutdown_executor() -> None:
    global _executor
    with _executor_lock:
        if _executor is not None:
            _executor.shutdown(wait=False)
            _executor = None


atexit.register(_shutdown_executor)


# =============================================================================
# Operation tree
# =============================================================================

class Operation(ABC):
    """Immutable, shareable expression for a wavefunction (Space, Time) -> Out.

    Build trees with the static builders (``func``, ``sum``, ``weighted_sum``,
    ``scale``, ``adjoint``, ``translate_space``, ``translate_time``) or the
    operators ``+``, ``-`` and unary ``-``. Nothing is evaluated until ``eval``.
    """

    @property
    @abstractmethod
    def out(self) -> Field:
        """Output field of this expression."""

    @abstractmethod
    def eval(self, x: Any, t: Any) -> Any:
        """Evaluate at point(s) x and time t."""

    # Immutable: a copy is another owner of the same expression.
    def __copy__(self) -> "Operation":
        return self

    def __deepcopy__(self, memo: dict) -> "Operation":
        return self

    def clone(self) -> "Operation":
        return copy.copy(self)

    # -------------------------------------------------------------------------
    # Builders
    # -------------------------------------------------------------------------

    @staticmethod
    def func(f: WFFunc, out: Field) -> "Operation":
        """Leaf node wrapping a callable f(x, t)."""
        return Function(f, out)

    @staticmethod
    def sum(summands: Iterable["Operation"], out: Field) -> "Operation":
        """Pointwise sum; the empty sum is the field's zero."""
        return Sum(tuple(summands), out)

    @staticmethod
    def weighted_sum(summands: Iterable[Tuple[Any, "Operation"]], out: Field) -> "Operation":
        """Pointwise Σ c_i · op_i; the empty sum is the field's zero."""
        return WeightedSum(tuple((out.cast(c), op) for c, op in summands), out)

    @staticmethod
    def scale(c: Any, op: "Operation") -> "Operation":
        return Scale(op.out.cast(c), op)

    @staticmethod
    def adjoint(op: "Operation") -> "Operation":
        """Pointwise conjugation (not a structural adjoint of the tree)."""
        return Adjoint(op)

    @staticmethod
    def translate_space(offset: Any, op: "Operation") -> "Operation":
        """Shift the graph forward: result(x, t) = op(x - offset, t)."""
        return TranslateSpace(offset, op)

    @staticmethod
    def translate_time(offset: Any, op: "Operation") -> "Operation":
        """Shift in time: result(x, t) = op(x, t - offset)."""
        return TranslateTime(offset, op)

    def __add__(self, other: "Operation") -> "Operation":
        return Sum((self, other), self.out)

    def __sub__(self, other: "Operation") -> "Operation":
        return Sub(self, other)

    def __neg__(self) -> "Operation":
        return Neg(self)


@dataclass(frozen=True, eq=False)
class Function(Operation):
    """Leaf: an arbitrary callable f(x, t)."""
    f: WFFunc
    field: Field

    @property
    def out(self) -> Field:
        return self.field

    def eval(self, x: Any, t: Any) -> Any:
        return self.f(x, t)


@dataclass(frozen=True, eq=False)
class Sum(Operation):
    terms: Tuple[Operation, ...]
    field: Field

    @property
    def out(self) -> Field:
        return self.field

    def eval(self, x: Any, t: Any) -> Any:
        return functools.reduce(operator.add, (op.eval(x, t) for op in self.terms), self.field.zero())


@dataclass(frozen=True, eq=False)
class WeightedSum(Operation):
    terms: Tuple[Tuple[Any, Operation], ...]
    field: Field

    @property
    def out(self) -> Field:
        return self.field

    def eval(self, x: Any, t: Any) -> Any:
        return functools.reduce(
            operator.add, (c * op.eval(x, t) for c, op in self.terms), self.field.zero()
        )


@dataclass(frozen=True, eq=False)
class Sub(Operation):
    left: Operation
    right: Operation

    @property
    def out(self) -> Field:
        return self.left.out

    def eval(self, x: Any, t: Any) -> Any:
        return self.left.eval(x, t) - self.right.eval(x, t)


@dataclass(frozen=True, eq=False)
class Scale(Operation):
    c: Any
    operand: Operation

    @property
    def out(self) -> Field:
        return self.operand.out

    def eval(self, x: Any, t: Any) -> Any:
        return self.c * self.operand.eval(x, t)


@dataclass(frozen=True, eq=False)
class Neg(Operation):
    operand: Operation

    @property
    def out(self) -> Field:
        return self.operand.out

    def eval(self, x: Any, t: Any) -> Any:
        return -self.operand.eval(x, t)


@dataclass(frozen=True, eq=False)
class Adjoint(Operation):
    operand: Operation

    @property
    def out(self) -> Field:
        return self.operand.out

    def eval(self, x: Any, t: Any) -> Any:
        return self.operand.out.conjugate(self.operand.eval(x, t))


@dataclass(frozen=True, eq=False)
class TranslateSpace(Operation):
    offset: Any
    operand: Operation

    @property
    def out(self) -> Field:
        return self.operand.out

    def eval(self, x: Any, t: Any) -> Any:
        return self.operand.eval(x - self.offset, t)


@dataclass(frozen=True, eq=False)
class TranslateTime(Operation):
    offset: Any
    operand: Operation

    @property
    def out(self) -> Field:
        return self.operand.out

    def eval(self, x: Any, t: Any) -> Any:
        return self.operand.eval(x, t - self.offset)


# =============================================================================
# Inner-product strategies
# =============================================================================

class InnerProductStrategy(ABC):
    """How the quadrature sum over the sample points is reduced."""

    @abstractmethod
    def reduce(self, integrand: Callable[[np.ndarray], np.ndarray], points: np.ndarray, zero: Any) -> Any:
        """Return zero + Σ integrand(points)."""


class SerialStrategy(InnerProductStrategy):
    """Single vectorised pass on the calling thread."""

    def reduce(self, integrand: Callable[[np.ndarray], np.ndarray], points: np.ndarray, zero: Any) -> Any:
        if points.size == 0:
            return zero
        return zero + np.sum(integrand(points))

    def __repr__(self) -> str:
        return "SerialStrategy()"


class ThreadedStrategy(InnerProductStrategy):
    """Data-parallel reduction on the shared thread pool.

    The points are split into at most ``max_workers`` contiguous chunks of at
    least ``min_chunk`` points; each chunk is reduced independently and the
    partial sums are added. Field addition must be associative and commutative.
    """

    def __init__(self, max_workers: Optional[int] = None, min_chunk: int = 1024) -> None:
        if min_chunk < 1:
            raise ValueError("min_chunk must be >= 1")
        self.max_workers = int(max_workers or _num_threads)
        self.min_chunk = int(min_chunk)

    def reduce(self, integrand: Callable[[np.ndarray], np.ndarray], points: np.ndarray, zero: Any) -> Any:
        if points.size == 0:
            return zero
        n_chunks = max(1, min(self.max_workers, points.size // self.min_chunk))
        if n_chunks == 1:
            return zero + np.sum(integrand(points))

        chunks = np.array_split(points, n_chunks)
        partials = get_executor().map(lambda chunk: np.sum(integrand(chunk)), chunks)
        return functools.reduce(operator.add, partials, zero)

    def __repr__(self) -> str:
        return f"ThreadedStrategy(max_workers={self.max_workers}, min_chunk={self.min_chunk})"


_default_strategy: InnerProductStrategy = SerialStrategy()


def get_default_strategy() -> InnerProductStrategy:
    return _default_strategy


def set_default_strategy(strategy: InnerProductStrategy) -> None:
    """Select the inner-product strategy used when none is passed explicitly."""
    global _default_strategy
    if not isinstance(strategy, InnerProductStrategy):
        raise TypeError(f"expected an InnerProductStrategy, got {type(strategy).__name__}")
    logger.debug(f"Default inner-product strategy: {strategy!r}")
    _default_strategy = strategy


# =============================================================================
# Wavefunctions
# =============================================================================

class Wavefunction(ABC):
    """Something that can be evaluated at points in space and time."""

    @abstractmethod
    def f(self, x: Any, t: Any = None) -> Any:
        """Value at point(s) x and time t."""

    @abstractmethod
    def p(self, x: Any, t: Any = None) -> Any:
        """Probability density conj(f) · f at point(s) x and time t."""

    @abstractmethod
    def translate_space(self, offset: Any) -> "Wavefunction": ...

    @abstractmethod
    def translate_time(self, offset: Any) -> "Wavefunction": ...


@dataclass(frozen=True, eq=False)
class _WFVector(VectorSpace, Wavefunction):
    """Shared structure of kets and bras: an Operation truncated to a SubDomain."""
    wavefunction: Operation
    subdomain: SubDomain
    signature: WFSignature

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def new(cls, f: WFFunc, subdomain: SubDomain, signature: WFSignature):
        """Wrap a callable f(x, t) defined on ``subdomain``."""
        return cls(Operation.func(f, signature.out), subdomain, signature)

    @classmethod
    def default(cls, signature: WFSignature):
        """The zero function on the empty subdomain."""
        return cls(_zero_function(signature), signature.none(), signature)

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    def f(self, x: Any, t: Any = None) -> Any:
        sig = self.signature
        t = sig.time.zero() if t is None else sig.time.cast(t)
        return _eval_masked(self.wavefunction, self.subdomain, sig, sig.space.cast(x), t)

    def p(self, x: Any, t: Any = None) -> Any:
        value = self.f(x, t)
        return self.signature.out.conjugate(value) * value

    def translate_space(self, offset: Any):
        offset = self.signature.space.cast(offset)
        return type(self)(
            Operation.translate_space(offset, self.wavefunction),
            self.subdomain.translate(offset),
            self.signature,
        )

    def translate_time(self, offset: Any):
        offset = self.signature.time.cast(offset)
        return type(self)(
            Operation.translate_time(offset, self.wavefunction),
            self.subdomain,
            self.signature,
        )

    # -------------------------------------------------------------------------
    # Vector space
    # -------------------------------------------------------------------------

    def _check_signature(self, other: Any) -> None:
        if not isinstance(other, type(self)):
            raise TypeError(f"cannot combine {type(self).__name__} with {type(other).__name__}")
        if other.signature != self.signature:
            raise TypeError(
                f"cannot combine wavefunctions over {self.signature!r} and {other.signature!r}"
            )

    @classmethod
    def _common_signature(cls, vectors: Sequence["_WFVector"], signature: Optional[WFSignature]) -> WFSignature:
        sig = signature or vectors[0].signature
        for v in vectors:
            if not isinstance(v, cls):
                raise TypeError(f"cannot sum {type(v).__name__} into {cls.__name__}")
            if v.signature != sig:
                raise TypeError(f"cannot combine wavefunctions over {sig!r} and {v.signature!r}")
        return sig

    def scale(self, c: Any):
        return type(self)(Operation.scale(c, self.wavefunction), self.subdomain, self.signature)

    def __mul__(self, c: Any):
        return self.scale(c)

    def __add__(self, other):
        self._check_signature(other)
        support = self.subdomain + other.subdomain
        return type(self)(
            self._restricted_to(support) + other._restricted_to(support),
            support,
            self.signature,
        )

    def __sub__(self, other):
        # The support must still cover both operands; outside one of them the
        # subtracted value is that operand's zero.
        self._check_signature(other)
        support = self.subdomain + other.subdomain
        return type(self)(
            self._restricted_to(support) - other._restricted_to(support),
            support,
            self.signature,
        )

    def __neg__(self):
        return type(self)(-self.wavefunction, self.subdomain, self.signature)

    @classmethod
    def sum(cls, vectors: Sequence[Any], signature: Optional[WFSignature] = None):
        vectors = list(vectors)
        if not vectors:
            if signature is None:
                raise TypeError(f"{cls.__name__}.sum of no vectors needs an explicit signature")
            return cls.zero(signature)

        sig = cls._common_signature(vectors, signature)
        support = functools.reduce(operator.add, (v.subdomain for v in vectors))
        return cls(
            Operation.sum((v._restricted_to(support) for v in vectors), sig.out),
            support,
            sig,
        )

    @classmethod
    def weighted_sum(cls, summands: Sequence[Tuple[Any, Any]], signature: Optional[WFSignature] = None):
        summands = list(summands)
        if not summands:
            if signature is None:
                raise TypeError(f"{cls.__name__}.weighted_sum of no vectors needs an explicit signature")
            return cls.zero(signature)

        sig = cls._common_signature([v for _, v in summands], signature)
        support = functools.reduce(operator.add, (v.subdomain for _, v in summands))
        return cls(
            Operation.weighted_sum(((c, v._restricted_to(support)) for c, v in summands), sig.out),
            support,
            sig,
        )

    def _restricted_to(self, support: SubDomain) -> Operation:
        """This vector's operation, zero outside its own subdomain, for use over ``support``.

        Returns the operation itself when the subdomain already spans ``support``.
        """
        if self.subdomain.with_step_size(support.step_size()) == support:
            return self.wavefunction
        op, own, sig = self.wavefunction, self.subdomain, self.signature
        return Operation.func(lambda x, t: _eval_masked(op, own, sig, x, t), sig.out)


def _eval_masked(op: Operation, subdomain: SubDomain, sig: WFSignature, x: Any, t: Any) -> Any:
    """Evaluate ``op`` inside ``subdomain`` only; the field zero elsewhere."""
    if np.ndim(x) == 0:
        if subdomain.contains(x):
            return sig.out.cast(op.eval(x, t))
        return sig.out.zero()

    inside = subdomain.contains(x)
    values = np.zeros(np.shape(x), dtype=sig.out.dtype)
    if np.any(inside):
        values[inside] = op.eval(x[inside], t)
    return values


def _zero_function(signature: WFSignature) -> Operation:
    zero = signature.out.zero()
    return Operation.func(lambda x, t: zero, signature.out)


class Ket(_WFVector):
    """A vector in a function vector space: a wavefunction on a subdomain."""

    @classmethod
    def zero(cls, signature: WFSignature) -> "Ket":
        """The zero function, unconstrained: defined on the whole domain."""
        return cls(_zero_function(signature), signature.all(), signature)

    def to_adjoint(self) -> "Bra":
        """The dual bra: pointwise conjugate on the same subdomain."""
        return Bra(Operation.adjoint(self.wavefunction), self.subdomain, self.signature)

    adjoint = to_adjoint

    def norm_sqr(self, t: Any = None, strategy: Optional[InnerProductStrategy] = None) -> Any:
        """<self|self> at time t; real and non-negative for a valid state."""
        return self.to_adjoint().apply(self, t, strategy=strategy)


class Bra(_WFVector):
    """A covector, dual to Ket. Applying it to a ket gives the inner product."""

    @classmethod
    def zero(cls, signature: WFSignature) -> "Bra":
        """The zero function on the empty subdomain: contributes nothing."""
        return cls(_zero_function(signature), signature.none(), signature)

    def to_adjoint(self) -> Ket:
        """The ket this bra is dual to (pointwise conjugate, same subdomain)."""
        return Ket(Operation.adjoint(self.wavefunction), self.subdomain, self.signature)

    adjoint = to_adjoint

    def apply(self, ket: Ket, t: Any = None, strategy: Optional[InnerProductStrategy] = None) -> Any:
        """Inner product <self|ket> at time t.

        Integrates over the intersection of the two subdomains with its (finer)
        step as volume element. An empty intersection gives exactly zero.
        """
        if not isinstance(ket, Ket):
            raise TypeError(f"a bra applies to a Ket, got {type(ket).__name__}")
        if ket.signature != self.signature:
            raise TypeError(
                f"cannot pair a bra over {self.signature!r} with a ket over {ket.signature!r}"
            )

        sig = self.signature
        t = sig.time.zero() if t is None else sig.time.cast(t)
        domain = ket.subdomain * self.subdomain
        step = domain.step_size()

        def integrand(xs: np.ndarray) -> np.ndarray:
            return sig.mul_to_codomain(step, self.f(xs, t) * ket.f(xs, t))

        strategy = strategy or _default_strategy
        return sig.out.cast(strategy.reduce(integrand, domain.points(), sig.out.zero()))

    def __mul__(self, other: Any):
        if isinstance(other, Ket):
            return self.apply(other)
        return self.scale(other)
