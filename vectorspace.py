"""
vectorspace.py — Abstract vector space over a Field.

Kets and bras both implement this interface. Combinators never mutate: every
operation returns a new vector.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence, Tuple, TypeVar

V = TypeVar("V", bound="VectorSpace")


class VectorSpace(ABC):
    """Vector space over the field named by the implementer's signature."""

    # Make numpy scalars defer to __rmul__ instead of broadcasting over vectors.
    __array_ufunc__ = None

    @classmethod
    @abstractmethod
    def zero(cls: type[V], signature: Any) -> V:
        """The additive identity."""

    @abstractmethod
    def scale(self: V, c: Any) -> V:
        """Scale by a field element."""

    @classmethod
    @abstractmethod
    def sum(cls: type[V], vectors: Sequence[V], signature: Any = None) -> V:
        """Sum many vectors. An empty input gives ``zero(signature)``."""

    @classmethod
    @abstractmethod
    def weighted_sum(cls: type[V], summands: Sequence[Tuple[Any, V]], signature: Any = None) -> V:
        """Sum of ``c * v`` over ``(c, v)`` pairs. An empty input gives ``zero(signature)``."""

    @abstractmethod
    def __add__(self: V, other: V) -> V: ...

    @abstractmethod
    def __sub__(self: V, other: V) -> V: ...

    @abstractmethod
    def __neg__(self: V) -> V: ...

    def __rmul__(self: V, c: Any) -> V:
        return self.scale(c)
