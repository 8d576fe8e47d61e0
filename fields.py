"""
fields.py — Scalar fields used as the codomain of wavefunctions.

A Field is a capability object: it does not wrap values, it describes them.
Values are plain numpy scalars or arrays of ``Field.dtype`` and use numpy's own
+, -, *, / operators. ``conjugate``, ``cast`` and ``is_zero`` work elementwise;
``inv`` takes a single element. The Field supplies what numpy does not
name uniformly: the identities, a checked inverse, a zero test and conjugation.

Two instances are provided:
- REAL32     float32, conjugation is the identity
- COMPLEX32  complex64, conjugation is complex conjugation

Laws every implementation must satisfy:
- (F, +, *) is a field, except that zero has no multiplicative inverse
- inv(a) is None exactly when is_zero(a)
- conjugate(conjugate(a)) == a
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

import numpy as np


class Field(ABC):
    """Capability interface for a numeric field with an involutive conjugation."""

    dtype: np.dtype

    def zero(self) -> Any:
        """The additive identity."""
        return self.dtype.type(0)

    def one(self) -> Any:
        """The multiplicative identity."""
        return self.dtype.type(1)

    def is_zero(self, value: Any) -> Any:
        """Zero test: a bool for a scalar, a boolean array for an array."""
        result = np.equal(value, self.zero())
        if np.ndim(result) == 0:
            return bool(result)
        return result

    def inv(self, value: Any) -> Optional[Any]:
        """Multiplicative inverse of one element, or None for the additive identity."""
        if np.ndim(value) != 0:
            raise ValueError(f"inv takes a single field element, got shape {np.shape(value)}")
        if self.is_zero(value):
            return None
        return self.one() / self.cast(value)

    @abstractmethod
    def conjugate(self, value: Any) -> Any:
        """Involution; identity on real fields. Works elementwise on arrays."""

    def cast(self, value: Any) -> Any:
        """Coerce a scalar or array-like to this field's dtype.

        Scalars come back as numpy scalars, everything else as ndarrays.
        """
        if np.ndim(value) == 0:
            return self.dtype.type(value)
        return np.asarray(value, dtype=self.dtype)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.dtype})"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


class RealField(Field):
    """32-bit real numbers."""

    dtype = np.dtype(np.float32)

    def conjugate(self, value: Any) -> Any:
        return value


class ComplexField(Field):
    """32-bit complex numbers (two float32 components)."""

    dtype = np.dtype(np.complex64)

    def conjugate(self, value: Any) -> Any:
        return np.conj(value)


REAL32 = RealField()
COMPLEX32 = ComplexField()
