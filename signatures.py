"""
signatures.py — Type signatures of function vector spaces.

A signature fixes, for a family of wavefunctions (Space, Time) -> Out:
- the spatial and temporal Domains
- the output Field (also the field the kets/bras form a vector space over)
- the SubDomain type used for truncation and integration
- how a spatial volume element multiplies into the output field (quadrature weight)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Type

import numpy as np

from domains import INDICES, REAL_LINE, Domain, DomainSection1D, FiniteSubDomain, SubDomain
from fields import COMPLEX32, Field


@dataclass(frozen=True)
class WFSignature:
    """Type signature of a wavefunction family."""
    name: str
    space: Domain
    time: Domain
    out: Field
    subdomain_type: Type[SubDomain]
    weight_rule: Callable[[Any, Any], Any]

    def mul_to_codomain(self, step: Any, value: Any) -> Any:
        """Multiply an integrand value by the volume element ``step``."""
        return self.out.cast(self.weight_rule(step, value))

    def all(self) -> SubDomain:
        return self.subdomain_type.all(self.space)

    def none(self) -> SubDomain:
        return self.subdomain_type.none(self.space)

    def __repr__(self) -> str:
        return f"WFSignature({self.name})"

    def __copy__(self) -> "WFSignature":
        return self

    def __deepcopy__(self, memo: dict) -> "WFSignature":
        return self


def _real_step_times(step: Any, value: Any) -> Any:
    return step * value


def _index_step_times(step: Any, value: Any) -> Any:
    return np.float32(step) * value


# Standard signature: one spatial dimension, one time dimension, complex output.
WF_1SPACE_1TIME = WFSignature(
    name="1space-1time",
    space=REAL_LINE,
    time=REAL_LINE,
    out=COMPLEX32,
    subdomain_type=DomainSection1D,
    weight_rule=_real_step_times,
)

# Finitely many coordinates (state indices), one time dimension, complex output.
WF_FINITE = WFSignature(
    name="finite",
    space=INDICES,
    time=REAL_LINE,
    out=COMPLEX32,
    subdomain_type=FiniteSubDomain,
    weight_rule=_index_step_times,
)
