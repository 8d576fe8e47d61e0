"""
rendering.py — Sampling utilities for drawing wavefunctions as polylines.

IMPORTANT:
- Everything in this module is **render-only approximation**.
- It only consumes the public wavefunction API (Ket.f, Ket.p, SubDomain.points,
  SubDomain.with_step_size). Physics (energies, coefficients, inner products)
  must always come from braket.py / potentials.py / discrete_system.py.

Polyline conventions (one vertex per sample point x):
    full     (x, Re ψ, Im ψ)     the complex value as a 3-D curve
    real     (x, Re ψ, 0)
    imag     (x, 0,    Im ψ)
    density  (x, |ψ|², 0)
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional
import warnings
import numpy as np
from scipy.integrate import simpson

from braket import Ket

RenderMode = Literal["full", "real", "imag", "density"]
RENDER_MODES = ("full", "real", "imag", "density")


@dataclass(frozen=True)
class RenderSettings:
    """Frame-to-physics mapping used by a frontend.

    time_scale: physics time units per second of wall-clock animation.
    render_step_size: sample spacing for drawing; None keeps the ket's own step.
    """
    time_scale: float = 1.0
    render_step_size: Optional[float] = None

    def __post_init__(self) -> None:
        if not np.isfinite(self.time_scale):
            raise ValueError("time_scale must be finite.")
        if self.render_step_size is not None and not self.render_step_size > 0:
            raise ValueError("render_step_size must be positive.")


def render_points(ket: Ket, step_size: Optional[float] = None) -> np.ndarray:
    """Sample points of the ket's subdomain, optionally resampled for display."""
    subdomain = ket.subdomain
    if step_size is not None:
        subdomain = subdomain.with_step_size(step_size)
    return subdomain.points()


def sample_polyline(
    ket: Ket,
    t: Any = None,
    mode: RenderMode = "full",
    step_size: Optional[float] = None,
) -> np.ndarray:
    """Vertices (N, 3) float32 of the ket at time t in the given mode."""
    if mode not in RENDER_MODES:
        raise ValueError(f"Unknown render mode {mode!r}; expected one of {RENDER_MODES}.")

    xs = render_points(ket, step_size)
    verts = np.zeros((xs.size, 3), dtype=np.float32)
    verts[:, 0] = xs

    if mode == "density":
        verts[:, 1] = np.real(ket.p(xs, t))
        return verts

    values = ket.f(xs, t)
    if mode in ("full", "real"):
        verts[:, 1] = np.real(values)
    if mode in ("full", "imag"):
        verts[:, 2] = np.imag(values)
    return verts


def frame_vertices(
    ket: Ket,
    elapsed: float,
    settings: RenderSettings,
    mode: RenderMode = "full",
) -> np.ndarray:
    """Polyline for an animation frame ``elapsed`` wall-clock seconds after start."""
    t = float(elapsed) * settings.time_scale
    return sample_polyline(ket, t, mode, settings.render_step_size)


def probability_render_estimate(
    ket: Ket,
    t: Any = None,
    *,
    step_size: Optional[float] = None,
    warn_if_below: float = 0.9,
) -> Dict[str, float | str]:
    """Render-only probability estimate: P ≈ ∫ |ψ|² dx over the sampled points.

    Continuous subdomains use Simpson's rule on the render samples; index
    subdomains sum the populations.

    Returns:
      {"render_estimate_probability": prob, "render_estimate_warning": "..."} (warning optional)
    """
    xs = render_points(ket, step_size)
    rho = np.real(ket.p(xs, t)).astype(np.float64)

    if np.issubdtype(xs.dtype, np.integer) or xs.size < 3:
        step = float(step_size if step_size is not None else ket.subdomain.step_size())
        if not np.isfinite(step):
            step = 1.0
        prob = float(np.sum(rho) * step)
    else:
        prob = float(simpson(rho, x=xs.astype(np.float64)))

    out: Dict[str, float | str] = {"render_estimate_probability": prob}

    if (not np.isfinite(prob)) or prob <= 0.0:
        msg = "render probability estimate is non-finite or non-positive (sampling issue)"
        out["render_estimate_warning"] = msg
        warnings.warn(msg, RuntimeWarning)
        return out

    if prob < float(warn_if_below):
        msg = (
            f"state not normalised on its subdomain: render_estimate_probability={prob:.3f} "
            f"< {warn_if_below:.3f}. Widen the subdomain or include more basis states."
        )
        out["render_estimate_warning"] = msg
        warnings.warn(msg, RuntimeWarning)

    return out
