import math

import numpy as np
import pytest

from discrete_system import TwoState
from potentials import InfiniteSquareWell
from rendering import RenderSettings, frame_vertices, probability_render_estimate, sample_polyline


@pytest.fixture
def ground():
    return InfiniteSquareWell(width=1.0, mass=1.0, hbar=1.0, step_size=0.001).eigenstate(1)


def test_polyline_modes(ground):
    t = 0.1
    full = sample_polyline(ground, t, "full", step_size=0.01)
    real = sample_polyline(ground, t, "real", step_size=0.01)
    imag = sample_polyline(ground, t, "imag", step_size=0.01)
    density = sample_polyline(ground, t, "density", step_size=0.01)

    assert full.shape == (100, 3) and full.dtype == np.float32
    np.testing.assert_allclose(full[:, 0], np.arange(100) * 0.01, atol=1e-6)
    values = ground.f(full[:, 0], t)
    np.testing.assert_allclose(full[:, 1], values.real, atol=1e-6)
    np.testing.assert_allclose(full[:, 2], values.imag, atol=1e-6)
    np.testing.assert_array_equal(real[:, 2], 0.0)
    np.testing.assert_array_equal(imag[:, 1], 0.0)
    np.testing.assert_allclose(real[:, 1], full[:, 1])
    np.testing.assert_allclose(density[:, 1], np.abs(values) ** 2, atol=1e-5)
    np.testing.assert_array_equal(density[:, 2], 0.0)


def test_polyline_defaults_to_ket_step(ground):
    assert sample_polyline(ground).shape == (1000, 3)


def test_unknown_mode(ground):
    with pytest.raises(ValueError):
        sample_polyline(ground, 0.0, "phase")


def test_frame_vertices_scale_time(ground):
    settings = RenderSettings(time_scale=0.1, render_step_size=0.05)
    frame = frame_vertices(ground, 2.0, settings, "full")
    np.testing.assert_allclose(frame, sample_polyline(ground, 0.2, "full", step_size=0.05), atol=1e-6)


def test_render_settings_validation():
    with pytest.raises(ValueError):
        RenderSettings(time_scale=1.0, render_step_size=0.0)
    with pytest.raises(ValueError):
        RenderSettings(time_scale=math.inf)


def test_probability_estimate_normalised(ground):
    info = probability_render_estimate(ground, 0.3, step_size=0.01)
    assert info["render_estimate_probability"] == pytest.approx(1.0, abs=1e-3)
    assert "render_estimate_warning" not in info


def test_probability_estimate_warns(ground):
    with pytest.warns(RuntimeWarning):
        info = probability_render_estimate(0.1 * ground, 0.0, step_size=0.01)
    assert info["render_estimate_probability"] == pytest.approx(0.01, abs=1e-4)
    assert "render_estimate_warning" in info


def test_probability_estimate_finite_system():
    system = TwoState(level_1=1.0, level_2=0.0, coupling=0.2, hbar=1.0)
    info = probability_render_estimate(system.energy_eigenstate(0), 1.0)
    assert info["render_estimate_probability"] == pytest.approx(1.0, abs=1e-6)
