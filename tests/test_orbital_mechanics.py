import numpy as np
import pytest

from orbitwatch.config import VISUAL_SCALE
from orbitwatch.orbital_mechanics import (
    InvalidElementsError,
    OrbitalElements,
    OrbitalMechanics,
    scene_position,
)

MU = 398600.4418


@pytest.mark.parametrize("n", [0.5, 1.0027, 2.0, 14.5, 15.72125391])
def test_mean_motion_round_trip(n):
    a = OrbitalMechanics.sma_from_mean_motion(n)
    assert OrbitalMechanics.mean_motion_from_sma(a) == pytest.approx(n, rel=1e-12)


def test_geostationary_radius():
    # One sidereal day
    a = OrbitalMechanics.sma_from_mean_motion(1.00273790935)
    assert a == pytest.approx(42164.0, abs=2.0)


@pytest.mark.parametrize("e", [0.0, 0.01, 0.1, 0.25])
def test_kepler_residual_low_eccentricity(e):
    M = np.linspace(-np.pi, 3 * np.pi, 400)
    E = OrbitalMechanics.solve_kepler(M, e)
    assert np.max(np.abs(E - e * np.sin(E) - M)) < 1e-6


@pytest.mark.parametrize("e", [0.3, 0.5, 0.7, 0.9])
def test_kepler_residual_ceiling(e):
    M = np.linspace(0, 2 * np.pi, 400)
    E = OrbitalMechanics.solve_kepler(M, e)
    residual = np.max(np.abs(E - e * np.sin(E) - M))
    assert residual <= (1 + e) * e ** 11 + 1e-12


def test_kepler_scalar():
    E = OrbitalMechanics.solve_kepler(1.0, 0.1)
    assert np.isscalar(E) or np.ndim(E) == 0
    assert E - 0.1 * np.sin(E) == pytest.approx(1.0, abs=1e-9)


def test_state_vector_periodic(leo_elements):
    period_ms = OrbitalMechanics.period_from_mean_motion(leo_elements.mean_motion) * 1000.0
    t0 = 1.7e12
    s0 = OrbitalMechanics.state_vector(leo_elements, t0)
    s1 = OrbitalMechanics.state_vector(leo_elements, t0 + period_ms)
    np.testing.assert_allclose(s0.position, s1.position, atol=1e-3)
    np.testing.assert_allclose(s0.velocity, s1.velocity, atol=1e-6)


def test_state_vector_vis_viva():
    e = OrbitalElements.from_semi_major_axis(
        semi_major_axis=12000.0, eccentricity=0.2, inclination=30.0,
        raan=60.0, arg_perigee=45.0, mean_anomaly=100.0, epoch=0.0)
    for t in (0.0, 1.0e6, 3.3e6):
        s = OrbitalMechanics.state_vector(e, t)
        r = np.linalg.norm(s.position)
        v = np.linalg.norm(s.velocity)
        assert v ** 2 == pytest.approx(MU * (2 / r - 1 / e.semi_major_axis), rel=1e-6)
        # Angular momentum is perpendicular to the orbital plane
        h = np.cross(s.position, s.velocity)
        assert np.degrees(np.arccos(h[2] / np.linalg.norm(h))) == pytest.approx(30.0, abs=1e-6)


def test_epoch_none_means_zero(leo_elements):
    undated = leo_elements.copy()
    undated.epoch = None
    t = 1.6e12
    np.testing.assert_allclose(OrbitalMechanics.state_vector(undated, t).position,
                               OrbitalMechanics.state_vector(leo_elements, t).position)


def test_equatorial_position_at_epoch():
    e = OrbitalElements.from_semi_major_axis(7000.0, 0.0, 0.0, 0.0, 0.0, 90.0, epoch=5000.0)
    s = OrbitalMechanics.state_vector(e, 5000.0)
    np.testing.assert_allclose(s.position, [0.0, 7000.0, 0.0], atol=1e-6)


def test_orbit_path_closed(leo_elements):
    path = OrbitalMechanics.orbit_path(leo_elements, segments=90)
    assert path.shape == (91, 3)
    np.testing.assert_allclose(path[0], path[-1], atol=1e-6)
    radii = np.linalg.norm(path, axis=1)
    a, ecc = leo_elements.semi_major_axis, leo_elements.eccentricity
    assert radii.min() >= a * (1 - ecc) - 1e-6
    assert radii.max() <= a * (1 + ecc) + 1e-6


def test_orbital_details():
    e = OrbitalElements.from_semi_major_axis(7000.0, 0.1, 0.0, 0.0, 0.0, 0.0)
    d = OrbitalMechanics.orbital_details(e)
    assert d['perigee'] == pytest.approx(6300.0 - 6371.0)
    assert d['apogee'] == pytest.approx(7700.0 - 6371.0)
    assert d['period_min'] == pytest.approx(
        OrbitalMechanics.period_from_mean_motion(e.mean_motion) / 60.0, rel=1e-9)


def test_draft_setters_keep_a_and_n_consistent(leo_elements):
    draft = leo_elements.copy()
    draft.set_semi_major_axis(8000.0)
    assert draft.mean_motion == pytest.approx(OrbitalMechanics.mean_motion_from_sma(8000.0))
    draft.set_mean_motion(15.0)
    assert draft.semi_major_axis == pytest.approx(OrbitalMechanics.sma_from_mean_motion(15.0))
    assert leo_elements.semi_major_axis == pytest.approx(6871.0)


@pytest.mark.parametrize("field, value", [
    ("eccentricity", 1.0),
    ("eccentricity", -0.1),
    ("eccentricity", float("nan")),
    ("semi_major_axis", 0.0),
    ("mean_motion", -1.0),
    ("inclination", float("inf")),
])
def test_validate_rejects_degenerate(leo_elements, field, value):
    setattr(leo_elements, field, value)
    with pytest.raises(InvalidElementsError):
        leo_elements.validate()


def test_scene_position_axis_swap():
    np.testing.assert_allclose(scene_position([1.0, 2.0, 3.0]),
                               np.array([1.0, 3.0, 2.0]) * VISUAL_SCALE)
    pts = scene_position(np.array([[6371.0, 0.0, 0.0], [0.0, 0.0, 6371.0]]))
    np.testing.assert_allclose(pts, [[60.0, 0.0, 0.0], [0.0, 60.0, 0.0]])
