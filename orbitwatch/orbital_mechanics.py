"""
Orbital Mechanics - two-body Keplerian propagation
Orbital element set, mean motion / semi-major axis conversions, Kepler solver
and inertial state vectors. No perturbations (drag, J2, third bodies).
"""

import math
from dataclasses import dataclass, replace
from typing import Optional

import numpy as np

from orbitwatch.config import EARTH, VISUAL_SCALE


class InvalidElementsError(ValueError):
    """Raised when an element set cannot be propagated (e >= 1, bad a / n)."""


@dataclass
class OrbitalElements:
    """Classical element set.

    Angles are in degrees, semi-major axis in km, mean motion in rev/day.

    ``epoch`` is a Unix timestamp in milliseconds. ``None`` means epoch 0, so
    the mean anomaly is taken to be valid at Unix time 0 and the phase at
    time t is ``M0 + n * t``. Manually created targets rely on this: their
    ``mean_anomaly`` is chosen assuming epoch zero.
    """
    semi_major_axis: float
    eccentricity: float
    inclination: float
    raan: float
    arg_perigee: float
    mean_anomaly: float
    mean_motion: float
    epoch: Optional[float] = None
    color: str = "#ffffff"

    @classmethod
    def from_mean_motion(cls, mean_motion, eccentricity, inclination, raan,
                         arg_perigee, mean_anomaly, epoch=None, color="#ffffff"):
        """Build an element set from mean motion (rev/day), deriving a."""
        return cls(
            semi_major_axis=OrbitalMechanics.sma_from_mean_motion(mean_motion),
            eccentricity=eccentricity,
            inclination=inclination,
            raan=raan,
            arg_perigee=arg_perigee,
            mean_anomaly=mean_anomaly,
            mean_motion=mean_motion,
            epoch=epoch,
            color=color,
        )

    @classmethod
    def from_semi_major_axis(cls, semi_major_axis, eccentricity, inclination, raan,
                             arg_perigee, mean_anomaly, epoch=None, color="#ffffff"):
        """Build an element set from semi-major axis (km), deriving mean motion."""
        return cls(
            semi_major_axis=semi_major_axis,
            eccentricity=eccentricity,
            inclination=inclination,
            raan=raan,
            arg_perigee=arg_perigee,
            mean_anomaly=mean_anomaly,
            mean_motion=OrbitalMechanics.mean_motion_from_sma(semi_major_axis),
            epoch=epoch,
            color=color,
        )

    def copy(self):
        return replace(self)

    def set_semi_major_axis(self, a_km):
        self.semi_major_axis = a_km
        self.mean_motion = OrbitalMechanics.mean_motion_from_sma(a_km)

    def set_mean_motion(self, mean_motion):
        self.mean_motion = mean_motion
        self.semi_major_axis = OrbitalMechanics.sma_from_mean_motion(mean_motion)

    def validate(self):
        """Raise InvalidElementsError if the set is not a valid ellipse."""
        e = self.eccentricity
        if not math.isfinite(e) or e < 0.0 or e >= 1.0:
            raise InvalidElementsError(f"eccentricity must be in [0, 1), got {e}")
        a = self.semi_major_axis
        if not math.isfinite(a) or a <= 0.0:
            raise InvalidElementsError(f"semi-major axis must be positive and finite, got {a}")
        n = self.mean_motion
        if not math.isfinite(n) or n <= 0.0:
            raise InvalidElementsError(f"mean motion must be positive and finite, got {n}")
        for name in ("inclination", "raan", "arg_perigee", "mean_anomaly"):
            if not math.isfinite(getattr(self, name)):
                raise InvalidElementsError(f"{name} must be finite")
        return self


@dataclass
class StateVector:
    position: np.ndarray  # [x, y, z] km, inertial
    velocity: np.ndarray  # [vx, vy, vz] km/s, inertial


class OrbitalMechanics:
    """Two-body propagation using Keplerian elements"""

    # Constants
    MU = EARTH["mu_km3_s2"]  # km^3/s^2
    EARTH_RADIUS = EARTH["radius_km"]  # km
    SECONDS_PER_DAY = EARTH["seconds_per_day"]
    KEPLER_ITERATIONS = 10

    @staticmethod
    def sma_from_mean_motion(mean_motion):
        """Semi-major axis (km) from mean motion (rev/day)."""
        n = mean_motion * 2.0 * np.pi / OrbitalMechanics.SECONDS_PER_DAY  # rad/s
        return float(np.cbrt(OrbitalMechanics.MU / (n * n)))

    @staticmethod
    def mean_motion_from_sma(sma):
        """Mean motion (rev/day) from semi-major axis (km)."""
        n = np.sqrt(OrbitalMechanics.MU / sma ** 3)  # rad/s
        return float(n * OrbitalMechanics.SECONDS_PER_DAY / (2.0 * np.pi))

    @staticmethod
    def period_from_mean_motion(mean_motion):
        """Orbital period in seconds."""
        return OrbitalMechanics.SECONDS_PER_DAY / mean_motion

    @staticmethod
    def orbital_details(elements):
        """
        Derived orbit geometry.

        Returns:
            dict with 'perigee' and 'apogee' altitudes (km) and 'period_min'
        """
        a = elements.semi_major_axis
        e = elements.eccentricity
        return {
            'perigee': a * (1 - e) - OrbitalMechanics.EARTH_RADIUS,
            'apogee': a * (1 + e) - OrbitalMechanics.EARTH_RADIUS,
            'period_min': 2 * np.pi * np.sqrt(a ** 3 / OrbitalMechanics.MU) / 60.0,
        }

    @staticmethod
    def solve_kepler(M, e, iterations=KEPLER_ITERATIONS):
        """
        Solve Kepler's equation E = M + e*sin(E) by fixed-point iteration.

        The iteration count is the only termination rule. After k iterations
        the residual |E - e*sin(E) - M| is bounded by (1+e)*e**(k+1), i.e.
        below 1e-6 for e <= 0.25 with the default 10 iterations; highly
        eccentric orbits keep a visible residual.

        Args:
            M: Mean anomaly (radians), scalar or numpy array
            e: Eccentricity

        Returns:
            Eccentric anomaly (radians), same shape as M
        """
        E = M
        for _ in range(iterations):
            E = M + e * np.sin(E)
        return E

    @staticmethod
    def perifocal_to_inertial(elements):
        """Rotation matrix (3x3) from the perifocal frame to the inertial frame."""
        w = np.radians(elements.arg_perigee)
        i = np.radians(elements.inclination)
        O = np.radians(elements.raan)

        cos_O, sin_O = np.cos(O), np.sin(O)
        cos_w, sin_w = np.cos(w), np.sin(w)
        cos_i, sin_i = np.cos(i), np.sin(i)

        return np.array([
            [cos_O * cos_w - sin_O * sin_w * cos_i, -(cos_O * sin_w + sin_O * cos_w * cos_i), 0.0],
            [sin_O * cos_w + cos_O * sin_w * cos_i, -(sin_O * sin_w - cos_O * cos_w * cos_i), 0.0],
            [sin_w * sin_i, cos_w * sin_i, 0.0],
        ])

    @staticmethod
    def mean_anomaly_at(elements, timestamp_ms):
        """Mean anomaly (radians, not normalized) at the given instant."""
        epoch = elements.epoch or 0.0
        dt = (timestamp_ms - epoch) / 1000.0  # seconds since epoch
        n_rad_s = elements.mean_motion * 2.0 * np.pi / OrbitalMechanics.SECONDS_PER_DAY
        return np.radians(elements.mean_anomaly) + n_rad_s * dt

    @staticmethod
    def state_vector(elements, timestamp_ms):
        """
        Inertial position and velocity at a given instant.

        Args:
            elements: OrbitalElements
            timestamp_ms: Evaluation instant (Unix ms, simulation clock)

        Returns:
            StateVector with position (km) and velocity (km/s)
        """
        M = OrbitalMechanics.mean_anomaly_at(elements, timestamp_ms)
        a = elements.semi_major_axis
        e = elements.eccentricity

        E = OrbitalMechanics.solve_kepler(M, e)
        cos_E, sin_E = np.cos(E), np.sin(E)
        root = np.sqrt(1 - e * e)

        # Perifocal position
        P = a * (cos_E - e)
        Q = a * root * sin_E

        # Perifocal velocity
        r_dist = a * (1 - e * cos_E)
        v_factor = np.sqrt(OrbitalMechanics.MU * a) / r_dist
        vP = -v_factor * sin_E
        vQ = v_factor * root * cos_E

        R = OrbitalMechanics.perifocal_to_inertial(elements)
        position = R @ np.array([P, Q, 0.0])
        velocity = R @ np.array([vP, vQ, 0.0])
        return StateVector(position=position, velocity=velocity)

    @staticmethod
    def position_at_mean_anomaly(elements, M):
        """
        Inertial positions for an array of mean anomalies (vectorized).

        Args:
            elements: OrbitalElements
            M: Mean anomalies (radians), array of shape (N,)

        Returns:
            (N, 3) array of positions in km
        """
        M = np.atleast_1d(np.asarray(M, dtype=float))
        a = elements.semi_major_axis
        e = elements.eccentricity

        E = OrbitalMechanics.solve_kepler(M, e)
        P = a * (np.cos(E) - e)
        Q = a * np.sqrt(1 - e * e) * np.sin(E)

        R = OrbitalMechanics.perifocal_to_inertial(elements)
        peri = np.column_stack([P, Q, np.zeros_like(P)])
        return peri @ R.T

    @staticmethod
    def orbit_path(elements, segments=90):
        """One full revolution sampled at evenly spaced mean anomalies.

        Returns segments + 1 points; first and last coincide.
        """
        M = np.linspace(0.0, 2.0 * np.pi, segments + 1)
        return OrbitalMechanics.position_at_mean_anomaly(elements, M)


def scene_position(eci_km):
    """
    Map inertial km to scene units.

    Scene x = ECI x, scene y = ECI z (north is up), scene z = ECI y (depth),
    scaled so Earth's radius is a constant number of scene units. Accepts a
    single (3,) vector or an (N, 3) array.
    """
    eci = np.asarray(eci_km, dtype=float)
    return eci[..., [0, 2, 1]] * VISUAL_SCALE
