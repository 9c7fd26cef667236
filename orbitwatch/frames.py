"""
Frame transforms and ground-station geometry
Sidereal time, inertial -> earth-fixed -> geodetic (spherical Earth),
look angles and sampled pass prediction.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from orbitwatch.config import (
    EARTH,
    ELEVATION_MASK_DEG,
    J2000_MS,
    PASS_HORIZON_HOURS,
    PASS_STEP_MINUTES,
)
from orbitwatch.orbital_mechanics import OrbitalMechanics

EARTH_RADIUS_KM = EARTH["radius_km"]
MS_PER_DAY = 86400000.0


@dataclass
class GeoPosition:
    lat: float       # degrees
    lon: float       # degrees
    alt: float       # km above the spherical Earth
    velocity: float  # inertial speed, km/s


@dataclass
class PassPrediction:
    station: object       # GroundStation
    time_ms: float
    elevation: float      # degrees at the sampled instant


def gmst(timestamp_ms):
    """Greenwich Mean Sidereal Time in radians for a Unix ms timestamp."""
    d = (timestamp_ms - J2000_MS) / MS_PER_DAY
    gmst_hours = (18.697374558 + 24.06570982441908 * d) % 24
    return (gmst_hours / 24.0) * 2.0 * np.pi


def eci_to_ecef(r_eci, gmst_rad):
    """Rotate inertial coordinates about z by -GMST."""
    x, y, z = r_eci
    c, s = np.cos(gmst_rad), np.sin(gmst_rad)
    return np.array([x * c + y * s, -x * s + y * c, z])


def ecef_to_eci(r_ecef, gmst_rad):
    """Inverse of eci_to_ecef (rotate about z by +GMST)."""
    x, y, z = r_ecef
    c, s = np.cos(gmst_rad), np.sin(gmst_rad)
    return np.array([x * c - y * s, x * s + y * c, z])


def ecef_to_geodetic(r_ecef):
    """
    Spherical-Earth geodetic coordinates.

    Returns:
        (lat_deg, lon_deg, alt_km)
    """
    x, y, z = r_ecef
    rho = np.sqrt(x * x + y * y)
    lon = np.degrees(np.arctan2(y, x))
    lat = np.degrees(np.arctan2(z, rho))
    alt = np.sqrt(x * x + y * y + z * z) - EARTH_RADIUS_KM
    return float(lat), float(lon), float(alt)


def geodetic_to_ecef(lat_deg, lon_deg, alt_km=0.0):
    r = EARTH_RADIUS_KM + alt_km
    lat = np.radians(lat_deg)
    lon = np.radians(lon_deg)
    return np.array([r * np.cos(lat) * np.cos(lon),
                     r * np.cos(lat) * np.sin(lon),
                     r * np.sin(lat)])


def geo_position(elements, timestamp_ms):
    """Sub-satellite point, altitude and speed of an element set at an instant."""
    state = OrbitalMechanics.state_vector(elements, timestamp_ms)
    r_ecef = eci_to_ecef(state.position, gmst(timestamp_ms))
    lat, lon, alt = ecef_to_geodetic(r_ecef)
    return GeoPosition(lat=lat, lon=lon, alt=alt,
                       velocity=float(np.linalg.norm(state.velocity)))


def elevation_angle(station_lat, station_lon, sat_lat, sat_lon, sat_radius_km):
    """
    Elevation (deg) of a point above a station's local horizon.

    Uses the spherical law of cosines for the central angle between station
    and sub-satellite point, then the Earth-center / station / satellite
    triangle for slant range and elevation. Arguments to acos / asin are
    clamped to [-1, 1].
    """
    phi1 = np.radians(station_lat)
    phi2 = np.radians(sat_lat)
    d_lambda = np.radians(sat_lon - station_lon)

    cos_gamma = np.sin(phi1) * np.sin(phi2) + np.cos(phi1) * np.cos(phi2) * np.cos(d_lambda)
    central_angle = np.arccos(np.clip(cos_gamma, -1.0, 1.0))

    R = EARTH_RADIUS_KM
    r = sat_radius_km
    dist = np.sqrt(max(R * R + r * r - 2 * R * r * np.cos(central_angle), 0.0))
    if dist == 0.0:
        return 90.0

    sin_el = (r * r - R * R - dist * dist) / (2 * R * dist)
    return float(np.degrees(np.arcsin(np.clip(sin_el, -1.0, 1.0))))


def look_angle(station, elements, timestamp_ms):
    """Elevation (deg) of a target as seen from a ground station."""
    geo = geo_position(elements, timestamp_ms)
    return elevation_angle(station.lat, station.lon, geo.lat, geo.lon,
                           geo.alt + EARTH_RADIUS_KM)


def is_visible(elevation_deg, mask_deg=ELEVATION_MASK_DEG):
    return elevation_deg > mask_deg


def predict_next_pass(station, elements, start_ms,
                      step_minutes=PASS_STEP_MINUTES,
                      horizon_hours=PASS_HORIZON_HOURS,
                      mask_deg=ELEVATION_MASK_DEG) -> Optional[PassPrediction]:
    """
    Find the next pass by brute-force sampling.

    Samples start, start + step, ... up to (not including) the horizon and
    returns the first sample above the mask. Passes shorter than the step
    can be missed.

    Returns:
        PassPrediction, or None if no sample is above the mask
    """
    step_ms = step_minutes * 60000.0
    n_samples = int(round(horizon_hours * 60 / step_minutes))
    for k in range(n_samples):
        t = start_ms + k * step_ms
        el = look_angle(station, elements, t)
        if is_visible(el, mask_deg):
            return PassPrediction(station=station, time_ms=t, elevation=el)
    return None


def predict_next_passes(stations, elements, start_ms, **kwargs):
    """Next pass (or None) for each station, keyed by station id."""
    return {s.id: predict_next_pass(s, elements, start_ms, **kwargs) for s in stations}


def earliest_pass(stations, elements, start_ms, **kwargs) -> Optional[PassPrediction]:
    """Soonest predicted pass over any of the stations."""
    passes = [p for p in predict_next_passes(stations, elements, start_ms, **kwargs).values()
              if p is not None]
    if not passes:
        return None
    return min(passes, key=lambda p: p.time_ms)
