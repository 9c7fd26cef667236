"""
OrbitWatch configuration
Physical constants, view settings, seed catalogue and service settings.
"""

import os

# Earth parameters
EARTH = {
    "radius_km": 6371.0,          # Mean Earth radius (km), spherical model
    "mu_km3_s2": 398600.4418,     # Standard gravitational parameter (km^3/s^2)
    "seconds_per_day": 86400.0,
}

# J2000 epoch (2000-01-01 12:00:00 UTC) in Unix milliseconds
J2000_MS = 946728000000

# Scene / view settings
VIEW = {
    "earth_radius_units": 60.0,    # Earth radius in scene units
    "camera_distance": 800.0,      # Perspective "field of view" distance
    "initial_yaw": 0.5,
    "initial_pitch": 0.2,
    "initial_zoom": 1.2,
    "zoom_min": 0.5,
    "zoom_max": 4.0,
    "drag_sensitivity": 0.005,     # radians per pixel
    "zoom_sensitivity": 0.001,     # per wheel delta unit
    "click_tolerance_px": 3.0,
    "hit_radius_px": 8.0,
    "orbit_segments": 90,
    "grid_step_deg": 20,
    "occlusion_factor": 0.9,       # globe radius fudge for the behind-Earth test
    "star_count": 300,
    "frame_interval_ms": 30,
    "light_direction": (1.0, 0.35, -0.6),  # fixed scene-space direction toward the Sun
}

VISUAL_SCALE = VIEW["earth_radius_units"] / EARTH["radius_km"]

# Visibility and pass prediction
ELEVATION_MASK_DEG = 5.0
PASS_STEP_MINUTES = 5
PASS_HORIZON_HOURS = 12

# Simulation clock
TIME_SPEED_DEFAULT = 100
TIME_SPEED_MIN = 1
TIME_SPEED_MAX = 20000

# Ground stations (lat/lon in degrees, alt in km)
GROUND_STATIONS = [
    {"id": "DSN-1", "name": "GOLDSTONE", "lat": 35.4267, "lon": -116.8900, "alt": 1.0},
    {"id": "DSN-2", "name": "MADRID", "lat": 40.4314, "lon": -4.2481, "alt": 0.8},
    {"id": "DSN-3", "name": "CANBERRA", "lat": -35.4014, "lon": 148.9817, "alt": 0.7},
    {"id": "DSN-4", "name": "SVALBARD", "lat": 78.2298, "lon": 15.4078, "alt": 0.5},
]

# Seed catalogue. Altitudes are mean altitudes (km) used to derive the semi-major axis.
TARGET_PRESETS = [
    {"id": "T-001", "name": "ISS (ZARYA)", "type": "STATION", "risk": "LOW", "group": "CREWED",
     "altitude_km": 418, "eccentricity": 0.0005, "inclination": 51.64, "raan": 247.4,
     "arg_perigee": 130.5, "mean_anomaly": 325.0, "color": "#22d3ee"},
    {"id": "T-002", "name": "TIANGONG", "type": "STATION", "risk": "MEDIUM", "group": "CREWED",
     "altitude_km": 385, "eccentricity": 0.0008, "inclination": 41.47, "raan": 120.0,
     "arg_perigee": 60.0, "mean_anomaly": 10.0, "color": "#f59e0b"},
    {"id": "T-003", "name": "HST", "type": "SATELLITE", "risk": "LOW", "group": "SCIENCE",
     "altitude_km": 530, "eccentricity": 0.0002, "inclination": 28.47, "raan": 300.0,
     "arg_perigee": 90.0, "mean_anomaly": 200.0, "color": "#a78bfa"},
    {"id": "T-004", "name": "NAVSTAR 81", "type": "SATELLITE", "risk": "LOW", "group": "GNSS",
     "altitude_km": 20200, "eccentricity": 0.01, "inclination": 55.0, "raan": 30.0,
     "arg_perigee": 10.0, "mean_anomaly": 45.0, "color": "#4ade80"},
    {"id": "T-005", "name": "MOLNIYA 1-93", "type": "SATELLITE", "risk": "MEDIUM", "group": "COMMS",
     "altitude_km": 20191, "eccentricity": 0.74, "inclination": 63.4, "raan": 80.0,
     "arg_perigee": 270.0, "mean_anomaly": 0.0, "color": "#f472b6"},
    {"id": "T-006", "name": "INTELSAT 901", "type": "SATELLITE", "risk": "LOW", "group": "GEO",
     "altitude_km": 35786, "eccentricity": 0.0001, "inclination": 0.05, "raan": 0.0,
     "arg_perigee": 0.0, "mean_anomaly": 150.0, "color": "#60a5fa"},
    {"id": "T-007", "name": "COSMOS 2251 DEB", "type": "DEBRIS", "risk": "HIGH", "group": "DEBRIS_FIELD",
     "altitude_km": 790, "eccentricity": 0.004, "inclination": 74.0, "raan": 15.0,
     "arg_perigee": 200.0, "mean_anomaly": 80.0, "color": "#ef4444"},
    {"id": "T-008", "name": "FENGYUN 1C DEB", "type": "DEBRIS", "risk": "CRITICAL", "group": "DEBRIS_FIELD",
     "altitude_km": 850, "eccentricity": 0.01, "inclination": 98.8, "raan": 210.0,
     "arg_perigee": 40.0, "mean_anomaly": 300.0, "color": "#ef4444"},
    {"id": "T-009", "name": "2024 PT5", "type": "ASTEROID", "risk": "MEDIUM", "group": "NEO",
     "altitude_km": 40000, "eccentricity": 0.3, "inclination": 12.0, "raan": 95.0,
     "arg_perigee": 33.0, "mean_anomaly": 250.0, "color": "#fbbf24"},
]

# Intelligence report service
INTEL = {
    "api_key_env": "OPENAI_API_KEY",
    "model": os.environ.get("ORBITWATCH_INTEL_MODEL", "gpt-4o-mini"),
    "timeout_s": 20.0,
    "max_words": 80,
}

TLE_DOWNLOAD_URL = "https://celestrak.org/NORAD/elements/gp.php?GROUP=stations&FORMAT=tle"
