import matplotlib

matplotlib.use("Agg")

import pytest

from orbitwatch.orbital_mechanics import OrbitalElements
from orbitwatch.targets import GroundStation, RiskLevel, Target, TargetType

ISS_NAME = "ISS (ZARYA)"
ISS_LINE1 = "1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927"
ISS_LINE2 = "2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537"


@pytest.fixture
def iss_lines():
    return ISS_LINE1, ISS_LINE2


@pytest.fixture
def leo_elements():
    return OrbitalElements.from_semi_major_axis(
        semi_major_axis=6871.0, eccentricity=0.001, inclination=51.6,
        raan=40.0, arg_perigee=10.0, mean_anomaly=0.0, epoch=0.0)


@pytest.fixture
def equator_station():
    return GroundStation(id="GS-EQ", name="EQUATOR", lat=0.0, lon=0.0, alt=0.0)


@pytest.fixture
def make_target(leo_elements):
    def _make(target_id="T-100", name="TEST-SAT", target_type=TargetType.SATELLITE,
              elements=None, risk=RiskLevel.LOW, group=None):
        return Target(id=target_id, name=name, type=target_type,
                      elements=(elements or leo_elements).copy(), risk=risk, group=group)
    return _make
