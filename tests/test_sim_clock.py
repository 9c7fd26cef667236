import pytest

from orbitwatch.sim_clock import SimulationClock, TimeMode


def test_realtime_tracks_wall_clock():
    clock = SimulationClock(start_ms=0.0, mode=TimeMode.REALTIME)
    assert clock.tick(30.0, now_ms=1_700_000_000_000.0) == 1_700_000_000_000.0
    assert clock.tick(30.0, now_ms=1_700_000_000_500.0) == 1_700_000_000_500.0


def test_simulation_advances_by_speed():
    clock = SimulationClock(start_ms=1000.0, mode=TimeMode.SIMULATION, speed=100)
    clock.tick(30.0)
    assert clock.time_ms == pytest.approx(4000.0)
    clock.set_speed(1)
    clock.tick(30.0)
    assert clock.time_ms == pytest.approx(4030.0)


def test_speed_is_clamped():
    clock = SimulationClock(start_ms=0.0, speed=0)
    assert clock.speed == 1
    clock.set_speed(10 ** 9)
    assert clock.speed == 20000


def test_switching_modes():
    clock = SimulationClock(start_ms=0.0, mode=TimeMode.SIMULATION, speed=10)
    clock.tick(100.0)
    assert clock.time_ms == 1000.0
    clock.set_mode(TimeMode.REALTIME)
    clock.tick(100.0, now_ms=5.0e12)
    assert clock.time_ms == 5.0e12
    clock.set_mode(TimeMode.SIMULATION)
    clock.set_time(0.0)
    clock.tick(1.0)
    assert clock.time_ms == 10.0
