"""
Simulation clock
Manages the relationship between simulation time and wall-clock time.
"""

import time
from enum import Enum

from orbitwatch.config import TIME_SPEED_DEFAULT, TIME_SPEED_MAX, TIME_SPEED_MIN


class TimeMode(Enum):
    REALTIME = 'REALTIME'
    SIMULATION = 'SIMULATION'


def wall_clock_ms():
    return time.time() * 1000.0


class SimulationClock:
    """
    Current instant used for propagation, in Unix milliseconds.

    In REALTIME mode every tick snaps to the wall clock; in SIMULATION mode a
    tick advances by frame_delta * speed.
    """

    def __init__(self, start_ms=None, mode=TimeMode.REALTIME, speed=TIME_SPEED_DEFAULT):
        self.time_ms = wall_clock_ms() if start_ms is None else float(start_ms)
        self.mode = mode
        self.speed = self._clamp_speed(speed)

    @staticmethod
    def _clamp_speed(speed):
        return min(max(speed, TIME_SPEED_MIN), TIME_SPEED_MAX)

    def set_mode(self, mode):
        self.mode = mode

    def set_speed(self, speed):
        self.speed = self._clamp_speed(speed)

    def set_time(self, time_ms):
        self.time_ms = float(time_ms)

    def tick(self, frame_delta_ms, now_ms=None):
        """
        Advance the clock by one animation frame.

        Args:
            frame_delta_ms: Real time elapsed since the previous frame
            now_ms: Wall clock for REALTIME mode (defaults to time.time())

        Returns:
            The new simulation time (ms)
        """
        if self.mode == TimeMode.REALTIME:
            self.time_ms = wall_clock_ms() if now_ms is None else float(now_ms)
        else:
            self.time_ms += frame_delta_ms * self.speed
        return self.time_ms
