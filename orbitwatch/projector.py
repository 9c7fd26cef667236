"""
Camera and perspective projector
Pointer-driven orbit camera (yaw / pitch / zoom) and a yaw-pitch-perspective
projection from scene units to screen pixels.
"""

from dataclasses import dataclass

import numpy as np

from orbitwatch.config import VIEW


class Camera:
    """
    Orbit camera state.

    Two interaction states: idle and dragging. Pointer-down starts a drag,
    pointer-up / leave ends it. Dragging changes yaw and pitch, the wheel
    changes zoom multiplicatively.
    """

    def __init__(self, yaw=VIEW["initial_yaw"], pitch=VIEW["initial_pitch"],
                 zoom=VIEW["initial_zoom"], zoom_min=VIEW["zoom_min"],
                 zoom_max=VIEW["zoom_max"], sensitivity=VIEW["drag_sensitivity"]):
        self.yaw = yaw
        self.pitch = pitch
        self.zoom_min = zoom_min
        self.zoom_max = zoom_max
        self.zoom = self._clamp_zoom(zoom)
        self.sensitivity = sensitivity
        self.dragging = False
        self._last_pos = (0.0, 0.0)
        self._press_pos = (0.0, 0.0)

    def _clamp_zoom(self, zoom):
        return min(max(zoom, self.zoom_min), self.zoom_max)

    def pointer_down(self, x, y):
        self.dragging = True
        self._last_pos = (x, y)
        self._press_pos = (x, y)

    def pointer_move(self, x, y):
        if not self.dragging:
            return
        dx = x - self._last_pos[0]
        dy = y - self._last_pos[1]
        self.yaw += dx * self.sensitivity
        self.pitch = min(max(self.pitch + dy * self.sensitivity, -np.pi / 2), np.pi / 2)
        self._last_pos = (x, y)

    def pointer_up(self):
        self.dragging = False

    def pointer_leave(self):
        self.dragging = False

    def wheel(self, delta_y, sensitivity=VIEW["zoom_sensitivity"]):
        """Scroll zoom: positive delta (scroll down) zooms out."""
        self.zoom = self._clamp_zoom(self.zoom * np.exp(-delta_y * sensitivity))

    def moved_since_press(self, x, y, tolerance=VIEW["click_tolerance_px"]):
        """True if the pointer travelled far enough since pointer-down to count as a drag."""
        return np.hypot(x - self._press_pos[0], y - self._press_pos[1]) > tolerance

    def snapshot(self):
        """Immutable copy of the values that affect projection."""
        return CameraView(yaw=self.yaw, pitch=self.pitch, zoom=self.zoom)


@dataclass(frozen=True)
class CameraView:
    yaw: float
    pitch: float
    zoom: float


@dataclass(frozen=True)
class ProjectedPoint:
    x: float       # screen pixels
    y: float       # screen pixels (down)
    depth: float   # rotated z, positive is away from the viewer
    scale: float


class Projector:
    """Projects scene-space points for a given camera view and surface size."""

    def __init__(self, view, width, height, camera_distance=VIEW["camera_distance"]):
        self.view = view
        self.width = width
        self.height = height
        self.distance = camera_distance
        self.cx = width / 2.0
        self.cy = height / 2.0
        self._cos_yaw, self._sin_yaw = np.cos(view.yaw), np.sin(view.yaw)
        self._cos_pitch, self._sin_pitch = np.cos(view.pitch), np.sin(view.pitch)

    def rotate(self, points):
        """
        Apply yaw (about the vertical axis) then pitch (about the horizontal axis).

        Args:
            points: (3,) or (N, 3) scene-space points

        Returns:
            array of the same shape in camera space
        """
        p = np.asarray(points, dtype=float)
        x, y, z = p[..., 0], p[..., 1], p[..., 2]

        # Yaw
        x1 = x * self._cos_yaw - z * self._sin_yaw
        z1 = x * self._sin_yaw + z * self._cos_yaw

        # Pitch
        y2 = y * self._cos_pitch - z1 * self._sin_pitch
        z2 = y * self._sin_pitch + z1 * self._cos_pitch

        return np.stack([x1, y2, z2], axis=-1)

    rotate_direction = rotate

    def project_many(self, points):
        """
        Vectorized projection.

        Returns:
            (sx, sy, depth, scale) arrays
        """
        cam = self.rotate(points)
        x, y, z = cam[..., 0], cam[..., 1], cam[..., 2]
        with np.errstate(divide='ignore', invalid='ignore'):
            scale = (self.distance / (self.distance + z)) * self.view.zoom
        return self.cx + x * scale, self.cy - y * scale, z, scale

    def project(self, point):
        sx, sy, depth, scale = self.project_many(point)
        return ProjectedPoint(x=float(sx), y=float(sy), depth=float(depth), scale=float(scale))

    def is_visible(self, projected):
        """Near-plane rejection: in front of the camera."""
        return projected.depth > -self.distance

    def depth_visible(self, depth):
        return np.asarray(depth) > -self.distance
