"""
Scene renderer
Builds a depth-sorted draw list (painter's algorithm) from an immutable
snapshot of targets, stations, camera and simulation time, and executes it
on a matplotlib Axes used as a pixel-space 2D surface.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from matplotlib.collections import LineCollection
from matplotlib.patches import Circle, Polygon, Rectangle, Wedge

from orbitwatch.config import VIEW
from orbitwatch.frames import (
    EARTH_RADIUS_KM,
    eci_to_ecef,
    ecef_to_eci,
    ecef_to_geodetic,
    elevation_angle,
    geodetic_to_ecef,
    gmst,
    is_visible,
)
from orbitwatch.orbital_mechanics import OrbitalMechanics, scene_position
from orbitwatch.projector import CameraView, Projector
from orbitwatch.targets import RiskLevel, TargetType

logger = logging.getLogger(__name__)

EARTH_RADIUS_UNITS = VIEW["earth_radius_units"]


# ----------------------------------------------------------------------------
# Snapshot and draw items
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class SceneSnapshot:
    """Everything one frame depends on. Targets are read, never mutated."""
    targets: tuple
    stations: tuple
    camera: CameraView
    time_ms: float
    selected_id: Optional[str] = None
    show_orbits: bool = True
    width: float = 0.0
    height: float = 0.0


@dataclass
class DrawItem:
    depth: float
    kind = 'item'


@dataclass
class EarthItem(DrawItem):
    center: Tuple[float, float] = (0.0, 0.0)
    radius: float = 0.0
    grid: List[np.ndarray] = field(default_factory=list)
    shadow_layers: List[Tuple[np.ndarray, float]] = field(default_factory=list)
    kind = 'earth'


@dataclass
class StationItem(DrawItem):
    station_id: str = ''
    name: str = ''
    x: float = 0.0
    y: float = 0.0
    kind = 'station'


@dataclass
class LinkItem(DrawItem):
    station_id: str = ''
    target_id: str = ''
    start: Tuple[float, float] = (0.0, 0.0)
    end: Tuple[float, float] = (0.0, 0.0)
    elevation: float = 0.0
    kind = 'link'


@dataclass
class OrbitPathItem(DrawItem):
    target_id: str = ''
    polylines: List[np.ndarray] = field(default_factory=list)
    color: str = '#ffffff'
    linewidth: float = 1.0
    alpha: float = 0.3
    selected: bool = False
    kind = 'orbit'


@dataclass
class TargetMarkerItem(DrawItem):
    target_id: str = ''
    name: str = ''
    x: float = 0.0
    y: float = 0.0
    size: float = 2.5
    color: str = '#ffffff'
    shape: str = 'diamond'
    selected: bool = False
    occluded: bool = False
    alpha: float = 1.0
    glow: Optional[str] = None
    kind = 'marker'


@dataclass
class StarLayer:
    x: np.ndarray
    y: np.ndarray
    size: np.ndarray
    alpha: np.ndarray


@dataclass
class Scene:
    width: float
    height: float
    items: List[DrawItem] = field(default_factory=list)
    markers: List[TargetMarkerItem] = field(default_factory=list)
    stars: Optional[StarLayer] = None

    @property
    def is_empty(self):
        return self.width <= 0 or self.height <= 0

    def hit_test(self, x, y, radius=VIEW["hit_radius_px"]):
        """Id of the nearest drawn target marker within the pick radius, or None."""
        best_id, best_dist = None, None
        for m in self.markers:
            dist = np.hypot(m.x - x, m.y - y)
            if dist <= max(radius, m.size) and (best_dist is None or dist < best_dist):
                best_id, best_dist = m.target_id, dist
        return best_id


class StarField:
    """Fixed random star positions with camera parallax and twinkle."""

    def __init__(self, count=VIEW["star_count"], seed=7):
        rng = np.random.default_rng(seed)
        self.x = rng.random(count) * 2000 - 1000
        self.y = rng.random(count) * 2000 - 1000
        self.size = rng.random(count) * 1.5 + 0.5
        self.base_alpha = rng.random(count)

    def layer(self, view, width, height, time_ms):
        idx = np.arange(len(self.x))
        return StarLayer(
            x=(self.x + view.yaw * 50 + width) % width,
            y=(self.y + view.pitch * 50 + height) % height,
            size=self.size,
            alpha=np.abs(np.sin(time_ms * 0.0005 + idx)) * self.base_alpha,
        )


DEFAULT_STARS = StarField()


def sort_draw_items(items):
    """Farthest first. Python's sort is stable, so equal depths keep insertion order."""
    return sorted(items, key=lambda item: -item.depth)


# ----------------------------------------------------------------------------
# Scene construction (pure)
# ----------------------------------------------------------------------------

def _runs(sx, sy, keep):
    """Split a polyline into consecutive runs where keep is True (>= 2 points each)."""
    runs = []
    start = None
    for k, flag in enumerate(keep):
        if flag and start is None:
            start = k
        elif not flag and start is not None:
            if k - start >= 2:
                runs.append(np.column_stack([sx[start:k], sy[start:k]]))
            start = None
    if start is not None and len(keep) - start >= 2:
        runs.append(np.column_stack([sx[start:], sy[start:]]))
    return runs


def _earth_fixed_to_scene(lat_deg, lon_deg, gmst_rad, radius_units=EARTH_RADIUS_UNITS):
    """Earth-fixed lat/lon (arrays) on a sphere, rotated by GMST, in scene units."""
    lat = np.radians(lat_deg)
    lon = np.radians(lon_deg) + gmst_rad
    x = np.cos(lat) * np.cos(lon)
    y = np.cos(lat) * np.sin(lon)
    z = np.sin(lat)
    # inertial (x, y, z) -> scene (x, z, y)
    return np.stack([x, z, y], axis=-1) * radius_units


def _graticule(projector, gmst_rad, step=VIEW["grid_step_deg"]):
    lines = []
    lons = np.arange(0, 361, 10)
    for lat in range(-80, 81, step):
        pts = _earth_fixed_to_scene(np.full(lons.shape, lat), lons, gmst_rad)
        sx, sy, depth, _ = projector.project_many(pts)
        lines.extend(_runs(sx, sy, depth < 0))

    lats = np.arange(-90, 91, 10)
    for lon in range(0, 360, step):
        pts = _earth_fixed_to_scene(lats, np.full(lats.shape, lon), gmst_rad)
        sx, sy, depth, _ = projector.project_many(pts)
        lines.extend(_runs(sx, sy, depth < 0))
    return lines


def _shadow_polygon(center, radius, light_cam, offset=0.0, samples=48):
    """
    Night-side region of the globe disc in screen coordinates.

    light_cam is the unit direction toward the light in camera space. The
    boundary is the limb half-circle away from the light plus the projected
    terminator half-ellipse. ``offset`` pushes the terminator toward the day
    side for the soft outer layers.
    """
    lx, ly, lz = light_cam
    cx, cy = center
    h = np.hypot(lx, ly)
    lz = float(np.clip(lz + offset, -1.0, 1.0))

    if h < 1e-6:
        if lz > 0:  # light from straight behind the globe: the whole face is night
            t = np.linspace(0, 2 * np.pi, samples * 2)
            return np.column_stack([cx + radius * np.cos(t), cy - radius * np.sin(t)])
        return None

    d = np.array([lx, ly]) / h
    e1 = np.array([-d[1], d[0]])

    base = np.arctan2(d[1], d[0])
    arc_t = np.linspace(base + np.pi / 2, base + 3 * np.pi / 2, samples)
    arc = np.column_stack([np.cos(arc_t), np.sin(arc_t)]) * radius

    ell_t = np.linspace(np.pi, 0.0, samples)
    ellipse = (np.outer(np.cos(ell_t), e1) + np.outer(np.sin(ell_t) * lz, d)) * radius

    pts = np.vstack([arc, ellipse])
    # camera plane (y up) -> screen (y down)
    return np.column_stack([cx + pts[:, 0], cy - pts[:, 1]])


def _earth_item(projector, gmst_rad):
    origin = projector.project(np.zeros(3))
    radius = EARTH_RADIUS_UNITS * origin.scale

    light = np.asarray(VIEW["light_direction"], dtype=float)
    light_cam = projector.rotate_direction(light / np.linalg.norm(light))

    layers = []
    for offset, alpha in ((0.3, 0.12), (0.15, 0.18), (0.0, 0.4)):
        poly = _shadow_polygon((origin.x, origin.y), radius, light_cam, offset=offset)
        if poly is not None:
            layers.append((poly, alpha))

    return EarthItem(depth=0.0, center=(origin.x, origin.y), radius=radius,
                     grid=_graticule(projector, gmst_rad), shadow_layers=layers)


def _orbit_style(target, selected):
    if selected:
        return '#ffffff', 2.0, 0.9
    if target.group == 'DEBRIS_FIELD':
        return target.elements.color, 0.5, 0.15
    return target.elements.color, 1.0, 0.3


def build_scene(snapshot, stars=DEFAULT_STARS):
    """
    Build the depth-sorted draw list for one frame.

    Args:
        snapshot: SceneSnapshot
        stars: StarField for the background (None to skip)

    Returns:
        Scene with items sorted farthest-first and the drawn target markers
    """
    w, h = snapshot.width, snapshot.height
    if not w or not h or w <= 0 or h <= 0:
        logger.debug(f"Skipping frame for zero-size surface ({w}x{h})")
        return Scene(width=0, height=0)

    projector = Projector(snapshot.camera, w, h)
    t = snapshot.time_ms
    gmst_rad = gmst(t)

    earth = _earth_item(projector, gmst_rad)
    occlusion_radius = earth.radius * VIEW["occlusion_factor"]
    items: List[DrawItem] = [earth]

    # Ground stations
    station_proj = {}
    for station in snapshot.stations:
        r_eci = ecef_to_eci(geodetic_to_ecef(station.lat, station.lon, station.alt), gmst_rad)
        p = projector.project(scene_position(r_eci))
        station_proj[station.id] = p
        items.append(StationItem(depth=p.depth, station_id=station.id, name=station.name,
                                 x=p.x, y=p.y))

    # Targets: orbit paths, links, markers
    links: List[DrawItem] = []
    paths: List[DrawItem] = []
    markers: List[TargetMarkerItem] = []
    for target in snapshot.targets:
        selected = target.id == snapshot.selected_id
        elements = target.elements

        if snapshot.show_orbits:
            path = scene_position(OrbitalMechanics.orbit_path(elements, VIEW["orbit_segments"]))
            sx, sy, depth, _ = projector.project_many(path)
            color, lw, alpha = _orbit_style(target, selected)
            paths.append(OrbitPathItem(
                depth=float(np.mean(depth)), target_id=target.id,
                polylines=_runs(sx, sy, projector.depth_visible(depth)),
                color=color, linewidth=lw, alpha=alpha, selected=selected))

        state = OrbitalMechanics.state_vector(elements, t)
        p = projector.project(scene_position(state.position))
        if not projector.is_visible(p):
            continue

        dist_from_center = np.hypot(p.x - earth.center[0], p.y - earth.center[1])
        occluded = p.depth > 0 and dist_from_center < occlusion_radius

        # Visibility links from stations above the elevation mask
        if not occluded:
            lat, lon, alt = ecef_to_geodetic(eci_to_ecef(state.position, gmst_rad))
            for station in snapshot.stations:
                sp = station_proj[station.id]
                if sp.depth > 0 or not projector.is_visible(sp):
                    continue
                el = elevation_angle(station.lat, station.lon, lat, lon, alt + EARTH_RADIUS_KM)
                if is_visible(el):
                    links.append(LinkItem(depth=(sp.depth + p.depth) / 2.0,
                                          station_id=station.id, target_id=target.id,
                                          start=(sp.x, sp.y), end=(p.x, p.y), elevation=el))

        if occluded and not selected:
            continue

        glow = None
        if target.risk == RiskLevel.CRITICAL:
            glow = '#ef4444'
        elif selected:
            glow = '#ffffff'

        markers.append(TargetMarkerItem(
            depth=p.depth, target_id=target.id, name=target.name, x=p.x, y=p.y,
            size=(5.0 if selected else 2.5) * p.scale,
            color='#ffffff' if selected else elements.color,
            shape='circle' if target.type == TargetType.DEBRIS else 'diamond',
            selected=selected, occluded=occluded,
            alpha=0.35 if occluded else 1.0, glow=glow))

    items.extend(links)
    items.extend(paths)
    items.extend(markers)

    scene = Scene(width=w, height=h, items=sort_draw_items(items), markers=markers)
    if stars is not None:
        scene.stars = stars.layer(snapshot.camera, w, h, t)
    return scene


# ----------------------------------------------------------------------------
# Execution on a matplotlib Axes
# ----------------------------------------------------------------------------

class MatplotlibSceneExecutor:
    """Draws a Scene onto an Axes whose data coordinates are screen pixels."""

    BACKGROUND = '#020617'
    GRID_COLOR = '#0ea5e9'
    GLOW_COLOR = '#06b6d4'
    STATION_COLOR = '#4ade80'
    LINK_COLOR = '#22c55e'

    def __init__(self, ax):
        self.ax = ax

    def prepare(self, width, height):
        ax = self.ax
        ax.clear()
        ax.set_axis_off()
        ax.set_facecolor(self.BACKGROUND)
        ax.figure.set_facecolor(self.BACKGROUND)
        if width > 0 and height > 0:
            ax.set_xlim(0, width)
            ax.set_ylim(height, 0)  # screen y grows downward
        ax.set_aspect('auto')

    def execute(self, scene):
        """
        Draw the scene back to front.

        Returns:
            Number of draw items executed (0 for an empty surface)
        """
        self.prepare(scene.width, scene.height)
        if scene.is_empty:
            return 0

        if scene.stars is not None:
            stars = scene.stars
            # Per-star alpha through RGBA face colors
            rgba = np.ones((len(stars.x), 4))
            rgba[:, 3] = np.clip(stars.alpha, 0.0, 1.0)
            self.ax.scatter(stars.x, stars.y, s=stars.size ** 2, c=rgba,
                            edgecolors='none', zorder=0.5)

        for order, item in enumerate(scene.items, start=1):
            draw = getattr(self, f'_draw_{item.kind}')
            draw(item, float(order))
        return len(scene.items)

    def _draw_earth(self, item, z):
        ax = self.ax
        cx, cy = item.center
        r = item.radius

        # Atmosphere glow: rings between 0.8r and 1.4r, brightest in the middle
        n_rings = 6
        width = 0.6 * r / n_rings
        for k in range(n_rings):
            outer = 0.8 * r + (k + 1) * width
            t = (k + 0.5) / n_rings
            alpha = 0.1 * (1 - abs(t - 0.5) * 2)
            ax.add_patch(Wedge((cx, cy), outer, 0, 360, width=width, facecolor=self.GLOW_COLOR,
                               edgecolor='none', alpha=alpha, zorder=z))

        ax.add_patch(Circle((cx, cy), max(r - 1, 0), facecolor=self.BACKGROUND,
                            edgecolor='none', zorder=z + 0.1))

        for poly, alpha in item.shadow_layers:
            ax.add_patch(Polygon(poly, closed=True, facecolor='black', edgecolor='none',
                                 alpha=alpha, zorder=z + 0.2))

        if item.grid:
            ax.add_collection(LineCollection(item.grid, colors=self.GRID_COLOR,
                                             linewidths=0.5, zorder=z + 0.3))

    def _draw_station(self, item, z):
        self.ax.plot([item.x], [item.y], marker='^', color=self.STATION_COLOR,
                     markersize=5, linestyle='none', zorder=z)
        self.ax.text(item.x + 5, item.y + 3, item.name, color=self.STATION_COLOR,
                     fontsize=6, family='monospace', zorder=z + 0.1)

    def _draw_link(self, item, z):
        self.ax.plot([item.start[0], item.end[0]], [item.start[1], item.end[1]],
                     color=self.LINK_COLOR, linewidth=0.8, linestyle='--', alpha=0.6, zorder=z)

    def _draw_orbit(self, item, z):
        if not item.polylines:
            return
        if item.selected:
            # Soft halo under the highlighted path
            self.ax.add_collection(LineCollection(item.polylines, colors=item.color,
                                                  linewidths=item.linewidth * 3, alpha=0.15,
                                                  zorder=z))
        self.ax.add_collection(LineCollection(item.polylines, colors=item.color,
                                              linewidths=item.linewidth, alpha=item.alpha,
                                              zorder=z + 0.1))

    def _draw_marker(self, item, z):
        ax = self.ax
        x, y, s = item.x, item.y, item.size

        if item.glow and not item.occluded:
            ax.add_patch(Circle((x, y), s * 2.0, facecolor=item.glow, edgecolor='none',
                                alpha=0.3, zorder=z))

        if item.shape == 'circle':
            shape = Circle((x, y), s, facecolor=item.color, edgecolor='none',
                           alpha=item.alpha, zorder=z + 0.1)
        else:
            shape = Polygon([(x, y - s), (x + s, y), (x, y + s), (x - s, y)], closed=True,
                            facecolor=item.color, edgecolor='none', alpha=item.alpha,
                            zorder=z + 0.1)
        ax.add_patch(shape)

        if item.selected:
            box = s + 4
            ax.add_patch(Rectangle((x - box, y - box), 2 * box, 2 * box, fill=False,
                                   edgecolor='#ffffff', linewidth=0.8, alpha=0.6 * item.alpha,
                                   zorder=z + 0.2))
            ax.plot([x, x + 8], [y, y - 8], color='#ffffff', alpha=0.5, linewidth=0.8,
                    zorder=z + 0.2)
            ax.text(x + 10, y - 10, item.name, color='#ffffff', fontsize=8,
                    family='monospace', alpha=item.alpha, zorder=z + 0.3)
