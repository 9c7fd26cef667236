"""
Tracked targets and ground stations
In-memory target catalogue with selection, draft-based editing and TLE import.
"""

import logging
import random
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from orbitwatch.config import EARTH, GROUND_STATIONS, TARGET_PRESETS
from orbitwatch.orbital_mechanics import OrbitalElements
from orbitwatch.tle_parser import parse_bulk_tle

logger = logging.getLogger(__name__)


class TargetType(Enum):
    SATELLITE = 'SATELLITE'
    DEBRIS = 'DEBRIS'
    ASTEROID = 'ASTEROID'
    STATION = 'STATION'


class RiskLevel(Enum):
    LOW = 'LOW'
    MEDIUM = 'MEDIUM'
    HIGH = 'HIGH'
    CRITICAL = 'CRITICAL'


@dataclass(frozen=True)
class GroundStation:
    id: str
    name: str
    lat: float  # degrees
    lon: float  # degrees
    alt: float  # km


@dataclass
class Target:
    id: str
    name: str
    type: TargetType
    elements: OrbitalElements
    risk: RiskLevel = RiskLevel.LOW
    group: Optional[str] = None
    tle_lines: Optional[tuple] = None
    description: Optional[str] = None
    last_update: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


@dataclass
class TargetDraft:
    """Editable copy of a target's mutable fields. Applied only on commit."""
    target_id: str
    elements: OrbitalElements
    risk: RiskLevel
    group: Optional[str]


@dataclass
class ImportResult:
    added: List[Target] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def load_ground_stations(entries=GROUND_STATIONS):
    return [GroundStation(id=s["id"], name=s["name"], lat=s["lat"], lon=s["lon"], alt=s["alt"])
            for s in entries]


def target_from_preset(preset):
    elements = OrbitalElements.from_semi_major_axis(
        semi_major_axis=EARTH["radius_km"] + preset["altitude_km"],
        eccentricity=preset["eccentricity"],
        inclination=preset["inclination"],
        raan=preset["raan"],
        arg_perigee=preset["arg_perigee"],
        mean_anomaly=preset["mean_anomaly"],
        color=preset.get("color", "#ffffff"),
    )
    return Target(
        id=preset["id"],
        name=preset["name"],
        type=TargetType(preset["type"]),
        elements=elements.validate(),
        risk=RiskLevel(preset.get("risk", "LOW")),
        group=preset.get("group"),
        description=preset.get("description"),
    )


def load_initial_targets(presets=TARGET_PRESETS):
    return [target_from_preset(p) for p in presets]


class TargetRegistry:
    """
    Authoritative list of targets plus the current selection.

    Edits go through begin_edit() / commit_edit(): the draft is a copy, so a
    half-edited element set never reaches the propagator.
    """

    def __init__(self, targets=None, rng=None):
        self.targets: List[Target] = list(targets or [])
        self.selected_id: Optional[str] = None
        self._rng = rng or random.Random()

    def __iter__(self):
        return iter(self.targets)

    def __len__(self):
        return len(self.targets)

    def get(self, target_id):
        for t in self.targets:
            if t.id == target_id:
                return t
        return None

    @property
    def selected(self):
        return self.get(self.selected_id) if self.selected_id else None

    def select(self, target_id):
        """Select a target by id; None or an unknown id clears the selection."""
        self.selected_id = target_id if target_id and self.get(target_id) else None
        return self.selected

    def filtered(self, target_type=None):
        if target_type is None:
            return list(self.targets)
        return [t for t in self.targets if t.type == target_type]

    def _unique_id(self, prefix="T"):
        while True:
            candidate = f"{prefix}-{self._rng.randint(0, 9999):04d}"
            if self.get(candidate) is None:
                return candidate

    def add(self, target):
        if self.get(target.id) is not None:
            raise ValueError(f"Duplicate target id: {target.id}")
        target.elements.validate()
        self.targets.append(target)
        logger.info(f"Added target {target.id} ({target.name})")
        return target

    def add_random(self, name=None, target_type=TargetType.SATELLITE):
        """
        Add a target on a random low orbit.

        The new element set has no epoch, so its mean anomaly of 0 is
        referenced to Unix time 0 (see OrbitalElements.epoch).
        """
        rng = self._rng
        elements = OrbitalElements.from_semi_major_axis(
            semi_major_axis=EARTH["radius_km"] + 400 + rng.random() * 1600,
            eccentricity=rng.random() * 0.1,
            inclination=rng.random() * 90,
            raan=rng.random() * 360,
            arg_perigee=rng.random() * 360,
            mean_anomaly=0.0,
        )
        target = Target(
            id=self._unique_id(),
            name=name or f"UNNAMED-{rng.randint(0, 99)}",
            type=target_type,
            elements=elements,
            risk=RiskLevel.LOW,
            group='NEW_ENTRY',
        )
        return self.add(target)

    def remove(self, target_id):
        """Remove a target; clears the selection if it pointed at it."""
        before = len(self.targets)
        self.targets = [t for t in self.targets if t.id != target_id]
        if self.selected_id == target_id:
            self.selected_id = None
        removed = len(self.targets) < before
        if removed:
            logger.info(f"Removed target {target_id}")
        return removed

    def begin_edit(self, target_id):
        target = self.get(target_id)
        if target is None:
            raise KeyError(target_id)
        return TargetDraft(target_id=target.id, elements=target.elements.copy(),
                           risk=target.risk, group=target.group)

    def commit_edit(self, draft):
        """
        Apply a draft to its target.

        Raises:
            KeyError: the target was removed meanwhile
            InvalidElementsError: the drafted elements are degenerate
        """
        target = self.get(draft.target_id)
        if target is None:
            raise KeyError(draft.target_id)
        draft.elements.validate()
        target.elements = replace(draft.elements)
        target.risk = draft.risk
        target.group = draft.group or None
        target.last_update = datetime.now(timezone.utc).isoformat()
        logger.info(f"Committed edit for {target.id}")
        return target

    def import_tle(self, text, target_type=TargetType.SATELLITE, group='TLE_IMPORT'):
        """
        Import every parsable element set from a TLE document.

        Malformed records are skipped and reported in ImportResult.failed.
        """
        parsed = parse_bulk_tle(text)
        result = ImportResult(failed=list(parsed.failed))
        for record in parsed.records:
            target = Target(
                id=self._unique_id(),
                name=record.name,
                type=target_type,
                elements=record.elements,
                risk=RiskLevel.LOW,
                group=group,
                tle_lines=(record.line1, record.line2),
                description=f"NORAD {record.line1[2:7].strip()} from TLE import",
            )
            self.add(target)
            result.added.append(target)
        return result
