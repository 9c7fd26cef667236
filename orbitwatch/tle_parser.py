"""
Two-line element (TLE) parsing
Fixed-column parsing of single element sets and bulk TLE documents
(2-line or 3-line with a name line, any line-ending style).
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from orbitwatch.orbital_mechanics import (
    InvalidElementsError,
    OrbitalElements,
    OrbitalMechanics,
)

logger = logging.getLogger(__name__)

_ECC_DIGITS = re.compile(r"^\d{1,7}$")


class TLEParseError(ValueError):
    """Raised when a TLE line pair is malformed."""


@dataclass
class TLERecord:
    name: str
    line1: str
    line2: str
    elements: OrbitalElements


@dataclass
class BulkParseResult:
    records: List[TLERecord] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)  # names of skipped pairs

    @property
    def parsed_count(self):
        return len(self.records)


def _field(line, start, end, label):
    text = line[start:end].strip()
    if not text:
        raise TLEParseError(f"empty {label} field")
    try:
        return float(text)
    except ValueError:
        raise TLEParseError(f"non-numeric {label} field: {text!r}")


def tle_epoch_ms(year_2digit, day_of_year):
    """Epoch as Unix ms. Two-digit years below 57 are 20xx, otherwise 19xx."""
    year = 2000 + year_2digit if year_2digit < 57 else 1900 + year_2digit
    # Day 1.0 is January 1st, 00:00 UTC
    start = datetime(year, 1, 1, tzinfo=timezone.utc) - timedelta(days=1)
    epoch = start + timedelta(days=day_of_year)
    return epoch.timestamp() * 1000.0


def parse_tle_strict(line1: str, line2: str, color: str = "#ffffff") -> OrbitalElements:
    """
    Parse a TLE line pair into an element set.

    Args:
        line1: First TLE line
        line2: Second TLE line
        color: Display color for the resulting element set

    Returns:
        OrbitalElements with epoch, angles (deg), eccentricity, mean motion
        (rev/day) and semi-major axis derived from mean motion

    Raises:
        TLEParseError: malformed line pair or degenerate elements
    """
    line1 = (line1 or "").strip()
    line2 = (line2 or "").strip()

    if not line1.startswith("1") or not line2.startswith("2"):
        raise TLEParseError("line markers must be '1' and '2'")
    if len(line1) < 32:
        raise TLEParseError(f"line 1 too short ({len(line1)} chars)")
    if len(line2) < 63:
        raise TLEParseError(f"line 2 too short ({len(line2)} chars)")

    year_text = line1[18:20].strip()
    if not year_text.isdigit():
        raise TLEParseError(f"bad epoch year: {year_text!r}")
    epoch_day = _field(line1, 20, 32, "epoch day")

    inclination = _field(line2, 8, 16, "inclination")
    raan = _field(line2, 17, 25, "RAAN")
    ecc_text = line2[26:33].strip()
    if not _ECC_DIGITS.match(ecc_text):
        raise TLEParseError(f"bad eccentricity field: {ecc_text!r}")
    eccentricity = float("0." + ecc_text)
    arg_perigee = _field(line2, 34, 42, "argument of perigee")
    mean_anomaly = _field(line2, 43, 51, "mean anomaly")
    mean_motion = _field(line2, 52, 63, "mean motion")

    if mean_motion <= 0:
        raise TLEParseError(f"mean motion must be positive, got {mean_motion}")

    elements = OrbitalElements.from_mean_motion(
        mean_motion=mean_motion,
        eccentricity=eccentricity,
        inclination=inclination,
        raan=raan,
        arg_perigee=arg_perigee,
        mean_anomaly=mean_anomaly,
        epoch=tle_epoch_ms(int(year_text), epoch_day),
        color=color,
    )
    try:
        elements.validate()
    except InvalidElementsError as e:
        raise TLEParseError(str(e))
    return elements


def parse_tle(line1: str, line2: str, color: str = "#ffffff") -> Optional[OrbitalElements]:
    """Parse a TLE line pair; returns None (and logs) instead of raising."""
    try:
        return parse_tle_strict(line1, line2, color=color)
    except TLEParseError as e:
        logger.warning(f"TLE parse error: {e}")
        return None


def _is_element_line(line):
    return line.startswith("1 ") or line.startswith("2 ")


def iter_tle_records(text: str):
    """
    Scan a TLE document for element-set line pairs.

    A line starting with '1 ' directly followed by one starting with '2 ' is a
    pair; a preceding non-element line is taken as the object name.

    Yields:
        (name, line1, line2) tuples, unparsed
    """
    lines = [line.strip() for line in re.split(r"\r?\n", text or "")]
    lines = [line for line in lines if line]

    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("1 ") and i + 1 < len(lines) and lines[i + 1].startswith("2 "):
            if i > 0 and not _is_element_line(lines[i - 1]):
                name = lines[i - 1]
                # 3-line catalogues sometimes prefix names with '0 '
                if name.startswith("0 "):
                    name = name[2:].strip()
            else:
                catalog = line[2:7].strip() or str(i)
                name = f"TLE_OBJ_{catalog}"
            yield name, line, lines[i + 1]
            i += 2
        else:
            i += 1


def parse_bulk_tle(text: str) -> BulkParseResult:
    """Parse every element set in a document; malformed pairs are skipped."""
    result = BulkParseResult()
    for name, line1, line2 in iter_tle_records(text):
        try:
            elements = parse_tle_strict(line1, line2)
        except TLEParseError as e:
            logger.warning(f"Skipping {name}: {e}")
            result.failed.append(name)
            continue
        result.records.append(TLERecord(name=name, line1=line1, line2=line2, elements=elements))

    logger.info(f"Parsed {result.parsed_count} element sets ({len(result.failed)} skipped)")
    return result
