from datetime import datetime, timezone

import numpy as np
import pytest

from orbitwatch.orbital_mechanics import OrbitalMechanics
from orbitwatch.tle_parser import (
    TLEParseError,
    iter_tle_records,
    parse_bulk_tle,
    parse_tle,
    parse_tle_strict,
    tle_epoch_ms,
)
from tests.conftest import ISS_LINE1, ISS_LINE2, ISS_NAME

BAD_LINE2 = ISS_LINE2[:8] + "  ABCDEF" + ISS_LINE2[16:]


def test_iss_reference_fields(iss_lines):
    e = parse_tle(*iss_lines)
    assert e is not None
    assert e.inclination == pytest.approx(51.6416)
    assert e.raan == pytest.approx(247.4627)
    assert e.eccentricity == pytest.approx(0.0006703)
    assert e.arg_perigee == pytest.approx(130.5360)
    assert e.mean_anomaly == pytest.approx(325.0288)
    assert e.mean_motion == pytest.approx(15.72125391)


def test_iss_semi_major_axis_matches_mean_motion(iss_lines):
    e = parse_tle(*iss_lines)
    n_rad_s = 15.72125391 * 2 * np.pi / 86400.0
    expected = (398600.4418 / n_rad_s ** 2) ** (1.0 / 3.0)
    assert abs(e.semi_major_axis - expected) < 0.1
    assert 6700 < e.semi_major_axis < 6760


def test_iss_epoch(iss_lines):
    e = parse_tle(*iss_lines)
    expected = datetime(2008, 9, 20, 12, 25, 40, 104000, tzinfo=timezone.utc).timestamp() * 1000
    assert e.epoch == pytest.approx(expected, abs=1.0)


def test_epoch_year_pivot():
    assert datetime.fromtimestamp(tle_epoch_ms(56, 1.0) / 1000, tz=timezone.utc).year == 2056
    assert datetime.fromtimestamp(tle_epoch_ms(57, 1.0) / 1000, tz=timezone.utc).year == 1957
    jan1 = datetime(2024, 1, 1, tzinfo=timezone.utc).timestamp() * 1000
    assert tle_epoch_ms(24, 1.0) == pytest.approx(jan1)
    assert tle_epoch_ms(24, 1.5) == pytest.approx(jan1 + 12 * 3600 * 1000)


def test_surrounding_whitespace_tolerated():
    e = parse_tle("   " + ISS_LINE1 + "  \n", "\t" + ISS_LINE2 + "   ")
    assert e is not None
    assert e.mean_motion == pytest.approx(15.72125391)


@pytest.mark.parametrize("line1, line2", [
    (ISS_LINE1[:20], ISS_LINE2),                    # truncated line 1
    (ISS_LINE1, ISS_LINE2[:40]),                    # truncated line 2
    (ISS_LINE2, ISS_LINE1),                         # swapped markers
    (ISS_LINE1, BAD_LINE2),                         # non-numeric inclination
    (ISS_LINE1, ISS_LINE2[:26] + "00A6703" + ISS_LINE2[33:]),   # bad eccentricity digits
    (ISS_LINE1, ISS_LINE2[:52] + " 0.00000000" + ISS_LINE2[63:]),  # zero mean motion
    ("", ""),
])
def test_malformed_returns_none(line1, line2):
    assert parse_tle(line1, line2) is None


def test_strict_form_raises():
    with pytest.raises(TLEParseError):
        parse_tle_strict(ISS_LINE1, BAD_LINE2)


def test_iter_records_names_and_fallback():
    text = "\r\n".join([
        "0 " + ISS_NAME, ISS_LINE1, ISS_LINE2,
        ISS_LINE1, ISS_LINE2,
    ])
    records = list(iter_tle_records(text))
    assert [r[0] for r in records] == [ISS_NAME, "TLE_OBJ_25544"]
    assert records[0][1] == ISS_LINE1
    assert records[0][2] == ISS_LINE2


def test_bulk_parse_skips_malformed():
    text = "\n".join([
        ISS_NAME, ISS_LINE1, ISS_LINE2,
        "BROKEN SAT", ISS_LINE1, BAD_LINE2,
        "", "ISS COPY", ISS_LINE1, ISS_LINE2,
        "stray text",
    ])
    result = parse_bulk_tle(text)
    assert result.parsed_count == 2
    assert [r.name for r in result.records] == [ISS_NAME, "ISS COPY"]
    assert result.failed == ["BROKEN SAT"]
    assert result.records[0].elements.semi_major_axis == pytest.approx(
        OrbitalMechanics.sma_from_mean_motion(15.72125391))


def test_bulk_parse_empty_document():
    result = parse_bulk_tle("")
    assert result.parsed_count == 0
    assert result.failed == []
