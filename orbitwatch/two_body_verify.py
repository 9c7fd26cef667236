"""
Two-body vs SGP4 verification
Propagates one TLE with the dashboard's two-body engine and with Skyfield's
SGP4, writes the drift table to CSV and plots it.
"""

import argparse
import logging
import os
import sys
from datetime import datetime, timedelta, timezone

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from skyfield.api import EarthSatellite, load, wgs84

from orbitwatch.frames import EARTH_RADIUS_KM, eci_to_ecef, ecef_to_geodetic, gmst
from orbitwatch.orbital_mechanics import OrbitalMechanics
from orbitwatch.tle_parser import parse_bulk_tle

logger = logging.getLogger(__name__)


def read_tle_from_file(tle_file, catalog=None):
    """
    First element set in a TLE file, or the one with the given catalog number.

    Returns:
        TLERecord
    """
    with open(tle_file, 'r') as f:
        result = parse_bulk_tle(f.read())

    for record in result.records:
        if catalog is None or record.line1[2:7].strip() == str(catalog):
            return record

    where = f"catalog {catalog}" if catalog is not None else "any valid element set"
    raise ValueError(f"No {where} found in {tle_file}")


def compare_propagation(record, hours=6.0, step_s=60.0):
    """
    Sample both propagators from the TLE epoch onward.

    Returns:
        DataFrame with one row per sample: positions (km, inertial), position
        error, and sub-satellite points / altitudes from each model
    """
    ts = load.timescale()
    satellite = EarthSatellite(record.line1, record.line2, record.name, ts)

    epoch = satellite.epoch.utc_datetime()
    num_samples = int(hours * 3600 / step_s) + 1
    times = [epoch + timedelta(seconds=k * step_s) for k in range(num_samples)]

    # SGP4 via Skyfield (GCRS, km)
    geocentric = satellite.at(ts.from_datetimes(times))
    sgp4_pos = geocentric.position.km.T
    sgp4_sub = wgs84.subpoint_of(geocentric)
    sgp4_alt = wgs84.height_of(geocentric).km

    # Two-body from the same element set
    elements = record.elements
    tb_pos = np.zeros((num_samples, 3))
    tb_lat = np.zeros(num_samples)
    tb_lon = np.zeros(num_samples)
    tb_alt = np.zeros(num_samples)
    for k, t in enumerate(times):
        t_ms = t.timestamp() * 1000.0
        state = OrbitalMechanics.state_vector(elements, t_ms)
        tb_pos[k] = state.position
        tb_lat[k], tb_lon[k], tb_alt[k] = ecef_to_geodetic(eci_to_ecef(state.position, gmst(t_ms)))

    error_km = np.linalg.norm(tb_pos - sgp4_pos, axis=1)
    lon_diff = (tb_lon - sgp4_sub.longitude.degrees + 180.0) % 360.0 - 180.0

    df = pd.DataFrame({
        'timestamp': times,
        'minutes': [k * step_s / 60.0 for k in range(num_samples)],
        'satellite': record.name,
        'twobody_x_km': tb_pos[:, 0],
        'twobody_y_km': tb_pos[:, 1],
        'twobody_z_km': tb_pos[:, 2],
        'sgp4_x_km': sgp4_pos[:, 0],
        'sgp4_y_km': sgp4_pos[:, 1],
        'sgp4_z_km': sgp4_pos[:, 2],
        'position_error_km': error_km,
        'twobody_lat_deg': tb_lat,
        'twobody_lon_deg': tb_lon,
        'sgp4_lat_deg': sgp4_sub.latitude.degrees,
        'sgp4_lon_deg': sgp4_sub.longitude.degrees,
        'lon_diff_deg': lon_diff,
        'twobody_alt_km': tb_alt,
        'sgp4_alt_km': sgp4_alt,
    })
    return df


def plot_comparison(df, output_file):
    """Position drift and ground-track latitude for both models."""
    fig, (ax_err, ax_lat) = plt.subplots(2, 1, figsize=(10, 8), sharex=True)
    name = df['satellite'].iloc[0] if len(df) else ''

    ax_err.plot(df['minutes'], df['position_error_km'], 'r-', linewidth=1.5)
    ax_err.set_ylabel('Position difference (km)')
    ax_err.set_title(f'Two-body vs SGP4 - {name}')
    ax_err.grid(True, alpha=0.4, linestyle='--')

    ax_lat.plot(df['minutes'], df['sgp4_lat_deg'], 'c-', linewidth=1.5, label='SGP4')
    ax_lat.plot(df['minutes'], df['twobody_lat_deg'], 'm--', linewidth=1.0, label='Two-body')
    ax_lat.set_xlabel('Minutes from TLE epoch')
    ax_lat.set_ylabel('Sub-satellite latitude (°)')
    ax_lat.legend(loc='upper right', fontsize=8)
    ax_lat.grid(True, alpha=0.4, linestyle='--')

    fig.tight_layout()
    fig.savefig(output_file, dpi=100, bbox_inches='tight')
    plt.close(fig)
    return output_file


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Compare two-body propagation against SGP4")
    parser.add_argument("tle_file", help="TLE file (2- or 3-line format)")
    parser.add_argument("--catalog", help="Catalog number to pick from the file")
    parser.add_argument("--hours", type=float, default=6.0, help="Propagation span from epoch")
    parser.add_argument("--step", type=float, default=60.0, help="Sample step in seconds")
    parser.add_argument("--csv", help="Output CSV path (default: <name>_twobody_vs_sgp4.csv)")
    parser.add_argument("--plot", help="Output PNG path (default: <name>_twobody_vs_sgp4.png)")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    try:
        record = read_tle_from_file(args.tle_file, args.catalog)
    except (OSError, ValueError) as e:
        print(f"Error reading TLE: {e}")
        return 1

    print(f"Processing satellite: {record.name}")
    print(f"TLE Epoch: {datetime.fromtimestamp(record.elements.epoch / 1000.0, tz=timezone.utc)}")
    print(f"Semi-major axis: {record.elements.semi_major_axis:.1f} km "
          f"(altitude {record.elements.semi_major_axis - EARTH_RADIUS_KM:.1f} km)")

    df = compare_propagation(record, hours=args.hours, step_s=args.step)

    stem = "".join(c if c.isalnum() else "_" for c in record.name).strip("_") or "tle"
    csv_path = args.csv or f"{stem}_twobody_vs_sgp4.csv"
    plot_path = args.plot or f"{stem}_twobody_vs_sgp4.png"

    df.to_csv(csv_path, index=False)
    plot_comparison(df, plot_path)

    err = df['position_error_km']
    print(f"\nPosition difference over {args.hours:g} h ({len(df)} samples):")
    print(f"  At epoch: {err.iloc[0]:.1f} km")
    print(f"  Mean:     {err.mean():.1f} km")
    print(f"  Max:      {err.max():.1f} km")
    print(f"  Final:    {err.iloc[-1]:.1f} km")
    print(f"\nSaved table to {os.path.abspath(csv_path)}")
    print(f"Saved plot to {os.path.abspath(plot_path)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
