"""
Orbit Tracker Demonstration

This script demonstrates the key capabilities of the orbit tracker package:
- Strict TLE parsing and validation
- SGP4 propagation to geodetic fixes (latitude, longitude, altitude, speed)
- Circular-orbit sandbox numbers from altitude alone
- The live tracking loop with a bounded ground track
- Optional plot of the ground track

Usage:
    python demo.py [--source {static,celestrak,n2yo}] [--ticks N] [--plot] [--verbose]

Arguments:
    --source: Where the element set comes from (default: static fallback TLE)
    --ticks: Number of simulated tracking ticks, one minute apart
    --plot: Save a ground-track plot (requires matplotlib)
    --verbose: Enable debug logging
"""

import argparse
import logging
from datetime import datetime, timedelta
from typing import Iterator, List, Tuple

import matplotlib.pyplot as plt

from orbit_tracker.exceptions import PropagationError
from orbit_tracker.ground_track import GroundTrack
from orbit_tracker.logging_config import configure_logging, get_logger
from orbit_tracker.models import OrbitalElementSet
from orbit_tracker.orbital_parameters import OrbitalParameterCalculator
from orbit_tracker.propagator import OrbitPropagator
from orbit_tracker.tle_provider import (
    CelesTrakTLEProvider,
    FallbackTLEProvider,
    N2YOTLEProvider,
    StaticTLEProvider,
    TLEProvider,
)
from orbit_tracker.tracker import SatelliteTracker

logger = get_logger(__name__)

SANDBOX_ALTITUDES_KM = [0, 200, 408, 1000, 2000, 20200, 35786]


def build_provider(source: str) -> TLEProvider:
    """Element-set provider for the chosen source, always backed by the static TLE."""
    if source == "celestrak":
        return FallbackTLEProvider(CelesTrakTLEProvider())
    if source == "n2yo":
        return FallbackTLEProvider(N2YOTLEProvider())
    return StaticTLEProvider()


def demonstrate_tle_parsing(elements: OrbitalElementSet) -> None:
    """
    Log the decoded fields of an element set.

    Parameters
    ----------
    elements : OrbitalElementSet
        Parsed element set
    """
    logger.info(f"Element set for {elements.name or elements.norad_id}")
    logger.debug(f"Line 1: {elements.line1}")
    logger.debug(f"Line 2: {elements.line2}")

    logger.info(f"NORAD ID: {elements.norad_id}")
    logger.info(f"Epoch: {elements.epoch.isoformat()}")
    logger.info(f"Inclination: {elements.inclination_deg:.4f} degrees")
    logger.info(f"RAAN: {elements.raan_deg:.4f} degrees")
    logger.info(f"Eccentricity: {elements.eccentricity:.7f}")
    logger.info(f"Argument of Perigee: {elements.arg_perigee_deg:.4f} degrees")
    logger.info(f"Mean Anomaly: {elements.mean_anomaly_deg:.4f} degrees")
    logger.info(f"Mean Motion: {elements.mean_motion_rev_per_day:.8f} rev/day")
    logger.info(f"Period: {elements.period_minutes:.2f} min")
    logger.info(f"B* Drag: {elements.bstar:.8e}")


def demonstrate_propagation(propagator: OrbitPropagator, elements: OrbitalElementSet) -> None:
    """
    Propagate at several offsets from epoch and log the geodetic fixes.

    Parameters
    ----------
    propagator : OrbitPropagator
        Propagator instance
    elements : OrbitalElementSet
        Parsed element set
    """
    time_offsets = [-60, 0, 30, 60, 90, 120]  # minutes

    logger.info("Geodetic fixes relative to epoch")

    for minutes in time_offsets:
        at_time = elements.epoch + timedelta(minutes=minutes)
        try:
            fix = propagator.propagate(elements, at_time)
        except PropagationError as e:
            logger.error(f"t={minutes:+4d}min: {e}")
            continue

        logger.info(
            f"t={minutes:+4d}min: "
            f"lat={fix.latitude:7.2f}° lon={fix.longitude:8.2f}° "
            f"alt={fix.altitude_km:7.1f}km v={fix.speed_kms:.3f}km/s"
        )


def demonstrate_sandbox(calculator: OrbitalParameterCalculator) -> None:
    """Log circular-orbit velocity and period for a range of altitudes."""
    logger.info("Circular orbit sandbox")

    for altitude in SANDBOX_ALTITUDES_KM:
        logger.info(
            f"h={altitude:6d}km: "
            f"v={calculator.circular_velocity(altitude):6.3f}km/s "
            f"T={calculator.circular_period(altitude):8.2f}min "
            f"rev/day={calculator.revolutions_per_day(altitude):6.2f} "
            f"{calculator.classify_orbit(altitude).value}"
            f"{' (drag-limited)' if calculator.is_drag_limited(altitude) else ''}"
        )


def simulated_clock(start: datetime, step: timedelta) -> Iterator[datetime]:
    current = start
    while True:
        yield current
        current += step


def demonstrate_tracking(elements: OrbitalElementSet, ticks: int) -> List[Tuple[float, float]]:
    """
    Run the tracking loop against a simulated clock starting at epoch, one
    minute per tick.

    Returns
    -------
    list of tuple
        Ground track points (longitude, latitude), oldest first
    """
    clock = simulated_clock(elements.epoch, timedelta(minutes=1))
    tracker = SatelliteTracker(
        elements=elements,
        ground_track=GroundTrack(max_points=ticks),
        clock=lambda: next(clock),
    )

    def report(snapshot):
        if snapshot["lat"] is None:
            logger.info(f"[{snapshot['status']}] no fix yet: {snapshot['error']}")
            return
        logger.debug(
            f"[{snapshot['status']}] {snapshot['timestamp']} "
            f"lat={snapshot['lat']:7.2f}° lng={snapshot['lng']:8.2f}° "
            f"alt={snapshot['altitude']:7.1f}km"
        )

    tracker.run(max_ticks=ticks, on_update=report, sleep=lambda _: None)

    snapshot = tracker.snapshot()
    logger.info(f"Tracking status: {snapshot['status']}, stale elements: {snapshot['stale']}")
    logger.info(f"Ground track holds {len(tracker.ground_track)} points")
    return tracker.ground_track.points


def plot_ground_track(points: List[Tuple[float, float]], output_file: str = "ground_track.png") -> None:
    """
    Plot the ground track on a longitude/latitude grid.

    Parameters
    ----------
    points : list of tuple
        (longitude, latitude) pairs, oldest first
    output_file : str
        Path of the saved figure
    """
    if len(points) < 2:
        logger.warning("Not enough points to plot a ground track")
        return

    lons, lats = zip(*points)

    fig, ax = plt.subplots(figsize=(12, 6))
    ax.scatter(lons, lats, c=range(len(points)), cmap="viridis", s=8)
    ax.plot(lons[-1], lats[-1], marker="o", color="red", markersize=8, label="Latest fix")
    ax.set_xlim(-180, 180)
    ax.set_ylim(-90, 90)
    ax.set_xlabel("Longitude (deg)")
    ax.set_ylabel("Latitude (deg)")
    ax.set_title("Satellite Ground Track")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="lower left")

    plt.tight_layout()
    plt.savefig(output_file, dpi=150, bbox_inches="tight")
    logger.info(f"Saved ground track plot to {output_file}")
    plt.close(fig)


def main() -> None:
    """Main demonstration entry point."""
    parser = argparse.ArgumentParser(
        description="Orbit Tracker Demonstration"
    )
    parser.add_argument(
        "--source", choices=["static", "celestrak", "n2yo"], default="static",
        help="Element set source"
    )
    parser.add_argument("--ticks", type=int, default=95, help="Simulated tracking ticks")
    parser.add_argument("--plot", action="store_true", help="Save a ground track plot")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    configure_logging(level=logging.DEBUG if args.verbose else None)

    logger.info("Orbit Tracker Demonstration")
    logger.info("=" * 60)

    provider = build_provider(args.source)
    elements = provider.fetch()

    demonstrate_tle_parsing(elements)

    logger.info("")
    demonstrate_propagation(OrbitPropagator(), elements)

    logger.info("")
    demonstrate_sandbox(OrbitalParameterCalculator())

    logger.info("")
    points = demonstrate_tracking(elements, args.ticks)

    if args.plot:
        plot_ground_track(points)

    logger.info("=" * 60)
    logger.info("Demonstration complete")


if __name__ == "__main__":
    main()
