"""
Live satellite tracking loop.

``SatelliteTracker`` is the scheduling wrapper around the pure propagator:
it polls ``OrbitPropagator.propagate`` on a fixed cadence, keeps the last
known fix, feeds the ground track and decides what a failed tick means.

Failure policy:
- A failed tick (ParseError, PropagationError, TLEFetchError) is logged once,
  pauses tracking and leaves the last known fix in place.
- The next scheduled tick simply tries again.
- After ``max_consecutive_failures`` failed ticks in a row the tracker stops
  and ``run`` returns.
- A decayed or sub-orbital element set stops the tracker at once.
"""

import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

from orbit_tracker.config import config
from orbit_tracker.exceptions import ParseError, PropagationError, TLEFetchError
from orbit_tracker.ground_track import GroundTrack
from orbit_tracker.models import GeodeticFix, OrbitalElementSet
from orbit_tracker.propagator import OrbitPropagator
from orbit_tracker.tle_provider import StaticTLEProvider, TLEProvider

logger = logging.getLogger(__name__)

# SGP4 codes for sub-orbital or decayed elements
DECAYED_ERROR_CODES = (5, 6)


class TrackerStatus(Enum):
    """Tracking loop states"""

    IDLE = "IDLE"
    TRACKING = "TRACKING"
    PAUSED = "PAUSED"
    STOPPED = "STOPPED"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SatelliteTracker:
    """
    Polls the propagator for one satellite and tolerates failed ticks.

    Features:
    - Element sets come from a ``TLEProvider`` (static ISS fallback by default)
    - Last known fix survives failed ticks
    - Bounded ground track of recent sub-satellite points
    - Warning when the element set is older than the staleness threshold
    """

    def __init__(
        self,
        elements: Optional[OrbitalElementSet] = None,
        provider: Optional[TLEProvider] = None,
        propagator: Optional[OrbitPropagator] = None,
        ground_track: Optional[GroundTrack] = None,
        interval_seconds: Optional[float] = None,
        stale_after_days: Optional[float] = None,
        max_consecutive_failures: Optional[int] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """
        Initialize the tracker.

        Args:
            elements: Initial element set; fetched from ``provider`` when omitted
            provider: Source of fresh element sets
            propagator: Propagator to poll
            ground_track: Buffer receiving each new fix
            interval_seconds: Polling cadence for ``run``
            stale_after_days: Element age that triggers a staleness warning
            max_consecutive_failures: Failed ticks in a row before stopping
            clock: Returns the current instant
        """
        self.provider = provider or StaticTLEProvider()
        self.propagator = propagator or OrbitPropagator()
        self.ground_track = ground_track if ground_track is not None else GroundTrack()
        self.interval_seconds = (config.TRACKING_INTERVAL_SECONDS
                                 if interval_seconds is None else interval_seconds)
        self.stale_after_days = (config.TLE_STALE_AFTER_DAYS
                                 if stale_after_days is None else stale_after_days)
        self.max_consecutive_failures = (config.TRACKER_MAX_CONSECUTIVE_FAILURES
                                         if max_consecutive_failures is None
                                         else max_consecutive_failures)
        self._clock = clock

        self.elements = elements
        self.last_fix: Optional[GeodeticFix] = None
        self.last_error: Optional[Exception] = None
        self.status = TrackerStatus.IDLE
        self.consecutive_failures = 0
        self._stale_warned = False

    @property
    def period_minutes(self) -> Optional[float]:
        """Orbital period implied by the current element set."""
        return self.elements.period_minutes if self.elements is not None else None

    def is_stale(self, at_time: Optional[datetime] = None) -> bool:
        if self.elements is None:
            return False
        age = self.elements.age_days(at_time or self._clock())
        return abs(age) > self.stale_after_days

    def refresh_elements(self) -> bool:
        """
        Replace the element set with a fresh one from the provider.

        Returns:
            True if new elements were loaded; on failure the current set is kept
        """
        try:
            elements = self.provider.fetch()
        except (TLEFetchError, ParseError) as e:
            logger.warning(f"Could not refresh element set: {e}")
            self.last_error = e
            return False

        self.elements = elements
        self._stale_warned = False
        logger.info(f"Loaded element set for {elements.name or elements.norad_id} "
                    f"(epoch {elements.epoch.isoformat()})")
        return True

    def tick(self, at_time: Optional[datetime] = None) -> Optional[GeodeticFix]:
        """
        Run one tracking step.

        Returns:
            The new fix, or the last known fix (possibly None) if this tick failed
        """
        if self.status is TrackerStatus.STOPPED:
            return self.last_fix

        if self.elements is None and not self.refresh_elements():
            self._fail(self.last_error)
            return self.last_fix

        at_time = at_time or self._clock()
        self._check_staleness(at_time)

        try:
            fix = self.propagator.propagate(self.elements, at_time)
        except PropagationError as e:
            self._fail(e)
            if e.error_code in DECAYED_ERROR_CODES:
                # no later instant can succeed for these elements
                self.status = TrackerStatus.STOPPED
            return self.last_fix

        if self.status is TrackerStatus.PAUSED:
            logger.info(f"Tracking resumed for {self.elements.norad_id}")

        self.last_fix = fix
        self.last_error = None
        self.consecutive_failures = 0
        self.status = TrackerStatus.TRACKING
        self.ground_track.append(fix)
        return fix

    def run(self, max_ticks: Optional[int] = None,
            on_update: Optional[Callable[[Dict[str, Any]], None]] = None,
            sleep: Callable[[float], None] = time.sleep) -> int:
        """
        Poll until stopped or ``max_ticks`` ticks have run.

        Args:
            max_ticks: Number of ticks to run (default: until stopped)
            on_update: Called with ``snapshot()`` after every tick
            sleep: Waits between ticks

        Returns:
            Number of ticks run
        """
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            self.tick()
            ticks += 1

            if on_update is not None:
                on_update(self.snapshot())

            if self.status is TrackerStatus.STOPPED:
                if self.last_error is not None:
                    logger.error(f"Tracking stopped after {self.consecutive_failures} "
                                 f"consecutive failures: {self.last_error}")
                else:
                    logger.info("Tracking stopped")
                break

            if max_ticks is None or ticks < max_ticks:
                sleep(self.interval_seconds)

        return ticks

    def stop(self) -> None:
        self.status = TrackerStatus.STOPPED

    def snapshot(self) -> Dict[str, Any]:
        """Plain-value view of the tracker for the presentation layer."""
        fix = self.last_fix
        return {
            "norad_id": self.elements.norad_id if self.elements is not None else None,
            "name": self.elements.name if self.elements is not None else None,
            "status": self.status.value,
            "timestamp": fix.timestamp.isoformat() if fix else None,
            "lat": fix.latitude if fix else None,
            "lng": fix.longitude if fix else None,
            "altitude": fix.altitude_km if fix else None,
            "velocity": fix.speed_kms if fix else None,
            "period": self.period_minutes,
            "stale": self.is_stale(),
            "error": str(self.last_error) if self.last_error else None,
            "ground_track": self.ground_track.points,
        }

    def _fail(self, error: Optional[Exception]) -> None:
        self.last_error = error
        self.consecutive_failures += 1

        if self.status is not TrackerStatus.PAUSED:
            logger.warning(f"Tracking paused: {error}")
        self.status = TrackerStatus.PAUSED

        if self.max_consecutive_failures and self.consecutive_failures >= self.max_consecutive_failures:
            self.status = TrackerStatus.STOPPED

    def _check_staleness(self, at_time: datetime) -> None:
        if self._stale_warned or not self.is_stale(at_time):
            return
        self._stale_warned = True
        logger.warning(
            f"Element set for {self.elements.norad_id} is "
            f"{self.elements.age_days(at_time):.1f} days from epoch "
            f"(threshold {self.stale_after_days:g} days); positions may be inaccurate"
        )
