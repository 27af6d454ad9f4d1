"""
Unit Tests for the Tracking Loop

Uses a hand-driven clock and a no-op sleep, so nothing waits on wall time.

Run with:
    python -m pytest tests/test_tracker.py -v
"""

import unittest
from datetime import timedelta
from unittest import mock

import requests

from orbit_tracker.exceptions import PropagationError, TLEFetchError
from orbit_tracker.ground_track import GroundTrack
from orbit_tracker.propagator import OrbitPropagator
from orbit_tracker.tle_parser import parse_tle
from orbit_tracker.tle_provider import N2YOTLEProvider, StaticTLEProvider, TLEProvider
from orbit_tracker.tracker import SatelliteTracker, TrackerStatus

ISS_LINE1 = "1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995"
ISS_LINE2 = "2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598"


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class TrackerTestCase(unittest.TestCase):

    def setUp(self):
        self.elements = parse_tle(ISS_LINE1, ISS_LINE2, "ISS (ZARYA)")
        self.clock = FakeClock(self.elements.epoch)
        self.sleeps = []

    def make_tracker(self, **kwargs):
        kwargs.setdefault("elements", self.elements)
        kwargs.setdefault("ground_track", GroundTrack(max_points=10))
        kwargs.setdefault("interval_seconds", 1.0)
        kwargs.setdefault("stale_after_days", 7.0)
        kwargs.setdefault("max_consecutive_failures", 0)
        return SatelliteTracker(clock=self.clock, **kwargs)

    def failing_propagator(self, outcomes):
        """Propagator returning or raising each of ``outcomes`` in turn."""
        propagator = mock.Mock(spec=OrbitPropagator)
        propagator.propagate.side_effect = outcomes
        return propagator


class TestTracking(TrackerTestCase):
    """Successful ticks"""

    def test_tick_produces_fix(self):
        tracker = self.make_tracker()
        self.assertEqual(tracker.status, TrackerStatus.IDLE)

        fix = tracker.tick()

        self.assertEqual(tracker.status, TrackerStatus.TRACKING)
        self.assertIs(tracker.last_fix, fix)
        self.assertEqual(fix.timestamp, self.elements.epoch)
        self.assertEqual(tracker.ground_track.points, [fix.lon_lat])

    def test_ground_track_is_bounded(self):
        tracker = self.make_tracker(ground_track=GroundTrack(max_points=5))
        for _ in range(12):
            tracker.tick()
            self.clock.advance(minutes=1)

        self.assertEqual(len(tracker.ground_track), 5)
        self.assertEqual(tracker.ground_track.latest, tracker.last_fix.lon_lat)

    def test_snapshot(self):
        tracker = self.make_tracker()
        fix = tracker.tick()

        snapshot = tracker.snapshot()

        self.assertEqual(snapshot["norad_id"], 25544)
        self.assertEqual(snapshot["name"], "ISS (ZARYA)")
        self.assertEqual(snapshot["status"], "TRACKING")
        self.assertEqual(snapshot["lat"], fix.latitude)
        self.assertEqual(snapshot["lng"], fix.longitude)
        self.assertEqual(snapshot["altitude"], fix.altitude_km)
        self.assertEqual(snapshot["velocity"], fix.speed_kms)
        self.assertAlmostEqual(snapshot["period"], self.elements.period_minutes)
        self.assertFalse(snapshot["stale"])
        self.assertIsNone(snapshot["error"])
        self.assertEqual(snapshot["ground_track"], [fix.lon_lat])

    def test_elements_loaded_from_provider(self):
        provider = StaticTLEProvider()
        tracker = self.make_tracker(elements=None, provider=provider)
        self.clock.now = provider.fetch().epoch

        fix = tracker.tick()

        self.assertIsNotNone(fix)
        self.assertEqual(tracker.elements.norad_id, 25544)
        self.assertEqual(tracker.elements.epoch.year, 2024)

    def test_run_sleeps_between_ticks(self):
        tracker = self.make_tracker(interval_seconds=2.5)
        updates = []

        ticks = tracker.run(max_ticks=3, on_update=updates.append, sleep=self.sleeps.append)

        self.assertEqual(ticks, 3)
        self.assertEqual(len(updates), 3)
        self.assertEqual(self.sleeps, [2.5, 2.5])
        self.assertEqual(updates[-1]["status"], "TRACKING")

    def test_manual_stop_is_not_an_error(self):
        tracker = self.make_tracker()

        with self.assertLogs("orbit_tracker.tracker", level="INFO") as logs:
            ticks = tracker.run(max_ticks=5, on_update=lambda _: tracker.stop(),
                                sleep=self.sleeps.append)

        self.assertEqual(ticks, 1)
        self.assertEqual(tracker.status, TrackerStatus.STOPPED)
        self.assertFalse(any(line.startswith("ERROR") for line in logs.output))
        self.assertIn("Tracking stopped", logs.output[-1])

    def test_stop(self):
        propagator = self.failing_propagator([])
        tracker = self.make_tracker(propagator=propagator)

        tracker.stop()

        self.assertIsNone(tracker.tick())
        self.assertEqual(tracker.status, TrackerStatus.STOPPED)
        propagator.propagate.assert_not_called()


class TestFailedTicks(TrackerTestCase):
    """Pause on error, keep the last fix, resume on success"""

    def setUp(self):
        super().setUp()
        self.good_fix = OrbitPropagator().propagate(self.elements, self.elements.epoch)
        self.error = PropagationError("SGP4 error 3: Perturbed eccentricity < 0.0 or > 1.0", error_code=3)

    def test_failure_keeps_last_fix(self):
        tracker = self.make_tracker(propagator=self.failing_propagator([self.good_fix, self.error]))

        tracker.tick()
        result = tracker.tick()

        self.assertIs(result, self.good_fix)
        self.assertEqual(tracker.status, TrackerStatus.PAUSED)
        self.assertIs(tracker.last_error, self.error)
        self.assertEqual(len(tracker.ground_track), 1)
        self.assertIn("eccentricity", tracker.snapshot()["error"])
        self.assertEqual(tracker.snapshot()["lat"], self.good_fix.latitude)

    def test_failure_logged_once(self):
        tracker = self.make_tracker(propagator=self.failing_propagator([self.error] * 3))

        with self.assertLogs("orbit_tracker.tracker", level="WARNING") as logs:
            for _ in range(3):
                tracker.tick()

        self.assertEqual(len(logs.output), 1)
        self.assertIn("Tracking paused", logs.output[0])
        self.assertEqual(tracker.consecutive_failures, 3)

    def test_resume_after_failure(self):
        tracker = self.make_tracker(
            propagator=self.failing_propagator([self.error, self.error, self.good_fix])
        )

        tracker.tick()
        tracker.tick()
        with self.assertLogs("orbit_tracker.tracker", level="INFO") as logs:
            fix = tracker.tick()

        self.assertIs(fix, self.good_fix)
        self.assertEqual(tracker.status, TrackerStatus.TRACKING)
        self.assertEqual(tracker.consecutive_failures, 0)
        self.assertIsNone(tracker.last_error)
        self.assertIn("resumed", logs.output[0])

    def test_stops_after_consecutive_failures(self):
        tracker = self.make_tracker(
            propagator=self.failing_propagator([self.error] * 10),
            max_consecutive_failures=3,
        )

        with self.assertLogs("orbit_tracker.tracker", level="ERROR"):
            ticks = tracker.run(max_ticks=10, sleep=self.sleeps.append)

        self.assertEqual(ticks, 3)
        self.assertEqual(tracker.status, TrackerStatus.STOPPED)
        self.assertEqual(len(self.sleeps), 2)

    def test_decayed_orbit_stops_at_once(self):
        decayed = PropagationError("SGP4 error 6: Satellite has decayed", error_code=6)
        tracker = self.make_tracker(propagator=self.failing_propagator([self.good_fix, decayed]))

        with self.assertLogs("orbit_tracker.tracker", level="ERROR"):
            ticks = tracker.run(max_ticks=10, sleep=self.sleeps.append)

        self.assertEqual(ticks, 2)
        self.assertEqual(tracker.status, TrackerStatus.STOPPED)
        self.assertIs(tracker.last_fix, self.good_fix)

    def test_zero_disables_stopping(self):
        tracker = self.make_tracker(propagator=self.failing_propagator([self.error] * 5))

        ticks = tracker.run(max_ticks=5, sleep=self.sleeps.append)

        self.assertEqual(ticks, 5)
        self.assertEqual(tracker.status, TrackerStatus.PAUSED)

    def test_provider_failure_without_elements(self):
        provider = mock.Mock(spec=TLEProvider)
        provider.fetch.side_effect = TLEFetchError("CelesTrak request failed")
        tracker = self.make_tracker(elements=None, provider=provider)

        self.assertIsNone(tracker.tick())

        snapshot = tracker.snapshot()
        self.assertEqual(tracker.status, TrackerStatus.PAUSED)
        self.assertIsNone(snapshot["lat"])
        self.assertIsNone(snapshot["norad_id"])
        self.assertIn("CelesTrak", snapshot["error"])

    def test_malformed_provider_payload_does_not_crash_loop(self):
        response = mock.Mock()
        response.raise_for_status.return_value = None
        response.json.return_value = ["x"]
        session = mock.Mock(spec=requests.Session)
        session.get.return_value = response
        provider = N2YOTLEProvider(api_key="KEY", session=session)
        tracker = self.make_tracker(elements=None, provider=provider)

        ticks = tracker.run(max_ticks=3, sleep=self.sleeps.append)

        self.assertEqual(ticks, 3)
        self.assertEqual(tracker.status, TrackerStatus.PAUSED)
        self.assertIn("not a JSON object", tracker.snapshot()["error"])

    def test_refresh_failure_keeps_elements(self):
        provider = mock.Mock(spec=TLEProvider)
        provider.fetch.side_effect = TLEFetchError("down")
        tracker = self.make_tracker(provider=provider)

        self.assertFalse(tracker.refresh_elements())
        self.assertIs(tracker.elements, self.elements)


class TestStaleness(TrackerTestCase):
    """Element age checks"""

    def test_fresh_elements(self):
        tracker = self.make_tracker()
        self.clock.advance(days=6)
        self.assertFalse(tracker.is_stale())

    def test_stale_after_threshold(self):
        tracker = self.make_tracker()
        self.clock.advance(days=8)
        self.assertTrue(tracker.is_stale())

    def test_stale_before_epoch(self):
        tracker = self.make_tracker()
        self.clock.advance(days=-8)
        self.assertTrue(tracker.is_stale())

    def test_stale_warning_logged_once(self):
        tracker = self.make_tracker()
        self.clock.advance(days=10)

        with self.assertLogs("orbit_tracker.tracker", level="WARNING") as logs:
            tracker.tick()
            self.clock.advance(minutes=1)
            tracker.tick()

        self.assertEqual(len(logs.output), 1)
        self.assertIn("days from epoch", logs.output[0])
        self.assertEqual(tracker.status, TrackerStatus.TRACKING)
        self.assertTrue(tracker.snapshot()["stale"])

    def test_refresh_resets_warning(self):
        tracker = self.make_tracker(provider=StaticTLEProvider(ISS_LINE1, ISS_LINE2))
        self.clock.advance(days=10)

        with self.assertLogs("orbit_tracker.tracker", level="WARNING"):
            tracker.tick()
        self.assertTrue(tracker.refresh_elements())

        with self.assertLogs("orbit_tracker.tracker", level="WARNING") as logs:
            tracker.tick()
        self.assertIn("days from epoch", logs.output[0])


if __name__ == "__main__":
    unittest.main()
