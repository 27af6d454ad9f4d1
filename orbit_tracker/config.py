"""
Orbit Tracker Configuration and Constants

This module contains the reference-body constants, the fallback TLE and the
environment-driven settings used throughout the project.

Constants:
    Earth gravitational parameter and mean radius used by the analytic
    circular-orbit helpers, plus the WGS-84 ellipsoid used to turn propagated
    positions into geodetic coordinates. Changing any of these changes every
    numeric output of the package.

    SGP4 itself runs on its own gravity model (WGS-72 by default, per
    Vallado et al. 2006, AAS 06-675); select it with SGP4_GRAVITY_MODEL.

Fallback TLE Data:
    Hardcoded ISS TLE used when no live element set can be fetched.

    IMPORTANT: Update this TLE data periodically for accuracy.
    - Low Earth Orbit (LEO) satellites: Update weekly
    - Medium Earth Orbit (MEO): Update monthly
    - Geostationary (GEO): Update quarterly

    Current TLE epoch: 2024-01-01

    Sources for updated TLEs:
    - CelesTrak.org (public access)
    - N2YO.com (requires API key)

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

import os
from typing import Dict, Any

# Earth reference constants (analytic helpers and derived element quantities)
EARTH_GM_KM3_S2: float = 398600.4418  # Earth gravitational parameter (km³/s²)
EARTH_MEAN_RADIUS_KM: float = 6371.0  # Earth mean radius (km)

# WGS-84 ellipsoid (geodetic conversion)
WGS84_EQUATORIAL_RADIUS_KM: float = 6378.137
WGS84_FLATTENING: float = 1.0 / 298.257223563

MINUTES_PER_DAY: float = 1440.0
SECONDS_PER_MINUTE: float = 60.0

# Orbit regime boundaries (km above mean radius)
LEO_MAX_ALTITUDE_KM: float = 2000.0
GEO_ALTITUDE_KM: float = 35786.0
GEO_TOLERANCE_KM: float = 200.0
DRAG_DECAY_ALTITUDE_KM: float = 300.0

# SGP4 switches to deep-space equations at this period
DEEP_SPACE_PERIOD_MINUTES: float = 225.0

# Fallback ISS TLE
# Last updated: 2024-01-01
FALLBACK_ISS_TLE: Dict[str, Any] = {
    'name': 'ISS (ZARYA)',
    'norad_id': 25544,
    'line1': '1 25544U 98067A   24001.50000000  .00016717  00000-0  10270-3 0  9009',
    'line2': '2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391428762',
    'epoch': '2024-01-01T12:00:00Z',
    'mean_motion': 15.72125391,
    'inclination': 51.6416,
    'eccentricity': 0.0006703
}


class TrackerConfig:
    """Runtime settings, read from the environment."""

    CELESTRAK_BASE = os.getenv('CELESTRAK_API_BASE', 'https://celestrak.org')
    N2YO_BASE = os.getenv('N2YO_API_BASE', 'https://api.n2yo.com/rest/v1/satellite')
    N2YO_API_KEY = os.getenv('N2YO_API_KEY', '')
    TLE_REQUEST_TIMEOUT = float(os.getenv('TLE_REQUEST_TIMEOUT', '30'))
    TRACKING_INTERVAL_SECONDS = float(os.getenv('TRACKING_INTERVAL_SECONDS', '1.0'))
    GROUND_TRACK_MAX_POINTS = int(os.getenv('GROUND_TRACK_MAX_POINTS', '100'))
    TLE_STALE_AFTER_DAYS = float(os.getenv('TLE_STALE_AFTER_DAYS', '7'))
    TRACKER_MAX_CONSECUTIVE_FAILURES = int(os.getenv('TRACKER_MAX_CONSECUTIVE_FAILURES', '60'))
    SGP4_GRAVITY_MODEL = os.getenv('SGP4_GRAVITY_MODEL', 'wgs72').lower()
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()


config = TrackerConfig()
