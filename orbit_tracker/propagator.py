"""
Orbit Propagator

Turns an ``OrbitalElementSet`` and an instant into a ``GeodeticFix``:

1. SGP4 (via the sgp4 library) gives TEME position and velocity.
2. Greenwich Mean Sidereal Time (IAU-82) rotates TEME into an Earth-fixed frame.
3. An iterative ellipsoid inversion gives geodetic latitude, longitude and
   altitude above the reference ellipsoid.
4. Speed is the norm of the inertial (TEME) velocity.

Latitude and longitude leave this module in degrees; altitude and speed in
kilometres and km/s.

Any SGP4 error, non-finite state or negative altitude raises
``PropagationError``. Nothing is retried, clamped or replaced by a
fallback model: the caller decides what a failed tick means.

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

import logging
import math
import threading
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np
from sgp4.api import Satrec, WGS72, WGS72OLD, WGS84, jday

from orbit_tracker.config import config
from orbit_tracker.exceptions import PropagationError
from orbit_tracker.models import (
    EARTH,
    GeodeticFix,
    OrbitalElementSet,
    PropagatedState,
    ReferenceBody,
    as_utc,
)
from orbit_tracker.tle_parser import parse_tle

logger = logging.getLogger(__name__)


GRAVITY_MODELS = {
    "wgs72old": WGS72OLD,
    "wgs72": WGS72,
    "wgs84": WGS84,
}

# SGP4 error code meanings
SGP4_ERROR_CODES = {
    0: "No error",
    1: "Mean eccentricity < 0.0 or > 1.0",
    2: "Mean motion < 0.0",
    3: "Perturbed eccentricity < 0.0 or > 1.0",
    4: "Semi-latus rectum < 0.0",
    5: "Epoch elements are sub-orbital",
    6: "Satellite has decayed",
}

# J2000.0 epoch as a Julian date
J2000_JD = 2451545.0

# Satrec.sgp4 updates deep-space integrator fields on the record itself
_satrec_lock = threading.Lock()


@lru_cache(maxsize=64)
def _satrec_for(line1: str, line2: str, gravity_model: str) -> Tuple[Satrec, int]:
    # satellite.error is overwritten by every later sgp4() call; keep the init result
    satellite = Satrec.twoline2rv(line1, line2, GRAVITY_MODELS[gravity_model])
    return satellite, satellite.error


def datetime_to_jd_fr(dt: datetime) -> Tuple[float, float]:
    """
    Convert datetime to Julian Date and fractional day for SGP4.

    Naive datetimes are taken as UTC.
    """
    dt = as_utc(dt)
    return jday(dt.year, dt.month, dt.day, dt.hour, dt.minute,
                dt.second + dt.microsecond / 1e6)


def greenwich_mean_sidereal_time(dt: datetime) -> float:
    """
    Greenwich Mean Sidereal Time in radians, in [0, 2π).

    IAU-82 expression (Vallado, Fundamentals of Astrodynamics, eq. 3-47),
    with UTC standing in for UT1.
    """
    jd, fr = datetime_to_jd_fr(dt)
    t_ut1 = ((jd - J2000_JD) + fr) / 36525.0

    gmst_sec = (
        67310.54841 +
        (876600.0 * 3600.0 + 8640184.812866) * t_ut1 +
        0.093104 * t_ut1 * t_ut1 -
        6.2e-6 * t_ut1 * t_ut1 * t_ut1
    )

    # 240 seconds of time per degree
    return math.radians(gmst_sec / 240.0) % (2.0 * math.pi)


def teme_to_ecef(position_teme: np.ndarray, gmst: float) -> np.ndarray:
    """
    Rotate a TEME position about the z axis into the Earth-fixed frame.

    Args:
        position_teme: Position vector [x, y, z] in km
        gmst: Greenwich Mean Sidereal Time (rad)

    Returns:
        Earth-fixed position vector [x, y, z] in km
    """
    cos_g = math.cos(gmst)
    sin_g = math.sin(gmst)
    rotation = np.array([
        [cos_g, sin_g, 0.0],
        [-sin_g, cos_g, 0.0],
        [0.0, 0.0, 1.0],
    ])
    return rotation @ np.asarray(position_teme, dtype=float)


def ecef_to_geodetic(position_ecef: np.ndarray,
                     body: ReferenceBody = EARTH) -> Tuple[float, float, float]:
    """
    Earth-fixed Cartesian position to geodetic coordinates using Bowring's method.

    Args:
        position_ecef: Position vector [x, y, z] in km
        body: Reference ellipsoid

    Returns:
        Tuple of (latitude_deg, longitude_deg, altitude_km)
    """
    a = body.equatorial_radius_km
    b = body.polar_radius_km
    e2 = body.eccentricity_squared
    ep2 = e2 / (1.0 - e2)

    x, y, z = (float(c) for c in position_ecef)

    lon = math.atan2(y, x)
    p = math.hypot(x, y)

    # On the rotation axis latitude is ±90° and longitude is arbitrary
    if p < 1e-10:
        lat = math.copysign(math.pi / 2.0, z)
        return math.degrees(lat), math.degrees(lon), abs(z) - b

    # Initial parametric latitude
    theta = math.atan2(z * a, p * b)

    for _ in range(10):
        sin_theta = math.sin(theta)
        cos_theta = math.cos(theta)

        lat = math.atan2(
            z + ep2 * b * sin_theta ** 3,
            p - e2 * a * cos_theta ** 3
        )

        new_theta = math.atan2((1.0 - body.flattening) * math.sin(lat), math.cos(lat))
        if abs(new_theta - theta) < 1e-12:
            break
        theta = new_theta

    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)
    n = a / math.sqrt(1.0 - e2 * sin_lat * sin_lat)

    if abs(cos_lat) > 1e-10:
        alt = p / cos_lat - n
    else:
        alt = z / sin_lat - n * (1.0 - e2)

    return math.degrees(lat), math.degrees(lon), alt


class OrbitPropagator:
    """
    SGP4 propagation to geodetic fixes.

    Stateless apart from a shared cache of initialised ``Satrec`` records, so
    one instance can serve any number of element sets and threads.
    """

    def __init__(self, body: ReferenceBody = EARTH, gravity_model: Optional[str] = None):
        """
        Initialize the propagator.

        Args:
            body: Reference body for the geodetic conversion
            gravity_model: SGP4 gravity model ('wgs72', 'wgs72old' or 'wgs84');
                defaults to SGP4_GRAVITY_MODEL from the environment
        """
        gravity_model = (gravity_model or config.SGP4_GRAVITY_MODEL).lower()
        if gravity_model not in GRAVITY_MODELS:
            raise ValueError(
                f"Unknown gravity model {gravity_model!r}; "
                f"expected one of {sorted(GRAVITY_MODELS)}"
            )
        self.body = body
        self.gravity_model = gravity_model

    def propagate_state(self, elements: OrbitalElementSet, at_time: datetime) -> PropagatedState:
        """
        Propagate to a TEME state vector.

        Args:
            elements: Parsed element set
            at_time: Target instant (before or after epoch)

        Returns:
            PropagatedState in km and km/s

        Raises:
            PropagationError: if SGP4 reports an error or the state is not finite
        """
        at_time = as_utc(at_time)
        satellite, init_error = _satrec_for(elements.line1, elements.line2, self.gravity_model)

        if init_error != 0:
            raise self._error(elements, init_error, at_time, "initialisation")

        jd, fr = datetime_to_jd_fr(at_time)
        with _satrec_lock:
            error, position, velocity = satellite.sgp4(jd, fr)

        if error != 0:
            raise self._error(elements, error, at_time, "propagation")

        if not all(math.isfinite(c) for c in (*position, *velocity)):
            raise PropagationError(
                f"SGP4 returned a non-finite state for satellite {elements.norad_id} "
                f"at {at_time.isoformat()}"
            )

        return PropagatedState(
            timestamp=at_time,
            position_km=tuple(position),
            velocity_kms=tuple(velocity),
        )

    def propagate(self, elements: OrbitalElementSet, at_time: datetime) -> GeodeticFix:
        """
        Propagate to a geodetic fix.

        Args:
            elements: Parsed element set
            at_time: Target instant (before or after epoch)

        Returns:
            GeodeticFix with latitude/longitude in degrees, altitude in km and
            speed in km/s

        Raises:
            PropagationError: on SGP4 failure or a fix below the reference ellipsoid
        """
        state = self.propagate_state(elements, at_time)

        gmst = greenwich_mean_sidereal_time(state.timestamp)
        position_ecef = teme_to_ecef(np.array(state.position_km), gmst)
        lat, lon, alt = ecef_to_geodetic(position_ecef, self.body)

        if alt < 0.0:
            raise PropagationError(
                f"Satellite {elements.norad_id} is {alt:.3f} km below the reference "
                f"ellipsoid at {state.timestamp.isoformat()}",
                diagnostics={"altitude_km": alt, "latitude_deg": lat, "longitude_deg": lon},
            )

        return GeodeticFix(
            timestamp=state.timestamp,
            latitude=lat,
            longitude=lon,
            altitude_km=alt,
            speed_kms=state.speed_kms,
        )

    def propagate_batch(self, elements: OrbitalElementSet,
                        times: Iterable[datetime]) -> List[GeodeticFix]:
        """Propagate several instants; the first failure aborts the batch."""
        return [self.propagate(elements, t) for t in times]

    def propagate_tle(self, line1: str, line2: str, at_time: datetime,
                      name: str = "") -> GeodeticFix:
        """Parse a TLE line pair and propagate it; raises ParseError on bad input."""
        return self.propagate(parse_tle(line1, line2, name), at_time)

    def _error(self, elements: OrbitalElementSet, error_code: int,
               at_time: datetime, stage: str) -> PropagationError:
        message = SGP4_ERROR_CODES.get(error_code, f"Unknown error code {error_code}")
        logger.debug(f"SGP4 {stage} error {error_code} for satellite {elements.norad_id}: {message}")
        return PropagationError(
            f"SGP4 error {error_code} for satellite {elements.norad_id} "
            f"at {at_time.isoformat()}: {message}",
            error_code=error_code,
            diagnostics=error_diagnostics(elements, error_code, at_time),
        )


def error_diagnostics(elements: OrbitalElementSet, error_code: int,
                      at_time: datetime) -> Dict[str, Any]:
    """
    Physical interpretation of an SGP4 error code.

    Args:
        elements: Element set that failed
        error_code: SGP4 error code
        at_time: Propagation instant

    Returns:
        Dictionary with diagnostic information
    """
    diagnostics = {
        "error_code": error_code,
        "error_description": SGP4_ERROR_CODES.get(error_code, f"Unknown error {error_code}"),
        "orbital_parameters": {
            "eccentricity": elements.eccentricity,
            "inclination_deg": elements.inclination_deg,
            "mean_motion_rev_day": elements.mean_motion_rev_per_day,
            "bstar_drag": elements.bstar,
            "epoch_age_days": elements.age_days(at_time),
        },
    }

    if error_code in (1, 3):
        diagnostics["physical_meaning"] = (
            "The orbital eccentricity left the valid range [0, 1). "
            "The TLE may be corrupted, or propagation went far enough from epoch "
            "that drag terms drove the mean elements out of range."
        )
        diagnostics["recommended_action"] = "Obtain fresh TLE data for this satellite."
    elif error_code in (2, 4):
        diagnostics["physical_meaning"] = (
            "SGP4 computed unphysical orbital elements (negative mean motion or "
            "semi-latus rectum), typical of heavy drag far from epoch."
        )
        diagnostics["recommended_action"] = (
            "Use more recent TLE data or limit propagation to shorter time periods."
        )
    elif error_code in (5, 6):
        diagnostics["physical_meaning"] = (
            "The satellite's radius fell below one Earth radius: it has decayed "
            "and re-entered the atmosphere."
        )
        diagnostics["recommended_action"] = (
            "Stop tracking this satellite; no future propagation is possible."
        )

    return diagnostics
