"""
Circular-Orbit Parameters

Analytic "what if the satellite were at altitude X" helpers for the sandbox.
They depend only on altitude and the reference body, never on an element set
or a clock:

    v = sqrt(GM / r)                 circular velocity (km/s)
    T = 2π · sqrt(r³ / GM) / 60      period (minutes), Kepler's third law

with r = R + altitude. Use ``OrbitPropagator`` when an element set is known;
use these when only an altitude is.
"""

import math
from enum import Enum

from orbit_tracker.config import (
    DRAG_DECAY_ALTITUDE_KM,
    GEO_ALTITUDE_KM,
    GEO_TOLERANCE_KM,
    LEO_MAX_ALTITUDE_KM,
    MINUTES_PER_DAY,
    SECONDS_PER_MINUTE,
)
from orbit_tracker.exceptions import InputDomainError
from orbit_tracker.models import EARTH, ReferenceBody


class OrbitRegime(Enum):
    """Orbit classes offered by the sandbox"""

    LEO = "LEO"
    MEO = "MEO"
    GEO = "GEO"
    HEO = "HEO"


class OrbitalParameterCalculator:
    """Circular velocity and period about a spherical reference body."""

    def __init__(self, body: ReferenceBody = EARTH):
        self.body = body

    def radial_distance(self, altitude_km: float) -> float:
        """
        Distance from the body's centre for an altitude above its mean radius.

        Raises:
            InputDomainError: if the altitude is not finite or the distance is not positive
        """
        if not math.isfinite(altitude_km):
            raise InputDomainError(f"Altitude must be finite, got {altitude_km}")
        radius = self.body.mean_radius_km + altitude_km
        if radius <= 0.0:
            raise InputDomainError(
                f"Altitude {altitude_km} km puts the orbit at or below the centre of "
                f"{self.body.name} (radius {self.body.mean_radius_km} km)"
            )
        return radius

    def circular_velocity(self, altitude_km: float) -> float:
        """Circular orbital speed in km/s."""
        return math.sqrt(self.body.gm_km3_s2 / self.radial_distance(altitude_km))

    def circular_period(self, altitude_km: float) -> float:
        """Circular orbital period in minutes."""
        radius = self.radial_distance(altitude_km)
        period_seconds = 2.0 * math.pi * math.sqrt(radius ** 3 / self.body.gm_km3_s2)
        return period_seconds / SECONDS_PER_MINUTE

    def revolutions_per_day(self, altitude_km: float) -> float:
        return MINUTES_PER_DAY / self.circular_period(altitude_km)

    def classify_orbit(self, altitude_km: float) -> OrbitRegime:
        self.radial_distance(altitude_km)
        if altitude_km < LEO_MAX_ALTITUDE_KM:
            return OrbitRegime.LEO
        if abs(altitude_km - GEO_ALTITUDE_KM) <= GEO_TOLERANCE_KM:
            return OrbitRegime.GEO
        if altitude_km < GEO_ALTITUDE_KM:
            return OrbitRegime.MEO
        return OrbitRegime.HEO

    def is_drag_limited(self, altitude_km: float) -> bool:
        """True below the altitude where atmospheric drag decays an orbit within days."""
        self.radial_distance(altitude_km)
        return altitude_km < DRAG_DECAY_ALTITUDE_KM


_earth_calculator = OrbitalParameterCalculator()


def circular_velocity(altitude_km: float) -> float:
    """Circular orbital speed (km/s) at ``altitude_km`` above Earth's mean radius."""
    return _earth_calculator.circular_velocity(altitude_km)


def circular_period(altitude_km: float) -> float:
    """Circular orbital period (minutes) at ``altitude_km`` above Earth's mean radius."""
    return _earth_calculator.circular_period(altitude_km)


def revolutions_per_day(altitude_km: float) -> float:
    return _earth_calculator.revolutions_per_day(altitude_km)


def classify_orbit(altitude_km: float) -> OrbitRegime:
    return _earth_calculator.classify_orbit(altitude_km)


def is_drag_limited(altitude_km: float) -> bool:
    return _earth_calculator.is_drag_limited(altitude_km)
