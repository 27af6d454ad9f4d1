"""
Value objects shared by the parser, the propagator and the tracker.

All models are frozen: a new fix or element set replaces the old one,
nothing is mutated in place.
"""

import math
from datetime import datetime, timezone
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from orbit_tracker.config import (
    DEEP_SPACE_PERIOD_MINUTES,
    EARTH_GM_KM3_S2,
    EARTH_MEAN_RADIUS_KM,
    MINUTES_PER_DAY,
    WGS84_EQUATORIAL_RADIUS_KM,
    WGS84_FLATTENING,
)

Vector3 = Tuple[float, float, float]


def as_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime; naive values are taken as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class ReferenceBody(BaseModel):
    """Gravitational and shape constants of the orbited body."""

    model_config = ConfigDict(frozen=True)

    name: str
    gm_km3_s2: float = Field(gt=0)
    mean_radius_km: float = Field(gt=0)
    equatorial_radius_km: float = Field(gt=0)
    flattening: float = Field(ge=0, lt=1)

    @property
    def eccentricity_squared(self) -> float:
        return 2.0 * self.flattening - self.flattening ** 2

    @property
    def polar_radius_km(self) -> float:
        return self.equatorial_radius_km * (1.0 - self.flattening)


EARTH = ReferenceBody(
    name="Earth",
    gm_km3_s2=EARTH_GM_KM3_S2,
    mean_radius_km=EARTH_MEAN_RADIUS_KM,
    equatorial_radius_km=WGS84_EQUATORIAL_RADIUS_KM,
    flattening=WGS84_FLATTENING,
)


class OrbitalElementSet(BaseModel):
    """
    A parsed NORAD two-line element set.

    Angles are in degrees and mean motion in revolutions per day, exactly as
    carried by the TLE text. ``line1``/``line2`` keep the verbatim input so
    the set can be handed to SGP4 unchanged.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    norad_id: int
    classification: str = "U"
    international_designator: str = ""
    epoch: datetime
    epoch_year: int
    epoch_day: float
    mean_motion_dot: float
    mean_motion_ddot: float
    bstar: float
    ephemeris_type: int = 0
    element_set_number: int = 0
    inclination_deg: float
    raan_deg: float
    eccentricity: float
    arg_perigee_deg: float
    mean_anomaly_deg: float
    mean_motion_rev_per_day: float
    revolution_number: int = 0
    line1: str
    line2: str

    @property
    def period_minutes(self) -> float:
        return MINUTES_PER_DAY / self.mean_motion_rev_per_day

    @property
    def is_deep_space(self) -> bool:
        return self.period_minutes >= DEEP_SPACE_PERIOD_MINUTES

    def semi_major_axis_km(self, body: ReferenceBody = EARTH) -> float:
        """Two-body semi-major axis implied by the mean motion."""
        n_rad_s = self.mean_motion_rev_per_day * 2.0 * math.pi / 86400.0
        return (body.gm_km3_s2 / n_rad_s ** 2) ** (1.0 / 3.0)

    def perigee_altitude_km(self, body: ReferenceBody = EARTH) -> float:
        return self.semi_major_axis_km(body) * (1.0 - self.eccentricity) - body.mean_radius_km

    def apogee_altitude_km(self, body: ReferenceBody = EARTH) -> float:
        return self.semi_major_axis_km(body) * (1.0 + self.eccentricity) - body.mean_radius_km

    def age_days(self, at_time: Optional[datetime] = None) -> float:
        """Days elapsed from epoch to ``at_time`` (default: now); negative before epoch."""
        if at_time is None:
            at_time = datetime.now(timezone.utc)
        return (as_utc(at_time) - self.epoch).total_seconds() / 86400.0


class PropagatedState(BaseModel):
    """TEME position (km) and velocity (km/s) at a single instant."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    position_km: Vector3
    velocity_kms: Vector3

    @property
    def speed_kms(self) -> float:
        vx, vy, vz = self.velocity_kms
        return math.sqrt(vx * vx + vy * vy + vz * vz)

    @property
    def radius_km(self) -> float:
        x, y, z = self.position_km
        return math.sqrt(x * x + y * y + z * z)


class GeodeticFix(BaseModel):
    """Sub-satellite point and speed, in degrees, kilometres and km/s."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    latitude: float
    longitude: float
    altitude_km: float
    speed_kms: float

    @property
    def lon_lat(self) -> Tuple[float, float]:
        return self.longitude, self.latitude
