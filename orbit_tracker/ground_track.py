"""
Ground track buffer.

Keeps the most recent sub-satellite points for drawing a trailing orbit path.
The buffer is bounded: once full, each new point evicts the oldest one.
"""

from collections import deque
from typing import Any, Dict, Iterator, List, Optional, Tuple

from orbit_tracker.config import config
from orbit_tracker.models import GeodeticFix

LonLat = Tuple[float, float]


class GroundTrack:
    """Bounded, append-only sequence of (longitude, latitude) pairs."""

    def __init__(self, max_points: Optional[int] = None):
        if max_points is None:
            max_points = config.GROUND_TRACK_MAX_POINTS
        if max_points < 1:
            raise ValueError(f"max_points must be at least 1, got {max_points}")
        self._points = deque(maxlen=max_points)

    @property
    def max_points(self) -> int:
        return self._points.maxlen

    def append(self, fix: GeodeticFix) -> None:
        self._points.append(fix.lon_lat)

    def append_point(self, longitude: float, latitude: float) -> None:
        self._points.append((float(longitude), float(latitude)))

    def clear(self) -> None:
        self._points.clear()

    @property
    def points(self) -> List[LonLat]:
        """Oldest first."""
        return list(self._points)

    @property
    def latest(self) -> Optional[LonLat]:
        return self._points[-1] if self._points else None

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[LonLat]:
        return iter(list(self._points))

    def to_geojson(self) -> Dict[str, Any]:
        """GeoJSON LineString feature with [lon, lat] coordinates, oldest first."""
        return {
            "type": "Feature",
            "properties": {},
            "geometry": {
                "type": "LineString",
                "coordinates": [[lon, lat] for lon, lat in self._points],
            },
        }
