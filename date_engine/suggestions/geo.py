from __future__ import annotations

from math import atan2, cos, isfinite, radians, sin, sqrt

from .errors import InvalidInput
from .models import Coordinate

EARTH_RADIUS_KM = 6371.0


def validate_coordinate(point: Coordinate | None) -> Coordinate:
    """Raise ``InvalidInput`` unless *point* is a finite, in-range coordinate."""
    if point is None:
        raise InvalidInput("Latitude and longitude are required")
    if not (isfinite(point.latitude) and isfinite(point.longitude)):
        raise InvalidInput("Latitude and longitude must be finite numbers")
    if not -90.0 <= point.latitude <= 90.0:
        raise InvalidInput(f"Latitude {point.latitude} is outside [-90, 90]")
    if not -180.0 <= point.longitude <= 180.0:
        raise InvalidInput(f"Longitude {point.longitude} is outside [-180, 180]")
    return point


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates (haversine)."""
    validate_coordinate(a)
    validate_coordinate(b)

    d_lat = radians(b.latitude - a.latitude)
    d_lon = radians(b.longitude - a.longitude)
    h = (
        sin(d_lat / 2) ** 2
        + cos(radians(a.latitude)) * cos(radians(b.latitude)) * sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * atan2(sqrt(h), sqrt(1 - h))
