"""Great-circle distance and bounding boxes on a spherical earth.

Coordinates are WGS84 degrees (SRID 4326). Distances use geopy's
``great_circle`` with the mean earth radius, the same computation that
proximity search applies to every candidate row, so a direct point-to-point
query and a nearby search always agree.
"""
import math
from dataclasses import dataclass

from geopy.distance import EARTH_RADIUS, great_circle

KM_TO_MILES = 0.621371

# Slack added to bounding boxes so rows sitting exactly on the radius survive
# the SQL prefilter; the exact distance check runs afterwards.
_BOX_PADDING_DEG = 1e-6


def validate_coordinates(latitude: float, longitude: float) -> bool:
    return -90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0


def distance_between(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometers."""
    return great_circle((lat1, lon1), (lat2, lon2)).km


def km_to_miles(km: float) -> float:
    return km * KM_TO_MILES


@dataclass(frozen=True)
class BoundingBox:
    """Latitude band plus one or two longitude ranges (two when crossing ±180)."""

    min_lat: float
    max_lat: float
    lon_ranges: tuple[tuple[float, float], ...]

    @property
    def covers_all_longitudes(self) -> bool:
        return self.lon_ranges == ((-180.0, 180.0),)


def bounding_box(latitude: float, longitude: float, radius_km: float) -> BoundingBox:
    """
    Smallest lat/lon box containing the circle of ``radius_km`` around a point.

    Uses the tangent-meridian construction: the longitude half-width is
    asin(sin(r) / cos(lat)), which is exact on a sphere. Circles touching a pole
    span every longitude.
    """
    angular = radius_km / EARTH_RADIUS
    if angular >= math.pi:
        return BoundingBox(-90.0, 90.0, ((-180.0, 180.0),))

    delta_lat = math.degrees(angular)
    min_lat = latitude - delta_lat - _BOX_PADDING_DEG
    max_lat = latitude + delta_lat + _BOX_PADDING_DEG

    if min_lat <= -90.0 or max_lat >= 90.0:
        return BoundingBox(max(min_lat, -90.0), min(max_lat, 90.0), ((-180.0, 180.0),))

    ratio = math.sin(angular) / math.cos(math.radians(latitude))
    if ratio >= 1.0:
        return BoundingBox(min_lat, max_lat, ((-180.0, 180.0),))

    delta_lon = math.degrees(math.asin(ratio)) + _BOX_PADDING_DEG
    min_lon = longitude - delta_lon
    max_lon = longitude + delta_lon

    if min_lon < -180.0:
        ranges = ((min_lon + 360.0, 180.0), (-180.0, max_lon))
    elif max_lon > 180.0:
        ranges = ((min_lon, 180.0), (-180.0, max_lon - 360.0))
    else:
        ranges = ((min_lon, max_lon),)
    return BoundingBox(min_lat, max_lat, ranges)
