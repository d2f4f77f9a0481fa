"""
Great-circle distance helpers used by discovery
"""
import math
from collections import namedtuple

EARTH_RADIUS_KM = 6371.0

# min_lon/max_lon are None when the box wraps the antimeridian or covers a pole
BoundingBox = namedtuple('BoundingBox', ['min_lat', 'max_lat', 'min_lon', 'max_lon'])


def haversine_km(lat1, lon1, lat2, lon2):
    """Distance in kilometers between two (latitude, longitude) points"""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (math.sin(d_phi / 2) ** 2 +
         math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(max(0.0, 1 - a)))
    return EARTH_RADIUS_KM * c


def round_distance(distance_km):
    return round(distance_km, 1)


def bounding_box(lat, lon, radius_km):
    """Lat/lon box containing every point within radius_km of (lat, lon).

    Only a prefilter: corners of the box are farther than radius_km.
    """
    angular = radius_km / EARTH_RADIUS_KM
    lat_delta = math.degrees(angular)
    min_lat = lat - lat_delta
    max_lat = lat + lat_delta

    if min_lat <= -90 or max_lat >= 90:
        return BoundingBox(max(min_lat, -90.0), min(max_lat, 90.0), None, None)

    ratio = math.sin(angular) / math.cos(math.radians(lat))
    if ratio >= 1:
        return BoundingBox(min_lat, max_lat, None, None)

    lon_delta = math.degrees(math.asin(ratio))
    min_lon = lon - lon_delta
    max_lon = lon + lon_delta
    if min_lon < -180 or max_lon > 180:
        return BoundingBox(min_lat, max_lat, None, None)

    return BoundingBox(min_lat, max_lat, min_lon, max_lon)
