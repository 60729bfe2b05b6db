"""Coordinate decoding and great-circle distance.

Stored event locations come in two shapes, a flat ``[lon, lat]`` pair or an
object with a nested ``coordinates`` pair. Both are GeoJSON order and are
decoded here into ``Coordinates`` so ranking code never sees the raw value.
"""

from __future__ import annotations

import math
from typing import NamedTuple

EARTH_RADIUS_METERS = 6_371_000.0

# Sentinel distance for events without a usable location; larger than any real distance
UNRESOLVABLE = math.inf


class Coordinates(NamedTuple):
    latitude: float
    longitude: float


def _finite_number(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def _from_pair(pair: object) -> Coordinates | None:
    if not isinstance(pair, (list, tuple)) or len(pair) < 2:
        return None
    longitude = _finite_number(pair[0])
    latitude = _finite_number(pair[1])
    if longitude is None or latitude is None:
        return None
    return Coordinates(latitude=latitude, longitude=longitude)


def decode_location(value: object) -> Coordinates | None:
    """Decode a stored location into coordinates, or None when it is unusable."""
    if isinstance(value, dict):
        return _from_pair(value.get("coordinates"))
    return _from_pair(value)


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two points given in degrees."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push ``a`` a hair past 1 for antipodal points
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_METERS * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_between(origin: Coordinates, location: object) -> float:
    """Distance from ``origin`` to a stored location, or ``UNRESOLVABLE``."""
    target = decode_location(location)
    if target is None:
        return UNRESOLVABLE
    return haversine(origin.latitude, origin.longitude, target.latitude, target.longitude)
