"""
geo.py — Great-circle Geometry
===============================
Distances between (lat, lon) coordinates.  Edge lengths default to the
great-circle distance between their endpoints, and the A* heuristics
measure straight-line distance to the end vertex the same way, so the two
agree on units (miles) and the heuristic never overestimates.
"""

import math
from typing import Tuple


EARTH_RADIUS_MILES = 3963.1

Coordinate = Tuple[float, float]


def distance_in_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two points given in degrees."""
    if lat1 == lat2 and lon1 == lon2:
        return 0.0
    rlat1, rlat2 = math.radians(lat1), math.radians(lat2)
    dlat = rlat2 - rlat1
    dlon = math.radians(lon2 - lon1)
    a = math.sin(dlat / 2) ** 2 + math.cos(rlat1) * math.cos(rlat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * math.asin(min(1.0, math.sqrt(a)))


def coordinate_distance(a: Coordinate, b: Coordinate) -> float:
    return distance_in_miles(a[0], a[1], b[0], b[1])


def planar_distance(a: Coordinate, b: Coordinate) -> float:
    """Euclidean distance on raw (lat, lon) degrees."""
    return math.sqrt((a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2)
