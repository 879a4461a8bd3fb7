from __future__ import annotations

import json
from typing import Sequence

from shapely.geometry import LineString, mapping, shape

MIN_ROUTE_POINTS = 2


def route_to_geojson(route: Sequence[Sequence[float]] | None) -> str | None:
    """
    Serialize an ordered list of [lat, lon] pairs into a GeoJSON LineString.

    Returns None when the route has fewer than two points, since a single
    point is not a line. Coordinates are swapped into GeoJSON's [lon, lat] order.
    """
    if not route or len(route) < MIN_ROUTE_POINTS:
        return None

    line = LineString([(float(point[1]), float(point[0])) for point in route])
    return json.dumps(mapping(line), separators=(",", ":"))


def geojson_to_latlons(geojson: str) -> list[tuple[float, float]]:
    geometry = shape(json.loads(geojson))
    if geometry.geom_type != "LineString":
        raise ValueError(f"Expected a LineString route, got {geometry.geom_type}")

    # shapely may carry a third (elevation) ordinate; only lon/lat matter here
    return [(float(coord[1]), float(coord[0])) for coord in geometry.coords]
