import json

import pytest

from activity_tracker.services.route_geometry import geojson_to_latlons, route_to_geojson


def test_route_with_two_points_becomes_linestring_in_lon_lat_order():
    geojson = route_to_geojson([[50.0, 19.0], [50.1, 19.1]])

    assert geojson is not None
    payload = json.loads(geojson)
    assert payload["type"] == "LineString"
    assert payload["coordinates"] == [[19.0, 50.0], [19.1, 50.1]]


@pytest.mark.parametrize("route", [None, [], [[50.0, 19.0]]])
def test_route_with_fewer_than_two_points_has_no_geometry(route):
    assert route_to_geojson(route) is None


def test_extra_ordinates_are_ignored():
    geojson = route_to_geojson([[50.0, 19.0, 210.0], [50.1, 19.1, 215.5]])

    assert geojson_to_latlons(geojson) == [(50.0, 19.0), (50.1, 19.1)]


def test_geojson_to_latlons_reads_stored_route_back_as_lat_lon():
    stored = '{"type":"LineString","coordinates":[[19.0,50.0],[19.1,50.1],[19.2,50.15]]}'

    assert geojson_to_latlons(stored) == [(50.0, 19.0), (50.1, 19.1), (50.15, 19.2)]


def test_geojson_to_latlons_rejects_non_line_geometry():
    with pytest.raises(ValueError):
        geojson_to_latlons('{"type":"Point","coordinates":[19.0,50.0]}')
