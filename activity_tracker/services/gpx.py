from __future__ import annotations

from datetime import datetime, timezone

import gpxpy.gpx

from activity_tracker.models.activity import Activity
from activity_tracker.services.route_geometry import geojson_to_latlons

GPX_CREATOR = "ActivityTrackerAPI"
GPX_MEDIA_TYPE = "application/gpx+xml"


class MissingRouteError(ValueError):
    pass


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def build_activity_gpx(activity: Activity) -> str:
    if not activity.route_geojson:
        raise MissingRouteError("Ta aktywność nie posiada zapisanej trasy GPS.")

    gpx = gpxpy.gpx.GPX()
    gpx.creator = GPX_CREATOR
    gpx.time = _as_utc(activity.started_at)

    track = gpxpy.gpx.GPXTrack(name=activity.title or "Activity")
    track.type = activity.activity_type
    gpx.tracks.append(track)

    segment = gpxpy.gpx.GPXTrackSegment()
    track.segments.append(segment)

    for lat, lon in geojson_to_latlons(activity.route_geojson):
        segment.points.append(gpxpy.gpx.GPXTrackPoint(latitude=lat, longitude=lon))

    return gpx.to_xml(version="1.1")


def gpx_filename(activity: Activity) -> str:
    started = _as_utc(activity.started_at) or datetime.now(timezone.utc)
    return f"{activity.activity_type}_{started:%Y-%m-%d}.gpx"
