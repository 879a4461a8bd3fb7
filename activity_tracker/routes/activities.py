import logging
from datetime import datetime, timedelta, timezone
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from activity_tracker.core.db import get_db
from activity_tracker.core.security import get_current_user_id
from activity_tracker.models.activity import DEFAULT_ACTIVITY_TITLE, DEFAULT_ACTIVITY_TYPE, Activity
from activity_tracker.models.user import User
from activity_tracker.schemas.activity import (
    ActivityDetailOut,
    ActivityHistoryItem,
    ActivitySavedOut,
    ActivitySaveIn,
)
from activity_tracker.schemas.common import UploadOut
from activity_tracker.schemas.leaderboard import LeaderboardOut
from activity_tracker.services.gpx import GPX_MEDIA_TYPE, MissingRouteError, build_activity_gpx, gpx_filename
from activity_tracker.services.leaderboard import compute_leaderboard
from activity_tracker.services.route_geometry import route_to_geojson
from activity_tracker.services.uploads import ACTIVITY_PHOTOS_DIR, UploadError, save_image_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/activities", tags=["activities"])

ACTIVITY_NOT_FOUND = "Nie znaleziono aktywności."


def _content_disposition(filename: str) -> str:
    quoted = quote(filename)
    if quoted != filename:
        # activity types are free text; headers must stay latin-1
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'


def _get_owned_activity(db: Session, activity_id: int, user_id: int) -> Activity | None:
    # Ownership and existence collapse into one lookup so non-owners learn nothing.
    return (
        db.query(Activity)
        .filter(Activity.id == activity_id, Activity.user_id == user_id)
        .one_or_none()
    )


@router.post("", response_model=ActivitySavedOut)
def save_activity(
    payload: ActivitySaveIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    # tokens outlive accounts deleted by an admin
    if db.get(User, user_id) is None:
        raise HTTPException(status_code=404, detail="User not found.")

    now = datetime.now(timezone.utc)
    title = (payload.title or "").strip()
    description = (payload.description or "").strip()

    activity = Activity(
        user_id=user_id,
        title=title or DEFAULT_ACTIVITY_TITLE,
        description=description or None,
        activity_type=payload.activity_type or DEFAULT_ACTIVITY_TYPE,
        started_at=now - timedelta(seconds=payload.duration_s),
        ended_at=now,
        duration_s=payload.duration_s,
        distance_m=payload.distance_m,
        avg_speed_mps=payload.avg_speed_mps,
        max_speed_mps=payload.max_speed_mps,
        route_geojson=route_to_geojson(payload.route),
    )
    db.add(activity)
    db.commit()
    db.refresh(activity)

    logger.info(
        "Activity saved",
        extra={
            "user_id": user_id,
            "activity_id": activity.id,
            "activity_type": activity.activity_type,
            "has_route": activity.route_geojson is not None,
        },
    )
    return {"id": activity.id, "message": "Activity saved successfully!"}


@router.get("/history", response_model=list[ActivityHistoryItem])
def activity_history(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return (
        db.query(Activity)
        .filter(Activity.user_id == user_id)
        .order_by(Activity.started_at.desc(), Activity.id.desc())
        .all()
    )


@router.get("/leaderboard", response_model=LeaderboardOut)
def leaderboard(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return compute_leaderboard(db, current_user_id=user_id)


@router.get("/{activity_id}", response_model=ActivityDetailOut)
def activity_details(
    activity_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    activity = _get_owned_activity(db, activity_id, user_id)
    if activity is None:
        raise HTTPException(status_code=404, detail=ACTIVITY_NOT_FOUND)
    return activity


@router.post("/{activity_id}/photo", response_model=UploadOut)
def upload_activity_photo(
    activity_id: int,
    request: Request,
    file: UploadFile | None = File(default=None),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    activity = _get_owned_activity(db, activity_id, user_id)
    if activity is None:
        raise HTTPException(status_code=404, detail="Nie znaleziono aktywności lub brak dostępu.")

    try:
        photo_url = save_image_upload(
            request,
            file,
            subdir=ACTIVITY_PHOTOS_DIR,
            owner_id=activity.id,
        )
    except UploadError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    activity.photo_url = photo_url
    db.commit()
    return {"url": photo_url, "message": "Zdjęcie aktywności dodane pomyślnie."}


@router.get("/{activity_id}/gpx")
def export_gpx(
    activity_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    activity = _get_owned_activity(db, activity_id, user_id)
    if activity is None:
        raise HTTPException(status_code=404, detail=ACTIVITY_NOT_FOUND)

    try:
        xml = build_activity_gpx(activity)
    except MissingRouteError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return Response(
        content=xml.encode("utf-8"),
        media_type=GPX_MEDIA_TYPE,
        headers={"Content-Disposition": _content_disposition(gpx_filename(activity))},
    )
