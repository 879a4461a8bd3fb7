import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy import func
from sqlalchemy.orm import Session

from activity_tracker.core.db import get_db
from activity_tracker.core.security import TokenClaims, require_admin
from activity_tracker.models.activity import Activity
from activity_tracker.models.user import User
from activity_tracker.schemas.admin import AdminActivityOut, AdminStatsOut, AdminUserOut
from activity_tracker.services.leaderboard import meters_to_km
from activity_tracker.services.profile_stats import global_totals

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

UNKNOWN_USERNAME = "Nieznany"


def _utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc)


@router.get("/users", response_model=list[AdminUserOut])
def list_users(db: Session = Depends(get_db)):
    counts = (
        db.query(
            Activity.user_id.label("user_id"),
            func.count(Activity.id).label("activities_count"),
        )
        .group_by(Activity.user_id)
        .subquery()
    )
    rows = (
        db.query(User, func.coalesce(counts.c.activities_count, 0))
        .outerjoin(counts, counts.c.user_id == User.id)
        .order_by(User.id.asc())
        .all()
    )

    return [
        {
            "id": user.id,
            "email": user.email or "",
            "username": user.username or UNKNOWN_USERNAME,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "avatar_url": user.avatar_url,
            "activities_count": int(activities_count),
            "date_of_birth": user.date_of_birth,
            "gender": user.gender,
            "height": user.height,
            "weight": user.weight,
            "roles": user.role_names,
        }
        for user, activities_count in rows
    ]


@router.get("/activities", response_model=list[AdminActivityOut])
def list_activities(
    user_id: int | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    activity_type: str | None = None,
    min_distance: float | None = Query(default=None, ge=0),
    db: Session = Depends(get_db),
):
    q = db.query(Activity, User).join(User, Activity.user_id == User.id)
    if user_id is not None:
        q = q.filter(Activity.user_id == user_id)
    if date_from is not None:
        q = q.filter(Activity.started_at >= _utc(date_from))
    if date_to is not None:
        q = q.filter(Activity.started_at <= _utc(date_to))
    if activity_type:
        q = q.filter(Activity.activity_type == activity_type)
    if min_distance is not None:
        q = q.filter(Activity.distance_m >= min_distance)

    rows = q.order_by(Activity.started_at.desc(), Activity.id.desc()).all()
    return [
        {
            "id": activity.id,
            "user_id": user.id,
            "username": user.username or UNKNOWN_USERNAME,
            "user_avatar_url": user.avatar_url,
            "title": activity.title,
            "activity_type": activity.activity_type,
            "distance_m": activity.distance_m,
            "duration_s": activity.duration_s,
            "started_at": activity.started_at,
            "created_at": activity.created_at,
        }
        for activity, user in rows
    ]


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    user_id: int,
    claims: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if user_id == claims.user_id:
        raise HTTPException(status_code=400, detail="Nie możesz usunąć własnego konta.")

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="Nie znaleziono użytkownika.")

    db.delete(user)
    db.commit()
    logger.info("User deleted by admin", extra={"user_id": user_id, "admin_id": claims.user_id})
    return Response(status_code=204)


@router.delete("/activities/{activity_id}", status_code=204)
def delete_activity(
    activity_id: int,
    claims: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    activity = db.get(Activity, activity_id)
    if activity is None:
        raise HTTPException(status_code=404, detail="Nie znaleziono aktywności.")

    db.delete(activity)
    db.commit()
    logger.info(
        "Activity deleted by admin",
        extra={"activity_id": activity_id, "admin_id": claims.user_id},
    )
    return Response(status_code=204)


@router.get("/stats", response_model=AdminStatsOut)
def statistics(db: Session = Depends(get_db)):
    totals = global_totals(db)
    return {
        "total_users": db.query(func.count(User.id)).scalar() or 0,
        "total_activities": totals.count,
        "total_distance_km": meters_to_km(totals.distance_m),
        "total_duration_hours": round(totals.duration_s / 3600.0, 2),
    }
