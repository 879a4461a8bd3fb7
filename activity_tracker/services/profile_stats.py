from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.orm import Session

from activity_tracker.models.activity import Activity


@dataclass
class ActivityTotals:
    count: int
    distance_m: float
    duration_s: int


def lifetime_totals(db: Session, user_id: int) -> ActivityTotals:
    """Lifetime totals over all of a user's activities; zeros when there are none."""
    count, distance_m, duration_s = (
        db.query(
            func.count(Activity.id),
            func.coalesce(func.sum(Activity.distance_m), 0.0),
            func.coalesce(func.sum(Activity.duration_s), 0),
        )
        .filter(Activity.user_id == user_id)
        .one()
    )
    return ActivityTotals(
        count=int(count or 0),
        distance_m=float(distance_m or 0.0),
        duration_s=int(duration_s or 0),
    )


def global_totals(db: Session) -> ActivityTotals:
    count, distance_m, duration_s = db.query(
        func.count(Activity.id),
        func.coalesce(func.sum(Activity.distance_m), 0.0),
        func.coalesce(func.sum(Activity.duration_s), 0),
    ).one()
    return ActivityTotals(
        count=int(count or 0),
        distance_m=float(distance_m or 0.0),
        duration_s=int(duration_s or 0),
    )
