from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from activity_tracker.core.config import settings
from activity_tracker.models.activity import Activity
from activity_tracker.models.user import User

ANONYMOUS_NAME = "Anonymous"


@dataclass
class LeaderboardEntry:
    rank: int
    user_id: int
    display_name: str
    avatar_url: str | None
    total_distance_km: float
    activity_count: int
    total_duration_seconds: int


@dataclass
class Leaderboard:
    period: str
    start_date: datetime
    end_date: datetime
    entries: list[LeaderboardEntry] = field(default_factory=list)
    current_user_entry: LeaderboardEntry | None = None


def display_name(first_name: str | None, last_name: str | None, username: str | None) -> str:
    full_name = " ".join(part.strip() for part in (first_name, last_name) if part and part.strip())
    if full_name:
        return full_name
    if username and username.strip():
        return username.strip()
    return ANONYMOUS_NAME


def meters_to_km(distance_m: float | None) -> float:
    return round((distance_m or 0.0) / 1000.0, 2)


def _entry(rank: int, row) -> LeaderboardEntry:
    return LeaderboardEntry(
        rank=rank,
        user_id=row.user_id,
        display_name=display_name(row.first_name, row.last_name, row.username),
        avatar_url=row.avatar_url,
        total_distance_km=meters_to_km(row.total_distance_m),
        activity_count=int(row.activity_count),
        total_duration_seconds=int(row.total_duration_s or 0),
    )


def _ranked_rows(db: Session, *, since: datetime, limit: int):
    total_distance = func.coalesce(func.sum(Activity.distance_m), 0.0).label("total_distance_m")
    return (
        db.query(
            User.id.label("user_id"),
            User.username,
            User.first_name,
            User.last_name,
            User.avatar_url,
            total_distance,
            func.coalesce(func.sum(Activity.duration_s), 0).label("total_duration_s"),
            func.count(Activity.id).label("activity_count"),
        )
        .join(Activity, Activity.user_id == User.id)
        .filter(Activity.started_at >= since)
        .group_by(User.id, User.username, User.first_name, User.last_name, User.avatar_url)
        .order_by(total_distance.desc(), User.id.asc())
        .limit(limit)
        .all()
    )


def _entry_for_user(db: Session, *, user_id: int, since: datetime) -> LeaderboardEntry | None:
    row = (
        db.query(
            User.id.label("user_id"),
            User.username,
            User.first_name,
            User.last_name,
            User.avatar_url,
            func.coalesce(func.sum(Activity.distance_m), 0.0).label("total_distance_m"),
            func.coalesce(func.sum(Activity.duration_s), 0).label("total_duration_s"),
            func.count(Activity.id).label("activity_count"),
        )
        .join(Activity, Activity.user_id == User.id)
        .filter(User.id == user_id, Activity.started_at >= since)
        .group_by(User.id, User.username, User.first_name, User.last_name, User.avatar_url)
        .one_or_none()
    )
    if row is None:
        return None

    totals = (
        db.query(
            Activity.user_id.label("user_id"),
            func.sum(Activity.distance_m).label("total_distance_m"),
        )
        .filter(Activity.started_at >= since)
        .group_by(Activity.user_id)
        .subquery()
    )
    ahead = (
        db.query(func.count())
        .select_from(totals)
        .filter(
            or_(
                totals.c.total_distance_m > row.total_distance_m,
                and_(
                    totals.c.total_distance_m == row.total_distance_m,
                    totals.c.user_id < user_id,
                ),
            )
        )
        .scalar()
    )
    return _entry(int(ahead) + 1, row)


def compute_leaderboard(
    db: Session,
    *,
    current_user_id: int | None = None,
    now: datetime | None = None,
    window_days: int | None = None,
    size: int | None = None,
) -> Leaderboard:
    """
    Rank users by distance covered in the trailing window.

    Ties on distance fall back to the lower user id so the order is stable
    between requests. The caller's own entry is reported even when it falls
    outside the returned top list.
    """
    now = now or datetime.now(timezone.utc)
    window_days = window_days if window_days is not None else settings.LEADERBOARD_WINDOW_DAYS
    size = size if size is not None else settings.LEADERBOARD_SIZE
    since = now - timedelta(days=window_days)

    rows = _ranked_rows(db, since=since, limit=size)
    entries = [_entry(position, row) for position, row in enumerate(rows, start=1)]

    current = None
    if current_user_id is not None:
        current = next((e for e in entries if e.user_id == current_user_id), None)
        if current is None:
            current = _entry_for_user(db, user_id=current_user_id, since=since)

    return Leaderboard(
        period=f"{window_days}days",
        start_date=since,
        end_date=now,
        entries=entries,
        current_user_entry=current,
    )
