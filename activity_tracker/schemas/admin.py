from datetime import date, datetime

from pydantic import BaseModel


class AdminUserOut(BaseModel):
    id: int
    email: str
    username: str
    first_name: str | None
    last_name: str | None
    avatar_url: str | None
    activities_count: int
    date_of_birth: date | None
    gender: str | None
    height: float | None
    weight: float | None
    roles: list[str]


class AdminActivityOut(BaseModel):
    id: int
    user_id: int
    username: str
    user_avatar_url: str | None
    title: str
    activity_type: str
    distance_m: float
    duration_s: int
    started_at: datetime
    created_at: datetime


class AdminStatsOut(BaseModel):
    total_users: int
    total_activities: int
    total_distance_km: float
    total_duration_hours: float
