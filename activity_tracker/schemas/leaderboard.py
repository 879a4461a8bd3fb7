from datetime import datetime

from pydantic import BaseModel, ConfigDict


class LeaderboardEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rank: int
    user_id: int
    display_name: str
    avatar_url: str | None
    total_distance_km: float
    activity_count: int
    total_duration_seconds: int


class LeaderboardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    period: str
    start_date: datetime
    end_date: datetime
    entries: list[LeaderboardEntryOut]
    current_user_entry: LeaderboardEntryOut | None
