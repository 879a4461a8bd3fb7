from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

RoutePoint = Annotated[list[float], Field(min_length=2, max_length=3)]


class ActivitySaveIn(BaseModel):
    title: str | None = Field(default=None, max_length=255)
    description: str | None = None
    activity_type: str | None = Field(default=None, max_length=50)
    duration_s: int = Field(default=0, ge=0)
    distance_m: float = Field(default=0.0, ge=0.0)
    avg_speed_mps: float = Field(default=0.0, ge=0.0)
    max_speed_mps: float | None = Field(default=None, ge=0.0)
    # [lat, lon] pairs in recording order
    route: list[RoutePoint] | None = None


class ActivitySavedOut(BaseModel):
    id: int
    message: str


class ActivityHistoryItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    activity_type: str
    started_at: datetime
    duration_s: int
    distance_m: float
    avg_speed_mps: float
    photo_url: str | None


class ActivityDetailOut(ActivityHistoryItem):
    description: str | None
    ended_at: datetime
    max_speed_mps: float | None
    route_geojson: str | None
