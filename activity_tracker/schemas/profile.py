from datetime import date

from pydantic import BaseModel, Field


class ProfileOut(BaseModel):
    username: str
    email: str
    first_name: str | None
    last_name: str | None
    date_of_birth: date | None
    gender: str | None
    height: float | None
    weight: float | None
    avatar_url: str | None

    total_distance_km: float
    total_activities: int
    total_duration_seconds: int


class ProfileUpdateIn(BaseModel):
    username: str | None = Field(default=None, max_length=256)
    first_name: str | None = Field(default=None, max_length=50)
    last_name: str | None = Field(default=None, max_length=50)
    date_of_birth: date | None = None
    gender: str | None = Field(default=None, max_length=20)
    height: float | None = Field(default=None, ge=0, le=300)
    weight: float | None = Field(default=None, ge=0, le=500)
    avatar_url: str | None = Field(default=None, max_length=1024, pattern=r"^https?://")
