from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from activity_tracker.models.base import Base

DEFAULT_ACTIVITY_TITLE = "Bez tytułu"
DEFAULT_ACTIVITY_TYPE = "Running"


class Activity(Base):
    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    user: Mapped["User"] = relationship("User", back_populates="activities")

    title: Mapped[str] = mapped_column(String(255), default=DEFAULT_ACTIVITY_TITLE)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    activity_type: Mapped[str] = mapped_column(
        String(50),
        default=DEFAULT_ACTIVITY_TYPE,
        server_default=DEFAULT_ACTIVITY_TYPE,
    )

    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    ended_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    duration_s: Mapped[int] = mapped_column(Integer, default=0)
    distance_m: Mapped[float] = mapped_column(Float, default=0.0)
    avg_speed_mps: Mapped[float] = mapped_column(Float, default=0.0)
    max_speed_mps: Mapped[float | None] = mapped_column(Float, nullable=True)

    # GeoJSON LineString, coordinates in [lon, lat] order
    route_geojson: Mapped[str | None] = mapped_column(Text, nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
