from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from sqlalchemy.orm import Session

from activity_tracker.core.db import get_db
from activity_tracker.core.security import get_current_user_id
from activity_tracker.models.user import User
from activity_tracker.schemas.common import MessageOut, UploadOut
from activity_tracker.schemas.profile import ProfileOut, ProfileUpdateIn
from activity_tracker.services.identity import find_by_username
from activity_tracker.services.leaderboard import meters_to_km
from activity_tracker.services.profile_stats import lifetime_totals
from activity_tracker.services.uploads import AVATARS_DIR, UploadError, save_image_upload

router = APIRouter(prefix="/profile", tags=["profile"])

PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "date_of_birth",
    "gender",
    "height",
    "weight",
    "avatar_url",
)


def _current_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found.")
    return user


@router.get("", response_model=ProfileOut)
def get_profile(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    user = _current_user(db, user_id)
    totals = lifetime_totals(db, user.id)

    return {
        "username": user.username,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "date_of_birth": user.date_of_birth,
        "gender": user.gender,
        "height": user.height,
        "weight": user.weight,
        "avatar_url": user.avatar_url,
        "total_distance_km": meters_to_km(totals.distance_m),
        "total_activities": totals.count,
        "total_duration_seconds": totals.duration_s,
    }


@router.put("", response_model=MessageOut)
def update_profile(
    payload: ProfileUpdateIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    user = _current_user(db, user_id)

    new_username = (payload.username or "").strip()
    if new_username and new_username != user.username:
        existing = find_by_username(db, new_username)
        if existing is not None and existing.id != user.id:
            raise HTTPException(status_code=400, detail="Ten nick jest już zajęty.")
        user.username = new_username

    # absent fields keep their stored values
    for field_name in PROFILE_FIELDS:
        value = getattr(payload, field_name)
        if value is not None:
            setattr(user, field_name, value)

    db.commit()
    return {"message": "Profile updated successfully."}


@router.post("/upload-avatar", response_model=UploadOut)
def upload_avatar(
    request: Request,
    file: UploadFile | None = File(default=None),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    user = _current_user(db, user_id)

    try:
        avatar_url = save_image_upload(request, file, subdir=AVATARS_DIR, owner_id=user.id)
    except UploadError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    user.avatar_url = avatar_url
    db.commit()
    return {"url": avatar_url, "message": "Awatar zaktualizowany."}
