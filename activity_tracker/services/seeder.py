from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from activity_tracker.core.config import settings
from activity_tracker.models.role import ADMIN_ROLE, USER_ROLE
from activity_tracker.services.identity import create_user, find_by_email, get_or_create_role

logger = logging.getLogger(__name__)


def seed_roles(db: Session) -> None:
    for name in (ADMIN_ROLE, USER_ROLE):
        get_or_create_role(db, name)


def seed_admin(db: Session, *, email: str | None = None, password: str | None = None) -> bool:
    """Create the bootstrap admin if missing. Returns True when an account was created."""
    email = email or settings.ADMIN_EMAIL
    if find_by_email(db, email) is not None:
        return False

    create_user(
        db,
        username=email,
        email=email,
        password=password or settings.ADMIN_PASSWORD,
        roles=(ADMIN_ROLE,),
        must_change_password=True,
    )
    logger.info("Bootstrap admin created", extra={"email": email})
    return True


def seed_database(db: Session) -> None:
    seed_roles(db)
    seed_admin(db)
    db.commit()
