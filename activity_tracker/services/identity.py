from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from activity_tracker.core.security import (
    create_access_token,
    create_password_reset_token,
    hash_password,
    verify_password,
    verify_password_reset_token,
)
from activity_tracker.models.role import USER_ROLE, Role
from activity_tracker.models.user import User

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 6


class IdentityError(Exception):
    """Carries a list of {code, description} errors suitable for a 400 body."""

    def __init__(self, errors: list[dict[str, str]]):
        super().__init__("; ".join(e["description"] for e in errors))
        self.errors = errors


def _error(code: str, description: str) -> dict[str, str]:
    return {"code": code, "description": description}


def password_policy_errors(password: str) -> list[dict[str, str]]:
    errors = []
    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append(
            _error(
                "PasswordTooShort",
                f"Passwords must be at least {PASSWORD_MIN_LENGTH} characters.",
            )
        )
    if not any(ch.isdigit() for ch in password):
        errors.append(_error("PasswordRequiresDigit", "Passwords must have at least one digit ('0'-'9')."))
    if not any(ch.islower() for ch in password):
        errors.append(_error("PasswordRequiresLower", "Passwords must have at least one lowercase ('a'-'z')."))
    if not any(ch.isupper() for ch in password):
        errors.append(_error("PasswordRequiresUpper", "Passwords must have at least one uppercase ('A'-'Z')."))
    if all(ch.isalnum() for ch in password):
        errors.append(
            _error("PasswordRequiresNonAlphanumeric", "Passwords must have at least one non alphanumeric character.")
        )
    return errors


def find_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).one_or_none()


def find_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(func.lower(User.username) == username.strip().lower()).one_or_none()


def get_or_create_role(db: Session, name: str) -> Role:
    role = db.query(Role).filter(Role.name == name).one_or_none()
    if role is None:
        role = Role(name=name)
        db.add(role)
        db.flush()
    return role


def add_to_roles(db: Session, user: User, role_names: Iterable[str]) -> None:
    current = {role.name for role in user.roles}
    for name in role_names:
        if name not in current:
            user.roles.append(get_or_create_role(db, name))


def create_user(
    db: Session,
    *,
    username: str,
    email: str,
    password: str,
    roles: Iterable[str] = (USER_ROLE,),
    must_change_password: bool = False,
) -> User:
    """Validate the password, hash it and stage a new user. Caller commits."""
    errors = password_policy_errors(password)
    if errors:
        raise IdentityError(errors)

    user = User(
        username=username.strip(),
        email=email.strip(),
        password_hash=hash_password(password),
        must_change_password=must_change_password,
    )
    db.add(user)
    add_to_roles(db, user, roles)
    db.flush()
    return user


def authenticate(db: Session, *, email: str, password: str) -> User | None:
    user = find_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


def set_password(user: User, new_password: str) -> None:
    errors = password_policy_errors(new_password)
    if errors:
        raise IdentityError(errors)
    user.password_hash = hash_password(new_password)


def generate_password_reset_token(user: User) -> str:
    return create_password_reset_token(user_id=user.id, password_hash=user.password_hash)


def reset_password(user: User, token: str, new_password: str) -> None:
    if not verify_password_reset_token(token, user_id=user.id, password_hash=user.password_hash):
        raise IdentityError([_error("InvalidToken", "Invalid token.")])
    set_password(user, new_password)
    logger.info("Password reset", extra={"user_id": user.id})


def issue_access_token(user: User) -> str:
    return create_access_token(
        user_id=user.id,
        email=user.email,
        username=user.username,
        roles=user.role_names,
    )
