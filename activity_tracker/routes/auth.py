import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from activity_tracker.core.db import get_db
from activity_tracker.core.security import get_current_user_id
from activity_tracker.models.user import User
from activity_tracker.schemas.auth import (
    ChangePasswordIn,
    ForgotPasswordIn,
    LoginIn,
    LoginOut,
    RegisterIn,
    ResetPasswordIn,
)
from activity_tracker.schemas.common import MessageOut
from activity_tracker.services import identity
from activity_tracker.services.identity import IdentityError
from activity_tracker.services.mailer import EmailService, get_email_service, password_reset_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

FORGOT_PASSWORD_MESSAGE = (
    "Jeśli podany email istnieje w naszej bazie, wysłaliśmy instrukcję resetowania hasła."
)


@router.post("/register", response_model=MessageOut)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    if payload.password != payload.confirm_password:
        raise HTTPException(status_code=400, detail="Passwords do not match.")

    if identity.find_by_username(db, payload.username) is not None:
        raise HTTPException(status_code=400, detail="This username is already taken.")

    if identity.find_by_email(db, payload.email) is not None:
        raise HTTPException(status_code=400, detail="This email is already registered.")

    try:
        user = identity.create_user(
            db,
            username=payload.username,
            email=payload.email,
            password=payload.password,
        )
    except IdentityError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=exc.errors)

    db.commit()
    logger.info("User registered", extra={"user_id": user.id})
    return {"message": "User registered successfully!"}


@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    user = identity.authenticate(db, email=payload.email, password=payload.password)
    if user is None:
        logger.warning("Failed login attempt", extra={"email": payload.email})
        raise HTTPException(
            status_code=401,
            detail="Invalid credentials.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {
        "token": identity.issue_access_token(user),
        "email": user.email,
        "must_change_password": user.must_change_password,
    }


@router.post("/change-initial-password", response_model=MessageOut)
def change_initial_password(
    payload: ChangePasswordIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")

    if not user.must_change_password:
        raise HTTPException(status_code=400, detail="Nie musisz zmieniać hasła.")

    if payload.new_password != payload.confirm_new_password:
        raise HTTPException(status_code=400, detail="Hasła nie są identyczne.")

    try:
        identity.set_password(user, payload.new_password)
    except IdentityError as exc:
        raise HTTPException(status_code=400, detail=exc.errors)

    user.must_change_password = False
    db.commit()
    return {"message": "Hasło zostało zmienione."}


@router.post("/forgot-password", response_model=MessageOut)
def forgot_password(
    payload: ForgotPasswordIn,
    db: Session = Depends(get_db),
    mailer: EmailService = Depends(get_email_service),
):
    user = identity.find_by_email(db, payload.email)
    if user is None:
        # same answer as for a known address, so the endpoint cannot probe accounts
        return {"message": FORGOT_PASSWORD_MESSAGE}

    token = identity.generate_password_reset_token(user)
    subject, body = password_reset_email(user.username, token)

    try:
        mailer.send_email(user.email, subject, body)
    except Exception as exc:
        logger.exception("Password reset email failed", extra={"user_id": user.id})
        raise HTTPException(
            status_code=400,
            detail=(
                "Wystąpił błąd podczas wysyłania e-maila. Sprawdź konfigurację SMTP. "
                f"Szczegóły: {exc}"
            ),
        )

    return {"message": FORGOT_PASSWORD_MESSAGE}


@router.post("/reset-password", response_model=MessageOut)
def reset_password(payload: ResetPasswordIn, db: Session = Depends(get_db)):
    if payload.new_password != payload.confirm_new_password:
        raise HTTPException(status_code=400, detail="Hasła nie są identyczne.")

    user = identity.find_by_email(db, payload.email)
    if user is None:
        raise HTTPException(status_code=400, detail="Nieprawidłowy adres email.")

    try:
        identity.reset_password(user, payload.token, payload.new_password)
    except IdentityError as exc:
        raise HTTPException(status_code=400, detail=exc.errors)

    db.commit()
    return {"message": "Hasło zostało pomyślnie zmienione. Możesz się teraz zalogować."}
