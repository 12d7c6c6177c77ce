"""
Profile endpoints for the signed-in user.

Scope:
- Profile read / update (names only)
- Password set or change
- Email change, confirmed from the new address
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.common.auth import (
    get_current_user,
    hash_password,
    is_strong_password,
    is_valid_email,
    normalize_email,
)
from app.common.email import EmailSender, get_email_sender
from app.common.logger import get_logger
from app.persistence.session import get_db
from app.persistence.models import User, VerificationToken
from app.persistence.resolver import (
    EMAIL_CHANGE_PREFIX,
    drop_pending_email_changes,
    email_change_identifier,
    is_expired,
    issue_token,
    parse_email_change_identifier,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/me", tags=["me"])

NAME_MAX = 100
PART_NAME_MAX = 50


# ------------------------------------------------------------
# Models
# ------------------------------------------------------------
class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class PasswordChange(BaseModel):
    password: str = ""
    confirm_password: str = ""


class EmailChange(BaseModel):
    email: str = ""


def _profile(user: User) -> dict:
    # Never expose password_hash
    return {
        "id": str(user.user_id),
        "email": user.email,
        "name": user.name,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "image": user.image,
        "email_verified": user.email_verified,
        "created_at": user.created_at,
        "budget": user.budget,
        "has_team": user.has_team,
        "has_password": bool(user.password_hash),
        "has_google_account": any(a.provider == "google" for a in user.oauth_accounts),
    }


def _clean(value: str, limit: int) -> Optional[str]:
    trimmed = value.strip()
    return trimmed[:limit] if trimmed else None


def _parse_user_id(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail="Malformed token")


# ------------------------------------------------------------
# Profile
# ------------------------------------------------------------
@router.get("")
def get_me(user: User = Depends(get_current_user)):
    return _profile(user)


@router.put("")
def update_me(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updates = {}
    if payload.name is not None:
        updates["name"] = _clean(payload.name, NAME_MAX)
    if payload.first_name is not None:
        updates["first_name"] = _clean(payload.first_name, PART_NAME_MAX)
    if payload.last_name is not None:
        updates["last_name"] = _clean(payload.last_name, PART_NAME_MAX)

    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    for field, value in updates.items():
        setattr(user, field, value)
    db.commit()

    return _profile(user)


# ------------------------------------------------------------
# Password
# ------------------------------------------------------------
@router.post("/password")
def change_password(
    payload: PasswordChange,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not payload.password or not payload.confirm_password:
        raise HTTPException(status_code=400, detail="Password and confirmation are required")

    if payload.password != payload.confirm_password:
        raise HTTPException(status_code=400, detail="Passwords do not match")

    if not is_strong_password(payload.password):
        raise HTTPException(
            status_code=400,
            detail="Password needs at least 8 characters, an uppercase letter, a lowercase letter and a digit",
        )

    user.password_hash = hash_password(payload.password)
    db.commit()

    logger.info(f"[auth] password updated user={user.user_id}")
    return {"success": True}


# ------------------------------------------------------------
# Email change
# ------------------------------------------------------------
@router.post("/email")
def request_email_change(
    payload: EmailChange,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    mailer: EmailSender = Depends(get_email_sender),
):
    new_email = normalize_email(payload.email)

    if not new_email:
        raise HTTPException(status_code=400, detail="Email required")

    if not is_valid_email(new_email):
        raise HTTPException(status_code=400, detail="Invalid email format")

    if user.email.lower() == new_email:
        raise HTTPException(status_code=400, detail="New email is the same as the current one")

    taken = db.query(User.user_id).filter(User.email == new_email).first()
    if taken and taken.user_id != user.user_id:
        raise HTTPException(status_code=409, detail="Email already used by another account")

    drop_pending_email_changes(db, user.user_id)
    token = issue_token(db, email_change_identifier(user.user_id, new_email))
    db.commit()

    result = mailer.send_email_change_verification(new_email, token, user.name)
    if not result.success:
        db.query(VerificationToken).filter_by(token=token).delete(synchronize_session=False)
        db.commit()
        raise HTTPException(status_code=500, detail="Could not send the verification email")

    return {"success": True, "message": "Verification email sent to the new address"}


@router.get("/email/verify")
def confirm_email_change(token: Optional[str] = None, db: Session = Depends(get_db)):
    if not token:
        raise HTTPException(status_code=400, detail="Missing token")

    record = (
        db.query(VerificationToken)
        .filter(
            VerificationToken.token == token,
            VerificationToken.identifier.startswith(EMAIL_CHANGE_PREFIX),
        )
        .first()
    )
    if not record:
        raise HTTPException(status_code=404, detail="Invalid or already used token")

    if is_expired(record):
        db.delete(record)
        db.commit()
        raise HTTPException(status_code=410, detail="Token expired, request a new email change")

    parsed = parse_email_change_identifier(record.identifier)
    if parsed is None:
        raise HTTPException(status_code=400, detail="Malformed token")
    user_id, new_email = parsed

    user = db.query(User).filter(User.user_id == _parse_user_id(user_id)).first()
    if not user:
        db.delete(record)
        db.commit()
        raise HTTPException(status_code=404, detail="User not found")

    taken = db.query(User.user_id).filter(User.email == new_email).first()
    if taken and taken.user_id != user.user_id:
        db.delete(record)
        db.commit()
        raise HTTPException(status_code=409, detail="Email already used by another account")

    user.email = new_email
    user.email_verified = datetime.now(timezone.utc)
    db.delete(record)
    db.commit()

    logger.info(f"[auth] email changed user={user.user_id}")
    return {"success": True, "email": new_email}
