from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.common.auth import (
    hash_password,
    verify_password,
    create_access_token,
    get_current_user,
    is_strong_password,
    is_valid_email,
    normalize_email,
)
from app.common.config import get_idp_secret, google_configured
from app.common.email import EmailSender, get_email_sender, send_in_background
from app.common.logger import get_logger
from app.persistence.session import get_db
from app.persistence.models import User, VerificationToken
from app.persistence.resolver import issue_token, is_expired, resolve_federated_user

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ------------------------------------------------------------
# Models
# ------------------------------------------------------------
class SignupRequest(BaseModel):
    email: str
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class FederatedIdentity(BaseModel):
    provider_account_id: str = Field(..., min_length=1)
    email: str
    name: Optional[str] = None
    image: Optional[str] = None


# ------------------------------------------------------------
# Signup
# ------------------------------------------------------------
@router.post("/signup", status_code=201)
def signup(
    payload: SignupRequest,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    mailer: EmailSender = Depends(get_email_sender),
):
    email = normalize_email(payload.email)
    first_name = (payload.first_name or "").strip() or None
    last_name = (payload.last_name or "").strip() or None

    if not is_valid_email(email):
        raise HTTPException(status_code=400, detail="Invalid email")

    if not is_strong_password(payload.password):
        raise HTTPException(status_code=400, detail="Weak password")

    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise HTTPException(status_code=409, detail="Email already in use")

    user = User(
        email=email,
        password_hash=hash_password(payload.password),
        first_name=first_name,
        last_name=last_name,
        name=" ".join(p for p in (first_name, last_name) if p) or None,
    )
    db.add(user)
    token = issue_token(db, email)
    db.commit()

    logger.info(f"[auth] signup user={user.user_id}")
    background.add_task(send_in_background, mailer.send_verification_email, email, token, user.name)

    return {"ok": True}


# ------------------------------------------------------------
# Login
# ------------------------------------------------------------
@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):

    email = normalize_email(payload.email)
    if not email or not payload.password:
        raise HTTPException(status_code=400, detail="Missing credentials")

    user = db.query(User).filter(User.email == email).first()

    if not user or not user.password_hash or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return {"access_token": create_access_token(user)}


# ------------------------------------------------------------
# Federated identity
# ------------------------------------------------------------
@router.get("/providers")
def providers():
    result = {
        "credentials": {
            "id": "credentials",
            "name": "Email and password",
            "type": "credentials",
            "login_url": "/auth/login",
        }
    }
    if google_configured():
        result["google"] = {
            "id": "google",
            "name": "Google",
            "type": "oauth",
            "callback_url": "/auth/callback/google",
        }
    return result


@router.post("/callback/{provider}")
def federated_callback(
    provider: str,
    identity: FederatedIdentity,
    x_identity_secret: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    """
    Called by the identity-provider bridge once the provider has
    authenticated the user. The bridge proves itself with a shared secret.
    """
    secret = get_idp_secret()
    if not secret or x_identity_secret != secret:
        raise HTTPException(status_code=403, detail="Untrusted identity callback")

    provider = provider.lower()
    if provider == "google" and not google_configured():
        raise HTTPException(status_code=404, detail="Provider not configured")

    email = normalize_email(identity.email)
    if not is_valid_email(email):
        raise HTTPException(status_code=400, detail="Invalid email")

    user = resolve_federated_user(
        db,
        provider=provider,
        provider_account_id=identity.provider_account_id,
        email=email,
        name=(identity.name or "").strip() or None,
        image=identity.image,
    )
    db.commit()

    return {"access_token": create_access_token(user)}


# ------------------------------------------------------------
# Email verification
# ------------------------------------------------------------
@router.get("/verify-email")
def verify_email(
    background: BackgroundTasks,
    token: Optional[str] = None,
    email: Optional[str] = None,
    db: Session = Depends(get_db),
    mailer: EmailSender = Depends(get_email_sender),
):
    if not token or not email:
        raise HTTPException(status_code=400, detail="Invalid verification link")

    email = normalize_email(email)
    record = (
        db.query(VerificationToken)
        .filter_by(identifier=email, token=token)
        .first()
    )
    if not record:
        raise HTTPException(status_code=404, detail="Invalid verification token")

    if is_expired(record):
        db.delete(record)
        db.commit()
        raise HTTPException(status_code=410, detail="Verification token expired")

    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    user.email_verified = datetime.now(timezone.utc)
    db.delete(record)
    db.commit()

    background.add_task(send_in_background, mailer.send_welcome_email, email, user.name)

    return {"ok": True, "verified": True}


@router.post("/resend-verification")
def resend_verification(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    mailer: EmailSender = Depends(get_email_sender),
):
    if user.email_verified:
        raise HTTPException(status_code=400, detail="Email already verified")

    db.query(VerificationToken).filter_by(identifier=user.email).delete(synchronize_session=False)
    token = issue_token(db, user.email)
    db.commit()

    result = mailer.send_verification_email(user.email, token, user.name)
    if not result.success:
        raise HTTPException(status_code=500, detail="Could not send the email, try again later")

    return {"success": True, "message": "Verification email sent"}
