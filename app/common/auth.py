import re
import uuid
import jwt
import bcrypt
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.common.config import ALGORITHM, ACCESS_TOKEN_EXPIRE_DAYS, get_secret_key
from app.persistence.session import get_db
from app.persistence.models import User

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

BCRYPT_ROUNDS = 12

# Missing credentials get a 401 from get_current_user
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(BCRYPT_ROUNDS)).decode()


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode(), hashed.encode())


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value))


def is_strong_password(value: str) -> bool:
    """At least 8 chars with an uppercase letter, a lowercase letter and a digit."""
    return (
        len(value) >= 8
        and re.search(r"[A-Z]", value) is not None
        and re.search(r"[a-z]", value) is not None
        and re.search(r"\d", value) is not None
    )


def normalize_email(value) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def create_access_token(user: User) -> str:
    payload = {
        "sub": str(user.user_id),
        "email": user.email,
        "exp": datetime.now(timezone.utc) + timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS),
    }
    return jwt.encode(payload, get_secret_key(), algorithm=ALGORITHM)


def _resolve_user(token: str, db: Session) -> Optional[User]:
    try:
        payload = jwt.decode(token, get_secret_key(), algorithms=[ALGORITHM])
        user_id = uuid.UUID(str(payload.get("sub")))
    except (jwt.PyJWTError, ValueError):
        return None

    return db.query(User).filter(User.user_id == user_id).first()


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
):
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = _resolve_user(credentials.credentials, db)
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Same as get_current_user, but lets the route decide how to reject."""
    if credentials is None:
        return None
    return _resolve_user(credentials.credentials, db)
