import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from app.persistence.models import User, OAuthAccount, VerificationToken
from app.common.logger import get_logger

logger = get_logger(__name__)

EMAIL_CHANGE_PREFIX = "email-change:"
VERIFICATION_TTL = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    # SQLite hands back naive timestamps
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def resolve_federated_user(
    db,
    provider: str,
    provider_account_id: str,
    email: str,
    name: Optional[str] = None,
    image: Optional[str] = None,
) -> User:
    """
    mkdir -p semantics for a federated login.

    Rules:
    - existing (provider, provider_account_id) link wins
    - else link to the user owning the email
    - else create the user, with no password
    The provider vouches for the address, so it is marked verified.
    Caller commits.
    """

    link = (
        db.query(OAuthAccount)
        .filter_by(provider=provider, provider_account_id=provider_account_id)
        .first()
    )
    if link:
        user = link.user
    else:
        user = db.query(User).filter_by(email=email).first()
        if not user:
            user = User(email=email, name=name, image=image)
            db.add(user)
            db.flush()
            logger.info(f"[identity] created user id={user.user_id} via {provider}")

        db.add(
            OAuthAccount(
                user_id=user.user_id,
                provider=provider,
                provider_account_id=provider_account_id,
            )
        )
        logger.info(f"[identity] linked {provider} account to user={user.user_id}")

    if name:
        user.name = name
    if image:
        user.image = image
    if user.email_verified is None and user.email == email:
        user.email_verified = _utcnow()

    return user


# ------------------------------------------------------------
# Verification tokens
# ------------------------------------------------------------

def issue_token(db, identifier: str, ttl: timedelta = VERIFICATION_TTL) -> str:
    token = secrets.token_hex(32)
    db.add(
        VerificationToken(
            identifier=identifier,
            token=token,
            expires=_utcnow() + ttl,
        )
    )
    return token


def is_expired(record: VerificationToken) -> bool:
    return _as_aware(record.expires) < _utcnow()


def email_change_identifier(user_id, new_email: str) -> str:
    return f"{EMAIL_CHANGE_PREFIX}{user_id}:{new_email}"


def parse_email_change_identifier(identifier: str):
    """(user_id, new_email), or None if the identifier is malformed."""
    parts = identifier.split(":")
    if len(parts) < 3 or parts[0] + ":" != EMAIL_CHANGE_PREFIX:
        return None
    return parts[1], ":".join(parts[2:])


def drop_pending_email_changes(db, user_id) -> None:
    (
        db.query(VerificationToken)
        .filter(VerificationToken.identifier.startswith(f"{EMAIL_CHANGE_PREFIX}{user_id}:"))
        .delete(synchronize_session=False)
    )
