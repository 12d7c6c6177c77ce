from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    String,
    Integer,
    Boolean,
    ForeignKey,
    TIMESTAMP,
    CheckConstraint,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


DEFAULT_BUDGET = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =====================================================
# Base
# =====================================================

class Base(DeclarativeBase):
    pass


# =====================================================
# Identity
# =====================================================

class User(Base):
    __tablename__ = "users"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    email_verified: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=True,
    )
    password_hash: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    image: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    # -------------------------------------------------
    # Draft state (only the draft service writes these)
    # -------------------------------------------------
    budget: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=DEFAULT_BUDGET,
    )
    has_team: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        default=_utcnow,
        nullable=False,
    )

    oauth_accounts: Mapped[List["OAuthAccount"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )


class OAuthAccount(Base):
    __tablename__ = "oauth_accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )

    provider: Mapped[str] = mapped_column(String, nullable=False)
    provider_account_id: Mapped[str] = mapped_column(String, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        default=_utcnow,
        nullable=False,
    )

    user: Mapped[User] = relationship(back_populates="oauth_accounts")

    __table_args__ = (
        UniqueConstraint(
            "provider",
            "provider_account_id",
            name="uq_oauth_provider_account",
        ),
    )


class VerificationToken(Base):
    __tablename__ = "verification_tokens"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # Email address, or "email-change:<user_id>:<new_email>"
    identifier: Mapped[str] = mapped_column(String, nullable=False)
    token: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    expires: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint(
            "identifier",
            "token",
            name="uq_verification_identifier_token",
        ),
    )


# =====================================================
# Catalog (seeded, read-only for the app)
# =====================================================

class School(Base):
    __tablename__ = "schools"

    school_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)

    players: Mapped[List["RealPlayer"]] = relationship(back_populates="school")


class RealPlayer(Base):
    __tablename__ = "real_players"

    player_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    school_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("schools.school_id"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[str] = mapped_column(String(3), nullable=False)
    value: Mapped[int] = mapped_column(Integer, nullable=False)

    school: Mapped[School] = relationship(back_populates="players")

    __table_args__ = (
        CheckConstraint(
            "role IN ('GK','DEF','MID','ATT')",
            name="ck_real_player_role",
        ),
        CheckConstraint(
            "value >= 0",
            name="ck_real_player_value",
        ),
    )


# =====================================================
# Fantasy teams
# =====================================================

class FantasyTeam(Base):
    __tablename__ = "fantasy_teams"

    team_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # One team per user, enforced by the store itself
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.user_id"),
        unique=True,
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(30), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        default=_utcnow,
        nullable=False,
    )

    players: Mapped[List["FantasyTeamPlayer"]] = relationship(
        back_populates="team",
        cascade="all, delete-orphan",
    )


class FantasyTeamPlayer(Base):
    __tablename__ = "fantasy_team_players"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    team_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("fantasy_teams.team_id"),
        nullable=False,
    )

    real_player_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("real_players.player_id"),
        nullable=False,
    )

    team: Mapped[FantasyTeam] = relationship(back_populates="players")
    real_player: Mapped[RealPlayer] = relationship()

    __table_args__ = (
        UniqueConstraint(
            "team_id",
            "real_player_id",
            name="uq_fantasy_team_player",
        ),
    )
