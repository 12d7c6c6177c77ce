"""
Team draft workflow.

Supports:
- Catalog of draftable players (read-only)
- Current budget of a user
- Team creation: validate, then commit team + roster + budget debit atomically

IMPORTANT:
- Every rule is re-derived here from stored data; nothing the client
  computed (totals, role counts) is trusted
- fantasy_teams.user_id is UNIQUE, so a concurrent second draft fails
  inside the commit instead of slipping past the has_team read
"""

from __future__ import annotations

import uuid
from typing import List, Optional, Sequence

from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from app.common.logger import get_logger
from app.draft.rules import DRAFT_RULES, ROLE_ORDER, DraftErrorCode, DraftRejected, DraftRules
from app.draft.schemas import DraftResult, RealPlayerOut, TeamResponse
from app.draft import validator
from app.persistence.models import FantasyTeam, FantasyTeamPlayer, RealPlayer, User

logger = get_logger(__name__)

_ROLE_RANK = {role.value: rank for rank, role in enumerate(ROLE_ORDER)}


def _player_out(player: RealPlayer) -> RealPlayerOut:
    return RealPlayerOut(
        id=str(player.player_id),
        name=player.name,
        role=player.role,
        school_name=player.school.name,
        value=player.value,
    )


# ------------------------------------------------------------
# Catalog
# ------------------------------------------------------------

def get_available_players(db: Session) -> List[RealPlayerOut]:
    """All players, by role (GK, DEF, MID, ATT) then most valuable first."""
    role_rank = case(_ROLE_RANK, value=RealPlayer.role, else_=len(_ROLE_RANK))

    players = (
        db.query(RealPlayer)
        .options(joinedload(RealPlayer.school))
        .order_by(role_rank, RealPlayer.value.desc(), RealPlayer.name)
        .all()
    )
    return [_player_out(p) for p in players]


# ------------------------------------------------------------
# Budget
# ------------------------------------------------------------

def get_user_budget(db: Session, user_id: Optional[uuid.UUID], rules: DraftRules = DRAFT_RULES) -> int:
    if user_id is None:
        raise DraftRejected(DraftErrorCode.UNAUTHENTICATED, "Not authenticated")

    budget = db.query(User.budget).filter(User.user_id == user_id).scalar()
    return rules.default_budget if budget is None else budget


# ------------------------------------------------------------
# Create team
# ------------------------------------------------------------

def create_team(
    db: Session,
    user_id: Optional[uuid.UUID],
    team_name: str,
    player_ids: Sequence[str],
    rules: DraftRules = DRAFT_RULES,
) -> DraftResult:
    try:
        return _create_team(db, user_id, team_name, player_ids, rules)
    except DraftRejected as rejected:
        logger.info(f"[draft] rejected user={user_id} code={rejected.code.value}: {rejected.message}")
        return DraftResult(
            success=False,
            error=rejected.message,
            code=rejected.code.value,
            details=rejected.details,
        )


def _create_team(db, user_id, team_name, player_ids, rules) -> DraftResult:
    if user_id is None:
        raise DraftRejected(DraftErrorCode.UNAUTHENTICATED, "Not authenticated")

    name = validator.validate_team_name(team_name, rules)

    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise DraftRejected(DraftErrorCode.UNAUTHENTICATED, "Not authenticated")

    validator.ensure_no_team(user.has_team)

    keys = validator.validate_roster_ids(player_ids, rules)

    uuids = [k for k in keys if isinstance(k, uuid.UUID)]
    players = (
        db.query(RealPlayer).filter(RealPlayer.player_id.in_(uuids)).all()
        if uuids else []
    )
    validator.ensure_all_resolved(len(players), rules)

    validator.validate_role_composition((p.role for p in players), rules)

    total_cost = sum(p.value for p in players)
    budget = rules.default_budget if user.budget is None else user.budget
    validator.validate_budget(total_cost, budget)

    _commit_team(db, user.user_id, name, uuids, total_cost)

    logger.info(f"[draft] team created user={user_id} name={name!r} cost={total_cost}")
    return DraftResult.ok()


def _commit_team(db: Session, user_id: uuid.UUID, name: str, player_ids: List[uuid.UUID], total_cost: int) -> None:
    """
    Team, roster links and the user's budget/flag in one transaction.

    The user update is conditional on has_team still being false and the
    budget still covering the cost; zero rows means a concurrent write
    changed one of them, reported as AlreadyHasTeam or InsufficientBudget.
    """
    try:
        team = FantasyTeam(name=name, user_id=user_id)
        db.add(team)
        db.flush()

        db.add_all([
            FantasyTeamPlayer(team_id=team.team_id, real_player_id=pid)
            for pid in player_ids
        ])

        updated = db.execute(
            update(User)
            .where(
                User.user_id == user_id,
                User.has_team.is_(False),
                User.budget >= total_cost,
            )
            .values(has_team=True, budget=User.budget - total_cost)
            .execution_options(synchronize_session=False)
        ).rowcount

        if updated != 1:
            db.rollback()
            # Name whichever condition a concurrent write broke
            current = db.query(User.has_team, User.budget).filter(User.user_id == user_id).one()
            if not current.has_team:
                validator.validate_budget(total_cost, current.budget)
            logger.warning(f"[draft] concurrent team creation blocked user={user_id}")
            raise DraftRejected(DraftErrorCode.ALREADY_HAS_TEAM, "You already have a team")

        db.commit()

    except IntegrityError:
        db.rollback()
        logger.warning(f"[draft] concurrent team creation blocked user={user_id}")
        raise DraftRejected(DraftErrorCode.ALREADY_HAS_TEAM, "You already have a team")

    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"[draft] transaction error user={user_id}")
        raise DraftRejected(DraftErrorCode.COMMIT_FAILED, "Error while creating the team")


# ------------------------------------------------------------
# Read back
# ------------------------------------------------------------

def get_team(db: Session, user_id: uuid.UUID) -> Optional[TeamResponse]:
    team = (
        db.query(FantasyTeam)
        .options(
            selectinload(FantasyTeam.players)
            .joinedload(FantasyTeamPlayer.real_player)
            .joinedload(RealPlayer.school)
        )
        .filter(FantasyTeam.user_id == user_id)
        .first()
    )
    if not team:
        return None

    budget = db.query(User.budget).filter(User.user_id == user_id).scalar()

    roster = sorted(
        (link.real_player for link in team.players),
        key=lambda p: (_ROLE_RANK.get(p.role, len(_ROLE_RANK)), -p.value, p.name),
    )

    return TeamResponse(
        team_id=str(team.team_id),
        name=team.name,
        total_cost=sum(p.value for p in roster),
        budget=budget,
        players=[_player_out(p) for p in roster],
    )
