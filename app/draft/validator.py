"""
Roster checks for a team draft.

Each check raises DraftRejected on the first violation. The checks only see
plain values; loading users and players is the service's job.
"""

from __future__ import annotations

import uuid
from collections import Counter
from typing import Iterable, List, Optional, Sequence, Union

from app.draft.rules import DRAFT_RULES, ROLE_ORDER, DraftErrorCode, DraftRejected, DraftRules

PlayerKey = Union[uuid.UUID, str]


def normalize_player_id(raw: str) -> PlayerKey:
    """UUID when the id parses as one, else the stripped string (it will not resolve)."""
    text = raw.strip()
    try:
        return uuid.UUID(text)
    except ValueError:
        return text


def validate_team_name(team_name: str, rules: DraftRules = DRAFT_RULES) -> str:
    name = team_name.strip()
    if not (rules.name_min_length <= len(name) <= rules.name_max_length):
        raise DraftRejected(
            DraftErrorCode.INVALID_NAME,
            f"Team name must be between {rules.name_min_length} and "
            f"{rules.name_max_length} characters",
        )
    return name


def ensure_no_team(has_team: bool) -> None:
    if has_team:
        raise DraftRejected(DraftErrorCode.ALREADY_HAS_TEAM, "You already have a team")


def validate_roster_ids(player_ids: Sequence[str], rules: DraftRules = DRAFT_RULES) -> List[PlayerKey]:
    """Size first, then uniqueness. Returns the normalized keys in submitted order."""
    size = rules.roster_size

    if len(player_ids) != size:
        raise DraftRejected(
            DraftErrorCode.WRONG_ROSTER_SIZE,
            f"You must select exactly {size} players, got {len(player_ids)}",
            required=size,
            actual=len(player_ids),
        )

    keys = [normalize_player_id(pid) for pid in player_ids]
    if len(set(keys)) != size:
        raise DraftRejected(
            DraftErrorCode.DUPLICATE_PLAYER,
            "You cannot select the same player twice",
        )
    return keys


def ensure_all_resolved(resolved_count: int, rules: DraftRules = DRAFT_RULES) -> None:
    if resolved_count < rules.roster_size:
        raise DraftRejected(
            DraftErrorCode.UNKNOWN_PLAYER,
            "Some of the selected players do not exist",
            missing=rules.roster_size - resolved_count,
        )


def first_role_mismatch(roles: Iterable[str], rules: DraftRules = DRAFT_RULES) -> Optional[tuple]:
    """(role, required, actual) for the first role off quota, in GK/DEF/MID/ATT order."""
    counts = Counter(roles)
    for role in ROLE_ORDER:
        required = rules.quota(role.value)
        actual = counts.get(role.value, 0)
        if actual != required:
            return role.value, required, actual
    return None


def validate_role_composition(roles: Iterable[str], rules: DraftRules = DRAFT_RULES) -> None:
    mismatch = first_role_mismatch(roles, rules)
    if mismatch is None:
        return

    role, required, actual = mismatch
    raise DraftRejected(
        DraftErrorCode.INVALID_ROLE_COMPOSITION,
        f"Invalid roster: need {required} {role}, have {actual}",
        role=role,
        required=required,
        actual=actual,
    )


def validate_budget(total_cost: int, budget: int) -> None:
    if total_cost > budget:
        raise DraftRejected(
            DraftErrorCode.INSUFFICIENT_BUDGET,
            f"Insufficient budget: cost {total_cost}, budget {budget}",
            total_cost=total_cost,
            budget=budget,
        )
