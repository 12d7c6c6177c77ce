"""Fixed draft rules: roles, quotas, roster size and team-name bounds."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Tuple


class Role(str, Enum):
    GK = "GK"
    DEF = "DEF"
    MID = "MID"
    ATT = "ATT"


# Display and validation order
ROLE_ORDER: Tuple[Role, ...] = (Role.GK, Role.DEF, Role.MID, Role.ATT)


@dataclass(frozen=True)
class DraftRules:
    role_quotas: Mapping[str, int]
    name_min_length: int
    name_max_length: int
    default_budget: int

    @property
    def roster_size(self) -> int:
        return sum(self.role_quotas.values())

    def quota(self, role: str) -> int:
        return self.role_quotas.get(role, 0)


DRAFT_RULES = DraftRules(
    role_quotas={
        Role.GK.value: 2,
        Role.DEF.value: 5,
        Role.MID.value: 5,
        Role.ATT.value: 3,
    },
    name_min_length=2,
    name_max_length=30,
    default_budget=100,
)


class DraftErrorCode(str, Enum):
    UNAUTHENTICATED = "Unauthenticated"
    INVALID_NAME = "InvalidName"
    ALREADY_HAS_TEAM = "AlreadyHasTeam"
    WRONG_ROSTER_SIZE = "WrongRosterSize"
    DUPLICATE_PLAYER = "DuplicatePlayer"
    UNKNOWN_PLAYER = "UnknownPlayer"
    INVALID_ROLE_COMPOSITION = "InvalidRoleComposition"
    INSUFFICIENT_BUDGET = "InsufficientBudget"
    COMMIT_FAILED = "CommitFailed"


class DraftRejected(Exception):
    """Raised inside the draft workflow; converted to a DraftResult at its boundary."""

    def __init__(self, code: DraftErrorCode, message: str, **details):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details
