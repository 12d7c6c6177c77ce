"""
Draft wizard state, as a client keeps it between steps.

Steps: NAME -> GK -> DEF -> MID -> ATT -> CONFIRM. The quota and budget
checks here only spare the user a failing round-trip; the server repeats
all of them on submit.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, List, Optional, Set

from app.draft.rules import DRAFT_RULES, ROLE_ORDER, DraftRules
from app.draft.schemas import CreateTeamRequest, RealPlayerOut


class WizardStep(str, Enum):
    NAME = "NAME"
    GK = "GK"
    DEF = "DEF"
    MID = "MID"
    ATT = "ATT"
    CONFIRM = "CONFIRM"


STEPS: List[WizardStep] = [
    WizardStep.NAME,
    *(WizardStep(role.value) for role in ROLE_ORDER),
    WizardStep.CONFIRM,
]


class DraftWizard:
    def __init__(self, players: Iterable[RealPlayerOut], budget: int, rules: DraftRules = DRAFT_RULES):
        self.players: Dict[str, RealPlayerOut] = {p.id: p for p in players}
        self.budget = budget
        self.rules = rules

        self.team_name = ""
        self.selected: Set[str] = set()
        self.search = ""
        self._index = 0
        self.error: Optional[str] = None

    # ------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------

    @property
    def step(self) -> WizardStep:
        return STEPS[self._index]

    @property
    def spent(self) -> int:
        return sum(self.players[pid].value for pid in self.selected)

    @property
    def remaining(self) -> int:
        return self.budget - self.spent

    def count_for_role(self, role: str) -> int:
        return sum(1 for pid in self.selected if self.players[pid].role == role)

    def players_for_role(self, role: str) -> List[RealPlayerOut]:
        """Players of one role, narrowed by the search text (player or school name)."""
        query = self.search.strip().lower()
        return [
            p for p in self.players.values()
            if p.role == role
            and (not query or query in p.name.lower() or query in p.school_name.lower())
        ]

    def can_select(self, player_id: str) -> bool:
        player = self.players.get(player_id)
        if player is None or player_id in self.selected:
            return False
        if self.count_for_role(player.role) >= self.rules.quota(player.role):
            return False
        return player.value <= self.remaining

    # ------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------

    def toggle(self, player_id: str) -> bool:
        """Deselect if chosen, else select when allowed. Returns whether anything changed."""
        self.error = None
        if player_id in self.selected:
            self.selected.discard(player_id)
            return True
        if not self.can_select(player_id):
            return False
        self.selected.add(player_id)
        return True

    def can_advance(self) -> bool:
        step = self.step
        if step is WizardStep.NAME:
            length = len(self.team_name.strip())
            return self.rules.name_min_length <= length <= self.rules.name_max_length
        if step is WizardStep.CONFIRM:
            return True
        return self.count_for_role(step.value) == self.rules.quota(step.value)

    def next(self) -> WizardStep:
        if self._index < len(STEPS) - 1 and self.can_advance():
            self._index += 1
        return self.step

    def back(self) -> WizardStep:
        if self._index > 0:
            self._index -= 1
        return self.step

    def request(self) -> CreateTeamRequest:
        return CreateTeamRequest(
            team_name=self.team_name.strip(),
            player_ids=sorted(self.selected),
        )

    def record_failure(self, message: str) -> None:
        # Selection is kept so the user can fix it from the confirm step.
        self.error = message
