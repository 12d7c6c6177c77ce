from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class RealPlayerOut(BaseModel):
    id: str
    name: str
    role: str
    school_name: str
    value: int


class BudgetResponse(BaseModel):
    budget: int


class CreateTeamRequest(BaseModel):
    """Shape only; name length and roster rules are checked by the draft service."""

    team_name: StrictStr
    player_ids: List[StrictStr]

    model_config = ConfigDict(extra="forbid")


class DraftResult(BaseModel):
    success: bool
    error: Optional[str] = None
    code: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def ok(cls) -> "DraftResult":
        return cls(success=True)


class TeamResponse(BaseModel):
    team_id: str
    name: str
    total_cost: int
    budget: int
    players: List[RealPlayerOut]
