from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.common.auth import get_current_user, get_optional_user
from app.draft import service
from app.draft.rules import DraftErrorCode
from app.draft.schemas import BudgetResponse, CreateTeamRequest, RealPlayerOut, TeamResponse
from app.persistence.session import get_db
from app.persistence.models import User

router = APIRouter(prefix="/draft", tags=["draft"])

STATUS_BY_CODE = {
    DraftErrorCode.UNAUTHENTICATED.value: 401,
    DraftErrorCode.ALREADY_HAS_TEAM.value: 409,
    DraftErrorCode.COMMIT_FAILED.value: 500,
}


@router.get("/players", response_model=List[RealPlayerOut])
def available_players(db: Session = Depends(get_db)):
    return service.get_available_players(db)


@router.get("/budget", response_model=BudgetResponse)
def user_budget(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return BudgetResponse(budget=service.get_user_budget(db, user.user_id))


@router.post("/team")
def create_team(
    payload: CreateTeamRequest,
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    result = service.create_team(
        db,
        user.user_id if user else None,
        payload.team_name,
        payload.player_ids,
    )

    if result.success:
        status = 201
    else:
        # Remaining codes are user-correctable roster problems
        status = STATUS_BY_CODE.get(result.code, 422)

    return JSONResponse(status_code=status, content=result.model_dump())


@router.get("/team", response_model=TeamResponse)
def my_team(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    team = service.get_team(db, user.user_id)
    if team is None:
        raise HTTPException(status_code=404, detail="No team yet")
    return team
